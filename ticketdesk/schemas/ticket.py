from pydantic import BaseModel, Field
from typing import Optional

class IssueRequest(BaseModel):
    bookingId: str
    ticketCount: int = Field(..., ge=1)

class IssuedTicketOut(BaseModel):
    ticketId: str
    ticketNumber: int
    qrCodeDataUrl: str
    validationUrl: str
    isUsed: bool = False

    @classmethod
    def from_issued(cls, it) -> "IssuedTicketOut":
        return cls(
            ticketId=it.ticket_id,
            ticketNumber=it.seq,
            qrCodeDataUrl=it.image,
            validationUrl=it.validation_url,
            isUsed=it.is_used,
        )

class TicketStatusOut(BaseModel):
    success: bool
    found: bool
    isUsed: bool = False
    usedAt: Optional[str] = None
    bookingId: Optional[str] = None
    ticketNumber: Optional[int] = None

class UseTicketIn(BaseModel):
    ticketId: str

class RedeemOut(BaseModel):
    success: bool
    ticketId: str
    usedAt: Optional[str] = None
    error: Optional[str] = None
    message: str = ""

class RefundIn(BaseModel):
    bookingId: str
    ticketId: Optional[str] = None

class RefundOut(BaseModel):
    success: bool
    refundedTickets: int
    requestedTickets: int
    bookingDeleted: bool = False
    error: Optional[str] = None
    message: str = ""

class UserTicketOut(BaseModel):
    ticketId: str
    bookingId: str
    eventId: str
    ticketNumber: int
    totalTickets: int
    isUsed: bool
    usedAt: Optional[str] = None
    validationUrl: str

class UsedTicketOut(BaseModel):
    ticketId: str
    bookingId: str
    eventId: str
    ticketNumber: int
    usedAt: str
