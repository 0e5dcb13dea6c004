from pydantic import BaseModel, Field
from typing import List, Optional
from ticketdesk.core.clock import as_utc
from ticketdesk.schemas.ticket import IssuedTicketOut

class BookingCreate(BaseModel):
    eventId: str
    name: str
    email: str  # plain str to allow .local and other dev domains
    ticketCount: int = Field(1, ge=1)
    userId: Optional[str] = None

class BookingOut(BaseModel):
    id: str
    eventId: str
    name: str
    email: str
    userId: Optional[str] = None
    ticketCount: int
    totalPriceCents: int
    bookingDate: str

    @classmethod
    def from_model(cls, b) -> "BookingOut":
        return cls(
            id=b.id,
            eventId=b.event_id,
            name=b.name,
            email=b.email,
            userId=b.user_id,
            ticketCount=b.ticket_count,
            totalPriceCents=b.total_price_cents,
            bookingDate=as_utc(b.booking_date).isoformat(),
        )

class BookingCreatedOut(BaseModel):
    booking: BookingOut
    qrCodes: List[IssuedTicketOut]

class BookingEmailIn(BaseModel):
    bookingId: str
