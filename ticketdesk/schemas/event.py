from datetime import datetime
from pydantic import BaseModel
from typing import Optional
from ticketdesk.core.clock import as_utc

class EventIn(BaseModel):
    title: str
    description: str = ""
    startDate: datetime
    endDate: Optional[datetime] = None
    presenter: str = ""
    totalPlaces: int
    priceCents: int = 0
    image: str = ""

class EventPatch(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    startDate: Optional[datetime] = None
    endDate: Optional[datetime] = None
    presenter: Optional[str] = None
    totalPlaces: Optional[int] = None
    priceCents: Optional[int] = None
    image: Optional[str] = None

class RejectIn(BaseModel):
    reason: str = ""

class EventOut(BaseModel):
    id: str
    title: str
    description: str
    startDate: str
    endDate: Optional[str] = None
    presenter: str
    totalPlaces: int
    bookedPlaces: int
    priceCents: int
    image: str
    isPast: bool
    creatorId: Optional[str] = None
    status: str
    rejectionReason: Optional[str] = None

    @classmethod
    def from_model(cls, ev) -> "EventOut":
        return cls(
            id=ev.id,
            title=ev.title,
            description=ev.description or "",
            startDate=as_utc(ev.start_at).isoformat(),
            endDate=as_utc(ev.end_at).isoformat() if ev.end_at else None,
            presenter=ev.presenter or "",
            totalPlaces=ev.total_places,
            bookedPlaces=ev.booked_places,
            priceCents=ev.price_cents,
            image=ev.image or "",
            isPast=ev.is_past,
            creatorId=ev.creator_id,
            status=ev.status,
            rejectionReason=ev.rejection_reason,
        )
