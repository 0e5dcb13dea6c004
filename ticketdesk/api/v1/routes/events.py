from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ticketdesk.api.deps import CurrentUser, http_error, require_roles
from ticketdesk.db.session import get_db
from ticketdesk.schemas.event import EventIn, EventOut, EventPatch
from ticketdesk.services import event_service
from ticketdesk.services.errors import DomainError

router = APIRouter(tags=["events"])


@router.get("/events")
def list_events(db: Session = Depends(get_db)):
    """Approved events for the public catalogue, soonest first."""
    try:
        events = event_service.list_events(db)
    except DomainError as e:
        raise http_error(e)
    return {"events": [EventOut.from_model(ev) for ev in events]}


@router.get("/events/{event_id}")
def get_event(event_id: str, db: Session = Depends(get_db)):
    try:
        ev = event_service.get_event(db, event_id)
    except DomainError as e:
        raise http_error(e)
    if ev.status != "approved":
        raise HTTPException(status_code=404, detail="Not found")
    return {"event": EventOut.from_model(ev)}


@router.post("/events")
def create_event(body: EventIn, db: Session = Depends(get_db),
                 me: CurrentUser = Depends(require_roles("admin"))):
    try:
        ev = event_service.create_event(db, body, actor_id=me.id)
    except DomainError as e:
        raise http_error(e)
    return {"event": EventOut.from_model(ev)}


@router.put("/events/{event_id}")
def update_event(event_id: str, body: EventPatch, db: Session = Depends(get_db),
                 me: CurrentUser = Depends(require_roles("admin"))):
    try:
        ev = event_service.update_event(db, event_id, body, actor_id=me.id)
    except DomainError as e:
        raise http_error(e)
    return {"event": EventOut.from_model(ev)}


@router.delete("/events/{event_id}")
def delete_event(event_id: str, db: Session = Depends(get_db),
                 me: CurrentUser = Depends(require_roles("admin"))):
    try:
        removed = event_service.delete_event(db, event_id, actor_id=me.id)
    except DomainError as e:
        raise http_error(e)
    return {"ok": True, "deletedBookings": removed}
