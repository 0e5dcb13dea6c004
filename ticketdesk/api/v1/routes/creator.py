from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ticketdesk.api.deps import CurrentUser, ensure_self_or_admin, http_error, require_roles
from ticketdesk.api.v1.routes.admin import statistics_out
from ticketdesk.db.session import get_db
from ticketdesk.schemas.event import EventIn, EventOut
from ticketdesk.schemas.statistics import CreatorStatisticsOut
from ticketdesk.services import event_service
from ticketdesk.services.errors import DomainError
from ticketdesk.services.statistics_service import get_creator_statistics

router = APIRouter(tags=["creator"])


@router.post("/creator-events")
def create_creator_event(body: EventIn, db: Session = Depends(get_db),
                         me: CurrentUser = Depends(require_roles("creator"))):
    """Submit an event for admin approval; it stays hidden until approved."""
    try:
        ev = event_service.create_event(db, body, actor_id=me.id, creator_id=me.id)
    except DomainError as e:
        raise http_error(e)
    return {"event": EventOut.from_model(ev)}


@router.get("/creator-events/{creator_id}")
def list_creator_events(creator_id: str, db: Session = Depends(get_db),
                        me: CurrentUser = Depends(require_roles("creator", "admin"))):
    ensure_self_or_admin(me, creator_id)
    try:
        events = event_service.list_creator_events(db, creator_id)
    except DomainError as e:
        raise http_error(e)
    return {"events": [EventOut.from_model(ev) for ev in events]}


@router.get("/creator-statistics/{creator_id}")
def creator_statistics(creator_id: str, db: Session = Depends(get_db),
                       me: CurrentUser = Depends(require_roles("creator", "admin"))):
    ensure_self_or_admin(me, creator_id)
    try:
        st = get_creator_statistics(db, creator_id)
    except DomainError as e:
        raise http_error(e)
    out = CreatorStatisticsOut(
        **statistics_out(st).model_dump(),
        pendingEvents=st.pending_events,
        approvedEvents=st.approved_events,
        rejectedEvents=st.rejected_events,
    )
    return {"statistics": out}
