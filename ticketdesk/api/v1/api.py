from fastapi import APIRouter
from ticketdesk.api.v1.routes.events import router as events_router
from ticketdesk.api.v1.routes.creator import router as creator_router
from ticketdesk.api.v1.routes.bookings import router as bookings_router
from ticketdesk.api.v1.routes.tickets import router as tickets_router
from ticketdesk.api.v1.routes.admin import router as admin_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(events_router)
api_router.include_router(creator_router)
api_router.include_router(bookings_router)
api_router.include_router(tickets_router)
api_router.include_router(admin_router)
