from pydantic import BaseModel
from typing import Dict

class EventStatsOut(BaseModel):
    ticketsSold: int
    ticketsUsed: int
    revenueCents: int
    bookingCount: int

class StatisticsOut(BaseModel):
    totalEvents: int
    totalBookings: int
    totalTicketsSold: int
    totalTicketsUsed: int
    totalRevenueCents: int
    eventStats: Dict[str, EventStatsOut]

class CreatorStatisticsOut(StatisticsOut):
    pendingEvents: int
    approvedEvents: int
    rejectedEvents: int
