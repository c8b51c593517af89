"""Repository modules - Data access layer"""
from .mongo_client import get_database, get_collection, create_indexes
from .counter_repo import CounterRepository
from .access_repo import AccessRepository
from .user_repo import UserRepository
from .ticket_repo import TicketRepository
from .follow_up_repo import FollowUpRepository
from .review_repo import ReviewRepository
from .notification_repo import NotificationRepository

__all__ = [
    "get_database",
    "get_collection",
    "create_indexes",
    "CounterRepository",
    "AccessRepository",
    "UserRepository",
    "TicketRepository",
    "FollowUpRepository",
    "ReviewRepository",
    "NotificationRepository",
]
