"""Service modules - Business logic layer"""
from .auth_service import AuthService
from .access_service import AccessService
from .notification_service import NotificationService
from .ticket_service import TicketService
from .follow_up_service import FollowUpService
from .review_service import ReviewService

__all__ = [
    "AuthService",
    "AccessService",
    "NotificationService",
    "TicketService",
    "FollowUpService",
    "ReviewService",
]
