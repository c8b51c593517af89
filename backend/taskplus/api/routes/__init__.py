"""API Routes module"""
from fastapi import APIRouter

from .auth import router as auth_router
from .access import router as access_router
from .tickets import router as tickets_router
from .follow_ups import router as follow_ups_router
from .reviews import router as reviews_router
from .notifications import router as notifications_router

# Main API router
api_router = APIRouter()

# Include all route modules
api_router.include_router(auth_router, prefix="/auth", tags=["Auth"])
api_router.include_router(access_router, prefix="/access", tags=["Access"])
api_router.include_router(tickets_router, prefix="/tickets", tags=["Tickets"])
api_router.include_router(follow_ups_router, prefix="/follow-ups", tags=["Follow-ups"])
api_router.include_router(reviews_router, prefix="/reviews", tags=["Reviews"])
api_router.include_router(notifications_router, prefix="/notifications", tags=["Notifications"])

__all__ = ["api_router"]
