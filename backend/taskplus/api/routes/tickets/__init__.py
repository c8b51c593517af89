"""
Ticket Routes Module

- crud.py: Create, list, get, update, delete tickets
- lifecycle.py: Reopen

All routes are combined into a single router for inclusion in the API.
"""

from fastapi import APIRouter

from .schemas import CreateTicketRequest, UpdateTicketRequest
from .crud import router as crud_router
from .lifecycle import router as lifecycle_router

router = APIRouter()

# /my/tickets is declared before /{ticket_id} inside crud_router
router.include_router(crud_router)
router.include_router(lifecycle_router)

__all__ = ["router", "CreateTicketRequest", "UpdateTicketRequest"]
