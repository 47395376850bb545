"""API router aggregation."""

from fastapi import APIRouter

from src.api.auth import router as auth_router
from src.api.bank_accounts import router as bank_accounts_router
from src.api.health import router as health_router
from src.api.invoices import router as invoices_router
from src.api.resorts import router as resorts_router
from src.api.revenue import router as revenue_router

# Main API router (for /api/* endpoints)
api_router = APIRouter(prefix="/api")

api_router.include_router(health_router)
api_router.include_router(auth_router)
api_router.include_router(resorts_router)
api_router.include_router(bank_accounts_router)
api_router.include_router(revenue_router)
api_router.include_router(invoices_router)

__all__ = ["api_router"]
