"""
Resort Revenue - profit-sharing invoicing service

Main FastAPI application with:
- Revenue ledger with inclusive discount/tax decomposition
- Per-resort, per-category profit-sharing configuration
- Invoice generation, recompute and status workflow
- Role-based authentication (admin/manager/engineer)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import select

from src.api import api_router
from src.config import settings
from src.db import get_db_context
from src.exceptions import (
    ConcurrencyConflict,
    EmptyResultError,
    NotFoundError,
    RevenueEngineError,
    RevenueLockedError,
    ValidationError,
)
from src.models import User, UserRole
from src.utils.password import hash_password

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# Most specific first: RevenueLockedError is also a ValidationError
ERROR_STATUS = (
    (RevenueLockedError, status.HTTP_423_LOCKED),
    (ValidationError, 422),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (EmptyResultError, 422),
    (ConcurrencyConflict, status.HTTP_409_CONFLICT),
)


def status_for(exc: RevenueEngineError) -> int:
    for error_cls, code in ERROR_STATUS:
        if isinstance(exc, error_cls):
            return code
    return status.HTTP_400_BAD_REQUEST


async def engine_error_handler(request: Request, exc: RevenueEngineError) -> JSONResponse:
    code = status_for(exc)
    if code == status.HTTP_409_CONFLICT:
        logger.warning(f"{request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected [{exc.code}]: {exc.message}")
    return JSONResponse(status_code=code, content=exc.to_dict())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
    - Creates the bootstrap admin account if no admin exists
    """
    logger.info("Starting Resort Revenue...")

    async with get_db_context() as db:
        result = await db.execute(
            select(User).where(User.role == UserRole.ADMIN).limit(1)
        )
        admin = result.scalar_one_or_none()

        if not admin:
            logger.info("Creating admin account...")
            db.add(
                User(
                    email=settings.admin_email.strip().lower(),
                    password_hash=hash_password(settings.admin_password),
                    name="Administrator",
                    role=UserRole.ADMIN,
                    is_active=True,
                )
            )
            logger.info(f"Admin account created: {settings.admin_email}")

    logger.info("Resort Revenue started successfully!")

    yield

    logger.info("Shutting down Resort Revenue...")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Resort Revenue",
        description="Revenue recognition and profit-sharing invoicing",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
    )

    app.add_exception_handler(RevenueEngineError, engine_error_handler)
    app.include_router(api_router)  # /api/* endpoints

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
    )
