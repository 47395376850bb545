"""
Pytest configuration and fixtures.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import date
from decimal import Decimal

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.models import (
    AssetCategory,
    Base,
    BankAccount,
    ProfitSharingConfig,
    Resort,
    User,
    UserRole,
)
from src.utils.password import hash_password

# Test database URL (use SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create test database session."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def admin_user(db_session):
    user = User(
        email="admin@test.local",
        password_hash=hash_password("admin-pass"),
        name="Admin",
        role=UserRole.ADMIN,
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def resort(db_session):
    """A resort with an explicit 80/20 split for SEA_SPORT only."""
    resort = Resort(name="Montigo Resorts Nongsa", legal_company_name="PT Montigo")
    db_session.add(resort)
    await db_session.flush()

    db_session.add(
        ProfitSharingConfig(
            resort_id=resort.id,
            asset_category=AssetCategory.SEA_SPORT,
            dku_percentage=Decimal("80"),
            resort_percentage=Decimal("20"),
            effective_from=date(2024, 1, 1),
        )
    )
    await db_session.commit()
    return resort


@pytest_asyncio.fixture
async def default_bank_account(db_session):
    account = BankAccount(
        bank_name="BCA",
        account_number="1234567890",
        account_holder="PT Operator",
        is_default=True,
    )
    db_session.add(account)
    await db_session.commit()
    return account
