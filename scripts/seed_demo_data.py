"""
Seed demo data for Resort Revenue.

Usage:
    python scripts/seed_demo_data.py

Or with custom DATABASE_URL:
    DATABASE_URL="postgresql+asyncpg://..." python scripts/seed_demo_data.py

This script creates:
- A manager account (if not exists)
- Two resorts with their profit-sharing splits
- A default bank account
- One month of revenue per resort and a DRAFT invoice for it
"""

import asyncio
import os
import random
import sys
from datetime import date, timedelta
from decimal import Decimal

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select

from src.db import get_db_context
from src.exceptions import EmptyResultError
from src.models import AssetCategory, Resort, User, UserRole
from src.services.amounts import AmountSpec
from src.services.invoicing import generate_invoice
from src.services.resorts import create_bank_account, create_resort, save_profit_sharing
from src.services.revenue_ledger import record_revenue
from src.utils.password import hash_password


MANAGER_EMAIL = "manager@example.com"
MANAGER_PASSWORD = "manager123"

MONTH_START = date(2025, 1, 1)
MONTH_END = date(2025, 1, 31)

DEMO_RESORTS = [
    {
        "name": "Montigo Resorts Nongsa",
        "legal_company_name": "PT Montigo Nongsa",
        "contact_name": "Rina",
        "splits": {"SEA_SPORT": (80, 20), "ATV": (70, 30)},
    },
    {
        "name": "Nirwana Beach Club",
        "legal_company_name": "PT Nirwana Gardens",
        "contact_name": "Budi",
        "splits": {"UTV": (65, 35), "LINE_SPORT": (75, 25)},
    },
]


async def get_or_create_manager(db) -> User:
    result = await db.execute(select(User).where(User.email == MANAGER_EMAIL))
    manager = result.scalar_one_or_none()
    if manager:
        print(f"Manager already exists: {manager.email}")
        return manager

    manager = User(
        email=MANAGER_EMAIL,
        password_hash=hash_password(MANAGER_PASSWORD),
        name="Demo Manager",
        role=UserRole.MANAGER,
        is_active=True,
    )
    db.add(manager)
    await db.flush()
    print(f"Created manager: {MANAGER_EMAIL} / {MANAGER_PASSWORD}")
    return manager


async def seed_resort(db, manager: User, spec: dict) -> None:
    result = await db.execute(select(Resort).where(Resort.name == spec["name"]))
    if result.scalar_one_or_none():
        print(f"Resort already exists, skipping: {spec['name']}")
        return

    splits = spec.pop("splits")
    resort = await create_resort(db, effective_from=date(2024, 1, 1), **spec)
    await save_profit_sharing(db, resort.id, splits, effective_from=date(2024, 1, 1))

    rng = random.Random(resort.name)
    day = MONTH_START
    records = 0
    while day <= MONTH_END:
        for category in splits:
            amount = Decimal(rng.randrange(50, 500) * 10_000)
            await record_revenue(
                db,
                resort_id=resort.id,
                asset_category=category,
                day=day,
                amount=amount,
                recorded_by=manager.id,
                discount=AmountSpec.percentage(rng.choice([0, 5, 10])),
                tax_service=AmountSpec.percentage(10),
                billing_no=f"DEMO-{resort.id}-{records + 1:04d}",
            )
            records += 1
        day += timedelta(days=3)

    try:
        outcome = await generate_invoice(
            db,
            resort.id,
            MONTH_START,
            MONTH_END,
            list(splits),
            generated_by=manager.id,
        )
    except EmptyResultError:
        print(f"No revenue for {resort.name}, no invoice generated")
        return

    invoice = outcome.invoice
    print(
        f"Seeded {resort.name}: {records} revenue records, "
        f"invoice {invoice.invoice_number} total {invoice.total_revenue}"
    )


async def main():
    async with get_db_context() as db:
        manager = await get_or_create_manager(db)
        await create_bank_account(
            db, "Bank Mandiri", "1090012345678", "PT Dunia Kreasi Utama", is_default=True
        )
        for spec in DEMO_RESORTS:
            await seed_resort(db, manager, dict(spec))

    print("Done. Categories available:", ", ".join(c.value for c in AssetCategory))


if __name__ == "__main__":
    asyncio.run(main())
