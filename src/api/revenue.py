"""
Revenue ledger API endpoints.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_user, require_finance
from src.db import get_db
from src.models import AssetCategory, AuditAction, RevenueRecord, User
from src.schemas.common import warnings_payload
from src.schemas.revenue import (
    RevenueCreate,
    RevenueListResponse,
    RevenueResponse,
    RevenueSummaryResponse,
    RevenueUpdate,
    RevenueWriteResponse,
)
from src.services import revenue_ledger
from src.utils.audit import get_client_ip, log_action

router = APIRouter(prefix="/revenue", tags=["Revenue"])


def _snapshot(record: RevenueRecord) -> dict:
    return {
        "resort_id": record.resort_id,
        "asset_category": record.asset_category.value,
        "date": str(record.date),
        "amount": str(record.amount),
        "net_amount": str(record.net_amount),
    }


@router.get("", response_model=RevenueListResponse)
async def list_revenue(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    resort_id: Optional[int] = Query(None),
    category: Optional[AssetCategory] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    search: Optional[str] = Query(None, description="Billing number contains"),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
):
    """List revenue records, newest first."""
    records, total = await revenue_ledger.list_revenue(
        db,
        resort_id=resort_id,
        category=category,
        start_date=start_date,
        end_date=end_date,
        search=search,
        page=page,
        per_page=per_page,
    )
    return RevenueListResponse(
        items=[RevenueResponse.model_validate(r) for r in records],
        total=total,
        page=page,
        per_page=per_page,
        pages=(total + per_page - 1) // per_page if total else 0,
    )


@router.get("/summary", response_model=RevenueSummaryResponse)
async def revenue_summary(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    resort_id: Optional[int] = Query(None),
    category: Optional[AssetCategory] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    search: Optional[str] = Query(None),
):
    """Gross, net and shared totals over the filtered ledger."""
    summary = await revenue_ledger.summarize_revenue(
        db,
        resort_id=resort_id,
        category=category,
        start_date=start_date,
        end_date=end_date,
        search=search,
    )
    return RevenueSummaryResponse.model_validate(summary)


@router.get("/categories", response_model=List[AssetCategory])
async def revenue_categories(
    resort_id: int = Query(...),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Asset categories with revenue for a resort (and optional range)."""
    return await revenue_ledger.available_categories(db, resort_id, start_date, end_date)


@router.post("", response_model=RevenueWriteResponse, status_code=status.HTTP_201_CREATED)
async def create_revenue(
    request: Request,
    data: RevenueCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
):
    """Record one booking's gross takings."""
    written = await revenue_ledger.record_revenue(
        db,
        resort_id=data.resort_id,
        asset_category=data.asset_category,
        day=data.date,
        amount=data.amount,
        recorded_by=current_user.id,
        discount=data.discount.to_spec(),
        tax_service=data.tax_service.to_spec(),
        billing_no=data.billing_no,
    )
    record = written.record

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.CREATE_REVENUE,
        target_type="revenue",
        target_id=record.id,
        action_metadata=_snapshot(record),
        ip_address=get_client_ip(request),
    )
    await db.commit()
    await db.refresh(record)

    return RevenueWriteResponse(
        record=RevenueResponse.model_validate(record),
        warnings=warnings_payload(written.warnings),
    )


@router.put("/{record_id}", response_model=RevenueWriteResponse)
async def update_revenue(
    request: Request,
    record_id: int,
    data: RevenueUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
):
    """Overwrite a revenue record and recompute its decomposition."""
    before = _snapshot(await revenue_ledger.get_revenue(db, record_id))

    written = await revenue_ledger.update_revenue(
        db,
        record_id,
        resort_id=data.resort_id,
        asset_category=data.asset_category,
        day=data.date,
        amount=data.amount,
        discount=data.discount.to_spec() if data.discount else None,
        tax_service=data.tax_service.to_spec() if data.tax_service else None,
        billing_no=data.billing_no,
    )
    record = written.record

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.UPDATE_REVENUE,
        target_type="revenue",
        target_id=record.id,
        action_metadata={"before": before, "after": _snapshot(record)},
        ip_address=get_client_ip(request),
    )
    await db.commit()
    await db.refresh(record)

    return RevenueWriteResponse(
        record=RevenueResponse.model_validate(record),
        warnings=warnings_payload(written.warnings),
    )


@router.delete("/{record_id}")
async def delete_revenue(
    request: Request,
    record_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
):
    """Remove a revenue record not yet covered by a sent or paid invoice."""
    record = await revenue_ledger.delete_revenue(db, record_id)

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.DELETE_REVENUE,
        target_type="revenue",
        target_id=record_id,
        action_metadata=_snapshot(record),
        ip_address=get_client_ip(request),
    )
    await db.commit()

    return {"success": True, "message": "Revenue record deleted"}
