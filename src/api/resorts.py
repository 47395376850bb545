"""
Resort directory and profit-sharing configuration endpoints.
"""

from typing import List

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_user, require_finance
from src.db import get_db
from src.models import AuditAction, User
from src.schemas.common import warnings_payload
from src.schemas.resort import (
    CategorySplitResponse,
    ProfitSharingResponse,
    ProfitSharingUpdate,
    ResortCreate,
    ResortResponse,
)
from src.services import resorts as resort_service
from src.utils.audit import get_client_ip, log_action

router = APIRouter(prefix="/resorts", tags=["Resorts"])


async def _profit_sharing_response(db: AsyncSession, resort_id: int, warnings=()) -> ProfitSharingResponse:
    resolved = await resort_service.get_profit_sharing(db, resort_id)
    return ProfitSharingResponse(
        resort_id=resort_id,
        splits=[
            CategorySplitResponse(
                asset_category=category,
                dku_percentage=split.dku_percentage,
                resort_percentage=split.resort_percentage,
                is_fallback=split.is_fallback,
                effective_from=split.effective_from,
            )
            for category, split in resolved.items()
        ],
        warnings=warnings_payload(warnings),
    )


@router.get("", response_model=List[ResortResponse])
async def list_resorts(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    resorts = await resort_service.list_resorts(db)
    return [ResortResponse.model_validate(r) for r in resorts]


@router.post("", response_model=ResortResponse, status_code=status.HTTP_201_CREATED)
async def create_resort(
    request: Request,
    data: ResortCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
):
    """Create a resort; every category starts at the default split."""
    resort = await resort_service.create_resort(db, **data.model_dump())

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.CREATE_RESORT,
        target_type="resort",
        target_id=resort.id,
        action_metadata={"name": resort.name},
        ip_address=get_client_ip(request),
    )
    await db.commit()
    await db.refresh(resort)

    return ResortResponse.model_validate(resort)


@router.get("/{resort_id}/profit-sharing", response_model=ProfitSharingResponse)
async def get_profit_sharing(
    resort_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Split currently in force for each asset category."""
    return await _profit_sharing_response(db, resort_id)


@router.put("/{resort_id}/profit-sharing", response_model=ProfitSharingResponse)
async def update_profit_sharing(
    request: Request,
    resort_id: int,
    data: ProfitSharingUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
):
    """
    Save a new split per category.

    Earlier configurations are kept; the new rows win from their
    effective date on. Splits not adding up to 100 are saved and flagged.
    """
    splits = {
        s.asset_category: (s.dku_percentage, s.resort_percentage)
        for s in data.splits
    }
    saved, warnings = await resort_service.save_profit_sharing(
        db, resort_id, splits, effective_from=data.effective_from
    )

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.UPDATE_PROFIT_SHARING,
        target_type="resort",
        target_id=resort_id,
        action_metadata={
            row.asset_category.value: [str(row.dku_percentage), str(row.resort_percentage)]
            for row in saved
        },
        ip_address=get_client_ip(request),
    )
    await db.commit()

    return await _profit_sharing_response(db, resort_id, warnings)
