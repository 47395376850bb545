"""
Settlement bank account endpoints.
"""

from typing import List

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_user, require_admin
from src.db import get_db
from src.models import AuditAction, User
from src.schemas.resort import BankAccountCreate, BankAccountResponse
from src.services import resorts as resort_service
from src.utils.audit import get_client_ip, log_action

router = APIRouter(prefix="/bank-accounts", tags=["Bank Accounts"])


@router.get("", response_model=List[BankAccountResponse])
async def list_bank_accounts(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Bank accounts, default first."""
    accounts = await resort_service.list_bank_accounts(db)
    return [BankAccountResponse.model_validate(a) for a in accounts]


@router.post("", response_model=BankAccountResponse, status_code=status.HTTP_201_CREATED)
async def create_bank_account(
    request: Request,
    data: BankAccountCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    account = await resort_service.create_bank_account(db, **data.model_dump())

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.CREATE_BANK_ACCOUNT,
        target_type="bank_account",
        target_id=account.id,
        action_metadata={"bank_name": account.bank_name, "is_default": account.is_default},
        ip_address=get_client_ip(request),
    )
    await db.commit()

    return BankAccountResponse.model_validate(account)
