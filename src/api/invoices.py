"""
Invoice API endpoints.

Engine errors (validation, empty range, conflicts) propagate to the
exception handlers registered in ``src.main``; the request's transaction is
rolled back by ``get_db``.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_user, require_admin, require_finance
from src.db import get_db
from src.models import AuditAction, Invoice, User
from src.schemas.common import warnings_payload
from src.schemas.invoice import (
    InvoiceGenerateRequest,
    InvoiceListResponse,
    InvoicePreviewLine,
    InvoicePreviewResponse,
    InvoiceRangeRequest,
    InvoiceRecomputeRequest,
    InvoiceResponse,
    InvoiceStatusRequest,
    InvoiceSummaryResponse,
    InvoiceWriteResponse,
)
from src.services.aggregation import aggregate_for_resort
from src.services.invoicing import (
    advance_status,
    delete_invoice,
    generate_invoice,
    get_invoice_with_line_items,
    list_invoices,
    recompute_invoice,
)
from src.utils.audit import get_client_ip, log_action

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/invoices", tags=["Invoices"])


async def _invoice_response(db: AsyncSession, invoice_id: int) -> InvoiceResponse:
    invoice = await get_invoice_with_line_items(db, invoice_id)
    resp = InvoiceResponse.model_validate(invoice)
    resp.resort_name = invoice.resort.name if invoice.resort else None
    return resp


def _totals(invoice: Invoice) -> dict:
    return {
        "total_revenue": str(invoice.total_revenue),
        "dku_share": str(invoice.dku_share),
        "resort_share": str(invoice.resort_share),
    }


@router.get("", response_model=InvoiceListResponse)
async def list_invoices_endpoint(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    resort_id: Optional[int] = Query(None),
    invoice_status: Optional[str] = Query(None, alias="status"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    search: Optional[str] = Query(None, description="Invoice number contains"),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
):
    """List invoices, newest first."""
    invoices, total = await list_invoices(
        db,
        resort_id=resort_id,
        status=invoice_status,
        start_date=start_date,
        end_date=end_date,
        search=search,
        page=page,
        per_page=per_page,
    )

    items = []
    for invoice in invoices:
        resp = InvoiceSummaryResponse.model_validate(invoice)
        resp.resort_name = invoice.resort.name if invoice.resort else None
        items.append(resp)

    return InvoiceListResponse(
        items=items,
        total=total,
        page=page,
        per_page=per_page,
        pages=(total + per_page - 1) // per_page if total else 0,
    )


@router.post("/preview", response_model=InvoicePreviewResponse)
async def preview_invoice(
    data: InvoiceRangeRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
):
    """Compute line items and totals for a range without saving anything."""
    result = await aggregate_for_resort(
        db, data.resort_id, data.start_date, data.end_date, data.categories
    )
    return InvoicePreviewResponse(
        resort_id=result.resort_id,
        start_date=result.start_date,
        end_date=result.end_date,
        line_items=[InvoicePreviewLine.model_validate(item) for item in result.line_items],
        total_revenue=result.total_revenue,
        total_dku_share=result.total_dku_share,
        total_resort_share=result.total_resort_share,
        record_count=result.record_count,
        is_empty=result.is_empty,
        warnings=warnings_payload(result.warnings),
    )


@router.post("", response_model=InvoiceWriteResponse, status_code=status.HTTP_201_CREATED)
async def create_invoice(
    request: Request,
    data: InvoiceGenerateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
):
    """Generate a DRAFT invoice for a resort and date range."""
    outcome = await generate_invoice(
        db,
        resort_id=data.resort_id,
        start_date=data.start_date,
        end_date=data.end_date,
        categories=data.categories,
        generated_by=current_user.id,
        bank_account_id=data.bank_account_id,
    )
    invoice = outcome.invoice

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.GENERATE_INVOICE,
        target_type="invoice",
        target_id=invoice.id,
        action_metadata={
            "invoice_number": invoice.invoice_number,
            "start_date": str(invoice.start_date),
            "end_date": str(invoice.end_date),
            **_totals(invoice),
        },
        ip_address=get_client_ip(request),
    )
    await db.commit()

    return InvoiceWriteResponse(
        invoice=await _invoice_response(db, invoice.id),
        warnings=warnings_payload(outcome.warnings),
    )


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Invoice header with its line items."""
    return await _invoice_response(db, invoice_id)


@router.put("/{invoice_id}", response_model=InvoiceWriteResponse)
async def update_invoice(
    request: Request,
    invoice_id: int,
    data: InvoiceRecomputeRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
):
    """Recompute a draft invoice; number and status are kept."""
    before = await get_invoice_with_line_items(db, invoice_id)
    previous = _totals(before)

    outcome = await recompute_invoice(
        db,
        invoice_id=invoice_id,
        resort_id=data.resort_id,
        start_date=data.start_date,
        end_date=data.end_date,
        bank_account_id=data.bank_account_id,
        categories=data.categories,
    )
    invoice = outcome.invoice

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.RECOMPUTE_INVOICE,
        target_type="invoice",
        target_id=invoice.id,
        action_metadata={
            "invoice_number": invoice.invoice_number,
            "before": previous,
            "after": _totals(invoice),
        },
        ip_address=get_client_ip(request),
    )
    await db.commit()

    return InvoiceWriteResponse(
        invoice=await _invoice_response(db, invoice.id),
        warnings=warnings_payload(outcome.warnings),
    )


@router.post("/{invoice_id}/status", response_model=InvoiceResponse)
async def update_invoice_status(
    request: Request,
    invoice_id: int,
    data: InvoiceStatusRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_finance),
):
    """Advance an invoice one step: DRAFT -> SENT -> PAID."""
    invoice = await advance_status(db, invoice_id, data.status)

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.UPDATE_INVOICE_STATUS,
        target_type="invoice",
        target_id=invoice.id,
        action_metadata={
            "invoice_number": invoice.invoice_number,
            "status": invoice.status.value,
        },
        ip_address=get_client_ip(request),
    )
    await db.commit()

    return await _invoice_response(db, invoice.id)


@router.delete("/{invoice_id}")
async def delete_invoice_endpoint(
    request: Request,
    invoice_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Delete an unpaid invoice and its line items."""
    invoice = await delete_invoice(db, invoice_id)

    await log_action(
        db=db,
        user_id=current_user.id,
        action=AuditAction.DELETE_INVOICE,
        target_type="invoice",
        target_id=invoice_id,
        action_metadata={"invoice_number": invoice.invoice_number, **_totals(invoice)},
        ip_address=get_client_ip(request),
    )
    await db.commit()

    return {"success": True, "message": f"Invoice {invoice.invoice_number} deleted"}
