"""Revenue recognition, profit sharing and invoicing services."""

from src.services.aggregation import AggregationResult, LineItemDraft, aggregate, aggregate_for_resort
from src.services.amounts import AmountSpec, DecomposedAmount, decompose
from src.services.config_resolver import ResolvedSplit, resolve_profit_config
from src.services.invoice_numbers import allocate_invoice_number, format_invoice_number
from src.services.invoicing import (
    InvoiceOutcome,
    advance_status,
    delete_invoice,
    generate_invoice,
    get_invoice_with_line_items,
    list_invoices,
    recompute_invoice,
)
from src.services.profit_split import ProfitSplit, split

__all__ = [
    # Pure calculations
    "AmountSpec",
    "DecomposedAmount",
    "decompose",
    "ProfitSplit",
    "split",
    "ResolvedSplit",
    "resolve_profit_config",
    "AggregationResult",
    "LineItemDraft",
    "aggregate",
    # Persistence-backed
    "aggregate_for_resort",
    "allocate_invoice_number",
    "format_invoice_number",
    "InvoiceOutcome",
    "generate_invoice",
    "recompute_invoice",
    "advance_status",
    "get_invoice_with_line_items",
    "list_invoices",
    "delete_invoice",
]
