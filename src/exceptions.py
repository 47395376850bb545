"""
Typed errors and warnings raised by the revenue and invoicing engine.

Every error carries a machine-readable ``code`` so the API layer can map it
to a response without parsing messages. Warnings are never raised: they are
collected on calculation results and surfaced to the caller, who decides
whether to act on them.
"""

from typing import Any, Optional


class RevenueEngineError(Exception):
    """Base class for all engine errors."""

    code: str = "REVENUE_ENGINE_ERROR"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        payload = {"detail": self.message, "code": self.code}
        if self.details:
            payload["context"] = {k: str(v) for k, v in self.details.items()}
        return payload


class ValidationError(RevenueEngineError):
    """Malformed or out-of-range input. Raised before anything is written."""

    code = "VALIDATION_ERROR"


class InvalidStatusTransition(ValidationError):
    """Invoice status change that is backward, skipped or repeated."""

    code = "INVALID_STATUS_TRANSITION"


class RevenueLockedError(ValidationError):
    """Revenue record is covered by an invoice that has left DRAFT."""

    code = "REVENUE_LOCKED"


class NotFoundError(RevenueEngineError):
    code = "NOT_FOUND"


class EmptyResultError(RevenueEngineError):
    """Aggregation matched no revenue; an invoice must not be created."""

    code = "EMPTY_RESULT"


class ConcurrencyConflict(RevenueEngineError):
    """Another writer won the race for an invoice or an invoice number."""

    code = "CONCURRENCY_CONFLICT"


class EngineWarning(UserWarning):
    """Base class for non-blocking findings attached to results."""

    code: str = "ENGINE_WARNING"

    def __init__(self, message: str, category: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.category = category

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "category": self.category}

    def __eq__(self, other) -> bool:
        return (
            type(self) is type(other)
            and self.message == other.message
            and self.category == other.category
        )

    def __hash__(self) -> int:
        return hash((type(self), self.message, self.category))


class ConfigFallbackWarning(EngineWarning):
    """No explicit profit-sharing config; the 70/30 default was applied."""

    code = "NO_CONFIG"


class SplitMismatchWarning(EngineWarning):
    """Operator and resort percentages do not add up to 100."""

    code = "SPLIT_MISMATCH"


class NegativeNetWarning(EngineWarning):
    """Discount and tax exceed the gross amount."""

    code = "NEGATIVE_NET"
