"""Schemas shared across endpoints."""

from typing import List, Optional

from pydantic import BaseModel


class WarningResponse(BaseModel):
    """A non-blocking finding from a calculation (fallback config, split mismatch, negative net)."""

    code: str
    message: str
    category: Optional[str] = None


def warnings_payload(warnings) -> List[WarningResponse]:
    """Convert engine warnings to response models, dropping duplicates in order."""
    seen = []
    for warning in warnings:
        if warning not in seen:
            seen.append(warning)
    return [WarningResponse(**w.to_dict()) for w in seen]
