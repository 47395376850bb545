"""
Back discount and tax/service out of gross, inclusive booking amounts.

A recorded amount already has the discount and tax/service baked in, so a
percentage rate r is extracted as ``amount / (1 + r) * r`` rather than added
on top. Tax/service is extracted from what remains after the discount.

Every money figure is quantized to 2 places right after it is extracted and
the net is derived from the quantized parts, so

    net + discount + tax_service == gross

holds exactly for every decomposition.

Fixed amounts are taken as entered even when they exceed what they are taken
from. The net then goes negative and is reported as a NegativeNetWarning;
whether to accept such a record is the caller's decision.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from src.exceptions import NegativeNetWarning, ValidationError
from src.models.revenue import AmountType

CENT = Decimal("0.01")
RATE_PLACES = Decimal("0.0001")
HUNDRED = Decimal("100")
ZERO = Decimal("0")


def to_decimal(value, field: str = "amount") -> Decimal:
    """Coerce user input to Decimal without going through binary floats."""
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except ArithmeticError:
            raise ValidationError(f"{field} is not a number: {value!r}") from None
    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return result


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def quantize_rate(value: Decimal) -> Decimal:
    return value.quantize(RATE_PLACES, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class AmountSpec:
    """A discount or tax/service input: percent (10 means 10%) or a fixed amount."""

    type: AmountType = AmountType.PERCENTAGE
    value: Decimal = ZERO

    @classmethod
    def percentage(cls, value) -> "AmountSpec":
        return cls(AmountType.PERCENTAGE, to_decimal(value, "rate"))

    @classmethod
    def fixed(cls, value) -> "AmountSpec":
        return cls(AmountType.FIXED_AMOUNT, to_decimal(value, "fixed amount"))

    @property
    def is_empty(self) -> bool:
        return self.value == ZERO


NO_ADJUSTMENT = AmountSpec()


@dataclass(frozen=True)
class DecomposedAmount:
    gross: Decimal
    discount: Decimal
    discount_percentage: Decimal
    after_discount: Decimal
    tax_service: Decimal
    tax_service_percentage: Decimal
    net: Decimal

    @property
    def warnings(self) -> list:
        if self.net < ZERO:
            return [NegativeNetWarning(f"Discount and tax/service exceed gross {self.gross}")]
        return []


def _extract(base: Decimal, spec: Optional[AmountSpec], label: str,
             allow_negative_rates: bool) -> tuple:
    """Return (amount, percentage_equivalent) of one inclusive adjustment."""
    if spec is None or spec.is_empty:
        return ZERO, ZERO

    value = to_decimal(spec.value, label)

    if spec.type == AmountType.PERCENTAGE:
        if value <= -HUNDRED:
            raise ValidationError(
                f"{label} rate must be greater than -100%",
                rate=value,
            )
        if value < ZERO and not allow_negative_rates:
            raise ValidationError(f"Negative {label} rate is not allowed", rate=value)
        rate = value / HUNDRED
        amount = quantize_money(base / (1 + rate) * rate)
        return amount, quantize_rate(value)

    if value < ZERO:
        raise ValidationError(f"Fixed {label} cannot be negative", value=value)
    amount = quantize_money(value)
    percentage = quantize_rate(amount / base * HUNDRED) if base > ZERO else ZERO
    return amount, percentage


def decompose(
    gross,
    discount_spec: Optional[AmountSpec] = None,
    tax_spec: Optional[AmountSpec] = None,
    allow_negative_rates: bool = True,
) -> DecomposedAmount:
    """
    Split a gross, inclusive amount into discount, tax/service and net.

    Args:
        gross: Recorded booking amount (discount and tax inclusive), >= 0
        discount_spec: Discount input, applied to the gross
        tax_spec: Tax/service input, applied to the amount after discount
        allow_negative_rates: Accept negative percentage rates (markups)

    Returns:
        DecomposedAmount with 2-place money figures and 4-place percentages

    Raises:
        ValidationError: negative gross, rate <= -100%, disallowed negative
            rate, or a negative fixed amount
    """
    gross = to_decimal(gross, "gross amount")
    if gross < ZERO:
        raise ValidationError("Gross amount cannot be negative", gross=gross)
    gross = quantize_money(gross)

    discount, discount_pct = _extract(gross, discount_spec, "discount", allow_negative_rates)
    after_discount = gross - discount

    tax, tax_pct = _extract(after_discount, tax_spec, "tax/service", allow_negative_rates)
    net = after_discount - tax

    return DecomposedAmount(
        gross=gross,
        discount=discount,
        discount_percentage=discount_pct,
        after_discount=after_discount,
        tax_service=tax,
        tax_service_percentage=tax_pct,
        net=net,
    )
