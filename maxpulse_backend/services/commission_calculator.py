# maxpulse_backend/services/commission_calculator.py
"""
Commission arithmetic.

Effective rate = min(base rate + tier bonus + product bonus, MAX_COMMISSION_RATE)
Commission     = sale amount * effective rate / 100, rounded to cents (half up)

Nothing here touches the database.
"""

from decimal import Decimal
from typing import Any, Dict, Iterable, Optional, Union

from maxpulse_backend.core.config import settings
from maxpulse_backend.utils.helpers import to_decimal, quantize_money
from maxpulse_backend.utils.validators import (
    validate_amount,
    validate_email,
    validate_rate,
    validate_required_fields,
)

Number = Union[Decimal, float, int, str]

# Tier thresholds are checked top-down, first match wins
TIER_BONUSES = (
    (3, Decimal("5")),
    (2, Decimal("2")),
)

PRODUCT_TYPE_BONUSES = {
    "package": Decimal("3"),
    "service": Decimal("1"),
}

MAX_COMMISSION_RATE = to_decimal(settings.MAX_COMMISSION_RATE)


def tier_bonus(tier_level: Optional[int]) -> Decimal:
    """Bonus percentage points for a distributor tier"""
    level = int(tier_level or 0)
    for threshold, bonus in TIER_BONUSES:
        if level >= threshold:
            return bonus
    return Decimal("0")


def product_bonus(product_type: Optional[str]) -> Decimal:
    """Bonus percentage points for a product type"""
    return PRODUCT_TYPE_BONUSES.get((product_type or "").lower(), Decimal("0"))


def calculate_effective_rate(
    base_rate: Number,
    tier_level: Optional[int] = 1,
    product_type: Optional[str] = "product"
) -> Decimal:
    """
    Apply tier and product bonuses to the base rate, capped at MAX_COMMISSION_RATE.

    >>> calculate_effective_rate(15, 3, "product")
    Decimal('20')
    """
    rate = to_decimal(base_rate) + tier_bonus(tier_level) + product_bonus(product_type)
    return min(rate, MAX_COMMISSION_RATE)


def calculate_commission_amount(sale_amount: Number, rate: Number) -> Decimal:
    """
    sale_amount * rate / 100 rounded to cents.

    >>> calculate_commission_amount("89.99", 20)
    Decimal('18.00')
    """
    return quantize_money(to_decimal(sale_amount) * to_decimal(rate) / Decimal("100"))


def calculate_commission(
    sale_amount: Number,
    base_rate: Number,
    tier_level: Optional[int] = 1,
    product_type: Optional[str] = "product"
) -> Dict[str, Any]:
    """
    Full breakdown of a commission for display and persistence.
    """
    effective_rate = calculate_effective_rate(base_rate, tier_level, product_type)
    return {
        "sale_amount": quantize_money(sale_amount),
        "base_rate": to_decimal(base_rate),
        "tier_bonus": tier_bonus(tier_level),
        "product_bonus": product_bonus(product_type),
        "effective_rate": effective_rate,
        "commission_amount": calculate_commission_amount(sale_amount, effective_rate),
    }


def validate_commission_input(
    data: Dict[str, Any],
    required_fields: Iterable[str] = (),
    amount_field: str = "price",
    rate_field: Optional[str] = "commission_rate",
    email_field: Optional[str] = "client_email"
) -> None:
    """
    Validate raw commission input.

    Raises:
        ValueError: with a message suitable for the client
    """
    is_valid, error = validate_required_fields(data, required_fields)
    if not is_valid:
        raise ValueError(error)

    is_valid, error = validate_amount(data.get(amount_field), "Sale amount")
    if not is_valid:
        raise ValueError(error)

    if rate_field is not None:
        is_valid, error = validate_rate(data.get(rate_field))
        if not is_valid:
            raise ValueError(error)

    if email_field is not None and data.get(email_field):
        is_valid, error = validate_email(data.get(email_field))
        if not is_valid:
            raise ValueError(error)


def validate_commission_rules(sale_amount: Number, rate: Number) -> None:
    """
    Platform limits on a single sale.

    Raises:
        ValueError: naming the violated rule
    """
    amount = to_decimal(sale_amount)
    rate = to_decimal(rate)

    if amount < to_decimal(settings.MIN_SALE_AMOUNT):
        raise ValueError(f"Sale amount must be at least ${settings.MIN_SALE_AMOUNT:.2f}")
    if amount > to_decimal(settings.MAX_SALE_AMOUNT):
        raise ValueError(f"Sale amount cannot exceed ${settings.MAX_SALE_AMOUNT:,.2f}")
    if rate > MAX_COMMISSION_RATE:
        raise ValueError(f"Commission rate cannot exceed {settings.MAX_COMMISSION_RATE:g}%")
