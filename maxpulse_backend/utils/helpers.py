"""
Helper functions for the MaxPulse backend.
"""

import uuid
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional, Union

from fastapi import HTTPException, status

CENTS = Decimal("0.01")

def to_decimal(value: Any) -> Decimal:
    """
    Convert a float/int/str to Decimal through its string form,
    so 89.99 stays 89.99 instead of its binary approximation.
    """
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))

def quantize_money(value: Union[Decimal, float, int, str]) -> Decimal:
    """Round to cents, half up"""
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)

def quantize_rate(value: Union[Decimal, float, int, str]) -> Decimal:
    """Round a percentage to the two places a Numeric(5, 2) rate column keeps"""
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)

def format_money(value: Union[Decimal, float, int]) -> str:
    """
    Format as dollars, e.g. "$1,234.50"
    """
    return f"${quantize_money(value):,.2f}"

def parse_uuid(value: Any, field_name: str = "id") -> uuid.UUID:
    """
    Parse a UUID coming from a request body

    Raises:
        HTTPException: 400 if the value is not a UUID
    """
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {field_name} format"
        )

def format_datetime(
    dt: Optional[datetime] = None,
    format_str: str = "%Y-%m-%d %H:%M:%S"
) -> str:
    """
    Format datetime (now if not given)
    """
    return (dt or datetime.now()).strftime(format_str)

