"""
Validation utilities for the MaxPulse backend.
"""

import re
import uuid
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Optional, Tuple

from maxpulse_backend.core.logging import get_logger

logger = get_logger(__name__)

EMAIL_REGEX = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

def validate_email(email: Optional[str]) -> Tuple[bool, Optional[str]]:
    """
    Validate email format

    Args:
        email: Email to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not email:
        return False, "Email is required"

    if not EMAIL_REGEX.match(email):
        return False, "Invalid email format"

    if len(email) > 320:  # RFC 3696
        return False, "Email is too long"

    return True, None

def validate_uuid(uuid_str: Any) -> Tuple[bool, Optional[str]]:
    """
    Validate UUID format

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not uuid_str:
        return False, "ID is required"

    try:
        uuid.UUID(str(uuid_str))
        return True, None
    except ValueError:
        return False, "Invalid ID format"

def validate_required_fields(data: Dict[str, Any], fields: Iterable[str]) -> Tuple[bool, Optional[str]]:
    """
    Check that every field is present and not blank

    Returns:
        Tuple of (is_valid, error_message)
    """
    missing = []
    for field in fields:
        value = data.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(field)

    if missing:
        return False, f"Missing required fields: {', '.join(missing)}"
    return True, None

def validate_amount(amount: Any, field_name: str = "Amount") -> Tuple[bool, Optional[str]]:
    """
    Amount must be a finite number greater than zero
    """
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, TypeError, ValueError):
        return False, f"{field_name} must be a number"

    if not value.is_finite() or value <= 0:
        return False, f"{field_name} must be greater than 0"
    return True, None

def validate_rate(rate: Any) -> Tuple[bool, Optional[str]]:
    """
    Commission rate must be a percentage between 0 and 100
    """
    try:
        value = Decimal(str(rate))
    except (InvalidOperation, TypeError, ValueError):
        return False, "Commission rate must be a number"

    if not value.is_finite() or value < 0 or value > 100:
        return False, "Commission rate must be between 0 and 100"
    return True, None
