"""
Utility module for the MaxPulse backend.
Contains helper functions and utilities used across the application.
"""

from .error_handling import (
    handle_exception,
    log_exception,
    format_exception_for_client,
    error_response
)
from .validators import (
    validate_email,
    validate_uuid,
    validate_required_fields,
    validate_amount,
    validate_rate
)
from .helpers import (
    to_decimal,
    quantize_money,
    quantize_rate,
    format_money,
    parse_uuid,
    format_datetime
)
