"""
Pydantic schema models for the MaxPulse backend.
These schemas are used for request validation and documentation.
"""

from .commission import (
    FunctionEnvelope, ProcessPurchaseData, CalculateCommissionData,
    ApproveCommissionData, BulkApproveData, WithdrawalData, ValidateDistributorData
)
from .auth_user import CreateAuthUserRequest
from .activation import GenerateCodeRequest, CodeRequest
from .link import CreateLinkRequest, VisitorInfo, TrackClickRequest, TrackConversionRequest

__all__ = [
    "FunctionEnvelope", "ProcessPurchaseData", "CalculateCommissionData",
    "ApproveCommissionData", "BulkApproveData", "WithdrawalData", "ValidateDistributorData",
    "CreateAuthUserRequest",
    "GenerateCodeRequest", "CodeRequest",
    "CreateLinkRequest", "VisitorInfo", "TrackClickRequest", "TrackConversionRequest",
]
