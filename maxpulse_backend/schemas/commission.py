"""
Request schemas for the commission processor endpoint.
Payloads arrive in camelCase; fields are also accepted by their snake_case names.
Withdrawals also accept "method" and approvals "approverId", as older clients send them.
"""

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema accepting camelCase aliases"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class FunctionEnvelope(BaseModel):
    """Schema for the {type, data} envelope"""
    type: str = Field(..., description="Operation name")
    data: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        json_schema_extra = {
            "example": {
                "type": "validate_distributor",
                "data": {"distributorCode": "WB2025991"}
            }
        }


class ProcessPurchaseData(CamelModel):
    distributor_id: Optional[str] = None
    product_id: Optional[str] = None
    product_name: Optional[str] = None
    product_type: Optional[str] = None
    price: Optional[float] = None
    commission_rate: Optional[float] = None
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    session_id: Optional[str] = None


class CalculateCommissionData(CamelModel):
    distributor_id: str
    sale_amount: float
    product_type: str = "product"
    # Base rate override; the distributor's own rate when omitted
    commission_rate: Optional[float] = None


class ApproveCommissionData(CamelModel):
    commission_id: str
    # Defaults to the authenticated caller
    approved_by: Optional[str] = Field(
        None, validation_alias=AliasChoices("approvedBy", "approverId", "approved_by")
    )


class BulkApproveData(CamelModel):
    commission_ids: List[str] = Field(..., min_length=1)
    approved_by: Optional[str] = Field(
        None, validation_alias=AliasChoices("approvedBy", "approverId", "approved_by")
    )


class WithdrawalData(CamelModel):
    distributor_id: str
    amount: float
    withdrawal_method: str = Field(
        "bank_transfer", validation_alias=AliasChoices("withdrawalMethod", "method", "withdrawal_method")
    )
    payment_details: Optional[Dict[str, Any]] = None


class ValidateDistributorData(CamelModel):
    distributor_code: str
