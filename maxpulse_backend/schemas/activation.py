"""
Schemas for activation code endpoints.
"""

from typing import Optional

from pydantic import EmailStr, Field, validator

from .commission import CamelModel


class GenerateCodeRequest(CamelModel):
    distributor_id: Optional[str] = None
    session_id: Optional[str] = None
    customer_name: str = Field(..., min_length=1, max_length=200)
    customer_email: EmailStr
    assessment_type: str = "individual"
    plan_type: str = "annual"

    @validator("assessment_type")
    def assessment_type_allowed(cls, v):
        if v not in ("individual", "group"):
            raise ValueError("assessment_type must be 'individual' or 'group'")
        return v

    @validator("plan_type")
    def plan_type_allowed(cls, v):
        if v not in ("annual", "monthly"):
            raise ValueError("plan_type must be 'annual' or 'monthly'")
        return v


class CodeRequest(CamelModel):
    code: str = Field(..., min_length=1)
