"""
Schemas for assessment link tracking endpoints.
"""

from typing import Optional

from pydantic import Field, validator

from .commission import CamelModel

LINK_TYPES = ("customer", "campaign")


class CreateLinkRequest(CamelModel):
    distributor_id: str
    campaign_name: str = Field(..., min_length=1, max_length=200)
    link_type: str = "customer"
    target_audience: Optional[str] = Field(None, max_length=200)
    focus_area: Optional[str] = Field(None, max_length=100)

    @validator("campaign_name")
    def campaign_name_not_blank(cls, v):
        if not v.strip():
            raise ValueError("campaign_name must not be blank")
        return v.strip()

    @validator("link_type")
    def link_type_allowed(cls, v):
        if v not in LINK_TYPES:
            raise ValueError("link_type must be 'customer' or 'campaign'")
        return v


class VisitorInfo(CamelModel):
    """Visitor details; the request's own client address and headers fill the gaps"""
    ip: Optional[str] = Field(None, max_length=64)
    user_agent: Optional[str] = Field(None, max_length=500)
    referrer: Optional[str] = Field(None, max_length=500)


class TrackClickRequest(CamelModel):
    session_id: Optional[str] = Field(None, max_length=100)
    visitor_info: Optional[VisitorInfo] = None


class TrackConversionRequest(CamelModel):
    session_id: Optional[str] = Field(None, max_length=100)
    visitor_info: Optional[VisitorInfo] = None
    conversion_value: float = 0

    @validator("conversion_value")
    def conversion_value_not_negative(cls, v):
        if v < 0:
            raise ValueError("conversion_value must not be negative")
        return v
