"""
Schemas for auth-user creation.
Field checks live in the service so callers get the exact validation messages.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel


class CreateAuthUserRequest(BaseModel):
    """Schema for POST /api/functions/create-auth-user"""
    email: Optional[str] = None
    name: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    class Config:
        json_schema_extra = {
            "example": {
                "email": "client@example.com",
                "name": "Jane Client",
                "metadata": {
                    "activation_code_id": "2f1c...",
                    "distributor_id": "8a7b...",
                    "assessment_type": "individual",
                    "plan_type": "annual"
                }
            }
        }
