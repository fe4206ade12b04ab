"""
logistics/schemas/principal.py
Roles and the authenticated Principal model.
"""
from typing import Literal, Optional
from pydantic import BaseModel, Field

Role = Literal["admin", "operator", "driver", "customer", "supplier", "user"]


class Principal(BaseModel):
    uid: str = Field(..., description="Firebase UID")
    email: Optional[str] = Field(None, description="E-mail (if any)")
    display_name: Optional[str] = Field(None, description="Display name (if any)")
