"""
logistics/schemas/user.py: profile and provisioning schemas.
"""
from typing import Any, Dict, Literal, Optional, Annotated
from fastapi import Form, HTTPException
from pydantic import BaseModel, EmailStr, Field, ValidationError

from logistics.schemas.workspace import WorkspaceContext

MOBILE_REGEX = r"^0\d{9,10}$"   # 09012345678
MobileStr = Annotated[str, Field(pattern=MOBILE_REGEX)]

MemberRole = Literal["operator", "driver", "customer", "supplier"]


class UserProfile(BaseModel):
    """users/{uid} as returned to the owner."""
    id: str = Field(..., description="Firebase UID")
    email: Optional[str] = None
    name: Optional[str] = None
    role: str = "user"
    company_id: str = ""
    fiscal_year: str = ""
    status: str = "active"


class MemberCreate(BaseModel):
    """Admin/operator ⇒ create a login for a company member."""
    role: MemberRole
    name: str = Field(..., min_length=1)
    mobile_number: MobileStr = Field(..., description="Mobile (0 + 9-10 digits)")
    password: Annotated[str, Field(min_length=6)]
    email: Optional[EmailStr] = Field(None, description="Generated from role + mobile when empty")
    company_id: Optional[str] = Field(None, description="Admins only; operators use their own company")
    # role specific: vehicle for drivers, address for customers, business for suppliers
    details: Dict[str, Any] = Field(default_factory=dict)


class MemberOut(BaseModel):
    id: str
    role: str
    name: Optional[str] = None
    email: Optional[str] = None
    mobile_number: Optional[str] = None
    company_id: str = ""
    fiscal_year: str = ""
    status: str = "active"


class LoginResponse(BaseModel):
    """Tokens plus the resolved session."""
    id_token: str
    refresh_token: str
    expires_in: int
    user_id: str
    workspace: WorkspaceContext
    destination: Optional[str] = None


class RegisterRequest(BaseModel):
    name: Annotated[str, Field(min_length=1)]
    email: EmailStr
    password: Annotated[str, Field(min_length=6)]

    @classmethod
    def as_form(
        cls,
        name: str = Form(..., description="Full name"),
        email: str = Form(..., description="Email"),
        password: str = Form(..., description="Password (min 6)"),
    ):
        try:
            return cls(name=name, email=email, password=password)
        except ValidationError as exc:
            raise HTTPException(status_code=422, detail=[err["msg"] for err in exc.errors()])
