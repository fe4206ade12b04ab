"""
logistics/schemas/workspace.py
Resolved workspace context and the session payloads built from it.
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from logistics.schemas.principal import Principal


class WorkspaceContext(BaseModel):
    """
    Everything the client needs to route a principal.

    `workspace_ready` is tri-state: None while a resolution is in flight,
    then True/False.
    """
    model_config = ConfigDict(frozen=True)

    principal: Optional[Principal] = None
    role: str = ""
    company_id: str = ""
    fiscal_year: str = ""
    company: Optional[Dict[str, Any]] = None
    workspace_ready: Optional[bool] = False
    loading: bool = False
    error: Optional[str] = Field(None, description="Authentication error shown to the user")

    @classmethod
    def signed_out(cls) -> "WorkspaceContext":
        return cls()

    @classmethod
    def resolving(cls, principal: Principal) -> "WorkspaceContext":
        return cls(principal=principal, workspace_ready=None, loading=True)

    @property
    def authenticated(self) -> bool:
        return self.principal is not None


class SessionOut(BaseModel):
    """GET /session and login response body."""
    workspace: WorkspaceContext
    destination: Optional[str] = Field(None, description="Path to navigate to; null means stay")


class AccessDeniedDetail(BaseModel):
    code: str
    message: str
    role: Optional[str] = None
    required: List[str] = Field(default_factory=list)
