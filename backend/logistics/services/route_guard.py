# logistics/services/route_guard.py
"""
Route guard.

`resolve_destination` maps a resolved workspace and the path the client is on
to the one canonical path for that principal (None = stay where you are).
`evaluate_access` gates a single protected view and never redirects; it
returns a blocking state the client renders in place.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Tuple

from logistics.core import constants as C
from logistics.schemas.workspace import WorkspaceContext


def resolve_destination(context: WorkspaceContext, current_path: str) -> Optional[str]:
    """Decision table, first match wins."""
    if not context.authenticated:
        return C.PATH_LOGIN
    if current_path == C.PATH_LOGIN:
        return C.PATH_DASHBOARD

    role = context.role
    if role == C.ROLE_ADMIN:
        if current_path == C.PATH_DASHBOARD:
            return None
        if not context.workspace_ready:
            return C.PATH_FY_SETUP
        if current_path != C.PATH_MANAGEMENT:
            return C.PATH_MANAGEMENT
        return C.PATH_DASHBOARD

    if role in C.MEMBER_ROLES:
        home = f"/{role}"
        return None if current_path == home else home

    return None if current_path == C.PATH_DASHBOARD else C.PATH_DASHBOARD


class AccessState(str, Enum):
    GRANTED = "granted"
    AUTHENTICATION_REQUIRED = "authentication_required"
    ACCESS_DENIED = "access_denied"
    CONFIGURATION_REQUIRED = "configuration_required"
    PENDING = "pending"


MESSAGES = {
    AccessState.AUTHENTICATION_REQUIRED: "Please sign in to continue.",
    AccessState.ACCESS_DENIED: "You do not have access to this page.",
    AccessState.CONFIGURATION_REQUIRED: (
        "Your account has no company or fiscal year assigned. "
        "Contact an administrator or sign out."
    ),
    AccessState.PENDING: "Your workspace is still loading.",
}


@dataclass(frozen=True)
class AccessDecision:
    state: AccessState
    role: str = ""
    required: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def granted(self) -> bool:
        return self.state is AccessState.GRANTED

    @property
    def message(self) -> str:
        return MESSAGES.get(self.state, "")


def evaluate_access(
    context: Optional[WorkspaceContext],
    allowed_roles: Iterable[str],
    admin_only: bool = False,
) -> AccessDecision:
    required = tuple(allowed_roles)
    if context is None or not context.authenticated:
        return AccessDecision(AccessState.AUTHENTICATION_REQUIRED, required=required)

    if context.loading:
        # role is unknown until the resolution commits
        return AccessDecision(AccessState.PENDING, required=required)

    role = context.role
    if required and role not in required:
        return AccessDecision(AccessState.ACCESS_DENIED, role=role, required=required)

    if role != C.ROLE_ADMIN and (not context.company_id or not context.fiscal_year):
        return AccessDecision(AccessState.CONFIGURATION_REQUIRED, role=role, required=required)

    if admin_only and context.workspace_ready is None:
        return AccessDecision(AccessState.PENDING, role=role, required=required)

    return AccessDecision(AccessState.GRANTED, role=role, required=required)
