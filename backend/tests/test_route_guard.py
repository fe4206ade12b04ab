import pytest

from conftest import make_principal
from logistics.schemas.workspace import WorkspaceContext
from logistics.services.route_guard import AccessState, evaluate_access, resolve_destination


def ctx(role="user", ready=False, company_id="", fiscal_year="", signed_in=True):
    return WorkspaceContext(
        principal=make_principal() if signed_in else None,
        role=role,
        company_id=company_id,
        fiscal_year=fiscal_year,
        workspace_ready=ready,
    )


@pytest.mark.parametrize(
    "context, path, expected",
    [
        (ctx(signed_in=False), "/dashboard", "/login"),
        (ctx(signed_in=False), "/login", "/login"),
        (ctx("admin", ready=True), "/login", "/dashboard"),
        (ctx("driver", ready=True), "/login", "/dashboard"),
        # admin on the dashboard stays even when not ready
        (ctx("admin", ready=False), "/dashboard", None),
        (ctx("admin", ready=True), "/dashboard", None),
        (ctx("admin", ready=False), "/management", "/fy-setup"),
        (ctx("admin", ready=False), "/fy-setup", "/fy-setup"),
        (ctx("admin", ready=True), "/fy-setup", "/management"),
        (ctx("admin", ready=True), "/management", "/dashboard"),
        (ctx("operator", ready=True), "/operator", None),
        (ctx("operator", ready=True), "/dashboard", "/operator"),
        (ctx("driver", ready=False), "/management", "/driver"),
        (ctx("customer"), "/customer", None),
        (ctx("supplier"), "/anything", "/supplier"),
        (ctx("user"), "/dashboard", None),
        (ctx("user"), "/management", "/dashboard"),
        (ctx("unknown-role"), "/x", "/dashboard"),
    ],
)
def test_resolve_destination(context, path, expected):
    assert resolve_destination(context, path) == expected


def test_unauthenticated_is_blocked_first():
    decision = evaluate_access(ctx(signed_in=False), ["admin"])
    assert decision.state is AccessState.AUTHENTICATION_REQUIRED
    assert evaluate_access(None, []).state is AccessState.AUTHENTICATION_REQUIRED


def test_wrong_role_is_denied_before_configuration_check():
    decision = evaluate_access(ctx("driver"), ["admin", "operator"])
    assert decision.state is AccessState.ACCESS_DENIED
    assert decision.role == "driver"
    assert decision.required == ("admin", "operator")
    assert not decision.granted


@pytest.mark.parametrize("company_id, fiscal_year", [("", "2025_2026"), ("COMP-2025-001", ""), ("", "")])
def test_member_without_company_or_year_needs_configuration(company_id, fiscal_year):
    decision = evaluate_access(ctx("operator", company_id=company_id, fiscal_year=fiscal_year), ["operator"])
    assert decision.state is AccessState.CONFIGURATION_REQUIRED
    assert "administrator" in decision.message


def test_admin_needs_no_company():
    assert evaluate_access(ctx("admin"), ["admin"]).granted


def test_admin_only_view_pending_while_readiness_unknown():
    unknown = ctx("admin", ready=None, fiscal_year="2025_2026")
    assert evaluate_access(unknown, ["admin"], admin_only=True).state is AccessState.PENDING
    assert evaluate_access(unknown, ["admin"]).granted
    assert evaluate_access(ctx("admin", ready=False), ["admin"], admin_only=True).granted


@pytest.mark.parametrize("allowed, admin_only", [(["admin"], True), (["admin"], False), (["operator", "driver"], False)])
def test_any_view_pending_while_session_resolves(allowed, admin_only):
    decision = evaluate_access(WorkspaceContext.resolving(make_principal()), allowed, admin_only=admin_only)
    assert decision.state is AccessState.PENDING
    assert decision.message == "Your workspace is still loading."


def test_member_with_workspace_is_granted():
    decision = evaluate_access(ctx("driver", True, "COMP-2025-001", "2025_2026"), ["driver"])
    assert decision.granted
    assert decision.message == ""
