# logistics/core/constants.py
"""Roles, Firestore collection names and client route paths."""

ROLE_ADMIN = "admin"
ROLE_OPERATOR = "operator"
ROLE_DRIVER = "driver"
ROLE_CUSTOMER = "customer"
ROLE_SUPPLIER = "supplier"
ROLE_DEFAULT = "user"

# Roles that get their own dashboard path and a membership subcollection
MEMBER_ROLES = (ROLE_OPERATOR, ROLE_DRIVER, ROLE_CUSTOMER, ROLE_SUPPLIER)
ALL_ROLES = (ROLE_ADMIN,) + MEMBER_ROLES + (ROLE_DEFAULT,)

# Firestore collections
USERS = "users"
FINANCIAL_YEARS = "financial_years"
COMPANIES = "companies"
PRODUCTS = "products"
DELIVERIES = "deliveries"
ACTIVITIES = "activities"

# Client routes
PATH_LOGIN = "/login"
PATH_DASHBOARD = "/dashboard"
PATH_FY_SETUP = "/fy-setup"
PATH_MANAGEMENT = "/management"

COMPANY_ID_PREFIX = "COMP"


def membership_collection(role: str) -> str:
    """financial_years/{fy}/<role>s"""
    return f"{role}s"
