#!/usr/bin/env python3
"""
Promotes an existing account to admin: `users/{uid}.role = "admin"` plus the
`admin` custom claim. The first admin of a deployment is created this way.
"""
import sys

from firebase_admin import auth, firestore

from logistics.config import init_firebase
from logistics.core.constants import ROLE_ADMIN, USERS


def set_admin_role(user_email: str) -> bool:
    """Returns False when no account has that email."""
    init_firebase()
    try:
        user = auth.get_user_by_email(user_email)
    except auth.UserNotFoundError:
        print(f"User not found: {user_email}")
        return False

    print(f"User found: {user.uid} - {user.email}")
    auth.set_custom_user_claims(user.uid, {"admin": True})
    firestore.client().collection(USERS).document(user.uid).set(
        {"role": ROLE_ADMIN, "email": user.email}, merge=True
    )
    print(f"Admin role set for: {user_email}")
    return True


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python set_admin_role.py <user_email>")
        sys.exit(1)

    if set_admin_role(sys.argv[1]):
        print("The user has to sign in again for the change to take effect.")
    else:
        sys.exit(1)
