# logistics/core/auth.py
from typing import Optional
from fastapi import Request, HTTPException, status
from firebase_admin import auth as fb_auth

from logistics.config import settings, init_firebase
from logistics.schemas.principal import Principal

MOCK_TOKEN_PREFIX = "mock_jwt_token_"


def _extract_bearer_token(request: Request) -> Optional[str]:
    """
    Reads the token from `Authorization: Bearer <id_token>`.
    Returns None when the header is missing or malformed.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None
    parts = auth_header.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None


def _decode_id_token(id_token: str) -> dict:
    """
    Verifies a Firebase ID token (revocation included).
    Mock tokens are accepted only when DEBUG is on.
    Invalid / revoked / expired tokens → 401.
    """
    if settings.debug and id_token.startswith(MOCK_TOKEN_PREFIX):
        return _decode_mock_token(id_token)

    init_firebase()
    try:
        return fb_auth.verify_id_token(id_token, check_revoked=True)
    except fb_auth.ExpiredIdTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    except fb_auth.RevokedIdTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session revoked")
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid Firebase ID token: {exc}"
        )


def _decode_mock_token(mock_token: str) -> dict:
    """
    Format: mock_jwt_token_<uid>
    """
    uid = mock_token[len(MOCK_TOKEN_PREFIX):]
    if not uid:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid mock token format")
    return {"uid": uid, "email": None, "name": None}


def _token_to_principal(decoded: dict) -> Principal:
    uid = decoded.get("uid") or decoded.get("user_id")
    if not uid:
        raise HTTPException(status_code=401, detail="Token missing uid.")
    return Principal(
        uid=uid,
        email=decoded.get("email"),
        display_name=decoded.get("name"),
    )

# --------- FastAPI Dependencies --------- #

async def get_optional_principal(request: Request) -> Optional[Principal]:
    """
    Token optional: verified when present, None otherwise.
    """
    token = _extract_bearer_token(request)
    if not token:
        return None
    return _token_to_principal(_decode_id_token(token))


async def get_principal(request: Request) -> Principal:
    """
    Token required: verifies it and returns the Principal.
    """
    token = _extract_bearer_token(request)
    if not token:
        raise HTTPException(
            status_code=401,
            detail="Missing Authorization header.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return _token_to_principal(_decode_id_token(token))
