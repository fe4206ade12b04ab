# logistics/services/identity.py
"""
Identity provider: Firebase Authentication.

- authenticate(email, password) → Identity Toolkit `accounts:signInWithPassword` (REST, httpx)
- sign_out(uid)                → revoke all refresh tokens (Admin SDK)
- subscribe(listener)          → "current principal changed" notifications

Listeners are awaited one after another for every published event, so a
session never sees two events delivered at once.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

import httpx
from firebase_admin import auth as firebase_auth

from logistics.schemas.principal import Principal

logger = logging.getLogger(__name__)

PrincipalListener = Callable[[str, Optional[Principal]], Awaitable[object]]

NETWORK_ERROR = "NETWORK_REQUEST_FAILED"

# Identity Toolkit error code → message shown to the user
AUTH_ERROR_MESSAGES = {
    "EMAIL_NOT_FOUND": "Invalid email or password",
    "INVALID_PASSWORD": "Invalid email or password",
    "INVALID_LOGIN_CREDENTIALS": "Invalid email or password",
    "INVALID_EMAIL": "Invalid email address",
    "MISSING_PASSWORD": "Password is required",
    "USER_DISABLED": "This account has been disabled",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many attempts. Please try again later",
    "OPERATION_NOT_ALLOWED": "Email/password sign-in is disabled",
    "PASSWORD_LOGIN_DISABLED": "Email/password sign-in is disabled",
    "EMAIL_EXISTS": "Email already registered",
    "WEAK_PASSWORD": "Password too weak",
    NETWORK_ERROR: "Check your connection",
}
DEFAULT_AUTH_ERROR = "Login failed"


class AuthenticationError(Exception):
    def __init__(self, code: str, message: Optional[str] = None):
        self.code = code
        self.message = message or AUTH_ERROR_MESSAGES.get(code, DEFAULT_AUTH_ERROR)
        super().__init__(self.message)


def error_code(payload: dict) -> str:
    """'TOO_MANY_ATTEMPTS_TRY_LATER : Access disabled…' → 'TOO_MANY_ATTEMPTS_TRY_LATER'"""
    message = (payload.get("error") or {}).get("message") or ""
    return message.split(":")[0].strip() or DEFAULT_AUTH_ERROR


@dataclass
class SignInResult:
    principal: Principal
    id_token: str
    refresh_token: str
    expires_in: int


class IdentityProvider:
    def __init__(
        self,
        api_key: str,
        base_url: str = "https://identitytoolkit.googleapis.com/v1",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._listeners: List[PrincipalListener] = []

    # --------- notifications --------- #

    def subscribe(self, listener: PrincipalListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def publish(self, session_id: str, principal: Optional[Principal]) -> None:
        for listener in list(self._listeners):
            await listener(session_id, principal)

    # --------- Identity Toolkit --------- #

    async def _post(self, endpoint: str, payload: dict) -> dict:
        if not self.api_key:
            raise AuthenticationError("CONFIGURATION_NOT_FOUND", "Server misconfigured: missing FIREBASE_WEB_API_KEY")
        url = f"{self.base_url}/accounts:{endpoint}?key={self.api_key}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(url, json=payload)
        except httpx.HTTPError as exc:
            logger.warning("Identity Toolkit %s unreachable: %s", endpoint, exc)
            raise AuthenticationError(NETWORK_ERROR) from exc

        try:
            data = resp.json()
        except ValueError:
            data = {}
        if resp.status_code != 200:
            code = error_code(data)
            logger.info("Identity Toolkit %s rejected: %s", endpoint, code)
            raise AuthenticationError(code)
        return data

    async def authenticate(self, email: str, password: str) -> SignInResult:
        data = await self._post("signInWithPassword", {
            "email": email,
            "password": password,
            "returnSecureToken": True,
        })
        principal = Principal(
            uid=data["localId"],
            email=data.get("email") or email,
            display_name=data.get("displayName") or None,
        )
        return SignInResult(
            principal=principal,
            id_token=data["idToken"],
            refresh_token=data["refreshToken"],
            expires_in=int(data.get("expiresIn", 3600)),
        )

    async def send_password_reset(self, email: str) -> None:
        await self._post("sendOobCode", {"requestType": "PASSWORD_RESET", "email": email})

    # --------- Admin SDK --------- #

    async def sign_out(self, uid: str) -> None:
        """Revokes refresh tokens on every device; the client also calls signOut()."""
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, firebase_auth.revoke_refresh_tokens, uid)
        except firebase_auth.UserNotFoundError:
            logger.info("Sign-out for unknown user %s", uid)
