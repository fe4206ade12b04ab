"""
# `logistics/routers/auth.py`: Authentication

## Endpoints

### POST /auth/login
Form: `email`, `password`, optional `path` (the page the client is on).

1. Identity Toolkit `signInWithPassword`.
2. A principal-changed event is published; the session bootstrap engine
   resolves the workspace (profile, fiscal year, company, readiness).
3. Returns tokens, the resolved workspace and the route guard destination.

Failures come back as `{"code", "message"}` using the fixed message table:
401 for credential problems, 503 when the provider is unreachable,
500 when the server has no web API key.

---

### POST /auth/logout
Revokes the caller's refresh tokens and publishes the signed-out event, so
the cached workspace is reset in one step.

---

### POST /auth/register
Self-registration. Creates the Firebase user and a `users/{uid}` profile
with role `user` (no company, no fiscal year), then signs in.

---

### POST /auth/reset-password
Sends the password reset mail. Always answers with the same message.
"""
import logging

from fastapi import APIRouter, Depends, Form, HTTPException, status
from firebase_admin import auth as firebase_auth
from pydantic import EmailStr

from logistics.core import constants as C
from logistics.core.auth import get_principal
from logistics.core.executor import run_blocking
from logistics.core.session import get_bootstrapper, get_identity, get_registry
from logistics.schemas.principal import Principal
from logistics.schemas.user import LoginResponse, RegisterRequest
from logistics.schemas.workspace import WorkspaceContext
from logistics.services.identity import NETWORK_ERROR, AuthenticationError, IdentityProvider
from logistics.services.route_guard import resolve_destination
from logistics.services.session_bootstrap import SessionBootstrapper, SessionRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def _auth_http_error(exc: AuthenticationError) -> HTTPException:
    if exc.code == NETWORK_ERROR:
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif exc.code == "CONFIGURATION_NOT_FOUND":
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    else:
        code = status.HTTP_401_UNAUTHORIZED
    return HTTPException(status_code=code, detail={"code": exc.code, "message": exc.message})


async def _sign_in(
    identity: IdentityProvider,
    registry: SessionRegistry,
    email: str,
    password: str,
    path: str,
) -> LoginResponse:
    try:
        result = await identity.authenticate(email, password)
    except AuthenticationError as exc:
        raise _auth_http_error(exc)

    uid = result.principal.uid
    await identity.publish(uid, result.principal)
    context = registry.get(uid) or WorkspaceContext.signed_out()
    return LoginResponse(
        id_token=result.id_token,
        refresh_token=result.refresh_token,
        expires_in=result.expires_in,
        user_id=uid,
        workspace=context,
        destination=resolve_destination(context, path),
    )


@router.post("/login", response_model=LoginResponse, summary="Email/password login")
async def login(
    email: EmailStr = Form(..., description="Email"),
    password: str = Form(..., min_length=6, description="Password"),
    path: str = Form(C.PATH_LOGIN, description="Page the client is on"),
    identity: IdentityProvider = Depends(get_identity),
    registry: SessionRegistry = Depends(get_registry),
):
    return await _sign_in(identity, registry, str(email), password, path)


@router.post("/logout", summary="Sign out on every device")
async def logout(
    principal: Principal = Depends(get_principal),
    identity: IdentityProvider = Depends(get_identity),
):
    await identity.sign_out(principal.uid)
    await identity.publish(principal.uid, None)
    return {"detail": "Logged out", "destination": C.PATH_LOGIN}


@router.post(
    "/register",
    response_model=LoginResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Self-registration (role: user)",
)
async def register(
    payload: RegisterRequest = Depends(RegisterRequest.as_form),
    identity: IdentityProvider = Depends(get_identity),
    registry: SessionRegistry = Depends(get_registry),
    bootstrapper: SessionBootstrapper = Depends(get_bootstrapper),
):
    email = str(payload.email)
    try:
        record = await run_blocking(
            firebase_auth.create_user, email=email, password=payload.password, display_name=payload.name
        )
    except firebase_auth.EmailAlreadyExistsError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"code": "EMAIL_EXISTS", "message": "Email already registered"},
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    await bootstrapper.directory.create_profile(record.uid, {
        "email": email,
        "name": payload.name,
        "role": C.ROLE_DEFAULT,
        "companyId": "",
        "current_fy": "",
    })
    logger.info("Registered user %s", record.uid)
    return await _sign_in(identity, registry, email, payload.password, C.PATH_LOGIN)


@router.post("/reset-password", summary="Request password reset")
async def request_password_reset(
    email: EmailStr = Form(..., description="User email"),
    identity: IdentityProvider = Depends(get_identity),
):
    """
    Generic answer whether or not the account exists.
    """
    try:
        await identity.send_password_reset(str(email))
    except AuthenticationError as exc:
        if exc.code == NETWORK_ERROR:
            raise _auth_http_error(exc)
        logger.info("Password reset for %s not sent: %s", email, exc.code)
    return {"detail": "If the email is registered, a reset link has been sent."}
