from unittest.mock import Mock

import pytest
from fastapi import HTTPException
from starlette.requests import Request

from logistics.core import auth


def request_with(header=None):
    headers = [(b"authorization", header.encode())] if header else []
    return Request({"type": "http", "headers": headers})


def test_bearer_token_extraction():
    assert auth._extract_bearer_token(request_with("Bearer abc")) == "abc"
    assert auth._extract_bearer_token(request_with("Basic abc")) is None
    assert auth._extract_bearer_token(request_with()) is None


async def test_mock_token_accepted_in_debug(monkeypatch):
    monkeypatch.setattr(auth.settings, "debug", True)

    principal = await auth.get_principal(request_with("Bearer mock_jwt_token_u-42"))

    assert principal.uid == "u-42"


async def test_mock_token_rejected_outside_debug(monkeypatch):
    monkeypatch.setattr(auth.settings, "debug", False)
    monkeypatch.setattr(auth, "init_firebase", Mock())
    monkeypatch.setattr(auth.fb_auth, "verify_id_token", Mock(side_effect=ValueError("malformed")))

    with pytest.raises(HTTPException) as info:
        await auth.get_principal(request_with("Bearer mock_jwt_token_u-42"))
    assert info.value.status_code == 401


async def test_verified_token_becomes_principal(monkeypatch):
    monkeypatch.setattr(auth, "init_firebase", Mock())
    monkeypatch.setattr(
        auth.fb_auth, "verify_id_token",
        Mock(return_value={"uid": "u-1", "email": "a@example.com", "name": "A"}),
    )

    principal = await auth.get_principal(request_with("Bearer real-token"))

    assert (principal.uid, principal.email, principal.display_name) == ("u-1", "a@example.com", "A")
    auth.fb_auth.verify_id_token.assert_called_once_with("real-token", check_revoked=True)


async def test_missing_header():
    with pytest.raises(HTTPException) as info:
        await auth.get_principal(request_with())
    assert info.value.status_code == 401
    assert await auth.get_optional_principal(request_with()) is None
