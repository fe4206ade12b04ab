import httpx
import pytest

from conftest import make_principal
from logistics.services.identity import NETWORK_ERROR, AuthenticationError, IdentityProvider, error_code


def provider(handler, api_key="AIzaTestKey"):
    return IdentityProvider(api_key=api_key, transport=httpx.MockTransport(handler))


async def test_authenticate_returns_tokens(toolkit):
    toolkit.accounts["a@example.com"] = {"uid": "u-1", "password": "secret1"}

    result = await provider(toolkit).authenticate("a@example.com", "secret1")

    assert result.principal.uid == "u-1"
    assert result.id_token == "id-u-1"
    assert result.expires_in == 3600
    assert "key=AIzaTestKey" in str(toolkit.requests[0].url)


async def test_invalid_credentials_message(toolkit):
    with pytest.raises(AuthenticationError) as info:
        await provider(toolkit).authenticate("a@example.com", "wrong")
    assert info.value.code == "INVALID_LOGIN_CREDENTIALS"
    assert info.value.message == "Invalid email or password"


async def test_error_code_with_detail_suffix():
    def handler(request):
        return httpx.Response(400, json={"error": {"message": "TOO_MANY_ATTEMPTS_TRY_LATER : Access disabled"}})

    with pytest.raises(AuthenticationError) as info:
        await provider(handler).authenticate("a@example.com", "x")
    assert info.value.code == "TOO_MANY_ATTEMPTS_TRY_LATER"
    assert "Too many attempts" in info.value.message


async def test_unknown_code_gets_generic_message():
    def handler(request):
        return httpx.Response(500, text="oops")

    with pytest.raises(AuthenticationError) as info:
        await provider(handler).authenticate("a@example.com", "x")
    assert info.value.message == "Login failed"


async def test_network_failure():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(AuthenticationError) as info:
        await provider(handler).authenticate("a@example.com", "x")
    assert info.value.code == NETWORK_ERROR
    assert info.value.message == "Check your connection"


async def test_missing_api_key(toolkit):
    with pytest.raises(AuthenticationError) as info:
        await provider(toolkit, api_key="").authenticate("a@example.com", "x")
    assert info.value.code == "CONFIGURATION_NOT_FOUND"
    assert toolkit.requests == []


async def test_password_reset_posts_oob_request(toolkit):
    await provider(toolkit).send_password_reset("a@example.com")
    assert toolkit.requests[0].url.path.endswith("accounts:sendOobCode")


def test_error_code_parsing():
    assert error_code({"error": {"message": "EMAIL_NOT_FOUND"}}) == "EMAIL_NOT_FOUND"
    assert error_code({}) == "Login failed"


async def test_listeners_called_in_order_and_unsubscribe(toolkit):
    identity = provider(toolkit)
    seen = []

    async def first(session_id, principal):
        seen.append(("first", session_id, principal.uid if principal else None))

    async def second(session_id, principal):
        seen.append(("second", session_id, principal.uid if principal else None))

    identity.subscribe(first)
    unsubscribe = identity.subscribe(second)
    await identity.publish("u1", make_principal("u1"))
    unsubscribe()
    await identity.publish("u1", None)

    assert seen == [("first", "u1", "u1"), ("second", "u1", "u1"), ("first", "u1", None)]
