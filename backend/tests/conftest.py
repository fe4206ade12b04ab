import json

import httpx
import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from logistics.core.auth import get_optional_principal, get_principal
from logistics.core.session import get_bootstrapper, get_identity, get_registry
from logistics.main import app
from logistics.schemas.principal import Principal
from logistics.services.identity import IdentityProvider
from logistics.services.session_bootstrap import SessionBootstrapper, SessionRegistry


class FakeDirectory:
    """In-memory stand-in for FirestoreDirectory."""

    def __init__(self, profiles=None, fiscal_years=None, flat_companies=None):
        self.profiles = {uid: dict(p) for uid, p in (profiles or {}).items()}
        # {fy: {companyId: data}}
        self.fiscal_years = {fy: dict(c) for fy, c in (fiscal_years or {}).items()}
        self.flat_companies = dict(flat_companies or {})
        self.merges = []
        self.fail = set()

    def _check(self, name):
        if name in self.fail:
            raise RuntimeError(f"{name} unavailable")

    async def get_profile(self, uid):
        self._check("get_profile")
        profile = self.profiles.get(uid)
        return dict(profile) if profile is not None else None

    async def create_profile(self, uid, data):
        self._check("create_profile")
        self.profiles[uid] = dict(data)

    async def merge_profile(self, uid, data):
        self._check("merge_profile")
        self.merges.append((uid, dict(data)))
        self.profiles.setdefault(uid, {}).update(data)

    async def list_fiscal_year_ids(self):
        self._check("list_fiscal_year_ids")
        return list(self.fiscal_years)

    async def has_fiscal_year(self):
        self._check("has_fiscal_year")
        return bool(self.fiscal_years)

    async def find_company(self, company_id, fiscal_year=None):
        self._check("find_company")
        source = self.fiscal_years.get(fiscal_year, {}) if fiscal_year else self.flat_companies
        company = source.get(company_id)
        if company is None:
            return None
        return {**company, "companyId": company_id, "id": company_id}

    async def has_company(self, fiscal_year=None):
        self._check("has_company")
        source = self.fiscal_years.get(fiscal_year, {}) if fiscal_year else self.flat_companies
        return bool(source)


def make_principal(uid="u1", email="u1@example.com"):
    return Principal(uid=uid, email=email, display_name=None)


@pytest.fixture
def directory():
    return FakeDirectory()


@pytest.fixture
def registry():
    return SessionRegistry()


@pytest.fixture
def bootstrapper(directory, registry):
    return SessionBootstrapper(directory, registry)


class IdentityToolkitStub:
    """Canned Identity Toolkit answers for httpx.MockTransport."""

    def __init__(self):
        self.accounts = {}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        payload = json.loads(request.content or b"{}")
        if request.url.path.endswith("accounts:sendOobCode"):
            return httpx.Response(200, json={"email": payload.get("email")})
        account = self.accounts.get(payload.get("email"))
        if account is None or account["password"] != payload.get("password"):
            return httpx.Response(400, json={"error": {"message": "INVALID_LOGIN_CREDENTIALS"}})
        return httpx.Response(200, json={
            "localId": account["uid"],
            "email": payload["email"],
            "displayName": "",
            "idToken": f"id-{account['uid']}",
            "refreshToken": f"refresh-{account['uid']}",
            "expiresIn": "3600",
        })


@pytest.fixture
def toolkit():
    return IdentityToolkitStub()


@pytest.fixture
def identity(toolkit, bootstrapper):
    provider = IdentityProvider(api_key="AIzaTestKey", transport=httpx.MockTransport(toolkit))
    provider.subscribe(bootstrapper.on_principal_changed)
    return provider


@pytest.fixture
def caller():
    """Mutable holder for the principal the API sees; None means no token."""
    return {"principal": None}


@pytest.fixture
def client(registry, bootstrapper, identity, caller):
    def _principal():
        if caller["principal"] is None:
            raise HTTPException(status_code=401, detail="Missing Authorization header.")
        return caller["principal"]

    app.dependency_overrides[get_registry] = lambda: registry
    app.dependency_overrides[get_bootstrapper] = lambda: bootstrapper
    app.dependency_overrides[get_identity] = lambda: identity
    app.dependency_overrides[get_principal] = _principal
    app.dependency_overrides[get_optional_principal] = lambda: caller["principal"]
    yield TestClient(app)
    app.dependency_overrides.clear()
