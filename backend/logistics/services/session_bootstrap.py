# logistics/services/session_bootstrap.py
"""
Session bootstrap engine.

Every identity-change event (login, logout, session restore) is turned into a
`WorkspaceContext`:

1. read users/{uid}; create it with role "user" if missing
2. non-admins with a company but no fiscal year: infer the fiscal year
   (flat companies first, then every financial_years/{fy}/companies) and
   merge it back onto the profile
3. non-admins with a company: load the company record (fiscal year scoped
   first, flat collection second)
4. readiness: admin → a fiscal year and a company exist; others → companyId set

Reads after the profile fetch never raise: failures are logged and treated as
"not found". Results are committed through the `SessionRegistry`, which drops
any result whose generation was superseded by a later event.
"""
from __future__ import annotations

import itertools
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, TypeVar

from logistics.core import constants as C
from logistics.schemas.principal import Principal
from logistics.schemas.workspace import WorkspaceContext

logger = logging.getLogger(__name__)

T = TypeVar("T")

AUTH_ERROR_MESSAGE = "Could not load your profile. Please sign in again."


class SessionRegistry:
    """
    Latest resolved context per session, keyed by generation.

    `begin` hands out a new generation and marks the session as resolving;
    `commit` stores a result only if its generation is still the newest.
    Each update replaces the whole context object.

    Generations come from one process-wide counter, so a session that was
    swept and started again never reuses a number an old resolution holds.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._counter = itertools.count(1)
        self._generations: Dict[str, int] = {}
        self._contexts: Dict[str, Tuple[WorkspaceContext, float]] = {}

    def begin(self, session_id: str, principal: Optional[Principal]) -> int:
        generation = next(self._counter)
        self._generations[session_id] = generation
        if principal is not None:
            self._contexts[session_id] = (WorkspaceContext.resolving(principal), self._clock())
        return generation

    def is_current(self, session_id: str, generation: int) -> bool:
        return self._generations.get(session_id) == generation

    def commit(self, session_id: str, generation: int, context: WorkspaceContext) -> bool:
        if not self.is_current(session_id, generation):
            logger.info("Dropping stale resolution for %s (generation %s)", session_id, generation)
            return False
        self._contexts[session_id] = (context, self._clock())
        return True

    def discard(self, session_id: str, generation: int) -> bool:
        """Forget an abandoned resolution so the next request starts a fresh one."""
        if not self.is_current(session_id, generation):
            return False
        entry = self._contexts.get(session_id)
        if entry and entry[0].loading:
            self._contexts.pop(session_id, None)
        return True

    def stalled(self, session_id: str, max_seconds: float) -> bool:
        """True when the session has been resolving for longer than max_seconds."""
        entry = self._contexts.get(session_id)
        if entry is None or not entry[0].loading:
            return False
        return entry[1] < self._clock() - max_seconds

    def reset(self, session_id: str) -> int:
        """Sign-out: supersede any running resolution and clear the context in one step."""
        generation = self.begin(session_id, None)
        self._contexts[session_id] = (WorkspaceContext.signed_out(), self._clock())
        return generation

    def get(self, session_id: str) -> Optional[WorkspaceContext]:
        entry = self._contexts.get(session_id)
        return entry[0] if entry else None

    def touch(self, session_id: str) -> None:
        entry = self._contexts.get(session_id)
        if entry:
            self._contexts[session_id] = (entry[0], self._clock())

    def sweep(self, max_idle_seconds: float) -> int:
        """
        Forget sessions idle for longer than max_idle_seconds, including
        resolutions that never finished. Returns how many were dropped.
        """
        cutoff = self._clock() - max_idle_seconds
        stale = [sid for sid, (_, seen) in self._contexts.items() if seen < cutoff]
        for sid in stale:
            self._contexts.pop(sid, None)
            self._generations.pop(sid, None)
        return len(stale)

    def __len__(self) -> int:
        return len(self._contexts)


def _profile_fiscal_year(profile: Dict[str, Any]) -> str:
    # older provisioning wrote `fyId`
    return profile.get("current_fy") or profile.get("fyId") or ""


def _failed(principal: Principal) -> WorkspaceContext:
    return WorkspaceContext(
        principal=principal,
        role=C.ROLE_DEFAULT,
        workspace_ready=False,
        error=AUTH_ERROR_MESSAGE,
    )


class SessionBootstrapper:
    """Resolves principals into workspace contexts against a directory."""

    def __init__(self, directory, registry: SessionRegistry):
        self.directory = directory
        self.registry = registry

    async def on_principal_changed(self, session_id: str, principal: Optional[Principal]) -> WorkspaceContext:
        """Identity-change listener. Returns the context that is authoritative after this event."""
        if principal is None:
            self.registry.reset(session_id)
            return WorkspaceContext.signed_out()

        generation = self.registry.begin(session_id, principal)
        context = None
        try:
            context = await self.resolve(principal)
        except Exception:
            logger.exception("Bootstrap failed for %s", session_id)
            context = _failed(principal)
        finally:
            if context is None:
                # cancelled mid-resolution
                self.registry.discard(session_id, generation)
        if not self.registry.commit(session_id, generation, context):
            # a newer event owns the session now
            return self.registry.get(session_id) or WorkspaceContext.signed_out()
        return context

    async def _safe(self, what: str, uid: str, call: Callable[[], Awaitable[T]], default: T) -> T:
        try:
            return await call()
        except Exception as exc:
            logger.warning("Bootstrap %s failed for %s: %s", what, uid, exc)
            return default

    async def resolve(self, principal: Principal) -> WorkspaceContext:
        uid = principal.uid
        try:
            profile = await self.directory.get_profile(uid)
            if profile is None:
                await self.directory.create_profile(uid, {
                    "email": principal.email or "",
                    "name": principal.display_name or "",
                    "role": C.ROLE_DEFAULT,
                    "companyId": "",
                    "current_fy": "",
                })
                logger.info("Created default profile for %s", uid)
                return WorkspaceContext(principal=principal, role=C.ROLE_DEFAULT, workspace_ready=False)
        except Exception:
            logger.exception("Could not read profile for %s", uid)
            return _failed(principal)

        role = profile.get("role") or C.ROLE_DEFAULT
        company_id = profile.get("companyId") or ""
        fiscal_year = _profile_fiscal_year(profile)
        company = None

        if role != C.ROLE_ADMIN and company_id:
            if not fiscal_year:
                fiscal_year = await self.infer_fiscal_year(uid, company_id)
            company = await self.load_company(uid, company_id, fiscal_year)

        if role == C.ROLE_ADMIN:
            ready = await self.admin_ready(uid, fiscal_year)
        else:
            ready = bool(company_id)

        return WorkspaceContext(
            principal=principal,
            role=role,
            company_id=company_id,
            fiscal_year=fiscal_year,
            company=company,
            workspace_ready=ready,
        )

    async def infer_fiscal_year(self, uid: str, company_id: str) -> str:
        """Find the fiscal year a company belongs to and persist it onto the profile."""
        found = ""
        flat = await self._safe(
            "flat company lookup", uid, lambda: self.directory.find_company(company_id), None
        )
        if flat:
            found = flat.get("financialYear") or ""

        if not found:
            years = await self._safe("fiscal year listing", uid, self.directory.list_fiscal_year_ids, [])
            # first match wins; companyId uniqueness is enforced at creation time
            for fy in years:
                match = await self._safe(
                    f"company lookup in {fy}", uid,
                    lambda fy=fy: self.directory.find_company(company_id, fy), None,
                )
                if match:
                    found = fy
                    break

        if found:
            await self._safe(
                "fiscal year backfill", uid,
                lambda: self.directory.merge_profile(uid, {"current_fy": found}), None,
            )
            logger.info("Backfilled fiscal year %s for %s", found, uid)
        return found

    async def load_company(self, uid: str, company_id: str, fiscal_year: str) -> Optional[Dict[str, Any]]:
        company = None
        if fiscal_year:
            company = await self._safe(
                "company fetch", uid, lambda: self.directory.find_company(company_id, fiscal_year), None
            )
        if company is None:
            company = await self._safe(
                "flat company fetch", uid, lambda: self.directory.find_company(company_id), None
            )
        return company

    async def admin_ready(self, uid: str, fiscal_year: str) -> bool:
        if not await self._safe("fiscal year check", uid, self.directory.has_fiscal_year, False):
            return False
        if fiscal_year and await self._safe(
            "company check", uid, lambda: self.directory.has_company(fiscal_year), False
        ):
            return True
        return await self._safe("flat company check", uid, self.directory.has_company, False)
