# logistics/core/session.py
"""
Process-wide session objects and their wiring.

The identity provider publishes principal changes; the bootstrapper is its
only subscriber and writes results into the registry. Routers read the
registry through the dependencies below, which tests override.
"""
from functools import lru_cache

from logistics.config import settings
from logistics.repositories.directory import FirestoreDirectory
from logistics.services.identity import IdentityProvider
from logistics.services.session_bootstrap import SessionBootstrapper, SessionRegistry


@lru_cache
def get_registry() -> SessionRegistry:
    return SessionRegistry()


@lru_cache
def get_bootstrapper() -> SessionBootstrapper:
    return SessionBootstrapper(FirestoreDirectory(), get_registry())


@lru_cache
def get_identity() -> IdentityProvider:
    identity = IdentityProvider(
        api_key=settings.firebase_web_api_key,
        base_url=settings.identity_toolkit_url,
        timeout=settings.auth_timeout_seconds,
    )
    identity.subscribe(get_bootstrapper().on_principal_changed)
    return identity


async def sweep_idle_sessions() -> int:
    """Scheduler job (runs on the event loop): forget contexts nobody asked for in a while."""
    return get_registry().sweep(settings.session_idle_minutes * 60)
