from unittest.mock import Mock

import pytest

import set_admin_role
from logistics.config import Settings
from logistics.core.constants import membership_collection


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.session_idle_minutes == 120
    assert settings.default_delivery_fee == 500
    assert settings.debug is False


def test_web_api_key_format():
    Settings(_env_file=None, firebase_web_api_key="AIzaSyExample")
    with pytest.raises(ValueError):
        Settings(_env_file=None, firebase_web_api_key="not-a-key")


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("SESSION_IDLE_MINUTES", "5")
    monkeypatch.setenv("DEBUG", "true")
    settings = Settings(_env_file=None)
    assert settings.session_idle_minutes == 5
    assert settings.debug is True


def test_membership_collection_names():
    assert membership_collection("driver") == "drivers"
    assert membership_collection("supplier") == "suppliers"


def test_set_admin_role(monkeypatch):
    client = Mock()
    monkeypatch.setattr(set_admin_role, "init_firebase", Mock())
    monkeypatch.setattr(set_admin_role.auth, "get_user_by_email", Mock(return_value=Mock(uid="u-1", email="a@example.com")))
    monkeypatch.setattr(set_admin_role.auth, "set_custom_user_claims", Mock())
    monkeypatch.setattr(set_admin_role.firestore, "client", Mock(return_value=client))

    assert set_admin_role.set_admin_role("a@example.com") is True

    set_admin_role.auth.set_custom_user_claims.assert_called_once_with("u-1", {"admin": True})
    client.collection.assert_called_once_with("users")
    client.collection.return_value.document.return_value.set.assert_called_once_with(
        {"role": "admin", "email": "a@example.com"}, merge=True
    )


def test_set_admin_role_unknown_user(monkeypatch):
    monkeypatch.setattr(set_admin_role, "init_firebase", Mock())
    monkeypatch.setattr(
        set_admin_role.auth, "get_user_by_email",
        Mock(side_effect=set_admin_role.auth.UserNotFoundError("no user")),
    )

    assert set_admin_role.set_admin_role("ghost@example.com") is False
