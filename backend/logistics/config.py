"""
logistics/config.py - Application configuration and Firebase initialization.

This module defines a Pydantic BaseSettings class to load configuration from environment,
and initializes the Firebase Admin SDK (Firestore, Auth) on first use.
All other modules import `settings` and call `get_db()` for the async Firestore client.
"""
import logging
import threading
from typing import Optional

import firebase_admin
from firebase_admin import credentials, firestore_async
from pydantic import Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""
    firebase_cred_file: str = Field('firebase_service_account.json', env='FIREBASE_CRED_FILE')
    firebase_project_id: str = Field('', env='FIREBASE_PROJECT_ID')
    firebase_storage_bucket: str = Field('', env='FIREBASE_STORAGE_BUCKET')

    # Firebase credentials from environment variables (for Cloud Run)
    firebase_private_key_id: Optional[str] = Field(None, env='FIREBASE_PRIVATE_KEY_ID')
    firebase_private_key: Optional[str] = Field(None, env='FIREBASE_PRIVATE_KEY')
    firebase_client_email: Optional[str] = Field(None, env='FIREBASE_CLIENT_EMAIL')
    firebase_client_id: Optional[str] = Field(None, env='FIREBASE_CLIENT_ID')
    firebase_auth_uri: Optional[str] = Field(None, env='FIREBASE_AUTH_URI')
    firebase_token_uri: Optional[str] = Field(None, env='FIREBASE_TOKEN_URI')
    firebase_auth_provider_x509_cert_url: Optional[str] = Field(None, env='FIREBASE_AUTH_PROVIDER_X509_CERT_URL')
    firebase_client_x509_cert_url: Optional[str] = Field(None, env='FIREBASE_CLIENT_X509_CERT_URL')

    firebase_web_api_key: str = Field('', env="FIREBASE_WEB_API_KEY")
    identity_toolkit_url: str = "https://identitytoolkit.googleapis.com/v1"
    auth_timeout_seconds: float = 10.0

    debug: bool = Field(False, env='DEBUG')
    log_level: str = Field('INFO', env='LOG_LEVEL')
    allowed_origins: str = Field('*', env='ALLOWED_ORIGINS')  # Comma-separated list or '*' for all

    postal_codes_file: str = Field('postal_codes.json', env='POSTAL_CODES_FILE')
    session_idle_minutes: int = 120
    session_sweep_minutes: int = 15
    session_resolve_timeout_seconds: float = 30.0
    default_delivery_fee: int = 500

    def model_post_init(self, __context):
        """Validate Firebase Web API Key format"""
        if self.firebase_web_api_key and not self.firebase_web_api_key.startswith('AIza'):
            raise ValueError("FIREBASE_WEB_API_KEY must be a valid Firebase Web API Key starting with 'AIza'")

    class Config:
        env_file = ".env"
        case_sensitive = False


# Load settings from environment (.env file, etc.)
settings = Settings()

_init_lock = threading.Lock()
_db = None


def _build_credential():
    # Cloud Run passes the service account as separate env variables
    if all([
        settings.firebase_private_key_id,
        settings.firebase_private_key,
        settings.firebase_client_email,
        settings.firebase_client_id,
        settings.firebase_auth_uri,
        settings.firebase_token_uri,
        settings.firebase_auth_provider_x509_cert_url,
        settings.firebase_client_x509_cert_url
    ]):
        cred_dict = {
            "type": "service_account",
            "project_id": settings.firebase_project_id,
            "private_key_id": settings.firebase_private_key_id,
            "private_key": settings.firebase_private_key.replace("\\n", "\n"),
            "client_email": settings.firebase_client_email,
            "client_id": settings.firebase_client_id,
            "auth_uri": settings.firebase_auth_uri,
            "token_uri": settings.firebase_token_uri,
            "auth_provider_x509_cert_url": settings.firebase_auth_provider_x509_cert_url,
            "client_x509_cert_url": settings.firebase_client_x509_cert_url
        }
        return credentials.Certificate(cred_dict)
    # Service account file (local development)
    return credentials.Certificate(settings.firebase_cred_file)


def init_firebase() -> firebase_admin.App:
    """Initialize the default Firebase app once; later calls return the same app."""
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass
    options = {'projectId': settings.firebase_project_id}
    if settings.firebase_storage_bucket:
        options['storageBucket'] = settings.firebase_storage_bucket
    try:
        app = firebase_admin.initialize_app(_build_credential(), options)
        logger.info("Firebase initialized for project %s", settings.firebase_project_id)
        return app
    except ValueError as e:
        if "already exists" in str(e):
            # Firebase app already initialized, get the default app
            return firebase_admin.get_app()
        raise


def get_db():
    """Async Firestore client, created on first call."""
    global _db
    if _db is None:
        with _init_lock:
            if _db is None:
                init_firebase()
                _db = firestore_async.client()
    return _db
