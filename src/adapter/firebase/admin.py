"""Firebase Admin SDK app: credential resolution and a lazily built singleton.

Service-account credentials are resolved in priority order:
1. FIREBASE_SERVICE_ACCOUNT_PATH (file must be readable)
2. GOOGLE_APPLICATION_CREDENTIALS
3. FIREBASE_SERVICE_ACCOUNT (inline JSON)
4. credentials/firebase-service-account.json under the working directory

Only the identity verifier should call get_firebase_app().
"""

import json
import logging
import os
import threading
from pathlib import Path

import firebase_admin
from firebase_admin import credentials

from domain.model.errors import ProviderUnavailableError

logger = logging.getLogger(__name__)

APP_NAME = 'property-admin'
DEFAULT_CREDENTIALS_PATH = Path('credentials') / 'firebase-service-account.json'
HTTP_TIMEOUT_SECONDS = float(os.getenv('FIREBASE_HTTP_TIMEOUT', '10'))

_app: firebase_admin.App | None = None
_app_lock = threading.Lock()


def _read_json_file(path: str | Path) -> dict | None:
    try:
        with open(path, encoding='utf-8') as f:
            return json.load(f)
    except (OSError, ValueError):
        return None


def _normalize(service_account: dict, source: str) -> dict:
    key = str(service_account.get('private_key', ''))
    if '\\n' in key:
        key = key.replace('\\n', '\n')
    if 'BEGIN PRIVATE KEY' not in key or 'END PRIVATE KEY' not in key:
        raise ProviderUnavailableError(f"Service account from {source} has invalid private_key format")
    return {**service_account, 'private_key': key}


def resolve_service_account() -> dict:
    """Locate and validate the service-account JSON.

    Raises:
        ProviderUnavailableError: nothing configured, unreadable, or malformed
    """
    env_path = os.getenv('FIREBASE_SERVICE_ACCOUNT_PATH')
    if env_path:
        parsed = _read_json_file(env_path)
        if parsed is None:
            raise ProviderUnavailableError(
                f"FIREBASE_SERVICE_ACCOUNT_PATH provided but file unreadable: {env_path}"
            )
        logger.info("Using Firebase credentials from FIREBASE_SERVICE_ACCOUNT_PATH", extra={"path": env_path})
        return _normalize(parsed, 'FIREBASE_SERVICE_ACCOUNT_PATH')

    gac = os.getenv('GOOGLE_APPLICATION_CREDENTIALS')
    if gac:
        parsed = _read_json_file(gac)
        if parsed is not None:
            logger.info("Using Firebase credentials from GOOGLE_APPLICATION_CREDENTIALS", extra={"path": gac})
            return _normalize(parsed, 'GOOGLE_APPLICATION_CREDENTIALS')

    inline = os.getenv('FIREBASE_SERVICE_ACCOUNT')
    if inline:
        try:
            parsed = json.loads(inline)
        except ValueError as e:
            raise ProviderUnavailableError(
                "FIREBASE_SERVICE_ACCOUNT is not valid JSON. Keep \\n escaped in private_key."
            ) from e
        logger.warning("Using inline Firebase service account; prefer FIREBASE_SERVICE_ACCOUNT_PATH")
        return _normalize(parsed, 'FIREBASE_SERVICE_ACCOUNT')

    parsed = _read_json_file(DEFAULT_CREDENTIALS_PATH)
    if parsed is not None:
        logger.info("Using Firebase credentials from default path", extra={"path": str(DEFAULT_CREDENTIALS_PATH)})
        return _normalize(parsed, 'default path')

    raise ProviderUnavailableError(
        "Missing Firebase service account. Provide FIREBASE_SERVICE_ACCOUNT_PATH or "
        "GOOGLE_APPLICATION_CREDENTIALS, or place credentials/firebase-service-account.json"
    )


def resolve_project_id(service_account: dict | None = None) -> str | None:
    """Project id from the service account, else FIREBASE_PROJECT_ID."""
    if service_account and service_account.get('project_id'):
        return service_account['project_id']
    return os.getenv('FIREBASE_PROJECT_ID') or None


def get_firebase_app() -> firebase_admin.App:
    """Return the process-wide Firebase app, initializing it on first use.

    Raises:
        ProviderUnavailableError: credentials missing or invalid
    """
    global _app
    if _app is not None:
        return _app

    with _app_lock:
        if _app is not None:
            return _app
        try:
            # already initialized under our name, e.g. after a module reload
            _app = firebase_admin.get_app(APP_NAME)
            return _app
        except ValueError:
            pass

        service_account = resolve_service_account()
        project_id = resolve_project_id(service_account)
        if not project_id:
            raise ProviderUnavailableError(
                "Firebase project id not found. Set project_id in the service account or FIREBASE_PROJECT_ID."
            )
        if not service_account.get('client_email'):
            raise ProviderUnavailableError("Service account missing client_email")

        try:
            cred = credentials.Certificate(service_account)
            _app = firebase_admin.initialize_app(
                cred,
                {'projectId': project_id, 'httpTimeout': HTTP_TIMEOUT_SECONDS},
                name=APP_NAME,
            )
        except ValueError as e:
            raise ProviderUnavailableError(f"Failed to initialize Firebase: {e}") from e

        logger.info("Firebase Admin initialized", extra={"projectId": project_id})
        return _app


def reset_app() -> None:
    """Tear down the singleton (tests only)."""
    global _app
    with _app_lock:
        if _app is not None:
            firebase_admin.delete_app(_app)
        _app = None
