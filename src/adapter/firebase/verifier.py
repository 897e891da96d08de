"""Firebase implementation of IdentityVerifier."""

import logging

import firebase_admin
from firebase_admin import auth, exceptions

from adapter.firebase.admin import get_firebase_app, resolve_project_id
from domain.model.errors import (
    AudienceMismatchError,
    ProviderUnavailableError,
    TokenExpiredError,
    TokenMalformedError,
)
from domain.model.identity import VerifiedClaims
from utils.identifiers import canonicalize_phone

logger = logging.getLogger(__name__)

# firebase-admin reports wrong-project tokens as InvalidIdTokenError naming the claim
_PROJECT_CLAIM_MARKERS = ('"aud"', '"iss"')


class FirebaseIdentityVerifier:
    def __init__(self, app: firebase_admin.App | None = None, project_id: str | None = None):
        self._app = app
        self._project_id = project_id

    def _get_app(self) -> firebase_admin.App:
        if self._app is None:
            self._app = get_firebase_app()
        return self._app

    def _expected_project(self, app: firebase_admin.App) -> str | None:
        """Explicit project, else the one the app was initialized with, else FIREBASE_PROJECT_ID."""
        app_project = getattr(app, 'project_id', None)
        if not isinstance(app_project, str):
            app_project = None
        return self._project_id or app_project or resolve_project_id()

    def _decode(self, id_token: str, app: firebase_admin.App) -> dict:
        try:
            return auth.verify_id_token(id_token, app=app)
        except auth.ExpiredIdTokenError as e:
            raise TokenExpiredError("Token expired") from e
        except auth.CertificateFetchError as e:
            raise ProviderUnavailableError(f"Could not fetch signing certificates: {e}") from e
        except auth.InvalidIdTokenError as e:
            if any(marker in str(e) for marker in _PROJECT_CLAIM_MARKERS):
                raise AudienceMismatchError(str(e)) from e
            raise TokenMalformedError(str(e)) from e
        except ValueError as e:
            raise TokenMalformedError(str(e)) from e
        except exceptions.FirebaseError as e:
            raise ProviderUnavailableError(f"Identity provider error: {e}") from e

    def _hydrate(self, uid: str, app: firebase_admin.App) -> tuple[str, str]:
        """Best-effort (email, display_name) lookup; ('', '') on any failure."""
        try:
            record = auth.get_user(uid, app=app)
        except (exceptions.FirebaseError, ValueError) as e:
            logger.warning("Provider user lookup failed", extra={"subjectId": uid, "error": str(e)[:200]})
            return '', ''
        return record.email or '', record.display_name or ''

    def verify(self, id_token: str) -> VerifiedClaims:
        app = self._get_app()
        decoded = self._decode(id_token, app)

        expected = self._expected_project(app)
        audience = decoded.get('aud')
        if expected and audience != expected:
            raise AudienceMismatchError(
                "Token audience does not match the configured project",
                token_audience=audience,
                expected=expected,
            )

        uid = decoded.get('uid') or decoded.get('sub')
        if not uid:
            raise TokenMalformedError("Token has no subject")

        email = decoded.get('email') or ''
        name = decoded.get('name') or ''
        if not email or not name:
            hydrated_email, hydrated_name = self._hydrate(uid, app)
            email = email or hydrated_email
            name = name or hydrated_name

        return VerifiedClaims(
            subject_id=uid,
            email=email,
            name=name,
            phone=canonicalize_phone(decoded.get('phone_number')),
        )
