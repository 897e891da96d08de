"""Identity reconciliation: map a verified provider identity onto a local user.

Lookup precedence is phone, then email, then create. Lookups stamp login
bookkeeping atomically; creation relies on the store's unique indexes, and a
conflicting concurrent insert is resolved by re-reading the winner.
"""

import logging
import uuid
from datetime import datetime, timezone

from domain.model.errors import DomainError, DuplicateError, UnaddressableIdentityError
from domain.model.identity import Reconciliation, VerifiedClaims
from domain.model.role import resolve_user_type
from domain.model.user import User
from port.user_repository import UserRepository
from utils.identifiers import canonicalize_phone, normalize_email

logger = logging.getLogger(__name__)

PROVIDER_NAME = 'firebase'


def default_display_name(phone: str, email: str) -> str:
    """Placeholder name for accounts whose token carries no name claim."""
    if phone:
        return f"User {phone[-4:]}"
    if email:
        return email.split('@')[0] or 'User'
    return 'User'


def _find_and_touch(repo: UserRepository, phone: str, email: str, subject_id: str) -> User | None:
    now = datetime.now(timezone.utc)
    if phone:
        user = repo.record_login('phone', phone, subject_id, now)
        if user:
            return user
    if email:
        return repo.record_login('email', email, subject_id, now)
    return None


def reconcile_identity(
    repo: UserRepository,
    claims: VerifiedClaims,
    user_type_hint: str | None = None,
) -> Reconciliation:
    """Return the local user for a verified identity, creating it on first login.

    Existing users only get external_subject_id, last_login and updated_at
    refreshed; name, email, phone and user type are never taken from the token.

    Raises:
        UnaddressableIdentityError: claims carry neither phone nor email
        StorageUnavailableError: store unreachable
    """
    phone = canonicalize_phone(claims.phone)
    email = normalize_email(claims.email)
    if not phone and not email:
        raise UnaddressableIdentityError("Token has no email/phone")

    user = _find_and_touch(repo, phone, email, claims.subject_id)
    if user:
        logger.info("Provider login matched existing user", extra={"userId": user.id})
        return Reconciliation(user=user, is_new=False)

    now = datetime.now(timezone.utc)
    candidate = User(
        id=uuid.uuid4().hex,
        name=(claims.name or '').strip() or default_display_name(phone, email),
        email=email,
        phone=phone,
        user_type=resolve_user_type(user_type_hint).value,
        created_at=now,
        updated_at=now,
        external_subject_id=claims.subject_id,
        provider=PROVIDER_NAME,
    )
    try:
        created = repo.create(candidate)
    except DuplicateError:
        # A concurrent login inserted the same phone/email first
        logger.info("Provider login lost creation race, re-reading", extra={"subjectId": claims.subject_id})
        user = _find_and_touch(repo, phone, email, claims.subject_id)
        if user is None:
            raise DomainError("User conflict could not be resolved")
        return Reconciliation(user=user, is_new=False)

    logger.info("Provider login created user", extra={"userId": created.id, "userType": created.user_type})
    return Reconciliation(user=created, is_new=True)
