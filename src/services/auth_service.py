"""Auth service: password registration, password login and profile updates.

Pure business logic with no HTTP dependencies.
Raises domain errors that route handlers map to HTTP status codes.
"""

import re
import uuid
from datetime import datetime, timezone

import bcrypt

from domain.model.errors import (
    DuplicateError,
    InvalidCredentialsError,
    NotFoundError,
    ValidationError,
)
from domain.model.role import SELF_REGISTRABLE_TYPES, UserType
from domain.model.user import User
from port.user_repository import UserRepository
from utils.identifiers import canonicalize_phone, login_phone_variants, normalize_email, phone_digits

BCRYPT_ROUNDS = 12
MIN_PASSWORD_LENGTH = 6
# bcrypt only looks at the first 72 bytes and newer releases refuse longer input
MAX_PASSWORD_BYTES = 72
MIN_PHONE_DIGITS = 10

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

PROFILE_FIELDS = ('name', 'preferences')


def _hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def _verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))


def _validate_registration(name: str, email: str, phone: str, password: str, user_type: str) -> None:
    if not all(v and str(v).strip() for v in (name, email, phone, password, user_type)):
        raise ValidationError(
            "Missing required fields: name, email, phone, password, and userType are required"
        )
    if not EMAIL_PATTERN.match(email.strip()):
        raise ValidationError("Invalid email format")
    if len(phone_digits(phone)) < MIN_PHONE_DIGITS:
        raise ValidationError("Phone number must be at least 10 digits")
    if user_type not in {t.value for t in SELF_REGISTRABLE_TYPES}:
        raise ValidationError("Invalid user type. Must be seller, buyer, or agent")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")


def register(
    repo: UserRepository,
    name: str,
    email: str,
    phone: str,
    password: str,
    user_type: str,
    experience: int | None = None,
    specializations: list[str] | None = None,
    service_areas: list[str] | None = None,
) -> User:
    """Register a new password account.

    Returns the created User domain object.

    Raises:
        ValidationError: missing or malformed field
        DuplicateError: email or phone already registered
    """
    _validate_registration(name, email, phone, password, user_type)

    email = normalize_email(email)
    phone = canonicalize_phone(phone)
    if repo.find_by_email_or_phone(email, phone):
        raise DuplicateError("User with this email or phone already exists")

    now = datetime.now(timezone.utc)
    user = User(
        id=uuid.uuid4().hex,
        name=name.strip(),
        email=email,
        phone=phone,
        user_type=user_type,
        created_at=now,
        updated_at=now,
        password_hash=_hash_password(password),
        provider='password',
    )
    if user_type == UserType.AGENT.value:
        user.agent_profile = {
            'experience': experience or 0,
            'specializations': specializations or [],
            'service_areas': service_areas or [],
            'rating': 0,
            'review_count': 0,
        }
    # the unique indexes catch a concurrent duplicate the lookup above missed
    return repo.create(user)


def authenticate(
    repo: UserRepository,
    password: str,
    email: str | None = None,
    phone: str | None = None,
    username: str | None = None,
) -> User:
    """Authenticate by username, email or phone plus password.

    Returns the authenticated User domain object. Doesn't reveal whether the
    account exists.

    Raises:
        ValidationError: no identifier supplied
        InvalidCredentialsError: unknown account or wrong password
    """
    if username:
        user = repo.find_for_password_login(username=username)
    elif email or phone:
        user = repo.find_for_password_login(
            email=normalize_email(email) or None,
            phones=login_phone_variants(phone) if phone else None,
        )
    else:
        raise ValidationError("Email, phone number, or username is required")

    password = password or ''
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise InvalidCredentialsError("Invalid credentials")
    if not user or not user.password_hash or not _verify_password(password, user.password_hash):
        raise InvalidCredentialsError("Invalid credentials")

    repo.update_last_login(user.id)
    return user


def update_profile(repo: UserRepository, user_id: str, changes: dict) -> User:
    """Apply self-service profile changes; only whitelisted fields are written.

    Raises:
        ValidationError: nothing to update or blank name
        NotFoundError: user no longer exists
    """
    fields = {k: v for k, v in changes.items() if k in PROFILE_FIELDS and v is not None}
    if not fields:
        raise ValidationError("No updatable fields supplied")
    if 'name' in fields:
        fields['name'] = str(fields['name']).strip()
        if not fields['name']:
            raise ValidationError("Name cannot be empty")

    user = repo.update_profile(user_id, fields)
    if user is None:
        raise NotFoundError("User not found")
    return user
