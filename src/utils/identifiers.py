"""Canonical forms for contact identifiers used as lookup keys."""

import re

DEFAULT_COUNTRY_CODE = '91'
NATIONAL_NUMBER_LENGTH = 10

_NON_DIGITS = re.compile(r'\D')


def phone_digits(phone: str | None) -> str:
    return _NON_DIGITS.sub('', phone or '')


def canonicalize_phone(phone: str | None) -> str:
    """Normalize a phone number to ``+<country><number>``.

    Bare national numbers get the default country code. Idempotent:
    canonicalize_phone(canonicalize_phone(x)) == canonicalize_phone(x).

    Example:
        '98765 43210'     → '+919876543210'
        '919876543210'    → '+919876543210'
        '+91 98765-43210' → '+919876543210'
    """
    digits = phone_digits(phone)
    if not digits:
        return ''
    if len(digits) == NATIONAL_NUMBER_LENGTH:
        return f'+{DEFAULT_COUNTRY_CODE}{digits}'
    return f'+{digits}'


def login_phone_variants(phone: str | None) -> list[str]:
    """Every stored form a phone may have taken, for password-login lookups.

    Older records kept a spaced '+91 XXXXXXXXXX' form or the raw input.
    """
    raw = (phone or '').strip()
    digits = phone_digits(raw)
    variants = [canonicalize_phone(raw)]
    if len(digits) >= NATIONAL_NUMBER_LENGTH:
        national = digits[-NATIONAL_NUMBER_LENGTH:]
        variants.append(f'+{DEFAULT_COUNTRY_CODE} {national}')
        variants.append(f'+{DEFAULT_COUNTRY_CODE}{national}')
    variants.append(raw)
    # de-duplicate, drop blanks, keep order
    return [v for i, v in enumerate(variants) if v and v not in variants[:i]]


def normalize_email(email: str | None) -> str:
    return (email or '').strip().lower()
