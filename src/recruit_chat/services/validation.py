"""Format checks for free-text answers, keyed by question."""

import re
from typing import Callable, Dict, Optional, Sequence

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
PHONE_PATTERN = re.compile(r"[0-9 +\-()]+")
PHONE_MIN_LENGTH = 10

EMAIL_ERROR = "Please provide a valid email address (e.g., john@example.com)."
PHONE_ERROR = (
    f"Please provide a valid phone number with at least {PHONE_MIN_LENGTH} characters "
    "(digits, spaces, +, -, parentheses)."
)


def validate_email(value: str) -> Optional[str]:
    """Return an error message, or None when ``value`` looks like local@domain.tld."""
    if EMAIL_PATTERN.fullmatch(value):
        return None
    return EMAIL_ERROR


def validate_phone(value: str) -> Optional[str]:
    value = value.strip()
    if len(value) >= PHONE_MIN_LENGTH and PHONE_PATTERN.fullmatch(value):
        return None
    return PHONE_ERROR


VALIDATORS: Dict[str, Callable[[str], Optional[str]]] = {
    "email": validate_email,
    "phone": validate_phone,
}


def validate_answer(key: str, value: str) -> Optional[str]:
    """Run the rule registered for ``key``; keys without a rule accept any text."""
    validator = VALIDATORS.get(key)
    if validator is None:
        return None
    return validator(value)


def option_error(options: Sequence[str]) -> str:
    return f"Please choose one of the following options: {', '.join(options)}."
