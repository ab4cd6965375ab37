"""Email normalization and validation functions."""

import re

from email_validator import EmailNotValidError, validate_email

# Stricter shape check applied to the normalized address
EMAIL_PATTERN = re.compile(r"^[a-z0-9._%+\-]+@[a-z0-9.\-]+\.[a-z]{2,}$")


def normalize_email(email: str) -> str:
    """Trim surrounding whitespace and lowercase the address."""
    return email.strip().lower()


def validate_email_address(email: str) -> str:
    """Validate an email address and return its normalized form.

    The address must parse as an RFC 5322 mailbox (via email-validator, without
    DNS deliverability checks) and match ``EMAIL_PATTERN`` once normalized.

    Raises:
        ValueError: If the address is malformed

    """
    normalized = normalize_email(email)
    try:
        validate_email(normalized, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValueError("Invalid email address format") from exc
    if not EMAIL_PATTERN.match(normalized):
        raise ValueError("Invalid email address format")
    return normalized
