"""Password validation functions."""

PASSWORD_MIN_LENGTH = 8


def validate_password_strength(password: str) -> str:
    """Validate password strength requirements.

    Requirements:
    - At least 8 characters
    - At least one uppercase letter (A-Z)
    - At least one lowercase letter (a-z)
    - At least one digit (0-9)

    Args:
        password: Password string to validate

    Returns:
        The validated password string

    Raises:
        ValueError: If password doesn't meet strength requirements

    Examples:
        >>> validate_password_strength("SecurePass123")
        'SecurePass123'
        >>> validate_password_strength("weakpass1")
        Traceback (most recent call last):
        ...
        ValueError: Password must contain at least one uppercase letter

    """
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")
    if not any(c.isupper() for c in password):
        raise ValueError("Password must contain at least one uppercase letter")
    if not any(c.islower() for c in password):
        raise ValueError("Password must contain at least one lowercase letter")
    if not any(c.isdigit() for c in password):
        raise ValueError("Password must contain at least one digit")
    return password
