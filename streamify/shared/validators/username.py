"""Username validation functions."""

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 30


def validate_username(username: str) -> str:
    """Validate username length after trimming surrounding whitespace.

    Returns:
        The trimmed username

    Raises:
        ValueError: If the trimmed username is shorter than 3 or longer than 30 characters

    """
    username = username.strip()
    if len(username) < USERNAME_MIN_LENGTH:
        raise ValueError(f"Username must be at least {USERNAME_MIN_LENGTH} characters")
    if len(username) > USERNAME_MAX_LENGTH:
        raise ValueError(f"Username cannot exceed {USERNAME_MAX_LENGTH} characters")
    return username
