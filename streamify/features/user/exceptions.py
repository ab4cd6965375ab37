"""User-related exceptions."""

from fastapi import HTTPException, status


class UserException(HTTPException):
    """Base user exception."""

    def __init__(self, detail: str = "User operation failed", status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(status_code=status_code, detail=detail)


class UserNotFound(UserException):
    """Raised when user is not found."""

    def __init__(self):
        super().__init__(detail="User not found", status_code=status.HTTP_404_NOT_FOUND)


class EmailAlreadyExists(UserException):
    """Raised when an active account already holds the email."""

    def __init__(self):
        super().__init__(detail="User with this email already exists", status_code=status.HTTP_409_CONFLICT)


class UserValidationError(UserException):
    """Raised when user input is malformed or violates policy."""

    def __init__(self, detail: str = "Validation failed"):
        super().__init__(detail=detail)


class InvalidRoleException(UserValidationError):
    """Raised when a role outside the assignable allow-list is requested."""

    def __init__(self):
        super().__init__(detail="Invalid or forbidden user role")


class CannotDeleteOwnAccount(UserException):
    """Raised when an admin tries to delete their own account."""

    def __init__(self):
        super().__init__(detail="Cannot delete your own account")
