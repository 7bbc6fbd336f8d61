"""Custom exception classes for G-Club."""

from fastapi import HTTPException, status


class GClubError(Exception):
    """Base exception for G-Club.

    Each subclass carries the HTTP status it is reported with.
    """

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class AuthorizationError(GClubError):
    """Raised when user lacks permission, rank, or ownership."""
    status_code = status.HTTP_403_FORBIDDEN


class ResourceNotFoundError(GClubError):
    """Raised when a requested resource is not found or soft-deleted."""
    status_code = status.HTTP_404_NOT_FOUND


class ResourceConflictError(GClubError):
    """Raised when an invariant would be violated (e.g. duplicate entry)."""
    status_code = status.HTTP_409_CONFLICT


class ValidationError(GClubError):
    """Raised when input validation fails."""
    status_code = status.HTTP_400_BAD_REQUEST


class RetiredOperationError(GClubError):
    """Raised by operations that have been permanently disabled."""
    status_code = status.HTTP_410_GONE


class GameFullError(ResourceConflictError):
    """Raised when joining a post whose slots are all taken."""
    pass


# HTTP exception shortcuts
def forbidden(detail: str = "Insufficient permissions") -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def bad_request(detail: str = "Bad request") -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def unauthorized(detail: str = "Not authenticated") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )
