"""
Domain errors and their HTTP mapping.
Stores and account flows raise these; main.py turns them into {"error": code, "detail": message} responses.
"""

from sqlalchemy.exc import IntegrityError

# Postgres SQLSTATE codes
PG_UNIQUE_VIOLATION = "23505"
PG_FOREIGN_KEY_VIOLATION = "23503"


class AppError(Exception):
    status_code = 500
    code = "InternalError"
    message = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class ValidationError(AppError):
    status_code = 400
    code = "ValidationError"
    message = "Invalid request"


class DuplicateEmail(AppError):
    status_code = 400
    code = "DuplicateEmail"
    message = "Email already registered"


class DuplicateName(AppError):
    status_code = 400
    code = "DuplicateName"
    message = "A saved game with that name already exists"


class OwnerNotFound(AppError):
    status_code = 400
    code = "OwnerNotFound"
    message = "User not found"


class InvalidCredentials(AppError):
    status_code = 401
    code = "InvalidCredentials"
    message = "Invalid email or password"


class Unauthenticated(AppError):
    status_code = 401
    code = "Unauthenticated"
    message = "Not authenticated"


class Forbidden(AppError):
    status_code = 403
    code = "Forbidden"
    message = "Invalid or expired token"


class NotFound(AppError):
    status_code = 404
    code = "NotFound"
    message = "Not found"


class UpstreamError(AppError):
    status_code = 502
    code = "UpstreamError"
    message = "Chat service did not respond correctly"


class ChatUnavailable(AppError):
    status_code = 503
    code = "ChatUnavailable"
    message = "Chat service is not configured"


class InternalError(AppError):
    pass


def constraint_kind(exc: IntegrityError) -> str | None:
    """Classify an IntegrityError as "unique", "foreign_key" or None (anything else)."""
    orig = getattr(exc, "orig", None)
    # psycopg2 exposes pgcode, psycopg 3 exposes sqlstate
    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if sqlstate == PG_UNIQUE_VIOLATION:
        return "unique"
    if sqlstate == PG_FOREIGN_KEY_VIOLATION:
        return "foreign_key"
    text = str(orig if orig is not None else exc).upper()
    if "UNIQUE CONSTRAINT" in text:
        return "unique"
    if "FOREIGN KEY CONSTRAINT" in text:
        return "foreign_key"
    return None
