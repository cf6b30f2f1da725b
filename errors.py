"""
Application errors raised by the content store and progress tracker.

The HTTP layer in main.py maps each of these to a JSON ``{"message": ...}``
response. Absence of a record is never an error: lookups return ``None`` or an
empty list instead.
"""


class AppError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """Malformed or missing fields on creation. Nothing was persisted."""

    status_code = 400


class StorageError(AppError):
    """The database is unreachable, unconfigured or rejected the operation."""

    status_code = 500


def describe_validation_errors(errors: list) -> str:
    """
    One-line summary of pydantic-style error dicts, e.g. ``title: Field required``.

    Accepts the ``errors()`` list of both pydantic's ValidationError and
    FastAPI's RequestValidationError.
    """
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)
