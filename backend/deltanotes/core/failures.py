"""Failure taxonomy returned by every service operation.

Failures are values, not exceptions: services catch remote and parsing errors at
their boundary and hand back one of the variants below inside a ``Failure``
result. The variants form a tagged union discriminated on ``kind``.
"""
from __future__ import annotations

import re
from enum import Enum
from typing import Annotated, Any, Literal, Union

from postgrest.exceptions import APIError
from pydantic import ConfigDict, Field

from deltanotes.core.models.base import AppBaseModel
from deltanotes.utils.logging import get_logger

logger = get_logger(__name__)

NOT_FOUND_CODE = "NOT_FOUND"

_POSTGRES_CODE_RE = re.compile(r"^\d{5}$")


class ValidationFailure(AppBaseModel):
    """A field-level or business-rule precondition was violated."""

    kind: Literal["validation"] = "validation"
    message: str
    field: str | None = None


class DatabaseFailure(AppBaseModel):
    """The remote store rejected or failed the request."""

    kind: Literal["database"] = "database"
    message: str
    code: str | None = None

    @property
    def is_not_found(self) -> bool:
        return self.code in {NOT_FOUND_CODE, "PGRST116"}


class AuthFailure(AppBaseModel):
    """An operation needed a valid session and did not have one."""

    kind: Literal["auth"] = "auth"
    message: str
    code: str | None = None


class UnknownFailure(AppBaseModel):
    """Unanticipated error; the original exception is kept for diagnostics."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    kind: Literal["unknown"] = "unknown"
    message: str
    exception: Any = Field(default=None, exclude=True, repr=False)


AppFailure = Annotated[
    Union[ValidationFailure, DatabaseFailure, AuthFailure, UnknownFailure],
    Field(discriminator="kind"),
]


def user_message(failure: AppFailure) -> str:
    """Message suitable for display."""
    if isinstance(failure, UnknownFailure):
        return f"An unexpected error occurred: {failure.message}"
    return failure.message


def is_user_facing(failure: AppFailure) -> bool:
    """Whether the failure describes something the user can act on."""
    return isinstance(failure, (ValidationFailure, AuthFailure))


class PostgresErrorCode(str, Enum):
    """PostgreSQL SQLSTATE codes the app distinguishes."""

    UNIQUE_VIOLATION = "23505"
    NOT_NULL_VIOLATION = "23502"
    FOREIGN_KEY_VIOLATION = "23503"
    INSUFFICIENT_PRIVILEGE = "42501"
    STRING_TOO_LONG = "22001"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, code: str | None) -> PostgresErrorCode:
        try:
            return cls(code)
        except ValueError:
            return cls.UNKNOWN

    @property
    def message_key(self) -> str:
        return {
            PostgresErrorCode.UNIQUE_VIOLATION: "errorPgUniqueViolation",
            PostgresErrorCode.NOT_NULL_VIOLATION: "errorPgNotNullViolation",
            PostgresErrorCode.FOREIGN_KEY_VIOLATION: "errorPgForeignKeyViolation",
            PostgresErrorCode.INSUFFICIENT_PRIVILEGE: "errorPgInsufficientPrivilege",
            PostgresErrorCode.STRING_TOO_LONG: "errorPgStringTooLong",
        }.get(self, "errorDatabaseGeneric")


class PostgrestErrorCode(str, Enum):
    """PostgREST error codes (``PGRST`` prefix)."""

    NO_ROWS_FOUND = "PGRST116"
    JWT_EXPIRED = "PGRST301"
    FUNCTION_NOT_FOUND = "PGRST202"
    DATABASE_UNAVAILABLE = "PGRST001"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, code: str | None) -> PostgrestErrorCode:
        try:
            return cls(code)
        except ValueError:
            return cls.UNKNOWN

    @property
    def message_key(self) -> str:
        return {
            PostgrestErrorCode.NO_ROWS_FOUND: "errorDatabaseNotFound",
            PostgrestErrorCode.JWT_EXPIRED: "errorAuthSessionExpired",
            PostgrestErrorCode.DATABASE_UNAVAILABLE: "errorDatabaseUnavailable",
        }.get(self, "errorDatabaseGeneric")


def failure_from_api_error(err: APIError, action: str) -> AppFailure:
    """Translate a PostgREST ``APIError`` into a failure.

    ``action`` is a short phrase such as ``"create note"`` used to prefix the
    message. The provider code is always carried through.
    """
    code = getattr(err, "code", None)
    detail = getattr(err, "message", None) or str(err)
    logger.debug(
        "PostgREST error",
        extra={
            "code": code,
            "details": getattr(err, "details", None),
            "hint": getattr(err, "hint", None),
        },
    )

    if code and code.startswith("PGRST"):
        parsed = PostgrestErrorCode.parse(code)
        if parsed is PostgrestErrorCode.UNKNOWN:
            logger.warning("Unknown PostgREST error code: %s", code)
        if parsed is PostgrestErrorCode.JWT_EXPIRED:
            return AuthFailure(message=f"Failed to {action}: session expired", code=code)
    elif code and _POSTGRES_CODE_RE.match(code):
        if PostgresErrorCode.parse(code) is PostgresErrorCode.UNKNOWN:
            logger.warning("Unknown PostgreSQL error code: %s", code)

    return DatabaseFailure(message=f"Failed to {action}: {detail}", code=code)


def failure_from_exception(err: BaseException, action: str) -> AppFailure:
    """Translate any exception raised below a service boundary."""
    if isinstance(err, APIError):
        return failure_from_api_error(err, action)
    return UnknownFailure(message=f"Failed to {action}: {err}", exception=err)


def is_unique_violation(err: BaseException) -> bool:
    return (
        isinstance(err, APIError)
        and PostgresErrorCode.parse(getattr(err, "code", None)) is PostgresErrorCode.UNIQUE_VIOLATION
    )
