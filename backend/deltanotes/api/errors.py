from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn, TypeVar

from fastapi import HTTPException, status

from deltanotes.core.failures import (
    AuthFailure,
    DatabaseFailure,
    PostgresErrorCode,
    UnknownFailure,
    ValidationFailure,
)

if TYPE_CHECKING:
    from deltanotes.core.failures import AppFailure
    from deltanotes.core.result import Result

T = TypeVar("T")


def status_for_failure(failure: AppFailure) -> int:
    if isinstance(failure, ValidationFailure):
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    if isinstance(failure, AuthFailure):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(failure, DatabaseFailure):
        if failure.is_not_found:
            return status.HTTP_404_NOT_FOUND
        if PostgresErrorCode.parse(failure.code) is PostgresErrorCode.UNIQUE_VIOLATION:
            return status.HTTP_409_CONFLICT
        return status.HTTP_400_BAD_REQUEST
    if isinstance(failure, UnknownFailure):
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def raise_for_failure(failure: AppFailure) -> NoReturn:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(failure, AuthFailure) else None
    raise HTTPException(
        status_code=status_for_failure(failure),
        detail=failure.model_dump(exclude_none=True),
        headers=headers,
    )


def unwrap(result: Result[T]) -> T:
    """Return the success value or raise the matching HTTP error."""
    if result.is_failure:
        raise_for_failure(result.error)
    return result.data
