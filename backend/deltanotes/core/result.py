from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar, Union

if TYPE_CHECKING:
    from deltanotes.core.failures import AppFailure

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class Success(Generic[T]):
    """Successful outcome carrying ``data``."""

    data: T

    @property
    def is_success(self) -> bool:
        return True

    @property
    def is_failure(self) -> bool:
        return False

    @property
    def data_or_none(self) -> T | None:
        return self.data

    @property
    def error_or_none(self) -> AppFailure | None:
        return None

    def map(self, mapper: Callable[[T], R]) -> Result[R]:
        return Success(mapper(self.data))

    def flat_map(self, mapper: Callable[[T], Result[R]]) -> Result[R]:
        return mapper(self.data)


@dataclass(frozen=True)
class Failure:
    """Failed outcome carrying one of the ``AppFailure`` variants."""

    error: AppFailure

    @property
    def is_success(self) -> bool:
        return False

    @property
    def is_failure(self) -> bool:
        return True

    @property
    def data_or_none(self) -> None:
        return None

    @property
    def error_or_none(self) -> AppFailure:
        return self.error

    def map(self, mapper: Callable[[object], R]) -> Result[R]:
        return self

    def flat_map(self, mapper: Callable[[object], Result[R]]) -> Result[R]:
        return self


Result = Union[Success[T], Failure]
