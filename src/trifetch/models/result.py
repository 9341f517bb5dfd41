"""Result-or-error value returned by every backend fetch."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from trifetch.core.errors import TrifetchError

T = TypeVar("T")


class FetchFailed(TrifetchError):
    """Raised by FetchResult.unwrap() on a failed result."""


@dataclass(frozen=True)
class FetchError:
    """Error descriptor for a failed fetch.

    Attributes:
        code: Error class name, e.g. "AccountNotFound".
        detail: Human-readable message.
    """

    code: str
    detail: str

    @classmethod
    def from_exception(cls, exc: BaseException) -> FetchError:
        return cls(code=type(exc).__name__, detail=str(exc))

    def __str__(self) -> str:
        return f"{self.code}: {self.detail}"


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """Outcome of one backend fetch: either a value or an error."""

    backend: str
    value: T | None = None
    error: FetchError | None = None

    def __post_init__(self) -> None:
        if (self.error is None) == (self.value is None):
            raise ValueError("FetchResult needs exactly one of value or error")

    @classmethod
    def success(cls, backend: str, value: T) -> FetchResult[T]:
        return cls(backend=backend, value=value)

    @classmethod
    def failure(cls, backend: str, error: FetchError | BaseException) -> FetchResult[T]:
        if isinstance(error, BaseException):
            error = FetchError.from_exception(error)
        return cls(backend=backend, error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, or raise FetchFailed for a failed result."""
        if self.error is not None:
            raise FetchFailed(f"{self.backend}: {self.error}")
        return self.value  # type: ignore[return-value]

    def __str__(self) -> str:
        if self.error is not None:
            return f"Err({self.error})"
        return f"Ok({self.value!r})"
