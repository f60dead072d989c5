from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, List, Optional, TypeVar

T = TypeVar("T")
D = TypeVar("D")


class ErrorKind(str, Enum):
    """Kinds of failure a subgraph lookup can report."""
    GRAPHQL = "graphql"      # response carried an ``errors`` field
    TRANSPORT = "transport"  # HTTP error, connection error or timeout
    NOT_FOUND = "not_found"  # query succeeded but the entity is null
    MALFORMED = "malformed"  # response has no data or unparseable entity


@dataclass(frozen=True)
class SubgraphError:
    kind: ErrorKind
    message: str
    errors: List[Any] = field(default_factory=list)

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class SubgraphQueryError(Exception):
    """Raised by ``FetchResult.unwrap`` on a failed result."""

    def __init__(self, error: SubgraphError):
        super().__init__(str(error))
        self.error = error


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """Outcome of a subgraph operation: either a value or a ``SubgraphError``.

    Use ``success`` / ``failure`` to build one. On failure ``value`` is None,
    so ``result.value_or([])`` gives the empty list a list operation would
    otherwise have returned.
    """
    value: Optional[T] = None
    error: Optional[SubgraphError] = None

    @classmethod
    def success(cls, value: T) -> "FetchResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: SubgraphError) -> "FetchResult[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise SubgraphQueryError(self.error)
        return self.value

    def value_or(self, default: D) -> "T | D":
        if self.error is not None:
            return default
        return self.value
