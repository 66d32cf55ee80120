from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    UNAUTHORIZED = "unauthorized"
    USER_NOT_REGISTERED = "user_not_registered"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    INVALID = "invalid"


HTTP_STATUS = {
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.USER_NOT_REGISTERED: 409,
    ErrorKind.INVALID: 400,
}


class CatalogError(Exception):
    """Raised only where an Outcome error reaches a boundary that cannot return it."""

    def __init__(self, kind: ErrorKind, message: str = "") -> None:
        super().__init__(message or kind.value)
        self.kind = kind
        self.message = message or kind.value


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of a catalog operation: a value, or an error kind with a message."""

    value: Optional[T] = None
    error: Optional[ErrorKind] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any = None) -> "Outcome":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str = "") -> "Outcome":
        return cls(error=kind, message=message or kind.value)

    def unwrap(self) -> T:
        if self.error is not None:
            raise CatalogError(self.error, self.message)
        return self.value
