from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    AUTHENTICATION = "authentication"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    TRANSPORT = "transport"
    SERVER = "server"


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str
    fields: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Outcome of a write against the admin API.

    Exactly one of `value` / `error` is meaningful: check `ok` first.
    A successful result may still carry `value=None` (e.g. deletes).
    """
    value: Optional[T] = None
    error: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str, fields: Optional[Dict[str, str]] = None) -> "Result[T]":
        return cls(error=Failure(kind=kind, message=message, fields=fields or {}))
