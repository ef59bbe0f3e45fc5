"""
Uniform result envelope returned by adapters and the data layer.

Every public operation answers with a DataResult instead of raising, so
callers branch on `success` and read either `data` or `error`.
"""
from dataclasses import dataclass, field, fields, is_dataclass, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar

from sportsedge.utils.helpers import utcnow

T = TypeVar("T")


class ErrorCode(Enum):
    """Failure taxonomy shared by every adapter."""
    INVALID_QUERY = "INVALID_QUERY"  # caller input, never retried
    NOT_FOUND = "NOT_FOUND"  # resolution failed, prompt for disambiguation
    API_ERROR = "API_ERROR"  # upstream failure, retry with backoff
    UNAVAILABLE = "UNAVAILABLE"  # adapter not configured

    @property
    def retryable(self) -> bool:
        return self is ErrorCode.API_ERROR


@dataclass(frozen=True)
class DataError:
    code: ErrorCode
    message: str
    sport: Optional[str] = None
    operation: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {"code": self.code.value, "message": self.message}
        if self.sport:
            result["sport"] = self.sport
        if self.operation:
            result["operation"] = self.operation
        return result


@dataclass(frozen=True)
class DataResult(Generic[T]):
    success: bool
    data: Optional[T] = None
    error: Optional[DataError] = None
    provider: Optional[str] = None
    cached: bool = False
    fetched_at: datetime = field(default_factory=utcnow)

    @classmethod
    def ok(cls, data: T, provider: Optional[str] = None, cached: bool = False) -> "DataResult[T]":
        return cls(success=True, data=data, provider=provider, cached=cached)

    @classmethod
    def fail(
        cls,
        code: ErrorCode,
        message: str,
        provider: Optional[str] = None,
    ) -> "DataResult[T]":
        return cls(success=False, error=DataError(code=code, message=message), provider=provider)

    @property
    def code(self) -> Optional[ErrorCode]:
        return self.error.code if self.error else None

    def with_context(self, sport: str, operation: str) -> "DataResult[T]":
        """Attach the failing sport/operation to an error result."""
        if self.error is None:
            return self
        return replace(self, error=replace(self.error, sport=sport, operation=operation))

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"success": self.success}
        if self.success:
            result["data"] = to_jsonable(self.data)
        else:
            result["error"] = self.error.to_dict() if self.error else None
        result["meta"] = {
            "provider": self.provider,
            "cached": self.cached,
            "fetched_at": self.fetched_at.isoformat(),
        }
        return result


def to_jsonable(value: Any) -> Any:
    """Convert models (dataclasses, enums, datetimes) into JSON-ready values."""
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, dict):
        return {
            (k.value if isinstance(k, Enum) else str(k)): to_jsonable(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in value]
    return str(value)
