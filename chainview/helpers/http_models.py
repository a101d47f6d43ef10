"""Type definitions for HTTP attempts and operation results.

Two tagged unions flow through the client:

- ``RequestOutcome`` describes a single HTTP attempt and drives the retry
  state machine in ``chainview.helpers.http``.
- ``Result`` (``Ok`` or ``Err``) is what every public operation returns.
  ``Err.kind`` is a closed set, so callers can tell a terminal rate limit
  apart from a generic API error without catching exception classes.
"""

from enum import Enum
from typing import Any, Generic, Literal, TypeAlias, TypeVar

from pydantic import BaseModel, ConfigDict


T = TypeVar("T")

# JSON value type - using Any for the recursive case
# since pyright has trouble with recursive type aliases
JsonValue: TypeAlias = str | int | float | bool | dict[str, Any] | list[Any] | None

# Type for decoded JSON bodies (object or array)
JsonResponse: TypeAlias = dict[str, Any] | list[Any]


class OutcomeSuccess(BaseModel):
    """The attempt produced a usable body."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["success"] = "success"
    body: str


class OutcomeRateLimited(BaseModel):
    """HTTP 429 or an embedded rate-limit signal; worth retrying."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["rate_limited"] = "rate_limited"
    message: str = "Rate limit exceeded"


class OutcomeApiError(BaseModel):
    """Non-200 status or a hard error inside the response envelope."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["api_error"] = "api_error"
    code: int | None = None
    message: str


class OutcomeTransportError(BaseModel):
    """The request never produced a response (timeout, connection failure)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["transport_error"] = "transport_error"
    cause: str


RequestOutcome: TypeAlias = (
    OutcomeSuccess | OutcomeRateLimited | OutcomeApiError | OutcomeTransportError
)


class ErrorKind(Enum):
    """Closed set of operation-level failures."""

    TRANSPORT = "transport"
    RATE_LIMITED = "rate_limited"
    API = "api"
    DECODE = "decode"
    INTERRUPTED = "interrupted"


class Ok(BaseModel, Generic[T]):
    """Successful operation result."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    value: T

    @property
    def ok(self) -> bool:
        """Always True."""
        return True


class Err(BaseModel):
    """Failed operation result carrying a human-readable message."""

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    message: str
    code: int | None = None

    @property
    def ok(self) -> bool:
        """Always False."""
        return False

    @property
    def user_message(self) -> str:
        """Message suitable for showing next to a failed section."""
        if self.kind is ErrorKind.RATE_LIMITED:
            return "Rate limited by the data provider, try again shortly"
        if self.kind is ErrorKind.TRANSPORT:
            return f"Network error: {self.message}"
        if self.kind is ErrorKind.INTERRUPTED:
            return "Request was cancelled"
        return self.message

    @classmethod
    def decode(cls, message: str) -> "Err":
        """Build a DECODE error for a malformed provider response."""
        return cls(kind=ErrorKind.DECODE, message=message)

    @classmethod
    def interrupted(cls) -> "Err":
        """Build an INTERRUPTED error for a cancelled wait."""
        return cls(kind=ErrorKind.INTERRUPTED, message="Request interrupted")


V = TypeVar("V")

Result: TypeAlias = Ok[V] | Err


__all__ = [
    "Err",
    "ErrorKind",
    "JsonResponse",
    "JsonValue",
    "Ok",
    "OutcomeApiError",
    "OutcomeRateLimited",
    "OutcomeSuccess",
    "OutcomeTransportError",
    "RequestOutcome",
    "Result",
]
