"""Tagged success/failure results for the wake pipeline."""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class WakeError:
    """Base class for failures returned (not raised) by the wake pipeline."""

    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class ValidationError(WakeError):
    """Bad MAC, CIDR, port or host input. Always recoverable by the user."""


@dataclass(frozen=True)
class ResolutionError(WakeError):
    """Hostname could not be resolved to an IPv4 address."""


@dataclass(frozen=True)
class TransportError(WakeError):
    """Socket creation, option-set or send failure."""


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    error: WakeError


Result = Union[Ok[T], Err]
