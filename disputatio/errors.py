"""Error taxonomy shared across the debate engine."""

from enum import Enum


class DisputatioError(Exception):
    """Base class for all disputatio errors."""


class ConfigurationError(DisputatioError):
    """Topic configuration or structure catalog is missing or invalid."""


class StructuralError(DisputatioError):
    """Round/sub-round index out of range, or unknown side code."""


class BusyError(DisputatioError):
    """A generation is already in flight for this transcript. Retry later."""


class StorageShapeMismatch(DisputatioError):
    """Persisted transcript does not match the current structure catalog."""


class FailureKind(Enum):
    RATE_LIMIT = "rate_limit"
    AUTHORIZATION = "authorization"
    MALFORMED_REQUEST = "malformed_request"
    UNKNOWN = "unknown"


class GenerationFailure(DisputatioError):
    """The remote text-generation call failed."""

    def __init__(self, kind: FailureKind, message: str, status_code: int | None = None):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code

    @classmethod
    def from_status(cls, status_code: int, message: str) -> "GenerationFailure":
        if status_code == 429:
            kind = FailureKind.RATE_LIMIT
        elif status_code in (401, 403):
            kind = FailureKind.AUTHORIZATION
        elif status_code == 400:
            kind = FailureKind.MALFORMED_REQUEST
        else:
            kind = FailureKind.UNKNOWN
        return cls(kind, message, status_code)
