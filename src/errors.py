"""Error taxonomy for model resolution.

Resolution internals raise subclasses of ``ModelResolutionError``; the
resolver client re-raises any of them as a single ``ResolverError`` whose
``kind`` lets callers branch programmatically.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Categories of resolution failure."""

    INVALID_FORMAT = "invalid_format"
    NOT_FOUND = "not_found"
    CASING_MISMATCH = "casing_mismatch"
    PARSE_ERROR = "parse_error"
    TRANSPORT_ERROR = "transport_error"


class ModelResolutionError(Exception):
    """Base class for failures raised while resolving a single identifier.

    Attributes:
        kind: Error category.
        dtmi: Identifier the failure is attributed to, when known. Fetch
            layers do not know which identifier they serve, so the engine
            fills this in before the error leaves it.
    """

    kind: ErrorKind

    def __init__(self, message: str, dtmi: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.dtmi = dtmi


class InvalidDtmiFormatError(ModelResolutionError):
    """The identifier does not follow the DTMI grammar."""

    kind = ErrorKind.INVALID_FORMAT

    def __init__(self, dtmi: str):
        super().__init__(f'Invalid DTMI format "{dtmi}".', dtmi=dtmi)


class ModelNotFoundError(ModelResolutionError):
    """No model content exists for the identifier at its conventional path."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, location: str, dtmi: Optional[str] = None, reason: Optional[str] = None):
        message = reason or f'Model content not found at "{location}".'
        super().__init__(message, dtmi=dtmi)
        self.location = location


class DtmiCasingError(ModelResolutionError):
    """Content exists, but declares the identifier with different casing."""

    kind = ErrorKind.CASING_MISMATCH

    def __init__(self, requested: str, parsed: str):
        super().__init__(
            "Retrieved model content has incorrect DTMI casing. "
            f'Expected "{requested}", parsed "{parsed}".',
            dtmi=requested,
        )
        self.requested = requested
        self.parsed = parsed


class ModelParseError(ModelResolutionError):
    """Content exists but is not a model document with a valid root identifier."""

    kind = ErrorKind.PARSE_ERROR

    def __init__(self, location: Optional[str], reason: str, dtmi: Optional[str] = None):
        where = location or "<content>"
        super().__init__(f'Failed to parse model content at "{where}": {reason}.', dtmi=dtmi)
        self.location = location
        self.reason = reason


class FetchTransportError(ModelResolutionError):
    """The fetch mechanism failed for a reason other than absence."""

    kind = ErrorKind.TRANSPORT_ERROR

    def __init__(self, location: str, reason: str, dtmi: Optional[str] = None):
        super().__init__(f'Failed to fetch "{location}": {reason}.', dtmi=dtmi)
        self.location = location
        self.reason = reason


class ResolverError(Exception):
    """Single externally visible resolution failure.

    Attributes:
        kind: Category copied from the underlying failure.
        dtmi: Offending identifier (may be a transitive dependency).
        message: ``Unable to resolve "<dtmi>". <cause>``.
    """

    def __init__(self, kind: ErrorKind, dtmi: Optional[str], message: str):
        super().__init__(message)
        self.kind = kind
        self.dtmi = dtmi
        self.message = message

    @classmethod
    def from_failure(cls, failure: ModelResolutionError) -> "ResolverError":
        """Compose the public error from an internal failure."""
        message = f'Unable to resolve "{failure.dtmi}". {failure.message}'
        return cls(failure.kind, failure.dtmi, message)
