"""Error handling module for pv-kms-annotator.

This module defines error codes and exception classes.

Not-applicable outcomes (volume gone, not CSI-backed, empty handle) are
never raised; they are returned as reconcile outcomes. Everything defined
here is a reconcile failure that the host framework may retry.

Usage:
    from kmsannotator.core.errors import MalformedVolumeHandleError

    # Raise with default message
    raise LocalityResolutionError()

    # Raise with custom message
    raise MalformedVolumeHandleError("volume handle has 2 segments")
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Error codes."""

    MALFORMED_VOLUME_HANDLE = "MALFORMED_VOLUME_HANDLE"
    LOCALITY_UNRESOLVED = "LOCALITY_UNRESOLVED"
    INVALID_KEY_VERSION = "INVALID_KEY_VERSION"


class AnnotatorError(Exception):
    """Base exception for pv-kms-annotator.

    Attributes:
        code: The error code from ErrorCode enum
        message: Human-readable error message
    """

    def __init__(self, code: ErrorCode, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


class MalformedVolumeHandleError(AnnotatorError):
    """Volume handle has too few segments to locate a disk."""

    def __init__(self, message: str = "Malformed volume handle") -> None:
        super().__init__(ErrorCode.MALFORMED_VOLUME_HANDLE, message)


class LocalityResolutionError(AnnotatorError):
    """Locality token is neither a zone nor a region."""

    def __init__(
        self, locality: str = "", message: str = "Cannot determine disk locality"
    ) -> None:
        self.locality = locality
        super().__init__(ErrorCode.LOCALITY_UNRESOLVED, message)


class InvalidKeyVersionError(AnnotatorError):
    """KMS key resource name has no usable version segment."""

    def __init__(self, message: str = "Invalid key version") -> None:
        super().__init__(ErrorCode.INVALID_KEY_VERSION, message)
