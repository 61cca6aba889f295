"""Error classification for reconcile failures.

Classifies errors as transient, permanent, timeout or rate limited.
Retrying is left to the host framework (kopf); the classification is
only used for the 'error_class' log field and failure metrics.

Usage:
    from kmsannotator.core.retryable import classify_error

    error_class = classify_error(exc)
"""

import asyncio

import aiohttp
from google.api_core import exceptions as gapi_exceptions
from kubernetes_asyncio.client.exceptions import ApiException

from kmsannotator.core.errors import AnnotatorError
from kmsannotator.core.logging_schema import ErrorClass

# =============================================================================
# Google API (compute) error classification
# =============================================================================

GOOGLE_TRANSIENT = (
    gapi_exceptions.ServiceUnavailable,
    gapi_exceptions.InternalServerError,
    gapi_exceptions.BadGateway,
    gapi_exceptions.Aborted,
)

GOOGLE_RATE_LIMITED = (
    gapi_exceptions.TooManyRequests,
    gapi_exceptions.ResourceExhausted,
)

GOOGLE_TIMEOUT = (
    gapi_exceptions.DeadlineExceeded,
    gapi_exceptions.GatewayTimeout,
)

GOOGLE_PERMANENT = (
    gapi_exceptions.NotFound,
    gapi_exceptions.PermissionDenied,
    gapi_exceptions.Forbidden,
    gapi_exceptions.Unauthorized,
    gapi_exceptions.Unauthenticated,
    gapi_exceptions.InvalidArgument,
    gapi_exceptions.BadRequest,
)


def classify_google_error(exc: gapi_exceptions.GoogleAPICallError) -> ErrorClass:
    """Classify a google-api-core error."""
    if isinstance(exc, GOOGLE_RATE_LIMITED):
        return ErrorClass.RATE_LIMITED
    if isinstance(exc, GOOGLE_TIMEOUT):
        return ErrorClass.TIMEOUT
    if isinstance(exc, GOOGLE_TRANSIENT):
        return ErrorClass.TRANSIENT
    if isinstance(exc, GOOGLE_PERMANENT):
        return ErrorClass.PERMANENT
    return ErrorClass.UNKNOWN


# =============================================================================
# Kubernetes API error classification
# =============================================================================


def classify_kubernetes_error(exc: ApiException) -> ErrorClass:
    """Classify a Kubernetes API error by HTTP status."""
    status = exc.status or 0
    # 409 Conflict - stale resourceVersion, a fresh read will succeed
    if status == 409:
        return ErrorClass.TRANSIENT
    if status == 429:
        return ErrorClass.RATE_LIMITED
    if status == 504:
        return ErrorClass.TIMEOUT
    if status >= 500:
        return ErrorClass.TRANSIENT
    if 400 <= status < 500:
        return ErrorClass.PERMANENT
    return ErrorClass.UNKNOWN


# =============================================================================
# Unified classification
# =============================================================================


def classify_error(exc: BaseException) -> ErrorClass:
    """Classify a reconcile failure.

    Args:
        exc: Exception raised during reconcile

    Returns:
        ErrorClass for logs and metric labels
    """
    # Structurally invalid input - retrying cannot help
    if isinstance(exc, AnnotatorError):
        return ErrorClass.PERMANENT

    if isinstance(exc, asyncio.TimeoutError):
        return ErrorClass.TIMEOUT

    if isinstance(exc, gapi_exceptions.GoogleAPICallError):
        return classify_google_error(exc)

    if isinstance(exc, ApiException):
        return classify_kubernetes_error(exc)

    if isinstance(exc, aiohttp.ClientConnectionError):
        return ErrorClass.TRANSIENT

    return ErrorClass.UNKNOWN


def is_retryable(exc: BaseException) -> bool:
    """Check if a failure is worth retrying."""
    return classify_error(exc) in (
        ErrorClass.TRANSIENT,
        ErrorClass.TIMEOUT,
        ErrorClass.RATE_LIMITED,
    )
