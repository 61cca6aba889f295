"""Logging field schema - v1.0

Standard fields (added to all logs):
- schema_version: Log schema version
- service: Service name (pv-kms-annotator)
- component: Component name (RECONCILER, LOOKUP, OPERATOR)
- event: Event type (reconcile_complete, reconcile_failed, etc.)
- trace_id: Per-reconcile trace ID
- duration_ms: Duration in milliseconds

High cardinality fields (OK in logs, NOT in metric labels):
- volume_name: PersistentVolume name
- project: Cloud project of the disk
- kms_key: Key principal written to the volume
"""

from enum import StrEnum


class LogEvent(StrEnum):
    """Standard log event types.

    Use these event types in the 'event' extra field for consistent
    log filtering and analysis.
    """

    # Reconciler events
    RECONCILE_COMPLETE = "reconcile_complete"
    RECONCILE_FAILED = "reconcile_failed"
    RECONCILE_SKIPPED = "reconcile_skipped"
    ANNOTATIONS_APPLIED = "annotations_applied"

    # Disk lookup events
    DISK_FETCHED = "disk_fetched"
    DISK_LOOKUP_FAILED = "disk_lookup_failed"

    # Lifecycle events
    APP_STARTED = "app_started"
    APP_STOPPED = "app_stopped"
    METRICS_STARTED = "metrics_started"


class ErrorClass(StrEnum):
    """Error classification for structured error logging.

    Use these in the 'error_class' extra field to enable
    filtering by error type and setting up alerts.
    """

    TRANSIENT = "transient"  # Retryable (network failure, conflict, 5xx)
    PERMANENT = "permanent"  # Not retryable (invalid input, not found)
    TIMEOUT = "timeout"  # Deadline exceeded
    RATE_LIMITED = "rate_limited"  # Quota / 429
    UNKNOWN = "unknown"


class Component(StrEnum):
    """Component identifiers for log filtering."""

    RECONCILER = "reconciler"  # PersistentVolumeReconciler
    LOOKUP = "lookup"  # DiskEncryptionLookup
    OPERATOR = "operator"  # kopf wiring
