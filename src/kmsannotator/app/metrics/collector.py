"""Prometheus metrics definitions for the reconciler."""

from prometheus_client import Counter, Histogram

# =============================================================================
# Histogram Buckets
# =============================================================================

# Compute API reads and full reconcile passes (5ms ~ 60s)
# Log scale: ratio ≈ 2.04
_BUCKETS_MEDIUM = (
    0.005, 0.01, 0.02, 0.04, 0.09,
    0.18, 0.36, 0.73, 1.5, 3,
    6.2, 12.7, 26, 53,
)  # 14 buckets

# =============================================================================
# Reconciler Metrics
# =============================================================================

RECONCILE_TOTAL = Counter(
    "kmsannotator_reconcile_total",
    "Completed reconcile passes by outcome",
    ["outcome"],  # not_found, not_managed, unencrypted, annotated
)

RECONCILE_FAILURES_TOTAL = Counter(
    "kmsannotator_reconcile_failures_total",
    "Failed reconcile passes by error class",
    ["error_class"],  # transient, permanent, timeout, rate_limited, unknown
)

RECONCILE_DURATION = Histogram(
    "kmsannotator_reconcile_duration_seconds",
    "Duration of a reconcile pass",
    buckets=_BUCKETS_MEDIUM,
)

ANNOTATION_WRITES_TOTAL = Counter(
    "kmsannotator_annotation_writes_total",
    "PersistentVolume updates issued to write KMS annotations",
)

# =============================================================================
# Disk Lookup Metrics
# =============================================================================

DISK_LOOKUP_DURATION = Histogram(
    "kmsannotator_disk_lookup_duration_seconds",
    "Duration of Compute Engine disk reads",
    ["locality"],  # zone, region
    buckets=_BUCKETS_MEDIUM,
)
