"""pv-kms-annotator - annotate PersistentVolumes with their disk's KMS key."""

__version__ = "0.1.0"
