"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AnnotationConfig(BaseSettings):
    """Annotation namespace written on PersistentVolumes.

    Keys: {group}/kms-key-name, {group}/kms-key-version
    """

    model_config = SettingsConfigDict(env_prefix="ANNOTATION_")

    group: str = Field(default="sijoma.dev")


class GcpConfig(BaseSettings):
    """Compute Engine disk client configuration.

    Without a credentials file, Application Default Credentials are used
    (workload identity on GKE).
    """

    model_config = SettingsConfigDict(env_prefix="GCP_")

    credentials_file: str | None = Field(default=None)
    timeout_s: float = Field(default=30.0)  # per disk read


class KubernetesConfig(BaseSettings):
    """Cluster client configuration."""

    model_config = SettingsConfigDict(env_prefix="KUBE_")

    in_cluster: bool = Field(default=True)
    config_file: str | None = Field(default=None)  # used when in_cluster=False


class OperatorConfig(BaseSettings):
    """kopf operator settings.

    Retry/backoff of failed reconciles is kopf's own policy.
    """

    model_config = SettingsConfigDict(env_prefix="OPERATOR_")

    max_workers: int = Field(default=4)
    request_timeout: float = Field(default=30.0)  # seconds (K8s API)
    backoff: float = Field(default=10.0)  # seconds between handler retries


class MetricsConfig(BaseSettings):
    """Prometheus metrics configuration."""

    model_config = SettingsConfigDict(env_prefix="METRICS_")

    enabled: bool = Field(default=True)
    port: int = Field(default=8080)


class LoggingConfig(BaseSettings):
    """Logging configuration.

    Standard fields added to all logs:
    - schema_version: Log schema version for backwards compatibility
    - service: Service name (pv-kms-annotator)

    Rate limiting:
    - Prevents log storms from repeated messages
    - ERROR logs bypass rate limiting (always logged)
    """

    model_config = SettingsConfigDict(env_prefix="LOGGING_")

    level: str = Field(default="INFO")
    schema_version: str = Field(default="1.0")
    rate_limit_per_minute: int = Field(default=100)
    service_name: str = Field(default="pv-kms-annotator")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="KMSANNOTATOR_",
        env_nested_delimiter="__",
    )

    annotation: AnnotationConfig = Field(default_factory=AnnotationConfig)
    gcp: GcpConfig = Field(default_factory=GcpConfig)
    kubernetes: KubernetesConfig = Field(default_factory=KubernetesConfig)
    operator: OperatorConfig = Field(default_factory=OperatorConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


@lru_cache
def get_settings() -> Settings:
    return Settings()
