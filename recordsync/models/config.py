"""Configuration models for the record synchronizer."""

from datetime import timedelta

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SyncConfig(BaseModel):
    """Configuration for the full-sync and delta-sync engine."""

    batch_size: int = Field(default=100, gt=0, description="Records per full-sync page")
    poll_interval_ms: int = Field(
        default=5000, gt=0, description="Delay between the end of one cycle and the next"
    )
    overlap_window_ms: int = Field(
        default=3000,
        ge=0,
        description="Backward extension of the delta query; should exceed timestamp resolution",
    )
    sort_key: str = Field(
        default="id",
        min_length=1,
        description="Stable, append-only source field used to order full-sync pages",
    )

    @property
    def poll_interval(self) -> float:
        """Poll interval in seconds."""
        return self.poll_interval_ms / 1000.0

    @property
    def overlap_window(self) -> timedelta:
        return timedelta(milliseconds=self.overlap_window_ms)


class RetryConfig(BaseModel):
    """Backoff applied to a page or delta window after a transient store error."""

    max_retries: int = Field(default=3, ge=0, description="Retries before the cycle is abandoned")
    base_delay_ms: int = Field(default=500, ge=0, description="Initial backoff delay")
    max_delay_ms: int = Field(default=30000, ge=0, description="Upper bound on backoff delay")

    @property
    def base_delay(self) -> float:
        return self.base_delay_ms / 1000.0

    @property
    def max_delay(self) -> float:
        return self.max_delay_ms / 1000.0


class StateConfig(BaseModel):
    """Configuration for checkpoint persistence."""

    checkpoint_path: str | None = Field(
        default=None,
        description="JSON file holding the watermark. If None, state lives in memory only.",
    )


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    json_logs: bool = Field(
        default=True,
        description="If True, output JSON logs. If False, use console format.",
    )
    log_file: str | None = Field(
        default=None,
        description="Optional path to log file. If None, logs only to stdout.",
    )


class AppConfig(BaseSettings):
    """Main application configuration.

    This class uses pydantic-settings to load configuration from environment
    variables with the RECORDSYNC_ prefix, e.g. ``RECORDSYNC_SYNC__BATCH_SIZE``.
    """

    model_config = SettingsConfigDict(
        env_prefix="RECORDSYNC_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    sync: SyncConfig = Field(default_factory=SyncConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    state: StateConfig = Field(default_factory=StateConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
