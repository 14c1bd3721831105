"""Configuration management for the procfs metrics exporter"""
import json
from pathlib import Path
from typing import Any, FrozenSet, List, Literal, Optional

import structlog
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from procfs_exporter.metrics.models import MetricKind


logger = structlog.get_logger(__name__)

DEFAULT_SAMPLING_INTERVAL = 10


class Settings(BaseSettings):
    """Process settings with Pydantic validation and environment-based overrides"""

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    # Metrics selection file
    config_file: Path = Field(default=Path("config.json"), description="JSON file selecting the sampled metrics")

    # Server settings
    metrics_port: int = Field(default=8000, ge=1, le=65535, description="Metrics server port")
    metrics_host: str = Field(default="0.0.0.0", description="Metrics server host")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO", description="Log level")
    log_file: Optional[Path] = Field(default=None, description="Optional log file path")
    environment: str = Field(default="production", description="development selects console logs, anything else JSON")

    # Service settings
    service_name: str = Field(default="procfs-metrics-exporter", description="Service name")
    service_version: str = Field(default="1.0.0", description="Service version")
    enable_request_logging: bool = Field(default=True, description="Enable HTTP request logging")

    # Kernel sources
    proc_root: Path = Field(default=Path("/proc"), description="Root of the proc filesystem")
    disk_device: str = Field(default="sda", min_length=1, description="Device name matched in diskstats")

    # Allocator benchmark
    allocator_binary: Path = Field(default=Path("./memory_benchmark"), description="Allocator benchmark executable")
    allocator_fifo: Path = Field(default=Path("/tmp/my_fifo"), description="FIFO the benchmark writes its record to")
    allocator_timeout: Optional[float] = Field(default=60.0, ge=0, description="Seconds to wait for a benchmark record, 0 waits forever")

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @field_validator('log_file')
    @classmethod
    def ensure_parent_directories(cls, v):
        """Ensure parent directories exist for file paths"""
        if isinstance(v, Path):
            v.parent.mkdir(parents=True, exist_ok=True)
        return v

    @field_validator('allocator_timeout')
    @classmethod
    def zero_timeout_blocks(cls, v):
        """A zero timeout means block until the benchmark answers"""
        if not v:
            return None
        return v


class MetricsConfig(BaseModel):
    """Sampling interval and metric selection loaded from the JSON config file.

    Each field is decoded on its own: an unusable ``sampling_interval`` falls
    back to the default and non-string ``metrics`` entries are dropped,
    without discarding the rest of the selection. Dropped values are kept in
    ``rejected_entries`` for logging.
    """

    sampling_interval: int = Field(default=DEFAULT_SAMPLING_INTERVAL, ge=1, description="Sampling interval in seconds")
    metrics: List[str] = Field(default_factory=list, description="Metric names to sample")
    rejected_entries: List[str] = Field(default_factory=list, description="Config values dropped while decoding")

    @model_validator(mode='before')
    @classmethod
    def drop_unusable_entries(cls, data: Any) -> Any:
        """Replace a bad interval with the default and drop non-string metric names"""
        if not isinstance(data, dict):
            return data

        data = dict(data)
        rejected = []

        interval = data.get("sampling_interval", DEFAULT_SAMPLING_INTERVAL)
        if isinstance(interval, bool) or not isinstance(interval, int) or interval < 1:
            rejected.append(f"sampling_interval={interval!r}")
            data["sampling_interval"] = DEFAULT_SAMPLING_INTERVAL

        metrics = data.get("metrics", [])
        if not isinstance(metrics, list):
            rejected.append(f"metrics={metrics!r}")
            metrics = []
        rejected.extend(f"metrics[{i}]={name!r}" for i, name in enumerate(metrics) if not isinstance(name, str))
        data["metrics"] = [name for name in metrics if isinstance(name, str)]

        data["rejected_entries"] = rejected
        return data

    @property
    def enabled_kinds(self) -> FrozenSet[MetricKind]:
        """Recognised metric kinds, duplicates collapsed"""
        kinds = (MetricKind.from_name(name) for name in self.metrics)
        return frozenset(kind for kind in kinds if kind is not None)

    @property
    def ignored_metrics(self) -> List[str]:
        """Configured names that do not match any known metric"""
        return sorted({name for name in self.metrics if MetricKind.from_name(name) is None})

    def is_enabled(self, kind: MetricKind) -> bool:
        """Check if a specific metric kind is enabled"""
        return kind in self.enabled_kinds


def load_metrics_config(path: Path) -> MetricsConfig:
    """Load the metric selection file.

    A missing file, invalid JSON or a root that is not an object falls back
    to the defaults. Bad individual values are dropped and logged.
    """
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        config = MetricsConfig.model_validate(raw)
    except (OSError, ValueError, ValidationError) as e:
        logger.warning(
            "Metrics configuration unusable, using defaults",
            config_file=str(path),
            error=str(e),
            error_type=type(e).__name__,
            sampling_interval=DEFAULT_SAMPLING_INTERVAL,
            event_type="config_fallback"
        )
        return MetricsConfig()

    if config.rejected_entries:
        logger.warning(
            "Dropping invalid configuration values",
            config_file=str(path),
            rejected_entries=config.rejected_entries,
            sampling_interval=config.sampling_interval,
            event_type="config_rejected_entries"
        )
    if config.ignored_metrics:
        logger.info(
            "Ignoring unknown metric names",
            config_file=str(path),
            ignored_metrics=config.ignored_metrics,
            event_type="config_unknown_metrics"
        )
    return config
