"""Configuration models for the electric counter dashboard."""

from enum import Enum
from pathlib import Path
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .interfaces import ThresholdConfigError

# Wire name of each classified metric to the attribute holding its bounds
_SECTION_ATTRS = {"cosPhi": "cos_phi", "amperage": "amperage", "frequency": "frequency"}


class CosPhiThresholds(BaseModel):
    """Lower bounds for power factor status tiers."""

    model_config = ConfigDict(frozen=True)

    excellent: float = Field(default=0.95, description="Lower bound for Excellent")
    good: float = Field(default=0.90, description="Lower bound for Good")
    warning: float = Field(default=0.85, description="Lower bound for Warning")

    @model_validator(mode="after")
    def bounds_must_descend(self) -> "CosPhiThresholds":
        if not self.excellent >= self.good >= self.warning:
            raise ValueError("cosPhi thresholds must satisfy excellent >= good >= warning")
        return self


class AmperageThresholds(BaseModel):
    """Upper bounds for current draw status tiers, in amperes."""

    model_config = ConfigDict(frozen=True)

    normal: float = Field(default=16.0, description="Upper bound for Normal")
    warning: float = Field(default=20.0, description="Upper bound for Warning")

    @model_validator(mode="after")
    def bounds_must_ascend(self) -> "AmperageThresholds":
        if self.normal > self.warning:
            raise ValueError("amperage thresholds must satisfy normal <= warning")
        return self


class FrequencyThresholds(BaseModel):
    """Inclusive frequency ranges, in hertz."""

    model_config = ConfigDict(frozen=True)

    stable_min: float = Field(default=49.9)
    stable_max: float = Field(default=50.1)
    acceptable_min: float = Field(default=49.5)
    acceptable_max: float = Field(default=50.5)

    @model_validator(mode="after")
    def ranges_must_nest(self) -> "FrequencyThresholds":
        if not (self.acceptable_min <= self.stable_min <= self.stable_max <= self.acceptable_max):
            raise ValueError(
                "frequency thresholds must satisfy "
                "acceptable_min <= stable_min <= stable_max <= acceptable_max"
            )
        return self


class ThresholdConfig(BaseModel):
    """Per-metric threshold bounds, immutable for the lifetime of a session.

    Sections are optional. Defaults fill the system configuration; a data
    document that omits a section leaves it None, and the classifier reports
    the gap instead of failing.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    cos_phi: Optional[CosPhiThresholds] = Field(default_factory=CosPhiThresholds, alias="cosPhi")
    amperage: Optional[AmperageThresholds] = Field(default_factory=AmperageThresholds)
    frequency: Optional[FrequencyThresholds] = Field(default_factory=FrequencyThresholds)

    def section(self, metric_type: Union[Enum, str]) -> Optional[BaseModel]:
        """Return the threshold section for a metric type, or None if absent."""
        # str() of a str-mixin enum member is its qualified name, not the wire name
        key = metric_type.value if isinstance(metric_type, Enum) else metric_type
        attr = _SECTION_ATTRS.get(key)
        if attr is None:
            return None
        return getattr(self, attr)

    def require(self, metric_type: Union[Enum, str]) -> BaseModel:
        """
        Return the threshold section for a metric type.

        Raises:
            ThresholdConfigError: If the metric type has no configured section
        """
        section = self.section(metric_type)
        if section is None:
            raise ThresholdConfigError(f"No thresholds configured for metric '{metric_type}'")
        return section

    def to_dict(self) -> dict:
        """Serialize using the wire names (cosPhi, amperage, frequency)."""
        return self.model_dump(by_alias=True)


class PathsConfig(BaseModel):
    """Configuration for file system paths."""

    log_dir: Path = Field(default=Path("logs"), description="Directory for log files")

    @field_validator("log_dir", mode="before")
    @classmethod
    def ensure_path_exists(cls, v: str | Path) -> Path:
        """Ensure directories exist."""
        if isinstance(v, str):
            v = Path(v)
        v.mkdir(parents=True, exist_ok=True)
        return v


class LoggingConfig(BaseModel):
    """Configuration for the logging framework."""

    level: str = Field(default="INFO", description="Log level")
    format_console: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(session_id)s - %(message)s",
        description="Console log format"
    )
    log_to_file: bool = Field(default=True, description="Write JSON log file per session")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Level must be one of {valid_levels}")
        return v.upper()


class DashboardConfig(BaseModel):
    """Configuration for dashboard server."""

    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=5000, description="Server port")
    debug: bool = Field(default=False, description="Enable debug mode")
    update_interval_ms: int = Field(default=1000, description="Push interval in milliseconds")
    max_data_points: int = Field(default=100, description="Maximum chart points per request")
    enable_cors: bool = Field(default=True, description="Enable CORS for API access")

    @field_validator("port")
    @classmethod
    def port_must_be_valid(cls, v: int) -> int:
        if not 0 < v < 65536:
            raise ValueError("Port must be between 1 and 65535")
        return v

    @field_validator("update_interval_ms", "max_data_points")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Value must be positive")
        return v


class IngestionConfig(BaseModel):
    """Configuration for the data ingestion adapter."""

    mode: Literal["batch", "stream"] = Field(default="batch", description="Ingestion mode")
    data_file: Optional[Path] = Field(
        default=None,
        description="Historical data document; defaults to the bundled sample"
    )
    history_limit: int = Field(default=200, description="Maximum buffered history records")
    rotation_interval_seconds: float = Field(
        default=3.0,
        description="Interval between simulated snapshot rotations in batch mode"
    )

    @field_validator("history_limit")
    @classmethod
    def history_limit_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("History limit must be positive")
        return v

    @field_validator("rotation_interval_seconds")
    @classmethod
    def interval_must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Rotation interval must be positive")
        return v


class StreamConfig(BaseModel):
    """Configuration for the message stream client."""

    backend: Literal["memory", "kafka"] = Field(default="memory", description="Stream backend")
    bootstrap_servers: str = Field(default="localhost:9092", description="Kafka brokers")
    topic: str = Field(default="dashboard-data", description="Topic carrying metric messages")
    group_id: str = Field(default="dashboard-group", description="Consumer group")
    client_id: str = Field(default="electric-dashboard", description="Client identifier")
    connect_timeout_seconds: float = Field(default=10.0, description="Connect timeout")


class SimulationConfig(BaseModel):
    """Configuration for the telemetry generator used without a broker."""

    enabled: bool = Field(default=True, description="Publish simulated telemetry in memory mode")
    interval_seconds: float = Field(default=1.0, description="Seconds between published readings")
    seed: Optional[int] = Field(default=42, description="Random seed for reproducible output")

    @field_validator("interval_seconds")
    @classmethod
    def interval_must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Simulation interval must be positive")
        return v


class SystemConfig(BaseModel):
    """Main system configuration."""

    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    dashboard: DashboardConfig = Field(default_factory=DashboardConfig)
    ingestion: IngestionConfig = Field(default_factory=IngestionConfig)
    stream: StreamConfig = Field(default_factory=StreamConfig)
    simulation: SimulationConfig = Field(default_factory=SimulationConfig)
    thresholds: ThresholdConfig = Field(default_factory=ThresholdConfig)
