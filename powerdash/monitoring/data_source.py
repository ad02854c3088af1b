"""
Static historical data documents for batch ingestion.

A document carries the current readings, a list of historical rows and the
threshold configuration. JSON and YAML files are accepted.
"""

import json
from importlib import resources
from pathlib import Path
from typing import Any, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from powerdash.config_models import ThresholdConfig
from powerdash.interfaces import DataSourceError
from powerdash.logging_config import get_logger
from .models import HistoryRecord, MetricType, Snapshot

logger = get_logger(__name__)

BUNDLED_DATA_FILE = "electrical_data.json"

# (wire name, attribute name) of each threshold section a document may carry
_THRESHOLD_SECTIONS = (("cosPhi", "cos_phi"), ("amperage", "amperage"), ("frequency", "frequency"))


class CurrentData(BaseModel):
    """Current readings block of a data document."""

    model_config = ConfigDict(populate_by_name=True)

    energy_consumption: float = Field(..., alias="energyConsumption")
    cos_phi: float = Field(..., alias="cosPhi")
    amperage: float
    power: float
    frequency: float

    def to_snapshot(self) -> Snapshot:
        return Snapshot({
            MetricType.ENERGY_CONSUMPTION: self.energy_consumption,
            MetricType.COS_PHI: self.cos_phi,
            MetricType.AMPERAGE: self.amperage,
            MetricType.POWER: self.power,
            MetricType.FREQUENCY: self.frequency,
        })


class HistoricalRow(BaseModel):
    """One wide row of historical readings, labelled with a time of day."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    time: str
    energy: float
    cos_phi: float = Field(..., alias="cosPhi")
    amperage: float
    power: float
    frequency: float

    def to_snapshot(self) -> Snapshot:
        return Snapshot({
            MetricType.ENERGY_CONSUMPTION: self.energy,
            MetricType.COS_PHI: self.cos_phi,
            MetricType.AMPERAGE: self.amperage,
            MetricType.POWER: self.power,
            MetricType.FREQUENCY: self.frequency,
        })

    def to_records(self) -> List[HistoryRecord]:
        """Normalize the row into one history record per metric."""
        return [
            HistoryRecord(timestamp=self.time, metric_type=metric, value=value)
            for metric, value in self.to_snapshot().to_dict().items()
        ]


class DashboardDocument(BaseModel):
    """Complete batch-mode data document."""

    model_config = ConfigDict(populate_by_name=True)

    current_data: CurrentData = Field(..., alias="currentData")
    historical_data: List[HistoricalRow] = Field(default_factory=list, alias="historicalData")
    thresholds: Optional[ThresholdConfig] = None

    @field_validator("thresholds", mode="before")
    @classmethod
    def omitted_sections_stay_missing(cls, v: Any) -> Any:
        """A section left out of the document is a gap, not a request for defaults."""
        if not isinstance(v, dict):
            return v
        explicit = dict(v)
        for alias, name in _THRESHOLD_SECTIONS:
            if alias not in explicit and name not in explicit:
                explicit[alias] = None
        return explicit

    def history_records(self) -> List[HistoryRecord]:
        records: List[HistoryRecord] = []
        for row in self.historical_data:
            records.extend(row.to_records())
        return records


def fallback_document() -> DashboardDocument:
    """Hard-coded seed data used when the configured document cannot be loaded."""
    return DashboardDocument(
        current_data=CurrentData(
            energy_consumption=1247.5,
            cos_phi=0.92,
            amperage=15.8,
            power=3634,
            frequency=50.0,
        ),
        historical_data=[
            HistoricalRow(time="14:30:00", energy=1245.2, cos_phi=0.91, amperage=14.5, power=3580, frequency=49.98),
            HistoricalRow(time="14:30:03", energy=1245.7, cos_phi=0.93, amperage=15.2, power=3612, frequency=50.01),
            HistoricalRow(time="14:30:06", energy=1246.1, cos_phi=0.89, amperage=16.1, power=3645, frequency=49.99),
        ],
        thresholds=ThresholdConfig(),
    )


def load_dashboard_data(path: Optional[Path] = None) -> DashboardDocument:
    """
    Load and validate a historical data document.

    Args:
        path: JSON or YAML document. Defaults to the sample bundled with the package.

    Returns:
        Validated DashboardDocument

    Raises:
        DataSourceError: If the file cannot be read, parsed or validated
    """
    try:
        if path is None:
            text = resources.files("powerdash.data").joinpath(BUNDLED_DATA_FILE).read_text(encoding="utf-8")
            source = f"<bundled {BUNDLED_DATA_FILE}>"
            suffix = ".json"
        else:
            text = Path(path).read_text(encoding="utf-8")
            source = str(path)
            suffix = Path(path).suffix.lower()
    except (OSError, ModuleNotFoundError) as e:
        raise DataSourceError(f"Failed to read data file {path}: {e}") from e

    try:
        if suffix in (".yml", ".yaml"):
            raw = yaml.safe_load(text)
        else:
            raw = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise DataSourceError(f"Failed to parse data file {source}: {e}") from e

    if not isinstance(raw, dict):
        raise DataSourceError(f"Data file {source} must contain an object at the top level")

    try:
        document = DashboardDocument(**raw)
    except ValidationError as e:
        raise DataSourceError(f"Data file {source} is malformed: {e}") from e

    logger.info(f"Loaded {len(document.historical_data)} historical rows from {source}")
    return document
