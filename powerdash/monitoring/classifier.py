"""
Threshold-based status classification for electrical metrics.

classify() is a pure function of (metric type, value, thresholds). It never
raises: unknown metric types map to Unknown, and a missing threshold section
for a known metric is reported on the result instead of as an exception.
"""

from enum import Enum
from typing import Dict, Optional, Union

from pydantic import BaseModel, ConfigDict

from powerdash.config_models import ThresholdConfig
from .models import MetricType, Snapshot


class StatusLabel(str, Enum):
    """Discrete status shown on a metric badge."""

    EXCELLENT = "Excellent"
    GOOD = "Good"
    WARNING = "Warning"
    POOR = "Poor"
    NORMAL = "Normal"
    CRITICAL = "Critical"
    STABLE = "Stable"
    ACCEPTABLE = "Acceptable"
    UNSTABLE = "Unstable"
    UNKNOWN = "Unknown"


class SeverityTier(str, Enum):
    """Severity used for badge colouring."""

    OK = "ok"
    WARNING = "warning"
    CRITICAL = "critical"


_TIER_COLORS = {
    SeverityTier.OK: "green",
    SeverityTier.WARNING: "yellow",
    SeverityTier.CRITICAL: "red",
}

CLASSIFIED_METRICS = (MetricType.COS_PHI, MetricType.AMPERAGE, MetricType.FREQUENCY)


class StatusResult(BaseModel):
    """Outcome of classifying one metric value."""

    model_config = ConfigDict(frozen=True)

    label: StatusLabel
    severity: SeverityTier
    error: Optional[str] = None

    @property
    def is_configuration_error(self) -> bool:
        return self.error is not None

    @property
    def color(self) -> str:
        if self.label is StatusLabel.UNKNOWN:
            return "gray"
        return _TIER_COLORS[self.severity]

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "label": self.label.value,
            "severity": self.severity.value,
            "color": self.color,
            "error": self.error
        }


_UNKNOWN = StatusResult(label=StatusLabel.UNKNOWN, severity=SeverityTier.OK)


def classify(metric_type: Union[MetricType, str], value: float,
             thresholds: ThresholdConfig) -> StatusResult:
    """
    Map a metric value to a status label and severity tier.

    Args:
        metric_type: Metric being classified (enum member or wire name)
        value: Current value of the metric
        thresholds: Session threshold configuration

    Returns:
        StatusResult. Metrics without a status scale yield Unknown/ok; a known
        metric without configured thresholds yields Unknown/ok with ``error`` set.
    """
    metric = MetricType.lookup(metric_type)
    if metric not in CLASSIFIED_METRICS:
        return _UNKNOWN

    bounds = thresholds.section(metric.value)
    if bounds is None:
        return StatusResult(
            label=StatusLabel.UNKNOWN,
            severity=SeverityTier.OK,
            error=f"No thresholds configured for metric '{metric.value}'"
        )

    if metric is MetricType.COS_PHI:
        if value >= bounds.excellent:
            return StatusResult(label=StatusLabel.EXCELLENT, severity=SeverityTier.OK)
        if value >= bounds.good:
            return StatusResult(label=StatusLabel.GOOD, severity=SeverityTier.OK)
        if value >= bounds.warning:
            return StatusResult(label=StatusLabel.WARNING, severity=SeverityTier.WARNING)
        return StatusResult(label=StatusLabel.POOR, severity=SeverityTier.CRITICAL)

    if metric is MetricType.AMPERAGE:
        if value <= bounds.normal:
            return StatusResult(label=StatusLabel.NORMAL, severity=SeverityTier.OK)
        if value <= bounds.warning:
            return StatusResult(label=StatusLabel.WARNING, severity=SeverityTier.WARNING)
        return StatusResult(label=StatusLabel.CRITICAL, severity=SeverityTier.CRITICAL)

    # frequency
    if bounds.stable_min <= value <= bounds.stable_max:
        return StatusResult(label=StatusLabel.STABLE, severity=SeverityTier.OK)
    if bounds.acceptable_min <= value <= bounds.acceptable_max:
        return StatusResult(label=StatusLabel.ACCEPTABLE, severity=SeverityTier.WARNING)
    return StatusResult(label=StatusLabel.UNSTABLE, severity=SeverityTier.CRITICAL)


def classify_snapshot(snapshot: Snapshot, thresholds: ThresholdConfig) -> Dict[MetricType, StatusResult]:
    """Classify every metric of a snapshot that has a status scale."""
    return {metric: classify(metric, snapshot[metric], thresholds) for metric in CLASSIFIED_METRICS}
