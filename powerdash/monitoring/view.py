"""
View models consumed by the dashboard page.

Only the snapshot, per-metric history and per-metric status cross into the
presentation layer; everything here is derived from those three inputs.
"""

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from powerdash.config_models import ThresholdConfig
from .classifier import StatusResult
from .ingestion import IngestionAdapter
from .models import HistoryRecord, MetricType, Snapshot


class MetricCard(BaseModel):
    """One metric card on the dashboard."""

    metric: MetricType
    title: str
    unit: str
    color: str
    value: float
    show_status: bool = True
    status: Optional[str] = None
    status_color: Optional[str] = None
    status_error: Optional[str] = None
    is_loading: bool = False


class ReferenceLine(BaseModel):
    value: float
    color: str


class LegendItem(BaseModel):
    color: str
    label: str


class ChartConfig(BaseModel):
    """One time-series chart and its data series."""

    title: str
    metric: MetricType
    chart_type: str = Field(..., description="'area' or 'line'")
    color: str
    unit: str
    x: List[str] = Field(default_factory=list)
    y: List[float] = Field(default_factory=list)
    y_axis_domain: Optional[Tuple[float, float]] = None
    reference_lines: List[ReferenceLine] = Field(default_factory=list)
    legend_items: List[LegendItem] = Field(default_factory=list)


# metric, title, unit, accent colour, shows a status badge
CARD_DEFINITIONS = [
    (MetricType.ENERGY_CONSUMPTION, "Energy Consumption", "kWh", "#3B82F6", False),
    (MetricType.COS_PHI, "Power Factor (cos φ)", "", "#10B981", True),
    (MetricType.AMPERAGE, "Current", "A", "#F59E0B", True),
    (MetricType.POWER, "Active Power", "W", "#8B5CF6", False),
    (MetricType.FREQUENCY, "Frequency", "Hz", "#EF4444", True),
]

SAFE_COLOR = "#10B981"
WARNING_COLOR = "#F59E0B"
CRITICAL_COLOR = "#EF4444"


def build_cards(snapshot: Snapshot, statuses: Dict[MetricType, StatusResult],
                is_loading: bool = False) -> List[MetricCard]:
    cards = []
    for metric, title, unit, color, show_status in CARD_DEFINITIONS:
        status = statuses.get(metric) if show_status else None
        cards.append(MetricCard(
            metric=metric,
            title=title,
            unit=unit,
            color=color,
            value=round(snapshot[metric], 2),
            show_status=show_status,
            status=status.label.value if status else None,
            status_color=status.color if status else None,
            status_error=status.error if status else None,
            is_loading=is_loading,
        ))
    return cards


def _series(records: List[HistoryRecord]) -> Tuple[List[str], List[float]]:
    return [r.timestamp for r in records], [r.value for r in records]


def build_charts(energy: List[HistoryRecord], amperage: List[HistoryRecord],
                 thresholds: ThresholdConfig) -> List[ChartConfig]:
    energy_x, energy_y = _series(energy)
    energy_chart = ChartConfig(
        title="Energy Consumption Trend",
        metric=MetricType.ENERGY_CONSUMPTION,
        chart_type="area",
        color="#3B82F6",
        unit="kWh",
        x=energy_x,
        y=energy_y,
    )

    amp_x, amp_y = _series(amperage)
    current_chart = ChartConfig(
        title="Current Load Monitoring",
        metric=MetricType.AMPERAGE,
        chart_type="line",
        color="#F59E0B",
        unit="A",
        x=amp_x,
        y=amp_y,
        y_axis_domain=(0, 25),
    )

    bounds = thresholds.amperage
    if bounds is not None:
        current_chart.reference_lines = [
            ReferenceLine(value=bounds.normal, color=SAFE_COLOR),
            ReferenceLine(value=bounds.warning, color=CRITICAL_COLOR),
        ]
        current_chart.legend_items = [
            LegendItem(color=SAFE_COLOR, label=f"Safe (≤{bounds.normal:g}A)"),
            LegendItem(color=WARNING_COLOR, label=f"Warning ({bounds.normal:g}-{bounds.warning:g}A)"),
            LegendItem(color=CRITICAL_COLOR, label=f"Critical (>{bounds.warning:g}A)"),
        ]

    return [energy_chart, current_chart]


def build_health_overview(statuses: Dict[MetricType, StatusResult]) -> List[Dict[str, str]]:
    overview = []
    for metric, label in ((MetricType.COS_PHI, "Power Factor"),
                          (MetricType.AMPERAGE, "Current Load"),
                          (MetricType.FREQUENCY, "Frequency")):
        status = statuses[metric]
        overview.append({"label": label, "status": status.label.value, "color": status.color})
    overview.append({"label": "System", "status": "Online", "color": "green"})
    return overview


def build_dashboard_view(adapter: IngestionAdapter, max_points: Optional[int] = None) -> Dict[str, Any]:
    """Assemble the complete page payload from an ingestion adapter."""
    snapshot = adapter.snapshot()
    statuses = adapter.statuses()
    state = adapter.state()

    cards = build_cards(snapshot, statuses, is_loading=state["is_loading"])
    charts = build_charts(
        adapter.history(MetricType.ENERGY_CONSUMPTION, max_points),
        adapter.history(MetricType.AMPERAGE, max_points),
        adapter.thresholds,
    )

    return {
        "cards": [card.model_dump(mode="json") for card in cards],
        "charts": [chart.model_dump(mode="json") for chart in charts],
        "health": build_health_overview(statuses),
        "state": state,
    }
