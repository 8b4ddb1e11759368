from linechart.domain import DomainYResolution, compute_common_domain, resolve_domain_y
from linechart.errors import LayoutError
from linechart.formatting import ValueFormatter
from linechart.labels import LabelCandidate, LabelRect, place_labels
from linechart.render import CellLayout, LineChartLayout
from linechart.series import ChartModel, Series, SeriesPoint, Viewport, VisualDomain
from linechart.settings import DEFAULT_SETTINGS, ChartSettings, load_settings, validate_settings
from linechart.text import FixedWidthTextMetrics, PillowTextMetrics
from linechart.x_axis import OrdinalAxis, ScalarAxis, ScaleResolver, TemporalAxis, XAxisResolution

__all__ = [
    "CellLayout",
    "ChartModel",
    "ChartSettings",
    "DEFAULT_SETTINGS",
    "DomainYResolution",
    "FixedWidthTextMetrics",
    "LabelCandidate",
    "LabelRect",
    "LayoutError",
    "LineChartLayout",
    "OrdinalAxis",
    "PillowTextMetrics",
    "ScalarAxis",
    "ScaleResolver",
    "Series",
    "SeriesPoint",
    "TemporalAxis",
    "ValueFormatter",
    "Viewport",
    "VisualDomain",
    "XAxisResolution",
    "compute_common_domain",
    "load_settings",
    "place_labels",
    "resolve_domain_y",
    "validate_settings",
]
