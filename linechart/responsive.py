from __future__ import annotations

from dataclasses import dataclass, replace
import logging
from typing import Callable, Sequence

from linechart.formatting import ValueFormatter
from linechart.scales import LinearScale
from linechart.series import VisualDomain
from linechart.settings import AxisPosition, LegendPosition, YAxisSettings
from linechart.text import ELLIPSIS, TextMetrics


LOGGER = logging.getLogger(__name__)

RESPONSIVE_MIN_WIDTH = 50.0
RESPONSIVE_MIN_HEIGHT = 50.0
AXIS_PADDING = 10.0
COLLAPSED_AXIS_MARGIN = 5.0
Y_AXIS_LABEL_GAP = 5.0
MAX_LAYOUT_PASSES = 4
TOP_LEGEND_POSITIONS: tuple[str, ...] = ("Top", "TopCenter")

ICON_VIEW_BOX = (0.0, 0.0, 24.0, 24.0)
ICON_FILL = "#333"
ICON_PATH = (
    "M12,16.5703125 L13.140625,16.5703125 L13.140625,10.859375 L12,10.859375 L12,16.5703125 Z "
    "M10.8515625,9.7109375 L14.28125,9.7109375 L14.28125,17.7109375 L10.8515625,17.7109375 L10.8515625,9.7109375 Z "
    "M7.421875,16.5703125 L8.5703125,16.5703125 L8.5703125,8.5703125 L7.421875,8.5703125 L7.421875,16.5703125 Z "
    "M6.28125,7.4296875 L9.7109375,7.4296875 L9.7109375,17.7109375 L6.28125,17.7109375 L6.28125,7.4296875 Z "
    "M16.5703125,16.5703125 L17.7109375,16.5703125 L17.7109375,6.28125 L16.5703125,6.28125 L16.5703125,16.5703125 Z "
    "M15.421875,5.140625 L18.8515625,5.140625 L18.8515625,17.7109375 L15.421875,17.7109375 L15.421875,5.140625 Z "
    "M5.140625,4 L5.140625,18.859375 L20,18.859375 L20,20 L4,20 L4,4 L5.140625,4 Z"
)


@dataclass(frozen=True)
class AxisBand:
    """Horizontal space reserved around the plot for the y axis."""

    padding: float
    margin: float
    y_axis_width: float
    collapsed: bool = False

    def plot_width(self, width: float) -> float:
        return width - self.y_axis_width - self.padding - 2.0 * self.margin


@dataclass(frozen=True)
class FallbackIcon:
    width: float
    height: float
    path: str = ICON_PATH
    fill: str = ICON_FILL
    view_box: tuple[float, float, float, float] = ICON_VIEW_BOX

    @property
    def scale(self) -> float:
        return min(self.width / self.view_box[2], self.height / self.view_box[3])


@dataclass(frozen=True)
class LegendDecision:
    position: LegendPosition
    band: AxisBand
    x_axis_height: float
    passes: int


def axis_margin(labels: Sequence[str], *, font_family: str, font_size: float, metrics: TextMetrics) -> float:
    """Half the widest x label, so edge labels stay inside the cell."""
    widest = max((metrics.text_width(text, font_family, font_size) for text in labels), default=0.0)
    return widest / 2.0


def y_axis_width(
    domain: VisualDomain,
    settings: YAxisSettings,
    *,
    formatter: ValueFormatter,
    metrics: TextMetrics,
) -> float:
    """Widest formatted tick of the niced linear domain plus a gap and the title."""
    if not settings.show or not domain.is_resolved:
        return 0.0
    scale = LinearScale(domain=(float(domain.start), float(domain.end)), range=(0.0, 1.0)).nice()  # type: ignore[arg-type]
    widest = max(
        (metrics.text_width(formatter.format(v), settings.font_family, settings.font_size) for v in scale.ticks()),
        default=0.0,
    )
    width = widest + Y_AXIS_LABEL_GAP
    if settings.show_title:
        width += metrics.text_height(settings.title_font_family, settings.title_font_size)
    return width


def ellipsis_width(settings: YAxisSettings, metrics: TextMetrics) -> float:
    return metrics.text_width(ELLIPSIS, settings.font_family, settings.font_size)


def fit_axis_band(
    width: float,
    band: AxisBand,
    *,
    min_y_axis_width: float,
    responsive: bool,
) -> AxisBand:
    """Shrink the y axis until the plot keeps its minimum width.

    Below ``min_y_axis_width`` the axis collapses in responsive mode and stays
    at ``min_y_axis_width`` otherwise.
    """
    if band.plot_width(width) >= RESPONSIVE_MIN_WIDTH:
        return band
    shrunk = width - RESPONSIVE_MIN_WIDTH - band.padding - 2.0 * band.margin
    if shrunk >= min_y_axis_width:
        return replace(band, y_axis_width=shrunk)
    if responsive:
        LOGGER.debug("cell width %s too small for the y axis; collapsing it", width)
        return AxisBand(padding=0.0, margin=COLLAPSED_AXIS_MARGIN, y_axis_width=0.0, collapsed=True)
    return replace(band, y_axis_width=min_y_axis_width)


def x_range(band: AxisBand, width: float, position: AxisPosition) -> tuple[float, float]:
    if position == "Left":
        lo, hi = band.y_axis_width + band.padding + band.margin, width - band.margin
    else:
        lo, hi = band.margin, width - band.margin - band.padding - band.y_axis_width
    if hi < lo:
        lo, hi = hi, lo
    return (lo, hi)


def x_axis_fits(height: float, legend_height: float, x_axis_height: float, padding: float) -> bool:
    return height - legend_height - x_axis_height - padding >= RESPONSIVE_MIN_HEIGHT


def needs_fallback_icon(width: float, height: float, band: AxisBand, x_axis_height: float) -> bool:
    return band.plot_width(width) < RESPONSIVE_MIN_WIDTH or height - x_axis_height - band.padding < RESPONSIVE_MIN_HEIGHT


class ResponsiveLayoutResolver:
    """Chooses a legend position the cell can afford.

    ``measure_x_axis(band)`` lays out the x axis for the given band and returns
    its height. The legend only moves towards ``Top`` and then ``None``, so the
    pass loop settles within ``MAX_LAYOUT_PASSES``.
    """

    def __init__(
        self,
        *,
        width: float,
        height: float,
        band: AxisBand,
        min_y_axis_width: float,
        measure_x_axis: Callable[[AxisBand], float],
        responsive: bool = True,
    ) -> None:
        self.width = float(width)
        self.height = float(height)
        self.band = band
        self.min_y_axis_width = min_y_axis_width
        self.measure_x_axis = measure_x_axis
        self.responsive = responsive

    def resolve(self, requested: LegendPosition, legend_height: float) -> LegendDecision:
        position: LegendPosition = requested
        if not self.responsive or position == "None":
            return LegendDecision(position=position, band=self.band, x_axis_height=0.0, passes=0)

        decision: LegendDecision | None = None
        for passes in range(1, MAX_LAYOUT_PASSES + 1):
            decision = self._step(position, legend_height, passes)
            if decision.position in (position, "None"):
                return decision
            LOGGER.debug("legend moved from %s to %s", position, decision.position)
            position = decision.position
        raise AssertionError(f"legend position did not settle within {MAX_LAYOUT_PASSES} passes: {decision}")

    def _step(self, position: LegendPosition, legend_height: float, passes: int) -> LegendDecision:
        narrow = self.band.plot_width(self.width) < RESPONSIVE_MIN_WIDTH
        band = fit_axis_band(self.width, self.band, min_y_axis_width=self.min_y_axis_width, responsive=True)
        if narrow and position not in TOP_LEGEND_POSITIONS:
            return LegendDecision(position="Top", band=band, x_axis_height=0.0, passes=passes)

        x_axis_height = self.measure_x_axis(band)
        if not x_axis_fits(self.height, legend_height, x_axis_height, band.padding):
            x_axis_height = 0.0

        if band.plot_width(self.width) < RESPONSIVE_MIN_WIDTH or not x_axis_fits(
            self.height, legend_height, x_axis_height, band.padding
        ):
            return LegendDecision(position="None", band=band, x_axis_height=x_axis_height, passes=passes)
        return LegendDecision(position=position, band=band, x_axis_height=x_axis_height, passes=passes)


def resolve_legend_position(
    requested: LegendPosition,
    *,
    width: float,
    height: float,
    legend_height: float,
    band: AxisBand,
    min_y_axis_width: float,
    measure_x_axis: Callable[[AxisBand], float],
    responsive: bool = True,
) -> LegendDecision:
    resolver = ResponsiveLayoutResolver(
        width=width,
        height=height,
        band=band,
        min_y_axis_width=min_y_axis_width,
        measure_x_axis=measure_x_axis,
        responsive=responsive,
    )
    return resolver.resolve(requested, legend_height)

