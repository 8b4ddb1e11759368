from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Any, Literal, Sequence

from linechart.formatting import ValueFormatter, display_units_name, is_named_display_unit
from linechart.scales import LinearScale, LogScale, PointScale, Scale
from linechart.series import VisualDomain
from linechart.settings import LineStyle, TitleStyle, XAxisSettings, YAxisSettings
from linechart.text import TextMetrics, truncate_to_width, wrap_to_width
from linechart.x_axis import ScalarAxis, TemporalAxis, XAxisResolution


LOGGER = logging.getLogger(__name__)

LabelOrientation = Literal["horizontal", "rotate35", "rotate90"]

TICK_COUNT_LABEL_FACTOR = 1.8
ROTATE_90_FONT_FACTOR = 1.9
ROTATE_35_LABEL_FACTOR = 1.1
ROTATE_35_DEGREES = 35.0
TICK_PADDING = 3.0
LOG_TICK_DIVIDER = 10.0
Y_LOG_SHOW_DIVIDER = 15.0
Y_TICK_SPACING = 80.0

_DASHARRAYS: dict[str, str] = {
    "solid": "none",
    "dashed": "7, 5",
    "dotted": "2, 2",
}


@dataclass(frozen=True)
class AxisTick:
    """One tick. ``position`` is the pixel along the axis, ``None`` if unprojectable."""

    value: Any
    position: float | None
    text: str
    lines: tuple[str, ...] = ()
    full_text: str | None = None
    gridline: bool = True

    @property
    def visible(self) -> bool:
        return bool(self.text)


@dataclass(frozen=True)
class Gridline:
    x1: float
    y1: float
    x2: float
    y2: float
    color: str
    stroke_width: float
    dasharray: str


@dataclass(frozen=True)
class AxisTitle:
    text: str
    full_text: str
    x: float
    y: float
    height: float


@dataclass(frozen=True)
class XAxisLayout:
    scale: Scale
    ticks: tuple[AxisTick, ...]
    orientation: LabelOrientation
    tick_count: int
    tick_max_width: float
    height: float
    title: AxisTitle | None = None
    gridlines: tuple[Gridline, ...] = ()

    @property
    def visible_ticks(self) -> tuple[AxisTick, ...]:
        return tuple(t for t in self.ticks if t.visible)


@dataclass(frozen=True)
class YAxisLayout:
    scale: Scale
    ticks: tuple[AxisTick, ...]
    position: str
    width: float
    title: AxisTitle | None = None
    gridlines: tuple[Gridline, ...] = ()


def line_style_dasharray(style: LineStyle | str) -> str:
    return _DASHARRAYS.get(style, "none")


def axis_title_text(
    title: str,
    fallback_name: str,
    *,
    display_units: float,
    title_style: TitleStyle,
    title_style_full: TitleStyle,
    use_full_style: bool,
) -> str:
    """Title text with the display-unit name applied per the title style.

    ``title_style_full`` replaces ``title_style`` when ``use_full_style`` is
    set and the units are one of the named magnitudes.
    """
    text = title or fallback_name
    style = title_style_full if use_full_style and is_named_display_unit(display_units) else title_style
    if style == "showUnitOnly":
        return display_units_name(display_units)
    if style == "showBoth":
        return f"{text} ({display_units_name(display_units)})"
    return text


def y_tick_count(plot_height: float) -> int:
    return max(int(math.floor(plot_height / Y_TICK_SPACING)), 2)


def decade_normalized(value: float, base: float = LOG_TICK_DIVIDER) -> float:
    """Scale ``value`` by powers of ``base`` until it reaches 1 from its side."""
    if value <= 0 or not math.isfinite(value):
        return value
    if value < 1:
        while value < 1:
            value *= base
    else:
        while value > 1:
            value /= base
    return value


def is_decade(value: float, base: float = LOG_TICK_DIVIDER) -> bool:
    return math.isclose(decade_normalized(value, base), 1.0, rel_tol=1e-9)


def layout_x_axis(
    resolution: XAxisResolution,
    *,
    settings: XAxisSettings,
    formatter: ValueFormatter,
    metrics: TextMetrics,
    x_range: tuple[float, float],
    plot_width: float,
    plot_height: float,
    axis_padding: float,
    category_name: str = "",
) -> XAxisLayout:
    """Pick tick count and label orientation, finish labels and measure the band.

    Zero categories give an empty, zero-height axis.
    """
    scale: Scale = resolution.scale
    points = resolution.points
    range_width = float(x_range[1] - x_range[0])
    if not points or not settings.show:
        return XAxisLayout(scale=scale, ticks=(), orientation="horizontal", tick_count=0, tick_max_width=0.0, height=0.0)

    font_family = settings.font_family
    font_size = settings.font_size
    labels = [_x_tick_text(resolution, formatter, p) for p in points]
    longest = max((metrics.text_width(t, font_family, font_size) for t in labels), default=0.0)

    orientation: LabelOrientation = "horizontal"
    if resolution.is_categorical:
        tick_count = len(points)
        tick_max_width = range_width / tick_count
        if tick_max_width < font_size:
            orientation = "rotate90"
            scale = PointScale(domain=points, range=x_range)
        elif tick_max_width < ROTATE_90_FONT_FACTOR * font_size:
            orientation = "rotate90"
        elif tick_max_width < ROTATE_35_LABEL_FACTOR * longest:
            orientation = "rotate35"
    else:
        divider = TICK_COUNT_LABEL_FACTOR * longest
        tick_count = int(math.floor(range_width / divider)) if divider > 0 else len(points)
        tick_count = min(max(tick_count, 2), len(points))
        if tick_count == 1 and isinstance(scale, LinearScale):
            scale = PointScale(domain=points, range=x_range)
        tick_max_width = range_width / max(tick_count, 1)

    if isinstance(scale, LogScale):
        values = scale.ticks()
    else:
        values = scale.ticks(tick_count)
    ticks = [_build_tick(scale, v, _x_tick_text(resolution, formatter, v)) for v in values]

    if orientation == "horizontal":
        if isinstance(scale, LogScale):
            ticks = _finish_log_ticks(ticks, resolution, settings, metrics, plot_width)
        else:
            budget = range_width / max(len(ticks), 1)
            ticks = [
                _with_lines(t, wrap_to_width(t.text, budget, metrics, font_family=font_family, font_size=font_size))
                for t in ticks
            ]
    else:
        budget = plot_height * settings.maximum_size / 100.0
        ticks = [
            _with_lines(t, [truncate_to_width(t.text, budget, metrics, font_family=font_family, font_size=font_size)])
            for t in ticks
        ]
        if orientation == "rotate90":
            ticks = _thin_vertical_ticks(ticks, font_size)

    height = _x_labels_height(ticks, orientation, settings, metrics)

    title: AxisTitle | None = None
    if settings.show_title:
        full = axis_title_text(
            settings.axis_title,
            category_name,
            display_units=settings.display_units,
            title_style=settings.title_style,
            title_style_full=settings.title_style_full,
            use_full_style=isinstance(resolution.kind, ScalarAxis),
        )
        title_height = metrics.text_height(settings.title_font_family, settings.title_font_size)
        delta = (title_height - settings.title_font_size) / 2.0
        text = truncate_to_width(
            full,
            range_width,
            metrics,
            font_family=settings.title_font_family,
            font_size=settings.title_font_size,
        )
        title = AxisTitle(
            text=text,
            full_text=full,
            x=(x_range[0] + x_range[1]) / 2.0,
            y=height + title_height - delta,
            height=title_height,
        )
        height = height + title_height + delta

    gridlines: tuple[Gridline, ...] = ()
    if settings.show_gridlines:
        top = -(plot_height - height - axis_padding)
        dash = line_style_dasharray(settings.line_style)
        gridlines = tuple(
            Gridline(
                x1=t.position,
                y1=0.0,
                x2=t.position,
                y2=top,
                color=settings.gridlines_color,
                stroke_width=settings.stroke_width,
                dasharray=dash,
            )
            for t in ticks
            if t.gridline and t.position is not None
        )

    return XAxisLayout(
        scale=scale,
        ticks=tuple(ticks),
        orientation=orientation,
        tick_count=tick_count,
        tick_max_width=tick_max_width,
        height=height,
        title=title,
        gridlines=gridlines,
    )


def layout_y_axis(
    scale: LinearScale | LogScale,
    domain: VisualDomain,
    *,
    settings: YAxisSettings,
    formatter: ValueFormatter,
    metrics: TextMetrics,
    plot_width: float,
    plot_height: float,
    y_axis_width: float,
    axis_padding: float,
    values_name: str = "",
) -> YAxisLayout:
    count = y_tick_count(plot_height)
    font_family = settings.font_family
    font_size = settings.font_size
    ticks: list[AxisTick] = []
    hide_minor = (
        isinstance(scale, LogScale)
        and domain.start is not None
        and domain.end is not None
        and domain.start > 0
        and domain.end / domain.start > Y_LOG_SHOW_DIVIDER
    )
    for value in scale.ticks(count):
        text = formatter.format(value)
        if hide_minor and not is_decade(value):
            ticks.append(AxisTick(value=value, position=scale(value), text="", gridline=False))
            continue
        if isinstance(scale, LinearScale):
            lines = wrap_to_width(text, y_axis_width, metrics, font_family=font_family, font_size=font_size)
        else:
            lines = [text]
        ticks.append(AxisTick(value=value, position=scale(value), text=text, lines=tuple(lines), full_text=text))

    title: AxisTitle | None = None
    if settings.show_title:
        full = axis_title_text(
            settings.axis_title,
            values_name,
            display_units=settings.display_units,
            title_style=settings.title_style,
            title_style_full=settings.title_style_full,
            use_full_style=True,
        )
        title_height = metrics.text_height(settings.title_font_family, settings.title_font_size)
        axis_length = abs(scale.range[0] - scale.range[1])
        text = truncate_to_width(
            full,
            axis_length,
            metrics,
            font_family=settings.title_font_family,
            font_size=settings.title_font_size,
        )
        x = title_height / 2.0 if settings.position == "Left" else plot_width - title_height / 2.0
        title = AxisTitle(text=text, full_text=full, x=x, y=(scale.range[0] + scale.range[1]) / 2.0, height=title_height)

    gridlines: tuple[Gridline, ...] = ()
    if settings.show_gridlines:
        if settings.position == "Left":
            x1, x2 = y_axis_width + axis_padding, plot_width
        else:
            x1, x2 = 0.0, plot_width - y_axis_width - axis_padding
        dash = line_style_dasharray(settings.line_style)
        gridlines = tuple(
            Gridline(
                x1=x1,
                y1=t.position,
                x2=x2,
                y2=t.position,
                color=settings.gridlines_color,
                stroke_width=settings.stroke_width,
                dasharray=dash,
            )
            for t in ticks
            if t.gridline and t.position is not None
        )

    return YAxisLayout(
        scale=scale,
        ticks=tuple(ticks),
        position=settings.position,
        width=y_axis_width,
        title=title,
        gridlines=gridlines,
    )


def _x_tick_text(resolution: XAxisResolution, formatter: ValueFormatter, value: Any) -> str:
    if isinstance(resolution.kind, (TemporalAxis, ScalarAxis)):
        return formatter.format(value)
    return "" if value is None else str(value)


def _build_tick(scale: Scale, value: Any, text: str) -> AxisTick:
    position = scale(value)
    if position is None:
        LOGGER.warning("x tick %r cannot be projected by a %s scale", value, scale.kind)
    return AxisTick(value=value, position=position, text=text, lines=(text,), full_text=text)


def _with_lines(tick: AxisTick, lines: Sequence[str]) -> AxisTick:
    shown = " ".join(lines)
    return AxisTick(
        value=tick.value,
        position=tick.position,
        text=shown,
        lines=tuple(lines),
        full_text=tick.full_text,
        gridline=tick.gridline,
    )


def _finish_log_ticks(
    ticks: list[AxisTick],
    resolution: XAxisResolution,
    settings: XAxisSettings,
    metrics: TextMetrics,
    plot_width: float,
) -> list[AxisTick]:
    start, end = resolution.start, resolution.end
    wide = start is not None and end is not None and start > 0 and end / start > LOG_TICK_DIVIDER
    out: list[AxisTick] = []
    kept: list[int] = []
    for tick in ticks:
        if wide and not is_decade(float(tick.value)):
            out.append(AxisTick(value=tick.value, position=tick.position, text="", gridline=False))
            continue
        kept.append(len(out))
        out.append(tick)

    # Each kept label may use the gap up to the next kept label.
    positions = [out[i].position or 0.0 for i in kept]
    widths = [b - a for a, b in zip(positions, positions[1:])]
    if positions:
        widths.append(plot_width - positions[-1])
    for i, width in zip(kept, widths):
        tick = out[i]
        text = truncate_to_width(tick.text, width, metrics, font_family=settings.font_family, font_size=settings.font_size)
        out[i] = AxisTick(
            value=tick.value,
            position=tick.position,
            text=text,
            lines=(text,),
            full_text=tick.full_text,
            gridline=tick.gridline,
        )
    return out


def _thin_vertical_ticks(ticks: list[AxisTick], font_size: float) -> list[AxisTick]:
    """Drop vertical labels closer than one font size to the last kept label."""
    out: list[AxisTick] = []
    last_x: float | None = None
    for tick in ticks:
        x = tick.position
        if x is None:
            out.append(tick)
            continue
        if last_x is not None and x - last_x < font_size:
            out.append(AxisTick(value=tick.value, position=x, text="", gridline=tick.gridline))
            continue
        last_x = x
        out.append(tick)
    return out


def _x_labels_height(
    ticks: Sequence[AxisTick],
    orientation: LabelOrientation,
    settings: XAxisSettings,
    metrics: TextMetrics,
) -> float:
    visible = [t for t in ticks if t.visible]
    if not visible:
        return 0.0
    line_height = metrics.text_height(settings.font_family, settings.font_size)
    if orientation == "horizontal":
        return max(len(t.lines) or 1 for t in visible) * line_height + TICK_PADDING
    widest = max(metrics.text_width(t.text, settings.font_family, settings.font_size) for t in visible)
    if orientation == "rotate90":
        return widest + TICK_PADDING
    angle = math.radians(ROTATE_35_DEGREES)
    return widest * math.sin(angle) + line_height * math.cos(angle) + TICK_PADDING
