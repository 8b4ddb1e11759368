from __future__ import annotations

from dataclasses import dataclass, replace
import logging
import math
from typing import Any, Callable, Sequence

from linechart.formatting import ValueFormatter
from linechart.series import Series, coerce_number
from linechart.settings import DataLabelSettings
from linechart.text import TextMetrics, points_to_pixels


LOGGER = logging.getLogger(__name__)

LABEL_DELTA_Y = 20.0
LABEL_BACKGROUND_WIDTH_PADDING = 16.2
LABEL_BACKGROUND_HEIGHT_PADDING = 2.0
DATA_LABEL_EPS = 1.0
DATA_LABEL_RADIUS = 2.0
DENSITY_BASE = 0.1
DENSITY_STEP = 0.009

Projector = Callable[[Any], float | None]


@dataclass(frozen=True)
class LabelRect:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def shifted(self, dy: float) -> "LabelRect":
        return replace(self, y=self.y + dy)


@dataclass(frozen=True)
class LabelCandidate:
    anchor_x: float
    anchor_y: float
    text: str
    background: LabelRect
    series_key: str = ""


@dataclass(frozen=True)
class LabelStyle:
    color: str
    font_family: str
    font_size_px: float
    show_background: bool
    background_color: str
    background_opacity: float
    radius: float = DATA_LABEL_RADIUS


@dataclass(frozen=True)
class PlotBounds:
    min_x: float
    max_x: float
    y_range_max: float


def rects_overlap(a: LabelRect, b: LabelRect, eps: float = DATA_LABEL_EPS) -> bool:
    """Axis-aligned overlap with edges shrunk by ``eps``; touching is not overlap."""
    apart_x = a.right - eps < b.x or b.right - eps < a.x
    apart_y = a.bottom - eps < b.y or b.bottom - eps < a.y
    return not apart_x and not apart_y


def label_style(settings: DataLabelSettings) -> LabelStyle:
    return LabelStyle(
        color=settings.color,
        font_family=settings.font_family,
        font_size_px=points_to_pixels(settings.font_size),
        show_background=settings.show_background,
        background_color=settings.background_color,
        background_opacity=(100.0 - settings.transparency) / 100.0,
    )


def data_label_formatter(settings: DataLabelSettings, y_display_units: float, pattern: str | None = None) -> ValueFormatter:
    """Label units fall back to the y-axis units; precision defaults to 1."""
    units = settings.display_units if settings.display_units != 0 else y_display_units
    precision = settings.precision if settings.precision is not None else 1
    return ValueFormatter(pattern=pattern, display_units=units, precision=precision)


def build_candidate(
    px: float,
    py: float,
    text: str,
    *,
    font_family: str,
    font_size_px: float,
    metrics: TextMetrics,
    series_key: str = "",
) -> LabelCandidate:
    width = metrics.text_width(text, font_family, font_size_px)
    height = font_size_px
    y_shift = -font_size_px / 10.0
    background = LabelRect(
        x=px - width / 2.0 - LABEL_BACKGROUND_WIDTH_PADDING / 2.0,
        y=py - height - y_shift - LABEL_DELTA_Y,
        width=width + LABEL_BACKGROUND_WIDTH_PADDING,
        height=height + LABEL_BACKGROUND_HEIGHT_PADDING,
    )
    return LabelCandidate(anchor_x=px, anchor_y=py - LABEL_DELTA_Y, text=text, background=background, series_key=series_key)


def within_bounds(rect: LabelRect, bounds: PlotBounds) -> bool:
    return not (rect.right > bounds.max_x or rect.x < bounds.min_x or rect.bottom > bounds.y_range_max or rect.y < 0)


def place_candidates(candidates: Sequence[LabelCandidate], bounds: PlotBounds) -> list[LabelCandidate]:
    """Accept candidates in order, retrying once lower down on collision."""
    accepted: list[LabelCandidate] = []
    for candidate in candidates:
        if not within_bounds(candidate.background, bounds):
            continue
        if any(rects_overlap(a.background, candidate.background) for a in accepted):
            shift = LABEL_DELTA_Y * 2.0
            candidate = replace(
                candidate,
                anchor_y=candidate.anchor_y + shift,
                background=candidate.background.shifted(shift),
            )
            if candidate.background.bottom > bounds.y_range_max:
                continue
            if any(rects_overlap(a.background, candidate.background) for a in accepted):
                continue
        accepted.append(candidate)
    return accepted


def density_max_count(label_density: float, accepted: int) -> int:
    return _round_half_up((DENSITY_BASE + DENSITY_STEP * label_density) * accepted)


def thin_indices(count: int, max_count: int) -> list[int]:
    """Evenly spread indices, in discovery order, from growing stride divisors.

    The stride never drops below one index, so ``k`` is bounded by
    ``2 * count + 2``.
    """
    if max_count >= count:
        return list(range(count))
    if max_count <= 0:
        return []
    chosen: list[int] = []
    seen: set[int] = set()
    k = 2
    while len(chosen) < max_count and k <= 2 * count + 2:
        stride = max(1, _round_half_up(count / k))
        for i in range(0, count, stride):
            if i in seen:
                continue
            seen.add(i)
            chosen.append(i)
            if len(chosen) >= max_count:
                break
        k += 1
    return chosen


def thin_labels(
    accepted: Sequence[LabelCandidate],
    *,
    label_density: float,
    categorical: bool,
) -> list[LabelCandidate]:
    if categorical:
        return list(accepted)
    max_count = density_max_count(label_density, len(accepted))
    indices = thin_indices(len(accepted), max_count)
    if len(indices) < len(accepted):
        LOGGER.debug("density %s keeps %d of %d data labels", label_density, len(indices), len(accepted))
    return [accepted[i] for i in indices]


def place_labels(
    series: Sequence[Series],
    *,
    x_scale: Projector,
    y_scale: Projector,
    bounds: PlotBounds,
    settings: DataLabelSettings,
    formatter: ValueFormatter,
    metrics: TextMetrics,
    categorical: bool,
) -> list[LabelCandidate]:
    """Non-overlapping data labels for every series point, thinned by density."""
    if not settings.show:
        return []
    font_size_px = points_to_pixels(settings.font_size)
    candidates: list[LabelCandidate] = []
    for line in series:
        for point in line.points:
            y = coerce_number(point.y)
            px = x_scale(point.x)
            py = y_scale(y) if y is not None else None
            if px is None:
                LOGGER.warning("series %s: x value %r is not on the x scale", line.key, point.x)
                continue
            if py is None or not (math.isfinite(px) and math.isfinite(py)):
                continue
            candidates.append(
                build_candidate(
                    px,
                    py,
                    formatter.format(y),
                    font_family=settings.font_family,
                    font_size_px=font_size_px,
                    metrics=metrics,
                    series_key=line.key,
                )
            )
    accepted = place_candidates(candidates, bounds)
    return thin_labels(accepted, label_density=settings.label_density, categorical=categorical)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
