from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Iterable, Sequence

from linechart.scales import LinearScale, LogScale
from linechart.series import Series, VisualDomain, coerce_number
from linechart.settings import ScaleType, YAxisSettings


LOGGER = logging.getLogger(__name__)

MAX_Y_LOG_DIVIDER = 15.0
MAX_LOG_DIVIDER = 10.0
MIN_DEGENERATE_DELTA = 1.0


@dataclass(frozen=True)
class DomainYResolution:
    """Resolved y range plus the scale type actually usable for it."""

    domain: VisualDomain
    scale_type: ScaleType
    requested_scale: ScaleType = "linear"

    @property
    def demoted(self) -> bool:
        return self.scale_type != self.requested_scale

    def build_scale(self, y_range: tuple[float, float], *, nice: bool = True) -> LinearScale | LogScale:
        """Scale mapping the domain onto ``y_range`` (top pixel, bottom pixel).

        Larger values map closer to the top pixel.
        """
        start = float(self.domain.start)  # type: ignore[arg-type]
        end = float(self.domain.end)  # type: ignore[arg-type]
        top, bottom = float(y_range[0]), float(y_range[1])
        if self.scale_type == "log":
            return LogScale(domain=(start, end), range=(bottom, top))
        scale = LinearScale(domain=(start, end), range=(bottom, top))
        return scale.nice() if nice else scale


def y_extent(series: Iterable[Series]) -> tuple[float | None, float | None]:
    """Running min/max of every y value, ``(None, None)`` without data."""
    start: float | None = None
    end: float | None = None
    for line in series:
        for point in line.points:
            y = coerce_number(point.y)
            if y is None:
                continue
            if start is None or y < start:
                start = y
            if end is None or y > end:
                end = y
    return start, end


def compute_common_domain(series_groups: Iterable[Sequence[Series]], settings: YAxisSettings) -> VisualDomain:
    """Shared y domain over every cell; custom bounds from settings are forced."""
    start: float | None = None
    end: float | None = None
    for group in series_groups:
        lo, hi = y_extent(group)
        if lo is not None and (start is None or lo < start):
            start = lo
        if hi is not None and (end is None or hi > end):
            end = hi

    start_forced = end_forced = False
    if settings.chart_range_type == "custom":
        if settings.start is not None:
            start, start_forced = float(settings.start), True
        if settings.end is not None:
            end, end_forced = float(settings.end), True
    return VisualDomain(start=start, end=end, start_forced=start_forced, end_forced=end_forced)


def resolve_domain_y(
    series: Sequence[Series],
    settings: YAxisSettings,
    shared: VisualDomain | None = None,
) -> DomainYResolution:
    """Resolve one cell's y domain.

    A ``separate`` policy scans the cell's own points. Otherwise the shared
    domain is used; a shared domain with a missing bound is recomputed from the
    cell's data and is not forced.
    """
    if settings.chart_range_type == "separate" or shared is None or not shared.is_resolved:
        if settings.chart_range_type != "separate":
            LOGGER.debug("shared y domain missing; computing it from cell data")
        start, end = y_extent(series)
        start_forced = end_forced = False
    else:
        start, end = shared.start, shared.end
        start_forced, end_forced = shared.start_forced, shared.end_forced

    start = 0.0 if start is None else float(start)
    end = 0.0 if end is None else float(end)
    if end < start:
        start, end = end, start

    scale_type: ScaleType = settings.axis_scale
    if start <= 0 and scale_type == "log":
        LOGGER.debug("y domain starts at %s; log scale demoted to linear", start)
        scale_type = "linear"

    if scale_type == "linear":
        if start == end:
            delta = max(abs(start / 2.0), MIN_DEGENERATE_DELTA)
            start, end = start - delta, end + delta
    elif settings.chart_range_type != "custom" and end / MAX_Y_LOG_DIVIDER <= start:
        start = start / MAX_LOG_DIVIDER

    return DomainYResolution(
        domain=VisualDomain(start=start, end=end, start_forced=start_forced, end_forced=end_forced),
        scale_type=scale_type,
        requested_scale=settings.axis_scale,
    )
