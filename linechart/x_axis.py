from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
import logging
from typing import Any, Literal, Sequence

from linechart.formatting import ValueFormatter, format_precision_factor, parse_formatted_number
from linechart.scales import LinearScale, LogScale, PointScale, Scale, ScaleKind, TimeScale, category_key
from linechart.series import ChartModel, Series, SeriesPoint, coerce_datetime, coerce_number
from linechart.settings import RangePolicy, ScaleType, XAxisSettings


LOGGER = logging.getLogger(__name__)

MAX_LOG_SCALE_DIVIDER = 10.0


@dataclass(frozen=True)
class OrdinalAxis:
    """Discrete, non-numeric, non-temporal categories; always a point scale."""

    policy: Literal["common", "separate"] = "common"

    @property
    def categorical_ticks(self) -> bool:
        return True


@dataclass(frozen=True)
class TemporalAxis:
    categorical_ticks: bool = False
    policy: Literal["common", "separate"] = "common"


@dataclass(frozen=True)
class ScalarAxis:
    categorical_ticks: bool = False
    scale: ScaleType = "linear"
    policy: RangePolicy = "common"
    start: float | None = None
    end: float | None = None


AxisKind = OrdinalAxis | TemporalAxis | ScalarAxis


@dataclass(frozen=True)
class XAxisResolution:
    scale: Scale
    points: tuple[Any, ...]
    series: tuple[Series, ...]
    start: float | None = None
    end: float | None = None
    kind: AxisKind = OrdinalAxis()

    @property
    def scale_kind(self) -> ScaleKind:
        return self.scale.kind

    @property
    def is_categorical(self) -> bool:
        return self.kind.categorical_ticks

    @property
    def is_empty(self) -> bool:
        return not self.points


def axis_kind_from_settings(model: ChartModel, settings: XAxisSettings) -> AxisKind:
    categorical = settings.axis_type == "categorical"
    if model.category_is_date:
        return TemporalAxis(categorical_ticks=categorical, policy=_two_way_policy(settings.chart_range_type))
    if model.category_is_scalar:
        return ScalarAxis(
            categorical_ticks=categorical,
            scale=settings.axis_scale,
            policy=settings.chart_range_type_for_scalar_axis,
            start=settings.start,
            end=settings.end,
        )
    return OrdinalAxis(policy=_two_way_policy(settings.chart_range_type))


def as_categorical(kind: AxisKind) -> AxisKind:
    if isinstance(kind, OrdinalAxis):
        return kind
    return replace(kind, categorical_ticks=True)


class ScaleResolver:
    """Builds the x scale and filters categories and series for one pass.

    ``formatter`` is the x-axis display formatter; categories and point x
    values are matched through their formatted text, and custom scalar bounds
    are read in display units of its pattern.
    """

    def __init__(self, formatter: ValueFormatter | None = None) -> None:
        self.formatter = formatter or ValueFormatter()
        self._bounds_formatter = ValueFormatter(pattern=self.formatter.pattern, display_units=1.0, precision=None)
        self._precision_factor = format_precision_factor(self.formatter.pattern)

    def resolve(
        self,
        kind: AxisKind,
        categories: Sequence[Any],
        series: Sequence[Series],
        x_range: tuple[float, float],
    ) -> XAxisResolution:
        x_range = (float(x_range[0]), float(x_range[1]))
        if isinstance(kind, TemporalAxis):
            resolution = self._resolve_temporal(kind, categories, tuple(series), x_range)
        elif isinstance(kind, ScalarAxis):
            resolution = self._resolve_scalar(kind, categories, tuple(series), x_range)
        else:
            resolution = self._resolve_ordinal(kind, categories, tuple(series), x_range)

        if len(resolution.points) == 1 and not isinstance(resolution.scale, PointScale):
            resolution = replace(resolution, scale=PointScale(domain=resolution.points, range=x_range))
        return resolution

    def category_label(self, kind: AxisKind, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(kind, TemporalAxis):
            moment = coerce_datetime(value)
            return moment.date().isoformat() if moment is not None else str(value)
        if isinstance(kind, ScalarAxis):
            return self.formatter.format(value)
        return str(value)

    def _resolve_temporal(
        self,
        kind: TemporalAxis,
        categories: Sequence[Any],
        series: tuple[Series, ...],
        x_range: tuple[float, float],
    ) -> XAxisResolution:
        dates = _coerce_dates(categories)
        series = tuple(_with_temporal_x(line) for line in series)
        if not dates:
            return _empty(kind, series, x_range)

        min_date: datetime | None = dates[0]
        max_date: datetime | None = dates[-1]
        points: list[datetime] = dates
        if kind.policy == "separate":
            xs = [p.x for line in series for p in line.points]
            if xs:
                min_date, max_date = min(xs), max(xs)
                points = self._dates_within(kind, dates, min_date, max_date)
            else:
                min_date = max_date = None
                points = []

        if kind.categorical_ticks or min_date is None or max_date is None:
            scale: Scale = PointScale(domain=tuple(points), range=x_range)
        else:
            scale = TimeScale(domain=(min_date, max_date), range=x_range)
        return XAxisResolution(scale=scale, points=tuple(points), series=series, kind=kind)

    def _dates_within(self, kind: TemporalAxis, dates: list[datetime], lo: datetime, hi: datetime) -> list[datetime]:
        # The early exit past `hi` is only valid on ascending input.
        ascending = all(a <= b for a, b in zip(dates, dates[1:]))
        seen: set[str] = set()
        out: list[datetime] = []
        for item in dates:
            key = self.category_label(kind, item)
            if lo <= item <= hi and key not in seen:
                seen.add(key)
                out.append(item)
            if ascending and item > hi:
                break
        return out

    def _resolve_scalar(
        self,
        kind: ScalarAxis,
        categories: Sequence[Any],
        series: tuple[Series, ...],
        x_range: tuple[float, float],
    ) -> XAxisResolution:
        numbers = [n for n in (coerce_number(c) for c in categories) if n is not None]
        if not numbers:
            return _empty(kind, series, x_range)

        start: float | None
        end: float | None
        points: list[float] = numbers
        if kind.policy == "custom":
            start_shown = kind.start if kind.start is not None else self._shown_value(numbers[0])
            end_shown = kind.end if kind.end is not None else self._shown_value(numbers[-1])
            start = start_shown * self._precision_factor
            end = end_shown * self._precision_factor
            series = _clip_series(series, start, end)
            points = []
            for item in numbers:
                if start <= item <= end and item not in points:
                    points.append(item)
        elif kind.policy == "separate":
            xs = [x for x in (coerce_number(p.x) for line in series for p in line.points) if x is not None]
            start = min(xs) if xs else None
            end = max(xs) if xs else None
            points = self._referenced(kind, points, series)
        else:
            start = numbers[0]
            end = numbers[-1]

        if kind.categorical_ticks or start is None or end is None:
            scale: Scale = PointScale(domain=tuple(points), range=x_range)
        else:
            scale_type = kind.scale
            if scale_type == "log" and start <= 0:
                LOGGER.debug("x domain starts at %s; log scale demoted to linear", start)
                scale_type = "linear"
            if scale_type == "linear":
                scale = LinearScale(domain=(start, end), range=x_range)
            else:
                if kind.policy != "custom" and end / MAX_LOG_SCALE_DIVIDER <= start:
                    start = start / MAX_LOG_SCALE_DIVIDER
                scale = LogScale(domain=(start, end), range=x_range)
        return XAxisResolution(scale=scale, points=tuple(points), series=series, start=start, end=end, kind=kind)

    def _resolve_ordinal(
        self,
        kind: OrdinalAxis,
        categories: Sequence[Any],
        series: tuple[Series, ...],
        x_range: tuple[float, float],
    ) -> XAxisResolution:
        points = list(categories)
        if kind.policy == "separate":
            points = self._referenced(kind, points, series)
        return XAxisResolution(scale=PointScale(domain=tuple(points), range=x_range), points=tuple(points), series=series, kind=kind)

    def _referenced(self, kind: AxisKind, points: list[Any], series: tuple[Series, ...]) -> list[Any]:
        """Keep only categories some series point refers to, in category order."""
        used = {self.category_label(kind, p.x) for line in series for p in line.points}
        return [item for item in points if self.category_label(kind, item) in used]

    def _shown_value(self, value: float) -> float:
        return parse_formatted_number(self._bounds_formatter.format(value))


def _empty(kind: AxisKind, series: tuple[Series, ...], x_range: tuple[float, float]) -> XAxisResolution:
    return XAxisResolution(scale=PointScale(domain=(), range=x_range), points=(), series=series, kind=kind)


def _two_way_policy(policy: RangePolicy) -> Literal["common", "separate"]:
    return "separate" if policy == "separate" else "common"


def _coerce_dates(categories: Sequence[Any]) -> list[datetime]:
    out: list[datetime] = []
    for value in categories:
        moment = coerce_datetime(value)
        if moment is None:
            LOGGER.warning("dropping temporal category that is not a date: %r", value)
            continue
        out.append(moment)
    return out


def _with_temporal_x(line: Series) -> Series:
    points: list[SeriesPoint] = []
    for point in line.points:
        moment = coerce_datetime(point.x)
        if moment is None:
            LOGGER.warning("dropping point of series %s with non-date x: %r", line.key, point.x)
            continue
        points.append(point if moment == point.x else SeriesPoint(x=moment, y=point.y))
    return line.with_points(points)


def _clip_series(series: tuple[Series, ...], start: float, end: float) -> tuple[Series, ...]:
    """Drop points outside ``[start, end]`` and repeated x values."""
    out: list[Series] = []
    for line in series:
        seen: set[Any] = set()
        kept: list[SeriesPoint] = []
        for point in line.points:
            x = coerce_number(point.x)
            key = category_key(point.x)
            if x is None or not start <= x <= end or key in seen:
                continue
            seen.add(key)
            kept.append(point)
        out.append(line.with_points(kept))
    return tuple(out)
