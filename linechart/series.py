from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from typing import Any, Literal


CategoryKind = Literal["ordinal", "temporal", "scalar"]
CATEGORY_KINDS: tuple[str, ...] = ("ordinal", "temporal", "scalar")

Category = Any


@dataclass(frozen=True)
class SeriesPoint:
    x: Category
    y: float


@dataclass(frozen=True)
class SeriesStyle:
    color: str | None = None
    stroke_width: float | None = None
    line_style: str | None = None
    show_markers: bool | None = None
    marker_size: float | None = None
    stepped: bool | None = None


@dataclass(frozen=True)
class Series:
    key: str
    name: str
    points: tuple[SeriesPoint, ...] = ()
    style: SeriesStyle = field(default_factory=SeriesStyle)

    def with_points(self, points: tuple[SeriesPoint, ...] | list[SeriesPoint]) -> "Series":
        return replace(self, points=tuple(points))


@dataclass(frozen=True)
class Viewport:
    width: float
    height: float


@dataclass(frozen=True)
class VisualDomain:
    start: float | None
    end: float | None
    start_forced: bool = False
    end_forced: bool = False

    @property
    def is_resolved(self) -> bool:
        return self.start is not None and self.end is not None


@dataclass(frozen=True)
class ChartModel:
    """Everything about the data that is fixed for one render pass."""

    categories: tuple[Category, ...]
    category_kind: CategoryKind = "ordinal"
    category_name: str = ""
    values_name: str = ""
    category_format: str | None = None
    value_format: str | None = None

    @property
    def category_is_date(self) -> bool:
        return self.category_kind == "temporal"

    @property
    def category_is_scalar(self) -> bool:
        return self.category_kind == "scalar"


def coerce_datetime(value: Any) -> datetime | None:
    """Coerce a temporal category to a naive UTC datetime.

    Numbers are epoch milliseconds. Aware datetimes are shifted to UTC so that
    categories from mixed sources stay comparable.
    """
    if isinstance(value, datetime):
        out = value
    elif isinstance(value, date):
        out = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        out = datetime.fromtimestamp(float(value) / 1000.0, tz=timezone.utc)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            out = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if out.tzinfo is not None:
        out = out.astimezone(timezone.utc).replace(tzinfo=None)
    return out


def coerce_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
