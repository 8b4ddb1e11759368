from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
import math
from typing import Any, ClassVar, Literal

import numpy as np

from linechart.series import coerce_datetime


ScaleKind = Literal["point", "linear", "log", "time"]

_E10 = math.sqrt(50.0)
_E5 = math.sqrt(10.0)
_E2 = math.sqrt(2.0)
_EPOCH = datetime(1970, 1, 1)

_SECOND = 1.0
_MINUTE = 60.0
_HOUR = 3600.0
_DAY = 86400.0
_WEEK = 7 * _DAY
_MONTH = 30 * _DAY
_YEAR = 365 * _DAY

# (unit, step, approximate duration in seconds), ascending by duration
_TIME_TICK_INTERVALS: tuple[tuple[str, int, float], ...] = (
    ("second", 1, _SECOND),
    ("second", 5, 5 * _SECOND),
    ("second", 15, 15 * _SECOND),
    ("second", 30, 30 * _SECOND),
    ("minute", 1, _MINUTE),
    ("minute", 5, 5 * _MINUTE),
    ("minute", 15, 15 * _MINUTE),
    ("minute", 30, 30 * _MINUTE),
    ("hour", 1, _HOUR),
    ("hour", 3, 3 * _HOUR),
    ("hour", 6, 6 * _HOUR),
    ("hour", 12, 12 * _HOUR),
    ("day", 1, _DAY),
    ("day", 2, 2 * _DAY),
    ("week", 1, _WEEK),
    ("month", 1, _MONTH),
    ("month", 3, 3 * _MONTH),
    ("year", 1, _YEAR),
)
_TIME_TICK_DURATIONS = [d for _, _, d in _TIME_TICK_INTERVALS]


def category_key(value: Any) -> Any:
    if isinstance(value, (list, dict, set)):
        return repr(value)
    return value


@dataclass(frozen=True)
class PointScale:
    """Evenly spaced positions for an ordered category sequence.

    The first and last categories sit on the range ends; a single category sits
    in the middle of the range.
    """

    domain: tuple[Any, ...]
    range: tuple[float, float]
    kind: ClassVar[ScaleKind] = "point"
    _index: dict[Any, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        index: dict[Any, int] = {}
        for i, value in enumerate(self.domain):
            index.setdefault(category_key(value), i)
        object.__setattr__(self, "_index", index)

    @property
    def step(self) -> float:
        n = len(self.domain)
        if n == 0:
            return 0.0
        return (self.range[1] - self.range[0]) / max(1, n - 1)

    def __call__(self, value: Any) -> float | None:
        i = self._index.get(category_key(value))
        if i is None:
            return None
        r0, r1 = self.range
        if len(self.domain) == 1:
            return r0 + (r1 - r0) * 0.5
        return r0 + self.step * i

    def ticks(self, count: int | None = None) -> list[Any]:
        return list(self.domain)


@dataclass(frozen=True)
class LinearScale:
    domain: tuple[float, float]
    range: tuple[float, float]
    kind: ClassVar[ScaleKind] = "linear"

    def __call__(self, value: Any) -> float | None:
        try:
            v = float(value)
        except (TypeError, ValueError):
            return None
        d0, d1 = self.domain
        r0, r1 = self.range
        if d1 == d0:
            return r0 + (r1 - r0) * 0.5
        return r0 + (v - d0) / (d1 - d0) * (r1 - r0)

    def invert(self, pixel: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if r1 == r0:
            return d0 + (d1 - d0) * 0.5
        return d0 + (pixel - r0) / (r1 - r0) * (d1 - d0)

    def ticks(self, count: int = 10) -> list[float]:
        return linear_ticks(self.domain[0], self.domain[1], count).tolist()

    def nice(self, count: int = 10) -> "LinearScale":
        return LinearScale(domain=nice_domain(self.domain[0], self.domain[1], count), range=self.range)


@dataclass(frozen=True)
class LogScale:
    domain: tuple[float, float]
    range: tuple[float, float]
    base: float = 10.0
    kind: ClassVar[ScaleKind] = "log"

    def __call__(self, value: Any) -> float | None:
        try:
            v = float(value)
        except (TypeError, ValueError):
            return None
        d0, d1 = self.domain
        if v <= 0 or d0 <= 0 or d1 <= 0:
            return None
        r0, r1 = self.range
        l0 = math.log(d0, self.base)
        l1 = math.log(d1, self.base)
        if l1 == l0:
            return r0 + (r1 - r0) * 0.5
        return r0 + (math.log(v, self.base) - l0) / (l1 - l0) * (r1 - r0)

    def invert(self, pixel: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        l0 = math.log(d0, self.base)
        l1 = math.log(d1, self.base)
        if r1 == r0:
            return self.base ** (l0 + (l1 - l0) * 0.5)
        return self.base ** (l0 + (pixel - r0) / (r1 - r0) * (l1 - l0))

    def ticks(self, count: int = 10) -> list[float]:
        return log_ticks(self.domain[0], self.domain[1], count, base=self.base)


@dataclass(frozen=True)
class TimeScale:
    domain: tuple[datetime, datetime]
    range: tuple[float, float]
    kind: ClassVar[ScaleKind] = "time"

    def __call__(self, value: Any) -> float | None:
        moment = coerce_datetime(value)
        if moment is None:
            return None
        t0 = _seconds(self.domain[0])
        t1 = _seconds(self.domain[1])
        r0, r1 = self.range
        if t1 == t0:
            return r0 + (r1 - r0) * 0.5
        return r0 + (_seconds(moment) - t0) / (t1 - t0) * (r1 - r0)

    def invert(self, pixel: float) -> datetime:
        t0 = _seconds(self.domain[0])
        t1 = _seconds(self.domain[1])
        r0, r1 = self.range
        if r1 == r0:
            return _EPOCH + timedelta(seconds=t0 + (t1 - t0) * 0.5)
        return _EPOCH + timedelta(seconds=t0 + (pixel - r0) / (r1 - r0) * (t1 - t0))

    def ticks(self, count: int = 10) -> list[datetime]:
        return time_ticks(self.domain[0], self.domain[1], count)


Scale = PointScale | LinearScale | LogScale | TimeScale


def tick_step(start: float, stop: float, count: int) -> float:
    step0 = abs(stop - start) / max(1, count)
    if step0 <= 0 or not math.isfinite(step0):
        return 0.0
    step1 = 10.0 ** math.floor(math.log10(step0))
    error = step0 / step1
    if error >= _E10:
        step1 *= 10.0
    elif error >= _E5:
        step1 *= 5.0
    elif error >= _E2:
        step1 *= 2.0
    return step1


def linear_ticks(start: float, stop: float, count: int) -> np.ndarray:
    if count <= 0 or not (math.isfinite(start) and math.isfinite(stop)):
        return np.asarray([], dtype=np.float64)
    if start == stop:
        return np.asarray([start], dtype=np.float64)
    reverse = stop < start
    lo, hi = (stop, start) if reverse else (start, stop)
    step = tick_step(lo, hi, count)
    if step == 0:
        return np.asarray([], dtype=np.float64)
    if step < 1:
        # Divide by the inverse step so 0.1-style ticks come out exact.
        inv = round(1.0 / step)
        i0 = math.ceil(lo * inv - 1e-9)
        i1 = math.floor(hi * inv + 1e-9)
        ticks = np.arange(i0, i1 + 1, dtype=np.float64) / inv
    else:
        i0 = math.ceil(lo / step - 1e-9)
        i1 = math.floor(hi / step + 1e-9)
        ticks = np.arange(i0, i1 + 1, dtype=np.float64) * step
    return ticks[::-1] if reverse else ticks


def nice_domain(start: float, stop: float, count: int = 10) -> tuple[float, float]:
    """Extend a domain outward to round tick boundaries."""
    reverse = stop < start
    lo, hi = (stop, start) if reverse else (start, stop)
    prev_step: float | None = None
    for _ in range(10):
        step = tick_step(lo, hi, count)
        if step == 0 or step == prev_step:
            break
        if step < 1:
            inv = round(1.0 / step)
            lo = math.floor(lo * inv + 1e-9) / inv
            hi = math.ceil(hi * inv - 1e-9) / inv
        else:
            lo = math.floor(lo / step + 1e-9) * step
            hi = math.ceil(hi / step - 1e-9) * step
        prev_step = step
    return (hi, lo) if reverse else (lo, hi)


def log_ticks(start: float, stop: float, count: int = 10, *, base: float = 10.0) -> list[float]:
    if start <= 0 or stop <= 0 or count <= 0:
        return []
    reverse = stop < start
    u, v = (stop, start) if reverse else (start, stop)
    i = math.log(u, base)
    j = math.log(v, base)
    out: list[float] = []
    if float(base).is_integer() and j - i < count:
        first = math.floor(i)
        last = math.ceil(j)
        for p in range(first, last + 1):
            for k in range(1, int(base)):
                t = k / base ** (-p) if p < 0 else k * base**p
                if t < u:
                    continue
                if t > v:
                    break
                out.append(float(t))
        if len(out) * 2 < count:
            out = [float(t) for t in linear_ticks(u, v, count).tolist()]
    else:
        exps = linear_ticks(i, j, int(min(j - i, count)))
        out = [float(base**z) for z in exps.tolist()]
    return out[::-1] if reverse else out


def time_ticks(start: datetime, stop: datetime, count: int = 10) -> list[datetime]:
    if count <= 0:
        return []
    reverse = stop < start
    lo, hi = (stop, start) if reverse else (start, stop)
    span = _seconds(hi) - _seconds(lo)
    if span <= 0:
        return [lo]
    target = span / count
    i = bisect_right(_TIME_TICK_DURATIONS, target)
    if i == len(_TIME_TICK_INTERVALS):
        step = max(1, int(tick_step(lo.year, hi.year, count)))
        out = _calendar_ticks(lo, hi, "year", step)
    elif i == 0:
        step = max(1e-3, tick_step(0.0, span, count))
        out = _fixed_ticks(lo, hi, step)
    else:
        prev_duration = _TIME_TICK_DURATIONS[i - 1]
        if target / prev_duration < _TIME_TICK_DURATIONS[i] / target:
            i -= 1
        unit, step, _ = _TIME_TICK_INTERVALS[i]
        if unit in ("second", "minute", "hour"):
            size = {"second": _SECOND, "minute": _MINUTE, "hour": _HOUR}[unit]
            out = _fixed_ticks(lo, hi, size * step)
        else:
            out = _calendar_ticks(lo, hi, unit, step)
    return out[::-1] if reverse else out


def _fixed_ticks(lo: datetime, hi: datetime, step_seconds: float) -> list[datetime]:
    t0 = math.ceil(_seconds(lo) / step_seconds - 1e-9)
    t1 = math.floor(_seconds(hi) / step_seconds + 1e-9)
    return [_EPOCH + timedelta(seconds=k * step_seconds) for k in range(t0, t1 + 1)]


def _calendar_ticks(lo: datetime, hi: datetime, unit: str, step: int) -> list[datetime]:
    out: list[datetime] = []
    if unit == "day":
        cursor = datetime(lo.year, lo.month, lo.day)
        while cursor <= hi:
            if cursor >= lo and (cursor.day - 1) % step == 0:
                out.append(cursor)
            cursor += timedelta(days=1)
    elif unit == "week":
        cursor = datetime(lo.year, lo.month, lo.day)
        # weeks start on Sunday
        cursor -= timedelta(days=(cursor.weekday() + 1) % 7)
        while cursor <= hi:
            if cursor >= lo:
                out.append(cursor)
            cursor += timedelta(weeks=step)
    elif unit == "month":
        year, month = lo.year, lo.month
        while True:
            cursor = datetime(year, month, 1)
            if cursor > hi:
                break
            if cursor >= lo and (month - 1) % step == 0:
                out.append(cursor)
            month += 1
            if month > 12:
                year, month = year + 1, 1
    else:
        year = lo.year - lo.year % step
        while year <= hi.year:
            if 1 <= year <= 9999:
                cursor = datetime(year, 1, 1)
                if lo <= cursor <= hi:
                    out.append(cursor)
            year += step
    return out


def _seconds(moment: datetime | date) -> float:
    if not isinstance(moment, datetime):
        moment = datetime(moment.year, moment.month, moment.day)
    return (moment - _EPOCH).total_seconds()
