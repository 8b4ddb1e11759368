from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
import math
import re
from typing import Any


NICE_DATE_FORMAT = "%d %b %Y"
NAMED_DISPLAY_UNITS: dict[float, str] = {
    1e3: "Thousands",
    1e6: "Millions",
    1e9: "Billions",
    1e12: "Trillions",
}
NO_UNITS_NAME = "No Units"
_UNIT_SUFFIXES: dict[float, str] = {
    1e3: "K",
    1e6: "M",
    1e9: "bn",
    1e12: "T",
}
_AUTO_DECIMALS = 6
_AUTO_SCALED_DECIMALS = 2
_PATTERN_CORE = re.compile(r"[#0,.]+")
_NON_NUMERIC = re.compile(r"[^-.0-9]")


@dataclass(frozen=True)
class _NumberPattern:
    prefix: str = ""
    suffix: str = ""
    decimals: int | None = None
    grouping: bool = False
    percent: bool = False


@dataclass(frozen=True)
class ValueFormatter:
    """Formats axis values, tick values and data-label values for display.

    ``display_units`` is ``0`` for automatic units (picked per value from its
    magnitude), ``1`` for no scaling, or one of the named magnitudes
    ``1e3``/``1e6``/``1e9``/``1e12``. ``pattern`` is a numeric pattern such as
    ``"#,0.00"``, ``"0%"`` or ``"$#,0"``, or a ``strftime`` pattern for dates.
    """

    pattern: str | None = None
    display_units: float = 1.0
    precision: int | None = None

    def format(self, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, (datetime, date)):
            return self._format_date(value)
        if isinstance(value, bool):
            return str(value)
        if isinstance(value, (int, float)):
            return self._format_number(float(value))
        return str(value)

    def __call__(self, value: Any) -> str:
        return self.format(value)

    def _format_date(self, value: date) -> str:
        pattern = self.pattern if self.pattern and "%" in self.pattern else NICE_DATE_FORMAT
        return value.strftime(pattern)

    def _format_number(self, value: float) -> str:
        if not math.isfinite(value):
            return str(value)
        parsed = _parse_pattern(self.pattern)
        scaled = value * 100.0 if parsed.percent else value
        unit = 1.0 if parsed.percent else self._resolve_unit(scaled)
        if unit > 1.0:
            scaled = scaled / unit
        decimals = self.precision if self.precision is not None else parsed.decimals
        if decimals is None:
            text = _format_decimal(scaled, _AUTO_SCALED_DECIMALS if unit > 1.0 else _AUTO_DECIMALS, trim=True, grouping=parsed.grouping)
        else:
            text = _format_decimal(scaled, decimals, trim=False, grouping=parsed.grouping)
        return f"{parsed.prefix}{text}{_UNIT_SUFFIXES.get(unit, '')}{parsed.suffix}"

    def _resolve_unit(self, value: float) -> float:
        if self.display_units == 0:
            magnitude = abs(value)
            for unit in (1e12, 1e9, 1e6, 1e3):
                if magnitude >= unit:
                    return unit
            return 1.0
        if self.display_units in _UNIT_SUFFIXES:
            return float(self.display_units)
        return 1.0


def display_units_name(display_units: float) -> str:
    return NAMED_DISPLAY_UNITS.get(float(display_units), NO_UNITS_NAME)


def is_named_display_unit(display_units: float) -> bool:
    return float(display_units) in NAMED_DISPLAY_UNITS


def parse_formatted_number(text: str) -> float:
    """Read a number back out of formatted text, ignoring units and symbols.

    Text without any digits reads as ``0``.
    """
    cleaned = _NON_NUMERIC.sub("", text)
    if cleaned in ("", "-", ".", "-."):
        return 0.0
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def format_precision_factor(pattern: str | None) -> float:
    """Factor that turns a value in display units back into a raw value.

    ``"0%"`` formats ``1`` as ``"100%"``, so configured bounds are scaled by
    ``0.01``; plain patterns give ``1``.
    """
    sample = ValueFormatter(pattern=pattern, display_units=1.0, precision=None).format(1.0)
    shown = parse_formatted_number(sample)
    if shown == 0:
        return 1.0
    return 1.0 / shown


def _parse_pattern(pattern: str | None) -> _NumberPattern:
    if not pattern or pattern in ("General", "G", "g"):
        return _NumberPattern()
    percent = "%" in pattern
    match = _PATTERN_CORE.search(pattern)
    if match is None:
        return _NumberPattern(percent=percent, suffix="%" if percent else "")
    core = match.group(0)
    decimals = len(core.split(".", 1)[1].replace(",", "")) if "." in core else 0
    return _NumberPattern(
        prefix=pattern[: match.start()],
        suffix=pattern[match.end() :],
        decimals=decimals,
        grouping="," in core.split(".", 1)[0],
        percent=percent,
    )


def _format_decimal(value: float, decimals: int, *, trim: bool, grouping: bool) -> str:
    d = Decimal(repr(value))
    quant = Decimal("1").scaleb(-decimals)
    try:
        q = d.quantize(quant)
    except InvalidOperation:
        q = d
    out = format(q, ",f" if grouping else "f")
    if trim and "." in out:
        out = out.rstrip("0").rstrip(".")
    if out in ("-0", "-0." + "0" * decimals):
        out = out[1:]
    return out
