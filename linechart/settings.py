from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
import tomllib
from typing import Any, Literal, Mapping


AxisType = Literal["categorical", "continuous"]
ScaleType = Literal["linear", "log"]
RangePolicy = Literal["common", "separate", "custom"]
AxisPosition = Literal["Left", "Right"]
TitleStyle = Literal["showTitleOnly", "showUnitOnly", "showBoth"]
LineStyle = Literal["solid", "dashed", "dotted"]
LegendPosition = Literal[
    "Top",
    "TopCenter",
    "Bottom",
    "BottomCenter",
    "Left",
    "LeftCenter",
    "Right",
    "RightCenter",
    "None",
]

AXIS_TYPES: tuple[str, ...] = ("categorical", "continuous")
SCALE_TYPES: tuple[str, ...] = ("linear", "log")
RANGE_POLICIES: tuple[str, ...] = ("common", "separate", "custom")
AXIS_POSITIONS: tuple[str, ...] = ("Left", "Right")
TITLE_STYLES: tuple[str, ...] = ("showTitleOnly", "showUnitOnly", "showBoth")
LINE_STYLES: tuple[str, ...] = ("solid", "dashed", "dotted")
LEGEND_POSITIONS: tuple[str, ...] = (
    "Top",
    "TopCenter",
    "Bottom",
    "BottomCenter",
    "Left",
    "LeftCenter",
    "Right",
    "RightCenter",
    "None",
)
DISPLAY_UNIT_VALUES: tuple[float, ...] = (0.0, 1.0, 1e3, 1e6, 1e9, 1e12)


@dataclass(frozen=True)
class GeneralSettings:
    responsive: bool = True


@dataclass(frozen=True)
class XAxisSettings:
    show: bool = True
    axis_type: AxisType = "continuous"
    axis_scale: ScaleType = "linear"
    chart_range_type: RangePolicy = "common"
    chart_range_type_for_scalar_axis: RangePolicy = "common"
    start: float | None = None
    end: float | None = None
    display_units: float = 0.0
    precision: int | None = None
    font_family: str = "Segoe UI"
    font_size: float = 11.0
    axis_color: str = "#777777"
    show_title: bool = False
    axis_title: str = ""
    title_style: TitleStyle = "showTitleOnly"
    title_style_full: TitleStyle = "showBoth"
    title_font_family: str = "Segoe UI"
    title_font_size: float = 11.0
    axis_title_color: str = "#777777"
    show_gridlines: bool = False
    gridlines_color: str = "#EAEAEA"
    stroke_width: float = 1.0
    line_style: LineStyle = "solid"
    maximum_size: float = 25.0


@dataclass(frozen=True)
class YAxisSettings:
    show: bool = True
    position: AxisPosition = "Left"
    axis_scale: ScaleType = "linear"
    chart_range_type: RangePolicy = "common"
    start: float | None = None
    end: float | None = None
    display_units: float = 0.0
    precision: int | None = None
    font_family: str = "Segoe UI"
    font_size: float = 11.0
    axis_color: str = "#777777"
    show_title: bool = False
    axis_title: str = ""
    title_style: TitleStyle = "showTitleOnly"
    title_style_full: TitleStyle = "showBoth"
    title_font_family: str = "Segoe UI"
    title_font_size: float = 11.0
    axis_title_color: str = "#777777"
    show_gridlines: bool = True
    gridlines_color: str = "#EAEAEA"
    stroke_width: float = 1.0
    line_style: LineStyle = "solid"


@dataclass(frozen=True)
class DataLabelSettings:
    show: bool = False
    color: str = "#777777"
    display_units: float = 0.0
    precision: int | None = None
    font_size: float = 9.0
    font_family: str = "Segoe UI"
    label_density: float = 50.0
    show_background: bool = False
    background_color: str = "#FFFFFF"
    transparency: float = 90.0


@dataclass(frozen=True)
class LegendSettings:
    position: LegendPosition = "Top"


@dataclass(frozen=True)
class ChartSettings:
    general: GeneralSettings = field(default_factory=GeneralSettings)
    x_axis: XAxisSettings = field(default_factory=XAxisSettings)
    y_axis: YAxisSettings = field(default_factory=YAxisSettings)
    data_labels: DataLabelSettings = field(default_factory=DataLabelSettings)
    legend: LegendSettings = field(default_factory=LegendSettings)


DEFAULT_SETTINGS = ChartSettings()

_SECTIONS: dict[str, type] = {
    "general": GeneralSettings,
    "x_axis": XAxisSettings,
    "y_axis": YAxisSettings,
    "data_labels": DataLabelSettings,
    "legend": LegendSettings,
}

_CHOICES: dict[str, tuple[str, ...]] = {
    "axis_type": AXIS_TYPES,
    "axis_scale": SCALE_TYPES,
    "chart_range_type": RANGE_POLICIES,
    "chart_range_type_for_scalar_axis": RANGE_POLICIES,
    "position": AXIS_POSITIONS,
    "title_style": TITLE_STYLES,
    "title_style_full": TITLE_STYLES,
    "line_style": LINE_STYLES,
}


def validate_settings(overrides: Mapping[str, Any] | None = None) -> ChartSettings:
    """Validate and merge nested setting overrides against the defaults.

    ``overrides`` maps section names (``x_axis``, ``y_axis``, ``data_labels``,
    ``legend``, ``general``) to mappings of field overrides. Unknown sections or
    fields and out-of-range values raise ``ValueError``.
    """

    raw: dict[str, dict[str, Any]] = asdict(DEFAULT_SETTINGS)
    if overrides:
        for section, values in overrides.items():
            if section not in raw:
                raise ValueError(f"Unknown settings section: {section}")
            if not isinstance(values, Mapping):
                raise ValueError(f"Settings section `{section}` must be a table")
            for key, value in values.items():
                if key not in raw[section]:
                    raise ValueError(f"Unknown setting: {section}.{key}")
                raw[section][key] = value

    built: dict[str, Any] = {}
    for section, cls in _SECTIONS.items():
        built[section] = cls(**{f.name: _validate_field(section, f.name, f.type, raw[section][f.name]) for f in fields(cls)})

    x_axis: XAxisSettings = built["x_axis"]
    if x_axis.chart_range_type == "custom":
        raise ValueError("Setting `x_axis.chart_range_type` must be `common` or `separate`")
    legend: LegendSettings = built["legend"]
    if legend.position not in LEGEND_POSITIONS:
        raise ValueError(f"Setting `legend.position` must be one of {', '.join(LEGEND_POSITIONS)}")
    return ChartSettings(**built)


def load_settings(path: str | Path) -> ChartSettings:
    with Path(path).open("rb") as f:
        raw = tomllib.load(f)
    return validate_settings(raw)


def _validate_field(section: str, name: str, annotation: Any, value: Any) -> Any:
    label = f"{section}.{name}"
    # legend.position is checked against LEGEND_POSITIONS by the caller
    if name in _CHOICES and section != "legend":
        choices = _CHOICES[name]
        if value not in choices:
            raise ValueError(f"Setting `{label}` must be one of {', '.join(choices)}")
        return str(value)

    kind = str(annotation)
    if kind == "bool":
        if not isinstance(value, bool):
            raise ValueError(f"Setting `{label}` must be a boolean")
        return value
    if kind.startswith("float") or kind.startswith("int"):
        if value is None:
            if "None" not in kind:
                raise ValueError(f"Setting `{label}` is required")
            return None
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"Setting `{label}` must be a number")
        return _validate_number(label, name, int(value) if kind.startswith("int") else float(value))
    if kind == "str":
        if not isinstance(value, str):
            raise ValueError(f"Setting `{label}` must be a string")
        return value
    return value


def _validate_number(label: str, name: str, value: float) -> float:
    if name == "display_units" and value not in DISPLAY_UNIT_VALUES:
        raise ValueError(f"Setting `{label}` must be one of 0, 1, 1e3, 1e6, 1e9, 1e12")
    if name in ("font_size", "title_font_size") and value <= 0:
        raise ValueError(f"Setting `{label}` must be a positive number")
    if name in ("label_density", "transparency", "maximum_size") and not 0 <= value <= 100:
        raise ValueError(f"Setting `{label}` must be within [0, 100]")
    if name == "precision" and value < 0:
        raise ValueError(f"Setting `{label}` must be >= 0")
    if name == "stroke_width" and value < 0:
        raise ValueError(f"Setting `{label}` must be >= 0")
    return value
