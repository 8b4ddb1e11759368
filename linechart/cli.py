from __future__ import annotations

import argparse
from datetime import date, datetime
import json
import logging
from pathlib import Path
from typing import Any, Sequence

from linechart.adapters.normalize import normalize_chart
from linechart.axis_layout import AxisTick, Gridline
from linechart.errors import LayoutError
from linechart.labels import LabelCandidate
from linechart.render import CellLayout, LineChartLayout
from linechart.series import Viewport
from linechart.settings import DEFAULT_SETTINGS, load_settings
from linechart.text import FixedWidthTextMetrics, PillowTextMetrics, TextMetrics


LOGGER = logging.getLogger(__name__)


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="linechart")
    sub = parser.add_subparsers(dest="command", required=True)

    layout = sub.add_parser("layout", help="lay out one chart cell and print it as JSON")
    layout.add_argument("data", type=Path)
    layout.add_argument("--width", type=float, required=True)
    layout.add_argument("--height", type=float, required=True)
    layout.add_argument("--settings", type=Path, default=None)
    layout.add_argument("--legend-height", type=float, default=0.0)
    layout.add_argument("--metrics", choices=["pillow", "fixed"], default="pillow")
    layout.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], default="WARNING")

    count = sub.add_parser("count", help="print how many x categories survive range filtering")
    count.add_argument("data", type=Path)
    count.add_argument("--settings", type=Path, default=None)
    count.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], default="WARNING")
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    try:
        settings = load_settings(args.settings) if args.settings is not None else DEFAULT_SETTINGS
        with args.data.open("r", encoding="utf-8") as f:
            model, series = normalize_chart(json.load(f))
    except (OSError, ValueError) as exc:
        # LayoutError and json.JSONDecodeError are both ValueErrors.
        LOGGER.error("%s", exc)
        return 2

    if args.command == "count":
        chart = LineChartLayout(model, settings, metrics=FixedWidthTextMetrics())
        print(chart.max_x_category_count(series))
        return 0

    if args.command == "layout":
        if args.width <= 0 or args.height <= 0:
            LOGGER.error("%s", LayoutError("--width and --height must be positive"))
            return 2
        metrics: TextMetrics = PillowTextMetrics() if args.metrics == "pillow" else FixedWidthTextMetrics()
        chart = LineChartLayout(model, settings, metrics=metrics)
        cell = chart.layout_cell("main", series, Viewport(args.width, args.height), legend_height=args.legend_height)
        print(json.dumps(cell_to_dict(cell), indent=2, sort_keys=True))
        return 0

    raise RuntimeError(f"unsupported command: {args.command}")


def cell_to_dict(cell: CellLayout) -> dict[str, Any]:
    out: dict[str, Any] = {
        "key": cell.key,
        "viewport": {"width": cell.viewport.width, "height": cell.viewport.height},
        "legend_position": cell.legend.position,
        "band": {
            "padding": cell.band.padding,
            "margin": cell.band.margin,
            "y_axis_width": cell.band.y_axis_width,
            "collapsed": cell.band.collapsed,
        },
        "x_scale": cell.x_resolution.scale_kind,
        "x_points": [_jsonable(p) for p in cell.x_resolution.points],
        "icon": None,
    }
    if cell.icon is not None:
        out["icon"] = {
            "path": cell.icon.path,
            "fill": cell.icon.fill,
            "view_box": list(cell.icon.view_box),
            "scale": cell.icon.scale,
        }
        return out

    if cell.x_axis is not None:
        out["x_axis"] = {
            "scale": cell.x_axis.scale.kind,
            "orientation": cell.x_axis.orientation,
            "tick_count": cell.x_axis.tick_count,
            "tick_max_width": cell.x_axis.tick_max_width,
            "height": cell.x_axis.height,
            "title": cell.x_axis.title.text if cell.x_axis.title is not None else None,
            "ticks": [_tick(t) for t in cell.x_axis.ticks],
            "gridlines": [_gridline(g) for g in cell.x_axis.gridlines],
        }
    if cell.y_axis is not None:
        out["y_axis"] = {
            "position": cell.y_axis.position,
            "width": cell.y_axis.width,
            "title": cell.y_axis.title.text if cell.y_axis.title is not None else None,
            "ticks": [_tick(t) for t in cell.y_axis.ticks],
            "gridlines": [_gridline(g) for g in cell.y_axis.gridlines],
        }
    if cell.domain_y is not None:
        out["domain_y"] = {
            "start": cell.domain_y.domain.start,
            "end": cell.domain_y.domain.end,
            "scale": cell.domain_y.scale_type,
        }
    out["labels"] = [_label(c) for c in cell.labels]
    if cell.label_style is not None:
        out["label_style"] = {
            "color": cell.label_style.color,
            "font_size_px": cell.label_style.font_size_px,
            "show_background": cell.label_style.show_background,
            "background_color": cell.label_style.background_color,
            "background_opacity": cell.label_style.background_opacity,
        }
    out["hover_items"] = [
        {
            "label": item.label,
            "x": item.x,
            "values": [{"series": v.series_key, "text": v.text, "y": v.y} for v in item.values],
        }
        for item in cell.hover_items
    ]
    return out


def _tick(tick: AxisTick) -> dict[str, Any]:
    return {
        "value": _jsonable(tick.value),
        "position": tick.position,
        "text": tick.text,
        "lines": list(tick.lines),
    }


def _gridline(line: Gridline) -> dict[str, Any]:
    return {
        "x1": line.x1,
        "y1": line.y1,
        "x2": line.x2,
        "y2": line.y2,
        "stroke": line.color,
        "stroke_width": line.stroke_width,
        "dasharray": line.dasharray,
    }


def _label(label: LabelCandidate) -> dict[str, Any]:
    bg = label.background
    return {
        "x": label.anchor_x,
        "y": label.anchor_y,
        "text": label.text,
        "series": label.series_key,
        "background": {"x": bg.x, "y": bg.y, "width": bg.width, "height": bg.height},
    }


def _jsonable(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)
