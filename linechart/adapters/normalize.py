from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import numpy as np

from linechart.errors import LayoutError
from linechart.series import CATEGORY_KINDS, ChartModel, Series, SeriesPoint


try:
    import pandas as pd
except Exception:  # pragma: no cover - optional dependency
    pd = None  # type: ignore[assignment]

try:
    import torch
except Exception:  # pragma: no cover - optional dependency
    torch = None  # type: ignore[assignment]


def normalize_series(
    y: Any = None,
    *,
    x: Any = None,
    data: Any = None,
    key: str,
    name: str | None = None,
) -> Series:
    """Build a ``Series`` from sequences, numpy arrays, pandas or torch input.

    ``x`` values are kept as given (categories may be text or dates); points
    whose y is not finite are dropped.
    """
    y_values = _resolve_input(y, data)
    if y_values is None:
        raise LayoutError("y input is required")

    y_arr = _coerce_1d_numeric(y_values, label="y")
    if x is None:
        x_values: list[Any] = list(range(y_arr.size))
    else:
        x_values = _coerce_1d_values(_resolve_input(x, data), label="x")

    if len(x_values) != y_arr.size:
        raise LayoutError(f"x and y length mismatch: {len(x_values)} != {y_arr.size}")

    mask = np.isfinite(y_arr)
    points = tuple(SeriesPoint(x=xv, y=float(yv)) for xv, yv, keep in zip(x_values, y_arr.tolist(), mask.tolist()) if keep)
    return Series(key=key, name=name if name is not None else key, points=points)


def normalize_chart(payload: Mapping[str, Any]) -> tuple[ChartModel, list[Series]]:
    """Read a JSON-style chart document into a model and its series.

    Expected keys: ``categories`` and ``series`` (each with ``key``, optional
    ``name``, and either ``x``/``y`` arrays or ``points`` as ``[x, y]`` pairs);
    optional ``category_kind``, ``category_name``, ``values_name``,
    ``category_format`` and ``value_format``.
    """
    if not isinstance(payload, Mapping):
        raise LayoutError("chart input must be an object")
    categories = payload.get("categories")
    if not isinstance(categories, Sequence) or isinstance(categories, (str, bytes)):
        raise LayoutError("`categories` must be an array")
    kind = payload.get("category_kind", "ordinal")
    if kind not in CATEGORY_KINDS:
        raise LayoutError(f"unknown category kind: {kind!r}")

    model = ChartModel(
        categories=tuple(categories),
        category_kind=kind,
        category_name=str(payload.get("category_name", "")),
        values_name=str(payload.get("values_name", "")),
        category_format=payload.get("category_format"),
        value_format=payload.get("value_format"),
    )

    raw_series = payload.get("series", [])
    if not isinstance(raw_series, Sequence) or isinstance(raw_series, (str, bytes)):
        raise LayoutError("`series` must be an array")
    series: list[Series] = []
    seen: set[str] = set()
    for i, item in enumerate(raw_series):
        if not isinstance(item, Mapping):
            raise LayoutError(f"series #{i} must be an object")
        key = str(item.get("key", f"series{i}"))
        if key in seen:
            raise LayoutError(f"duplicate series key: {key}")
        seen.add(key)
        name = item.get("name")
        if "points" in item:
            pairs = item["points"]
            if not isinstance(pairs, Sequence) or any(not isinstance(p, Sequence) or len(p) != 2 for p in pairs):
                raise LayoutError(f"series {key}: `points` must be [x, y] pairs")
            series.append(normalize_series([p[1] for p in pairs], x=[p[0] for p in pairs], key=key, name=name))
        else:
            series.append(normalize_series(item.get("y"), x=item.get("x"), key=key, name=name))
    return model, series


def _resolve_input(value: Any, data: Any) -> Any:
    """Look up a column name in ``data``; anything else passes through."""
    if data is None:
        return value
    if pd is None or not isinstance(data, pd.DataFrame):
        raise LayoutError("`data` must be a pandas DataFrame")
    if not isinstance(value, str):
        return value
    if value not in data.columns:
        raise LayoutError(f"column not found: {value}")
    return data[value]


def _coerce_1d_values(value: Any, *, label: str) -> list[Any]:
    if torch is not None and isinstance(value, torch.Tensor):
        if value.ndim != 1:
            raise LayoutError(f"{label} must be 1-D")
        return value.detach().cpu().tolist()

    if pd is not None and isinstance(value, (pd.Series, pd.Index)):
        return value.tolist()

    if isinstance(value, np.ndarray):
        if value.ndim != 1:
            raise LayoutError(f"{label} must be 1-D")
        return value.tolist()

    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return list(value)

    raise LayoutError(f"unsupported {label} input type: {type(value)!r}")


def _coerce_1d_numeric(value: Any, *, label: str) -> np.ndarray:
    if torch is not None and isinstance(value, torch.Tensor):
        arr = value.detach().cpu().to(torch.float64).numpy()
    elif pd is not None and isinstance(value, pd.Series):
        arr = value.to_numpy()
    elif isinstance(value, np.ndarray):
        arr = value
    elif isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        arr = np.asarray(value, dtype=object)
    else:
        raise LayoutError(f"unsupported {label} input type: {type(value)!r}")

    if arr.ndim != 1:
        raise LayoutError(f"{label} must be 1-D")
    if arr.dtype.kind in {"i", "u", "f"}:
        return arr.astype(np.float64, copy=False)

    # y values: None is a gap, bools are rejected
    out = np.full(arr.shape[0], np.nan, dtype=np.float64)
    for i, raw in enumerate(arr.tolist()):
        if raw is None:
            continue
        if isinstance(raw, bool):
            raise LayoutError(f"{label} contains non-numeric value at index {i}: {raw!r}")
        try:
            out[i] = float(raw)
        except (TypeError, ValueError) as exc:
            raise LayoutError(f"{label} contains non-numeric value at index {i}: {raw!r}") from exc
    return out
