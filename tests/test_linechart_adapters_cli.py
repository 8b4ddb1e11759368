from __future__ import annotations

from contextlib import redirect_stdout
from decimal import Decimal
import io
import json
from pathlib import Path
import tempfile
import unittest

import numpy as np

from linechart.adapters import normalize_chart, normalize_series
from linechart.cli import main
from linechart.errors import LayoutError


CHART = {
    "categories": ["A", "B", "C"],
    "category_name": "Region",
    "values_name": "Sales",
    "series": [
        {"key": "sales", "name": "Sales", "x": ["A", "B", "C"], "y": [10, 12, 14]},
        {"key": "cost", "points": [["A", 4], ["C", 6]]},
    ],
}


class NormalizeSeriesTests(unittest.TestCase):
    def test_sequence_input_defaults_x_to_indices(self) -> None:
        series = normalize_series([1, 2.5, Decimal("3")], key="s")
        self.assertEqual([(p.x, p.y) for p in series.points], [(0, 1.0), (1, 2.5), (2, 3.0)])
        self.assertEqual(series.name, "s")

    def test_non_finite_values_are_dropped(self) -> None:
        series = normalize_series(np.asarray([1.0, np.nan, 3.0, np.inf]), x=["a", "b", "c", "d"], key="s")
        self.assertEqual([p.x for p in series.points], ["a", "c"])

    def test_missing_values_are_dropped(self) -> None:
        series = normalize_series([1, None, 3], x=["a", "b", "c"], key="s", name="Sales")
        self.assertEqual([p.y for p in series.points], [1.0, 3.0])
        self.assertEqual(series.name, "Sales")

    def test_bad_input_raises(self) -> None:
        with self.assertRaises(LayoutError):
            normalize_series([1, 2], x=["a"], key="s")
        with self.assertRaises(LayoutError):
            normalize_series([True, False], key="s")
        with self.assertRaises(LayoutError):
            normalize_series(["ten"], key="s")
        with self.assertRaises(LayoutError):
            normalize_series(np.ones((2, 2)), key="s")
        with self.assertRaises(LayoutError):
            normalize_series(None, key="s")

    def test_pandas_columns_by_name(self) -> None:
        try:
            import pandas as pd
        except Exception:
            self.skipTest("pandas is not installed")

        df = pd.DataFrame({"region": ["A", "B", "C"], "value": [1, 2, 3]})
        series = normalize_series("value", x="region", data=df, key="s")
        self.assertEqual([(p.x, p.y) for p in series.points], [("A", 1.0), ("B", 2.0), ("C", 3.0)])
        with self.assertRaises(LayoutError):
            normalize_series("missing", data=df, key="u")

    def test_torch_tensor(self) -> None:
        try:
            import torch
        except Exception:
            self.skipTest("torch is not installed")

        series = normalize_series(torch.tensor([1, 2, 3], dtype=torch.int64), key="s")
        self.assertEqual([p.y for p in series.points], [1.0, 2.0, 3.0])


class NormalizeChartTests(unittest.TestCase):
    def test_reads_model_and_series(self) -> None:
        model, series = normalize_chart(CHART)
        self.assertEqual(model.categories, ("A", "B", "C"))
        self.assertEqual(model.category_kind, "ordinal")
        self.assertEqual((model.category_name, model.values_name), ("Region", "Sales"))
        self.assertEqual([s.key for s in series], ["sales", "cost"])
        self.assertEqual([(p.x, p.y) for p in series[1].points], [("A", 4.0), ("C", 6.0)])

    def test_malformed_documents_raise(self) -> None:
        cases = [
            [],
            {"categories": "ABC"},
            {"categories": ["A"], "category_kind": "nominal"},
            {"categories": ["A"], "series": [{"key": "s", "y": [1]}, {"key": "s", "y": [2]}]},
            {"categories": ["A"], "series": [{"key": "s", "points": [["A"]]}]},
            {"categories": ["A"], "series": ["s"]},
        ]
        for payload in cases:
            with self.subTest(payload=payload):
                with self.assertRaises(LayoutError):
                    normalize_chart(payload)


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.data = Path(self._tmp.name) / "chart.json"
        self.data.write_text(json.dumps(CHART), encoding="utf-8")

    def _run(self, argv: list[str]) -> tuple[int, str]:
        buf = io.StringIO()
        with redirect_stdout(buf):
            code = main(argv)
        return code, buf.getvalue()

    def test_layout_prints_cell_json(self) -> None:
        code, out = self._run(["layout", str(self.data), "--width", "400", "--height", "300", "--metrics", "fixed"])
        self.assertEqual(code, 0)
        cell = json.loads(out)
        self.assertEqual(cell["legend_position"], "Top")
        self.assertEqual(cell["x_scale"], "point")
        self.assertEqual(cell["x_points"], ["A", "B", "C"])
        self.assertEqual([t["text"] for t in cell["x_axis"]["ticks"]], ["A", "B", "C"])
        self.assertEqual(cell["domain_y"]["scale"], "linear")
        self.assertEqual(len(cell["hover_items"]), 3)
        self.assertIsNone(cell["icon"])

    def test_layout_of_tiny_cell_prints_icon(self) -> None:
        code, out = self._run(["layout", str(self.data), "--width", "40", "--height", "40", "--metrics", "fixed"])
        self.assertEqual(code, 0)
        icon = json.loads(out)["icon"]
        self.assertEqual(icon["view_box"], [0.0, 0.0, 24.0, 24.0])
        self.assertEqual(icon["fill"], "#333")

    def test_count_applies_settings_file(self) -> None:
        settings = Path(self._tmp.name) / "chart.toml"
        settings.write_text("[x_axis]\nchart_range_type = \"separate\"\n", encoding="utf-8")
        doc = dict(CHART, series=[{"key": "s", "x": ["A", "C"], "y": [1, 2]}])
        self.data.write_text(json.dumps(doc), encoding="utf-8")
        code, out = self._run(["count", str(self.data), "--settings", str(settings)])
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "2")

    def test_missing_file_returns_error_code(self) -> None:
        with self.assertLogs("linechart.cli", level="ERROR"):
            code, out = self._run(["count", str(Path(self._tmp.name) / "missing.json")])
        self.assertEqual(code, 2)
        self.assertEqual(out, "")

    def test_invalid_json_returns_error_code(self) -> None:
        self.data.write_text("{not json", encoding="utf-8")
        with self.assertLogs("linechart.cli", level="ERROR"):
            code, _ = self._run(["layout", str(self.data), "--width", "10", "--height", "10"])
        self.assertEqual(code, 2)

    def test_non_positive_size_returns_error_code(self) -> None:
        with self.assertLogs("linechart.cli", level="ERROR"):
            code, _ = self._run(["layout", str(self.data), "--width", "0", "--height", "10", "--metrics", "fixed"])
        self.assertEqual(code, 2)


if __name__ == "__main__":
    unittest.main()
