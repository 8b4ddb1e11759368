from __future__ import annotations

import math
import unittest

from linechart.axis_layout import (
    TICK_PADDING,
    axis_title_text,
    decade_normalized,
    is_decade,
    layout_x_axis,
    layout_y_axis,
    line_style_dasharray,
    y_tick_count,
)
from linechart.formatting import ValueFormatter
from linechart.scales import LinearScale, LogScale
from linechart.series import VisualDomain
from linechart.settings import XAxisSettings, YAxisSettings
from linechart.text import FixedWidthTextMetrics
from linechart.x_axis import OrdinalAxis, ScalarAxis, ScaleResolver


METRICS = FixedWidthTextMetrics()


def _layout(kind, categories, x_range, settings: XAxisSettings, *, plot_width=400.0, plot_height=200.0, **kwargs):
    formatter = ValueFormatter()
    resolution = ScaleResolver(formatter).resolve(kind, categories, [], x_range)
    return layout_x_axis(
        resolution,
        settings=settings,
        formatter=formatter,
        metrics=METRICS,
        x_range=x_range,
        plot_width=plot_width,
        plot_height=plot_height,
        axis_padding=10.0,
        **kwargs,
    )


class CategoricalOrientationTests(unittest.TestCase):
    def test_three_short_categories_stay_horizontal(self) -> None:
        layout = _layout(OrdinalAxis(), ["A", "B", "C"], (0.0, 300.0), XAxisSettings(font_size=10.0))
        self.assertEqual(layout.tick_count, 3)
        self.assertEqual(layout.tick_max_width, 100.0)
        self.assertEqual(layout.orientation, "horizontal")
        self.assertEqual([t.text for t in layout.ticks], ["A", "B", "C"])
        self.assertEqual([t.position for t in layout.ticks], [0.0, 150.0, 300.0])
        self.assertAlmostEqual(layout.height, 12.0 + TICK_PADDING)

    def test_crowded_categories_rotate_vertical_and_thin(self) -> None:
        categories = [f"Category {i:02d}" for i in range(30)]
        layout = _layout(OrdinalAxis(), categories, (0.0, 200.0), XAxisSettings(font_size=10.0))
        self.assertEqual(layout.orientation, "rotate90")
        self.assertEqual(layout.scale.kind, "point")
        visible = layout.visible_ticks
        self.assertEqual(len(visible), 15)
        xs = [t.position for t in visible]
        self.assertTrue(all(b - a >= 10.0 for a, b in zip(xs, xs[1:])))
        # 25% of the 200px cell is the label budget
        self.assertEqual(visible[0].text, "Categ...")
        self.assertAlmostEqual(layout.height, 48.0 + TICK_PADDING)

    def test_medium_categories_rotate_diagonal(self) -> None:
        categories = [f"Category {c}" for c in "ABCDE"]
        layout = _layout(OrdinalAxis(), categories, (0.0, 200.0), XAxisSettings(font_size=10.0))
        self.assertEqual(layout.orientation, "rotate35")
        angle = math.radians(35.0)
        self.assertAlmostEqual(layout.height, 48.0 * math.sin(angle) + 12.0 * math.cos(angle) + TICK_PADDING)

    def test_zero_categories_consume_no_height(self) -> None:
        layout = _layout(OrdinalAxis(), [], (0.0, 300.0), XAxisSettings())
        self.assertEqual(layout.height, 0.0)
        self.assertEqual(layout.ticks, ())

    def test_hidden_axis_consumes_no_height(self) -> None:
        layout = _layout(OrdinalAxis(), ["A", "B"], (0.0, 300.0), XAxisSettings(show=False))
        self.assertEqual(layout.height, 0.0)


class ContinuousTickTests(unittest.TestCase):
    def test_tick_count_from_longest_label(self) -> None:
        categories = list(range(0, 101, 10))
        layout = _layout(ScalarAxis(), categories, (0.0, 400.0), XAxisSettings(font_size=10.0))
        self.assertEqual(layout.tick_count, 11)
        self.assertEqual([t.value for t in layout.ticks], [float(v) for v in range(0, 101, 10)])
        self.assertEqual(layout.orientation, "horizontal")

    def test_tick_count_is_at_least_two(self) -> None:
        layout = _layout(ScalarAxis(), [0, 50, 100], (0.0, 30.0), XAxisSettings(font_size=10.0))
        self.assertEqual(layout.tick_count, 2)

    def test_wide_log_range_keeps_only_decade_labels(self) -> None:
        settings = XAxisSettings(axis_scale="log", font_size=10.0, show_gridlines=True)
        layout = _layout(ScalarAxis(scale="log"), [1, 10, 100, 1000], (0.0, 300.0), settings)
        self.assertEqual([t.value for t in layout.visible_ticks], [1.0, 10.0, 100.0, 1000.0])
        self.assertEqual([t.text for t in layout.visible_ticks], ["1", "10", "100", "1000"])
        blank = [t for t in layout.ticks if not t.visible]
        self.assertTrue(blank)
        self.assertTrue(all(not t.gridline for t in blank))
        self.assertEqual(len(layout.gridlines), 4)

    def test_log_labels_truncate_to_gap_before_next_label(self) -> None:
        settings = XAxisSettings(axis_scale="log", font_size=10.0)
        layout = _layout(ScalarAxis(scale="log"), [1, 10, 100, 1000], (0.0, 30.0), settings, plot_width=40.0)
        texts = [t.text for t in layout.visible_ticks]
        self.assertEqual(texts[0], "1")
        self.assertTrue(texts[-1].endswith("..."))
        self.assertEqual(layout.visible_ticks[-1].full_text, "1000")


class TitleAndGridlineTests(unittest.TestCase):
    def test_title_styles(self) -> None:
        common = dict(display_units=1e6, title_style="showTitleOnly", title_style_full="showBoth")
        self.assertEqual(axis_title_text("Sales", "", use_full_style=True, **common), "Sales (Millions)")
        self.assertEqual(axis_title_text("Sales", "", use_full_style=False, **common), "Sales")
        self.assertEqual(
            axis_title_text("", "Revenue", display_units=0, title_style="showUnitOnly", title_style_full="showBoth", use_full_style=True),
            "No Units",
        )

    def test_title_adds_its_height_below_labels(self) -> None:
        settings = XAxisSettings(font_size=10.0, show_title=True, axis_title="Region", title_font_size=10.0)
        layout = _layout(OrdinalAxis(), ["A", "B", "C"], (0.0, 300.0), settings)
        labels_height = 12.0 + TICK_PADDING
        delta = (12.0 - 10.0) / 2.0
        self.assertEqual(layout.title.text, "Region")
        self.assertAlmostEqual(layout.title.y, labels_height + 12.0 - delta)
        self.assertAlmostEqual(layout.height, labels_height + 12.0 + delta)

    def test_gridlines_reach_plot_top(self) -> None:
        settings = XAxisSettings(font_size=10.0, show_gridlines=True, line_style="dashed")
        layout = _layout(OrdinalAxis(), ["A", "B", "C"], (0.0, 300.0), settings, plot_height=200.0)
        self.assertEqual(len(layout.gridlines), 3)
        line = layout.gridlines[1]
        self.assertEqual((line.x1, line.x2, line.y1), (150.0, 150.0, 0.0))
        self.assertAlmostEqual(line.y2, -(200.0 - layout.height - 10.0))
        self.assertEqual(line.dasharray, "7, 5")

    def test_dasharray_patterns(self) -> None:
        self.assertEqual(line_style_dasharray("solid"), "none")
        self.assertEqual(line_style_dasharray("dashed"), "7, 5")
        self.assertEqual(line_style_dasharray("dotted"), "2, 2")


class YAxisTests(unittest.TestCase):
    def test_tick_count_tracks_plot_height(self) -> None:
        self.assertEqual(y_tick_count(100.0), 2)
        self.assertEqual(y_tick_count(400.0), 5)

    def test_linear_ticks_are_formatted_and_gridlined(self) -> None:
        scale = LinearScale(domain=(0.0, 100.0), range=(200.0, 10.0))
        layout = layout_y_axis(
            scale,
            VisualDomain(0.0, 100.0),
            settings=YAxisSettings(font_size=10.0),
            formatter=ValueFormatter(),
            metrics=METRICS,
            plot_width=300.0,
            plot_height=400.0,
            y_axis_width=40.0,
            axis_padding=10.0,
        )
        self.assertEqual([t.text for t in layout.ticks][:2], ["0", "20"])
        self.assertEqual(layout.ticks[0].position, 200.0)
        self.assertEqual((layout.gridlines[0].x1, layout.gridlines[0].x2), (50.0, 300.0))

    def test_wide_log_range_hides_non_decades(self) -> None:
        scale = LogScale(domain=(1.0, 1000.0), range=(200.0, 10.0))
        layout = layout_y_axis(
            scale,
            VisualDomain(1.0, 1000.0),
            settings=YAxisSettings(axis_scale="log", position="Right"),
            formatter=ValueFormatter(),
            metrics=METRICS,
            plot_width=300.0,
            plot_height=240.0,
            y_axis_width=40.0,
            axis_padding=10.0,
        )
        shown = [t.value for t in layout.ticks if t.visible]
        self.assertEqual(shown, [1.0, 10.0, 100.0, 1000.0])
        self.assertEqual((layout.gridlines[0].x1, layout.gridlines[0].x2), (0.0, 250.0))

    def test_decade_normalization(self) -> None:
        self.assertEqual(decade_normalized(1000.0), 1.0)
        self.assertAlmostEqual(decade_normalized(0.02), 2.0)
        self.assertTrue(is_decade(0.1))
        self.assertFalse(is_decade(30.0))


if __name__ == "__main__":
    unittest.main()
