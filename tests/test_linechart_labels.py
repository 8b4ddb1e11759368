from __future__ import annotations

import random
import unittest

from linechart.labels import (
    LabelRect,
    PlotBounds,
    build_candidate,
    data_label_formatter,
    density_max_count,
    label_style,
    place_candidates,
    place_labels,
    rects_overlap,
    thin_indices,
    thin_labels,
)
from linechart.scales import LinearScale, PointScale
from linechart.series import Series, SeriesPoint
from linechart.settings import DataLabelSettings
from linechart.text import FixedWidthTextMetrics


METRICS = FixedWidthTextMetrics()
WIDE_BOUNDS = PlotBounds(min_x=0.0, max_x=1000.0, y_range_max=1000.0)


def _candidate(px: float, py: float, text: str = "12.0"):
    return build_candidate(px, py, text, font_family="Segoe UI", font_size_px=12.0, metrics=METRICS)


class CandidateGeometryTests(unittest.TestCase):
    def test_background_sits_above_the_point(self) -> None:
        c = _candidate(100.0, 100.0)
        self.assertEqual(c.anchor_x, 100.0)
        self.assertEqual(c.anchor_y, 80.0)
        self.assertAlmostEqual(c.background.x, 77.5)
        self.assertAlmostEqual(c.background.y, 69.2)
        self.assertAlmostEqual(c.background.width, 45.0)
        self.assertAlmostEqual(c.background.height, 14.0)

    def test_touching_rects_do_not_overlap(self) -> None:
        a = LabelRect(0.0, 0.0, 10.0, 10.0)
        self.assertFalse(rects_overlap(a, LabelRect(10.0, 0.0, 10.0, 10.0)))
        self.assertFalse(rects_overlap(a, LabelRect(0.0, 9.5, 10.0, 10.0)))
        self.assertTrue(rects_overlap(a, LabelRect(8.0, 0.0, 10.0, 10.0)))


class PlacementTests(unittest.TestCase):
    def test_collision_retries_lower_down(self) -> None:
        placed = place_candidates([_candidate(100.0, 100.0), _candidate(105.0, 100.0)], WIDE_BOUNDS)
        self.assertEqual(len(placed), 2)
        self.assertEqual(placed[1].anchor_y, 120.0)
        self.assertAlmostEqual(placed[1].background.y, 109.2)

    def test_label_blocked_after_retry_is_dropped(self) -> None:
        candidates = [_candidate(100.0, 100.0), _candidate(105.0, 100.0), _candidate(110.0, 100.0)]
        placed = place_candidates(candidates, WIDE_BOUNDS)
        # third collides with the first, then with the shifted second
        self.assertEqual([c.anchor_x for c in placed], [100.0, 105.0])

    def test_shifted_label_below_the_plot_is_dropped(self) -> None:
        bounds = PlotBounds(min_x=0.0, max_x=1000.0, y_range_max=120.0)
        placed = place_candidates([_candidate(100.0, 100.0), _candidate(105.0, 100.0)], bounds)
        self.assertEqual(len(placed), 1)

    def test_label_outside_the_bounds_is_dropped(self) -> None:
        bounds = PlotBounds(min_x=80.0, max_x=1000.0, y_range_max=1000.0)
        self.assertEqual(place_candidates([_candidate(100.0, 100.0)], bounds), [])
        self.assertEqual(place_candidates([_candidate(100.0, 10.0)], WIDE_BOUNDS), [])

    def test_accepted_labels_never_overlap(self) -> None:
        rng = random.Random(7)
        candidates = [_candidate(rng.uniform(20, 480), rng.uniform(40, 480), f"{rng.random():.1f}") for _ in range(200)]
        placed = place_candidates(candidates, PlotBounds(min_x=0.0, max_x=500.0, y_range_max=500.0))
        self.assertTrue(placed)
        for i, a in enumerate(placed):
            for b in placed[i + 1 :]:
                self.assertFalse(rects_overlap(a.background, b.background))


class DensityTests(unittest.TestCase):
    def test_indices_spread_from_growing_divisors(self) -> None:
        self.assertEqual(thin_indices(100, 10), [0, 50, 33, 66, 99, 25, 75, 20, 40, 60])

    def test_indices_keep_everything_when_under_budget(self) -> None:
        self.assertEqual(thin_indices(4, 10), [0, 1, 2, 3])
        self.assertEqual(thin_indices(4, 0), [])

    def test_indices_are_bounded_and_unique(self) -> None:
        indices = thin_indices(7, 6)
        self.assertEqual(len(indices), 6)
        self.assertEqual(len(set(indices)), 6)

    def test_max_count_grows_with_density(self) -> None:
        self.assertEqual(density_max_count(0.0, 100), 10)
        self.assertEqual(density_max_count(50.0, 100), 55)
        self.assertEqual(density_max_count(100.0, 10), 10)

    def test_categorical_axes_keep_every_label(self) -> None:
        accepted = [_candidate(40.0 * i + 50.0, 100.0) for i in range(10)]
        self.assertEqual(thin_labels(accepted, label_density=0.0, categorical=True), accepted)
        with self.assertLogs("linechart.labels", level="DEBUG"):
            thinned = thin_labels(accepted, label_density=0.0, categorical=False)
        self.assertEqual(thinned, [accepted[0]])


class StyleAndFormatTests(unittest.TestCase):
    def test_style_converts_points_and_transparency(self) -> None:
        style = label_style(DataLabelSettings(show=True))
        self.assertAlmostEqual(style.background_opacity, 0.1)
        self.assertEqual(style.font_size_px, 12.0)

    def test_formatter_falls_back_to_axis_units(self) -> None:
        formatter = data_label_formatter(DataLabelSettings(), 0.0)
        self.assertEqual(formatter.format(1234.0), "1.2K")
        formatter = data_label_formatter(DataLabelSettings(display_units=1.0, precision=2), 1e6)
        self.assertEqual(formatter.format(1234.0), "1234.00")


class PlaceLabelsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.x_scale = PointScale(domain=("A", "B", "C"), range=(50.0, 350.0))
        self.y_scale = LinearScale(domain=(0.0, 20.0), range=(200.0, 10.0))
        self.series = [
            Series(
                key="s",
                name="Sales",
                points=(SeriesPoint("A", 10.0), SeriesPoint("B", 12.0), SeriesPoint("C", 14.0)),
            )
        ]

    def _place(self, series, settings: DataLabelSettings):
        return place_labels(
            series,
            x_scale=self.x_scale,
            y_scale=self.y_scale,
            bounds=PlotBounds(min_x=0.0, max_x=400.0, y_range_max=220.0),
            settings=settings,
            formatter=data_label_formatter(settings, 0.0),
            metrics=METRICS,
            categorical=True,
        )

    def test_hidden_labels_place_nothing(self) -> None:
        self.assertEqual(self._place(self.series, DataLabelSettings()), [])

    def test_every_point_gets_a_label(self) -> None:
        labels = self._place(self.series, DataLabelSettings(show=True))
        self.assertEqual([c.text for c in labels], ["10.0", "12.0", "14.0"])
        self.assertEqual([c.series_key for c in labels], ["s", "s", "s"])

    def test_point_off_the_x_scale_is_skipped_with_warning(self) -> None:
        series = [self.series[0].with_points([SeriesPoint("Z", 5.0), SeriesPoint("A", 10.0)])]
        with self.assertLogs("linechart.labels", level="WARNING"):
            labels = self._place(series, DataLabelSettings(show=True))
        self.assertEqual([c.text for c in labels], ["10.0"])


if __name__ == "__main__":
    unittest.main()
