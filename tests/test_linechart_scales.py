from __future__ import annotations

from datetime import datetime
import unittest

from linechart.scales import (
    LinearScale,
    LogScale,
    PointScale,
    TimeScale,
    linear_ticks,
    log_ticks,
    nice_domain,
    time_ticks,
)


class PointScaleTests(unittest.TestCase):
    def test_categories_are_evenly_spaced_in_order(self) -> None:
        scale = PointScale(domain=("A", "B", "C"), range=(0.0, 300.0))
        self.assertEqual([scale(c) for c in ("A", "B", "C")], [0.0, 150.0, 300.0])
        self.assertEqual(scale.ticks(), ["A", "B", "C"])

    def test_single_category_sits_mid_range(self) -> None:
        scale = PointScale(domain=("only",), range=(20.0, 120.0))
        self.assertEqual(scale("only"), 70.0)

    def test_unknown_category_is_not_projected(self) -> None:
        scale = PointScale(domain=("A", "B"), range=(0.0, 10.0))
        self.assertIsNone(scale("Z"))


class LinearScaleTests(unittest.TestCase):
    def test_maps_domain_ends_to_range_ends_and_inverts(self) -> None:
        scale = LinearScale(domain=(0.0, 100.0), range=(10.0, 210.0))
        self.assertEqual(scale(0), 10.0)
        self.assertEqual(scale(100), 210.0)
        self.assertAlmostEqual(scale.invert(scale(37.5)), 37.5)
        self.assertAlmostEqual(scale.invert(110.0), 50.0)

    def test_ticks_follow_one_two_five_steps(self) -> None:
        self.assertEqual(linear_ticks(0.0, 1.0, 5).tolist(), [0.0, 0.2, 0.4, 0.6, 0.8, 1.0])
        self.assertEqual(linear_ticks(0.0, 100.0, 10).tolist(), [float(v) for v in range(0, 101, 10)])

    def test_nice_extends_to_round_bounds(self) -> None:
        self.assertEqual(nice_domain(0.5, 9.7, 10), (0.0, 10.0))
        self.assertEqual(LinearScale(domain=(0.5, 9.7), range=(0.0, 1.0)).nice().domain, (0.0, 10.0))


class LogScaleTests(unittest.TestCase):
    def test_non_positive_values_are_not_projected(self) -> None:
        scale = LogScale(domain=(1.0, 1000.0), range=(0.0, 300.0))
        self.assertIsNone(scale(0))
        self.assertIsNone(scale(-5))
        self.assertAlmostEqual(scale(10), 100.0)
        self.assertAlmostEqual(scale.invert(200.0), 100.0)

    def test_ticks_are_multiples_of_powers_of_ten(self) -> None:
        ticks = log_ticks(1.0, 100.0, 10)
        expected = [float(k) for k in range(1, 10)] + [float(k * 10) for k in range(1, 10)] + [100.0]
        self.assertEqual(ticks, expected)


class TimeScaleTests(unittest.TestCase):
    def test_projects_datetimes_and_date_strings(self) -> None:
        scale = TimeScale(domain=(datetime(2024, 1, 1), datetime(2024, 1, 11)), range=(0.0, 100.0))
        self.assertAlmostEqual(scale(datetime(2024, 1, 6)), 50.0)
        self.assertAlmostEqual(scale("2024-01-06"), 50.0)
        self.assertEqual(scale.invert(50.0), datetime(2024, 1, 6))

    def test_month_ticks_land_on_first_of_month(self) -> None:
        ticks = time_ticks(datetime(2024, 1, 1), datetime(2024, 12, 1), 12)
        self.assertEqual(ticks, [datetime(2024, m, 1) for m in range(1, 13)])


if __name__ == "__main__":
    unittest.main()
