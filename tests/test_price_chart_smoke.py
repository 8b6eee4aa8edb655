import os
import sys
import unittest
from datetime import timezone

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

# Allow `import ui.*` like the app does when running `python app/main.py`.
REPO_ROOT = os.path.dirname(os.path.dirname(__file__))
APP_DIR = os.path.join(REPO_ROOT, "app")
if APP_DIR not in sys.path:
    sys.path.insert(0, APP_DIR)


class PriceChartSmokeTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        from PyQt6.QtWidgets import QApplication

        cls.app = QApplication.instance() or QApplication([])

    def _make_chart(self, **kwargs):
        import pyqtgraph as pg

        from ui.charts.price_chart import PriceChart

        widget = pg.PlotWidget()
        self.addCleanup(widget.deleteLater)
        return PriceChart(widget, "#8884d8", **kwargs)

    def test_domains_follow_series(self):
        from core.models import PricePoint

        chart = self._make_chart()
        chart.set_series([PricePoint(1000, 50000.0), PricePoint(2000, 50100.0)], range_code="1")
        self.assertEqual(chart.x_domain(), (1000, 2000))
        self.assertEqual(chart.y_domain(), (50000.0, 50100.0))
        x_data, y_data = chart.curve.getData()
        self.assertEqual(list(x_data), [1000.0, 2000.0])
        self.assertEqual(list(y_data), [50000.0, 50100.0])

    def test_series_is_plotted_unsorted_as_given(self):
        from core.models import PricePoint

        chart = self._make_chart()
        chart.set_series([PricePoint(3000, 3.0), PricePoint(1000, 1.0), PricePoint(2000, 5.0)])
        self.assertEqual(chart.x_domain(), (1000, 3000))
        self.assertEqual(chart.y_domain(), (1.0, 5.0))
        x_data, _ = chart.curve.getData()
        self.assertEqual(list(x_data), [3000.0, 1000.0, 2000.0])

    def test_empty_series_clears(self):
        from core.models import PricePoint

        chart = self._make_chart()
        chart.set_series([PricePoint(1000, 1.0)])
        chart.set_series([])
        self.assertIsNone(chart.x_domain())
        self.assertIsNone(chart.y_domain())
        self.assertEqual(chart.points, ())

    def test_area_and_line_styles(self):
        from core.models import PricePoint

        chart = self._make_chart(style="area")
        chart.set_series([PricePoint(1000, 10.0), PricePoint(2000, 12.0)])
        self.assertEqual(chart.curve.opts["fillLevel"], 10.0)
        chart.set_style("line")
        self.assertIsNone(chart.curve.opts["fillLevel"])

    def test_time_axis_labels_follow_range_and_locale(self):
        chart = self._make_chart(locale="ja-JP", tz=timezone.utc)
        ts = 1_710_451_800_000  # 2024-03-14 21:30:00 UTC
        chart.set_range_code("1")
        self.assertEqual(chart._time_axis.tickStrings([ts], 1.0, 1.0), ["21:30"])
        chart.set_range_code("30")
        self.assertEqual(chart._time_axis.tickStrings([ts], 1.0, 1.0), ["03/14"])

    def test_tooltip_and_nearest_index(self):
        from core.models import PricePoint

        chart = self._make_chart(tz=timezone.utc)
        chart.set_series([PricePoint(1_710_407_107_000, 50000.0), PricePoint(1_710_410_707_000, 50100.5)])
        self.assertEqual(chart.nearest_index(0), 0)
        self.assertEqual(chart.nearest_index(1_710_410_000_000), 1)
        self.assertEqual(chart.nearest_index(9e15), 1)
        self.assertEqual(chart.tooltip_text(0), "3/14/2024 9:05:07 AM\nprice : 50,000")

    def test_tick_values_cover_visible_range(self):
        from ui.charts.price_chart import pick_step_ms

        self.assertEqual(pick_step_ms(86_400_000, 8), 14_400_000)
        self.assertEqual(pick_step_ms(365 * 86_400_000, 6), 7_776_000_000)
        chart = self._make_chart()
        ticks = chart._time_axis.tickValues(0, 86_400_000, 880)
        self.assertEqual(len(ticks), 1)
        step, values = ticks[0]
        self.assertEqual(step, 14_400_000)
        self.assertEqual(values[0], 0)
        self.assertEqual(values[-1], 86_400_000)


if __name__ == "__main__":
    unittest.main()
