from __future__ import annotations

from datetime import tzinfo
import math
from typing import Iterable, Optional, Tuple

import numpy as np
import pyqtgraph as pg
from PyQt6.QtGui import QColor, QFont

from core.models import PricePoint
from .formatting import DEFAULT_LOCALE, format_price, format_tick, format_tooltip_time

_TICK_STEPS_MS = [
    60_000,
    300_000,
    900_000,
    1_800_000,
    3_600_000,
    7_200_000,
    14_400_000,
    21_600_000,
    43_200_000,
    86_400_000,
    172_800_000,
    604_800_000,
    1_209_600_000,
    2_592_000_000,
    7_776_000_000,
]


def pick_step_ms(span_ms: float, target_ticks: int) -> int:
    if span_ms <= 0:
        return _TICK_STEPS_MS[0]
    for step in _TICK_STEPS_MS:
        if span_ms / step <= target_ticks:
            return step
    return _TICK_STEPS_MS[-1]


class TimeAxis(pg.AxisItem):
    def __init__(self, chart: "PriceChart", *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._chart = chart

    def tickValues(self, minVal, maxVal, size):
        try:
            span_ms = float(maxVal) - float(minVal)
        except Exception:
            return []
        if span_ms <= 0:
            return []
        target_ticks = max(2, int(size / 110))
        step_ms = pick_step_ms(span_ms, target_ticks)
        start = math.ceil(float(minVal) / step_ms) * step_ms
        values = []
        current = start
        max_val = float(maxVal)
        while current <= max_val:
            values.append(current)
            current += step_ms
        return [(step_ms, values)]

    def tickStrings(self, values, scale, spacing):
        out = []
        for v in values:
            try:
                out.append(self._chart.format_tick(float(v)))
            except (ValueError, OverflowError, OSError):
                out.append('')
        return out


class PriceAxis(pg.AxisItem):
    def tickStrings(self, values, scale, spacing):
        out = []
        for v in values:
            try:
                if not np.isfinite(v):
                    out.append('')
                    continue
                out.append(format_price(float(v)))
            except (ValueError, TypeError):
                out.append('')
        return out


class PriceChart:
    """
    Line/area chart of a price series on a pyqtgraph PlotWidget.

    The x range is pinned to the first and last sample; the y range is fitted to
    the lowest and highest price. Points are drawn exactly as given.
    """

    def __init__(
        self,
        plot_widget: pg.PlotWidget,
        color: str,
        locale: str = DEFAULT_LOCALE,
        style: str = 'area',
        tz: Optional[tzinfo] = None,
    ) -> None:
        self.plot_widget = plot_widget
        self.color = QColor(color)
        self.locale = locale
        self.style = style
        self.tz = tz
        self.range_code = '1'
        self.points: Tuple[PricePoint, ...] = ()
        self._x = np.empty(0, dtype=np.float64)
        self._y = np.empty(0, dtype=np.float64)
        self._x_domain: Optional[Tuple[int, int]] = None
        self._y_domain: Optional[Tuple[float, float]] = None

        self._setup_axes()
        self.plot_widget.setMouseEnabled(x=False, y=False)
        self.plot_widget.hideButtons()
        self.legend = self.plot_widget.addLegend(offset=(10, 10))
        self.curve = self.plot_widget.plot([], [], pen=pg.mkPen(self.color, width=2), name='price')

        self.hover_line = pg.InfiniteLine(angle=90, movable=False, pen=pg.mkPen(QColor(178, 181, 190, 120), width=1))
        self.hover_line.hide()
        self.plot_widget.addItem(self.hover_line, ignoreBounds=True)
        self.hover_label = pg.TextItem('', color=QColor('#D1D4DC'), fill=pg.mkBrush(QColor(19, 23, 34, 220)), anchor=(0, 1))
        self.hover_label.setZValue(20)
        self.hover_label.hide()
        self.plot_widget.addItem(self.hover_label, ignoreBounds=True)
        try:
            self.plot_widget.scene().sigMouseMoved.connect(self._on_mouse_moved)
        except Exception:
            pass
        self._apply_style()

    def _setup_axes(self) -> None:
        font = QFont()
        font.setPointSize(8)
        self._time_axis = TimeAxis(self, orientation='bottom')
        self._time_axis.setTickFont(font)
        self._price_axis = PriceAxis(orientation='left')
        self._price_axis.setTickFont(font)
        self._price_axis.setWidth(64)
        self.plot_widget.setAxisItems({'bottom': self._time_axis, 'left': self._price_axis})

    def format_tick(self, ts_ms: float) -> str:
        return format_tick(ts_ms, self.range_code, self.locale, self.tz)

    def tooltip_text(self, index: int) -> str:
        point = self.points[index]
        return f"{format_tooltip_time(point.time, self.locale, self.tz)}\nprice : {format_price(point.price)}"

    def set_locale(self, locale: str) -> None:
        self.locale = locale
        self._refresh_time_axis()

    def set_range_code(self, range_code: str) -> None:
        self.range_code = range_code
        self._refresh_time_axis()

    def set_style(self, style: str) -> None:
        self.style = style
        self._apply_style()

    def set_series(self, points: Iterable[PricePoint], range_code: Optional[str] = None) -> None:
        if range_code is not None:
            self.range_code = range_code
        self.points = tuple(points)
        self._hide_hover()
        if not self.points:
            self.clear()
            return
        self._x = np.asarray([p.time for p in self.points], dtype=np.float64)
        self._y = np.asarray([p.price for p in self.points], dtype=np.float64)
        self._x_domain = (int(np.min(self._x)), int(np.max(self._x)))
        self._y_domain = (float(np.nanmin(self._y)), float(np.nanmax(self._y)))
        self.curve.setData(self._x, self._y)
        self._apply_style()
        self._apply_domains()
        self._refresh_time_axis()

    def clear(self) -> None:
        self.points = ()
        self._x = np.empty(0, dtype=np.float64)
        self._y = np.empty(0, dtype=np.float64)
        self._x_domain = None
        self._y_domain = None
        self.curve.setData([], [])
        self._hide_hover()

    def x_domain(self) -> Optional[Tuple[int, int]]:
        return self._x_domain

    def y_domain(self) -> Optional[Tuple[float, float]]:
        return self._y_domain

    def nearest_index(self, x_val: float) -> Optional[int]:
        if self._x.size == 0:
            return None
        idx = int(np.searchsorted(self._x, x_val))
        if idx <= 0:
            return 0
        if idx >= self._x.size:
            return int(self._x.size - 1)
        before = self._x[idx - 1]
        after = self._x[idx]
        return idx - 1 if (x_val - before) <= (after - x_val) else idx

    def _apply_style(self) -> None:
        if self.style == 'area' and self._y_domain is not None:
            fill = QColor(self.color)
            fill.setAlpha(90)
            self.curve.setFillLevel(self._y_domain[0])
            self.curve.setBrush(pg.mkBrush(fill))
        else:
            self.curve.setFillLevel(None)
            self.curve.setBrush(None)

    def _apply_domains(self) -> None:
        if self._x_domain is None or self._y_domain is None:
            return
        x_min, x_max = self._x_domain
        if x_min == x_max:
            x_min, x_max = x_min - 1, x_max + 1
        y_min, y_max = self._y_domain
        if y_min == y_max:
            pad = abs(y_min) * 0.01 or 1.0
            y_min, y_max = y_min - pad, y_max + pad
        view_box = self.plot_widget.getViewBox()
        view_box.disableAutoRange()
        self.plot_widget.setXRange(x_min, x_max, padding=0)
        self.plot_widget.setYRange(y_min, y_max, padding=0.02)

    def _refresh_time_axis(self) -> None:
        self._time_axis.picture = None
        self._time_axis.update()

    def _hide_hover(self) -> None:
        self.hover_line.hide()
        self.hover_label.hide()

    def _on_mouse_moved(self, pos) -> None:
        plot_item = self.plot_widget.getPlotItem()
        if not self.points or not plot_item.sceneBoundingRect().contains(pos):
            self._hide_hover()
            return
        view_box = plot_item.getViewBox()
        mouse_point = view_box.mapSceneToView(pos)
        idx = self.nearest_index(mouse_point.x())
        if idx is None:
            self._hide_hover()
            return
        x_val = float(self._x[idx])
        y_val = float(self._y[idx])
        self.hover_line.setValue(x_val)
        self.hover_label.setText(self.tooltip_text(idx))
        # Flip the label to the left half so it stays inside the view.
        (x_range, _) = view_box.viewRange()
        anchor_x = 1 if x_val > (x_range[0] + x_range[1]) / 2.0 else 0
        self.hover_label.setAnchor((anchor_x, 1))
        self.hover_label.setPos(x_val, y_val)
        self.hover_line.show()
        self.hover_label.show()

    def export_png(self, path: str) -> None:
        pixmap = self.plot_widget.grab()
        pixmap.save(path, 'PNG')
