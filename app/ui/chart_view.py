import logging
import time
from typing import Callable, Optional

import pyqtgraph as pg
from PyQt6.QtWidgets import QWidget, QVBoxLayout, QHBoxLayout, QPushButton, QComboBox, QLabel, QTabBar, QStackedWidget, QStyle
from PyQt6.QtGui import QColor, QFont, QLinearGradient, QBrush
from PyQt6.QtCore import QThread, pyqtSignal, Qt, QSize

from core.config import AppConfig, ASSETS, CURRENCIES, RANGES, INTERVALS_MS
from core.data_fetch import fetch_market_chart
from core.models import FetchStatus, Selection
from core.polling import PollingController
from core.view_state import ViewState
from .theme import theme
from .charts.price_chart import PriceChart

logger = logging.getLogger(__name__)

LOADING_TEXT = 'Loading data...'
FAILED_TEXT = 'Failed to fetch data.'

PAGE_LOADING = 0
PAGE_ERROR = 1
PAGE_CHART = 2


class MarketChartWorker(QThread):
    data_ready = pyqtSignal(int, object)
    error = pyqtSignal(int, str)

    def __init__(self, seq: int, selection: Selection, fetcher: Callable, base_url: str, timeout: Optional[float]) -> None:
        super().__init__()
        self.seq = seq
        self.selection = selection
        self.fetcher = fetcher
        self.base_url = base_url
        self.timeout = timeout

    def run(self) -> None:
        try:
            series = self.fetcher(
                self.selection.asset,
                self.selection.currency,
                self.selection.range_code,
                base_url=self.base_url,
                timeout=self.timeout,
            )
            self.data_ready.emit(self.seq, series)
        except Exception as exc:
            self.error.emit(self.seq, str(exc))


class ChartView(QWidget):
    def __init__(self, config: Optional[AppConfig] = None, error_sink=None, fetcher: Optional[Callable] = None) -> None:
        super().__init__()
        self.config = config or AppConfig()
        self.error_sink = error_sink
        self.fetcher = fetcher or fetch_market_chart
        self.state = ViewState(self.config.initial_selection(), parent=self)
        self.poller = PollingController(self._start_fetch, parent=self)

        self._workers: set[MarketChartWorker] = set()
        self._request_seq = 0
        self._last_applied_seq = 0

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self.title_label = QLabel('')
        self.title_label.setObjectName('ChartTitle')
        title_font = QFont()
        title_font.setPointSize(14)
        title_font.setBold(True)
        self.title_label.setFont(title_font)
        self.title_label.setContentsMargins(10, 8, 10, 0)
        layout.addWidget(self.title_label)

        self.toolbar = QWidget()
        self.toolbar.setObjectName('TopToolbar')
        toolbar_layout = QHBoxLayout(self.toolbar)
        toolbar_layout.setContentsMargins(6, 6, 6, 4)
        toolbar_layout.setSpacing(6)

        self.asset_box = self._make_combo(ASSETS, self.state.selection.asset)
        toolbar_layout.addWidget(QLabel('Cryptocurrency'))
        toolbar_layout.addWidget(self.asset_box)

        self.currency_box = self._make_combo(CURRENCIES, self.state.selection.currency)
        toolbar_layout.addWidget(QLabel('Currency'))
        toolbar_layout.addWidget(self.currency_box)

        self.interval_box = self._make_combo(INTERVALS_MS, self.state.selection.interval_ms)
        toolbar_layout.addWidget(QLabel('Refresh'))
        toolbar_layout.addWidget(self.interval_box)

        self.refresh_button = QPushButton('Refresh')
        self.refresh_button.setToolTip('Refresh now')
        try:
            self.refresh_button.setIcon(self.style().standardIcon(QStyle.StandardPixmap.SP_BrowserReload))
            self.refresh_button.setIconSize(QSize(14, 14))
        except Exception:
            pass
        toolbar_layout.addWidget(self.refresh_button)

        self.status_label = QLabel('')
        toolbar_layout.addWidget(self.status_label)
        toolbar_layout.addStretch(1)
        layout.addWidget(self.toolbar)

        self.range_tabs = QTabBar()
        self.range_tabs.setObjectName('RangeTabs')
        self.range_tabs.setExpanding(False)
        self.range_tabs.setDrawBase(False)
        self._range_codes = list(RANGES.keys())
        for label in RANGES.values():
            self.range_tabs.addTab(label)
        self.range_tabs.setCurrentIndex(self._range_codes.index(self.state.selection.range_code))
        layout.addWidget(self.range_tabs, alignment=Qt.AlignmentFlag.AlignHCenter)

        self.pages = QStackedWidget()
        self.loading_label = self._make_placeholder(LOADING_TEXT, theme.TEXT)
        self.error_label = self._make_placeholder(FAILED_TEXT, theme.ERROR)
        self.pages.addWidget(self.loading_label)
        self.pages.addWidget(self.error_label)

        self.plot_widget = pg.PlotWidget()
        gradient = QLinearGradient(0, 0, 0, 1)
        gradient.setCoordinateMode(QLinearGradient.CoordinateMode.ObjectBoundingMode)
        gradient.setColorAt(0.0, QColor(theme.BACKGROUND_TOP))
        gradient.setColorAt(1.0, QColor(theme.BACKGROUND_BOTTOM))
        self.plot_widget.setBackground(QBrush(gradient))
        self.plot_widget.showGrid(x=True, y=True, alpha=0.2)
        self.plot_widget.setStyleSheet("border: 0px;")
        self.chart = PriceChart(
            self.plot_widget,
            theme.LINE,
            locale=self.config.locale,
            style=self.config.chart_style,
        )
        self._apply_axis_style()
        self.pages.addWidget(self.plot_widget)
        self.pages.setMinimumHeight(400)
        layout.addWidget(self.pages, 1)

        self.asset_box.currentIndexChanged.connect(self._on_asset_changed)
        self.currency_box.currentIndexChanged.connect(self._on_currency_changed)
        self.interval_box.currentIndexChanged.connect(self._on_interval_changed)
        self.range_tabs.currentChanged.connect(self._on_range_changed)
        self.refresh_button.clicked.connect(self.refresh)
        self.state.selection_changed.connect(self._on_selection_changed)
        self.state.status_changed.connect(self._render)

        self._update_title(self.state.selection)
        self._render(self.state.status)

    def _make_combo(self, options: dict, current) -> QComboBox:
        box = QComboBox()
        box.setMinimumWidth(120)
        box.setMinimumHeight(22)
        for value, label in options.items():
            box.addItem(label, value)
        idx = box.findData(current)
        if idx >= 0:
            box.setCurrentIndex(idx)
        return box

    def _make_placeholder(self, text: str, color: str) -> QLabel:
        label = QLabel(text)
        label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        label.setStyleSheet(f'color: {color};')
        return label

    def _apply_axis_style(self) -> None:
        axis_pen = pg.mkPen(theme.GRID)
        text_pen = pg.mkPen(theme.TEXT)
        for axis_name in ('left', 'bottom'):
            axis = self.plot_widget.getAxis(axis_name)
            axis.setPen(axis_pen)
            axis.setTextPen(text_pen)

    def start(self) -> None:
        self.poller.activate(self.state.selection)

    def refresh(self) -> None:
        self.poller.refresh()

    def _on_asset_changed(self, _index: int) -> None:
        self.state.set_asset(self.asset_box.currentData())

    def _on_currency_changed(self, _index: int) -> None:
        self.state.set_currency(self.currency_box.currentData())

    def _on_interval_changed(self, _index: int) -> None:
        self.state.set_interval(self.interval_box.currentData())

    def _on_range_changed(self, index: int) -> None:
        if 0 <= index < len(self._range_codes):
            self.state.set_range(self._range_codes[index])

    def _on_selection_changed(self, selection: Selection) -> None:
        self._update_title(selection)
        self.poller.on_selection_changed(selection)

    def _update_title(self, selection: Selection) -> None:
        self.title_label.setText(f'{selection.asset.upper()} Price Data ({selection.currency.upper()})')

    def _start_fetch(self, selection: Selection) -> None:
        self._request_seq += 1
        seq = self._request_seq
        self.state.begin_fetch()
        self._set_loading(True, f'Loading {selection.asset} {selection.currency.upper()} {RANGES.get(selection.range_code, selection.range_code)}...')
        worker = MarketChartWorker(seq, selection, self.fetcher, self.config.base_url, self.config.request_timeout)
        worker.data_ready.connect(self._on_data_ready)
        worker.error.connect(self._on_error)
        worker.finished.connect(lambda w=worker: self._on_fetch_finished(w))
        self._workers.add(worker)
        worker.started_ms = int(time.time() * 1000)
        worker.start()

    def _note_completion(self, seq: int) -> None:
        if seq < self._last_applied_seq:
            # Last write wins: the older response still replaces the newer one.
            logger.warning(
                'Request #%d completed after newer request #%d; its result overwrites the newer one',
                seq,
                self._last_applied_seq,
            )
        self._last_applied_seq = max(self._last_applied_seq, seq)

    def _on_data_ready(self, seq: int, series) -> None:
        self._note_completion(seq)
        self.state.apply_series(series)
        self.status_label.setText('')

    def _on_error(self, seq: int, message: str) -> None:
        self._note_completion(seq)
        self.state.apply_failure()
        self.status_label.setText(f'Error: {message}')
        self.status_label.setStyleSheet(f'color: {theme.ERROR};')
        self._report_error(f'{FAILED_TEXT} {message}')

    def _on_fetch_finished(self, worker: MarketChartWorker) -> None:
        logger.debug('Request #%d finished in %d ms', worker.seq, int(time.time() * 1000) - worker.started_ms)
        self._workers.discard(worker)
        worker.deleteLater()
        if not self._workers:
            self._set_loading(False, '')

    def _set_loading(self, is_loading: bool, message: str) -> None:
        if is_loading:
            self.status_label.setText(message)
            self.status_label.setStyleSheet(f'color: {theme.TEXT};')
        else:
            if not self.status_label.text().startswith('Error:'):
                self.status_label.setText('')

    def _report_error(self, message: str) -> None:
        if self.error_sink is not None:
            try:
                self.error_sink.append_error(message)
            except Exception:
                pass

    def _render(self, status: FetchStatus) -> None:
        if status is FetchStatus.LOADING:
            self.pages.setCurrentIndex(PAGE_LOADING)
            return
        if status is FetchStatus.FAILED:
            self.pages.setCurrentIndex(PAGE_ERROR)
            return
        series = self.state.ready_series() or ()
        self.chart.set_series(series, range_code=self.state.selection.range_code)
        self.pages.setCurrentIndex(PAGE_CHART)

    def shutdown(self) -> None:
        self.poller.shutdown()
        for worker in list(self._workers):
            if worker.isRunning():
                worker.quit()
                worker.wait(1500)

    def export_chart_png(self, path: str) -> None:
        self.chart.export_png(path)
