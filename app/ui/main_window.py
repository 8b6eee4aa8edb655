import os
from typing import Optional

from PyQt6.QtWidgets import QMainWindow, QDockWidget, QFileDialog, QStyle
from PyQt6.QtGui import QAction, QKeySequence
from PyQt6.QtCore import Qt, QSettings

from core.config import AppConfig
from .chart_view import ChartView
from .error_dock import ErrorDock


class MainWindow(QMainWindow):
    def __init__(self, config: Optional[AppConfig] = None) -> None:
        super().__init__()
        self.setWindowTitle('CoinChart')
        self.resize(1100, 640)

        self.error_dock = ErrorDock()
        self.chart_view = ChartView(config=config, error_sink=self.error_dock)
        self.setCentralWidget(self.chart_view)

        self.addDockWidget(Qt.DockWidgetArea.BottomDockWidgetArea, self.error_dock)
        self.error_dock.hide()
        try:
            self.error_dock.setWindowIcon(self.style().standardIcon(QStyle.StandardPixmap.SP_MessageBoxCritical))
        except Exception:
            pass

        self._settings = QSettings('CoinChart', 'CoinChart')
        self._setup_menu()
        self._restore_layout()

    def showEvent(self, event) -> None:
        super().showEvent(event)
        if not self.chart_view.poller.is_active():
            self.chart_view.start()

    def closeEvent(self, event) -> None:
        self._save_layout()
        try:
            self.chart_view.shutdown()
        except Exception:
            pass
        super().closeEvent(event)

    def _setup_menu(self) -> None:
        menu_bar = self.menuBar()
        file_menu = menu_bar.addMenu('File')
        view_menu = menu_bar.addMenu('View')
        window_menu = menu_bar.addMenu('Window')

        export_action = QAction('Export Chart as PNG...', self)
        export_action.triggered.connect(self._export_chart_png)
        file_menu.addAction(export_action)

        quit_action = QAction('Quit', self)
        quit_action.setShortcut(QKeySequence.StandardKey.Quit)
        quit_action.triggered.connect(self.close)
        file_menu.addAction(quit_action)

        refresh_action = QAction('Refresh', self)
        refresh_action.setShortcut(QKeySequence.StandardKey.Refresh)
        refresh_action.triggered.connect(self.chart_view.refresh)
        view_menu.addAction(refresh_action)

        self._dock_actions = []
        for dock in (self.error_dock,):
            action = QAction(dock.windowTitle(), self)
            action.setCheckable(True)
            action.setChecked(not dock.isHidden())
            action.triggered.connect(lambda checked, d=dock: self._toggle_dock(d, checked))
            dock.visibilityChanged.connect(lambda visible, a=action: a.setChecked(visible))
            window_menu.addAction(action)
            self._dock_actions.append(action)

    def _toggle_dock(self, dock: QDockWidget, visible: bool) -> None:
        if visible:
            dock.show()
            dock.raise_()
        else:
            dock.hide()

    def _export_chart_png(self) -> None:
        default_path = os.path.join(os.path.expanduser('~'), 'coinchart.png')
        path, _ = QFileDialog.getSaveFileName(
            self,
            'Export Chart as PNG',
            default_path,
            'PNG Image (*.png)',
        )
        if not path:
            return
        if not path.lower().endswith('.png'):
            path = f'{path}.png'
        try:
            self.chart_view.export_chart_png(path)
        except Exception as exc:
            self.error_dock.append_error(f'Export failed: {exc}')

    def _save_layout(self) -> None:
        self._settings.setValue('geometry', self.saveGeometry())
        self._settings.setValue('windowState', self.saveState())

    def _restore_layout(self) -> None:
        geometry = self._settings.value('geometry')
        window_state = self._settings.value('windowState')
        if geometry is not None:
            self.restoreGeometry(geometry)
        if window_state is not None:
            self.restoreState(window_state)
