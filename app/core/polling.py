from __future__ import annotations

from typing import Callable, Optional

from PyQt6.QtCore import QCoreApplication, QObject, QTimer

from core.models import Selection


class PollingController(QObject):
    """
    Repeating fetch scheduler for the current selection.

    One QTimer is owned for the controller's lifetime. Every activation stops it
    before it is re-armed, so there is never more than one pending tick. Requests
    that are already in flight are left alone; the caller decides what to do with
    late responses.
    """

    def __init__(self, fetch: Callable[[Selection], None], parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._fetch = fetch
        self._selection: Optional[Selection] = None
        self._timer = QTimer(self)
        self._timer.timeout.connect(self._on_tick)

        app = QCoreApplication.instance()
        if app is not None:
            try:
                app.aboutToQuit.connect(self.shutdown)
            except Exception:
                pass

    @property
    def selection(self) -> Optional[Selection]:
        return self._selection

    def is_active(self) -> bool:
        return self._timer.isActive()

    def interval_ms(self) -> int:
        return self._timer.interval()

    def activate(self, selection: Selection) -> None:
        self._timer.stop()
        self._selection = selection
        self._fetch(selection)
        self._timer.start(int(selection.interval_ms))

    def on_selection_changed(self, selection: Selection) -> None:
        self.activate(selection)

    def refresh(self) -> None:
        # Extra fetch only; the timer keeps its phase.
        if self._selection is None:
            return
        self._fetch(self._selection)

    def shutdown(self) -> None:
        self._timer.stop()

    def _on_tick(self) -> None:
        if self._selection is None:
            return
        self._fetch(self._selection)
