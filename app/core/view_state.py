from __future__ import annotations

from typing import Iterable, Optional

from PyQt6.QtCore import QObject, pyqtSignal

from core.models import FetchStatus, Selection, Series


class ViewState(QObject):
    selection_changed = pyqtSignal(object)
    status_changed = pyqtSignal(object)

    def __init__(self, selection: Selection, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._selection = selection
        self._status = FetchStatus.LOADING
        self._series: Series = ()

    @property
    def selection(self) -> Selection:
        return self._selection

    @property
    def status(self) -> FetchStatus:
        return self._status

    @property
    def series(self) -> Series:
        """Last successfully fetched series, kept even after a failed fetch."""
        return self._series

    def ready_series(self) -> Optional[Series]:
        if self._status is not FetchStatus.READY:
            return None
        return self._series

    def set_asset(self, asset: str) -> None:
        self._set_selection(self._selection.with_asset(asset))

    def set_currency(self, currency: str) -> None:
        self._set_selection(self._selection.with_currency(currency))

    def set_range(self, range_code: str) -> None:
        self._set_selection(self._selection.with_range(range_code))

    def set_interval(self, interval_ms: int) -> None:
        self._set_selection(self._selection.with_interval(interval_ms))

    def begin_fetch(self) -> None:
        self._set_status(FetchStatus.LOADING)

    def apply_series(self, series: Iterable) -> None:
        self._series = tuple(series)
        self._set_status(FetchStatus.READY)

    def apply_failure(self) -> None:
        self._set_status(FetchStatus.FAILED)

    def _set_selection(self, selection: Selection) -> None:
        if selection == self._selection:
            return
        self._selection = selection
        self.selection_changed.emit(selection)

    def _set_status(self, status: FetchStatus) -> None:
        self._status = status
        self.status_changed.emit(status)
