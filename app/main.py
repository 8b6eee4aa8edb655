import argparse
import logging
import os
import faulthandler
import sys
import traceback
from typing import Optional

from PyQt6.QtWidgets import QApplication

from core.config import AppConfig, ASSETS, CURRENCIES, RANGES, INTERVALS_MS, LOCALES, CHART_STYLES, COINGECKO_BASE_URL
from ui.main_window import MainWindow

_FAULT_LOG_HANDLE = None

logger = logging.getLogger(__name__)


def _install_exception_logging() -> None:
    log_path = os.path.join(os.path.dirname(__file__), "exception.log")
    def _hook(exc_type, exc_value, exc_tb):
        logger.error("Unhandled exception", exc_info=(exc_type, exc_value, exc_tb))
        try:
            with open(log_path, "a", encoding="utf-8") as handle:
                handle.write("\n=== Unhandled Exception ===\n")
                traceback.print_exception(exc_type, exc_value, exc_tb, file=handle)
        except OSError:
            pass
    sys.excepthook = _hook
    import threading
    def _thread_hook(args):
        _hook(args.exc_type, args.exc_value, args.exc_traceback)
    threading.excepthook = _thread_hook


def _enable_faulthandler() -> None:
    global _FAULT_LOG_HANDLE
    try:
        log_path = os.path.join(os.path.dirname(__file__), "faulthandler.log")
        # Overwrite each run so the log reflects the current crash only.
        _FAULT_LOG_HANDLE = open(log_path, "w", encoding="utf-8")
        _FAULT_LOG_HANDLE.write(f"pid={os.getpid()}\n")
        _FAULT_LOG_HANDLE.flush()
        faulthandler.enable(_FAULT_LOG_HANDLE, all_threads=True)
    except OSError:
        faulthandler.enable(all_threads=True)


def build_parser() -> argparse.ArgumentParser:
    defaults = AppConfig()
    interval_minutes = [ms // 60_000 for ms in INTERVALS_MS]
    ap = argparse.ArgumentParser(description="Cryptocurrency price chart that polls CoinGecko.")
    ap.add_argument("--asset", default=defaults.asset, choices=list(ASSETS), help="Asset id (default: %(default)s)")
    ap.add_argument("--currency", default=defaults.currency, choices=list(CURRENCIES), help="Quote currency (default: %(default)s)")
    ap.add_argument("--range", dest="range_code", default=defaults.range_code, choices=list(RANGES), help="Time range in days (default: %(default)s)")
    ap.add_argument(
        "--interval",
        type=int,
        default=defaults.interval_ms // 60_000,
        choices=interval_minutes,
        help="Refresh interval in minutes (default: %(default)s)",
    )
    ap.add_argument("--locale", default=defaults.locale, choices=list(LOCALES), help="Locale for axis and tooltip labels")
    ap.add_argument("--chart-style", default=defaults.chart_style, choices=list(CHART_STYLES))
    ap.add_argument("--base-url", default=COINGECKO_BASE_URL, help="Market data API base URL")
    ap.add_argument("--timeout", type=float, default=None, help="HTTP timeout in seconds (default: none)")
    ap.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return ap


def config_from_args(args: argparse.Namespace) -> AppConfig:
    return AppConfig(
        asset=args.asset,
        currency=args.currency,
        range_code=args.range_code,
        interval_ms=args.interval * 60_000,
        locale=args.locale,
        chart_style=args.chart_style,
        base_url=args.base_url,
        request_timeout=args.timeout,
    )


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = config_from_args(args)
    _enable_faulthandler()
    _install_exception_logging()

    app = QApplication(sys.argv[:1])
    qss_path = os.path.join(os.path.dirname(__file__), 'ui', 'app.qss')
    if os.path.exists(qss_path):
        with open(qss_path, 'r', encoding='utf-8') as handle:
            app.setStyleSheet(handle.read())
    window = MainWindow(config)
    window.show()
    return app.exec()


if __name__ == '__main__':
    sys.exit(main())
