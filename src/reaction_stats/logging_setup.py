# src/reaction_stats/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "reaction-stats.log"
LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Per-request chatter; kept out of the log file as well.
_QUIET_LIBRARIES = ("httpx", "httpcore")


class _ConsoleNoiseFilter(logging.Filter):
    """
    Console policy while a run is in progress:
    - reaction_stats records always pass (the handler level still applies)
    - captured warnings.warn(...) ('py.warnings') pass from `warnings_level`
    - anything else from third parties passes only from `third_party_level`
    """

    def __init__(
            self,
            *,
            warnings_level: int = logging.WARNING,
            third_party_level: int = logging.ERROR,
    ) -> None:
        super().__init__()
        self.warnings_level = warnings_level
        self.third_party_level = third_party_level

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name == "reaction_stats" or name.startswith("reaction_stats."):
            return True
        if name == "py.warnings":
            return record.levelno >= self.warnings_level
        return record.levelno >= self.third_party_level


def setup_logging(
    *,
    log_dir: str | Path = ".local/reaction-stats",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Route all logging to stderr (filtered) and to a debug log file under `log_dir`.

    stdout stays free for the JSON report. Call once, before the first log line.
    Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)
    for name in _QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)

    return log_file
