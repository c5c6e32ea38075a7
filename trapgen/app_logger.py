from __future__ import annotations

import logging
import logging.handlers
import re
import shutil
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from trapgen.app_config import AppConfig


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    console: bool = True
    log_dir: Optional[Path] = None
    log_file: str = "trapgen.log"
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5
    rotate_on_startup: bool = True


LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """Adds ANSI colour to the level name for console output."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        original_levelname = record.levelname
        if record.levelname in self.COLORS:
            record.levelname = (
                f"{self.COLORS[record.levelname]}{record.levelname}{self.RESET}"
            )
        try:
            return super().format(record)
        finally:
            record.levelname = original_levelname


class FlushingStreamHandler(logging.StreamHandler):  # type: ignore[type-arg]
    """Stream handler that flushes after every emit."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            super().emit(record)
            self.flush()
        except Exception:
            self.handleError(record)


class FlushingRotatingFileHandler(logging.handlers.RotatingFileHandler):
    """Rotating file handler that flushes after every emit."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            super().emit(record)
            self.flush()
        except Exception:
            self.handleError(record)


def _archive_log_file(log_path: Path) -> Optional[Path]:
    """Move a previous run's log into ``archive/``, stamped with its start time.

    The stamp comes from the first record's timestamp, falling back to the
    file's modification time. Returns the archived path, or None if there was
    nothing to archive or the move failed.
    """
    if not log_path.exists():
        return None

    stamp: Optional[str] = None
    try:
        with open(log_path, "r", encoding="utf-8") as f:
            match = re.match(
                r"^(\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2})\.\d{3}", f.readline()
            )
            if match:
                stamp = match.group(1)
    except (OSError, UnicodeDecodeError):
        pass
    if stamp is None:
        stamp = datetime.fromtimestamp(log_path.stat().st_mtime).strftime(DATE_FORMAT)
    stamp = stamp.replace(" ", "_").replace(":", "-")

    archive_dir = log_path.parent / "archive"
    archive_dir.mkdir(parents=True, exist_ok=True)
    archived = archive_dir / f"{log_path.stem}_{stamp}{log_path.suffix}"
    counter = 1
    while archived.exists():
        archived = archive_dir / f"{log_path.stem}_{stamp}_{counter}{log_path.suffix}"
        counter += 1

    try:
        shutil.move(str(log_path), str(archived))
    except OSError:
        # Keep appending to the existing file
        return None
    return archived


class AppLogger:
    _configured: bool = False
    _handlers: list[logging.Handler] = []

    @staticmethod
    def configure(app_config: "AppConfig", level: Optional[str] = None) -> None:
        """Configure logging from the ``logger`` section of an AppConfig.

        ``level`` overrides the configured level (used by ``--log-level``).
        """
        cfg = app_config.section("logger")
        log_dir = cfg.get("log_dir")
        config = LoggingConfig(
            level=level or cfg.get("level", "INFO"),
            console=cfg.get("console", True),
            log_dir=Path(log_dir).resolve() if log_dir else None,
            log_file=cfg.get("log_file", "trapgen.log"),
            max_bytes=cfg.get("max_bytes", 10 * 1024 * 1024),
            backup_count=cfg.get("backup_count", 5),
            rotate_on_startup=cfg.get("rotate_on_startup", True),
        )
        AppLogger(config, force=True)

    def __init__(self, config: LoggingConfig, force: bool = False) -> None:
        if AppLogger._configured and not force:
            return
        self._configure(config)
        AppLogger._configured = True

    @staticmethod
    def get(name: str | None = None) -> logging.Logger:
        return logging.getLogger(name)

    @staticmethod
    def _configure(config: LoggingConfig) -> None:
        level = logging.getLevelName(config.level.upper())
        if not isinstance(level, int):
            level = logging.INFO

        root = logging.getLogger()
        root.setLevel(level)
        for handler in AppLogger._handlers:
            root.removeHandler(handler)
            handler.close()
        AppLogger._handlers = []

        if config.log_dir is not None:
            config.log_dir.mkdir(parents=True, exist_ok=True)
            log_path = config.log_dir / config.log_file
            if config.rotate_on_startup:
                _archive_log_file(log_path)
            file_handler = FlushingRotatingFileHandler(
                filename=log_path,
                maxBytes=config.max_bytes,
                backupCount=config.backup_count,
                encoding="utf-8",
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(
                logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
            )
            root.addHandler(file_handler)
            AppLogger._handlers.append(file_handler)

        if config.console:
            # stdout carries the run's status lines, diagnostics go to stderr
            console_handler = FlushingStreamHandler(sys.stderr)
            console_handler.setLevel(level)
            console_handler.setFormatter(
                ColoredFormatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
            )
            root.addHandler(console_handler)
            AppLogger._handlers.append(console_handler)

        AppLogger._suppress_third_party_loggers(level)

    @staticmethod
    def _suppress_third_party_loggers(level: int) -> None:
        logging.getLogger("asyncio").setLevel(logging.WARNING)
        if level > logging.DEBUG:
            logging.getLogger("pysnmp").setLevel(logging.WARNING)
        else:
            logging.getLogger("pysnmp").setLevel(logging.DEBUG)

    @staticmethod
    def reset() -> None:
        """Remove the handlers installed by configure()."""
        root = logging.getLogger()
        for handler in AppLogger._handlers:
            root.removeHandler(handler)
            handler.close()
        AppLogger._handlers = []
        AppLogger._configured = False
