"""Logger that writes to the console and, optionally, a timestamped log file."""

import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, TextIO

from config import settings

# Default logs directory (next to the packages)
DEFAULT_LOGS_DIR = Path(__file__).parent.parent / "logs"


class Logger:
    """
    Logger that writes to both console and a timestamped JSON-lines file.
    A new log file is created per process the first time a message is written.
    Old log files are deleted based on the retention period.
    """

    def __init__(
        self,
        logs_dir: Optional[Path] = None,
        to_file: bool = True,
        retention_days: int = 7,
    ):
        self._log_file: Optional[TextIO] = None
        self._log_file_path: Optional[str] = None
        self._logs_dir = logs_dir or DEFAULT_LOGS_DIR
        self._to_file = to_file
        self._retention_days = retention_days

    def _open_log_file(self) -> None:
        """Create the log file and prune expired ones."""
        self._logs_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().isoformat().replace(":", "-").replace(".", "-")
        self._log_file_path = str(self._logs_dir / f"suggest-{timestamp}.log")
        self._log_file = open(self._log_file_path, "a", encoding="utf-8")
        self._clean_old_logs()

    def _clean_old_logs(self) -> None:
        """Delete log files older than the retention period."""
        max_age_seconds = self._retention_days * 24 * 60 * 60
        now = datetime.now().timestamp()

        for file in self._logs_dir.glob("*.log"):
            if str(file) == self._log_file_path:
                continue
            try:
                if now - file.stat().st_mtime > max_age_seconds:
                    file.unlink()
            except OSError:
                # Another process may have removed it already
                continue

    def _write(self, level: str, msg: str, data: Optional[dict[str, Any]] = None) -> None:
        """Write a log message to console and file."""
        timestamp = datetime.now().isoformat()

        # Human-readable format for console
        data_str = " " + json.dumps(data, default=str) if data else ""
        console_log = f"[{timestamp}] {level}: {msg}{data_str}"
        stream = sys.stderr if level in ("WARNING", "ERROR") else sys.stdout
        print(console_log, file=stream)

        if not self._to_file:
            return
        if self._log_file is None:
            try:
                self._open_log_file()
            except OSError:
                self._to_file = False
                return

        # Structured JSON format for file (JSON Lines)
        structured_log = {
            "timestamp": timestamp,
            "level": level,
            "message": msg,
            **(data or {}),
        }
        self._log_file.write(json.dumps(structured_log, default=str) + "\n")
        self._log_file.flush()

    def debug(self, msg: str, data: Optional[dict[str, Any]] = None) -> None:
        """Log a debug message."""
        self._write("DEBUG", msg, data)

    def info(self, msg: str, data: Optional[dict[str, Any]] = None) -> None:
        """Log an info message."""
        self._write("INFO", msg, data)

    def warning(self, msg: str, data: Optional[dict[str, Any]] = None) -> None:
        """Log a warning message."""
        self._write("WARNING", msg, data)

    def error(self, msg: str, data: Optional[dict[str, Any]] = None) -> None:
        """Log an error message."""
        self._write("ERROR", msg, data)

    def get_log_file_path(self) -> Optional[str]:
        """Get the current log file path, if one has been opened."""
        return self._log_file_path

    def close(self) -> None:
        """Close the log stream."""
        if self._log_file:
            self._log_file.close()
            self._log_file = None


# Singleton logger instance
log = Logger(
    logs_dir=Path(settings.log_dir) if settings.log_dir else None,
    to_file=settings.log_to_file,
    retention_days=settings.log_retention_days,
)
