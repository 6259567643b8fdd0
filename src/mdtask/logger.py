"""
Command logging: optional log file per command, optional console echo.

When a log directory is configured each command appends to
<log_dir>/<command>.log. With JSON logging enabled it also writes structured
entries to <log_dir>/<command>.log.json.

Console echo goes to stderr so it never mixes with command output.
"""

import json
import sys
import traceback
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Optional


class CommandLogger:
    """
    Logger scoped to one CLI command invocation.

    Usage:
        with CommandLogger("list", log_dir=Path("logs")) as log:
            log.info("Loaded tasks", count=3)

        # With context for structured metadata:
        with log.with_context(task="build") as ctx_log:
            ctx_log.info("Showing task")
    """

    def __init__(
        self,
        command: str,
        log_dir: Optional[Path] = None,
        json_logs: bool = False,
        verbose: bool = False,
    ):
        """
        Args:
            command: Command name (list, show, check, doctor)
            log_dir: Directory for log files, None disables file logging
            json_logs: Also write JSON lines
            verbose: Echo every entry to stderr
        """
        self.command = command
        self.log_dir = Path(log_dir) if log_dir else None
        self.json_logs = json_logs
        self.verbose = verbose
        self.log_file = None
        self.json_log_file = None
        self.context: dict = {}
        self.start_time: Optional[datetime] = None

    def _format_message(self, level: str, message: str, context: Optional[dict] = None) -> str:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        base = f"[{timestamp}] [{self.command.upper()}] [{level}] {message}"

        if context:
            ctx_parts = [f"{key}={value}" for key, value in sorted(context.items()) if value is not None]
            if ctx_parts:
                base += f" [{', '.join(ctx_parts)}]"

        return base

    def _format_json_log(self, level: str, message: str, context: Optional[dict] = None) -> dict:
        entry = {
            "timestamp": datetime.now().isoformat(),
            "command": self.command,
            "level": level,
            "message": message,
        }
        if context:
            entry.update(context)
        return entry

    def _write(self, level: str, message: str, context: Optional[dict] = None) -> None:
        merged_context = {**self.context}
        if context:
            merged_context.update(context)

        formatted = self._format_message(level, message, merged_context or None)

        if self.verbose:
            print(formatted, file=sys.stderr)

        if self.log_file:
            self.log_file.write(formatted + "\n")
            self.log_file.flush()

        if self.json_log_file:
            json_entry = self._format_json_log(level, message, merged_context or None)
            self.json_log_file.write(json.dumps(json_entry, default=str) + "\n")
            self.json_log_file.flush()

    def debug(self, message: str, **context) -> None:
        """Log a debug message with optional context."""
        self._write("DEBUG", message, context or None)

    def info(self, message: str, **context) -> None:
        """Log an info message with optional context."""
        self._write("INFO", message, context or None)

    def warning(self, message: str, **context) -> None:
        """Log a warning message with optional context."""
        self._write("WARNING", message, context or None)

    def error(self, message: str, **context) -> None:
        """Log an error message with optional context."""
        self._write("ERROR", message, context or None)

    @contextmanager
    def with_context(self, **kwargs):
        """Temporarily add structured metadata to every entry."""
        old_context = self.context.copy()
        self.context.update(kwargs)
        try:
            yield self
        finally:
            self.context = old_context

    def __enter__(self):
        if self.log_dir:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            self.log_file = open(self.log_dir / f"{self.command}.log", "a", encoding="utf-8")
            if self.json_logs:
                self.json_log_file = open(self.log_dir / f"{self.command}.log.json", "a", encoding="utf-8")

        self.start_time = datetime.now()
        self.info(f"Starting {self.command}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration_ms = None
        if self.start_time:
            duration_ms = int((datetime.now() - self.start_time).total_seconds() * 1000)

        if exc_type is not None:
            self.error(
                f"Exception in {self.command}: {exc_val}",
                kind=getattr(exc_val, "kind", exc_type.__name__),
                duration_ms=duration_ms,
            )
            if self.log_file:
                self.log_file.write("".join(traceback.format_exception(exc_type, exc_val, exc_tb)))
                self.log_file.flush()
        else:
            self.info(f"Completed {self.command}", duration_ms=duration_ms)

        if self.log_file:
            self.log_file.close()
            self.log_file = None
        if self.json_log_file:
            self.json_log_file.close()
            self.json_log_file = None

        return False
