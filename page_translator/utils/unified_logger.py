"""
Unified logging for the CLI and embedding applications.

Library code reports through log_callback(event_name, message); the logger
built here turns those events into coloured console lines, keeps the last
progress numbers, and mirrors everything to the standard logging module.
"""
import logging
import sys
import time
from enum import Enum
from typing import Any, Callable, Dict, Optional, TextIO


class LogLevel(Enum):
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40


class LogType(Enum):
    GENERAL = "general"
    TRANSLATION_START = "translation_start"
    TRANSLATION_END = "translation_end"
    PROGRESS = "progress"
    LLM_REQUEST = "llm_request"
    LLM_RESPONSE = "llm_response"
    UNIT_OUTCOME = "unit_outcome"
    ERROR_DETAIL = "error_detail"
    INFO = "info"


class Colors:
    RESET = '\033[0m'
    BOLD = '\033[1m'
    GRAY = '\033[90m'
    RED = '\033[91m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    CYAN = '\033[96m'


_LEVEL_COLORS = {
    LogLevel.DEBUG: Colors.GRAY,
    LogLevel.INFO: '',
    LogLevel.WARNING: Colors.YELLOW,
    LogLevel.ERROR: Colors.RED,
}

# Event names from the legacy callback that carry debug-only detail
_DEBUG_EVENTS = {
    "translation_attempt", "placeholder_validation_failed", "units_extracted", "results_applied",
}


class UnifiedLogger:
    """
    Console logger with levels, log types and a progress line.

    Every entry is also passed to the standard `logging` logger of the same
    name, and to an optional entry_callback receiving the entry dict.
    """

    def __init__(self, name: str = "page_translator", min_level: LogLevel = LogLevel.INFO,
                 enable_colors: bool = True, console_output: bool = True,
                 stream: Optional[TextIO] = None,
                 entry_callback: Optional[Callable[[Dict[str, Any]], None]] = None):
        self.name = name
        self.min_level = min_level
        self.enable_colors = enable_colors
        self.console_output = console_output
        self.stream = stream
        self.entry_callback = entry_callback
        self.progress = {'completed': 0, 'total': 0}
        self._logger = logging.getLogger(name)

    def _colorize(self, text: str, color: str) -> str:
        if not self.enable_colors or not color:
            return text
        return f"{color}{text}{Colors.RESET}"

    def log(self, level: LogLevel, message: str, log_type: LogType = LogType.GENERAL,
            data: Optional[Dict[str, Any]] = None) -> None:
        entry = {
            'timestamp': time.strftime('%H:%M:%S'),
            'level': level.name,
            'type': log_type.value,
            'message': message,
            'data': data or {},
        }
        self._logger.log(level.value, message)

        if self.entry_callback:
            self.entry_callback(entry)

        if self.console_output and level.value >= self.min_level.value:
            stream = self.stream or sys.stdout
            stream.write(self._format(entry, level, log_type, data) + "\n")
            stream.flush()

    def _format(self, entry: Dict[str, Any], level: LogLevel, log_type: LogType,
                data: Optional[Dict[str, Any]]) -> str:
        if log_type in (LogType.TRANSLATION_START, LogType.TRANSLATION_END):
            lines = [self._colorize(f"=== {entry['message']} ===", Colors.BOLD + Colors.CYAN)]
            for key, value in (data or {}).items():
                lines.append(f"  {key}: {value}")
            return "\n".join(lines)

        prefix = self._colorize(f"[{entry['timestamp']}]", Colors.GRAY)
        return f"{prefix} {self._colorize(entry['message'], _LEVEL_COLORS[level])}"

    def debug(self, message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.DEBUG, message, log_type, data)

    def info(self, message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.INFO, message, log_type, data)

    def warning(self, message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.WARNING, message, log_type, data)

    def error(self, message: str, log_type: LogType = LogType.ERROR_DETAIL, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.ERROR, message, log_type, data)

    def update_progress(self, completed: int, total: int) -> None:
        """Record progress and print a progress line when it moves."""
        if completed == self.progress['completed'] and total == self.progress['total']:
            return
        self.progress = {'completed': completed, 'total': total}
        percent = (completed / total * 100) if total else 0.0
        self.log(LogLevel.INFO, f"Progress: {completed}/{total} units ({percent:.0f}%)",
                 LogType.PROGRESS, dict(self.progress))

    def create_legacy_callback(self) -> Callable[..., None]:
        """
        Adapter for library code that reports log_callback(event_name, message).

        The level is derived from the event name.
        """
        def callback(event_name: str, message: str = "", data: Optional[Dict[str, Any]] = None) -> None:
            key = (event_name or "").lower()
            if key in _DEBUG_EVENTS:
                self.debug(message, data=data)
            elif "error" in key or "failed" in key:
                self.error(message, data=data)
            elif "warning" in key or key in ("unit_stale", "unit_detached", "unit_untranslated",
                                              "placeholder_fallback", "empty_extraction",
                                              "result_malformed"):
                self.warning(message, data=data)
            elif key == "translation_stats":
                self.info(message, LogType.INFO, data)
            else:
                self.info(message, data=data)

        return callback


_default_logger: Optional[UnifiedLogger] = None


def setup_cli_logger(enable_colors: bool = True, debug: bool = False) -> UnifiedLogger:
    """Create the process-wide console logger used by the CLI."""
    global _default_logger
    min_level = LogLevel.DEBUG if debug else LogLevel.INFO
    _default_logger = UnifiedLogger(min_level=min_level, enable_colors=enable_colors)
    return _default_logger


def get_logger() -> UnifiedLogger:
    """Return the process-wide logger, creating a plain one on first use."""
    global _default_logger
    if _default_logger is None:
        _default_logger = UnifiedLogger()
    return _default_logger
