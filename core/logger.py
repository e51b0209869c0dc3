"""
Flipbook - Logging System
Rich console output for operators + a plain diagnostic log file.

Paginator sessions log through log_session() so every line about one
session carries the same book-themed prefix; page turns go through
log_debug() and only reach the diagnostic file.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.theme import Theme

# Custom theme for console output
THEME = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "bold green",
    "timestamp": "dim white",
    "header": "bold magenta",
    "config": "dim cyan",
    "session": "blue",
})

# Global console instance
console = Console(theme=THEME)

_logger: Optional[logging.Logger] = None
_console_enabled = True

# Console prefixes for paginator lifecycle events
SESSION_PREFIXES = {
    "start": "📖",
    "jump": "🔢",
    "end": "📕",
}


def setup_logging(
    log_file_path: Path,
    level: str = "INFO",
    log_to_file: bool = True,
    log_to_console: bool = True
) -> logging.Logger:
    """
    Initialize the logging system.

    Args:
        log_file_path: Path to the diagnostic log file
        level: Minimum level written to the file (DEBUG, INFO, WARNING, ERROR)
        log_to_file: Whether to write the diagnostic file
        log_to_console: Whether to print to the console (via rich)

    Returns:
        Configured logger instance
    """
    global _logger, _console_enabled

    _console_enabled = log_to_console

    _logger = logging.getLogger("flipbook")
    _logger.setLevel(getattr(logging, level.upper()))
    _logger.handlers.clear()
    _logger.propagate = False

    if log_to_file:
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file_path, encoding="utf-8")
        handler.setFormatter(logging.Formatter(
            "[%(asctime)s] %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))
        _logger.addHandler(handler)

    return _logger


def get_timestamp() -> str:
    """Get formatted timestamp for console output."""
    return datetime.now().strftime("%H:%M:%S")


def _print(markup: str) -> None:
    if _console_enabled:
        console.print(f"[timestamp][{get_timestamp()}][/timestamp] {markup}")


def _write(level: int, message: str) -> None:
    if _logger:
        _logger.log(level, message)


def log(message: str, level: str = "info", prefix: str = "") -> None:
    """
    Log a message to both console and file.

    Message text is printed literally; square brackets in it are not
    treated as rich markup.

    Args:
        message: The message to log
        level: Log level (info, warning, error, success)
        prefix: Optional emoji/prefix for console output
    """
    prefix_str = f"{prefix} " if prefix else ""
    style = level if level in ("info", "warning", "error", "success") else "info"

    _print(f"[{style}]{escape(prefix_str + message)}[/{style}]")
    # "success" is an INFO record in the file
    _write(getattr(logging, level.upper(), logging.INFO), f"{prefix_str}{message}")


def log_debug(message: str) -> None:
    """Diagnostic detail: written to the file only."""
    _write(logging.DEBUG, message)


def log_info(message: str, prefix: str = "") -> None:
    """Log an info message."""
    log(message, "info", prefix)


def log_success(message: str, prefix: str = "") -> None:
    """Log a success message."""
    log(message, "success", prefix or "✅")


def log_warning(message: str, prefix: str = "") -> None:
    """Log a warning message."""
    log(message, "warning", prefix or "⚠️")


def log_error(message: str, prefix: str = "") -> None:
    """Log an error message."""
    log(message, "error", prefix or "❌")


def log_session(event: str, message: str) -> None:
    """
    Log a paginator lifecycle event.

    Args:
        event: One of SESSION_PREFIXES ("start", "jump", "end")
        message: Description of what happened
    """
    prefix = SESSION_PREFIXES.get(event, "📄")
    _print(f"[session]{escape(f'{prefix} {message}')}[/session]")
    _write(logging.INFO, f"[{event}] {message}")


def log_header(title: str) -> None:
    """Print a section header."""
    separator = "=" * 60
    if _console_enabled:
        console.print(f"\n[header]{separator}\n{escape(title)}\n{separator}[/header]")
    for line in (separator, title, separator):
        _write(logging.INFO, line)


def log_config(key: str, value: str, indent: int = 0) -> None:
    """Print a configuration value."""
    line = f"{'   ' * indent}{key}: {value}"
    _print(f"[config]{escape(line)}[/config]")
    _write(logging.INFO, line)


def log_startup_banner(version: str, project_name: str) -> None:
    """Print the startup banner."""
    separator = "=" * 60
    title = f"{project_name} - v{version} - Message Paginator"

    if _console_enabled:
        console.print()
    _print(f"[header]{separator}[/header]")
    _print(f"[header]📖 {escape(title)}[/header]")
    _print(f"[header]{separator}[/header]")
    for line in (separator, title, separator):
        _write(logging.INFO, line)
