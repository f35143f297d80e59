"""User experience utilities for the Tiger CLI."""

import logging
import os
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Iterator, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

from .core.constants import LOG_DIR, LOG_FILE_NAME
from .logging.redact import install_redaction_filter

# Define a custom theme for consistent styling
CUSTOM_THEME = Theme(
    {
        "info": "bold cyan",
        "success": "bold green",
        "warning": "bold yellow",
        "error": "bold red",
    }
)

# Status output goes to stderr so stdout stays clean for connection strings
console = Console(theme=CUSTOM_THEME, stderr=True)

logger = logging.getLogger("tiger_cli")


def setup_logging(debug: bool = False, log_dir: Optional[Path] = None) -> None:
    """Send logs to a rotating file and, with ``debug``, to stderr as well."""
    log_dir = Path(os.path.expanduser(str(log_dir or LOG_DIR)))
    handlers: list[logging.Handler] = []
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_dir / LOG_FILE_NAME,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        handlers.append(file_handler)
    except OSError as e:
        console.print(f"[warning]WARNING:[/warning] file logging disabled: {e}")

    if debug:
        handlers.append(RichHandler(console=console, show_path=False, rich_tracebacks=True))

    logger.handlers.clear()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.propagate = False
    install_redaction_filter(logger)


def print_info(
    message: str,
    *args: Any,
    log: bool = True,
    console_output: bool = True,
    **kwargs: Any,
) -> None:
    """Print an informational message.

    Args:
        message: The message to print
        log: Whether to log to file
        console_output: Whether to print to console
    """
    if console_output:
        console.print(f"[info]INFO:[/info] {message}", *args, **kwargs)
    if log:
        logger.info(message)


def print_success(
    message: str,
    *args: Any,
    log: bool = True,
    console_output: bool = True,
    **kwargs: Any,
) -> None:
    """Print a success message."""
    if console_output:
        console.print(f"[success]SUCCESS:[/success] {message}", *args, **kwargs)
    if log:
        logger.info(f"SUCCESS: {message}")


def print_warning(
    message: str,
    *args: Any,
    log: bool = True,
    console_output: bool = True,
    **kwargs: Any,
) -> None:
    """Print a warning message."""
    if console_output:
        console.print(f"[warning]WARNING:[/warning] {message}", *args, **kwargs)
    if log:
        logger.warning(message)


def print_error(
    message: str,
    *args: Any,
    log: bool = True,
    console_output: bool = True,
    **kwargs: Any,
) -> None:
    """Print an error message."""
    if console_output:
        console.print(f"[error]ERROR:[/error] {message}", *args, **kwargs)
    if log:
        logger.error(message)


@contextmanager
def status_spinner(message: str) -> Iterator[Callable[[str], None]]:
    """Show a spinner while waiting; yields a function that updates its text.

    Without a terminal each update is printed on its own line instead.
    """
    if not console.is_terminal:
        last = [""]

        def print_line(text: str) -> None:
            if text != last[0]:
                console.print(text, markup=False)
                last[0] = text

        print_line(message)
        yield print_line
        return

    with console.status(message, spinner="dots") as status:
        yield lambda text: status.update(text)
