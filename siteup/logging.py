"""
Logging for siteup.

Example:
    from siteup.logging import get_siteup_logger

    logger = get_siteup_logger(__name__)
    logger.stage("ensure_installed")
    logger.action("create", "pkg:nginx", "apt-get install")
    logger.success("Deployment complete")
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.theme import Theme

SITEUP_THEME = Theme({
    "log.time": "dim cyan",
    "log.level.debug": "dim blue",
    "log.level.info": "green",
    "log.level.warning": "yellow",
    "log.level.error": "bold red",
    "log.level.critical": "bold white on red",
    "siteup.success": "bold green",
    "siteup.stage": "bold cyan",
    "siteup.skip": "dim",
    "siteup.action.create": "green",
    "siteup.action.update": "yellow",
    "siteup.action.delete": "red",
})

# Global console instance
console = Console(theme=SITEUP_THEME, stderr=True)

_initialized = False


def setup_logging(
    level: str = "INFO",
    show_time: bool = True,
    show_path: bool = False,
    rich_tracebacks: bool = True,
) -> None:
    """
    Initialize siteup's logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        show_time: Show timestamps in log output
        show_path: Show file path in log output
        rich_tracebacks: Use rich formatting for tracebacks

    Note:
        Call once at startup. Later calls only change the level.
    """
    global _initialized

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    if _initialized:
        logging.getLogger().setLevel(numeric_level)
        return

    handler = RichHandler(
        console=console,
        show_time=show_time,
        show_path=show_path,
        rich_tracebacks=rich_tracebacks,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    logging.basicConfig(
        level=numeric_level,
        handlers=[handler],
        force=True,
    )

    _initialized = True


def get_logger(name: str) -> logging.Logger:
    """Get a standard logger, initializing logging on first use."""
    if not _initialized:
        setup_logging()

    return logging.getLogger(name)


class SiteupLogger:
    """
    siteup-specific logger.

    Wraps a standard logger with helpers for pipeline stages and host
    mutations.
    """

    def __init__(self, name: str):
        self.logger = get_logger(name)
        self.console = console

    def debug(self, message: str, *args, **kwargs) -> None:
        self.logger.debug(message, *args, **kwargs)

    def info(self, message: str, *args, **kwargs) -> None:
        self.logger.info(message, *args, **kwargs)

    def warning(self, message: str, *args, **kwargs) -> None:
        self.logger.warning(message, *args, **kwargs)

    def error(self, message: str, *args, **kwargs) -> None:
        self.logger.error(message, *args, **kwargs)

    def success(self, message: str) -> None:
        self.console.print(f"[siteup.success]✓[/siteup.success] {escape(message)}")

    def stage(self, name: str) -> None:
        """Announce the start of a pipeline stage."""
        self.console.print(f"[siteup.stage]==>[/siteup.stage] {escape(name)}")

    def skip(self, resource_id: str, reason: str) -> None:
        """Report a resource that is already in its desired state."""
        self.console.print(
            f"[siteup.skip]  = {escape(resource_id)} ({escape(reason)})[/siteup.skip]"
        )

    def action(self, action: str, resource_id: str, details: Optional[str] = None) -> None:
        """
        Log a host mutation.

        Args:
            action: Action type (create, update, delete)
            resource_id: Resource identifier
            details: Optional details about the action
        """
        symbols = {
            "create": "+",
            "update": "~",
            "delete": "-",
        }
        symbol = symbols.get(action.lower(), "•")
        style = f"siteup.action.{action.lower()}"

        msg = f"  [{style}]{symbol}[/{style}] {escape(resource_id)}"
        if details:
            msg += f" [dim]({escape(details)})[/dim]"

        self.console.print(msg)


def get_siteup_logger(name: str) -> SiteupLogger:
    """
    Get a SiteupLogger instance for the given module.

    Example:
        logger = get_siteup_logger(__name__)
        logger.success("Site deployed")
    """
    return SiteupLogger(name)
