"""Logging setup for CLI runs."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_NOISY_LOGGERS = ("LiteLLM", "httpx", "openai")


def configure_logging(verbose: bool = False, console: Console | None = None) -> None:
    """Route ``tablecast`` log records through rich.

    DEBUG with *verbose*, WARNING otherwise. Third-party HTTP and LiteLLM
    loggers stay at WARNING either way.
    """
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=verbose,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    root = logging.getLogger("tablecast")
    root.handlers[:] = [handler]
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
