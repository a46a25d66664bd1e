"""Progress reporting seam between the orchestrator and whoever is watching."""

from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger("opkeysync.reporting")


class Reporter(Protocol):
    """Receives the running commentary of a sync."""

    def heading(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class LogReporter:
    """Reporter that forwards everything to the logging module."""

    def __init__(self, log: logging.Logger = logger):
        self.log = log

    def heading(self, message: str) -> None:
        self.log.info("=== %s ===", message)

    def info(self, message: str) -> None:
        self.log.info(message)

    def warning(self, message: str) -> None:
        self.log.warning(message)

    def error(self, message: str) -> None:
        self.log.error(message)
