# src/cloudstep/observers/logger.py
from __future__ import annotations

import logging

from .events import BaseEvent, StepFailed

# Fields already present on every log line or in the run banner.
_OMIT = ("ts", "run_id", "host")


class LoggerObserver:
    """Mirrors every lifecycle event into the run's log file."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def notify(self, event: BaseEvent) -> None:
        fields = " ".join(
            f"{k}={v!r}" for k, v in event.dict().items() if k not in _OMIT and v is not None
        )
        level = logging.WARNING if isinstance(event, StepFailed) else logging.DEBUG
        self.logger.log(level, "event %s %s", type(event).__name__, fields)
