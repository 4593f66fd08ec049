from __future__ import annotations
import logging
from .events import BaseEvent, PowerCommandAborted, ReconcileFailed

# everything else is logged at INFO
LEVELS = {
    PowerCommandAborted: logging.WARNING,
    ReconcileFailed: logging.ERROR,
}

# already in the run banner / log file name
_SKIP = ("ts", "run_id", "context", "name", "env")


class LoggerObserver:
    """Writes one line per event: ``[EVENT] <type> <host> (<op>): k=v, ...``."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def notify(self, event: BaseEvent) -> None:
        d = event.dict()
        fields = ", ".join(f"{k}={v}" for k, v in d.items() if k not in _SKIP)
        level = LEVELS.get(type(event), logging.INFO)
        self.logger.log(
            level, "[EVENT] %s %s (%s): %s",
            type(event).__name__, d.get("name", "-"), d["env"], fields,
        )
