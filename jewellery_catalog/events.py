import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

LOGGER_NAME = "jewellery_catalog"
LEVELS = ("info", "warning", "error", "success")
STAGES = ("rules", "grouping", "expansion", "costing", "assembly", "export")

_LOGGING_LEVELS = {
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "success": logging.INFO,
}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def configure_logging(level: str = "INFO") -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    resolved = logging.getLevelName(level.strip().upper())
    logger.setLevel(resolved if isinstance(resolved, int) else logging.INFO)
    return logger


@dataclass(frozen=True)
class LogEvent:
    level: str
    stage: str
    message: str
    payload: dict[str, Any] = field(default_factory=dict)
    created_at: str = field(default_factory=utc_now_iso)


class RunLog:
    """Append-only event stream for one batch run, mirrored to the `jewellery_catalog.<stage>` loggers."""

    def __init__(self) -> None:
        self._events: list[LogEvent] = []

    def __len__(self) -> int:
        return len(self._events)

    @property
    def events(self) -> tuple[LogEvent, ...]:
        return tuple(self._events)

    def emit(self, level: str, stage: str, message: str, **payload: Any) -> LogEvent:
        if level not in LEVELS:
            raise ValueError(f"Unknown log level: {level}")
        event = LogEvent(level=level, stage=stage, message=message, payload=payload)
        self._events.append(event)
        logging.getLogger(f"{LOGGER_NAME}.{stage}").log(
            _LOGGING_LEVELS[level], message, extra={"payload": payload}
        )
        return event

    def info(self, stage: str, message: str, **payload: Any) -> LogEvent:
        return self.emit("info", stage, message, **payload)

    def warning(self, stage: str, message: str, **payload: Any) -> LogEvent:
        return self.emit("warning", stage, message, **payload)

    def error(self, stage: str, message: str, **payload: Any) -> LogEvent:
        return self.emit("error", stage, message, **payload)

    def success(self, stage: str, message: str, **payload: Any) -> LogEvent:
        return self.emit("success", stage, message, **payload)

    def filter(self, *, level: str | None = None, stage: str | None = None) -> list[LogEvent]:
        return [
            event
            for event in self._events
            if (level is None or event.level == level) and (stage is None or event.stage == stage)
        ]

    def counts(self) -> dict[str, int]:
        tally = Counter(event.level for event in self._events)
        return {level: tally.get(level, 0) for level in LEVELS}

    def to_records(self) -> list[dict[str, Any]]:
        return [
            {
                "created_at": event.created_at,
                "level": event.level,
                "stage": event.stage,
                "message": event.message,
            }
            for event in self._events
        ]
