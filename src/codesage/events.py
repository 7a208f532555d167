"""
Pipeline Stage Events

Structured events emitted by the review pipeline, one per stage.
Sinks decide what to do with them; the default writes log records.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional


logger = logging.getLogger(__name__)

OUTCOME_OK = 'ok'
OUTCOME_SKIPPED = 'skipped'
OUTCOME_FAILED = 'failed'


@dataclass(frozen=True)
class StageEvent:
    """Outcome of one pipeline stage."""
    stage: str
    outcome: str
    latency_ms: float
    error: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


class EventSink:
    """Receives stage events. Subclasses override emit()."""

    def emit(self, event: StageEvent) -> None:
        raise NotImplementedError


class LoggingEventSink(EventSink):
    """Writes each stage event as one log record."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    def emit(self, event: StageEvent) -> None:
        details = ' '.join(f"{key}={value}" for key, value in event.details.items())
        if event.outcome == OUTCOME_FAILED:
            self.log.error(
                f"stage={event.stage} outcome={event.outcome} latency_ms={event.latency_ms:.1f} "
                f"error={event.error} {details}".rstrip()
            )
        else:
            self.log.info(
                f"stage={event.stage} outcome={event.outcome} latency_ms={event.latency_ms:.1f} {details}".rstrip()
            )


class RecordingEventSink(EventSink):
    """Keeps events in memory, in emission order."""

    def __init__(self):
        self.events: List[StageEvent] = []

    def emit(self, event: StageEvent) -> None:
        self.events.append(event)

    @property
    def stages(self) -> List[str]:
        return [event.stage for event in self.events]


class StageTimer:
    """Collects details and the outcome for the stage being timed."""

    def __init__(self):
        self.outcome = OUTCOME_OK
        self.details: Dict[str, Any] = {}

    def skip(self, **details: Any) -> None:
        self.outcome = OUTCOME_SKIPPED
        self.details.update(details)

    def note(self, **details: Any) -> None:
        self.details.update(details)


@contextmanager
def stage(sink: EventSink, name: str) -> Iterator[StageTimer]:
    """
    Time a pipeline stage and emit its event.

    An exception raised inside the block is reported as a failed stage and
    re-raised unchanged.
    """
    timer = StageTimer()
    started = time.perf_counter()
    try:
        yield timer
    except Exception as e:
        sink.emit(StageEvent(
            stage=name,
            outcome=OUTCOME_FAILED,
            latency_ms=(time.perf_counter() - started) * 1000,
            error=f"{type(e).__name__}: {e}",
            details=timer.details,
        ))
        raise
    sink.emit(StageEvent(
        stage=name,
        outcome=timer.outcome,
        latency_ms=(time.perf_counter() - started) * 1000,
        details=timer.details,
    ))
