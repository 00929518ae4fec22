"""Phase events emitted by the council to an injected sink."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

logger = logging.getLogger(__name__)

EventKind = Literal["start", "end", "error"]


@dataclass(frozen=True)
class PhaseEvent:
    kind: EventKind
    phase: str                      # "fanout", "anonymize", "critique", "synthesis"
    provider_id: str | None = None  # set for per-unit errors
    elapsed_ms: float | None = None  # set on "end"
    detail: str = ""


EventSink = Callable[[PhaseEvent], None]


def log_event(event: PhaseEvent) -> None:
    """Sink that forwards events to the logging module."""
    if event.kind == "error":
        # The failing phase already logged this at WARNING
        logger.debug("%s failed for %s: %s", event.phase, event.provider_id, event.detail)
    elif event.kind == "end":
        logger.info("Phase %s done in %.0fms %s", event.phase, event.elapsed_ms or 0.0, event.detail)
    else:
        logger.info("Phase %s started %s", event.phase, event.detail)


def emit(sink: EventSink | None, event: PhaseEvent) -> None:
    """Deliver an event; a failing sink is logged and otherwise ignored."""
    if sink is None:
        return
    try:
        sink(event)
    except Exception:
        logger.exception("Event sink raised on %s/%s", event.phase, event.kind)
