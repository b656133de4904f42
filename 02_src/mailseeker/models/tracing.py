"""Tracing and observability data models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class TraceEvent:
    """A single observability event recorded while processing turns."""

    id: str
    event_type: str  # e.g. "turn_received", "intent_classified"
    actor: str  # who created this event
    data: dict  # self-contained data for display
    timestamp: datetime
