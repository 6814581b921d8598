"""
Transcript data model.

A session is an ordered, append-only list of self-describing events. The
dict layout produced by ``to_dict`` is the persisted layout used by every
store backend.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .interfaces import EventType


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if not isinstance(value, datetime):
        value = datetime.fromisoformat(str(value))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class Event:
    """One immutable, timestamped, typed fact in a session log."""

    ts: datetime
    type: EventType
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"ts": _iso(self.ts), "type": self.type.value, **self.payload}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Event":
        payload = {k: v for k, v in data.items() if k not in ("ts", "type")}
        return cls(ts=parse_timestamp(data["ts"]), type=EventType(data["type"]), payload=payload)


@dataclass
class Session:
    """One practice interview run."""

    id: str
    started_at: datetime = field(default_factory=utc_now)
    ended_at: Optional[datetime] = None
    events: List[Event] = field(default_factory=list)

    def add_event(self, event_type: EventType, payload: Dict[str, Any]) -> Event:
        """Stamp and append an event, keeping ts non-decreasing."""
        ts = utc_now()
        if self.events and ts < self.events[-1].ts:
            ts = self.events[-1].ts
        event = Event(ts=ts, type=EventType(event_type), payload=dict(payload))
        self.events.append(event)
        return event

    def mark_ended(self) -> bool:
        if self.ended_at is not None:
            return False
        self.ended_at = utc_now()
        return True

    def summary(self) -> "SessionSummary":
        return SessionSummary(
            id=self.id,
            started_at=self.started_at,
            ended_at=self.ended_at,
            event_count=len(self.events),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "startedAt": _iso(self.started_at),
            "endedAt": _iso(self.ended_at),
            "events": [event.to_dict() for event in self.events],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Session":
        return cls(
            id=data["id"],
            started_at=parse_timestamp(data.get("startedAt")) or utc_now(),
            ended_at=parse_timestamp(data.get("endedAt")),
            events=[Event.from_dict(e) for e in data.get("events") or []],
        )


@dataclass(frozen=True)
class SessionSummary:
    id: str
    started_at: datetime
    ended_at: Optional[datetime]
    event_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "startedAt": _iso(self.started_at),
            "endedAt": _iso(self.ended_at),
            "eventCount": self.event_count,
        }
