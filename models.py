"""Data structures shared by the parser, the exporters and the web layer.

Events are plain dataclasses; JSON clients see camelCase keys so the browser
side can send edited events straight back for export.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional

EVENT_TYPES = ("assignment", "exam", "reading", "other")

TYPE_FALLBACK_TITLES = {
    "assignment": "Assignment",
    "exam": "Exam",
    "reading": "Reading",
    "other": "Event",
}


def generate_id() -> str:
    return uuid.uuid4().hex


def coerce_date(value) -> date:
    """Accept a date, a datetime or an ISO string and return a plain date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        # Browsers send full ISO timestamps, the API sends YYYY-MM-DD
        return date.fromisoformat(value.strip()[:10])
    raise ValueError(f"Invalid event date: {value!r}")


@dataclass
class SyllabusEvent:
    title: str
    date: date
    type: str = "other"
    description: Optional[str] = None
    original_text: Optional[str] = None
    id: str = field(default_factory=generate_id)

    def to_dict(self) -> Dict:
        data = {
            "id": self.id,
            "title": self.title,
            "date": self.date.isoformat(),
            "type": self.type,
            "description": self.description or "",
        }
        if self.original_text is not None:
            data["originalText"] = self.original_text
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> "SyllabusEvent":
        """Build an event from client JSON (possibly edited by the user)."""
        event_type = data.get("type")
        if event_type not in EVENT_TYPES:
            event_type = "other"
        title = (data.get("title") or "").strip() or TYPE_FALLBACK_TITLES[event_type]
        return cls(
            id=data.get("id") or generate_id(),
            title=title,
            date=coerce_date(data.get("date")),
            type=event_type,
            description=data.get("description") or None,
            original_text=data.get("originalText") or data.get("original_text"),
        )


@dataclass
class EventCorrection:
    """One validated record returned by the classification service."""

    date: date
    type: str
    title: Optional[str] = None
    description: Optional[str] = None


@dataclass
class ParseResult:
    events: List[SyllabusEvent]
    success: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict:
        data = {
            "events": [event.to_dict() for event in self.events],
            "success": self.success,
        }
        if self.error is not None:
            data["error"] = self.error
        return data
