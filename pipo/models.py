"""Domain models shared by the ingestor and the processor."""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

# Characters that are escaped in encoded messages so they stay HTML-safe.
_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}

_RAW_FIELDS: dict[str, type] = {"comment": str, "id": int, "sentiment": int}


@dataclass(frozen=True)
class RawSentiment:
    """A sentiment record as read from the source data set."""

    id: int = 0
    comment: str = ""
    sentiment: int = 0

    def to_json(self) -> bytes:
        """Encode the record as a compact JSON message."""
        text = json.dumps(
            {"comment": self.comment, "id": self.id, "sentiment": self.sentiment},
            ensure_ascii=False,
            separators=(",", ":"),
        )
        for char, escaped in _HTML_ESCAPES.items():
            text = text.replace(char, escaped)
        return text.encode("utf-8")

    @classmethod
    def from_json(cls, data: str | bytes) -> "RawSentiment":
        """Decode a JSON message; absent or null fields keep their zero value."""
        payload: Any = json.loads(data)
        if payload is None:
            return cls()
        if not isinstance(payload, dict):
            raise ValueError(
                f"cannot decode {type(payload).__name__} into a raw sentiment"
            )

        values: dict[str, Any] = {}
        for key, value in payload.items():
            name = key if key in _RAW_FIELDS else key.lower()
            expected = _RAW_FIELDS.get(name)
            if expected is None or value is None:
                continue
            if expected is int:
                if isinstance(value, bool) or not isinstance(value, int):
                    raise ValueError(f"field {key!r} must be an integer, got {value!r}")
            elif not isinstance(value, str):
                raise ValueError(f"field {key!r} must be a string, got {value!r}")
            values[name] = value
        return cls(**values)


@dataclass(frozen=True)
class Sentiment:
    """A processed sentiment ready to be stored."""

    id: str
    document_id: int
    excerpt: str
    comment: str
    emotion: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def new_sentiment(document_id: int, excerpt: str, comment: str, emotion: str) -> Sentiment:
    """Create a sentiment with a fresh identifier and the current time."""
    return Sentiment(
        id=str(uuid.uuid4()),
        document_id=document_id,
        excerpt=excerpt,
        comment=comment,
        emotion=emotion,
        created_at=datetime.now(timezone.utc),
    )