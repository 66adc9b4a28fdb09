"""Event model for Klime."""

import copy
import json
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


class EventType(str, Enum):
    """Event types accepted by the collector."""

    TRACK = "track"
    IDENTIFY = "identify"
    GROUP = "group"


def encode_json(obj: Any) -> str:
    """Canonical JSON encoding shared by size estimates and the wire body."""
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False, default=str)


def _utc_timestamp() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class LibraryInfo(BaseModel):
    """Name and version of the SDK that produced an event."""

    name: str
    version: str

    model_config = {"extra": "forbid", "frozen": True}

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "version": self.version}


class EventContext(BaseModel):
    """Metadata attached to every event."""

    library: LibraryInfo | None = None
    ip: str | None = None

    model_config = {"extra": "forbid", "frozen": True}

    def to_dict(self) -> dict[str, Any]:
        """Return the wire mapping, leaving out unset fields."""
        data: dict[str, Any] = {}
        if self.library is not None:
            data["library"] = self.library.to_dict()
        if self.ip is not None:
            data["ip"] = self.ip
        return data


class Event(BaseModel):
    """Immutable analytics event.

    Events are created once by the client and never change afterwards. The
    ``message_id`` and ``timestamp`` are generated at construction time.

    Attributes:
        type: One of track, identify or group.
        message_id: UUID v4 string, unique per event.
        timestamp: ISO 8601 UTC creation time with millisecond precision.
        event_name: Name of a track event.
        user_id: User the event is attributed to.
        group_id: Group (organisation) the event is attributed to.
        properties: Track event properties.
        traits: Identify/group traits.
        context: Library and client metadata.
    """

    type: EventType
    message_id: str = Field(default_factory=lambda: str(uuid4()))
    timestamp: str = Field(default_factory=_utc_timestamp)
    event_name: str | None = None
    user_id: str | None = None
    group_id: str | None = None
    properties: dict[str, Any] | None = None
    traits: dict[str, Any] | None = None
    context: EventContext | None = None

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }

    @field_validator("properties", "traits", mode="before")
    @classmethod
    def detach_payload(cls, v: Any) -> Any:
        # Nested containers must not stay shared with the caller.
        return copy.deepcopy(v) if v is not None else None

    @classmethod
    def create(cls, event_type: EventType | str, **fields: Any) -> "Event":
        """Build a new event with a fresh message id and timestamp."""
        return cls(type=EventType(event_type), **fields)

    def to_dict(self) -> dict[str, Any]:
        """Return the camelCase wire mapping.

        Absent fields are left out, and so are empty ``properties``/``traits``
        mappings and a context with nothing in it.
        """
        data: dict[str, Any] = {
            "type": self.type.value,
            "messageId": self.message_id,
            "timestamp": self.timestamp,
        }
        for key, value in (
            ("event", self.event_name),
            ("userId", self.user_id),
            ("groupId", self.group_id),
            ("properties", self.properties),
            ("traits", self.traits),
        ):
            if value is None or value == {}:
                continue
            data[key] = value

        if self.context is not None:
            context = self.context.to_dict()
            if context:
                data["context"] = context
        return data

    def to_json(self) -> str:
        return encode_json(self.to_dict())

    def estimate_size(self) -> int:
        """Byte length of the event as it appears on the wire."""
        return len(self.to_json().encode("utf-8"))
