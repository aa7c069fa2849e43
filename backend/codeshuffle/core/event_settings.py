"""Event Settings - the two global tunables every countdown is computed from."""

from dataclasses import dataclass
from datetime import datetime

DEFAULT_ROTATION_INTERVAL_SECONDS: int = 60
DEFAULT_EVENT_DURATION_SECONDS: int = 300


@dataclass(frozen=True)
class EventSettings:
    rotation_interval_seconds: int = DEFAULT_ROTATION_INTERVAL_SECONDS
    event_duration_seconds: int = DEFAULT_EVENT_DURATION_SECONDS
    updated_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "rotation_interval_seconds": self.rotation_interval_seconds,
            "event_duration_seconds": self.event_duration_seconds,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
