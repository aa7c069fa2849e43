"""Event Settings ORM - singleton row (key="global") holding the two tunables."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from codeshuffle.db.base import Base

GLOBAL_SETTINGS_KEY = "global"


class EventSettingsRow(Base):
    __tablename__ = "event_settings"

    key: Mapped[str] = mapped_column(
        String(20), primary_key=True, default=GLOBAL_SETTINGS_KEY,
    )
    rotation_interval_seconds: Mapped[int] = mapped_column(
        Integer, nullable=False, default=60,
    )
    event_duration_seconds: Mapped[int] = mapped_column(
        Integer, nullable=False, default=300,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
