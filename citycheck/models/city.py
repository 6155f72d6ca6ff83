"""City model: one geofence per city."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from citycheck.database import Base


class City(Base):
    """A city served by the bot, with its boundary polygon."""

    __tablename__ = "city"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Flat coordinate list, e.g. "(45.46,9.18),(45.47,9.20),(45.44,9.21)"
    coordinates: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Unix timestamp after which the city is no longer active
    expires_at: Mapped[int] = mapped_column("scadenza", Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<City(id={self.id}, name={self.name})>"
