"""User and bot configuration models."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import BigInteger, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from citycheck.database import Base


class User(Base):
    """A bot user and the city they are assigned to."""

    __tablename__ = "utenti"

    user_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    username: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    city_id: Mapped[Optional[int]] = mapped_column(Integer, index=True, nullable=True)

    # > 0 means active
    status: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    def __repr__(self) -> str:
        return f"<User(user_id={self.user_id}, username={self.username}, city_id={self.city_id})>"


class UserBotConfig(Base):
    """Per-user bot configuration stored as a JSON document."""

    __tablename__ = "utenti_config_bot"

    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("utenti.user_id"), primary_key=True, autoincrement=False
    )

    # JSON text; location pointers live under "locs"
    config: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<UserBotConfig(user_id={self.user_id})>"
