"""Test data builders shared across test modules."""

from __future__ import annotations

import json
from typing import Any, Optional

from sqlalchemy.orm import Session

from citycheck.models import City, User, UserBotConfig

# Two disjoint 10x10 squares and a far-away triangle
SQUARE_A = "(0,0),(0,10),(10,10),(10,0)"
SQUARE_B = "(20,0),(20,10),(30,10),(30,0)"
TRIANGLE_C = "(100,100),(110,100),(105,110)"

FAR_FUTURE = 4102444800  # 2100-01-01


def make_config(
    home: Optional[list[Any]] = None,
    pokemon: Optional[list[Any]] = None,
    raid: Optional[list[Any]] = None,
    invasion: Optional[list[Any]] = None,
) -> str:
    """Build a bot configuration document with the given location pointers."""
    locs = {}
    for key, value in (("h", home), ("p", pokemon), ("r", raid), ("i", invasion)):
        if value is not None:
            locs[key] = value
    return json.dumps({"locs": locs, "notify": True})


def seed_database(engine, cities: list[dict[str, Any]], users: list[dict[str, Any]]) -> None:
    """Insert cities and users (with optional ``config``) into the bot tables."""
    with Session(engine) as session:
        for city in cities:
            session.add(
                City(
                    id=city["id"],
                    name=city.get("name"),
                    coordinates=city.get("coordinates"),
                    expires_at=city.get("expires_at", FAR_FUTURE),
                )
            )
        for user in users:
            session.add(
                User(
                    user_id=user["user_id"],
                    username=user.get("username"),
                    city_id=user.get("city_id"),
                    status=user.get("status", 1),
                )
            )
        session.flush()
        for user in users:
            if "config" in user:
                session.add(UserBotConfig(user_id=user["user_id"], config=user["config"]))
        session.commit()
