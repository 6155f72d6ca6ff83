"""SQLAlchemy models."""

from citycheck.models.city import City
from citycheck.models.user import User, UserBotConfig

__all__ = [
    "City",
    "User",
    "UserBotConfig",
]
