"""Record streams read from the bot database.

Two streams feed a run: the active cities with their boundaries, and the
active users joined with their bot configuration. Region rows must all be
usable or the run is aborted; user rows are handed over as plain mappings
and validated one at a time by the reconciler.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, Iterator, Optional, Tuple

from sqlalchemy import select

from citycheck.exceptions import SourceError
from citycheck.logging_config import get_logger
from citycheck.models import City, User, UserBotConfig

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

logger = get_logger(__name__)


def iter_region_rows(session: Session, now: Optional[int] = None) -> Iterator[Tuple[int, str, str]]:
    """Yield ``(id, name, coordinates)`` for every city still active at ``now``.

    Args:
        session: Open database session
        now: Unix timestamp, defaults to the current time

    Raises:
        SourceError: If a city row has a missing id, name or boundary
    """
    if now is None:
        now = int(time.time())

    stmt = (
        select(City.id, City.name, City.coordinates)
        .where(City.expires_at > now)
        .order_by(City.id)
    )

    for row in session.execute(stmt):
        if row.id is None:
            raise SourceError("city.id encoding error")
        if row.name is None:
            raise SourceError(f"city.name encoding error for city {row.id}")
        if row.coordinates is None:
            raise SourceError(f"city.coordinates encoding error for city {row.id}")
        yield row.id, row.name, row.coordinates


def iter_user_rows(session: Session, batch_size: int = 500) -> Iterator[dict[str, Any]]:
    """Yield active users joined with their bot configuration.

    Rows are fetched ``batch_size`` at a time and yielded as mappings with
    the keys ``user_id``, ``username``, ``assigned_region_id`` and ``raw_config``.
    """
    stmt = (
        select(
            User.user_id,
            User.username,
            User.city_id.label("assigned_region_id"),
            UserBotConfig.config.label("raw_config"),
        )
        .join(UserBotConfig, UserBotConfig.user_id == User.user_id)
        .where(User.status > 0)
        .order_by(User.user_id)
        .execution_options(yield_per=batch_size)
    )

    count = 0
    for row in session.execute(stmt):
        count += 1
        yield dict(row._mapping)

    logger.debug("user_rows_streamed", rows=count)
