"""Location extraction from a user's bot configuration document.

The bot stores four location pointers per user under ``locs``::

    {"locs": {"h": [45.46, 9.18], "p": ["45.47", "9.19"], "r": ["", ""], "i": [...]}}

Coordinates may be numbers or numeric strings. An empty string means the
user never set that pointer. Anything else that does not decode to a
finite float is logged and the pointer is skipped; one bad value never
stops the other pointers or the other users from being checked.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Optional

from citycheck.exceptions import ConfigError
from citycheck.logging_config import get_logger

logger = get_logger(__name__)

_MISSING = object()


class LocationKind(str, Enum):
    """The four location pointers a user can set, keyed by their config path."""

    HOME = "home"
    POKEMON_POINTER = "pokemon_pointer"
    RAID = "raid"
    INVASION = "invasion"

    @property
    def path_key(self) -> str:
        return _PATH_KEYS[self]

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_PATH_KEYS = {
    LocationKind.HOME: "h",
    LocationKind.POKEMON_POINTER: "p",
    LocationKind.RAID: "r",
    LocationKind.INVASION: "i",
}

_DISPLAY_NAMES = {
    LocationKind.HOME: "home",
    LocationKind.POKEMON_POINTER: "pokémon",
    LocationKind.RAID: "raid",
    LocationKind.INVASION: "invasion",
}


@dataclass(frozen=True)
class NamedPoint:
    """A decoded location pointer."""

    label: LocationKind
    x: float
    y: float

    @property
    def coords(self) -> tuple[float, float]:
        return (self.x, self.y)


class Absent(Exception):
    """Raised internally for a coordinate the user never set."""


class InvalidValue(Exception):
    """Raised internally for a coordinate that cannot be decoded."""


def convert_to_float(value: Any) -> float:
    """Decode one coordinate value.

    Raises:
        Absent: For an empty string
        InvalidValue: For anything that is not a finite number or numeric string
    """
    if isinstance(value, str):
        if value == "":
            raise Absent()
        if "_" in value or value != value.strip():
            raise InvalidValue(f"not a number: {value!r}")
        try:
            result = float(value)
        except ValueError:
            raise InvalidValue(f"not a number: {value!r}") from None
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            result = float(value)
        except OverflowError:
            raise InvalidValue(f"number out of float range: {value}") from None
    else:
        raise InvalidValue(f"format not recognized: {type(value).__name__} {value!r}")

    if not math.isfinite(result):
        raise InvalidValue(f"not a finite number: {value!r}")
    return result


def _lookup(document: Any, key: str, index: int) -> Any:
    locs = document.get("locs", _MISSING) if isinstance(document, dict) else _MISSING
    pair = locs.get(key, _MISSING) if isinstance(locs, dict) else _MISSING
    if isinstance(pair, list) and index < len(pair):
        return pair[index]
    return _MISSING


def extract_point(
    document: Any, kind: LocationKind, *, user_id: Optional[int] = None
) -> Optional[NamedPoint]:
    """Extract one location pointer from a decoded config document.

    Returns:
        The point, or None when the pointer is unset or malformed
    """
    log = logger.bind(user_id=user_id, location=kind.value)
    coords: list[Optional[float]] = []
    failed = False

    for index, axis in enumerate(("x", "y")):
        raw = _lookup(document, kind.path_key, index)
        if raw is _MISSING:
            coords.append(None)
            continue
        try:
            coords.append(convert_to_float(raw))
        except Absent:
            coords.append(None)
        except InvalidValue as e:
            log.error("location_value_invalid", axis=axis, error=str(e))
            coords.append(None)
            failed = True

    x, y = coords
    if x is not None and y is not None:
        return NamedPoint(label=kind, x=x, y=y)

    if not failed and (x is not None or y is not None):
        log.error("location_pair_incomplete", x=x, y=y)
    return None


def extract_points(document: Any, *, user_id: Optional[int] = None) -> Iterator[NamedPoint]:
    """Yield every usable location pointer in ``LocationKind`` order."""
    for kind in LocationKind:
        point = extract_point(document, kind, user_id=user_id)
        if point is not None:
            yield point


def _parse_int(text: str) -> Any:
    # Integers past the int digit limit become floats; convert_to_float rejects them
    try:
        return int(text)
    except ValueError:
        return float(text)


def parse_config(raw: str) -> Any:
    """Decode a bot configuration document.

    Raises:
        ConfigError: If the text is not valid JSON or is nested too deeply
    """
    try:
        return json.loads(raw, parse_int=_parse_int)
    except (TypeError, ValueError, RecursionError) as e:
        raise ConfigError(f"config deserializing error: {e}") from e
