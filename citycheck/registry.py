"""Geofence registry: the set of known city regions.

The registry is built once, before any user is examined, and is read-only
afterwards. Iteration follows construction order, which makes the
fallback search in :meth:`RegionRegistry.find_any_containing`
deterministic: when geofences overlap, the first region built wins.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Optional, Tuple

from citycheck.exceptions import ParseError, UnknownRegion
from citycheck.geometry import Point, Ring
from citycheck.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Region:
    """A named city geofence."""

    id: int
    name: str
    ring: Ring

    def contains(self, point: Point) -> bool:
        return self.ring.contains_point(point)

    def __str__(self) -> str:
        return f"{self.name} ({self.id})"


class RegionRegistry(Mapping[int, Region]):
    """Read-only mapping from region id to :class:`Region`."""

    def __init__(self, regions: Iterable[Region] = ()):
        self._regions: dict[int, Region] = {}
        for region in regions:
            if region.id in self._regions:
                raise ParseError(f"Duplicate region id {region.id} ({region.name!r})")
            self._regions[region.id] = region

    @classmethod
    def build(cls, rows: Iterable[Tuple[int, str, str]]) -> RegionRegistry:
        """Build a registry from ``(id, name, raw_ring)`` rows.

        Raises:
            ParseError: On the first malformed ring or duplicate id; nothing
                is returned in that case, a partial registry is never usable
        """
        regions = []
        for region_id, name, raw_ring in rows:
            try:
                ring = Ring.parse(raw_ring)
            except ParseError as e:
                raise ParseError(f"Region {name!r} ({region_id}): {e}") from e
            regions.append(Region(id=region_id, name=name, ring=ring))
            logger.debug("region_loaded", region_id=region_id, name=name, vertices=len(ring))

        registry = cls(regions)
        logger.info("registry_built", regions=len(registry))
        return registry

    def __getitem__(self, region_id: int) -> Region:
        try:
            return self._regions[region_id]
        except KeyError:
            raise UnknownRegion(region_id) from None

    def __iter__(self) -> Iterator[int]:
        return iter(self._regions)

    def __len__(self) -> int:
        return len(self._regions)

    def __contains__(self, region_id: object) -> bool:
        return region_id in self._regions

    def regions(self) -> Iterator[Region]:
        """Iterate over regions in construction order."""
        return iter(self._regions.values())

    def contains(self, region_id: int, point: Point) -> bool:
        """Check whether region ``region_id`` contains ``point``.

        Raises:
            UnknownRegion: If the id is not registered
        """
        return self[region_id].contains(point)

    def find_any_containing(self, point: Point) -> Optional[Region]:
        """Return the first region, in construction order, containing ``point``."""
        for region in self._regions.values():
            if region.contains(point):
                return region
        return None
