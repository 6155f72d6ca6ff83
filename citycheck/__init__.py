"""citycheck: reconcile users' location pointers against city geofences."""

from citycheck.exceptions import CitycheckError, ConfigError, ParseError, SourceError, UnknownRegion
from citycheck.geometry import Ring, parse_ring
from citycheck.reconcile import Reconciler
from citycheck.registry import Region, RegionRegistry

__all__ = [
    "CitycheckError",
    "ConfigError",
    "ParseError",
    "Reconciler",
    "Region",
    "RegionRegistry",
    "Ring",
    "SourceError",
    "UnknownRegion",
    "parse_ring",
]

__version__ = "0.1.0"
