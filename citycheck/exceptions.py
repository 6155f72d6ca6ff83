"""Exceptions raised by citycheck."""

from __future__ import annotations


class CitycheckError(Exception):
    """Base class for all citycheck errors."""


class ParseError(CitycheckError):
    """A geofence ring could not be parsed into a usable polygon."""


class UnknownRegion(CitycheckError, KeyError):
    """A region id is not present in the registry."""

    def __init__(self, region_id: int):
        self.region_id = region_id
        super().__init__(f"Unknown region: {region_id}")

    def __str__(self) -> str:
        return self.args[0]


class ConfigError(CitycheckError):
    """A user's bot configuration document could not be decoded."""


class SourceError(CitycheckError):
    """A region row from the data source is unusable."""
