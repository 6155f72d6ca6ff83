"""Polygon rings and point-in-polygon testing.

A city boundary is stored as a flat list of coordinates such as
``"(45.46,9.18),(45.47,9.20),(45.44,9.21)"``: grouping parentheses are
decoration, tokens alternate x and y. :func:`parse_ring` turns that text
into vertices and :class:`Ring` answers containment queries with the
crossing-number test.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Sequence, Tuple

from citycheck.exceptions import ParseError

Point = Tuple[float, float]

_GROUPING = str.maketrans("", "", "()")


def _parse_coordinate(token: str, index: int) -> float:
    text = token.strip()
    if "_" in text:
        raise ParseError(f"Coordinate parse error at token {index}: {token!r}")
    try:
        value = float(text)
    except ValueError:
        raise ParseError(f"Coordinate parse error at token {index}: {token!r}") from None
    if not math.isfinite(value):
        raise ParseError(f"Coordinate at token {index} is not finite: {token!r}")
    return value


def parse_ring(encoded: str) -> list[Point]:
    """Parse a comma-separated coordinate string into ring vertices.

    Every ``(`` and ``)`` is removed, the remainder is split on commas and
    the tokens are paired in order: even positions are x, odd positions
    the y of the preceding x.

    Args:
        encoded: Raw coordinate string

    Returns:
        Vertices in input order

    Raises:
        ParseError: If a token is not a finite number, or the token count is odd
    """
    tokens = encoded.translate(_GROUPING).split(",")
    values = [_parse_coordinate(token, i) for i, token in enumerate(tokens)]

    if len(values) % 2:
        raise ParseError(f"Odd number of coordinates ({len(values)}): last x has no y")

    return list(zip(values[0::2], values[1::2]))


@dataclass(frozen=True)
class Ring:
    """Immutable closed polygon boundary.

    The ring is implicitly closed; a repeated first vertex at the end is
    harmless. Winding order does not matter.

    Attributes:
        vertices: Ordered (x, y) vertices
    """

    vertices: Tuple[Point, ...]
    bounds: Tuple[float, float, float, float] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        vertices = tuple((float(x), float(y)) for x, y in self.vertices)
        if len(set(vertices)) < 3:
            raise ParseError(
                f"Polygon must have at least 3 distinct vertices, got {len(set(vertices))}"
            )
        object.__setattr__(self, "vertices", vertices)

        xs = [x for x, _ in vertices]
        ys = [y for _, y in vertices]
        object.__setattr__(self, "bounds", (min(xs), min(ys), max(xs), max(ys)))

    @classmethod
    def from_points(cls, points: Sequence[Point]) -> Ring:
        return cls(vertices=tuple(points))

    @classmethod
    def parse(cls, encoded: str) -> Ring:
        """Build a ring straight from its text encoding."""
        return cls(vertices=tuple(parse_ring(encoded)))

    def contains_point(self, point: Point) -> bool:
        """Check if a point is inside the ring.

        Casts a ray from the point toward +x and counts edge crossings; an
        odd count means inside. Points on an edge get a fixed, repeatable
        answer that depends only on the ring and the point.

        Args:
            point: (x, y) coordinates

        Returns:
            True if point is inside the ring, False otherwise
        """
        px, py = point
        min_x, min_y, max_x, max_y = self.bounds
        if not (min_x <= px <= max_x and min_y <= py <= max_y):
            return False

        inside = False
        vertices = self.vertices
        xj, yj = vertices[-1]
        for xi, yi in vertices:
            if (yi > py) != (yj > py):
                x_cross = (xj - xi) * (py - yi) / (yj - yi) + xi
                if px < x_cross:
                    inside = not inside
            xj, yj = xi, yi

        return inside

    def __len__(self) -> int:
        return len(self.vertices)
