"""Hex math utilities: geometry functions for the combat grid.

Pixel conversion uses flat-top hexes. Facing 0 points to the top of the
board and facings step clockwise in 60 degree increments, so the arc test
measures bearings clockwise from screen-up.

Reference: https://www.redblobgames.com/grids/hexagons/
"""

from __future__ import annotations

import math
from typing import Optional

from hexcombat.models.hex import HexCoord
from hexcombat.models.unit import Targeting

_SQRT3 = math.sqrt(3)
_ARC_EPSILON = 1e-6


def hex_to_pixel(coord: HexCoord, size: float) -> tuple[float, float]:
    """Centre of ``coord`` in pixels for hexes of circumradius ``size``."""
    x = size * (1.5 * coord.q)
    y = size * (_SQRT3 * coord.r + _SQRT3 / 2 * coord.q)
    return x, y


def hexagon_points(size: float) -> list[tuple[float, float]]:
    """Six vertices of a hexagon centred on the origin, from 0 degrees in 60 degree steps."""
    points = []
    for i in range(6):
        rad = math.radians(i * 60)
        points.append((size * math.cos(rad), size * math.sin(rad)))
    return points


def generate_hex_grid(radius: int) -> list[HexCoord]:
    """All coordinates within ``radius`` steps of the origin.

    Produces exactly 3*r*r + 3*r + 1 coordinates, ordered by q
    then r.
    """
    hexes: list[HexCoord] = []
    for q in range(-radius, radius + 1):
        r1 = max(-radius, -q - radius)
        r2 = min(radius, -q + radius)
        for r in range(r1, r2 + 1):
            hexes.append(HexCoord(q, r))
    return hexes


def axial_to_cube(coord: HexCoord) -> tuple[int, int, int]:
    return coord.q, -coord.q - coord.r, coord.r


def hex_distance(a: HexCoord, b: HexCoord) -> int:
    """Compute the hex grid distance between two coordinates."""
    return a.distance_to(b)


def hexes_in_range(center: HexCoord, rng: int) -> list[HexCoord]:
    """All hexes within ``rng`` steps of ``center``, sorted by (q, r)."""
    return sorted(center.disk(rng), key=lambda h: (h.q, h.r))


def bearing(origin: HexCoord, target: HexCoord) -> float:
    """Clockwise angle from screen-up to ``target`` as seen from ``origin``."""
    ox, oy = hex_to_pixel(origin, 1.0)
    tx, ty = hex_to_pixel(target, 1.0)
    return math.degrees(math.atan2(tx - ox, -(ty - oy))) % 360


def in_arc(origin: HexCoord, facing: int, target: HexCoord, arc_width: int) -> bool:
    """Whether ``target`` lies inside the arc centred on ``facing``.

    The origin tile itself is always inside.
    """
    if origin == target:
        return True
    diff = abs(bearing(origin, target) - facing) % 360
    diff = min(diff, 360 - diff)
    return diff <= arc_width / 2 + _ARC_EPSILON


def get_attackable_tiles(
    q: int, r: int, facing: int, rng: int, arc_width: int = 60,
) -> list[HexCoord]:
    """Tiles within ``rng`` steps and inside the firing arc.

    Melee weapons are handled by the caller (same tile only); ``rng`` is
    always a tile count here.
    """
    origin = HexCoord(q, r)
    return [h for h in hexes_in_range(origin, rng) if in_arc(origin, facing, h, arc_width)]


def get_special_move_targets(
    q: int, r: int, facing: int, targeting: Targeting, rng: Optional[int] = None,
) -> list[HexCoord]:
    """Tiles a special move can reach.

    ``self`` is the origin tile only. ``area`` is a symmetric blast of
    ``rng`` steps (1 when unset). ``ally`` and ``enemy`` cover every tile
    within ``rng`` regardless of facing and are empty without a range.
    """
    origin = HexCoord(q, r)
    if targeting == Targeting.SELF:
        return [origin]
    if targeting == Targeting.AREA:
        return hexes_in_range(origin, 1 if rng is None else rng)
    if rng is None:
        return []
    return hexes_in_range(origin, rng)
