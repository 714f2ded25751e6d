"""Battlefield map model.

Holds the map radius and per-tile terrain. Several maps may exist; the
game state selects exactly one at a time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from hexcombat.models.hex import HexCoord


class TerrainType(str, Enum):
    BLANK = "blank"
    LOCALE = "locale"
    MOUNTAIN = "mountain"
    WATER = "water"
    FOREST = "forest"
    DESERT = "desert"
    SWAMP = "swamp"


@dataclass
class MapData:
    """A hexagonal battlefield.

    Attributes:
        radius: Grid radius in hex steps from the origin.
        terrain: Terrain per tile keyed by ``"q,r"``; missing keys are blank.
    """

    id: str
    name: str
    radius: int = 6
    terrain: dict[str, TerrainType] = field(default_factory=dict)
    description: Optional[str] = None

    # -- Queries ---------------------------------------------------------

    def terrain_at(self, coord: HexCoord) -> TerrainType:
        return self.terrain.get(coord.key, TerrainType.BLANK)

    def contains(self, coord: HexCoord) -> bool:
        """Whether the tile lies within the map radius."""
        return HexCoord(0, 0).distance_to(coord) <= self.radius

    def set_terrain(self, coord: HexCoord, terrain: TerrainType) -> None:
        self.terrain[coord.key] = terrain
