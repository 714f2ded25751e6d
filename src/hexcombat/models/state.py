"""Game state model: the single aggregate the engine reduces over.

The GameState holds every unit, pilot and map plus the interaction mode
flags, selections and the narrative log. Business logic is in the engine
reducers; callers own the state and pass it in by value.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from hexcombat.models.hex import HexCoord
from hexcombat.models.map import MapData, TerrainType
from hexcombat.models.pilot import Pilot
from hexcombat.models.unit import Unit


class LogType(str, Enum):
    INFO = "info"
    COMBAT = "combat"
    MOVEMENT = "movement"
    ERROR = "error"


@dataclass
class LogEntry:
    message: str
    type: LogType = LogType.INFO
    turn: int = 0


@dataclass
class GameState:
    """Root aggregate for one game.

    Attributes:
        units: All units, placed or not.
        pilots: The pilot roster.
        maps: All battlefields; ``selected_map_id`` picks the active one.

        attack_mode: Selected unit is choosing a weapon/target.
        special_move_mode: Selected unit is choosing a special move/target.
        placement_mode: Selected unit is being deployed.
        editor_mode: Terrain painting is enabled (independent of the others).

        attackable_tiles: Tiles the selected weapon can reach.
        targetable_tiles: Tiles the selected special move can reach.
        valid_placement_tiles: Tiles offered while in placement mode.

        turn: Turn counter, advanced by NEXT_TURN.
        log: Ordered narrative log.

        show_log: Whether the log panel is visible.
        show_combat_popup: Whether the last combat result is on display.
        combat_details: Breakdown of the last resolved attack.
        error: Message of the most recent error entry, cleared by the next
            non-error entry.
    """

    units: list[Unit] = field(default_factory=list)
    pilots: list[Pilot] = field(default_factory=list)
    maps: list[MapData] = field(default_factory=list)

    # Modes
    attack_mode: bool = False
    special_move_mode: bool = False
    placement_mode: bool = False
    editor_mode: bool = False

    # Selection
    selected_unit_id: Optional[str] = None
    selected_pilot_id: Optional[str] = None
    target_unit_id: Optional[str] = None
    selected_weapon_id: Optional[str] = None
    selected_special_move_id: Optional[str] = None
    selected_map_id: Optional[str] = None
    selected_terrain: Optional[TerrainType] = None

    # Derived tile sets
    attackable_tiles: list[HexCoord] = field(default_factory=list)
    targetable_tiles: list[HexCoord] = field(default_factory=list)
    valid_placement_tiles: list[HexCoord] = field(default_factory=list)

    turn: int = 0
    log: list[LogEntry] = field(default_factory=list)

    # UI-adjacent
    show_log: bool = True
    show_combat_popup: bool = False
    combat_details: Optional[dict[str, Any]] = None
    error: Optional[str] = None

    # -- Lookups ---------------------------------------------------------

    def find_unit(self, unit_id: Optional[str]) -> Optional[Unit]:
        return next((u for u in self.units if u.id == unit_id), None)

    def find_pilot(self, pilot_id: Optional[str]) -> Optional[Pilot]:
        return next((p for p in self.pilots if p.id == pilot_id), None)

    def find_map(self, map_id: Optional[str]) -> Optional[MapData]:
        return next((m for m in self.maps if m.id == map_id), None)

    @property
    def selected_map(self) -> Optional[MapData]:
        return self.find_map(self.selected_map_id)

    @property
    def selected_unit(self) -> Optional[Unit]:
        return self.find_unit(self.selected_unit_id)

    def pilot_of(self, unit: Unit) -> Optional[Pilot]:
        """The pilot currently in ``unit``, if any."""
        return self.find_pilot(unit.pilot_id) if unit.pilot_id else None

    def unit_piloted_by(self, pilot_id: str) -> Optional[Unit]:
        return next((u for u in self.units if u.pilot_id == pilot_id), None)

    def units_at(self, tiles: list[HexCoord], exclude_id: Optional[str] = None) -> list[Unit]:
        """Placed units standing on any of ``tiles``."""
        wanted = set(tiles)
        return [
            u for u in self.units
            if u.position is not None and u.position.hex in wanted and u.id != exclude_id
        ]


DEFAULT_MAP_ID = "default"


def new_game_state(map_radius: int = 6) -> GameState:
    """Fresh state with a single blank default map selected."""
    default_map = MapData(id=DEFAULT_MAP_ID, name="Default Battlefield", radius=map_radius)
    return GameState(maps=[default_map], selected_map_id=default_map.id)
