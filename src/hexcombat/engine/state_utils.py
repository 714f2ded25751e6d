"""Helpers shared by the sub-reducers.

All functions mutate the working copy handed to a reducer; none of them
are called on a caller-owned state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from pydantic.alias_generators import to_snake

from hexcombat.engine.errors import InvalidActionError
from hexcombat.loaders.game_config_loader import GameConfig
from hexcombat.models.hex import HexCoord
from hexcombat.models.pilot import Pilot
from hexcombat.models.state import GameState, LogEntry, LogType
from hexcombat.models.unit import SpecialMove, Subsystem, Unit, Weapon
from hexcombat.util.hex_math import get_attackable_tiles, get_special_move_targets
from hexcombat.util.rng import DiceSource


# -- Log -----------------------------------------------------------------

def append_log(state: GameState, message: str, log_type: LogType = LogType.INFO) -> None:
    """Append a narrative entry; error entries also set ``state.error``."""
    state.log.append(LogEntry(message=message, type=log_type, turn=state.turn))
    state.error = message if log_type == LogType.ERROR else None


# -- Modes ---------------------------------------------------------------

def clear_attack_mode(state: GameState) -> None:
    state.attack_mode = False
    state.target_unit_id = None
    state.selected_weapon_id = None
    state.attackable_tiles = []


def clear_special_move_mode(state: GameState) -> None:
    state.special_move_mode = False
    state.target_unit_id = None
    state.selected_special_move_id = None
    state.targetable_tiles = []


def clear_placement_mode(state: GameState) -> None:
    state.placement_mode = False
    state.valid_placement_tiles = []


# -- Lookups -------------------------------------------------------------

def require_unit(state: GameState, unit_id: Optional[str]) -> Unit:
    unit = state.find_unit(unit_id)
    if unit is None:
        raise InvalidActionError(f"Unit {unit_id} not found.")
    return unit


def merge_changes(raw: dict[str, Any], changes: dict[str, Any], kind: str) -> dict[str, Any]:
    """Merge a partial update into a snapshot dict.

    Top-level keys may be camelCase. Nested mappings (durability, status,
    position, terrain) are merged key by key, so ``{"durability":
    {"current": 5}}`` keeps the existing ``max``.
    """
    changes = {to_snake(k): v for k, v in changes.items()}
    changes.pop("id", None)
    unknown = sorted(k for k in changes if k not in raw)
    if unknown:
        raise InvalidActionError(f"Unknown {kind} fields: {', '.join(unknown)}.")
    merged = dict(raw)
    for key, value in changes.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = {**current, **value}
        else:
            merged[key] = value
    return merged


def require_pilot(state: GameState, pilot_id: Optional[str]) -> Pilot:
    pilot = state.find_pilot(pilot_id)
    if pilot is None:
        raise InvalidActionError(f"Pilot {pilot_id} not found.")
    return pilot


def pilot_stats(state: GameState, unit: Unit) -> tuple[Optional[int], Optional[int]]:
    """(aggression, preservation) of the unit's pilot, or (None, None)."""
    pilot = state.pilot_of(unit)
    if pilot is None:
        return None, None
    return pilot.aggression, pilot.preservation


# -- Damage --------------------------------------------------------------

def reevaluate_subsystems(unit: Unit) -> list[Subsystem]:
    """Disable subsystems whose threshold is above the unit's durability percent.

    Monotonic: a failed subsystem is never switched back on here. Returns
    the subsystems that failed on this call.
    """
    percent = unit.durability.percent
    failed = []
    for sub in unit.subsystems:
        if sub.functional and percent < sub.durability_threshold:
            sub.functional = False
            failed.append(sub)
    return failed


def apply_damage(unit: Unit, amount: int) -> list[Subsystem]:
    """Reduce durability (clamped at 0) and re-check subsystem thresholds."""
    unit.durability.current = max(0, unit.durability.current - max(0, amount))
    return reevaluate_subsystems(unit)


def add_wounds(unit: Unit, count: int) -> int:
    """Add up to ``count`` wounds without exceeding armor; returns wounds added."""
    added = max(0, min(count, unit.armor - unit.wounds))
    unit.wounds += added
    return added


def heal(unit: Unit, amount: int) -> int:
    before = unit.durability.current
    unit.durability.current = min(unit.durability.max, before + amount)
    return unit.durability.current - before


# -- Tiles ---------------------------------------------------------------

def weapon_tiles(unit: Unit, weapon: Optional[Weapon], config: GameConfig) -> list[HexCoord]:
    """Tiles ``weapon`` can hit from the unit's current position and facing."""
    if unit.position is None or weapon is None:
        return []
    if weapon.is_melee:
        return [unit.position.hex]
    arc = weapon.arc_width or config.default_arc_width
    return get_attackable_tiles(unit.position.x, unit.position.y, unit.position.facing,
                                int(weapon.range), arc)


def move_tiles(unit: Unit, move: Optional[SpecialMove]) -> list[HexCoord]:
    if unit.position is None or move is None:
        return []
    return get_special_move_targets(unit.position.x, unit.position.y, unit.position.facing,
                                    move.targeting, move.range)


def tick_cooldowns(moves: list[SpecialMove]) -> None:
    for move in moves:
        move.current_cooldown = max(0, move.current_cooldown - 1)


# -- Context -------------------------------------------------------------

@dataclass
class ReducerContext:
    """Collaborators handed to every handler alongside the working state."""

    config: GameConfig
    dice: DiceSource
