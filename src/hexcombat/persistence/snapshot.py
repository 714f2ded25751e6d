"""Snapshot codec: converts GameState to and from plain dicts.

The dict form is what gets written as YAML (state_save) or JSON
(export) and what action payloads may carry instead of model objects.

Reading is tolerant of schema drift: unknown keys are ignored, missing
keys take the model defaults, and camelCase keys written by older
front-ends are accepted alongside snake_case ones.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

from pydantic.alias_generators import to_camel

from hexcombat.models.hex import HexCoord
from hexcombat.models.map import MapData, TerrainType
from hexcombat.models.pilot import Pilot, PilotStatus
from hexcombat.models.state import GameState, LogEntry, LogType
from hexcombat.models.unit import (
    Durability,
    MoveEffect,
    Position,
    SpecialMove,
    Subsystem,
    SubsystemType,
    Targeting,
    Unit,
    UnitStatus,
    UnitType,
    Weapon,
    WeaponType,
)
from hexcombat.util.constants import MELEE, SNAPSHOT_VERSION

log = logging.getLogger(__name__)


# ===================================================================
# Helpers
# ===================================================================

def _pick(raw: dict[str, Any], name: str, default: Any = None) -> Any:
    """Read ``name`` from ``raw``, accepting its camelCase spelling too."""
    if name in raw:
        return raw[name]
    return raw.get(to_camel(name), default)


def _opt_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)


def _hex(c: HexCoord) -> dict[str, int]:
    return {"q": c.q, "r": c.r}


def _hex_list(coords: list[HexCoord]) -> list[dict[str, int]]:
    return [_hex(c) for c in coords]


def _parse_hex_list(raw: Optional[list[dict[str, Any]]]) -> list[HexCoord]:
    return [HexCoord(int(h["q"]), int(h["r"])) for h in (raw or [])]


def meta() -> dict[str, Any]:
    return {
        "version": SNAPSHOT_VERSION,
        "saved_at": time.strftime("%Y-%m-%dT%H:%M:%S"),
        "saved_at_unix": time.time(),
    }


# ===================================================================
# Serialization
# ===================================================================

def weapon_to_dict(w: Weapon) -> dict[str, Any]:
    return {
        "id": w.id,
        "name": w.name,
        "type": w.type.value if isinstance(w.type, WeaponType) else w.type,
        "force": w.force,
        "penetration": w.penetration,
        "edge": w.edge,
        "power": w.power,
        "precision": w.precision,
        "difficulty": w.difficulty,
        "range": w.range,
        "arc_width": w.arc_width,
        "special": w.special,
    }


def subsystem_to_dict(s: Subsystem) -> dict[str, Any]:
    return {
        "id": s.id,
        "name": s.name,
        "type": s.type.value,
        "functional": s.functional,
        "durability_threshold": s.durability_threshold,
        "weapon_id": s.weapon_id,
        "effect": s.effect,
        "description": s.description,
    }


def move_to_dict(m: SpecialMove) -> dict[str, Any]:
    return {
        "id": m.id,
        "name": m.name,
        "description": m.description,
        "cooldown": m.cooldown,
        "current_cooldown": m.current_cooldown,
        "effect": m.effect.value,
        "targeting": m.targeting.value,
        "range": m.range,
    }


def unit_to_dict(u: Unit) -> dict[str, Any]:
    return {
        "id": u.id,
        "name": u.name,
        "type": u.type.value,
        "durability": {"current": u.durability.current, "max": u.durability.max},
        "armor": u.armor,
        "agility": u.agility,
        "mass": u.mass,
        "precision": u.precision,
        "wounds": u.wounds,
        "position": (
            {"x": u.position.x, "y": u.position.y, "facing": u.position.facing}
            if u.position is not None else None
        ),
        "weapons": [weapon_to_dict(w) for w in u.weapons],
        "subsystems": [subsystem_to_dict(s) for s in u.subsystems],
        "special_moves": [move_to_dict(m) for m in u.special_moves],
        "pilot_id": u.pilot_id,
        "status": {name: getattr(u.status, name) for name in UnitStatus.flag_names()},
    }


def pilot_to_dict(p: Pilot) -> dict[str, Any]:
    return {
        "id": p.id,
        "name": p.name,
        "aggression": p.aggression,
        "preservation": p.preservation,
        "psyche": p.psyche,
        "sync": p.sync,
        "special_moves": [move_to_dict(m) for m in p.special_moves],
        "portrait": p.portrait,
        "status": {name: getattr(p.status, name) for name in PilotStatus.flag_names()},
    }


def map_to_dict(m: MapData) -> dict[str, Any]:
    return {
        "id": m.id,
        "name": m.name,
        "radius": m.radius,
        "terrain": {key: t.value for key, t in sorted(m.terrain.items())},
        "description": m.description,
    }


def state_to_dict(state: GameState) -> dict[str, Any]:
    """Full snapshot of ``state`` as plain data (no meta block)."""
    return {
        "units": [unit_to_dict(u) for u in state.units],
        "pilots": [pilot_to_dict(p) for p in state.pilots],
        "maps": [map_to_dict(m) for m in state.maps],
        "attack_mode": state.attack_mode,
        "special_move_mode": state.special_move_mode,
        "placement_mode": state.placement_mode,
        "editor_mode": state.editor_mode,
        "selected_unit_id": state.selected_unit_id,
        "selected_pilot_id": state.selected_pilot_id,
        "target_unit_id": state.target_unit_id,
        "selected_weapon_id": state.selected_weapon_id,
        "selected_special_move_id": state.selected_special_move_id,
        "selected_map_id": state.selected_map_id,
        "selected_terrain": state.selected_terrain.value if state.selected_terrain else None,
        "attackable_tiles": _hex_list(state.attackable_tiles),
        "targetable_tiles": _hex_list(state.targetable_tiles),
        "valid_placement_tiles": _hex_list(state.valid_placement_tiles),
        "turn": state.turn,
        "log": [{"message": e.message, "type": e.type.value, "turn": e.turn} for e in state.log],
        "show_log": state.show_log,
        "show_combat_popup": state.show_combat_popup,
        "combat_details": state.combat_details,
        "error": state.error,
    }


# ===================================================================
# Deserialization
# ===================================================================

def weapon_from_dict(d: dict[str, Any]) -> Weapon:
    rng = _pick(d, "range", MELEE)
    return Weapon(
        id=str(d.get("id") or d["name"]),
        name=d["name"],
        type=WeaponType(d.get("type", WeaponType.IMPACT.value)),
        force=int(d.get("force") or 0),
        penetration=int(d.get("penetration") or 0),
        edge=int(d.get("edge") or 0),
        power=int(d.get("power") or 0),
        precision=int(d.get("precision") or 0),
        difficulty=int(d.get("difficulty") or 0),
        range=rng if rng == MELEE else int(rng),
        arc_width=_opt_int(_pick(d, "arc_width")),
        special=d.get("special") or "",
    )


def subsystem_from_dict(d: dict[str, Any]) -> Subsystem:
    return Subsystem(
        id=str(d["id"]),
        name=d["name"],
        type=SubsystemType(d.get("type", SubsystemType.WEAPON.value)),
        functional=bool(d.get("functional", True)),
        durability_threshold=float(_pick(d, "durability_threshold", 0.0)),
        weapon_id=_pick(d, "weapon_id"),
        effect=d.get("effect") or "",
        description=d.get("description") or "",
    )


def move_from_dict(d: dict[str, Any]) -> SpecialMove:
    return SpecialMove(
        id=str(d.get("id") or d["name"]),
        name=d["name"],
        description=d.get("description") or "",
        cooldown=int(d.get("cooldown") or 0),
        current_cooldown=int(_pick(d, "current_cooldown", 0) or 0),
        effect=MoveEffect(d.get("effect", MoveEffect.UTILITY.value)),
        targeting=Targeting(d.get("targeting", Targeting.SELF.value)),
        range=_opt_int(d.get("range")),
    )


def position_from_dict(d: Optional[dict[str, Any]]) -> Optional[Position]:
    if not d:
        return None
    return Position(x=int(d["x"]), y=int(d["y"]), facing=int(d.get("facing", 0)))


def _flags(cls: type, raw: Optional[dict[str, Any]]) -> Any:
    raw = raw or {}
    return cls(**{name: bool(raw.get(name, False)) for name in cls.flag_names()})


def unit_from_dict(d: dict[str, Any]) -> Unit:
    dur = d.get("durability") or {}
    unit = Unit(
        id=str(d["id"]),
        name=d["name"],
        type=UnitType(d.get("type", UnitType.MECHA.value)),
        durability=Durability(
            current=int(dur.get("current", dur.get("max", 100))),
            max=int(dur.get("max", 100)),
        ),
        armor=int(d.get("armor") or 0),
        agility=int(d.get("agility") or 0),
        mass=int(d.get("mass") or 0),
        precision=int(d.get("precision") or 0),
        wounds=int(d.get("wounds") or 0),
        position=position_from_dict(d.get("position")),
        weapons=[weapon_from_dict(w) for w in d.get("weapons") or []],
        subsystems=[subsystem_from_dict(s) for s in d.get("subsystems") or []],
        special_moves=[move_from_dict(m) for m in _pick(d, "special_moves") or []],
        pilot_id=_pick(d, "pilot_id"),
        status=_flags(UnitStatus, d.get("status")),
    )
    unit.normalize()
    return unit


def pilot_from_dict(d: dict[str, Any]) -> Pilot:
    return Pilot(
        id=str(d["id"]),
        name=d["name"],
        aggression=int(d.get("aggression") or 0),
        preservation=int(d.get("preservation") or 0),
        psyche=int(d.get("psyche") or 0),
        sync=int(d.get("sync") or 0),
        special_moves=[move_from_dict(m) for m in _pick(d, "special_moves") or []],
        portrait=d.get("portrait"),
        status=_flags(PilotStatus, d.get("status")),
    )


def map_from_dict(d: dict[str, Any]) -> MapData:
    return MapData(
        id=str(d.get("id") or ""),
        name=d["name"],
        radius=int(d.get("radius", 6)),
        terrain={key: TerrainType(t) for key, t in (d.get("terrain") or {}).items()},
        description=d.get("description"),
    )


def _log_from_raw(raw: Any) -> LogEntry:
    if isinstance(raw, str):
        # Plain-string logs from older snapshots
        return LogEntry(message=raw)
    return LogEntry(
        message=raw["message"],
        type=LogType(raw.get("type", LogType.INFO.value)),
        turn=int(raw.get("turn", 0)),
    )


def state_from_dict(d: dict[str, Any]) -> GameState:
    """Rebuild a GameState from its snapshot dict."""
    terrain = _pick(d, "selected_terrain")
    state = GameState(
        units=[unit_from_dict(u) for u in d.get("units") or []],
        pilots=[pilot_from_dict(p) for p in d.get("pilots") or []],
        maps=[map_from_dict(m) for m in d.get("maps") or []],
        attack_mode=bool(_pick(d, "attack_mode", False)),
        special_move_mode=bool(_pick(d, "special_move_mode", False)),
        placement_mode=bool(_pick(d, "placement_mode", False)),
        editor_mode=bool(_pick(d, "editor_mode", False)),
        selected_unit_id=_pick(d, "selected_unit_id"),
        selected_pilot_id=_pick(d, "selected_pilot_id"),
        target_unit_id=_pick(d, "target_unit_id"),
        selected_weapon_id=_pick(d, "selected_weapon_id"),
        selected_special_move_id=_pick(d, "selected_special_move_id"),
        selected_map_id=_pick(d, "selected_map_id"),
        selected_terrain=TerrainType(terrain) if terrain else None,
        attackable_tiles=_parse_hex_list(_pick(d, "attackable_tiles")),
        targetable_tiles=_parse_hex_list(_pick(d, "targetable_tiles")),
        valid_placement_tiles=_parse_hex_list(_pick(d, "valid_placement_tiles")),
        turn=int(d.get("turn", 0)),
        log=[_log_from_raw(e) for e in d.get("log") or []],
        show_log=bool(_pick(d, "show_log", True)),
        show_combat_popup=bool(_pick(d, "show_combat_popup", False)),
        combat_details=_pick(d, "combat_details"),
        error=d.get("error"),
    )
    repair_pilot_links(state)
    return state


def repair_pilot_links(state: GameState) -> None:
    """Drop pilot links to missing pilots and second claims on one pilot."""
    known = {p.id for p in state.pilots}
    claimed: set[str] = set()
    for unit in state.units:
        if unit.pilot_id is None:
            continue
        if unit.pilot_id not in known or unit.pilot_id in claimed:
            log.warning("Unit %s: dropping pilot link %s", unit.id, unit.pilot_id)
            unit.pilot_id = None
        else:
            claimed.add(unit.pilot_id)


def check_version(raw_meta: dict[str, Any], source: str) -> None:
    """Warn when a snapshot was written by a different schema version."""
    version = raw_meta.get("version")
    if version is not None and version != SNAPSHOT_VERSION:
        log.warning("Snapshot %s has schema version %s (expected %d), reading leniently",
                    source, version, SNAPSHOT_VERSION)
