"""Catalog loader: parses config/catalog.yaml into unit templates.

The catalog lists the default weapons, subsystems and special moves and
the per-type base stats. ``create_default_unit`` stamps out a fresh unit
from it with one weapon-mount subsystem per weapon.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from hexcombat.loaders.game_config_loader import GameConfig
from hexcombat.models.unit import (
    Durability,
    SpecialMove,
    Subsystem,
    SubsystemType,
    Unit,
    UnitType,
    Weapon,
)
from hexcombat.persistence.snapshot import move_from_dict, subsystem_from_dict, weapon_from_dict

log = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = "config/catalog.yaml"


@dataclass
class UnitTemplate:
    """Base stats for one unit type."""
    armor: int = 0
    agility: int = 0
    precision: int = 0
    mass: int = 0
    special_moves: list[str] = field(default_factory=list)


@dataclass
class Catalog:
    """Parsed catalog.

    Attributes:
        weapons: Weapon templates keyed by catalog key.
        subsystems: Basic (non-weapon) subsystem templates.
        special_moves: Special move templates.
        weapon_mount_threshold: Durability threshold for generated mounts.
        unit_types: Base stats per unit type.
    """
    weapons: dict[str, Weapon] = field(default_factory=dict)
    subsystems: dict[str, Subsystem] = field(default_factory=dict)
    special_moves: dict[str, SpecialMove] = field(default_factory=dict)
    weapon_mount_threshold: float = 40.0
    unit_types: dict[UnitType, UnitTemplate] = field(default_factory=dict)


def _section(raw: dict, key: str) -> dict:
    section = raw.get(key) or {}
    if not isinstance(section, dict):
        raise ValueError(f"catalog section '{key}' must be a mapping")
    return section


def load_catalog(path: str | Path = DEFAULT_CATALOG_PATH) -> Catalog:
    """Load the equipment catalog from a YAML file.

    A missing file yields an empty catalog (units then come out bare)
    and logs a warning.
    """
    p = Path(path)
    if not p.exists():
        log.warning("Catalog not found at %s, default units will be unequipped", p)
        return Catalog()

    with p.open() as f:
        raw = yaml.safe_load(f) or {}

    catalog = Catalog(
        weapons={k: weapon_from_dict({"id": k, **v}) for k, v in _section(raw, "weapons").items()},
        subsystems={k: subsystem_from_dict({"id": k, **v}) for k, v in _section(raw, "subsystems").items()},
        special_moves={k: move_from_dict({"id": k, **v}) for k, v in _section(raw, "special_moves").items()},
        weapon_mount_threshold=float(raw.get("weapon_mount_threshold", 40)),
    )
    for type_key, attrs in _section(raw, "unit_types").items():
        attrs = dict(attrs or {})
        moves = list(attrs.pop("special_moves", []) or [])
        for move_key in moves:
            if move_key not in catalog.special_moves:
                raise ValueError(f"unit type '{type_key}' lists unknown special move '{move_key}'")
        catalog.unit_types[UnitType(type_key)] = UnitTemplate(special_moves=moves, **{
            k: int(v) for k, v in attrs.items()
            if k in UnitTemplate.__dataclass_fields__
        })

    log.info("Loaded catalog from %s: %d weapons, %d subsystems, %d special moves",
             p, len(catalog.weapons), len(catalog.subsystems), len(catalog.special_moves))
    return catalog


def default_durability(unit_type: UnitType, config: GameConfig,
                       multiplier: float = 1.0) -> Durability:
    base = config.mecha_base_durability if unit_type == UnitType.MECHA else config.kaiju_base_durability
    value = round(base * multiplier)
    return Durability(current=value, max=value)


def create_default_unit(
    unit_id: str,
    name: str,
    unit_type: UnitType,
    catalog: Catalog,
    config: Optional[GameConfig] = None,
    durability_multiplier: float = 1.0,
) -> Unit:
    """Build a fully-equipped unit from the catalog.

    Ids of generated parts are ``"<unit_id>:<catalog key>"``; each weapon
    gets a ``"<weapon name> Mount"`` subsystem linked by ``weapon_id``.
    """
    config = config or GameConfig()
    template = catalog.unit_types.get(unit_type, UnitTemplate())

    weapons: list[Weapon] = []
    subsystems: list[Subsystem] = []
    for key, base in catalog.subsystems.items():
        sub = copy.deepcopy(base)
        sub.id = f"{unit_id}:{key}"
        subsystems.append(sub)
    for key, base in catalog.weapons.items():
        weapon = copy.deepcopy(base)
        weapon.id = f"{unit_id}:{key}"
        weapons.append(weapon)
        subsystems.append(Subsystem(
            id=f"{unit_id}:{key}-mount",
            name=f"{weapon.name} Mount",
            type=SubsystemType.WEAPON,
            durability_threshold=catalog.weapon_mount_threshold,
            weapon_id=weapon.id,
            description=f"Mounting and control systems for the {weapon.name}.",
        ))

    moves: list[SpecialMove] = []
    for key in template.special_moves:
        move = copy.deepcopy(catalog.special_moves[key])
        move.id = f"{unit_id}:{key}"
        move.current_cooldown = 0
        moves.append(move)

    return Unit(
        id=unit_id,
        name=name,
        type=unit_type,
        durability=default_durability(unit_type, config, durability_multiplier),
        armor=template.armor,
        agility=template.agility,
        mass=template.mass,
        precision=template.precision,
        weapons=weapons,
        subsystems=subsystems,
        special_moves=moves,
    )
