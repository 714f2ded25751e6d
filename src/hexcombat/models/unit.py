"""Unit model: mecha and kaiju with their weapons, subsystems and moves.

Units are pure data. Combat resolution lives in engine/combat.py and all
state transitions in the engine reducers.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Optional, Union

from hexcombat.models.hex import HexCoord
from hexcombat.util.constants import FACINGS, MELEE


class UnitType(str, Enum):
    """Only mecha can carry a pilot."""

    MECHA = "mecha"
    KAIJU = "kaiju"


class WeaponType(str, Enum):
    IMPACT = "impact"
    BLADED = "bladed"
    BALLISTIC = "ballistic"


class SubsystemType(str, Enum):
    WEAPON = "WEAPON"
    SENSOR = "SENSOR"
    MOBILITY = "MOBILITY"
    SHIELD = "SHIELD"
    POWER = "POWER"
    LIFE_SUPPORT = "LIFE_SUPPORT"
    COMMS = "COMMS"


class MoveEffect(str, Enum):
    DAMAGE = "damage"
    DEFENSE = "defense"
    UTILITY = "utility"
    HEALING = "healing"
    BUFF = "buff"
    GRAPPLE = "grapple"


class Targeting(str, Enum):
    SELF = "self"
    ALLY = "ally"
    ENEMY = "enemy"
    AREA = "area"


@dataclass
class Position:
    """On-field placement: axial coordinates plus facing.

    Attributes:
        x: Axial q coordinate.
        y: Axial r coordinate.
        facing: One of 0, 60, 120, 180, 240, 300 degrees.
    """

    x: int
    y: int
    facing: int = 0

    def __post_init__(self) -> None:
        if self.facing not in FACINGS:
            raise ValueError(f"facing must be one of {FACINGS}, got {self.facing!r}")

    @property
    def hex(self) -> HexCoord:
        return HexCoord(self.x, self.y)

    def same_tile(self, other: Optional[Position]) -> bool:
        return other is not None and self.x == other.x and self.y == other.y


@dataclass
class Durability:
    current: int
    max: int

    @property
    def percent(self) -> float:
        """Current durability as a percentage of max (0 when max is 0)."""
        if self.max <= 0:
            return 0.0
        return self.current / self.max * 100.0


@dataclass
class Weapon:
    """A weapon mounted on a unit.

    Attributes:
        id: Unique weapon id (subsystems link to it via ``weapon_id``).
        name: Display name.
        type: Damage model used on a hit.
        force: Impact force, discounted by half the defender's mass.
        penetration: Ballistic penetration, discounted by the defender's armor.
        edge: Bladed damage on a clean cut.
        power: Bladed cutting power; also the glancing-blow force.
        precision: Bladed critical bonus.
        difficulty: Added to the defender's defense value.
        range: ``"melee"`` (same tile only) or a tile count.
        arc_width: Firing arc in degrees; None uses the configured default.
        special: Free-text note for the GM.
    """

    id: str
    name: str
    type: WeaponType = WeaponType.IMPACT
    force: int = 0
    penetration: int = 0
    edge: int = 0
    power: int = 0
    precision: int = 0
    difficulty: int = 0
    range: Union[int, str] = MELEE
    arc_width: Optional[int] = None
    special: str = ""

    @property
    def is_melee(self) -> bool:
        return self.range == MELEE


@dataclass
class Subsystem:
    """A unit component that fails when unit durability drops too low.

    Attributes:
        durability_threshold: Percent of max durability below which the
            subsystem stops working.
        weapon_id: Set on weapon mounts; a failed mount disables the weapon.
    """

    id: str
    name: str
    type: SubsystemType = SubsystemType.WEAPON
    functional: bool = True
    durability_threshold: float = 0.0
    weapon_id: Optional[str] = None
    effect: str = ""
    description: str = ""


@dataclass
class SpecialMove:
    id: str
    name: str
    description: str = ""
    cooldown: int = 0
    current_cooldown: int = 0
    effect: MoveEffect = MoveEffect.UTILITY
    targeting: Targeting = Targeting.SELF
    range: Optional[int] = None

    @property
    def ready(self) -> bool:
        return self.current_cooldown <= 0


@dataclass
class UnitStatus:
    dazed: bool = False
    downed: bool = False
    grappled: bool = False
    stunned: bool = False
    prone: bool = False

    @classmethod
    def flag_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))


@dataclass
class Unit:
    """A mecha or kaiju on (or off) the battlefield.

    Invariants kept by :meth:`normalize`:
        0 <= wounds <= armor, 0 <= durability.current <= durability.max,
        and ``pilot_id`` is only ever set on mecha.
    """

    id: str
    name: str
    type: UnitType = UnitType.MECHA
    durability: Durability = field(default_factory=lambda: Durability(100, 100))
    armor: int = 0
    agility: int = 0
    mass: int = 0
    precision: int = 0
    wounds: int = 0
    position: Optional[Position] = None
    weapons: list[Weapon] = field(default_factory=list)
    subsystems: list[Subsystem] = field(default_factory=list)
    special_moves: list[SpecialMove] = field(default_factory=list)
    pilot_id: Optional[str] = None
    status: UnitStatus = field(default_factory=UnitStatus)

    # -- Derived properties ----------------------------------------------

    @property
    def is_placed(self) -> bool:
        return self.position is not None

    @property
    def can_be_piloted(self) -> bool:
        return self.type == UnitType.MECHA

    # -- Lookups ---------------------------------------------------------

    def find_weapon(self, weapon_id: Optional[str]) -> Optional[Weapon]:
        """Look up a weapon by id, falling back to its name."""
        if weapon_id is None:
            return None
        for weapon in self.weapons:
            if weapon.id == weapon_id:
                return weapon
        for weapon in self.weapons:
            if weapon.name == weapon_id:
                return weapon
        return None

    def find_subsystem(self, subsystem_id: str) -> Optional[Subsystem]:
        return next((s for s in self.subsystems if s.id == subsystem_id), None)

    def mount_for(self, weapon: Weapon) -> Optional[Subsystem]:
        """Subsystem the weapon is mounted on, if any."""
        return next((s for s in self.subsystems if s.weapon_id == weapon.id), None)

    def find_move(self, move_id: Optional[str]) -> Optional[SpecialMove]:
        return next((m for m in self.special_moves if m.id == move_id), None)

    # -- Invariants ------------------------------------------------------

    def normalize(self) -> None:
        """Clamp wounds and durability, and drop a pilot from a kaiju."""
        self.armor = max(0, self.armor)
        self.wounds = max(0, min(self.wounds, self.armor))
        self.durability.max = max(0, self.durability.max)
        self.durability.current = max(0, min(self.durability.current, self.durability.max))
        if not self.can_be_piloted:
            self.pilot_id = None
