"""Shared builders for the engine tests."""

from __future__ import annotations

from typing import Iterable, Optional

from hexcombat.engine.reducer import GameEngine
from hexcombat.loaders.game_config_loader import GameConfig
from hexcombat.models.pilot import Pilot
from hexcombat.models.state import GameState, LogType, new_game_state
from hexcombat.models.unit import (
    Durability,
    MoveEffect,
    Position,
    SpecialMove,
    Subsystem,
    SubsystemType,
    Targeting,
    Unit,
    UnitType,
    Weapon,
    WeaponType,
)


class ScriptedDice:
    """Dice that replay queued values; running dry fails the test."""

    def __init__(self, d6: Iterable[int] = (), random: Iterable[float] = (),
                 choices: Iterable[int] = ()):
        self.d6_rolls = list(d6)
        self.randoms = list(random)
        self.choices = list(choices)

    def d6(self) -> int:
        return self.d6_rolls.pop(0)

    def roll(self, n: int) -> int:
        return sum(self.d6() for _ in range(n))

    def random(self) -> float:
        return self.randoms.pop(0)

    def choice_index(self, n: int) -> int:
        return self.choices.pop(0) if self.choices else 0

    @property
    def exhausted(self) -> bool:
        return not (self.d6_rolls or self.randoms or self.choices)


# -------------------------------------------------------------------
# Equipment
# -------------------------------------------------------------------

def hammer(**kw) -> Weapon:
    return Weapon(**{"id": "hammer", "name": "Hammer", "type": WeaponType.IMPACT,
                     "force": 5, "difficulty": 1, "range": "melee", **kw})


def blade(**kw) -> Weapon:
    return Weapon(**{"id": "blade", "name": "Blade", "type": WeaponType.BLADED,
                     "edge": 6, "power": 3, "precision": 2, "difficulty": 1,
                     "range": "melee", **kw})


def railgun(**kw) -> Weapon:
    return Weapon(**{"id": "railgun", "name": "Railgun", "type": WeaponType.BALLISTIC,
                     "penetration": 6, "difficulty": 2, "range": 4, "arc_width": 60, **kw})


def subsystem(sid: str, threshold: float = 0.0, **kw) -> Subsystem:
    return Subsystem(**{"id": sid, "name": sid.replace("_", " ").title(),
                        "type": SubsystemType.SENSOR, "durability_threshold": threshold, **kw})


def move(mid: str, name: str, effect: MoveEffect, targeting: Targeting,
         cooldown: int = 2, current: int = 0, rng: Optional[int] = None) -> SpecialMove:
    return SpecialMove(id=mid, name=name, cooldown=cooldown, current_cooldown=current,
                       effect=effect, targeting=targeting, range=rng)


# -------------------------------------------------------------------
# Units and state
# -------------------------------------------------------------------

def make_unit(
    uid: str = "atlas",
    name: Optional[str] = None,
    unit_type: UnitType = UnitType.MECHA,
    at: Optional[tuple[int, int]] = None,
    facing: int = 0,
    durability: int = 100,
    armor: int = 3,
    agility: int = 2,
    precision: int = 2,
    mass: int = 3,
    weapons: Optional[list[Weapon]] = None,
    subsystems: Optional[list[Subsystem]] = None,
    moves: Optional[list[SpecialMove]] = None,
) -> Unit:
    return Unit(
        id=uid,
        name=name or uid.title(),
        type=unit_type,
        durability=Durability(durability, durability),
        armor=armor,
        agility=agility,
        precision=precision,
        mass=mass,
        position=Position(at[0], at[1], facing) if at is not None else None,
        weapons=weapons or [],
        subsystems=subsystems or [],
        special_moves=moves or [],
    )


def make_pilot(pid: str = "rei", aggression: int = 2, preservation: int = 1, **kw) -> Pilot:
    return Pilot(**{"id": pid, "name": pid.title(), "aggression": aggression,
                    "preservation": preservation, **kw})


def make_state(*units: Unit, pilots: Iterable[Pilot] = ()) -> GameState:
    state = new_game_state()
    state.units.extend(units)
    state.pilots.extend(pilots)
    return state


def make_engine(dice=None, **config) -> GameEngine:
    return GameEngine(GameConfig(**config), dice if dice is not None else ScriptedDice())


def last_log(state: GameState):
    return state.log[-1] if state.log else None


def log_types(state: GameState) -> list[LogType]:
    return [e.type for e in state.log]
