"""Combat math: attack rolls and per-weapon-type damage.

Pure functions over units, weapons and an injected dice object. Nothing
here touches GameState; the attack and special-move reducers apply the
returned results.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Optional

from hexcombat.loaders.game_config_loader import GameConfig
from hexcombat.models.unit import Subsystem, Unit, Weapon, WeaponType
from hexcombat.util.rng import DiceSource

log = logging.getLogger(__name__)

_DEFAULTS = GameConfig()


# -- Results -------------------------------------------------------------

@dataclass
class AttackRoll:
    """Outcome of an attack roll.

    Attributes:
        roll: The raw d6.
        attack_value: roll + effective precision.
        defense_value: effective agility + weapon difficulty.
        success_margin: attack_value - defense_value (positive on a hit).
    """
    success: bool
    roll: int
    attack_value: int
    defense_value: int
    success_margin: int


@dataclass
class PenetratingDamageResult:
    subsystem_damaged: bool
    subsystem_id: Optional[str] = None
    subsystem_name: Optional[str] = None
    description: str = ""


@dataclass
class DamageResult:
    """Damage dealt by one hit.

    Attributes:
        new_wounds: Wounds to add; already limited by the defender's headroom.
        subsystems_hit: Ids of subsystems disabled by penetration.
        status_effect: ``"dazed"``, ``"downed"`` or None.
    """
    damage: int
    new_wounds: int = 0
    subsystem_damage: bool = False
    subsystems_hit: list[str] = field(default_factory=list)
    status_effect: Optional[str] = None
    critical: bool = False
    description: str = ""


# -- Rolls and stats -----------------------------------------------------

def roll_d6(dice: DiceSource) -> int:
    return dice.d6()


def get_effective_stats(
    unit: Unit,
    pilot_aggression: Optional[int] = None,
    pilot_preservation: Optional[int] = None,
) -> tuple[int, int]:
    """Precision and agility after pilot caps.

    A pilot's aggression caps the unit's precision and preservation caps
    its agility. Without a pilot value the unit stat passes through.
    """
    precision = unit.precision if pilot_aggression is None else min(unit.precision, pilot_aggression)
    agility = unit.agility if pilot_preservation is None else min(unit.agility, pilot_preservation)
    return precision, agility


def calculate_attack_success(
    attacker: Unit,
    defender: Unit,
    weapon: Weapon,
    dice: DiceSource,
    attacker_pilot_aggression: Optional[int] = None,
    defender_pilot_preservation: Optional[int] = None,
) -> AttackRoll:
    """1d6 + precision against agility + difficulty; ties go to the defender."""
    precision, _ = get_effective_stats(attacker, attacker_pilot_aggression, None)
    _, agility = get_effective_stats(defender, None, defender_pilot_preservation)

    roll = roll_d6(dice)
    attack_value = roll + precision
    defense_value = agility + weapon.difficulty
    return AttackRoll(
        success=attack_value > defense_value,
        roll=roll,
        attack_value=attack_value,
        defense_value=defense_value,
        success_margin=attack_value - defense_value,
    )


def _mass_reduced(force: int, mass: int) -> int:
    return max(0, force - math.floor(mass / 2))


# -- Impact --------------------------------------------------------------

def calculate_impact_damage(
    weapon: Weapon, defender: Unit, dice: DiceSource, config: GameConfig = _DEFAULTS,
) -> DamageResult:
    damage = _mass_reduced(weapon.force, defender.mass)

    status_effect = None
    status_text = ""
    if weapon.force > defender.mass:
        impact_roll = roll_d6(dice) + (weapon.force - defender.mass)
        if impact_roll >= config.impact_downed_threshold:
            status_effect = "downed"
            status_text = " The impact knocks the target down!"
        elif impact_roll >= config.impact_dazed_threshold:
            status_effect = "dazed"
            status_text = " The impact dazes the target!"

    new_wounds = 0
    if defender.wounds >= defender.armor:
        wound_text = " The unit cannot take any more structural wounds!"
    elif weapon.force > defender.armor:
        new_wounds = 1
        wound_text = " The force creates a structural wound!"
        if defender.wounds + 1 < defender.armor:
            extra_chance = (weapon.force - defender.armor) / defender.armor
            if dice.random() < extra_chance:
                new_wounds = 2
                wound_text = " The force creates multiple structural wounds!"
    else:
        chance = weapon.force / defender.armor if defender.armor > 0 else 1.0
        if dice.random() < chance:
            new_wounds = 1
            wound_text = " The impact creates a structural wound!"
        else:
            wound_text = ""

    return DamageResult(
        damage=damage,
        new_wounds=new_wounds,
        status_effect=status_effect,
        description=f"Impact force deals {damage} damage.{wound_text}{status_text}",
    )


# -- Bladed --------------------------------------------------------------

def calculate_bladed_damage(weapon: Weapon, defender: Unit, success_margin: int) -> DamageResult:
    """Critical, clean cut or glancing blow depending on margin vs worn armor."""
    effective_armor = max(1, defender.armor - defender.wounds)
    can_wound = defender.wounds < defender.armor

    if success_margin + weapon.precision > effective_armor:
        damage = weapon.edge * 2
        if can_wound:
            text = (f"Critical hit! Blade slips through a weak point for {damage} damage "
                    f"and creates a structural wound!")
        else:
            text = (f"Critical hit! Blade slips through a weak point for {damage} damage "
                    f"but cannot create more structural wounds!")
        return DamageResult(damage=damage, new_wounds=1 if can_wound else 0,
                            critical=True, description=text)

    if success_margin + weapon.power > effective_armor:
        damage = weapon.edge
        if can_wound:
            text = f"Blade cuts through for {damage} damage and creates a structural wound!"
        else:
            text = f"Blade cuts through for {damage} damage but cannot create more structural wounds!"
        return DamageResult(damage=damage, new_wounds=1 if can_wound else 0, description=text)

    damage = _mass_reduced(weapon.power, defender.mass)
    return DamageResult(
        damage=damage,
        description=f"Attack glances off armor but still applies {damage} force damage!",
    )


# -- Ballistic -----------------------------------------------------------

def roll_penetrating_damage_effect(
    defender: Unit,
    dice: DiceSource,
    exclude: Optional[set[str]] = None,
    config: GameConfig = _DEFAULTS,
) -> PenetratingDamageResult:
    """One 2d6 roll on the penetration table.

    On a success a random functional subsystem (not in ``exclude``) is
    picked. No roll is made when nothing is left to hit.
    """
    exclude = exclude or set()
    candidates: list[Subsystem] = [
        s for s in defender.subsystems if s.functional and s.id not in exclude
    ]
    if not candidates:
        return PenetratingDamageResult(False, description="No functional subsystems to damage!")

    roll = dice.roll(2)
    if roll >= config.penetration_effect_threshold:
        hit = candidates[dice.choice_index(len(candidates))]
        return PenetratingDamageResult(
            True,
            subsystem_id=hit.id,
            subsystem_name=hit.name,
            description=f"Penetrating damage affects the {hit.name} subsystem!",
        )
    return PenetratingDamageResult(
        False, description="Penetrating damage doesn't affect any critical systems.",
    )


def calculate_ballistic_damage(
    weapon: Weapon, defender: Unit, dice: DiceSource, config: GameConfig = _DEFAULTS,
) -> DamageResult:
    damage = max(0, weapon.penetration - math.floor(defender.armor / 2))
    excess = max(0, weapon.penetration - defender.armor)

    hit_ids: list[str] = []
    notes = ""
    for _ in range(excess):
        result = roll_penetrating_damage_effect(defender, dice, set(hit_ids), config)
        if result.subsystem_damaged:
            hit_ids.append(result.subsystem_id)
            notes += f" {result.description}"

    return DamageResult(
        damage=damage,
        subsystem_damage=bool(hit_ids),
        subsystems_hit=hit_ids,
        description=f"Penetrating rounds deal {damage} damage.{notes}",
    )


# -- Dispatch ------------------------------------------------------------

def process_damage(
    weapon: Weapon,
    attacker: Unit,
    defender: Unit,
    attack: AttackRoll,
    dice: DiceSource,
    config: GameConfig = _DEFAULTS,
) -> Optional[DamageResult]:
    """Damage for a resolved attack; None on a miss."""
    if not attack.success:
        return None

    if weapon.type == WeaponType.IMPACT:
        return calculate_impact_damage(weapon, defender, dice, config)
    if weapon.type == WeaponType.BLADED:
        return calculate_bladed_damage(weapon, defender, attack.success_margin)
    if weapon.type == WeaponType.BALLISTIC:
        return calculate_ballistic_damage(weapon, defender, dice, config)

    log.warning("Unknown weapon type %r on %s, using generic damage", weapon.type, weapon.name)
    damage = _mass_reduced(weapon.force, defender.mass)
    return DamageResult(damage=damage, description=f"Weapon deals {damage} generic damage.")


# -- Special move rolls --------------------------------------------------

def special_move_attack_roll(dice: DiceSource, aggression: int, difficulty: int) -> tuple[int, int]:
    """2d6 + pilot aggression - difficulty; returns (dice total, attack value)."""
    dice_roll = dice.roll(2)
    return dice_roll, dice_roll + aggression - difficulty


def special_move_damage(force: int, penetration: int, target: Unit) -> int:
    return _mass_reduced(force, target.mass) + max(0, penetration - target.armor)


def grapple_roll_builtin(unit: Unit, dice: DiceSource) -> int:
    """Opposed grapple roll used by the built-in Grapple Enemy action: d6 + mass."""
    return roll_d6(dice) + unit.mass


def grapple_roll_catalog(unit: Unit, dice: DiceSource) -> int:
    """Opposed grapple roll used by catalog grapple moves: 2*mass + agility + d6."""
    return 2 * unit.mass + unit.agility + roll_d6(dice)
