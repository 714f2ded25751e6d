"""Attack mode handlers: weapon and target selection, attack resolution.

Resolution flow for EXECUTE_ATTACK:
    1. resolve attacker, target and weapon from the current selection
    2. refuse if the weapon's mount subsystem is down
    3. check targeting (melee: same tile; ranged: target on an attackable tile)
    4. roll the attack, compute damage for the weapon type
    5. apply durability, penetration hits, thresholds, wounds and status
    6. record combat details and leave attack mode
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from hexcombat.engine import combat
from hexcombat.engine.errors import InvalidActionError, NoChange
from hexcombat.engine.state_utils import (
    ReducerContext,
    add_wounds,
    append_log,
    apply_damage,
    clear_attack_mode,
    clear_placement_mode,
    clear_special_move_mode,
    pilot_stats,
    require_unit,
    weapon_tiles,
)
from hexcombat.models import actions as a
from hexcombat.models.state import GameState, LogType
from hexcombat.models.unit import Unit, Weapon

log = logging.getLogger(__name__)


def _attacker(state: GameState) -> Unit:
    attacker = state.selected_unit
    if attacker is None:
        raise InvalidActionError("No attacking unit selected.")
    return attacker


def handle_enter_attack_mode(ctx: ReducerContext, state: GameState, action: a.EnterAttackMode) -> None:
    unit = require_unit(state, action.unit_id)
    if unit.position is None:
        raise InvalidActionError(f"{unit.name} must be on the field to attack.")

    clear_special_move_mode(state)
    clear_placement_mode(state)
    clear_attack_mode(state)
    state.attack_mode = True
    state.selected_unit_id = unit.id
    state.attackable_tiles = weapon_tiles(unit, unit.weapons[0] if unit.weapons else None, ctx.config)
    append_log(state, f"{unit.name} prepares to attack.")


def handle_exit_attack_mode(ctx: ReducerContext, state: GameState, action: a.ExitAttackMode) -> None:
    if not state.attack_mode:
        raise NoChange()
    clear_attack_mode(state)


def handle_select_weapon(ctx: ReducerContext, state: GameState, action: a.SelectWeapon) -> None:
    attacker = _attacker(state)
    weapon = attacker.find_weapon(action.weapon_id)
    if weapon is None:
        raise InvalidActionError(f"{attacker.name} has no weapon {action.weapon_id}.")
    state.selected_weapon_id = weapon.id
    state.attackable_tiles = weapon_tiles(attacker, weapon, ctx.config)


def handle_select_target(ctx: ReducerContext, state: GameState, action: a.SelectTarget) -> None:
    target = require_unit(state, action.unit_id) if action.unit_id is not None else None
    state.target_unit_id = action.unit_id
    attacker = state.selected_unit
    if attacker is not None and target is not None:
        append_log(state, f"{attacker.name} targets {target.name}.")


# -- Resolution ----------------------------------------------------------

def _in_reach(state: GameState, attacker: Unit, defender: Unit, weapon: Weapon) -> bool:
    if weapon.is_melee:
        return attacker.position is not None and attacker.position.same_tile(defender.position)
    return defender.position is not None and defender.position.hex in state.attackable_tiles


def handle_execute_attack(ctx: ReducerContext, state: GameState, action: a.ExecuteAttack) -> None:
    attacker = _attacker(state)
    defender = state.find_unit(state.target_unit_id)
    if defender is None:
        raise InvalidActionError("No target selected.")
    weapon = attacker.find_weapon(state.selected_weapon_id)
    if weapon is None:
        raise InvalidActionError("No weapon selected.")
    if attacker.id == defender.id:
        raise InvalidActionError("Attack failed: A unit cannot target itself!")

    mount = attacker.mount_for(weapon)
    if mount is not None and not mount.functional:
        raise InvalidActionError(f"{weapon.name} cannot be used: {mount.name} is not functional.")

    if not _in_reach(state, attacker, defender, weapon):
        clear_attack_mode(state)
        append_log(state, f"Attack failed: {defender.name} is not in range or arc of {weapon.name}!",
                   LogType.ERROR)
        return

    aggression, _ = pilot_stats(state, attacker)
    _, preservation = pilot_stats(state, defender)
    precision, _ = combat.get_effective_stats(attacker, aggression, None)
    attack = combat.calculate_attack_success(attacker, defender, weapon, ctx.dice,
                                             aggression, preservation)
    breakdown = f"(Roll: {attack.roll} + {precision} = {attack.attack_value} vs {attack.defense_value})"

    durability_before = defender.durability.current
    result = combat.process_damage(weapon, attacker, defender, attack, ctx.dice, ctx.config)

    if result is None:
        message = f"{attacker.name} attacks {defender.name} with {weapon.name} but misses! {breakdown}"
        details = _details(attacker, defender, weapon, attack, durability_before)
    else:
        affected = []
        for sub_id in result.subsystems_hit:
            sub = defender.find_subsystem(sub_id)
            sub.functional = False
            affected.append(sub.name)
        affected.extend(s.name for s in apply_damage(defender, result.damage))
        wounds = add_wounds(defender, result.new_wounds)
        if result.status_effect:
            setattr(defender.status, result.status_effect, True)

        message = (f"{attacker.name} attacks {defender.name} with {weapon.name} and hits! "
                   f"{breakdown} {result.description}")
        lost = [name for name in affected if name not in result.description]
        if lost:
            message += f" Systems offline: {', '.join(lost)}."
        details = _details(attacker, defender, weapon, attack, durability_before,
                           result=result, wounds=wounds, affected=affected)

    log.debug("Attack %s -> %s with %s: %s", attacker.id, defender.id, weapon.id,
              "hit" if result else "miss")
    clear_attack_mode(state)
    append_log(state, message, LogType.COMBAT)
    state.combat_details = details
    state.show_combat_popup = True


def _details(
    attacker: Unit,
    defender: Unit,
    weapon: Weapon,
    attack: combat.AttackRoll,
    durability_before: int,
    result: Optional[combat.DamageResult] = None,
    wounds: int = 0,
    affected: Optional[list[str]] = None,
) -> dict[str, Any]:
    """Breakdown of a resolved attack for the combat popup."""
    hit = result is not None
    return {
        "title": f"{attacker.name} vs {defender.name}",
        "attacker": attacker.name,
        "defender": defender.name,
        "weapon": weapon.name,
        "weapon_type": weapon.type.value,
        "hit": hit,
        "roll": attack.roll,
        "attack_value": attack.attack_value,
        "defense_value": attack.defense_value,
        "margin": attack.success_margin,
        "damage": result.damage if hit else 0,
        "critical": result.critical if hit else False,
        "wounds": wounds,
        "durability_before": durability_before,
        "durability_after": defender.durability.current,
        "subsystems_affected": list(affected or []),
        "status_effect": result.status_effect if hit else None,
        "description": result.description if hit else "The attack misses.",
    }


# -- Popup ---------------------------------------------------------------

def handle_show_combat_popup(ctx: ReducerContext, state: GameState, action: a.ShowCombatPopup) -> None:
    if action.details is not None:
        state.combat_details = action.details
    state.show_combat_popup = True


def handle_hide_combat_popup(ctx: ReducerContext, state: GameState, action: a.HideCombatPopup) -> None:
    state.show_combat_popup = False


HANDLERS = {
    "ENTER_ATTACK_MODE": handle_enter_attack_mode,
    "EXIT_ATTACK_MODE": handle_exit_attack_mode,
    "SELECT_WEAPON": handle_select_weapon,
    "SELECT_TARGET": handle_select_target,
    "EXECUTE_ATTACK": handle_execute_attack,
    "SHOW_COMBAT_POPUP": handle_show_combat_popup,
    "HIDE_COMBAT_POPUP": handle_hide_combat_popup,
}
