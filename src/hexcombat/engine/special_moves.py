"""Special move handlers.

Two ways in to EXECUTE_SPECIAL_MOVE:

* the catalog path resolves the selected move on the unit (or its pilot),
  enforces the cooldown and targeting rules, then looks the effect up in
  ``EFFECTS`` keyed by ``(effect, move name)``, ``(effect, targeting)`` or
  ``(effect, None)``, most specific first; Take Aim, Roar and Focus match
  by name only with their own targeting;
* the built-in path takes an inline ``move_data`` payload (Get Up!,
  Grapple Enemy) and skips the catalog and cooldowns entirely.

Effect handlers return the narrative line for the log, or None to fall
back to "<unit> uses <move>!".
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Union

from hexcombat.engine import combat
from hexcombat.engine.errors import InvalidActionError, NoChange, RuleRejected
from hexcombat.engine.state_utils import (
    ReducerContext,
    append_log,
    apply_damage,
    clear_attack_mode,
    clear_placement_mode,
    clear_special_move_mode,
    heal,
    move_tiles,
    require_unit,
)
from hexcombat.models import actions as a
from hexcombat.models.pilot import Pilot
from hexcombat.models.state import GameState, LogType
from hexcombat.models.unit import MoveEffect, SpecialMove, Targeting, Unit
from hexcombat.util.constants import FOCUS, GET_UP, GRAPPLE_ENEMY, ROAR, TAKE_AIM
from hexcombat.util.rng import DiceSource

log = logging.getLogger(__name__)

GrappleRoll = Callable[[Unit, DiceSource], int]


def _mover(state: GameState) -> Unit:
    unit = state.selected_unit
    if unit is None:
        raise InvalidActionError("No unit selected for a special move.")
    return unit


def find_move(state: GameState, unit: Unit, move_id: Optional[str]) -> tuple[Optional[SpecialMove], Union[Unit, Pilot, None]]:
    """Look the move up on the unit first, then on its pilot."""
    move = unit.find_move(move_id)
    if move is not None:
        return move, unit
    pilot = state.pilot_of(unit)
    if pilot is not None:
        move = pilot.find_move(move_id)
        if move is not None:
            return move, pilot
    return None, None


# -- Mode ----------------------------------------------------------------

def handle_enter_special_move_mode(
    ctx: ReducerContext, state: GameState, action: a.EnterSpecialMoveMode,
) -> None:
    unit = require_unit(state, action.unit_id)
    if unit.position is None:
        raise InvalidActionError(f"{unit.name} must be on the field to use a special move.")

    moves: list[SpecialMove] = []
    if action.source_type == "unit":
        moves = unit.special_moves
    else:
        pilot = state.pilot_of(unit)
        if pilot is not None:
            moves = pilot.special_moves
    if not moves:
        raise RuleRejected(f"{unit.name} has no {action.source_type} special moves available.",
                           LogType.INFO)

    clear_attack_mode(state)
    clear_placement_mode(state)
    clear_special_move_mode(state)
    state.special_move_mode = True
    state.selected_unit_id = unit.id
    state.selected_special_move_id = moves[0].id
    state.targetable_tiles = move_tiles(unit, moves[0])
    append_log(state, f"{unit.name} prepares to use a special move.")


def handle_exit_special_move_mode(
    ctx: ReducerContext, state: GameState, action: a.ExitSpecialMoveMode,
) -> None:
    if not state.special_move_mode:
        raise NoChange()
    clear_special_move_mode(state)


def handle_select_special_move(
    ctx: ReducerContext, state: GameState, action: a.SelectSpecialMove,
) -> None:
    unit = _mover(state)
    move, _ = find_move(state, unit, action.move_id)
    if move is None:
        raise InvalidActionError(f"{unit.name} has no special move {action.move_id}.")
    state.selected_special_move_id = move.id
    state.targetable_tiles = move_tiles(unit, move)


# -- Shared resolution ---------------------------------------------------

def _units_in_area(state: GameState, unit: Unit, move: SpecialMove) -> list[Unit]:
    return state.units_at(move_tiles(unit, move), exclude_id=unit.id)


def _defense_value(state: GameState, target: Unit) -> int:
    pilot = state.pilot_of(target)
    return (pilot.preservation if pilot else 0) + target.agility


def _aggression(state: GameState, unit: Unit) -> int:
    pilot = state.pilot_of(unit)
    return pilot.aggression if pilot else 0


def resolve_grapple(ctx: ReducerContext, unit: Unit, target: Unit, roll: GrappleRoll) -> str:
    """Opposed grapple; the attacker must roll strictly higher to change anything.

    An attacker that is itself grappled tries to break free; a target that
    is already grappled gets slammed down; otherwise the target is seized.
    """
    attack = roll(unit, ctx.dice)
    defense = roll(target, ctx.dice)
    won = attack > defense
    rolls = f"({attack} vs {defense})"

    if unit.status.grappled:
        if won:
            unit.status.grappled = False
            return f"{unit.name} breaks free from the grapple! {rolls}"
        return f"{unit.name} fails to break free. {rolls}"
    if target.status.grappled:
        if won:
            target.status.grappled = False
            target.status.downed = True
            return f"{unit.name} slams {target.name} to the ground! {rolls}"
        return f"{target.name} resists being thrown. {rolls}"
    if won:
        target.status.grappled = True
        return f"{unit.name} grapples {target.name}! {rolls}"
    return f"{unit.name} fails to grapple {target.name}. {rolls}"


# -- Catalog effects -----------------------------------------------------

EffectHandler = Callable[[ReducerContext, GameState, Unit, SpecialMove, Optional[Unit]], Optional[str]]


def _damage_enemy(ctx, state, unit, move, target):
    cfg = ctx.config
    aggression = _aggression(state, unit)
    dice_roll, attack = combat.special_move_attack_roll(ctx.dice, aggression, cfg.special_move_difficulty)
    defense = _defense_value(state, target)
    breakdown = f"(Roll: {dice_roll} + {aggression} - {cfg.special_move_difficulty} = {attack} vs {defense})"
    if attack <= defense:
        return f"{unit.name} uses {move.name} on {target.name} but misses! {breakdown}"
    damage = combat.special_move_damage(cfg.special_move_force, cfg.special_move_penetration, target)
    apply_damage(target, damage)
    return f"{unit.name} uses {move.name} on {target.name} and hits! {breakdown} Dealing {damage} damage!"


def _damage_area(ctx, state, unit, move, target):
    cfg = ctx.config
    victims = _units_in_area(state, unit, move)
    if not victims:
        return f"{unit.name} uses {move.name}, but there are no targets in the area."
    aggression = _aggression(state, unit)
    dice_roll = ctx.dice.roll(2)
    attack = dice_roll + aggression
    hits = 0
    for victim in victims:
        if attack > _defense_value(state, victim):
            hits += 1
            apply_damage(victim, combat.special_move_damage(
                cfg.area_move_force, cfg.area_move_penetration, victim))
    return (f"{unit.name} uses {move.name}, hitting {hits} out of {len(victims)} targets! "
            f"(Roll: {dice_roll} + {aggression} = {attack})")


def _defensive_stance(ctx, state, unit, move, target):
    # No numeric defense bonus is modelled yet; the stance is narrative only.
    return f"{unit.name} uses {move.name}, taking a defensive stance."


def _take_aim(ctx, state, unit, move, target):
    unit.status.prone = True
    return f"{unit.name} takes aim, going prone to improve accuracy."


def _roar(ctx, state, unit, move, target):
    victims = _units_in_area(state, unit, move)
    if not victims:
        return f"{unit.name} uses {move.name}, but there are no targets in the area."
    for victim in victims:
        victim.status.dazed = True
    return f"{unit.name} lets out a terrifying roar, dazing {len(victims)} nearby units!"


def _heal(ctx, state, unit, move, target):
    if move.targeting == Targeting.SELF:
        patient = unit
    elif move.targeting == Targeting.ALLY and target is not None:
        patient = target
    else:
        return None
    healed = heal(patient, ctx.config.heal_amount)
    who = "itself" if patient is unit else patient.name
    return f"{unit.name} uses {move.name}, healing {who} for {healed} durability."


def _focus(ctx, state, unit, move, target):
    return f"{unit.name} focuses, improving their next attack accuracy."


def _get_up(unit: Unit) -> str:
    if not unit.status.downed:
        return f"{unit.name} tries to get up but is not downed."
    unit.status.downed = False
    return f"{unit.name} gets back up!"


def _grapple(ctx, state, unit, move, target):
    if target is None:
        return f"{unit.name} uses {move.name}, but there is no one to grapple."
    return resolve_grapple(ctx, unit, target, combat.grapple_roll_catalog)


EFFECTS: dict[tuple[MoveEffect, Union[str, Targeting, None]], EffectHandler] = {
    (MoveEffect.DAMAGE, Targeting.ENEMY): _damage_enemy,
    (MoveEffect.DAMAGE, Targeting.AREA): _damage_area,
    (MoveEffect.DEFENSE, Targeting.SELF): _defensive_stance,
    (MoveEffect.UTILITY, TAKE_AIM): _take_aim,
    (MoveEffect.UTILITY, ROAR): _roar,
    (MoveEffect.HEALING, None): _heal,
    (MoveEffect.BUFF, FOCUS): _focus,
    (MoveEffect.BUFF, GET_UP): lambda ctx, state, unit, move, target: _get_up(unit),
    (MoveEffect.GRAPPLE, None): _grapple,
}

# Named effects only apply to moves with the matching targeting
_NAMED_TARGETING = {TAKE_AIM: Targeting.SELF, ROAR: Targeting.AREA, FOCUS: Targeting.SELF}

_COMBAT_EFFECTS = {MoveEffect.DAMAGE, MoveEffect.GRAPPLE}


def effect_handler(move: SpecialMove) -> Optional[EffectHandler]:
    keys = [(move.effect, move.targeting), (move.effect, None)]
    if _NAMED_TARGETING.get(move.name, move.targeting) == move.targeting:
        keys.insert(0, (move.effect, move.name))
    for key in keys:
        handler = EFFECTS.get(key)
        if handler is not None:
            return handler
    return None


def _check_target(state: GameState, unit: Unit, move: SpecialMove) -> Optional[Unit]:
    invalid = InvalidActionError(f"Invalid target for {move.name}.")
    if state.target_unit_id is None:
        if move.targeting in (Targeting.ALLY, Targeting.ENEMY):
            raise invalid
        return None
    target = state.find_unit(state.target_unit_id)
    if target is None:
        raise invalid
    if move.targeting == Targeting.ALLY and target.id != unit.id:
        raise invalid
    if move.targeting == Targeting.ENEMY and target.id == unit.id:
        raise invalid
    return target


def handle_execute_special_move(
    ctx: ReducerContext, state: GameState, action: a.ExecuteSpecialMove,
) -> None:
    if action.move_data is not None:
        _execute_builtin(ctx, state, action.move_data)
        return

    unit = state.selected_unit
    if unit is None or state.selected_special_move_id is None:
        raise InvalidActionError("Missing unit or special move selection.")
    move, _owner = find_move(state, unit, state.selected_special_move_id)
    if move is None:
        raise InvalidActionError("Special move not found.")
    if move.current_cooldown > 0:
        raise RuleRejected(f"{move.name} is on cooldown for {move.current_cooldown} more turns.")
    target = _check_target(state, unit, move)

    clear_special_move_mode(state)
    move.current_cooldown = move.cooldown

    handler = effect_handler(move)
    message = handler(ctx, state, unit, move, target) if handler else None
    if message is None:
        message = f"{unit.name} uses {move.name}!"
    log_type = LogType.COMBAT if move.effect in _COMBAT_EFFECTS else LogType.INFO
    append_log(state, message, log_type)


# -- Built-in moves ------------------------------------------------------

def _execute_builtin(ctx: ReducerContext, state: GameState, data: a.MoveData) -> None:
    unit = _mover(state)
    if data.name == GET_UP:
        append_log(state, _get_up(unit))
        return
    if data.name == GRAPPLE_ENEMY:
        target_id = data.target_unit_id or state.target_unit_id
        target = state.find_unit(target_id)
        if target is None or target.id == unit.id:
            raise InvalidActionError(f"Invalid target for {GRAPPLE_ENEMY}.")
        message = resolve_grapple(ctx, unit, target, combat.grapple_roll_builtin)
        append_log(state, message, LogType.COMBAT)
        return
    raise InvalidActionError(f"Unknown built-in move '{data.name}'.")


HANDLERS = {
    "ENTER_SPECIAL_MOVE_MODE": handle_enter_special_move_mode,
    "EXIT_SPECIAL_MOVE_MODE": handle_exit_special_move_mode,
    "SELECT_SPECIAL_MOVE": handle_select_special_move,
    "EXECUTE_SPECIAL_MOVE": handle_execute_special_move,
}
