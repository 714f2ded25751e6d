"""Unit lifecycle handlers: selection, roster changes, damage, status, subsystems."""

from __future__ import annotations

import logging
from typing import Optional

from hexcombat.engine.errors import InvalidActionError
from hexcombat.engine.state_utils import (
    ReducerContext,
    append_log,
    apply_damage,
    clear_attack_mode,
    clear_special_move_mode,
    merge_changes,
    reevaluate_subsystems,
    require_unit,
)
from hexcombat.models import actions as a
from hexcombat.models.state import GameState, LogType
from hexcombat.models.unit import Unit, UnitStatus
from hexcombat.persistence.snapshot import unit_from_dict, unit_to_dict

log = logging.getLogger(__name__)


def _release_pilot_elsewhere(state: GameState, pilot_id: str, keep_unit_id: str) -> None:
    for other in state.units:
        if other.pilot_id == pilot_id and other.id != keep_unit_id:
            other.pilot_id = None


def handle_select_unit(ctx: ReducerContext, state: GameState, action: a.SelectUnit) -> None:
    if action.unit_id is not None:
        require_unit(state, action.unit_id)

    previous = state.selected_unit
    switching = state.selected_unit_id != action.unit_id
    if switching and state.attack_mode:
        clear_attack_mode(state)
        if previous is not None:
            append_log(state, f"{previous.name} cancelled attack by selecting a different unit.")
    elif switching and state.special_move_mode:
        clear_special_move_mode(state)
        if previous is not None:
            append_log(state, f"{previous.name} cancelled special move by selecting a different unit.")

    state.selected_unit_id = action.unit_id
    state.selected_pilot_id = None


def handle_add_unit(ctx: ReducerContext, state: GameState, action: a.AddUnit) -> None:
    unit = action.unit
    if state.find_unit(unit.id) is not None:
        raise InvalidActionError(f"A unit with id {unit.id} already exists.")
    unit.normalize()
    reevaluate_subsystems(unit)
    if unit.pilot_id is not None:
        if state.find_pilot(unit.pilot_id) is None:
            log.info("Dropping unknown pilot %s from new unit %s", unit.pilot_id, unit.id)
            unit.pilot_id = None
        else:
            _release_pilot_elsewhere(state, unit.pilot_id, unit.id)
    state.units.append(unit)
    append_log(state, f"Unit {unit.name} ({unit.type.value}) added to the battle.")


def handle_remove_unit(ctx: ReducerContext, state: GameState, action: a.RemoveUnit) -> None:
    unit = require_unit(state, action.unit_id)
    if state.selected_unit_id == unit.id:
        if state.attack_mode:
            clear_attack_mode(state)
        if state.special_move_mode:
            clear_special_move_mode(state)
        state.selected_unit_id = None
    if state.target_unit_id == unit.id:
        state.target_unit_id = None
    state.units.remove(unit)
    append_log(state, f"Unit {unit.name} removed from battle.")


def handle_update_unit(ctx: ReducerContext, state: GameState, action: a.UpdateUnit) -> None:
    unit = require_unit(state, action.unit_id)
    raw = merge_changes(unit_to_dict(unit), action.changes, "unit")
    try:
        updated = unit_from_dict(raw)
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidActionError(f"Invalid update for {unit.name}: {exc}") from exc

    if updated.pilot_id is not None and updated.pilot_id != unit.pilot_id:
        if state.find_pilot(updated.pilot_id) is None:
            raise InvalidActionError(f"Pilot {updated.pilot_id} not found.")
        _release_pilot_elsewhere(state, updated.pilot_id, unit.id)
    reevaluate_subsystems(updated)
    state.units[state.units.index(unit)] = updated
    append_log(state, f"Unit {updated.name} updated.")


def handle_damage_unit(ctx: ReducerContext, state: GameState, action: a.DamageUnit) -> None:
    if action.amount < 0:
        raise InvalidActionError("Damage amount cannot be negative.")
    unit = require_unit(state, action.unit_id)
    failed = apply_damage(unit, action.amount)
    message = (f"{unit.name} takes {action.amount} damage "
               f"({unit.durability.current}/{unit.durability.max}).")
    if failed:
        message += " Failed: " + ", ".join(s.name for s in failed) + "."
    append_log(state, message, LogType.COMBAT)


def _status_name(name: str) -> str:
    if name not in UnitStatus.flag_names():
        raise InvalidActionError(f"Unknown unit status '{name}'.")
    return name


def handle_apply_status(ctx: ReducerContext, state: GameState, action: a.ApplyStatus) -> None:
    unit = require_unit(state, action.unit_id)
    setattr(unit.status, _status_name(action.status), True)
    append_log(state, f"{unit.name} is now {action.status}.")


def handle_remove_status(ctx: ReducerContext, state: GameState, action: a.RemoveStatus) -> None:
    unit = require_unit(state, action.unit_id)
    setattr(unit.status, _status_name(action.status), False)
    append_log(state, f"{unit.name} is no longer {action.status}.")


# -- Subsystems ----------------------------------------------------------

def _require_subsystem(unit: Unit, subsystem_id: str):
    sub = unit.find_subsystem(subsystem_id)
    if sub is None:
        raise InvalidActionError(f"Subsystem {subsystem_id} not found on {unit.name}.")
    return sub


def handle_add_subsystem(ctx: ReducerContext, state: GameState, action: a.AddSubsystem) -> None:
    unit = require_unit(state, action.unit_id)
    sub = action.subsystem
    if unit.find_subsystem(sub.id) is not None:
        raise InvalidActionError(f"Subsystem with ID {sub.id} already exists on {unit.name}.")
    if sub.weapon_id is not None and unit.find_weapon(sub.weapon_id) is None:
        raise InvalidActionError(f"{unit.name} has no weapon {sub.weapon_id} to mount.")
    unit.subsystems.append(sub)
    append_log(state, f"Added {sub.name} subsystem to {unit.name}.")


def handle_remove_subsystem(ctx: ReducerContext, state: GameState, action: a.RemoveSubsystem) -> None:
    unit = require_unit(state, action.unit_id)
    sub = _require_subsystem(unit, action.subsystem_id)
    unit.subsystems.remove(sub)
    append_log(state, f"Removed {sub.name} subsystem from {unit.name}.")


def handle_toggle_subsystem(ctx: ReducerContext, state: GameState, action: a.ToggleSubsystem) -> None:
    """Manual repair or sabotage; thresholds are not consulted."""
    unit = require_unit(state, action.unit_id)
    sub = _require_subsystem(unit, action.subsystem_id)
    functional: Optional[bool] = action.functional
    sub.functional = (not sub.functional) if functional is None else functional
    verb = "repaired" if sub.functional else "disabled"
    append_log(state, f"{sub.name} on {unit.name} {verb}.")


HANDLERS = {
    "SELECT_UNIT": handle_select_unit,
    "ADD_UNIT": handle_add_unit,
    "REMOVE_UNIT": handle_remove_unit,
    "UPDATE_UNIT": handle_update_unit,
    "DAMAGE_UNIT": handle_damage_unit,
    "APPLY_STATUS": handle_apply_status,
    "REMOVE_STATUS": handle_remove_status,
    "ADD_SUBSYSTEM": handle_add_subsystem,
    "REMOVE_SUBSYSTEM": handle_remove_subsystem,
    "TOGGLE_SUBSYSTEM": handle_toggle_subsystem,
}
