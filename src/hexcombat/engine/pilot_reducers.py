"""Pilot lifecycle handlers: roster, assignment and pilot status."""

from __future__ import annotations

import logging

from hexcombat.engine.errors import InvalidActionError, RuleRejected
from hexcombat.engine.state_utils import (
    ReducerContext,
    append_log,
    merge_changes,
    require_pilot,
    require_unit,
)
from hexcombat.models import actions as a
from hexcombat.models.pilot import PilotStatus
from hexcombat.models.state import GameState, LogType
from hexcombat.persistence.snapshot import pilot_from_dict, pilot_to_dict

log = logging.getLogger(__name__)


def handle_select_pilot(ctx: ReducerContext, state: GameState, action: a.SelectPilot) -> None:
    if action.pilot_id is not None:
        require_pilot(state, action.pilot_id)
    state.selected_pilot_id = action.pilot_id
    state.selected_unit_id = None


def handle_add_pilot(ctx: ReducerContext, state: GameState, action: a.AddPilot) -> None:
    pilot = action.pilot
    if state.find_pilot(pilot.id) is not None:
        raise InvalidActionError(f"A pilot with id {pilot.id} already exists.")
    state.pilots.append(pilot)
    append_log(state, f"Pilot {pilot.name} added to the roster.")


def handle_assign_pilot(ctx: ReducerContext, state: GameState, action: a.AssignPilot) -> None:
    unit = require_unit(state, action.unit_id)
    pilot = require_pilot(state, action.pilot_id)
    if not unit.can_be_piloted:
        raise RuleRejected(
            f"Cannot assign pilot to {unit.name} - only Mecha can be piloted.", LogType.INFO,
        )

    for other in state.units:
        if other.pilot_id == pilot.id and other.id != unit.id:
            log.debug("Pilot %s leaves unit %s", pilot.id, other.id)
            other.pilot_id = None
    unit.pilot_id = pilot.id
    append_log(state, f"Pilot {pilot.name} assigned to {unit.name}.")


def handle_remove_pilot(ctx: ReducerContext, state: GameState, action: a.RemovePilot) -> None:
    unit = require_unit(state, action.unit_id)
    pilot = state.pilot_of(unit)
    if pilot is None:
        raise RuleRejected(f"{unit.name} has no pilot to eject.", LogType.INFO)
    unit.pilot_id = None
    append_log(state, f"Pilot {pilot.name} ejected from {unit.name}.")


def handle_remove_pilot_entry(ctx: ReducerContext, state: GameState, action: a.RemovePilotEntry) -> None:
    pilot = require_pilot(state, action.pilot_id)
    if state.unit_piloted_by(pilot.id) is not None:
        raise RuleRejected(
            f"Cannot remove pilot {pilot.name} because they are currently piloting a unit."
        )
    state.pilots.remove(pilot)
    if state.selected_pilot_id == pilot.id:
        state.selected_pilot_id = None
    append_log(state, f"Pilot {pilot.name} removed from roster.")


def handle_update_pilot(ctx: ReducerContext, state: GameState, action: a.UpdatePilot) -> None:
    pilot = require_pilot(state, action.pilot_id)
    raw = merge_changes(pilot_to_dict(pilot), action.changes, "pilot")
    try:
        updated = pilot_from_dict(raw)
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidActionError(f"Invalid update for {pilot.name}: {exc}") from exc
    state.pilots[state.pilots.index(pilot)] = updated
    append_log(state, f"Pilot {updated.name} updated.")


def _status_name(name: str) -> str:
    if name not in PilotStatus.flag_names():
        raise InvalidActionError(f"Unknown pilot status '{name}'.")
    return name


def handle_apply_pilot_status(ctx: ReducerContext, state: GameState, action: a.ApplyPilotStatus) -> None:
    pilot = require_pilot(state, action.pilot_id)
    setattr(pilot.status, _status_name(action.status), True)
    append_log(state, f"Pilot {pilot.name} is now {action.status}.")


def handle_remove_pilot_status(ctx: ReducerContext, state: GameState, action: a.RemovePilotStatus) -> None:
    pilot = require_pilot(state, action.pilot_id)
    setattr(pilot.status, _status_name(action.status), False)
    append_log(state, f"Pilot {pilot.name} is no longer {action.status}.")


HANDLERS = {
    "SELECT_PILOT": handle_select_pilot,
    "ADD_PILOT": handle_add_pilot,
    "ASSIGN_PILOT": handle_assign_pilot,
    "REMOVE_PILOT": handle_remove_pilot,
    "REMOVE_PILOT_ENTRY": handle_remove_pilot_entry,
    "UPDATE_PILOT": handle_update_pilot,
    "APPLY_PILOT_STATUS": handle_apply_pilot_status,
    "REMOVE_PILOT_STATUS": handle_remove_pilot_status,
}
