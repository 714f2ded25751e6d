"""Battlefield handlers: map roster, selection and terrain painting."""

from __future__ import annotations

import logging
import uuid

from hexcombat.engine.errors import InvalidActionError, NoChange, RuleRejected
from hexcombat.engine.state_utils import (
    ReducerContext,
    append_log,
    clear_attack_mode,
    clear_placement_mode,
    clear_special_move_mode,
    merge_changes,
)
from hexcombat.models import actions as a
from hexcombat.models.map import MapData
from hexcombat.models.state import GameState
from hexcombat.persistence.snapshot import map_from_dict, map_to_dict

log = logging.getLogger(__name__)


def _require_map(state: GameState, map_id: str) -> MapData:
    battlefield = state.find_map(map_id)
    if battlefield is None:
        raise InvalidActionError(f"Map {map_id} not found.")
    return battlefield


def _switch_to(state: GameState, battlefield: MapData) -> None:
    """Select a battlefield; every unit goes back off-field."""
    for unit in state.units:
        unit.position = None
    clear_attack_mode(state)
    clear_special_move_mode(state)
    clear_placement_mode(state)
    state.selected_unit_id = None
    state.selected_map_id = battlefield.id
    append_log(state, f"Battlefield changed to {battlefield.name}. All units withdrawn.")


# -- Editor --------------------------------------------------------------

def handle_enter_editor_mode(ctx: ReducerContext, state: GameState, action: a.EnterEditorMode) -> None:
    state.editor_mode = True


def handle_exit_editor_mode(ctx: ReducerContext, state: GameState, action: a.ExitEditorMode) -> None:
    state.editor_mode = False
    state.selected_terrain = None


def handle_select_terrain_type(ctx: ReducerContext, state: GameState, action: a.SelectTerrainType) -> None:
    state.selected_terrain = action.terrain_type


def handle_set_tile_terrain(ctx: ReducerContext, state: GameState, action: a.SetTileTerrain) -> None:
    battlefield = state.selected_map
    if not state.editor_mode or battlefield is None:
        log.debug("SET_TILE_TERRAIN ignored outside the editor")
        raise NoChange()
    terrain = action.terrain_type or state.selected_terrain
    if terrain is None:
        raise InvalidActionError("No terrain type selected.")
    battlefield.set_terrain(action.coord, terrain)


# -- Roster --------------------------------------------------------------

def handle_add_map(ctx: ReducerContext, state: GameState, action: a.AddMap) -> None:
    battlefield = action.map
    if not battlefield.id:
        battlefield.id = uuid.uuid4().hex
    elif state.find_map(battlefield.id) is not None:
        raise InvalidActionError(f"A map with id {battlefield.id} already exists.")
    state.maps.append(battlefield)
    state.selected_map_id = battlefield.id
    append_log(state, f"Map {battlefield.name} created.")


def handle_update_map(ctx: ReducerContext, state: GameState, action: a.UpdateMap) -> None:
    battlefield = _require_map(state, action.map_id)
    raw = merge_changes(map_to_dict(battlefield), action.changes, "map")
    try:
        updated = map_from_dict(raw)
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidActionError(f"Invalid update for map {battlefield.name}: {exc}") from exc
    state.maps[state.maps.index(battlefield)] = updated
    append_log(state, f"Map {updated.name} updated.")


def handle_delete_map(ctx: ReducerContext, state: GameState, action: a.DeleteMap) -> None:
    battlefield = _require_map(state, action.map_id)
    if len(state.maps) <= 1:
        raise RuleRejected("Cannot delete the last remaining map.")
    state.maps.remove(battlefield)
    append_log(state, f"Map {battlefield.name} deleted.")
    if state.selected_map_id == battlefield.id:
        state.selected_map_id = state.maps[0].id


def handle_select_map(ctx: ReducerContext, state: GameState, action: a.SelectMap) -> None:
    _switch_to(state, _require_map(state, action.map_id))


HANDLERS = {
    "ENTER_EDITOR_MODE": handle_enter_editor_mode,
    "EXIT_EDITOR_MODE": handle_exit_editor_mode,
    "SELECT_TERRAIN_TYPE": handle_select_terrain_type,
    "SET_TILE_TERRAIN": handle_set_tile_terrain,
    "ADD_MAP": handle_add_map,
    "UPDATE_MAP": handle_update_map,
    "DELETE_MAP": handle_delete_map,
    "SELECT_MAP": handle_select_map,
}
