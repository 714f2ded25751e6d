"""Placement, movement and rotation handlers.

The grid is unbounded unless ``enforce_map_bounds`` is switched on in the
game config, in which case moves and placements must stay inside the
selected map's radius.
"""

from __future__ import annotations

import logging

from hexcombat.engine.errors import InvalidActionError, NoChange, RuleRejected
from hexcombat.engine.state_utils import (
    ReducerContext,
    append_log,
    clear_attack_mode,
    clear_placement_mode,
    clear_special_move_mode,
    require_unit,
)
from hexcombat.models import actions as a
from hexcombat.models.state import GameState, LogType
from hexcombat.models.unit import Position, Unit
from hexcombat.util.constants import FACING_STEP
from hexcombat.util.hex_math import generate_hex_grid

log = logging.getLogger(__name__)


def _check_bounds(ctx: ReducerContext, state: GameState, unit: Unit, pos: Position) -> None:
    if not ctx.config.enforce_map_bounds:
        return
    battlefield = state.selected_map
    if battlefield is not None and not battlefield.contains(pos.hex):
        raise RuleRejected(f"{unit.name} cannot leave {battlefield.name} ({pos.x},{pos.y}).")


def _require_placed(unit: Unit) -> Position:
    if unit.position is None:
        raise InvalidActionError(f"{unit.name} is not on the field.")
    return unit.position


def _cancel_attack_of(state: GameState, unit: Unit, reason: str) -> None:
    if state.attack_mode and state.selected_unit_id == unit.id:
        clear_attack_mode(state)
        append_log(state, f"{unit.name} cancelled attack by {reason}.")


# -- Placement -----------------------------------------------------------

def handle_enter_placement_mode(ctx: ReducerContext, state: GameState, action: a.EnterPlacementMode) -> None:
    unit = require_unit(state, action.unit_id)
    clear_attack_mode(state)
    clear_special_move_mode(state)
    battlefield = state.selected_map
    state.placement_mode = True
    state.selected_unit_id = unit.id
    state.valid_placement_tiles = generate_hex_grid(battlefield.radius) if battlefield else []
    append_log(state, f"Choose a tile to deploy {unit.name}.")


def handle_exit_placement_mode(ctx: ReducerContext, state: GameState, action: a.ExitPlacementMode) -> None:
    clear_placement_mode(state)


def handle_place_unit(ctx: ReducerContext, state: GameState, action: a.PlaceUnit) -> None:
    unit = require_unit(state, action.unit_id)
    if unit.position is not None:
        raise NoChange()
    _check_bounds(ctx, state, unit, action.position)

    unit.position = action.position
    state.selected_unit_id = None
    clear_placement_mode(state)
    clear_attack_mode(state)
    clear_special_move_mode(state)
    append_log(state, f"{unit.name} placed at {action.position.x},{action.position.y}.",
               LogType.MOVEMENT)


def handle_unplace_unit(ctx: ReducerContext, state: GameState, action: a.UnplaceUnit) -> None:
    unit = require_unit(state, action.unit_id)
    unit.position = None
    if state.selected_unit_id == unit.id:
        clear_attack_mode(state)
        clear_special_move_mode(state)
    if state.target_unit_id == unit.id:
        state.target_unit_id = None
    append_log(state, f"{unit.name} withdrawn from the field.", LogType.MOVEMENT)


# -- Movement ------------------------------------------------------------

def handle_move_unit(ctx: ReducerContext, state: GameState, action: a.MoveUnit) -> None:
    unit = require_unit(state, action.unit_id)
    _require_placed(unit)
    _check_bounds(ctx, state, unit, action.position)
    unit.position = action.position
    append_log(state, f"{unit.name} moved to {action.position.x},{action.position.y}.",
               LogType.MOVEMENT)
    _cancel_attack_of(state, unit, "moving")


def _step(ctx: ReducerContext, state: GameState, unit: Unit, direction: int) -> None:
    pos = _require_placed(unit)
    tile = pos.hex.step(pos.facing, direction)
    target = Position(tile.q, tile.r, pos.facing)
    _check_bounds(ctx, state, unit, target)
    unit.position = target
    word = "forward" if direction > 0 else "backward"
    append_log(state, f"{unit.name} moves {word} to {target.x},{target.y}.", LogType.MOVEMENT)
    _cancel_attack_of(state, unit, "moving")


def handle_move_unit_forward(ctx: ReducerContext, state: GameState, action: a.MoveUnitForward) -> None:
    _step(ctx, state, require_unit(state, action.unit_id), 1)


def handle_move_unit_backward(ctx: ReducerContext, state: GameState, action: a.MoveUnitBackward) -> None:
    _step(ctx, state, require_unit(state, action.unit_id), -1)


def _rotate(state: GameState, unit: Unit, step: int) -> None:
    pos = _require_placed(unit)
    pos.facing = (pos.facing + step) % 360
    _cancel_attack_of(state, unit, "rotating")


def handle_rotate_clockwise(ctx: ReducerContext, state: GameState, action: a.RotateUnitClockwise) -> None:
    _rotate(state, require_unit(state, action.unit_id), FACING_STEP)


def handle_rotate_counterclockwise(
    ctx: ReducerContext, state: GameState, action: a.RotateUnitCounterclockwise,
) -> None:
    _rotate(state, require_unit(state, action.unit_id), -FACING_STEP)


HANDLERS = {
    "ENTER_PLACEMENT_MODE": handle_enter_placement_mode,
    "EXIT_PLACEMENT_MODE": handle_exit_placement_mode,
    "PLACE_UNIT": handle_place_unit,
    "UNPLACE_UNIT": handle_unplace_unit,
    "MOVE_UNIT": handle_move_unit,
    "MOVE_UNIT_FORWARD": handle_move_unit_forward,
    "MOVE_UNIT_BACKWARD": handle_move_unit_backward,
    "ROTATE_UNIT_CLOCKWISE": handle_rotate_clockwise,
    "ROTATE_UNIT_COUNTERCLOCKWISE": handle_rotate_counterclockwise,
}
