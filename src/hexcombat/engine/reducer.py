"""Game engine: the single entry point ``reduce(state, action) -> state``.

Dispatches actions by type to the handlers registered from the
sub-reducer modules. Each dispatch works on a deep copy of the input, so
the caller's state is never mutated:

* a handler that returns normally yields the mutated copy;
* ``EngineError`` raised by a handler is folded into a log entry on a
  fresh copy of the *input* state, dropping any partial mutation;
* ``NoChange`` and unknown action types return the input object itself.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Optional, Union

from pydantic import ValidationError

from hexcombat.engine import (
    attack_reducers,
    map_reducers,
    movement_reducers,
    pilot_reducers,
    special_moves,
    unit_reducers,
)
from hexcombat.engine.errors import EngineError, NoChange
from hexcombat.engine.state_utils import ReducerContext, append_log, tick_cooldowns
from hexcombat.loaders.game_config_loader import GameConfig
from hexcombat.models import actions as a
from hexcombat.models.state import GameState, LogType
from hexcombat.persistence.snapshot import repair_pilot_links
from hexcombat.util.rng import Dice, DiceSource

log = logging.getLogger(__name__)

# Handler signature: (context, working state, action) -> optional replacement state
Handler = Callable[[ReducerContext, GameState, a.GameAction], Optional[GameState]]


# -- Core handlers -------------------------------------------------------

def handle_load_state(ctx: ReducerContext, state: GameState, action: a.LoadState) -> GameState:
    loaded = copy.deepcopy(action.state)
    repair_pilot_links(loaded)
    return loaded


def handle_reset_state(ctx: ReducerContext, state: GameState, action: a.ResetState) -> GameState:
    """Clear units, pilots and the log; maps survive."""
    return GameState(maps=state.maps, selected_map_id=state.selected_map_id, show_log=state.show_log)


def handle_next_turn(ctx: ReducerContext, state: GameState, action: a.NextTurn) -> None:
    for unit in state.units:
        tick_cooldowns(unit.special_moves)
    for pilot in state.pilots:
        tick_cooldowns(pilot.special_moves)
    state.turn += 1


def handle_log_action(ctx: ReducerContext, state: GameState, action: a.LogAction) -> None:
    append_log(state, action.message, action.log_type)


def handle_toggle_log(ctx: ReducerContext, state: GameState, action: a.ToggleLog) -> None:
    state.show_log = not state.show_log


_CORE_HANDLERS = {
    "LOAD_STATE": handle_load_state,
    "RESET_STATE": handle_reset_state,
    "NEXT_TURN": handle_next_turn,
    "LOG_ACTION": handle_log_action,
    "TOGGLE_LOG": handle_toggle_log,
}


# -- Engine --------------------------------------------------------------

class GameEngine:
    """Action dispatcher.

    Register handlers for action types, then call reduce() with a state
    and either a typed action or its raw dict.

    Args:
        config: Rule constants; defaults to ``GameConfig()``.
        dice: Randomness source; defaults to ``Dice(config.rng_seed)``.
    """

    def __init__(self, config: Optional[GameConfig] = None, dice: Optional[DiceSource] = None) -> None:
        self.config = config or GameConfig()
        self.dice = dice if dice is not None else Dice(self.config.rng_seed)
        self._handlers: dict[str, Handler] = {}
        register_all_handlers(self)

    def register(self, action_type: str, handler: Handler) -> None:
        """Register a handler for an action type.

        Args:
            action_type: The action type string (e.g. ``"SELECT_UNIT"``).
            handler: Callable ``(ctx, state, action) -> GameState | None``.
        """
        self._handlers[action_type] = handler
        log.debug("Handler registered: %s", action_type)

    @property
    def registered_types(self) -> list[str]:
        """List of all action types that have a handler."""
        return list(self._handlers.keys())

    def reduce(self, state: GameState, action: Union[a.GameAction, dict[str, Any]]) -> GameState:
        """Apply one action and return the resulting state."""
        if isinstance(action, dict):
            try:
                action = a.parse_action(action)
            except ValidationError as exc:
                log.info("Rejected malformed action %r: %s", action.get("type"), exc)
                rejected = copy.deepcopy(state)
                append_log(rejected, f"Malformed {action.get('type', 'action')}: "
                                     f"{exc.error_count()} invalid field(s).", LogType.ERROR)
                return rejected

        handler = self._handlers.get(action.type)
        if handler is None:
            log.debug("No handler for action type: %s", action.type)
            return state

        log.debug("Dispatch %s", action.type)
        working = copy.deepcopy(state)
        ctx = ReducerContext(config=self.config, dice=self.dice)
        try:
            replacement = handler(ctx, working, action.model_copy(deep=True))
        except NoChange:
            return state
        except EngineError as exc:
            log.info("%s rejected: %s", action.type, exc.message)
            rejected = copy.deepcopy(state)
            append_log(rejected, exc.message, exc.log_type)
            return rejected
        return replacement if replacement is not None else working


def register_all_handlers(engine: GameEngine) -> None:
    """Register every action handler on ``engine``.

    To add a new action, add its handler to the owning module's
    ``HANDLERS`` table.
    """
    tables = (
        _CORE_HANDLERS,
        unit_reducers.HANDLERS,
        pilot_reducers.HANDLERS,
        movement_reducers.HANDLERS,
        attack_reducers.HANDLERS,
        special_moves.HANDLERS,
        map_reducers.HANDLERS,
    )
    for table in tables:
        for action_type, handler in table.items():
            engine.register(action_type, handler)


def reduce(
    state: GameState,
    action: Union[a.GameAction, dict[str, Any]],
    *,
    config: Optional[GameConfig] = None,
    dice: Optional[DiceSource] = None,
) -> GameState:
    """One-shot reduce with a throwaway engine."""
    return GameEngine(config, dice).reduce(state, action)
