"""Action protocol.

Typed Pydantic models for every action the reducer consumes. Each action
type gets its own model with validation; ``parse_action`` turns a raw dict
(e.g. from a replay script or a front-end) into the right model.

Field names are snake_case; camelCase spellings (``unitId``) are accepted
as aliases. Entity payloads take either a model instance or its snapshot
dict.
"""

from __future__ import annotations

from typing import Annotated, Any, Callable, Literal, Optional

from pydantic import BaseModel, ConfigDict, PlainValidator
from pydantic.alias_generators import to_camel

from hexcombat.models.hex import HexCoord
from hexcombat.models.map import MapData, TerrainType
from hexcombat.models.pilot import Pilot
from hexcombat.models.state import GameState, LogType
from hexcombat.models.unit import Position, Subsystem, Unit
from hexcombat.persistence import snapshot


def _entity(cls: type, from_dict: Callable[[dict[str, Any]], Any]) -> PlainValidator:
    def convert(value: Any) -> Any:
        if isinstance(value, cls):
            return value
        if isinstance(value, dict):
            try:
                result = from_dict(value)
            except (KeyError, TypeError) as exc:
                raise ValueError(f"invalid {cls.__name__} payload: {exc!r}") from exc
            if result is None:
                raise ValueError(f"empty {cls.__name__} payload")
            return result
        raise ValueError(f"expected {cls.__name__} or dict, got {type(value).__name__}")
    return PlainValidator(convert)


def _coord(value: Any) -> HexCoord:
    if isinstance(value, HexCoord):
        return value
    if isinstance(value, str):
        return HexCoord.from_key(value)
    if isinstance(value, dict):
        try:
            return HexCoord(int(value["q"]), int(value["r"]))
        except KeyError as exc:
            raise ValueError(f"hex coordinate is missing {exc}") from exc
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return HexCoord(int(value[0]), int(value[1]))
    raise ValueError(f"cannot read a hex coordinate from {value!r}")


UnitPayload = Annotated[Unit, _entity(Unit, snapshot.unit_from_dict)]
PilotPayload = Annotated[Pilot, _entity(Pilot, snapshot.pilot_from_dict)]
MapPayload = Annotated[MapData, _entity(MapData, snapshot.map_from_dict)]
SubsystemPayload = Annotated[Subsystem, _entity(Subsystem, snapshot.subsystem_from_dict)]
PositionPayload = Annotated[Position, _entity(Position, snapshot.position_from_dict)]
StatePayload = Annotated[GameState, _entity(GameState, snapshot.state_from_dict)]
CoordPayload = Annotated[HexCoord, PlainValidator(_coord)]


# -- Base ----------------------------------------------------------------

class GameAction(BaseModel):
    """Base class for all actions."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: str


class MoveData(BaseModel):
    """Inline move for built-in actions that bypass the move catalog."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    target_unit_id: Optional[str] = None


# -- Persistence ---------------------------------------------------------

class LoadState(GameAction):
    type: Literal["LOAD_STATE"] = "LOAD_STATE"
    state: StatePayload


class ResetState(GameAction):
    type: Literal["RESET_STATE"] = "RESET_STATE"


# -- Unit lifecycle ------------------------------------------------------

class SelectUnit(GameAction):
    type: Literal["SELECT_UNIT"] = "SELECT_UNIT"
    unit_id: Optional[str] = None


class AddUnit(GameAction):
    type: Literal["ADD_UNIT"] = "ADD_UNIT"
    unit: UnitPayload


class RemoveUnit(GameAction):
    type: Literal["REMOVE_UNIT"] = "REMOVE_UNIT"
    unit_id: str


class UpdateUnit(GameAction):
    type: Literal["UPDATE_UNIT"] = "UPDATE_UNIT"
    unit_id: str
    changes: dict[str, Any] = {}


class DamageUnit(GameAction):
    type: Literal["DAMAGE_UNIT"] = "DAMAGE_UNIT"
    unit_id: str
    amount: int


class ApplyStatus(GameAction):
    type: Literal["APPLY_STATUS"] = "APPLY_STATUS"
    unit_id: str
    status: str


class RemoveStatus(GameAction):
    type: Literal["REMOVE_STATUS"] = "REMOVE_STATUS"
    unit_id: str
    status: str


class AddSubsystem(GameAction):
    type: Literal["ADD_SUBSYSTEM"] = "ADD_SUBSYSTEM"
    unit_id: str
    subsystem: SubsystemPayload


class RemoveSubsystem(GameAction):
    type: Literal["REMOVE_SUBSYSTEM"] = "REMOVE_SUBSYSTEM"
    unit_id: str
    subsystem_id: str


class ToggleSubsystem(GameAction):
    """Set a subsystem's functional flag; None flips it."""

    type: Literal["TOGGLE_SUBSYSTEM"] = "TOGGLE_SUBSYSTEM"
    unit_id: str
    subsystem_id: str
    functional: Optional[bool] = None


# -- Pilot lifecycle -----------------------------------------------------

class SelectPilot(GameAction):
    type: Literal["SELECT_PILOT"] = "SELECT_PILOT"
    pilot_id: Optional[str] = None


class AddPilot(GameAction):
    type: Literal["ADD_PILOT"] = "ADD_PILOT"
    pilot: PilotPayload


class AssignPilot(GameAction):
    type: Literal["ASSIGN_PILOT"] = "ASSIGN_PILOT"
    unit_id: str
    pilot_id: str


class RemovePilot(GameAction):
    """Unassign whoever pilots the unit."""

    type: Literal["REMOVE_PILOT"] = "REMOVE_PILOT"
    unit_id: str


class RemovePilotEntry(GameAction):
    """Delete a pilot from the roster."""

    type: Literal["REMOVE_PILOT_ENTRY"] = "REMOVE_PILOT_ENTRY"
    pilot_id: str


class UpdatePilot(GameAction):
    type: Literal["UPDATE_PILOT"] = "UPDATE_PILOT"
    pilot_id: str
    changes: dict[str, Any] = {}


class ApplyPilotStatus(GameAction):
    type: Literal["APPLY_PILOT_STATUS"] = "APPLY_PILOT_STATUS"
    pilot_id: str
    status: str


class RemovePilotStatus(GameAction):
    type: Literal["REMOVE_PILOT_STATUS"] = "REMOVE_PILOT_STATUS"
    pilot_id: str
    status: str


# -- Placement and movement ----------------------------------------------

class EnterPlacementMode(GameAction):
    type: Literal["ENTER_PLACEMENT_MODE"] = "ENTER_PLACEMENT_MODE"
    unit_id: str


class ExitPlacementMode(GameAction):
    type: Literal["EXIT_PLACEMENT_MODE"] = "EXIT_PLACEMENT_MODE"


class PlaceUnit(GameAction):
    type: Literal["PLACE_UNIT"] = "PLACE_UNIT"
    unit_id: str
    position: PositionPayload


class UnplaceUnit(GameAction):
    type: Literal["UNPLACE_UNIT"] = "UNPLACE_UNIT"
    unit_id: str


class MoveUnit(GameAction):
    """Teleport a unit to a position, ignoring facing rules."""

    type: Literal["MOVE_UNIT"] = "MOVE_UNIT"
    unit_id: str
    position: PositionPayload


class MoveUnitForward(GameAction):
    type: Literal["MOVE_UNIT_FORWARD"] = "MOVE_UNIT_FORWARD"
    unit_id: str


class MoveUnitBackward(GameAction):
    type: Literal["MOVE_UNIT_BACKWARD"] = "MOVE_UNIT_BACKWARD"
    unit_id: str


class RotateUnitClockwise(GameAction):
    type: Literal["ROTATE_UNIT_CLOCKWISE"] = "ROTATE_UNIT_CLOCKWISE"
    unit_id: str


class RotateUnitCounterclockwise(GameAction):
    type: Literal["ROTATE_UNIT_COUNTERCLOCKWISE"] = "ROTATE_UNIT_COUNTERCLOCKWISE"
    unit_id: str


# -- Attack --------------------------------------------------------------

class EnterAttackMode(GameAction):
    type: Literal["ENTER_ATTACK_MODE"] = "ENTER_ATTACK_MODE"
    unit_id: str


class ExitAttackMode(GameAction):
    type: Literal["EXIT_ATTACK_MODE"] = "EXIT_ATTACK_MODE"


class SelectWeapon(GameAction):
    type: Literal["SELECT_WEAPON"] = "SELECT_WEAPON"
    weapon_id: str


class SelectTarget(GameAction):
    type: Literal["SELECT_TARGET"] = "SELECT_TARGET"
    unit_id: Optional[str] = None


class ExecuteAttack(GameAction):
    type: Literal["EXECUTE_ATTACK"] = "EXECUTE_ATTACK"


class ShowCombatPopup(GameAction):
    type: Literal["SHOW_COMBAT_POPUP"] = "SHOW_COMBAT_POPUP"
    details: Optional[dict[str, Any]] = None


class HideCombatPopup(GameAction):
    type: Literal["HIDE_COMBAT_POPUP"] = "HIDE_COMBAT_POPUP"


# -- Special moves -------------------------------------------------------

class EnterSpecialMoveMode(GameAction):
    type: Literal["ENTER_SPECIAL_MOVE_MODE"] = "ENTER_SPECIAL_MOVE_MODE"
    unit_id: str
    source_type: Literal["unit", "pilot"] = "unit"


class ExitSpecialMoveMode(GameAction):
    type: Literal["EXIT_SPECIAL_MOVE_MODE"] = "EXIT_SPECIAL_MOVE_MODE"


class SelectSpecialMove(GameAction):
    type: Literal["SELECT_SPECIAL_MOVE"] = "SELECT_SPECIAL_MOVE"
    move_id: str


class ExecuteSpecialMove(GameAction):
    type: Literal["EXECUTE_SPECIAL_MOVE"] = "EXECUTE_SPECIAL_MOVE"
    move_data: Optional[MoveData] = None


# -- Turn and log --------------------------------------------------------

class NextTurn(GameAction):
    type: Literal["NEXT_TURN"] = "NEXT_TURN"


class LogAction(GameAction):
    type: Literal["LOG_ACTION"] = "LOG_ACTION"
    message: str
    log_type: LogType = LogType.INFO


class ToggleLog(GameAction):
    type: Literal["TOGGLE_LOG"] = "TOGGLE_LOG"


# -- Maps and terrain ----------------------------------------------------

class EnterEditorMode(GameAction):
    type: Literal["ENTER_EDITOR_MODE"] = "ENTER_EDITOR_MODE"


class ExitEditorMode(GameAction):
    type: Literal["EXIT_EDITOR_MODE"] = "EXIT_EDITOR_MODE"


class SelectTerrainType(GameAction):
    type: Literal["SELECT_TERRAIN_TYPE"] = "SELECT_TERRAIN_TYPE"
    terrain_type: TerrainType


class SetTileTerrain(GameAction):
    """Paint one tile; without ``terrain_type`` the selected brush is used."""

    type: Literal["SET_TILE_TERRAIN"] = "SET_TILE_TERRAIN"
    coord: CoordPayload
    terrain_type: Optional[TerrainType] = None


class AddMap(GameAction):
    type: Literal["ADD_MAP"] = "ADD_MAP"
    map: MapPayload


class UpdateMap(GameAction):
    type: Literal["UPDATE_MAP"] = "UPDATE_MAP"
    map_id: str
    changes: dict[str, Any] = {}


class DeleteMap(GameAction):
    type: Literal["DELETE_MAP"] = "DELETE_MAP"
    map_id: str


class SelectMap(GameAction):
    type: Literal["SELECT_MAP"] = "SELECT_MAP"
    map_id: str


# -- Message registry ----------------------------------------------------

ACTION_TYPES: dict[str, type[GameAction]] = {
    # Persistence
    "LOAD_STATE": LoadState,
    "RESET_STATE": ResetState,
    # Units
    "SELECT_UNIT": SelectUnit,
    "ADD_UNIT": AddUnit,
    "REMOVE_UNIT": RemoveUnit,
    "UPDATE_UNIT": UpdateUnit,
    "DAMAGE_UNIT": DamageUnit,
    "APPLY_STATUS": ApplyStatus,
    "REMOVE_STATUS": RemoveStatus,
    "ADD_SUBSYSTEM": AddSubsystem,
    "REMOVE_SUBSYSTEM": RemoveSubsystem,
    "TOGGLE_SUBSYSTEM": ToggleSubsystem,
    # Pilots
    "SELECT_PILOT": SelectPilot,
    "ADD_PILOT": AddPilot,
    "ASSIGN_PILOT": AssignPilot,
    "REMOVE_PILOT": RemovePilot,
    "REMOVE_PILOT_ENTRY": RemovePilotEntry,
    "UPDATE_PILOT": UpdatePilot,
    "APPLY_PILOT_STATUS": ApplyPilotStatus,
    "REMOVE_PILOT_STATUS": RemovePilotStatus,
    # Placement and movement
    "ENTER_PLACEMENT_MODE": EnterPlacementMode,
    "EXIT_PLACEMENT_MODE": ExitPlacementMode,
    "PLACE_UNIT": PlaceUnit,
    "UNPLACE_UNIT": UnplaceUnit,
    "MOVE_UNIT": MoveUnit,
    "MOVE_UNIT_FORWARD": MoveUnitForward,
    "MOVE_UNIT_BACKWARD": MoveUnitBackward,
    "ROTATE_UNIT_CLOCKWISE": RotateUnitClockwise,
    "ROTATE_UNIT_COUNTERCLOCKWISE": RotateUnitCounterclockwise,
    # Attack
    "ENTER_ATTACK_MODE": EnterAttackMode,
    "EXIT_ATTACK_MODE": ExitAttackMode,
    "SELECT_WEAPON": SelectWeapon,
    "SELECT_TARGET": SelectTarget,
    "EXECUTE_ATTACK": ExecuteAttack,
    "SHOW_COMBAT_POPUP": ShowCombatPopup,
    "HIDE_COMBAT_POPUP": HideCombatPopup,
    # Special moves
    "ENTER_SPECIAL_MOVE_MODE": EnterSpecialMoveMode,
    "EXIT_SPECIAL_MOVE_MODE": ExitSpecialMoveMode,
    "SELECT_SPECIAL_MOVE": SelectSpecialMove,
    "EXECUTE_SPECIAL_MOVE": ExecuteSpecialMove,
    # Turn and log
    "NEXT_TURN": NextTurn,
    "LOG_ACTION": LogAction,
    "TOGGLE_LOG": ToggleLog,
    # Maps
    "ENTER_EDITOR_MODE": EnterEditorMode,
    "EXIT_EDITOR_MODE": ExitEditorMode,
    "SELECT_TERRAIN_TYPE": SelectTerrainType,
    "SET_TILE_TERRAIN": SetTileTerrain,
    "ADD_MAP": AddMap,
    "UPDATE_MAP": UpdateMap,
    "DELETE_MAP": DeleteMap,
    "SELECT_MAP": SelectMap,
}


def parse_action(data: dict[str, Any]) -> GameAction:
    """Parse a raw dict into the appropriate typed action model."""
    action_type = data.get("type", "")
    model_cls = ACTION_TYPES.get(action_type, GameAction)
    return model_cls.model_validate(data)
