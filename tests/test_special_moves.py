"""Tests for special move mode, catalog effects and built-in moves."""

from hexcombat.engine.special_moves import effect_handler
from hexcombat.models import actions as a
from hexcombat.models.hex import HexCoord
from hexcombat.models.state import LogType
from hexcombat.models.unit import MoveEffect, Targeting

from support import (
    ScriptedDice,
    last_log,
    make_engine,
    make_pilot,
    make_state,
    make_unit,
    move,
)

BRACE = move("brace", "Brace", MoveEffect.DEFENSE, Targeting.SELF, cooldown=2)
TAKE_AIM = move("aim", "Take Aim", MoveEffect.UTILITY, Targeting.SELF)
ROAR = move("roar", "Roar", MoveEffect.UTILITY, Targeting.AREA, cooldown=3, rng=1)
SWEEP = move("sweep", "Tail Sweep", MoveEffect.DAMAGE, Targeting.AREA, rng=1)
CLAW = move("claw", "Claw", MoveEffect.DAMAGE, Targeting.ENEMY, rng=2)
REPAIR = move("repair", "Field Repair", MoveEffect.HEALING, Targeting.SELF)
CLINCH = move("clinch", "Clinch", MoveEffect.GRAPPLE, Targeting.ENEMY, rng=1)


def _ready(state, unit_id, move_id, target_id=None):
    """Put ``unit_id`` into special move mode with ``move_id`` selected."""
    state.selected_unit_id = unit_id
    state.special_move_mode = True
    state.selected_special_move_id = move_id
    state.target_unit_id = target_id
    return state


class TestMode:
    def test_string_range_from_payload(self):
        engine = make_engine()
        state = engine.reduce(make_state(), {
            "type": "ADD_UNIT",
            "unit": {"id": "k1", "name": "Gorath", "type": "kaiju",
                     "position": {"x": 0, "y": 0, "facing": 0},
                     "specialMoves": [{"id": "roar", "name": "Roar", "effect": "utility",
                                       "targeting": "area", "range": "1"}]},
        })
        assert state.units[0].special_moves[0].range == 1
        state = engine.reduce(state, a.EnterSpecialMoveMode(unit_id="k1"))
        assert state.special_move_mode
        assert len(state.targetable_tiles) == 7

    def test_enter_selects_first_move(self):
        state = make_state(make_unit("a", at=(1, 1), moves=[TAKE_AIM, BRACE]))
        state = make_engine().reduce(state, a.EnterSpecialMoveMode(unit_id="a"))
        assert state.special_move_mode
        assert state.selected_special_move_id == "aim"
        assert state.targetable_tiles == [HexCoord(1, 1)]
        assert last_log(state).message == "A prepares to use a special move."

    def test_enter_without_moves_is_info(self):
        state = make_state(make_unit("a", at=(0, 0)))
        state = make_engine().reduce(state, a.EnterSpecialMoveMode(unit_id="a"))
        assert not state.special_move_mode
        assert last_log(state).type == LogType.INFO
        assert last_log(state).message == "A has no unit special moves available."

    def test_enter_pilot_moves(self):
        unit = make_unit("a", at=(0, 0))
        unit.pilot_id = "rei"
        pilot = make_pilot(special_moves=[move("focus", "Focus", MoveEffect.BUFF, Targeting.SELF)])
        state = make_engine().reduce(make_state(unit, pilots=[pilot]),
                                     a.EnterSpecialMoveMode(unit_id="a", source_type="pilot"))
        assert state.selected_special_move_id == "focus"

    def test_enter_requires_placement(self):
        state = make_state(make_unit("a", moves=[BRACE]))
        state = make_engine().reduce(state, a.EnterSpecialMoveMode(unit_id="a"))
        assert last_log(state).type == LogType.ERROR

    def test_enter_clears_attack_mode(self):
        state = make_state(make_unit("a", at=(0, 0), moves=[BRACE]))
        state.attack_mode = True
        state.selected_weapon_id = "hammer"
        state = make_engine().reduce(state, a.EnterSpecialMoveMode(unit_id="a"))
        assert not state.attack_mode and state.selected_weapon_id is None

    def test_select_recomputes_tiles(self):
        state = _ready(make_state(make_unit("a", at=(0, 0), moves=[TAKE_AIM, ROAR])), "a", "aim")
        state = make_engine().reduce(state, a.SelectSpecialMove(move_id="roar"))
        assert state.selected_special_move_id == "roar"
        assert len(state.targetable_tiles) == 7

    def test_exit_when_inactive_is_no_op(self):
        state = make_state()
        assert make_engine().reduce(state, a.ExitSpecialMoveMode()) is state

    def test_exit(self):
        state = _ready(make_state(make_unit("a", at=(0, 0), moves=[BRACE])), "a", "brace")
        state = make_engine().reduce(state, a.ExitSpecialMoveMode())
        assert not state.special_move_mode
        assert state.selected_special_move_id is None


class TestCooldowns:
    def test_cooldown_blocks_until_two_turns_pass(self):
        brace = move("brace", "Brace", MoveEffect.DEFENSE, Targeting.SELF, cooldown=2, current=2)
        engine = make_engine()
        state = _ready(make_state(make_unit("a", at=(0, 0), moves=[brace])), "a", "brace")

        state = engine.reduce(state, a.ExecuteSpecialMove())
        assert last_log(state).type == LogType.ERROR
        assert last_log(state).message == "Brace is on cooldown for 2 more turns."
        assert state.units[0].special_moves[0].current_cooldown == 2

        state = engine.reduce(state, a.NextTurn())
        state = engine.reduce(state, a.NextTurn())
        assert state.units[0].special_moves[0].current_cooldown == 0

        state = engine.reduce(state, a.ExecuteSpecialMove())
        assert last_log(state).message == "A uses Brace, taking a defensive stance."
        assert state.units[0].special_moves[0].current_cooldown == 2
        assert not state.special_move_mode

    def test_missing_selection(self):
        state = make_engine().reduce(make_state(make_unit("a")), a.ExecuteSpecialMove())
        assert last_log(state).message == "Missing unit or special move selection."


class TestEffects:
    def test_take_aim_goes_prone(self):
        state = _ready(make_state(make_unit("a", at=(0, 0), moves=[TAKE_AIM])), "a", "aim")
        state = make_engine().reduce(state, a.ExecuteSpecialMove())
        assert state.units[0].status.prone
        assert last_log(state).type == LogType.INFO

    def test_roar_dazes_units_in_area(self):
        state = make_state(
            make_unit("k", at=(0, 0), moves=[ROAR]),
            make_unit("near", at=(0, 0)),
            make_unit("adjacent", at=(1, -1)),
            make_unit("far", at=(3, 0)),
        )
        state = make_engine().reduce(_ready(state, "k", "roar"), a.ExecuteSpecialMove())
        dazed = {u.id for u in state.units if u.status.dazed}
        assert dazed == {"near", "adjacent"}
        assert last_log(state).message == "K lets out a terrifying roar, dazing 2 nearby units!"

    def test_roar_with_nobody_around(self):
        state = make_state(make_unit("k", at=(0, 0), moves=[ROAR]))
        state = make_engine().reduce(_ready(state, "k", "roar"), a.ExecuteSpecialMove())
        assert "no targets in the area" in last_log(state).message
        assert state.units[0].special_moves[0].current_cooldown == 3

    def test_area_damage_single_roll(self):
        state = make_state(
            make_unit("k", at=(0, 0), moves=[SWEEP]),
            make_unit("soft", at=(0, 1), agility=1, mass=2, armor=0),
            make_unit("nimble", at=(-1, 0), agility=7),
        )
        dice = ScriptedDice(d6=[3, 3])
        state = make_engine(dice).reduce(_ready(state, "k", "sweep"), a.ExecuteSpecialMove())
        assert state.find_unit("soft").durability.current == 98
        assert state.find_unit("nimble").durability.current == 100
        assert last_log(state).type == LogType.COMBAT
        assert "hitting 1 out of 2 targets!" in last_log(state).message
        assert dice.exhausted

    def test_enemy_damage_hit(self):
        state = make_state(
            make_unit("k", at=(0, 0), moves=[CLAW]),
            make_unit("b", at=(0, -2), agility=2, mass=2, armor=1),
        )
        state = make_engine(ScriptedDice(d6=[6, 6])).reduce(_ready(state, "k", "claw", "b"),
                                                             a.ExecuteSpecialMove())
        assert state.find_unit("b").durability.current == 97
        assert "and hits!" in last_log(state).message

    def test_enemy_damage_miss(self):
        state = make_state(
            make_unit("k", at=(0, 0), moves=[CLAW]),
            make_unit("b", at=(0, -1), agility=9),
        )
        state = make_engine(ScriptedDice(d6=[1, 1])).reduce(_ready(state, "k", "claw", "b"),
                                                             a.ExecuteSpecialMove())
        assert state.find_unit("b").durability.current == 100
        assert "misses!" in last_log(state).message

    def test_enemy_move_cannot_target_self(self):
        state = make_state(make_unit("k", at=(0, 0), moves=[CLAW]))
        state = make_engine().reduce(_ready(state, "k", "claw", "k"), a.ExecuteSpecialMove())
        assert last_log(state).message == "Invalid target for Claw."
        assert state.units[0].special_moves[0].current_cooldown == 0

    def test_enemy_move_needs_target(self):
        state = make_state(make_unit("k", at=(0, 0), moves=[CLAW]))
        state = make_engine().reduce(_ready(state, "k", "claw"), a.ExecuteSpecialMove())
        assert last_log(state).type == LogType.ERROR

    def test_self_heal(self):
        unit = make_unit("a", at=(0, 0), moves=[REPAIR])
        unit.durability.current = 90
        state = make_engine().reduce(_ready(make_state(unit), "a", "repair"), a.ExecuteSpecialMove())
        assert state.units[0].durability.current == 95
        assert last_log(state).message == "A uses Field Repair, healing itself for 5 durability."

    def test_heal_capped_at_max(self):
        unit = make_unit("a", at=(0, 0), moves=[REPAIR])
        unit.durability.current = 98
        state = make_engine().reduce(_ready(make_state(unit), "a", "repair"), a.ExecuteSpecialMove())
        assert state.units[0].durability.current == 100
        assert "for 2 durability" in last_log(state).message

    def test_catalog_grapple(self):
        state = make_state(
            make_unit("a", at=(0, 0), mass=3, agility=2, moves=[CLINCH]),
            make_unit("b", at=(0, -1), mass=1, agility=2),
        )
        state = make_engine(ScriptedDice(d6=[1, 1])).reduce(_ready(state, "a", "clinch", "b"),
                                                             a.ExecuteSpecialMove())
        assert state.find_unit("b").status.grappled
        assert last_log(state).message == "A grapples B! (9 vs 5)"

    def test_pilot_move_through_unit(self):
        unit = make_unit("a", at=(0, 0))
        unit.pilot_id = "rei"
        pilot = make_pilot(special_moves=[move("focus", "Focus", MoveEffect.BUFF, Targeting.SELF)])
        state = _ready(make_state(unit, pilots=[pilot]), "a", "focus")
        state = make_engine().reduce(state, a.ExecuteSpecialMove())
        assert last_log(state).message == "A focuses, improving their next attack accuracy."
        assert state.pilots[0].special_moves[0].current_cooldown == 2

    def test_unmapped_effect_uses_generic_line(self):
        odd = move("odd", "Smoke", MoveEffect.UTILITY, Targeting.SELF)
        assert effect_handler(odd) is None
        state = _ready(make_state(make_unit("a", at=(0, 0), moves=[odd])), "a", "odd")
        state = make_engine().reduce(state, a.ExecuteSpecialMove())
        assert last_log(state).message == "A uses Smoke!"

    def test_named_effect_needs_its_targeting(self):
        wide_aim = move("wide", "Take Aim", MoveEffect.UTILITY, Targeting.AREA, rng=1)
        assert effect_handler(wide_aim) is None
        assert effect_handler(TAKE_AIM) is not None
        state = _ready(make_state(make_unit("a", at=(0, 0), moves=[wide_aim])), "a", "wide")
        state = make_engine().reduce(state, a.ExecuteSpecialMove())
        assert not state.units[0].status.prone
        assert last_log(state).message == "A uses Take Aim!"


class TestBuiltinMoves:
    def test_get_up(self):
        unit = make_unit("a", at=(0, 0))
        unit.status.downed = True
        state = make_state(unit)
        state.selected_unit_id = "a"
        state = make_engine().reduce(state, {"type": "EXECUTE_SPECIAL_MOVE",
                                             "moveData": {"name": "Get Up!"}})
        assert not state.units[0].status.downed
        assert last_log(state).message == "A gets back up!"

    def test_get_up_when_standing(self):
        state = make_state(make_unit("a", at=(0, 0)))
        state.selected_unit_id = "a"
        state = make_engine().reduce(state, a.ExecuteSpecialMove(move_data=a.MoveData(name="Get Up!")))
        assert last_log(state).message == "A tries to get up but is not downed."

    def test_grapple_sequence(self):
        state = make_state(make_unit("a", at=(0, 0), mass=3), make_unit("b", at=(0, 0), mass=3))
        state.selected_unit_id = "a"
        grapple = a.ExecuteSpecialMove(move_data=a.MoveData(name="Grapple Enemy", target_unit_id="b"))

        state = make_engine(ScriptedDice(d6=[4, 2])).reduce(state, grapple)
        assert state.find_unit("b").status.grappled
        assert last_log(state).type == LogType.COMBAT

        state = make_engine(ScriptedDice(d6=[5, 1])).reduce(state, grapple)
        b = state.find_unit("b")
        assert b.status.downed and not b.status.grappled
        assert last_log(state).message == "A slams B to the ground! (8 vs 4)"

    def test_grappled_attacker_breaks_free(self):
        attacker = make_unit("a", at=(0, 0), mass=3)
        attacker.status.grappled = True
        state = make_state(attacker, make_unit("b", at=(0, 0), mass=3))
        state.selected_unit_id = "a"
        state.target_unit_id = "b"
        grapple = a.ExecuteSpecialMove(move_data=a.MoveData(name="Grapple Enemy"))
        state = make_engine(ScriptedDice(d6=[6, 1])).reduce(state, grapple)
        assert not state.find_unit("a").status.grappled
        assert "breaks free" in last_log(state).message

    def test_grapple_tie_changes_nothing(self):
        state = make_state(make_unit("a", at=(0, 0), mass=3), make_unit("b", at=(0, 0), mass=3))
        state.selected_unit_id = "a"
        grapple = a.ExecuteSpecialMove(move_data=a.MoveData(name="Grapple Enemy", target_unit_id="b"))
        state = make_engine(ScriptedDice(d6=[3, 3])).reduce(state, grapple)
        assert not state.find_unit("b").status.grappled

    def test_unknown_builtin(self):
        state = make_state(make_unit("a", at=(0, 0)))
        state.selected_unit_id = "a"
        state = make_engine().reduce(state, a.ExecuteSpecialMove(move_data=a.MoveData(name="Moonwalk")))
        assert last_log(state).type == LogType.ERROR
