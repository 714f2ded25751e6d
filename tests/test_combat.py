"""Tests for attack rolls and per-weapon-type damage."""

import pytest

from hexcombat.engine import combat
from hexcombat.loaders.game_config_loader import GameConfig
from hexcombat.util.rng import Dice

from support import ScriptedDice, blade, hammer, make_unit, railgun, subsystem


class TestEffectiveStats:
    def test_no_pilot_passes_through(self):
        unit = make_unit(precision=4, agility=3)
        assert combat.get_effective_stats(unit) == (4, 3)

    def test_pilot_caps_both_stats(self):
        unit = make_unit(precision=4, agility=3)
        assert combat.get_effective_stats(unit, 2, 1) == (2, 1)

    def test_pilot_above_unit_stat_does_not_raise_it(self):
        unit = make_unit(precision=2, agility=1)
        assert combat.get_effective_stats(unit, 5, 5) == (2, 1)


class TestAttackRoll:
    def test_melee_impact_hit(self):
        attacker = make_unit("a", precision=2, at=(0, 0))
        defender = make_unit("b", agility=1, mass=2, armor=1, at=(0, 0))
        dice = ScriptedDice(d6=[4, 1])

        attack = combat.calculate_attack_success(attacker, defender, hammer(), dice)
        assert attack.success
        assert (attack.roll, attack.attack_value, attack.defense_value) == (4, 6, 2)
        assert attack.success_margin == 4

        result = combat.process_damage(hammer(), attacker, defender, attack, dice)
        assert result.damage == 4
        assert result.new_wounds == 1
        assert result.status_effect is None
        assert dice.exhausted

    def test_tie_goes_to_defender(self):
        attacker = make_unit("a", precision=1)
        defender = make_unit("b", agility=2)
        attack = combat.calculate_attack_success(attacker, defender, hammer(difficulty=1),
                                                 ScriptedDice(d6=[2]))
        assert attack.attack_value == attack.defense_value == 3
        assert not attack.success

    def test_pilot_values_used(self):
        attacker = make_unit("a", precision=5)
        defender = make_unit("b", agility=5)
        attack = combat.calculate_attack_success(attacker, defender, hammer(difficulty=0),
                                                 ScriptedDice(d6=[3]), 1, 2)
        assert attack.attack_value == 4
        assert attack.defense_value == 2

    def test_miss_deals_nothing(self):
        attack = combat.AttackRoll(False, 1, 2, 5, -3)
        assert combat.process_damage(hammer(), make_unit("a"), make_unit("b"), attack,
                                     ScriptedDice()) is None


class TestImpactDamage:
    def test_downed_on_high_status_roll(self):
        defender = make_unit(mass=2, armor=10)
        result = combat.calculate_impact_damage(hammer(force=8), defender,
                                                ScriptedDice(d6=[4], random=[0.5]))
        assert result.status_effect == "downed"
        assert result.damage == 7
        assert result.new_wounds == 1

    def test_dazed_on_middle_status_roll(self):
        defender = make_unit(mass=2, armor=10)
        result = combat.calculate_impact_damage(hammer(force=8), defender,
                                                ScriptedDice(d6=[1], random=[0.9]))
        assert result.status_effect == "dazed"
        assert result.new_wounds == 0

    def test_no_status_roll_when_force_not_above_mass(self):
        defender = make_unit(mass=3, armor=3)
        dice = ScriptedDice(random=[0.99])
        result = combat.calculate_impact_damage(hammer(force=3), defender, dice)
        assert result.status_effect is None
        assert result.new_wounds == 1
        assert dice.exhausted

    def test_multiple_wounds(self):
        defender = make_unit(mass=10, armor=3)
        result = combat.calculate_impact_damage(hammer(force=6), defender,
                                                ScriptedDice(random=[0.5]))
        assert result.damage == 1
        assert result.new_wounds == 2

    def test_no_wounds_past_armor(self):
        defender = make_unit(mass=10, armor=2)
        defender.wounds = 2
        result = combat.calculate_impact_damage(hammer(force=9), defender, ScriptedDice())
        assert result.new_wounds == 0
        assert "cannot take any more" in result.description

    def test_zero_armor_does_not_divide(self):
        defender = make_unit(mass=10, armor=0)
        result = combat.calculate_impact_damage(hammer(force=1), defender, ScriptedDice())
        assert result.new_wounds == 0

    def test_damage_never_negative(self):
        defender = make_unit(mass=20, armor=5)
        result = combat.calculate_impact_damage(hammer(force=2), defender,
                                                ScriptedDice(random=[0.99]))
        assert result.damage == 0


class TestBladedDamage:
    def test_critical(self):
        result = combat.calculate_bladed_damage(blade(), make_unit(armor=3), 2)
        assert result.critical
        assert result.damage == 12
        assert result.new_wounds == 1

    def test_clean_cut(self):
        result = combat.calculate_bladed_damage(blade(), make_unit(armor=3), 1)
        assert not result.critical
        assert result.damage == 6
        assert result.new_wounds == 1

    def test_glancing_blow(self):
        result = combat.calculate_bladed_damage(blade(), make_unit(armor=5, mass=2), 1)
        assert result.damage == 2
        assert result.new_wounds == 0
        assert "glances" in result.description

    def test_fully_wounded_target_takes_no_new_wound(self):
        defender = make_unit(armor=3)
        defender.wounds = 3
        result = combat.calculate_bladed_damage(blade(), defender, 1)
        assert result.critical
        assert result.new_wounds == 0
        assert "cannot create more structural wounds" in result.description


class TestBallisticDamage:
    def test_one_roll_per_excess_point(self):
        defender = make_unit(armor=2, subsystems=[subsystem("a"), subsystem("b"), subsystem("c")])
        dice = ScriptedDice(d6=[5, 5, 1, 1, 6, 6, 1, 1], choices=[0, 0])
        result = combat.calculate_ballistic_damage(railgun(penetration=6), defender, dice)
        assert result.damage == 5
        assert result.subsystems_hit == ["a", "b"]
        assert result.subsystem_damage
        assert dice.exhausted

    def test_no_excess_no_rolls(self):
        defender = make_unit(armor=4, subsystems=[subsystem("a")])
        result = combat.calculate_ballistic_damage(railgun(penetration=4), defender, ScriptedDice())
        assert result.damage == 2
        assert result.subsystems_hit == []

    def test_no_functional_subsystems_no_rolls(self):
        defender = make_unit(armor=0, subsystems=[subsystem("a", functional=False)])
        result = combat.calculate_ballistic_damage(railgun(penetration=3), defender, ScriptedDice())
        assert result.damage == 3
        assert not result.subsystem_damage

    def test_penetration_table_threshold(self):
        defender = make_unit(subsystems=[subsystem("a")])
        assert not combat.roll_penetrating_damage_effect(defender, ScriptedDice(d6=[4, 5])).subsystem_damaged
        assert combat.roll_penetrating_damage_effect(defender, ScriptedDice(d6=[4, 6])).subsystem_damaged

    def test_custom_threshold_from_config(self):
        defender = make_unit(subsystems=[subsystem("a")])
        config = GameConfig(penetration_effect_threshold=3)
        result = combat.roll_penetrating_damage_effect(defender, ScriptedDice(d6=[1, 2]), config=config)
        assert result.subsystem_id == "a"


class TestPenetrationStatistics:
    def test_each_roll_disables_about_one_in_six(self):
        dice = Dice(seed=20240611)
        trials = 6000
        hits = 0
        for _ in range(trials):
            defender = make_unit(subsystems=[subsystem("a")])
            if combat.roll_penetrating_damage_effect(defender, dice).subsystem_damaged:
                hits += 1
        assert hits / trials == pytest.approx(1 / 6, abs=0.03)

    def test_four_excess_points_average(self):
        dice = Dice(seed=7)
        trials = 4000
        total = 0
        for _ in range(trials):
            defender = make_unit(armor=2, subsystems=[subsystem(f"s{i}") for i in range(6)])
            total += len(combat.calculate_ballistic_damage(railgun(penetration=6), defender,
                                                           dice).subsystems_hit)
        assert total / trials == pytest.approx(4 / 6, abs=0.07)


class TestGenericAndSpecialRolls:
    def test_unknown_weapon_type_falls_back_to_force(self):
        weapon = hammer()
        weapon.type = "plasma"
        attack = combat.AttackRoll(True, 6, 8, 2, 6)
        result = combat.process_damage(weapon, make_unit("a"), make_unit("b", mass=2), attack,
                                       ScriptedDice())
        assert result.damage == 4

    def test_special_move_roll(self):
        assert combat.special_move_attack_roll(ScriptedDice(d6=[3, 4]), 2, 1) == (7, 8)

    def test_special_move_damage(self):
        assert combat.special_move_damage(3, 2, make_unit(mass=4, armor=1)) == 2

    def test_grapple_formulas(self):
        unit = make_unit(mass=3, agility=2)
        assert combat.grapple_roll_builtin(unit, ScriptedDice(d6=[4])) == 7
        assert combat.grapple_roll_catalog(unit, ScriptedDice(d6=[4])) == 12
