"""Tests for hex coordinates and grid geometry."""

import math

from hexcombat.models.hex import HexCoord
from hexcombat.models.unit import Targeting
from hexcombat.util.constants import FACING_DELTAS, FACINGS
from hexcombat.util.hex_math import (
    axial_to_cube,
    bearing,
    generate_hex_grid,
    get_attackable_tiles,
    get_special_move_targets,
    hex_distance,
    hex_to_pixel,
    hexagon_points,
    hexes_in_range,
    in_arc,
)


class TestHexDistance:
    def test_distance_to_self_is_zero(self):
        h = HexCoord(3, -2)
        assert h.distance_to(h) == 0

    def test_distance_to_neighbor_is_one(self):
        a = HexCoord(0, 0)
        for facing in FACINGS:
            assert hex_distance(a, a.step(facing)) == 1

    def test_distance_is_symmetric(self):
        a, b = HexCoord(1, 2), HexCoord(-3, 5)
        assert hex_distance(a, b) == hex_distance(b, a)

    def test_distance_known_value(self):
        assert hex_distance(HexCoord(0, 0), HexCoord(3, -1)) == 3

    def test_cube_coordinates_sum_to_zero(self):
        assert sum(axial_to_cube(HexCoord(4, -7))) == 0


class TestSteps:
    def test_step_follows_facing_delta(self):
        assert HexCoord(2, 2).step(120) == HexCoord(3, 2)

    def test_negative_count_walks_backwards(self):
        start = HexCoord(1, -1)
        assert start.step(60, 3).step(60, -3) == start

    def test_disk_ring_two_has_twelve_tiles(self):
        center = HexCoord(1, 1)
        ring = [h for h in center.disk(2) if center.distance_to(h) == 2]
        assert len(ring) == 12

    def test_key_round_trip(self):
        assert HexCoord.from_key(HexCoord(-3, 4).key) == HexCoord(-3, 4)


class TestGrid:
    def test_grid_size_formula(self):
        for radius in range(0, 6):
            assert len(generate_hex_grid(radius)) == 3 * radius * radius + 3 * radius + 1

    def test_radius_zero_is_origin(self):
        assert generate_hex_grid(0) == [HexCoord(0, 0)]

    def test_grid_has_no_duplicates(self):
        grid = generate_hex_grid(4)
        assert len(set(grid)) == len(grid)

    def test_hexes_in_range_is_sorted_disk(self):
        tiles = hexes_in_range(HexCoord(2, -1), 1)
        assert len(tiles) == 7
        assert tiles == sorted(tiles, key=lambda h: (h.q, h.r))


class TestPixels:
    def test_origin_is_at_zero(self):
        assert hex_to_pixel(HexCoord(0, 0), 10.0) == (0.0, 0.0)

    def test_neighbors_are_equidistant(self):
        size = 10.0
        for facing in FACINGS:
            x, y = hex_to_pixel(HexCoord(0, 0).step(facing), size)
            assert math.isclose(math.hypot(x, y), size * math.sqrt(3))

    def test_hexagon_has_six_points_on_circle(self):
        points = hexagon_points(5.0)
        assert len(points) == 6
        for x, y in points:
            assert math.isclose(math.hypot(x, y), 5.0)


class TestFacing:
    def test_each_facing_delta_points_along_its_bearing(self):
        origin = HexCoord(0, 0)
        for facing, (dq, dr) in FACING_DELTAS.items():
            b = bearing(origin, HexCoord(dq, dr))
            assert math.isclose(b % 360, facing, abs_tol=1e-6) or math.isclose(b, 360, abs_tol=1e-6)

    def test_origin_always_in_arc(self):
        assert in_arc(HexCoord(0, 0), 180, HexCoord(0, 0), 0)

    def test_behind_is_out_of_arc(self):
        assert not in_arc(HexCoord(0, 0), 0, HexCoord(0, 1), 60)


class TestAttackableTiles:
    def test_range_one_narrow_arc_is_straight_ahead(self):
        tiles = get_attackable_tiles(0, 0, 0, 1, 60)
        assert set(tiles) == {HexCoord(0, 0), HexCoord(0, -1)}

    def test_arc_edges_are_inclusive(self):
        tiles = set(get_attackable_tiles(0, 0, 0, 2, 60))
        assert tiles == {
            HexCoord(0, 0), HexCoord(0, -1), HexCoord(0, -2),
            HexCoord(1, -2), HexCoord(-1, -1),
        }

    def test_full_arc_is_whole_disk(self):
        assert len(get_attackable_tiles(3, -3, 120, 2, 360)) == 19

    def test_rotated_facing(self):
        tiles = set(get_attackable_tiles(0, 0, 180, 1, 60))
        assert tiles == {HexCoord(0, 0), HexCoord(0, 1)}

    def test_tiles_within_range(self):
        origin = HexCoord(1, 2)
        for h in get_attackable_tiles(1, 2, 60, 3, 120):
            assert origin.distance_to(h) <= 3


class TestSpecialMoveTargets:
    def test_self_is_origin_only(self):
        assert get_special_move_targets(2, 1, 0, Targeting.SELF, 5) == [HexCoord(2, 1)]

    def test_area_defaults_to_radius_one(self):
        assert len(get_special_move_targets(0, 0, 0, Targeting.AREA)) == 7

    def test_area_is_symmetric_regardless_of_facing(self):
        a = get_special_move_targets(0, 0, 0, Targeting.AREA, 2)
        b = get_special_move_targets(0, 0, 240, Targeting.AREA, 2)
        assert a == b and len(a) == 19

    def test_enemy_without_range_is_empty(self):
        assert get_special_move_targets(0, 0, 0, Targeting.ENEMY) == []

    def test_ally_with_range(self):
        assert len(get_special_move_targets(0, 0, 0, Targeting.ALLY, 1)) == 7
