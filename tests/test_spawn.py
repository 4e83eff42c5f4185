"""Tests du placement de spawn par échantillonnage avec rejet."""

from __future__ import annotations

import logging
import math

import pytest

from balloon_duel.engine.config import SpawnConfig
from balloon_duel.engine.geometry import ArenaFrame, Vec3
from balloon_duel.engine.spawn import SpawnPlacer


def _always_blocked(position, radius, exclude):
    return True


class TestRejectionSampling:
    @pytest.mark.parametrize("seed", range(25))
    def test_pair_respects_required_separation(self, seed):
        placer = SpawnPlacer(SpawnConfig(), seed=seed)
        result = placer.place_pair()
        a, b = result.local_positions
        assert a.planar_distance(b) >= SpawnConfig().required_separation()

    def test_separation_uses_both_radii(self):
        config = SpawnConfig(half_size=4.0, wall_padding=0.5, separation_margin=0.5)
        for seed in range(20):
            result = SpawnPlacer(config, seed=seed).place_pair(radii=(0.5, 1.5))
            a, b = result.local_positions
            assert a.planar_distance(b) >= 0.5 + 1.5 + 0.5

    def test_samples_stay_inside_spawn_limit(self):
        config = SpawnConfig(spawn_area_fraction=0.2)
        placer = SpawnPlacer(config, seed=3)
        for _ in range(100):
            sample = placer.sample_local()
            assert abs(sample.x) <= config.spawn_limit
            assert abs(sample.z) <= config.spawn_limit
            assert sample.y == pytest.approx(config.spawn_height)

    def test_same_seed_same_placement(self):
        first = SpawnPlacer(SpawnConfig(), seed=42).place_pair()
        second = SpawnPlacer(SpawnConfig(), seed=42).place_pair()
        assert first == second

    def test_overlap_query_receives_world_coordinates_and_exclusions(self):
        calls = []

        def query(position, radius, exclude):
            calls.append((position, radius, exclude))
            return False

        frame = ArenaFrame(origin=Vec3(100.0, 0.0, -50.0))
        placer = SpawnPlacer(SpawnConfig(), overlap_query=query, frame=frame, seed=1)
        placer.place_pair(agent_ids=(7, 8))

        assert calls
        for position, radius, exclude in calls:
            assert exclude == (7, 8)
            assert radius == pytest.approx(1.0)
            assert 90.0 <= position.x <= 110.0
            assert -60.0 <= position.z <= -40.0


class TestFallback:
    def test_zero_tries_uses_opposite_corners(self):
        """spawn_tries=0 : coins diagonaux opposés, distance 2√2·(half - padding)."""

        config = SpawnConfig(spawn_tries=0)
        result = SpawnPlacer(config, seed=0).place_pair()
        a, b = result.local_positions

        assert result.used_fallback == (True, True)
        assert (a.x, a.z) == (-9.5, -9.5)
        assert (b.x, b.z) == (9.5, 9.5)
        assert a.planar_distance(b) == pytest.approx(2 * math.sqrt(2) * 9.5)
        assert a.planar_distance(b) >= config.required_separation()

    def test_second_agent_avoids_occupied_corner(self):
        placer = SpawnPlacer(SpawnConfig(spawn_tries=0))
        peer = Vec3(9.0, 0.0, 9.0)
        corner = placer.fallback_local(1, peer_local=peer)
        assert (corner.x, corner.z) == (-9.5, -9.5)

    def test_fallback_keeps_own_corner_when_far_enough(self):
        placer = SpawnPlacer(SpawnConfig())
        corner = placer.fallback_local(1, peer_local=Vec3(0.0, 0.0, 0.0))
        assert (corner.x, corner.z) == (9.5, 9.5)

    def test_single_fallback_keeps_separation_anywhere_in_smallest_valid_arena(self):
        config = SpawnConfig(half_size=4.0, wall_padding=0.5, separation_margin=2.0)
        placer = SpawnPlacer(config)
        limit = config.spawn_limit
        steps = [-limit + i * (2 * limit / 8) for i in range(9)]

        for x in steps:
            for z in steps:
                peer = Vec3(x, config.spawn_height, z)
                corner = placer.fallback_local(1, peer_local=peer)
                assert corner.planar_distance(peer) >= config.required_separation() - 1e-9

    def test_blocked_arena_falls_back_and_logs(self, caplog):
        placer = SpawnPlacer(SpawnConfig(spawn_tries=5), overlap_query=_always_blocked, seed=2)
        with caplog.at_level(logging.DEBUG, logger="balloon_duel.engine.spawn"):
            result = placer.place_pair()
        assert result.used_fallback == (True, True)
        assert "repli" in caplog.text


class TestVerticalResolve:
    def test_residual_overlap_nudges_upward_with_bounded_tries(self):
        config = SpawnConfig(vertical_resolve_tries=5, vertical_resolve_step=0.1)
        placer = SpawnPlacer(config, overlap_query=_always_blocked)
        start = Vec3(0.0, config.spawn_height, 0.0)

        resolved = placer.resolve_vertical(start, 1.0)

        assert resolved.y == pytest.approx(config.spawn_height + 0.5)
        assert (resolved.x, resolved.z) == (0.0, 0.0)

    def test_exits_on_first_free_height(self):
        config = SpawnConfig()
        threshold = config.spawn_height + 0.15

        def low_ceiling(position, radius, exclude):
            return position.y < threshold

        placer = SpawnPlacer(config, overlap_query=low_ceiling)
        resolved = placer.resolve_vertical(Vec3(0.0, config.spawn_height, 0.0), 1.0)
        assert resolved.y == pytest.approx(config.spawn_height + 0.2)

    def test_free_position_is_unchanged(self):
        placer = SpawnPlacer(SpawnConfig())
        start = Vec3(1.0, 0.52, 2.0)
        assert placer.resolve_vertical(start, 1.0) == start


class TestRotation:
    def test_rotation_is_yaw_only(self):
        placer = SpawnPlacer(SpawnConfig(), seed=5)
        for _ in range(10):
            for pose in placer.place_pair().poses:
                pitch, yaw, roll = pose.euler_degrees
                assert pitch == 0.0
                assert roll == 0.0
                assert 0.0 <= yaw < 360.0

    def test_frame_yaw_rotates_positions_and_heading(self):
        frame = ArenaFrame(yaw=90.0)
        placer = SpawnPlacer(SpawnConfig(spawn_tries=0), frame=frame)
        result = placer.place_pair()

        world_a = result.poses[0].position
        local_a = result.local_positions[0]
        # Lacet de 90° : x' = z, z' = -x
        assert world_a.x == pytest.approx(local_a.z)
        assert world_a.z == pytest.approx(-local_a.x)
