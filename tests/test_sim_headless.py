"""Tests de l'environnement headless (reset / step)."""

from __future__ import annotations

import numpy as np
import pytest

from balloon_duel.engine.actions import IDLE_ACTION
from balloon_duel.engine.config import (
    AgentConfig,
    ArenaConfig,
    EnvironmentParameters,
    MatchConfig,
    SpawnConfig,
)
from balloon_duel.engine.geometry import Pose, Vec3
from balloon_duel.engine.outcome import OutcomeKind
from balloon_duel.sim.runner import HeadlessArenaEnv


def _short_config(max_steps: int = 5, **kwargs) -> ArenaConfig:
    # Agents espacés : aucune pique ne touche un ballon au premier pas.
    return ArenaConfig(
        match=MatchConfig(max_environment_steps=max_steps),
        spawn=SpawnConfig(separation_margin=6.0),
        **kwargs,
    )


def test_controller_requires_reset():
    env = HeadlessArenaEnv()
    with pytest.raises(RuntimeError):
        env.controller


def test_reset_returns_one_observation_per_agent():
    env = HeadlessArenaEnv(seed=1)
    observations = env.reset()

    assert len(observations) == 2
    for observation in observations:
        assert observation.dtype == np.float32
        assert observation.shape == (5,)
        np.testing.assert_allclose(observation, [0.0, 0.0, 1.0, 0.0, 1.0])


def test_reset_is_reproducible_with_seed():
    env_a = HeadlessArenaEnv()
    env_b = HeadlessArenaEnv()
    env_a.reset(seed=77)
    env_b.reset(seed=77)

    poses_a = [agent.pose for agent in env_a.controller.agents]
    poses_b = [agent.pose for agent in env_b.controller.agents]
    assert poses_a == poses_b


def test_step_returns_per_agent_step_penalty():
    env = HeadlessArenaEnv(_short_config(100), seed=2)
    env.reset()
    result = env.step((IDLE_ACTION, IDLE_ACTION))

    assert not result.done
    assert result.outcome is None
    assert result.reward == pytest.approx((-0.00005, -0.00005))
    assert result.info["step"] == 1
    assert result.info["episode_index"] == 0


def test_step_rejects_wrong_action_count():
    env = HeadlessArenaEnv(seed=2)
    env.reset()
    with pytest.raises(ValueError):
        env.step((IDLE_ACTION,))


def test_timeout_draw_and_reward_sum():
    """La somme des récompenses par pas vaut exactement la récompense finale."""

    env = HeadlessArenaEnv(_short_config(5), seed=3)
    env.reset()
    rewards = []
    result = None
    for _ in range(5):
        result = env.step((IDLE_ACTION, IDLE_ACTION))
        rewards.append(result.reward)

    assert result.done
    assert result.outcome.kind is OutcomeKind.DRAW
    assert result.outcome.final_rewards == (0.0, 0.0)
    totals = tuple(sum(step[i] for step in rewards) for i in range(2))
    assert totals == pytest.approx((0.0, 0.0), abs=1e-12)
    assert env.controller.episode_index == 1


def test_elimination_through_physics_ends_episode():
    config = _short_config(100, agent=AgentConfig(token_capacity=1))
    env = HeadlessArenaEnv(config, seed=4)
    env.reset()
    attacker, victim = env.controller.agents
    attacker.teleport(Pose(Vec3(0.0, 0.52, 0.0), 0.0))
    victim.teleport(Pose(Vec3(0.0, 0.52, 2.5), 0.0))

    result = env.step((IDLE_ACTION, IDLE_ACTION))

    assert result.done
    assert result.outcome.kind is OutcomeKind.WIN
    assert result.outcome.winner_id == 0
    assert result.reward == pytest.approx((0.1 + 1.0, -0.1 - 1.0))
    assert result.info["token_hits"] == 1
    # Observations du nouvel épisode : réserves pleines.
    assert result.observations[1][4] == pytest.approx(1.0)

    attacker.teleport(Pose(Vec3(-5.0, 0.52, -5.0), 0.0))
    victim.teleport(Pose(Vec3(5.0, 0.52, 5.0), 0.0))
    follow_up = env.step((IDLE_ACTION, IDLE_ACTION))
    assert not follow_up.done
    assert not env.controller.is_ending


def test_close_releases_controller():
    env = HeadlessArenaEnv(seed=5)
    env.reset()
    bus = env.controller.event_bus
    env.close()

    assert len(bus) == 0
    with pytest.raises(RuntimeError):
        env.controller


def test_default_spawn_never_starts_inside_a_wall():
    """Aucun contact mur au premier pas, que le spawn soit aléatoire ou de repli."""

    env = HeadlessArenaEnv()
    for seed in range(200):
        env.reset(seed=seed)
        result = env.step((IDLE_ACTION, IDLE_ACTION))
        assert result.info["wall_contacts"] == (), f"seed {seed}"
        assert all(agent.wall_penalty.value == 0.0 for agent in env.controller.agents)
    env.close()

    fallback_env = HeadlessArenaEnv(ArenaConfig(spawn=SpawnConfig(spawn_tries=0)), seed=0)
    fallback_env.reset()
    assert fallback_env.controller.last_spawn.used_fallback == (True, True)
    result = fallback_env.step((IDLE_ACTION, IDLE_ACTION))
    assert result.info["wall_contacts"] == ()
    fallback_env.close()


def test_step_penalty_saturates_at_cap_over_long_episode():
    """10 000 pas à -0.00005 avec un plafond de -0.2 : le total s'arrête exactement au plafond."""

    env = HeadlessArenaEnv(_short_config(0), seed=6)
    env.reset()
    totals = [0.0, 0.0]
    result = None
    for _ in range(10_000):
        result = env.step((IDLE_ACTION, IDLE_ACTION))
        totals[0] += result.reward[0]
        totals[1] += result.reward[1]

    assert not result.done
    assert result.reward == (0.0, 0.0)
    assert totals == pytest.approx([-0.2, -0.2], abs=1e-9)
    for agent in env.controller.agents:
        assert agent.step_penalty.value == -0.2
        assert agent.step_penalty.exhausted
        assert agent.cumulative_reward == pytest.approx(-0.2, abs=1e-9)
    env.close()


def test_physics_follows_geometry_overrides():
    parameters = EnvironmentParameters()
    env = HeadlessArenaEnv(parameters=parameters, seed=7)
    env.reset()
    assert env.physics.wall_limit == pytest.approx(9.5)

    parameters.set("half_size", 6.0)
    env.reset()

    assert env.physics.wall_limit == pytest.approx(5.5)
    for agent in env.controller.agents:
        assert abs(agent.pose.position.x) <= 5.5
        assert abs(agent.pose.position.z) <= 5.5
    result = env.step((IDLE_ACTION, IDLE_ACTION))
    assert result.info["wall_contacts"] == ()
    env.close()
