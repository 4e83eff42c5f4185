"""Tests du wrapper Gymnasium (agent 0 contre une politique adverse)."""

from __future__ import annotations

import numpy as np
import pytest
from gymnasium import spaces

from balloon_duel.engine.config import AgentConfig, ArenaConfig, MatchConfig, SpawnConfig
from balloon_duel.engine.geometry import Pose, Vec3
from balloon_duel.rl.gym_env import BalloonDuelEnv
from balloon_duel.rl.policies import RandomPolicy

IDLE = {"continuous": np.zeros(2, dtype=np.float32), "discrete": np.zeros(1, dtype=np.int64)}


def _config(max_steps: int = 4, **kwargs) -> ArenaConfig:
    return ArenaConfig(
        match=MatchConfig(max_environment_steps=max_steps),
        spawn=SpawnConfig(separation_margin=6.0),
        **kwargs,
    )


@pytest.fixture
def env():
    environment = BalloonDuelEnv(_config())
    yield environment
    environment.close()


def test_spaces(env):
    assert env.observation_space.shape == (5,)
    assert isinstance(env.action_space, spaces.Dict)
    assert env.action_space["continuous"].shape == (2,)
    assert env.action_space.contains(env.action_space.sample())


def test_reset_returns_observation_and_info(env):
    observation, info = env.reset(seed=3)
    assert env.observation_space.contains(observation)
    assert info["episode_index"] == 0


def test_step_signature(env):
    env.reset(seed=3)
    observation, reward, terminated, truncated, info = env.step(IDLE)

    assert observation.shape == (5,)
    assert isinstance(reward, float)
    assert reward == pytest.approx(-0.00005)
    assert not terminated
    assert not truncated
    assert info["step"] == 1


def test_timeout_is_truncation(env):
    env.reset(seed=3)
    for _ in range(3):
        env.step(IDLE)
    _, reward, terminated, truncated, info = env.step(IDLE)

    assert truncated
    assert not terminated
    assert info["result"] == "DRAW"
    assert info["final_reward"] == 0.0


def test_elimination_is_termination():
    env = BalloonDuelEnv(_config(100, agent=AgentConfig(token_capacity=1)))
    env.reset(seed=0)
    learner, opponent = env.arena.controller.agents
    learner.teleport(Pose(Vec3(0.0, 0.52, 0.0), 0.0))
    opponent.teleport(Pose(Vec3(0.0, 0.52, 2.5), 0.0))

    _, reward, terminated, truncated, info = env.step(IDLE)

    assert terminated
    assert not truncated
    assert info["result"] == "WIN"
    assert reward == pytest.approx(1.1)
    env.close()


def test_opponent_can_be_swapped(env):
    env.set_opponent(RandomPolicy(seed=1))
    env.reset(seed=1)
    _, _, terminated, truncated, _ = env.step(env.action_space.sample())
    assert not (terminated or truncated)


def test_reset_after_episode_end_does_not_skip_an_episode(env):
    """L'arène s'est déjà remise à zéro : reset() sans graine reprend cet épisode."""

    env.reset(seed=3)
    truncated = False
    while not truncated:
        _, _, _, truncated, _ = env.step(IDLE)

    _, info = env.reset()
    assert info["episode_index"] == 1

    _, info = env.reset()
    assert info["episode_index"] == 2
