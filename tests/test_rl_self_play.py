"""Tests pour le cadre self-play et le buffer de transitions."""

from __future__ import annotations

import numpy as np
import pytest

from balloon_duel.engine.actions import IDLE_ACTION
from balloon_duel.engine.config import ArenaConfig, MatchConfig, SpawnConfig
from balloon_duel.engine.outcome import OutcomeKind
from balloon_duel.rl.policies import ChaserPolicy, IdlePolicy
from balloon_duel.rl.rating import EloTracker
from balloon_duel.rl.self_play import (
    RolloutBuffer,
    SelfPlayEpisode,
    SelfPlayRunner,
    SelfPlayTransition,
)
from balloon_duel.sim.runner import HeadlessArenaEnv

SHORT_MATCH = ArenaConfig(
    match=MatchConfig(max_environment_steps=6),
    spawn=SpawnConfig(separation_margin=6.0),
)


def _make_dummy_episode(transitions_count: int, *, seed: int) -> SelfPlayEpisode:
    """Génère un épisode factice composé de transitions artificielles."""

    transitions = tuple(
        SelfPlayTransition(
            agent_id=index % 2,
            policy_name=f"Policy-{index % 2}",
            observation=np.zeros(5, dtype=np.float32),
            action=IDLE_ACTION,
            reward=float(index),
            done=index == transitions_count - 1,
        )
        for index in range(transitions_count)
    )
    return SelfPlayEpisode(
        seed=seed,
        transitions=transitions,
        outcome=None,
        steps=transitions_count,
        policy_names=("Policy-0", "Policy-1"),
    )


class TestRolloutBuffer:
    """Vérifie la collecte et la gestion des épisodes dans le buffer."""

    def test_add_and_pop_with_capacity(self):
        buffer = RolloutBuffer(capacity=2)
        episode_a = _make_dummy_episode(1, seed=10)
        episode_b = _make_dummy_episode(2, seed=11)
        episode_c = _make_dummy_episode(3, seed=12)

        buffer.add_episode(episode_a)
        buffer.add_episode(episode_b)
        assert buffer.total_transitions == 3

        # Capacité 2 : le plus ancien est éjecté.
        buffer.add_episode(episode_c)
        assert len(buffer) == 2
        assert buffer.total_transitions == 5
        assert buffer.episodes()[0] is episode_b

        popped = buffer.pop_all()
        assert popped[1] is episode_c
        assert len(buffer) == 0
        assert buffer.total_transitions == 0

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            RolloutBuffer(capacity=0)

    def test_total_reward_per_agent(self):
        episode = _make_dummy_episode(4, seed=0)
        assert episode.total_reward(0) == pytest.approx(0.0 + 2.0)
        assert episode.total_reward(1) == pytest.approx(1.0 + 3.0)
        assert not episode.done
        assert episode.winner_id is None


class TestSelfPlayRunner:
    """Tests d'intégration du runner self-play et du buffer."""

    def _make_runner(self, *, rating: EloTracker | None = None) -> SelfPlayRunner:
        return SelfPlayRunner(
            policy_factory=lambda agent_id: IdlePolicy(),
            buffer=RolloutBuffer(),
            env_factory=lambda: HeadlessArenaEnv(SHORT_MATCH),
            rating=rating,
        )

    def test_empty_injected_buffer_is_kept(self):
        buffer = RolloutBuffer(capacity=4)
        runner = SelfPlayRunner(policy_factory=lambda agent_id: IdlePolicy(), buffer=buffer)
        assert runner.buffer is buffer

    def test_run_episode_records_both_agents(self):
        runner = self._make_runner()
        episode = runner.run_episode(seed=123, max_steps=3)

        assert episode.steps == 3
        assert len(episode.transitions) == 6
        assert not episode.done
        assert episode.policy_names == ("Idle", "Idle")
        assert runner.buffer.episodes()[0] is episode
        assert {t.agent_id for t in episode.transitions} == {0, 1}
        assert all(t.observation.shape == (5,) for t in episode.transitions)

    def test_timeout_episode_ends_in_draw(self):
        runner = self._make_runner()
        episode = runner.run_episode(seed=1, max_steps=100)

        assert episode.done
        assert episode.steps == 6
        assert episode.outcome.kind is OutcomeKind.DRAW
        assert episode.transitions[-1].done
        # Somme des récompenses par pas = récompense finale neutralisée.
        assert episode.total_reward(0) == pytest.approx(0.0, abs=1e-12)

    def test_run_batch_assigns_incremental_seeds(self):
        runner = self._make_runner()
        episodes = runner.run_batch(num_episodes=3, base_seed=500, max_steps=1)

        assert tuple(ep.seed for ep in episodes) == (500, 501, 502)
        assert len(runner.buffer) == 3
        assert runner.buffer.total_transitions == 6

    def test_store_in_buffer_can_be_disabled(self):
        runner = self._make_runner()
        runner.run_episode(seed=0, max_steps=1, store_in_buffer=False)
        assert len(runner.buffer) == 0

    def test_rating_updated_only_for_distinct_policies(self):
        rating = EloTracker()
        runner = self._make_runner(rating=rating)

        runner.run_episode(seed=0, max_steps=100)
        assert rating.ratings == {}

        runner.run_episode(seed=0, max_steps=100, policies=(ChaserPolicy(), IdlePolicy()))
        assert rating.games("Chaser") == 1
        assert rating.games("Idle") == 1

    def test_invalid_arguments(self):
        runner = self._make_runner()
        with pytest.raises(ValueError):
            runner.run_episode(max_steps=0)
        with pytest.raises(ValueError):
            runner.run_batch(num_episodes=0)
        with pytest.raises(ValueError):
            runner.run_episode(policies=(IdlePolicy(),))
