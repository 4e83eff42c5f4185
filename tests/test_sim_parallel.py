"""Tests de la parallélisation des duels headless.

Les rollouts doivent rester reproductibles (seeds dérivées de `base_seed`) et
agrégés dans des dataclasses immuables.
"""

from __future__ import annotations

import dataclasses

import pytest

from balloon_duel.engine.config import ArenaConfig, MatchConfig, SpawnConfig
from balloon_duel.rl.policies import IdlePolicy, RandomPolicy
from balloon_duel.sim.parallel import (
    EpisodeSummary,
    ParallelRolloutRunner,
    RolloutSummary,
    WorkerSummary,
)

SHORT_MATCH = ArenaConfig(
    match=MatchConfig(max_environment_steps=4),
    spawn=SpawnConfig(separation_margin=6.0),
)


def _make_runner(
    *,
    num_workers: int,
    total_episodes: int,
    max_steps: int,
    base_seed: int,
    policy_factory=lambda worker_id, agent_id: IdlePolicy(),
) -> ParallelRolloutRunner:
    return ParallelRolloutRunner(
        policy_factory=policy_factory,
        total_episodes=total_episodes,
        num_workers=num_workers,
        max_steps_per_episode=max_steps,
        base_seed=base_seed,
        executor_kind="thread",
        config=SHORT_MATCH,
    )


def test_parallel_runner_distributes_episodes_evenly():
    """Les épisodes doivent être répartis équitablement entre les workers."""

    runner = _make_runner(num_workers=3, total_episodes=9, max_steps=10, base_seed=120)
    summary = runner.run()

    assert dataclasses.is_dataclass(summary)
    assert summary.total_episodes == 9
    assert summary.total_steps == 36
    assert sorted(worker.episodes for worker in summary.worker_summaries) == [3, 3, 3]
    assert summary.draws == 9
    assert summary.wins(0) == summary.wins(1) == 0


def test_parallel_runner_generates_unique_seeds():
    runner = _make_runner(num_workers=2, total_episodes=5, max_steps=1, base_seed=321)
    summary = runner.run()

    seeds = [seed for worker in summary.worker_summaries for seed in worker.episode_seeds]
    assert sorted(seeds) == list(range(321, 326))


def test_max_steps_truncates_unfinished_episodes():
    runner = _make_runner(num_workers=1, total_episodes=2, max_steps=2, base_seed=0)
    summary = runner.run()

    episodes = summary.worker_summaries[0].episode_summaries
    assert all(not episode.done for episode in episodes)
    assert all(episode.steps == 2 for episode in episodes)
    assert summary.draws == 0


def test_parallel_runner_is_reproducible_with_same_seed():
    def factory(worker_id: int, agent_id: int) -> RandomPolicy:
        return RandomPolicy(seed=worker_id * 10 + agent_id)

    summary_a = _make_runner(
        num_workers=2, total_episodes=4, max_steps=6, base_seed=777, policy_factory=factory
    ).run()
    summary_b = _make_runner(
        num_workers=2, total_episodes=4, max_steps=6, base_seed=777, policy_factory=factory
    ).run()

    assert summary_a.worker_summaries == summary_b.worker_summaries


def test_parallel_runner_validates_arguments():
    with pytest.raises(ValueError):
        _make_runner(num_workers=0, total_episodes=1, max_steps=1, base_seed=0)
    with pytest.raises(ValueError):
        _make_runner(num_workers=1, total_episodes=0, max_steps=1, base_seed=0)
    with pytest.raises(ValueError):
        _make_runner(num_workers=1, total_episodes=1, max_steps=0, base_seed=0)
    with pytest.raises(ValueError):
        ParallelRolloutRunner(
            policy_factory=lambda w, a: IdlePolicy(),
            total_episodes=1,
            num_workers=1,
            max_steps_per_episode=1,
            executor_kind="fiber",  # type: ignore[arg-type]
        )


def test_process_executor_requires_picklable_factory():
    with pytest.raises(TypeError):
        ParallelRolloutRunner(
            policy_factory=lambda w, a: IdlePolicy(),
            total_episodes=1,
            num_workers=2,
            max_steps_per_episode=1,
            executor_kind="process",
        )


def test_summary_aggregates_wins_and_draws():
    episodes = (
        EpisodeSummary(seed=1, steps=5, done=True, winner_id=0),
        EpisodeSummary(seed=2, steps=7, done=True, winner_id=1),
        EpisodeSummary(seed=3, steps=4, done=True, winner_id=None),
        EpisodeSummary(seed=4, steps=9, done=False, winner_id=None),
    )
    worker = WorkerSummary(worker_id=0, episode_summaries=episodes, duration_seconds=1.0)
    summary = RolloutSummary(worker_summaries=(worker,), duration_seconds=1.0)

    assert summary.total_workers == 1
    assert summary.total_steps == 25
    assert summary.wins(0) == 1
    assert summary.wins(1) == 1
    assert summary.draws == 1
