"""Parallélisation des duels headless.

Chaque worker possède sa propre arène et ses propres politiques : aucun état
n'est partagé entre workers, le parallélisme n'existe qu'entre matchs
indépendants. Le résultat exposé est une dataclass immuable résumant les
métriques collectées (épisodes, pas, victoires, nuls).
"""

from __future__ import annotations

import pickle
import time
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Literal, Tuple

from balloon_duel.engine.config import ArenaConfig
from balloon_duel.rl.policies import AgentPolicy
from balloon_duel.sim.runner import HeadlessArenaEnv

ExecutorKind = Literal["thread", "process"]
PolicyFactory = Callable[[int, int], AgentPolicy]


@dataclass(frozen=True)
class EpisodeSummary:
    """Résume un épisode simulé par un worker."""

    seed: int
    steps: int
    done: bool
    winner_id: int | None
    final_rewards: Tuple[float, ...] = ()

    @property
    def is_draw(self) -> bool:
        return self.done and self.winner_id is None


@dataclass(frozen=True)
class WorkerSummary:
    """Agrège les métriques d'un worker donné."""

    worker_id: int
    episode_summaries: Tuple[EpisodeSummary, ...]
    duration_seconds: float = field(default=0.0, compare=False)

    @property
    def episodes(self) -> int:
        return len(self.episode_summaries)

    @property
    def episode_seeds(self) -> Tuple[int, ...]:
        return tuple(summary.seed for summary in self.episode_summaries)

    @property
    def steps(self) -> int:
        return sum(summary.steps for summary in self.episode_summaries)

    def wins(self, agent_id: int) -> int:
        return sum(1 for summary in self.episode_summaries if summary.winner_id == agent_id)

    @property
    def draws(self) -> int:
        return sum(1 for summary in self.episode_summaries if summary.is_draw)


@dataclass(frozen=True)
class RolloutSummary:
    """Résumé global renvoyé par `ParallelRolloutRunner.run()`."""

    worker_summaries: Tuple[WorkerSummary, ...]
    duration_seconds: float = field(default=0.0, compare=False)

    @property
    def total_workers(self) -> int:
        return len(self.worker_summaries)

    @property
    def total_episodes(self) -> int:
        return sum(worker.episodes for worker in self.worker_summaries)

    @property
    def total_steps(self) -> int:
        return sum(worker.steps for worker in self.worker_summaries)

    def wins(self, agent_id: int) -> int:
        return sum(worker.wins(agent_id) for worker in self.worker_summaries)

    @property
    def draws(self) -> int:
        return sum(worker.draws for worker in self.worker_summaries)


def _validate_positive(name: str, value: int) -> None:
    if value <= 0:
        raise ValueError(f"{name} doit être strictement positif (reçu: {value})")


def _distribute_episodes(total_episodes: int, num_workers: int, base_seed: int) -> Tuple[Tuple[int, Tuple[int, ...]], ...]:
    """Répartit les seeds d'épisodes entre les workers."""

    base = total_episodes // num_workers
    remainder = total_episodes % num_workers
    current_seed = base_seed
    assignments = []

    for worker_id in range(num_workers):
        count = base + (1 if worker_id < remainder else 0)
        seeds = tuple(range(current_seed, current_seed + count)) if count else tuple()
        current_seed += count
        assignments.append((worker_id, seeds))

    return tuple(assignments)


def _run_worker(
    worker_id: int,
    episode_seeds: Tuple[int, ...],
    max_steps_per_episode: int,
    policy_factory: PolicyFactory,
    config: ArenaConfig | None,
) -> WorkerSummary:
    """Exécute la boucle de simulation pour un worker donné."""

    start = time.perf_counter()
    if not episode_seeds:
        return WorkerSummary(worker_id=worker_id, episode_summaries=tuple(), duration_seconds=0.0)

    policies = (policy_factory(worker_id, 0), policy_factory(worker_id, 1))
    env = HeadlessArenaEnv(config)
    episodes: list[EpisodeSummary] = []

    try:
        for seed in episode_seeds:
            env.reset(seed=seed)
            match = env.controller
            steps = 0
            outcome = None

            while steps < max_steps_per_episode:
                actions = tuple(
                    policy.select_action(match, agent.agent_id)
                    for policy, agent in zip(policies, match.agents)
                )
                result = env.step(actions)
                steps += 1
                if result.done:
                    outcome = result.outcome
                    break

            episodes.append(
                EpisodeSummary(
                    seed=seed,
                    steps=steps,
                    done=outcome is not None,
                    winner_id=None if outcome is None else outcome.winner_id,
                    final_rewards=() if outcome is None else outcome.final_rewards,
                )
            )
    finally:
        env.close()

    duration = time.perf_counter() - start
    return WorkerSummary(
        worker_id=worker_id,
        episode_summaries=tuple(episodes),
        duration_seconds=duration,
    )


class ParallelRolloutRunner:
    """Orchestre l'exécution de plusieurs duels en parallèle."""

    def __init__(
        self,
        *,
        policy_factory: PolicyFactory,
        total_episodes: int,
        num_workers: int,
        max_steps_per_episode: int,
        base_seed: int = 0,
        executor_kind: ExecutorKind = "process",
        config: ArenaConfig | None = None,
    ) -> None:
        _validate_positive("num_workers", num_workers)
        _validate_positive("total_episodes", total_episodes)
        _validate_positive("max_steps_per_episode", max_steps_per_episode)

        if executor_kind not in ("thread", "process"):
            raise ValueError("executor_kind doit valoir 'thread' ou 'process'")

        if executor_kind == "process":
            try:
                pickle.dumps(policy_factory)
            except Exception as exc:  # pragma: no cover - erreur anticipée
                raise TypeError(
                    "policy_factory doit être picklable pour executor_kind='process'"
                ) from exc

        self._policy_factory = policy_factory
        self._total_episodes = total_episodes
        self._num_workers = num_workers
        self._max_steps_per_episode = max_steps_per_episode
        self._base_seed = base_seed
        self._executor_kind = executor_kind
        self._config = config

    def _compute_assignments(self) -> Tuple[Tuple[int, Tuple[int, ...]], ...]:
        return _distribute_episodes(self._total_episodes, self._num_workers, self._base_seed)

    def run(self) -> RolloutSummary:
        """Exécute les duels et renvoie un résumé agrégé."""

        assignments = self._compute_assignments()
        start = time.perf_counter()

        # Cas trivial: un seul worker → exécution synchrone.
        if self._num_workers == 1:
            worker_id, seeds = assignments[0]
            summary = _run_worker(
                worker_id,
                seeds,
                self._max_steps_per_episode,
                self._policy_factory,
                self._config,
            )
            duration = time.perf_counter() - start
            return RolloutSummary(worker_summaries=(summary,), duration_seconds=duration)

        executor_type = ThreadPoolExecutor if self._executor_kind == "thread" else ProcessPoolExecutor
        with executor_type(max_workers=self._num_workers) as executor:
            futures = [
                executor.submit(
                    _run_worker,
                    worker_id,
                    seeds,
                    self._max_steps_per_episode,
                    self._policy_factory,
                    self._config,
                )
                for worker_id, seeds in assignments
            ]
            worker_summaries = [future.result() for future in futures]

        duration = time.perf_counter() - start
        return RolloutSummary(worker_summaries=tuple(worker_summaries), duration_seconds=duration)


__all__ = [
    "EpisodeSummary",
    "WorkerSummary",
    "RolloutSummary",
    "ParallelRolloutRunner",
]
