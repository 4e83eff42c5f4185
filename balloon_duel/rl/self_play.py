"""Cadre self-play et buffer de transitions pour l'entraînement RL."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Sequence, Tuple

import numpy as np

from balloon_duel.engine.actions import ArenaAction
from balloon_duel.engine.outcome import EpisodeOutcome
from balloon_duel.rl.policies import AgentPolicy
from balloon_duel.rl.rating import EloTracker
from balloon_duel.sim.runner import HeadlessArenaEnv


@dataclass(frozen=True)
class SelfPlayTransition:
    """Transition élémentaire d'un agent pendant un pas."""

    agent_id: int
    policy_name: str
    observation: np.ndarray
    action: ArenaAction
    reward: float
    done: bool


@dataclass(frozen=True)
class SelfPlayEpisode:
    """Résumé d'un épisode self-play et de ses transitions."""

    seed: int | None
    transitions: Tuple[SelfPlayTransition, ...]
    outcome: EpisodeOutcome | None
    steps: int
    policy_names: Tuple[str, ...]

    @property
    def done(self) -> bool:
        return self.outcome is not None

    @property
    def winner_id(self) -> int | None:
        return None if self.outcome is None else self.outcome.winner_id

    def total_reward(self, agent_id: int) -> float:
        return sum(t.reward for t in self.transitions if t.agent_id == agent_id)


class RolloutBuffer:
    """Buffer circulaire stockant les épisodes self-play."""

    def __init__(self, *, capacity: int | None = None) -> None:
        if capacity is not None and capacity <= 0:
            raise ValueError("capacity doit être positif ou None")
        self._capacity = capacity
        self._episodes: List[SelfPlayEpisode] = []
        self._transition_count = 0

    @property
    def capacity(self) -> int | None:
        return self._capacity

    def __len__(self) -> int:
        return len(self._episodes)

    @property
    def total_transitions(self) -> int:
        return self._transition_count

    def episodes(self) -> Tuple[SelfPlayEpisode, ...]:
        return tuple(self._episodes)

    def add_episode(self, episode: SelfPlayEpisode) -> None:
        if self._capacity is not None and len(self._episodes) >= self._capacity:
            removed = self._episodes.pop(0)
            self._transition_count -= len(removed.transitions)
        self._episodes.append(episode)
        self._transition_count += len(episode.transitions)

    def extend(self, episodes: Iterable[SelfPlayEpisode]) -> None:
        for episode in episodes:
            self.add_episode(episode)

    def pop_all(self) -> Tuple[SelfPlayEpisode, ...]:
        episodes = self.episodes()
        self.clear()
        return episodes

    def clear(self) -> None:
        self._episodes.clear()
        self._transition_count = 0

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"RolloutBuffer(len={len(self)}, transitions={self.total_transitions})"


class SelfPlayRunner:
    """Orchestre des duels self-play et stocke les transitions dans un buffer.

    Si un `EloTracker` est fourni, chaque épisode terminé entre deux politiques
    de noms distincts met à jour leur classement.
    """

    def __init__(
        self,
        *,
        policy_factory: Callable[[int], AgentPolicy],
        buffer: RolloutBuffer | None = None,
        env_factory: Callable[[], HeadlessArenaEnv] | None = None,
        rating: EloTracker | None = None,
    ) -> None:
        self._policy_factory = policy_factory
        self._buffer = buffer if buffer is not None else RolloutBuffer()
        self._env_factory = env_factory or (lambda: HeadlessArenaEnv())
        self._rating = rating

    @property
    def buffer(self) -> RolloutBuffer:
        return self._buffer

    @property
    def rating(self) -> EloTracker | None:
        return self._rating

    def _spawn_policies(self, overrides: Sequence[AgentPolicy] | None) -> Tuple[AgentPolicy, ...]:
        if overrides is not None:
            if len(overrides) != 2:
                raise ValueError("Un duel requiert exactement deux politiques")
            return tuple(overrides)
        return tuple(self._policy_factory(agent_id) for agent_id in range(2))

    def run_episode(
        self,
        *,
        seed: int | None = None,
        max_steps: int = 4096,
        policies: Sequence[AgentPolicy] | None = None,
        store_in_buffer: bool = True,
    ) -> SelfPlayEpisode:
        if max_steps <= 0:
            raise ValueError("max_steps doit être strictement positif")

        env = self._env_factory()
        try:
            observations = env.reset(seed=seed)
            match = env.controller
            active_policies = self._spawn_policies(policies)
            transitions: List[SelfPlayTransition] = []
            outcome: EpisodeOutcome | None = None
            steps = 0

            while steps < max_steps:
                actions = tuple(
                    policy.select_action(match, agent.agent_id)
                    for policy, agent in zip(active_policies, match.agents)
                )
                result = env.step(actions)
                steps += 1

                for agent_id, policy in enumerate(active_policies):
                    transitions.append(
                        SelfPlayTransition(
                            agent_id=agent_id,
                            policy_name=policy.name,
                            observation=observations[agent_id],
                            action=actions[agent_id],
                            reward=result.reward[agent_id],
                            done=result.done,
                        )
                    )
                observations = result.observations

                if result.done:
                    outcome = result.outcome
                    break
        finally:
            env.close()

        policy_names = tuple(policy.name for policy in active_policies)
        episode = SelfPlayEpisode(
            seed=seed,
            transitions=tuple(transitions),
            outcome=outcome,
            steps=steps,
            policy_names=policy_names,
        )

        if store_in_buffer:
            self._buffer.add_episode(episode)
        if self._rating is not None and outcome is not None and policy_names[0] != policy_names[1]:
            self._rating.record_outcome(outcome, policy_names)

        return episode

    def run_batch(
        self,
        *,
        num_episodes: int,
        base_seed: int | None = None,
        max_steps: int = 4096,
        policies: Sequence[AgentPolicy] | None = None,
        store_in_buffer: bool = True,
    ) -> Tuple[SelfPlayEpisode, ...]:
        if num_episodes <= 0:
            raise ValueError("num_episodes doit être strictement positif")

        episodes: List[SelfPlayEpisode] = []
        for index in range(num_episodes):
            seed = None if base_seed is None else base_seed + index
            episode = self.run_episode(
                seed=seed,
                max_steps=max_steps,
                policies=policies,
                store_in_buffer=store_in_buffer,
            )
            episodes.append(episode)
        return tuple(episodes)


__all__ = [
    "RolloutBuffer",
    "SelfPlayEpisode",
    "SelfPlayRunner",
    "SelfPlayTransition",
]
