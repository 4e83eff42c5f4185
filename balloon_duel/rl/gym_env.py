"""Environnement Gymnasium pour le duel à ballons.

Wrapper mono-agent autour de `HeadlessArenaEnv` : l'agent 0 est contrôlé par
l'appelant, l'agent 1 par une politique adverse (typiquement un snapshot
self-play).

Observations:
    Box(5,) : vitesse locale (x, z), boost disponible, boost actif,
    ballons restants normalisés.

Actions:
    Dict {"continuous": Box(-1, 1, (2,)), "discrete": MultiDiscrete([2])}

Fin d'épisode:
    terminated=True sur élimination, truncated=True sur timeout (nul).
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import gymnasium as gym
import numpy as np
from gymnasium import spaces

from balloon_duel.engine.config import ArenaConfig, EnvironmentParameters
from balloon_duel.engine.outcome import OutcomeKind
from balloon_duel.rl.features import (
    CONTINUOUS_ACTION_SIZE,
    DISCRETE_ACTION_BRANCHES,
    OBSERVATION_SIZE,
    decode_action,
)
from balloon_duel.rl.policies import AgentPolicy, IdlePolicy
from balloon_duel.sim.runner import HeadlessArenaEnv

LEARNER_ID = 0
OPPONENT_ID = 1


class BalloonDuelEnv(gym.Env):
    """Environnement duel compatible Gymnasium."""

    metadata = {"render_modes": []}

    def __init__(
        self,
        config: ArenaConfig | None = None,
        *,
        opponent: AgentPolicy | None = None,
        parameters: EnvironmentParameters | None = None,
    ) -> None:
        super().__init__()
        self._arena = HeadlessArenaEnv(config, parameters=parameters)
        self._opponent = opponent if opponent is not None else IdlePolicy()
        # Vrai quand l'arène vient de se remettre à zéro d'elle-même.
        self._episode_ready = False

        self.observation_space = spaces.Box(
            low=-np.inf, high=np.inf, shape=(OBSERVATION_SIZE,), dtype=np.float32
        )
        self.action_space = spaces.Dict(
            {
                "continuous": spaces.Box(
                    low=-1.0, high=1.0, shape=(CONTINUOUS_ACTION_SIZE,), dtype=np.float32
                ),
                "discrete": spaces.MultiDiscrete(list(DISCRETE_ACTION_BRANCHES)),
            }
        )

    @property
    def arena(self) -> HeadlessArenaEnv:
        return self._arena

    def set_opponent(self, opponent: AgentPolicy) -> None:
        """Remplace la politique adverse (swap de snapshot self-play)."""

        self._opponent = opponent

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> Tuple[np.ndarray, Dict[str, Any]]:
        super().reset(seed=seed)
        if self._episode_ready and seed is None:
            # L'épisode suivant a déjà été préparé à la fin du précédent.
            observations = self._arena.observations()
        else:
            observations = self._arena.reset(seed=seed)
        self._episode_ready = False
        return observations[LEARNER_ID], {"episode_index": self._arena.controller.episode_index}

    def step(
        self, action: Dict[str, Any]
    ) -> Tuple[np.ndarray, float, bool, bool, Dict[str, Any]]:
        match = self._arena.controller
        learner_action = decode_action(action["continuous"], action["discrete"])
        opponent_action = self._opponent.select_action(match, OPPONENT_ID)

        result = self._arena.step((learner_action, opponent_action))
        outcome = result.outcome
        self._episode_ready = outcome is not None

        terminated = outcome is not None and outcome.kind is OutcomeKind.WIN
        truncated = outcome is not None and outcome.kind is OutcomeKind.DRAW
        info: Dict[str, Any] = dict(result.info)
        if outcome is not None:
            info["result"] = outcome.result_for(LEARNER_ID).value
            info["final_reward"] = outcome.final_rewards[LEARNER_ID]

        return (
            result.observations[LEARNER_ID],
            float(result.reward[LEARNER_ID]),
            terminated,
            truncated,
            info,
        )

    def close(self) -> None:
        self._episode_ready = False
        self._arena.close()


__all__ = ["BalloonDuelEnv"]
