"""Boucle headless de l'arène.

Ce module expose un environnement minimaliste pour piloter un duel via une
API `reset()` / `step()`. Un pas suit toujours le même ordre :

1. début de pas (rappels différés, dont la levée du verrou de fin de match) ;
2. actions des deux agents (boost) puis intégration cinématique ;
3. contacts murs, coups sur ballons, pickups ;
4. pénalités temporelles puis vérification des réserves et du timeout.

L'arène se remet à zéro d'elle-même à la fin d'un épisode : les observations
renvoyées avec `done=True` sont déjà celles du nouvel épisode.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Sequence, Tuple

import numpy as np

from balloon_duel.app.events import EpisodeEnded
from balloon_duel.engine.actions import ArenaAction
from balloon_duel.engine.config import ArenaConfig, EnvironmentParameters
from balloon_duel.engine.match import MatchController
from balloon_duel.engine.outcome import EpisodeOutcome
from balloon_duel.rl.features import build_observation
from balloon_duel.sim.physics import Obstacle, PlanarPhysics


@dataclass(frozen=True)
class StepResult:
    """Résultat d'un appel à HeadlessArenaEnv.step()."""

    observations: Tuple[np.ndarray, ...]
    reward: Tuple[float, ...]
    done: bool
    outcome: EpisodeOutcome | None
    info: Dict[str, Any]


class HeadlessArenaEnv:
    """Environnement headless léger pour un duel à deux agents."""

    def __init__(
        self,
        config: ArenaConfig | None = None,
        *,
        seed: int | None = None,
        parameters: EnvironmentParameters | None = None,
        obstacles: Sequence[Obstacle] = (),
    ) -> None:
        self._config = config if config is not None else ArenaConfig()
        self._base_seed = seed
        self._parameters = parameters if parameters is not None else EnvironmentParameters()
        self._physics = PlanarPhysics.from_config(
            self._config.with_overrides(self._parameters.snapshot()),
            obstacles=obstacles,
        )
        self._controller: MatchController | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._tick_outcome: EpisodeOutcome | None = None

    @property
    def controller(self) -> MatchController:
        """Contrôleur du match (reset doit avoir été appelé)."""

        if self._controller is None:
            raise RuntimeError("reset() doit être appelé avant d'accéder au match")
        return self._controller

    @property
    def physics(self) -> PlanarPhysics:
        return self._physics

    @property
    def parameters(self) -> EnvironmentParameters:
        return self._parameters

    def reset(self, *, seed: int | None = None) -> Tuple[np.ndarray, ...]:
        """Réinitialise l'arène et renvoie les observations initiales."""

        effective_seed = seed if seed is not None else self._base_seed
        if self._controller is None:
            self._controller = MatchController(
                self._config,
                parameters=self._parameters,
                overlap_query=self._physics.overlaps,
                on_configure=self._physics.configure,
                seed=effective_seed,
            )
            self._unsubscribe = self._controller.event_bus.subscribe(self._on_event)
        else:
            self._controller.reset(seed=effective_seed)
        self._tick_outcome = None
        return self.observations()

    def _on_event(self, event: object) -> None:
        if isinstance(event, EpisodeEnded):
            self._tick_outcome = event.outcome

    def observations(self) -> Tuple[np.ndarray, ...]:
        return tuple(build_observation(agent) for agent in self.controller.agents)

    def step(self, actions: Sequence[ArenaAction]) -> StepResult:
        """Applique une action par agent et renvoie le résultat du pas."""

        controller = self.controller
        agents = controller.agents
        if len(actions) != len(agents):
            raise ValueError(f"{len(agents)} actions attendues (reçu: {len(actions)})")

        self._tick_outcome = None
        controller.begin_tick()

        for agent, action in zip(agents, actions):
            controller.apply_action(agent.agent_id, action)

        report = self._physics.step(agents, actions, controller.active_pickup)
        for agent_id in report.wall_contacts:
            controller.handle_wall_contact(agent_id)
        for hit in report.token_hits:
            controller.handle_token_hit(hit.victim_id, hit.token_index, hit.attacker_id)
        for agent_id in report.pickup_contacts:
            controller.handle_pickup(agent_id)

        controller.apply_step_penalties()
        controller.advance_step()

        outcome = self._tick_outcome
        if outcome is not None:
            reward = outcome.final_step_rewards
        else:
            reward = tuple(agent.harvest_reward() for agent in agents)

        info = {
            "episode_index": controller.episode_index,
            "step": controller.step_count,
            "token_hits": len(report.token_hits),
            "wall_contacts": report.wall_contacts,
        }
        return StepResult(
            observations=self.observations(),
            reward=reward,
            done=outcome is not None,
            outcome=outcome,
            info=info,
        )

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._controller is not None:
            self._controller.close()
            self._controller = None


__all__ = ["HeadlessArenaEnv", "StepResult"]
