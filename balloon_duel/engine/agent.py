"""Agent de l'arène : identité, réserve de ballons, récompenses et boost."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from balloon_duel.engine.actions import ArenaAction
from balloon_duel.engine.config import AgentConfig, ArenaConfigurationError
from balloon_duel.engine.geometry import Pose, Vec3
from balloon_duel.engine.resources import ResourcePool
from balloon_duel.engine.rewards import PenaltyAccumulator


@dataclass
class BoostState:
    """Minuteries du boost : durée active puis temps de recharge."""

    multiplier: float
    duration: float
    cooldown: float
    timer: float = 0.0
    cooldown_timer: float = 0.0

    @classmethod
    def from_config(cls, config: AgentConfig) -> "BoostState":
        return cls(
            multiplier=config.boost_multiplier,
            duration=config.boost_duration,
            cooldown=config.boost_cooldown,
        )

    @property
    def available(self) -> bool:
        return self.cooldown_timer <= 0

    @property
    def active(self) -> bool:
        return self.timer > 0

    def advance(self, requested: bool, dt: float) -> float:
        """Avance d'un pas et retourne le multiplicateur de vitesse du pas."""

        if requested and self.available:
            self.timer = self.duration
            self.cooldown_timer = self.cooldown

        multiplier = self.multiplier if self.timer > 0 else 1.0
        if self.timer > 0:
            self.timer -= dt
        if self.cooldown_timer > 0:
            self.cooldown_timer -= dt
        return multiplier

    def reset(self) -> None:
        self.timer = 0.0
        self.cooldown_timer = 0.0


class Agent:
    """Agent d'un duel.

    Créé une seule fois à la construction de l'arène, jamais détruit ; son état
    d'épisode (récompenses, accumulateurs, ballons, boost) est remis à zéro au
    début de chaque épisode.

    Args:
        agent_id: identifiant dans le registre du contrôleur
        team_id: équipe (0 ou 1)
        pool: réserve de ballons possédée par l'agent (obligatoire)
        step_penalty_cap / wall_penalty_cap: plafonds des pénalités
    """

    def __init__(
        self,
        agent_id: int,
        *,
        team_id: int,
        pool: ResourcePool | None,
        step_penalty_cap: float,
        wall_penalty_cap: float,
        boost: BoostState | None = None,
        name: str | None = None,
        radius: float = 1.0,
        team_material: str | None = None,
    ) -> None:
        if pool is None:
            raise ArenaConfigurationError(f"L'agent {agent_id} n'a pas de réserve de ballons")
        if pool.owner_id != agent_id:
            raise ArenaConfigurationError(
                f"La réserve de l'agent {pool.owner_id} ne peut pas être attribuée à l'agent {agent_id}"
            )

        self._agent_id = agent_id
        self._team_id = team_id
        self._name = name or f"Agent {agent_id}"
        self._pool = pool
        self._boost = boost if boost is not None else BoostState(multiplier=1.0, duration=0.0, cooldown=0.0)
        self.radius = radius
        self.team_material = team_material or f"team_{team_id}"

        self.step_penalty = PenaltyAccumulator(cap=step_penalty_cap)
        self.wall_penalty = PenaltyAccumulator(cap=wall_penalty_cap)

        self._cumulative_reward = 0.0
        self._pending_reward = 0.0
        self.alive = True

        self.pose = Pose(position=Vec3())
        self.velocity: Tuple[float, float] = (0.0, 0.0)
        self.speed_multiplier = 1.0

    @property
    def agent_id(self) -> int:
        return self._agent_id

    @property
    def team_id(self) -> int:
        return self._team_id

    @property
    def name(self) -> str:
        return self._name

    @property
    def pool(self) -> ResourcePool:
        return self._pool

    @property
    def boost(self) -> BoostState:
        return self._boost

    @property
    def cumulative_reward(self) -> float:
        return self._cumulative_reward

    @property
    def pending_reward(self) -> float:
        return self._pending_reward

    def add_reward(self, delta: float) -> None:
        self._cumulative_reward += delta
        self._pending_reward += delta

    def set_cumulative_reward(self, value: float) -> None:
        """Fixe exactement la récompense cumulée (la différence compte pour ce pas)."""

        self._pending_reward += value - self._cumulative_reward
        self._cumulative_reward = value

    def harvest_reward(self) -> float:
        """Retourne la récompense accumulée depuis la dernière récolte."""

        reward = self._pending_reward
        self._pending_reward = 0.0
        return reward

    def apply_action(self, action: ArenaAction, dt: float) -> float:
        """Traite la partie "capacité" de l'action (boost) pour ce pas."""

        self.speed_multiplier = self._boost.advance(action.boost, dt)
        return self.speed_multiplier

    def teleport(self, pose: Pose) -> None:
        self.pose = pose
        self.velocity = (0.0, 0.0)

    def reset_episode(self) -> None:
        self._pool.reset_to_initial()
        self._cumulative_reward = 0.0
        self._pending_reward = 0.0
        self.step_penalty.reset()
        self.wall_penalty.reset()
        self._boost.reset()
        self.alive = True
        self.velocity = (0.0, 0.0)
        self.speed_multiplier = 1.0

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return (
            f"Agent(id={self._agent_id}, team={self._team_id}, "
            f"balloons={self._pool.live_count}, reward={self._cumulative_reward:.3f})"
        )


__all__ = ["Agent", "BoostState"]
