"""Politiques de base pour la simulation et l'évaluation self-play."""

from __future__ import annotations

import math
import random
from typing import Optional

from balloon_duel.engine.actions import IDLE_ACTION, ArenaAction
from balloon_duel.engine.match import MatchController


class AgentPolicy:
    """Interface minimale utilisée par la simulation headless."""

    def __init__(self, *, name: str | None = None) -> None:
        self._name = name or self.__class__.__name__

    @property
    def name(self) -> str:
        return self._name

    def select_action(self, match: MatchController, agent_id: int) -> ArenaAction:
        raise NotImplementedError


class IdlePolicy(AgentPolicy):
    """Ne fait rien : utile pour tester le timeout et les nuls."""

    def __init__(self) -> None:
        super().__init__(name="Idle")

    def select_action(self, match: MatchController, agent_id: int) -> ArenaAction:
        return IDLE_ACTION


class RandomPolicy(AgentPolicy):
    """Signaux continus uniformes, boost demandé avec une faible probabilité."""

    def __init__(
        self,
        *,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
        boost_probability: float = 0.05,
    ) -> None:
        super().__init__(name="Random")
        self._random = rng or random.Random(seed)
        self._boost_probability = boost_probability

    def select_action(self, match: MatchController, agent_id: int) -> ArenaAction:
        return ArenaAction(
            move=self._random.uniform(-1.0, 1.0),
            turn=self._random.uniform(-1.0, 1.0),
            boost=self._random.random() < self._boost_probability,
        )


class ChaserPolicy(AgentPolicy):
    """Heuristique : viser l'arrière de l'adversaire, là où pendent ses ballons.

    L'agent tourne vers le point situé derrière l'adversaire, avance d'autant
    plus franchement qu'il est bien aligné et déclenche le boost quand la cible
    est loin.
    """

    def __init__(
        self,
        *,
        aim_tolerance: float = 30.0,
        boost_distance: float = 6.0,
        name: str | None = None,
    ) -> None:
        super().__init__(name=name or "Chaser")
        self._aim_tolerance = aim_tolerance
        self._boost_distance = boost_distance

    def select_action(self, match: MatchController, agent_id: int) -> ArenaAction:
        me = match.agent(agent_id)
        opponent = match.peer_of(agent_id)

        ofx, ofz = opponent.pose.forward
        target_x = opponent.pose.position.x - ofx * opponent.radius
        target_z = opponent.pose.position.z - ofz * opponent.radius
        dx = target_x - me.pose.position.x
        dz = target_z - me.pose.position.z
        distance = math.hypot(dx, dz)

        target_yaw = math.degrees(math.atan2(dx, dz)) % 360.0
        diff = (target_yaw - me.pose.yaw + 180.0) % 360.0 - 180.0

        turn = max(-1.0, min(1.0, diff / self._aim_tolerance))
        move = 1.0 if abs(diff) < 2 * self._aim_tolerance else 0.3
        boost = distance > self._boost_distance and me.boost.available
        return ArenaAction(move=move, turn=turn, boost=boost)


__all__ = ["AgentPolicy", "ChaserPolicy", "IdlePolicy", "RandomPolicy"]
