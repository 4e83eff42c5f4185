"""Pickups restaurant un ballon, et leur générateur périodique."""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING

from balloon_duel.engine.config import PickupConfig
from balloon_duel.engine.geometry import Vec3
from balloon_duel.engine.rewards import apply_zero_sum

if TYPE_CHECKING:
    from balloon_duel.engine.agent import Agent

logger = logging.getLogger(__name__)


class RestorePickup:
    """Pickup à usage unique rendant un ballon à l'agent qui le touche.

    Le pickup n'est consommé que si un ballon a réellement été restauré ; la
    récompense est alors appliquée, à somme nulle contre l'adversaire si
    `zero_sum` est actif. Tout déclenchement ultérieur est sans effet.
    """

    def __init__(self, position: Vec3, *, heal_reward: float, zero_sum: bool = True) -> None:
        self.position = position
        self.heal_reward = heal_reward
        self.zero_sum = zero_sum
        self._consumed = False

    @property
    def consumed(self) -> bool:
        return self._consumed

    def try_collect(self, collector: "Agent", opponent: "Agent | None") -> bool:
        if self._consumed:
            return False
        if not collector.pool.restore():
            return False

        self._consumed = True
        if self.zero_sum and opponent is not None:
            apply_zero_sum(collector, opponent, self.heal_reward)
        else:
            collector.add_reward(self.heal_reward)
        logger.debug("Pickup collecté par l'agent %s", collector.agent_id)
        return True


class PickupSpawner:
    """Fait réapparaître un `RestorePickup` après un temps de recharge."""

    def __init__(
        self,
        config: PickupConfig,
        *,
        respawn_ticks: int,
        height: float = 0.0,
        rng: random.Random | None = None,
    ) -> None:
        if respawn_ticks < 0:
            raise ValueError("respawn_ticks doit être positif ou nul")
        self._config = config
        self._respawn_ticks = respawn_ticks
        self._height = height
        self._random = rng or random.Random()
        self._current: RestorePickup | None = None
        self._cooldown = 0

    def configure(self, config: PickupConfig, *, respawn_ticks: int | None = None) -> None:
        """Remplace la configuration (prise en compte au prochain pickup)."""

        self._config = config
        if respawn_ticks is not None:
            self._respawn_ticks = respawn_ticks

    @property
    def current(self) -> RestorePickup | None:
        """Pickup disponible, ou None pendant la recharge."""

        if self._current is not None and self._current.consumed:
            return None
        return self._current

    @property
    def cooldown(self) -> int:
        return self._cooldown

    def tick(self) -> RestorePickup | None:
        """Avance la recharge ; retourne le pickup créé à ce pas, s'il y en a un."""

        if self._current is not None:
            if not self._current.consumed:
                return None
            self._current = None
            self._cooldown = self._respawn_ticks

        if self._cooldown > 0:
            self._cooldown -= 1
            return None
        return self._spawn()

    def _spawn(self) -> RestorePickup:
        half = self._config.pickup_area_half_size
        position = Vec3(
            self._random.uniform(-half, half),
            self._height,
            self._random.uniform(-half, half),
        )
        self._current = RestorePickup(
            position,
            heal_reward=self._config.heal_reward,
            zero_sum=self._config.zero_sum,
        )
        return self._current

    def reset(self) -> None:
        self._current = None
        self._cooldown = 0


__all__ = ["PickupSpawner", "RestorePickup"]
