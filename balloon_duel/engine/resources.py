"""Réserve de ballons d'un agent.

Une `ResourcePool` possède un tableau de taille fixe de jetons (ballons)
actifs ou inactifs. Chaque transition de jeu est publiée sur le bus du groupe
d'agents ; la remise à zéro entre deux épisodes est silencieuse.

Invariant : `live_count` est toujours égal au nombre de jetons actifs et reste
dans `[0, capacity]`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from balloon_duel.app.event_bus import EventBus
from balloon_duel.app.events import AgentEliminated, TokenConsumed, TokenRestored
from balloon_duel.engine.config import ArenaConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class ResourceToken:
    """Un ballon : son emplacement et son état."""

    index: int
    active: bool = True


class ResourcePool:
    """Réserve de ballons appartenant à un seul agent."""

    def __init__(
        self,
        owner_id: int,
        initial_active: Iterable[bool],
        *,
        event_bus: EventBus | None,
    ) -> None:
        snapshot = tuple(bool(flag) for flag in initial_active)
        if not snapshot:
            raise ArenaConfigurationError("Une réserve de ballons doit avoir une capacité > 0")
        if event_bus is None:
            raise ArenaConfigurationError(
                f"Aucun bus d'évènements fourni pour la réserve de l'agent {owner_id}"
            )

        self._owner_id = owner_id
        self._event_bus = event_bus
        self._initial_snapshot: Tuple[bool, ...] = snapshot
        self._tokens: List[ResourceToken] = [
            ResourceToken(index=index, active=active) for index, active in enumerate(snapshot)
        ]
        self._live_count = sum(snapshot)
        self._elimination_fired = False

    @classmethod
    def with_capacity(
        cls,
        owner_id: int,
        capacity: int,
        *,
        event_bus: EventBus | None,
    ) -> "ResourcePool":
        """Crée une réserve pleine de `capacity` ballons."""

        if capacity <= 0:
            raise ArenaConfigurationError(
                f"capacity doit être strictement positif (reçu: {capacity})"
            )
        return cls(owner_id, (True,) * capacity, event_bus=event_bus)

    @property
    def owner_id(self) -> int:
        return self._owner_id

    @property
    def capacity(self) -> int:
        return len(self._tokens)

    @property
    def live_count(self) -> int:
        return self._live_count

    @property
    def normalized_count(self) -> float:
        return self._live_count / len(self._tokens)

    @property
    def is_depleted(self) -> bool:
        return self._live_count == 0

    @property
    def elimination_fired(self) -> bool:
        """True si `AgentEliminated` a déjà été publié pour cet épisode."""

        return self._elimination_fired

    @property
    def initial_snapshot(self) -> Tuple[bool, ...]:
        return self._initial_snapshot

    @property
    def tokens(self) -> Tuple[ResourceToken, ...]:
        """Copie des jetons (les modifier n'affecte pas la réserve)."""

        return tuple(ResourceToken(token.index, token.active) for token in self._tokens)

    def is_active(self, index: int) -> bool:
        return self._token(index).active

    def active_indices(self) -> Tuple[int, ...]:
        return tuple(token.index for token in self._tokens if token.active)

    def _token(self, index: int) -> ResourceToken:
        if not 0 <= index < len(self._tokens):
            raise IndexError(
                f"Ballon {index} hors de la réserve de l'agent {self._owner_id} "
                f"(capacité {len(self._tokens)})"
            )
        return self._tokens[index]

    def restore(self) -> bool:
        """Réactive le ballon inactif d'indice le plus bas.

        Returns:
            False si tous les ballons sont déjà actifs (aucun effet).
        """

        for token in self._tokens:
            if not token.active:
                token.active = True
                self._live_count += 1
                logger.debug("Agent %s: ballon %s restauré", self._owner_id, token.index)
                self._event_bus.publish(
                    TokenRestored(agent_id=self._owner_id, token_index=token.index)
                )
                return True
        return False

    def consume(self, index: int, attacker_id: int | None = None) -> bool:
        """Éclate le ballon `index`.

        Éclater un ballon déjà inactif est sans effet. Lorsque la réserve tombe
        à zéro, `AgentEliminated` est publié, au plus une fois par épisode.

        Returns:
            True si un ballon a effectivement été éclaté.
        """

        token = self._token(index)
        if not token.active:
            return False

        token.active = False
        self._live_count -= 1
        logger.debug(
            "Agent %s: ballon %s éclaté (attaquant=%s, restants=%s)",
            self._owner_id,
            index,
            attacker_id,
            self._live_count,
        )
        self._event_bus.publish(
            TokenConsumed(victim_id=self._owner_id, token_index=index, attacker_id=attacker_id)
        )

        if self._live_count == 0 and not self._elimination_fired:
            self._elimination_fired = True
            self._event_bus.publish(
                AgentEliminated(agent_id=self._owner_id, attacker_id=attacker_id)
            )
        return True

    def reset_to_initial(self) -> None:
        """Reconstruit l'état initial sans publier d'évènement."""

        for token, active in zip(self._tokens, self._initial_snapshot):
            token.active = active
        self._live_count = sum(1 for token in self._tokens if token.active)
        self._elimination_fired = False

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return (
            f"ResourcePool(owner={self._owner_id}, live={self._live_count}/"
            f"{len(self._tokens)})"
        )


__all__ = ["ResourcePool", "ResourceToken"]
