"""Résultat d'un épisode, transmis au trainer et au système de classement."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class OutcomeKind(Enum):
    """Nature de la fin d'épisode."""

    WIN = "WIN"
    DRAW = "DRAW"


class AgentResult(Enum):
    """Résultat vu depuis un agent donné."""

    WIN = "WIN"
    LOSS = "LOSS"
    DRAW = "DRAW"


@dataclass(frozen=True)
class EpisodeOutcome:
    """Signal de fin d'épisode.

    Args:
        episode_index: numéro de l'épisode (0 pour le premier)
        kind: victoire par élimination ou match nul (timeout)
        winner_id / loser_id: identifiants des agents (None en cas de nul)
        steps: nombre de pas écoulés dans l'épisode
        final_rewards: récompense cumulée finale de chaque agent, indexée par id
        final_step_rewards: part de récompense non encore récoltée au dernier pas
    """

    episode_index: int
    kind: OutcomeKind
    winner_id: int | None
    loser_id: int | None
    steps: int
    final_rewards: Tuple[float, ...]
    final_step_rewards: Tuple[float, ...]

    @property
    def is_draw(self) -> bool:
        return self.kind is OutcomeKind.DRAW

    def result_for(self, agent_id: int) -> AgentResult:
        """Retourne WIN / LOSS / DRAW pour l'agent demandé."""

        if self.kind is OutcomeKind.DRAW:
            return AgentResult.DRAW
        if agent_id == self.winner_id:
            return AgentResult.WIN
        if agent_id == self.loser_id:
            return AgentResult.LOSS
        raise ValueError(f"Agent inconnu pour cet épisode: {agent_id}")


__all__ = ["AgentResult", "EpisodeOutcome", "OutcomeKind"]
