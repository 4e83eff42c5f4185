"""Évènements publiés sur le bus d'un groupe d'agents.

Les évènements ne portent que des identifiants d'agents, jamais de référence
vers les objets eux-mêmes : les abonnés résolvent les identifiants via le
registre du `MatchController`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from balloon_duel.engine.outcome import EpisodeOutcome


@dataclass(frozen=True)
class TokenConsumed:
    """Émis lorsqu'un ballon actif d'un agent est éclaté."""

    victim_id: int
    token_index: int
    attacker_id: Optional[int] = None


@dataclass(frozen=True)
class TokenRestored:
    """Émis lorsqu'un ballon inactif est rendu à son agent."""

    agent_id: int
    token_index: int


@dataclass(frozen=True)
class AgentEliminated:
    """Émis une seule fois par épisode quand la réserve d'un agent tombe à zéro."""

    agent_id: int
    attacker_id: Optional[int] = None


RewardEvent = Union[TokenConsumed, TokenRestored, AgentEliminated]


@dataclass(frozen=True)
class EpisodeStarted:
    """Émis après chaque remise à zéro de la scène."""

    episode_index: int


@dataclass(frozen=True)
class EpisodeEnded:
    """Émis quand un épisode se termine (victoire ou nul)."""

    outcome: EpisodeOutcome
