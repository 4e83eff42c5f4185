"""Comptabilité des récompenses : shaping plafonné et issue terminale.

Deux garanties structurent ce module :

- une pénalité de shaping plafonnée ne peut jamais descendre sous son
  plafond, quel que soit le nombre d'évènements dans l'épisode ;
- avec l'imposition du signe activée, le gagnant termine toujours avec une
  récompense cumulée strictement positive et le perdant strictement négative,
  pour que le classement ELO du self-play ne puisse pas être inversé par le
  shaping.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Tuple

from balloon_duel.app.event_bus import EventBus
from balloon_duel.app.events import AgentEliminated, TokenConsumed, TokenRestored
from balloon_duel.engine.config import ArenaConfigurationError, RewardConfig

if TYPE_CHECKING:
    from balloon_duel.engine.agent import Agent


def apply_capped_penalty(magnitude: float, accumulator: float, cap: float) -> Tuple[float, float]:
    """Calcule le delta de récompense d'une pénalité plafonnée.

    Args:
        magnitude: pénalité par évènement (négative en usage normal)
        accumulator: total déjà appliqué dans l'épisode
        cap: plancher du total (négatif) ; 0 désactive, positif = sans plafond

    Returns:
        (delta, nouvel accumulateur)
    """

    if cap == 0 or magnitude == 0:
        return 0.0, accumulator
    if cap > 0:
        return magnitude, accumulator + magnitude
    if accumulator <= cap:
        return 0.0, accumulator

    remaining = cap - accumulator
    if magnitude <= remaining:
        # Le plafond est atteint : on s'y arrête exactement.
        return remaining, cap
    return magnitude, max(accumulator + magnitude, cap)


@dataclass
class PenaltyAccumulator:
    """Accumulateur d'une catégorie de pénalité pour un épisode."""

    cap: float
    value: float = 0.0

    def apply(self, magnitude: float) -> float:
        delta, self.value = apply_capped_penalty(magnitude, self.value, self.cap)
        return delta

    @property
    def exhausted(self) -> bool:
        return self.cap < 0 and self.value <= self.cap

    def reset(self) -> None:
        self.value = 0.0


def apply_terminal_outcome(
    winner: "Agent",
    loser: "Agent",
    *,
    win_reward: float,
    lose_reward: float,
    enforce_sign: bool,
    min_winner_final: float,
    max_loser_final: float,
) -> None:
    """Applique les récompenses de fin de match puis impose leur signe."""

    winner.add_reward(win_reward)
    loser.add_reward(lose_reward)

    if not enforce_sign:
        return

    if winner.cumulative_reward <= 0:
        winner.set_cumulative_reward(min_winner_final)
    if loser.cumulative_reward >= 0:
        loser.set_cumulative_reward(max_loser_final)


def apply_draw_outcome(agent_a: "Agent", agent_b: "Agent") -> None:
    """Neutralise les deux récompenses cumulées : un nul ne favorise personne."""

    agent_a.set_cumulative_reward(0.0)
    agent_b.set_cumulative_reward(0.0)


def apply_zero_sum(beneficiary: "Agent", opponent: "Agent", reward: float) -> None:
    """+reward pour le bénéficiaire, -reward pour l'adversaire, en un seul geste."""

    beneficiary.add_reward(reward)
    opponent.add_reward(-reward)


class RewardAccumulator:
    """Convertit les évènements du groupe d'agents en récompenses bornées.

    Les agents sont résolus par identifiant via `resolve_agent` (registre du
    contrôleur de match) : aucun pointeur vers les agents n'est conservé.
    """

    def __init__(
        self,
        config: RewardConfig,
        *,
        resolve_agent: Callable[[int], "Agent"],
    ) -> None:
        self._config = config
        self._resolve_agent = resolve_agent
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def config(self) -> RewardConfig:
        return self._config

    def configure(self, config: RewardConfig) -> None:
        """Remplace les magnitudes (relues à chaque remise à zéro)."""

        self._config = config

    @property
    def attached(self) -> bool:
        return self._unsubscribe is not None

    def attach(self, event_bus: EventBus | None) -> None:
        if event_bus is None:
            raise ArenaConfigurationError("RewardAccumulator requiert un bus d'évènements")
        if self._unsubscribe is not None:
            raise RuntimeError("RewardAccumulator est déjà abonné à un bus")
        self._unsubscribe = event_bus.subscribe(self.handle_event)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def handle_event(self, event: object) -> None:
        config = self._config
        if isinstance(event, TokenConsumed):
            if event.attacker_id is not None:
                self._resolve_agent(event.attacker_id).add_reward(config.token_pop_reward)
            self._resolve_agent(event.victim_id).add_reward(config.token_pop_penalty)
        elif isinstance(event, TokenRestored):
            if config.token_restore_reward:
                self._resolve_agent(event.agent_id).add_reward(config.token_restore_reward)
        elif isinstance(event, AgentEliminated):
            if config.elimination_penalty:
                self._resolve_agent(event.agent_id).add_reward(config.elimination_penalty)

    def apply_step_penalty(self, agent: "Agent") -> float:
        delta = agent.step_penalty.apply(self._config.step_penalty)
        if delta:
            agent.add_reward(delta)
        return delta

    def apply_wall_penalty(self, agent: "Agent") -> float:
        delta = agent.wall_penalty.apply(self._config.wall_contact_penalty)
        if delta:
            agent.add_reward(delta)
        return delta

    def finalize_win(self, winner: "Agent", loser: "Agent") -> None:
        config = self._config
        apply_terminal_outcome(
            winner,
            loser,
            win_reward=config.win_reward,
            lose_reward=config.lose_reward,
            enforce_sign=config.enforce_outcome_sign,
            min_winner_final=config.min_winner_final_reward,
            max_loser_final=config.max_loser_final_reward,
        )

    def finalize_draw(self, agent_a: "Agent", agent_b: "Agent") -> None:
        apply_draw_outcome(agent_a, agent_b)


__all__ = [
    "PenaltyAccumulator",
    "RewardAccumulator",
    "apply_capped_penalty",
    "apply_draw_outcome",
    "apply_terminal_outcome",
    "apply_zero_sum",
]
