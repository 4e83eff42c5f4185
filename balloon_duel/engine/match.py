"""Contrôleur de match : machine à états d'un duel et remise à zéro de l'arène.

États :

- `RUNNING` : le match se joue ; pénalités, coups sur ballons et pickups sont
  traités.
- `ENDING` : état transitoire d'un pas. Il est entré lorsqu'une réserve tombe
  à zéro (victoire) ou lorsque le compteur de pas atteint la limite (nul).
  Tant qu'il est actif, toute nouvelle entrée (collision tardive du pas
  terminal, pénalité, pickup) est ignorée. Le retour à `RUNNING` est planifié
  au début du pas suivant, sans condition.

La fin d'un épisode applique les récompenses terminales, publie le signal de
fin (`EpisodeEnded`) puis remet immédiatement la scène à zéro.
"""

from __future__ import annotations

import logging
import random
from enum import Enum
from typing import Callable, Dict, List, Sequence, Tuple

from balloon_duel.app.event_bus import EventBus
from balloon_duel.app.events import AgentEliminated, EpisodeEnded, EpisodeStarted
from balloon_duel.engine.actions import ArenaAction
from balloon_duel.engine.agent import Agent, BoostState
from balloon_duel.engine.config import ArenaConfig, EnvironmentParameters
from balloon_duel.engine.geometry import ArenaFrame
from balloon_duel.engine.outcome import EpisodeOutcome, OutcomeKind
from balloon_duel.engine.pickups import PickupSpawner, RestorePickup
from balloon_duel.engine.resources import ResourcePool
from balloon_duel.engine.rewards import RewardAccumulator
from balloon_duel.engine.scheduler import FloorFlash, TickScheduler
from balloon_duel.engine.spawn import OverlapQuery, SpawnPlacer, SpawnResult

logger = logging.getLogger(__name__)

AGENT_IDS: Tuple[int, int] = (0, 1)


class MatchState(Enum):
    """États du match."""

    RUNNING = "RUNNING"
    ENDING = "ENDING"


class MatchController:
    """Orchestre un duel entre deux agents.

    Le contrôleur possède les deux agents (et donc leurs réserves), l'état du
    match, le placement de spawn, l'horloge des rappels différés et le
    générateur de pickups. Le bus d'évènements appartient au groupe d'agents ;
    il est créé ici si aucun n'est fourni.

    Args:
        config: configuration de base de l'arène
        parameters: paramètres injectés, relus à chaque remise à zéro
        event_bus: bus du groupe d'agents
        overlap_query: requête de collision statique pour le spawn
        frame: repère de l'arène dans le monde
        scheduler: horloge des rappels différés (une par arène)
        on_configure: appelé avec la configuration effective à chaque remise à
            zéro, avant le placement (géométrie de la physique)
        seed: graine du générateur aléatoire (spawn, pickups)
        agent_names: noms des deux agents
    """

    def __init__(
        self,
        config: ArenaConfig | None = None,
        *,
        parameters: EnvironmentParameters | None = None,
        event_bus: EventBus | None = None,
        overlap_query: OverlapQuery | None = None,
        frame: ArenaFrame | None = None,
        scheduler: TickScheduler | None = None,
        on_configure: Callable[[ArenaConfig], None] | None = None,
        seed: int | None = None,
        agent_names: Sequence[str] | None = None,
    ) -> None:
        self._base_config = config if config is not None else ArenaConfig()
        self._parameters = parameters if parameters is not None else EnvironmentParameters()
        self._config = self._base_config.with_overrides(self._parameters.snapshot())
        self._event_bus = event_bus if event_bus is not None else EventBus()
        self._scheduler = scheduler if scheduler is not None else TickScheduler()
        self._random = random.Random(seed)
        self._on_configure = on_configure

        names = list(agent_names) if agent_names is not None else [f"Agent {i}" for i in AGENT_IDS]
        if len(names) != len(AGENT_IDS):
            raise ValueError("Un duel requiert exactement deux noms d'agents")

        agent_config = self._config.agent
        rewards_config = self._config.rewards
        self._agents: Dict[int, Agent] = {}
        for agent_id, name in zip(AGENT_IDS, names):
            pool = ResourcePool(
                agent_id,
                agent_config.initial_snapshot(),
                event_bus=self._event_bus,
            )
            self._agents[agent_id] = Agent(
                agent_id,
                team_id=agent_id,
                name=name,
                pool=pool,
                step_penalty_cap=rewards_config.step_penalty_cap,
                wall_penalty_cap=rewards_config.wall_contact_penalty_cap,
                boost=BoostState.from_config(agent_config),
                radius=self._config.spawn.agent_radius,
            )

        self._rewards = RewardAccumulator(rewards_config, resolve_agent=self.agent)
        self._placer = SpawnPlacer(
            self._config.spawn,
            overlap_query=overlap_query,
            frame=frame,
            rng=self._random,
        )
        self._floor = FloorFlash(self._scheduler)
        self._spawner = PickupSpawner(
            self._config.pickup,
            respawn_ticks=self._seconds_to_ticks(self._config.pickup.pickup_respawn_seconds),
            height=self._config.spawn.spawn_height,
            rng=self._random,
        )

        self._state = MatchState.RUNNING
        self._match_ending = False
        self._step_count = 0
        self._episode_index = -1
        self._eliminated_by: Dict[int, int | None] = {}
        self._last_outcome: EpisodeOutcome | None = None
        self._last_spawn: SpawnResult | None = None
        self._unsubscribers: List[Callable[[], None]] = []

        self._activate()
        self.reset()

    # ------------------------------------------------------------------
    # Cycle de vie des abonnements
    # ------------------------------------------------------------------
    def _activate(self) -> None:
        # Ordre : shaping d'abord, puis suivi des éliminations.
        self._rewards.attach(self._event_bus)
        self._unsubscribers.append(self._event_bus.subscribe(self._on_event))

    def close(self) -> None:
        """Détache tous les abonnés du bus (symétrique de l'activation)."""

        self._rewards.detach()
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        self._scheduler.cancel_all()

    def _on_event(self, event: object) -> None:
        if isinstance(event, AgentEliminated):
            self._agents[event.agent_id].alive = False
            self._eliminated_by[event.agent_id] = event.attacker_id

    # ------------------------------------------------------------------
    # Accès
    # ------------------------------------------------------------------
    @property
    def config(self) -> ArenaConfig:
        """Configuration effective de l'épisode courant."""

        return self._config

    @property
    def parameters(self) -> EnvironmentParameters:
        return self._parameters

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    @property
    def scheduler(self) -> TickScheduler:
        return self._scheduler

    @property
    def rewards(self) -> RewardAccumulator:
        return self._rewards

    @property
    def placer(self) -> SpawnPlacer:
        return self._placer

    @property
    def floor(self) -> FloorFlash:
        return self._floor

    @property
    def state(self) -> MatchState:
        return self._state

    @property
    def is_ending(self) -> bool:
        return self._match_ending

    @property
    def step_count(self) -> int:
        return self._step_count

    @property
    def episode_index(self) -> int:
        return self._episode_index

    @property
    def last_outcome(self) -> EpisodeOutcome | None:
        return self._last_outcome

    @property
    def last_spawn(self) -> SpawnResult | None:
        return self._last_spawn

    @property
    def agents(self) -> Tuple[Agent, ...]:
        return tuple(self._agents[agent_id] for agent_id in AGENT_IDS)

    def agent(self, agent_id: int) -> Agent:
        try:
            return self._agents[agent_id]
        except KeyError:
            raise KeyError(f"Agent inconnu: {agent_id}") from None

    def peer_of(self, agent_id: int) -> Agent:
        self.agent(agent_id)
        return self._agents[AGENT_IDS[1] if agent_id == AGENT_IDS[0] else AGENT_IDS[0]]

    @property
    def active_pickup(self) -> RestorePickup | None:
        if not self._config.pickup.pickup_enabled:
            return None
        return self._spawner.current

    def _seconds_to_ticks(self, seconds: float) -> int:
        return max(0, round(seconds / self._config.match.fixed_delta_time))

    # ------------------------------------------------------------------
    # Remise à zéro
    # ------------------------------------------------------------------
    def _reload_config(self) -> ArenaConfig:
        """Relit les paramètres injectés ; une valeur invalide garde la dernière configuration."""

        try:
            return self._base_config.with_overrides(self._parameters.snapshot())
        except (ValueError, TypeError) as exc:
            logger.warning(
                "Paramètres d'environnement invalides ignorés à la remise à zéro (%s) ; "
                "configuration précédente conservée",
                exc,
            )
            return self._config

    def reset(self, *, seed: int | None = None) -> SpawnResult:
        """Remet la scène à zéro : agents, placement et pickups."""

        if seed is not None:
            self._random.seed(seed)

        self._config = self._reload_config()
        if self._on_configure is not None:
            self._on_configure(self._config)
        self._rewards.configure(self._config.rewards)
        self._placer.configure(self._config.spawn)
        self._spawner.configure(
            self._config.pickup,
            respawn_ticks=self._seconds_to_ticks(self._config.pickup.pickup_respawn_seconds),
        )

        self._step_count = 0
        self._eliminated_by.clear()
        for agent in self._agents.values():
            agent.step_penalty.cap = self._config.rewards.step_penalty_cap
            agent.wall_penalty.cap = self._config.rewards.wall_contact_penalty_cap
            agent.radius = self._config.spawn.agent_radius
            agent.reset_episode()

        a, b = self.agents
        result = self._placer.place_pair(radii=(a.radius, b.radius), agent_ids=AGENT_IDS)
        a.teleport(result.poses[0])
        b.teleport(result.poses[1])
        self._last_spawn = result

        self._spawner.reset()
        self._episode_index += 1
        self._event_bus.publish(EpisodeStarted(episode_index=self._episode_index))
        return result

    # ------------------------------------------------------------------
    # Boucle de pas
    # ------------------------------------------------------------------
    def begin_tick(self) -> MatchState:
        """Début de pas : exécute les rappels échus (dont le retour à RUNNING)."""

        self._scheduler.advance()
        if not self._match_ending and self._config.pickup.pickup_enabled:
            self._spawner.tick()
        return self._state

    def apply_action(self, agent_id: int, action: ArenaAction) -> float:
        """Applique la partie logique de l'action (boost) ; retourne le multiplicateur de vitesse."""

        agent = self.agent(agent_id)
        if self._match_ending:
            return agent.speed_multiplier
        return agent.apply_action(action, self._config.match.fixed_delta_time)

    def apply_step_penalties(self) -> None:
        """Pénalité temporelle plafonnée pour chaque agent."""

        if self._match_ending:
            return
        for agent in self.agents:
            self._rewards.apply_step_penalty(agent)

    def handle_wall_contact(self, agent_id: int) -> float:
        if self._match_ending:
            return 0.0
        return self._rewards.apply_wall_penalty(self.agent(agent_id))

    def handle_token_hit(self, victim_id: int, token_index: int, attacker_id: int | None = None) -> bool:
        """Éclate un ballon de la victime ; termine le match si sa réserve est vide.

        Returns:
            True si un ballon a été éclaté.
        """

        if self._match_ending:
            return False
        if attacker_id == victim_id:
            logger.debug("Agent %s: coup sur son propre ballon ignoré", victim_id)
            return False

        victim = self.agent(victim_id)
        popped = victim.pool.consume(token_index, attacker_id)
        if popped:
            self._resolve_eliminations()
        return popped

    def handle_pickup(self, agent_id: int) -> bool:
        """Tente de faire collecter le pickup courant par l'agent."""

        if self._match_ending:
            return False
        pickup = self.active_pickup
        if pickup is None:
            return False
        return pickup.try_collect(self.agent(agent_id), self.peer_of(agent_id))

    def advance_step(self) -> EpisodeOutcome | None:
        """Fin de pas : vérifie les réserves puis la limite de pas."""

        if self._match_ending:
            return None

        outcome = self._resolve_eliminations()
        if outcome is not None:
            return outcome

        self._step_count += 1
        match_config = self._config.match
        if match_config.timeout_enabled and self._step_count >= match_config.max_environment_steps:
            return self.end_match_draw()
        return None

    def _resolve_eliminations(self) -> EpisodeOutcome | None:
        for loser in self.agents:
            if not loser.pool.is_depleted:
                continue
            attacker_id = self._eliminated_by.get(loser.agent_id)
            winner = self.agent(attacker_id) if attacker_id is not None else self.peer_of(loser.agent_id)
            return self.end_match_win(winner.agent_id, loser.agent_id)
        return None

    # ------------------------------------------------------------------
    # Fin d'épisode
    # ------------------------------------------------------------------
    def end_match_win(self, winner_id: int, loser_id: int) -> EpisodeOutcome | None:
        """Termine le match sur une victoire ; sans effet si une fin est déjà en cours."""

        if self._match_ending:
            return None
        if winner_id == loser_id:
            raise ValueError("Le gagnant et le perdant doivent être distincts")
        winner = self.agent(winner_id)
        loser = self.agent(loser_id)
        self._enter_ending()

        self._rewards.finalize_win(winner, loser)
        self._floor.flash(winner.team_material, self._config.match.win_flash_ticks)
        return self._finish_episode(OutcomeKind.WIN, winner_id, loser_id)

    def end_match_draw(self) -> EpisodeOutcome | None:
        """Termine le match sur un nul (timeout) ; les deux récompenses sont ramenées à 0."""

        if self._match_ending:
            return None
        self._enter_ending()

        a, b = self.agents
        self._rewards.finalize_draw(a, b)
        return self._finish_episode(OutcomeKind.DRAW, None, None)

    def _enter_ending(self) -> None:
        self._match_ending = True
        self._state = MatchState.ENDING

    def _finish_episode(
        self,
        kind: OutcomeKind,
        winner_id: int | None,
        loser_id: int | None,
    ) -> EpisodeOutcome:
        agents = self.agents
        outcome = EpisodeOutcome(
            episode_index=self._episode_index,
            kind=kind,
            winner_id=winner_id,
            loser_id=loser_id,
            steps=self._step_count,
            final_rewards=tuple(agent.cumulative_reward for agent in agents),
            final_step_rewards=tuple(agent.harvest_reward() for agent in agents),
        )
        self._last_outcome = outcome
        # Planifié avant la publication et la remise à zéro : le verrou est
        # levé au pas suivant même si l'une des deux lève une exception.
        self._scheduler.call_later(1, self._clear_match_ending)
        logger.info(
            "Épisode %s terminé: %s (gagnant=%s) en %s pas, récompenses=%s",
            outcome.episode_index,
            kind.value,
            winner_id,
            outcome.steps,
            outcome.final_rewards,
        )
        self._event_bus.publish(EpisodeEnded(outcome=outcome))

        self.reset()
        return outcome

    def _clear_match_ending(self) -> None:
        self._match_ending = False
        self._state = MatchState.RUNNING


__all__ = ["AGENT_IDS", "MatchController", "MatchState"]
