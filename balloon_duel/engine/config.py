"""Configuration de l'arène et paramètres d'environnement injectés.

Les sections sont des dataclasses immuables validées à la construction. Les
erreurs structurelles (capacité nulle, arène trop petite, ...) sont fatales ;
les valeurs simplement suspectes (plafond de pénalité positif, ...) sont
acceptées mais signalées dans les logs.
"""

from __future__ import annotations

import dataclasses
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Tuple

from balloon_duel.engine import rules

logger = logging.getLogger(__name__)


class ArenaConfigurationError(ValueError):
    """Erreur de configuration fatale détectée à l'initialisation."""


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ArenaConfigurationError(message)


@dataclass(frozen=True)
class MatchConfig:
    """Paramètres du cycle de vie d'un épisode."""

    max_environment_steps: int = rules.MAX_ENVIRONMENT_STEPS
    fixed_delta_time: float = rules.FIXED_DELTA_TIME
    win_flash_seconds: float = rules.WIN_FLASH_SECONDS

    def __post_init__(self) -> None:
        _require(
            self.max_environment_steps >= 0,
            f"max_environment_steps doit être positif ou nul (reçu: {self.max_environment_steps})",
        )
        _require(self.fixed_delta_time > 0, "fixed_delta_time doit être strictement positif")
        _require(self.win_flash_seconds >= 0, "win_flash_seconds doit être positif ou nul")

    @property
    def timeout_enabled(self) -> bool:
        return self.max_environment_steps > 0

    @property
    def win_flash_ticks(self) -> int:
        return max(1, round(self.win_flash_seconds / self.fixed_delta_time))


@dataclass(frozen=True)
class RewardConfig:
    """Magnitudes de récompense terminales et de shaping."""

    win_reward: float = rules.WIN_REWARD
    lose_reward: float = rules.LOSE_REWARD
    enforce_outcome_sign: bool = rules.ENFORCE_OUTCOME_SIGN
    min_winner_final_reward: float = rules.MIN_WINNER_FINAL_REWARD
    max_loser_final_reward: float = rules.MAX_LOSER_FINAL_REWARD
    token_pop_reward: float = rules.TOKEN_POP_REWARD
    token_pop_penalty: float = rules.TOKEN_POP_PENALTY
    token_restore_reward: float = rules.TOKEN_RESTORE_REWARD
    elimination_penalty: float = rules.ELIMINATION_PENALTY
    step_penalty: float = rules.STEP_PENALTY
    step_penalty_cap: float = rules.STEP_PENALTY_CAP
    wall_contact_penalty: float = rules.WALL_CONTACT_PENALTY
    wall_contact_penalty_cap: float = rules.WALL_CONTACT_PENALTY_CAP

    def __post_init__(self) -> None:
        for name in ("step_penalty_cap", "wall_contact_penalty_cap"):
            cap = getattr(self, name)
            if cap > 0:
                logger.warning(
                    "%s=%s est positif : la pénalité sera appliquée sans plafond "
                    "(probable erreur de configuration)",
                    name,
                    cap,
                )
        if self.enforce_outcome_sign:
            if self.min_winner_final_reward <= 0:
                logger.warning(
                    "min_winner_final_reward=%s n'est pas strictement positif",
                    self.min_winner_final_reward,
                )
            if self.max_loser_final_reward >= 0:
                logger.warning(
                    "max_loser_final_reward=%s n'est pas strictement négatif",
                    self.max_loser_final_reward,
                )


@dataclass(frozen=True)
class SpawnConfig:
    """Géométrie utilisée par `SpawnPlacer`."""

    half_size: float = rules.ARENA_HALF_SIZE
    wall_padding: float = rules.WALL_PADDING
    agent_radius: float = rules.AGENT_RADIUS
    agent_half_height: float = rules.AGENT_HALF_HEIGHT
    separation_margin: float = rules.SEPARATION_MARGIN
    spawn_area_fraction: float = rules.SPAWN_AREA_FRACTION
    spawn_tries: int = rules.SPAWN_TRIES
    floor_top_y: float = rules.FLOOR_TOP_Y
    skin_clearance: float = rules.SKIN_CLEARANCE
    vertical_resolve_tries: int = rules.VERTICAL_RESOLVE_TRIES
    vertical_resolve_step: float = rules.VERTICAL_RESOLVE_STEP

    def __post_init__(self) -> None:
        _require(
            self.half_size > self.wall_padding >= 0,
            f"half_size ({self.half_size}) doit dépasser wall_padding ({self.wall_padding})",
        )
        _require(self.agent_radius > 0, "agent_radius doit être strictement positif")
        _require(self.agent_half_height >= 0, "agent_half_height doit être positif ou nul")
        _require(self.separation_margin >= 0, "separation_margin doit être positif ou nul")
        _require(
            0 < self.spawn_area_fraction <= 1,
            f"spawn_area_fraction doit être dans ]0, 1] (reçu: {self.spawn_area_fraction})",
        )
        _require(self.spawn_tries >= 0, "spawn_tries doit être positif ou nul")
        _require(self.skin_clearance > 0, "skin_clearance doit être strictement positif")
        _require(self.vertical_resolve_tries >= 0, "vertical_resolve_tries doit être positif ou nul")
        _require(self.vertical_resolve_step > 0, "vertical_resolve_step doit être strictement positif")
        # Pire cas du repli du second agent : premier agent au centre, tous
        # les coins sont alors à sqrt(2) * extent.
        _require(
            self.min_fallback_distance >= self.required_separation(),
            "Les coins de repli sont plus proches que la séparation requise "
            f"({self.min_fallback_distance:.3f} < {self.required_separation():.3f})",
        )

    @property
    def spawn_limit(self) -> float:
        return (self.half_size - self.wall_padding) * self.spawn_area_fraction

    @property
    def corner_extent(self) -> float:
        return self.half_size - self.wall_padding

    @property
    def fallback_distance(self) -> float:
        """Distance entre les deux coins diagonaux de repli."""

        return 2.0 * math.sqrt(2.0) * self.corner_extent

    @property
    def min_fallback_distance(self) -> float:
        """Distance minimale garantie entre un agent et le coin de repli le plus éloigné."""

        return math.sqrt(2.0) * self.corner_extent

    @property
    def spawn_height(self) -> float:
        return self.floor_top_y + self.agent_half_height + self.skin_clearance

    def required_separation(self, radius_self: float | None = None, radius_peer: float | None = None) -> float:
        radius_self = self.agent_radius if radius_self is None else radius_self
        radius_peer = self.agent_radius if radius_peer is None else radius_peer
        return radius_self + radius_peer + self.separation_margin


@dataclass(frozen=True)
class AgentConfig:
    """Réserve de ballons et caractéristiques de déplacement d'un agent."""

    token_capacity: int = rules.TOKEN_CAPACITY
    initial_active: Tuple[bool, ...] | None = None
    move_speed: float = rules.MOVE_SPEED
    turn_speed: float = rules.TURN_SPEED
    boost_multiplier: float = rules.BOOST_MULTIPLIER
    boost_duration: float = rules.BOOST_DURATION
    boost_cooldown: float = rules.BOOST_COOLDOWN

    def __post_init__(self) -> None:
        _require(
            self.token_capacity > 0,
            f"token_capacity doit être strictement positif (reçu: {self.token_capacity})",
        )
        if self.initial_active is not None:
            _require(
                len(self.initial_active) == self.token_capacity,
                "initial_active doit contenir exactement token_capacity éléments",
            )
            _require(any(self.initial_active), "initial_active doit contenir au moins un ballon actif")
        _require(self.boost_multiplier >= 1, "boost_multiplier doit être >= 1")
        _require(self.boost_duration >= 0, "boost_duration doit être positif ou nul")
        _require(self.boost_cooldown >= 0, "boost_cooldown doit être positif ou nul")

    def initial_snapshot(self) -> Tuple[bool, ...]:
        if self.initial_active is None:
            return (True,) * self.token_capacity
        return tuple(bool(flag) for flag in self.initial_active)


@dataclass(frozen=True)
class PickupConfig:
    """Pickup restaurant un ballon (désactivé par défaut)."""

    pickup_enabled: bool = False
    heal_reward: float = rules.HEAL_REWARD
    zero_sum: bool = rules.PICKUP_ZERO_SUM
    pickup_respawn_seconds: float = rules.PICKUP_RESPAWN_SECONDS
    pickup_area_half_size: float = rules.PICKUP_AREA_HALF_SIZE
    pickup_radius: float = rules.PICKUP_RADIUS

    def __post_init__(self) -> None:
        _require(self.pickup_respawn_seconds >= 0, "pickup_respawn_seconds doit être positif ou nul")
        _require(self.pickup_area_half_size >= 0, "pickup_area_half_size doit être positif ou nul")
        _require(self.pickup_radius > 0, "pickup_radius doit être strictement positif")


# Alias historiques des paramètres d'environnement -> nom de champ.
_PARAMETER_ALIASES: Dict[str, str] = {
    "spawn_area_frac": "spawn_area_fraction",
}

_SECTION_TYPES: Dict[str, type] = {
    "match": MatchConfig,
    "rewards": RewardConfig,
    "spawn": SpawnConfig,
    "agent": AgentConfig,
    "pickup": PickupConfig,
}


@dataclass(frozen=True)
class ArenaConfig:
    """Configuration complète d'une arène."""

    match: MatchConfig = field(default_factory=MatchConfig)
    rewards: RewardConfig = field(default_factory=RewardConfig)
    spawn: SpawnConfig = field(default_factory=SpawnConfig)
    agent: AgentConfig = field(default_factory=AgentConfig)
    pickup: PickupConfig = field(default_factory=PickupConfig)

    def with_overrides(self, parameters: Mapping[str, Any]) -> "ArenaConfig":
        """Retourne une copie où les paramètres plats connus sont remplacés.

        Les clés correspondent aux noms de champs des sections (par exemple
        `max_environment_steps`, `win_reward`, `spawn_area_fraction`). Les clés
        inconnues sont ignorées et signalées.
        """

        if not parameters:
            return self

        updates: Dict[str, Dict[str, Any]] = {name: {} for name in _SECTION_TYPES}
        for raw_key, value in parameters.items():
            key = _PARAMETER_ALIASES.get(raw_key, raw_key)
            target = _field_owner(key)
            if target is None:
                logger.warning("Paramètre d'environnement inconnu ignoré: %s", raw_key)
                continue
            section_name, field_type = target
            updates[section_name][key] = _coerce(field_type, value)

        replacements = {
            name: dataclasses.replace(getattr(self, name), **values)
            for name, values in updates.items()
            if values
        }
        if not replacements:
            return self
        return dataclasses.replace(self, **replacements)


def _field_owner(key: str) -> Tuple[str, str] | None:
    for section_name, section_type in _SECTION_TYPES.items():
        for section_field in dataclasses.fields(section_type):
            if section_field.name == key and section_field.name != "initial_active":
                return section_name, str(section_field.type)
    return None


def _coerce(field_type: str, value: Any) -> Any:
    if field_type == "bool":
        return bool(value)
    if field_type == "int":
        return int(value)
    return float(value)


class EnvironmentParameters:
    """Paramètres injectés de l'extérieur (curriculum, sweeps...).

    Le contrôleur de match relit ces valeurs à chaque remise à zéro, ce qui
    permet au trainer de les modifier entre deux épisodes.
    """

    def __init__(self, initial: Mapping[str, float] | None = None) -> None:
        self._values: Dict[str, float] = dict(initial or {})

    def set(self, key: str, value: float) -> None:
        self._values[key] = value

    def unset(self, key: str) -> None:
        self._values.pop(key, None)

    def get_with_default(self, key: str, default: float) -> float:
        return self._values.get(key, default)

    def snapshot(self) -> Dict[str, float]:
        return dict(self._values)

    def __len__(self) -> int:
        return len(self._values)


__all__ = [
    "AgentConfig",
    "ArenaConfig",
    "ArenaConfigurationError",
    "EnvironmentParameters",
    "MatchConfig",
    "PickupConfig",
    "RewardConfig",
    "SpawnConfig",
]
