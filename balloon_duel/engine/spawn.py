"""Placement des deux agents au début d'un épisode.

Algorithme par échantillonnage avec rejet :

1. tirer un point uniforme dans `[-limit, limit]²` (repère local de l'arène) ;
2. rejeter s'il est trop proche de l'agent déjà placé ;
3. le hisser à `floor_top_y + half_height + skin_clearance` ;
4. rejeter si une requête de collision (hors agents) signale un chevauchement.

Si aucun candidat n'est retenu, un coin diagonal déterministe est utilisé :
le placement termine toujours. Une passe verticale corrige ensuite un
éventuel chevauchement résiduel en remontant l'agent par petits pas.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Callable, Sequence, Tuple

from balloon_duel.engine.config import SpawnConfig
from balloon_duel.engine.geometry import ArenaFrame, Pose, Vec3

logger = logging.getLogger(__name__)

# (position monde, rayon, identifiants d'agents ignorés) -> True si bloqué
OverlapQuery = Callable[[Vec3, float, Tuple[int, ...]], bool]


def no_obstacles(position: Vec3, radius: float, exclude: Tuple[int, ...]) -> bool:
    """Requête de collision d'une arène vide."""

    return False


@dataclass(frozen=True)
class SpawnResult:
    """Poses retenues pour les deux agents."""

    poses: Tuple[Pose, Pose]
    local_positions: Tuple[Vec3, Vec3]
    used_fallback: Tuple[bool, bool]


class SpawnPlacer:
    """Calcule des poses de départ sans chevauchement."""

    def __init__(
        self,
        config: SpawnConfig,
        *,
        overlap_query: OverlapQuery | None = None,
        frame: ArenaFrame | None = None,
        rng: random.Random | None = None,
        seed: int | None = None,
    ) -> None:
        self._config = config
        self._overlap_query = overlap_query or no_obstacles
        self._frame = frame if frame is not None else ArenaFrame()
        self._random = rng or random.Random(seed)

    @property
    def config(self) -> SpawnConfig:
        return self._config

    @property
    def frame(self) -> ArenaFrame:
        return self._frame

    def configure(self, config: SpawnConfig) -> None:
        self._config = config

    def seed(self, seed: int | None) -> None:
        self._random.seed(seed)

    def sample_local(self) -> Vec3:
        limit = self._config.spawn_limit
        x = self._random.uniform(-limit, limit)
        z = self._random.uniform(-limit, limit)
        return Vec3(x, self._config.spawn_height, z)

    def _is_blocked(self, local: Vec3, radius: float, exclude: Tuple[int, ...]) -> bool:
        return self._overlap_query(self._frame.to_world(local), radius, exclude)

    def fallback_local(
        self,
        slot: int,
        *,
        peer_local: Vec3 | None = None,
        radius_self: float | None = None,
        radius_peer: float | None = None,
    ) -> Vec3:
        """Coin de repli du slot (diagonale opposée pour l'autre agent)."""

        extent = self._config.corner_extent
        height = self._config.spawn_height
        sign = -1.0 if slot == 0 else 1.0
        corner = Vec3(sign * extent, height, sign * extent)

        if peer_local is None:
            return corner
        required = self._config.required_separation(radius_self, radius_peer)
        if corner.planar_distance(peer_local) >= required:
            return corner

        # Le premier agent occupe déjà ce coin : prendre le coin le plus éloigné.
        corners = [
            Vec3(sx * extent, height, sz * extent)
            for sx in (-1.0, 1.0)
            for sz in (-1.0, 1.0)
        ]
        return max(corners, key=lambda candidate: candidate.planar_distance(peer_local))

    def find_spawn_local(
        self,
        slot: int,
        *,
        peer_local: Vec3 | None = None,
        radius_self: float | None = None,
        radius_peer: float | None = None,
        exclude: Tuple[int, ...] = (),
    ) -> Tuple[Vec3, bool]:
        """Cherche une position locale pour un agent.

        Returns:
            (position locale, True si le repli déterministe a été utilisé)
        """

        config = self._config
        radius = config.agent_radius if radius_self is None else radius_self
        required = config.required_separation(radius_self, radius_peer)

        for _ in range(config.spawn_tries):
            candidate = self.sample_local()
            if peer_local is not None and candidate.planar_distance(peer_local) < required:
                continue
            if self._is_blocked(candidate, radius, exclude):
                continue
            return candidate, False

        logger.debug("Spawn slot %s: %s essais épuisés, repli sur un coin", slot, config.spawn_tries)
        fallback = self.fallback_local(
            slot,
            peer_local=peer_local,
            radius_self=radius_self,
            radius_peer=radius_peer,
        )
        return fallback, True

    def resolve_vertical(self, local: Vec3, radius: float, exclude: Tuple[int, ...] = ()) -> Vec3:
        """Remonte la position tant qu'un chevauchement subsiste (essais bornés)."""

        step = self._config.vertical_resolve_step
        for _ in range(self._config.vertical_resolve_tries):
            if not self._is_blocked(local, radius, exclude):
                break
            local = local.with_y(local.y + step)
        return local

    def sample_yaw(self) -> float:
        return self._random.random() * 360.0

    def place_pair(
        self,
        *,
        radii: Sequence[float] | None = None,
        agent_ids: Tuple[int, int] = (0, 1),
    ) -> SpawnResult:
        """Place deux agents : le second est contraint par la position du premier."""

        radius_a, radius_b = radii if radii is not None else (self._config.agent_radius,) * 2
        exclude = tuple(agent_ids)

        local_a, fallback_a = self.find_spawn_local(
            0, radius_self=radius_a, radius_peer=radius_b, exclude=exclude
        )
        local_b, fallback_b = self.find_spawn_local(
            1,
            peer_local=local_a,
            radius_self=radius_b,
            radius_peer=radius_a,
            exclude=exclude,
        )

        local_a = self.resolve_vertical(local_a, radius_a, exclude)
        local_b = self.resolve_vertical(local_b, radius_b, exclude)

        poses = (
            Pose(self._frame.to_world(local_a), self._frame.yaw_to_world(self.sample_yaw())),
            Pose(self._frame.to_world(local_b), self._frame.yaw_to_world(self.sample_yaw())),
        )
        return SpawnResult(
            poses=poses,
            local_positions=(local_a, local_b),
            used_fallback=(fallback_a, fallback_b),
        )


__all__ = ["OverlapQuery", "SpawnPlacer", "SpawnResult", "no_obstacles"]
