"""Collaborateur cinématique plan minimal.

Ce module n'est pas un moteur physique : il intègre les signaux d'avance et de
rotation dans le plan, borne les agents aux murs et rapporte les occurrences
dont le moteur de jeu a besoin (coups de pique sur ballon, contacts murs,
pickups). Le contrôleur de match ne voit que `PhysicsReport`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from balloon_duel.engine.actions import ArenaAction
from balloon_duel.engine.agent import Agent
from balloon_duel.engine.config import ArenaConfig
from balloon_duel.engine.geometry import Pose, Vec3, forward_vector
from balloon_duel.engine.pickups import RestorePickup


@dataclass(frozen=True)
class Obstacle:
    """Obstacle statique circulaire (repère monde)."""

    x: float
    z: float
    radius: float


@dataclass(frozen=True)
class TokenHit:
    """La pique de `attacker_id` touche le ballon `token_index` de `victim_id`."""

    victim_id: int
    token_index: int
    attacker_id: int


@dataclass(frozen=True)
class PhysicsReport:
    """Occurrences collectées pendant un pas."""

    token_hits: Tuple[TokenHit, ...] = ()
    wall_contacts: Tuple[int, ...] = ()
    pickup_contacts: Tuple[int, ...] = ()


class PlanarPhysics:
    """Intégration plane des déplacements et détection des contacts."""

    def __init__(
        self,
        *,
        half_size: float,
        agent_radius: float,
        dt: float,
        move_speed: float,
        turn_speed: float,
        pickup_radius: float = 0.5,
        drag: float = 0.8,
        spike_reach: float | None = None,
        balloon_offset: float | None = None,
        balloon_spread: float = 0.5,
        balloon_radius: float = 0.45,
        wall_clearance: float | None = None,
        obstacles: Sequence[Obstacle] = (),
    ) -> None:
        if not 0 <= drag < 1:
            raise ValueError("drag doit être dans [0, 1[")
        self.half_size = half_size
        self.agent_radius = agent_radius
        self.dt = dt
        self.move_speed = move_speed
        self.turn_speed = turn_speed
        self.pickup_radius = pickup_radius
        self.drag = drag
        self._spike_reach = spike_reach
        self._balloon_offset = balloon_offset
        self.wall_clearance = agent_radius if wall_clearance is None else wall_clearance
        self.balloon_spread = balloon_spread
        self.balloon_radius = balloon_radius
        self.obstacles = tuple(obstacles)

    @classmethod
    def from_config(cls, config: ArenaConfig, **kwargs: object) -> "PlanarPhysics":
        """Construit la physique sur la géométrie de l'arène.

        Le centre d'un agent est borné à `half_size - wall_padding`, la même
        limite que les coins de repli du spawn.
        """

        return cls(
            half_size=config.spawn.half_size,
            agent_radius=config.spawn.agent_radius,
            dt=config.match.fixed_delta_time,
            move_speed=config.agent.move_speed,
            turn_speed=config.agent.turn_speed,
            pickup_radius=config.pickup.pickup_radius,
            wall_clearance=config.spawn.wall_padding,
            **kwargs,  # type: ignore[arg-type]
        )

    def configure(self, config: ArenaConfig) -> None:
        """Relit la géométrie et les vitesses (appelé à chaque remise à zéro)."""

        self.half_size = config.spawn.half_size
        self.agent_radius = config.spawn.agent_radius
        self.wall_clearance = config.spawn.wall_padding
        self.dt = config.match.fixed_delta_time
        self.move_speed = config.agent.move_speed
        self.turn_speed = config.agent.turn_speed
        self.pickup_radius = config.pickup.pickup_radius

    @property
    def spike_reach(self) -> float:
        return self.agent_radius * 1.5 if self._spike_reach is None else self._spike_reach

    @property
    def balloon_offset(self) -> float:
        return self.agent_radius if self._balloon_offset is None else self._balloon_offset

    @property
    def wall_limit(self) -> float:
        """Coordonnée maximale (en valeur absolue) du centre d'un agent."""

        return self.half_size - self.wall_clearance

    # ------------------------------------------------------------------
    # Requêtes géométriques
    # ------------------------------------------------------------------
    def overlaps(self, position: Vec3, radius: float, exclude: Tuple[int, ...] = ()) -> bool:
        """Requête de collision statique : murs et obstacles (jamais les agents)."""

        # Un corps plus large que l'agent de référence s'arrête plus tôt.
        limit = self.wall_limit - (radius - self.agent_radius)
        if abs(position.x) > limit or abs(position.z) > limit:
            return True
        for obstacle in self.obstacles:
            if math.hypot(position.x - obstacle.x, position.z - obstacle.z) < radius + obstacle.radius:
                return True
        return False

    def spike_tip(self, agent: Agent) -> Tuple[float, float]:
        fx, fz = agent.pose.forward
        position = agent.pose.position
        return position.x + fx * self.spike_reach, position.z + fz * self.spike_reach

    def balloon_position(self, agent: Agent, index: int) -> Tuple[float, float]:
        """Position (x, z) du ballon `index`, accroché derrière l'agent."""

        fx, fz = agent.pose.forward
        rx, rz = fz, -fx
        lateral = (index - (agent.pool.capacity - 1) / 2.0) * self.balloon_spread
        position = agent.pose.position
        return (
            position.x - fx * self.balloon_offset + rx * lateral,
            position.z - fz * self.balloon_offset + rz * lateral,
        )

    # ------------------------------------------------------------------
    # Pas de simulation
    # ------------------------------------------------------------------
    def _integrate(self, agent: Agent, action: ArenaAction) -> bool:
        yaw = (agent.pose.yaw + action.turn * self.turn_speed * self.dt) % 360.0
        fx, fz = forward_vector(yaw)
        speed = action.move * self.move_speed * agent.speed_multiplier
        vx, vz = agent.velocity
        vx = self.drag * vx + (1.0 - self.drag) * fx * speed
        vz = self.drag * vz + (1.0 - self.drag) * fz * speed

        position = agent.pose.position
        x = position.x + vx * self.dt
        z = position.z + vz * self.dt

        touched_wall = False
        limit = self.wall_limit
        if abs(x) > limit:
            x = math.copysign(limit, x)
            vx = 0.0
            touched_wall = True
        if abs(z) > limit:
            z = math.copysign(limit, z)
            vz = 0.0
            touched_wall = True

        for obstacle in self.obstacles:
            dx, dz = x - obstacle.x, z - obstacle.z
            distance = math.hypot(dx, dz)
            minimum = self.agent_radius + obstacle.radius
            if distance < minimum:
                if distance == 0:
                    dx, dz, distance = 1.0, 0.0, 1.0
                x = obstacle.x + dx / distance * minimum
                z = obstacle.z + dz / distance * minimum
                vx, vz = 0.0, 0.0

        agent.pose = Pose(Vec3(x, position.y, z), yaw)
        agent.velocity = (vx, vz)
        return touched_wall

    def step(
        self,
        agents: Sequence[Agent],
        actions: Sequence[ArenaAction],
        pickup: RestorePickup | None = None,
    ) -> PhysicsReport:
        if len(agents) != len(actions):
            raise ValueError("Une action par agent est requise")

        wall_contacts: List[int] = []
        for agent, action in zip(agents, actions):
            if self._integrate(agent, action):
                wall_contacts.append(agent.agent_id)

        token_hits: List[TokenHit] = []
        for attacker in agents:
            tip_x, tip_z = self.spike_tip(attacker)
            for victim in agents:
                if victim is attacker:
                    continue
                for index in victim.pool.active_indices():
                    bx, bz = self.balloon_position(victim, index)
                    if math.hypot(tip_x - bx, tip_z - bz) <= self.balloon_radius:
                        token_hits.append(
                            TokenHit(
                                victim_id=victim.agent_id,
                                token_index=index,
                                attacker_id=attacker.agent_id,
                            )
                        )

        pickup_contacts: List[int] = []
        if pickup is not None and not pickup.consumed:
            for agent in agents:
                position = agent.pose.position
                distance = math.hypot(position.x - pickup.position.x, position.z - pickup.position.z)
                if distance <= self.agent_radius + self.pickup_radius:
                    pickup_contacts.append(agent.agent_id)

        return PhysicsReport(
            token_hits=tuple(token_hits),
            wall_contacts=tuple(wall_contacts),
            pickup_contacts=tuple(pickup_contacts),
        )


__all__ = ["Obstacle", "PhysicsReport", "PlanarPhysics", "TokenHit"]
