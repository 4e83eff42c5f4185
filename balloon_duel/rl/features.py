"""Encodage des observations et décodage des actions pour le RL.

L'observation est ego-centrée : la vitesse est exprimée dans le repère local
de l'agent, ce qui rend la tâche symétrique entre les deux joueurs du duel.

Vecteur (float32, taille 5) :

    [vitesse_locale_x, vitesse_locale_z, boost_disponible, boost_actif,
     ballons_restants / capacité]
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from balloon_duel.engine.actions import ArenaAction
from balloon_duel.engine.agent import Agent

OBSERVATION_SIZE = 5
CONTINUOUS_ACTION_SIZE = 2
DISCRETE_ACTION_BRANCHES = (2,)


def local_velocity(agent: Agent) -> tuple[float, float]:
    """Vitesse monde ramenée dans le repère de l'agent (x = droite, z = avant)."""

    vx, vz = agent.velocity
    radians = math.radians(agent.pose.yaw)
    cos_yaw, sin_yaw = math.cos(radians), math.sin(radians)
    return vx * cos_yaw - vz * sin_yaw, vx * sin_yaw + vz * cos_yaw


def build_observation(agent: Agent) -> np.ndarray:
    """Construit le vecteur d'observation d'un agent."""

    local_x, local_z = local_velocity(agent)
    return np.array(
        [
            local_x,
            local_z,
            1.0 if agent.boost.available else 0.0,
            1.0 if agent.boost.active else 0.0,
            agent.pool.normalized_count,
        ],
        dtype=np.float32,
    )


def decode_action(continuous: Sequence[float], discrete: Sequence[int]) -> ArenaAction:
    """Décode les tampons d'action `[move, turn]` et `[boost]`."""

    return ArenaAction.from_buffers(
        [float(value) for value in np.asarray(continuous, dtype=np.float64).ravel()],
        [int(value) for value in np.asarray(discrete).ravel()],
    )


__all__ = [
    "CONTINUOUS_ACTION_SIZE",
    "DISCRETE_ACTION_BRANCHES",
    "OBSERVATION_SIZE",
    "build_observation",
    "decode_action",
    "local_velocity",
]
