"""Simulation headless du duel et parallélisation des rollouts."""

from .parallel import EpisodeSummary, ParallelRolloutRunner, RolloutSummary, WorkerSummary
from .physics import Obstacle, PhysicsReport, PlanarPhysics, TokenHit
from .runner import HeadlessArenaEnv, StepResult

__all__ = [
    "HeadlessArenaEnv",
    "StepResult",
    "PlanarPhysics",
    "PhysicsReport",
    "Obstacle",
    "TokenHit",
    "ParallelRolloutRunner",
    "RolloutSummary",
    "WorkerSummary",
    "EpisodeSummary",
]
