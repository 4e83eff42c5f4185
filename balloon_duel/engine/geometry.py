"""Petits types géométriques (repère local de l'arène, poses)."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Vec3:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def with_y(self, y: float) -> "Vec3":
        return Vec3(self.x, y, self.z)

    def planar_distance(self, other: "Vec3") -> float:
        """Distance dans le plan du sol (x, z)."""

        return math.hypot(self.x - other.x, self.z - other.z)


def forward_vector(yaw_degrees: float) -> Tuple[float, float]:
    """Direction (x, z) d'un agent orienté de `yaw_degrees` (0° = +z)."""

    radians = math.radians(yaw_degrees)
    return math.sin(radians), math.cos(radians)


@dataclass(frozen=True)
class Pose:
    """Position monde et rotation contrainte au lacet (tangage/roulis nuls)."""

    position: Vec3
    yaw: float = 0.0

    @property
    def euler_degrees(self) -> Tuple[float, float, float]:
        return (0.0, self.yaw, 0.0)

    @property
    def forward(self) -> Tuple[float, float]:
        return forward_vector(self.yaw)


@dataclass(frozen=True)
class ArenaFrame:
    """Repère de l'arène dans le monde : origine et lacet."""

    origin: Vec3 = Vec3()
    yaw: float = 0.0

    def to_world(self, local: Vec3) -> Vec3:
        radians = math.radians(self.yaw)
        cos_yaw, sin_yaw = math.cos(radians), math.sin(radians)
        rotated = Vec3(
            local.x * cos_yaw + local.z * sin_yaw,
            local.y,
            -local.x * sin_yaw + local.z * cos_yaw,
        )
        return self.origin + rotated

    def yaw_to_world(self, local_yaw: float) -> float:
        return (self.yaw + local_yaw) % 360.0


__all__ = ["ArenaFrame", "Pose", "Vec3", "forward_vector"]
