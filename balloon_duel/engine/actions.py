"""Actions par pas de temps reçues de la couche politique."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence


def _clip(value: float) -> float:
    return max(-1.0, min(1.0, float(value)))


@dataclass(frozen=True)
class ArenaAction:
    """Action d'un agent pour un pas.

    Args:
        move: signal d'avance dans [-1, 1]
        turn: signal de rotation dans [-1, 1]
        boost: True si le boost est demandé
    """

    move: float = 0.0
    turn: float = 0.0
    boost: bool = False

    @classmethod
    def from_buffers(cls, continuous: Sequence[float], discrete: Sequence[int]) -> "ArenaAction":
        """Construit une action depuis les tampons `[move, turn]` et `[boost]`."""

        if len(continuous) != 2:
            raise ValueError(f"2 actions continues attendues (reçu: {len(continuous)})")
        if len(discrete) != 1:
            raise ValueError(f"1 action discrète attendue (reçu: {len(discrete)})")
        boost = int(discrete[0])
        if boost not in (0, 1):
            raise ValueError(f"L'action de boost doit valoir 0 ou 1 (reçu: {boost})")
        return cls(move=_clip(continuous[0]), turn=_clip(continuous[1]), boost=bool(boost))


IDLE_ACTION = ArenaAction()

__all__ = ["ArenaAction", "IDLE_ACTION"]
