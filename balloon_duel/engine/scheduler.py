"""Appels différés sur l'horloge de simulation et effets cosmétiques.

Les rappels planifiés ne bloquent jamais la logique de jeu : ils sont exécutés
au début d'un pas ultérieur et peuvent être annulés à tout moment.
"""

from __future__ import annotations

import heapq
import itertools
import logging
from typing import Callable, List, Tuple

logger = logging.getLogger(__name__)


class ScheduledCall:
    """Poignée d'un rappel planifié."""

    __slots__ = ("due_tick", "_callback", "_cancelled", "_done")

    def __init__(self, due_tick: int, callback: Callable[[], None]) -> None:
        self.due_tick = due_tick
        self._callback = callback
        self._cancelled = False
        self._done = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        return self._done

    @property
    def pending(self) -> bool:
        return not (self._cancelled or self._done)

    def cancel(self) -> None:
        self._cancelled = True

    def _run(self) -> None:
        self._done = True
        self._callback()


class TickScheduler:
    """Horloge discrète exécutant les rappels arrivés à échéance."""

    def __init__(self) -> None:
        self._tick = 0
        self._queue: List[Tuple[int, int, ScheduledCall]] = []
        self._sequence = itertools.count()

    @property
    def tick(self) -> int:
        return self._tick

    def __len__(self) -> int:
        return sum(1 for _, _, call in self._queue if call.pending)

    def call_later(self, delay_ticks: int, callback: Callable[[], None]) -> ScheduledCall:
        """Planifie `callback` dans `delay_ticks` pas (au moins 1)."""

        if delay_ticks < 1:
            raise ValueError("delay_ticks doit être >= 1")
        call = ScheduledCall(self._tick + delay_ticks, callback)
        heapq.heappush(self._queue, (call.due_tick, next(self._sequence), call))
        return call

    def advance(self) -> int:
        """Avance l'horloge d'un pas et exécute les rappels échus, dans l'ordre de planification."""

        self._tick += 1
        executed = 0
        while self._queue and self._queue[0][0] <= self._tick:
            _, _, call = heapq.heappop(self._queue)
            if call.cancelled:
                continue
            call._run()
            executed += 1
        if executed:
            logger.debug("tick %s: %s rappel(s) exécuté(s)", self._tick, executed)
        return executed

    def cancel_all(self) -> None:
        for _, _, call in self._queue:
            call.cancel()
        self._queue.clear()


class FloorFlash:
    """Flash du sol aux couleurs du gagnant, restauré après un délai.

    Purement cosmétique : l'état exposé (`material`) est lu par un éventuel
    rendu mais n'influence jamais la logique du match.
    """

    def __init__(self, scheduler: TickScheduler, *, default_material: str = "default") -> None:
        self._scheduler = scheduler
        self._default_material = default_material
        self._material = default_material
        self._pending: ScheduledCall | None = None

    @property
    def material(self) -> str:
        return self._material

    @property
    def default_material(self) -> str:
        return self._default_material

    def flash(self, material: str, duration_ticks: int) -> ScheduledCall:
        if self._pending is not None:
            self._pending.cancel()
        self._material = material
        self._pending = self._scheduler.call_later(duration_ticks, self._restore)
        return self._pending

    def _restore(self) -> None:
        self._material = self._default_material
        self._pending = None


__all__ = ["FloorFlash", "ScheduledCall", "TickScheduler"]
