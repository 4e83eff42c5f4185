"""Bus d'évènements synchrone partagé par un groupe d'agents."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, List

Subscriber = Callable[[object], None]

logger = logging.getLogger(__name__)


class EventBus:
    """Publie des évènements aux observateurs enregistrés.

    L'implémentation est synchrone : chaque publication appelle immédiatement
    les abonnés dans l'ordre d'enregistrement, avant de rendre la main. Une
    exception levée par un abonné interrompt la diffusion et remonte à
    l'appelant.

    La liste des abonnés est figée pendant une diffusion : s'abonner ou se
    désabonner depuis un handler lève `RuntimeError`.
    """

    __slots__ = ("_subscribers", "_dispatch_depth")

    def __init__(self) -> None:
        self._subscribers: List[Subscriber] = []
        self._dispatch_depth = 0

    @property
    def is_dispatching(self) -> bool:
        return self._dispatch_depth > 0

    def __len__(self) -> int:
        return len(self._subscribers)

    def _ensure_idle(self, operation: str) -> None:
        if self._dispatch_depth > 0:
            raise RuntimeError(f"{operation} interdit pendant la diffusion d'un évènement")

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Enregistre un abonné et retourne une fonction d'unsubscribe."""

        self._ensure_idle("subscribe")
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            self._ensure_idle("unsubscribe")
            try:
                self._subscribers.remove(callback)
            except ValueError:
                # Déjà retiré : unsubscribe est idempotent.
                pass

        return unsubscribe

    @contextmanager
    def subscription(self, callback: Subscriber) -> Iterator[Callable[[], None]]:
        """Abonnement limité à un bloc `with` : le détachement est garanti."""

        unsubscribe = self.subscribe(callback)
        try:
            yield unsubscribe
        finally:
            unsubscribe()

    def publish(self, event: object) -> None:
        """Diffuse l'évènement à tous les abonnés courants."""

        logger.debug("publish %s -> %d abonné(s)", type(event).__name__, len(self._subscribers))
        self._dispatch_depth += 1
        try:
            for callback in tuple(self._subscribers):
                callback(event)
        finally:
            self._dispatch_depth -= 1
