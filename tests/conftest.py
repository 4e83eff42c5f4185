"""Fixtures partagées par les tests de l'arène."""

from __future__ import annotations

from typing import Callable, List

import pytest

from balloon_duel.app.event_bus import EventBus
from balloon_duel.engine.agent import Agent
from balloon_duel.engine.resources import ResourcePool


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def recorded(bus: EventBus) -> List[object]:
    """Liste des évènements publiés sur `bus` pendant le test."""

    events: List[object] = []
    bus.subscribe(events.append)
    return events


@pytest.fixture
def make_agent(bus: EventBus) -> Callable[..., Agent]:
    """Fabrique d'agents partageant le bus du test."""

    def factory(
        agent_id: int,
        *,
        capacity: int = 2,
        step_penalty_cap: float = -0.2,
        wall_penalty_cap: float = -0.1,
    ) -> Agent:
        pool = ResourcePool.with_capacity(agent_id, capacity, event_bus=bus)
        return Agent(
            agent_id,
            team_id=agent_id,
            pool=pool,
            step_penalty_cap=step_penalty_cap,
            wall_penalty_cap=wall_penalty_cap,
        )

    return factory
