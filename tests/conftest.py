"""Shared fixtures for the goapnpc test suite."""
from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import Any, TYPE_CHECKING

import pytest

from goapnpc.core import Action, Agent, Planner, WorldState
from goapnpc.io.logging import StructuredLogger

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from goapnpc.core import ActionProgress, Goal


@dataclass
class FakeMover:
    """Mover test double whose arrival is controlled by the test."""

    position: tuple[float, float] = (0.0, 0.0)
    has_reached_target: bool = False
    destinations: list[tuple[float, float]] = field(default_factory=list)
    stop_calls: int = 0

    def move_to(self, position: tuple[float, float]) -> None:
        """Record the destination and clear the arrival flag."""
        self.destinations.append(position)
        self.has_reached_target = False

    def stop(self) -> None:
        """Count stop requests."""
        self.stop_calls += 1

    def arrive(self) -> None:
        """Teleport to the last destination and flag arrival."""
        if self.destinations:
            self.position = self.destinations[-1]
        self.has_reached_target = True


@dataclass
class FakeTarget:
    """Damageable test double."""

    position: tuple[float, float]
    health: float = 20.0
    hits: list[float] = field(default_factory=list)

    @property
    def is_alive(self) -> bool:
        """Return ``True`` while health remains."""
        return self.health > 0

    def take_damage(self, amount: float) -> None:
        """Record the hit and lower health."""
        self.hits.append(amount)
        self.health -= amount


@dataclass
class FakeSensor:
    """Sensor returning the first live target within range."""

    targets: list[FakeTarget] = field(default_factory=list)
    queries: int = 0

    def nearest_target(self, position: tuple[float, float], radius: float) -> FakeTarget | None:
        """Return the closest live target within ``radius``."""
        del position, radius
        self.queries += 1
        live = [target for target in self.targets if target.is_alive]
        return live[0] if live else None


class FactAction(Action):
    """Action double with explicit facts that finishes after a number of updates."""

    def __init__(
        self,
        name: str,
        *,
        cost: float = 1.0,
        pre: dict[str, bool] | None = None,
        eff: dict[str, bool] | None = None,
        updates: int = 1,
        achievable: bool = True,
        commit: bool = True,
    ) -> None:
        """Configure the facts and the number of updates needed to finish."""
        super().__init__(name=name, cost=cost)
        self._pre = dict(pre or {})
        self._eff = dict(eff or {})
        self._updates = updates
        self._commit = commit
        self.achievable = achievable
        self.events: list[str] = []

    def preconditions(self) -> WorldState:
        """Return the configured preconditions."""
        return WorldState.from_facts(self._pre)

    def effects(self) -> WorldState:
        """Return the configured effects."""
        return WorldState.from_facts(self._eff)

    def is_achievable(self, agent: Agent) -> bool:
        """Return the configured achievability flag."""
        del agent
        return self.achievable

    def on_start(self, agent: Agent, progress: ActionProgress) -> None:
        """Record activation."""
        self.events.append("start")

    def on_update(self, agent: Agent, progress: ActionProgress, delta: float) -> bool:
        """Count updates and write effects into local state once finished."""
        self.events.append("update")
        progress.elapsed += 1
        if progress.elapsed < self._updates:
            return False
        if self._commit:
            agent.local_state.apply_effects(self.effects())
        return True

    def on_end(self, agent: Agent, progress: ActionProgress) -> None:
        """Record deactivation."""
        self.events.append("end")


@pytest.fixture
def fact_action() -> type[FactAction]:
    """Return the fact action double class."""
    return FactAction


@pytest.fixture
def log_stream() -> io.StringIO:
    """Provide a buffer capturing structured log output."""
    return io.StringIO()


@pytest.fixture
def logger(log_stream: io.StringIO) -> StructuredLogger:
    """Return a JSON logger writing into ``log_stream``."""
    return StructuredLogger(name="goapnpc.test", json_mode=True, stream=log_stream)


@pytest.fixture
def fake_mover() -> FakeMover:
    """Return a fresh mover double."""
    return FakeMover()


@pytest.fixture
def fake_sensor() -> FakeSensor:
    """Return a sensor double without targets."""
    return FakeSensor()


@pytest.fixture
def make_target() -> Callable[..., FakeTarget]:
    """Return the damageable double constructor."""
    return FakeTarget


@pytest.fixture
def make_agent(
    fake_mover: FakeMover,
    fake_sensor: FakeSensor,
    logger: StructuredLogger,
) -> Callable[..., Agent]:
    """Return a factory creating agents wired to the shared doubles."""

    def _factory(
        actions: Sequence[Action],
        goals: Sequence[Goal] = (),
        *,
        global_facts: dict[str, Any] | None = None,
        local_facts: dict[str, Any] | None = None,
        name: str = "Tester",
        **kwargs: Any,
    ) -> Agent:
        options: dict[str, Any] = {
            "mover": fake_mover,
            "sensor": fake_sensor,
            "logger": logger,
            "planner": Planner(),
        }
        options.update(kwargs)
        return Agent(
            name,
            actions=actions,
            goals=goals,
            global_state=WorldState.from_facts(global_facts or {}),
            local_state=WorldState.from_facts(local_facts or {}),
            **options,
        )

    return _factory


__all__ = ["FactAction", "FakeMover", "FakeSensor", "FakeTarget"]
