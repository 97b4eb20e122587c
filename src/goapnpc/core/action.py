"""Action contract, per-agent progress records and collaborator protocols."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Protocol

from .world import WorldState

if TYPE_CHECKING:  # pragma: no cover - typing helpers only
    from collections.abc import Mapping

    from .agent import Agent


Vec2 = tuple[float, float]


class Mover(Protocol):
    """Movement capability provided by the host character controller."""

    @property
    def position(self) -> Vec2:
        """Return the current position of the character."""
        ...

    @property
    def has_reached_target(self) -> bool:
        """Return ``True`` once the last requested destination was reached."""
        ...

    def move_to(self, position: Vec2) -> None:
        """Start moving towards ``position``."""
        ...

    def stop(self) -> None:
        """Stop any movement in progress."""
        ...


class Damageable(Protocol):
    """Something that can be attacked; results are treated as alive or dead."""

    @property
    def position(self) -> Vec2:
        """Return the current position of the target."""
        ...

    @property
    def is_alive(self) -> bool:
        """Return ``True`` while the target can still take damage."""
        ...

    def take_damage(self, amount: float) -> None:
        """Apply ``amount`` points of damage."""
        ...


class TargetSensor(Protocol):
    """Target discovery capability used by combat actions."""

    def nearest_target(self, position: Vec2, radius: float) -> Damageable | None:
        """Return the closest live target within ``radius`` of ``position``."""
        ...


def distance(a: Vec2, b: Vec2) -> float:
    """Return the euclidean distance between two points."""
    return math.hypot(a[0] - b[0], a[1] - b[1])


@dataclass(slots=True)
class ActionProgress:
    """Runtime progress of one action for one agent.

    Actions are shared between agents, so everything that changes while an
    action runs is stored here and owned by the executing agent.
    """

    elapsed: float = 0.0
    arrived: bool = False
    cooldown: float = 0.0
    waypoint: int = 0
    target: Damageable | None = None


class Action:
    """Base class for planner actions.

    Subclasses declare their static facts through ``required`` and ``provides``
    or override :meth:`preconditions` and :meth:`effects` for dynamic cases.
    """

    default_name: ClassVar[str] = "action"
    required: ClassVar[Mapping[str, bool]] = {}
    provides: ClassVar[Mapping[str, bool]] = {}

    def __init__(
        self,
        *,
        name: str | None = None,
        cost: float = 1.0,
        exclude_when_unconfigured: bool = False,
    ) -> None:
        """Configure the action name, planning cost and missing-reference policy."""
        if cost < 0:
            msg = f"action cost must be non-negative, got {cost}"
            raise ValueError(msg)
        self._name = name or self.default_name
        self._cost = float(cost)
        self._exclude_when_unconfigured = exclude_when_unconfigured

    @property
    def name(self) -> str:
        """Return the action name."""
        return self._name

    @property
    def cost(self) -> float:
        """Return the planning cost."""
        return self._cost

    @property
    def exclude_when_unconfigured(self) -> bool:
        """Return whether a missing reference excludes the action from planning."""
        return self._exclude_when_unconfigured

    def preconditions(self) -> WorldState:
        """Return the facts required before this action can run."""
        return WorldState.from_facts(self.required)

    def effects(self) -> WorldState:
        """Return the facts this action asserts once it completes."""
        return WorldState.from_facts(self.provides)

    def is_configured(self, agent: Agent) -> bool:
        """Return ``True`` when every external reference the action needs is present."""
        del agent
        return True

    def is_achievable(self, agent: Agent) -> bool:
        """Return whether ``agent`` may use this action, regardless of world facts."""
        if self._exclude_when_unconfigured:
            return self.is_configured(agent)
        return True

    def create_progress(self) -> ActionProgress:
        """Return a fresh progress record for a new activation."""
        return ActionProgress()

    def on_start(self, agent: Agent, progress: ActionProgress) -> None:
        """Handle activation; called exactly once per activation."""

    def on_update(self, agent: Agent, progress: ActionProgress, delta: float) -> bool:
        """Advance the action by ``delta`` seconds and return ``True`` when done."""
        raise NotImplementedError

    def on_end(self, agent: Agent, progress: ActionProgress) -> None:
        """Release resources; called exactly once when the action stops running."""

    def __repr__(self) -> str:
        """Return a compact debug representation."""
        return f"{type(self).__name__}(name={self._name!r}, cost={self._cost})"


class TimedAction(Action):
    """Consumption action that completes after a fixed duration.

    On completion the effect facts are written straight into the agent's local
    state, independently of the planner's simulated state.
    """

    default_duration: ClassVar[float] = 1.0

    def __init__(self, *, duration: float | None = None, **kwargs: Any) -> None:
        """Configure the duration in seconds on top of the base options."""
        super().__init__(**kwargs)
        self._duration = self.default_duration if duration is None else float(duration)
        if self._duration < 0:
            msg = f"action duration must be non-negative, got {self._duration}"
            raise ValueError(msg)

    @property
    def duration(self) -> float:
        """Return the time in seconds needed to finish the action."""
        return self._duration

    def on_start(self, agent: Agent, progress: ActionProgress) -> None:
        """Reset the timer."""
        progress.elapsed = 0.0
        agent.logger.info("action started", action=self.name, duration=self._duration)

    def on_update(self, agent: Agent, progress: ActionProgress, delta: float) -> bool:
        """Accumulate time and commit the effects once the duration has elapsed."""
        progress.elapsed += delta
        if progress.elapsed < self._duration:
            return False
        agent.local_state.apply_effects(self.effects())
        agent.logger.info("action finished", action=self.name, elapsed=round(progress.elapsed, 3))
        return True


class TravelAction(Action):
    """Move to a destination, wait for arrival, then work for ``duration`` seconds.

    A missing destination is logged and treated as already reached.
    """

    default_duration: ClassVar[float] = 0.0

    def __init__(
        self,
        *,
        destination: Vec2 | None = None,
        duration: float | None = None,
        **kwargs: Any,
    ) -> None:
        """Configure the destination and working time on top of the base options."""
        super().__init__(**kwargs)
        self._destination = destination
        self._duration = self.default_duration if duration is None else float(duration)
        if self._duration < 0:
            msg = f"action duration must be non-negative, got {self._duration}"
            raise ValueError(msg)

    @property
    def destination(self) -> Vec2 | None:
        """Return the configured destination, if any."""
        return self._destination

    @property
    def duration(self) -> float:
        """Return the working time after arrival."""
        return self._duration

    def is_configured(self, agent: Agent) -> bool:
        """Require both a destination and a mover able to reach it."""
        return self._destination is not None and agent.mover is not None

    def on_start(self, agent: Agent, progress: ActionProgress) -> None:
        """Send the agent on its way or skip the trip when unconfigured."""
        progress.arrived = False
        progress.elapsed = 0.0
        if self._destination is not None and agent.mover is not None:
            agent.mover.move_to(self._destination)
            agent.logger.debug("travelling", action=self.name, destination=list(self._destination))
            return
        agent.logger.warning("no destination configured; skipping travel", action=self.name)
        progress.arrived = True

    def on_update(self, agent: Agent, progress: ActionProgress, delta: float) -> bool:
        """Wait for arrival, then run the working timer."""
        if not progress.arrived:
            mover = agent.mover
            if mover is None or not mover.has_reached_target:
                return False
            progress.arrived = True
            mover.stop()
            if self._duration > 0:
                return False
        elif self._duration > 0:
            progress.elapsed += delta

        if progress.elapsed < self._duration:
            return False
        self.on_arrived(agent)
        return True

    def on_arrived(self, agent: Agent) -> None:
        """Hook run once the trip and the working time are complete."""

    def on_end(self, agent: Agent, progress: ActionProgress) -> None:
        """Stop any movement started by this action."""
        if agent.mover is not None:
            agent.mover.stop()


__all__ = [
    "Action",
    "ActionProgress",
    "Damageable",
    "Mover",
    "TargetSensor",
    "TimedAction",
    "TravelAction",
    "Vec2",
    "distance",
]
