"""Damageable targets, target lookup and visibility facts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from goapnpc.core.action import Vec2, distance

if TYPE_CHECKING:
    from goapnpc.core.agent import Agent


@dataclass(slots=True)
class Dummy:
    """A stationary enemy with a health pool."""

    position: Vec2
    health: float = 30.0

    @property
    def is_alive(self) -> bool:
        """Return ``True`` while health remains."""
        return self.health > 0

    def take_damage(self, amount: float) -> None:
        """Reduce health by ``amount``, never below zero."""
        self.health = max(0.0, self.health - amount)


class TargetRegistry:
    """Collection of live targets answering nearest-target queries."""

    def __init__(self) -> None:
        """Create an empty registry."""
        self._targets: list[Dummy] = []

    def __len__(self) -> int:
        """Return the number of live targets."""
        return len(self.alive())

    def add(self, target: Dummy) -> Dummy:
        """Register ``target`` and return it."""
        self._targets.append(target)
        return target

    def alive(self) -> list[Dummy]:
        """Return every target that is still alive."""
        return [target for target in self._targets if target.is_alive]

    def prune(self) -> int:
        """Forget dead targets and return how many were removed."""
        before = len(self._targets)
        self._targets = self.alive()
        return before - len(self._targets)

    def clear(self) -> None:
        """Remove every target."""
        self._targets.clear()

    def nearest_target(self, position: Vec2, radius: float) -> Dummy | None:
        """Return the closest live target within ``radius`` of ``position``."""
        best: Dummy | None = None
        best_distance = radius
        for target in self.alive():
            gap = distance(position, target.position)
            if gap <= best_distance:
                best = target
                best_distance = gap
        return best


class VisibilitySensor:
    """Publish ``EnemyVisible`` into an agent's local facts."""

    def __init__(self, registry: TargetRegistry, *, radius: float = 10.0) -> None:
        """Watch ``registry`` for targets within ``radius``."""
        self._registry = registry
        self._radius = radius

    def update(self, agent: Agent) -> bool:
        """Refresh the fact for ``agent`` and return the new value."""
        visible = self._registry.nearest_target(agent.position, self._radius) is not None
        state = agent.local_state
        if not state.has_bool("EnemyVisible") or state.get_bool("EnemyVisible") != visible:
            state.set_bool("EnemyVisible", visible)
        return visible


__all__ = ["Dummy", "TargetRegistry", "VisibilitySensor"]
