"""Raid controller broadcasting the ``RaidActive`` fact."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .targets import Dummy, TargetRegistry

if TYPE_CHECKING:
    from collections.abc import Iterable

    from goapnpc.core.action import Vec2
    from goapnpc.core.world import WorldState
    from goapnpc.io.logging import StructuredLogger


RAID_FACT = "RaidActive"


class RaidController:
    """Start and end raids by spawning enemies and flipping the global fact."""

    def __init__(
        self,
        global_state: WorldState,
        registry: TargetRegistry,
        *,
        logger: StructuredLogger | None = None,
    ) -> None:
        """Bind the controller to the shared state and the enemy registry."""
        self._global_state = global_state
        self._registry = registry
        self._logger = logger
        self._active = False
        self._wave = 0

    @property
    def is_active(self) -> bool:
        """Return whether a raid is in progress."""
        return self._active

    @property
    def wave(self) -> int:
        """Return the number of raids started so far."""
        return self._wave

    def start(self, enemies: Iterable[tuple[Vec2, float]]) -> int:
        """Spawn ``(position, health)`` enemies and raise the raid flag."""
        if self._active:
            return 0
        spawned = 0
        for position, health in enemies:
            self._registry.add(Dummy(position=position, health=health))
            spawned += 1
        self._active = True
        self._wave += 1
        self._global_state.set_bool(RAID_FACT, True)
        if self._logger is not None:
            self._logger.info("raid started", wave=self._wave, enemies=spawned)
        return spawned

    def update(self) -> None:
        """End the raid once every enemy is dead."""
        if not self._active:
            return
        self._registry.prune()
        if len(self._registry) == 0:
            self.end()

    def end(self) -> None:
        """Clear remaining enemies and lower the raid flag."""
        self._active = False
        self._registry.clear()
        self._global_state.set_bool(RAID_FACT, False)
        if self._logger is not None:
            self._logger.info("raid ended", wave=self._wave)


__all__ = ["RAID_FACT", "RaidController"]
