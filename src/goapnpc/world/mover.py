"""Straight-line mover standing in for a character controller."""

from __future__ import annotations

from goapnpc.core.action import Vec2, distance


ARRIVAL_THRESHOLD = 0.1


class KinematicMover:
    """Move at constant speed towards the last requested destination.

    Movement only happens in :meth:`step`, which the host calls once per frame
    before the agents tick.
    """

    def __init__(self, position: Vec2 = (0.0, 0.0), *, speed: float = 2.0) -> None:
        """Place the mover at ``position`` with the given speed in units per second."""
        if speed <= 0:
            msg = f"speed must be positive, got {speed}"
            raise ValueError(msg)
        self._position = (float(position[0]), float(position[1]))
        self._speed = speed
        self._target: Vec2 | None = None
        self._moving = False
        self._reached = False

    @property
    def position(self) -> Vec2:
        """Return the current position."""
        return self._position

    @property
    def is_moving(self) -> bool:
        """Return whether a destination is being approached."""
        return self._moving

    @property
    def has_reached_target(self) -> bool:
        """Return ``True`` once the last destination was reached."""
        return self._reached

    def move_to(self, position: Vec2) -> None:
        """Start moving towards ``position``."""
        self._target = (float(position[0]), float(position[1]))
        self._moving = True
        self._reached = False

    def stop(self) -> None:
        """Halt in place; an already reached destination stays reached."""
        self._moving = False

    def step(self, delta: float) -> None:
        """Advance the position by ``delta`` seconds of travel."""
        if not self._moving or self._target is None:
            return
        remaining = distance(self._position, self._target)
        if remaining <= ARRIVAL_THRESHOLD:
            self._moving = False
            self._reached = True
            return
        travel = min(self._speed * delta, remaining)
        ratio = travel / remaining
        self._position = (
            self._position[0] + (self._target[0] - self._position[0]) * ratio,
            self._position[1] + (self._target[1] - self._position[1]) * ratio,
        )


__all__ = ["ARRIVAL_THRESHOLD", "KinematicMover"]
