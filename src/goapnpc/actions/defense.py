"""Raid defence actions: arming, barricading, patrolling and fighting."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from goapnpc.core.action import Action, TravelAction, distance

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from goapnpc.core.action import ActionProgress, Damageable, Vec2
    from goapnpc.core.agent import Agent


class RetrieveWeaponAction(TravelAction):
    """Walk to the weapon storage and pick up a weapon."""

    default_name: ClassVar[str] = "RetrieveWeapon"
    required: ClassVar[Mapping[str, bool]] = {"HasWeapon": False}
    provides: ClassVar[Mapping[str, bool]] = {"HasWeapon": True}

    def on_arrived(self, agent: Agent) -> None:
        """Record the weapon in the agent's own facts."""
        agent.local_state.set_bool("HasWeapon", True)


class BarricadeGateAction(TravelAction):
    """Walk to the gate during a raid and barricade it."""

    default_name: ClassVar[str] = "BarricadeGate"
    default_duration: ClassVar[float] = 3.0
    required: ClassVar[Mapping[str, bool]] = {"RaidActive": True}
    provides: ClassVar[Mapping[str, bool]] = {"GateBarricaded": True}


class PatrolAction(Action):
    """Visit patrol waypoints in order, giving up after ``timeout`` seconds."""

    default_name: ClassVar[str] = "Patrol"
    required: ClassVar[Mapping[str, bool]] = {"RaidActive": True, "HasWeapon": True}
    provides: ClassVar[Mapping[str, bool]] = {"AreaSecured": True}

    def __init__(
        self,
        *,
        waypoints: Sequence[Vec2] = (),
        timeout: float = 30.0,
        **kwargs: Any,
    ) -> None:
        """Configure the waypoint route and timeout."""
        super().__init__(**kwargs)
        if timeout < 0:
            msg = f"patrol timeout must be non-negative, got {timeout}"
            raise ValueError(msg)
        self._waypoints: tuple[Vec2, ...] = tuple(waypoints)
        self._timeout = float(timeout)

    @property
    def waypoints(self) -> tuple[Vec2, ...]:
        """Return the configured route."""
        return self._waypoints

    @property
    def timeout(self) -> float:
        """Return the patrol timeout in seconds."""
        return self._timeout

    def is_configured(self, agent: Agent) -> bool:
        """Require a route and a mover to walk it."""
        return bool(self._waypoints) and agent.mover is not None

    def on_start(self, agent: Agent, progress: ActionProgress) -> None:
        """Head for the first waypoint."""
        progress.waypoint = 0
        progress.elapsed = 0.0
        if self._waypoints and agent.mover is not None:
            agent.mover.move_to(self._waypoints[0])

    def on_update(self, agent: Agent, progress: ActionProgress, delta: float) -> bool:
        """Advance along the route; finish at the end or on timeout."""
        progress.elapsed += delta
        if progress.elapsed >= self._timeout:
            agent.logger.info("patrol timed out", action=self.name, waypoint=progress.waypoint)
            return True
        mover = agent.mover
        if not self._waypoints or mover is None:
            return True
        if mover.has_reached_target:
            progress.waypoint += 1
            if progress.waypoint >= len(self._waypoints):
                return True
            mover.move_to(self._waypoints[progress.waypoint])
        return False

    def on_end(self, agent: Agent, progress: ActionProgress) -> None:
        """Stop walking."""
        if agent.mover is not None:
            agent.mover.stop()


class AttackEnemyAction(Action):
    """Chase the nearest enemy and hit it on a cooldown until none are left."""

    default_name: ClassVar[str] = "AttackEnemy"
    required: ClassVar[Mapping[str, bool]] = {"HasWeapon": True, "EnemyVisible": True}
    provides: ClassVar[Mapping[str, bool]] = {"EnemyDead": True}

    def __init__(
        self,
        *,
        attack_range: float = 1.5,
        attack_damage: float = 10.0,
        detection_radius: float = 10.0,
        attack_cooldown: float = 0.5,
        **kwargs: Any,
    ) -> None:
        """Configure reach, damage, detection radius and cooldown."""
        super().__init__(**kwargs)
        self.attack_range = attack_range
        self.attack_damage = attack_damage
        self.detection_radius = detection_radius
        self.attack_cooldown = attack_cooldown

    def is_configured(self, agent: Agent) -> bool:
        """Require a way to find targets."""
        return agent.sensor is not None

    def on_start(self, agent: Agent, progress: ActionProgress) -> None:
        """Reset the cooldown and pick a target."""
        progress.cooldown = 0.0
        if agent.sensor is None:
            agent.logger.warning("no target sensor configured", action=self.name)
        progress.target = self._find_target(agent)

    def on_update(self, agent: Agent, progress: ActionProgress, delta: float) -> bool:
        """Approach and strike; report completion once no target can be found."""
        target = progress.target
        if target is None or not target.is_alive:
            progress.target = self._find_target(agent)
            return progress.target is None

        mover = agent.mover
        if distance(agent.position, target.position) > self.attack_range:
            if mover is not None:
                mover.move_to(target.position)
            return False

        if mover is not None:
            mover.stop()
        progress.cooldown += delta
        if progress.cooldown >= self.attack_cooldown:
            progress.cooldown = 0.0
            target.take_damage(self.attack_damage)
            if not target.is_alive:
                agent.logger.info("target defeated", action=self.name)
                progress.target = None
        return False

    def on_end(self, agent: Agent, progress: ActionProgress) -> None:
        """Forget the target and stop moving."""
        progress.target = None
        if agent.mover is not None:
            agent.mover.stop()

    def _find_target(self, agent: Agent) -> Damageable | None:
        if agent.sensor is None:
            return None
        return agent.sensor.nearest_target(agent.position, self.detection_radius)


__all__ = [
    "AttackEnemyAction",
    "BarricadeGateAction",
    "PatrolAction",
    "RetrieveWeaponAction",
]
