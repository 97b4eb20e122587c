"""Tick-driven agent that selects goals, requests plans and executes them."""

from __future__ import annotations

from typing import TYPE_CHECKING

from goapnpc.io.logging import StructuredLogger, quiet_logger

from .models import AgentSnapshot, AgentStatus
from .planner import Planner
from .world import WorldState, merge_states

if TYPE_CHECKING:  # pragma: no cover - typing helpers only
    from collections.abc import Iterable, Sequence

    from .action import Action, ActionProgress, Mover, TargetSensor, Vec2
    from .models import Goal, Plan


class Agent:
    """Run the Idle/Planning/Executing cycle for a single character.

    Every :meth:`tick` merges the shared global state with the agent's local
    state, re-evaluates goals, keeps or replaces the current plan and drives
    the active action. Runtime progress of each action is kept per agent, so
    one action library can be shared by many agents.
    """

    def __init__(
        self,
        name: str,
        *,
        actions: Sequence[Action],
        goals: Iterable[Goal] = (),
        global_state: WorldState | None = None,
        local_state: WorldState | None = None,
        planner: Planner | None = None,
        mover: Mover | None = None,
        sensor: TargetSensor | None = None,
        logger: StructuredLogger | None = None,
        replan_interval: float = 0.0,
    ) -> None:
        """Create an agent with its action library and injected collaborators."""
        if replan_interval < 0:
            msg = f"replan_interval must be non-negative, got {replan_interval}"
            raise ValueError(msg)
        self._name = name
        self._actions = list(actions)
        self._goals: list[Goal] = []
        self._global_state = global_state
        self._local_state = local_state if local_state is not None else WorldState()
        self._planner = planner or Planner()
        self._mover = mover
        self._sensor = sensor
        self._logger = (logger or quiet_logger()).bind(agent=name)
        self._replan_interval = replan_interval

        self._status = AgentStatus.idle
        self._plan: Plan | None = None
        self._cursor = 0
        self._active: Action | None = None
        self._progress: dict[Action, ActionProgress] = {}
        self._clock = 0.0
        self._next_plan_at = 0.0

        for goal in goals:
            self.add_goal(goal)

    @property
    def name(self) -> str:
        """Return the human readable agent name."""
        return self._name

    @property
    def local_state(self) -> WorldState:
        """Return the agent's private facts."""
        return self._local_state

    @property
    def global_state(self) -> WorldState | None:
        """Return the shared world facts, if any."""
        return self._global_state

    @property
    def actions(self) -> list[Action]:
        """Return the action library available to this agent."""
        return list(self._actions)

    @property
    def goals(self) -> list[Goal]:
        """Return goals ordered by descending priority."""
        return list(self._goals)

    @property
    def mover(self) -> Mover | None:
        """Return the movement capability, if configured."""
        return self._mover

    @property
    def sensor(self) -> TargetSensor | None:
        """Return the target discovery capability, if configured."""
        return self._sensor

    @property
    def logger(self) -> StructuredLogger:
        """Return the logger bound to this agent."""
        return self._logger

    @property
    def position(self) -> Vec2:
        """Return the agent position reported by its mover."""
        if self._mover is None:
            return (0.0, 0.0)
        return self._mover.position

    @property
    def status(self) -> AgentStatus:
        """Return the current execution status."""
        return self._status

    @property
    def plan(self) -> Plan | None:
        """Return the plan being executed, if any."""
        return self._plan

    @property
    def current_goal(self) -> Goal | None:
        """Return the goal the current plan pursues."""
        return self._plan.goal if self._plan is not None else None

    @property
    def current_action(self) -> Action | None:
        """Return the active action, if any."""
        return self._active

    @property
    def remaining_actions(self) -> list[Action]:
        """Return the queued actions that have not finished yet."""
        if self._plan is None:
            return []
        return list(self._plan.actions[self._cursor :])

    def add_goal(self, goal: Goal) -> None:
        """Register ``goal``; equal priorities keep registration order."""
        self._goals.append(goal)
        self._goals.sort(key=lambda item: -item.priority)

    def combined_state(self) -> WorldState:
        """Return a fresh snapshot of global facts overridden by local facts."""
        return merge_states(self._global_state, self._local_state)

    def progress_for(self, action: Action) -> ActionProgress | None:
        """Return this agent's progress record for ``action``, if it ever ran."""
        return self._progress.get(action)

    def replan(self) -> None:
        """Drop the current plan so a new one is requested on the next tick."""
        self._abandon("replan requested")
        self._next_plan_at = self._clock

    def preview_plan(self) -> Plan | None:
        """Return the plan the agent would adopt now, without changing its state."""
        snapshot = self.combined_state()
        for goal in self._candidate_goals(snapshot):
            plan = self._planner.formulate_plan(snapshot, goal, self._actions, self)
            if plan is not None and plan.actions:
                return plan
        return None

    def tick(self, delta: float) -> None:
        """Advance the agent by ``delta`` seconds."""
        self._clock += delta
        snapshot = self.combined_state()
        candidates = self._candidate_goals(snapshot)

        if self._plan is not None:
            self._reconsider_goal(snapshot, candidates)
        if self._plan is not None and not self._plan_still_applies(self._plan, snapshot):
            self._abandon("action preconditions no longer hold")

        plan = self._plan
        if plan is None:
            if self._clock < self._next_plan_at:
                self._status = AgentStatus.idle
                return
            plan = self._plan_for(snapshot, candidates)
            if plan is None:
                self._status = AgentStatus.idle
                self._next_plan_at = self._clock + self._replan_interval
                return
            self._adopt(plan)

        self._execute(plan, delta)

    def describe(self) -> AgentSnapshot:
        """Return a diagnostic snapshot of the agent."""
        return AgentSnapshot(
            name=self._name,
            status=self._status,
            goal=self.current_goal.name if self.current_goal is not None else None,
            plan=self._plan.names if self._plan is not None else [],
            cursor=self._cursor,
            current_action=self._active.name if self._active is not None else None,
            local_facts=self._local_state.as_dict(),
        )

    def _candidate_goals(self, snapshot: WorldState) -> list[Goal]:
        return [
            goal
            for goal in self._goals
            if goal.is_active(snapshot) and not goal.is_satisfied(snapshot)
        ]

    def _reconsider_goal(self, snapshot: WorldState, candidates: list[Goal]) -> None:
        current = self.current_goal
        if current is None:
            return
        if current not in candidates:
            self._abandon("goal no longer relevant")
            return
        # Candidates keep goal order, so everything ahead of the current goal
        # outranks it, including earlier-registered goals of equal priority.
        higher = candidates[: candidates.index(current)]
        if not higher:
            return
        plan = self._plan_for(snapshot, higher)
        if plan is not None:
            self._abandon("higher priority goal", preempted_by=plan.goal.name)
            self._adopt(plan)

    def _plan_still_applies(self, plan: Plan, snapshot: WorldState) -> bool:
        if self._cursor >= len(plan.actions):
            return True
        action = self._active or plan.actions[self._cursor]
        # Facts written only by finished steps' simulated effects stay known,
        # live facts always take precedence.
        expected = WorldState()
        for finished in plan.actions[: self._cursor]:
            expected.apply_effects(finished.effects())
        expected.apply_effects(snapshot)
        return expected.satisfies(action.preconditions())

    def _plan_for(self, snapshot: WorldState, goals: list[Goal]) -> Plan | None:
        previous = self._status
        self._status = AgentStatus.planning
        for goal in goals:
            plan = self._planner.formulate_plan(snapshot, goal, self._actions, self)
            if plan is not None and plan.actions:
                return plan
        self._status = previous
        if goals:
            self._logger.debug("no plan for any candidate goal", goals=[goal.name for goal in goals])
        return None

    def _adopt(self, plan: Plan) -> None:
        self._plan = plan
        self._cursor = 0
        self._status = AgentStatus.executing
        self._logger.info(
            "created plan",
            goal=plan.goal.name,
            actions=plan.names,
            cost=plan.cost,
        )

    def _abandon(self, reason: str, **fields: object) -> None:
        if self._plan is None and self._active is None:
            return
        self._end_active()
        if self._plan is not None:
            self._logger.info(
                "discarding plan",
                reason=reason,
                goal=self._plan.goal.name,
                remaining=[action.name for action in self._plan.actions[self._cursor :]],
                **fields,
            )
        self._plan = None
        self._cursor = 0
        self._status = AgentStatus.idle

    def _execute(self, plan: Plan, delta: float) -> None:
        active = self._active
        if active is None:
            active = self._start_next(plan)
            if active is None:
                self._finish_plan(plan)
                return

        if not active.on_update(self, self._progress[active], delta):
            return

        self._end_active()
        self._cursor += 1
        if self._start_next(plan) is None:
            self._finish_plan(plan)

    def _start_next(self, plan: Plan) -> Action | None:
        if self._cursor >= len(plan.actions):
            return None
        action = plan.actions[self._cursor]
        progress = action.create_progress()
        self._progress[action] = progress
        self._active = action
        self._status = AgentStatus.executing
        action.on_start(self, progress)
        return action

    def _end_active(self) -> None:
        if self._active is None:
            return
        action = self._active
        self._active = None
        action.on_end(self, self._progress[action])

    def _finish_plan(self, plan: Plan) -> None:
        self._logger.info("plan complete", goal=plan.goal.name)
        self._plan = None
        self._cursor = 0
        self._status = AgentStatus.idle


__all__ = ["Agent"]
