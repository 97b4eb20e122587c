"""Core data models for goapnpc."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .world import WorldState

if TYPE_CHECKING:  # pragma: no cover - typing helpers only
    from .action import Action


class AgentStatus(str, Enum):
    """Conceptual execution state of an agent."""

    idle = "idle"
    planning = "planning"
    executing = "executing"


@dataclass(frozen=True, slots=True, eq=False)
class Goal:
    """A desired partial world state with a priority and an activation predicate."""

    name: str
    desired: WorldState
    priority: float = 0
    activation: WorldState | None = None

    def is_active(self, state: WorldState) -> bool:
        """Return whether this goal is relevant for ``state``."""
        if self.activation is None:
            return True
        return state.satisfies(self.activation)

    def is_satisfied(self, state: WorldState) -> bool:
        """Return whether ``state`` already meets the desired facts."""
        return state.satisfies(self.desired)


@dataclass(frozen=True, slots=True)
class Plan:
    """Ordered actions found by the planner for a goal."""

    goal: Goal
    actions: tuple[Action, ...]
    cost: float
    expansions: int = 0
    exhausted: bool = False
    notes: tuple[str, ...] = field(default_factory=tuple)

    @property
    def names(self) -> list[str]:
        """Return the action names in execution order."""
        return [action.name for action in self.actions]

    def __len__(self) -> int:
        """Return the number of actions in the plan."""
        return len(self.actions)


class FactSet(BaseModel):
    """Serialisable set of boolean and integer facts."""

    bools: dict[str, bool] = Field(default_factory=dict)
    ints: dict[str, int] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True, extra="forbid")

    def to_state(self) -> WorldState:
        """Materialise the facts as a :class:`WorldState`."""
        return WorldState.from_facts(self.bools, self.ints)


class GoalConfig(BaseModel):
    """Goal definition loaded from a scenario file."""

    name: str
    priority: float = 0
    desired: FactSet
    activation: FactSet | None = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("desired")
    @classmethod
    def _require_desired_facts(cls, value: FactSet) -> FactSet:
        """Reject goals that would be satisfied by any state."""
        if not value.bools and not value.ints:
            msg = "goal must declare at least one desired fact"
            raise ValueError(msg)
        return value

    def to_goal(self) -> Goal:
        """Build the runtime :class:`Goal`."""
        activation = self.activation.to_state() if self.activation is not None else None
        return Goal(
            name=self.name,
            desired=self.desired.to_state(),
            priority=self.priority,
            activation=activation,
        )


class ActionConfig(BaseModel):
    """Action instance definition; ``params`` are forwarded to the action type."""

    type: str
    name: str | None = None
    cost: float = Field(default=1.0, ge=0.0)
    exclude_when_unconfigured: bool = False
    params: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True, extra="forbid")


class PlannerSettings(BaseModel):
    """Search budget and heuristic weighting for the planner."""

    max_depth: int = Field(default=8, ge=1)
    max_expansions: int = Field(default=5000, ge=1)
    heuristic_weight: float = Field(default=0.0, ge=0.0)
    cache_size: int = Field(default=128, ge=0)

    model_config = ConfigDict(frozen=True, extra="forbid")


class AgentConfig(BaseModel):
    """Per-agent configuration: identity, facts, goals and action library."""

    name: str
    position: tuple[float, float] = (0.0, 0.0)
    speed: float = Field(default=2.0, gt=0.0)
    replan_interval: float = Field(default=0.0, ge=0.0)
    local_facts: FactSet = Field(default_factory=FactSet)
    goals: list[GoalConfig] = Field(default_factory=list)
    actions: list[ActionConfig] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class EnemyConfig(BaseModel):
    """Enemy spawned by the raid controller during a simulation."""

    position: tuple[float, float]
    health: float = Field(default=30.0, gt=0.0)

    model_config = ConfigDict(frozen=True, extra="forbid")


class ScenarioConfig(BaseModel):
    """Top level configuration schema validated from TOML files."""

    global_facts: FactSet = Field(default_factory=FactSet)
    planner: PlannerSettings = Field(default_factory=PlannerSettings)
    agents: list[AgentConfig]
    enemies: list[EnemyConfig] = Field(default_factory=list)
    visibility_radius: float = Field(default=10.0, gt=0.0)

    model_config = ConfigDict(extra="forbid")

    @field_validator("agents")
    @classmethod
    def _unique_agent_names(cls, value: list[AgentConfig]) -> list[AgentConfig]:
        """Ensure agents can be addressed by name."""
        names = [agent.name for agent in value]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            msg = f"duplicate agent names: {', '.join(duplicates)}"
            raise ValueError(msg)
        return value


class AgentSnapshot(BaseModel):
    """Diagnostic view of an agent for telemetry and UI display."""

    name: str
    status: AgentStatus
    goal: str | None = None
    plan: list[str] = Field(default_factory=list)
    cursor: int = 0
    current_action: str | None = None
    local_facts: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True, extra="forbid")


__all__ = [
    "ActionConfig",
    "AgentConfig",
    "AgentSnapshot",
    "AgentStatus",
    "EnemyConfig",
    "FactSet",
    "Goal",
    "GoalConfig",
    "Plan",
    "PlannerSettings",
    "ScenarioConfig",
]
