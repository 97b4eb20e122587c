"""Core GOAP components for goapnpc."""

from .world import WorldState, merge_states
from .models import (
    ActionConfig,
    AgentConfig,
    AgentSnapshot,
    AgentStatus,
    EnemyConfig,
    FactSet,
    Goal,
    GoalConfig,
    Plan,
    PlannerSettings,
    ScenarioConfig,
)
from .action import (
    Action,
    ActionProgress,
    Damageable,
    Mover,
    TargetSensor,
    TimedAction,
    TravelAction,
    Vec2,
    distance,
)
from .planner import PlanCache, Planner, heuristic_score
from .agent import Agent
from .explain import StepExplanation, explain_plan

__all__ = [
    "Action",
    "ActionConfig",
    "ActionProgress",
    "Agent",
    "AgentConfig",
    "AgentSnapshot",
    "AgentStatus",
    "Damageable",
    "EnemyConfig",
    "FactSet",
    "Goal",
    "GoalConfig",
    "Mover",
    "Plan",
    "PlanCache",
    "Planner",
    "PlannerSettings",
    "ScenarioConfig",
    "StepExplanation",
    "TargetSensor",
    "TimedAction",
    "TravelAction",
    "Vec2",
    "WorldState",
    "distance",
    "explain_plan",
    "heuristic_score",
    "merge_states",
]
