"""Utilities for explaining action plans to users."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import Plan
    from .world import WorldState


@dataclass(frozen=True, slots=True)
class StepExplanation:
    """Human readable explanation for one step of a plan."""

    index: int
    action: str
    cost: float
    running_cost: float
    requires: dict[str, Any]
    provides: dict[str, Any]
    unlocks: tuple[str, ...]


def explain_plan(plan: Plan, start_state: WorldState | None = None) -> list[StepExplanation]:
    """Generate explanations for each step within ``plan``.

    Args:
        plan: The plan to explain.
        start_state: Optional state the plan starts from. When given, each step
            lists the later steps whose preconditions it helped to satisfy.

    Returns:
        A list of :class:`StepExplanation` entries mirroring the order of
        actions within ``plan``.

    """
    explanations: list[StepExplanation] = []
    running_cost = 0.0
    simulated = start_state.clone() if start_state is not None else None

    for index, action in enumerate(plan.actions):
        running_cost += action.cost
        effects = action.effects()
        unlocks: tuple[str, ...] = ()
        if simulated is not None:
            before = simulated.clone()
            simulated.apply_effects(effects)
            unlocks = tuple(
                later.name
                for later in plan.actions[index + 1 :]
                if simulated.satisfies(later.preconditions())
                and not before.satisfies(later.preconditions())
            )
        explanations.append(
            StepExplanation(
                index=index + 1,
                action=action.name,
                cost=action.cost,
                running_cost=running_cost,
                requires=action.preconditions().as_dict(),
                provides=effects.as_dict(),
                unlocks=unlocks,
            ),
        )

    return explanations


__all__ = ["StepExplanation", "explain_plan"]
