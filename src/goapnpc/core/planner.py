"""Planner, heuristic and plan cache for goapnpc."""

from __future__ import annotations

import heapq
import itertools
from collections import OrderedDict
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from .models import Goal, Plan, PlannerSettings

if TYPE_CHECKING:  # pragma: no cover - typing helpers only
    from collections.abc import Hashable, Sequence

    from goapnpc.io.logging import StructuredLogger

    from .action import Action
    from .agent import Agent
    from .world import WorldState


def heuristic_score(state: WorldState, goal: Goal, weight: float = 1.0) -> float:
    """Estimate the remaining cost from ``state`` to ``goal``.

    The estimate is ``weight`` times the number of desired facts that ``state``
    does not yet meet. A weight of zero turns the search into uniform cost
    search, which always returns the cheapest plan within the budget; larger
    weights reach a plan with fewer expansions at the risk of a costlier one.
    """
    if weight <= 0:
        return 0.0
    return weight * state.unmet_count(goal.desired)


@dataclass(slots=True)
class _Node:
    parent: _Node | None
    action: Action | None
    state: WorldState
    cost: float
    depth: int
    remaining: frozenset[int]


class PlanCache:
    """Least-recently-used cache of planning results.

    Failed searches are cached as ``None`` so an unreachable goal is not
    searched again until one of the facts it depends on changes. ``hits`` and
    ``misses`` count lookups answered from the cache and lookups that needed a
    search.
    """

    def __init__(self, max_size: int = 128) -> None:
        """Create a cache holding at most ``max_size`` entries."""
        self._max_size = max_size
        self._entries: OrderedDict[Hashable, Plan | None] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        """Return the number of cached entries."""
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        """Return whether ``key`` has a cached result."""
        return key in self._entries

    def get(self, key: Hashable) -> Plan | None:
        """Return the cached result for ``key``; check membership first."""
        self.hits += 1
        self._entries.move_to_end(key)
        return self._entries[key]

    def put(self, key: Hashable, plan: Plan | None) -> None:
        """Store ``plan`` under ``key``, evicting the oldest entry when full."""
        if self._max_size <= 0:
            return
        self._entries[key] = plan
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_size:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        """Drop every cached result."""
        self._entries.clear()


class Planner:
    """Bounded best-first GOAP planner.

    Nodes are expanded in order of cumulative cost plus the weighted heuristic.
    Each action is used at most once per plan. When the expansion budget runs
    out, the cheapest plan found so far is returned.
    """

    def __init__(
        self,
        settings: PlannerSettings | None = None,
        *,
        logger: StructuredLogger | None = None,
    ) -> None:
        """Create a planner with the provided search settings."""
        self._settings = settings or PlannerSettings()
        self._logger = logger
        self._cache = PlanCache(self._settings.cache_size) if self._settings.cache_size > 0 else None

    @property
    def settings(self) -> PlannerSettings:
        """Return the active search settings."""
        return self._settings

    @property
    def cache(self) -> PlanCache | None:
        """Return the plan cache, or ``None`` when caching is disabled."""
        return self._cache

    def formulate_plan(
        self,
        current_state: WorldState,
        goal: Goal,
        actions: Sequence[Action],
        agent: Agent | None = None,
    ) -> Plan | None:
        """Return the cheapest plan turning ``current_state`` into one meeting ``goal``.

        Actions failing ``is_achievable(agent)`` are ignored. Returns ``None``
        when no sequence of the remaining actions reaches the goal.
        """
        if not goal.desired.fact_names():
            self._log("debug", "goal has no desired facts", goal=goal.name)
            return None

        usable = [action for action in actions if agent is None or action.is_achievable(agent)]
        preconditions = [action.preconditions() for action in usable]
        effects = [action.effects() for action in usable]

        cache_key: Hashable | None = None
        if self._cache is not None:
            cache_key = self._cache_key(current_state, goal, usable, preconditions)
            if cache_key in self._cache:
                cached = self._cache.get(cache_key)
                self._log("debug", "plan cache hit", goal=goal.name, found=cached is not None)
                if cached is not None and cached.goal is not goal:
                    # Equal goals of other agents share the result, not the goal.
                    cached = replace(cached, goal=goal)
                return cached
            self._cache.misses += 1

        plan = self._search(current_state, goal, usable, preconditions, effects)

        if self._cache is not None and cache_key is not None:
            self._cache.put(cache_key, plan)

        if plan is None:
            self._log("debug", "no plan found", goal=goal.name, candidates=len(usable))
        else:
            self._log(
                "debug",
                "plan found",
                goal=goal.name,
                actions=plan.names,
                cost=plan.cost,
                expansions=plan.expansions,
                exhausted=plan.exhausted,
            )
        return plan

    def _search(
        self,
        current_state: WorldState,
        goal: Goal,
        usable: list[Action],
        preconditions: list[WorldState],
        effects: list[WorldState],
    ) -> Plan | None:
        settings = self._settings
        weight = settings.heuristic_weight

        if current_state.satisfies(goal.desired):
            return Plan(goal=goal, actions=(), cost=0.0, notes=("already_satisfied",))

        counter = itertools.count()
        root = _Node(
            parent=None,
            action=None,
            state=current_state.clone(),
            cost=0.0,
            depth=0,
            remaining=frozenset(range(len(usable))),
        )
        frontier: list[tuple[float, int, _Node]] = [(0.0, next(counter), root)]
        seen: dict[tuple[Any, frozenset[int]], float] = {}
        best: _Node | None = None
        expansions = 0
        exhausted = False

        while frontier:
            _, _, node = heapq.heappop(frontier)
            if best is not None and node.cost >= best.cost:
                if weight <= 0:
                    break
                continue
            if expansions >= settings.max_expansions:
                exhausted = True
                break
            expansions += 1

            for index in sorted(node.remaining):
                if not node.state.satisfies(preconditions[index]):
                    continue
                action = usable[index]
                child = _Node(
                    parent=node,
                    action=action,
                    state=node.state.clone().apply_effects(effects[index]),
                    cost=node.cost + action.cost,
                    depth=node.depth + 1,
                    remaining=node.remaining - {index},
                )
                if child.state.satisfies(goal.desired):
                    if best is None or child.cost < best.cost:
                        best = child
                    continue
                if best is not None and child.cost >= best.cost:
                    continue
                if child.depth >= settings.max_depth:
                    continue
                seen_key = (child.state.key(), child.remaining)
                previous = seen.get(seen_key)
                if previous is not None and previous <= child.cost:
                    continue
                seen[seen_key] = child.cost
                priority = child.cost + heuristic_score(child.state, goal, weight)
                heapq.heappush(frontier, (priority, next(counter), child))

        if best is None:
            return None

        notes = [f"expansions={expansions}", f"heuristic_weight={weight:g}"]
        if exhausted:
            notes.append("budget_exhausted")
        return Plan(
            goal=goal,
            actions=tuple(_unwind(best)),
            cost=best.cost,
            expansions=expansions,
            exhausted=exhausted,
            notes=tuple(notes),
        )

    def _cache_key(
        self,
        current_state: WorldState,
        goal: Goal,
        usable: list[Action],
        preconditions: list[WorldState],
    ) -> Hashable:
        relevant = goal.desired.fact_names()
        for condition in preconditions:
            relevant |= condition.fact_names()
        return (
            goal.name,
            goal.desired.key(),
            tuple(id(action) for action in usable),
            current_state.restricted_to(relevant).key(),
        )

    def _log(self, level: str, message: str, **fields: Any) -> None:
        if self._logger is not None:
            getattr(self._logger, level)(message, **fields)


def _unwind(leaf: _Node) -> list[Action]:
    actions: list[Action] = []
    node: _Node | None = leaf
    while node is not None and node.action is not None:
        actions.append(node.action)
        node = node.parent
    actions.reverse()
    return actions


__all__ = ["PlanCache", "Planner", "heuristic_score"]
