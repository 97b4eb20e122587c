"""Tests for the bounded best-first planner and its cache."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import pytest

from goapnpc.actions import AttackEnemyAction, RetrieveWeaponAction
from goapnpc.core import Goal, PlanCache, Planner, PlannerSettings, WorldState, heuristic_score

if TYPE_CHECKING:
    import io
    from collections.abc import Callable

    from goapnpc.core import Agent
    from goapnpc.io.logging import StructuredLogger


def _goal(name: str = "Goal", **desired: bool) -> Goal:
    return Goal(name=name, desired=WorldState.from_facts(desired))


def _chain(fact_action: type[Any], *, shortcut_cost: float) -> list[Any]:
    return [
        fact_action("StepA", eff={"A": True}),
        fact_action("StepB", pre={"A": True}, eff={"B": True}),
        fact_action("StepC", pre={"B": True}, eff={"Done": True}),
        fact_action("Shortcut", cost=shortcut_cost, eff={"Done": True}),
    ]


def test_weapon_then_attack_plan() -> None:
    """An unarmed guard that sees an enemy first fetches a weapon, then attacks."""
    state = WorldState.from_facts({"HasWeapon": False, "EnemyVisible": True})
    actions = [AttackEnemyAction(), RetrieveWeaponAction(destination=(3.0, 0.0))]

    plan = Planner().formulate_plan(state, _goal("DefendTown", EnemyDead=True), actions)

    assert plan is not None
    assert plan.names == ["RetrieveWeapon", "AttackEnemy"]
    assert plan.cost == pytest.approx(2.0)
    assert not plan.exhausted


def test_unreachable_goal_returns_none() -> None:
    """Without a visible enemy no sequence can reach EnemyDead."""
    state = WorldState.from_facts({"HasWeapon": False, "EnemyVisible": False})
    actions = [RetrieveWeaponAction(), AttackEnemyAction()]

    assert Planner().formulate_plan(state, _goal(EnemyDead=True), actions) is None


def test_cheapest_plan_beats_shortest(fact_action: type[Any]) -> None:
    """Three unit-cost steps lose to one step of cost two."""
    plan = Planner().formulate_plan(WorldState(), _goal(Done=True), _chain(fact_action, shortcut_cost=2.0))

    assert plan is not None
    assert plan.names == ["Shortcut"]
    assert plan.cost == pytest.approx(2.0)


def test_longer_plan_wins_when_cheaper(fact_action: type[Any]) -> None:
    """A chain of three unit-cost steps beats a single step of cost five."""
    plan = Planner().formulate_plan(WorldState(), _goal(Done=True), _chain(fact_action, shortcut_cost=5.0))

    assert plan is not None
    assert plan.names == ["StepA", "StepB", "StepC"]
    assert plan.cost == pytest.approx(3.0)


def test_budget_exhaustion_returns_best_so_far(fact_action: type[Any]) -> None:
    """With one expansion only the shortcut found from the root is returned."""
    planner = Planner(PlannerSettings(max_expansions=1, cache_size=0))

    plan = planner.formulate_plan(WorldState(), _goal(Done=True), _chain(fact_action, shortcut_cost=2.5))

    assert plan is not None
    assert plan.names == ["Shortcut"]
    assert plan.exhausted is True
    assert "budget_exhausted" in plan.notes


def test_max_depth_caps_plan_length(fact_action: type[Any]) -> None:
    """A plan longer than max_depth is not found."""
    actions = _chain(fact_action, shortcut_cost=1.0)[:3]

    assert Planner(PlannerSettings(max_depth=2)).formulate_plan(WorldState(), _goal(Done=True), actions) is None
    plan = Planner(PlannerSettings(max_depth=3)).formulate_plan(WorldState(), _goal(Done=True), actions)
    assert plan is not None
    assert len(plan) == 3


def test_equal_cost_keeps_first_found(fact_action: type[Any]) -> None:
    """Among equally cheap plans the one discovered first wins."""
    actions = [
        fact_action("First", eff={"Done": True}),
        fact_action("Second", eff={"Done": True}),
    ]

    plan = Planner().formulate_plan(WorldState(), _goal(Done=True), actions)

    assert plan is not None
    assert plan.names == ["First"]


def test_unachievable_actions_are_filtered(
    fact_action: type[Any],
    make_agent: Callable[..., Agent],
) -> None:
    """Actions rejected by ``is_achievable`` never appear in a plan."""
    blocked = fact_action("Blocked", eff={"Done": True}, achievable=False)
    expensive = fact_action("Expensive", cost=4.0, eff={"Done": True})
    agent = make_agent([blocked, expensive])

    plan = Planner().formulate_plan(WorldState(), _goal(Done=True), [blocked, expensive], agent)

    assert plan is not None
    assert plan.names == ["Expensive"]


def test_unconfigured_action_excluded_when_requested(make_agent: Callable[..., Agent]) -> None:
    """A travel action without destination is dropped when it opts into exclusion."""
    state = WorldState.from_facts({"HasWeapon": False})
    goal = _goal(HasWeapon=True)
    excluded = RetrieveWeaponAction(exclude_when_unconfigured=True)
    lenient = RetrieveWeaponAction()
    agent = make_agent([excluded])

    assert Planner().formulate_plan(state, goal, [excluded], agent) is None
    assert Planner().formulate_plan(state, goal, [lenient], agent) is not None


def test_already_satisfied_goal_yields_empty_plan() -> None:
    """A goal already met by the current state needs no actions."""
    state = WorldState.from_facts({"IsSafe": True})

    plan = Planner().formulate_plan(state, _goal(IsSafe=True), [])

    assert plan is not None
    assert plan.actions == ()
    assert plan.cost == 0.0
    assert "already_satisfied" in plan.notes


def test_goal_without_desired_facts_yields_none(fact_action: type[Any]) -> None:
    """An empty desired state is not a planning target."""
    assert Planner().formulate_plan(WorldState(), _goal(), [fact_action("Any")]) is None


def test_weighted_heuristic_still_finds_plan() -> None:
    """Weighted search reaches the goal as well."""
    planner = Planner(PlannerSettings(heuristic_weight=1.0))
    state = WorldState.from_facts({"HasWeapon": False, "EnemyVisible": True})

    plan = planner.formulate_plan(
        state,
        _goal(EnemyDead=True),
        [RetrieveWeaponAction(), AttackEnemyAction()],
    )

    assert plan is not None
    assert plan.names == ["RetrieveWeapon", "AttackEnemy"]


def test_heuristic_score_counts_unmet_facts() -> None:
    """The heuristic is the weighted number of unmet desired facts."""
    goal = _goal(A=True, B=True)
    state = WorldState.from_facts({"A": True})

    assert heuristic_score(state, goal, 0.0) == 0.0
    assert heuristic_score(state, goal, 2.0) == 2.0
    assert heuristic_score(WorldState(), goal, 1.0) == 2.0


def test_cache_reuses_results_for_relevant_facts(fact_action: type[Any]) -> None:
    """Irrelevant fact changes hit the cache, relevant ones trigger a search."""
    planner = Planner()
    actions = [fact_action("Arm", pre={"Armory": True}, eff={"Armed": True})]
    goal = _goal(Armed=True)

    first = planner.formulate_plan(WorldState.from_facts({"Armory": True}), goal, actions)
    second = planner.formulate_plan(WorldState.from_facts({"Armory": True, "Weather": True}), goal, actions)

    assert planner.cache is not None
    assert second is first
    assert planner.cache.hits == 1

    failed = planner.formulate_plan(WorldState.from_facts({"Armory": False}), goal, actions)
    assert failed is None
    assert planner.cache.misses == 2

    again = planner.formulate_plan(WorldState.from_facts({"Armory": False}), goal, actions)
    assert again is None
    assert planner.cache.hits == 2


def test_cache_hit_returns_plan_for_callers_goal(fact_action: type[Any]) -> None:
    """Equal goals of different agents share the search but not the goal object."""
    planner = Planner()
    actions = [fact_action("Chop", eff={"Wood": True})]
    mine = Goal(name="Gather", desired=WorldState.from_facts({"Wood": True}), priority=10)
    theirs = Goal(name="Gather", desired=WorldState.from_facts({"Wood": True}), priority=90)

    first = planner.formulate_plan(WorldState(), mine, actions)
    second = planner.formulate_plan(WorldState(), theirs, actions)

    assert planner.cache is not None
    assert planner.cache.hits == 1
    assert first is not None
    assert second is not None
    assert first.goal is mine
    assert second.goal is theirs
    assert second.goal.priority == 90
    assert second.actions == first.actions


def test_cache_counts_lookups_not_stores(fact_action: type[Any]) -> None:
    """Misses count searches the cache could not answer."""
    cache = PlanCache(4)
    cache.put("unused", None)
    assert cache.misses == 0

    planner = Planner()
    actions = [fact_action("Arm", eff={"Armed": True})]
    planner.formulate_plan(WorldState(), _goal(Armed=True), actions)
    planner.formulate_plan(WorldState(), _goal(Armed=True), actions)

    assert planner.cache is not None
    assert planner.cache.misses == 1
    assert planner.cache.hits == 1


def test_cache_can_be_disabled(fact_action: type[Any]) -> None:
    """A cache size of zero turns caching off."""
    planner = Planner(PlannerSettings(cache_size=0))
    actions = [fact_action("Arm", eff={"Armed": True})]

    first = planner.formulate_plan(WorldState(), _goal(Armed=True), actions)
    second = planner.formulate_plan(WorldState(), _goal(Armed=True), actions)

    assert planner.cache is None
    assert first is not second


def test_planner_logs_search_results(
    logger: StructuredLogger,
    log_stream: io.StringIO,
    fact_action: type[Any],
) -> None:
    """Found plans are logged with their cost and expansion count."""
    planner = Planner(logger=logger)
    planner.formulate_plan(WorldState(), _goal(Done=True), [fact_action("Finish", eff={"Done": True})])

    records = [json.loads(line) for line in log_stream.getvalue().splitlines()]
    found = [record for record in records if record["message"] == "plan found"]
    assert found
    assert found[0]["actions"] == ["Finish"]
    assert found[0]["cost"] == 1.0
