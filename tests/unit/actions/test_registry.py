"""Tests for building actions from configuration."""

from __future__ import annotations

import pytest

from goapnpc.actions import ACTION_TYPES, FleeAction, PatrolAction, build_action
from goapnpc.core import ActionConfig


def test_registry_covers_every_action_type() -> None:
    """All eight NPC actions can be configured."""
    assert sorted(ACTION_TYPES) == [
        "attack_enemy",
        "barricade_gate",
        "eat_food",
        "flee",
        "patrol",
        "retrieve_weapon",
        "socialize",
        "use_potion",
    ]


def test_build_action_applies_options() -> None:
    """Name, cost and parameters are forwarded to the action."""
    action = build_action(
        ActionConfig(
            type="flee",
            name="RunHome",
            cost=2.5,
            exclude_when_unconfigured=True,
            params={"destination": [1, 2]},
        ),
    )

    assert isinstance(action, FleeAction)
    assert action.name == "RunHome"
    assert action.cost == 2.5
    assert action.destination == (1.0, 2.0)
    assert action.exclude_when_unconfigured is True


def test_build_action_converts_waypoints() -> None:
    """Patrol routes become tuples of float points."""
    action = build_action(ActionConfig(type="patrol", params={"waypoints": [[1, 0], [2, 3]]}))

    assert isinstance(action, PatrolAction)
    assert action.waypoints == ((1.0, 0.0), (2.0, 3.0))


def test_unknown_action_type_is_rejected() -> None:
    """Unknown types list the known ones."""
    with pytest.raises(ValueError, match="unknown action type 'dance'"):
        build_action(ActionConfig(type="dance"))


@pytest.mark.parametrize(
    "params",
    [{"speed": 3}, {"destination": [1, 2, 3]}, {"duration": -1}],
)
def test_invalid_parameters_are_reported(params: dict[str, object]) -> None:
    """Bad constructor arguments surface as ValueError."""
    with pytest.raises(ValueError, match="invalid parameters for action type 'socialize'"):
        build_action(ActionConfig(type="socialize", params=params))
