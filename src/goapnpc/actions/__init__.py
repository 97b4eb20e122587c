"""Concrete NPC actions and the registry used to build them from configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .defense import AttackEnemyAction, BarricadeGateAction, PatrolAction, RetrieveWeaponAction
from .social import SocializeAction
from .survival import EatFoodAction, FleeAction, UsePotionAction

if TYPE_CHECKING:
    from goapnpc.core.action import Action
    from goapnpc.core.models import ActionConfig


ACTION_TYPES: dict[str, type[Action]] = {
    "attack_enemy": AttackEnemyAction,
    "barricade_gate": BarricadeGateAction,
    "eat_food": EatFoodAction,
    "flee": FleeAction,
    "patrol": PatrolAction,
    "retrieve_weapon": RetrieveWeaponAction,
    "socialize": SocializeAction,
    "use_potion": UsePotionAction,
}


def build_action(config: ActionConfig) -> Action:
    """Instantiate the action described by ``config``.

    Raises:
        ValueError: If the action type is unknown or its parameters are invalid.

    """
    action_type = ACTION_TYPES.get(config.type)
    if action_type is None:
        known = ", ".join(sorted(ACTION_TYPES))
        msg = f"unknown action type {config.type!r} (known: {known})"
        raise ValueError(msg)

    try:
        params = _coerce_params(config.params)
        return action_type(
            name=config.name,
            cost=config.cost,
            exclude_when_unconfigured=config.exclude_when_unconfigured,
            **params,
        )
    except (TypeError, ValueError) as exc:
        msg = f"invalid parameters for action type {config.type!r}: {exc}"
        raise ValueError(msg) from exc


def _coerce_params(params: dict[str, Any]) -> dict[str, Any]:
    coerced = dict(params)
    if coerced.get("destination") is not None:
        coerced["destination"] = _point(coerced["destination"])
    if "waypoints" in coerced:
        coerced["waypoints"] = tuple(_point(point) for point in coerced["waypoints"])
    return coerced


def _point(value: Any) -> tuple[float, float]:
    x, y = value
    return (float(x), float(y))


__all__ = [
    "ACTION_TYPES",
    "AttackEnemyAction",
    "BarricadeGateAction",
    "EatFoodAction",
    "FleeAction",
    "PatrolAction",
    "RetrieveWeaponAction",
    "SocializeAction",
    "UsePotionAction",
    "build_action",
]
