"""Self-preservation actions: eating, drinking potions and fleeing."""

from __future__ import annotations

from typing import ClassVar, TYPE_CHECKING

from goapnpc.core.action import TimedAction, TravelAction

if TYPE_CHECKING:
    from collections.abc import Mapping


class EatFoodAction(TimedAction):
    """Eat for a while to recover stamina; needs no preconditions."""

    default_name: ClassVar[str] = "EatFood"
    default_duration: ClassVar[float] = 2.0
    provides: ClassVar[Mapping[str, bool]] = {"StaminaRecovered": True}


class UsePotionAction(TimedAction):
    """Drink a potion to clear the low health flag."""

    default_name: ClassVar[str] = "UsePotion"
    default_duration: ClassVar[float] = 1.5
    required: ClassVar[Mapping[str, bool]] = {"HealthLow": True}
    provides: ClassVar[Mapping[str, bool]] = {"HealthLow": False}


class FleeAction(TravelAction):
    """Run to a safe location while health is low; done on arrival."""

    default_name: ClassVar[str] = "Flee"
    required: ClassVar[Mapping[str, bool]] = {"HealthLow": True}
    provides: ClassVar[Mapping[str, bool]] = {"IsSafe": True}


__all__ = ["EatFoodAction", "FleeAction", "UsePotionAction"]
