"""Evening routine actions."""

from __future__ import annotations

from typing import ClassVar, TYPE_CHECKING

from goapnpc.core.action import TravelAction

if TYPE_CHECKING:
    from collections.abc import Mapping


class SocializeAction(TravelAction):
    """Walk to the tavern in the evening and spend some time there."""

    default_name: ClassVar[str] = "Socialize"
    default_duration: ClassVar[float] = 5.0
    required: ClassVar[Mapping[str, bool]] = {"IsEvening": True}
    provides: ClassVar[Mapping[str, bool]] = {"Socialized": True}


__all__ = ["SocializeAction"]
