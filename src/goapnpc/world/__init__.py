"""Reference collaborators used to drive agents in a simple simulation."""

from .mover import ARRIVAL_THRESHOLD, KinematicMover
from .raid import RAID_FACT, RaidController
from .targets import Dummy, TargetRegistry, VisibilitySensor

__all__ = [
    "ARRIVAL_THRESHOLD",
    "RAID_FACT",
    "Dummy",
    "KinematicMover",
    "RaidController",
    "TargetRegistry",
    "VisibilitySensor",
]
