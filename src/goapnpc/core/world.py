"""World state representation shared by the planner and agents."""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - typing helpers only
    from collections.abc import Iterable, Mapping


StateKey = tuple[tuple[tuple[str, bool], ...], tuple[tuple[str, int], ...]]


class WorldState:
    """Versioned snapshot of named boolean and integer facts.

    Unset boolean facts read as ``False`` and unset integer facts read as ``0``.
    Condition checks are stricter than reads, see :meth:`satisfies`.
    """

    __slots__ = ("_bools", "_ints", "_version")

    def __init__(self) -> None:
        """Create an empty world state."""
        self._bools: dict[str, bool] = {}
        self._ints: dict[str, int] = {}
        self._version = 0

    @classmethod
    def from_facts(
        cls,
        bools: Mapping[str, bool] | None = None,
        ints: Mapping[str, int] | None = None,
    ) -> WorldState:
        """Build a state from plain mappings of boolean and integer facts."""
        state = cls()
        for key, value in (bools or {}).items():
            state.set_bool(key, value)
        for key, value in (ints or {}).items():
            state.set_int(key, value)
        return state

    @property
    def version(self) -> int:
        """Return the number of mutations applied to this state."""
        return self._version

    @property
    def bools(self) -> Mapping[str, bool]:
        """Return a read-only view of the boolean facts."""
        return MappingProxyType(self._bools)

    @property
    def ints(self) -> Mapping[str, int]:
        """Return a read-only view of the integer facts."""
        return MappingProxyType(self._ints)

    def set_bool(self, key: str, value: bool) -> None:
        """Set boolean fact ``key`` to ``value``."""
        self._bools[key] = bool(value)
        self._version += 1

    def get_bool(self, key: str) -> bool:
        """Return boolean fact ``key``, ``False`` when unset."""
        return self._bools.get(key, False)

    def has_bool(self, key: str) -> bool:
        """Return ``True`` when boolean fact ``key`` has been set."""
        return key in self._bools

    def set_int(self, key: str, value: int) -> None:
        """Set integer fact ``key`` to ``value``."""
        self._ints[key] = int(value)
        self._version += 1

    def get_int(self, key: str) -> int:
        """Return integer fact ``key``, ``0`` when unset."""
        return self._ints.get(key, 0)

    def has_int(self, key: str) -> bool:
        """Return ``True`` when integer fact ``key`` has been set."""
        return key in self._ints

    def clone(self) -> WorldState:
        """Return an independent deep copy of this state."""
        copy = WorldState()
        copy._bools = dict(self._bools)
        copy._ints = dict(self._ints)
        copy._version = self._version
        return copy

    def satisfies(self, conditions: WorldState) -> bool:
        """Return ``True`` when this state meets every fact in ``conditions``.

        Boolean conditions require the key to be set to exactly the same value,
        so a ``False`` condition is not met by an unset key. Integer conditions
        are thresholds: the key must be set with a value greater than or equal
        to the required one. Facts absent from ``conditions`` are ignored.
        """
        for key, required in conditions._bools.items():
            if key not in self._bools or self._bools[key] != required:
                return False
        for key, minimum in conditions._ints.items():
            if key not in self._ints or self._ints[key] < minimum:
                return False
        return True

    def apply_effects(self, effects: WorldState) -> WorldState:
        """Overwrite or insert every fact from ``effects`` and return ``self``."""
        if not effects._bools and not effects._ints:
            return self
        self._bools.update(effects._bools)
        self._ints.update(effects._ints)
        self._version += 1
        return self

    def unmet_count(self, conditions: WorldState) -> int:
        """Return how many facts in ``conditions`` this state does not meet."""
        unmet = 0
        for key, required in conditions._bools.items():
            if key not in self._bools or self._bools[key] != required:
                unmet += 1
        for key, minimum in conditions._ints.items():
            if key not in self._ints or self._ints[key] < minimum:
                unmet += 1
        return unmet

    def fact_names(self) -> set[str]:
        """Return the names of every fact set on this state."""
        return set(self._bools) | set(self._ints)

    def restricted_to(self, names: Iterable[str]) -> WorldState:
        """Return a copy holding only the facts named in ``names``."""
        wanted = set(names)
        subset = WorldState()
        subset._bools = {key: value for key, value in self._bools.items() if key in wanted}
        subset._ints = {key: value for key, value in self._ints.items() if key in wanted}
        return subset

    def key(self) -> StateKey:
        """Return a hashable identity for the facts held by this state."""
        return (tuple(sorted(self._bools.items())), tuple(sorted(self._ints.items())))

    def as_dict(self) -> dict[str, Any]:
        """Return the facts as plain dictionaries for display or JSON output."""
        return {"bools": dict(sorted(self._bools.items())), "ints": dict(sorted(self._ints.items()))}

    def __eq__(self, other: object) -> bool:
        """Compare states by their facts, ignoring the version counter."""
        if not isinstance(other, WorldState):
            return NotImplemented
        return self._bools == other._bools and self._ints == other._ints

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        """Return a compact debug representation."""
        facts = [f"{key}={value}" for key, value in sorted(self._bools.items())]
        facts.extend(f"{key}={value}" for key, value in sorted(self._ints.items()))
        return f"WorldState({', '.join(facts)})"


def merge_states(*states: WorldState | None) -> WorldState:
    """Return a fresh state with ``states`` applied in order, later ones winning."""
    merged = WorldState()
    for state in states:
        if state is not None:
            merged.apply_effects(state)
    return merged


__all__ = ["StateKey", "WorldState", "merge_states"]
