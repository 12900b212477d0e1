"""
One-way phase latch.

A latch walks forward through a fixed ordering of enum members and refuses
to step back. The reveal phase and the presale phase are both latches.
"""

from __future__ import annotations

from typing import Generic, List, Optional, Sequence, Type, TypeVar
from enum import Enum

from mintgate.protocol.errors import IllegalPhaseTransition

P = TypeVar("P", bound=Enum)


class PhaseLatch(Generic[P]):
    def __init__(self, phases: Sequence[P], initial: Optional[P] = None):
        if not phases:
            raise ValueError("A latch needs at least one phase")
        self._order: List[P] = list(phases)
        self._current: P = self._order[0] if initial is None else initial
        if self._current not in self._order:
            raise ValueError(f"Unknown phase: {initial!r}")

    @classmethod
    def of(cls, enum_type: Type[P], initial: Optional[P] = None) -> "PhaseLatch[P]":
        """Latch over every member of an enum, in declaration order."""
        return cls(list(enum_type), initial)

    @property
    def current(self) -> P:
        return self._current

    @property
    def is_final(self) -> bool:
        return self._current is self._order[-1]

    def reached(self, phase: P) -> bool:
        return self._order.index(self._current) >= self._order.index(phase)

    def advance(self, target: P) -> P:
        """
        Move to a later phase and return the phase left behind.

        Raises:
            IllegalPhaseTransition: if target is not strictly later
        """
        if target not in self._order:
            raise ValueError(f"Unknown phase: {target!r}")
        if self._order.index(target) <= self._order.index(self._current):
            raise IllegalPhaseTransition(self._current, target)
        previous = self._current
        self._current = target
        return previous

    def rewind(self, phase: P) -> None:
        """Journal rollback only. Restores a phase left by an aborted operation."""
        self._current = phase

    def __repr__(self) -> str:
        return f"PhaseLatch({self._current!r})"
