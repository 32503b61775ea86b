"""
State machine value objects (``paytrack_kernel.domain.workflow``).

A ``Workflow`` is a closed set of states and the actions that move between
them.  It only answers questions ("may ``submit`` fire from ``draft``?",
"which guard protects ``unfinalize``?"); the service that owns the row
performs the change and evaluates the guard.

Invariants enforced
-------------------
* Every transition connects declared states.
* The initial state is declared.
* One action has one guard, whichever state it fires from.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Guard:
    """Named precondition on the actor; ``description`` is for humans."""
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None


@dataclass(frozen=True)
class Workflow:
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(
                f"{self.name}: initial state {self.initial_state!r} is not declared"
            )
        guards: dict[str, Guard | None] = {}
        for t in self.transitions:
            for state in (t.from_state, t.to_state):
                if state not in self.states:
                    raise ValueError(
                        f"{self.name}: {t.action!r} uses unknown state {state!r}"
                    )
            if guards.setdefault(t.action, t.guard) != t.guard:
                raise ValueError(f"{self.name}: {t.action!r} has conflicting guards")

    def find_transition(self, from_state: str, action: str) -> Transition | None:
        return next(
            (t for t in self.transitions if t.from_state == from_state and t.action == action),
            None,
        )

    def actions_from(self, state: str) -> tuple[str, ...]:
        return tuple(t.action for t in self.transitions if t.from_state == state)

    def guard_for(self, action: str) -> Guard | None:
        """Guard protecting ``action``; KeyError if the workflow has no such action."""
        for t in self.transitions:
            if t.action == action:
                return t.guard
        raise KeyError(action)
