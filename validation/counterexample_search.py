"""Counterexample search -- discovers gaps in implementation or tests.

This module runs independently of the test suite.  Starting from the
initial state it explores every reachable calculator state up to a
fixed number of key presses and searches for:

1. Invariant violations: reachable states that break a state invariant.
2. Postcondition violations: transitions whose next state doesn't match
   the contract for the pressed key.
3. Property violations: behavioural relationships that fail from some
   reachable state.
4. Scenario failures: fixed key sequences with the wrong display.

Run directly::

    python -m validation.counterexample_search
"""
from __future__ import annotations

import sys
from dataclasses import dataclass, field

from calculator import INITIAL_STATE, CalculatorState, press, run
from contract import KEY_LABELS, CalculatorContract, build_contract

DEFAULT_DEPTH = 4


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass
class Counterexample:
    category: str
    check: str
    keys: tuple[str, ...]
    expected: str
    actual: str


@dataclass
class SearchReport:
    counterexamples: list[Counterexample] = field(default_factory=list)
    checks_run: int = 0
    states_explored: int = 0

    @property
    def passed(self) -> bool:
        return len(self.counterexamples) == 0

    def summary(self) -> str:
        lines = [
            "Counterexample Search Report",
            "=" * 40,
            f"States explored: {self.states_explored}",
            f"Total checks: {self.checks_run}",
            f"Counterexamples found: {len(self.counterexamples)}",
        ]
        if self.counterexamples:
            lines.append("")
            for i, cx in enumerate(self.counterexamples, 1):
                lines.append(f"  [{i}] {cx.category} / {cx.check}")
                lines.append(f"      Keys:     {' '.join(cx.keys)}")
                lines.append(f"      Expected: {cx.expected}")
                lines.append(f"      Actual:   {cx.actual}")
        else:
            lines.append("\nNo counterexamples found -- all checks passed.")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Exploration
# ---------------------------------------------------------------------------

def reachable_states(
    depth: int, labels: list[str] = KEY_LABELS
) -> dict[CalculatorState, tuple[str, ...]]:
    """Breadth-first walk of distinct states, keyed to a shortest key path."""
    seen: dict[CalculatorState, tuple[str, ...]] = {INITIAL_STATE: ()}
    frontier = [INITIAL_STATE]
    for _ in range(depth):
        next_frontier = []
        for state in frontier:
            path = seen[state]
            for label in labels:
                nxt = press(state, label)
                if nxt not in seen:
                    seen[nxt] = path + (label,)
                    next_frontier.append(nxt)
        frontier = next_frontier
    return seen


# ---------------------------------------------------------------------------
# Search functions
# ---------------------------------------------------------------------------

def search_invariant_violations(
    contract: CalculatorContract,
    states: dict[CalculatorState, tuple[str, ...]],
) -> tuple[list[Counterexample], int]:
    cxs: list[Counterexample] = []
    checks = 0
    for state, path in states.items():
        for inv in contract.invariants:
            checks += 1
            if not inv.check(state):
                cxs.append(Counterexample(
                    category="invariant_violation",
                    check=inv.name,
                    keys=path,
                    expected=inv.description,
                    actual=repr(state),
                ))
    return cxs, checks


def search_postcondition_violations(
    contract: CalculatorContract,
    states: dict[CalculatorState, tuple[str, ...]],
    labels: list[str] = KEY_LABELS,
) -> tuple[list[Counterexample], int]:
    cxs: list[Counterexample] = []
    checks = 0
    for before, path in states.items():
        for label in labels:
            after = press(before, label)
            for post in contract.postconditions_for(label):
                checks += 1
                if not post.check(before, label, after):
                    cxs.append(Counterexample(
                        category="postcondition_violation",
                        check=post.name,
                        keys=path + (label,),
                        expected=post.description,
                        actual=repr(after),
                    ))
    return cxs, checks


def search_property_violations(
    contract: CalculatorContract,
    states: dict[CalculatorState, tuple[str, ...]],
) -> tuple[list[Counterexample], int]:
    cxs: list[Counterexample] = []
    checks = 0
    for state, path in states.items():
        for prop in contract.properties:
            checks += 1
            if not prop.check(press, state):
                cxs.append(Counterexample(
                    category="property_violation",
                    check=prop.name,
                    keys=path,
                    expected=prop.description,
                    actual="property does not hold",
                ))
    return cxs, checks


def search_scenario_failures(
    contract: CalculatorContract,
) -> tuple[list[Counterexample], int]:
    cxs: list[Counterexample] = []
    for scenario in contract.scenarios:
        display = run(scenario.labels).display
        if display != scenario.expected_display:
            cxs.append(Counterexample(
                category="scenario_failure",
                check=scenario.name,
                keys=scenario.labels,
                expected=scenario.expected_display,
                actual=display,
            ))
    return cxs, len(contract.scenarios)


# ---------------------------------------------------------------------------
# Top-level runner
# ---------------------------------------------------------------------------

def run_search(depth: int = DEFAULT_DEPTH) -> SearchReport:
    """Run the complete counterexample search to the given key depth."""
    contract = build_contract()
    states = reachable_states(depth)
    report = SearchReport(states_explored=len(states))

    for cxs, checks in (
        search_invariant_violations(contract, states),
        search_postcondition_violations(contract, states),
        search_property_violations(contract, states),
        search_scenario_failures(contract),
    ):
        report.counterexamples.extend(cxs)
        report.checks_run += checks

    return report


def main() -> None:
    depth = int(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_DEPTH
    print(f"\n--- Exploring key sequences up to length {depth} ---")
    report = run_search(depth)
    print(report.summary())
    if not report.passed:
        sys.exit(1)


if __name__ == "__main__":
    main()
