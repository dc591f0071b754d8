"""Executable contract for the keypad calculator engine.

Each key kind is specified as a collection of:
- postconditions: what the next state must satisfy given the previous
  state and the pressed label
- state properties: behavioural relationships that must hold from any
  reachable state
- scenarios: concrete key sequences with their expected display

The contract is machine-readable.  Validation tools iterate over it to
auto-generate conformance tests and search for counterexamples.

Layers
------
Invariant            holds for every reachable state
KeyContract          per-key-kind contract (postconditions)
StateProperty        relationship checked from an arbitrary state
Scenario             a key sequence and the display it must produce
BranchContract       every decision point that white-box tests must cover
CalculatorContract   the full contract for the engine
build_contract()     constructs the CalculatorContract
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable

from calculator import (
    INITIAL_STATE,
    CalculatorState,
    KeyKind,
    Operator,
    classify,
    compute,
    format_number,
    parse_number,
)

Press = Callable[[CalculatorState, str], CalculatorState]

# Every label the keypad can emit.
DIGIT_LABELS = [str(d) for d in range(10)]
OPERATOR_LABELS = [op.value for op in Operator]
COMMAND_LABELS = [".", "AC", "+/-", "%", "="]
KEY_LABELS = DIGIT_LABELS + OPERATOR_LABELS + COMMAND_LABELS


# ---------------------------------------------------------------------------
# Contract building blocks
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Invariant:
    name: str
    description: str
    check: Callable[[CalculatorState], bool]


@dataclass(frozen=True)
class Postcondition:
    name: str
    description: str
    check: Callable[[CalculatorState, str, CalculatorState], bool]


@dataclass(frozen=True)
class KeyContract:
    kind: KeyKind
    postconditions: list[Postcondition]


@dataclass(frozen=True)
class StateProperty:
    name: str
    description: str
    check: Callable[[Press, CalculatorState], bool]


@dataclass(frozen=True)
class Scenario:
    name: str
    labels: tuple[str, ...]
    expected_display: str


@dataclass(frozen=True)
class BranchContract:
    """A decision point in the implementation that must be exercised."""

    id: str
    description: str
    condition: str      # human-readable boolean expression
    operation: str      # which handler / helper this belongs to


@dataclass(frozen=True)
class CalculatorContract:
    """Complete contract for the engine."""

    invariants: list[Invariant]
    keys: dict[KeyKind, KeyContract]
    properties: list[StateProperty]
    scenarios: list[Scenario]
    branches: list[BranchContract]

    def postconditions_for(self, label: str) -> list[Postcondition]:
        return self.keys[classify(label).kind].postconditions

    @property
    def branch_ids(self) -> set[str]:
        return {b.id for b in self.branches}


# ---------------------------------------------------------------------------
# Helpers used inside the contract predicates
# ---------------------------------------------------------------------------

def same_number(a: float, b: float) -> bool:
    """Equality that treats NaN as equal to NaN."""
    if math.isnan(a) and math.isnan(b):
        return True
    return a == b


def _same_operand(a: float | None, b: float | None) -> bool:
    if a is None or b is None:
        return a is b
    return same_number(a, b)


def _same_state(a: CalculatorState, b: CalculatorState) -> bool:
    """State equality that survives a NaN first operand."""
    return (
        a.display == b.display
        and _same_operand(a.first_operand, b.first_operand)
        and a.operator == b.operator
        and a.waiting_for_second_operand == b.waiting_for_second_operand
    )


def _unchanged(before: CalculatorState, after: CalculatorState) -> bool:
    return _same_state(before, after)


def _expected_display_after_digit(before: CalculatorState, label: str) -> str:
    if before.waiting_for_second_operand:
        return label
    if before.display == "0":
        return label
    return before.display + label


def _operator_resolves(before: CalculatorState) -> bool:
    return (
        before.first_operand is not None
        and before.operator is not None
        and not before.waiting_for_second_operand
    )


# ---------------------------------------------------------------------------
# Contract builder
# ---------------------------------------------------------------------------

def build_contract() -> CalculatorContract:
    """Construct the full calculator contract."""

    invariants = [
        Invariant(
            "display_not_empty",
            "Display text is never empty",
            lambda s: s.display != "",
        ),
        Invariant(
            "single_decimal_point",
            "At most one decimal point in the display",
            lambda s: s.display.count(".") <= 1,
        ),
        Invariant(
            "operator_with_operand",
            "A pending operator always has a first operand",
            lambda s: (s.operator is None) == (s.first_operand is None),
        ),
        Invariant(
            "waiting_needs_operator",
            "Waiting for a second operand only while an operator is pending",
            lambda s: not s.waiting_for_second_operand or s.operator is not None,
        ),
    ]

    # ---------------------------------------------------------------- digit
    digit = KeyContract(KeyKind.DIGIT, [
        Postcondition(
            "display_extended",
            "Display starts fresh, replaces a lone zero, or appends the digit",
            lambda b, label, a: a.display == _expected_display_after_digit(b, label),
        ),
        Postcondition(
            "not_waiting",
            "A digit always ends the waiting state",
            lambda b, label, a: not a.waiting_for_second_operand,
        ),
        Postcondition(
            "pending_kept",
            "Digits never touch the pending operation",
            lambda b, label, a: (
                a.operator == b.operator
                and _same_operand(a.first_operand, b.first_operand)
            ),
        ),
    ])

    # -------------------------------------------------------------- decimal
    decimal = KeyContract(KeyKind.DECIMAL, [
        Postcondition(
            "one_point",
            "Display contains exactly one decimal point",
            lambda b, label, a: a.display.count(".") == 1,
        ),
        Postcondition(
            "fresh_operand",
            "While waiting, the display becomes '0.'",
            lambda b, label, a: (
                a.display == "0." if b.waiting_for_second_operand else True
            ),
        ),
        Postcondition(
            "prefix_kept",
            "Outside the waiting state, the old display is a prefix",
            lambda b, label, a: (
                b.waiting_for_second_operand or a.display.startswith(b.display)
            ),
        ),
    ])

    # ---------------------------------------------------------------- clear
    clear = KeyContract(KeyKind.CLEAR, [
        Postcondition(
            "initial_state",
            "Clear returns exactly the initial state",
            lambda b, label, a: a == INITIAL_STATE,
        ),
    ])

    # ----------------------------------------------------------------- sign
    sign = KeyContract(KeyKind.TOGGLE_SIGN, [
        Postcondition(
            "string_toggle",
            "A leading '-' is stripped or prepended; the rest is verbatim",
            lambda b, label, a: (
                a.display == b.display[1:] if b.display.startswith("-")
                else a.display == "-" + b.display
            ),
        ),
        Postcondition(
            "pending_kept",
            "Sign toggle never touches the pending operation",
            lambda b, label, a: (
                a.operator == b.operator
                and _same_operand(a.first_operand, b.first_operand)
                and a.waiting_for_second_operand == b.waiting_for_second_operand
            ),
        ),
    ])

    # -------------------------------------------------------------- percent
    percent = KeyContract(KeyKind.PERCENT, [
        Postcondition(
            "hundredth",
            "Display becomes the formatted value divided by 100",
            lambda b, label, a: a.display == format_number(
                parse_number(b.display) / 100
            ),
        ),
    ])

    # ------------------------------------------------------------- operator
    operator = KeyContract(KeyKind.OPERATOR, [
        Postcondition(
            "armed",
            "The pressed operator is pending and the engine is waiting",
            lambda b, label, a: (
                a.operator == Operator(label) and a.waiting_for_second_operand
            ),
        ),
        Postcondition(
            "first_operand_recorded",
            "Without a first operand, the display value becomes the operand",
            lambda b, label, a: (
                b.first_operand is not None or (
                    same_number(a.first_operand, parse_number(b.display))
                    and a.display == b.display
                )
            ),
        ),
        Postcondition(
            "chained",
            "A completed operation resolves left to right",
            lambda b, label, a: (
                not _operator_resolves(b) or (
                    same_number(
                        a.first_operand,
                        compute(b.first_operand, parse_number(b.display),
                                b.operator),
                    )
                    and a.display == format_number(a.first_operand)
                )
            ),
        ),
        Postcondition(
            "overwrite_only",
            "Pressing an operator while waiting only replaces the operator",
            lambda b, label, a: (
                not (b.waiting_for_second_operand and b.operator is not None)
                or (a.display == b.display
                    and _same_operand(a.first_operand, b.first_operand))
            ),
        ),
    ])

    # --------------------------------------------------------------- equals
    equals = KeyContract(KeyKind.EQUALS, [
        Postcondition(
            "noop_without_operator",
            "Without a pending operation, equals changes nothing",
            lambda b, label, a: (
                b.operator is not None and b.first_operand is not None
            ) or _unchanged(b, a),
        ),
        Postcondition(
            "resolves",
            "With a pending operation, display shows the result and the chain ends",
            lambda b, label, a: (
                b.operator is None or b.first_operand is None or (
                    a.display == format_number(compute(
                        b.first_operand, parse_number(b.display), b.operator
                    ))
                    and a.first_operand is None
                    and a.operator is None
                    and not a.waiting_for_second_operand
                )
            ),
        ),
    ])

    # -------------------------------------------------------------- unknown
    unknown = KeyContract(KeyKind.UNKNOWN, [
        Postcondition(
            "ignored",
            "Unrecognised labels leave the state unchanged",
            lambda b, label, a: _unchanged(b, a),
        ),
    ])

    # ----------------------------------------------------------- properties
    properties = [
        StateProperty(
            "clear_resets", "AC from any state gives the initial state",
            lambda press, s: press(s, "AC") == INITIAL_STATE,
        ),
        StateProperty(
            "decimal_idempotent", "'.' twice equals '.' once",
            lambda press, s: _same_state(press(press(s, "."), "."), press(s, ".")),
        ),
        StateProperty(
            "sign_round_trip", "+/- twice restores the display exactly",
            lambda press, s: _same_state(press(press(s, "+/-"), "+/-"), s),
        ),
        StateProperty(
            "unknown_ignored", "An unknown label is a no-op",
            lambda press, s: _same_state(press(s, "sqrt"), s),
        ),
        StateProperty(
            "operator_overwrite", "Two operators in a row behave like the last one",
            lambda press, s: _same_state(press(press(s, "+"), "-"), press(s, "-")),
        ),
    ]

    scenarios = [
        Scenario("simple_addition", ("5", "+", "3", "="), "8"),
        Scenario("no_precedence", ("2", "+", "3", "*", "4", "="), "20"),
        Scenario("percent", ("5", "0", "%"), "0.5"),
        Scenario("divide_by_zero", ("5", "/", "0", "="), "Infinity"),
        Scenario("negative_divide_by_zero", ("5", "+/-", "/", "0", "="), "-Infinity"),
        Scenario("zero_over_zero", ("0", "/", "0", "="), "NaN"),
        Scenario("operator_overwrite", ("5", "+", "-", "3", "="), "2"),
        Scenario("leading_zeros", ("0", "0", "7"), "7"),
        Scenario("decimal_twice", ("1", ".", ".", "5"), "1.5"),
        Scenario("fresh_decimal_operand", ("4", "*", ".", "5", "="), "2"),
        Scenario("float_rounding", ("0", ".", "1", "+", "0", ".", "2", "="),
                 "0.30000000000000004"),
        Scenario("sign_on_point", ("0", ".", "+/-"), "-0."),
        Scenario("equals_without_operator", ("4", "2", "="), "42"),
        Scenario("chain_shows_partial", ("6", "-", "2", "+"), "4"),
    ]

    # -------------------------------------------------------------- branches
    branches = [
        # Classification (classify)
        BranchContract("KEY-DIGIT", "Label is a run of ASCII digits",
                       "label matches [0-9]+", "classify"),
        BranchContract("KEY-OPERATOR", "Label is a binary operator",
                       "label in {+, -, *, /}", "classify"),
        BranchContract("KEY-COMMAND", "Label is a command key",
                       "label in {., AC, +/-, %, =}", "classify"),
        BranchContract("KEY-UNKNOWN", "Label is not on the keypad",
                       "otherwise", "classify"),
        # Digit entry
        BranchContract("DIGIT-START-OPERAND", "Digit starts the second operand",
                       "waiting_for_second_operand", "input_digit"),
        BranchContract("DIGIT-REPLACE-ZERO", "Digit replaces a lone zero",
                       "display == '0'", "input_digit"),
        BranchContract("DIGIT-APPEND", "Digit appended to the display",
                       "otherwise", "input_digit"),
        # Decimal entry
        BranchContract("DECIMAL-START-OPERAND", "Point starts the second operand",
                       "waiting_for_second_operand", "input_decimal"),
        BranchContract("DECIMAL-APPEND", "Point appended",
                       "'.' not in display", "input_decimal"),
        BranchContract("DECIMAL-PRESENT", "Point already present, no change",
                       "'.' in display", "input_decimal"),
        # Commands
        BranchContract("CLEAR", "State reset", "always", "clear"),
        BranchContract("SIGN-STRIP", "Leading '-' removed",
                       "display starts with '-'", "toggle_sign"),
        BranchContract("SIGN-PREPEND", "'-' prepended",
                       "otherwise", "toggle_sign"),
        BranchContract("PERCENT", "Display divided by 100", "always",
                       "input_percent"),
        # Operator selection
        BranchContract("OP-FIRST-OPERAND", "Display recorded as first operand",
                       "first_operand is None", "choose_operator"),
        BranchContract("OP-CHAIN", "Pending operation resolved",
                       "first_operand and operator and not waiting",
                       "choose_operator"),
        BranchContract("OP-OVERWRITE", "Pending operator replaced only",
                       "first_operand and waiting", "choose_operator"),
        # Equals
        BranchContract("EQUALS-RESOLVE", "Pending operation resolved, chain ends",
                       "operator and first_operand", "equals"),
        BranchContract("EQUALS-NOOP", "Nothing pending",
                       "operator is None", "equals"),
        # Arithmetic
        BranchContract("COMPUTE-ADD", "a + b", "op == ADD", "compute"),
        BranchContract("COMPUTE-SUB", "a - b", "op == SUBTRACT", "compute"),
        BranchContract("COMPUTE-MUL", "a * b", "op == MULTIPLY", "compute"),
        BranchContract("COMPUTE-DIV", "a / b", "op == DIVIDE and b != 0",
                       "compute"),
        BranchContract("COMPUTE-DIV-ZERO", "IEEE infinity or NaN",
                       "op == DIVIDE and b == 0", "compute"),
    ]

    return CalculatorContract(
        invariants=invariants,
        keys={
            KeyKind.DIGIT: digit,
            KeyKind.DECIMAL: decimal,
            KeyKind.CLEAR: clear,
            KeyKind.TOGGLE_SIGN: sign,
            KeyKind.PERCENT: percent,
            KeyKind.OPERATOR: operator,
            KeyKind.EQUALS: equals,
            KeyKind.UNKNOWN: unknown,
        },
        properties=properties,
        scenarios=scenarios,
        branches=branches,
    )
