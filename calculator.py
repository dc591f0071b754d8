"""Keypad calculator engine.

The engine is a pure reducer: ``press(state, label)`` returns the next
``CalculatorState`` for a key label and never mutates its input.
``Calculator`` wraps the reducer for callers that want a running
instance.  Decision branches are annotated with their contract
branch-IDs (see contract.py BranchContract) so white-box tests can trace
coverage back to the contract.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum, auto
from typing import Callable


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------

class Operator(str, Enum):
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"


class KeyKind(Enum):
    DIGIT = auto()
    DECIMAL = auto()
    CLEAR = auto()
    TOGGLE_SIGN = auto()
    PERCENT = auto()
    OPERATOR = auto()
    EQUALS = auto()
    UNKNOWN = auto()


@dataclass(frozen=True)
class Key:
    """A classified key press."""

    kind: KeyKind
    label: str
    operator: Operator | None = None


_DIGITS = re.compile(r"[0-9]+")

_OPERATORS = {op.value: op for op in Operator}

_COMMANDS = {
    ".": KeyKind.DECIMAL,
    "AC": KeyKind.CLEAR,
    "+/-": KeyKind.TOGGLE_SIGN,
    "%": KeyKind.PERCENT,
    "=": KeyKind.EQUALS,
}


def classify(label: str) -> Key:
    """Map a raw key label to a ``Key``.

    Branches: KEY-DIGIT, KEY-OPERATOR, KEY-COMMAND, KEY-UNKNOWN
    """
    if _DIGITS.fullmatch(label):                                  # KEY-DIGIT
        return Key(KeyKind.DIGIT, label)
    if label in _OPERATORS:                                       # KEY-OPERATOR
        return Key(KeyKind.OPERATOR, label, _OPERATORS[label])
    if label in _COMMANDS:                                        # KEY-COMMAND
        return Key(_COMMANDS[label], label)
    return Key(KeyKind.UNKNOWN, label)                            # KEY-UNKNOWN


# ---------------------------------------------------------------------------
# Number parsing / formatting
# ---------------------------------------------------------------------------

_NUMERIC_PREFIX = re.compile(
    r"\s*[+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
)


def parse_number(text: str) -> float:
    """Read the longest numeric prefix of ``text``.

    Text without a numeric prefix reads as NaN, so ``"Infinity5"`` is
    infinite and ``"NaN"`` stays NaN.
    """
    match = _NUMERIC_PREFIX.match(text)
    if match is None:
        return math.nan
    return float(match.group().strip())


def format_number(value: float) -> str:
    """Render a float in shortest round-trip form.

    Integral values drop the fractional part, ``-0`` renders as ``0``,
    and decimal exponents >= 21 or <= -7 switch to exponent notation
    (``1e+21``, ``1.5e-7``).
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"

    sign = "-" if value < 0 else ""
    _, digit_tuple, exponent = Decimal(repr(abs(value))).as_tuple()
    digits = "".join(str(d) for d in digit_tuple).rstrip("0")
    exponent += len(digit_tuple) - len(digits)
    # position of the decimal point relative to the first digit
    k = len(digits)
    n = exponent + k

    if k <= n <= 21:
        body = digits + "0" * (n - k)
    elif 0 < n <= 21:
        body = digits[:n] + "." + digits[n:]
    elif -6 < n <= 0:
        body = "0." + "0" * -n + digits
    else:
        e = n - 1
        mantissa = digits if k == 1 else digits[0] + "." + digits[1:]
        body = f"{mantissa}e{'+' if e >= 0 else '-'}{abs(e)}"
    return sign + body


# ---------------------------------------------------------------------------
# Arithmetic
# ---------------------------------------------------------------------------

def compute(a: float, b: float, op: Operator) -> float:
    """IEEE-754 binary arithmetic; never raises.

    Branches: COMPUTE-ADD, COMPUTE-SUB, COMPUTE-MUL, COMPUTE-DIV,
              COMPUTE-DIV-ZERO
    """
    if op == Operator.ADD:                                        # COMPUTE-ADD
        return a + b
    if op == Operator.SUBTRACT:                                   # COMPUTE-SUB
        return a - b
    if op == Operator.MULTIPLY:                                   # COMPUTE-MUL
        return a * b

    if b == 0:                                                    # COMPUTE-DIV-ZERO
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b                                                  # COMPUTE-DIV


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CalculatorState:
    display: str = "0"
    first_operand: float | None = None
    operator: Operator | None = None
    waiting_for_second_operand: bool = False

    @property
    def current_value(self) -> float:
        return parse_number(self.display)


INITIAL_STATE = CalculatorState()


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

def input_digit(state: CalculatorState, key: Key) -> CalculatorState:
    """Branches: DIGIT-START-OPERAND, DIGIT-REPLACE-ZERO, DIGIT-APPEND"""
    if state.waiting_for_second_operand:                          # DIGIT-START-OPERAND
        return replace(state, display=key.label,
                       waiting_for_second_operand=False)
    if state.display == "0":                                      # DIGIT-REPLACE-ZERO
        return replace(state, display=key.label)
    return replace(state, display=state.display + key.label)      # DIGIT-APPEND


def input_decimal(state: CalculatorState, key: Key) -> CalculatorState:
    """Branches: DECIMAL-START-OPERAND, DECIMAL-APPEND, DECIMAL-PRESENT"""
    if state.waiting_for_second_operand:                          # DECIMAL-START-OPERAND
        return replace(state, display="0.", waiting_for_second_operand=False)
    if "." not in state.display:                                  # DECIMAL-APPEND
        return replace(state, display=state.display + ".")
    return state                                                  # DECIMAL-PRESENT


def clear(state: CalculatorState, key: Key) -> CalculatorState:
    """Branch: CLEAR"""
    return INITIAL_STATE


def toggle_sign(state: CalculatorState, key: Key) -> CalculatorState:
    """Branches: SIGN-STRIP, SIGN-PREPEND"""
    if state.display.startswith("-"):                             # SIGN-STRIP
        return replace(state, display=state.display[1:])
    return replace(state, display="-" + state.display)            # SIGN-PREPEND


def input_percent(state: CalculatorState, key: Key) -> CalculatorState:
    """Branch: PERCENT"""
    return replace(state, display=format_number(state.current_value / 100))


def choose_operator(state: CalculatorState, key: Key) -> CalculatorState:
    """Record or resolve the pending operation, then arm the next one.

    Branches: OP-FIRST-OPERAND, OP-CHAIN, OP-OVERWRITE
    """
    value = state.current_value

    if state.first_operand is None:                               # OP-FIRST-OPERAND
        state = replace(state, first_operand=value)
    elif state.operator is not None and not state.waiting_for_second_operand:
        result = compute(state.first_operand, value, state.operator)  # OP-CHAIN
        state = replace(state, display=format_number(result),
                        first_operand=result)
    # (falls through) OP-OVERWRITE

    return replace(state, operator=key.operator,
                   waiting_for_second_operand=True)


def equals(state: CalculatorState, key: Key) -> CalculatorState:
    """Branches: EQUALS-RESOLVE, EQUALS-NOOP"""
    if state.operator is None or state.first_operand is None:     # EQUALS-NOOP
        return state
    result = compute(state.first_operand, state.current_value,    # EQUALS-RESOLVE
                     state.operator)
    return CalculatorState(display=format_number(result))


def ignore(state: CalculatorState, key: Key) -> CalculatorState:
    """Branch: KEY-UNKNOWN"""
    return state


_HANDLERS: dict[KeyKind, Callable[[CalculatorState, Key], CalculatorState]] = {
    KeyKind.DIGIT: input_digit,
    KeyKind.DECIMAL: input_decimal,
    KeyKind.CLEAR: clear,
    KeyKind.TOGGLE_SIGN: toggle_sign,
    KeyKind.PERCENT: input_percent,
    KeyKind.OPERATOR: choose_operator,
    KeyKind.EQUALS: equals,
    KeyKind.UNKNOWN: ignore,
}


def press(state: CalculatorState, label: str) -> CalculatorState:
    """Return the state after pressing the key labelled ``label``."""
    key = classify(label)
    return _HANDLERS[key.kind](state, key)


def run(labels, state: CalculatorState = INITIAL_STATE) -> CalculatorState:
    """Fold a sequence of key labels through ``press``."""
    for label in labels:
        state = press(state, label)
    return state


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class Calculator:
    """A running calculator: one state record replaced on every key."""

    def __init__(self, state: CalculatorState = INITIAL_STATE) -> None:
        self._state = state

    @property
    def state(self) -> CalculatorState:
        return self._state

    @property
    def display(self) -> str:
        return self._state.display

    def handle_key(self, label: str) -> CalculatorState:
        self._state = press(self._state, label)
        return self._state

    def reset(self) -> CalculatorState:
        return self.handle_key("AC")
