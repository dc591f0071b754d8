"""Shared fixtures for keypad calculator tests."""
from __future__ import annotations

import pytest

from calculator import CalculatorState, Operator, run
from store import SessionStore


@pytest.fixture
def store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def pending_add() -> CalculatorState:
    """'5 +' pressed: first operand 5, waiting for the second operand."""
    state = run(["5", "+"])
    assert state.operator == Operator.ADD
    return state


@pytest.fixture
def mid_operation() -> CalculatorState:
    """'5 + 3' pressed: second operand entered, nothing resolved yet."""
    return run(["5", "+", "3"])
