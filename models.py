"""Keypad service models.

Pydantic models for key presses, calculator sessions and the keypad
layout.  These define the data shapes used by the HTTP layer.  No
calculator logic lives here -- only structure and basic field validation.
"""
from __future__ import annotations

import math
import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator

from calculator import CalculatorState, Operator, format_number


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


def _json_operand(value: float | None) -> float | str | None:
    """Finite operands stay numeric; inf and NaN use their display form."""
    if value is None or math.isfinite(value):
        return value
    return format_number(value)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class KeyPress(BaseModel):
    """A single key activation."""

    label: str = Field(..., min_length=1)


class KeySequence(BaseModel):
    """Several key activations applied in order."""

    labels: list[str] = Field(..., min_length=1)

    @field_validator("labels")
    @classmethod
    def labels_not_empty(cls, v: list[str]) -> list[str]:
        for label in v:
            if not label:
                raise ValueError("Key labels must not be empty")
        return v


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class SessionPublic(BaseModel):
    """Calculator session as returned by the API."""

    id: str
    display: str
    first_operand: float | str | None = None
    operator: Operator | None = None
    waiting_for_second_operand: bool = False
    keys_pressed: int = 0
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_state(
        cls,
        session_id: str,
        state: CalculatorState,
        *,
        keys_pressed: int,
        created_at: datetime,
        updated_at: datetime,
    ) -> SessionPublic:
        return cls(
            id=session_id,
            display=state.display,
            first_operand=_json_operand(state.first_operand),
            operator=state.operator,
            waiting_for_second_operand=state.waiting_for_second_operand,
            keys_pressed=keys_pressed,
            created_at=created_at,
            updated_at=updated_at,
        )


class SessionListResponse(BaseModel):
    items: list[SessionPublic]
    total: int


class KeySlotPublic(BaseModel):
    label: str
    span: int = 1


class KeypadLayout(BaseModel):
    """Key rows in display order for rendering a keypad."""

    columns: int
    rows: list[list[KeySlotPublic]]
