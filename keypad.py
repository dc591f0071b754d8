"""On-screen keypad.

The keypad owns the fixed key layout and forwards every activated label
verbatim to its engine.  It never formats numbers itself: the engine's
display string is shown as-is, right-aligned above the keys.
"""
from __future__ import annotations

from dataclasses import dataclass

from calculator import Calculator, CalculatorState

COLUMNS = 4
CELL_WIDTH = 5


@dataclass(frozen=True)
class KeySlot:
    label: str
    span: int = 1


LAYOUT: list[list[KeySlot]] = [
    [KeySlot("AC"), KeySlot("+/-"), KeySlot("%"), KeySlot("/")],
    [KeySlot("7"), KeySlot("8"), KeySlot("9"), KeySlot("*")],
    [KeySlot("4"), KeySlot("5"), KeySlot("6"), KeySlot("-")],
    [KeySlot("1"), KeySlot("2"), KeySlot("3"), KeySlot("+")],
    [KeySlot("0", span=2), KeySlot("."), KeySlot("=")],
]

LABELS: frozenset[str] = frozenset(
    slot.label for row in LAYOUT for slot in row
)


def render_display(display: str, width: int = COLUMNS * CELL_WIDTH) -> str:
    """Right-align the display text.  Longer text is shown untruncated."""
    return display.rjust(width)


def render_row(row: list[KeySlot]) -> str:
    return "".join(
        f"[{slot.label}]".center(slot.span * CELL_WIDTH) for slot in row
    )


class Keypad:
    """Keypad bound to one calculator engine."""

    def __init__(self, calculator: Calculator | None = None) -> None:
        self.calculator = calculator if calculator is not None else Calculator()

    @property
    def display(self) -> str:
        return self.calculator.display

    def press(self, label: str) -> CalculatorState:
        """Activate a key.  Labels off the keypad are still forwarded."""
        return self.calculator.handle_key(label)

    def press_all(self, labels) -> CalculatorState:
        state = self.calculator.state
        for label in labels:
            state = self.press(label)
        return state

    def render(self) -> str:
        lines = [render_display(self.display)]
        lines.extend(render_row(row) for row in LAYOUT)
        return "\n".join(lines)
