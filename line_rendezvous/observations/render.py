"""
observations/render.py

Watch the robots walk.

What is printed here is for people, not for the simulation:
a reporter may be swapped, silenced or slowed down
and the outcome of a run stays the same.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Callable, Optional, TextIO, TYPE_CHECKING
import sys
import time

if TYPE_CHECKING:
    from line_rendezvous.environments.line import LineArena, RunOutcome


MARGIN = 5          # Cells shown beyond the outermost robot
MARK_MARGIN = 2     # Cells shown beyond the marked cell when it is outside

BOTH = "R1+R2"
MARKED = "■"
BLANK = "□"


def window_bounds(position1: int, position2: int, marked_cell: int) -> tuple:
    """
    The visible stretch of line: both robots plus a margin.

    If the marked cell falls outside, the window is stretched
    on that side to show it.
    """
    low = min(position1, position2) - MARGIN
    high = max(position1, position2) + MARGIN

    if marked_cell < low:
        low = marked_cell - MARK_MARGIN
    elif marked_cell > high:
        high = marked_cell + MARK_MARGIN

    return low, high


def render_line(position1: int, position2: int, marked_cell: int) -> str:
    """One row of cells, e.g. ``[□][R1][■][R2][□]``."""
    low, high = window_bounds(position1, position2, marked_cell)

    cells = []
    for cell in range(low, high + 1):
        if cell == position1 and cell == position2:
            cells.append(BOTH)
        elif cell == position1:
            cells.append("R1")
        elif cell == position2:
            cells.append("R2")
        elif cell == marked_cell:
            cells.append(MARKED)
        else:
            cells.append(BLANK)

    return "[" + "][".join(cells) + "]"


def render_state(arena: LineArena) -> str:
    """Step header, the line window, and one status line per robot."""
    first, second = arena.agents
    lines = [
        f"Step: {arena.steps_completed}",
        render_line(first.position, second.position, arena.marked_cell),
    ]
    for agent in arena.agents:
        lines.append(
            f"Robot {agent.id}: position {agent.position}, "
            f"line {agent.program_counter + 1}, "
            f"instruction {agent.current_instruction.mnemonic}"
        )
    return "\n".join(lines)


class Reporter(ABC):
    """Receives the arena at the start, after every step, and at the end."""

    @abstractmethod
    def on_start(self, arena: LineArena) -> None:
        pass

    @abstractmethod
    def on_step(self, arena: LineArena) -> None:
        pass

    @abstractmethod
    def on_finish(self, arena: LineArena, outcome: RunOutcome) -> None:
        pass


class NullReporter(Reporter):
    """Reports nothing. Used whenever display is disabled."""

    def on_start(self, arena: LineArena) -> None:
        pass

    def on_step(self, arena: LineArena) -> None:
        pass

    def on_finish(self, arena: LineArena, outcome: RunOutcome) -> None:
        pass


class TextReporter(Reporter):
    """
    Prints the line window after every step.

    The pause between steps is cosmetic; pass ``sleep`` to replace
    time.sleep, or ``delay=0`` to skip it.
    """

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        delay: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
        explain: bool = False,
    ):
        self._stream = stream
        self.delay = delay
        self.sleep = sleep
        self.explain = explain

    @property
    def stream(self) -> TextIO:
        # Resolved late so that redirected stdout is honored
        return self._stream if self._stream is not None else sys.stdout

    def _write(self, text: str = "") -> None:
        self.stream.write(text + "\n")

    def on_start(self, arena: LineArena) -> None:
        self._write("Initial state:")
        self._write(render_state(arena))
        self._write()

    def on_step(self, arena: LineArena) -> None:
        self._write(render_state(arena))
        self._write()
        if self.delay > 0:
            self.sleep(self.delay)

    def on_finish(self, arena: LineArena, outcome: RunOutcome) -> None:
        self._write(outcome.summary())
        if not (self.explain and outcome.met):
            return

        first, second = arena.agents
        if first.program == second.program:
            self._write()
            self._write("Program (both robots):")
            self._write(first.program.listing())
            return

        for agent in arena.agents:
            self._write()
            self._write(f"Program of robot {agent.id}:")
            self._write(agent.program.listing())
