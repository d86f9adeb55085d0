"""
core/program.py

The instruction set, and programs built from it.

Four instructions are enough to find another robot
on an infinite line, provided both run the same program.

Programs are built once, at load time, and never change.
Jump targets are checked against the program length here,
so that execution never has to.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Tuple, Union
import logging
import re

from line_rendezvous.errors import ConfigurationError

logger = logging.getLogger(__name__)


class Opcode(Enum):
    """The instruction vocabulary. Values are the canonical mnemonics."""
    MOVE_RIGHT = "MR"
    MOVE_LEFT = "ML"
    BRANCH_ON_MARK = "IF FLAG"
    JUMP = "GOTO"


DESCRIPTIONS = {
    Opcode.MOVE_RIGHT: "step right",
    Opcode.MOVE_LEFT: "step left",
    Opcode.BRANCH_ON_MARK: "on the marked cell? next line, else skip one",
    Opcode.JUMP: "go to line {target}",
}


@dataclass(frozen=True)
class Instruction:
    """
    One line of a program.

    Only JUMP carries a target: a 1-based line number.
    """
    opcode: Opcode
    target: Optional[int] = None

    def __post_init__(self):
        if self.opcode is Opcode.JUMP:
            if isinstance(self.target, bool) or not isinstance(self.target, int):
                raise ConfigurationError(
                    f"Jump target must be an integer line number, got {self.target!r}"
                )
            if self.target < 1:
                raise ConfigurationError(
                    f"Jump target must be a positive line number, got {self.target}"
                )
        elif self.target is not None:
            raise ConfigurationError(
                f"{self.opcode.name} takes no target, got {self.target!r}"
            )

    @classmethod
    def move_right(cls) -> Instruction:
        return cls(Opcode.MOVE_RIGHT)

    @classmethod
    def move_left(cls) -> Instruction:
        return cls(Opcode.MOVE_LEFT)

    @classmethod
    def branch_on_mark(cls) -> Instruction:
        return cls(Opcode.BRANCH_ON_MARK)

    @classmethod
    def jump(cls, target: int) -> Instruction:
        return cls(Opcode.JUMP, target)

    @property
    def mnemonic(self) -> str:
        if self.opcode is Opcode.JUMP:
            return f"GOTO {self.target}"
        return self.opcode.value

    def describe(self) -> str:
        return DESCRIPTIONS[self.opcode].format(target=self.target)

    def __str__(self) -> str:
        return self.mnemonic


# Long names are accepted alongside the mnemonics, spaces ignored.
_ALIASES = {
    "MR": Opcode.MOVE_RIGHT,
    "MOVERIGHT": Opcode.MOVE_RIGHT,
    "ML": Opcode.MOVE_LEFT,
    "MOVELEFT": Opcode.MOVE_LEFT,
    "IFFLAG": Opcode.BRANCH_ON_MARK,
    "BRANCHONMARK": Opcode.BRANCH_ON_MARK,
}

_JUMP_PATTERN = re.compile(r"^(?:GOTO|JUMP)(?:\s*\(\s*([+-]?\d+)\s*\)|\s+([+-]?\d+))$")


def parse_instruction(line: str) -> Instruction:
    """Parse a single mnemonic such as ``MR``, ``IF FLAG`` or ``GOTO 7``."""
    text = " ".join(line.strip().upper().split())

    match = _JUMP_PATTERN.match(text)
    if match:
        return Instruction.jump(int(match.group(1) or match.group(2)))

    opcode = _ALIASES.get(text.replace(" ", ""))
    if opcode is None:
        raise ConfigurationError(f"Unknown instruction: {line.strip()!r}")
    return Instruction(opcode)


class Program:
    """
    An ordered, immutable sequence of instructions.

    Line numbers are 1-based in text and in Jump targets;
    index 0 holds line 1. A single Program may be shared by
    any number of agents.
    """

    __slots__ = ("_instructions",)

    def __init__(self, instructions: Iterable[Instruction]):
        instructions = tuple(instructions)

        if not instructions:
            raise ConfigurationError("Program must contain at least one instruction")

        for line, instruction in enumerate(instructions, start=1):
            if not isinstance(instruction, Instruction):
                raise ConfigurationError(
                    f"Line {line}: expected an Instruction, got {instruction!r}"
                )
            if instruction.opcode is Opcode.JUMP and instruction.target > len(instructions):
                raise ConfigurationError(
                    f"Line {line}: jump target {instruction.target} is outside "
                    f"the program (lines 1-{len(instructions)})"
                )

        object.__setattr__(self, "_instructions", instructions)

    def __setattr__(self, name, value):
        raise AttributeError("Program is immutable")

    # ==================== Construction ====================

    @classmethod
    def from_text(cls, text: str) -> Program:
        """
        Build a program from one mnemonic per line.

        Blank lines and ``#`` comments are skipped.
        """
        instructions = []
        for line in text.splitlines():
            code = line.split("#", 1)[0].strip()
            if code:
                instructions.append(parse_instruction(code))
        program = cls(instructions)
        logger.debug(f"Parsed program with {len(program)} lines")
        return program

    @classmethod
    def from_list(cls, lines: List[str]) -> Program:
        """Build a program from a list of mnemonics (the YAML form)."""
        if isinstance(lines, str):
            return cls.from_text(lines)
        return cls(parse_instruction(str(line)) for line in lines)

    # ==================== Access ====================

    @property
    def instructions(self) -> Tuple[Instruction, ...]:
        return self._instructions

    def __len__(self) -> int:
        return len(self._instructions)

    def __getitem__(self, index: int) -> Instruction:
        return self._instructions[index]

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self._instructions)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Program):
            return NotImplemented
        return self._instructions == other._instructions

    def __hash__(self) -> int:
        return hash(self._instructions)

    # ==================== Output ====================

    def to_list(self) -> List[str]:
        return [instruction.mnemonic for instruction in self._instructions]

    def to_text(self) -> str:
        return "\n".join(self.to_list()) + "\n"

    def listing(self) -> str:
        """Numbered lines, each with a short description."""
        width = max(len(mnemonic) for mnemonic in self.to_list())
        return "\n".join(
            f"{line}: {instruction.mnemonic:<{width}} - {instruction.describe()}"
            for line, instruction in enumerate(self._instructions, start=1)
        )

    def __repr__(self) -> str:
        return f"Program({self.to_list()!r})"


ProgramLike = Union[Program, str, List[str]]


def parse_program(source: ProgramLike) -> Program:
    """Accept a Program, program text, or a list of mnemonics."""
    if isinstance(source, Program):
        return source
    if isinstance(source, str):
        return Program.from_text(source)
    if isinstance(source, (list, tuple)):
        return Program.from_list(list(source))
    raise ConfigurationError(f"Cannot build a program from {type(source).__name__}")


# Step right, then look. Off the mark: creep right one cell every five ticks.
# On the mark: drift right forever at half speed.
DEFAULT_PROGRAM = Program([
    Instruction.move_right(),       # 1
    Instruction.branch_on_mark(),   # 2
    Instruction.jump(7),            # 3
    Instruction.move_right(),       # 4
    Instruction.move_left(),        # 5
    Instruction.jump(1),            # 6
    Instruction.move_right(),       # 7
    Instruction.jump(7),            # 8
])
