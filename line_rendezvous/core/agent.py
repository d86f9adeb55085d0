"""
core/agent.py

A robot on a line. It knows where it stands,
which line of its program comes next,
and nothing else.

Inspired by:
- Finite automata on the integer line
- Toy CPUs with a single program counter
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from .program import Instruction, Opcode, Program, DEFAULT_PROGRAM


@dataclass
class AgentState:
    """
    What an agent IS at this moment.

    program_counter is a 0-based index into the program.
    """
    position: int                 # Cell on the line, unbounded
    program_counter: int = 0      # Next instruction to execute
    ticks: int = 0                # Instructions executed so far


class Agent:
    """
    One automaton executing a shared, read-only program.

    The agent never decides when it runs. The arena calls tick()
    and the agent executes exactly one instruction.
    """

    def __init__(
        self,
        agent_id: int,
        position: int,
        program: Optional[Program] = None,
    ):
        self.id = agent_id
        self.program = program if program is not None else DEFAULT_PROGRAM
        self.state = AgentState(position=position)

    @property
    def position(self) -> int:
        return self.state.position

    @property
    def program_counter(self) -> int:
        return self.state.program_counter

    @property
    def current_instruction(self) -> Instruction:
        return self.program[self.state.program_counter]

    # ==================== Execution ====================

    def tick(self, marked_cell: int) -> Instruction:
        """
        Fetch, execute and advance: one instruction, no more.

        Moves and the branch advance the counter modulo the program
        length; a jump sets it absolutely. Returns the executed instruction.
        """
        instruction = self.current_instruction
        length = len(self.program)
        pc = self.state.program_counter

        if instruction.opcode is Opcode.MOVE_RIGHT:
            self.state.position += 1
            pc = (pc + 1) % length
        elif instruction.opcode is Opcode.MOVE_LEFT:
            self.state.position -= 1
            pc = (pc + 1) % length
        elif instruction.opcode is Opcode.BRANCH_ON_MARK:
            if self.state.position == marked_cell:
                pc = (pc + 1) % length
            else:
                pc = (pc + 2) % length
        else:  # Opcode.JUMP
            pc = instruction.target - 1

        self.state.program_counter = pc
        self.state.ticks += 1

        return instruction

    # ==================== Utilities ====================

    def __repr__(self) -> str:
        return (
            f"Agent(id={self.id}, "
            f"pos={self.state.position}, "
            f"line={self.state.program_counter + 1}, "
            f"ticks={self.state.ticks})"
        )
