"""
Core components of the rendezvous machine.

- program: The instruction set and immutable programs
- agent: One automaton executing a program, one tick at a time
"""

from .program import Instruction, Opcode, Program, DEFAULT_PROGRAM, parse_program
from .agent import Agent, AgentState

__all__ = [
    "Instruction",
    "Opcode",
    "Program",
    "DEFAULT_PROGRAM",
    "parse_program",
    "Agent",
    "AgentState",
]
