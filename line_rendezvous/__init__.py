"""
Line Rendezvous: two finite-program automata searching for each other
on an unbounded integer line.

A miniature virtual machine and a lock-step arena for studying
deterministic rendezvous protocols.
"""

__version__ = "0.1.0"
