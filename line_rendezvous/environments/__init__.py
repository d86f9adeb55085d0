"""
Environments: the world the robots move in.

- line: Unbounded integer line with a marked cell and a lock-step arena
"""

from .line import ArenaConfig, LineArena, Met, NotMet, RunOutcome, load_config

__all__ = ["ArenaConfig", "LineArena", "Met", "NotMet", "RunOutcome", "load_config"]
