"""
Observations: watching a run without touching it.
"""

from .render import NullReporter, Reporter, TextReporter, render_line, render_state

__all__ = ["NullReporter", "Reporter", "TextReporter", "render_line", "render_state"]
