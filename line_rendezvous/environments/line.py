"""
environments/line.py

An unbounded integer line with one marked cell and two robots.

Two robots, one program, one rule of order:
robot 1 always moves first, and if that move
brings them together, robot 2 never moves at all.

Features:
- Lock-step stepping with an exact tie-break
- Step budget as the only way to stop a run that never meets
- Optional trajectory recording for determinism studies
- Injectable reporter; display never affects outcomes
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union
import logging

import numpy as np
import yaml

from line_rendezvous.core.agent import Agent
from line_rendezvous.core.program import DEFAULT_PROGRAM, Program, parse_program
from line_rendezvous.errors import ConfigurationError
from line_rendezvous.observations.render import NullReporter, Reporter, TextReporter

logger = logging.getLogger(__name__)


# ==================== Outcomes ====================

@dataclass(frozen=True)
class Met:
    """The robots stand on the same cell."""
    position: int
    steps_completed: int

    @property
    def met(self) -> bool:
        return True

    def summary(self) -> str:
        return f"met at position {self.position} after {self.steps_completed} steps"


@dataclass(frozen=True)
class NotMet:
    """The step budget ran out first."""
    steps_completed: int

    @property
    def met(self) -> bool:
        return False

    def summary(self) -> str:
        return f"did not meet after {self.steps_completed} steps"


RunOutcome = Union[Met, NotMet]


# ==================== Configuration ====================

def _require_int(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")


@dataclass
class ArenaConfig:
    """Everything a run depends on. Nothing else is consulted."""
    agent1_position: int = -5
    agent2_position: int = 5
    marked_cell: int = 0
    step_budget: int = 100
    display_enabled: bool = False
    step_delay: float = 0.0                        # Seconds, display only
    program1: Program = field(default=DEFAULT_PROGRAM)
    program2: Program = field(default=DEFAULT_PROGRAM)

    def validate(self) -> None:
        """Raise ConfigurationError for anything that cannot be simulated."""
        _require_int("agent1_position", self.agent1_position)
        _require_int("agent2_position", self.agent2_position)
        _require_int("marked_cell", self.marked_cell)
        _require_int("step_budget", self.step_budget)
        if self.step_budget <= 0:
            raise ConfigurationError(
                f"step_budget must be positive, got {self.step_budget}"
            )
        if not isinstance(self.display_enabled, bool):
            raise ConfigurationError(
                f"display_enabled must be true or false, got {self.display_enabled!r}"
            )
        if isinstance(self.step_delay, bool) or not isinstance(self.step_delay, (int, float)):
            raise ConfigurationError(f"step_delay must be a number, got {self.step_delay!r}")
        if self.step_delay < 0:
            raise ConfigurationError(f"step_delay must not be negative, got {self.step_delay}")
        for name in ("program1", "program2"):
            if not isinstance(getattr(self, name), Program):
                raise ConfigurationError(f"{name} must be a Program")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ArenaConfig:
        """
        Build a config from a plain mapping (the YAML form).

        A single ``program`` key sets both programs; ``program1`` and
        ``program2`` override it per agent.
        """
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Config must be a mapping, got {type(data).__name__}"
            )

        data = dict(data)
        known = {f.name for f in fields(cls)}
        shared = data.pop("program", None)
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown config keys: {', '.join(unknown)}")

        if shared is not None:
            data.setdefault("program1", shared)
            data.setdefault("program2", shared)
        for name in ("program1", "program2"):
            if name in data:
                data[name] = parse_program(data[name])

        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "agent1_position": self.agent1_position,
            "agent2_position": self.agent2_position,
            "marked_cell": self.marked_cell,
            "step_budget": self.step_budget,
            "display_enabled": self.display_enabled,
            "step_delay": self.step_delay,
            "program1": self.program1.to_list(),
            "program2": self.program2.to_list(),
        }


def load_config(config_path: Union[str, Path]) -> ArenaConfig:
    """Load an ArenaConfig from a YAML file."""
    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Cannot read config {config_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    return ArenaConfig.from_dict(data or {})


# ==================== Arena ====================

class LineArena:
    """
    Owns both agents, the marked cell and the step counter.

    One step:
    1. Agent 1 ticks; if the positions match, the run ends
    2. Agent 2 ticks; if the positions match, the run ends
    3. The step counter increments

    steps_completed only counts steps that ran to the end,
    so a rendezvous never counts the step it happened in.
    """

    def __init__(
        self,
        config: Optional[ArenaConfig] = None,
        reporter: Optional[Reporter] = None,
        record_history: bool = False,
    ):
        self.config = config or ArenaConfig()
        self.config.validate()

        self.agents: List[Agent] = [
            Agent(1, self.config.agent1_position, self.config.program1),
            Agent(2, self.config.agent2_position, self.config.program2),
        ]
        self.marked_cell = self.config.marked_cell
        self.step_budget = self.config.step_budget
        self.steps_completed = 0
        self.met = False
        self.outcome: Optional[RunOutcome] = None

        if not self.config.display_enabled:
            self.reporter = NullReporter()
        elif reporter is not None:
            self.reporter = reporter
        else:
            self.reporter = TextReporter(delay=self.config.step_delay)

        self.record_history = record_history
        self.history: List[Tuple[int, int, int, int]] = []

    # ==================== Stepping ====================

    def step(self) -> bool:
        """
        Advance by one step. Returns True if the agents met.

        A match after agent 1's tick ends the step early:
        agent 2 keeps its position and program counter.
        """
        if self.met or self.outcome is not None:
            raise RuntimeError("Run already finished; create a new arena")
        if self.steps_completed >= self.step_budget:
            raise RuntimeError(f"Step budget of {self.step_budget} is spent")

        first, second = self.agents

        first.tick(self.marked_cell)
        if first.position == second.position:
            self.met = True
        else:
            second.tick(self.marked_cell)
            if first.position == second.position:
                self.met = True
            else:
                self.steps_completed += 1

        if self.record_history:
            self.history.append(self.snapshot())

        logger.debug(
            f"Step {self.steps_completed}: positions=({first.position}, {second.position}) "
            f"lines=({first.program_counter + 1}, {second.program_counter + 1})"
        )
        return self.met

    def run(self) -> RunOutcome:
        """
        Step until the agents meet or the budget is spent.

        There is no check before the first tick: agents that start
        on the same cell still play out step one.
        """
        if self.outcome is not None:
            return self.outcome

        logger.info(
            f"Starting run: agents at {self.agents[0].position} and "
            f"{self.agents[1].position}, marked cell {self.marked_cell}, "
            f"budget {self.step_budget}"
        )
        self.reporter.on_start(self)

        while self.steps_completed < self.step_budget and not self.met:
            self.step()
            self.reporter.on_step(self)

        if self.met:
            self.outcome = Met(
                position=self.agents[0].position,
                steps_completed=self.steps_completed,
            )
        else:
            self.outcome = NotMet(steps_completed=self.steps_completed)

        logger.info(f"Run finished: {self.outcome.summary()}")
        self.reporter.on_finish(self, self.outcome)
        return self.outcome

    # ==================== Observation ====================

    def snapshot(self) -> Tuple[int, int, int, int]:
        """(position1, position2, pc1, pc2)"""
        first, second = self.agents
        return (
            first.position,
            second.position,
            first.program_counter,
            second.program_counter,
        )

    def trajectory(self) -> np.ndarray:
        """
        Recorded snapshots as an (n, 4) array, one row per step.

        int64 when every value fits, otherwise an object array of Python ints.
        """
        try:
            return np.array(self.history, dtype=np.int64).reshape(-1, 4)
        except OverflowError:
            return np.array(self.history, dtype=object).reshape(-1, 4)

    def get_positions(self) -> Tuple[int, int]:
        return self.agents[0].position, self.agents[1].position

    def __repr__(self) -> str:
        return (
            f"LineArena(positions={self.get_positions()}, "
            f"marked={self.marked_cell}, "
            f"steps={self.steps_completed}/{self.step_budget})"
        )
