"""
Tests for environments/line.py

The lock-step arena: ordering, tie-break, step counting, budget.
"""

from pathlib import Path

import numpy as np
import pytest

from line_rendezvous.core.program import DEFAULT_PROGRAM, Instruction, Program
from line_rendezvous.environments.line import (
    ArenaConfig,
    LineArena,
    Met,
    NotMet,
    load_config,
)
from line_rendezvous.errors import ConfigurationError
from line_rendezvous.observations.render import Reporter, TextReporter


REPO_ROOT = Path(__file__).resolve().parents[1]

ALWAYS_RIGHT = Program([Instruction.move_right()])
ALWAYS_LEFT = Program([Instruction.move_left()])


def converging(step_budget=100, **kwargs):
    return ArenaConfig(
        agent1_position=-2,
        agent2_position=2,
        marked_cell=0,
        step_budget=step_budget,
        **kwargs
    )


class RecordingReporter(Reporter):
    def __init__(self):
        self.calls = []

    def on_start(self, arena):
        self.calls.append("start")

    def on_step(self, arena):
        self.calls.append("step")

    def on_finish(self, arena, outcome):
        self.calls.append(("finish", outcome))


class TestOutcomes:
    """Tests for Met / NotMet."""

    def test_met_summary(self):
        outcome = Met(position=6, steps_completed=18)
        assert outcome.met is True
        assert outcome.summary() == "met at position 6 after 18 steps"

    def test_not_met_summary(self):
        outcome = NotMet(steps_completed=1)
        assert outcome.met is False
        assert outcome.summary() == "did not meet after 1 steps"


class TestArenaConfig:
    """Tests for ArenaConfig validation and loading."""

    def test_defaults(self):
        config = ArenaConfig()
        assert config.agent1_position == -5
        assert config.agent2_position == 5
        assert config.marked_cell == 0
        assert config.step_budget == 100
        assert config.display_enabled is False
        assert config.program1 is DEFAULT_PROGRAM
        assert config.program2 is DEFAULT_PROGRAM

    @pytest.mark.parametrize("budget", [0, -1, -100])
    def test_non_positive_budget_rejected(self, budget):
        with pytest.raises(ConfigurationError, match="step_budget"):
            LineArena(converging(step_budget=budget))

    @pytest.mark.parametrize("budget", [1.5, "10", True, None])
    def test_non_integer_budget_rejected(self, budget):
        with pytest.raises(ConfigurationError):
            LineArena(converging(step_budget=budget))

    def test_non_integer_position_rejected(self):
        with pytest.raises(ConfigurationError):
            LineArena(ArenaConfig(agent1_position=0.5))

    @pytest.mark.parametrize("value", ["no", "yes", 0, 1, None])
    def test_non_boolean_display_rejected(self, value):
        with pytest.raises(ConfigurationError, match="display_enabled"):
            LineArena(ArenaConfig.from_dict({"display_enabled": value}))

    def test_negative_delay_rejected(self):
        with pytest.raises(ConfigurationError):
            LineArena(ArenaConfig(step_delay=-0.1))

    def test_program_must_be_program(self):
        with pytest.raises(ConfigurationError):
            LineArena(ArenaConfig(program1=["MR"]))

    def test_from_dict_shared_program(self):
        config = ArenaConfig.from_dict({"program": ["MR", "ML"]})
        assert config.program1 == Program.from_list(["MR", "ML"])
        assert config.program1 == config.program2

    def test_from_dict_per_agent_override(self):
        config = ArenaConfig.from_dict({"program": ["MR"], "program2": "ML\n"})
        assert config.program1 == ALWAYS_RIGHT
        assert config.program2 == ALWAYS_LEFT

    def test_from_dict_bad_jump_rejected(self):
        with pytest.raises(ConfigurationError):
            ArenaConfig.from_dict({"program": ["MR", "GOTO 9"]})

    def test_from_dict_unknown_keys(self):
        with pytest.raises(ConfigurationError, match="robots"):
            ArenaConfig.from_dict({"robots": 3})

    def test_from_dict_requires_mapping(self):
        with pytest.raises(ConfigurationError):
            ArenaConfig.from_dict(["agent1_position", 1])

    def test_dict_form_reloads(self):
        config = converging(step_budget=19)
        assert ArenaConfig.from_dict(config.to_dict()) == config

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "run.yaml"
        path.write_text(
            "agent1_position: -2\n"
            "agent2_position: 2\n"
            "marked_cell: 0\n"
            "step_budget: 30\n"
            "program: [MR, IF FLAG, GOTO 7, MR, ML, GOTO 1, MR, GOTO 7]\n"
        )
        config = load_config(path)
        assert config.step_budget == 30
        assert config.program1 == DEFAULT_PROGRAM
        assert LineArena(config).run() == Met(position=6, steps_completed=18)

    def test_load_empty_yaml_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == ArenaConfig()

    def test_load_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("agent1_position: [1, 2\n")
        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_load_non_utf8_file(self, tmp_path):
        path = tmp_path / "latin.yaml"
        path.write_bytes(b"agent1_position: \xff\n")
        with pytest.raises(ConfigurationError, match="Cannot read config"):
            load_config(path)

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(tmp_path / "missing.yaml")

    def test_example_config(self):
        config = load_config(REPO_ROOT / "configs" / "default.yaml")
        assert config.agent1_position == -5
        assert config.agent2_position == 5
        assert config.display_enabled is True
        assert config.program1 == DEFAULT_PROGRAM
        assert config.program2 == DEFAULT_PROGRAM


class TestScenarios:
    """Known runs of the default program."""

    def test_rendezvous(self):
        outcome = LineArena(converging(step_budget=19)).run()
        assert outcome == Met(position=6, steps_completed=18)

    def test_rendezvous_large_budget(self):
        outcome = LineArena(converging(step_budget=1000)).run()
        assert outcome == Met(position=6, steps_completed=18)

    def test_budget_one_short(self):
        """The meeting happens in step 19, so 18 steps are not enough."""
        outcome = LineArena(converging(step_budget=18)).run()
        assert outcome == NotMet(steps_completed=18)

    def test_budget_exhaustion(self):
        outcome = LineArena(converging(step_budget=1)).run()
        assert outcome == NotMet(steps_completed=1)

    def test_coincident_start_plays_first_step(self):
        """
        No check before the first tick: robot 1 steps off to 1,
        then robot 2 follows it there.
        """
        arena = LineArena(ArenaConfig(agent1_position=0, agent2_position=0, marked_cell=0))
        outcome = arena.run()
        assert outcome == Met(position=1, steps_completed=0)
        assert arena.agents[0].state.ticks == 1
        assert arena.agents[1].state.ticks == 1

    def test_classic_demo_meets(self):
        outcome = LineArena(ArenaConfig()).run()
        assert outcome.met
        assert outcome.steps_completed < 100

    def test_mirrored_start_never_meets_before_mark(self):
        """Both right of the mark, same speed: the gap never closes."""
        config = ArenaConfig(agent1_position=3, agent2_position=7, marked_cell=0, step_budget=200)
        assert LineArena(config).run() == NotMet(steps_completed=200)


class TestTieBreak:
    """Robot 1 always ticks first; a match then skips robot 2."""

    def test_match_after_first_tick_skips_second(self):
        config = ArenaConfig(agent1_position=0, agent2_position=1, marked_cell=50)
        arena = LineArena(config)
        outcome = arena.run()

        assert outcome == Met(position=1, steps_completed=0)
        second = arena.agents[1]
        assert second.position == 1
        assert second.program_counter == 0
        assert second.state.ticks == 0

    def test_mid_run_tie_break(self):
        """Odd gap: robot 1 closes it on its own tick in step 5."""
        config = ArenaConfig(
            agent1_position=0,
            agent2_position=9,
            program1=ALWAYS_RIGHT,
            program2=ALWAYS_LEFT,
        )
        arena = LineArena(config, record_history=True)
        outcome = arena.run()

        assert outcome == Met(position=5, steps_completed=4)
        assert arena.agents[1].state.ticks == 4
        trajectory = arena.trajectory()
        # Robot 2 did not move in the final step
        assert trajectory[-1][1] == trajectory[-2][1]

    def test_even_gap_meets_on_second_tick(self):
        config = ArenaConfig(
            agent1_position=0,
            agent2_position=10,
            program1=ALWAYS_RIGHT,
            program2=ALWAYS_LEFT,
        )
        arena = LineArena(config)
        assert arena.run() == Met(position=5, steps_completed=4)
        assert arena.agents[1].state.ticks == 5

    def test_order_matters(self):
        """Swapping which robot goes first changes who closes the gap."""
        config = ArenaConfig(
            agent1_position=9,
            agent2_position=0,
            program1=ALWAYS_LEFT,
            program2=ALWAYS_RIGHT,
        )
        arena = LineArena(config)
        assert arena.run() == Met(position=4, steps_completed=4)
        assert arena.agents[1].state.ticks == 4


class TestStepping:
    """Tests for manual stepping and observation."""

    def test_step_counts_completed_steps(self):
        arena = LineArena(converging())
        assert arena.step() is False
        assert arena.steps_completed == 1
        assert arena.snapshot() == (-1, 3, 1, 1)

    def test_step_after_meeting_raises(self):
        arena = LineArena(ArenaConfig(agent1_position=0, agent2_position=1))
        assert arena.step() is True
        assert arena.steps_completed == 0
        with pytest.raises(RuntimeError):
            arena.step()

    def test_run_after_manual_meeting(self):
        arena = LineArena(ArenaConfig(agent1_position=0, agent2_position=1))
        arena.step()
        assert arena.run() == Met(position=1, steps_completed=0)

    def test_step_past_budget_raises(self):
        arena = LineArena(converging(step_budget=1))
        assert arena.step() is False
        with pytest.raises(RuntimeError, match="budget"):
            arena.step()
        assert arena.steps_completed == 1
        assert arena.run() == NotMet(steps_completed=1)

    def test_run_is_idempotent(self):
        arena = LineArena(converging())
        first = arena.run()
        assert arena.run() is first

    def test_trajectory_empty_without_history(self):
        arena = LineArena(converging())
        arena.run()
        assert arena.trajectory().shape == (0, 4)

    def test_trajectory(self):
        arena = LineArena(converging(), record_history=True)
        arena.run()
        trajectory = arena.trajectory()

        assert trajectory.shape == (19, 4)
        assert tuple(trajectory[0]) == (-1, 3, 1, 1)
        assert tuple(trajectory[-1]) == (6, 6, 7, 5)

    def test_trajectory_beyond_int64(self):
        """Positions are unbounded; the trajectory keeps them exact."""
        start = 2 ** 70
        config = ArenaConfig(agent1_position=start, agent2_position=start + 9, step_budget=10)
        arena = LineArena(config, record_history=True)
        assert arena.run() == NotMet(steps_completed=10)

        trajectory = arena.trajectory()
        assert trajectory.shape == (10, 4)
        assert trajectory.dtype == object
        assert tuple(trajectory[0]) == (start + 1, start + 10, 1, 1)

    def test_trajectory_is_int64_when_it_fits(self):
        arena = LineArena(converging(), record_history=True)
        arena.run()
        assert arena.trajectory().dtype == np.int64

    def test_repr(self):
        arena = LineArena(converging(step_budget=19))
        assert repr(arena) == "LineArena(positions=(-2, 2), marked=0, steps=0/19)"


class TestDeterminism:
    """Identical inputs, identical runs."""

    def test_trajectories_identical(self):
        runs = []
        for _ in range(3):
            arena = LineArena(ArenaConfig(agent1_position=-7, agent2_position=4,
                                          marked_cell=-1, step_budget=500),
                              record_history=True)
            outcome = arena.run()
            runs.append((outcome, arena.trajectory()))

        for outcome, trajectory in runs[1:]:
            assert outcome == runs[0][0]
            assert np.array_equal(trajectory, runs[0][1])

    def test_display_does_not_change_outcome(self):
        quiet = LineArena(converging(), record_history=True)
        quiet_outcome = quiet.run()

        sleeps = []
        reporter = TextReporter(stream=_NullStream(), delay=0.5, sleep=sleeps.append)
        loud = LineArena(converging(display_enabled=True, step_delay=0.5),
                         reporter=reporter, record_history=True)
        loud_outcome = loud.run()

        assert loud_outcome == quiet_outcome
        assert np.array_equal(loud.trajectory(), quiet.trajectory())
        assert sleeps == [0.5] * 19


class TestReporterWiring:
    """The arena only talks to a reporter when display is on."""

    def test_reporter_ignored_when_display_disabled(self):
        reporter = RecordingReporter()
        LineArena(converging(), reporter=reporter).run()
        assert reporter.calls == []

    def test_reporter_called_when_display_enabled(self):
        reporter = RecordingReporter()
        outcome = LineArena(converging(display_enabled=True), reporter=reporter).run()

        assert reporter.calls[0] == "start"
        assert reporter.calls.count("step") == 19
        assert reporter.calls[-1] == ("finish", outcome)

    def test_default_reporter_is_text(self):
        arena = LineArena(converging(display_enabled=True))
        assert isinstance(arena.reporter, TextReporter)


class _NullStream:
    def write(self, text):
        return len(text)
