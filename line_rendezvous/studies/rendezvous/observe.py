"""
Study: Rendezvous Observation

Run: python -m line_rendezvous.studies.rendezvous.observe --scenario default

Watch two robots find each other.
Same program, same rules, different starting cells.

Usage:
    # The classic demo, animated
    python -m line_rendezvous.studies.rendezvous.observe

    # Fast, no display, from a YAML config
    python -m line_rendezvous.studies.rendezvous.observe --config configs/default.yaml --no-display

    # A custom program for both robots
    python -m line_rendezvous.studies.rendezvous.observe --program my_program.txt --steps 500
"""

import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import List, Optional, TextIO

from line_rendezvous.core.program import Program
from line_rendezvous.environments.line import ArenaConfig, LineArena, RunOutcome, load_config
from line_rendezvous.errors import ConfigurationError
from line_rendezvous.observations.render import TextReporter

logger = logging.getLogger(__name__)


SCENARIOS = {
    "default": {
        "description": "Robots at -5 and 5, marked cell between them",
        "config": {"agent1_position": -5, "agent2_position": 5, "marked_cell": 0,
                   "step_budget": 100, "step_delay": 0.2, "display_enabled": True},
    },
    "converging": {
        "description": "Robots at -2 and 2, close to the marked cell",
        "config": {"agent1_position": -2, "agent2_position": 2, "marked_cell": 0,
                   "step_budget": 100, "step_delay": 0.2, "display_enabled": True},
    },
    "coincident": {
        "description": "Both robots start on the marked cell",
        "config": {"agent1_position": 0, "agent2_position": 0, "marked_cell": 0,
                   "step_budget": 100, "step_delay": 0.2, "display_enabled": True},
    },
    "far_apart": {
        "description": "Robots at -20 and 20, a long walk",
        "config": {"agent1_position": -20, "agent2_position": 20, "marked_cell": 0,
                   "step_budget": 1000, "step_delay": 0.05, "display_enabled": True},
    },
}


def read_program(path: str) -> Program:
    """Load a text program (one mnemonic per line)."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Cannot read program {path}: {e}") from e
    return Program.from_text(text)


def build_config(args: argparse.Namespace) -> ArenaConfig:
    """Scenario or YAML file first, then command-line overrides."""
    if args.config:
        config = load_config(args.config)
    else:
        config = ArenaConfig.from_dict(SCENARIOS[args.scenario]["config"])

    overrides = {
        "agent1_position": args.agent1,
        "agent2_position": args.agent2,
        "marked_cell": args.marked,
        "step_budget": args.steps,
        "step_delay": args.delay,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}

    if args.program:
        program = read_program(args.program)
        overrides["program1"] = program
        overrides["program2"] = program

    if args.display is not None:
        overrides["display_enabled"] = args.display
    return dataclasses.replace(config, **overrides)


def run_study(
    config: ArenaConfig,
    explain: bool = False,
    stream: Optional[TextIO] = None,
) -> RunOutcome:
    """
    Run one simulation and report it.

    With display on, the reporter prints every step and the summary;
    otherwise only the summary line is printed.
    """
    out = stream if stream is not None else sys.stdout

    reporter = TextReporter(stream=out, delay=config.step_delay, explain=explain)
    arena = LineArena(config, reporter=reporter)
    outcome = arena.run()

    if not config.display_enabled:
        out.write(outcome.summary() + "\n")

    return outcome


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Rendezvous on a Line")
    parser.add_argument("--scenario", type=str, default="default",
                        choices=list(SCENARIOS.keys()))
    parser.add_argument("--config", type=str, default=None,
                        help="YAML file with arena settings (replaces --scenario)")
    parser.add_argument("--program", type=str, default=None,
                        help="Text program used by both robots")
    parser.add_argument("--steps", type=int, default=None, help="Step budget")
    parser.add_argument("--agent1", type=int, default=None, help="Start of robot 1")
    parser.add_argument("--agent2", type=int, default=None, help="Start of robot 2")
    parser.add_argument("--marked", type=int, default=None, help="Marked cell")
    parser.add_argument("--delay", type=float, default=None,
                        help="Seconds between displayed steps")
    display = parser.add_mutually_exclusive_group()
    display.add_argument("--display", dest="display", action="store_const", const=True,
                         default=None, help="Print every step (overrides the config)")
    display.add_argument("--no-display", dest="display", action="store_const", const=False,
                         help="Print only the summary line")
    parser.add_argument("--explain", action="store_true",
                        help="Print the program listing after a rendezvous (display only)")
    parser.add_argument("--log-level", type=str, default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    try:
        config = build_config(args)
        if not args.config:
            logger.info(f"Scenario {args.scenario}: {SCENARIOS[args.scenario]['description']}")
        run_study(config, explain=args.explain)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        print(f"error: {e}", file=sys.stderr)
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
