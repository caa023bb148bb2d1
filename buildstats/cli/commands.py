from __future__ import annotations

import argparse
import logging
import sys

from buildstats.config import RunConfig, read_config
from buildstats.coordinator import RunOutcome
from buildstats.gate import is_active
from buildstats.replay import ReplayError, load_event_log, replay

from .args import build_parser


def run_cli(argv: list[str] | None = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)

        logging.basicConfig(
            level=getattr(logging, args.log_level.upper(), logging.WARNING),
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )

        match args.command:
            case "replay":
                return cmd_replay(args)
            case "check":
                return cmd_check(args)
            case _:
                return 2

    except ReplayError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    except KeyboardInterrupt:
        return 130


def cmd_replay(args: argparse.Namespace) -> int:
    event_log = load_event_log(args.events)
    if args.workers < 1:
        raise ReplayError("--workers must be at least 1")

    config = _config_with(args, disabled=args.disabled, output_home=args.output)
    outcome = replay(event_log, config, workers=args.workers)
    _print_outcome(outcome)
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    config = _config_with(args)
    print("active" if is_active(config, args.tasks) else "inactive")
    return 0


def _config_with(
    args: argparse.Namespace, *, disabled: bool = False, output_home: str | None = None
) -> RunConfig:
    return read_config(
        args.project_dir,
        config_path=args.config,
        disabled=disabled,
        output_home=output_home,
    )


def _print_outcome(outcome: RunOutcome) -> None:
    if outcome.report_path is not None:
        print(f"report: {outcome.report_path}")
    elif outcome.active:
        print("report not written")
    elif outcome.status is not None:
        print("report discarded")
    else:
        print("tracking inactive")
