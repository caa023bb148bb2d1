from __future__ import annotations

import argparse


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="buildstats")

    parser.add_argument(
        "--project-dir",
        default=".",
        help="Project directory holding build-stats.properties",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config file (.properties, .yaml, .toml, .json)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        required=True,
    )

    # replay
    replay = subparsers.add_parser("replay", help="Replay a recorded run into a report")
    replay.add_argument(
        "events",
        help="Path to the recorded event log (.yaml/.yml, .json)",
    )
    replay.add_argument(
        "--output",
        default=None,
        help="Directory to write reports to, overrides outputHomePath",
    )
    replay.add_argument(
        "--disabled",
        action="store_true",
        help="Disable tracking regardless of the config file",
    )
    replay.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Deliver task events from this many threads",
    )

    # check
    check = subparsers.add_parser("check", help="Tell whether tracking is active for tasks")
    check.add_argument(
        "tasks",
        nargs="*",
        help="Requested task names",
    )

    return parser
