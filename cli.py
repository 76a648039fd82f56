# cli.py

import argparse
import json
import logging
import sys
from typing import List, Optional, Tuple

from api import serialize_view
from engine import DEFAULT_TOTAL_KB, Algorithm, MemoryEngine, RetryPolicy
from workload import run_workload


class _Command(argparse.Action):
    """Record commands in the order they appear on the command line."""

    def __call__(self, parser, namespace, values, option_string=None):
        commands = list(getattr(namespace, "commands", None) or [])
        commands.append((self.dest, values))
        namespace.commands = commands


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Contiguous memory allocation simulator")
    parser.add_argument(
        "--allocate", type=int, metavar="SIZE", action=_Command,
        help="allocate SIZE KB (repeatable)",
    )
    parser.add_argument(
        "--algorithm",
        choices=[a.value for a in Algorithm] + ["dynamic-partitioning"],
        action=_Command,
        help="placement algorithm for the preceding --allocate, "
             "or the default for later ones when none precedes it",
    )
    parser.add_argument(
        "--deallocate", type=int, metavar="ID", action=_Command,
        help="free the block owned by process ID (repeatable)",
    )
    parser.add_argument("--status", action="store_true", help="print status (always printed)")
    parser.add_argument("--total", type=int, default=DEFAULT_TOTAL_KB, help="memory size in KB")
    parser.add_argument(
        "--retry-policy",
        choices=[p.value for p in RetryPolicy],
        default=RetryPolicy.HEAD_ONLY.value,
    )
    parser.add_argument(
        "--partition-on-demand", action="store_true",
        help="carve a pristine region into fixed partitions on first use",
    )
    parser.add_argument(
        "--simulate", type=int, default=0, metavar="N",
        help="run N random allocate/free steps after the commands",
    )
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.set_defaults(commands=[])
    return parser


# -----------------------------
# Command Replay
# -----------------------------
def apply_commands(engine: MemoryEngine, commands: List[Tuple[str, object]]):
    default_algo = Algorithm.FIRST_FIT
    i = 0
    while i < len(commands):
        kind, value = commands[i]
        if kind == "allocate":
            algo = default_algo
            if i + 1 < len(commands) and commands[i + 1][0] == "algorithm":
                algo = Algorithm.parse(commands[i + 1][1])
                i += 1
            engine.allocate(value, algo)
        elif kind == "algorithm":
            default_algo = Algorithm.parse(value)
        elif kind == "deallocate":
            engine.free(value)
        i += 1


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.total <= 0:
        parser.error("--total must be positive")
    for kind, value in args.commands:
        if kind in ("allocate", "deallocate") and value <= 0:
            parser.error(f"--{kind} expects a positive integer, got {value}")

    engine = MemoryEngine(args.total, RetryPolicy(args.retry_policy), args.partition_on_demand)
    apply_commands(engine, args.commands)
    if args.simulate:
        run_workload(engine, args.simulate, seed=args.seed)

    print(json.dumps(serialize_view(engine.snapshot()), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
