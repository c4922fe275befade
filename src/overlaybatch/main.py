"""Subcommand dispatcher for overlaybatch.

Usage:
    overlaybatch run      --input input.json --config job.yaml
    overlaybatch validate --input input.json
    overlaybatch concat   --output final.mp4 seg1.mp4 seg2.mp4
"""

import argparse
import sys

COMMANDS = ("run", "validate", "concat")


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="overlaybatch",
        description="Batch footer overlay and concatenation of remote videos.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Register subcommands. Each delegates to its own module's main().
    subparsers.add_parser("run", help="Fetch, overlay and concatenate every pair")
    subparsers.add_parser("validate", help="Parse a batch manifest and list its pairs")
    subparsers.add_parser("concat", help="Concatenate already-composited segments")

    if args is None:
        args = sys.argv[1:]
    if args and not args[0].startswith("-") and args[0] not in COMMANDS:
        print(f"Unknown command: {args[0]}", file=sys.stderr)
        parser.print_help()
        sys.exit(1)

    # Parse only the subcommand name, pass the rest to the subcommand's parser.
    parsed, remaining = parser.parse_known_args(args)

    if parsed.command is None:
        parser.print_help()
        sys.exit(1)

    if parsed.command == "run":
        from .run_cli import main as run_main
        run_main(remaining)
    elif parsed.command == "validate":
        from .run_cli import main as run_main
        run_main([*remaining, "--validate"])
    elif parsed.command == "concat":
        from .concat_cli import main as concat_main
        concat_main(remaining)


if __name__ == "__main__":
    main()
