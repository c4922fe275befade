"""CLI for concatenation only — join already-composited segments.

The segments must share codec parameters (i.e. come out of a previous
`overlaybatch run`); they are stream-copied, not re-encoded.

Usage:
    overlaybatch concat --output final.mp4 saida/segments/0000-a-*.mp4 ...
"""

import argparse
import sys
import tempfile
from pathlib import Path

from .common import setup_logging
from .concat import ConcatAssembler
from .errors import BatchError


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="overlaybatch concat",
        description="Stream-copy concatenate canonical segments into one file.",
    )
    parser.add_argument("segments", nargs="+", help="Segment files, in order")
    parser.add_argument("--output", required=True, help="Output mp4 path")
    parser.add_argument(
        "--list-file", default=None,
        help="Keep the concat list at this path (default: temporary)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log the ffmpeg command")
    parsed = parser.parse_args(args)
    setup_logging(parsed.verbose)

    with tempfile.TemporaryDirectory(prefix="overlaybatch_concat_") as work_dir:
        work = Path(work_dir)
        assembler = ConcatAssembler(
            parsed.list_file or work / "concat_list.txt",
            work / "concat-output.mp4",
        )
        print(f"Concatenating {len(parsed.segments)} segment(s)...")
        try:
            out = assembler.assemble(parsed.segments, parsed.output)
        except BatchError as e:
            print(f"Concat failed ({e.reason_name}): {e}", file=sys.stderr)
            sys.exit(1)
    print(f"Done: {out}")


if __name__ == "__main__":
    main()
