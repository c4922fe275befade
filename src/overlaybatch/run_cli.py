"""CLI for a batch run — fetch, overlay and concatenate every pair.

Usage:
    # Full run
    overlaybatch run --input input.json --config job.yaml

    # Override job settings from the command line
    overlaybatch run --input input.json --remote meudrive \
        --staging-dir /tmp/temp --output-dir /tmp/saida --workers 2

    # Parse the manifest only
    overlaybatch validate --input input.json

Exit status is 0 when a final video was published, even if some pairs
failed. It is 1 when no pair succeeded, concatenation failed, the run was
aborted, or the input was invalid.
"""

import argparse
import json
import signal
import sys
from pathlib import Path

from .batch_manifest import load_batch_manifest
from .common import probe_duration, setup_logging
from .config import PipelineSettings
from .errors import BatchError
from .pipeline import Pipeline


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="overlaybatch run",
        description="Overlay footer images onto remote videos and join them into one file.",
    )
    parser.add_argument(
        "--input", required=True,
        help="Batch manifest (JSON or YAML) with stream_url and pairs",
    )
    parser.add_argument(
        "--config", default=None,
        help="YAML job file with remote, directories and worker settings",
    )
    parser.add_argument("--remote", default=None, help="rclone remote name")
    parser.add_argument("--rclone-config", default=None, help="rclone config file")
    parser.add_argument("--staging-dir", default=None, help="Directory for intermediate files")
    parser.add_argument("--output-dir", default=None, help="Directory for segments and the final video")
    parser.add_argument("--output-name", default=None, help="File name of the final video")
    parser.add_argument(
        "--workers", type=int, default=None,
        help="Pairs processed in parallel (default 1, sequential)",
    )
    parser.add_argument(
        "--no-validate-images", action="store_true",
        help="Skip the PNG/JPEG signature check on fetched images",
    )
    parser.add_argument(
        "--keep-intermediates", action="store_true",
        help="Keep raw and normalized files of successful pairs",
    )
    parser.add_argument("--timeout", type=float, default=None, help="Per-process timeout in seconds")
    parser.add_argument("--report", default=None, help="Write a JSON report of every pair here")
    parser.add_argument(
        "--validate", action="store_true",
        help="Validate the manifest only: list pairs, don't fetch or render",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log every external command")
    parser.add_argument("--log-file", default=None, help="Write logs to this file instead of stderr")
    return parser


def _write_report(path, result) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(result.to_dict(), f, indent=2)


def _print_summary(result) -> None:
    for o in result.outcomes:
        if o.ok:
            print(f"  OK     [{o.index + 1:04d}] {o.pair.video_ref} + {o.pair.image_ref}")
        else:
            print(
                f"  FAILED [{o.index + 1:04d}] {o.pair.video_ref} + {o.pair.image_ref}"
                f"  ({o.failed_stage.value}) {o.error}"
            )


def main(args=None):
    parser = _build_parser()
    parsed = parser.parse_args(args)
    setup_logging(parsed.verbose, parsed.log_file)

    try:
        manifest = load_batch_manifest(parsed.input)
    except (FileNotFoundError, ValueError) as e:
        print(f"Invalid manifest: {e}", file=sys.stderr)
        sys.exit(1)
    pairs = manifest["pairs"]

    if parsed.validate:
        print(f"Batch manifest valid: {len(pairs)} pair(s)")
        if manifest["stream_url"]:
            print(f"Stream: {manifest['stream_url']}")
        for i, pair in enumerate(pairs):
            print(f"  {i + 1:04d}: {pair.video_ref} + {pair.image_ref}")
        return

    try:
        settings = PipelineSettings.load(
            parsed.config,
            remote=parsed.remote,
            rclone_config=Path(parsed.rclone_config) if parsed.rclone_config else None,
            staging_dir=Path(parsed.staging_dir) if parsed.staging_dir else None,
            output_dir=Path(parsed.output_dir) if parsed.output_dir else None,
            output_name=parsed.output_name,
            workers=parsed.workers,
            validate_images=False if parsed.no_validate_images else None,
            keep_intermediates=True if parsed.keep_intermediates else None,
            timeout=parsed.timeout,
        )
    except (FileNotFoundError, ValueError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    pipeline = Pipeline(settings, progress_cb=print)
    signal.signal(signal.SIGTERM, lambda signum, frame: pipeline.cancel())

    if manifest["stream_url"]:
        print(f"Stream: {manifest['stream_url']}")
    try:
        result = pipeline.run(pairs, stream_url=manifest["stream_url"])
    except BatchError as e:
        if e.result is not None:
            _print_summary(e.result)
            if parsed.report:
                _write_report(parsed.report, e.result)
        print(f"\nBatch failed ({e.reason_name}): {e}", file=sys.stderr)
        sys.exit(1)

    _print_summary(result)
    if parsed.report:
        _write_report(parsed.report, result)
    counts = f"{len(result.succeeded)}/{len(result.outcomes)} pairs"
    try:
        duration = probe_duration(result.final_path)
    except (OSError, ValueError, KeyError, IndexError) as e:
        print(f"Could not read duration of {result.final_path}: {e}", file=sys.stderr)
        print(f"\nDone: {result.final_path} ({counts})")
        return
    print(f"\nDone: {result.final_path} ({duration:.1f}s, {counts})")


if __name__ == "__main__":
    main()
