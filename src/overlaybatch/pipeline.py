"""Batch orchestrator — fetch, normalize, composite each pair, then concat.

Per-pair state machine:

  PENDING -> FETCHING_VIDEO -> FETCHING_IMAGE -> NORMALIZING -> COMPOSITING -> DONE
       \\____________\\_______________\\________________\\_____________-> FAILED

A stage failure moves that pair to FAILED and the batch carries on with
the next pair. Only after every pair is terminal are the DONE pairs'
segments handed to the assembler, in manifest order.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Iterable

from .composite import Compositor
from .concat import ConcatAssembler
from .config import PipelineSettings
from .errors import BatchAborted, ConcatError, NothingToAssemble, StageError
from .fetch import RemoteFetcher
from .models import (
    ArtifactKind, BatchResult, MediaPair, PairOutcome, PairState, Stage,
)
from .normalize import VideoNormalizer
from .paths import PathManager

log = logging.getLogger(__name__)


class _Cancelled(Exception):
    pass


class Pipeline:
    """Four-stage batch pipeline with per-pair failure isolation."""

    def __init__(
        self,
        settings: PipelineSettings,
        paths: PathManager | None = None,
        fetcher: RemoteFetcher | None = None,
        normalizer: VideoNormalizer | None = None,
        compositor: Compositor | None = None,
        assembler: ConcatAssembler | None = None,
        progress_cb: Callable[[str], None] | None = None,
    ):
        self.settings = settings
        self.paths = paths or PathManager(
            settings.staging_dir, settings.output_dir, settings.output_name,
        )
        self.fetcher = fetcher or RemoteFetcher(
            settings.remote,
            rclone_config=settings.rclone_config,
            min_bytes=settings.min_bytes,
            validate_images=settings.validate_images,
            timeout=settings.timeout,
        )
        self.normalizer = normalizer or VideoNormalizer(timeout=settings.timeout)
        self.compositor = compositor or Compositor(timeout=settings.timeout)
        self.assembler = assembler or ConcatAssembler(
            self.paths.concat_list_path(),
            self.paths.concat_scratch_path(),
            timeout=settings.timeout,
        )
        self.progress_cb = progress_cb or (lambda msg: None)
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        """Stop starting new stages. Running processes are left to finish."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def _enter(self, outcome: PairOutcome, state: PairState) -> None:
        if self._cancelled.is_set():
            raise _Cancelled()
        outcome.state = state

    # ── Per pair ───────────────────────────────────────────────────

    def process_pair(self, index: int, pair: MediaPair) -> PairOutcome:
        """Run one pair through every stage. Failures are recorded on the outcome, never raised."""
        outcome = PairOutcome(index=index, pair=pair)
        paths = self.paths
        tag = f"[{index + 1:04d}]"

        try:
            self._enter(outcome, PairState.FETCHING_VIDEO)
            paths.reset_pair(index, pair)
            paths.ensure_dir(paths.pair_dir(index, pair))
            paths.ensure_dir(paths.output_path(index, pair).parent)
            incoming = paths.incoming_dir(index, pair)

            self.progress_cb(f"  FETCH  {tag} {pair.video_ref}")
            video = self.fetcher.fetch(
                pair.video_ref,
                paths.staging_path(index, pair, ArtifactKind.VIDEO, Stage.RAW),
                ArtifactKind.VIDEO,
                incoming_dir=incoming,
            )

            self._enter(outcome, PairState.FETCHING_IMAGE)
            self.progress_cb(f"  FETCH  {tag} {pair.image_ref}")
            image = self.fetcher.fetch(
                pair.image_ref,
                paths.staging_path(index, pair, ArtifactKind.IMAGE, Stage.RAW),
                ArtifactKind.IMAGE,
                incoming_dir=incoming,
            )

            self._enter(outcome, PairState.NORMALIZING)
            self.progress_cb(f"  ENCODE {tag} {pair.video_ref}")
            normalized = self.normalizer.normalize(
                video.path,
                paths.staging_path(index, pair, ArtifactKind.VIDEO, Stage.NORMALIZED),
            )

            self._enter(outcome, PairState.COMPOSITING)
            self.progress_cb(f"  LAYER  {tag} {pair.image_ref}")
            final = self.compositor.composite(
                normalized.path, image.path, paths.output_path(index, pair),
            )
        except _Cancelled:
            return self._fail(outcome, "aborted", "batch was cancelled")
        except StageError as e:
            return self._fail(outcome, e.reason_name, str(e))
        except OSError as e:
            return self._fail(outcome, "io_error", str(e))
        except Exception as e:
            log.exception("Unexpected error in pair %d", index)
            return self._fail(outcome, "unexpected", f"{type(e).__name__}: {e}")

        outcome.state = PairState.DONE
        outcome.final_path = final.path
        if not self.settings.keep_intermediates:
            paths.discard_intermediates(index, pair)
        log.info("Pair %d done: %s", index, final.path)
        self.progress_cb(f"  DONE   {tag} {final.path.name}")
        return outcome

    def _fail(self, outcome: PairOutcome, reason: str, message: str) -> PairOutcome:
        outcome.failed_stage = outcome.state
        outcome.state = PairState.FAILED
        outcome.error = f"{reason}: {message}"
        log.warning(
            "Pair %d failed at %s (video=%s, image=%s): %s",
            outcome.index, outcome.failed_stage.value,
            outcome.pair.video_ref, outcome.pair.image_ref, outcome.error,
        )
        self.progress_cb(
            f"  FAIL   [{outcome.index + 1:04d}] {outcome.failed_stage.value}: {outcome.error}"
        )
        return outcome

    # ── Batch ──────────────────────────────────────────────────────

    def run(self, pairs: Iterable[MediaPair], stream_url: str | None = None) -> BatchResult:
        """Process every pair, then assemble the successes.

        Returns:
            BatchResult with one outcome per pair and the published path.

        Raises:
            NothingToAssemble: no pair succeeded.
            ConcatError: the final concatenation failed.
            BatchAborted: cancel() was called before assembly.
        All three carry the BatchResult as `.result`.
        """
        pairs = list(pairs)
        outcomes: list[PairOutcome | None] = [None] * len(pairs)
        result = BatchResult(stream_url=stream_url)

        # A stale artifact from an earlier run must not look like this run's output.
        self.paths.published_path().unlink(missing_ok=True)

        workers = max(1, self.settings.workers)
        self.progress_cb(f"Processing {len(pairs)} pair(s) with {workers} worker(s)")
        if workers == 1:
            for i, pair in enumerate(pairs):
                outcomes[i] = self.process_pair(i, pair)
        else:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                futures = {
                    pool.submit(self.process_pair, i, pair): i
                    for i, pair in enumerate(pairs)
                }
                for future in as_completed(futures):
                    outcomes[futures[future]] = future.result()

        result.outcomes = outcomes
        ok = result.succeeded
        self.progress_cb(f"{len(ok)}/{len(pairs)} pair(s) succeeded")

        if self._cancelled.is_set():
            log.error("Batch aborted, nothing assembled")
            raise BatchAborted("Batch aborted before assembly", result=result)
        if not ok:
            log.error("No pair succeeded, nothing to assemble")
            raise NothingToAssemble("No successful segments to assemble", result=result)

        published = self.paths.published_path()
        self.progress_cb(f"Concatenating {len(ok)} segment(s) -> {published}")
        try:
            result.final_path = self.assembler.assemble(
                [o.final_path for o in ok], published,
            )
        except ConcatError as e:
            log.error("Assembly failed: %s", e)
            e.result = result
            raise
        return result
