"""Deterministic staging and output paths for every pair artifact.

Layout:
  <staging>/<pair_id>/incoming/            rclone drops files here
  <staging>/<pair_id>/video-raw.<ext>
  <staging>/<pair_id>/image-raw.<ext>
  <staging>/<pair_id>/video-normalized.mp4
  <staging>/concat_list.txt
  <staging>/concat-output.mp4
  <output>/segments/<pair_id>.mp4          composited per-pair final
  <output>/<output_name>                   published artifact

pair_id = "<index>-<video stem slug>-<hash of both refs>", so two pairs
whose files share a basename never share a directory.
"""

import hashlib
import logging
import shutil
from pathlib import Path, PurePosixPath

from .common import slugify
from .models import ArtifactKind, MediaPair, Stage

log = logging.getLogger(__name__)


class PathManager:
    def __init__(
        self,
        staging_dir: str | Path,
        output_dir: str | Path,
        output_name: str = "final.mp4",
    ):
        self.staging_dir = Path(staging_dir).absolute()
        self.output_dir = Path(output_dir).absolute()
        self.output_name = output_name

    @staticmethod
    def ensure_dir(path: str | Path) -> Path:
        """Create path and any missing ancestors. Safe to call repeatedly."""
        path = Path(path)
        path.mkdir(parents=True, exist_ok=True)
        return path

    def pair_id(self, index: int, pair: MediaPair) -> str:
        digest = hashlib.sha1(
            f"{pair.video_ref}\n{pair.image_ref}".encode("utf-8")
        ).hexdigest()[:8]
        stem = PurePosixPath(pair.video_ref).stem
        return f"{index:04d}-{slugify(stem)}-{digest}"

    def pair_dir(self, index: int, pair: MediaPair) -> Path:
        return self.staging_dir / self.pair_id(index, pair)

    def incoming_dir(self, index: int, pair: MediaPair) -> Path:
        return self.pair_dir(index, pair) / "incoming"

    def staging_path(
        self,
        index: int,
        pair: MediaPair,
        kind: ArtifactKind,
        stage: Stage = Stage.RAW,
    ) -> Path:
        if stage is Stage.COMPOSITED:
            return self.output_path(index, pair)
        if stage is Stage.NORMALIZED:
            suffix = ".mp4"
        else:
            ref = pair.video_ref if kind is ArtifactKind.VIDEO else pair.image_ref
            suffix = PurePosixPath(ref).suffix.lower()
        return self.pair_dir(index, pair) / f"{kind.value}-{stage.value}{suffix}"

    def output_path(self, index: int, pair: MediaPair) -> Path:
        return self.output_dir / "segments" / f"{self.pair_id(index, pair)}.mp4"

    def published_path(self) -> Path:
        return self.output_dir / self.output_name

    def concat_list_path(self) -> Path:
        return self.staging_dir / "concat_list.txt"

    def concat_scratch_path(self) -> Path:
        return self.staging_dir / "concat-output.mp4"

    def reset_pair(self, index: int, pair: MediaPair) -> None:
        """Drop everything a previous run left for this pair."""
        pair_dir = self.pair_dir(index, pair)
        if pair_dir.exists():
            log.debug("Clearing stale staging dir %s", pair_dir)
            shutil.rmtree(pair_dir)
        self.output_path(index, pair).unlink(missing_ok=True)

    def discard_intermediates(self, index: int, pair: MediaPair) -> None:
        """Remove superseded raw and normalized files once the final exists."""
        shutil.rmtree(self.pair_dir(index, pair), ignore_errors=True)
