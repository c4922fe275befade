"""Stream-copy concatenation of composited segments.

No re-encode happens here. The result is only valid because every segment
went through the same normalize + composite path and therefore shares
codec, resolution, frame rate and audio layout.
"""

import logging
import shutil
from pathlib import Path

from .commands import concat_cmd, concat_list_text
from .errors import ConcatError, NothingToAssemble
from .runner import Runner, run_command

log = logging.getLogger(__name__)


class ConcatAssembler:
    def __init__(
        self,
        list_path: str | Path,
        scratch_path: str | Path,
        runner: Runner = run_command,
        timeout: float | None = None,
    ):
        self.list_path = Path(list_path)
        self.scratch_path = Path(scratch_path)
        self.runner = runner
        self.timeout = timeout

    def write_list(self, paths: list[Path]) -> Path:
        self.list_path.parent.mkdir(parents=True, exist_ok=True)
        self.list_path.write_text(concat_list_text(paths), encoding="utf-8")
        return self.list_path

    def assemble(self, ordered_paths: list[str | Path], published_path: str | Path) -> Path:
        """Concatenate ordered_paths into published_path.

        Args:
            ordered_paths: Composited segments in manifest order.
            published_path: Final location of the merged file.

        Returns:
            published_path.

        Raises:
            NothingToAssemble: ordered_paths is empty. ffmpeg is not run.
            ConcatError: a segment is missing or ffmpeg failed.
        """
        paths = [Path(p).absolute() for p in ordered_paths]
        if not paths:
            raise NothingToAssemble("No successful segments to assemble")

        missing = [str(p) for p in paths if not p.is_file()]
        if missing:
            raise ConcatError(f"Missing {len(missing)} segment file(s): {', '.join(missing)}")

        self.write_list(paths)
        self.scratch_path.parent.mkdir(parents=True, exist_ok=True)
        self.scratch_path.unlink(missing_ok=True)

        log.info("Concatenating %d segment(s) via %s", len(paths), self.list_path)
        result = self.runner(concat_cmd(self.list_path, self.scratch_path), timeout=self.timeout)
        if not result.ok or not self.scratch_path.is_file():
            self.scratch_path.unlink(missing_ok=True)
            raise ConcatError(
                f"ffmpeg concat exited with {result.returncode}: {result.tail()}"
            )

        published = Path(published_path)
        published.parent.mkdir(parents=True, exist_ok=True)
        published.unlink(missing_ok=True)
        shutil.move(str(self.scratch_path), str(published))
        log.info("Published %s", published)
        return published
