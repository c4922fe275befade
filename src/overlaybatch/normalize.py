"""Re-encode a fetched video to the canonical format."""

import logging
from pathlib import Path

from .commands import normalize_cmd
from .common import probe_has_audio
from .errors import TranscodeError
from .models import ArtifactKind, Stage, StagedArtifact
from .runner import Runner, run_command

log = logging.getLogger(__name__)


class VideoNormalizer:
    def __init__(self, runner: Runner = run_command, timeout: float | None = None):
        self.runner = runner
        self.timeout = timeout

    def normalize(self, src: str | Path, dst: str | Path) -> StagedArtifact:
        """Write src to dst at the canonical resolution, fps and codecs.

        Raises:
            TranscodeError: ffmpeg failed, or the source could not be probed.
        """
        src, dst = Path(src), Path(dst)
        try:
            has_audio = probe_has_audio(src)
        except (OSError, ValueError, KeyError, IndexError) as e:
            raise TranscodeError(str(src), f"cannot read source video: {e}") from e

        if not has_audio:
            log.info("%s has no audio, adding a silent track", src.name)

        dst.parent.mkdir(parents=True, exist_ok=True)
        dst.unlink(missing_ok=True)
        result = self.runner(
            normalize_cmd(src, dst, add_silence=not has_audio),
            timeout=self.timeout,
        )
        if not result.ok or not dst.is_file():
            dst.unlink(missing_ok=True)
            raise TranscodeError(
                str(src), f"ffmpeg exited with {result.returncode}: {result.tail()}",
            )

        log.info("Normalized %s -> %s", src.name, dst)
        return StagedArtifact(dst, ArtifactKind.VIDEO, Stage.NORMALIZED)
