"""Overlay a footer image onto a normalized video.

The image is scaled to FOOTER_WIDTH (aspect ratio kept), centered, and
pinned to the bottom edge for the whole clip. Output uses the same
canonical encode parameters as normalization so it stays concat-compatible.
"""

import logging
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from .commands import composite_cmd
from .config import FOOTER_INSET, FOOTER_WIDTH, HEIGHT
from .errors import CompositeError
from .models import ArtifactKind, Stage, StagedArtifact
from .runner import Runner, run_command

log = logging.getLogger(__name__)


def footer_size(image_path: str | Path) -> tuple[int, int]:
    """(width, height) of the image once scaled to FOOTER_WIDTH."""
    with Image.open(image_path) as img:
        w, h = img.size
    if w <= 0 or h <= 0:
        raise ValueError(f"image has no pixels: {w}x{h}")
    return FOOTER_WIDTH, max(1, round(h * FOOTER_WIDTH / w))


class Compositor:
    def __init__(self, runner: Runner = run_command, timeout: float | None = None):
        self.runner = runner
        self.timeout = timeout

    def composite(
        self,
        video: str | Path,
        image: str | Path,
        dst: str | Path,
    ) -> StagedArtifact:
        """Render video with the footer image burned in to dst.

        Raises:
            CompositeError: image unreadable or too tall, or ffmpeg failed.
        """
        video, image, dst = Path(video), Path(image), Path(dst)

        try:
            _, footer_h = footer_size(image)
        except (OSError, UnidentifiedImageError, Image.DecompressionBombError, ValueError) as e:
            raise CompositeError(str(image), f"cannot decode overlay image: {e}") from e
        if footer_h + FOOTER_INSET > HEIGHT:
            raise CompositeError(
                str(image),
                f"footer would be {footer_h}px tall at {FOOTER_WIDTH}px wide, "
                f"taller than the {HEIGHT}px frame",
            )

        dst.parent.mkdir(parents=True, exist_ok=True)
        dst.unlink(missing_ok=True)
        result = self.runner(composite_cmd(video, image, dst), timeout=self.timeout)
        if not result.ok or not dst.is_file():
            dst.unlink(missing_ok=True)
            raise CompositeError(
                str(video), f"ffmpeg exited with {result.returncode}: {result.tail()}",
            )

        log.info("Composited %s + %s -> %s", video.name, image.name, dst)
        return StagedArtifact(dst, ArtifactKind.VIDEO, Stage.COMPOSITED)
