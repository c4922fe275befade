"""overlaybatch.common — shared utilities.

Contains: path variable resolution, the bundled ffmpeg executable,
media probing (duration, audio presence), and CLI logging setup.
"""

import logging
import re
from pathlib import Path

import imageio_ffmpeg
from moviepy import VideoFileClip


# imageio-ffmpeg ships a static ffmpeg build. It does NOT bundle ffprobe,
# so probing goes through moviepy instead.
FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()


# ── Path utilities ─────────────────────────────────────────────────

def resolve_path_vars(text: str, paths: dict[str, str]) -> str:
    """Replace ${name} variables in a string using the paths dict."""
    def _replace(match):
        key = match.group(1)
        if key not in paths:
            raise ValueError(f"Unknown path variable: ${{{key}}}")
        return paths[key]
    return re.sub(r"\$\{(\w+)\}", _replace, text)


def slugify(text: str, max_len: int = 40) -> str:
    """Lowercase, collapse anything outside [a-z0-9] into single dashes."""
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug[:max_len].rstrip("-") or "item"


# ── Media probing ──────────────────────────────────────────────────

def probe_duration(path: str | Path) -> float:
    """Container duration in seconds."""
    with VideoFileClip(str(path), audio=False) as clip:
        return clip.duration


def probe_has_audio(path: str | Path) -> bool:
    """True if the file carries at least one audio stream."""
    with VideoFileClip(str(path)) as clip:
        return clip.audio is not None


# ── Logging ────────────────────────────────────────────────────────

def setup_logging(verbose: bool = False, log_file: str | Path | None = None) -> None:
    """Log to stderr, or to log_file when given. DEBUG shows every command."""
    kwargs = {"filename": str(log_file)} if log_file else {}
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        **kwargs,
    )
