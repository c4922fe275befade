"""Argument vectors and list-file content for the external tools.

All command lines are built here so the canonical encode parameters and
the concat list escaping rule exist in exactly one place.
"""

from pathlib import Path

from .common import FFMPEG
from .config import (
    AUDIO_BITRATE, AUDIO_CHANNELS, AUDIO_CODEC, AUDIO_RATE,
    FOOTER_INSET, FOOTER_WIDTH, FPS, HEIGHT, PIX_FMT,
    VIDEO_CODEC, VIDEO_CRF, VIDEO_PRESET, WIDTH,
)

RCLONE = "rclone"


def canonical_encode_args() -> list[str]:
    """Codec flags shared by normalize and composite output."""
    return [
        "-c:v", VIDEO_CODEC, "-preset", VIDEO_PRESET, "-crf", str(VIDEO_CRF),
        "-pix_fmt", PIX_FMT,
        "-r", str(FPS),
        "-c:a", AUDIO_CODEC, "-b:a", AUDIO_BITRATE,
        "-ar", str(AUDIO_RATE), "-ac", str(AUDIO_CHANNELS),
    ]


def rclone_copy_cmd(
    remote: str,
    ref: str,
    dest_dir: str | Path,
    config: str | Path | None = None,
) -> list[str]:
    """`rclone copy <remote>:<ref> <dest_dir>`. The file lands as dest_dir/<basename>."""
    cmd = [RCLONE, "copy", f"{remote}:{ref}", str(dest_dir)]
    if config:
        cmd += ["--config", str(config)]
    return cmd


def normalize_cmd(src: str | Path, dst: str | Path, add_silence: bool = False) -> list[str]:
    """Re-encode src to the canonical resolution, frame rate and codecs.

    Args:
        src: Source video.
        dst: Output mp4.
        add_silence: Source has no audio; mux a silent stereo track so
            the segment still matches the canonical audio layout.
    """
    vf = f"scale={WIDTH}:{HEIGHT},fps={FPS},setsar=1"
    if add_silence:
        inputs = [
            "-i", str(src),
            "-f", "lavfi", "-i", f"anullsrc=r={AUDIO_RATE}:cl=stereo",
        ]
        maps = ["-map", "0:v:0", "-map", "1:a:0", "-shortest"]
    else:
        inputs = ["-i", str(src)]
        maps = ["-map", "0:v:0", "-map", "0:a:0"]
    return [
        FFMPEG, "-y",
        *inputs,
        *maps,
        "-vf", vf,
        *canonical_encode_args(),
        str(dst),
    ]


def overlay_filter() -> str:
    """Scale input 1 to the footer width and pin it to the bottom of input 0."""
    return (
        f"[1:v]scale={FOOTER_WIDTH}:-1[footer];"
        f"[0:v][footer]overlay="
        f"x=(main_w-overlay_w)/2:y=main_h-overlay_h-{FOOTER_INSET}"
        f":format=auto,setsar=1[v]"
    )


def composite_cmd(video: str | Path, image: str | Path, dst: str | Path) -> list[str]:
    return [
        FFMPEG, "-y",
        "-i", str(video),
        "-i", str(image),
        "-filter_complex", overlay_filter(),
        "-map", "[v]", "-map", "0:a:0",
        *canonical_encode_args(),
        str(dst),
    ]


def concat_cmd(list_path: str | Path, dst: str | Path) -> list[str]:
    """Stream-copy concat (no re-encode) of the segments named in list_path."""
    return [
        FFMPEG, "-y",
        "-f", "concat", "-safe", "0",
        "-i", str(list_path),
        "-c", "copy",
        str(dst),
    ]


# ── Concat list file ───────────────────────────────────────────────

def concat_list_entry(path: str | Path) -> str:
    """One `file '<abs path>'` line for the ffmpeg concat demuxer.

    Inside single quotes the demuxer has no escape for `'`, so each quote
    closes the string, adds an escaped quote, and reopens: ' -> '\\''
    """
    escaped = str(Path(path).absolute()).replace("'", "'\\''")
    return f"file '{escaped}'"


def concat_list_text(paths: list[str | Path]) -> str:
    return "".join(concat_list_entry(p) + "\n" for p in paths)
