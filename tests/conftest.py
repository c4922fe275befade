"""Shared test fixtures for overlaybatch tests.

Videos are generated with the bundled ffmpeg (lavfi sources). rclone is
replaced by FakeRclone, which serves files from a local "remote" directory.
"""

import shutil
import subprocess
from pathlib import Path

import imageio_ffmpeg
import numpy as np
import pytest
from PIL import Image

from overlaybatch.runner import CommandResult

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()


def make_video(out, size="320x240", duration=1, color="blue", audio=True, rate=10):
    """Write a short H.264 test clip, optionally with a mono AAC track."""
    out = Path(out)
    out.parent.mkdir(parents=True, exist_ok=True)
    cmd = [
        _FFMPEG, "-y",
        "-f", "lavfi", "-i", f"color=c={color}:s={size}:d={duration}:r={rate}",
    ]
    if audio:
        cmd += ["-f", "lavfi", "-i", "anullsrc=r=44100:cl=mono", "-shortest"]
    cmd += ["-c:v", "libx264", "-crf", "28", "-pix_fmt", "yuv420p"]
    cmd += ["-c:a", "aac", "-b:a", "32k"] if audio else ["-an"]
    cmd.append(str(out))
    subprocess.run(cmd, check=True, capture_output=True)
    return out


def make_image(out, size=(400, 60), fmt="PNG", color=None):
    """Write an image. Random noise by default so it stays well above 1 KiB."""
    out = Path(out)
    out.parent.mkdir(parents=True, exist_ok=True)
    w, h = size
    if color is None:
        pixels = np.random.default_rng(0).integers(0, 256, (h, w, 3), dtype=np.uint8)
    else:
        pixels = np.full((h, w, 3), color, dtype=np.uint8)
    Image.fromarray(pixels).save(out, fmt)
    return out


class FakeRclone:
    """Stand-in for `rclone copy <remote>:<ref> <dir>`.

    fail:   refs whose transfer exits non-zero.
    vanish: refs whose transfer "succeeds" without writing anything.
    """

    def __init__(self, remote_root):
        self.remote_root = Path(remote_root)
        self.calls = []
        self.fail = set()
        self.vanish = set()

    def put(self, ref, source=None, data=None):
        dest = self.remote_root / ref
        dest.parent.mkdir(parents=True, exist_ok=True)
        if source is not None:
            shutil.copy(source, dest)
        else:
            dest.write_bytes(data)
        return dest

    def __call__(self, cmd, timeout=None):
        self.calls.append(cmd)
        assert cmd[:2] == ["rclone", "copy"]
        _, ref = cmd[2].split(":", 1)
        dest_dir = Path(cmd[3])
        if ref in self.fail:
            return CommandResult(1, "ERROR : Failed to copy: permission denied")
        if ref in self.vanish:
            return CommandResult(0)
        src = self.remote_root / ref
        if not src.exists():
            return CommandResult(3, "ERROR : directory not found")
        dest_dir.mkdir(parents=True, exist_ok=True)
        shutil.copy(src, dest_dir / src.name)
        return CommandResult(0)


@pytest.fixture
def source_video(tmp_path):
    """1-second 320x240 clip with audio."""
    return make_video(tmp_path / "src" / "source.mp4")


@pytest.fixture
def silent_video(tmp_path):
    """1-second 640x360 clip with no audio stream."""
    return make_video(tmp_path / "src" / "silent.mp4", size="640x360", audio=False)


@pytest.fixture
def fake_rclone(tmp_path):
    return FakeRclone(tmp_path / "remote")


@pytest.fixture
def settings(tmp_path):
    from overlaybatch.config import PipelineSettings

    return PipelineSettings(
        remote="drive",
        staging_dir=tmp_path / "temp",
        output_dir=tmp_path / "saida",
    )
