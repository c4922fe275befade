"""Canonical encode parameters and pipeline settings.

Every normalized and composited segment is encoded with the constants
below. The final concatenation is a stream copy, so these values must be
identical for every segment of a batch and are not configurable per pair.

Job file schema (YAML):
  paths:
    work: "/data/jobs/2024-05"
  remote: "meudrive"
  rclone_config: "~/.config/rclone/rclone.conf"
  staging_dir: "${work}/temp"
  output_dir: "${work}/saida"
  output_name: "final.mp4"
  workers: 1
  validate_images: true
  keep_intermediates: false
  min_bytes: 1024
  timeout: 900
"""

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

import yaml

from .common import resolve_path_vars


# ── Canonical video ────────────────────────────────────────────────
WIDTH = 1280
HEIGHT = 720
FPS = 60
VIDEO_CODEC = "libx264"
VIDEO_PRESET = "veryfast"
VIDEO_CRF = 23
PIX_FMT = "yuv420p"

# ── Canonical audio ────────────────────────────────────────────────
AUDIO_CODEC = "aac"
AUDIO_BITRATE = "192k"
AUDIO_RATE = 44100
AUDIO_CHANNELS = 2

# ── Overlay policy ─────────────────────────────────────────────────
# Same for every pair so all segments of a batch look alike.
FOOTER_WIDTH = 1235
FOOTER_INSET = 0  # pixels between footer and the bottom edge

# Smallest plausible fetched file. Anything below is treated as corrupt.
MIN_FETCH_BYTES = 1024

DEFAULT_RCLONE_CONFIG = Path.home() / ".config" / "rclone" / "rclone.conf"

ENV_REMOTE = "OVERLAYBATCH_REMOTE"
ENV_RCLONE_CONFIG = "RCLONE_CONFIG"
ENV_WORKERS = "OVERLAYBATCH_WORKERS"

_PATH_FIELDS = {"rclone_config", "staging_dir", "output_dir"}


@dataclass
class PipelineSettings:
    remote: str = ""
    rclone_config: Path | None = None
    staging_dir: Path = field(default_factory=lambda: Path("temp"))
    output_dir: Path = field(default_factory=lambda: Path("saida"))
    output_name: str = "final.mp4"
    workers: int = 1
    validate_images: bool = True
    keep_intermediates: bool = False
    min_bytes: int = MIN_FETCH_BYTES
    timeout: float | None = None

    @classmethod
    def load(cls, path: str | Path | None = None, **overrides) -> "PipelineSettings":
        """Build settings from defaults, job file, environment, then overrides.

        Overrides whose value is None are ignored so CLI flags that were not
        given do not clobber the job file.
        """
        cfg = cls()
        if path is not None:
            cfg = replace(cfg, **_read_job_file(path))

        env = {}
        if remote := os.environ.get(ENV_REMOTE):
            env["remote"] = remote
        if rclone_config := os.environ.get(ENV_RCLONE_CONFIG):
            env["rclone_config"] = Path(rclone_config)
        if workers := os.environ.get(ENV_WORKERS):
            env["workers"] = _as_int("workers", workers)
        cfg = replace(cfg, **env)

        cfg = replace(cfg, **{k: v for k, v in overrides.items() if v is not None})
        return cfg.validated()

    def validated(self) -> "PipelineSettings":
        if not self.remote:
            raise ValueError(
                "No remote configured. Set 'remote' in the job file, "
                f"${ENV_REMOTE}, or pass --remote."
            )
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        if self.min_bytes < 0:
            raise ValueError(f"min_bytes must be >= 0, got {self.min_bytes}")
        if not self.output_name or Path(self.output_name).name != self.output_name:
            raise ValueError(f"output_name must be a bare file name, got {self.output_name!r}")

        rclone_config = self.rclone_config
        if rclone_config is None and DEFAULT_RCLONE_CONFIG.exists():
            rclone_config = DEFAULT_RCLONE_CONFIG
        return replace(
            self,
            rclone_config=Path(rclone_config).expanduser() if rclone_config else None,
            staging_dir=Path(self.staging_dir).expanduser().resolve(),
            output_dir=Path(self.output_dir).expanduser().resolve(),
        )


def _as_int(name: str, value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


def _as_bool(name: str, value) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"{name} must be true or false, got {value!r}")
    return value


def _read_job_file(path: str | Path) -> dict:
    """Parse a YAML job file into PipelineSettings keyword arguments.

    Relative directories are taken relative to the job file's folder.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Job file not found: {path}")
    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Job file {path}: top level must be a mapping")

    paths = {k: str(v) for k, v in (raw.pop("paths", None) or {}).items()}
    known = {f.name for f in fields(PipelineSettings)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValueError(f"Job file {path}: unknown field(s) {unknown}")

    base = path.parent
    values = {}
    for key, value in raw.items():
        if value is None:
            continue
        if key in _PATH_FIELDS:
            p = Path(resolve_path_vars(str(value), paths)).expanduser()
            values[key] = p if p.is_absolute() else base / p
        elif key in ("workers", "min_bytes"):
            values[key] = _as_int(key, value)
        elif key == "timeout":
            values[key] = float(value)
        elif key in ("validate_images", "keep_intermediates"):
            values[key] = _as_bool(key, value)
        else:
            values[key] = str(value)
    return values
