"""Batch manifest loader — the list of (video, image) pairs to process.

The input is a JSON or YAML mapping (yaml.safe_load reads both):

  stream_url: "rtmp://live.example/app/key"
  pairs: "videos/a.mp4, footers/a.png; videos/b.mp4, footers/b.png"

`pairs` may also be a list of "video, image" strings or of
{video: ..., image: ...} mappings. The older input files name the key
`arquivos`; it is accepted as an alias.
"""

from pathlib import Path

import yaml

from .models import MediaPair

PAIR_SEPARATOR = ";"
ITEM_SEPARATOR = ","
PAIR_KEYS = ("pairs", "arquivos")


def parse_pair(entry: str, index: int = 0, item_sep: str = ITEM_SEPARATOR) -> MediaPair:
    parts = [p.strip() for p in entry.split(item_sep)]
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValueError(
            f"Pair {index}: expected 'video{item_sep} image', got {entry.strip()!r}"
        )
    return MediaPair(parts[0], parts[1])


def parse_pairs(
    text: str,
    pair_sep: str = PAIR_SEPARATOR,
    item_sep: str = ITEM_SEPARATOR,
) -> tuple[MediaPair, ...]:
    """Split a delimited pair string. Blank entries are skipped."""
    entries = [e for e in text.split(pair_sep) if e.strip()]
    return tuple(parse_pair(e, i, item_sep) for i, e in enumerate(entries))


def _pairs_from_list(items: list) -> tuple[MediaPair, ...]:
    pairs = []
    for i, item in enumerate(items):
        if isinstance(item, str):
            pairs.append(parse_pair(item, i))
        elif isinstance(item, dict):
            for key in ("video", "image"):
                if not item.get(key):
                    raise ValueError(f"Pair {i}: missing required field '{key}'")
            pairs.append(MediaPair(str(item["video"]).strip(), str(item["image"]).strip()))
        else:
            raise ValueError(f"Pair {i}: expected a string or mapping, got {type(item).__name__}")
    return tuple(pairs)


def load_batch_manifest(manifest_path: str | Path) -> dict:
    """Load and validate a batch manifest.

    Returns:
        {"stream_url": str | None, "pairs": tuple[MediaPair, ...]}

    Raises:
        FileNotFoundError: manifest_path does not exist.
        ValueError: Missing/invalid fields or no pairs.
    """
    manifest_path = Path(manifest_path)
    if not manifest_path.exists():
        raise FileNotFoundError(f"Manifest not found: {manifest_path}")
    with open(manifest_path, encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ValueError("Batch manifest: top level must be a mapping")

    key = next((k for k in PAIR_KEYS if k in raw), None)
    if key is None:
        raise ValueError("Batch manifest: missing required 'pairs' field")

    value = raw[key]
    if isinstance(value, str):
        pairs = parse_pairs(value)
    elif isinstance(value, list):
        pairs = _pairs_from_list(value)
    else:
        raise ValueError(f"Batch manifest: '{key}' must be a string or a list")

    if not pairs:
        raise ValueError("Batch manifest: no pairs listed")

    stream_url = raw.get("stream_url")
    return {
        "stream_url": str(stream_url) if stream_url else None,
        "pairs": pairs,
    }
