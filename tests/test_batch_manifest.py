"""Tests for the batch manifest loader."""

import json
import tempfile

import pytest
import yaml


def _write_manifest(content: dict, suffix=".yaml") -> str:
    """Write a manifest dict to a temp file, return path."""
    f = tempfile.NamedTemporaryFile(mode="w", suffix=suffix, delete=False)
    if suffix == ".json":
        json.dump(content, f)
    else:
        yaml.dump(content, f)
    f.close()
    return f.name


class TestParsePairs:
    def test_delimited_string(self):
        from overlaybatch.batch_manifest import parse_pairs

        pairs = parse_pairs("v/a.mp4,i/a.png;v/b.mp4,i/b.png")
        assert [(p.video_ref, p.image_ref) for p in pairs] == [
            ("v/a.mp4", "i/a.png"),
            ("v/b.mp4", "i/b.png"),
        ]

    def test_trims_whitespace_and_skips_blank_entries(self):
        from overlaybatch.batch_manifest import parse_pairs

        pairs = parse_pairs("  v/a.mp4 , i/a.png ;; ; v/b.mp4,i/b.png;")
        assert len(pairs) == 2
        assert pairs[0].video_ref == "v/a.mp4"
        assert pairs[0].image_ref == "i/a.png"

    def test_returns_tuple(self):
        from overlaybatch.batch_manifest import parse_pairs

        assert isinstance(parse_pairs("a.mp4,a.png"), tuple)

    def test_missing_image_raises(self):
        from overlaybatch.batch_manifest import parse_pairs

        with pytest.raises(ValueError, match="Pair 1"):
            parse_pairs("a.mp4,a.png;b.mp4")

    def test_empty_half_raises(self):
        from overlaybatch.batch_manifest import parse_pairs

        with pytest.raises(ValueError, match="Pair 0"):
            parse_pairs("a.mp4, ")

    def test_too_many_items_raises(self):
        from overlaybatch.batch_manifest import parse_pairs

        with pytest.raises(ValueError):
            parse_pairs("a.mp4,a.png,extra.png")


class TestLoadBatchManifest:
    def test_json_input_with_legacy_key(self):
        from overlaybatch.batch_manifest import load_batch_manifest

        path = _write_manifest(
            {"stream_url": "rtmp://live/key", "arquivos": "a.mp4,a.png;b.mp4,b.png"},
            suffix=".json",
        )
        config = load_batch_manifest(path)
        assert config["stream_url"] == "rtmp://live/key"
        assert len(config["pairs"]) == 2

    def test_pairs_as_list_of_mappings(self):
        from overlaybatch.batch_manifest import load_batch_manifest

        path = _write_manifest({"pairs": [
            {"video": "a.mp4", "image": "a.png"},
            {"video": "b.mp4", "image": "b.jpg"},
        ]})
        config = load_batch_manifest(path)
        assert config["pairs"][1].image_ref == "b.jpg"
        assert config["stream_url"] is None

    def test_pairs_as_list_of_strings(self):
        from overlaybatch.batch_manifest import load_batch_manifest

        path = _write_manifest({"pairs": ["a.mp4, a.png", "b.mp4, b.png"]})
        config = load_batch_manifest(path)
        assert config["pairs"][0].video_ref == "a.mp4"

    def test_preserves_order(self):
        from overlaybatch.batch_manifest import load_batch_manifest

        refs = [f"v{i}.mp4,i{i}.png" for i in range(6)]
        path = _write_manifest({"pairs": ";".join(refs)})
        config = load_batch_manifest(path)
        assert [p.video_ref for p in config["pairs"]] == [f"v{i}.mp4" for i in range(6)]

    def test_missing_pairs_raises(self):
        from overlaybatch.batch_manifest import load_batch_manifest

        path = _write_manifest({"stream_url": "x"})
        with pytest.raises(ValueError, match="pairs"):
            load_batch_manifest(path)

    def test_no_pairs_raises(self):
        from overlaybatch.batch_manifest import load_batch_manifest

        path = _write_manifest({"pairs": " ; "})
        with pytest.raises(ValueError, match="no pairs"):
            load_batch_manifest(path)

    def test_mapping_missing_image_raises(self):
        from overlaybatch.batch_manifest import load_batch_manifest

        path = _write_manifest({"pairs": [{"video": "a.mp4"}]})
        with pytest.raises(ValueError, match="image"):
            load_batch_manifest(path)

    def test_missing_file_raises(self):
        from overlaybatch.batch_manifest import load_batch_manifest

        with pytest.raises(FileNotFoundError, match="not found"):
            load_batch_manifest("/nonexistent/input.json")
