"""Tests for the subcommand dispatcher."""

import functools
import json

import pytest

from conftest import make_image, make_video


class TestMainDispatcher:
    def test_no_subcommand_shows_help(self, capsys):
        from overlaybatch.main import main

        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1

    def test_run_subcommand_exists(self):
        """run is registered (fails on missing --input)."""
        from overlaybatch.main import main

        with pytest.raises(SystemExit):
            main(["run"])

    def test_validate_subcommand_exists(self):
        from overlaybatch.main import main

        with pytest.raises(SystemExit):
            main(["validate"])

    def test_concat_subcommand_exists(self):
        from overlaybatch.main import main

        with pytest.raises(SystemExit):
            main(["concat"])

    def test_invalid_subcommand_exits_1(self, capsys):
        from overlaybatch.main import main

        with pytest.raises(SystemExit) as exc_info:
            main(["nonexistent"])
        assert exc_info.value.code == 1
        assert "Unknown command: nonexistent" in capsys.readouterr().err


class TestValidate:
    def test_lists_pairs(self, tmp_path, capsys):
        from overlaybatch.main import main

        manifest = tmp_path / "input.json"
        manifest.write_text(json.dumps({
            "stream_url": "rtmp://live.example/app/key",
            "arquivos": "v/a.mp4, i/a.png; v/b.mp4, i/b.png",
        }))
        main(["validate", "--input", str(manifest)])

        out = capsys.readouterr().out
        assert "Batch manifest valid: 2 pair(s)" in out
        assert "rtmp://live.example/app/key" in out
        assert "0001: v/a.mp4 + i/a.png" in out
        assert "0002: v/b.mp4 + i/b.png" in out

    def test_invalid_manifest_exits_1(self, tmp_path, capsys):
        from overlaybatch.main import main

        manifest = tmp_path / "input.json"
        manifest.write_text(json.dumps({"pairs": "v/a.mp4"}))
        with pytest.raises(SystemExit) as exc_info:
            main(["validate", "--input", str(manifest)])
        assert exc_info.value.code == 1
        assert "Invalid manifest" in capsys.readouterr().err

    def test_missing_manifest_exits_1(self, tmp_path):
        from overlaybatch.main import main

        with pytest.raises(SystemExit) as exc_info:
            main(["validate", "--input", str(tmp_path / "nope.json")])
        assert exc_info.value.code == 1


class TestRun:
    def test_missing_remote_exits_1(self, tmp_path, capsys, monkeypatch):
        from overlaybatch.main import main

        monkeypatch.delenv("OVERLAYBATCH_REMOTE", raising=False)
        manifest = tmp_path / "input.json"
        manifest.write_text(json.dumps({"pairs": "v/a.mp4, i/a.png"}))
        with pytest.raises(SystemExit) as exc_info:
            main(["run", "--input", str(manifest), "--staging-dir", str(tmp_path / "t")])
        assert exc_info.value.code == 1
        assert "Invalid configuration" in capsys.readouterr().err

    def test_all_pairs_failing_exits_1_with_report(self, tmp_path, capsys, monkeypatch):
        from overlaybatch import commands
        from overlaybatch.main import main

        monkeypatch.setattr(commands, "RCLONE", str(tmp_path / "no-such-rclone"))

        manifest = tmp_path / "input.json"
        manifest.write_text(json.dumps({"pairs": "v/a.mp4, i/a.png"}))
        report = tmp_path / "report.json"
        with pytest.raises(SystemExit) as exc_info:
            main([
                "run", "--input", str(manifest), "--remote", "drive",
                "--staging-dir", str(tmp_path / "temp"),
                "--output-dir", str(tmp_path / "saida"),
                "--report", str(report),
            ])
        assert exc_info.value.code == 1
        data = json.loads(report.read_text())
        assert data["final_path"] is None
        assert data["outcomes"][0]["state"] == "failed"
        assert "nothing_to_assemble" in capsys.readouterr().err

    def _run_one_good_one_bad(self, tmp_path, fake_rclone, monkeypatch):
        from overlaybatch import pipeline
        from overlaybatch.fetch import RemoteFetcher
        from overlaybatch.main import main

        monkeypatch.setattr(pipeline, "RemoteFetcher", functools.partial(RemoteFetcher, runner=fake_rclone))
        fake_rclone.put("v/a.mp4", source=make_video(tmp_path / "src" / "a.mp4"))
        fake_rclone.put("i/a.png", source=make_image(tmp_path / "src" / "a.png"))

        manifest = tmp_path / "input.json"
        manifest.write_text(json.dumps({
            "stream_url": "rtmp://live.example/app/key",
            "pairs": "v/a.mp4, i/a.png; v/missing.mp4, i/a.png",
        }))
        report = tmp_path / "report.json"
        main([
            "run", "--input", str(manifest), "--remote", "drive",
            "--staging-dir", str(tmp_path / "temp"),
            "--output-dir", str(tmp_path / "saida"),
            "--report", str(report),
        ])
        return json.loads(report.read_text())

    def test_partial_success_exits_0(self, tmp_path, fake_rclone, monkeypatch, capsys):
        data = self._run_one_good_one_bad(tmp_path, fake_rclone, monkeypatch)

        assert data["succeeded"] == 1
        assert data["failed"] == 1
        assert data["stream_url"] == "rtmp://live.example/app/key"
        assert data["final_path"] == str((tmp_path / "saida" / "final.mp4").resolve())
        assert data["outcomes"][1]["error"].startswith("transfer_failed")

        out = capsys.readouterr().out
        assert "  OK     [0001] v/a.mp4 + i/a.png" in out
        assert "  FAILED [0002] v/missing.mp4 + i/a.png" in out
        assert "Done: " in out
        assert "1/2 pairs" in out

    def test_unreadable_duration_still_exits_0(self, tmp_path, fake_rclone, monkeypatch, capsys):
        from overlaybatch import run_cli

        def broken_probe(path):
            raise OSError("moviepy could not read the file")

        monkeypatch.setattr(run_cli, "probe_duration", broken_probe)
        data = self._run_one_good_one_bad(tmp_path, fake_rclone, monkeypatch)

        assert data["succeeded"] == 1
        captured = capsys.readouterr()
        assert "Done: " in captured.out
        assert "1/2 pairs" in captured.out
        assert "Could not read duration" in captured.err
