"""Tests for the docquad command-line interface."""

import json

import cv2
import numpy as np
import pytest
from click.testing import CliRunner
from PIL import Image

from docquad import cli
from docquad.cli import main


@pytest.fixture
def runner(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    return CliRunner()


@pytest.fixture
def document_file(tmp_path, document_canvas):
    image, corners = document_canvas
    path = tmp_path / "receipt.png"
    Image.fromarray(image).save(path)
    return path, corners


@pytest.fixture
def blank_file(tmp_path):
    path = tmp_path / "blank.png"
    Image.fromarray(np.full((400, 300, 3), 200, dtype=np.uint8)).save(path)
    return path


def _json_lines(output: str) -> list:
    return [json.loads(line) for line in output.splitlines() if line.startswith("{")]


class TestDetectCommand:
    """Test the detect command."""

    def test_json_output(self, runner, document_file) -> None:
        path, corners = document_file
        result = runner.invoke(main, ["detect", "--json", str(path)])

        assert result.exit_code == 0, result.output
        (record,) = _json_lines(result.output)
        assert record["file"] == str(path)
        assert record["found"] is True
        assert record["fallback"] is False
        np.testing.assert_allclose(record["corners"], corners, atol=5)

    def test_text_output(self, runner, document_file) -> None:
        path, _ = document_file
        result = runner.invoke(main, ["detect", str(path)])

        assert result.exit_code == 0
        assert f"{path}: (" in result.output
        assert "[fallback]" not in result.output

    def test_not_found(self, runner, blank_file) -> None:
        result = runner.invoke(main, ["detect", "--json", str(blank_file)])

        assert result.exit_code == 0
        (record,) = _json_lines(result.output)
        assert record["found"] is False
        assert record["corners"] is None

    def test_fallback_region(self, runner, blank_file) -> None:
        result = runner.invoke(main, ["detect", "--json", "--fallback", str(blank_file)])

        (record,) = _json_lines(result.output)
        assert record["found"] is False
        assert record["fallback"] is True
        assert record["corners"] == [[45, 60], [255, 60], [255, 340], [45, 340]]

    def test_directory_input(self, runner, document_file, blank_file, tmp_path) -> None:
        (tmp_path / "notes.txt").write_text("skip me")
        result = runner.invoke(main, ["detect", "--json", str(tmp_path)])

        records = _json_lines(result.output)
        assert [r["file"] for r in records] == [str(blank_file), str(document_file[0])]

    def test_debug_overlay_saved(self, runner, document_file, tmp_path) -> None:
        path, _ = document_file
        debug_dir = tmp_path / "debug"
        result = runner.invoke(main, ["detect", "--debug", str(debug_dir), str(path)])

        assert result.exit_code == 0
        assert (debug_dir / "receipt_quad.jpg").exists()

    def test_config_file(self, runner, document_file, tmp_path) -> None:
        path, _ = document_file
        config = tmp_path / "only_color.json"
        config.write_text(json.dumps({"generators": "color_distance"}))

        result = runner.invoke(main, ["detect", "--json", "--config", str(config), str(path)])

        assert result.exit_code == 0
        assert _json_lines(result.output)[0]["found"] is True

    def test_bad_config_file(self, runner, document_file, tmp_path) -> None:
        path, _ = document_file
        config = tmp_path / "bad.json"
        config.write_text(json.dumps({"generators": "hough"}))

        result = runner.invoke(main, ["detect", "--config", str(config), str(path)])

        assert result.exit_code == 2
        assert "Unknown generator" in result.output

    def test_unreadable_file_exits_nonzero(self, runner, tmp_path) -> None:
        broken = tmp_path / "broken.png"
        broken.write_bytes(b"definitely not a png")

        result = runner.invoke(main, ["detect", str(broken)])

        assert result.exit_code == 2

    @pytest.mark.parametrize("error", [
        Image.DecompressionBombError("image exceeds pixel limit"),
        cv2.error("conversion failed"),
    ])
    def test_failure_counted_and_batch_continues(
        self, runner, monkeypatch, document_file, blank_file, tmp_path, error
    ) -> None:
        real_load = cli.load_image

        def load_or_fail(path):
            if path.name == blank_file.name:
                raise error
            return real_load(path)

        monkeypatch.setattr(cli, "load_image", load_or_fail)
        result = runner.invoke(main, ["detect", "--json", str(tmp_path)])

        assert result.exit_code == 2
        records = _json_lines(result.output)
        assert [r["file"] for r in records] == [str(document_file[0])]
        assert records[0]["found"] is True


class TestGeneratorsCommand:
    """Test the generators listing."""

    def test_lists_all_generators(self, runner) -> None:
        result = runner.invoke(main, ["generators"])

        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0].split() == ["multi_channel", "21", "mask(s)"]
        assert lines[-1].split() == ["total", "32", "mask(s)"]
        assert len(lines) == 7
