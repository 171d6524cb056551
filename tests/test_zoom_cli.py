"""End-to-end tests for the zoom.py command line."""

from __future__ import annotations

from pathlib import Path

import PIL.Image
import pytest

import zoom


def _run(*args: str) -> None:
    zoom.main(["--power", "3", "--floor", "16", *args])


class TestMain:
    def test_single_image(self, tmp_path: Path) -> None:
        output = tmp_path / "frame.png"
        _run("--output", str(output))

        with PIL.Image.open(output) as image:
            assert image.size == (8, 8)
            assert image.mode == "L"

    def test_fractint_image(self, tmp_path: Path) -> None:
        output = tmp_path / "frame.png"
        _run("--colours", "fractint", "--zoom-path", "1", "--output", str(output))

        with PIL.Image.open(output) as image:
            assert image.mode == "RGB"

    def test_gif(self, tmp_path: Path) -> None:
        output = tmp_path / "zoom.gif"
        _run("--mode", "gif", "--zoom-path", "1,4", "--output", str(output))

        assert output.is_file()

    def test_frames(self, tmp_path: Path) -> None:
        frame_dir = tmp_path / "frames"
        _run("--mode", "frames", "--zoom-path", "3,2", "--frame-dir", str(frame_dir))

        assert sorted(path.name for path in frame_dir.iterdir()) == [
            "frame000.png",
            "frame001.png",
            "frame002.png",
        ]

    def test_compare_reference(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        _run("--compare-reference", "--output", str(tmp_path / "frame.png"))

        assert "agree with the float64 reference" in capsys.readouterr().out


class TestArgumentErrors:
    @pytest.mark.parametrize(
        "args",
        [
            ["--zoom-path", "1,9"],
            ["--centre-r", "3"],
            ["--radius", "5"],
            ["--radius", "-1"],
            ["--colours", "rainbow"],
            ["--mode", "movie"],
            ["--power", "1"],
            ["--floor", "0"],
            ["--workers", "0"],
            ["--output", "frame.jpg"],
            ["--mode", "gif", "--output", "zoom.png"],
            ["--frame-dir", "frames"],
        ],
    )
    def test_rejected(self, args: list[str], tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        with pytest.raises(SystemExit):
            _run(*args)

    def test_radius_below_resolution(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit):
            _run("--radius", "0.000000000000000001", "--output", str(tmp_path / "frame.png"))

        assert "cannot be represented" in capsys.readouterr().err

    def test_zoom_below_resolution(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        # 2**-58, the smallest radius a 3-power grid can sample
        radius = "0." + "0" * 17 + "34694469519536141888238489627838134765625"
        with pytest.raises(SystemExit):
            _run("--radius", radius, "--zoom-path", "1,1", "--output", str(tmp_path / "frame.png"))

        assert "Zoom depth 1 of path 1,1" in capsys.readouterr().err
