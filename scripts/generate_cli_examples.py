from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

EXAMPLES_ROOT = Path("examples/cli-options")
BASE_ARGS = ["--mode", "image", "--power", "7", "--floor", "200"]


@dataclass
class Expected:
    path: Path
    is_dir: bool = False


@dataclass
class Example:
    name: str
    args: list[str]
    expected: list[Expected]
    clean: list[Path] | None = None

    def full_args(self) -> list[str]:
        return ["python", "zoom.py", *self.args]


def _single_image(name: str, filename: str, *extra: str) -> Example:
    target = EXAMPLES_ROOT / name / filename
    return Example(
        name=name,
        args=[*BASE_ARGS, *extra, "--output", str(target)],
        expected=[Expected(target)],
        clean=[EXAMPLES_ROOT / name],
    )


EXAMPLES: list[Example] = [
    _single_image("power", "fine-grid.png", "--power", "8"),
    _single_image("centre", "seahorse-valley.png", "--centre-r", "-0.75", "--centre-i", "0.1", "--radius", "0.125"),
    _single_image("radius", "main-cardioid.png", "--radius", "1.5"),
    _single_image("floor", "deep-floor.png", "--floor", "2000"),
    _single_image("workers", "four-workers.png", "--workers", "4"),
    _single_image("neighbours", "eight-neighbours.png", "--neighbours", "8"),
    _single_image("colours-fractint", "fractint.png", "--colours", "fractint"),
    _single_image("colours-log-grey", "log-grey.png", "--colours", "log-grey"),
    _single_image("zoom-path", "zoomed.png", "--zoom-path", "3,2,2"),
    _single_image("compare-reference", "compared.png", "--compare-reference"),
    _single_image("verbose", "diagnostic.png", "--verbose"),
    Example(
        name="gif",
        args=[
            "--mode",
            "gif",
            "--power",
            "7",
            "--floor",
            "200",
            "--zoom-path",
            "3,2,2,1",
            "--colours",
            "fractint",
            "--output",
            str(EXAMPLES_ROOT / "gif" / "zoom.gif"),
        ],
        expected=[Expected(EXAMPLES_ROOT / "gif" / "zoom.gif")],
        clean=[EXAMPLES_ROOT / "gif"],
    ),
    Example(
        name="gif-frame-duration",
        args=[
            "--mode",
            "gif",
            "--power",
            "7",
            "--floor",
            "200",
            "--zoom-path",
            "3,2",
            "--gif-frame-duration",
            "1.0",
            "--output",
            str(EXAMPLES_ROOT / "gif-frame-duration" / "slow.gif"),
        ],
        expected=[Expected(EXAMPLES_ROOT / "gif-frame-duration" / "slow.gif")],
        clean=[EXAMPLES_ROOT / "gif-frame-duration"],
    ),
    Example(
        name="frame-dir",
        args=[
            "--mode",
            "frames",
            "--power",
            "7",
            "--floor",
            "200",
            "--zoom-path",
            "3,2",
            "--frame-dir",
            str(EXAMPLES_ROOT / "frame-dir" / "frames"),
        ],
        expected=[Expected(EXAMPLES_ROOT / "frame-dir" / "frames", is_dir=True)],
        clean=[EXAMPLES_ROOT / "frame-dir"],
    ),
    Example(
        name="format",
        args=[
            "--mode",
            "image",
            "--power",
            "7",
            "--floor",
            "200",
            "--format",
            "webp",
            "--output",
            str(EXAMPLES_ROOT / "format" / "custom.webp"),
        ],
        expected=[Expected(EXAMPLES_ROOT / "format" / "custom.webp")],
        clean=[EXAMPLES_ROOT / "format"],
    ),
    Example(
        name="output",
        args=[
            "--mode",
            "image",
            "--mode",
            "gif",
            "--power",
            "7",
            "--floor",
            "200",
            "--zoom-path",
            "1",
            "--output",
            str(EXAMPLES_ROOT / "output"),
        ],
        expected=[
            Expected(EXAMPLES_ROOT / "output" / "zoom.gif"),
            Expected(EXAMPLES_ROOT / "output" / "frame_final.png"),
        ],
        clean=[EXAMPLES_ROOT / "output"],
    ),
]


def _ensure_clean(paths: Iterable[Path]) -> None:
    for path in paths:
        if path.exists():
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink()


def _prepare(example: Example) -> None:
    clean = example.clean or []
    _ensure_clean(clean)
    for expected in example.expected:
        expected.path.parent.mkdir(parents=True, exist_ok=True)


def _verify(example: Example) -> None:
    for expected in example.expected:
        if expected.is_dir:
            if not expected.path.is_dir():
                raise RuntimeError(f"Expected directory {expected.path} was not created")
            if not any(expected.path.iterdir()):
                raise RuntimeError(f"Directory {expected.path} is empty")
        else:
            if not expected.path.is_file():
                raise RuntimeError(f"Expected file {expected.path} was not created")


def main() -> None:
    EXAMPLES_ROOT.mkdir(parents=True, exist_ok=True)
    for example in EXAMPLES:
        print(f"\n[cli-example] {example.name}")
        _prepare(example)
        subprocess.run(example.full_args(), check=True)
        _verify(example)
    print("\nAll CLI examples generated successfully.")


if __name__ == "__main__":
    main()
