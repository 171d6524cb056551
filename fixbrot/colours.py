"""Colour schemes mapping escape counts to raster bytes."""

from __future__ import annotations

from enum import Enum

import numpy as np

# Fractint's default VGA map, https://svn.fractint.net/trunk/fractint/maps/default.map
VGA_MAP: tuple[tuple[int, int, int], ...] = (
    (0, 0, 0),
    (0, 0, 168),
    (0, 168, 0),
    (0, 168, 168),
    (168, 0, 0),
    (168, 0, 168),
    (168, 84, 0),
    (168, 168, 168),
    (84, 84, 84),
    (84, 84, 252),
    (84, 252, 84),
    (84, 252, 252),
    (252, 84, 84),
    (252, 84, 252),
    (252, 252, 84),
    (252, 252, 252),
)

_VGA_TABLE = np.array(VGA_MAP, dtype=np.uint8)
_VGA_TABLE.setflags(write=False)

LOG_SCALE = 32


class ColourScheme(Enum):
    GREYSCALE = "grey"
    FRACTINT = "fractint"
    LOG_GREYSCALE = "log-grey"

    @classmethod
    def parse(cls, name: str) -> ColourScheme:
        try:
            return cls(name.lower())
        except ValueError as exc:
            choices = ", ".join(scheme.value for scheme in cls)
            raise ValueError(f"Invalid colour scheme {name!r}. Valid choices: {choices}.") from exc

    @property
    def channels(self) -> int:
        return 3 if self is ColourScheme.FRACTINT else 1

    def escape_pixels(self, iterations: np.ndarray) -> np.ndarray:
        """``uint8`` pixels for cells that escaped after ``iterations`` steps."""

        iterations = np.asarray(iterations, dtype=np.int64)
        if self is ColourScheme.GREYSCALE:
            return ((iterations % 255) + 1).astype(np.uint8)
        if self is ColourScheme.FRACTINT:
            return _VGA_TABLE[iterations % len(VGA_MAP)]
        level = np.log2(np.maximum(iterations, 1).astype(np.float64))
        return np.minimum(255, 1 + np.rint(LOG_SCALE * level)).astype(np.uint8)

    def iteration_bytes(self, iterations: int) -> tuple[int, ...]:
        """Bytes for a single cell that escaped after ``iterations`` steps."""

        pixel = self.escape_pixels(np.array([iterations]))[0]
        return tuple(int(value) for value in np.atleast_1d(pixel))

    def interior_bytes(self) -> tuple[int, ...]:
        return (0,) * self.channels


def encode(escaped: np.ndarray, iterations: np.ndarray, scheme: ColourScheme) -> np.ndarray:
    """Encode a frame as ``uint8`` pixels, ``(h, w)`` or ``(h, w, 3)``."""

    pixels = scheme.escape_pixels(iterations)
    escaped = np.asarray(escaped, dtype=bool)
    return np.where(escaped[..., None] if pixels.ndim == 3 else escaped, pixels, 0).astype(np.uint8)


def encode_result(result, scheme: ColourScheme) -> np.ndarray:
    return encode(result.escaped, result.iterations, scheme)
