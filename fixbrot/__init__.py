"""Public API for fixed-point Mandelbrot sampling and refinement."""

from .colours import ColourScheme, VGA_MAP, encode, encode_result
from .complex import Complex, iterate_mandelbrot
from .errors import Escaped, FixedPointError, IterationError, Overflow, SamplingOverflow
from .fixed import Fix2x61, Fix4x123
from .generator import ZoomPath, ZoomPlanner
from .grid import EIGHT_NEIGHBOURS, SIX_NEIGHBOURS, Grid, Quad
from .point import Point
from .renderer import RenderParameters, RenderResult, SamplingMetadata, render_frame, render_path

__all__ = [
    "ColourScheme",
    "Complex",
    "EIGHT_NEIGHBOURS",
    "Escaped",
    "Fix2x61",
    "Fix4x123",
    "FixedPointError",
    "Grid",
    "IterationError",
    "Overflow",
    "Point",
    "Quad",
    "RenderParameters",
    "RenderResult",
    "SIX_NEIGHBOURS",
    "SamplingMetadata",
    "SamplingOverflow",
    "VGA_MAP",
    "ZoomPath",
    "ZoomPlanner",
    "encode",
    "encode_result",
    "iterate_mandelbrot",
    "render_frame",
    "render_path",
]
