"""Unit tests for render parameters and results."""

from __future__ import annotations

import numpy as np

from fixbrot.complex import Complex
from fixbrot.fixed import Fix2x61
from fixbrot.generator import ZoomPath
from fixbrot.grid import Grid
from fixbrot.renderer import RenderParameters, RenderResult, SamplingMetadata, render_frame, render_path


def _params(**overrides) -> RenderParameters:
    values = dict(power=3, centre=Complex.zero(), radius=Fix2x61.two(), floor=16)
    values.update(overrides)
    return RenderParameters(**values)


class TestSamplingMetadata:
    def test_from_grid(self) -> None:
        metadata = SamplingMetadata.from_grid(Grid.create(3))

        assert metadata.x_min == -1.75
        assert metadata.y_min == -1.75
        assert metadata.x_step == 0.5
        assert metadata.y_step == 0.5
        assert metadata.x_res == metadata.y_res == 8

    def test_matches_sample_locations(self) -> None:
        grid = Grid.create(3, Complex.from_floats(-0.5, 0.25), Fix2x61.from_float(1.0))
        metadata = SamplingMetadata.from_grid(grid)

        assert float(grid[0, 0].loc.r) == metadata.x_min
        assert float(grid[0, 0].loc.i) == metadata.y_min
        assert float(grid[0, 7].loc.r) == metadata.x_min + 7 * metadata.x_step


class TestRender:
    def test_render_frame(self) -> None:
        result = render_frame(_params())

        assert result.iterations.shape == (8, 8)
        assert result.escaped.shape == (8, 8)
        assert result.escaped.dtype == bool
        assert result.escaped[0, 0]
        assert result.deepest == int(result.iterations[result.escaped].max())

    def test_render_path(self) -> None:
        results = render_path(_params(), ZoomPath.parse("1,1"))

        assert len(results) == 3
        assert results[-1].grid is not None
        assert results[-1].grid.radius == Fix2x61.from_float(0.5)

    def test_result_from_grid(self) -> None:
        grid = Grid.create(2)
        result = RenderResult.from_grid(grid)

        assert result.deepest == 0
        np.testing.assert_array_equal(result.iterations, np.zeros((4, 4), dtype=np.int64))

    def test_size(self) -> None:
        assert _params(power=5).size == 32
