"""Tests for Plotly figure builders."""

import plotly.graph_objects as go

from rigsim.catenary import CatenaryParams, calculate_catenary
from rigsim.coverage import CoverageBounds, CoverageGridParams, generate_coverage_grid
from rigsim.geometry import box_room_mesh
from rigsim.loads import LoadDistributionParams, RiggingPoint, SuspendedLoad, calculate_load_distribution
from rigsim.occlusion import Obstacle
from rigsim.propagation import SourceSpec
from rigsim.viz import (
    catenary_figure,
    coverage_breakdown_figure,
    coverage_heatmap_figure,
    frequency_response_figure,
    load_utilization_figure,
    scene_figure,
)

SOURCES = [SourceSpec((0.0, 6.0, 0.0), max_spl=120.0, id="main")]
POINTS = [RiggingPoint("m1", (-2.0, 10.0, 0.0), capacity=1000.0),
          RiggingPoint("m2", (2.0, 10.0, 0.0), capacity=500.0)]


def _grid():
    params = CoverageGridParams(CoverageBounds(-4.0, 4.0, 2.0, 10.0), resolution=2.0,
                                frequency=1000.0, show_reflections=False)
    return generate_coverage_grid(params, SOURCES)


class TestCoverageFigures:
    """Coverage plots."""

    def test_heatmap(self):
        grid = _grid()
        fig = coverage_heatmap_figure(grid)
        assert isinstance(fig, go.Figure)
        assert len(fig.data) == 1
        assert fig.data[0].type == "heatmap"
        assert len(fig.data[0].z) == grid.depth

    def test_breakdown(self):
        fig = coverage_breakdown_figure(_grid())
        assert len(fig.data[0].x) == 5

    def test_frequency_response(self):
        fig = frequency_response_figure({1000: 100.0, 125: 95.0, 8000: 90.0})
        assert list(fig.data[0].x) == [125, 1000, 8000]


class TestRiggingFigures:
    """Rigging plots."""

    def test_catenary(self):
        result = calculate_catenary(CatenaryParams(10.0, 500.0, 2.0))
        fig = catenary_figure(result)
        assert len(fig.data) == 2
        assert len(fig.data[0].x) == len(result.curve)

    def test_utilization(self):
        result = calculate_load_distribution(LoadDistributionParams(
            POINTS, [SuspendedLoad("pa", 600.0, (0.0, 5.0, 0.0), ("m1", "m2"))]))
        fig = load_utilization_figure(result)
        assert list(fig.data[0].x) == ["m1", "m2"]
        assert fig.data[0].y[1] > fig.data[0].y[0]


class TestSceneFigure:
    """3D overview."""

    def test_empty(self):
        assert len(scene_figure().data) == 0

    def test_full_scene(self):
        obstacle = Obstacle("stage", "stage", (0.0, 0.5, 2.0), (8.0, 1.0, 4.0))
        fig = scene_figure(SOURCES, [obstacle], POINTS, mesh=box_room_mesh(20.0, 30.0, 12.0))
        assert len(fig.data) == 4
        assert [t.type for t in fig.data] == ["mesh3d", "mesh3d", "scatter3d", "scatter3d"]
