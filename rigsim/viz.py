# rigsim/viz.py
from __future__ import annotations
from typing import Mapping, Sequence
import numpy as np
import plotly.graph_objects as go

from .catenary import CatenaryResult
from .coverage import CoverageGrid
from .loads import LoadDistributionResult, RiggingPoint
from .occlusion import Obstacle
from .propagation import SourceSpec
from .spl import CoverageQuality


# -----------------------------
# Colors / styles
# -----------------------------

MESH_GREEN = "rgb(0,255,128)"
GRID_C = "rgba(120,160,130,0.18)"
PURPLE = "rgb(200,120,255)"
CABLE_ORANGE = "rgba(255,120,0,1.0)"
TEXT_C = "#e6edf3"

# Colors at the band edges 80..110 dB (poor -> excessive)
SPL_COLORSCALE = [
    [0.0, CoverageQuality.POOR.color],
    [5 / 30, CoverageQuality.POOR.color],
    [10 / 30, CoverageQuality.ACCEPTABLE.color],
    [20 / 30, CoverageQuality.GOOD.color],
    [25 / 30, CoverageQuality.EXCELLENT.color],
    [1.0, CoverageQuality.EXCESSIVE.color],
]
SPL_RANGE = (80.0, 110.0)


def _dark_layout(fig: "go.Figure", title: str = "", **axes) -> "go.Figure":
    fig.update_layout(
        title=title,
        paper_bgcolor="#000", plot_bgcolor="#000",
        font=dict(color=TEXT_C),
        margin=dict(l=50, r=20, t=40, b=40),
        **axes
    )
    return fig


# -----------------------------
# Coverage
# -----------------------------

def coverage_heatmap_figure(grid: CoverageGrid, title: str = "SPL coverage") -> "go.Figure":
    xs, zs = grid.axes()
    fig = go.Figure(data=[go.Heatmap(
        x=xs, y=zs, z=grid.spl_matrix(),
        colorscale=SPL_COLORSCALE,
        zmin=SPL_RANGE[0], zmax=SPL_RANGE[1],
        colorbar=dict(title="dB"),
        hovertemplate="x %{x:.1f} m<br>z %{y:.1f} m<br>%{z:.1f} dB<extra></extra>",
    )])
    return _dark_layout(
        fig, title,
        xaxis=dict(title="x (m)", color=TEXT_C, gridcolor=GRID_C),
        yaxis=dict(title="z (m)", color=TEXT_C, gridcolor=GRID_C, scaleanchor="x", autorange="reversed"),
    )


def coverage_breakdown_figure(grid: CoverageGrid) -> "go.Figure":
    qualities = list(CoverageQuality)
    fig = go.Figure(data=[go.Bar(
        x=[q.value for q in qualities],
        y=[grid.coverage.get(q, 0.0) for q in qualities],
        marker_color=[q.color for q in qualities],
    )])
    return _dark_layout(fig, "Coverage by quality",
                        yaxis=dict(title="% of points", color=TEXT_C, gridcolor=GRID_C),
                        xaxis=dict(color=TEXT_C))


def frequency_response_figure(response: Mapping[int, float], title: str = "Frequency response") -> "go.Figure":
    bands = sorted(response)
    fig = go.Figure(data=[go.Scatter(
        x=bands, y=[response[b] for b in bands],
        mode="lines+markers", line=dict(color=MESH_GREEN, width=2),
    )])
    return _dark_layout(
        fig, title,
        xaxis=dict(title="Freq (Hz)", type="log", color=TEXT_C, gridcolor=GRID_C),
        yaxis=dict(title="SPL (dB)", color=TEXT_C, gridcolor=GRID_C),
    )


# -----------------------------
# Rigging
# -----------------------------

def catenary_figure(result: CatenaryResult, title: str = "Cable sag") -> "go.Figure":
    pts = np.asarray(result.curve, dtype=float)
    fig = go.Figure(data=[go.Scatter(
        x=pts[:, 0], y=pts[:, 1],
        mode="lines", line=dict(color=CABLE_ORANGE, width=3), name="Cable",
    )])
    fig.add_trace(go.Scatter(
        x=[pts[0, 0], pts[-1, 0]], y=[pts[0, 1], pts[-1, 1]],
        mode="markers", marker=dict(size=9, color=TEXT_C), name="Supports",
    ))
    return _dark_layout(
        fig, f"{title} (sag {result.sag:.2f} m)",
        xaxis=dict(title="x (m)", color=TEXT_C, gridcolor=GRID_C),
        yaxis=dict(title="y (m)", color=TEXT_C, gridcolor=GRID_C, scaleanchor="x"),
    )


def _utilization_color(pct: float) -> str:
    if pct > 100:
        return CoverageQuality.EXCESSIVE.color
    if pct > 80:
        return CoverageQuality.ACCEPTABLE.color
    return CoverageQuality.GOOD.color


def load_utilization_figure(result: LoadDistributionResult) -> "go.Figure":
    ids = [p.point_id for p in result.point_loads]
    util = [p.utilization for p in result.point_loads]
    fig = go.Figure(data=[go.Bar(
        x=ids, y=util,
        marker_color=[_utilization_color(u) for u in util],
        customdata=[[p.dynamic_load, p.tension] for p in result.point_loads],
        hovertemplate="%{x}<br>%{y:.1f}%<br>%{customdata[0]:.0f} kg dyn<br>%{customdata[1]:.0f} N<extra></extra>",
    )])
    fig.add_hline(y=100, line=dict(color=CoverageQuality.EXCESSIVE.color, dash="dash"))
    return _dark_layout(fig, "Rigging point utilization",
                        xaxis=dict(color=TEXT_C),
                        yaxis=dict(title="% of capacity", color=TEXT_C, gridcolor=GRID_C))


# -----------------------------
# Plotly scene
# -----------------------------

def scene_figure(sources: Sequence[SourceSpec] = (), obstacles: Sequence[Obstacle] = (),
                 rigging_points: Sequence[RiggingPoint] = (), mesh=None,
                 mesh_opacity: float = 0.12) -> "go.Figure":
    """3D overview. Scene is Y up; plotted with y as the vertical axis."""
    fig = go.Figure()

    if mesh is not None:
        V = np.asarray(mesh.vertices)
        F = np.asarray(mesh.faces)
        fig.add_trace(go.Mesh3d(
            x=V[:, 0], y=V[:, 2], z=V[:, 1],
            i=F[:, 0], j=F[:, 1], k=F[:, 2],
            color=MESH_GREEN, opacity=mesh_opacity, flatshading=True, name="Venue",
        ))

    for ob in obstacles:
        lo, hi = np.asarray(ob.bounds.min), np.asarray(ob.bounds.max)
        corners = np.array([[x, y, z] for x in (lo[0], hi[0]) for y in (lo[1], hi[1]) for z in (lo[2], hi[2])])
        fig.add_trace(go.Mesh3d(
            x=corners[:, 0], y=corners[:, 2], z=corners[:, 1],
            alphahull=0, color=PURPLE, opacity=0.35, name=ob.id, showlegend=False,
        ))

    if sources:
        P = np.asarray([s.position for s in sources], dtype=float)
        fig.add_trace(go.Scatter3d(
            x=P[:, 0], y=P[:, 2], z=P[:, 1],
            mode="markers", marker=dict(size=6, color="rgb(255,32,64)"),
            text=[s.id for s in sources], name="Sources",
        ))

    if rigging_points:
        R = np.asarray([p.position for p in rigging_points], dtype=float)
        fig.add_trace(go.Scatter3d(
            x=R[:, 0], y=R[:, 2], z=R[:, 1],
            mode="markers", marker=dict(size=5, color=CABLE_ORANGE, symbol="diamond"),
            text=[p.id for p in rigging_points], name="Rigging points",
        ))

    axis = dict(showbackground=True, backgroundcolor="#000",
                gridcolor=GRID_C, zerolinecolor=GRID_C, color="#cfd8dc")
    fig.update_layout(
        paper_bgcolor="#000", plot_bgcolor="#000",
        scene=dict(
            xaxis=dict(title="x", **axis),
            yaxis=dict(title="z", **axis),
            zaxis=dict(title="y", **axis),
            bgcolor="#000",
            aspectmode="data",
        ),
        margin=dict(l=0, r=0, b=0, t=30),
        legend=dict(font=dict(color=TEXT_C))
    )
    return fig
