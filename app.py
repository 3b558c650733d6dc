from __future__ import annotations

import io
import json
import logging
import math

import numpy as np
import streamlit as st
import trimesh

from rigsim import (
    # Config & errors
    EngineConfig, RigSimError,
    # Acoustics
    SourceSpec, DirectivityPattern, Obstacle, CoverageBounds, CoverageGridParams,
    estimate_reverb_time, export_grid_data, box_room_mesh,
    # Rigging
    CatenaryParams, calculate_catenary, validate_cable_safety,
    LoadDistributionParams, calculate_load_distribution,
    TrussProperties, calculate_combined_deflection, recommend_truss_size,
    # Viz + caching
    coverage_heatmap_figure, catenary_figure, load_utilization_figure, scene_figure,
    scene_hash, coverage_grid_cached, room_surfaces_cached, room_volume_cached,
)
from rigsim.deflection import CROSS_SECTIONS, MATERIAL_PROPERTIES
from rigsim.directivity import line_array_layout
from rigsim.logging_config import setup_logging
from rigsim.materials import material_names
from rigsim.spl import CoverageQuality
from rigsim.viz import coverage_breakdown_figure

# ===== Streamlit setup =====
st.set_page_config(page_title="Rig & Coverage Planner", layout="wide")
setup_logging(logging.INFO)

# ===== Style =====
st.markdown("""
<style>
:root{ --bg:#0d0f12; --panel:#12161c; --text:#e6edf3; --line:#2a2f36; --accent:#4bd0e0; }
html, body, [data-testid=stAppViewContainer], [data-testid=stHeader]{ background:var(--bg)!important; color:var(--text)!important; }
[data-testid=stSidebar]{ background:var(--panel)!important; color:var(--text)!important; box-shadow: inset 0 0 0 1px var(--line); }
.stButton>button, .stDownloadButton>button{ background:#141a22; color:var(--text); border:1px solid var(--line); border-radius:8px; }
.js-plotly-plot .colorbar text { fill: #e6edf3 !important; }
</style>
""", unsafe_allow_html=True)

DEFAULT_RIG = {
    "rigging_points": [
        {"id": "M1", "position": [-4, 12, 0], "kind": "motor", "capacity": 1000},
        {"id": "M2", "position": [4, 12, 0], "kind": "motor", "capacity": 1000},
    ],
    "loads": [
        {"id": "PA-L", "weight": 450, "position": [-3, 8, 0], "attached_to": ["M1", "M2"]},
    ],
}


def _badge(ok: bool, text_ok: str, text_bad: str):
    (st.success if ok else st.error)(text_ok if ok else text_bad)


def _show_warnings(warnings):
    for w in warnings:
        st.warning(w)


def _load_venue_mesh(f) -> "trimesh.Trimesh":
    raw = f.getvalue(); ext = f.name.split(".")[-1].lower()
    mesh = trimesh.load(io.BytesIO(raw), file_type=ext)
    if isinstance(mesh, trimesh.Scene):
        mesh = trimesh.util.concatenate([g for g in mesh.dump() if isinstance(g, trimesh.Trimesh)])
    return mesh


# ===== Main UI =====
def main():
    st.title("Rig & Coverage Planner")
    st.caption("Planning-grade SPL coverage and rigging checks (inverse square, mirror-image reflections, "
               "parabolic catenary, beam deflection).")

    # --- Sidebar forms ---
    mats = material_names()
    with st.sidebar:
        with st.form("venue_form"):
            st.subheader("1) Venue (m)")
            room_w = st.number_input("Width", 5.0, 200.0, 40.0, 1.0)
            room_d = st.number_input("Depth", 5.0, 200.0, 40.0, 1.0)
            room_h = st.number_input("Height", 2.0, 50.0, 10.0, 0.5)
            venue_file = st.file_uploader("Venue mesh (STL/OBJ/GLB/PLY, metres, Y up)", type=["stl", "obj", "glb", "ply"])
            floor_mat = st.selectbox("Floor", mats, index=mats.index("concrete"))
            wall_mat = st.selectbox("Walls", mats, index=mats.index("brick"))
            ceiling_mat = st.selectbox("Ceiling", mats, index=mats.index("acoustic tile"))
            st.form_submit_button("Apply venue", use_container_width=True)

        with st.form("pa_form"):
            st.subheader("2) PA hangs (L/R line arrays)")
            hang_x = st.number_input("Hang offset from center X", 0.0, 50.0, 6.0, 0.5)
            hang_y = st.number_input("Trim height Y", 1.0, 30.0, 8.0, 0.5)
            hang_z = st.number_input("Hang Z", -50.0, 50.0, -15.0, 0.5)
            boxes = st.slider("Boxes per hang", 1, 16, 6)
            box_h = st.number_input("Box height", 0.1, 1.0, 0.35, 0.01)
            splay = st.slider("Splay per box (°)", 0.0, 10.0, 2.0, 0.5)
            site = st.slider("Site angle (°)", -20.0, 20.0, -5.0, 0.5)
            max_spl = st.slider("Max SPL @1m (dB)", 110.0, 150.0, 135.0, 0.5)
            disp_h = st.slider("Horizontal dispersion (°)", 30.0, 150.0, 90.0, 5.0)
            disp_v = st.slider("Vertical dispersion (°)", 5.0, 90.0, 10.0, 1.0)
            st.form_submit_button("Apply PA", use_container_width=True)

        with st.form("grid_form"):
            st.subheader("3) Coverage grid")
            resolution = st.select_slider("Resolution (m)", [0.5, 1.0, 2.0, 4.0], value=2.0)
            listen_h = st.number_input("Listening height", 0.5, 3.0, 1.2, 0.1)
            band = st.selectbox("Band", ["A-weighted", 125, 250, 500, 1000, 2000, 4000, 8000], index=0)
            show_refl = st.checkbox("Early reflections", value=True)
            show_occ = st.checkbox("Occlusion", value=True)
            phase_corr = st.checkbox("Phase correction heuristic", value=True)
            air_model = st.selectbox("Air absorption model", ["table", "iso9613"], index=0)
            air_temp_c = st.slider("Air temperature (°C)", -10.0, 40.0, 20.0, 0.5)
            air_rh_pct = st.slider("Relative humidity (%)", 0.0, 100.0, 50.0, 1.0)
            st.form_submit_button("Apply grid", use_container_width=True)

        with st.form("obstacle_form"):
            st.subheader("4) Obstacle (FOH / tower)")
            use_obstacle = st.checkbox("Place obstacle", value=True)
            ob_x = st.number_input("Obstacle X", value=0.0)
            ob_z = st.number_input("Obstacle Z", value=0.0)
            ob_w = st.number_input("Width", 0.1, 20.0, 4.0, 0.1)
            ob_h = st.number_input("Height", 0.1, 20.0, 3.0, 0.1)
            ob_d = st.number_input("Depth", 0.1, 20.0, 3.0, 0.1)
            st.form_submit_button("Apply obstacle", use_container_width=True)

        run = st.button("Run / Update coverage", type="primary", use_container_width=True, key="run_coverage")

    # --- Scene assembly ---
    sources = []
    for side, x in (("L", -hang_x), ("R", hang_x)):
        for el in line_array_layout(boxes, box_h, [splay] * boxes, site):
            pos = (x + el.position[0], hang_y + el.position[1], hang_z + el.position[2])
            sources.append(SourceSpec(pos, (el.rotation[0], 0.0, 0.0), max_spl,
                                      DirectivityPattern(disp_h, disp_v), id=f"{side}{el.index + 1}"))
    obstacles = [Obstacle("obstacle", "scenery", (ob_x, ob_h / 2, ob_z), (ob_w, ob_h, ob_d))] if use_obstacle else []
    mesh = box_room_mesh(room_w, room_d, room_h)
    if venue_file is not None:
        try:
            mesh = _load_venue_mesh(venue_file)
        except Exception as e:
            st.error(f"Failed to load venue mesh, using the box room: {e}")
    V, F = np.asarray(mesh.vertices), np.asarray(mesh.faces)
    surfaces = room_surfaces_cached(V, F, floor_mat, wall_mat, ceiling_mat)
    volume = room_volume_cached(V, F)
    cfg = EngineConfig(air_model=air_model, air_temp_c=air_temp_c, air_rh_pct=air_rh_pct,
                       phase_correction=phase_corr)

    scene_tab, coverage_tab, rigging_tab, truss_tab = st.tabs(["Scene", "Coverage", "Rigging", "Truss"])

    with scene_tab:
        st.plotly_chart(scene_figure(sources, obstacles, mesh=mesh), use_container_width=True)
        cols = st.columns(4)
        for col, b in zip(cols, (125, 500, 1000, 4000)):
            col.metric(f"T60 @ {b} Hz", f"{estimate_reverb_time(volume, surfaces, b):.2f} s")

    with coverage_tab:
        lo, hi = mesh.bounds
        params = CoverageGridParams(
            CoverageBounds(float(lo[0]), float(hi[0]), float(lo[2]), float(hi[2])),
            resolution=resolution, height=listen_h,
            frequency=0.0 if band == "A-weighted" else float(band),
            show_reflections=show_refl, show_occlusion=show_occ,
        )
        key = scene_hash(params, sources, obstacles, surfaces, cfg)
        if run:
            try:
                st.session_state["grid"] = coverage_grid_cached(key, params, sources, obstacles, surfaces, cfg)
                st.session_state["grid_key"] = key
            except RigSimError as e:
                st.error(str(e))

        grid = st.session_state.get("grid")
        if grid is None:
            st.info("Press **Run / Update coverage** to compute the SPL map.")
        else:
            if st.session_state.get("grid_key") != key:
                st.info("Showing the last computed map. Press **Run / Update coverage** to apply new settings.")
            m1, m2, m3 = st.columns(3)
            m1.metric("Average", f"{grid.avg_spl:.1f} dB")
            m2.metric("Min", f"{grid.min_spl:.1f} dB")
            m3.metric("Max", f"{grid.max_spl:.1f} dB")
            st.plotly_chart(coverage_heatmap_figure(grid), use_container_width=True)
            st.plotly_chart(coverage_breakdown_figure(grid), use_container_width=True)
            if grid.coverage.get(CoverageQuality.EXCESSIVE, 0.0) > 0:
                st.warning(f"{grid.coverage[CoverageQuality.EXCESSIVE]:.1f}% of the area is above 105 dB.")
            st.download_button("Download grid (JSON)", export_grid_data(grid),
                               file_name="coverage_grid.json", mime="application/json")

    with rigging_tab:
        st.subheader("Load distribution")
        rig_text = st.text_area("Rigging points & loads (JSON)", json.dumps(DEFAULT_RIG, indent=2), height=260)
        try:
            rig = calculate_load_distribution(LoadDistributionParams.from_dict(json.loads(rig_text)))
        except (json.JSONDecodeError, KeyError, TypeError, RigSimError, ValueError) as e:
            st.error(f"Invalid rigging definition: {e}")
        else:
            sf = "∞" if math.isinf(rig.safety_factor) else f"{rig.safety_factor:.2f}:1"
            c1, c2, c3 = st.columns(3)
            c1.metric("Total weight", f"{rig.total_weight:.0f} kg")
            c2.metric("Max utilization", f"{rig.max_utilization:.1f} %")
            c3.metric("Safety factor", sf)
            _badge(rig.safe, "Rig is within BGV-C1 limits", "Rig is NOT safe")
            st.plotly_chart(load_utilization_figure(rig), use_container_width=True)
            _show_warnings(rig.warnings)

        st.subheader("Cable sag")
        c1, c2, c3, c4 = st.columns(4)
        span = c1.number_input("Span (m)", 0.5, 100.0, 10.0, 0.5)
        weight = c2.number_input("Suspended weight (kg)", 0.0, 10000.0, 500.0, 10.0)
        cable_w = c3.number_input("Cable weight (kg/m)", 0.0, 50.0, 2.0, 0.1)
        breaking = c4.number_input("Breaking load (kN)", 1.0, 1000.0, 60.0, 1.0)
        try:
            cat = calculate_catenary(CatenaryParams(span, weight, cable_w))
        except RigSimError as e:
            st.error(str(e))
        else:
            safety = validate_cable_safety(breaking * 1000.0, cat.max_tension)
            st.plotly_chart(catenary_figure(cat), use_container_width=True)
            st.write(f"Cable length {cat.cable_length:.2f} m, max tension {cat.max_tension / 1000:.2f} kN, "
                     f"safety factor {safety.actual_safety_factor:.2f}:1")
            _badge(safety.safe, "Cable OK", "Cable under-rated")
            _show_warnings(safety.warnings)

    with truss_tab:
        c1, c2, c3 = st.columns(3)
        length = c1.number_input("Truss span (m)", 0.5, 40.0, 8.0, 0.5)
        material = c2.selectbox("Material", list(MATERIAL_PROPERTIES))
        section = c3.selectbox("Cross-section", list(CROSS_SECTIONS))
        uniform = st.number_input("Uniform load (kg/m)", 0.0, 500.0, 0.0, 1.0)
        points = st.text_input("Point loads at midspan (kg, comma separated)", "250")
        include_self = st.checkbox("Include truss self weight", value=True)
        try:
            point_loads = [float(p) for p in points.split(",") if p.strip()]
            truss = TrussProperties(length, material, section)
            total_uniform = uniform + (truss.self_weight if include_self else 0.0)
            res = calculate_combined_deflection(truss, total_uniform, point_loads)
        except (ValueError, RigSimError) as e:
            st.error(f"Invalid truss input: {e}")
        else:
            d1, d2 = st.columns(2)
            d1.metric("Midspan deflection", f"{res.max_deflection * 1000:.1f} mm")
            d2.metric("Span / deflection", "∞" if math.isinf(res.deflection_ratio) else f"L/{res.deflection_ratio:.0f}")
            _badge(res.safety_ok, "Deflection acceptable", "Deflection CRITICAL")
            _show_warnings(res.warnings)
            rec, reason = recommend_truss_size(length, float(np.sum(point_loads)) + total_uniform * length, material)
            st.caption(f"Recommended section: **{rec}** ({reason})")


if __name__ == "__main__":
    main()
