# rigsim/__init__.py
from __future__ import annotations

# ---- Public config / constants ----
from .config import (
    EngineConfig,
    DEFAULT_CONFIG,
    OCTAVE_BANDS,
    A_WEIGHTING,
    SPEED_OF_SOUND,
    GRAVITY,
)

# ---- Errors / advisories ----
from .errors import RigSimError, InvalidInputError, UnknownCalculationError
from .advisories import Advisory, AdvisoryKind

# ---- Geometry ----
from .geometry import (
    Box,
    Plane,
    ray_box_intersection,
    angle_from_vertical,
    fresnel_radius,
    box_room_mesh,
)

# ---- Bands / materials ----
from .bands import (
    calculate_a_weighted_spl,
    calculate_linear_spl,
    combine_multi_band_spl,
)
from .materials import Material, builtin_library, get_material

# ---- Acoustics ----
from .directivity import (
    DirectivityPattern,
    DirectivityTable,
    get_interpolated_directivity,
    calculate_off_axis_attenuation,
    calculate_line_array_coupling,
)
from .propagation import (
    SourceSpec,
    calculate_frequency_dependent_spl,
    calculate_multi_band_spl,
    cast_acoustic_ray,
)
from .occlusion import (
    Obstacle,
    ShadowType,
    check_occlusion,
    check_multiple_obstacles,
)
from .reflections import (
    ReflectionSurface,
    create_default_room,
    surfaces_from_mesh,
    calculate_all_reflections,
    combine_direct_and_reflected_spl,
    estimate_reverb_time,
)
from .spl import CoverageQuality, SPLResult, calculate_total_spl, evaluate_coverage
from .coverage import (
    CoverageBounds,
    CoverageGridParams,
    CoverageGrid,
    generate_coverage_grid,
    export_grid_data,
)

# ---- Rigging ----
from .catenary import CatenaryParams, CatenaryResult, calculate_catenary, validate_cable_safety
from .loads import (
    RiggingPoint,
    SuspendedLoad,
    LoadDistributionParams,
    LoadDistributionResult,
    calculate_load_distribution,
)
from .deflection import (
    TrussProperties,
    DeflectionResult,
    calculate_uniform_load_deflection,
    calculate_point_load_deflection,
    calculate_combined_deflection,
    recommend_truss_size,
)

# ---- Worker ----
from .worker import (
    CalculationType,
    CalculationRequest,
    CalculationResponse,
    CalculationWorker,
    handle_request,
)

# ---- Visualization ----
from .viz import (
    coverage_heatmap_figure,
    catenary_figure,
    load_utilization_figure,
    scene_figure,
)

# ---- Streamlit caching / glue ----
from .caching import (
    scene_hash,
    coverage_grid_cached,
    room_surfaces_cached,
    room_volume_cached,
    calculation_worker,
)

__all__ = [
    # Config
    "EngineConfig", "DEFAULT_CONFIG", "OCTAVE_BANDS", "A_WEIGHTING", "SPEED_OF_SOUND", "GRAVITY",
    # Errors
    "RigSimError", "InvalidInputError", "UnknownCalculationError", "Advisory", "AdvisoryKind",
    # Geometry
    "Box", "Plane", "ray_box_intersection", "angle_from_vertical", "fresnel_radius", "box_room_mesh",
    # Bands / materials
    "calculate_a_weighted_spl", "calculate_linear_spl", "combine_multi_band_spl",
    "Material", "builtin_library", "get_material",
    # Acoustics
    "DirectivityPattern", "DirectivityTable", "get_interpolated_directivity",
    "calculate_off_axis_attenuation", "calculate_line_array_coupling",
    "SourceSpec", "calculate_frequency_dependent_spl", "calculate_multi_band_spl", "cast_acoustic_ray",
    "Obstacle", "ShadowType", "check_occlusion", "check_multiple_obstacles",
    "ReflectionSurface", "create_default_room", "surfaces_from_mesh", "calculate_all_reflections",
    "combine_direct_and_reflected_spl", "estimate_reverb_time",
    "CoverageQuality", "SPLResult", "calculate_total_spl", "evaluate_coverage",
    "CoverageBounds", "CoverageGridParams", "CoverageGrid", "generate_coverage_grid", "export_grid_data",
    # Rigging
    "CatenaryParams", "CatenaryResult", "calculate_catenary", "validate_cable_safety",
    "RiggingPoint", "SuspendedLoad", "LoadDistributionParams", "LoadDistributionResult",
    "calculate_load_distribution",
    "TrussProperties", "DeflectionResult", "calculate_uniform_load_deflection",
    "calculate_point_load_deflection", "calculate_combined_deflection", "recommend_truss_size",
    # Worker
    "CalculationType", "CalculationRequest", "CalculationResponse", "CalculationWorker", "handle_request",
    # Viz
    "coverage_heatmap_figure", "catenary_figure", "load_utilization_figure", "scene_figure",
    # Caching
    "scene_hash", "coverage_grid_cached", "room_surfaces_cached", "room_volume_cached", "calculation_worker",
]
