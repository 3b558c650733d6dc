"""Tests for the geometry kernel."""

import math

import numpy as np
import pytest

from rigsim.errors import InvalidInputError
from rigsim.geometry import (
    Box,
    Plane,
    angle_between,
    angle_from_vertical,
    box_room_mesh,
    coplanar_patches,
    forward_vector,
    fresnel_radius,
    ray_box_intersection,
    segment_hits_box,
)


class TestRayBoxIntersection:
    """Slab test against axis-aligned boxes."""

    def setup_method(self):
        self.box = Box((2.0, -1.0, -1.0), (4.0, 1.0, 1.0))

    def test_hit_reports_entry_distance(self):
        hit = ray_box_intersection((0, 0, 0), (1, 0, 0), self.box)
        assert hit.intersects
        assert hit.distance == pytest.approx(2.0)

    def test_direction_need_not_be_normalized(self):
        hit = ray_box_intersection((0, 0, 0), (10, 0, 0), self.box)
        assert hit.distance == pytest.approx(2.0)

    def test_miss(self):
        assert not ray_box_intersection((0, 0, 0), (0, 1, 0), self.box).intersects

    def test_box_behind_origin(self):
        assert not ray_box_intersection((0, 0, 0), (-1, 0, 0), self.box).intersects

    def test_origin_inside_reports_exit(self):
        hit = ray_box_intersection((3, 0, 0), (1, 0, 0), self.box)
        assert hit.intersects
        assert hit.distance == pytest.approx(1.0)

    def test_zero_direction(self):
        assert not ray_box_intersection((0, 0, 0), (0, 0, 0), self.box).intersects

    def test_segment_stops_at_endpoint(self):
        assert not segment_hits_box((0, 0, 0), (1.5, 0, 0), self.box).intersects
        assert segment_hits_box((0, 0, 0), (6, 0, 0), self.box).intersects


class TestPlane:
    """Plane normalisation, mirroring and ray intersection."""

    def test_normal_is_normalized(self):
        p = Plane((0, 2, 0), 4.0)
        assert p.normal == pytest.approx((0, 1, 0))
        assert p.constant == pytest.approx(2.0)

    def test_zero_normal_rejected(self):
        with pytest.raises(InvalidInputError):
            Plane((0, 0, 0), 1.0)

    def test_mirror_point(self):
        floor = Plane((0, 1, 0), 0.0)
        assert floor.mirror_point((1, 2, 3)) == pytest.approx([1, -2, 3])

    def test_from_normal_and_point(self):
        p = Plane.from_normal_and_point((0, -1, 0), (0, 10, 0))
        assert p.distance_to_point((0, 4, 0)) == pytest.approx(6.0)

    def test_ray_intersection(self):
        floor = Plane((0, 1, 0), 0.0)
        point = floor.ray_intersection((0, 2, 0), (1, -1, 0))
        assert point == pytest.approx([2, 0, 0])

    def test_parallel_ray_has_no_intersection(self):
        floor = Plane((0, 1, 0), 0.0)
        assert floor.ray_intersection((0, 1, 0), (1, 0, 0)) is None

    def test_plane_behind_ray(self):
        floor = Plane((0, 1, 0), 0.0)
        assert floor.ray_intersection((0, 1, 0), (0, 1, 0)) is None


class TestAngles:
    """Vertical angles, rotations and Fresnel radius."""

    def test_angle_from_vertical(self):
        assert angle_from_vertical((0, 0, 0), (0, 5, 0)) == pytest.approx(0.0)
        assert angle_from_vertical((0, 0, 0), (1, 1, 0)) == pytest.approx(45.0)
        assert angle_from_vertical((0, 0, 0), (0, -3, 3)) == pytest.approx(45.0)

    def test_forward_vector_default_faces_negative_z(self):
        assert forward_vector() == pytest.approx([0, 0, -1])

    def test_forward_vector_rotated_about_y(self):
        v = forward_vector((0.0, math.pi / 2, 0.0))
        assert v == pytest.approx([-1, 0, 0], abs=1e-12)

    def test_angle_between(self):
        assert angle_between((1, 0, 0), (0, 1, 0)) == pytest.approx(90.0)

    def test_fresnel_radius(self):
        # 343 Hz -> 1 m wavelength
        r = fresnel_radius((0, 0, 0), (10, 0, 0), (5, 0, 0), 343.0)
        assert r == pytest.approx(math.sqrt(2.5))


class TestRoomMesh:
    """Shoebox meshes and planar patch extraction."""

    def test_box_room_bounds(self):
        mesh = box_room_mesh(10, 8, 4)
        assert mesh.bounds[0] == pytest.approx([-5, 0, -4])
        assert mesh.bounds[1] == pytest.approx([5, 4, 4])

    def test_patches_cover_all_faces(self):
        patches = coplanar_patches(box_room_mesh(10, 8, 4))
        assert len(patches) == 6
        assert sum(p.area for p in patches) == pytest.approx(2 * (10 * 8 + 10 * 4 + 8 * 4))

    def test_patch_normals_face_inward(self):
        patches = coplanar_patches(box_room_mesh(10, 8, 4))
        floor = [p for p in patches if p.plane.normal[1] > 0.9]
        assert len(floor) == 1
        assert floor[0].area == pytest.approx(80.0)
        # room center is on the positive side of every patch
        center = np.array([0.0, 2.0, 0.0])
        assert all(p.plane.distance_to_point(center) > 0 for p in patches)
