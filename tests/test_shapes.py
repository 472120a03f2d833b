"""Tests for geometric shapes."""

import pytest

from phongtrace.vec3 import Vec3, Vector, Point, Color
from phongtrace.ray import Ray
from phongtrace.materials import Material, DEFAULT_MATERIAL
from phongtrace.shapes import (
    Intersection, Geometries, GeometryError,
    Plane, Sphere, Polygon, Triangle, Tube, Cylinder
)


def count(hits):
    return 0 if hits is None else len(hits)


class TestGeometryBase:
    """Test material and emission handling shared by all shapes."""

    def test_defaults(self):
        sphere = Sphere(Point(0, 0, 0), 1)
        assert sphere.material is DEFAULT_MATERIAL
        assert sphere.emission == Color(0, 0, 0)

    def test_intersection_carries_material(self):
        material = Material(k_d=0.5)
        sphere = Sphere(Point(0, 0, 0), 1, material, Color(10, 0, 0))
        hit = sphere.find_intersections(Ray(Point(-2, 0, 0), Vector(1, 0, 0)))[0]
        assert hit.geometry is sphere
        assert hit.material is material

    def test_intersection_points(self):
        sphere = Sphere(Point(0, 0, 0), 1)
        points = sphere.intersection_points(Ray(Point(-2, 0, 0), Vector(1, 0, 0)))
        assert sorted(p.x for p in points) == [-1.0, 1.0]
        assert sphere.intersection_points(Ray(Point(2, 0, 0), Vector(1, 0, 0))) is None


class TestSphere:
    """Test ray-sphere intersection."""

    def setup_method(self):
        self.sphere = Sphere(Point(0, 0, 0), 1)

    def test_normal(self):
        normal = self.sphere.normal_at(Point(0, 0, 1))
        assert abs(normal.length() - 1.0) < 1e-10
        assert normal == Vector(0, 0, 1)

    def test_invalid_radius(self):
        with pytest.raises(GeometryError):
            Sphere(Point(0, 0, 0), 0)

    def test_ray_misses(self):
        assert self.sphere.find_intersections(Ray(Point(2, 0, 0), Vector(1, 1, 0))) is None

    def test_ray_crosses_twice(self):
        hits = self.sphere.find_intersections(Ray(Point(-2, 0, 0), Vector(1, 0, 0)))
        assert count(hits) == 2

    def test_ray_from_inside(self):
        hits = self.sphere.find_intersections(Ray(Point(0.5, 0, 0), Vector(1, 0, 0)))
        assert count(hits) == 1
        assert hits[0].point == Point(1, 0, 0)

    def test_ray_after_sphere(self):
        assert self.sphere.find_intersections(Ray(Point(2, 0, 0), Vector(1, 0, 0))) is None

    def test_ray_from_surface_inwards(self):
        assert count(self.sphere.find_intersections(Ray(Point(-0.8, 0.6, 0), Vector(1, 0.1, 0)))) == 1
        assert count(self.sphere.find_intersections(Ray(Point(-1, 0, 0), Vector(1, 0, 0)))) == 1

    def test_ray_from_surface_outwards(self):
        assert self.sphere.find_intersections(Ray(Point(-0.8, 0.6, 0), Vector(-1, 0.1, 0))) is None
        assert self.sphere.find_intersections(Ray(Point(1, 0, 0), Vector(1, 0, 0))) is None

    def test_ray_from_center(self):
        hits = self.sphere.find_intersections(Ray(Point(0, 0, 0), Vector(1, 0, 0)))
        assert count(hits) == 1
        assert hits[0].point == Point(1, 0, 0)

    def test_reverse_through_center(self):
        assert count(self.sphere.find_intersections(Ray(Point(2, 0, 0), Vector(-1, 0, 0)))) == 2

    def test_tangent_rays_miss(self):
        for origin in (Point(-2, 1, 0), Point(0, 1, 0), Point(2, 1, 0)):
            assert self.sphere.find_intersections(Ray(origin, Vector(1, 0, 0))) is None

    def test_orthogonal_rays(self):
        assert count(self.sphere.find_intersections(Ray(Point(0.5, 0, 0), Vector(0, 1, 0)))) == 1
        assert self.sphere.find_intersections(Ray(Point(2, 0, 0), Vector(0, -1, 0))) is None

    def test_max_distance(self):
        ray = Ray(Point(-2, 0, 0), Vector(1, 0, 0))
        hits = self.sphere.find_intersections(ray, 1.5)
        assert count(hits) == 1
        assert hits[0].point == Point(-1, 0, 0)
        assert self.sphere.find_intersections(ray, 0.5) is None


class TestPlane:
    """Test ray-plane intersection."""

    def setup_method(self):
        self.plane = Plane(Point(0, 0, 1), Vector(0, 0, 1))

    def test_from_points_normal(self):
        plane = Plane.from_points(Point(0, 0, 0), Point(1, 0, 0), Point(0, 1, 0))
        normal = plane.normal_at(Point(0.5, 0.5, 0))
        assert abs(normal.length() - 1.0) < 1e-10
        assert normal == Vector(0, 0, 1) or normal == Vector(0, 0, -1)

    def test_from_collinear_points(self):
        with pytest.raises(ValueError):
            Plane.from_points(Point(0, 0, 0), Point(1, 0, 0), Point(2, 0, 0))

    def test_ray_in_front(self):
        hits = self.plane.find_intersections(Ray(Point(0, 0, 0), Vector(0, 1, 1)))
        assert count(hits) == 1
        assert hits[0].point == Point(0, 1, 1)

    def test_ray_moving_away(self):
        assert self.plane.find_intersections(Ray(Point(0, 0, 2), Vector(0, 1, 1))) is None

    def test_parallel_ray(self):
        assert self.plane.find_intersections(Ray(Point(0, 0, 2), Vector(1, 0, 0))) is None

    def test_ray_inside_plane(self):
        assert self.plane.find_intersections(Ray(Point(0, 0, 1), Vector(1, 0, 0))) is None

    def test_orthogonal_ray(self):
        assert count(self.plane.find_intersections(Ray(Point(0, 0, 0), Vector(0, 0, 1)))) == 1
        assert self.plane.find_intersections(Ray(Point(0, 0, 2), Vector(0, 0, 1))) is None

    def test_ray_starting_on_plane(self):
        assert self.plane.find_intersections(Ray(Point(0, 0, 1), Vector(1, 1, 1))) is None
        assert self.plane.find_intersections(Ray(Point(3, 4, 1), Vector(0, 0, -1))) is None

    def test_max_distance(self):
        ray = Ray(Point(0, 0, 0), Vector(0, 0, 1))
        assert count(self.plane.find_intersections(ray, 1.0)) == 1
        assert self.plane.find_intersections(ray, 0.9) is None


class TestTriangle:
    """Test ray-triangle intersection."""

    def setup_method(self):
        self.triangle = Triangle(Point(0, 0, 0), Point(1, 0, 0), Point(0, 1, 0))

    def test_inside(self):
        hits = self.triangle.find_intersections(Ray(Point(0.25, 0.25, 1), Vector(0, 0, -1)))
        assert count(hits) == 1
        assert hits[0].point == Point(0.25, 0.25, 0)

    def test_outside_against_edge(self):
        assert self.triangle.find_intersections(Ray(Point(-0.5, 0.5, 1), Vector(0, 0, -1))) is None

    def test_outside_against_vertex(self):
        assert self.triangle.find_intersections(Ray(Point(1, 1, 1), Vector(0, 0, -1))) is None

    def test_on_edge(self):
        assert self.triangle.find_intersections(Ray(Point(0.5, 0.5, 1), Vector(0, 0, -1))) is None

    def test_on_vertex(self):
        assert self.triangle.find_intersections(Ray(Point(0, 0, 1), Vector(0, 0, -1))) is None

    def test_on_edge_extension(self):
        assert self.triangle.find_intersections(Ray(Point(-0.5, -0.5, 1), Vector(0, 0, -1))) is None

    def test_from_below(self):
        assert count(self.triangle.find_intersections(Ray(Point(0.2, 0.2, -1), Vector(0, 0, 1)))) == 1


class TestPolygon:
    """Test polygon construction and intersection."""

    def test_square(self):
        square = Polygon(Point(0, 0, 0), Point(1, 0, 0), Point(1, 1, 0), Point(0, 1, 0))
        hits = square.find_intersections(Ray(Point(0.5, 0.5, 1), Vector(0, 0, -1)))
        assert count(hits) == 1
        assert hits[0].point == Point(0.5, 0.5, 0)
        assert square.find_intersections(Ray(Point(1.5, 0.5, 1), Vector(0, 0, -1))) is None

    def test_normal(self):
        square = Polygon(Point(0, 0, 0), Point(1, 0, 0), Point(1, 1, 0), Point(0, 1, 0))
        normal = square.normal_at(Point(0.5, 0.5, 0))
        assert normal == Vector(0, 0, 1) or normal == Vector(0, 0, -1)

    def test_too_few_vertices(self):
        with pytest.raises(GeometryError):
            Polygon(Point(0, 0, 0), Point(1, 0, 0))

    def test_collinear_start(self):
        with pytest.raises(GeometryError):
            Polygon(Point(0, 0, 0), Point(1, 0, 0), Point(2, 0, 0))

    def test_not_coplanar(self):
        with pytest.raises(GeometryError):
            Polygon(Point(0, 0, 0), Point(1, 0, 0), Point(1, 1, 0), Point(0, 1, 1))

    def test_wrong_order(self):
        with pytest.raises(GeometryError):
            Polygon(Point(0, 0, 0), Point(1, 0, 0), Point(0, 1, 0), Point(1, 1, 0))

    def test_concave(self):
        with pytest.raises(GeometryError):
            Polygon(Point(0, 0, 0), Point(2, 0, 0), Point(1, 0.5, 0), Point(2, 2, 0), Point(0, 2, 0))

    def test_coincident_vertices(self):
        with pytest.raises(GeometryError):
            Polygon(Point(0, 0, 0), Point(1, 0, 0), Point(1, 1, 0), Point(1, 1, 0))


class TestTube:
    """Test infinite tube."""

    def setup_method(self):
        self.tube = Tube(1, Ray(Point(0, 0, 0), Vector(0, 0, 1)))

    def test_normal(self):
        assert self.tube.normal_at(Point(1, 0, 5)) == Vector(1, 0, 0)
        assert self.tube.normal_at(Point(1, 0, 0)) == Vector(1, 0, 0)

    def test_invalid_radius(self):
        with pytest.raises(GeometryError):
            Tube(-1, Ray(Point(0, 0, 0), Vector(0, 0, 1)))

    def test_ray_crosses(self):
        hits = self.tube.find_intersections(Ray(Point(-2, 0, 5), Vector(1, 0, 0)))
        assert count(hits) == 2
        assert sorted(h.point.x for h in hits) == pytest.approx([-1.0, 1.0])

    def test_oblique_ray(self):
        hits = self.tube.find_intersections(Ray(Point(-2, 0, 0), Vector(1, 0, 1)))
        assert count(hits) == 2
        points = sorted((h.point.x, h.point.z) for h in hits)
        assert points[0] == pytest.approx((-1.0, 1.0))
        assert points[1] == pytest.approx((1.0, 3.0))

    def test_ray_from_inside(self):
        assert count(self.tube.find_intersections(Ray(Point(0, 0, 5), Vector(1, 0, 0)))) == 1

    def test_ray_parallel_to_axis(self):
        assert self.tube.find_intersections(Ray(Point(0.5, 0, 0), Vector(0, 0, 1))) is None
        assert self.tube.find_intersections(Ray(Point(3, 0, 0), Vector(0, 0, -1))) is None

    def test_tangent_ray(self):
        assert self.tube.find_intersections(Ray(Point(-2, 1, 0), Vector(1, 0, 0))) is None

    def test_ray_away(self):
        assert self.tube.find_intersections(Ray(Point(2, 0, 0), Vector(1, 0, 0))) is None


class TestCylinder:
    """Test finite cylinder with caps."""

    def setup_method(self):
        self.cylinder = Cylinder(1, Ray(Point(0, 0, 0), Vector(0, 0, 1)), 5)

    def test_invalid_height(self):
        with pytest.raises(GeometryError):
            Cylinder(1, Ray(Point(0, 0, 0), Vector(0, 0, 1)), 0)

    def test_normals(self):
        assert self.cylinder.normal_at(Point(1, 0, 2)) == Vector(1, 0, 0)
        assert self.cylinder.normal_at(Point(0.5, 0, 0)) == Vector(0, 0, -1)
        assert self.cylinder.normal_at(Point(0.5, 0, 5)) == Vector(0, 0, 1)
        assert self.cylinder.normal_at(Point(0, 0, 0)) == Vector(0, 0, -1)
        assert self.cylinder.normal_at(Point(0, 0, 5)) == Vector(0, 0, 1)

    def test_rim_normals_belong_to_caps(self):
        assert self.cylinder.normal_at(Point(1, 0, 0)) == Vector(0, 0, -1)
        assert self.cylinder.normal_at(Point(1, 0, 5)) == Vector(0, 0, 1)

    def test_ray_along_axis_hits_both_caps(self):
        hits = self.cylinder.find_intersections(Ray(Point(0, 0, -1), Vector(0, 0, 1)))
        assert count(hits) == 2
        assert sorted(h.point.z for h in hits) == pytest.approx([0.0, 5.0])

    def test_ray_across_side(self):
        hits = self.cylinder.find_intersections(Ray(Point(-2, 0, 2), Vector(1, 0, 0)))
        assert count(hits) == 2

    def test_ray_above_cylinder(self):
        assert self.cylinder.find_intersections(Ray(Point(-2, 0, 6), Vector(1, 0, 0))) is None

    def test_ray_through_cap_and_side(self):
        hits = self.cylinder.find_intersections(Ray(Point(0.5, 0, -1), Vector(0.25, 0, 1)))
        assert count(hits) == 2
        points = sorted((h.point.x, h.point.z) for h in hits)
        assert points[0] == pytest.approx((0.75, 0.0))
        assert points[1] == pytest.approx((1.0, 1.0))

    def test_cap_rim_excluded(self):
        # Enters exactly at the rim of the base and leaves through the side
        hits = self.cylinder.find_intersections(Ray(Point(0.5, 0, -1), Vector(0.5, 0, 1)))
        assert hits is None or all(h.point.z > 0 for h in hits)


class TestGeometries:
    """Test the geometry collection."""

    def test_empty(self):
        assert Geometries().find_intersections(Ray(Point(0, 0, 0), Vector(1, 0, 0))) is None

    def test_no_hits(self):
        g = Geometries(Sphere(Point(0, 5, 0), 1))
        assert g.find_intersections(Ray(Point(0, 0, 0), Vector(1, 0, 0))) is None

    def test_concatenates(self):
        g = Geometries(
            Sphere(Point(5, 0, 0), 1),
            Plane(Point(10, 0, 0), Vector(1, 0, 0)),
            Triangle(Point(20, -1, -1), Point(20, 1, -1), Point(20, 0, 1)),
            Sphere(Point(0, 5, 0), 1),
        )
        assert len(g) == 4
        assert count(g.find_intersections(Ray(Point(0, 0, 0), Vector(1, 0, 0)))) == 4

    def test_max_distance(self):
        g = Geometries(Sphere(Point(5, 0, 0), 1), Plane(Point(10, 0, 0), Vector(1, 0, 0)))
        assert count(g.find_intersections(Ray(Point(0, 0, 0), Vector(1, 0, 0)), 7)) == 2

    def test_add_and_iterate(self):
        g = Geometries()
        s = Sphere(Point(0, 0, 0), 1)
        g.add(s)
        assert list(g) == [s]

    def test_nested(self):
        inner = Geometries(Sphere(Point(5, 0, 0), 1))
        outer = Geometries(inner, Sphere(Point(10, 0, 0), 1))
        assert count(outer.find_intersections(Ray(Point(0, 0, 0), Vector(1, 0, 0)))) == 4
