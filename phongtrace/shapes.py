"""
Geometric shapes for the ray tracer.

Each shape implements the Intersectable protocol with a
`find_intersections` method, and each concrete Geometry also resolves its
outward surface normal with `normal_at`.

Conventions shared by every shape:
- A hit at ray parameter t <= 0 (behind or at the origin) is discarded.
- A hit farther from the origin than `max_distance` is discarded.
- `find_intersections` returns None when nothing is hit; a returned list
  is never empty.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Union
import math

from .vec3 import Vec3, Vector, Point, Color, ZeroVectorError, BLACK, align_zero, is_zero, as_color
from .ray import Ray
from .materials import Material, DEFAULT_MATERIAL


INFINITY = float('inf')


class GeometryError(ValueError):
    """Raised when a shape is built from an invalid configuration."""
    pass


@dataclass(frozen=True)
class Intersection:
    """A single ray-geometry hit.

    Attributes:
        geometry: The geometry that was struck (None for bare points)
        point: The intersection point in world space
        material: Snapshot of the geometry's material at hit time
    """
    geometry: Optional[Geometry]
    point: Point
    material: Optional[Material] = field(init=False, compare=False)

    def __post_init__(self):
        material = self.geometry.material if self.geometry is not None else None
        object.__setattr__(self, 'material', material)


def _within(distance: float, max_distance: float) -> bool:
    return align_zero(distance - max_distance) <= 0


class Intersectable(ABC):
    """Abstract base class for everything a ray can be tested against."""

    @abstractmethod
    def find_intersections(self, ray: Ray, max_distance: float = INFINITY) -> Optional[list[Intersection]]:
        """Find all hits of the ray with this object.

        Args:
            ray: The ray to test
            max_distance: Hits farther than this from the ray origin are ignored

        Returns:
            List of intersections (in no particular order), None if there are none
        """
        pass

    def intersection_points(self, ray: Ray) -> Optional[list[Point]]:
        """Return only the points of all hits, or None."""
        hits = self.find_intersections(ray)
        return None if hits is None else [hit.point for hit in hits]


class Geometry(Intersectable):
    """A shaded surface: owns a material and an emission color."""

    def __init__(self, material: Optional[Material] = None, emission: Union[Color, float, None] = None):
        self.material = material if material is not None else DEFAULT_MATERIAL
        self.emission = as_color(emission) if emission is not None else BLACK

    @abstractmethod
    def normal_at(self, point: Point) -> Vector:
        """Return the outward unit normal at a point on the surface."""
        pass


class Plane(Geometry):
    """An infinite plane defined by a point and normal."""

    def __init__(self, point: Point, normal: Vec3, material: Optional[Material] = None, emission=None):
        """Create a plane.

        Args:
            point: Reference point on the plane
            normal: The plane's normal vector (will be normalized)
            material: Material for shading
            emission: Self-emitted color
        """
        super().__init__(material, emission)
        self.point = point
        self.normal = Vector.of(normal).normalize()

    @classmethod
    def from_points(cls, p1: Point, p2: Point, p3: Point, material: Optional[Material] = None, emission=None) -> Plane:
        """Create the plane through three points.

        Raises:
            ZeroVectorError: if the points coincide or are collinear
        """
        normal = p2.subtract(p1).cross(p3.subtract(p1)).normalize()
        return cls(p1, normal, material, emission)

    def normal_at(self, point: Point) -> Vector:
        return self.normal

    def find_intersections(self, ray: Ray, max_distance: float = INFINITY) -> Optional[list[Intersection]]:
        """Solve t = n·(Q - P0) / n·v.

        A ray parallel to the plane, or one whose origin is the plane's
        reference point, never hits.
        """
        denominator = align_zero(self.normal.dot(ray.direction))
        if denominator == 0 or self.point == ray.origin:
            return None

        t = align_zero(self.normal.dot(self.point - ray.origin) / denominator)
        if t <= 0 or not _within(t, max_distance):
            return None

        return [Intersection(self, ray.at(t))]

    def __repr__(self) -> str:
        return f"Plane(point={self.point}, normal={self.normal})"


class Sphere(Geometry):
    """A sphere defined by center and radius."""

    def __init__(self, center: Point, radius: float, material: Optional[Material] = None, emission=None):
        super().__init__(material, emission)
        if radius <= 0:
            raise GeometryError(f"Sphere radius must be positive, got {radius}")
        self.center = center
        self.radius = float(radius)

    def normal_at(self, point: Point) -> Vector:
        return point.subtract(self.center).normalize()

    def find_intersections(self, ray: Ray, max_distance: float = INFINITY) -> Optional[list[Intersection]]:
        """Geometric ray-sphere test.

        Project the center onto the ray (tm), measure the squared distance
        from the center to the ray (d²), and step th = sqrt(r² - d²) either
        side of tm. Tangent rays count as misses.
        """
        if ray.origin == self.center:
            if _within(self.radius, max_distance):
                return [Intersection(self, ray.at(self.radius))]
            return None

        u = self.center - ray.origin
        tm = u.dot(ray.direction)
        d_squared = u.length_squared() - tm * tm
        r_squared = self.radius * self.radius

        if align_zero(d_squared - r_squared) >= 0:
            return None

        th = math.sqrt(r_squared - d_squared)
        intersections = []
        for t in (tm - th, tm + th):
            if align_zero(t) > 0 and _within(t, max_distance):
                intersections.append(Intersection(self, ray.at(t)))

        return intersections or None

    def __repr__(self) -> str:
        return f"Sphere(center={self.center}, radius={self.radius})"


class Polygon(Geometry):
    """A convex planar polygon given by its vertices in edge-path order."""

    def __init__(self, *vertices: Point, material: Optional[Material] = None, emission=None):
        """Create a polygon.

        Args:
            vertices: Three or more coplanar vertices ordered along the edge path
            material: Material for shading
            emission: Self-emitted color

        Raises:
            GeometryError: if fewer than 3 vertices are given, vertices coincide
                or are collinear, are not coplanar, or do not describe a convex
                polygon in order
        """
        super().__init__(material, emission)
        if len(vertices) < 3:
            raise GeometryError("A polygon can't have less than 3 vertices")
        self.vertices = tuple(vertices)

        try:
            self.plane = Plane.from_points(vertices[0], vertices[1], vertices[2])
        except ZeroVectorError as err:
            raise GeometryError("The first three vertices must be distinct and not collinear") from err

        size = len(vertices)
        if size == 3:
            return

        n = self.plane.normal
        try:
            edge1 = vertices[-1].subtract(vertices[-2])
            edge2 = vertices[0].subtract(vertices[-1])
            positive = Vec3.cross(edge1, edge2).dot(n) > 0
            for i in range(1, size):
                if not is_zero((vertices[i] - vertices[0]).dot(n)):
                    raise GeometryError("All vertices of a polygon must lay in the same plane")
                edge1 = edge2
                edge2 = vertices[i].subtract(vertices[i - 1])
                if positive != (Vec3.cross(edge1, edge2).dot(n) > 0):
                    raise GeometryError("All vertices must be ordered and the polygon must be convex")
        except ZeroVectorError as err:
            raise GeometryError("Consecutive vertices of a polygon must not coincide") from err

    def normal_at(self, point: Point) -> Vector:
        return self.plane.normal

    def find_intersections(self, ray: Ray, max_distance: float = INFINITY) -> Optional[list[Intersection]]:
        """Intersect the supporting plane, then keep only interior points.

        For each edge, the side normal (v_i - P0) x (v_i+1 - P0) is dotted with
        the ray direction; the point is inside only when every such product has
        the same strict sign. Points on an edge, a vertex or an edge's
        extension give a zero product and are rejected.
        """
        plane_hits = self.plane.find_intersections(ray, max_distance)
        if plane_hits is None:
            return None

        origin = ray.origin
        direction = ray.direction
        size = len(self.vertices)
        positive = None

        for i in range(size):
            v1 = self.vertices[i] - origin
            v2 = self.vertices[(i + 1) % size] - origin
            side = v1.cross(v2)
            if side.is_zero():
                return None
            sign = align_zero(direction.dot(side) / side.length())
            if sign == 0:
                return None
            if positive is None:
                positive = sign > 0
            elif positive != (sign > 0):
                return None

        return [Intersection(self, plane_hits[0].point)]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(vertices={list(self.vertices)})"


class Triangle(Polygon):
    """A triangle: the three-vertex polygon."""

    def __init__(self, p1: Point, p2: Point, p3: Point, material: Optional[Material] = None, emission=None):
        super().__init__(p1, p2, p3, material=material, emission=emission)


class Tube(Geometry):
    """An infinite cylindrical surface of given radius around an axis ray."""

    def __init__(self, radius: float, axis: Ray, material: Optional[Material] = None, emission=None):
        super().__init__(material, emission)
        if radius <= 0:
            raise GeometryError(f"Tube radius must be positive, got {radius}")
        self.radius = float(radius)
        self.axis = axis

    def normal_at(self, point: Point) -> Vector:
        # Project the point onto the axis, normal points away from that foot
        t = align_zero(self.axis.direction.dot(point - self.axis.origin))
        return point.subtract(self.axis.at(t)).normalize()

    def side_distances(self, ray: Ray, max_distance: float = INFINITY) -> list[float]:
        """Ray parameters where the ray meets the tube surface.

        With the axis direction projected out of both the ray direction (A)
        and the origin offset from the axis (B), |A t + B|² = r² gives the
        quadratic a t² + b t + c = 0. A ray parallel to the axis (a = 0)
        never meets the surface and a tangent ray counts as a miss.
        """
        va = self.axis.direction
        offset = ray.origin - self.axis.origin
        a_vec = ray.direction - va * ray.direction.dot(va)
        b_vec = offset - va * offset.dot(va)

        a = align_zero(a_vec.length_squared())
        if a == 0:
            return []
        b = 2.0 * a_vec.dot(b_vec)
        c = b_vec.length_squared() - self.radius * self.radius

        discriminant = align_zero(b * b - 4.0 * a * c)
        if discriminant <= 0:
            return []

        sqrt_d = math.sqrt(discriminant)
        roots = ((-b - sqrt_d) / (2.0 * a), (-b + sqrt_d) / (2.0 * a))
        return [t for t in roots if align_zero(t) > 0 and _within(t, max_distance)]

    def find_intersections(self, ray: Ray, max_distance: float = INFINITY) -> Optional[list[Intersection]]:
        hits = [Intersection(self, ray.at(t)) for t in self.side_distances(ray, max_distance)]
        return hits or None

    def __repr__(self) -> str:
        return f"Tube(axis={self.axis}, radius={self.radius})"


class Cylinder(Geometry):
    """A finite tube of given height, closed by two flat caps.

    The base cap lies at the axis origin and the top cap at
    origin + direction * height.
    """

    def __init__(self, radius: float, axis: Ray, height: float, material: Optional[Material] = None, emission=None):
        super().__init__(material, emission)
        if height <= 0:
            raise GeometryError(f"Cylinder height must be positive, got {height}")
        self._tube = Tube(radius, axis)
        self.radius = self._tube.radius
        self.axis = axis
        self.height = float(height)
        self.base_center = axis.origin
        self.top_center = axis.at(self.height)
        self._base = Plane(self.base_center, axis.direction)
        self._top = Plane(self.top_center, axis.direction)

    def normal_at(self, point: Point) -> Vector:
        direction = self.axis.direction

        if point == self.base_center:
            return -direction
        if point == self.top_center:
            return direction

        # On one of the cap planes
        if is_zero((self.base_center - point).dot(direction)):
            return -direction
        if is_zero((self.top_center - point).dot(direction)):
            return direction

        return self._tube.normal_at(point)

    def find_intersections(self, ray: Ray, max_distance: float = INFINITY) -> Optional[list[Intersection]]:
        """Side hits strictly between the caps plus cap hits strictly inside the rim."""
        intersections = []
        direction = self.axis.direction

        for t in self._tube.side_distances(ray, max_distance):
            point = ray.at(t)
            h = align_zero((point - self.base_center).dot(direction))
            if h > 0 and align_zero(h - self.height) < 0:
                intersections.append(Intersection(self, point))

        r_squared = self.radius * self.radius
        for cap, center in ((self._base, self.base_center), (self._top, self.top_center)):
            cap_hits = cap.find_intersections(ray, max_distance)
            if cap_hits is None:
                continue
            point = cap_hits[0].point
            if align_zero(point.distance_squared(center) - r_squared) < 0:
                intersections.append(Intersection(self, point))

        return intersections or None

    def __repr__(self) -> str:
        return f"Cylinder(axis={self.axis}, radius={self.radius}, height={self.height})"


class Geometries(Intersectable):
    """An ordered collection of intersectable objects."""

    def __init__(self, *items: Intersectable):
        self.items: list[Intersectable] = list(items)

    def add(self, *items: Intersectable) -> None:
        """Add one or more objects to the collection."""
        self.items.extend(items)

    def find_intersections(self, ray: Ray, max_distance: float = INFINITY) -> Optional[list[Intersection]]:
        """Concatenate every member's hits."""
        intersections: Optional[list[Intersection]] = None

        for item in self.items:
            hits = item.find_intersections(ray, max_distance)
            if hits is not None:
                if intersections is None:
                    intersections = []
                intersections.extend(hits)

        return intersections

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)
