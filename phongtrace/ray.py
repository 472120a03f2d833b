"""
Ray class for representing rays in 3D space.

A ray is defined by an origin point and a unit direction vector.
Ray(t) = origin + t * direction
"""

from __future__ import annotations
from typing import Optional, Sequence, TYPE_CHECKING

from .vec3 import Vec3, Vector, Point, is_zero

if TYPE_CHECKING:
    from .shapes import Intersection


# Distance a secondary ray origin is moved off its surface (shadow acne)
DELTA = 0.1


class Ray:
    """A ray with origin and unit direction.

    The parametric form is: P(t) = origin + t * direction
    where t > 0 represents points in front of the ray.
    """

    __slots__ = ('origin', 'direction')

    def __init__(self, origin: Point, direction: Vec3):
        """Create a ray with given origin and direction.

        Args:
            origin: The starting point of the ray
            direction: The direction (normalized on construction)

        Raises:
            ZeroVectorError: if the direction is the zero vector
        """
        self.origin = origin
        self.direction = Vector.of(direction).normalize()

    @classmethod
    def offset(cls, point: Point, direction: Vec3, normal: Vector) -> Ray:
        """Create a secondary ray whose origin is nudged off a surface.

        The origin moves by ``DELTA`` along ``normal``, towards the side the
        direction points to. A direction tangent to the surface leaves the
        origin in place.

        Args:
            point: The surface point the ray leaves from
            direction: The ray direction
            normal: The surface normal at ``point``
        """
        dn = direction.dot(normal)
        if is_zero(dn):
            return cls(point, direction)
        delta = DELTA if dn > 0 else -DELTA
        return cls(point + normal * delta, direction)

    def at(self, t: float) -> Point:
        """Get the point along the ray at parameter t.

        Args:
            t: The distance from the origin

        Returns:
            The point at origin + t * direction
        """
        if is_zero(t):
            return self.origin
        return self.origin + self.direction * t

    def closest_intersection(
        self, intersections: Optional[Sequence[Intersection]]
    ) -> Optional[Intersection]:
        """Return the intersection nearest to the ray origin, or None."""
        if not intersections:
            return None
        return min(intersections, key=lambda i: self.origin.distance_squared(i.point))

    def closest_point(self, points: Optional[Sequence[Point]]) -> Optional[Point]:
        """Return the point nearest to the ray origin, or None."""
        if not points:
            return None
        return min(points, key=self.origin.distance_squared)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Ray):
            return NotImplemented
        return self.origin == other.origin and self.direction == other.direction

    def __repr__(self) -> str:
        return f"Ray(origin={self.origin}, direction={self.direction})"
