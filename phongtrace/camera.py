"""
Camera module for generating primary rays.

A camera is an immutable configuration:
- Location and an orthonormal basis (forward, up, right)
- A view plane of given physical size at a given distance along forward
- An image resolution (columns x rows)

Cameras are only built through the validating factories `Camera.create`
and `Camera.looking_at`, which raise `CameraConfigError` on bad input.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple
import logging

from .vec3 import Vec3, Vector, Point, AXIS_Y, ZeroVectorError, is_zero
from .ray import Ray

logger = logging.getLogger(__name__)


class CameraConfigError(ValueError):
    """Raised when a camera cannot be built from the given configuration."""
    pass


@dataclass(frozen=True)
class Camera:
    """A pinhole camera with a rectangular view plane."""
    location: Point
    v_to: Vector
    v_up: Vector
    v_right: Vector
    width: float
    height: float
    distance: float
    n_x: int = 1
    n_y: int = 1

    @classmethod
    def create(
        cls,
        location: Point,
        v_to: Vec3,
        v_up: Vec3,
        vp_size: Tuple[float, float],
        vp_distance: float,
        resolution: Tuple[int, int] = (1, 1)
    ) -> Camera:
        """Build a camera from explicit forward and up directions.

        Args:
            location: Camera position in world space
            v_to: Forward direction
            v_up: Up direction (must be orthogonal to v_to)
            vp_size: View plane (width, height)
            vp_distance: Distance from the camera to the view plane
            resolution: Image size as (columns, rows)

        Raises:
            CameraConfigError: on zero or non-orthogonal directions, or
                non-positive sizes, distance or resolution
        """
        if location is None:
            raise CameraConfigError("Camera location cannot be None")
        try:
            forward = Vector.of(v_to).normalize()
            up = Vector.of(v_up).normalize()
        except ZeroVectorError as err:
            raise CameraConfigError("Camera directions must be non-zero") from err
        if not is_zero(forward.dot(up)):
            raise CameraConfigError("vTo and vUp must be orthogonal")

        return cls._build(location, forward, up, forward.cross(up).normalize(),
                          vp_size, vp_distance, resolution)

    @classmethod
    def looking_at(
        cls,
        location: Point,
        target: Point,
        vp_size: Tuple[float, float],
        vp_distance: float,
        up: Vec3 = AXIS_Y,
        resolution: Tuple[int, int] = (1, 1)
    ) -> Camera:
        """Build a camera aimed at a target point.

        The given up direction only needs to be roughly up; the true up
        vector is recomputed to be orthogonal to forward.

        Raises:
            CameraConfigError: if the target is the location, or forward is
                parallel to the approximate up direction
        """
        if location is None or target is None:
            raise CameraConfigError("Camera location and target cannot be None")
        if target == location:
            raise CameraConfigError("Target cannot be the same as location")

        forward = target.subtract(location).normalize()
        try:
            right = forward.cross(up).normalize()
        except ZeroVectorError as err:
            raise CameraConfigError("vTo is parallel to the up vector, cannot define right vector") from err
        true_up = right.cross(forward).normalize()

        return cls._build(location, forward, true_up, right, vp_size, vp_distance, resolution)

    @classmethod
    def _build(cls, location, forward, up, right, vp_size, vp_distance, resolution) -> Camera:
        width, height = vp_size
        if width <= 0 or height <= 0:
            raise CameraConfigError("View plane dimensions must be positive")
        if vp_distance <= 0:
            raise CameraConfigError("View plane distance must be positive")
        n_x, n_y = resolution
        if n_x <= 0 or n_y <= 0:
            raise CameraConfigError("Resolution can't be negative or zero")

        logger.debug("Camera at %s: to=%s up=%s right=%s", location, forward, up, right)
        return cls(location, forward, up, right, float(width), float(height),
                   float(vp_distance), int(n_x), int(n_y))

    def construct_ray(self, n_x: int, n_y: int, j: int, i: int) -> Ray:
        """Build the ray through the center of pixel (column j, row i).

        Args:
            n_x: Number of columns
            n_y: Number of rows
            j: Column index, left to right
            i: Row index, top to bottom

        Returns:
            A ray from the camera location through the pixel center
        """
        # Rows grow downward while the up axis grows upward
        y_i = -(i - (n_y - 1) / 2.0) * self.height / n_y
        x_j = (j - (n_x - 1) / 2.0) * self.width / n_x

        p_ij = self.location
        if not is_zero(x_j):
            p_ij = p_ij + self.v_right * x_j
        if not is_zero(y_i):
            p_ij = p_ij + self.v_up * y_i
        p_ij = p_ij + self.v_to * self.distance

        return Ray(self.location, p_ij.subtract(self.location))

    def pixel_ray(self, j: int, i: int) -> Ray:
        """Ray through pixel (j, i) at the camera's own resolution."""
        return self.construct_ray(self.n_x, self.n_y, j, i)

    def with_location(self, location: Point) -> Camera:
        """Return a copy of this camera moved to a new location."""
        return Camera(location, self.v_to, self.v_up, self.v_right, self.width,
                      self.height, self.distance, self.n_x, self.n_y)

    def __repr__(self) -> str:
        return (f"Camera(location={self.location}, to={self.v_to}, up={self.v_up}, "
                f"vp={self.width}x{self.height}@{self.distance}, resolution={self.n_x}x{self.n_y})")
