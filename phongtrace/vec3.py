"""
Vector, point and color primitives.

This is the fundamental building block of the ray tracer, used for:
- Points in 3D space (plain triples)
- Direction vectors (never zero, see ``Vector``)
- RGB colors and per-channel attenuation coefficients
"""

from __future__ import annotations
import math
from typing import Union
import numpy as np


EPSILON = 1e-10


def is_zero(value: float) -> bool:
    """Check if a scalar is zero within the global epsilon."""
    return abs(value) < EPSILON


def align_zero(value: float) -> float:
    """Snap a scalar to exactly 0.0 when it is within epsilon of zero."""
    return 0.0 if is_zero(value) else value


class ZeroVectorError(ValueError):
    """Raised when a zero vector would be constructed."""
    pass


class Vec3:
    """A 3D triple supporting common vector operations.

    Uses numpy internally for efficient computation while providing
    a clean, Pythonic API. A ``Vec3`` may be zero; use ``Vector`` for
    directions. Triples compare within EPSILON and are not hashable, so
    they can't be set members or dict keys.
    """

    __slots__ = ('_data',)

    def __init__(self, x: float = 0.0, y: float = 0.0, z: float = 0.0):
        self._data = np.array([x, y, z], dtype=np.float64)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> Vec3:
        """Create Vec3 from numpy array."""
        v = Vec3.__new__(Vec3)
        v._data = np.asarray(arr, dtype=np.float64)
        return v

    @property
    def x(self) -> float:
        return float(self._data[0])

    @property
    def y(self) -> float:
        return float(self._data[1])

    @property
    def z(self) -> float:
        return float(self._data[2])

    # Aliases for color operations
    @property
    def r(self) -> float:
        return self.x

    @property
    def g(self) -> float:
        return self.y

    @property
    def b(self) -> float:
        return self.z

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.x:.4f}, {self.y:.4f}, {self.z:.4f})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vec3):
            return NotImplemented
        return bool(np.allclose(self._data, other._data, rtol=0.0, atol=EPSILON))

    # Equality is tolerant, so no hash can agree with it
    __hash__ = None

    def __neg__(self) -> Vec3:
        return Vec3.from_array(-self._data)

    def __add__(self, other: Union[Vec3, float]) -> Vec3:
        if isinstance(other, Vec3):
            return Vec3.from_array(self._data + other._data)
        return Vec3.from_array(self._data + other)

    def __radd__(self, other: float) -> Vec3:
        return Vec3.from_array(other + self._data)

    def __sub__(self, other: Union[Vec3, float]) -> Vec3:
        if isinstance(other, Vec3):
            return Vec3.from_array(self._data - other._data)
        return Vec3.from_array(self._data - other)

    def __rsub__(self, other: float) -> Vec3:
        return Vec3.from_array(other - self._data)

    def __mul__(self, other: Union[Vec3, float]) -> Vec3:
        if isinstance(other, Vec3):
            return Vec3.from_array(self._data * other._data)
        return Vec3.from_array(self._data * other)

    def __rmul__(self, other: float) -> Vec3:
        return Vec3.from_array(other * self._data)

    def __truediv__(self, other: Union[Vec3, float]) -> Vec3:
        if isinstance(other, Vec3):
            return Vec3.from_array(self._data / other._data)
        return Vec3.from_array(self._data / other)

    def __getitem__(self, index: int) -> float:
        return float(self._data[index])

    def __iter__(self):
        return iter(float(c) for c in self._data)

    def length(self) -> float:
        """Return the magnitude (length) of the triple."""
        return float(np.linalg.norm(self._data))

    def length_squared(self) -> float:
        """Return the squared magnitude (avoids sqrt for comparisons)."""
        return float(np.dot(self._data, self._data))

    def dot(self, other: Vec3) -> float:
        """Compute dot product with another triple."""
        return float(np.dot(self._data, other._data))

    def cross(self, other: Vec3) -> Vec3:
        """Compute cross product with another triple."""
        return Vec3.from_array(np.cross(self._data, other._data))

    def distance_squared(self, other: Vec3) -> float:
        diff = self._data - other._data
        return float(np.dot(diff, diff))

    def distance(self, other: Vec3) -> float:
        return math.sqrt(self.distance_squared(other))

    def subtract(self, other: Vec3) -> Vector:
        """Return the direction from ``other`` to this point.

        Raises:
            ZeroVectorError: if both points coincide
        """
        return Vector.from_array(self._data - other._data)

    def is_zero(self) -> bool:
        """Check if every component is zero within epsilon."""
        return all(is_zero(c) for c in self._data)

    def to_array(self) -> np.ndarray:
        """Return the underlying numpy array (copy)."""
        return self._data.copy()


class Vector(Vec3):
    """A direction in 3D space. Never the zero vector.

    Operations that keep a result in direction space (negation, scaling,
    cross product, normalization) return ``Vector`` and so re-check the
    invariant. Mixed arithmetic through the operators falls back to ``Vec3``.
    """

    __slots__ = ()

    def __init__(self, x: float, y: float, z: float):
        super().__init__(x, y, z)
        self._check()

    @classmethod
    def from_array(cls, arr: np.ndarray) -> Vector:
        v = Vector.__new__(Vector)
        v._data = np.asarray(arr, dtype=np.float64)
        v._check()
        return v

    @classmethod
    def of(cls, value: Vec3) -> Vector:
        """Promote a triple to a direction."""
        if isinstance(value, Vector):
            return value
        return cls.from_array(value._data.copy())

    def _check(self) -> None:
        if self.is_zero():
            raise ZeroVectorError("Zero vector is not allowed")

    def __neg__(self) -> Vector:
        return Vector.from_array(-self._data)

    def scale(self, scalar: float) -> Vector:
        return Vector.from_array(self._data * scalar)

    def add(self, other: Vec3) -> Vector:
        return Vector.from_array(self._data + other._data)

    def cross(self, other: Vec3) -> Vector:
        return Vector.from_array(np.cross(self._data, other._data))

    def normalize(self) -> Vector:
        """Return a unit vector in the same direction."""
        length = self.length()
        if is_zero(length):
            raise ZeroVectorError("Cannot normalize a zero-length vector")
        return Vector.from_array(self._data / length)


# Convenience type aliases
Point = Vec3
Color = Vec3

ORIGIN = Point(0.0, 0.0, 0.0)
AXIS_X = Vector(1.0, 0.0, 0.0)
AXIS_Y = Vector(0.0, 1.0, 0.0)
AXIS_Z = Vector(0.0, 0.0, 1.0)

BLACK = Color(0.0, 0.0, 0.0)
ONE = Color(1.0, 1.0, 1.0)


def as_color(value: Union[Vec3, float, int, tuple, list]) -> Color:
    """Coerce a scalar or a 3-sequence into a color triple."""
    if isinstance(value, Vec3):
        return Vec3.from_array(value._data.copy())
    if isinstance(value, (int, float)):
        v = float(value)
        return Color(v, v, v)
    if len(value) != 3:
        raise ValueError(f"Color must have 3 components, got {len(value)}")
    return Color(float(value[0]), float(value[1]), float(value[2]))


def lower_than(k: Color, threshold: float) -> bool:
    """True when every channel of ``k`` is strictly below ``threshold``."""
    return bool(np.all(k._data < threshold))
