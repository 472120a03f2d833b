"""
Light sources for the ray tracer.

Implements the Phong light types:
- Ambient light (constant, no position)
- Directional lights (sun)
- Point lights with constant/linear/quadratic attenuation
- Spot lights (point lights with a focused beam)

Point and spot lights may also emulate a small disc-shaped area light by
casting several jittered shadow rays, which yields soft shadows.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
import math
import random

from .vec3 import Vec3, Vector, Point, Color, BLACK, AXIS_X, AXIS_Y, align_zero, as_color
from .ray import Ray


class LightError(ValueError):
    """Raised when a light is created with invalid parameters."""
    pass


class AmbientLight:
    """Uniform background illumination.

    Contributes only through a material's k_a, never through the per-light
    shading loop.
    """

    NONE: AmbientLight

    def __init__(self, intensity=BLACK):
        self.intensity = as_color(intensity)

    def __repr__(self) -> str:
        return f"AmbientLight(intensity={self.intensity})"


AmbientLight.NONE = AmbientLight(BLACK)


class LightSource(ABC):
    """Abstract base class for light sources taking part in direct shading."""

    def __init__(self, intensity):
        self.intensity = as_color(intensity)

    @abstractmethod
    def intensity_at(self, point: Point) -> Color:
        """Return the light intensity arriving at a point."""
        pass

    @abstractmethod
    def direction_to(self, point: Point) -> Vector:
        """Return the unit direction from the light to a point."""
        pass

    @abstractmethod
    def distance_to(self, point: Point) -> float:
        """Return the distance between the light and a point."""
        pass

    def shadow_rays(self, point: Point, normal: Vector) -> list[Ray]:
        """Rays from a shaded point back towards the light."""
        return [ray for ray, _ in self.shadow_samples(point, normal)]

    def shadow_samples(self, point: Point, normal: Vector) -> list[tuple[Ray, float]]:
        """Shadow rays paired with the distance each one may travel.

        The default is a single ray along the reversed light direction, with
        its origin nudged off the surface along the normal, bounded by the
        distance to the light.
        """
        return [(Ray.offset(point, -self.direction_to(point), normal), self.distance_to(point))]


class DirectionalLight(LightSource):
    """A directional light (like the sun).

    Directional lights have parallel rays, no falloff and lie infinitely far
    away.
    """

    def __init__(self, intensity, direction: Vec3):
        """Create a directional light.

        Args:
            intensity: Color of the light
            direction: Direction the light travels in
        """
        super().__init__(intensity)
        self.direction = Vector.of(direction).normalize()

    def intensity_at(self, point: Point) -> Color:
        return self.intensity

    def direction_to(self, point: Point) -> Vector:
        return self.direction

    def distance_to(self, point: Point) -> float:
        return float('inf')

    def __repr__(self) -> str:
        return f"DirectionalLight(intensity={self.intensity}, direction={self.direction})"


class PointLight(LightSource):
    """A point light source.

    Intensity falls off as 1 / (k_c + k_l*d + k_q*d²). With a positive
    ``radius`` and more than one sample the light behaves as a small disc
    for shadow purposes.
    """

    def __init__(
        self,
        intensity,
        position: Point,
        k_c: float = 1.0,
        k_l: float = 0.0,
        k_q: float = 0.0,
        radius: float = 0.0,
        samples: int = 1,
        seed: int = 0
    ):
        """Create a point light.

        Args:
            intensity: Color of the light at zero distance
            position: Position of the light
            k_c: Constant attenuation
            k_l: Linear attenuation
            k_q: Quadratic attenuation
            radius: Radius of the emulated area light (0 = hard shadows)
            samples: Number of shadow rays when emulating an area light
            seed: Seed for the shadow-ray jitter
        """
        super().__init__(intensity)
        if radius < 0:
            raise LightError(f"Area light radius must be non-negative, got {radius}")
        if samples < 1:
            raise LightError(f"Shadow sample count must be at least 1, got {samples}")
        self.position = position
        self.k_c = float(k_c)
        self.k_l = float(k_l)
        self.k_q = float(k_q)
        self.radius = float(radius)
        self.samples = int(samples)
        self.seed = int(seed)

    @property
    def is_area(self) -> bool:
        return self.radius > 0 and self.samples > 1

    def intensity_at(self, point: Point) -> Color:
        d_squared = point.distance_squared(self.position)
        d = math.sqrt(d_squared)
        return self.intensity * (1.0 / (self.k_c + self.k_l * d + self.k_q * d_squared))

    def direction_to(self, point: Point) -> Vector:
        return point.subtract(self.position).normalize()

    def distance_to(self, point: Point) -> float:
        return self.position.distance(point)

    def shadow_samples(self, point: Point, normal: Vector) -> list[tuple[Ray, float]]:
        """Single shadow ray, or jittered rays over a disc facing the point.

        The jitter depends only on the seed and the shaded point, so a point
        gets the same rays whichever thread shades it and in whatever order.
        """
        if not self.is_area:
            return super().shadow_samples(point, normal)

        to_light = -self.direction_to(point)

        # Orthonormal basis for the disc, perpendicular to the light direction
        helper = AXIS_Y if abs(to_light.y) < 0.999 else AXIS_X
        tangent = helper.cross(to_light).normalize()
        bitangent = to_light.cross(tangent)

        rng = random.Random(hash((self.seed, point.x, point.y, point.z)))
        samples = []
        for _ in range(self.samples):
            dx, dy = self._random_in_unit_disk(rng)
            jittered = self.position + tangent * (dx * self.radius) + bitangent * (dy * self.radius)
            direction = jittered - point
            if direction.is_zero():
                direction = to_light
            samples.append((Ray.offset(point, direction, normal), jittered.distance(point)))
        return samples

    @staticmethod
    def _random_in_unit_disk(rng: random.Random) -> tuple[float, float]:
        while True:
            x = rng.uniform(-1.0, 1.0)
            y = rng.uniform(-1.0, 1.0)
            if x * x + y * y < 1.0:
                return x, y

    def __repr__(self) -> str:
        return (f"PointLight(intensity={self.intensity}, position={self.position}, "
                f"k_c={self.k_c}, k_l={self.k_l}, k_q={self.k_q})")


class SpotLight(PointLight):
    """A point light that shines mostly along one direction.

    The point-light intensity is further scaled by max(0, dir·l)^narrow_beam,
    where l is the direction from the light to the lit point.
    """

    def __init__(self, intensity, position: Point, direction: Vec3, narrow_beam: float = 1.0, **kwargs):
        """Create a spot light.

        Args:
            intensity: Color of the light
            position: Position of the light
            direction: Central beam direction
            narrow_beam: Beam focus exponent (1 = plain cosine falloff)
            **kwargs: Attenuation and area-light options of PointLight
        """
        super().__init__(intensity, position, **kwargs)
        if narrow_beam <= 0:
            raise LightError("narrowBeam must be positive")
        self.direction = Vector.of(direction).normalize()
        self.narrow_beam = float(narrow_beam)

    def intensity_at(self, point: Point) -> Color:
        dir_dot_l = align_zero(self.direction.dot(self.direction_to(point)))
        if dir_dot_l <= 0:
            return BLACK
        return super().intensity_at(point) * (dir_dot_l ** self.narrow_beam)

    def __repr__(self) -> str:
        return (f"SpotLight(intensity={self.intensity}, position={self.position}, "
                f"direction={self.direction}, narrow_beam={self.narrow_beam})")
