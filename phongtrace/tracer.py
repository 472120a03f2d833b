"""
Recursive Whitted-style shading engine.

Color at a hit point is:

    I = I_A * k_A + I_E
        + sum over lights (k_D |l·n| + k_S max(0, -v·r)^shininess) * I_L * ktr
        + k_R * I(reflected ray) + k_T * I(transmitted ray)

where ktr is the product of k_T of everything between the point and the
light. Recursion stops after a fixed number of levels, or earlier once
the accumulated attenuation falls below a per-channel threshold.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from .vec3 import Color, Vector, Point, BLACK, ONE, align_zero, lower_than
from .ray import Ray
from .shapes import Intersection, Geometry
from .materials import Material
from .lights import LightSource
from .scene import Scene


# Maximum number of recursion levels for reflection and transparency
MAX_CALC_COLOR_LEVEL = 10

# Recursion stops when every channel of the accumulated attenuation is below this
MIN_CALC_COLOR_K = 0.001

INITIAL_K = ONE


@dataclass
class ShadingContext:
    """Scratch state for shading a single hit point.

    The view-dependent fields are resolved once in `prepare`; the light
    fields are overwritten by `set_light` for each light in turn. A context
    belongs to one trace call and is dropped afterwards.
    """
    intersection: Intersection
    ray_direction: Vector
    normal: Vector
    ray_dot_normal: float
    light: Optional[LightSource] = None
    light_direction: Optional[Vector] = None
    light_dot_normal: float = 0.0

    @classmethod
    def prepare(cls, intersection: Intersection, ray_direction: Vector) -> Optional[ShadingContext]:
        """Resolve normal and ray·normal for a hit.

        Returns:
            The context, or None when the ray grazes the surface (ray·normal
            is zero) and the hit cannot contribute
        """
        normal = intersection.geometry.normal_at(intersection.point)
        ray_dot_normal = align_zero(ray_direction.dot(normal))
        if ray_dot_normal == 0:
            return None
        return cls(intersection, ray_direction, normal, ray_dot_normal)

    @property
    def point(self) -> Point:
        return self.intersection.point

    @property
    def geometry(self) -> Geometry:
        return self.intersection.geometry

    @property
    def material(self) -> Material:
        return self.intersection.material

    def set_light(self, light: LightSource) -> bool:
        """Load a light into the context.

        Returns:
            False when the light and the viewer are on opposite sides of the
            surface, True otherwise
        """
        self.light = light
        self.light_direction = light.direction_to(self.point)
        self.light_dot_normal = align_zero(self.light_direction.dot(self.normal))
        return self.light_dot_normal * self.ray_dot_normal > 0


class RayTracerBase(ABC):
    """Abstract base class for ray tracers over a scene."""

    def __init__(self, scene: Scene):
        self.scene = scene

    @abstractmethod
    def trace_ray(self, ray: Ray) -> Color:
        """Return the color seen along a ray."""
        pass


class SimpleRayTracer(RayTracerBase):
    """Phong local shading with shadows, mirror reflection and transparency."""

    def __init__(self, scene: Scene, max_level: int = MAX_CALC_COLOR_LEVEL, min_k: float = MIN_CALC_COLOR_K):
        """Create a tracer.

        Args:
            scene: The scene to render
            max_level: Recursion depth (1 = local effects only)
            min_k: Attenuation cutoff per color channel
        """
        super().__init__(scene)
        if max_level < 1:
            raise ValueError(f"max_level must be at least 1, got {max_level}")
        if min_k <= 0:
            raise ValueError(f"min_k must be positive, got {min_k}")
        self.max_level = max_level
        self.min_k = min_k

    def trace_ray(self, ray: Ray) -> Color:
        closest = self._find_closest_intersection(ray)
        if closest is None:
            return self.scene.background
        return self._calc_color(closest, ray)

    def _find_closest_intersection(self, ray: Ray) -> Optional[Intersection]:
        return ray.closest_intersection(self.scene.geometries.find_intersections(ray))

    def _calc_color(self, intersection: Intersection, ray: Ray) -> Color:
        context = ShadingContext.prepare(intersection, ray.direction)
        if context is None:
            return BLACK
        ambient = self.scene.ambient_light.intensity * context.material.k_a
        return ambient + self._calc_recursive_color(context, self.max_level, INITIAL_K)

    def _calc_recursive_color(self, context: ShadingContext, level: int, k: Color) -> Color:
        color = self._calc_local_effects(context)
        if level == 1:
            return color
        return color + self._calc_global_effects(context, level, k)

    def _calc_global_effects(self, context: ShadingContext, level: int, k: Color) -> Color:
        material = context.material
        reflection = self._calc_global_effect(self._construct_reflected_ray(context), level, k, material.k_r)
        transparency = self._calc_global_effect(self._construct_refracted_ray(context), level, k, material.k_t)
        return reflection + transparency

    def _calc_global_effect(self, ray: Ray, level: int, k: Color, kx: Color) -> Color:
        """Color carried back by one secondary ray, scaled by kx (k_R or k_T)."""
        kkx = k * kx
        if lower_than(kkx, self.min_k):
            return BLACK

        intersection = self._find_closest_intersection(ray)
        if intersection is None:
            return self.scene.background * kx

        context = ShadingContext.prepare(intersection, ray.direction)
        if context is None:
            return BLACK

        return self._calc_recursive_color(context, level - 1, kkx) * kx

    @staticmethod
    def _construct_reflected_ray(context: ShadingContext) -> Ray:
        # r = v - 2(v·n)n
        v = context.ray_direction
        n = context.normal
        r = v - n * (2.0 * context.ray_dot_normal)
        return Ray.offset(context.point, r, n)

    @staticmethod
    def _construct_refracted_ray(context: ShadingContext) -> Ray:
        # Straight-through transmission, no bending
        return Ray.offset(context.point, context.ray_direction, context.normal)

    def _calc_local_effects(self, context: ShadingContext) -> Color:
        color = context.geometry.emission

        for light in self.scene.lights:
            if not context.set_light(light):
                continue

            ktr = self._transparency(context)
            if lower_than(ktr, self.min_k):
                continue

            intensity = light.intensity_at(context.point) * ktr
            color = color + intensity * (self._calc_diffusive(context) + self._calc_specular(context))

        return color

    @staticmethod
    def _calc_diffusive(context: ShadingContext) -> Color:
        return context.material.k_d * abs(context.light_dot_normal)

    @staticmethod
    def _calc_specular(context: ShadingContext) -> Color:
        # Mirror of the light direction about the normal
        r = context.light_direction - context.normal * (2.0 * context.light_dot_normal)
        minus_vr = align_zero(-context.ray_direction.dot(r))
        material = context.material
        return material.k_s * (max(0.0, minus_vr) ** material.shininess)

    def _transparency(self, context: ShadingContext) -> Color:
        """Fraction of the light reaching the point, averaged over shadow rays."""
        samples = context.light.shadow_samples(context.point, context.normal)

        total = BLACK
        for ray, max_distance in samples:
            total = total + self._ray_transparency(ray, max_distance)
        return total if len(samples) == 1 else total / len(samples)

    def _ray_transparency(self, ray: Ray, max_distance: float) -> Color:
        blockers = self.scene.geometries.find_intersections(ray, max_distance)
        if blockers is None:
            return ONE

        ktr = ONE
        for blocker in blockers:
            ktr = ktr * blocker.material.k_t
            if lower_than(ktr, self.min_k):
                return BLACK

        return ktr
