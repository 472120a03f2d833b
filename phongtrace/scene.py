"""
Scene container: geometry, lights, ambient light and background color.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .vec3 import Color, BLACK
from .shapes import Geometries, Intersectable
from .lights import AmbientLight, LightSource


@dataclass
class Scene:
    """Everything a tracer needs to shade a ray."""
    name: str = "scene"
    background: Color = field(default_factory=lambda: BLACK)
    ambient_light: AmbientLight = AmbientLight.NONE
    geometries: Geometries = field(default_factory=Geometries)
    lights: list[LightSource] = field(default_factory=list)

    def add_geometries(self, *items: Intersectable) -> Scene:
        self.geometries.add(*items)
        return self

    def add_lights(self, *lights: LightSource) -> Scene:
        self.lights.extend(lights)
        return self
