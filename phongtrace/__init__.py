"""
PhongTrace - A Whitted-style Python Ray Tracer

An intersection-and-shading core with support for:
- Spheres, planes, convex polygons, triangles, tubes and finite cylinders
- Ambient, directional, point and spot lights
- Phong shading with shadows, mirror reflection and transparency
- Soft shadows from point and spot lights emulating small area lights
- Multi-threaded tile rendering and YAML/JSON scene files
"""

__version__ = "0.1.0"
__author__ = "PhongTrace Team"

from .vec3 import (
    Vec3, Vector, Point, Color, ZeroVectorError,
    EPSILON, is_zero, align_zero, as_color, lower_than,
    ORIGIN, AXIS_X, AXIS_Y, AXIS_Z, BLACK, ONE
)
from .ray import Ray, DELTA
from .materials import Material, DEFAULT_MATERIAL
from .shapes import (
    Intersection, Intersectable, Geometry, Geometries, GeometryError,
    Plane, Sphere, Polygon, Triangle, Tube, Cylinder
)
from .camera import Camera, CameraConfigError
from .lights import AmbientLight, LightSource, LightError, DirectionalLight, PointLight, SpotLight
from .scene import Scene
from .tracer import RayTracerBase, SimpleRayTracer, ShadingContext, MAX_CALC_COLOR_LEVEL, MIN_CALC_COLOR_K
from .renderer import Renderer, RenderSettings
from .scene_parser import SceneParser, SceneParseError, load_scene, parse_scene
