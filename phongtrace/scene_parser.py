"""
Scene description language parser.

Supports a YAML-based scene description format with:
- Scene settings (background, ambient light)
- Camera configuration
- Render settings
- Materials library
- Objects (geometry with materials)
- Lights

Colors are on a 0-255 scale. Example scene file:
```yaml
scene:
  name: two-spheres
  background: [0, 0, 0]
  ambient:
    intensity: [255, 255, 255]
    k: 0.1

camera:
  location: [0, 0, 1000]
  target: [0, 0, 0]
  vp_size: [150, 150]
  vp_distance: 1000

render:
  width: 500
  height: 500

materials:
  shiny_blue:
    k_d: 0.4
    k_s: 0.3
    shininess: 100
    k_t: 0.3

objects:
  - type: sphere
    center: [0, 0, -50]
    radius: 50
    material: shiny_blue
    emission: [0, 0, 255]

lights:
  - type: spot
    color: [1000, 600, 0]
    position: [-100, -100, 500]
    direction: [-1, -1, -2]
    k_l: 0.0004
    k_q: 0.0000006
```
"""

from __future__ import annotations
from pathlib import Path
from typing import Dict, Any, Optional, Tuple
import json
import logging

import yaml

from .vec3 import Vec3, Point, Color
from .ray import Ray
from .camera import Camera
from .shapes import Geometry, Sphere, Plane, Polygon, Triangle, Tube, Cylinder
from .materials import Material, DEFAULT_MATERIAL
from .lights import AmbientLight, LightSource, PointLight, DirectionalLight, SpotLight
from .scene import Scene
from .renderer import RenderSettings

logger = logging.getLogger(__name__)

KNOWN_SECTIONS = ('scene', 'camera', 'render', 'materials', 'objects', 'lights')


class SceneParseError(ValueError):
    """Error during scene parsing."""
    pass


class SceneParser:
    """Parser for scene description files."""

    def __init__(self):
        self.materials: Dict[str, Material] = {}
        self.scene: Scene = Scene()
        self.camera: Optional[Camera] = None
        self.settings: Optional[RenderSettings] = None

    def parse_file(self, filepath: str) -> Tuple[Scene, Camera, RenderSettings]:
        """Parse a scene file.

        Args:
            filepath: Path to the scene file (YAML or JSON)

        Returns:
            Tuple of (scene, camera, settings)
        """
        path = Path(filepath)
        if not path.exists():
            raise SceneParseError(f"Scene file not found: {filepath}")

        content = path.read_text()

        try:
            if path.suffix == '.json':
                data = json.loads(content)
            else:
                # JSON is valid YAML, so anything else goes through the YAML loader
                data = yaml.safe_load(content)
        except (yaml.YAMLError, json.JSONDecodeError) as err:
            raise SceneParseError(f"Cannot read scene file {filepath}: {err}") from err

        if not isinstance(data, dict):
            raise SceneParseError(f"Scene file {filepath} must contain a mapping at the top level")

        if self.scene.name == "scene":
            self.scene.name = path.stem
        return self.parse_dict(data)

    def parse_dict(self, data: Dict[str, Any]) -> Tuple[Scene, Camera, RenderSettings]:
        """Parse a scene from a dictionary.

        Args:
            data: Scene description dictionary

        Returns:
            Tuple of (scene, camera, settings)
        """
        for key in data:
            if key not in KNOWN_SECTIONS:
                logger.debug("Ignoring unknown section: %s", key)

        if 'scene' in data:
            self._parse_scene_section(self._require_mapping(data['scene'], "scene"))

        # Parse materials first (objects reference them)
        if 'materials' in data:
            self._parse_materials(self._require_mapping(data['materials'], "materials"))

        if 'objects' in data:
            self._parse_objects(self._require_list(data['objects'], "objects"))

        if 'lights' in data:
            self._parse_lights(self._require_list(data['lights'], "lights"))

        # Render settings come before the camera, which takes its resolution
        if 'render' in data:
            self._parse_settings(self._require_mapping(data['render'], "render"))
        else:
            self.settings = RenderSettings()

        self._parse_camera(self._require_mapping(data.get('camera', {}), "camera"))

        logger.info("Parsed scene '%s': %d geometries, %d lights, %d materials",
                    self.scene.name, len(self.scene.geometries),
                    len(self.scene.lights), len(self.materials))
        return self.scene, self.camera, self.settings

    @staticmethod
    def _parse_number(data: Any, what: str) -> float:
        try:
            return float(data)
        except (TypeError, ValueError) as err:
            raise SceneParseError(f"{what} must be a number, got: {data!r}") from err

    @staticmethod
    def _require_mapping(data: Any, where: str) -> Dict[str, Any]:
        if not isinstance(data, dict):
            raise SceneParseError(f"{where} must be a mapping, got: {data!r}")
        return data

    @staticmethod
    def _require_list(data: Any, where: str) -> list:
        if not isinstance(data, list):
            raise SceneParseError(f"{where} must be a list, got: {data!r}")
        return data

    def _parse_triple(self, values, what: str) -> Tuple[float, float, float]:
        x, y, z = (self._parse_number(v, f"{what} component") for v in values)
        return x, y, z

    def _parse_vec3(self, data: Any) -> Vec3:
        """Parse a Vec3 from various formats."""
        if isinstance(data, (list, tuple)):
            if len(data) != 3:
                raise SceneParseError(f"Vec3 must have 3 components, got {len(data)}")
            return Vec3(*self._parse_triple(data, "Vec3"))
        elif isinstance(data, dict):
            return Vec3(*self._parse_triple(
                (data.get('x', 0), data.get('y', 0), data.get('z', 0)), "Vec3"))
        else:
            raise SceneParseError(f"Cannot parse Vec3 from: {data}")

    def _parse_color(self, data: Any) -> Color:
        """Parse a Color from various formats."""
        if isinstance(data, (int, float)):
            return Color(float(data), float(data), float(data))
        elif isinstance(data, (list, tuple)):
            if len(data) != 3:
                raise SceneParseError(f"Color must have 3 components, got {len(data)}")
            return Color(*self._parse_triple(data, "Color"))
        elif isinstance(data, dict):
            return Color(*self._parse_triple(
                (data.get('r', 0), data.get('g', 0), data.get('b', 0)), "Color"))
        elif isinstance(data, str):
            # Hex colors map straight onto the 0-255 scale
            if data.startswith('#') and len(data) == 7:
                try:
                    return Color(int(data[1:3], 16), int(data[3:5], 16), int(data[5:7], 16))
                except ValueError as err:
                    raise SceneParseError(f"Cannot parse color from string: {data}") from err
            raise SceneParseError(f"Cannot parse color from string: {data}")
        else:
            raise SceneParseError(f"Cannot parse Color from: {data}")

    def _parse_coefficient(self, data: Any):
        """A material coefficient is a scalar or a per-channel triple."""
        if isinstance(data, (int, float)):
            return float(data)
        return self._parse_color(data)

    def _parse_ray(self, data: Any) -> Ray:
        if not isinstance(data, dict) or 'origin' not in data or 'direction' not in data:
            raise SceneParseError(f"Axis must have 'origin' and 'direction', got: {data}")
        return Ray(self._parse_vec3(data['origin']), self._parse_vec3(data['direction']))

    def _parse_scene_section(self, scene_data: Dict[str, Any]) -> None:
        """Parse scene section (name, background, ambient light)."""
        self.scene.name = str(scene_data.get('name', self.scene.name))
        if 'background' in scene_data:
            self.scene.background = self._parse_color(scene_data['background'])

        if 'ambient' in scene_data:
            ambient = scene_data['ambient']
            if isinstance(ambient, dict) and 'intensity' in ambient:
                # Ambient given as an intensity scaled by an attenuation factor
                intensity = self._parse_color(ambient['intensity'])
                k = self._parse_coefficient(ambient.get('k', 1.0))
                self.scene.ambient_light = AmbientLight(intensity * k)
            else:
                self.scene.ambient_light = AmbientLight(self._parse_color(ambient))

    def _parse_materials(self, materials_data: Dict[str, Any]) -> None:
        """Parse materials section."""
        for name, mat_data in materials_data.items():
            self.materials[name] = self._build_material(
                self._require_mapping(mat_data, f"materials.{name}"))

    def _build_material(self, mat_data: Dict[str, Any]) -> Material:
        mat_type = str(mat_data.get('type', 'phong')).lower()

        try:
            if mat_type == 'phong':
                return Material(
                    k_a=self._parse_coefficient(mat_data.get('k_a', 1.0)),
                    k_d=self._parse_coefficient(mat_data.get('k_d', 0.0)),
                    k_s=self._parse_coefficient(mat_data.get('k_s', 0.0)),
                    k_t=self._parse_coefficient(mat_data.get('k_t', 0.0)),
                    k_r=self._parse_coefficient(mat_data.get('k_r', 0.0)),
                    shininess=int(mat_data.get('shininess', 0))
                )

            elif mat_type == 'matte':
                return Material.matte(
                    self._parse_coefficient(mat_data.get('k_d', 0.5)),
                    self._parse_coefficient(mat_data.get('k_s', 0.0)),
                    int(mat_data.get('shininess', 0))
                )

            elif mat_type == 'mirror':
                return Material.mirror(self._parse_coefficient(mat_data.get('k_r', 1.0)))

            elif mat_type == 'glass':
                return Material.glass(
                    self._parse_coefficient(mat_data.get('k_t', 0.9)),
                    self._parse_coefficient(mat_data.get('k_s', 0.2)),
                    int(mat_data.get('shininess', 50))
                )
        except SceneParseError:
            raise
        except (TypeError, ValueError) as err:
            raise SceneParseError(f"Invalid {mat_type} material: {err}") from err

        raise SceneParseError(f"Unknown material type: {mat_type}")

    def _get_material(self, mat_ref: Any) -> Material:
        """Get a material by name or inline definition."""
        if mat_ref is None:
            return DEFAULT_MATERIAL
        if isinstance(mat_ref, str):
            if mat_ref not in self.materials:
                raise SceneParseError(f"Unknown material: {mat_ref}")
            return self.materials[mat_ref]
        elif isinstance(mat_ref, dict):
            return self._build_material(mat_ref)
        else:
            raise SceneParseError(f"Invalid material reference: {mat_ref}")

    def _parse_objects(self, objects_data: list) -> None:
        """Parse objects section."""
        for index, obj_data in enumerate(objects_data):
            try:
                obj_data = self._require_mapping(obj_data, f"objects[{index}]")
                self.scene.add_geometries(self._build_object(obj_data))
            except SceneParseError:
                raise
            except KeyError as err:
                raise SceneParseError(f"objects[{index}]: missing key {err}") from err
            except (TypeError, ValueError) as err:
                raise SceneParseError(f"objects[{index}]: {err}") from err

    def _build_object(self, obj_data: Dict[str, Any]) -> Geometry:
        obj_type = str(obj_data.get('type', 'sphere')).lower()
        material = self._get_material(obj_data.get('material'))
        emission = self._parse_color(obj_data['emission']) if 'emission' in obj_data else None

        if obj_type == 'sphere':
            center = self._parse_vec3(obj_data.get('center', [0, 0, 0]))
            radius = float(obj_data.get('radius', 1.0))
            return Sphere(center, radius, material, emission)

        elif obj_type == 'plane':
            if 'points' in obj_data:
                p1, p2, p3 = self._parse_points(obj_data['points'], exact=3)
                return Plane.from_points(p1, p2, p3, material, emission)
            point = self._parse_vec3(obj_data.get('point', [0, 0, 0]))
            normal = self._parse_vec3(obj_data.get('normal', [0, 1, 0]))
            return Plane(point, normal, material, emission)

        elif obj_type == 'triangle':
            p1, p2, p3 = self._parse_points(obj_data['vertices'], exact=3)
            return Triangle(p1, p2, p3, material, emission)

        elif obj_type == 'polygon':
            vertices = self._parse_points(obj_data['vertices'])
            return Polygon(*vertices, material=material, emission=emission)

        elif obj_type == 'tube':
            radius = float(obj_data.get('radius', 1.0))
            return Tube(radius, self._parse_ray(obj_data['axis']), material, emission)

        elif obj_type == 'cylinder':
            radius = float(obj_data.get('radius', 1.0))
            height = float(obj_data.get('height', 1.0))
            return Cylinder(radius, self._parse_ray(obj_data['axis']), height, material, emission)

        raise SceneParseError(f"Unknown object type: {obj_type}")

    def _parse_points(self, data: Any, exact: Optional[int] = None) -> list[Point]:
        if not isinstance(data, (list, tuple)):
            raise SceneParseError(f"Expected a list of points, got: {data}")
        if exact is not None and len(data) != exact:
            raise SceneParseError(f"Expected {exact} points, got {len(data)}")
        return [self._parse_vec3(p) for p in data]

    def _parse_lights(self, lights_data: list) -> None:
        """Parse lights section."""
        for index, light_data in enumerate(lights_data):
            try:
                light_data = self._require_mapping(light_data, f"lights[{index}]")
                self.scene.add_lights(self._build_light(light_data))
            except SceneParseError:
                raise
            except KeyError as err:
                raise SceneParseError(f"lights[{index}]: missing key {err}") from err
            except (TypeError, ValueError) as err:
                raise SceneParseError(f"lights[{index}]: {err}") from err

    def _build_light(self, light_data: Dict[str, Any]) -> LightSource:
        light_type = str(light_data.get('type', 'point')).lower()
        color = self._parse_color(light_data.get('color', [255, 255, 255]))

        if light_type == 'directional':
            direction = self._parse_vec3(light_data.get('direction', [0, -1, 0]))
            return DirectionalLight(color, direction)

        if light_type not in ('point', 'spot'):
            raise SceneParseError(f"Unknown light type: {light_type}")

        position = self._parse_vec3(light_data.get('position', [0, 5, 0]))
        options = dict(
            k_c=float(light_data.get('k_c', 1.0)),
            k_l=float(light_data.get('k_l', 0.0)),
            k_q=float(light_data.get('k_q', 0.0)),
            radius=float(light_data.get('radius', 0.0)),
            samples=int(light_data.get('samples', 1)),
        )
        if 'seed' in light_data:
            options['seed'] = int(light_data['seed'])

        if light_type == 'point':
            return PointLight(color, position, **options)

        direction = self._parse_vec3(light_data['direction'])
        narrow_beam = float(light_data.get('narrow_beam', 1.0))
        return SpotLight(color, position, direction, narrow_beam, **options)

    def _parse_camera(self, camera_data: Dict[str, Any]) -> None:
        """Parse camera section.

        The camera is aimed either with `target` (plus an approximate `up`)
        or with explicit orthogonal `to` and `up` directions.
        """
        resolution = (self.settings.width, self.settings.height)

        try:
            location = self._parse_vec3(camera_data.get('location', [0, 0, 5]))
            vp_size = camera_data.get('vp_size', [2, 2])
            if not isinstance(vp_size, (list, tuple)) or len(vp_size) != 2:
                raise SceneParseError(f"vp_size must be [width, height], got: {vp_size}")
            vp_size = (self._parse_number(vp_size[0], "vp_size width"),
                       self._parse_number(vp_size[1], "vp_size height"))
            vp_distance = self._parse_number(camera_data.get('vp_distance', 2.0), "vp_distance")
            up = self._parse_vec3(camera_data.get('up', [0, 1, 0]))

            if 'to' in camera_data:
                to = self._parse_vec3(camera_data['to'])
                self.camera = Camera.create(location, to, up, vp_size, vp_distance, resolution)
            else:
                target = self._parse_vec3(camera_data.get('target', [0, 0, 0]))
                self.camera = Camera.looking_at(location, target, vp_size, vp_distance, up, resolution)
        except (TypeError, ValueError) as err:
            raise SceneParseError(f"camera: {err}") from err

    def _parse_settings(self, settings_data: Dict[str, Any]) -> None:
        """Parse render settings section."""
        try:
            self.settings = RenderSettings(
                width=int(settings_data.get('width', 800)),
                height=int(settings_data.get('height', 600)),
                tile_size=int(settings_data.get('tile_size', 32)),
                num_threads=int(settings_data.get('threads', 1)),
                gamma=float(settings_data.get('gamma', 1.0)),
                max_level=int(settings_data.get('max_level', 10)),
                min_k=float(settings_data.get('min_k', 0.001))
            )
        except (TypeError, ValueError) as err:
            raise SceneParseError(f"render: {err}") from err


def load_scene(filepath: str) -> Tuple[Scene, Camera, RenderSettings]:
    """Convenience function to load a scene file.

    Args:
        filepath: Path to the scene file

    Returns:
        Tuple of (scene, camera, settings)
    """
    parser = SceneParser()
    return parser.parse_file(filepath)


def parse_scene(data: Dict[str, Any]) -> Tuple[Scene, Camera, RenderSettings]:
    """Convenience function to parse a scene from a dictionary.

    Args:
        data: Scene description dictionary

    Returns:
        Tuple of (scene, camera, settings)
    """
    parser = SceneParser()
    return parser.parse_dict(data)
