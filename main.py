#!/usr/bin/env python3
"""
PhongTrace - A Whitted-style Python Ray Tracer

Main entry point for rendering scenes.
"""

import argparse
import logging
import sys
import time
from pathlib import Path

from phongtrace.vec3 import Color, Point, Vector, ORIGIN
from phongtrace.camera import Camera
from phongtrace.shapes import Sphere, Plane, Triangle
from phongtrace.materials import Material
from phongtrace.lights import AmbientLight, PointLight, SpotLight
from phongtrace.scene import Scene
from phongtrace.tracer import SimpleRayTracer
from phongtrace.renderer import Renderer, RenderSettings
from phongtrace.scene_parser import SceneParser, SceneParseError

logger = logging.getLogger("phongtrace")

BLUE = Color(0, 0, 255)
WHITE = Color(255, 255, 255)


def create_spheres_scene() -> Scene:
    """Two triangles lit by a spot light behind a partially transparent sphere."""
    scene = Scene("spheres", ambient_light=AmbientLight(Color(38, 38, 38)))
    wall = Material(k_d=0.5, k_s=0.5, shininess=60)

    scene.add_geometries(
        Triangle(Point(-150, -150, -115), Point(150, -150, -135), Point(75, 75, -150), wall),
        Triangle(Point(-150, -150, -115), Point(-70, 70, -140), Point(75, 75, -150), wall),
        Sphere(Point(60, 50, -50), 30, Material(k_d=0.2, k_s=0.2, shininess=30, k_t=0.6), BLUE),
    )
    scene.add_lights(
        SpotLight(Color(700, 400, 400), Point(60, 50, 0), Vector(0, 0, -1), k_l=4e-5, k_q=2e-7)
    )
    return scene


def create_mirrors_scene() -> Scene:
    """Nested spheres reflected in a pair of mirror triangles."""
    scene = Scene("mirrors", ambient_light=AmbientLight(Color(26, 26, 26)))

    scene.add_geometries(
        Sphere(Point(-950, -900, -1000), 400,
               Material(k_d=0.25, k_s=0.25, shininess=20, k_t=Color(0.5, 0, 0)), Color(0, 50, 100)),
        Sphere(Point(-950, -900, -1000), 200,
               Material(k_d=0.25, k_s=0.25, shininess=20), Color(100, 50, 20)),
        Triangle(Point(1500, -1500, -1500), Point(-1500, 1500, -1500), Point(670, 670, 3000),
                 Material.mirror(1.0), Color(20, 20, 20)),
        Triangle(Point(1500, -1500, -1500), Point(-1500, 1500, -1500), Point(-1500, -1500, -2000),
                 Material.mirror(Color(0.5, 0, 0.4)), Color(20, 20, 20)),
    )
    scene.add_lights(
        SpotLight(Color(1020, 400, 400), Point(-750, -750, -150), Vector(-1, -1, -4), k_l=0.00001, k_q=0.000005)
    )
    return scene


def create_shapes_scene() -> Scene:
    """A mirror ball, a glass sphere and a triangle over a floor, soft shadows."""
    scene = Scene("shapes", ambient_light=AmbientLight(Color(20, 20, 20)))

    scene.add_geometries(
        Sphere(Point(0, 0, -100), 30, Material(k_d=0.3, k_s=0.7, k_r=0.6), Color(10, 10, 30)),
        Sphere(Point(-60, 20, -80), 20, Material(k_d=0.2, k_s=0.2, k_t=0.7), Color(20, 10, 10)),
        Triangle(Point(-80, -40, -120), Point(80, -40, -120), Point(0, 60, -120),
                 Material.matte(0.8, 0.2), Color(30, 30, 10)),
        Plane(Point(0, -40, -100), Vector(0, 1, 0), Material.matte(0.6, 0.4), Color(20, 20, 20)),
    )
    scene.add_lights(
        PointLight(Color(400, 400, 400), Point(50, 50, 0), k_l=0.001, k_q=0.0001, radius=5, samples=16)
    )
    return scene


# name -> (builder, camera location, target, view plane size, view plane distance)
DEMOS = {
    'spheres': (create_spheres_scene, Point(0, 0, 1000), ORIGIN, (200, 200), 1000),
    'mirrors': (create_mirrors_scene, Point(0, 0, 10000), ORIGIN, (2500, 2500), 10000),
    'shapes': (create_shapes_scene, Point(0, 0, 100), Point(0, 0, -100), (150, 150), 100),
}


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='PhongTrace - A Whitted-style Python Ray Tracer',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  python main.py --demo spheres --output output/spheres.png
  python main.py --demo mirrors --width 800 --height 800 --threads 0
  python main.py --scene scenes/room.yaml --grid 50 --output room.png
        '''
    )

    source = parser.add_mutually_exclusive_group()
    source.add_argument('--scene', type=str, help='Scene file to render (YAML or JSON)')
    source.add_argument('--demo', type=str, default='spheres', choices=sorted(DEMOS),
                        help='Built-in scene to render (default: spheres)')
    parser.add_argument('--output', type=str, default='output/render.png', help='Output filename')
    parser.add_argument('--width', type=int, default=None, help='Image width (default: 500, or from scene file)')
    parser.add_argument('--height', type=int, default=None, help='Image height (default: 500, or from scene file)')
    parser.add_argument('--threads', type=int, default=None, help='Number of threads (0=auto)')
    parser.add_argument('--grid', type=int, default=0, metavar='N', help='Overlay a grid every N pixels')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    if args.scene:
        try:
            scene, camera, settings = SceneParser().parse_file(args.scene)
        except SceneParseError as err:
            logger.error("%s", err)
            return 1
    else:
        scene = None
        settings = RenderSettings(width=500, height=500)

    try:
        settings = RenderSettings(
            width=args.width or settings.width,
            height=args.height or settings.height,
            tile_size=settings.tile_size,
            num_threads=settings.num_threads if args.threads is None else args.threads,
            gamma=settings.gamma,
            max_level=settings.max_level,
            min_k=settings.min_k
        )
    except ValueError as err:
        logger.error("Invalid render settings: %s", err)
        return 1

    # The renderer samples the view plane at the settings' resolution
    if scene is None:
        builder, location, target, vp_size, vp_distance = DEMOS[args.demo]
        scene = builder()
        camera = Camera.looking_at(location, target, vp_size, vp_distance,
                                   resolution=(settings.width, settings.height))

    logger.info("Scene '%s': %d geometries, %d lights", scene.name, len(scene.geometries), len(scene.lights))

    tracer = SimpleRayTracer(scene, settings.max_level, settings.min_k)
    renderer = Renderer(settings)

    # Progress tracking
    last_progress = [0]

    def progress_callback(progress: float):
        pct = int(progress * 100)
        if pct > last_progress[0]:
            last_progress[0] = pct
            bar_len = 40
            filled = int(bar_len * progress)
            bar = '█' * filled + '░' * (bar_len - filled)
            print(f'\rRendering: [{bar}] {pct}%', end='', flush=True)

    if not args.verbose:
        renderer.set_progress_callback(progress_callback)

    start_time = time.time()
    image = renderer.render(camera, tracer)
    elapsed = time.time() - start_time
    if not args.verbose:
        print()
    logger.info("Rays per second: %.0f", (settings.width * settings.height) / max(elapsed, 1e-9))

    if args.grid:
        renderer.print_grid(image, args.grid, WHITE)

    # Ensure output directory exists
    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    renderer.save_image(image, args.output)
    return 0


if __name__ == '__main__':
    sys.exit(main())
