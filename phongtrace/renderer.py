"""
Renderer module - drives the tracer over the image plane.

Implements:
- Tile-based rendering, optionally on a thread pool
- Grid overlay for debugging camera setups
- 8-bit image output via Pillow

Colors are on a 0-255 scale throughout, the way light intensities and
backgrounds are written in scene files.
"""

from __future__ import annotations
import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional, Callable, Tuple
import numpy as np

from .vec3 import Color, as_color
from .camera import Camera
from .tracer import RayTracerBase, MAX_CALC_COLOR_LEVEL, MIN_CALC_COLOR_K

logger = logging.getLogger(__name__)

# Full-scale channel value
COLOR_SCALE = 255.0


@dataclass
class RenderSettings:
    """Configuration for the renderer."""
    width: int = 800
    height: int = 600
    tile_size: int = 32
    num_threads: int = 1  # 0 = auto-detect
    gamma: float = 1.0
    max_level: int = MAX_CALC_COLOR_LEVEL
    min_k: float = MIN_CALC_COLOR_K

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image size must be positive, got {self.width}x{self.height}")
        if self.tile_size <= 0:
            raise ValueError(f"tile_size must be positive, got {self.tile_size}")
        if self.num_threads < 0:
            raise ValueError(f"num_threads can't be negative, got {self.num_threads}")
        if self.gamma <= 0:
            raise ValueError(f"gamma must be positive, got {self.gamma}")
        if self.max_level < 1:
            raise ValueError(f"max_level must be at least 1, got {self.max_level}")
        if self.min_k <= 0:
            raise ValueError(f"min_k must be positive, got {self.min_k}")
        if self.num_threads == 0:
            self.num_threads = os.cpu_count() or 4


class Renderer:
    """Tile-based renderer with optional multi-threading."""

    def __init__(self, settings: RenderSettings = None):
        """Create a renderer with the given settings.

        Args:
            settings: Render configuration (uses defaults if None)
        """
        self.settings = settings if settings else RenderSettings()
        self._progress_callback: Optional[Callable[[float], None]] = None

    def set_progress_callback(self, callback: Callable[[float], None]) -> None:
        """Set a callback function for progress updates.

        Args:
            callback: Function that takes progress as float (0.0 to 1.0)
        """
        self._progress_callback = callback

    def render(self, camera: Camera, tracer: RayTracerBase) -> np.ndarray:
        """Trace one ray per pixel and return the image as a numpy array.

        Args:
            camera: The camera generating primary rays
            tracer: The tracer coloring each ray

        Returns:
            Image as numpy array of shape (height, width, 3), unclamped
        """
        width = self.settings.width
        height = self.settings.height

        image = np.zeros((height, width, 3), dtype=np.float64)

        tiles = self._generate_tiles(width, height)
        total_tiles = len(tiles)
        completed_tiles = [0]  # Use list for mutable in closure

        logger.info("Rendering %dx%d in %d tiles on %d thread(s)",
                    width, height, total_tiles, self.settings.num_threads)
        start = time.perf_counter()

        def render_tile(tile: Tuple[int, int, int, int]) -> None:
            """Render a single tile into its own slice of the image."""
            x0, y0, x1, y1 = tile
            for i in range(y0, y1):
                for j in range(x0, x1):
                    ray = camera.construct_ray(width, height, j, i)
                    image[i, j] = tracer.trace_ray(ray).to_array()

            completed_tiles[0] += 1
            logger.debug("Tile %s done (%d/%d)", tile, completed_tiles[0], total_tiles)
            if self._progress_callback:
                self._progress_callback(completed_tiles[0] / total_tiles)

        if self.settings.num_threads > 1:
            with ThreadPoolExecutor(max_workers=self.settings.num_threads) as executor:
                # list() re-raises the first exception from a worker
                list(executor.map(render_tile, tiles))
        else:
            for tile in tiles:
                render_tile(tile)

        logger.info("Render finished in %.2fs", time.perf_counter() - start)
        return image

    def _generate_tiles(self, width: int, height: int) -> list[Tuple[int, int, int, int]]:
        """Generate tiles for parallel rendering.

        Returns:
            List of tiles as (x0, y0, x1, y1) tuples
        """
        tile_size = self.settings.tile_size
        tiles = []

        for y in range(0, height, tile_size):
            for x in range(0, width, tile_size):
                x1 = min(x + tile_size, width)
                y1 = min(y + tile_size, height)
                tiles.append((x, y, x1, y1))

        return tiles

    @staticmethod
    def print_grid(image: np.ndarray, interval: int, color: Color) -> np.ndarray:
        """Paint grid lines every `interval` pixels, in place.

        Row 0 and column 0 are always on the grid.

        Returns:
            The same image array
        """
        if interval <= 0:
            raise ValueError(f"Grid interval must be positive, got {interval}")
        rgb = as_color(color).to_array()
        image[::interval, :] = rgb
        image[:, ::interval] = rgb
        return image

    def to_ldr(self, image: np.ndarray) -> np.ndarray:
        """Convert a 0-255 float image to 8-bit with gamma correction.

        Args:
            image: Image array (float64)

        Returns:
            Image as uint8 array
        """
        normalized = np.clip(image / COLOR_SCALE, 0.0, 1.0)
        gamma = self.settings.gamma
        if gamma != 1.0:
            normalized = np.power(normalized, 1.0 / gamma)

        return np.clip(np.rint(normalized * COLOR_SCALE), 0, 255).astype(np.uint8)

    def save_image(self, image: np.ndarray, filename: str) -> None:
        """Save image to file.

        Args:
            image: Image array (float or uint8)
            filename: Output filename (extension determines format)
        """
        from PIL import Image as PILImage

        if image.dtype == np.float64 or image.dtype == np.float32:
            image = self.to_ldr(image)

        pil_image = PILImage.fromarray(image)
        pil_image.save(filename)
        logger.info("Saved %s", filename)
