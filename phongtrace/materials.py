"""
Phong material coefficients.

A material carries five per-channel attenuation coefficients and a
shininess exponent:
- k_a: ambient reflection
- k_d: diffuse reflection
- k_s: specular reflection
- k_t: transmittance (what fraction of light passes through)
- k_r: mirror reflectance

Each channel is meant to lie in [0, 1]; this is not enforced.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Union

from .vec3 import Color, as_color


Coefficient = Union[Color, float, int, tuple, list]


@dataclass(frozen=True)
class Material:
    """Immutable set of Phong coefficients.

    Scalars are broadcast to all three channels, so
    ``Material(k_d=0.5)`` equals ``Material(k_d=Color(0.5, 0.5, 0.5))``.
    """
    k_a: Coefficient = 1.0
    k_d: Coefficient = 0.0
    k_s: Coefficient = 0.0
    k_t: Coefficient = 0.0
    k_r: Coefficient = 0.0
    shininess: int = 0

    def __post_init__(self):
        for name in ('k_a', 'k_d', 'k_s', 'k_t', 'k_r'):
            object.__setattr__(self, name, as_color(getattr(self, name)))
        if isinstance(self.shininess, bool) or int(self.shininess) != self.shininess:
            raise ValueError(f"Shininess must be an integer, got {self.shininess!r}")
        if self.shininess < 0:
            raise ValueError(f"Shininess must be non-negative, got {self.shininess}")
        object.__setattr__(self, 'shininess', int(self.shininess))

    @classmethod
    def matte(cls, k_d: Coefficient, k_s: Coefficient = 0.0, shininess: int = 0) -> Material:
        """Opaque diffuse surface with an optional highlight."""
        return cls(k_d=k_d, k_s=k_s, shininess=shininess)

    @classmethod
    def mirror(cls, k_r: Coefficient = 1.0) -> Material:
        """Pure mirror: no local shading, only reflection."""
        return cls(k_r=k_r)

    @classmethod
    def glass(cls, k_t: Coefficient = 0.9, k_s: Coefficient = 0.2, shininess: int = 50) -> Material:
        """Mostly transparent surface with a small highlight."""
        return cls(k_t=k_t, k_s=k_s, shininess=shininess)

    def is_transparent(self) -> bool:
        return not self.k_t.is_zero()

    def is_reflective(self) -> bool:
        return not self.k_r.is_zero()


DEFAULT_MATERIAL = Material()
