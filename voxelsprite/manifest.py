"""Render manifests: sprite angles, sizes and rendering settings."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Any, Callable

from voxelsprite.files import instantiate_from_file
from voxelsprite.geometry import Vector3, deg_to_rad
from voxelsprite.palette import Palette
from voxelsprite.voxelobject import ProcessedVoxelObject


class ManifestError(ValueError):
    """Raised when a manifest document is invalid."""


def _int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ManifestError(f"{name} must be an integer, got {value!r}")
    return value


def _float(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ManifestError(f"{name} must be a number, got {value!r}")
    return float(value)


def _bool(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        raise ManifestError(f"{name} must be true or false, got {value!r}")
    return value


def _str(value: Any, name: str) -> str:
    if not isinstance(value, str):
        raise ManifestError(f"{name} must be a string, got {value!r}")
    return value


def _vector(value: Any, name: str) -> Vector3:
    if not isinstance(value, dict):
        raise ManifestError(f"{name} must be an object, got {value!r}")
    lowered = {k.lower(): v for k, v in value.items()}
    return Vector3(*(_float(lowered.get(axis, 0.0), f"{name}.{axis}") for axis in "xyz"))


Spec = dict[str, tuple[str, Callable[[Any, str], Any]]]


def _apply(target: Any, data: Any, spec: Spec, what: str) -> None:
    if not isinstance(data, dict):
        raise ManifestError(f"{what} must be an object, got {data!r}")
    for key, value in data.items():
        match = spec.get(key.lower())
        if match is None or value is None:
            continue
        attribute, convert = match
        setattr(target, attribute, convert(value, key))


@dataclass
class Sprite:
    """One sprite in the sheet, rendered at a given angle."""

    angle: float = 0.0
    width: int = 0
    height: int = 0
    offset_x: float = 0.0
    offset_y: float = 0.0
    x: int = 0
    z_error: float = 0.0
    flip: bool = False
    slice: int = 0
    render_elevation_angle: int = 0
    joggle: float = 0.0


_SPRITE_SPEC: Spec = {
    "angle": ("angle", _float),
    "width": ("width", _int),
    "height": ("height", _int),
    "offset_x": ("offset_x", _float),
    "offset_y": ("offset_y", _float),
    "x": ("x", _int),
    "zerror": ("z_error", _float),
    "flip": ("flip", _bool),
    "slice": ("slice", _int),
    "render_elevation": ("render_elevation_angle", _int),
    "joggle": ("joggle", _float),
}


def _sprite(value: Any, name: str) -> Sprite:
    sprite = Sprite()
    _apply(sprite, value, _SPRITE_SPEC, name)
    return sprite


def _sprites(value: Any, name: str) -> list[Sprite]:
    if not isinstance(value, list):
        raise ManifestError(f"{name} must be an array, got {value!r}")
    return [_sprite(item, name) for item in value]


def _go_div(a: float, b: float) -> float:
    if b != 0:
        return a / b
    if a == 0 or math.isnan(a):
        return math.nan
    return math.copysign(math.inf, a)


@dataclass
class Manifest:
    """Settings controlling how an object is rendered."""

    lighting_angle: int = 0
    lighting_elevation: int = 0
    size: Vector3 = field(default_factory=Vector3)
    render_elevation_angle: int = 0
    sprites: list[Sprite] = field(default_factory=list)
    depth_influence: float = 0.0
    tiled_normals: bool = False
    tiling_mode: str = ""
    solid_base: bool = False
    soften_edges: float = 0.0
    accuracy: int = 0
    sampler: str = ""
    overlap: float = 0.0
    brightness: float = 0.0
    contrast: float = 0.0
    detail_boost: float = 0.0
    fade_to_black: bool = False
    edge_threshold: float = 0.0
    hard_edge_threshold: float = 0.0
    pad_to_full_length: bool = False
    slice_threshold: int = 0
    slice_length: int = 0
    slice_overlap: int = 0
    falloff: float = 0.0
    recovered_voxel_suppression: float = 0.0
    joggle: float = 0.0
    dither_flat_areas: bool = False
    fosterise: bool = False
    no_edge_fosterisation: bool = False
    soft_shadow: bool = False
    shadow_threshold: float = 0.0

    def set_sprite_sizes(self) -> None:
        """Fill in automatic heights and default elevation angles."""
        for sprite in self.sprites:
            if sprite.height == 0:
                sprite.height, sprite.z_error = self._calculated_height(sprite)
            if sprite.render_elevation_angle == 0:
                sprite.render_elevation_angle = self.render_elevation_angle

    def _calculated_height(self, sprite: Sprite) -> tuple[int, float]:
        size = self.size
        cos, sin = math.cos(deg_to_rad(sprite.angle)), math.sin(deg_to_rad(sprite.angle))
        horizontal = (abs(size.x * cos) + abs(size.y * sin)) * math.sin(
            deg_to_rad(float(self.render_elevation_angle))
        )
        ratio = _go_div(horizontal + size.z, abs(size.x * sin) + abs(size.y * cos))
        sprite_size = ratio * float(sprite.width)
        if not math.isfinite(sprite_size):
            return 0, math.nan
        rounded = float(math.ceil(sprite_size))
        return int(rounded), _go_div(rounded - sprite_size, rounded)


_MANIFEST_SPEC: Spec = {
    "lighting_angle": ("lighting_angle", _int),
    "lighting_elevation": ("lighting_elevation", _int),
    "size": ("size", _vector),
    "render_elevation": ("render_elevation_angle", _int),
    "sprites": ("sprites", _sprites),
    "depth_influence": ("depth_influence", _float),
    "tiled_normals": ("tiled_normals", _bool),
    "tiling_mode": ("tiling_mode", _str),
    "solid_base": ("solid_base", _bool),
    "soften_edges": ("soften_edges", _float),
    "accuracy": ("accuracy", _int),
    "sampler": ("sampler", _str),
    "overlap": ("overlap", _float),
    "brightness": ("brightness", _float),
    "contrast": ("contrast", _float),
    "detail_boost": ("detail_boost", _float),
    "fade_to_black": ("fade_to_black", _bool),
    "alpha_edge_threshold": ("edge_threshold", _float),
    "hard_edge_threshold": ("hard_edge_threshold", _float),
    "pad_to_full_length": ("pad_to_full_length", _bool),
    "slice_threshold": ("slice_threshold", _int),
    "slice_length": ("slice_length", _int),
    "slice_overlap": ("slice_overlap", _int),
    "falloff_adjustment": ("falloff", _float),
    "recovered_voxel_suppression": ("recovered_voxel_suppression", _float),
    "joggle": ("joggle", _float),
    "dither_flat_areas": ("dither_flat_areas", _bool),
    "fosterise": ("fosterise", _bool),
    "suppress_edge_fosterisation": ("no_edge_fosterisation", _bool),
    "soft_shadow": ("soft_shadow", _bool),
    "shadow_threshold": ("shadow_threshold", _float),
}


@dataclass
class Definition:
    """Everything needed to render one object at one scale."""

    object: ProcessedVoxelObject | None = None
    palette: Palette = field(default_factory=Palette)
    manifest: Manifest = field(default_factory=Manifest)
    scale: float = 1.0
    debug: bool = False
    time: bool = False
    only_8bpp: bool = False

    def soften_edges(self) -> bool:
        return self.scale >= self.manifest.soften_edges


def manifest_from_json(source: Any) -> Manifest:
    """Build a manifest from JSON text, bytes or a readable stream."""
    text = source.read() if hasattr(source, "read") else source
    try:
        data = json.loads(text)
    except json.JSONDecodeError as error:
        raise ManifestError(f"invalid manifest JSON: {error}") from error

    manifest = Manifest(accuracy=2, edge_threshold=0.5, tiling_mode="normal")
    _apply(manifest, data, _MANIFEST_SPEC, "manifest")

    manifest.brightness *= 65535
    manifest.contrast += 1.0
    manifest.set_sprite_sizes()
    return manifest


def load_manifest(filename: str) -> Manifest:
    """Read a manifest from a JSON file."""
    return instantiate_from_file(filename, manifest_from_json)