"""Per-sample colour and debug channel values."""

from __future__ import annotations

from voxelsprite.geometry import Vector3
from voxelsprite.manifest import Definition
from voxelsprite.raycaster import RenderSample
from voxelsprite.rgb import RGB, clamp_rgb

_HALF = 32767.0
_NORMAL_SCALE = 32766.0
_FULL = 65535.0


def _grey(value: float) -> RGB:
    return RGB(value, value, value)


def _vector_colour(vector: Vector3) -> RGB:
    scaled = vector.multiply_by_constant(_NORMAL_SCALE) + Vector3(_NORMAL_SCALE, _NORMAL_SCALE, _NORMAL_SCALE)
    return RGB(scaled.x, scaled.y, scaled.z)


def lighting_offset(sample: RenderSample, depth_influence: float) -> float:
    """How far lighting, depth, occlusion and shadow push a sample's colour."""
    offset = -0.3
    offset += sample.light_amount * 0.6
    offset += (-(float(sample.depth - 120) / 40)) * depth_influence
    offset += (-float(sample.occlusion) / 10.0) * 0.3
    offset -= sample.shadowing * 0.2
    return offset / 1.5


def sample_colour(
    sample: RenderSample, definition: Definition, resolve_special_colours: bool, influence: float
) -> RGB:
    """The lit colour of a sample, weighted by influence."""
    manifest = definition.manifest
    offset = lighting_offset(sample, manifest.depth_influence)
    return definition.palette.lit_rgb(
        sample.index, offset, manifest.brightness, manifest.contrast, resolve_special_colours, influence
    )


def sample_normal(sample: RenderSample) -> RGB:
    return _vector_colour(sample.normal)


def sample_averaged_normal(sample: RenderSample) -> RGB:
    return _vector_colour(sample.averaged_normal)


def sample_depth(sample: RenderSample) -> RGB:
    return _grey(float(sample.depth * 100))


def sample_occlusion(sample: RenderSample) -> RGB:
    return _grey(float(sample.occlusion * 6000))


def sample_shadow(sample: RenderSample) -> RGB:
    return _grey(_FULL - (sample.shadowing * _FULL))


def sample_lighting(sample: RenderSample) -> RGB:
    return _grey(_HALF + (sample.light_amount * _HALF))


def sample_detail(sample: RenderSample) -> RGB:
    return _grey(_HALF + (sample.detail * _HALF))


def float_value(value: float) -> RGB:
    """Map a value in [-1, 1] to a clamped grey."""
    return clamp_rgb(_grey(_HALF + (value * _HALF)))