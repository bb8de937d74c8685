import pytest

from voxelsprite.geometry import Vector3, unit_x
from voxelsprite.manifest import Definition, Manifest
from voxelsprite.palette import Palette, PaletteEntry
from voxelsprite.raycaster import RenderSample
from voxelsprite.rgb import RGB
from voxelsprite.shaders import (
    float_value,
    lighting_offset,
    sample_averaged_normal,
    sample_colour,
    sample_depth,
    sample_detail,
    sample_lighting,
    sample_normal,
    sample_occlusion,
    sample_shadow,
)


def _definition():
    palette = Palette(entries=[PaletteEntry(0, 0, 0), PaletteEntry(255, 255, 255), PaletteEntry(100, 50, 25)])
    return Definition(palette=palette, manifest=Manifest(contrast=1.0, depth_influence=0.1))


def test_sample_lighting_neutral_is_mid_grey():
    assert sample_lighting(RenderSample(light_amount=0.0)) == RGB(32767, 32767, 32767)


def test_sample_lighting_is_symmetric():
    up = sample_lighting(RenderSample(light_amount=0.4))
    down = sample_lighting(RenderSample(light_amount=-0.4))
    assert up.r + down.r == pytest.approx(2 * 32767)
    assert up.r > down.r


def test_sample_shadow_extremes():
    assert sample_shadow(RenderSample(shadowing=0.0)) == RGB(65535, 65535, 65535)
    assert sample_shadow(RenderSample(shadowing=1.0)) == RGB(0, 0, 0)


def test_sample_normal_of_zero_vector():
    assert sample_normal(RenderSample()) == RGB(32766, 32766, 32766)


def test_sample_normal_follows_direction():
    colour = sample_normal(RenderSample(normal=unit_x()))
    assert colour.r - colour.g == 32766
    assert colour.g == colour.b


def test_sample_averaged_normal_uses_averaged_normal():
    sample = RenderSample(normal=Vector3(0, 1, 0), averaged_normal=unit_x())
    assert sample_averaged_normal(sample) == sample_normal(RenderSample(normal=unit_x()))
    assert sample_averaged_normal(sample) != sample_normal(sample)


def test_sample_depth_and_occlusion_are_linear():
    assert sample_depth(RenderSample(depth=0)).r == 0
    assert sample_depth(RenderSample(depth=6)).r == 2 * sample_depth(RenderSample(depth=3)).r
    assert sample_occlusion(RenderSample(occlusion=0)).g == 0
    assert sample_occlusion(RenderSample(occlusion=4)).b == 4 * sample_occlusion(RenderSample(occlusion=1)).b


def test_sample_detail_neutral():
    assert sample_detail(RenderSample(detail=0.0)) == RGB(32767, 32767, 32767)


def test_float_value_clamps():
    assert float_value(0.0) == RGB(32767, 32767, 32767)
    assert float_value(10.0) == RGB(65535 - 256, 65535 - 256, 65535 - 256)
    assert float_value(-10.0) == RGB(256, 256, 256)


def test_lighting_offset_depth_neutral_at_120():
    sample = RenderSample(light_amount=0.3, depth=120)
    assert lighting_offset(sample, 1.0) == pytest.approx(lighting_offset(sample, 0.0))


def test_lighting_offset_monotonic():
    base = RenderSample(light_amount=0.2, depth=120, occlusion=2, shadowing=0.3)
    brighter = RenderSample(light_amount=0.8, depth=120, occlusion=2, shadowing=0.3)
    deeper = RenderSample(light_amount=0.2, depth=200, occlusion=2, shadowing=0.3)
    occluded = RenderSample(light_amount=0.2, depth=120, occlusion=8, shadowing=0.3)
    shadowed = RenderSample(light_amount=0.2, depth=120, occlusion=2, shadowing=1.0)
    assert lighting_offset(brighter, 0.1) > lighting_offset(base, 0.1)
    assert lighting_offset(deeper, 0.1) < lighting_offset(base, 0.1)
    assert lighting_offset(occluded, 0.1) < lighting_offset(base, 0.1)
    assert lighting_offset(shadowed, 0.1) < lighting_offset(base, 0.1)


def test_sample_colour_white_stays_white_when_lit():
    colour = sample_colour(RenderSample(index=1, light_amount=1.0, depth=120), _definition(), False, 1.0)
    assert colour.r == pytest.approx(65535)
    assert colour.g == pytest.approx(65535)


def test_sample_colour_brighter_with_more_light():
    definition = _definition()
    dark = sample_colour(RenderSample(index=2, light_amount=-0.5, depth=120), definition, False, 1.0)
    light = sample_colour(RenderSample(index=2, light_amount=0.5, depth=120), definition, False, 1.0)
    assert light.r > dark.r
    assert light.g > dark.g
    assert light.b > dark.b


def test_sample_colour_scales_with_influence():
    definition = _definition()
    sample = RenderSample(index=2, light_amount=0.1, depth=100)
    single = sample_colour(sample, definition, False, 1.0)
    double = sample_colour(sample, definition, False, 2.0)
    assert double.r == pytest.approx(single.r * 2)
    assert double.b == pytest.approx(single.b * 2)