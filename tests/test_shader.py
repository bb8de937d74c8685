import pytest

from voxelsprite.manifest import Definition, Manifest, Sprite
from voxelsprite.palette import Palette, PaletteEntry, PaletteRange
from voxelsprite.raycaster import RenderSample
from voxelsprite.rgb import RGB
from voxelsprite.shader import (
    ShaderInfo,
    best_index,
    get_shader_output,
    mask_index,
    region_colour,
    shade,
)


def make_palette(**range_flags):
    return Palette(
        entries=[PaletteEntry(0, 0, 0), PaletteEntry(80, 80, 80), PaletteEntry(100, 100, 100)],
        ranges=[PaletteRange(start=1, end=2, **range_flags)],
    )


def make_definition(palette=None, **manifest_settings):
    settings = dict(accuracy=2, contrast=1.0, edge_threshold=0.5)
    settings.update(manifest_settings)
    return Definition(palette=palette or make_palette(), manifest=Manifest(**settings), scale=1.0)


def hit(index=2, influence=1.0, depth=0, light_amount=0.0):
    return RenderSample(
        collision=True, index=index, influence=influence, count=1, depth=depth, light_amount=light_amount
    )


def miss(influence=1.0):
    return RenderSample(influence=influence, count=1)


def block(width, height, samples_per_pixel=4, light=lambda x, y: 0.0):
    return [
        [[hit(light_amount=light(x, y)) for _ in range(samples_per_pixel)] for y in range(height)]
        for x in range(width)
    ]


def test_best_index_exact_match():
    palette = [RGB(0, 0, 0), RGB(1000, 1000, 1000), RGB(5000, 5000, 5000)]
    assert best_index(RGB(1000, 1000, 1000), palette) == 1


def test_best_index_skips_magenta():
    palette = [RGB(0, 0, 0), RGB(65535, 0, 65535), RGB(1000, 1000, 1000)]
    assert best_index(RGB(65535, 0, 65535), palette) == 2


def test_best_index_empty_palette():
    assert best_index(RGB(10, 10, 10), []) == 0


@pytest.mark.parametrize(
    "info, expected",
    [
        (ShaderInfo(specialness=0.9, modal_index=5, dithered_index=7), 5),
        (ShaderInfo(is_animated=True, modal_index=5, dithered_index=7), 5),
        (ShaderInfo(specialness=0.5, is_mask_colour=True, modal_index=5, dithered_index=7), 7),
        (ShaderInfo(specialness=0.5, modal_index=5, dithered_index=7), 0),
        (ShaderInfo(specialness=0.1, is_mask_colour=True, modal_index=5, dithered_index=7), 0),
    ],
)
def test_mask_index(info, expected):
    assert mask_index(info) == expected


def test_region_colour_channels_cycle():
    one = region_colour(ShaderInfo(region=1))
    four = region_colour(ShaderInfo(region=4))
    sixteen = region_colour(ShaderInfo(region=16))
    assert region_colour(ShaderInfo(region=0)) == RGB(0.0, 0.0, 0.0)
    assert four == RGB(0.0, one.r, 0.0)
    assert sixteen == RGB(0.0, 0.0, one.r)
    assert region_colour(ShaderInfo(region=5)) == RGB(one.r, one.r, 0.0)


def test_shade_empty_is_transparent():
    assert shade([], make_definition(), 0) == ShaderInfo()


def test_shade_all_misses_is_transparent():
    assert shade([miss(), miss()], make_definition(), 0) == ShaderInfo()


def test_shade_full_coverage():
    definition = make_definition(soften_edges=10.0)
    result = shade([hit(), hit(), hit()], definition, 0)
    assert result.modal_index == 2
    assert result.alpha == 1.0
    for component in (result.colour.r, result.colour.g, result.colour.b):
        assert 256 <= component <= 65535 - 256


def test_shade_soft_edge_alpha():
    definition = make_definition(soften_edges=0.0)
    result = shade([hit(), hit(), miss(), miss()], definition, 0)
    assert result.alpha == pytest.approx(0.5)
    assert result.modal_index == 2


def test_shade_hard_edge_threshold_makes_transparent():
    definition = make_definition(hard_edge_threshold=0.6)
    assert shade([hit(), hit(), miss(), miss()], definition, 0) == ShaderInfo()


def test_shade_prefers_alternative_to_previous_index():
    definition = make_definition()
    samples = [hit(index=1, influence=1.0), hit(index=2, influence=2.0)]
    assert shade(samples, definition, 0).modal_index == 2
    assert shade(samples, definition, 2).modal_index == 1


def test_shade_company_colour_is_special():
    definition = make_definition(palette=make_palette(is_primary_company_colour=True))
    result = shade([hit(), hit()], definition, 0)
    assert result.specialness == pytest.approx(1.0)
    assert mask_index(result) == result.modal_index == 2


def test_shader_output_empty_render():
    definition = make_definition()
    render = [[[miss()] for _ in range(3)] for _ in range(4)]
    output = get_shader_output(render, Sprite(), definition, 4, 3)
    assert len(output) == 4
    assert all(len(column) == 3 for column in output)
    assert all(cell.dithered_index == 0 and cell.modal_index == 0 for column in output for cell in column)


def test_shader_output_offset_outside_leaves_default_cells():
    definition = make_definition()
    output = get_shader_output(block(3, 3), Sprite(offset_x=3.0), definition, 3, 3)
    assert all(cell == ShaderInfo() for column in output for cell in column)


def test_shader_output_solid_block_single_region():
    definition = make_definition()
    output = get_shader_output(block(3, 3), Sprite(), definition, 3, 3)
    cells = [cell for column in output for cell in column]
    assert all(cell.region == 1 for cell in cells)
    assert all(cell.modal_index == 2 for cell in cells)
    assert all(cell.dithered_index in (1, 2) for cell in cells)
    assert all(cell.alpha == 1.0 for cell in cells)


def test_shader_output_marks_left_and_bottom_edges():
    definition = make_definition()
    output = get_shader_output(block(3, 3), Sprite(), definition, 3, 3)
    for x in range(3):
        for y in range(3):
            assert output[x][y].is_left == (x == 0)
            assert output[x][y].is_bottom == (y == 2)


def test_shader_output_suppressed_edge_fosterisation():
    definition = make_definition(no_edge_fosterisation=True)
    output = get_shader_output(block(3, 3), Sprite(), definition, 3, 3)
    assert not any(cell.is_left or cell.is_bottom for column in output for cell in column)


def test_shader_output_fosterise_keeps_range_start():
    definition = make_definition(fosterise=True)
    output = get_shader_output(block(3, 3), Sprite(), definition, 3, 3)
    for column in output:
        for cell in column:
            assert 1 <= cell.dithered_index <= 2


def test_shader_output_dither_flat_areas_stays_in_range():
    definition = make_definition(dither_flat_areas=True)
    render = block(6, 6, light=lambda x, y: (x + y - 5) / 25.0)
    output = get_shader_output(render, Sprite(), definition, 6, 6)
    cells = [cell for column in output for cell in column]
    assert all(cell.dithered_index in (1, 2) for cell in cells)
    assert all(cell.modal_index == 2 for cell in cells)


def test_shader_output_debug_transparency():
    definition = make_definition()
    definition.debug = True
    output = get_shader_output(block(2, 2), Sprite(), definition, 2, 2)
    full = output[0][0].transparency
    assert all(cell.transparency == full for column in output for cell in column)
    assert full.r > 32767