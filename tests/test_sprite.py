from PIL import Image

from voxelsprite.imageutils import is_colour_equal, uniform_image
from voxelsprite.rgb import RGB
from voxelsprite.shader import ShaderInfo
from voxelsprite.sprite import apply_32bpp_sprite, apply_indexed_sprite, apply_uniform_sprite


def _grid(width, height, **values):
    return [[ShaderInfo(**values) for _ in range(height)] for _ in range(width)]


def test_apply_uniform_sprite():
    img = uniform_image((2, 2), "white")
    apply_uniform_sprite(img, (0, 0, 2, 2), (0, 0))
    assert img.size == (2, 2)
    for x in range(2):
        for y in range(2):
            assert is_colour_equal(img, x, y, 0, 0, 0)


def test_apply_uniform_sprite_respects_location():
    img = uniform_image((4, 1), "white")
    apply_uniform_sprite(img, (0, 0, 2, 1), (2, 0))
    assert is_colour_equal(img, 1, 0, 65535, 65535, 65535)
    assert is_colour_equal(img, 2, 0, 0, 0, 0)
    assert is_colour_equal(img, 3, 0, 0, 0, 0)


def test_apply_uniform_sprite_clips_to_image():
    img = uniform_image((2, 2), "white")
    apply_uniform_sprite(img, (0, 0, 4, 4), (1, 1))
    assert is_colour_equal(img, 0, 0, 65535, 65535, 65535)
    assert is_colour_equal(img, 1, 1, 0, 0, 0)


def test_apply_32bpp_sprite_opaque():
    img = uniform_image((2, 2), "white")
    info = _grid(2, 2, colour=RGB(65535.0, 0.0, 0.0), alpha=1.0)
    apply_32bpp_sprite(img, (0, 0, 2, 2), (0, 0), info, lambda s: s.colour)
    assert img.getpixel((0, 0)) == (255, 0, 0, 255)
    assert img.getpixel((1, 1)) == (255, 0, 0, 255)


def test_apply_32bpp_sprite_transparent():
    img = uniform_image((1, 1), "white")
    info = _grid(1, 1, colour=RGB(65535.0, 65535.0, 65535.0), alpha=0.0)
    apply_32bpp_sprite(img, (0, 0, 1, 1), (0, 0), info, lambda s: s.colour)
    assert img.getpixel((0, 0)) == (0, 0, 0, 0)


def test_apply_32bpp_sprite_offset():
    img = uniform_image((3, 1), "white")
    info = _grid(1, 1, colour=RGB(0.0, 65535.0, 0.0), alpha=1.0)
    apply_32bpp_sprite(img, (0, 0, 1, 1), (2, 0), info, lambda s: s.colour)
    assert img.getpixel((2, 0)) == (0, 255, 0, 255)
    assert img.getpixel((0, 0)) == (255, 255, 255, 255)


def test_apply_indexed_sprite():
    img = Image.new("P", (3, 2))
    img.putpalette([value for i in range(8) for value in (i, i, i)])
    info = _grid(2, 2, dithered_index=3)
    apply_indexed_sprite(img, (0, 0, 2, 2), (1, 0), info, lambda s: s.dithered_index)
    assert img.getpixel((0, 0)) == 0
    assert img.getpixel((1, 0)) == 3
    assert img.getpixel((2, 1)) == 3