from PIL import Image

from voxelsprite.imageutils import (
    clear_to_colour_index,
    is_colour_equal,
    is_image_equal_to_sub_image,
    uniform_image,
)


def test_uniform_image():
    img = uniform_image((2, 2), "black")
    assert img.size == (2, 2)
    for x in range(2):
        for y in range(2):
            assert img.getpixel((x, y))[:3] == (0, 0, 0)


def test_is_colour_equal():
    img = uniform_image((2, 2), "black")
    assert is_colour_equal(img, 1, 1, 0, 0, 0)
    assert not is_colour_equal(img, 1, 1, 255, 255, 255)


def test_is_colour_equal_uses_16_bit_values():
    img = uniform_image((1, 1), "white")
    assert is_colour_equal(img, 0, 0, 65535, 65535, 65535)
    assert not is_colour_equal(img, 0, 0, 255, 255, 255)


def test_is_colour_equal_outside_image_is_zero():
    img = uniform_image((1, 1), "white")
    assert is_colour_equal(img, 5, 5, 0, 0, 0)


def test_is_image_equal_to_sub_image():
    img1 = uniform_image((3, 3), "black")
    img2 = uniform_image((1, 1), "white")
    img1.paste(img2, (0, 0, 1, 1))

    assert is_image_equal_to_sub_image(img2, img1, (0, 0, 1, 1))
    assert not is_image_equal_to_sub_image(img2, img1, (1, 0, 2, 1))


def test_clear_to_colour_index():
    img = Image.new("P", (3, 3))
    img.putpalette([value for i in range(16) for value in (i * 16, i * 8, i * 4)])
    clear_to_colour_index(img, 5)
    for x in range(3):
        for y in range(3):
            assert img.getpixel((x, y)) == 5


def test_palette_image_colour_lookup():
    img = Image.new("P", (1, 1))
    img.putpalette([0, 0, 0, 255, 255, 255])
    clear_to_colour_index(img, 1)
    assert is_colour_equal(img, 0, 0, 65535, 65535, 65535)