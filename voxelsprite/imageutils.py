"""Small helpers for building and comparing Pillow images."""

from __future__ import annotations

from PIL import Image

Box = tuple[int, int, int, int]


def uniform_image(size: tuple[int, int], colour: object) -> Image.Image:
    """A new RGBA image of the given size filled with one colour."""
    return Image.new("RGBA", size, colour)


def clear_to_colour_index(img: Image.Image, index: int) -> None:
    """Set every pixel of a palette image to one palette index."""
    width, height = img.size
    img.paste(index, (0, 0, width, height))


def _rgba64(img: Image.Image, x: int, y: int) -> tuple[int, int, int, int]:
    """The alpha-premultiplied 16-bit colour at a pixel; zero outside the image."""
    width, height = img.size
    if not (0 <= x < width and 0 <= y < height):
        return 0, 0, 0, 0

    if img.mode == "P":
        index = img.getpixel((x, y))
        palette = img.getpalette() or []
        r, g, b = (list(palette[index * 3:index * 3 + 3]) + [0, 0, 0])[:3]
        a = 255
    elif img.mode == "RGBA":
        r, g, b, a = img.getpixel((x, y))
    elif img.mode == "RGB":
        r, g, b = img.getpixel((x, y))
        a = 255
    else:
        r, g, b, a = img.convert("RGBA").getpixel((x, y))

    a16 = a * 257
    return (
        r * 257 * a16 // 0xFFFF,
        g * 257 * a16 // 0xFFFF,
        b * 257 * a16 // 0xFFFF,
        a16,
    )


def is_colour_equal(img: Image.Image, x: int, y: int, r: int, g: int, b: int) -> bool:
    """Compare a pixel against 16-bit red, green and blue values."""
    pr, pg, pb, _ = _rgba64(img, x, y)
    return (pr, pg, pb) == (r, g, b)


def is_image_equal_to_sub_image(img: Image.Image, sub: Image.Image, bounds: Box) -> bool:
    """True when img over bounds matches sub from its origin, pixel for pixel."""
    min_x, min_y, max_x, max_y = bounds
    return all(
        _rgba64(img, x, y) == _rgba64(sub, x - min_x, y - min_y)
        for x in range(min_x, max_x)
        for y in range(min_y, max_y)
    )