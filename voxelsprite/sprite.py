"""Drawing shaded sprites into sheet images."""

from __future__ import annotations

import math
from typing import Callable

from PIL import Image, ImageColor

from voxelsprite.rgb import RGB
from voxelsprite.shader import ShaderInfo, ShaderOutput

Box = tuple[int, int, int, int]


def _u16(value: float) -> int:
    if math.isnan(value):
        return 0
    return min(max(int(value), 0), 0xFFFF)


def _to_rgba8(colour: RGB, alpha: float) -> tuple[int, int, int, int]:
    a8 = _u16(alpha * 65535) >> 8
    if a8 == 0:
        return 0, 0, 0, 0
    return _u16(colour.r) >> 8, _u16(colour.g) >> 8, _u16(colour.b) >> 8, a8


def _targets(img: Image.Image, bounds: Box, loc: tuple[int, int]):
    """Yield source and destination coordinates that land inside the image."""
    width, height = img.size
    min_x, min_y, max_x, max_y = bounds
    lx, ly = loc
    for x in range(min_x, max_x):
        tx = x + lx
        if not 0 <= tx < width:
            continue
        for y in range(min_y, max_y):
            ty = y + ly
            if 0 <= ty < height:
                yield x, y, tx, ty


def apply_uniform_sprite(img: Image.Image, bounds: Box, loc: tuple[int, int]) -> None:
    """Fill a sprite's area with black."""
    width, height = img.size
    left = max(bounds[0] + loc[0], 0)
    top = max(bounds[1] + loc[1], 0)
    right = min(bounds[2] + loc[0], width)
    bottom = min(bounds[3] + loc[1], height)
    if left < right and top < bottom:
        img.paste(ImageColor.getcolor("black", img.mode), (left, top, right, bottom))


def apply_32bpp_sprite(
    img: Image.Image,
    bounds: Box,
    loc: tuple[int, int],
    info: ShaderOutput,
    get_property: Callable[[ShaderInfo], RGB],
) -> None:
    """Draw one colour property of each shaded pixel into an RGBA image."""
    pixels = img.load()
    for x, y, tx, ty in _targets(img, bounds, loc):
        cell = info[x][y]
        pixels[tx, ty] = _to_rgba8(get_property(cell), cell.alpha)


def apply_indexed_sprite(
    img: Image.Image,
    bounds: Box,
    loc: tuple[int, int],
    info: ShaderOutput,
    get_property: Callable[[ShaderInfo], int],
) -> None:
    """Draw one palette index property of each shaded pixel into a palette image."""
    pixels = img.load()
    for x, y, tx, ty in _targets(img, bounds, loc):
        pixels[tx, ty] = get_property(info[x][y]) & 0xFF