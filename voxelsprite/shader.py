"""Turning raycast samples into shaded, dithered sprite pixels."""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass, field, replace
from typing import Iterator

from voxelsprite.manifest import Definition, Sprite
from voxelsprite.palette import Palette, PaletteRange
from voxelsprite.raycaster import RenderInfo, RenderOutput
from voxelsprite.rgb import RGB, clamp_rgb, permissive_clamp_rgb
from voxelsprite.shaders import (
    float_value,
    sample_averaged_normal,
    sample_colour,
    sample_depth,
    sample_detail,
    sample_lighting,
    sample_normal,
    sample_occlusion,
    sample_shadow,
)

_REGION_STEP = 65535 // 4


@dataclass
class ShaderInfo:
    """Shaded values for one output pixel."""

    colour: RGB = field(default_factory=RGB)
    special_colour: RGB = field(default_factory=RGB)
    alpha: float = 0.0
    specialness: float = 0.0
    normal: RGB = field(default_factory=RGB)
    averaged_normal: RGB = field(default_factory=RGB)
    depth: RGB = field(default_factory=RGB)
    occlusion: RGB = field(default_factory=RGB)
    lighting: RGB = field(default_factory=RGB)
    shadowing: RGB = field(default_factory=RGB)
    detail: RGB = field(default_factory=RGB)
    transparency: RGB = field(default_factory=RGB)
    region: int = 0
    lighting_calc_done: bool = False
    dither_checked: bool = False
    dither_done: bool = False
    max_lighting: float = 0.0
    min_lighting: float = 0.0
    modal_index: int = 0
    dithered_index: int = 0
    is_mask_colour: bool = False
    is_animated: bool = False
    is_bottom: bool = False
    is_left: bool = False


ShaderOutput = list[list[ShaderInfo]]


@dataclass
class RegionInfo:
    """Statistics gathered for a connected region of similar colours."""

    min_distance_from_midpoint: float = 0.0
    max_distance_from_midpoint: float = 0.0
    min_index: int = 0
    max_index: int = 0
    range_length: float = 0.0
    size: int = 0
    size_in_range: int = 0
    palette_range: PaletteRange | None = None


def _div(a: float, b: float) -> float:
    """Floating-point division giving infinities or NaN instead of raising."""
    if b != 0:
        return a / b
    if a == 0 or math.isnan(a):
        return math.nan
    return math.copysign(math.inf, a)


def _scaled(rgb: RGB, divisor: float) -> RGB:
    return clamp_rgb(RGB(_div(rgb.r, divisor), _div(rgb.g, divisor), _div(rgb.b, divisor)))


def _range(palette: Palette, index: int) -> PaletteRange | None:
    if 0 <= index < len(palette.entries):
        return palette.entries[index].range
    return None


def _entry_rgb(palette: Palette, index: int) -> RGB:
    if 0 <= index < len(palette.entries):
        return palette.entries[index].to_rgb()
    return RGB()


def mask_index(info: ShaderInfo) -> int:
    """The palette index to use in the mask sheet for a pixel."""
    if info.specialness > 0.75 or info.is_animated:
        return info.modal_index
    if info.specialness > 0.25 and info.is_mask_colour:
        return info.dithered_index
    return 0


def region_colour(info: ShaderInfo) -> RGB:
    """A false colour identifying the region a pixel belongs to."""
    region = info.region
    return RGB(
        float(region % 4 * _REGION_STEP),
        float((region // 4) % 4 * _REGION_STEP),
        float((region // 16) % 4 * _REGION_STEP),
    )


def best_index(error: RGB, palette: list[RGB]) -> int:
    """The index of the closest palette colour, skipping magenta placeholders."""
    best, best_sum = 0, sys.float_info.max
    for index, p in enumerate(palette):
        if p.r > 65000 and (p.g == 0 or p.g > 65000) and p.b > 65000:
            continue
        total = (error.r - p.r) ** 2 + (error.g - p.g) ** 2 + (error.b - p.b) ** 2
        if total < best_sum:
            best, best_sum = index, total
            if total == 0:
                break
    return best & 0xFF


def shade(info: RenderInfo, definition: Definition, prev_index: int) -> ShaderInfo:
    """Combine the samples of one pixel into a shaded pixel."""
    manifest = definition.manifest
    palette = definition.palette
    out = ShaderInfo()

    total_influence = filled_influence = 0.0
    filled_samples = total_samples = 0
    values: dict[int, float] = {}
    accuracy = float(manifest.accuracy)
    hard_edge_threshold = int(manifest.hard_edge_threshold * 100.0)

    depths = [s.depth for s in info if s.collision]
    min_depth = min(depths) if depths else None

    for s in info:
        influence = s.influence
        if s.is_recovered:
            influence *= 1.0 - manifest.recovered_voxel_suppression

        # Samples representing fine detail may be boosted so they survive.
        if manifest.detail_boost != 0:
            influence *= 1.0 + (s.detail * manifest.detail_boost)

        # Samples nearest the camera count for more.
        if s.depth != min_depth:
            influence = _div(influence, accuracy)

        total_influence += influence

        if s.collision and palette.is_renderable(s.index):
            filled_influence += influence
            filled_samples += s.count

            out.colour = out.colour + sample_colour(s, definition, True, influence)
            out.special_colour = out.special_colour + sample_colour(s, definition, False, influence)

            if palette.is_special_colour(s.index):
                out.specialness += influence
                values[s.index] = values.get(s.index, 0.0) + 1.0

            if s.index != 0:
                values[s.index] = values.get(s.index, 0.0) + influence

            out.lighting = out.lighting + sample_lighting(s) * influence

            if definition.debug:
                weight = float(s.count)
                out.normal = out.normal + sample_normal(s) * weight
                out.averaged_normal = out.averaged_normal + sample_averaged_normal(s) * weight
                out.depth = out.depth + sample_depth(s) * weight
                out.occlusion = out.occlusion + sample_occlusion(s) * weight
                out.shadowing = out.shadowing + sample_shadow(s) * weight
                out.detail = out.detail + sample_detail(s) * weight

        total_samples += s.count

    highest = 0.0
    alternate = 0
    for index, value in values.items():
        if value > highest:
            highest = value
            alternate = out.modal_index
            out.modal_index = index

    # Avoid repeating the previous colour when a same-range alternative exists.
    if (
        out.modal_index == prev_index
        and _range(palette, out.modal_index) is _range(palette, alternate)
        and alternate != 0
    ):
        out.modal_index = alternate

    if total_samples == 0 or filled_samples * 100 // total_samples <= hard_edge_threshold:
        return ShaderInfo()

    out.alpha = 1.0
    divisor = filled_influence
    if definition.soften_edges():
        out.alpha = _div(divisor, total_influence)
    if manifest.fade_to_black:
        divisor = total_influence

    out.colour = _scaled(out.colour, divisor)
    out.special_colour = _scaled(out.special_colour, divisor)
    out.specialness = _div(out.specialness, divisor)
    out.lighting = _scaled(out.lighting, divisor)

    if definition.debug:
        debug_divisor = float(filled_samples)
        out.normal = _scaled(out.normal, debug_divisor)
        out.averaged_normal = _scaled(out.averaged_normal, debug_divisor)
        out.depth = _scaled(out.depth, debug_divisor)
        out.occlusion = _scaled(out.occlusion, debug_divisor)
        out.shadowing = _scaled(out.shadowing, debug_divisor)
        out.detail = _scaled(out.detail, debug_divisor)
        out.transparency = float_value(float(filled_samples) / float(total_samples))

    return out


def _neighbours(x: int, y: int, width: int, height: int) -> Iterator[tuple[int, int]]:
    if x > 0:
        yield x - 1, y
    if y > 0:
        yield x, y - 1
    if x < width - 1:
        yield x + 1, y
    if y < height - 1:
        yield x, y + 1


def _mark_edges(output: ShaderOutput, definition: Definition, region: int, x: int, y: int, width: int, height: int) -> None:
    suppress = definition.manifest.no_edge_fosterisation
    cell = output[x][y]

    if 0 < x < width - 1 and output[x - 1][y].region != region and output[x + 1][y].region == region:
        if not suppress or output[x - 1][y].modal_index != 0:
            cell.is_left = True

    # Left edge of the sprite.
    if x == 0 and x < width - 1 and output[x + 1][y].region == region and not suppress:
        cell.is_left = True

    if 0 < y < height - 1 and output[x][y + 1].region != region and output[x][y - 1].region == region:
        if not suppress or output[x][y + 1].modal_index != 0:
            cell.is_bottom = True

    # Bottom edge of the sprite.
    if y == height - 1 and y > 0 and output[x][y - 1].region == region and not suppress:
        cell.is_bottom = True


def _identify_region(
    output: ShaderOutput,
    definition: Definition,
    region: int,
    x: int,
    y: int,
    width: int,
    height: int,
    palette_range: PaletteRange | None,
) -> None:
    """Depth-first fill of a region of nearby indexes within one palette range."""
    palette = definition.palette
    max_gap = palette_range.max_gap_in_region if palette_range is not None else 0
    stack: list[tuple[int, int, int, Iterator[tuple[int, int]]]] = []

    def enter(cx: int, cy: int, previous: int) -> None:
        cell = output[cx][cy]
        index = cell.modal_index
        if (
            _range(palette, index) is not palette_range
            or cell.region == region
            or abs(previous - index) > max_gap
        ):
            return
        cell.region = region
        stack.append((cx, cy, index, iter(list(_neighbours(cx, cy, width, height)))))

    enter(x, y, output[x][y].modal_index)
    while stack:
        cx, cy, index, pending = stack[-1]
        following = next(pending, None)
        if following is not None:
            enter(following[0], following[1], index)
            continue
        stack.pop()
        _mark_edges(output, definition, region, cx, cy, width, height)


def _identify_all_regions(output: ShaderOutput, definition: Definition, width: int, height: int) -> dict[int, RegionInfo]:
    regions: dict[int, RegionInfo] = {}
    current = 1
    for x in range(width):
        for y in range(height):
            cell = output[x][y]
            if cell.modal_index == 0 or cell.region != 0:
                continue
            palette_range = _range(definition.palette, cell.modal_index)
            _identify_region(output, definition, current, x, y, width, height, palette_range)
            regions[current] = RegionInfo(palette_range=palette_range)
            current += 1
    return regions


def _dither_pixel(
    definition: Definition,
    output: ShaderOutput,
    x: int,
    y: int,
    err_curr: list[RGB],
    err_next: list[RGB],
    palettes: tuple[list[RGB], list[RGB], list[RGB]],
) -> int:
    palette = definition.palette
    threshold = definition.manifest.edge_threshold
    primary, secondary, regular = palettes
    cell = output[x][y]
    rng = _range(palette, cell.modal_index) or PaletteRange()
    above_special = y > 0 and palette.is_special_colour(output[x][y - 1].modal_index)

    error = RGB()
    if cell.alpha < threshold:
        best = 0
    elif rng.is_primary_company_colour or rng.is_secondary_company_colour:
        error = cell.special_colour if above_special else cell.special_colour + err_curr[y + 1]
        best = best_index(error, primary if rng.is_primary_company_colour else secondary)
    elif rng.is_animated_light:
        cell.is_animated = True
        # Animated colours never take on diffused error.
        best = cell.modal_index
        error = _entry_rgb(palette, best)
    else:
        error = cell.colour if above_special else cell.colour + err_curr[y + 1]
        best = best_index(error, regular)

    cell.dithered_index = best
    if palette.is_special_colour(best):
        cell.is_mask_colour = True

    result = RGB()
    if cell.alpha >= threshold:
        result = permissive_clamp_rgb(error - _entry_rgb(palette, best))

    # Floyd-Steinberg error diffusion.
    err_next[y] = err_next[y] + result * (3.0 / 16)
    err_next[y + 1] = err_next[y + 1] + result * (5.0 / 16)
    err_next[y + 2] = err_next[y + 2] + result * (1.0 / 16)
    err_curr[y + 2] = err_curr[y + 2] + result * (7.0 / 16)
    err_curr[y + 1] = RGB()
    return best


def _dither(output: ShaderOutput, definition: Definition, width: int, height: int, regions: dict[int, RegionInfo]) -> None:
    palette = definition.palette
    err_curr = [RGB()] * (height + 2)
    err_next = [RGB()] * (height + 2)
    palettes = (
        palette.primary_company_colour_palette(),
        palette.secondary_company_colour_palette(),
        palette.regular_palette(),
    )

    for x in range(width):
        for y in range(height):
            best = _dither_pixel(definition, output, x, y, err_curr, err_next, palettes)
            cell = output[x][y]
            dithered_range = _range(palette, best)

            # Transparent pixels lose their modal colour.
            if best == 0:
                cell.modal_index = 0

            stats = replace(regions.get(cell.region, RegionInfo()))
            stats.size += 1
            if dithered_range is stats.palette_range and best != 0:
                stats.size_in_range += 1
                if best < stats.min_index or stats.min_index == 0:
                    stats.min_index = best
                if best > stats.max_index:
                    stats.max_index = best
                regions[cell.region] = stats

        err_curr, err_next = err_next, err_curr


def _adjustable_range(palette: Palette, index: int) -> PaletteRange | None:
    rng = _range(palette, index)
    if rng is None or rng.is_animated_light or rng.is_non_renderable:
        return None
    return rng


def _fosterise(output: ShaderOutput, definition: Definition, width: int, height: int) -> None:
    """Darken pixels on the bottom and left edges of regions."""
    for x in range(width):
        for y in range(height):
            cell = output[x][y]
            rng = _adjustable_range(definition.palette, cell.dithered_index)
            if rng is None:
                continue
            if (cell.is_bottom or cell.is_left) and cell.dithered_index > rng.start:
                cell.dithered_index -= 1
                cell.dither_checked = True
                cell.dither_done = True


def _flood_same_index(
    output: ShaderOutput, x: int, y: int, width: int, height: int, previous: int, flag: str
) -> Iterator[tuple[int, int, ShaderInfo, int]]:
    """Yield unflagged connected pixels sharing a dithered index, flagging each."""
    stack = [(x, y, previous)]
    while stack:
        cx, cy, prev = stack.pop()
        cell = output[cx][cy]
        if getattr(cell, flag) or cell.dithered_index != prev:
            continue
        setattr(cell, flag, True)
        index = cell.dithered_index
        yield cx, cy, cell, index
        stack.extend((nx, ny, index) for nx, ny in _neighbours(cx, cy, width, height))


def _dither_flat_areas(output: ShaderOutput, definition: Definition, width: int, height: int) -> None:
    """Lighten and darken parts of flat areas to add detail."""
    palette = definition.palette
    for x in range(width):
        for y in range(height):
            cell = output[x][y]
            if _adjustable_range(palette, cell.dithered_index) is None:
                continue

            start = cell.modal_index
            area = [
                c.lighting.r
                for _, _, c, _ in _flood_same_index(output, x, y, width, height, start, "lighting_calc_done")
            ]
            low_light = min(area, default=sys.float_info.max)
            high_light = max([0.0, *area])
            if high_light - low_light <= 0.0:
                continue

            spread = high_light - low_light
            lighting_values = sorted(
                (c.lighting.r - low_light) / spread
                for _, _, c, _ in _flood_same_index(output, x, y, width, height, start, "dither_checked")
            )
            if len(lighting_values) <= 1:
                continue

            # Leave 60% untouched, darken 20% and lighten 20%.
            threshold_low = lighting_values[len(lighting_values) // 5]
            threshold_high = lighting_values[(len(lighting_values) * 4) // 5]
            if threshold_low == threshold_high:
                continue

            for cx, cy, c, index in _flood_same_index(output, x, y, width, height, start, "dither_done"):
                rng = _range(palette, index)
                value = (c.lighting.r - low_light) / spread
                chequer = (cx % 2 + cy) % 2 == 0
                if value > threshold_high and chequer and index < rng.end:
                    c.dithered_index = index + 1
                elif value < threshold_low and chequer and index > rng.start:
                    c.dithered_index = index - 1


def get_shader_output(
    render_output: RenderOutput, sprite: Sprite, definition: Definition, width: int, height: int
) -> ShaderOutput:
    """Shade and dither a sprite's raycast output into pixels indexed [x][y]."""
    manifest = definition.manifest
    output = [[ShaderInfo() for _ in range(height)] for _ in range(width)]

    x_offset = int(sprite.offset_x * definition.scale)
    y_offset = int(sprite.offset_y * definition.scale)

    for x in range(width):
        for y in range(height):
            rx, ry = x + x_offset, y + y_offset
            if not (0 <= rx < width and 0 <= ry < height):
                continue
            prev_index = output[x - 1][y].modal_index if x > 1 else 0
            output[x][y] = shade(render_output[rx][ry], definition, prev_index)

    regions = _identify_all_regions(output, definition, width, height)
    _dither(output, definition, width, height, regions)

    if manifest.fosterise:
        _fosterise(output, definition, width, height)

    if manifest.dither_flat_areas:
        _dither_flat_areas(output, definition, width, height)

    return output