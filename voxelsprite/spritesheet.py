"""Rendering every sprite of a manifest into sheets of images."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from operator import attrgetter
from typing import BinaryIO, Callable

from PIL import Image

from voxelsprite.files import write_to_file
from voxelsprite.geometry import Point
from voxelsprite.imageutils import clear_to_colour_index, uniform_image
from voxelsprite.manifest import Definition, Sprite
from voxelsprite.raycaster import get_raycast_output
from voxelsprite.rgb import RGB
from voxelsprite.sampler import get_sampler
from voxelsprite.shader import ShaderInfo, ShaderOutput, get_shader_output, mask_index, region_colour
from voxelsprite.sprite import apply_32bpp_sprite, apply_indexed_sprite, apply_uniform_sprite
from voxelsprite.timing import timed
from voxelsprite.voxelobject import ProcessedVoxelObject

Box = tuple[int, int, int, int]

_SPRITE_SPACING = 8

_DEBUG_OUTPUTS = (
    "lighting", "depth", "normals", "occlusion", "shadow",
    "avg_normals", "detail", "transparency", "region",
)

_COLOUR_PROPERTIES: dict[str, Callable[[ShaderInfo], RGB]] = {
    "lighting": attrgetter("lighting"),
    "depth": attrgetter("depth"),
    "occlusion": attrgetter("occlusion"),
    "shadow": attrgetter("shadowing"),
    "normals": attrgetter("normal"),
    "avg_normals": attrgetter("averaged_normal"),
    "detail": attrgetter("detail"),
    "transparency": attrgetter("transparency"),
    "region": region_colour,
}

_INDEX_PROPERTIES: dict[str, Callable[[ShaderInfo], int]] = {
    "8bpp": attrgetter("dithered_index"),
    "mask": mask_index,
}


@dataclass
class Spritesheet:
    """One finished sheet image."""

    image: Image.Image

    def write(self, stream: BinaryIO) -> None:
        """Encode the sheet as PNG into a binary stream."""
        self.image.save(stream, format="PNG")


@dataclass
class SpriteInfo:
    """The shaded pixels of one sprite and the area they cover."""

    shader_output: ShaderOutput
    sprite_bounds: Box


@dataclass
class Spritesheets:
    """Named sheets produced for one object at one scale."""

    data: dict[str, Spritesheet] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def store(self, key: str, sheet: Spritesheet) -> None:
        with self._lock:
            self.data[key] = sheet

    def save_all(self, base_filename: str) -> None:
        """Write each sheet to <base_filename>_<name>.png."""
        with self._lock:
            items = list(self.data.items())
        for key, sheet in items:
            write_to_file(f"{base_filename}_{key}.png", sheet.write)


def sprite_size_for_angle(sprite: Sprite, scale: float) -> Box:
    """The pixel area a sprite occupies at a given scale."""
    return 0, 0, int(float(sprite.width) * scale), int(float(sprite.height) * scale)


def _object(definition: Definition) -> ProcessedVoxelObject:
    if definition.object is not None:
        return definition.object
    return ProcessedVoxelObject(Point(0, 0, 0), definition.palette)


def _raycast(definition: Definition, obj: ProcessedVoxelObject) -> list[SpriteInfo]:
    manifest = definition.manifest
    sprites = manifest.sprites
    falloff = 0.5 + manifest.falloff
    casts = []

    def cast() -> None:
        for spr in sprites:
            box = sprite_size_for_angle(spr, definition.scale)
            samples = get_sampler(manifest.sampler)(box[2], box[3], manifest.accuracy, manifest.overlap, falloff)
            casts.append((box, get_raycast_output(obj, manifest, spr, samples)))

    timed("Raycasting", definition.time, cast)

    infos: list[SpriteInfo] = []

    def sample() -> None:
        for spr, (box, render_output) in zip(sprites, casts):
            shaded = get_shader_output(render_output, spr, definition, box[2], box[3])
            infos.append(SpriteInfo(shaded, box))

    timed("Sampling", definition.time, sample)
    return infos


def _indexed_sheet(definition: Definition, size: tuple[int, int], infos: list[SpriteInfo], depth: str) -> Image.Image:
    colours = [entry.to_rgb() for entry in definition.palette.entries]
    flat = [round(channel / 255) for rgb in colours for channel in (rgb.r, rgb.g, rgb.b)]

    img = Image.new("P", size)
    img.putpalette(flat or [0, 0, 0])
    clear_to_colour_index(img, (len(colours) - 1) & 0xFF)

    get_property = _INDEX_PROPERTIES.get(depth)
    if get_property is not None:
        for spr, info in zip(definition.manifest.sprites, infos):
            apply_indexed_sprite(img, info.sprite_bounds, (spr.x, 0), info.shader_output, get_property)
    return img


def _colour_sheet(
    definition: Definition, obj: ProcessedVoxelObject, size: tuple[int, int], infos: list[SpriteInfo], depth: str
) -> Image.Image:
    img = uniform_image(size, (255, 255, 255, 255))
    get_property = _COLOUR_PROPERTIES.get(depth, attrgetter("colour"))

    for spr, info in zip(definition.manifest.sprites, infos):
        loc = (spr.x, 0)
        if obj.invalid():
            apply_uniform_sprite(img, info.sprite_bounds, loc)
        else:
            apply_32bpp_sprite(img, info.sprite_bounds, loc, info.shader_output, get_property)
    return img


def _regular_sheets(
    sheets: Spritesheets, definition: Definition, obj: ProcessedVoxelObject,
    size: tuple[int, int], infos: list[SpriteInfo],
) -> None:
    sheets.store("8bpp", Spritesheet(_indexed_sheet(definition, size, infos, "8bpp")))
    if not definition.only_8bpp:
        sheets.store("32bpp", Spritesheet(_colour_sheet(definition, obj, size, infos, "32bpp")))
        sheets.store("mask", Spritesheet(_indexed_sheet(definition, size, infos, "mask")))


def _debug_sheets(
    sheets: Spritesheets, definition: Definition, obj: ProcessedVoxelObject,
    size: tuple[int, int], infos: list[SpriteInfo],
) -> None:
    for name in _DEBUG_OUTPUTS:
        sheets.store(name, Spritesheet(_colour_sheet(definition, obj, size, infos, name)))

    manifest = definition.manifest
    samples = get_sampler(manifest.sampler)(1, 1, manifest.accuracy, manifest.overlap, 0.5 + manifest.falloff)
    sheets.store("sampler", Spritesheet(samples.image()))


def get_spritesheets(definition: Definition) -> Spritesheets:
    """Render every sprite of the definition into 8bpp, 32bpp, mask and debug sheets."""
    sheets = Spritesheets()
    obj = _object(definition)

    width = height = 0
    for spr in definition.manifest.sprites:
        spr.x = width
        width += int(float(spr.width + _SPRITE_SPACING) * definition.scale)
        height = max(height, int(float(spr.height) * definition.scale))
    size = (width, height)

    infos = _raycast(definition, obj)

    timed("Spritesheets", definition.time, lambda: _regular_sheets(sheets, definition, obj, size, infos))
    if definition.debug:
        timed("Debug output", definition.time, lambda: _debug_sheets(sheets, definition, obj, size, infos))

    return sheets