"""Indexed colour palettes with special colour ranges."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Any, Callable

from voxelsprite.files import instantiate_from_file
from voxelsprite.rgb import RGB, clamp

_MAGENTA = RGB(65535.0, 0.0, 65535.0)
_ANIMATED_GREY = RGB(22000.0, 22000.0, 22000.0)
_DEFAULT_MAX_GAP = 6
_DEFAULT_EXPECTED_RANGE = 3


class PaletteError(ValueError):
    """Raised when a palette definition is invalid."""


def _byte(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 255:
        raise PaletteError(f"{name} must be an integer from 0 to 255, got {value!r}")
    return value


def _integer(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise PaletteError(f"{name} must be an integer, got {value!r}")
    return value


def _boolean(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        raise PaletteError(f"{name} must be true or false, got {value!r}")
    return value


def _number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PaletteError(f"{name} must be a number, got {value!r}")
    return float(value)


def _round_half_away(value: float) -> float:
    if math.isnan(value) or math.isinf(value):
        return value
    return math.copysign(math.floor(abs(value) + 0.5), value)


@dataclass
class PaletteRange:
    """A run of palette indexes sharing lighting and special behaviour."""

    start: int = 0
    end: int = 0
    is_primary_company_colour: bool = False
    is_secondary_company_colour: bool = False
    is_animated_light: bool = False
    is_process_colour: bool = False
    smoothness: int = 0
    is_non_renderable: bool = False
    max_gap_in_region: int = 0
    expected_colour_range: int = 0

    @property
    def is_company_colour(self) -> bool:
        return self.is_primary_company_colour or self.is_secondary_company_colour

    @classmethod
    def from_json(cls, data: Any) -> PaletteRange:
        if not isinstance(data, dict):
            raise PaletteError(f"palette range must be an object, got {data!r}")
        fields: dict[str, tuple[str, Callable[[Any, str], Any]]] = {
            "start": ("start", _byte),
            "end": ("end", _byte),
            "is_primary_company_colour": ("is_primary_company_colour", _boolean),
            "is_secondary_company_colour": ("is_secondary_company_colour", _boolean),
            "is_animated_light": ("is_animated_light", _boolean),
            "is_process_colour": ("is_process_colour", _boolean),
            "smoothness": ("smoothness", _integer),
            "non_renderable": ("is_non_renderable", _boolean),
            "max_gap_in_region": ("max_gap_in_region", _integer),
            "expected_colour_range": ("expected_colour_range", _byte),
        }
        values = {
            attribute: convert(data[key], key)
            for key, (attribute, convert) in fields.items()
            if key in data
        }
        return cls(**values)


@dataclass
class PaletteEntry:
    """One palette colour and the range it belongs to, if any."""

    r: int = 0
    g: int = 0
    b: int = 0
    range: PaletteRange | None = field(default=None, compare=False)

    def to_rgb(self) -> RGB:
        return RGB(float(self.r) * 255, float(self.g) * 255, float(self.b) * 255)

    @classmethod
    def from_json(cls, data: Any) -> PaletteEntry:
        if not isinstance(data, list):
            raise PaletteError(f"palette entry must be an array, got {data!r}")
        components = [_byte(value, "colour component") for value in data[:3]]
        return cls(*components)


@dataclass
class Palette:
    """An indexed palette; ranges are linked to entries on construction."""

    entries: list[PaletteEntry] = field(default_factory=list)
    ranges: list[PaletteRange] = field(default_factory=list)
    company_colour_lighting_contribution: float = 0.0
    default_brightness: float = 0.0
    company_colour_lighting_scale: float = 0.0

    def __post_init__(self) -> None:
        if self.ranges:
            self.set_ranges(self.ranges)

    def set_ranges(self, ranges: list[PaletteRange]) -> None:
        """Replace the ranges and link each covered entry to its range."""
        self.ranges = ranges
        for entry in self.entries:
            entry.range = None

        for number, rng in enumerate(ranges):
            if rng.max_gap_in_region == 0:
                rng.max_gap_in_region = _DEFAULT_MAX_GAP
                rng.expected_colour_range = _DEFAULT_EXPECTED_RANGE

            for colour in range(rng.start, rng.end + 1):
                if colour >= len(self.entries):
                    raise PaletteError(f"range {number} covers colour {colour} outside the palette")
                entry = self.entries[colour]
                if entry.range is not None:
                    raise PaletteError(f"range {number} overlaps colour {colour}")
                entry.range = rng

    def _entry(self, index: int) -> PaletteEntry | None:
        if 0 <= index < len(self.entries):
            return self.entries[index]
        return None

    def _range(self, index: int) -> PaletteRange | None:
        entry = self._entry(index)
        return entry.range if entry is not None else None

    def rgba_palette(self) -> list[tuple[int, int, int, int]]:
        """Return the palette as opaque 8-bit RGBA tuples."""
        return [(e.r, e.g, e.b, 255) for e in self.entries]

    def regular_palette(self) -> list[RGB]:
        """Colours of the palette, with special colours replaced by magenta."""
        return [
            _MAGENTA if self.is_special_colour(i) else entry.to_rgb()
            for i, entry in enumerate(self.entries)
        ]

    def _filtered_palette(self, keep: Callable[[PaletteRange], bool]) -> list[RGB]:
        return [
            entry.to_rgb()
            if entry.range is not None and i not in (0, 255) and keep(entry.range)
            else _MAGENTA
            for i, entry in enumerate(self.entries)
        ]

    def primary_company_colour_palette(self) -> list[RGB]:
        return self._filtered_palette(lambda r: r.is_primary_company_colour)

    def secondary_company_colour_palette(self) -> list[RGB]:
        return self._filtered_palette(lambda r: r.is_secondary_company_colour)

    def animated_palette(self) -> list[RGB]:
        return self._filtered_palette(lambda r: r.is_animated_light)

    def smoothness(self, index: int) -> int:
        rng = self._range(index)
        return rng.smoothness if rng is not None else 0

    def mask_colour(self, index: int) -> int:
        """The index itself for company and animated colours, otherwise 0."""
        rng = self._range(index)
        if rng is not None and (rng.is_company_colour or rng.is_animated_light):
            return index
        return 0

    def is_renderable(self, index: int) -> bool:
        rng = self._range(index)
        return rng is not None and not rng.is_non_renderable

    def is_special_colour(self, index: int) -> bool:
        rng = self._range(index)
        if rng is None:
            return False
        return rng.is_company_colour or rng.is_animated_light or rng.is_non_renderable

    def rgb(self, index: int, resolve_special_colours: bool) -> RGB:
        """The 16-bit colour of an index, optionally resolving special colours to greys."""
        entry = self._entry(index)
        if entry is None:
            return RGB(0.0, 0.0, 0.0)

        output = RGB(float(entry.r * 257), float(entry.g * 257), float(entry.b * 257))
        if not resolve_special_colours or entry.range is None:
            return output

        if entry.range.is_company_colour:
            cc = float((19595 * entry.r + 38470 * entry.g + 7471 * entry.b + (1 << 15)) >> 8)
            contribution = self.company_colour_lighting_contribution
            y = (self.default_brightness * 32767.0 * (1 - contribution)) + (cc * contribution)
            return RGB(y, y, y)

        if entry.range.is_animated_light:
            return _ANIMATED_GREY

        return output

    def lit_indexed(self, index: int, lighting: float) -> int:
        """Shift an index within its range according to a lighting amount."""
        rng = self._range(index)
        if rng is None:
            return index

        spread = (rng.end - rng.start) & 0xFF
        offset_index = float(index) + _round_half_away(float(spread) * (lighting / 2))
        if offset_index < rng.start:
            return rng.start
        if offset_index > rng.end:
            return rng.end
        return int(offset_index)

    def lit_rgb(
        self,
        index: int,
        lighting: float,
        brightness: float,
        contrast: float,
        resolve_special_colours: bool,
        influence: float,
    ) -> RGB:
        """The colour of an index after lighting, brightness and contrast."""
        output = self.rgb(index, resolve_special_colours)

        rng = self.entries[index].range
        if resolve_special_colours and rng is not None and rng.is_company_colour:
            lighting = lighting * self.company_colour_lighting_scale
        if rng is not None and rng.is_animated_light:
            lighting = 0.5

        lighting = clamp(lighting, -1.0, 1.0)

        def light(component: float) -> float:
            if lighting >= 0:
                component = (component * (1 - lighting)) + (65535 * lighting)
            else:
                component = component * (1 + lighting)
            component += brightness
            return (contrast * (component - 32767) + 32767) * influence

        return RGB(light(output.r), light(output.g), light(output.b))


def palette_from_json(source: Any) -> Palette:
    """Build a palette from a JSON document, given as text, bytes or a readable stream."""
    text = source.read() if hasattr(source, "read") else source
    data = json.loads(text)
    if not isinstance(data, dict):
        raise PaletteError("palette document must be a JSON object")

    entries = [PaletteEntry.from_json(item) for item in data.get("entries") or []]
    ranges = [PaletteRange.from_json(item) for item in data.get("ranges") or []]

    palette = Palette(
        entries=entries,
        company_colour_lighting_contribution=_number(
            data.get("company_colour_lighting_contribution", 0.0),
            "company_colour_lighting_contribution",
        ),
        default_brightness=_number(data.get("default_brightness", 0.0), "default_brightness"),
        company_colour_lighting_scale=_number(
            data.get("company_colour_lighting_scale", 0.0), "company_colour_lighting_scale"
        ),
    )
    palette.set_ranges(ranges)
    return palette


def load_palette(filename: str) -> Palette:
    """Read a palette from a JSON file."""
    return instantiate_from_file(filename, palette_from_json)