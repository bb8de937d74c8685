"""Voxel objects and the per-voxel data derived for rendering."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from voxelsprite.geometry import Point, Vector3
from voxelsprite.palette import Palette, PaletteRange

_NORMAL_RADIUS = 3
_NORMAL_AVERAGE_DISTANCE = 1
_OCCLUSION_RADIUS = 4
_ACCESS_BORDER = 8
_DETAIL_DISTANCE = 2


@dataclass
class VoxelObject:
    """Raw voxel colour values indexed as voxels[x][y][z]; 0 means empty."""

    size: Point
    voxels: list[list[list[int]]]

    @classmethod
    def from_voxels(cls, voxels: list[list[list[int]]]) -> VoxelObject:
        sx = len(voxels)
        sy = len(voxels[0]) if sx else 0
        sz = len(voxels[0][0]) if sy else 0
        return cls(Point(sx, sy, sz), voxels)


@dataclass
class ProcessedElement:
    """Derived rendering data for one voxel."""

    normal: Vector3 = field(default_factory=Vector3)
    averaged_normal: Vector3 = field(default_factory=Vector3)
    detail: float = 0.0
    occlusion: int = 0
    index: int = 0
    is_surface: bool = False


@dataclass(frozen=True)
class _StartValues:
    j: tuple[tuple[int, int], ...]
    k: tuple[tuple[tuple[int, int], ...], ...]


_start_values: dict[int, _StartValues] = {}
_start_values_lock = threading.Lock()


def _radius_start_values(radius: int) -> _StartValues:
    """Loop bounds that restrict a cube walk to a sphere of the given radius."""
    with _start_values_lock:
        cached = _start_values.get(radius)
    if cached is not None:
        return cached

    r2 = radius * radius
    j_values = []
    k_values = []
    for i in range(-radius, radius + 1):
        j_min, j_max = radius, -radius
        k_row = []
        for j in range(-radius, radius + 1):
            if i * i + j * j <= r2:
                j_min, j_max = min(j_min, j), max(j_max, j)
            k_min, k_max = radius, -radius
            for k in range(-radius, radius + 1):
                if i * i + j * j + k * k <= r2:
                    k_min, k_max = min(k_min, k), max(k_max, k)
            k_row.append((k_min, k_max))
        k_values.append(tuple(k_row))
        j_values.append((j_min, j_max))

    values = _StartValues(tuple(j_values), tuple(k_values))
    with _start_values_lock:
        _start_values[radius] = values
    return values


def reflect(a: int, n: int) -> int:
    """Mirror a coordinate into [0, n), repeating the edge voxel."""
    b = a % (n * 2)
    return b if b < n else n * 2 - 1 - b


def reflect101(a: int, n: int) -> int:
    """Mirror a coordinate into [0, n) without repeating the edge voxel."""
    b = a % (n * 2 - 2)
    return b if b < n else n * 2 - 2 - b


class ProcessedVoxelObject:
    """A voxel object with surface, normal, occlusion and detail data."""

    def __init__(self, size: Point, palette: Palette) -> None:
        self.size = size
        self.palette = palette
        self.elements: list[list[list[ProcessedElement]]] = []
        self._lookup: list[list[list[int]]] = []

    def safe_get_data(self, x: int, y: int, z: int) -> ProcessedElement:
        """The element at a location, or an empty element outside the object."""
        if 0 <= x < self.size.x and 0 <= y < self.size.y and 0 <= z < self.size.z:
            return self.elements[x][y][z]
        return ProcessedElement()

    def invalid(self) -> bool:
        return self.size.x == 0 or self.size.y == 0 or self.size.z == 0

    def _range(self, index: int) -> PaletteRange | None:
        if 0 <= index < len(self.palette.entries):
            return self.palette.entries[index].range
        return None

    def _is_process_colour(self, index: int) -> bool:
        rng = self._range(index)
        return rng is not None and rng.is_process_colour

    def _is_invisible(self, index: int) -> bool:
        return index == 0 or self._is_process_colour(index)

    def _set_elements(self, raw: VoxelObject, is_tiled: bool, tiling_mode: str, has_base: bool) -> None:
        size = self.size
        border = _ACCESS_BORDER
        sx = size.x * border if size.x < border else size.x
        sy = size.y * border if size.y < border else size.y
        sz = size.z * border if size.z < border else size.z
        voxels = raw.voxels

        def source(x: int, y: int, z: int) -> int:
            if tiling_mode == "repeat":
                return voxels[min(max(x - border, 0), size.x - 1)][min(max(y - border, 0), size.y - 1)][
                    min(max(z - border, 0), size.z - 1)
                ]
            if tiling_mode == "reflect":
                return voxels[reflect(x - border, size.x)][reflect(y - border, size.y)][reflect(z - border, size.z)]
            if tiling_mode == "reflect101":
                return voxels[reflect101(x - border, size.x)][reflect101(y - border, size.y)][
                    reflect101(z - border, size.z)
                ]
            return voxels[(x + sx - border) % size.x][(y + sy - border) % size.y][(z + sz - border) % size.z]

        lookup = []
        for x in range(size.x + border * 2):
            plane = []
            for y in range(size.y + border * 2):
                column = []
                for z in range(size.z + border * 2):
                    value = 1 if not is_tiled or source(x, y, z) == 0 else 0
                    if has_base and z < border:
                        value = 0
                    column.append(value)
                plane.append(column)
            lookup.append(plane)

        elements = []
        for x in range(size.x):
            plane = []
            for y in range(size.y):
                column = []
                for z in range(size.z):
                    value = voxels[x][y][z]
                    element = ProcessedElement()
                    if value != 0:
                        element.index = (value - 2) & 0xFF
                        if not is_tiled:
                            lookup[x + border][y + border][z + border] = 0
                    column.append(element)
                plane.append(column)
            elements.append(plane)

        self.elements = elements
        self._lookup = lookup

    def _positions(self):
        for x in range(self.size.x):
            for y in range(self.size.y):
                for z in range(self.size.z):
                    yield x, y, z

    def _process(self) -> None:
        for x, y, z in self._positions():
            element = self.elements[x][y][z]
            element.is_surface = self._is_surface(x, y, z)
            element.normal = self._calculate_normal(x, y, z)

        for x, y, z in self._positions():
            element = self.elements[x][y][z]
            if element.index != 0 and self._is_process_colour(element.index):
                element.index = 0
            element.averaged_normal = self._average_normal(x, y, z)
            element.occlusion = self.occlusion(x, y, z)
            element.detail = self._detail(x, y, z)

    def _is_surface(self, x: int, y: int, z: int) -> bool:
        e = self.elements
        if self._is_invisible(e[x][y][z].index):
            return False
        if x == 0 or y == 0 or z == 0 or x == self.size.x - 1 or y == self.size.y - 1 or z == self.size.z - 1:
            return True
        return any(
            self._is_invisible(e[x + dx][y + dy][z + dz].index)
            for dx, dy, dz in ((1, 0, 0), (-1, 0, 0), (0, 1, 0), (0, -1, 0), (0, 0, 1), (0, 0, -1))
        )

    def _calculate_normal(self, x: int, y: int, z: int) -> Vector3:
        element = self.elements[x][y][z]
        if not element.is_surface:
            return Vector3()

        radius = max(1, _NORMAL_RADIUS + self.palette.smoothness(element.index) * 2)
        values = _radius_start_values(radius)
        x, y, z = x + _ACCESS_BORDER, y + _ACCESS_BORDER, z + _ACCESS_BORDER

        ti = tj = tk = 0
        for i in range(-radius, radius + 1):
            j_min, j_max = values.j[i + radius]
            plane = self._lookup[x + i]
            k_row = values.k[i + radius]
            for j in range(j_min, j_max + 1):
                k_min, k_max = k_row[j + radius]
                column = plane[y + j]
                for k in range(k_min, k_max + 1):
                    v = column[z + k]
                    ti -= i * v
                    tj -= j * v
                    tk -= k * v

        normal = Vector3(float(ti), float(tj), float(tk))
        return normal.normalise() if normal.length() > 0.01 else normal

    def _safe_distance(self, x: int, y: int, z: int, radius: int) -> tuple[int, int, int, int, int, int]:
        def bounds(c: int, limit: int) -> tuple[int, int]:
            low, high = -radius, radius
            if c + low < 0:
                low -= c + low
            if c + high >= limit - 1:
                high -= (c + high) - (limit - 1)
            return low, high

        return (*bounds(x, self.size.x), *bounds(y, self.size.y), *bounds(z, self.size.z))

    def _average_normal(self, x: int, y: int, z: int) -> Vector3:
        element = self.elements[x][y][z]
        if not element.is_surface:
            return Vector3()
        # Neighbouring normals do not contribute to the result; the voxel's own normal is used.
        return element.normal

    def occlusion(self, x: int, y: int, z: int) -> int:
        """Count surface voxels behind this one's averaged normal, up to 10."""
        element = self.elements[x][y][z]
        if not element.is_surface:
            return 0

        normal = element.averaged_normal
        n = Vector3(float(x), float(y), float(z)) - normal.multiply_by_constant(2.0)
        q, w, e = int(n.x), int(n.y), int(n.z)
        distance = float(_OCCLUSION_RADIUS)

        min_i, max_i, min_j, max_j, min_k, max_k = self._safe_distance(q, w, e, _OCCLUSION_RADIUS)
        count = 0
        for i in range(min_i, max_i + 1):
            for j in range(min_j, max_j + 1):
                for k in range(min_k, max_k + 1):
                    vec = Vector3(float(i), float(j), float(k))
                    if vec.length() < distance and vec.dot(normal) < 0:
                        if self.elements[q + i][w + j][e + k].is_surface:
                            count += 1
                            if count >= 10:
                                return count
        return count

    def _detail(self, x: int, y: int, z: int) -> float:
        element = self.elements[x][y][z]
        if not element.is_surface:
            return 0.0

        this_index = element.index
        this_range = self._range(this_index) or PaletteRange()

        total = diff = 0.0
        min_i, max_i, min_j, max_j, min_k, max_k = self._safe_distance(x, y, z, _DETAIL_DISTANCE)
        for i in range(min_i, max_i + 1):
            for j in range(min_j, max_j + 1):
                for k in range(min_k, max_k + 1):
                    if (i, j, k) == (0, 0, 0):
                        continue
                    other = self.elements[x + i][y + j][z + k]
                    if not other.is_surface:
                        continue
                    total += 1.0
                    elem = other.index
                    elem_range = self._range(elem)
                    if (
                        (elem - this_index) & 0xFF > 2
                        or (this_index - elem) & 0xFF > 2
                        or elem_range is not this_range
                        or (this_range.is_company_colour and elem != this_index)
                    ):
                        diff += 1.0

        return diff / total if total else 0.0


def get_processed_voxel_object(
    voxels: VoxelObject, palette: Palette, is_tiled: bool, tiling_mode: str, has_base: bool
) -> ProcessedVoxelObject:
    """Derive surfaces, normals, occlusion and detail for a raw voxel object."""
    processed = ProcessedVoxelObject(voxels.size, palette)
    processed._set_elements(voxels, is_tiled, tiling_mode, has_base)
    processed._process()
    return processed