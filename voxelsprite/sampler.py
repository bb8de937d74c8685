"""Per-pixel sample patterns used when casting rays."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Callable, Iterator

from PIL import Image

from voxelsprite.geometry import Vector2

_DISC_VARIANTS = 10
_disc_cache: dict[tuple[int, float, int], tuple[Vector2, ...]] = {}


@dataclass(frozen=True)
class Sample:
    """A sample position within the sprite and its weight."""

    location: Vector2
    influence: float


SampleList = list[Sample]


class Samples:
    """Sample lists for every pixel, indexed as samples[x][y]."""

    def __init__(self, columns: list[list[SampleList]]) -> None:
        self._columns = columns

    def __getitem__(self, index: int) -> list[SampleList]:
        return self._columns[index]

    def __len__(self) -> int:
        return len(self._columns)

    def __iter__(self) -> Iterator[list[SampleList]]:
        return iter(self._columns)

    def width(self) -> int:
        return len(self._columns)

    def height(self) -> int:
        return len(self._columns[0])

    def image(self) -> Image.Image:
        """Plot the samples of the first pixel on a 200x200 white image."""
        img = Image.new("RGBA", (200, 200), (255, 255, 255, 255))
        for smp in self._columns[0][0]:
            x = int(100.0 + smp.location.x * 50.0)
            y = int(100.0 + smp.location.y * 50.0)
            if 0 <= x < 200 and 0 <= y < 200:
                img.putpixel((x, y), (int(smp.influence * 255.0) & 0xFF, 0, 0, 255))
        return img


SamplerFunction = Callable[[int, int, int, float, float], Samples]


def get_sampler(name: str) -> SamplerFunction:
    """Look up a sampler by name; unknown names give the square sampler."""
    return {"square": square, "disc": disc}.get(name, square)


def square(width: int, height: int, accuracy: int, overlap: float, falloff: float) -> Samples:
    """A regular accuracy-by-accuracy grid of samples in each pixel."""
    f_accuracy = float(accuracy)
    centre = Vector2(0.5, 0.5)
    fractions = [(1.0 + k) / (1.0 + f_accuracy) for k in range(accuracy)]

    def pixel(i: int, j: int) -> SampleList:
        samples = []
        for fraction_k in fractions:
            for fraction_l in fractions:
                location = Vector2(
                    (float(i * accuracy) + (fraction_k * (1.0 + overlap)) * f_accuracy)
                    / float(width * accuracy),
                    (float(j * accuracy) + (fraction_l * (1.0 + overlap)) * f_accuracy)
                    / float(height * accuracy),
                )
                distance = centre.distance_squared(Vector2(fraction_k, fraction_l))
                influence = 1.0 - (math.pow(distance, falloff) * 2.0)
                if influence < 0:
                    influence = 0.0
                samples.append(Sample(location, influence))
        return samples

    return Samples([[pixel(i, j) for j in range(height)] for i in range(width)])


def disc(width: int, height: int, accuracy: int, overlap: float, falloff: float) -> Samples:
    """Poisson-disc distributed samples in each pixel."""
    radius_squared = (0.5 + overlap) * (0.5 + overlap)
    influence = 1.0 - math.pow(radius_squared, falloff)
    if influence < 0:
        influence = 0.0

    scale = Vector2(float(width), float(height))

    def pixel(i: int, j: int) -> SampleList:
        origin = Vector2(float(i) / scale.x, float(j) / scale.y)
        return [
            Sample(origin + point.divide_by_vector(scale), influence)
            for point in _poisson_disc(accuracy, overlap)
        ]

    return Samples([[pixel(i, j) for j in range(height)] for i in range(width)])


def _poisson_disc(accuracy: int, overlap: float) -> tuple[Vector2, ...]:
    """Pick one of a few cached discs, building it by dart throwing if needed."""
    key = (accuracy, overlap, random.randrange(_DISC_VARIANTS))
    cached = _disc_cache.get(key)
    if cached is not None:
        return cached

    num_samples = accuracy * accuracy
    min_distance = (1.0 / accuracy) ** 2 if accuracy else math.inf
    radius = 0.5 + overlap

    points: list[Vector2] = []
    for _ in range(num_samples * 1000):
        trial = Vector2(
            (random.random() - 0.5) * 2.0 * radius,
            (random.random() - 0.5) * 2.0 * radius,
        )
        if all(
            trial.length_squared() <= radius * radius
            and trial.distance_squared(existing) >= min_distance
            for existing in points
        ):
            points.append(trial)
            if len(points) >= num_samples:
                break

    result = tuple(points)
    _disc_cache[key] = result
    return result