"""Vector, point and plane types used throughout the renderer."""

from __future__ import annotations

import math
from dataclasses import dataclass

_EPSILON = 1e-12


@dataclass(frozen=True)
class Vector3:
    """An immutable three-component vector."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: Vector3) -> Vector3:
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vector3) -> Vector3:
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __neg__(self) -> Vector3:
        return Vector3(-self.x, -self.y, -self.z)

    def multiply_by_constant(self, by: float) -> Vector3:
        return Vector3(self.x * by, self.y * by, self.z * by)

    def multiply_by_vector(self, by: Vector3) -> Vector3:
        return Vector3(self.x * by.x, self.y * by.y, self.z * by.z)

    def divide_by_constant(self, by: float) -> Vector3:
        return Vector3(self.x / by, self.y / by, self.z / by)

    def divide_by_vector(self, by: Vector3) -> Vector3:
        return Vector3(self.x / by.x, self.y / by.y, self.z / by.z)

    def length(self) -> float:
        return math.sqrt(self.dot(self))

    def normalise(self) -> Vector3:
        return self.divide_by_constant(self.length())

    def cross(self, other: Vector3) -> Vector3:
        return Vector3(
            (self.y * other.z) - (self.z * other.y),
            (self.z * other.x) - (self.x * other.z),
            (self.x * other.y) - (self.y * other.x),
        )

    def dot(self, other: Vector3) -> float:
        return (self.x * other.x) + (self.y * other.y) + (self.z * other.z)

    def lerp(self, other: Vector3, amount: float) -> Vector3:
        return self.multiply_by_constant(1 - amount) + other.multiply_by_constant(amount)

    def equals(self, other: Vector3) -> bool:
        """True when the two vectors are within a tiny distance of each other."""
        return (self - other).length() < _EPSILON


@dataclass(frozen=True)
class Vector2:
    """An immutable two-component vector."""

    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: Vector2) -> Vector2:
        return Vector2(self.x + other.x, self.y + other.y)

    def distance_squared(self, other: Vector2) -> float:
        return ((self.x - other.x) * (self.x - other.x)) + ((self.y - other.y) * (self.y - other.y))

    def length_squared(self) -> float:
        return self.dot(self)

    def dot(self, other: Vector2) -> float:
        return (self.x * other.x) + (self.y * other.y)

    def divide_by_vector(self, by: Vector2) -> Vector2:
        return Vector2(self.x / by.x, self.y / by.y)


@dataclass(frozen=True)
class Point:
    """An integer voxel coordinate."""

    x: int = 0
    y: int = 0
    z: int = 0

    def to_vector3(self) -> Vector3:
        return Vector3(float(self.x), float(self.y), float(self.z))


@dataclass(frozen=True)
class PointWithColour:
    """A voxel coordinate paired with its palette index."""

    point: Point
    colour: int


@dataclass(frozen=True)
class Plane:
    """A quadrilateral given by its four corners in order."""

    a: Vector3
    b: Vector3
    c: Vector3
    d: Vector3

    def equals(self, other: Plane) -> bool:
        return (
            self.a.equals(other.a)
            and self.b.equals(other.b)
            and self.c.equals(other.c)
            and self.d.equals(other.d)
        )

    def bilerp(self, u: float, v: float) -> Vector3:
        """Bilinearly interpolate a location inside the plane."""
        abu = self.a.lerp(self.b, u)
        dcu = self.d.lerp(self.c, u)
        return dcu.lerp(abu, v)


def zero() -> Vector3:
    return Vector3(0.0, 0.0, 0.0)


def unit_x() -> Vector3:
    return Vector3(1.0, 0.0, 0.0)


def unit_y() -> Vector3:
    return Vector3(0.0, 1.0, 0.0)


def unit_z() -> Vector3:
    return Vector3(0.0, 0.0, 1.0)


def deg_to_rad(angle: float) -> float:
    return (angle / 180.0) * math.pi