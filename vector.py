# vector.py
"""
A small immutable 2D vector.

Particle positions are stored in NumPy arrays for speed; `Vec` is used at
the edges of the system where a single point is easier to reason about,
such as region corners and single-particle motion steps.
"""
import math
from typing import Iterator


class Vec:
    """An immutable (x, y) pair. Every operation returns a new vector."""

    __slots__ = ("x", "y")

    def __init__(self, x: float, y: float):
        object.__setattr__(self, "x", float(x))
        object.__setattr__(self, "y", float(y))

    def __setattr__(self, name, value):
        raise AttributeError("Vec is immutable")

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y

    def __eq__(self, other) -> bool:
        if not isinstance(other, Vec):
            return NotImplemented
        return self.x == other.x and self.y == other.y

    def __hash__(self) -> int:
        return hash((self.x, self.y))

    def __repr__(self) -> str:
        return f"Vec({self.x!r}, {self.y!r})"

    def add(self, other: "Vec") -> "Vec":
        return Vec(self.x + other.x, self.y + other.y)

    def sub(self, other: "Vec") -> "Vec":
        return Vec(self.x - other.x, self.y - other.y)

    def mul(self, s: float) -> "Vec":
        return Vec(s * self.x, s * self.y)

    __add__ = add
    __sub__ = sub
    __mul__ = mul
    __rmul__ = mul

    def mag(self) -> float:
        return math.hypot(self.x, self.y)

    def normalize(self) -> "Vec":
        """
        Returns the unit vector in the same direction.

        The zero vector has no direction; it is returned unchanged.
        """
        m = self.mag()
        if m == 0.0:
            return Vec(0.0, 0.0)
        return Vec(self.x / m, self.y / m)

    def with_mag(self, mag: float) -> "Vec":
        """A vector with this direction and length `mag`."""
        return self.normalize().mul(mag)

    def dot(self, other: "Vec") -> float:
        return self.x * other.x + self.y * other.y

    def distance(self, other: "Vec") -> float:
        return self.sub(other).mag()

    def reverse(self) -> "Vec":
        return Vec(-self.x, -self.y)
