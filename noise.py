# noise.py
"""
Stochastic and procedural samplers that drive particle motion.

This module provides three independent generators:
- StudentT: a heavy-tailed scalar sampler for fat-tailed random walks.
- SimplexNoise2D: a 2D gradient noise field (simplex lattice).
- PerlinNoise3D: a classic 3D gradient noise field, sampled with a time axis.

All randomness comes from an injected `numpy.random.Generator`, so a fixed
seed reproduces the same permutation tables and the same sample stream.
The lattice evaluations are Numba-jitted because they run once per particle
per frame.
"""
import logging
import math
import numpy as np
from numba import jit
from typing import Optional, Union

from constants import PERMUTATION_SIZE, SIMPLEX_SCALE

# --- Data Contracts ---
#
# class StudentT:
#   - __init__(self, degrees_of_freedom: float, rng: np.random.Generator):
#     - Raises InvalidParameter if degrees_of_freedom is not a positive number.
#   - sample(self) -> float
#   - sample_many(self, size) -> np.ndarray of the given shape.
#     - Side Effects: Advances the shared random generator.
#
# class SimplexNoise2D / PerlinNoise3D:
#   - __init__(self, rng: np.random.Generator):
#     - Side Effects: Draws the permutation table from rng once.
#   - __call__(self, x, y[, z]) -> float or np.ndarray
#     - Inputs: scalars or arrays that broadcast against each other.
#     - Invariants: Deterministic for a fixed permutation table. Output
#       lies in roughly [-1, 1].

Number = Union[float, np.ndarray]


class InvalidParameter(ValueError):
    """Raised when a sampler is constructed with an unusable parameter."""


class StudentT:
    """
    Student's t-distribution sampler.

    Normals come from an explicit Box-Muller transform and the chi-square
    variate is the sum of ceil(dof) squared normals, so fractional degrees
    of freedom still give a usable (slightly lighter) tail.
    """
    def __init__(self, degrees_of_freedom: float, rng: np.random.Generator):
        try:
            dof = float(degrees_of_freedom)
        except (TypeError, ValueError):
            raise InvalidParameter(
                f"Degrees of freedom must be a number, got {degrees_of_freedom!r}."
            )
        if not math.isfinite(dof) or dof <= 0:
            raise InvalidParameter(f"Degrees of freedom must be positive, got {dof}.")

        self.degrees_of_freedom = dof
        self.rng = rng
        self._chi_square_terms = math.ceil(dof)
        logging.debug(f"StudentT sampler created with dof={dof}.")

    def _standard_normal(self, size) -> np.ndarray:
        # 1 - U maps [0, 1) onto (0, 1], keeping log() finite.
        u = 1.0 - self.rng.random(size)
        v = self.rng.random(size)
        return np.sqrt(-2.0 * np.log(u)) * np.cos(2.0 * np.pi * v)

    def _chi_square(self, size) -> np.ndarray:
        result = np.zeros(size)
        for _ in range(self._chi_square_terms):
            normal = self._standard_normal(size)
            result += normal * normal
        return result

    def sample_many(self, size) -> np.ndarray:
        normal = self._standard_normal(size)
        chi_square = self._chi_square(size)
        return normal / np.sqrt(chi_square / self.degrees_of_freedom)

    def sample(self) -> float:
        return float(self.sample_many(1)[0])


# Twelve gradient directions for 2D simplex noise, as (x, y) pairs.
_GRAD2 = np.array([
    [1, 1], [-1, 1], [1, -1], [-1, -1],
    [1, 0], [-1, 0], [1, 0], [-1, 0],
    [0, 1], [0, -1], [0, 1], [0, -1],
], dtype=np.float64)

_F2 = 0.5 * (math.sqrt(3.0) - 1.0)
_G2 = (3.0 - math.sqrt(3.0)) / 6.0


@jit(nopython=True)
def _simplex2d(perm, grad_x, grad_y, x, y):
    """Numba-jitted simplex noise at a single point."""
    # Skew the input space to find the containing simplex cell.
    s = (x + y) * _F2
    i = int(np.floor(x + s))
    j = int(np.floor(y + s))
    t = (i + j) * _G2
    x0 = x - (i - t)
    y0 = y - (j - t)

    # Lower or upper triangle of the cell.
    if x0 > y0:
        i1, j1 = 1, 0
    else:
        i1, j1 = 0, 1

    x1 = x0 - i1 + _G2
    y1 = y0 - j1 + _G2
    x2 = x0 - 1.0 + 2.0 * _G2
    y2 = y0 - 1.0 + 2.0 * _G2

    ii = i & 255
    jj = j & 255

    n0 = 0.0
    t0 = 0.5 - x0 * x0 - y0 * y0
    if t0 >= 0:
        g = ii + perm[jj]
        t0 *= t0
        n0 = t0 * t0 * (grad_x[g] * x0 + grad_y[g] * y0)

    n1 = 0.0
    t1 = 0.5 - x1 * x1 - y1 * y1
    if t1 >= 0:
        g = ii + i1 + perm[jj + j1]
        t1 *= t1
        n1 = t1 * t1 * (grad_x[g] * x1 + grad_y[g] * y1)

    n2 = 0.0
    t2 = 0.5 - x2 * x2 - y2 * y2
    if t2 >= 0:
        g = ii + 1 + perm[jj + 1]
        t2 *= t2
        n2 = t2 * t2 * (grad_x[g] * x2 + grad_y[g] * y2)

    return SIMPLEX_SCALE * (n0 + n1 + n2)


@jit(nopython=True)
def _simplex2d_many(perm, grad_x, grad_y, xs, ys):
    out = np.empty(xs.shape[0])
    for k in range(xs.shape[0]):
        out[k] = _simplex2d(perm, grad_x, grad_y, xs[k], ys[k])
    return out


@jit(nopython=True)
def _fade(t):
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


@jit(nopython=True)
def _lerp(t, a, b):
    return a + t * (b - a)


@jit(nopython=True)
def _grad3(hash_value, x, y, z):
    h = hash_value & 15
    u = x if h < 8 else y
    if h < 4:
        v = y
    elif h == 12 or h == 14:
        v = x
    else:
        v = z
    return (u if (h & 1) == 0 else -u) + (v if (h & 2) == 0 else -v)


@jit(nopython=True)
def _perlin3d(p, x, y, z):
    """Numba-jitted classic gradient noise at a single point."""
    fx = np.floor(x)
    fy = np.floor(y)
    fz = np.floor(z)
    X = int(fx) & 255
    Y = int(fy) & 255
    Z = int(fz) & 255
    x -= fx
    y -= fy
    z -= fz

    u = _fade(x)
    v = _fade(y)
    w = _fade(z)

    # Hash the eight cube corners.
    A = p[X] + Y
    AA = p[A] + Z
    AB = p[A + 1] + Z
    B = p[X + 1] + Y
    BA = p[B] + Z
    BB = p[B + 1] + Z

    return _lerp(
        w,
        _lerp(
            v,
            _lerp(u, _grad3(p[AA], x, y, z), _grad3(p[BA], x - 1, y, z)),
            _lerp(u, _grad3(p[AB], x, y - 1, z), _grad3(p[BB], x - 1, y - 1, z)),
        ),
        _lerp(
            v,
            _lerp(u, _grad3(p[AA + 1], x, y, z - 1), _grad3(p[BA + 1], x - 1, y, z - 1)),
            _lerp(u, _grad3(p[AB + 1], x, y - 1, z - 1), _grad3(p[BB + 1], x - 1, y - 1, z - 1)),
        ),
    )


@jit(nopython=True)
def _perlin3d_many(p, xs, ys, zs):
    out = np.empty(xs.shape[0])
    for k in range(xs.shape[0]):
        out[k] = _perlin3d(p, xs[k], ys[k], zs[k])
    return out


def _flatten(*coords):
    """Broadcasts coordinates together and returns (shape, flat float64 arrays)."""
    arrays = np.broadcast_arrays(*[np.asarray(c, dtype=np.float64) for c in coords])
    shape = arrays[0].shape
    return shape, [np.ascontiguousarray(a).ravel() for a in arrays]


def _reshape(values: np.ndarray, shape) -> Number:
    if shape == ():
        return float(values[0])
    return values.reshape(shape)


class SimplexNoise2D:
    """
    2D simplex noise over a permutation table drawn from `rng`.

    The table is shuffled once at construction and doubled to 512 entries
    so corner lookups never wrap.
    """
    def __init__(self, rng: np.random.Generator):
        perm = np.arange(2 * PERMUTATION_SIZE, dtype=np.int64)
        for i in range(PERMUTATION_SIZE - 1):
            r = i + int(rng.random() * (PERMUTATION_SIZE - i))
            perm[i], perm[r] = perm[r], perm[i]
        perm[PERMUTATION_SIZE:] = perm[:PERMUTATION_SIZE]

        self.perm = perm
        gradients = _GRAD2[perm % 12]
        self.grad_x = np.ascontiguousarray(gradients[:, 0])
        self.grad_y = np.ascontiguousarray(gradients[:, 1])

    def __call__(self, x: Number, y: Number) -> Number:
        shape, (xs, ys) = _flatten(x, y)
        return _reshape(_simplex2d_many(self.perm, self.grad_x, self.grad_y, xs, ys), shape)


class PerlinNoise3D:
    """Classic 3D gradient noise with a 256-entry table doubled to 512."""

    def __init__(self, rng: np.random.Generator):
        table = rng.permutation(PERMUTATION_SIZE).astype(np.int64)
        self.perm = np.concatenate([table, table])

    def __call__(self, x: Number, y: Number, z: Number) -> Number:
        shape, (xs, ys, zs) = _flatten(x, y, z)
        return _reshape(_perlin3d_many(self.perm, xs, ys, zs), shape)


class FieldSources:
    """
    The shared random state every motion rule draws from.

    One instance is built per process and injected into every region, so a
    single seed makes the whole simulation reproducible.
    """
    def __init__(self, rng: np.random.Generator, degrees_of_freedom: float):
        self.rng = rng
        self.student_t = StudentT(degrees_of_freedom, rng)
        self.noise_a = SimplexNoise2D(rng)
        self.noise_b = PerlinNoise3D(rng)

    @classmethod
    def from_seed(cls, seed: Optional[int], degrees_of_freedom: float) -> "FieldSources":
        logging.info(f"Creating field sources (seed={seed}, dof={degrees_of_freedom}).")
        return cls(np.random.default_rng(seed), degrees_of_freedom)
