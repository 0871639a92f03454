# motion.py
"""
The library of motion rules and the registry that resolves them.

Each rule advances a whole region at once: it takes the `(N, 2)` array of
particle positions and returns a new array of candidate positions (before
boundary wrapping). Rules that need randomness or a noise field read it
from the injected `FieldSources`, so calling them advances the shared
random stream.
"""
import logging
import numpy as np
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Callable

from constants import (
    RANDOM_WALK_STEP, SINUSOID_PERIOD,
    FLOW_A_SCALE, FLOW_A_MAGNITUDE, FLOW_A_OFFSET,
    FLOW_A_JUMP_PROBABILITY, FLOW_A_JUMP_SIZE,
    FLOW_B_SCALE, FLOW_B_TIME_SCALE, FLOW_B_TIME_JITTER,
)
from noise import FieldSources
from vector import Vec

# --- Data Contracts ---
#
# MotionRule.advance(self, positions: np.ndarray, frame: int, sources: FieldSources) -> np.ndarray
#   - Inputs:
#     - positions: float64 array of shape (N, 2). Not modified.
#     - frame: the region's frame counter after it was incremented.
#     - sources: shared random generator and noise fields.
#   - Outputs: a new float64 array of shape (N, 2).
#   - Side Effects: Stochastic rules draw from sources.rng.
#
# resolve(kind: MotionKind, dirx: float, diry: float) -> MotionRule
#   - Total over MotionKind. Direction values are only used by CONSTANT_DIRECTION.


class MotionKind(Enum):
    STILL = "still"
    RANDOM_WALK = "random-walk"
    HEAVY_TAILED_WALK = "heavy-tailed-walk"
    SINUSOID_HORIZONTAL = "sinusoid-horizontal"
    SINUSOID_VERTICAL = "sinusoid-vertical"
    SINUSOID_BOTH = "sinusoid-both"
    CONSTANT_DIRECTION = "constant-direction"
    GRADIENT_FLOW_A = "gradient-flow-A"
    GRADIENT_FLOW_B = "gradient-flow-B"

    @classmethod
    def parse(cls, identifier) -> "MotionKind":
        """
        Maps an external identifier to a motion kind.

        Accepts canonical names and the legacy names found in older settings
        files. Unknown identifiers fall back to STILL.
        """
        if isinstance(identifier, MotionKind):
            return identifier
        key = str(identifier).strip()
        try:
            return cls(key)
        except ValueError:
            pass
        if key in _LEGACY_NAMES:
            return _LEGACY_NAMES[key]
        logging.warning(f"Unknown motion rule {identifier!r}; falling back to 'still'.")
        return cls.STILL


_LEGACY_NAMES = {
    "simple": MotionKind.RANDOM_WALK,
    "studentt": MotionKind.HEAVY_TAILED_WALK,
    "cosY": MotionKind.SINUSOID_HORIZONTAL,
    "cosX": MotionKind.SINUSOID_VERTICAL,
    "cosXY": MotionKind.SINUSOID_BOTH,
    "direction": MotionKind.CONSTANT_DIRECTION,
    "simplex": MotionKind.GRADIENT_FLOW_A,
    "perlin": MotionKind.GRADIENT_FLOW_B,
}


class MotionRule:
    """Base class for all motion rules."""
    kind: MotionKind

    def advance(self, positions: np.ndarray, frame: int, sources: FieldSources) -> np.ndarray:
        raise NotImplementedError

    def step(self, position: Vec, frame: int, sources: FieldSources) -> Vec:
        """Advances a single position. Uses the same code path as `advance`."""
        moved = self.advance(np.array([[position.x, position.y]]), frame, sources)
        return Vec(moved[0, 0], moved[0, 1])


@dataclass(frozen=True)
class Still(MotionRule):
    kind = MotionKind.STILL

    def advance(self, positions, frame, sources):
        return positions.copy()


@dataclass(frozen=True)
class RandomWalk(MotionRule):
    kind = MotionKind.RANDOM_WALK
    step_size: float = RANDOM_WALK_STEP

    def advance(self, positions, frame, sources):
        return positions + sources.rng.uniform(-self.step_size, self.step_size, size=positions.shape)


@dataclass(frozen=True)
class HeavyTailedWalk(MotionRule):
    kind = MotionKind.HEAVY_TAILED_WALK

    def advance(self, positions, frame, sources):
        return positions + sources.student_t.sample_many(positions.shape)


@dataclass(frozen=True)
class SinusoidHorizontal(MotionRule):
    """Drifts right while bobbing vertically with the x coordinate."""
    kind = MotionKind.SINUSOID_HORIZONTAL

    def advance(self, positions, frame, sources):
        moved = positions.copy()
        moved[:, 0] += 1.0
        moved[:, 1] += np.cos(positions[:, 0] / SINUSOID_PERIOD)
        return moved


@dataclass(frozen=True)
class SinusoidVertical(MotionRule):
    """Drifts down while swaying horizontally with the y coordinate."""
    kind = MotionKind.SINUSOID_VERTICAL

    def advance(self, positions, frame, sources):
        moved = positions.copy()
        moved[:, 0] += np.cos(positions[:, 1] / SINUSOID_PERIOD)
        moved[:, 1] += 1.0
        return moved


@dataclass(frozen=True)
class SinusoidBoth(MotionRule):
    kind = MotionKind.SINUSOID_BOTH

    def advance(self, positions, frame, sources):
        moved = positions.copy()
        moved[:, 0] += np.cos(positions[:, 1] / SINUSOID_PERIOD)
        moved[:, 1] += np.cos(positions[:, 0] / SINUSOID_PERIOD)
        return moved


@dataclass(frozen=True)
class ConstantDirection(MotionRule):
    kind = MotionKind.CONSTANT_DIRECTION
    dx: float = 0.0
    dy: float = 0.0

    def advance(self, positions, frame, sources):
        return positions + np.array([self.dx, self.dy])


@dataclass(frozen=True)
class GradientFlowA(MotionRule):
    """
    Steps along a simplex noise field, with occasional random jumps.

    Each particle jumps with probability `jump_probability` per step; a jump
    displaces both axes by independent uniform amounts of up to half of
    `jump_size`.
    """
    kind = MotionKind.GRADIENT_FLOW_A
    scale: float = FLOW_A_SCALE
    magnitude: float = FLOW_A_MAGNITUDE
    jump_probability: float = FLOW_A_JUMP_PROBABILITY
    jump_size: float = FLOW_A_JUMP_SIZE

    def advance(self, positions, frame, sources):
        n = positions.shape[0]
        sx = self.scale * positions[:, 0]
        sy = self.scale * positions[:, 1]
        off_x, off_y = FLOW_A_OFFSET

        step = np.empty_like(positions)
        step[:, 0] = self.magnitude * sources.noise_a(sx, sy)
        step[:, 1] = self.magnitude * sources.noise_a(sx + off_x, sy + off_y)

        jumping = sources.rng.random(n) < self.jump_probability
        jumps = self.jump_size * (sources.rng.random((n, 2)) - 0.5)
        step[jumping] += jumps[jumping]
        return positions + step


@dataclass(frozen=True)
class GradientFlowB(MotionRule):
    """
    Steps one unit in the direction of a Perlin angle field.

    The field evolves along its time axis with the frame counter; a small
    per-particle jitter on the time coordinate keeps neighbouring particles
    from locking into identical streamlines.
    """
    kind = MotionKind.GRADIENT_FLOW_B
    scale: float = FLOW_B_SCALE
    time_scale: float = FLOW_B_TIME_SCALE
    time_jitter: float = FLOW_B_TIME_JITTER

    def advance(self, positions, frame, sources):
        n = positions.shape[0]
        jitter = sources.rng.uniform(-self.time_jitter, self.time_jitter, size=n)
        z = frame / self.time_scale + jitter
        theta = np.pi * sources.noise_b(self.scale * positions[:, 0], self.scale * positions[:, 1], z)
        return positions + np.column_stack((np.cos(theta), np.sin(theta)))


_REGISTRY: Dict[MotionKind, Callable[[float, float], MotionRule]] = {
    MotionKind.STILL: lambda dx, dy: Still(),
    MotionKind.RANDOM_WALK: lambda dx, dy: RandomWalk(),
    MotionKind.HEAVY_TAILED_WALK: lambda dx, dy: HeavyTailedWalk(),
    MotionKind.SINUSOID_HORIZONTAL: lambda dx, dy: SinusoidHorizontal(),
    MotionKind.SINUSOID_VERTICAL: lambda dx, dy: SinusoidVertical(),
    MotionKind.SINUSOID_BOTH: lambda dx, dy: SinusoidBoth(),
    MotionKind.CONSTANT_DIRECTION: lambda dx, dy: ConstantDirection(float(dx), float(dy)),
    MotionKind.GRADIENT_FLOW_A: lambda dx, dy: GradientFlowA(),
    MotionKind.GRADIENT_FLOW_B: lambda dx, dy: GradientFlowB(),
}


def resolve(kind, dirx: float = 0.0, diry: float = 0.0) -> MotionRule:
    """Builds the motion rule for `kind` (a MotionKind or an external identifier)."""
    return _REGISTRY[MotionKind.parse(kind)](dirx, diry)
