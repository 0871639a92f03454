# region.py
"""
Manages one independently animated swarm of particles.

A Region owns a bounding rectangle, a fixed number of particle positions
held in a NumPy array, and a motion rule. Each frame it advances every
particle with its rule, wraps particles that left the rectangle to the
opposite edge, and draws them over a translucent overlay that fades the
previous frames into trails.

Screen coordinates are used throughout: `bottom_left` has the larger y
value and `top_right` the smaller one.
"""
import logging
import math
import numpy as np
import pygame
from numba import jit
from typing import Optional, Tuple, TYPE_CHECKING

from constants import TRAIL_FALLOFF
from motion import MotionRule, Still
from noise import FieldSources
from vector import Vec

if TYPE_CHECKING:
    from settings import RegionSettings

# --- Data Contracts ---
#
# class Region:
#   - __init__(self, radius, color, bottom_left: Vec, top_right: Vec, count: int,
#              motion: MotionRule, sources: Optional[FieldSources], trail: float):
#     - Side Effects: Seeds `count` positions uniformly inside the rectangle
#       using sources.rng.
#     - Invariants:
#       - self.positions is a float64 array of shape (count, 2) for the
#         lifetime of the region. Only its values change.
#       - self.width and self.height are >= 0.
#
#   - update(self) -> None:
#     - Side Effects: Increments self.frame, moves every particle, then
#       wraps it into [left + r, right - r] x [top + r, bottom - r].
#       No-op for a region without particles.
#
#   - draw(self, surface: pygame.Surface) -> None:
#     - Side Effects: Blits the trail overlay over the rectangle, then
#       draws every particle with a radius of at least 1 pixel. No-op for a
#       region without particles.


@jit(nopython=True)
def _wrap_positions_numba(positions, left, right, top, bottom, radius):
    """
    Numba-jitted wraparound pass.

    A particle past an edge (shrunk inward by the radius) teleports to the
    opposite edge. The axes are corrected independently. For a rectangle
    narrower than 2 * radius every particle settles on a single line.
    """
    for i in range(positions.shape[0]):
        if positions[i, 0] < left + radius:
            positions[i, 0] = right - radius
        if positions[i, 0] > right - radius:
            positions[i, 0] = left + radius
        if positions[i, 1] > bottom - radius:
            positions[i, 1] = top + radius
        if positions[i, 1] < top + radius:
            positions[i, 1] = bottom - radius


def trail_alpha(trail: float) -> int:
    """Opacity (0-255) of the black overlay painted before each frame."""
    return int(round(255 * math.exp(-trail / TRAIL_FALLOFF)))


class Region:
    """
    A rectangle of particles that share one motion rule and one style.
    """
    def __init__(
        self,
        radius: float,
        color: Tuple[int, int, int, int],
        bottom_left: Vec,
        top_right: Vec,
        count: int,
        motion: MotionRule,
        sources: Optional[FieldSources],
        trail: float = 0.0,
    ):
        self.radius = float(radius)
        self.color = pygame.Color(*color)
        self.bottom_left = bottom_left
        self.top_right = top_right
        self.width = max(0.0, top_right.x - bottom_left.x)
        self.height = max(0.0, bottom_left.y - top_right.y)
        self.motion = motion
        self.sources = sources
        self.trail = float(trail)
        self.frame = 0

        self.count = int(count)
        if self.count > 0:
            # Seeded inside the area the wrap pass keeps particles in.
            inset_x = min(self.radius, self.width / 2)
            inset_y = min(self.radius, self.height / 2)
            rng = sources.rng
            self.positions = np.column_stack((
                bottom_left.x + inset_x + (self.width - 2 * inset_x) * rng.random(self.count),
                top_right.y + inset_y + (self.height - 2 * inset_y) * rng.random(self.count),
            ))
        else:
            self.positions = np.empty((0, 2), dtype=np.float64)

        # Built on first draw; the rectangle never changes afterwards.
        self._overlay: Optional[pygame.Surface] = None

    @classmethod
    def empty(cls) -> "Region":
        """The canonical zero-particle, zero-size region used for hidden slots."""
        return cls(0.0, (0, 0, 0, 255), Vec(0, 0), Vec(0, 0), 0, Still(), None)

    @classmethod
    def from_settings(cls, settings: "RegionSettings", sources: FieldSources) -> "Region":
        """Builds a freshly seeded region, or an empty one if the settings are hidden."""
        if not settings.visible:
            return cls.empty()
        return cls(
            radius=settings.radius,
            color=settings.color,
            bottom_left=Vec(settings.tlx, settings.tly + settings.sizeh),
            top_right=Vec(settings.tlx + settings.sizew, settings.tly),
            count=settings.count,
            motion=settings.motion_rule(),
            sources=sources,
            trail=settings.tail,
        )

    @property
    def left(self) -> float:
        return self.bottom_left.x

    @property
    def right(self) -> float:
        return self.top_right.x

    @property
    def top(self) -> float:
        return self.top_right.y

    @property
    def bottom(self) -> float:
        return self.bottom_left.y

    def is_empty(self) -> bool:
        return self.count == 0

    def update(self) -> None:
        """Advances every particle by one frame."""
        if self.count == 0:
            return
        self.frame += 1
        moved = self.motion.advance(self.positions, self.frame, self.sources)
        self.positions = np.ascontiguousarray(moved, dtype=np.float64)
        _wrap_positions_numba(
            self.positions, self.left, self.right, self.top, self.bottom, self.radius
        )

    def _build_overlay(self) -> pygame.Surface:
        size = (int(math.ceil(self.width)), int(math.ceil(self.height)))
        overlay = pygame.Surface(size, pygame.SRCALPHA)
        overlay.fill((0, 0, 0, trail_alpha(self.trail)))
        logging.debug(f"Built {size[0]}x{size[1]} trail overlay (alpha {trail_alpha(self.trail)}).")
        return overlay

    def draw(self, surface: pygame.Surface) -> None:
        """Fades the previous frames inside the rectangle, then draws the particles."""
        if self.count == 0:
            return
        if self._overlay is None:
            self._overlay = self._build_overlay()
        surface.blit(self._overlay, (int(self.left), int(self.top)))

        # pygame draws nothing below radius 1.
        draw_radius = max(1.0, self.radius)
        for x, y in self.positions:
            pygame.draw.circle(surface, self.color, (x, y), draw_radius)
