# driver.py
"""
Owns the active set of regions and runs the per-frame update/draw cycle.

The driver never loops by itself. Each frame is a callback registered with
a FrameScheduler; the callback updates and draws every region and then
registers itself again. The host (the pygame window loop, or a test) decides
when a frame happens by calling `FrameScheduler.run_frame`.

Configuration snapshots may arrive from another thread through `submit`.
They are queued and applied by `apply_pending`, which the host calls
between frames, so a snapshot is never applied while a frame is running.
"""
import logging
import queue
import pygame
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from constants import BACKGROUND_COLOR
from noise import FieldSources
from region import Region
from settings import parse_snapshot

# --- Data Contracts ---
#
# class FrameScheduler:
#   - request(self, callback) -> int: registers callback for the next frame.
#   - cancel(self, handle) -> None: unregisters it. Unknown handles are ignored.
#   - run_frame(self) -> int: runs the callbacks registered before the call
#     and returns how many ran. Callbacks registered during the run wait for
#     the next frame.
#
# class SimulationDriver:
#   - apply_snapshot(self, snapshot) -> None:
#     - Side Effects: Cancels the pending frame, rebuilds every region from
#       scratch, clears the surface to black and schedules the next frame.
#     - Invariants: At most one frame callback is pending at any time.
#   - submit(self, snapshot) -> None: thread-safe; queues the snapshot.
#   - apply_pending(self) -> bool: applies the newest queued snapshot.
#   - close(self) -> None: no further frames or snapshots after this.


_NOTHING = object()


class FrameScheduler:
    """A 'call me on the next frame' primitive."""

    def __init__(self):
        self._callbacks: Dict[int, Callable[[], None]] = {}
        self._next_handle = 1

    def request(self, callback: Callable[[], None]) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._callbacks[handle] = callback
        return handle

    def cancel(self, handle: Optional[int]) -> None:
        self._callbacks.pop(handle, None)

    @property
    def pending(self) -> int:
        return len(self._callbacks)

    def run_frame(self) -> int:
        due = list(self._callbacks.items())
        ran = 0
        for handle, callback in due:
            # A callback earlier in this frame may have cancelled this one.
            if self._callbacks.pop(handle, None) is None:
                continue
            callback()
            ran += 1
        return ran


class DriverState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    CLOSED = "closed"


class SimulationDriver:
    """
    Rebuilds regions on every configuration snapshot and animates them.
    """
    def __init__(self, surface: pygame.Surface, scheduler: FrameScheduler, sources: FieldSources):
        self.surface = surface
        self.scheduler = scheduler
        self.sources = sources
        self.regions: List[Region] = []
        self.state = DriverState.IDLE
        self.frames = 0
        self.snapshots_applied = 0
        self._frame_handle: Optional[int] = None
        self._inbox: "queue.Queue[List[Any]]" = queue.Queue()

        self.surface.fill(BACKGROUND_COLOR)
        logging.info("Simulation driver initialized (idle).")

    def submit(self, snapshot: List[Any]) -> None:
        """Queues a snapshot. Safe to call from any thread."""
        self._inbox.put(snapshot)

    def apply_pending(self) -> bool:
        """
        Applies the most recent queued snapshot, if any.

        Older snapshots queued since the last call are superseded, since
        every snapshot rebuilds all regions anyway.
        """
        latest = _NOTHING
        skipped = -1
        while True:
            try:
                latest = self._inbox.get_nowait()
            except queue.Empty:
                break
            skipped += 1
        if latest is _NOTHING:
            return False
        if skipped > 0:
            logging.debug(f"Skipped {skipped} superseded settings snapshots.")
        self.apply_snapshot(latest)
        return True

    def apply_snapshot(self, snapshot: List[Any]) -> None:
        """Replaces every region with a freshly seeded one built from `snapshot`."""
        if self.state is DriverState.CLOSED:
            logging.debug("Ignoring settings snapshot after close.")
            return

        settings = parse_snapshot(snapshot)

        self.scheduler.cancel(self._frame_handle)
        self._frame_handle = None

        self.regions = [Region.from_settings(s, self.sources) for s in settings]
        self.surface.fill(BACKGROUND_COLOR)
        self.snapshots_applied += 1

        visible = sum(1 for r in self.regions if not r.is_empty())
        particles = self.particle_count()
        logging.info(
            f"Applied settings snapshot #{self.snapshots_applied}: "
            f"{visible}/{len(self.regions)} visible regions, {particles} particles."
        )

        self.state = DriverState.RUNNING
        self._frame_handle = self.scheduler.request(self._on_frame)

    def _on_frame(self) -> None:
        self._frame_handle = None
        if self.state is not DriverState.RUNNING:
            return
        for region in self.regions:
            region.update()
            region.draw(self.surface)
        self.frames += 1
        self._frame_handle = self.scheduler.request(self._on_frame)

    def particle_count(self) -> int:
        return sum(r.count for r in self.regions)

    def close(self) -> None:
        """Stops scheduling frames. Further snapshots and frames are ignored."""
        if self.state is DriverState.CLOSED:
            return
        self.scheduler.cancel(self._frame_handle)
        self._frame_handle = None
        self.state = DriverState.CLOSED
        logging.info(f"Simulation driver closed after {self.frames} frames.")
