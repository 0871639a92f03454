"""Tests for the frame scheduler and the simulation driver."""
import threading

import numpy as np
import pytest

from driver import DriverState, FrameScheduler, SimulationDriver
from settings import RegionSettings


def visible(**overrides):
    values = dict(visible=True, tlx=0, tly=0, sizew=100, sizeh=100, radius=1, count=20,
                  posFn="random-walk", color=[255, 255, 255])
    values.update(overrides)
    return values


@pytest.fixture
def scheduler() -> FrameScheduler:
    return FrameScheduler()


@pytest.fixture
def driver(surface, scheduler, sources) -> SimulationDriver:
    return SimulationDriver(surface, scheduler, sources)


class TestFrameScheduler:
    def test_runs_requested_callbacks_once(self, scheduler):
        calls = []
        scheduler.request(lambda: calls.append("a"))
        scheduler.request(lambda: calls.append("b"))
        assert scheduler.run_frame() == 2
        assert calls == ["a", "b"]
        assert scheduler.run_frame() == 0

    def test_cancelled_callbacks_do_not_run(self, scheduler):
        calls = []
        handle = scheduler.request(lambda: calls.append("a"))
        scheduler.cancel(handle)
        scheduler.cancel(None)
        scheduler.cancel(12345)
        assert scheduler.run_frame() == 0
        assert calls == []

    def test_callbacks_requested_during_a_frame_wait(self, scheduler):
        calls = []

        def again():
            calls.append("tick")
            scheduler.request(again)

        scheduler.request(again)
        scheduler.run_frame()
        scheduler.run_frame()
        assert calls == ["tick", "tick"]
        assert scheduler.pending == 1


class TestDriverLifecycle:
    def test_starts_idle_on_a_black_surface(self, driver, scheduler, surface):
        assert driver.state is DriverState.IDLE
        assert scheduler.pending == 0
        assert tuple(surface.get_at((10, 10)))[:3] == (0, 0, 0)

    def test_first_snapshot_starts_the_frame_loop(self, driver, scheduler):
        driver.apply_snapshot([visible(), visible(tlx=100)])
        assert driver.state is DriverState.RUNNING
        assert len(driver.regions) == 2
        for _ in range(5):
            assert scheduler.run_frame() == 1
        assert driver.frames == 5
        assert all(region.frame == 5 for region in driver.regions)
        assert scheduler.pending == 1

    def test_new_snapshot_reseeds_every_region(self, driver, scheduler):
        driver.apply_snapshot([visible(count=20), visible(tlx=100, count=30)])
        scheduler.run_frame()
        old_first, old_second = driver.regions

        driver.apply_snapshot([visible(count=50), visible(tlx=100, count=30)])
        first, second = driver.regions
        assert first is not old_first
        assert first.positions.shape == (50, 2)
        assert first.frame == 0
        # The unchanged region is rebuilt too, with its own settings intact.
        assert second is not old_second
        assert second.positions.shape == (30, 2)
        assert second.left == 100
        assert not np.array_equal(second.positions, old_second.positions)

    def test_snapshot_replaces_the_pending_frame(self, driver, scheduler):
        driver.apply_snapshot([visible()])
        driver.apply_snapshot([visible()])
        driver.apply_snapshot([visible()])
        assert scheduler.pending == 1
        assert scheduler.run_frame() == 1
        assert driver.frames == 1

    def test_snapshot_clears_the_surface(self, driver, surface):
        driver.apply_snapshot([visible()])
        surface.fill((255, 255, 255))
        driver.apply_snapshot([visible()])
        assert tuple(surface.get_at((150, 150)))[:3] == (0, 0, 0)

    def test_hidden_regions_draw_nothing(self, driver, scheduler, surface):
        driver.apply_snapshot([RegionSettings()] * 16)
        assert len(driver.regions) == 16
        assert all(region.is_empty() for region in driver.regions)
        for _ in range(3):
            scheduler.run_frame()
        assert driver.particle_count() == 0
        assert tuple(surface.get_at((50, 50)))[:3] == (0, 0, 0)

    def test_malformed_snapshot_degrades_to_defaults(self, driver):
        driver.apply_snapshot([{"visible": True, "count": "many", "color": "???"}, "junk"])
        assert driver.regions[0].count == 1000
        assert driver.regions[1].is_empty()


class TestQueuedSnapshots:
    def test_apply_pending_without_snapshots(self, driver):
        assert driver.apply_pending() is False
        assert driver.state is DriverState.IDLE

    def test_only_the_latest_snapshot_is_applied(self, driver):
        driver.submit([visible(count=5)])
        driver.submit([visible(count=7)])
        assert driver.apply_pending() is True
        assert driver.snapshots_applied == 1
        assert driver.regions[0].count == 7

    def test_submit_from_another_thread(self, driver, scheduler):
        worker = threading.Thread(target=driver.submit, args=([visible(count=9)],))
        worker.start()
        worker.join()
        assert driver.regions == []
        driver.apply_pending()
        assert driver.regions[0].count == 9
        assert scheduler.pending == 1


class TestClose:
    def test_close_stops_the_loop(self, driver, scheduler):
        driver.apply_snapshot([visible()])
        scheduler.run_frame()
        driver.close()
        assert driver.state is DriverState.CLOSED
        assert scheduler.pending == 0
        assert scheduler.run_frame() == 0
        assert driver.frames == 1

    def test_snapshots_after_close_are_ignored(self, driver, scheduler):
        driver.close()
        driver.apply_snapshot([visible()])
        driver.submit([visible()])
        driver.apply_pending()
        assert driver.state is DriverState.CLOSED
        assert driver.regions == []
        assert scheduler.pending == 0
