"""Tests for the motion rules and the registry that resolves them."""
import numpy as np
import pytest

from motion import (
    ConstantDirection, GradientFlowA, GradientFlowB, MotionKind, RandomWalk, Still, resolve,
)
from vector import Vec


@pytest.fixture
def positions() -> np.ndarray:
    rng = np.random.default_rng(0)
    return rng.uniform(0, 400, size=(500, 2))


class TestMotionKindParse:
    def test_canonical_names(self):
        for kind in MotionKind:
            assert MotionKind.parse(kind.value) is kind

    @pytest.mark.parametrize("legacy, kind", [
        ("simple", MotionKind.RANDOM_WALK),
        ("studentt", MotionKind.HEAVY_TAILED_WALK),
        ("cosY", MotionKind.SINUSOID_HORIZONTAL),
        ("cosX", MotionKind.SINUSOID_VERTICAL),
        ("cosXY", MotionKind.SINUSOID_BOTH),
        ("direction", MotionKind.CONSTANT_DIRECTION),
        ("simplex", MotionKind.GRADIENT_FLOW_A),
        ("perlin", MotionKind.GRADIENT_FLOW_B),
    ])
    def test_legacy_names(self, legacy, kind):
        assert MotionKind.parse(legacy) is kind

    @pytest.mark.parametrize("unknown", ["spiral", "", None, 42])
    def test_unknown_identifiers_fall_back_to_still(self, unknown):
        assert MotionKind.parse(unknown) is MotionKind.STILL


class TestResolve:
    def test_every_kind_resolves_to_a_rule_of_that_kind(self):
        for kind in MotionKind:
            assert resolve(kind).kind is kind

    def test_constant_direction_carries_its_direction(self):
        rule = resolve("constant-direction", 1.5, -2.0)
        assert rule == ConstantDirection(1.5, -2.0)

    def test_direction_is_ignored_by_other_rules(self):
        assert resolve("still", 3.0, 4.0) == Still()

    def test_unknown_identifier_resolves_to_still(self):
        assert isinstance(resolve("wobble"), Still)


def test_still_returns_identical_positions(positions, sources):
    moved = Still().advance(positions, 1, sources)
    assert moved is not positions
    np.testing.assert_array_equal(moved, positions)


def test_random_walk_steps_are_bounded(positions, sources):
    moved = RandomWalk().advance(positions, 1, sources)
    delta = moved - positions
    assert np.all(np.abs(delta) <= 1.5)
    assert np.any(delta != 0)


def test_random_walk_advances_the_shared_stream(positions, sources):
    first = RandomWalk().advance(positions, 1, sources)
    second = RandomWalk().advance(positions, 1, sources)
    assert not np.array_equal(first, second)


def test_heavy_tailed_walk_moves_every_particle(positions, sources):
    moved = resolve(MotionKind.HEAVY_TAILED_WALK).advance(positions, 1, sources)
    assert moved.shape == positions.shape
    assert np.all(np.isfinite(moved))
    assert np.all(moved != positions)


def test_sinusoid_formulas(positions, sources):
    x, y = positions[:, 0], positions[:, 1]

    horizontal = resolve("sinusoid-horizontal").advance(positions, 1, sources)
    np.testing.assert_allclose(horizontal[:, 0], x + 1)
    np.testing.assert_allclose(horizontal[:, 1], y + np.cos(x / 100))

    vertical = resolve("sinusoid-vertical").advance(positions, 1, sources)
    np.testing.assert_allclose(vertical[:, 0], x + np.cos(y / 100))
    np.testing.assert_allclose(vertical[:, 1], y + 1)

    both = resolve("sinusoid-both").advance(positions, 1, sources)
    np.testing.assert_allclose(both[:, 0], x + np.cos(y / 100))
    np.testing.assert_allclose(both[:, 1], y + np.cos(x / 100))


def test_constant_direction_displaces_exactly(positions, sources):
    moved = ConstantDirection(2.5, -1.25).advance(positions, 1, sources)
    np.testing.assert_array_equal(moved[:, 0], positions[:, 0] + 2.5)
    np.testing.assert_array_equal(moved[:, 1], positions[:, 1] - 1.25)


def test_gradient_flow_a_without_jumps_follows_the_field(positions, sources):
    rule = GradientFlowA(jump_probability=0.0)
    moved = rule.advance(positions, 1, sources)
    expected_x = positions[:, 0] + 1.5 * sources.noise_a(0.02 * positions[:, 0], 0.02 * positions[:, 1])
    np.testing.assert_allclose(moved[:, 0], expected_x)
    assert np.all(np.abs(moved - positions) <= 1.5)


def test_gradient_flow_a_jumps_are_bounded(positions, sources):
    rule = GradientFlowA(jump_probability=1.0)
    delta = rule.advance(positions, 1, sources) - positions
    assert np.all(np.abs(delta) <= 1.5 + 20.0)


def test_gradient_flow_b_takes_unit_steps(positions, sources):
    moved = GradientFlowB().advance(positions, 10, sources)
    lengths = np.linalg.norm(moved - positions, axis=1)
    np.testing.assert_allclose(lengths, 1.0)


def test_gradient_flow_b_without_jitter_depends_only_on_frame(positions, sources):
    rule = GradientFlowB(time_jitter=0.0)
    np.testing.assert_array_equal(
        rule.advance(positions, 7, sources), rule.advance(positions, 7, sources)
    )
    assert not np.array_equal(rule.advance(positions, 7, sources), rule.advance(positions, 40, sources))


def test_step_moves_a_single_vector(sources):
    assert ConstantDirection(1.0, 2.0).step(Vec(10, 20), 1, sources) == Vec(11, 22)
    assert Still().step(Vec(3, 4), 1, sources) == Vec(3, 4)
