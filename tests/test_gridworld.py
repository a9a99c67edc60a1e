import numpy as np
import pytest

from gridvi import gridworld
from gridvi.config import ConfigurationError, RewardSpec


def test_reward_layers():
    r = gridworld.build_reward_map(50)
    assert r.shape == (50, 50)

    assert np.allclose(r[39, 39], 0.0)
    assert np.allclose(r[20, 40], -1.0)

    assert np.allclose(r[0, 5], -5.0)
    assert np.allclose(r[5, 0], -5.0)
    assert np.allclose(r[49, 5], -100.0)
    assert np.allclose(r[5, 49], -100.0)
    assert np.allclose(r[0, 0], -5.0)
    assert np.allclose(r[49, 49], -100.0)
    assert np.allclose(r[0, 49], -5.0)
    assert np.allclose(r[49, 0], -5.0)

    assert np.allclose(r[12:25, 12:25], -20.0)
    assert np.allclose(r[11, 12], -1.0)
    assert np.allclose(r[25:31, 25:31], -10.0)
    assert np.allclose(r[31, 31], -1.0)


def test_region_bounds():
    assert gridworld.obstacle_bounds(50) == (12, 25)
    assert gridworld.hazard_bounds(50) == (25, 31)
    assert gridworld.obstacle_bounds(12) == (3, 6)
    assert gridworld.hazard_bounds(12) == (6, 7)
    assert gridworld.goal_cell(12) == (1, 1)


@pytest.mark.parametrize("N", range(12, 41))
def test_values_come_from_layer_constants(N):
    spec = RewardSpec()
    r = gridworld.build_reward_map(N, spec)
    assert set(np.unique(r)) <= set(spec.constants())
    _, hazard_end = gridworld.hazard_bounds(N)
    assert hazard_end <= N


@pytest.mark.parametrize("N", [12, 13, 17, 25, 50])
def test_layer_precedence(N):
    last = N - 1
    rows, cols = np.meshgrid(np.arange(N), np.arange(N), indexing="ij")
    expected = np.full((N, N), gridworld.Layer.BASE)

    boundary = (rows == 0) | (cols == 0) | (rows == last) | (cols == last)
    o0, o1 = gridworld.obstacle_bounds(N)
    obstacle = (rows >= o0) & (rows < o1) & (cols >= o0) & (cols < o1)
    h0, h1 = gridworld.hazard_bounds(N)
    hazard = (rows >= h0) & (rows < h1) & (cols >= h0) & (cols < h1)
    goal = (rows == N - 11) & (cols == N - 11)
    for mask, layer in [
        (boundary, gridworld.Layer.BOUNDARY),
        (obstacle, gridworld.Layer.OBSTACLE),
        (hazard, gridworld.Layer.HAZARD),
        (goal, gridworld.Layer.GOAL),
    ]:
        expected[mask] = layer

    assert np.array_equal(gridworld.layer_map(N), expected)


def test_goal_inside_hazard_square():
    # For N=25 the hazard square [12, 15) covers the goal at (14, 14).
    r = gridworld.build_reward_map(25)
    assert gridworld.hazard_bounds(25) == (12, 15)
    assert np.allclose(r[14, 14], 0.0)
    assert np.allclose(r[13, 13], -10.0)
    assert np.allclose(r[12, 14], -10.0)
    assert gridworld.layer_map(25)[14, 14] == gridworld.Layer.GOAL


def test_goal_applied_last():
    # A hazard value covering everything still leaves the goal at 0.
    spec = RewardSpec(base=-10.0, near_edge=-10.0, far_edge=-10.0, obstacle=-10.0, hazard=-10.0)
    r = gridworld.build_reward_map(12, spec)
    assert np.allclose(r[1, 1], 0.0)
    assert np.count_nonzero(r == 0.0) == 1


def test_disabled_layers():
    spec = RewardSpec(boundary=False, obstacle_zone=False, hazard_zone=False)
    r = gridworld.build_reward_map(12, spec)
    expected = np.full((12, 12), -1.0)
    expected[1, 1] = 0.0
    assert np.array_equal(r, expected)


def test_reward_map_is_read_only():
    r = gridworld.build_reward_map(12)
    with pytest.raises(ValueError):
        r[0, 0] = 1.0


def test_too_small_grid():
    with pytest.raises(ConfigurationError):
        gridworld.Gridworld(11)
