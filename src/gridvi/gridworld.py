from __future__ import annotations
import enum
from typing import Tuple
import numpy as np

from gridvi.config import GOAL_OFFSET, MIN_GRID_SIZE, ConfigurationError, RewardSpec


class Layer(enum.IntEnum):
    """Rule that assigned a cell its reward, in order of application."""
    BASE = 0
    BOUNDARY = 1
    OBSTACLE = 2
    HAZARD = 3
    GOAL = 4


def goal_cell(N: int) -> Tuple[int, int]:
    return (N - GOAL_OFFSET, N - GOAL_OFFSET)


def obstacle_bounds(N: int) -> Tuple[int, int]:
    """[start, end) of the obstacle square along both axes."""
    return N // 4, 2 * N // 4


def hazard_bounds(N: int) -> Tuple[int, int]:
    """[start, end) of the hazard square, clipped to the grid."""
    obstacle_start, obstacle_end = obstacle_bounds(N)
    end = obstacle_end + (obstacle_end - obstacle_start) // 2
    return obstacle_end, min(end, N)


class Gridworld:
    def __init__(self, N: int, rewards: RewardSpec = RewardSpec()) -> None:
        """Reward landscape of an N x N grid.

        Rules are layered in a fixed order (base, boundary, obstacle, hazard, goal)
        so that a later rule always overrides an earlier one on overlapping cells.

        Args:
            N (int): Determines the size of the map (N x N). Must be >= 12.
            rewards (RewardSpec, optional): Layer constants. Defaults to RewardSpec().
        """
        if N < MIN_GRID_SIZE:
            raise ConfigurationError(f"grid size must be >= {MIN_GRID_SIZE}, got {N}")
        self.N = N
        self.spec = rewards
        self.goal = goal_cell(N)
        self.map = np.full((N, N), rewards.base, dtype=float)
        self.layers = np.full((N, N), Layer.BASE, dtype=np.int8)

        if rewards.boundary:
            self._set_boundaries()
        if rewards.obstacle_zone:
            self._add_square(obstacle_bounds(N), Layer.OBSTACLE, rewards.obstacle)
        if rewards.hazard_zone:
            self._add_square(hazard_bounds(N), Layer.HAZARD, rewards.hazard)
        self._add_entity(np.array([self.goal]), Layer.GOAL, rewards.goal)

        self.map.flags.writeable = False
        self.layers.flags.writeable = False

    def _add_entity(self, locations: np.ndarray, layer: Layer, value: float) -> None:
        mask = self._to_bool_map(locations)
        self.map[mask] = value
        self.layers[mask] = layer

    def _to_bool_map(self, locations: np.ndarray) -> np.ndarray:
        int_locations = locations.astype(int).reshape(-1, 2)
        ret = np.zeros_like(self.map, dtype=bool)
        ret[int_locations[:, 0], int_locations[:, 1]] = True
        return ret

    def _set_boundaries(self) -> None:
        last = self.N - 1
        # Far edges first: the mixed corners (0, N-1) and (N-1, 0) take the near-edge penalty.
        self.map[last, :] = self.spec.far_edge
        self.map[:, last] = self.spec.far_edge
        self.map[0, :] = self.spec.near_edge
        self.map[:, 0] = self.spec.near_edge
        for edge in (np.s_[0, :], np.s_[:, 0], np.s_[last, :], np.s_[:, last]):
            self.layers[edge] = Layer.BOUNDARY

    def _add_square(self, bounds: Tuple[int, int], layer: Layer, value: float) -> None:
        start, end = bounds
        start, end = max(start, 0), min(end, self.N)
        if start >= end:
            return
        self.map[start:end, start:end] = value
        self.layers[start:end, start:end] = layer


def build_reward_map(N: int, rewards: RewardSpec = RewardSpec()) -> np.ndarray:
    """Read-only (N, N) reward array; see Gridworld for the layer order."""
    return Gridworld(N, rewards).map


def layer_map(N: int, rewards: RewardSpec = RewardSpec()) -> np.ndarray:
    """(N, N) array of Layer values naming the rule that won each cell."""
    return Gridworld(N, rewards).layers
