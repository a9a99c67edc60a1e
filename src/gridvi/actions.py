from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Tuple, Union
import numpy as np

from gridvi.config import ActionFamily, MoveCost

State = Tuple[int, int, int]


@dataclass(frozen=True)
class GridAction:
    """Integer displacement (di, dj) on the grid plus a heading step."""
    di: int
    dj: int
    dheading: int = 0


@dataclass(frozen=True)
class HeadingAction:
    """Displacement (dx, dy) in the agent's own frame plus a rotation in radians."""
    dx: float
    dy: float
    drot: float = 0.0


Action = Union[GridAction, HeadingAction]


def discrete_actions() -> Tuple[GridAction, ...]:
    """8-connected moves with no heading change, then the two unit rotations."""
    return (
        GridAction(0, 1),
        GridAction(1, 0),
        GridAction(0, -1),
        GridAction(-1, 0),
        GridAction(1, 1),
        GridAction(-1, 1),
        GridAction(1, -1),
        GridAction(-1, -1),
        GridAction(0, 0, 1),
        GridAction(0, 0, -1),
    )


def continuous_actions(heading_count: int) -> Tuple[HeadingAction, ...]:
    """Heading-relative moves.

    One unit step per heading direction, the four diagonals, and rotations by
    +45, -45 and +90 degrees in place.
    """
    moves = [
        HeadingAction(math.cos(2 * math.pi * k / heading_count), math.sin(2 * math.pi * k / heading_count))
        for k in range(heading_count)
    ]
    diagonals = [HeadingAction(dx, dy) for dx, dy in ((1.0, 1.0), (1.0, -1.0), (-1.0, 1.0), (-1.0, -1.0))]
    rotations = [HeadingAction(0.0, 0.0, r) for r in (math.pi / 4, -math.pi / 4, math.pi / 2)]
    return tuple(moves + diagonals + rotations)


def forward_turn_actions() -> Tuple[HeadingAction, ...]:
    """Turn right by 2 rad, drive forward one cell, turn left by 2 rad."""
    return (
        HeadingAction(0.0, 0.0, -2.0),
        HeadingAction(1.0, 0.0, 0.0),
        HeadingAction(0.0, 0.0, 2.0),
    )


def make_actions(family: ActionFamily, heading_count: int) -> Tuple[Action, ...]:
    family = ActionFamily(family)
    if family == ActionFamily.DISCRETE:
        return discrete_actions()
    if family == ActionFamily.CONTINUOUS:
        return continuous_actions(heading_count)
    return forward_turn_actions()


def _round_half_away(x):
    return np.copysign(np.floor(np.abs(x) + 0.5), x)


def heading_delta(action: Action, heading_count: int) -> int:
    if isinstance(action, GridAction):
        return action.dheading
    return int(_round_half_away(action.drot / (2 * math.pi) * heading_count))


def grid_delta(action: Action, heading, heading_count: int):
    """(drow, dcol) of an action taken while facing ``heading``.

    Heading actions are rotated by angle = heading * 2pi / heading_count and
    rounded to the nearest cell; ``heading`` may be an int or an array.
    """
    if isinstance(action, GridAction):
        return action.di, action.dj
    angle = np.asarray(heading) * 2 * np.pi / heading_count
    drow = _round_half_away(action.dx * np.sin(angle) + action.dy * np.cos(angle))
    dcol = _round_half_away(action.dx * np.cos(angle) - action.dy * np.sin(angle))
    return drow.astype(int), dcol.astype(int)


def move_cost(drow, dcol, mode: MoveCost = MoveCost.EUCLIDEAN):
    """Cost of a displacement: sqrt(2) on both axes, 1.0 otherwise (euclidean)."""
    if mode == MoveCost.NONE:
        return np.zeros(np.broadcast(drow, dcol).shape)
    if mode == MoveCost.UNIFORM:
        return np.ones(np.broadcast(drow, dcol).shape)
    diagonal = (np.asarray(drow) != 0) & (np.asarray(dcol) != 0)
    return np.where(diagonal, math.sqrt(2.0), 1.0)


def next_state(state: State, action: Action, N: int, heading_count: int) -> State:
    """Apply an action, clamping to the grid and wrapping the heading."""
    i, j, theta = state
    drow, dcol = grid_delta(action, theta, heading_count)
    ni = min(max(i + int(drow), 0), N - 1)
    nj = min(max(j + int(dcol), 0), N - 1)
    ntheta = (theta + heading_delta(action, heading_count)) % heading_count
    return ni, nj, ntheta


class TransitionTable:
    def __init__(
        self,
        actions: Tuple[Action, ...],
        rewards: np.ndarray,
        heading_count: int,
        cost_mode: MoveCost = MoveCost.EUCLIDEAN,
    ) -> None:
        """Every (action, state) successor, precomputed once.

        Args:
            actions (Tuple[Action, ...]): Fixed action set.
            rewards (np.ndarray): (N, N) reward map.
            heading_count (int): Number of discrete headings.
            cost_mode (MoveCost, optional): Move cost subtracted in the backup.

        Attributes:
            next_index (np.ndarray): (A, S) flat index into the raveled value table.
            gain (np.ndarray): (A, S) reward(next) - moveCost for that transition.
        """
        N = rewards.shape[0]
        self.shape = (N, N, heading_count)
        self.actions = tuple(actions)
        rows, cols, heads = np.meshgrid(
            np.arange(N), np.arange(N), np.arange(heading_count), indexing="ij"
        )
        n_states = rows.size
        self.next_index = np.empty((len(self.actions), n_states), dtype=np.intp)
        self.gain = np.empty((len(self.actions), n_states), dtype=float)
        headings = np.arange(heading_count)
        for k, action in enumerate(self.actions):
            drow, dcol = grid_delta(action, headings, heading_count)
            drow = np.broadcast_to(drow, headings.shape)[heads]
            dcol = np.broadcast_to(dcol, headings.shape)[heads]
            ni = np.clip(rows + drow, 0, N - 1)
            nj = np.clip(cols + dcol, 0, N - 1)
            ntheta = (heads + heading_delta(action, heading_count)) % heading_count
            self.next_index[k] = np.ravel_multi_index((ni, nj, ntheta), self.shape).ravel()
            self.gain[k] = (rewards[ni, nj] - move_cost(drow, dcol, cost_mode)).ravel()
        self.next_index.flags.writeable = False
        self.gain.flags.writeable = False

    def __len__(self) -> int:
        return len(self.actions)
