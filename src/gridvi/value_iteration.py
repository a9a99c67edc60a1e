from __future__ import annotations
import enum
import time
from dataclasses import dataclass, field
from typing import List, Optional, Tuple
import numpy as np

from gridvi.actions import Action, State, TransitionTable, grid_delta, make_actions, move_cost, next_state
from gridvi.config import ConfigurationError, UpdateRule, VIConfig
from gridvi.gridworld import build_reward_map


class Status(enum.Enum):
    RUNNING = "running"
    CONVERGED = "converged"
    MAX_ITER_EXCEEDED = "max_iter_exceeded"


@dataclass
class VIResult:
    values: np.ndarray
    status: Status
    iterations: int
    delta: float
    deltas: List[float] = field(default_factory=list)
    elapsed: float = 0.0

    @property
    def converged(self) -> bool:
        return self.status == Status.CONVERGED


def initial_values(cfg: VIConfig) -> np.ndarray:
    """(N, N, H) table filled with cfg.init_value, then zero at the goal for every heading."""
    values = np.full((cfg.grid_size, cfg.grid_size, cfg.heading_count), cfg.init_value, dtype=float)
    gi, gj = cfg.goal
    values[gi, gj, :] = 0.0
    return values


def _q_value(
    values: np.ndarray, rewards: np.ndarray, state: State, action: Action, cfg: VIConfig
) -> float:
    N, _, H = values.shape
    ni, nj, ntheta = next_state(state, action, N, H)
    drow, dcol = grid_delta(action, state[2], H)
    cost = float(move_cost(drow, dcol, cfg.cost_mode))
    return rewards[ni, nj] + cfg.gamma * values[ni, nj, ntheta] - cost


def backup(
    values: np.ndarray, rewards: np.ndarray, state: State, actions: Tuple[Action, ...], cfg: VIConfig
) -> float:
    """Bellman optimality backup of a single state: max over every action."""
    best = -np.inf
    for a in actions:
        best = max(best, _q_value(values, rewards, state, a, cfg))
    return best


def sampled_backup(
    values: np.ndarray,
    rewards: np.ndarray,
    state: State,
    actions: Tuple[Action, ...],
    cfg: VIConfig,
    rng: np.random.Generator,
) -> float:
    """Average of cfg.sample_count one-step lookaheads over uniformly drawn actions.

    This is a Monte-Carlo estimate of a uniform-random-policy backup, not the
    Bellman optimality backup, so its fixed point is in general different from
    the one reached by ``backup``.
    """
    picks = rng.integers(0, len(actions), size=cfg.sample_count)
    return float(np.mean([_q_value(values, rewards, state, actions[k], cfg) for k in picks]))


class ValueIteration:
    def __init__(
        self,
        cfg: VIConfig,
        rewards: Optional[np.ndarray] = None,
        actions: Optional[Tuple[Action, ...]] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        """Synchronous value iteration over (row, col, heading).

        Every sweep reads only the table produced by the previous sweep. Two
        buffers alternate so that no sweep writes into the table it is reading.

        Args:
            cfg (VIConfig): Run configuration.
            rewards (np.ndarray, optional): (N, N) reward map. Defaults to the layered map for cfg.
            actions (Tuple[Action, ...], optional): Action set. Defaults to cfg.action_family.
            rng (np.random.Generator, optional): Source for the sampled rule. Defaults to
                np.random.default_rng(cfg.seed).
        """
        self.cfg = cfg
        N, H = cfg.grid_size, cfg.heading_count
        if rewards is None:
            self.rewards = build_reward_map(N, cfg.rewards)
        else:
            self.rewards = np.array(rewards, dtype=float)
            self.rewards.flags.writeable = False
        if self.rewards.shape != (N, N):
            raise ConfigurationError(f"reward map must have shape {(N, N)}, got {self.rewards.shape}")
        self.actions = tuple(make_actions(cfg.action_family, H) if actions is None else actions)
        if not self.actions:
            raise ConfigurationError("action set is empty")
        self.rng = np.random.default_rng(cfg.seed) if rng is None else rng

        self.table = TransitionTable(self.actions, self.rewards, H, cfg.cost_mode)
        self.values = initial_values(cfg)
        self._buffer = np.empty_like(self.values)
        gi, gj = cfg.goal
        self._goal_index = np.ravel_multi_index(
            (np.full(H, gi), np.full(H, gj), np.arange(H)), self.values.shape
        )

        self.iteration = 0
        self.delta = np.inf
        self.deltas: List[float] = []
        self.status = Status.RUNNING
        self.elapsed = 0.0

    def sweep(self) -> float:
        """One full synchronous sweep. Returns the max absolute change."""
        old = self.values.reshape(-1)
        new = self._buffer.reshape(-1)
        gain, nxt = self.table.gain, self.table.next_index
        gamma = self.cfg.gamma

        if self.cfg.update_rule == UpdateRule.EXACT:
            np.add(gain[0], gamma * old[nxt[0]], out=new)
            for k in range(1, len(self.table)):
                np.maximum(new, gain[k] + gamma * old[nxt[k]], out=new)
        else:
            states = np.arange(old.size)
            new.fill(0.0)
            for _ in range(self.cfg.sample_count):
                picks = self.rng.integers(0, len(self.table), size=old.size)
                new += gain[picks, states] + gamma * old[nxt[picks, states]]
            new /= self.cfg.sample_count

        new[self._goal_index] = 0.0
        delta = float(np.max(np.abs(new - old)))

        self.values, self._buffer = self._buffer, self.values
        self.iteration += 1
        self.delta = delta
        self.deltas.append(delta)
        return delta

    def run(self, verbose: bool = False) -> VIResult:
        if self.status == Status.CONVERGED:
            return self.result()
        threshold = self.cfg.stop_threshold
        start = time.perf_counter()
        while self.iteration < self.cfg.max_iter:
            delta = self.sweep()
            if verbose:
                print(f"iter {self.iteration:5d}  delta={delta:.6g}")
            if delta < threshold:
                self.status = Status.CONVERGED
                break
        else:
            self.status = Status.MAX_ITER_EXCEEDED
        self.elapsed += time.perf_counter() - start

        if verbose:
            if self.status == Status.CONVERGED:
                print(f"Converged after {self.iteration} iterations (delta={self.delta:.3g} < {threshold:g})")
            else:
                print(f"Not converged within {self.cfg.max_iter} iterations (delta={self.delta:.3g}); using best effort")
        return self.result()

    def result(self) -> VIResult:
        return VIResult(
            values=self.values.copy(),
            status=self.status,
            iterations=self.iteration,
            delta=self.delta,
            deltas=list(self.deltas),
            elapsed=self.elapsed,
        )


def value_iteration(cfg: VIConfig, verbose: bool = False) -> VIResult:
    return ValueIteration(cfg).run(verbose=verbose)
