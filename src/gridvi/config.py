from __future__ import annotations
import enum
import json
import math
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

MIN_GRID_SIZE = 12
GOAL_OFFSET = 11


class ConfigurationError(ValueError):
    """Raised when a run is configured with values the engine cannot use."""


class ActionFamily(str, enum.Enum):
    DISCRETE = "discrete"
    CONTINUOUS = "continuous"
    FORWARD_TURN = "forward_turn"


class UpdateRule(str, enum.Enum):
    EXACT = "exact"
    SAMPLED = "sampled"


class MoveCost(str, enum.Enum):
    EUCLIDEAN = "euclidean"
    UNIFORM = "uniform"
    NONE = "none"


class ThresholdMode(str, enum.Enum):
    ABSOLUTE = "absolute"
    OFFSET = "offset"


def _coerce(enum_cls, value, name: str):
    try:
        return enum_cls(value)
    except ValueError:
        choices = ", ".join(m.value for m in enum_cls)
        raise ConfigurationError(f"{name}={value!r} is not one of: {choices}") from None


@dataclass(frozen=True)
class RewardSpec:
    """Reward constants for each layer of the reward map.

    Args:
        base (float): Cost of living applied to every cell first.
        near_edge (float): Penalty for row 0 and column 0.
        far_edge (float): Penalty for the last row and the last column.
        obstacle (float): Penalty inside the obstacle square.
        hazard (float): Penalty inside the hazard (puddle) square.
        goal (float): Reward at the goal cell, applied last.
        boundary, obstacle_zone, hazard_zone (bool): Switch a layer off.
    """
    base: float = -1.0
    near_edge: float = -5.0
    far_edge: float = -100.0
    obstacle: float = -20.0
    hazard: float = -10.0
    goal: float = 0.0
    boundary: bool = True
    obstacle_zone: bool = True
    hazard_zone: bool = True

    def constants(self) -> Tuple[float, ...]:
        """Every value a cell of the reward map can take."""
        return (self.base, self.near_edge, self.far_edge, self.obstacle, self.hazard, self.goal)


@dataclass
class VIConfig:
    grid_size: int = 50
    heading_count: int = 36
    gamma: float = 1.0
    threshold: float = 1e-6
    threshold_mode: ThresholdMode = ThresholdMode.ABSOLUTE
    max_iter: int = 1000
    action_family: ActionFamily = ActionFamily.DISCRETE
    update_rule: UpdateRule = UpdateRule.EXACT
    move_cost: Optional[MoveCost] = None
    sample_count: int = 10
    seed: Optional[int] = None
    init_value: float = -100.0
    rewards: RewardSpec = field(default_factory=RewardSpec)

    def __post_init__(self) -> None:
        self.action_family = _coerce(ActionFamily, self.action_family, "action_family")
        self.update_rule = _coerce(UpdateRule, self.update_rule, "update_rule")
        if self.move_cost is not None:
            self.move_cost = _coerce(MoveCost, self.move_cost, "move_cost")
        self.threshold_mode = _coerce(ThresholdMode, self.threshold_mode, "threshold_mode")
        if isinstance(self.rewards, dict):
            try:
                self.rewards = RewardSpec(**self.rewards)
            except TypeError as err:
                raise ConfigurationError(f"bad rewards section: {err}") from None
        if not isinstance(self.rewards, RewardSpec):
            raise ConfigurationError(f"rewards must be a RewardSpec or a mapping, got {self.rewards!r}")
        self.validate()

    def validate(self) -> None:
        """Fail fast on values that would make the goal or the loop ill-defined."""
        if not _is_int(self.grid_size) or self.grid_size < MIN_GRID_SIZE:
            raise ConfigurationError(f"grid_size must be an integer >= {MIN_GRID_SIZE}, got {self.grid_size!r}")
        if not _is_int(self.heading_count) or self.heading_count < 1:
            raise ConfigurationError(f"heading_count must be a positive integer, got {self.heading_count!r}")
        if not _is_number(self.gamma) or not 0.0 < self.gamma <= 1.0:
            raise ConfigurationError(f"gamma must lie in (0, 1], got {self.gamma!r}")
        if not _is_finite(self.threshold) or not self.threshold > 0.0:
            raise ConfigurationError(f"threshold must be positive and finite, got {self.threshold!r}")
        if not _is_finite(self.init_value):
            raise ConfigurationError(f"init_value must be a finite number, got {self.init_value!r}")
        if not _is_int(self.max_iter) or self.max_iter < 1:
            raise ConfigurationError(f"max_iter must be a positive integer, got {self.max_iter!r}")
        if not _is_int(self.sample_count) or self.sample_count < 1:
            raise ConfigurationError(f"sample_count must be a positive integer, got {self.sample_count!r}")
        if self.seed is not None and not _is_int(self.seed):
            raise ConfigurationError(f"seed must be an integer or None, got {self.seed!r}")
        for f in fields(RewardSpec):
            value = getattr(self.rewards, f.name)
            if f.type in (bool, "bool"):
                if not isinstance(value, bool):
                    raise ConfigurationError(f"rewards.{f.name} must be true or false, got {value!r}")
            elif not _is_finite(value):
                raise ConfigurationError(f"rewards.{f.name} must be a finite number, got {value!r}")

    @property
    def goal(self) -> Tuple[int, int]:
        return (self.grid_size - GOAL_OFFSET, self.grid_size - GOAL_OFFSET)

    @property
    def cost_mode(self) -> MoveCost:
        """Move cost in effect: euclidean for the exact rule, none for the sampled one, unless set."""
        if self.move_cost is not None:
            return self.move_cost
        return MoveCost.EUCLIDEAN if self.update_rule == UpdateRule.EXACT else MoveCost.NONE

    @property
    def stop_threshold(self) -> float:
        # The offset convention compares against 1.0 + eps; kept as found, see DESIGN.md.
        if self.threshold_mode == ThresholdMode.OFFSET:
            return 1.0 + self.threshold
        return self.threshold

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> VIConfig:
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"unknown config keys: {', '.join(unknown)}")
        return cls(**data)

    @classmethod
    def from_json(cls, path: Path) -> VIConfig:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config not found: {path}")
        with path.open("r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as err:
                raise ConfigurationError(f"{path} is not valid JSON: {err}") from err
        if not isinstance(data, dict):
            raise ConfigurationError(f"{path} must hold a JSON object")
        return cls.from_dict(data)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_finite(value: Any) -> bool:
    return _is_number(value) and math.isfinite(value)
