from gridvi.config import (
    ActionFamily,
    ConfigurationError,
    MoveCost,
    RewardSpec,
    ThresholdMode,
    UpdateRule,
    VIConfig,
)
from gridvi.gridworld import Gridworld, Layer, build_reward_map
from gridvi.value_iteration import Status, ValueIteration, VIResult, initial_values, value_iteration

__all__ = [
    "ActionFamily",
    "ConfigurationError",
    "Gridworld",
    "Layer",
    "MoveCost",
    "RewardSpec",
    "Status",
    "ThresholdMode",
    "UpdateRule",
    "VIConfig",
    "VIResult",
    "ValueIteration",
    "build_reward_map",
    "initial_values",
    "value_iteration",
]
