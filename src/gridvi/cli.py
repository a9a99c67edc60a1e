from __future__ import annotations
import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional
import numpy as np

from gridvi.config import ActionFamily, ConfigurationError, MoveCost, ThresholdMode, UpdateRule, VIConfig
from gridvi.render import RenderingError, heading_slice, plot_heatmap
from gridvi.value_iteration import ValueIteration

# CLI flag -> VIConfig field
OVERRIDES = {
    "size": "grid_size",
    "headings": "heading_count",
    "gamma": "gamma",
    "threshold": "threshold",
    "threshold_mode": "threshold_mode",
    "max_iter": "max_iter",
    "actions": "action_family",
    "rule": "update_rule",
    "move_cost": "move_cost",
    "samples": "sample_count",
    "seed": "seed",
    "init_value": "init_value",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Value iteration over a grid with a heading dimension")
    parser.add_argument("--config", type=Path, help="JSON file with VIConfig fields")
    parser.add_argument("--size", type=int, help="grid size N (>= 12)")
    parser.add_argument("--headings", type=int, help="number of discrete headings")
    parser.add_argument("--gamma", type=float, help="discount factor in (0, 1]")
    parser.add_argument("--threshold", type=float, help="convergence threshold eps")
    parser.add_argument("--threshold-mode", choices=[m.value for m in ThresholdMode], help="absolute: delta < eps, offset: delta < 1 + eps")
    parser.add_argument("--max-iter", type=int, help="iteration cap")
    parser.add_argument("--actions", choices=[f.value for f in ActionFamily], help="action family")
    parser.add_argument("--rule", choices=[r.value for r in UpdateRule], help="exact max backup or sampled average")
    parser.add_argument("--move-cost", choices=[c.value for c in MoveCost], help="move cost subtracted in the backup")
    parser.add_argument("--samples", type=int, help="actions drawn per state (sampled rule)")
    parser.add_argument("--seed", type=int, help="random seed (sampled rule)")
    parser.add_argument("--init-value", type=float, help="initial value of non-goal states")
    parser.add_argument("--heading", type=int, default=0, help="heading slice to render")
    parser.add_argument("--output", type=Path, default=Path("values_heatmap.png"), help="heatmap image path")
    parser.add_argument("--save-values", type=Path, help="write the full value table as .npy")
    parser.add_argument("--quiet", action="store_true", help="suppress per-iteration output")
    return parser


def load_config(args: argparse.Namespace) -> VIConfig:
    cfg = VIConfig.from_json(args.config) if args.config else VIConfig()
    changes = {field: getattr(args, flag) for flag, field in OVERRIDES.items() if getattr(args, flag) is not None}
    return replace(cfg, **changes) if changes else cfg


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        cfg = load_config(args)
    except (ConfigurationError, FileNotFoundError) as err:
        print(f"error: {err}", file=sys.stderr)
        return 2
    if not 0 <= args.heading < cfg.heading_count:
        print(f"error: --heading must lie in [0, {cfg.heading_count})", file=sys.stderr)
        return 2

    vi = ValueIteration(cfg)
    result = vi.run(verbose=not args.quiet)
    print(f"Elapsed: {result.elapsed:.3f}s, status: {result.status.value}, iterations: {result.iterations}")

    if args.save_values:
        np.save(args.save_values, result.values)
        print(f"Saved value table {result.values.shape} to {args.save_values}")

    try:
        values_2d = heading_slice(result.values, args.heading)
        out = plot_heatmap(values_2d, args.output, title=f"values, heading {args.heading}")
    except (RenderingError, ValueError) as err:
        print(f"error: {err}", file=sys.stderr)
        return 1
    print(f"Wrote {out}")
    return 0
