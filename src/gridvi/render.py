from __future__ import annotations
from pathlib import Path
from typing import Optional, Union
import numpy as np
import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
from matplotlib import colors, cm  # noqa: E402

# Blue (240 deg) at the minimum down to red (0 deg) at the maximum.
HUE_SPAN = 240.0 / 360.0
MIDPOINT = 0.5


class RenderingError(RuntimeError):
    """Raised when the heatmap cannot be written."""


def heading_slice(values: np.ndarray, heading: int = 0) -> np.ndarray:
    if values.ndim != 3:
        raise ValueError(f"expected an (N, N, H) value table, got shape {values.shape}")
    if not 0 <= heading < values.shape[2]:
        raise ValueError(f"heading {heading} outside [0, {values.shape[2]})")
    return values[:, :, heading]


def normalize(values_2d: np.ndarray) -> np.ndarray:
    """Scale to [0, 1]; a constant slice maps to the midpoint everywhere."""
    lo, hi = float(values_2d.min()), float(values_2d.max())
    if hi == lo:
        return np.full(values_2d.shape, MIDPOINT)
    return (values_2d - lo) / (hi - lo)


def hue_colors(norm: np.ndarray) -> np.ndarray:
    """RGB for normalized values; HSL(h, 1, 0.5) is HSV(h, 1, 1)."""
    hsv = np.stack([HUE_SPAN * (1.0 - norm), np.ones_like(norm), np.ones_like(norm)], axis=-1)
    return colors.hsv_to_rgb(hsv)


def hue_colormap(n: int = 256) -> colors.ListedColormap:
    return colors.ListedColormap(hue_colors(np.linspace(0.0, 1.0, n)), name="value_hue")


def plot_heatmap(
    values_2d: np.ndarray,
    path: Union[str, Path] = "values_heatmap.png",
    title: Optional[str] = None,
) -> Path:
    """Write a heatmap of a single heading slice with a colour bar legend.

    Args:
        values_2d (np.ndarray): (rows, cols) finite values; row 0 is drawn at the top.
        path (Union[str, Path], optional): Output image. Defaults to "values_heatmap.png".
        title (str, optional): Figure title.

    Returns:
        Path: the written file.
    """
    values_2d = np.asarray(values_2d, dtype=float)
    if values_2d.ndim != 2:
        raise ValueError(f"expected a 2D slice, got shape {values_2d.shape}")
    if not np.all(np.isfinite(values_2d)):
        raise ValueError("value slice contains non-finite entries")

    lo, hi = float(values_2d.min()), float(values_2d.max())
    if hi == lo:
        lo, hi = lo - 0.5, hi + 0.5

    fig, ax = plt.subplots(figsize=(10, 9))
    try:
        ax.imshow(hue_colors(normalize(values_2d)), interpolation="nearest")
        ax.set_xlabel("col")
        ax.set_ylabel("row")
        if title:
            ax.set_title(title)
        mappable = cm.ScalarMappable(norm=colors.Normalize(vmin=lo, vmax=hi), cmap=hue_colormap())
        fig.colorbar(mappable, ax=ax, label="value")
        path = Path(path)
        try:
            fig.savefig(path)
        except OSError as err:
            raise RenderingError(f"could not write heatmap to {path}: {err}") from err
    finally:
        plt.close(fig)
    return path
