import numpy as np
import pytest

from gridvi import render


def test_hue_endpoints():
    rgb = render.hue_colors(np.array([0.0, 0.5, 1.0]))
    assert np.allclose(rgb[0], [0.0, 0.0, 1.0])
    assert np.allclose(rgb[1], [0.0, 1.0, 0.0])
    assert np.allclose(rgb[2], [1.0, 0.0, 0.0])


def test_normalize():
    v = np.array([[-10.0, 0.0], [-5.0, -10.0]])
    assert np.allclose(render.normalize(v), [[0.0, 1.0], [0.5, 0.0]])
    assert np.allclose(render.normalize(np.full((3, 3), -7.0)), 0.5)


def test_plot_heatmap(tmp_path):
    values = np.random.default_rng(0).uniform(-100.0, 0.0, size=(12, 12, 3))
    out = render.plot_heatmap(render.heading_slice(values), tmp_path / "v.png", title="heading 0")
    assert out.exists()
    assert out.stat().st_size > 0


def test_plot_heatmap_constant_slice(tmp_path):
    out = render.plot_heatmap(np.zeros((12, 12)), tmp_path / "flat.png")
    assert out.exists()


def test_plot_heatmap_rejects_bad_input(tmp_path):
    with pytest.raises(ValueError):
        render.plot_heatmap(np.zeros((3, 3, 2)), tmp_path / "x.png")
    bad = np.zeros((3, 3))
    bad[0, 0] = np.nan
    with pytest.raises(ValueError):
        render.plot_heatmap(bad, tmp_path / "x.png")


def test_unwritable_path(tmp_path):
    with pytest.raises(render.RenderingError):
        render.plot_heatmap(np.zeros((4, 4)), tmp_path / "missing" / "v.png")


def test_heading_slice():
    values = np.arange(2 * 2 * 3, dtype=float).reshape(2, 2, 3)
    assert np.array_equal(render.heading_slice(values, 1), values[:, :, 1])
    with pytest.raises(ValueError):
        render.heading_slice(values, 3)
    with pytest.raises(ValueError):
        render.heading_slice(values[:, :, 0])
