import json
import numpy as np

from gridvi import cli


def test_run_and_render(tmp_path, capsys):
    png = tmp_path / "v.png"
    npy = tmp_path / "v.npy"
    code = cli.main([
        "--size", "12", "--headings", "2", "--output", str(png), "--save-values", str(npy), "--quiet",
    ])
    assert code == 0
    assert png.exists()
    values = np.load(npy)
    assert values.shape == (12, 12, 2)
    assert np.allclose(values[1, 1, :], 0.0)
    out = capsys.readouterr().out
    assert "status: converged" in out


def test_verbose_prints_deltas(tmp_path, capsys):
    code = cli.main(["--size", "12", "--headings", "1", "--max-iter", "3", "--output", str(tmp_path / "v.png")])
    assert code == 0
    out = capsys.readouterr().out
    assert "iter     1" in out
    assert "Not converged within 3 iterations" in out


def test_config_file_with_overrides(tmp_path):
    cfg_path = tmp_path / "cfg.json"
    cfg_path.write_text(json.dumps({"grid_size": 14, "heading_count": 3, "update_rule": "sampled", "seed": 1}))
    args = cli.build_parser().parse_args(["--config", str(cfg_path), "--headings", "2", "--samples", "1"])
    cfg = cli.load_config(args)
    assert cfg.grid_size == 14
    assert cfg.heading_count == 2
    assert cfg.sample_count == 1
    assert cfg.seed == 1


def test_bad_config_exits_before_work(tmp_path, capsys):
    png = tmp_path / "v.png"
    assert cli.main(["--size", "8", "--output", str(png)]) == 2
    assert not png.exists()
    assert "grid_size" in capsys.readouterr().err
    assert cli.main(["--size", "12", "--headings", "2", "--heading", "2"]) == 2


def test_null_reward_in_config_file_exits_before_work(tmp_path, capsys):
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps({"grid_size": 12, "heading_count": 1, "rewards": {"base": None}}))
    png = tmp_path / "v.png"
    assert cli.main(["--config", str(path), "--output", str(png)]) == 2
    assert not png.exists()
    assert "rewards.base" in capsys.readouterr().err


def test_rendering_failure_keeps_values(tmp_path, capsys):
    npy = tmp_path / "v.npy"
    code = cli.main([
        "--size", "12", "--headings", "1", "--quiet",
        "--save-values", str(npy), "--output", str(tmp_path / "missing" / "v.png"),
    ])
    assert code == 1
    assert np.load(npy).shape == (12, 12, 1)
    assert "could not write heatmap" in capsys.readouterr().err
