"""Tests for the run_generate.py CLI."""

import json

import numpy as np
import pytest

import run_generate
from spiralgen import GalaxyParams, generate_galaxy, load_point_set


def test_cli_writes_outputs(tmp_path, capsys):
    out_dir = tmp_path / "run"
    rc = run_generate.main([
        "--count", "2000", "--branches", "4", "--spin", "-2",
        "--seed", "7", "--out_dir", str(out_dir),
    ])
    assert rc == 0

    for name in ("points.npz", "points.csv", "params.json"):
        assert (out_dir / name).exists()

    saved = json.loads((out_dir / "params.json").read_text())
    assert saved["count"] == 2000
    assert saved["branches"] == 4
    assert saved["spin"] == -2.0
    assert saved["seed"] == 7

    pts = load_point_set(str(out_dir))
    params = GalaxyParams(count=2000, branches=4, spin=-2.0)
    expected = generate_galaxy(params, np.random.default_rng(7))
    assert np.array_equal(pts.positions, expected.positions)

    out = capsys.readouterr().out
    assert "ACCEPTANCE TESTS" in out
    assert "✗ FAIL" not in out


def test_cli_clamps_out_of_range_values(tmp_path, capsys):
    rc = run_generate.main([
        "--count", "10", "--branches", "99", "--randomness_power", "0.5",
        "--seed", "1", "--out_dir", str(tmp_path), "--no_csv",
    ])
    assert rc == 0
    out = capsys.readouterr().out
    assert "--count 10 out of range; clamped to 100" in out
    assert "--branches 99 out of range; clamped to 20" in out
    assert "--randomness_power 0.5 out of range; clamped to 1.0" in out

    saved = json.loads((tmp_path / "params.json").read_text())
    assert saved["count"] == 100
    assert not (tmp_path / "points.csv").exists()


def test_cli_rejects_bad_colour(tmp_path):
    with pytest.raises(SystemExit) as exc:
        run_generate.main(["--inside_color", "red", "--out_dir", str(tmp_path)])
    assert exc.value.code == 2


def test_run_checks_reports_failures(capsys):
    params = GalaxyParams(count=300)
    pts = generate_galaxy(params, np.random.default_rng(0))
    assert run_generate.run_checks(pts, params)

    wrong = GalaxyParams(count=400)
    assert not run_generate.run_checks(pts, wrong)
    assert "✗ FAIL" in capsys.readouterr().out
