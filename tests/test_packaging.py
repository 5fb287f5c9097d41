"""Checks that pyproject.toml describes the modules actually shipped."""

from pathlib import Path

import pytest

tomllib = pytest.importorskip("tomllib")

ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture
def project():
    with open(ROOT / "pyproject.toml", "rb") as fh:
        return tomllib.load(fh)


def test_py_modules_exist(project):
    for name in project["tool"]["setuptools"]["py-modules"]:
        assert (ROOT / f"{name}.py").is_file()


def test_scripts_point_at_shipped_modules(project):
    modules = set(project["tool"]["setuptools"]["py-modules"])
    for target in project["project"]["scripts"].values():
        module, _, func = target.partition(":")
        assert module in modules
        assert f"def {func}(" in (ROOT / f"{module}.py").read_text(encoding="utf-8")


def test_metadata_has_no_readme_outside_the_package(project):
    readme = project["project"].get("readme")
    assert readme is None or readme.lower().startswith("readme")
