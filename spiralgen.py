"""
spiralgen.py
============
Core point-cloud generator for the spiral galaxy viewer.

Maps a ``GalaxyParams`` snapshot to flat float32 position and colour buffers
(three values per point) laid out for direct upload as vertex attributes.
Every call builds the whole point set from scratch; nothing is cached between
calls and the parameter snapshot is never modified.

Point distribution
------------------
Each point is placed on one of ``branches`` straight arms radiating from the
origin, at a uniformly random distance ("branch progress") along it:

  • branch  = i mod branches          – near-equal arm populations
  • angle   = 2π·branch/branches + progress·spin
  • jitter  = U(0,1)^randomness_power · (±1) · randomness · progress
              drawn independently for x, y and z
  • x, z    = progress·(cos, sin)(angle) + jitter
  • y       = jitter only (the ideal spiral is planar)

Higher ``randomness_power`` pulls most jitter towards zero, so the bulk of the
points hug the ideal curve and a few outliers scatter far from it.  Jitter
grows linearly with progress, which keeps the core tight and the arm tips
diffuse.

Colours are blended from ``inside_color`` (progress 0) to ``outside_color``
(progress = radius) in linear light.  Hex colours are sRGB and are decoded to
linear before blending; the output colour buffer is linear.

Usage (importable)
------------------
    import numpy as np
    from spiralgen import GalaxyParams, generate_galaxy
    params = GalaxyParams(count=20_000, branches=5, spin=1.5)
    pts = generate_galaxy(params, np.random.default_rng(7))
    pts.positions.shape     # (60000,)
    pts.to_frame().head()   # id, x, y, z, r, g, b, branch, progress
"""

from __future__ import annotations

import dataclasses
import json
import math
import os
from typing import Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd


ColorLike = Union[str, Sequence[float]]


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class GalaxyParams:
    """Immutable parameter snapshot for one generation.

    The parameter panel owns a mutable copy of these values; the generator
    only ever sees a frozen snapshot, so a panel edit can never land half-way
    through a generation.  Values are *not* validated here – see
    ``clamp_params`` and ``PARAM_RANGES``.

    Units
    -----
    ``radius`` and ``size`` share one arbitrary world unit.  ``spin`` is
    radians of twist per world unit of branch progress.
    """

    # ---- point count ----
    count: int = 1_000

    # ---- render-time point size (not used by the generator) ----
    size: float = 0.02

    # ---- spiral shape ----
    radius: float = 5.0        # maximum branch progress
    branches: int = 3          # number of spiral arms
    spin: float = 1.0          # radians of twist per unit progress

    # ---- positional jitter ----
    randomness: float = 0.2        # jitter scale (relative to progress)
    randomness_power: float = 3.0  # exponent concentrating jitter near 0

    # ---- colour gradient (sRGB hex, or linear RGB triples) ----
    inside_color: ColorLike = "#ff6030"
    outside_color: ColorLike = "#1b3984"


@dataclasses.dataclass(frozen=True)
class ParamRange:
    """Panel range for one numeric GalaxyParams field."""

    lo: float
    hi: float
    step: float
    integer: bool = False


# Order matches the parameter panel.
PARAM_RANGES: dict[str, ParamRange] = {
    "count":            ParamRange(100,   500_000, 1000, integer=True),
    "size":             ParamRange(0.001, 0.1,     0.001),
    "radius":           ParamRange(0.01,  20.0,    0.01),
    "branches":         ParamRange(2,     20,      1,    integer=True),
    "spin":             ParamRange(-5.0,  5.0,     0.001),
    "randomness":       ParamRange(0.0,   2.0,     0.001),
    "randomness_power": ParamRange(1.0,   10.0,    0.001),
}

COLOR_FIELDS = ("inside_color", "outside_color")


def clamp_params(params: GalaxyParams) -> GalaxyParams:
    """Return a copy of *params* clamped into ``PARAM_RANGES``.

    Integer fields are rounded, float fields coerced to ``float`` and colours
    normalised to lower-case ``#rrggbb``.  Raises ``ValueError`` for colours
    that cannot be parsed.
    """
    changes: dict = {}
    for name, rng in PARAM_RANGES.items():
        val = float(getattr(params, name))
        val = min(rng.hi, max(rng.lo, val))
        changes[name] = int(round(val)) if rng.integer else val
    for name in COLOR_FIELDS:
        changes[name] = normalize_color(getattr(params, name))
    return dataclasses.replace(params, **changes)


def save_params(params: GalaxyParams, path: str, **extra) -> None:
    """Write *params* (plus any *extra* keys, e.g. ``seed``) to a JSON file."""
    data = dataclasses.asdict(params)
    for name in COLOR_FIELDS:
        data[name] = normalize_color(data[name])
    data.update(extra)
    with open(path, "w") as fp:
        json.dump(data, fp, indent=2)


def load_params(path: str) -> GalaxyParams:
    """Read a ``params.json`` written by ``save_params``.

    Keys that are not GalaxyParams fields (``seed`` and friends) are ignored;
    missing fields fall back to their defaults.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(
            f"'{path}' not found.  Run run_generate.py first."
        )
    with open(path) as fp:
        data = json.load(fp)
    known = {f.name for f in dataclasses.fields(GalaxyParams)}
    return GalaxyParams(**{k: v for k, v in data.items() if k in known})


# ---------------------------------------------------------------------------
# Colour helpers
# ---------------------------------------------------------------------------

def srgb_to_linear(c) -> np.ndarray:
    """Decode sRGB channel values in [0, 1] to linear light."""
    c = np.clip(np.asarray(c, dtype=np.float64), 0.0, 1.0)
    return np.where(c <= 0.04045, c / 12.92, ((c + 0.055) / 1.055) ** 2.4)


def linear_to_srgb(c) -> np.ndarray:
    """Encode linear channel values in [0, 1] to sRGB."""
    c = np.clip(np.asarray(c, dtype=np.float64), 0.0, 1.0)
    return np.where(c <= 0.0031308, c * 12.92, 1.055 * c ** (1.0 / 2.4) - 0.055)


def _hex_to_srgb(value: str) -> np.ndarray:
    digits = value.strip().lstrip("#")
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    if len(digits) != 6 or not value.strip().startswith("#"):
        raise ValueError(f"Invalid colour {value!r}; expected '#rrggbb' or '#rgb'.")
    try:
        raw = [int(digits[k:k + 2], 16) for k in (0, 2, 4)]
    except ValueError:
        raise ValueError(f"Invalid colour {value!r}; expected '#rrggbb' or '#rgb'.") from None
    return np.array(raw, dtype=np.float64) / 255.0


def parse_color(value: ColorLike) -> np.ndarray:
    """Return *value* as a linear RGB array of shape ``(3,)``.

    Strings are sRGB hex (``#rrggbb`` / ``#rgb``) and are decoded to linear.
    Three-element sequences are taken to be linear already and are clipped to
    [0, 1].
    """
    if isinstance(value, str):
        return srgb_to_linear(_hex_to_srgb(value))
    rgb = np.asarray(value, dtype=np.float64)
    if rgb.shape != (3,):
        raise ValueError(f"Invalid colour {value!r}; expected three channels.")
    return np.clip(rgb, 0.0, 1.0)


def normalize_color(value: ColorLike) -> str:
    """Return *value* as a lower-case sRGB ``#rrggbb`` string."""
    if isinstance(value, str):
        srgb = _hex_to_srgb(value)
    else:
        srgb = linear_to_srgb(parse_color(value))
    r, g, b = (int(round(float(ch) * 255.0)) for ch in srgb)
    return f"#{r:02x}{g:02x}{b:02x}"


# ---------------------------------------------------------------------------
# Point set
# ---------------------------------------------------------------------------

@dataclasses.dataclass
class GalaxyPointSet:
    """One generated point cloud.

    ``positions`` and ``colors`` are flat float32 buffers of length
    ``3 * count`` (x, y, z and r, g, b per point).  ``branch`` and
    ``progress`` keep the per-point branch index and branch progress the
    positions were built from.
    """

    positions: np.ndarray
    colors: np.ndarray
    branch: np.ndarray
    progress: np.ndarray

    @property
    def point_count(self) -> int:
        return len(self.positions) // 3

    @property
    def positions_xyz(self) -> np.ndarray:
        """``(N, 3)`` view onto ``positions``."""
        return self.positions.reshape(-1, 3)

    @property
    def colors_rgb(self) -> np.ndarray:
        """``(N, 3)`` view onto ``colors``."""
        return self.colors.reshape(-1, 3)

    def to_frame(self) -> pd.DataFrame:
        xyz = self.positions_xyz
        rgb = self.colors_rgb
        return pd.DataFrame({
            "id":       np.arange(self.point_count, dtype=np.int64),
            "x":        xyz[:, 0],
            "y":        xyz[:, 1],
            "z":        xyz[:, 2],
            "r":        rgb[:, 0],
            "g":        rgb[:, 1],
            "b":        rgb[:, 2],
            "branch":   self.branch,
            "progress": self.progress,
        })


def save_point_set(point_set: GalaxyPointSet, out_dir: str,
                   write_csv: bool = True) -> list[str]:
    """Write ``points.npz`` (raw buffers) and optionally ``points.csv``.

    Returns the list of paths written.
    """
    os.makedirs(out_dir, exist_ok=True)
    written = []

    npz_path = os.path.join(out_dir, "points.npz")
    np.savez(
        npz_path,
        positions=point_set.positions,
        colors=point_set.colors,
        branch=point_set.branch,
        progress=point_set.progress,
    )
    written.append(npz_path)

    if write_csv:
        csv_path = os.path.join(out_dir, "points.csv")
        point_set.to_frame().to_csv(csv_path, index=False)
        written.append(csv_path)

    return written


def load_point_set(out_dir: str) -> GalaxyPointSet:
    """Load the ``points.npz`` written by ``save_point_set``."""
    npz_path = os.path.join(out_dir, "points.npz")
    if not os.path.exists(npz_path):
        raise FileNotFoundError(
            f"points.npz not found in '{out_dir}'.  Run run_generate.py first."
        )
    with np.load(npz_path) as data:
        return GalaxyPointSet(
            positions=data["positions"],
            colors=data["colors"],
            branch=data["branch"],
            progress=data["progress"],
        )


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------

def generate_galaxy(
    params: GalaxyParams,
    rng: Optional[Union[np.random.Generator, int]] = None,
) -> GalaxyPointSet:
    """Generate a fresh galaxy point cloud from *params*.

    Parameters
    ----------
    params : GalaxyParams
        Parameter snapshot.  Read once; never modified.  Out-of-range values
        are not checked (see ``clamp_params``).
    rng : numpy Generator, int seed, or None
        Random source.  ``None`` draws fresh OS entropy, so two calls with the
        same params give different clouds.  Any object with a numpy-style
        ``random(size)`` method is accepted; it is called three times, in
        this order: branch progress ``(N,)``, jitter magnitude ``(N, 3)``,
        jitter sign ``(N, 3)``.

    Returns
    -------
    GalaxyPointSet with ``3 * params.count`` floats in each buffer.
    """
    if rng is None or isinstance(rng, (int, np.integer)):
        rng = np.random.default_rng(rng)

    count    = int(params.count)
    radius   = float(params.radius)
    branches = int(params.branches)

    # ---- branch progress and spiral angle ----
    progress = rng.random(count) * radius
    branch   = np.arange(count, dtype=np.int64) % branches
    angle    = branch * (2.0 * math.pi / branches) + progress * params.spin

    # ---- jitter: |U|^power with an independent sign per axis ----
    magnitude = rng.random((count, 3)) ** params.randomness_power
    sign      = np.where(rng.random((count, 3)) < 0.5, 1.0, -1.0)
    jitter    = magnitude * sign * (params.randomness * progress)[:, None]

    xyz = np.empty((count, 3), dtype=np.float64)
    xyz[:, 0] = np.cos(angle) * progress + jitter[:, 0]
    xyz[:, 1] = jitter[:, 1]
    xyz[:, 2] = np.sin(angle) * progress + jitter[:, 2]

    # ---- colour: linear blend inside -> outside ----
    if radius > 0:
        t = progress / radius
    else:
        t = np.zeros(count)
    inside  = parse_color(params.inside_color)
    outside = parse_color(params.outside_color)
    rgb = inside * (1.0 - t)[:, None] + outside * t[:, None]

    return GalaxyPointSet(
        positions=xyz.astype(np.float32).ravel(),
        colors=rgb.astype(np.float32).ravel(),
        branch=branch,
        progress=progress,
    )


# ---------------------------------------------------------------------------
# Reporting helpers
# ---------------------------------------------------------------------------

def branch_populations(point_set: GalaxyPointSet, branches: int) -> np.ndarray:
    """Number of points on each branch, length *branches*."""
    return np.bincount(point_set.branch, minlength=branches)


def branch_centerline_points(
    params: GalaxyParams,
    n_pts: int = 200,
) -> list[np.ndarray]:
    """Return the jitter-free spiral curve of every branch, for plotting.

    Returns
    -------
    List of ``params.branches`` arrays, each of shape ``(n_pts, 3)`` in the
    same (x, y, z) frame as the generated positions.
    """
    progress = np.linspace(0.0, float(params.radius), n_pts)
    curves = []
    for b in range(int(params.branches)):
        angle = 2.0 * math.pi * b / params.branches + progress * params.spin
        curves.append(np.column_stack([
            np.cos(angle) * progress,
            np.zeros(n_pts),
            np.sin(angle) * progress,
        ]))
    return curves


def planar_extent(point_set: GalaxyPointSet) -> Tuple[float, float]:
    """(max distance from the y axis, max |y|) over all points."""
    xyz = point_set.positions_xyz.astype(np.float64)
    if len(xyz) == 0:
        return 0.0, 0.0
    r_xz = np.sqrt(xyz[:, 0] ** 2 + xyz[:, 2] ** 2)
    return float(r_xz.max()), float(np.abs(xyz[:, 1]).max())


# ---------------------------------------------------------------------------
# Script entry point (uses all GalaxyParams defaults)
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    pts = generate_galaxy(GalaxyParams())
    print(pts.to_frame().describe())
