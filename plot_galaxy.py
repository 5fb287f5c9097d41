"""
plot_galaxy.py
==============
Matplotlib 3-D preview for the spiral galaxy generator.

Shows:
  • The point cloud, coloured from its linear colour buffer (re-encoded to
    sRGB for display)
  • Branch centrelines (optional; the jitter-free spiral of every arm)

The generator's frame is y-up; matplotlib's 3-D axes are z-up, so points are
plotted as (x, z, y).

Usage
-----
    # Default: read ./output/, open an interactive window
    python plot_galaxy.py

    # Overlay the ideal spiral arms
    python plot_galaxy.py --centerlines

    # Look straight down onto the disk
    python plot_galaxy.py --elev 90 --azim -90

    # Save to PNG instead of opening a window
    python plot_galaxy.py --save galaxy.png

    # Save as SVG; --svg with no filename defaults to galaxy.svg
    python plot_galaxy.py --svg

Generation parameters are read from ``params.json`` in the output directory,
so the centrelines and axis limits match the generated cloud.
"""

from __future__ import annotations

import argparse
import os
from typing import Optional

import matplotlib.pyplot as plt

from spiralgen import (
    GalaxyParams,
    GalaxyPointSet,
    branch_centerline_points,
    linear_to_srgb,
    load_params,
    load_point_set,
)


BG = "#000000"
CENTERLINE_COLOR = "#3a4a5c"
DEFAULT_ELEV = 30.0
DEFAULT_AZIM = 45.0


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="plot_galaxy.py",
        description="3-D preview for the spiral galaxy generator.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # Output location
    p.add_argument("--out_dir", default="output",
                   help="Directory containing points.npz and params.json.")
    p.add_argument("--save", default=None, metavar="FILE",
                   help="Save figure to FILE (png/pdf/svg) instead of displaying.")
    p.add_argument("--svg", nargs="?", const="galaxy.svg", default=None,
                   metavar="FILE",
                   help="Save figure as SVG.  FILE defaults to 'galaxy.svg' "
                        "when omitted.  Overrides --save when both are given.")

    # View
    p.add_argument("--centerlines", action="store_true",
                   help="Overlay the jitter-free spiral of every branch.")
    p.add_argument("--elev", type=float, default=DEFAULT_ELEV,
                   help="Camera elevation in degrees.")
    p.add_argument("--azim", type=float, default=DEFAULT_AZIM,
                   help="Camera azimuth in degrees.")
    p.add_argument("--background", default=BG,
                   help="Figure background colour.")

    return p


# ---------------------------------------------------------------------------
# Drawing helpers
# ---------------------------------------------------------------------------

def marker_area(size: float) -> float:
    """Scatter marker area (pt²) for a GalaxyParams ``size`` value.

    The default size of 0.02 maps to 2 pt².
    """
    return max(float(size), 0.0) * 100.0


def make_axes(figsize=(9, 9), background: str = BG):
    """Create a dark, axis-free 3-D figure.  Returns ``(fig, ax)``."""
    fig = plt.figure(figsize=figsize)
    fig.patch.set_facecolor(background)
    ax = fig.add_subplot(111, projection="3d")
    ax.set_facecolor(background)
    ax.set_axis_off()
    fig.subplots_adjust(left=0, right=1, bottom=0, top=1)
    ax.view_init(elev=DEFAULT_ELEV, azim=DEFAULT_AZIM)
    return fig, ax


def set_view_limits(ax, radius: float) -> None:
    """Centre the axes on the origin with a cube of half-width ~radius."""
    half = max(float(radius), 0.01) * 1.05
    ax.set_xlim(-half, half)
    ax.set_ylim(-half, half)
    ax.set_zlim(-half, half)
    ax.set_box_aspect((1, 1, 1))


def add_point_cloud(ax, point_set: GalaxyPointSet, size: float):
    """Scatter *point_set* onto *ax*.  Returns the new artist."""
    xyz = point_set.positions_xyz
    rgb = linear_to_srgb(point_set.colors_rgb)
    return ax.scatter(
        xyz[:, 0], xyz[:, 2], xyz[:, 1],
        c=rgb,
        s=marker_area(size),
        marker=".",
        linewidths=0,
        alpha=0.8,
        depthshade=False,
    )


def add_centerlines(ax, params: GalaxyParams) -> list:
    """Draw every branch's ideal spiral.  Returns the line artists."""
    lines = []
    for curve in branch_centerline_points(params):
        (line,) = ax.plot(
            curve[:, 0], curve[:, 2], curve[:, 1],
            color=CENTERLINE_COLOR, linewidth=0.8, alpha=0.7,
        )
        lines.append(line)
    return lines


# ---------------------------------------------------------------------------
# Plot
# ---------------------------------------------------------------------------

def draw_galaxy(
    point_set: GalaxyPointSet,
    params: GalaxyParams,
    centerlines: bool = False,
    elev: float = DEFAULT_ELEV,
    azim: float = DEFAULT_AZIM,
    background: str = BG,
    title: Optional[str] = None,
) -> plt.Figure:
    """Draw *point_set* into a new figure and return it."""
    fig, ax = make_axes(background=background)
    set_view_limits(ax, params.radius)
    ax.view_init(elev=elev, azim=azim)

    if centerlines:
        add_centerlines(ax, params)
    add_point_cloud(ax, point_set, params.size)

    if title is None:
        title = (
            f"{point_set.point_count:,} points  |  {params.branches} branches  |  "
            f"spin {params.spin:g}"
        )
    fig.suptitle(title, color="#cccccc", fontsize=10, y=0.98)
    return fig


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    params_path = os.path.join(args.out_dir, "params.json")
    params = load_params(params_path) if os.path.exists(params_path) else GalaxyParams()
    point_set = load_point_set(args.out_dir)

    fig = draw_galaxy(
        point_set, params,
        centerlines=args.centerlines,
        elev=args.elev,
        azim=args.azim,
        background=args.background,
    )

    if args.svg:
        fig.savefig(args.svg, format="svg", facecolor=fig.get_facecolor())
        print(f"Saved figure to {args.svg}")
    elif args.save:
        fig.savefig(args.save, dpi=150, facecolor=fig.get_facecolor())
        print(f"Saved figure to {args.save}")
    else:
        plt.show()


if __name__ == "__main__":
    main()
