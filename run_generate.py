"""
run_generate.py
===============
CLI entrypoint for the spiral galaxy point-cloud generator.

All parameters are optional; unspecified parameters fall back to the defaults
defined in ``GalaxyParams``.  Out-of-range values are clamped to the same
ranges the parameter panel enforces, with a warning.

Quick start
-----------
    python run_generate.py

With custom parameters::

    python run_generate.py \\
        --count 100000 \\
        --radius 5 \\
        --branches 3 \\
        --spin 1 \\
        --randomness 0.2 \\
        --randomness_power 3 \\
        --inside_color "#ff6030" \\
        --outside_color "#1b3984" \\
        --seed 7 \\
        --out_dir output

Then visualise the result::

    python plot_galaxy.py
"""

import argparse
import dataclasses
import os
import sys
import time

import numpy as np

from spiralgen import (
    PARAM_RANGES,
    GalaxyParams,
    GalaxyPointSet,
    branch_populations,
    clamp_params,
    generate_galaxy,
    parse_color,
    planar_extent,
    save_params,
    save_point_set,
)


_HELP = {
    "count":            "Number of points to generate.",
    "size":             "Render-time point size (not used by the generator).",
    "radius":           "Maximum distance a point can reach along its branch.",
    "branches":         "Number of spiral arms.",
    "spin":             "Radians of twist per unit of branch progress.",
    "randomness":       "Scale of positional jitter (relative to progress).",
    "randomness_power": "Exponent concentrating jitter near zero.",
}


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="run_generate.py",
        description=(
            "Spiral galaxy point-cloud generator.\n"
            "Produces points.npz, points.csv and params.json in OUT_DIR."
        ),
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    defaults = GalaxyParams()

    # ── Shape and jitter parameters ───────────────────────────────────────
    for name, rng in PARAM_RANGES.items():
        p.add_argument(
            f"--{name}",
            type=int if rng.integer else float,
            default=getattr(defaults, name),
            metavar="N" if rng.integer else "X",
            help=f"{_HELP[name]}  Range [{rng.lo:g}, {rng.hi:g}].",
        )

    # ── Colours ───────────────────────────────────────────────────────────
    p.add_argument(
        "--inside_color", default=defaults.inside_color, metavar="HEX",
        help="Colour at the branch origin (sRGB hex).",
    )
    p.add_argument(
        "--outside_color", default=defaults.outside_color, metavar="HEX",
        help="Colour at the branch tip (sRGB hex).",
    )

    # ── Reproducibility ───────────────────────────────────────────────────
    p.add_argument(
        "--seed", type=int, default=None,
        metavar="S",
        help="Random seed for reproducible output (default: fresh entropy).",
    )

    # ── Output ───────────────────────────────────────────────────────────
    p.add_argument(
        "--out_dir", type=str, default="output",
        metavar="DIR",
        help="Directory to write output files (created if absent).",
    )
    p.add_argument(
        "--no_csv", action="store_true",
        help="Skip points.csv (much smaller output for large counts).",
    )

    return p


def params_from_args(args: argparse.Namespace) -> GalaxyParams:
    """Build a clamped GalaxyParams from parsed CLI args, warning on clamps."""
    raw = GalaxyParams(**{
        f.name: getattr(args, f.name) for f in dataclasses.fields(GalaxyParams)
    })
    params = clamp_params(raw)
    for name in PARAM_RANGES:
        before, after = getattr(raw, name), getattr(params, name)
        if before != after:
            print(f"  WARNING: --{name} {before} out of range; clamped to {after}.")
    return params


def run_checks(point_set: GalaxyPointSet, params: GalaxyParams) -> bool:
    """Print acceptance test results to stdout.  Returns True if all pass."""
    sep = "─" * 52
    results = []

    print(f"\n{sep}")
    print("  ACCEPTANCE TESTS")
    print(sep)

    # Point count and buffer shape
    n = point_set.point_count
    ok = n == params.count
    results.append(ok)
    print(f"  Point count : {n:>8,}  (target {params.count:,})  "
          f"{'✓' if ok else '✗ FAIL'}")

    ok = len(point_set.positions) == len(point_set.colors) == 3 * params.count
    results.append(ok)
    print(f"  Buffer len  : {len(point_set.positions):>8,}  (3 × count)  "
          f"{'✓' if ok else '✗ FAIL'}")

    # Branch progress bounds
    if n > 0:
        p_max = float(point_set.progress.max())
        ok = p_max <= params.radius
        results.append(ok)
        print(f"  Max progress: {p_max:>8.4f}  <= {params.radius:g}  "
              f"{'✓' if ok else '✗ FAIL'}")

    # Colour range
    if n > 0:
        c_min = float(point_set.colors.min())
        c_max = float(point_set.colors.max())
        ok = c_min >= 0.0 and c_max <= 1.0
        results.append(ok)
        print(f"  Colour range: [{c_min:.4f}, {c_max:.4f}]  ⊆ [0, 1]  "
              f"{'✓' if ok else '✗ FAIL'}")

    # Branch populations
    pops = branch_populations(point_set, params.branches)
    ok = int(pops.max()) - int(pops.min()) <= 1
    results.append(ok)
    print(f"  Branch pops : min={pops.min()}  max={pops.max()}  "
          f"({params.branches} branches)  {'✓' if ok else '✗ FAIL'}")

    r_xz, y_abs = planar_extent(point_set)
    print(f"\n  Disk extent : r_xz ≤ {r_xz:.4f}   |y| ≤ {y_abs:.4f}")

    print(sep + "\n")
    return all(results)


def main(argv=None) -> int:
    parser = build_parser()
    args   = parser.parse_args(argv)

    for name in ("inside_color", "outside_color"):
        try:
            parse_color(getattr(args, name))
        except ValueError as exc:
            parser.error(str(exc))

    params = params_from_args(args)

    # Print config so the user can confirm parameters before waiting
    print("Configuration")
    print("─" * 40)
    for field in params.__dataclass_fields__:
        print(f"  {field:<18} = {getattr(params, field)}")
    print(f"  {'seed':<18} = {args.seed}")
    print()

    print("Generating point cloud …")
    t0 = time.perf_counter()
    point_set = generate_galaxy(params, np.random.default_rng(args.seed))
    print(f"  {point_set.point_count:,} points generated in "
          f"{time.perf_counter() - t0:.2f}s")

    ok = run_checks(point_set, params)

    for path in save_point_set(point_set, args.out_dir, write_csv=not args.no_csv):
        print(f"Wrote {path}")

    # Persist generation parameters so plot_galaxy.py can read them automatically
    params_path = os.path.join(args.out_dir, "params.json")
    save_params(params, params_path, seed=args.seed)
    print(f"Wrote {params_path}")

    print(
        f"\nNext steps:\n"
        f"  • Preview : python plot_galaxy.py --out_dir {args.out_dir}\n"
        f"  • Viewer  : python galaxy_gui.py"
    )
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
