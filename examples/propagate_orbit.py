# /// script
# requires-python = ">=3.11"
# dependencies = ["typer>=0.9.0", "orbitprop"]
#
# [tool.uv.sources]
# orbitprop = { path = ".." }
# ///
"""Propagate a heliocentric or geocentric orbit with adaptive DP54.

Propagates a single Cartesian state under point-mass gravity, prints the
final state, the step statistics and the drift of the two-body integrals of
motion, and optionally writes the accepted samples to a CSV or Parquet file.

Requires orbitprop to be installed (``uv pip install -e .`` from the repo root).

Usage:
    uv run examples/propagate_orbit.py [OPTIONS]

Examples:
    # Earth around the Sun for one day (default state)
    uv run examples/propagate_orbit.py

    # Two days with tighter tolerances, written to CSV
    uv run examples/propagate_orbit.py --duration 2 --rtol 1e-10 --atol 1e-10 \\
        --output earth.csv

    # One revolution of a 500 km LEO
    uv run examples/propagate_orbit.py --body earth --duration 0.0657 \\
        --state 6878.1363 0 0 0 7.6127 0

    # Backward propagation
    uv run examples/propagate_orbit.py --duration -1
"""

import enum
import logging
import sys
import time
from pathlib import Path
from typing import Annotated

import numpy as np
import typer

from orbitprop import IntegrationError, propagate
from orbitprop.constants import GM_EARTH, GM_SUN_ROUNDED, SECONDS_PER_DAY
from orbitprop.orbits import angular_momentum, specific_energy


class Body(enum.StrEnum):
    sun = "sun"
    earth = "earth"


_MU = {Body.sun: GM_SUN_ROUNDED, Body.earth: GM_EARTH}

# Earth relative to the Sun, J2000 ecliptic [km, km/s]
_EARTH_HELIOCENTRIC = (-123632719.3, -168314678.1, -17168641.0, 17.327, -14.112, -1.496)


def main(
    body: Annotated[Body, typer.Option(help="Central body")] = Body.sun,
    state: Annotated[
        tuple[float, float, float, float, float, float],
        typer.Option(help="Initial state x y z vx vy vz [km, km/s]"),
    ] = _EARTH_HELIOCENTRIC,
    duration: Annotated[float, typer.Option(help="Propagation duration in days")] = 1.0,
    initial_step: Annotated[float, typer.Option(help="First trial step in seconds")] = 10.0,
    rtol: Annotated[float, typer.Option(help="Relative tolerance")] = 1e-6,
    atol: Annotated[float, typer.Option(help="Absolute tolerance")] = 1e-8,
    max_steps: Annotated[int, typer.Option(help="Maximum accepted steps")] = 100_000,
    output: Annotated[
        Path | None,
        typer.Option(help="Write samples to this .csv or .parquet file"),
    ] = None,
    verbose: Annotated[bool, typer.Option(help="Log step rejections")] = False,
):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    mu = _MU[body]
    t_end = duration * SECONDS_PER_DAY

    print(f"── Propagating about the {body.value} for {duration} days ──")
    t0 = time.perf_counter()
    try:
        traj = propagate(
            list(state), mu, 0.0, t_end, initial_step, rtol, atol, max_steps
        )
    except IntegrationError as exc:
        print(f"ERROR: {exc}")
        if exc.trajectory is not None:
            print(f"  Last accepted sample at t={exc.trajectory.final_time:.3f} s")
        sys.exit(1)
    elapsed = time.perf_counter() - t0

    stats = traj.stats
    print(f"  Finished in {elapsed:.2f}s")
    print(
        f"  Steps: {stats.n_accepted} accepted, {stats.n_rejected} rejected, "
        f"{stats.n_evaluations} derivative evaluations"
    )

    final = traj.final_state
    print("\n── Final state ──")
    print(f"  t  = {traj.final_time:.3f} s")
    print(f"  r  = [{float(final.x):.3f}, {float(final.y):.3f}, {float(final.z):.3f}] km")
    print(f"  v  = [{float(final.vx):.6f}, {float(final.vy):.6f}, {float(final.vz):.6f}] km/s")

    energy = np.asarray(specific_energy(traj.states, mu))
    h = np.asarray(angular_momentum(traj.states))
    energy_drift = np.max(np.abs(energy - energy[0])) / abs(energy[0])
    h_drift = np.max(np.linalg.norm(h - h[0], axis=1)) / np.linalg.norm(h[0])
    print("\n── Integrals of motion ──")
    print(f"  Max relative energy drift:           {energy_drift:.3e}")
    print(f"  Max relative angular momentum drift: {h_drift:.3e}")

    if output is not None:
        df = traj.to_polars()
        if output.suffix == ".parquet":
            df.write_parquet(output)
        else:
            df.write_csv(output)
        print(f"\n  Wrote {df.height} samples to {output}")

    print("\nDone.")


if __name__ == "__main__":
    typer.run(main)
