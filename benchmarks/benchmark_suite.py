"""
Sampling and Tracing Benchmark Suite

Throughput of the three field samplers (plain Python, Numba single point,
Numba batch) and of the streamline tracer on synthetic wind grids.
"""

import numpy as np
import time
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from windlines.field import ScalarField, VectorField
from windlines.tracer import StreamlineTracer


def synthetic_field(nx, ny, seed=0):
    """Smooth random wind on an nx x ny grid."""
    rng = np.random.default_rng(seed)
    y, x = np.mgrid[0:ny, 0:nx]
    phase = rng.uniform(0, 2 * np.pi, 2)
    u = 0.5 + 0.4 * np.sin(2 * np.pi * y / ny + phase[0])
    v = 0.5 + 0.4 * np.cos(2 * np.pi * x / nx + phase[1])
    return VectorField(
        ScalarField(u, nx, ny, -25.0, 25.0),
        ScalarField(v, nx, ny, -20.0, 20.0),
    )


def benchmark_sampler(field, num_points, method, warmup_points=1000):
    """
    Benchmark one sampler.

    Returns
    -------
    msps : float
        Million samples per second
    """
    rng = np.random.default_rng(1)
    xs = rng.uniform(0, field.width - 1, num_points)
    ys = rng.uniform(0, field.height - 1, num_points)

    if method == "batch":
        field.sample_many(xs[:warmup_points], ys[:warmup_points])
        start = time.perf_counter()
        field.sample_many(xs, ys)
        elapsed = time.perf_counter() - start
    else:
        sample = field.sample if method == "python" else field.sample_fast
        points = list(zip(xs.tolist(), ys.tolist()))
        for p in points[:warmup_points]:
            sample(p)
        start = time.perf_counter()
        for p in points:
            sample(p)
        elapsed = time.perf_counter() - start

    return num_points / elapsed / 1e6


def benchmark_tracer(field, d_sep=1.0, time_step=0.5):
    """
    Benchmark a full tracing pass.

    Returns
    -------
    lines : int
        Number of streamlines
    elapsed : float
        Seconds
    """
    tracer = StreamlineTracer(
        field.sample_fast, field.bounding_box,
        d_sep=d_sep, d_test=d_sep / 2, time_step=time_step
    )
    start = time.perf_counter()
    lines = tracer.run()
    return lines, time.perf_counter() - start


def run_full_benchmark(grid_sizes=None, num_points=200000):
    """
    Run the sampler and tracer benchmarks for several grid sizes.
    """
    if grid_sizes is None:
        grid_sizes = [(90, 46), (180, 91), (360, 181), (720, 361)]

    print("=" * 70)
    print("Wind Field Sampling Benchmark")
    print("=" * 70)
    print(f"Samples per run: {num_points}")
    print()

    results = {}
    header = f"{'Grid':<12} {'python':>10} {'numba':>10} {'batch':>10}   (Msamples/s)"
    print(header)
    print("-" * 70)

    for nx, ny in grid_sizes:
        field = synthetic_field(nx, ny)
        row = {}
        for method in ("python", "numba", "batch"):
            row[method] = benchmark_sampler(field, num_points, method)
        results[(nx, ny)] = row
        print(f"{nx:4d}x{ny:<4d}     {row['python']:>10.2f} {row['numba']:>10.2f} {row['batch']:>10.2f}")

    print()
    print("Tracing (d_sep = 1.0, time_step = 0.5)")
    print("-" * 70)
    for nx, ny in grid_sizes[:2]:
        lines, elapsed = benchmark_tracer(synthetic_field(nx, ny))
        print(f"{nx:4d}x{ny:<4d}     {lines:6d} lines in {elapsed:6.2f}s")

    print("=" * 70)

    return results


if __name__ == "__main__":
    run_full_benchmark()
