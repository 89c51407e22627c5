"""
Benchmark: Overlap Grid Pruning and Threaded Blocks

Tests:
    Times `resample` with the overlap grid on and off, sequentially and over
    a thread pool, for nearest-neighbour and Lanczos-3 sampling.

Workload:
    A 1024x1024 TAN input placed in one corner of a larger SIN output, so
    most output blocks fall outside the input footprint.
"""
import time
import numpy as np
from wcsresample import Tan, Sin, resample


def run_benchmark():
    cd = [[-0.0001, 0.0], [0.0, 0.0001]]
    crval = [45.0, 30.0]

    n_in = 1024
    wcs_src = Tan([n_in / 2, n_in / 2], cd, crval, (n_in, n_in))
    data_in = np.random.default_rng(0).random((n_in, n_in)).astype(np.float32)

    out_sizes = [2048, 4096]
    configs = [
        (True, None, "grid, serial"),
        (False, None, "no grid, serial"),
        (True, 8, "grid, 8 threads"),
        (False, 8, "no grid, 8 threads"),
    ]

    print(f"{'Output':<8} | {'Order':<5} | {'Config':<20} | {'Time (ms)':<10}")
    print("-" * 52)

    for n_out in out_sizes:
        # Input centre sits a quarter of the way into the output
        wcs_tgt = Sin([n_out / 4, n_out / 4], cd, crval, (n_out, n_out))
        for order in (0, 3):
            for overlap_grid, workers, label in configs:
                out = np.zeros((n_out, n_out), dtype=np.float32)
                start = time.time()
                resample(wcs_src, data_in, wcs_tgt, out, overlap_grid=overlap_grid,
                         order=order, workers=workers)
                elapsed = (time.time() - start) * 1000
                print(f"{n_out:<8} | {order:<5} | {label:<20} | {elapsed:<10.1f}")


if __name__ == "__main__":
    run_benchmark()
