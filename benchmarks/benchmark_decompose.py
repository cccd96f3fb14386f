#!/usr/bin/env python
"""
Benchmark for block decomposition.

Times, for 2D Poisson matrices of growing size:
1. build_partition
2. block_decompose_square (with and without BB)
3. decompose_vector + reassemble_vector

Usage:
    python benchmark_decompose.py                  # CPU (and CUDA if available)
    python benchmark_decompose.py --dtype float32
    python benchmark_decompose.py --sizes 64 128 256
"""

import argparse
import json
import os
import sys
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Callable, List

import torch

# Add parent to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from torch_sbd import (
    SparseTensor,
    build_partition,
    block_decompose_square,
    decompose_vector,
    reassemble_vector,
)

OUTPUT_DIR = Path(__file__).parent / "results" / "benchmark_decompose"


@dataclass
class BenchmarkResult:
    """Result of a single benchmark run."""
    operation: str
    device: str
    n: int
    nnz: int
    time_ms: float


def poisson_2d(n: int, dtype, device) -> SparseTensor:
    N = n * n
    idx = torch.arange(N, device=device)
    i, j = idx // n, idx % n

    rows, cols, vals = [idx], [idx], [torch.full((N,), 4.0, dtype=dtype, device=device)]
    for mask, offset in [(j > 0, -1), (j < n - 1, 1), (i > 0, -n), (i < n - 1, n)]:
        rows.append(idx[mask])
        cols.append(idx[mask] + offset)
        vals.append(torch.full((int(mask.sum()),), -1.0, dtype=dtype, device=device))

    return SparseTensor(torch.cat(vals), torch.cat(rows), torch.cat(cols), (N, N))


def timeit(fn: Callable, device: str, warmup: int = 2, repeat: int = 5) -> float:
    for _ in range(warmup):
        fn()
    if device == 'cuda':
        torch.cuda.synchronize()
    start = time.perf_counter()
    for _ in range(repeat):
        fn()
    if device == 'cuda':
        torch.cuda.synchronize()
    return (time.perf_counter() - start) / repeat * 1000


def run(sizes: List[int], dtype, devices: List[str]) -> List[BenchmarkResult]:
    results = []
    for device in devices:
        for n in sizes:
            A = poisson_2d(n, dtype, device)
            N = n * n
            mask = torch.rand(N, device=device) > 0.2
            x = torch.randn(N, dtype=dtype, device=device)
            part = build_partition(N, mask)
            x_A, x_B = decompose_vector(part, x)

            cases = {
                "build_partition": lambda: build_partition(N, mask),
                "decompose": lambda: block_decompose_square(A, mask),
                "decompose_no_bb": lambda: block_decompose_square(A, mask, build_bb=False),
                "split_vector": lambda: decompose_vector(part, x),
                "merge_vector": lambda: reassemble_vector(part, x_A, x_B),
            }
            for op, fn in cases.items():
                t = timeit(fn, device)
                results.append(BenchmarkResult(op, device, N, A.nnz, t))
                print(f"{device:5s} {op:18s} N={N:9d} nnz={A.nnz:10d} {t:10.3f} ms")
    return results


def main():
    parser = argparse.ArgumentParser(description="Benchmark block decomposition")
    parser.add_argument('--sizes', type=int, nargs='+', default=[32, 64, 128, 256, 512])
    parser.add_argument('--dtype', type=str, default='float64', choices=['float32', 'float64'])
    args = parser.parse_args()

    dtype = getattr(torch, args.dtype)
    devices = ['cpu'] + (['cuda'] if torch.cuda.is_available() else [])

    results = run(args.sizes, dtype, devices)

    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    with open(OUTPUT_DIR / f"results_{args.dtype}.json", 'w') as f:
        json.dump([asdict(r) for r in results], f, indent=2)


if __name__ == "__main__":
    main()
