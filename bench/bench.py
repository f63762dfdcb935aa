#!/usr/bin/env python3
"""
Ψ (ptree) Benchmark Suite
Copyright (c) 2026 Alex P. Slaby — MIT License

Times tree reads, large collection generation and end-to-end shrinking
of the known shrinking challenges.

Usage:
  python bench.py          Run all benchmarks
  python bench.py --quick  Quick mode (smaller inputs)
"""

import sys, os, time, statistics
sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), '..', 'src'))

from ptree import ChoiceTree, derive_seed
from ptree_gen import integers, sample, INT_MIN, INT_MAX
from ptree_shrink import ShrinkStats, minimize
from ptree_check import Success, property_of


# ═══════════════════════════════════════════════════════════════
# TIMING INFRASTRUCTURE
# ═══════════════════════════════════════════════════════════════

def bench(name, fn, runs=5, warmup=1):
    """Run fn() multiple times, report statistics."""
    for _ in range(warmup):
        try:
            fn()
        except RecursionError:
            return {"name": name, "error": "RecursionError"}

    times = []
    result = None
    for _ in range(runs):
        t0 = time.perf_counter()
        result = fn()
        t1 = time.perf_counter()
        times.append((t1 - t0) * 1000)  # ms

    return {
        "name": name,
        "result": result,
        "runs": runs,
        "mean_ms": statistics.mean(times),
        "median_ms": statistics.median(times),
        "stdev_ms": statistics.stdev(times) if len(times) > 1 else 0,
        "min_ms": min(times),
        "max_ms": max(times),
    }


def fmt_bench(b):
    """Format benchmark result."""
    if "error" in b:
        return f"  {b['name']:40s}  ERROR: {b['error']}"
    return (f"  {b['name']:40s}  "
            f"{b['mean_ms']:8.2f} ms  "
            f"(±{b['stdev_ms']:.2f}, "
            f"min={b['min_ms']:.2f}, "
            f"max={b['max_ms']:.2f})")


# ═══════════════════════════════════════════════════════════════
# BENCHMARK PROGRAMS
# ═══════════════════════════════════════════════════════════════

def bench_reads(n):
    def run():
        node = ChoiceTree.from_seed(1)
        total = 0
        for _ in range(n):
            total += node.left.read_int(0, 100)
            node = node.right
        return total
    return run


def bench_list(n):
    gen = integers().list(size=n)
    return lambda: len(sample(gen, 7))


def bench_set(n):
    gen = integers().set(size=n)
    return lambda: len(sample(gen, 7))


def _shrink_first_failure(gen, test, seed):
    prop = property_of(gen, test)
    for iteration in range(1, 1001):
        tree = ChoiceTree.from_seed(derive_seed(seed, iteration))
        outcome, _ = prop.generate(tree)
        if not isinstance(outcome, Success):
            stats = ShrinkStats()
            shrunk = minimize(tree, prop.generate, stats)
            return shrunk.args if shrunk is not None else outcome.args, stats
    return None, None


def bench_reverse(max_size):
    gen = integers(INT_MIN, INT_MAX).list(min_size=0, max_size=max_size)

    def reversible(xs):
        assert list(reversed(xs)) == xs

    def run():
        args, stats = _shrink_first_failure(gen, reversible, 42)
        return f"{args} in {stats.steps} steps, {stats.tried} tried"
    return run


def bench_length_list():
    gen = integers(1, 1000).list(min_size=1, max_size=100)

    def below_900(xs):
        assert max(xs) < 900

    def run():
        args, stats = _shrink_first_failure(gen, below_900, 42)
        return f"{args} in {stats.steps} steps, {stats.tried} tried"
    return run


# ═══════════════════════════════════════════════════════════════
# MAIN
# ═══════════════════════════════════════════════════════════════

def run_benchmarks(quick=False):
    print("╔═══════════════════════════════════════════════════════════╗")
    print("║  Ψ (ptree) Benchmark Suite                                ║")
    print("║  Copyright (c) 2026 Alex P. Slaby — MIT License          ║")
    print("╚═══════════════════════════════════════════════════════════╝\n")

    reads_n = 10_000 if quick else 100_000
    size_n = 1_000 if quick else 10_000
    reverse_n = 1_000 if quick else 10_000
    runs = 3 if quick else 5

    results = []

    # ── Tree reads ──
    print("  ── Tree ──\n")

    r = bench(f"{reads_n} spine reads", bench_reads(reads_n), runs=runs)
    results.append(r); print(fmt_bench(r))

    # ── Generation ──
    print("\n  ── Generation ──\n")

    r = bench(f"list of {size_n} ints", bench_list(size_n), runs=runs)
    results.append(r); print(fmt_bench(r))

    r = bench(f"set of {size_n} ints", bench_set(size_n), runs=runs)
    results.append(r); print(fmt_bench(r))

    # ── Shrinking ──
    print("\n  ── Shrinking ──\n")

    r = bench(f"reverse (max size {reverse_n})", bench_reverse(reverse_n), runs=runs)
    results.append(r); print(fmt_bench(r))
    if "result" in r:
        print(f"    → result: {r['result']}")

    r = bench("length list", bench_length_list(), runs=runs)
    results.append(r); print(fmt_bench(r))
    if "result" in r:
        print(f"    → result: {r['result']}")

    print()
    return results


if __name__ == "__main__":
    quick = "--quick" in sys.argv
    run_benchmarks(quick=quick)
