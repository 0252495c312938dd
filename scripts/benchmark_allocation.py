"""Benchmark allocation performance for varying numbers of trains.

Usage:
    python scripts/benchmark_allocation.py -Min 5 -Max 40 -Step 5 -Sections 60 -Reach 2
    python -m scripts.benchmark_allocation -Min 5 -Max 40 -Step 5 -Json

Notes:
    - Allocation cost ≈ O(N² · L) for N trains and L locations per route.
"""

from __future__ import annotations
import argparse, random, statistics, json, time, os, sys
from typing import List

# Ensure project root on path
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from src.core.allocator import allocate  # type: ignore
from src.core.track_reader import parse_track  # type: ignore
from src.sim.scenario import check_scenario, routes_from_payload  # type: ignore
from src.sim.simulator import summarize_allocation  # type: ignore
from scripts.generate_large_scenario import build_track_lines, build_trains  # type: ignore


def run_once(n_trains: int, lines: List[str], reach: int) -> dict:
    track = parse_track(lines)
    lengths = [int(line.split()[0]) for line in lines]
    raw = build_trains(n_trains, lengths, reach)
    occupied = routes_from_payload(track, raw["occupied"])
    requested = routes_from_payload(track, raw["requested"])
    check_scenario(track, occupied, requested)
    t0 = time.perf_counter()
    allocated = allocate(occupied, requested)
    dt = time.perf_counter() - t0
    kpis = summarize_allocation(requested, allocated)
    return {
        "n_trains": len(occupied),
        "elapsed_s": dt,
        "truncated": kpis["truncated"],
        "blocked": kpis["blocked"],
        "grant_ratio": kpis["grant_ratio"],
    }


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument('-Min', type=int, default=5)
    ap.add_argument('-Max', type=int, default=40)
    ap.add_argument('-Step', type=int, default=5)
    ap.add_argument('-Sections', type=int, default=60)
    ap.add_argument('-Reach', type=int, default=2)
    ap.add_argument('-Repeats', type=int, default=3)
    ap.add_argument('-Json', action='store_true')
    args = ap.parse_args()

    random.seed(42)
    lines = build_track_lines(args.Sections, 10, 60)
    rows = []
    for n in range(args.Min, args.Max + 1, args.Step):
        for _ in range(args.Repeats):
            row = run_once(n, lines, args.Reach)
            rows.append(row)
            if args.Json:
                print(json.dumps(row))
            else:
                print(f"Trains={row['n_trains']:<3} elapsed={row['elapsed_s']*1000:7.2f} ms truncated={row['truncated']:<3} blocked={row['blocked']:<3} granted={row['grant_ratio']}%")
    if not args.Json:
        from collections import defaultdict
        by_n = defaultdict(list)
        for r in rows:
            by_n[r['n_trains']].append(r['elapsed_s'])
        print('\nSummary (mean ms per train count)')
        for n in sorted(by_n):
            ms = statistics.fmean(by_n[n]) * 1000
            print(f"  {n:>3}: {ms:7.2f} ms")


if __name__ == '__main__':
    main()
