#!/usr/bin/env python3
"""Benchmark suite for PySkip comparing against the builtin list."""

import argparse
import json
import math
import random
import time
from pathlib import Path
from typing import Dict, List

import numpy as np
import plotly.graph_objects as go
from tqdm import tqdm

from pyskip import IndexableSkipList, RandomCoin


class Metrics:
    def __init__(self):
        self.add_latencies: List[float] = []
        self.get_latencies: List[float] = []

    def to_dict(self) -> Dict:
        return {
            "add_latencies": {
                "p50": np.percentile(self.add_latencies, 50),
                "p95": np.percentile(self.add_latencies, 95),
                "p99": np.percentile(self.add_latencies, 99),
            },
            "get_latencies": {
                "p50": np.percentile(self.get_latencies, 50),
                "p95": np.percentile(self.get_latencies, 95),
                "p99": np.percentile(self.get_latencies, 99),
            },
        }


class ShapeStats:
    """Height and node-count samples over independent seeded trials."""

    def __init__(self, size: int):
        self.size = size
        self.heights: List[int] = []
        self.node_counts: List[int] = []

    def to_dict(self) -> Dict:
        return {
            "size": self.size,
            "log2_size": math.log2(self.size),
            "height_mean": float(np.mean(self.heights)),
            "height_max": int(np.max(self.heights)),
            "nodes_per_element": float(np.mean(self.node_counts)) / self.size,
        }


def plot_latencies(results: Dict[str, Metrics], title: str, output_path: Path):
    fig = go.Figure()

    for name, metrics in results.items():
        fig.add_trace(go.Box(
            y=metrics.add_latencies,
            name=f"{name} add",
            boxpoints="outliers"
        ))
        fig.add_trace(go.Box(
            y=metrics.get_latencies,
            name=f"{name} get",
            boxpoints="outliers"
        ))

    fig.update_layout(
        title=title,
        yaxis_title="Latency (µs)",
        boxmode="group"
    )

    fig.write_html(output_path)


class BenchmarkSuite:
    def __init__(self, num_entries: int, seed: int):
        self.num_entries = num_entries
        self.seed = seed
        rng = random.Random(seed)
        # insertion positions are valid for the size reached at each step
        self._positions = [rng.randint(0, i) for i in range(num_entries)]
        self._lookups = [rng.randrange(num_entries) for _ in range(num_entries)]

    def run_pyskip_benchmark(self) -> Metrics:
        metrics = Metrics()
        sl = IndexableSkipList(coin=RandomCoin(self.seed))

        for i in tqdm(range(self.num_entries), desc="PySkip add"):
            start = time.perf_counter()
            sl.add(self._positions[i], i)
            metrics.add_latencies.append((time.perf_counter() - start) * 1e6)

        for i in tqdm(self._lookups, desc="PySkip get"):
            start = time.perf_counter()
            sl.get(i)
            metrics.get_latencies.append((time.perf_counter() - start) * 1e6)

        return metrics

    def run_list_benchmark(self) -> Metrics:
        metrics = Metrics()
        seq: List[int] = []

        for i in tqdm(range(self.num_entries), desc="list insert"):
            start = time.perf_counter()
            seq.insert(self._positions[i], i)
            metrics.add_latencies.append((time.perf_counter() - start) * 1e6)

        for i in tqdm(self._lookups, desc="list index"):
            start = time.perf_counter()
            seq[i]
            metrics.get_latencies.append((time.perf_counter() - start) * 1e6)

        return metrics

    def run_shape_trials(self, trials: int) -> ShapeStats:
        stats = ShapeStats(self.num_entries)
        for t in tqdm(range(trials), desc="Shape trials"):
            rng = random.Random(self.seed + t)
            sl = IndexableSkipList(coin=RandomCoin(self.seed + t))
            for i in range(self.num_entries):
                sl.add(rng.randint(0, i), i)
            stats.heights.append(sl.height)
            stats.node_counts.append(sl.node_count())
        return stats


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--size", type=int, default=100000, help="Number of entries")
    parser.add_argument("--trials", type=int, default=20, help="Seeded trials for shape statistics")
    parser.add_argument("--seed", type=int, default=0, help="Base random seed")
    parser.add_argument("--output", type=Path, default=Path("benchmark_results"), help="Output directory")
    args = parser.parse_args()

    args.output.mkdir(parents=True, exist_ok=True)

    suite = BenchmarkSuite(args.size, args.seed)
    results = {
        "pyskip": suite.run_pyskip_benchmark(),
        "list": suite.run_list_benchmark(),
    }
    shape = suite.run_shape_trials(args.trials)

    plot_latencies(results, "PySkip vs list latency distribution", args.output / "latencies.html")

    with open(args.output / "metrics.json", "w") as f:
        json.dump({
            **{name: m.to_dict() for name, m in results.items()},
            "shape": shape.to_dict(),
        }, f, indent=2)


if __name__ == "__main__":
    main()
