#!/usr/bin/env python3
"""Benchmark runner for the adaptive_histogram implementation."""

from __future__ import annotations

import argparse
import hashlib
import math
import time
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Sequence

import numpy as np
import pandas as pd

from adaptive_histogram import AdaptiveHistogram


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--outdir", default="bench_out", help="Directory for benchmark CSV outputs")
    parser.add_argument("--seed", type=int, default=42, help="Base RNG seed for reproducibility")
    parser.add_argument("--Ns", nargs="+", default=["1e4", "1e5"], help="Population sizes to benchmark")
    parser.add_argument(
        "--limits", nargs="+", default=["50", "100", "400"], help="Per-bucket count limits to benchmark"
    )
    parser.add_argument(
        "--distributions",
        nargs="+",
        default=["uniform", "normal", "exponential", "pareto", "bimodal", "sorted"],
        help="Synthetic data distributions to sample",
    )
    parser.add_argument(
        "--qs",
        nargs="+",
        default=["0.01", "0.05", "0.1", "0.25", "0.5", "0.75", "0.9", "0.95", "0.99"],
        help="Quantiles to evaluate",
    )
    return parser.parse_args()


def _to_int_list(values: Iterable[str]) -> List[int]:
    return [int(float(v)) for v in values]


def _to_float_list(values: Iterable[str]) -> List[float]:
    return [float(v) for v in values]


def _hash_seed(seed: int, *parts: object) -> int:
    material = "::".join(str(p) for p in (seed,) + parts)
    digest = hashlib.sha256(material.encode("utf-8")).hexdigest()
    return int(digest[:16], 16)


def _uniform(rng: np.random.Generator, size: int) -> np.ndarray:
    return rng.uniform(0.0, 1.0, size)


def _normal(rng: np.random.Generator, size: int) -> np.ndarray:
    return rng.normal(0.0, 1.0, size)


def _exponential(rng: np.random.Generator, size: int) -> np.ndarray:
    return rng.exponential(scale=1.0, size=size)


def _pareto(rng: np.random.Generator, size: int) -> np.ndarray:
    return rng.pareto(a=1.5, size=size)


def _bimodal(rng: np.random.Generator, size: int) -> np.ndarray:
    left = size // 2
    first = rng.normal(-2.0, 1.0, left)
    second = rng.normal(2.0, 0.5, size - left)
    data = np.concatenate([first, second]) if size else np.empty(0, dtype=float)
    rng.shuffle(data)
    return data


def _sorted(rng: np.random.Generator, size: int) -> np.ndarray:
    # Monotone arrival order only ever extends the rightmost bucket.
    return np.sort(rng.uniform(0.0, 1.0, size))


DATA_GENERATORS: Dict[str, Callable[[np.random.Generator, int], np.ndarray]] = {
    "uniform": _uniform,
    "normal": _normal,
    "exponential": _exponential,
    "pareto": _pareto,
    "bimodal": _bimodal,
    "sorted": _sorted,
}


def _validate_distributions(names: Sequence[str]) -> None:
    unknown = sorted(set(names) - DATA_GENERATORS.keys())
    if unknown:
        raise ValueError(f"Unknown distributions requested: {', '.join(unknown)}")


def main() -> None:
    args = _parse_args()

    Ns = _to_int_list(args.Ns)
    limits = _to_int_list(args.limits)
    qs = _to_float_list(args.qs)
    _validate_distributions(args.distributions)

    outdir = Path(args.outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    accuracy_records: List[Dict[str, object]] = []
    throughput_records: List[Dict[str, object]] = []
    latency_records: List[Dict[str, object]] = []
    structure_records: List[Dict[str, object]] = []

    for dist in args.distributions:
        for N in Ns:
            data_rng = np.random.default_rng(_hash_seed(args.seed, dist, N))
            data = DATA_GENERATORS[dist](data_rng, N).astype(float, copy=False)

            exact_quantiles = np.quantile(data, qs, method="linear")
            exact_map = dict(zip(qs, exact_quantiles))

            for limit in limits:
                hist = AdaptiveHistogram(count_per_node_limit=limit)
                start = time.perf_counter()
                for value in data:
                    hist.add(float(value))
                update_elapsed = time.perf_counter() - start
                updates_per_sec = (N / update_elapsed) if update_elapsed > 0 else math.inf

                throughput_records.append(
                    {
                        "distribution": dist,
                        "N": int(N),
                        "limit": int(limit),
                        "update_time_s": update_elapsed,
                        "updates_per_sec": updates_per_sec,
                    }
                )
                structure_records.append(
                    {
                        "distribution": dist,
                        "N": int(N),
                        "limit": int(limit),
                        "buckets": len(hist.buckets()),
                        "nodes": hist.node_count(),
                        "depth": hist.depth(),
                    }
                )

                spread = float(np.ptp(data)) if data.size else 0.0
                for q in qs:
                    q_start = time.perf_counter()
                    approx = hist.quantile(q)
                    q_elapsed = time.perf_counter() - q_start
                    latency_records.append(
                        {
                            "distribution": dist,
                            "N": int(N),
                            "limit": int(limit),
                            "q": q,
                            "latency_us": q_elapsed * 1e6,
                        }
                    )
                    abs_error = abs(approx - exact_map[q]) if approx is not None else math.inf
                    accuracy_records.append(
                        {
                            "distribution": dist,
                            "N": int(N),
                            "limit": int(limit),
                            "q": q,
                            "estimate": approx,
                            "exact": exact_map[q],
                            "abs_error": abs_error,
                            "rel_error": abs_error / spread if spread > 0 else 0.0,
                        }
                    )

    accuracy_path = outdir / "accuracy.csv"
    throughput_path = outdir / "update_throughput.csv"
    latency_path = outdir / "query_latency.csv"
    structure_path = outdir / "structure.csv"

    pd.DataFrame.from_records(accuracy_records).to_csv(accuracy_path, index=False)
    pd.DataFrame.from_records(throughput_records).to_csv(throughput_path, index=False)
    pd.DataFrame.from_records(latency_records).to_csv(latency_path, index=False)
    pd.DataFrame.from_records(structure_records).to_csv(structure_path, index=False)

    print("Benchmark artifacts written to:")
    print(f"  {accuracy_path}")
    print(f"  {throughput_path}")
    print(f"  {latency_path}")
    print(f"  {structure_path}")


if __name__ == "__main__":
    main()
