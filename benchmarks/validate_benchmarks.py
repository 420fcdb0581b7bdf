#!/usr/bin/env python3
"""Check ``bench_histogram.py`` CSV output against regression thresholds.

Each check reduces one column of one CSV to a single number and compares it
with a bound. The report is written as markdown next to the CSVs and the
script exits non-zero if any bound is violated.
"""

from __future__ import annotations

import argparse
import json
import operator
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List

import pandas as pd


@dataclass(frozen=True)
class Check:
    name: str
    artifact: str
    column: str
    reduce: Callable[[pd.Series], float]
    compare: Callable[[float, float], bool]
    bound: float
    unit: str = ""

    def describe(self) -> str:
        symbol = "<=" if self.compare is operator.le else ">="
        return f"{symbol} {self.bound}{self.unit}"


CHECKS: List[Check] = [
    # Error is measured against the data range (max - min), the same scale the
    # buckets are laid out on, so heavy-tailed inputs are comparable.
    Check("Quantile error / data range", "accuracy.csv", "rel_error", pd.Series.max, operator.le, 0.05),
    Check("Slowest ingestion", "update_throughput.csv", "updates_per_sec", pd.Series.min, operator.ge, 20_000, " values/s"),
    Check("Quantile latency p95", "query_latency.csv", "latency_us", lambda s: s.quantile(0.95), operator.le, 20_000.0, " us"),
    # Sorted arrivals build a right-leaning chain of buckets.
    Check("Deepest tree", "structure.csv", "depth", pd.Series.max, operator.le, 50_000),
    Check("Most buckets per observation", "structure.csv", "bucket_ratio", pd.Series.max, operator.le, 1.0),
]


def _load(outdir: Path, artifact: str) -> pd.DataFrame:
    path = outdir / artifact
    if not path.exists():
        raise FileNotFoundError(f"Expected benchmark artifact missing: {path}")
    frame = pd.read_csv(path)
    if artifact == "structure.csv":
        frame["bucket_ratio"] = frame["buckets"] / frame["N"]
    return frame


def run_checks(outdir: Path) -> Dict[str, Dict[str, object]]:
    frames: Dict[str, pd.DataFrame] = {}
    results: Dict[str, Dict[str, object]] = {}
    for check in CHECKS:
        if check.artifact not in frames:
            frames[check.artifact] = _load(outdir, check.artifact)
        series = frames[check.artifact][check.column]
        observed = float(check.reduce(series)) if not series.empty else 0.0
        results[check.name] = {
            "threshold": check.describe(),
            "observed": round(observed, 6),
            "ok": bool(series.empty or check.compare(observed, check.bound)),
        }
    accuracy = frames["accuracy.csv"]
    results["Quantile error / data range"]["per_distribution"] = (
        accuracy.groupby("distribution")["rel_error"].max().round(6).to_dict()
    )
    return results


def render(results: Dict[str, Dict[str, object]]) -> str:
    rows = ["# Adaptive histogram benchmark checks", "", "| Check | Bound | Observed | Result |", "| --- | --- | --- | --- |"]
    for name, payload in results.items():
        verdict = "PASS" if payload["ok"] else "FAIL"
        rows.append(f"| {name} | {payload['threshold']} | {payload['observed']} | {verdict} |")
    rows += ["", "```json", json.dumps(results, indent=2, sort_keys=True), "```"]
    return "\n".join(rows)


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("outdir", nargs="?", default="bench_out", help="Directory holding the benchmark CSVs")
    parser.add_argument("--summary", default="bench_summary.md", help="Markdown report filename inside outdir")
    args = parser.parse_args()

    outdir = Path(args.outdir)
    results = run_checks(outdir)
    report = render(results)
    (outdir / args.summary).write_text(report, encoding="utf-8")
    print(report)

    failed = [name for name, payload in results.items() if not payload["ok"]]
    if failed:
        raise SystemExit(f"Benchmark regression in: {', '.join(failed)}")


if __name__ == "__main__":
    main()
