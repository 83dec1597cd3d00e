"""
Benchmark: Huffman payload vs .huf container

Runs repeated compress/decompress cycles over synthetic datasets and records
ratio, timing and correctness for two pipelines:
  - "payload"    packed code bits only (tree kept in memory)
  - "container"  full .huf file, tree rebuilt from the stored frequency table

Outputs (in --outdir):
  - metrics.csv     (raw row per run per pipeline)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --size_kb 256 --max_mb 4
  python experiments.py --generators uniform256,zipf128,repetitive90 --no_scaling
"""

from __future__ import annotations

import argparse
import bisect
import csv
import logging
import os
import random
import statistics
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

import container
from bitpack import pack_bits, unpack_bits
from huffman import HuffmanCompressor

logger = logging.getLogger("huffman.experiments")

PIPELINES = ("payload", "container")


# Utilities

def now_ns() -> int:
    return time.perf_counter_ns()

def ns_to_ms(ns: int) -> float:
    return ns / 1_000_000.0


# Synthetic dataset generators

def _sample_cdf(rng: random.Random, symbols: Sequence[int], weights: Sequence[float], size: int) -> bytes:
    total = sum(weights)
    cdf = []
    acc = 0.0
    for w in weights:
        acc += w / total
        cdf.append(acc)
    last = len(symbols) - 1
    return bytes(symbols[min(bisect.bisect_left(cdf, rng.random()), last)] for _ in range(size))

def gen_uniform(size: int, alphabet: int = 256, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    return bytes(rng.randrange(0, alphabet) for _ in range(size))

def gen_repetitive(size: int, dominant: int = ord('A'), dom_frac: float = 0.90, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    others = [i for i in range(256) if i != dominant]
    return bytes(dominant if rng.random() < dom_frac else rng.choice(others) for _ in range(size))

def gen_zipf_like(size: int, alphabet: int = 128, s: float = 1.2, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    weights = [1.0 / ((i + 1) ** s) for i in range(alphabet)]
    return _sample_cdf(rng, list(range(alphabet)), weights, size)

def gen_english_like(size: int, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    chars = " etaoinshrdlcumwfgypbvkjxqETAOINSHRDLCUMWFGYPBVKJXQ\n"
    weights = []
    for ch in chars:
        if ch == ' ':
            weights.append(13.0)
        elif ch == '\n':
            weights.append(1.5)
        elif ch.lower() in "etaoinshrdlu":
            weights.append(6.0)
        elif ch.lower() in "cmfwgypbvk":
            weights.append(2.5)
        else:
            weights.append(1.2)
    return _sample_cdf(rng, [ord(c) for c in chars], weights, size)

def gen_single(size: int, seed: int = 0) -> bytes:
    return b"A" * size

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], bytes]] = {
    "uniform256": lambda size, seed: gen_uniform(size, alphabet=256, seed=seed),
    "uniform128": lambda size, seed: gen_uniform(size, alphabet=128, seed=seed),
    "zipf128": lambda size, seed: gen_zipf_like(size, alphabet=128, s=1.2, seed=seed),
    "repetitive90": lambda size, seed: gen_repetitive(size, dom_frac=0.90, seed=seed),
    "repetitive99": lambda size, seed: gen_repetitive(size, dom_frac=0.99, seed=seed),
    "english_like": lambda size, seed: gen_english_like(size, seed=seed),
    "single": gen_single,
}

def generate_dataset(name: str, size_bytes: int, seed: int) -> bytes:
    fn = GENERATOR_REGISTRY.get(name)
    if fn is None:
        raise ValueError(f"unknown generator {name!r}, choose from {', '.join(GENERATOR_REGISTRY)}")
    return fn(size_bytes, seed)


# Experiment runner

@dataclass
class MetricRow:
    exp_name: str
    dataset_name: str
    file_size_bytes: int
    run_id: int
    pipeline: str  # "payload" or "container"
    unique_symbols: int

    encode_ms: float
    decode_ms: float
    total_ms: float

    compressed_bytes: int
    compression_ratio: float
    avg_code_length: float
    correctness_ok: int  # 1 or 0


def run_one(data: bytes, pipeline: str) -> MetricRow:
    compressor = HuffmanCompressor()

    if pipeline == "payload":
        t0 = now_ns()
        packed, pad_bits = pack_bits(compressor.compress(data))
        t1 = now_ns()
        decoded = compressor.decompress(unpack_bits(packed, pad_bits))
        t2 = now_ns()
        compressed_bytes = len(packed)
        unique = len(compressor.frequencies)
    elif pipeline == "container":
        t0 = now_ns()
        packed = container.to_bytes(data)
        t1 = now_ns()
        decoded = container.from_bytes(packed)
        t2 = now_ns()
        compressed_bytes = len(packed)
        unique = len(set(data))
    else:
        raise ValueError("pipeline must be 'payload' or 'container'")

    encode_ms = ns_to_ms(t1 - t0)
    decode_ms = ns_to_ms(t2 - t1)
    bits = compressor.stats().compressed_bits if pipeline == "payload" else (compressed_bytes * 8)

    return MetricRow(
        exp_name="",
        dataset_name="",
        file_size_bytes=len(data),
        run_id=0,
        pipeline=pipeline,
        unique_symbols=unique,
        encode_ms=encode_ms,
        decode_ms=decode_ms,
        total_ms=encode_ms + decode_ms,
        compressed_bytes=compressed_bytes,
        compression_ratio=compressed_bytes / max(1, len(data)),
        avg_code_length=bits / max(1, len(data)),
        correctness_ok=1 if decoded == data else 0,
    )


def write_csv(path: Path, rows: List[MetricRow]) -> None:
    fields = list(MetricRow.__dataclass_fields__.keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fields)
        w.writeheader()
        for r in rows:
            w.writerow({k: getattr(r, k) for k in fields})


def mean_stdev(vals: List[float]) -> Tuple[float, float]:
    if len(vals) == 1:
        return vals[0], 0.0
    return statistics.mean(vals), statistics.stdev(vals)


def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    """
    Group by exp_name, dataset_name, file_size_bytes, pipeline and compute mean/stdev
    """
    key_to: Dict[Tuple[str, str, int, str], List[MetricRow]] = {}
    for r in rows:
        key = (r.exp_name, r.dataset_name, r.file_size_bytes, r.pipeline)
        key_to.setdefault(key, []).append(r)

    measured = ["compression_ratio", "avg_code_length", "encode_ms", "decode_ms", "total_ms"]
    summary_fields = ["exp_name", "dataset_name", "file_size_bytes", "pipeline", "n_runs"]
    for m in measured:
        summary_fields += [f"{m}_mean", f"{m}_stdev"]
    summary_fields.append("correctness_ok_rate")

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=summary_fields)
        w.writeheader()
        for key, items in sorted(key_to.items()):
            exp_name, dataset_name, size_b, pipeline = key
            row = {
                "exp_name": exp_name,
                "dataset_name": dataset_name,
                "file_size_bytes": size_b,
                "pipeline": pipeline,
                "n_runs": len(items),
                "correctness_ok_rate": sum(x.correctness_ok for x in items) / len(items),
            }
            for m in measured:
                row[f"{m}_mean"], row[f"{m}_stdev"] = mean_stdev([getattr(x, m) for x in items])
            w.writerow(row)


# Plotting

def _line_chart(xs, series: Dict[str, List[float]], xlabel: str, ylabel: str, title: str,
                out_file: Path, xticks: Optional[List[str]] = None) -> None:
    plt.figure()
    for label, ys in series.items():
        plt.plot(xs, ys, marker="o", label=label)
    if xticks is not None:
        plt.xticks(xs, xticks, rotation=20, ha="right")
    if xlabel:
        plt.xlabel(xlabel)
    plt.ylabel(ylabel)
    plt.title(title)
    plt.legend()
    plt.tight_layout()
    plt.savefig(out_file, dpi=200)
    plt.close()


def plot_distribution(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "distribution"]
    if not exp_rows:
        return

    datasets = sorted(set(r.dataset_name for r in exp_rows))
    x = list(range(len(datasets)))

    def mean_for(dataset: str, pipeline: str, field: str) -> float:
        vals = [getattr(r, field) for r in exp_rows if r.dataset_name == dataset and r.pipeline == pipeline]
        return statistics.mean(vals) if vals else float("nan")

    charts = [
        ("compression_ratio", "Compressed Bytes / Original Bytes", "Compression Ratio by Distribution"),
        ("avg_code_length", "Bits per Symbol", "Average Code Length by Distribution"),
        ("total_ms", "Total Time (ms) (encode + decode)", "Total Runtime by Distribution"),
    ]
    for field, ylabel, title in charts:
        series = {p: [mean_for(d, p, field) for d in datasets] for p in PIPELINES}
        _line_chart(x, series, "", ylabel, title, outdir / f"distribution_{field}.png", xticks=datasets)


def plot_scaling(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "size_scaling"]
    if not exp_rows:
        return

    for dist in sorted(set(r.dataset_name for r in exp_rows)):
        dist_rows = [r for r in exp_rows if r.dataset_name == dist]
        sizes = sorted(set(r.file_size_bytes for r in dist_rows))

        def mean_size(size: int, pipeline: str, field: str) -> float:
            vals = [getattr(r, field) for r in dist_rows if r.file_size_bytes == size and r.pipeline == pipeline]
            return statistics.mean(vals) if vals else float("nan")

        for field, ylabel in (("encode_ms", "Encode Time (ms)"),
                              ("decode_ms", "Decode Time (ms)"),
                              ("compression_ratio", "Compressed Bytes / Original Bytes")):
            series = {p: [mean_size(s, p, field) for s in sizes] for p in PIPELINES}
            _line_chart(sizes, series, "File Size (bytes)", ylabel,
                        f"{ylabel} vs Size ({dist})", outdir / f"scaling_{field}_{dist}.png")


# Main

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration (>=3 recommended for timing)")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")
    ap.add_argument("--log-level", type=str, default=os.getenv("HUFFMAN_LOG_LEVEL", "INFO"))

    ap.add_argument("--no_distribution", action="store_true", help="Disable the fixed-size distribution experiment")
    ap.add_argument("--no_scaling", action="store_true", help="Disable the size scaling experiment")

    ap.add_argument("--size_kb", type=int, default=512, help="Fixed file size in KB for the distribution experiment")
    ap.add_argument("--generators", type=str, default="uniform256,zipf128,repetitive90,english_like,single",
                    help="Comma-separated dataset generator names for the distribution experiment")
    ap.add_argument("--min_kb", type=int, default=4, help="Scaling experiment min size in KB (power-of-two growth)")
    ap.add_argument("--max_mb", type=int, default=8, help="Scaling experiment max size in MB (power-of-two growth)")
    ap.add_argument("--scaling_generators", type=str, default="uniform256,zipf128,repetitive90",
                    help="Comma-separated dataset generator names for the scaling experiment")

    args = ap.parse_args()
    logging.basicConfig(
        level=args.log_level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    outdir = Path(args.outdir)
    outdir.mkdir(parents=True, exist_ok=True)
    rows: List[MetricRow] = []

    def record(exp_name: str, gen_name: str, size_b: int, seed: int, run_id: int) -> None:
        data = generate_dataset(gen_name, size_b, seed)
        for pipeline in PIPELINES:
            row = run_one(data, pipeline)
            row.exp_name = exp_name
            row.dataset_name = gen_name
            row.run_id = run_id
            rows.append(row)
            if not row.correctness_ok:
                logger.warning("round trip mismatch: %s %s %d bytes run %d", pipeline, gen_name, size_b, run_id)

    # Distributions at a fixed size
    if not args.no_distribution:
        fixed_size = max(1, args.size_kb) * 1024
        for gen_name in parse_csv_list(args.generators):
            for run_id in range(1, args.runs + 1):
                record("distribution", gen_name, fixed_size, args.seed + run_id, run_id)

    # Size scaling, powers of 2
    if not args.no_scaling:
        sizes: List[int] = []
        s = max(1, args.min_kb) * 1024
        while s <= max(1, args.max_mb) * 1024 * 1024:
            sizes.append(s)
            s *= 2
        for gen_name in parse_csv_list(args.scaling_generators):
            for size_b in sizes:
                for run_id in range(1, args.runs + 1):
                    record("size_scaling", gen_name, size_b, args.seed + 10_000 + size_b + run_id, run_id)

    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(metrics_csv, rows)
    group_summary(rows, summary_csv)

    plot_distribution(rows, outdir)
    plot_scaling(rows, outdir)

    ok_rate = sum(r.correctness_ok for r in rows) / max(1, len(rows))
    print(f"Wrote {len(rows)} rows to {metrics_csv}")
    print(f"Wrote grouped summary to {summary_csv}")
    print(f"Correctness rate across all runs: {ok_rate:.3f}")
    print("Charts saved in:", outdir.resolve())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
