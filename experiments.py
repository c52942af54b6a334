"""
Huffman experiments: heap builder vs linear-scan builder

Runs the full pipeline (frequencies -> tree -> codes -> encode -> decode)
over synthetic datasets, repeated several times, and records how close the
codes come to the entropy bound and what each stage costs.

Outputs (in --outdir):
  - metrics.csv      (raw row per run per builder)
  - summary.csv      (grouped mean/stdev)
  - optimality.csv   (Huffman cost vs exhaustive optimum on small alphabets)
  - *.png            (charts)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --exp1_size_kb 64 --exp2_max_alphabet 2048
  python experiments.py --outdir results --exp1_generators uniform256,zipf128,english_like --log-level DEBUG
"""

from __future__ import annotations

import argparse
import csv
import random
import statistics
import time
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Callable, Dict, Hashable, List, Optional, Sequence, Tuple

import matplotlib.pyplot as plt
from loguru import logger

import huffman as huff
from analysis import entropy_bits, is_prefix_free, optimal_cost


BUILDERS: Dict[str, Callable[[Dict[Hashable, int]], huff.HuffmanNode]] = {
    "heap": huff.build_huffman_tree,
    "linear": huff.build_huffman_tree_linear,
}


# Utilities

def timed_ms(fn, *args):
    t0 = time.perf_counter_ns()
    result = fn(*args)
    return result, (time.perf_counter_ns() - t0) / 1_000_000.0


# Synthetic dataset generators (sequences of int symbols, or text)

def gen_uniform(size: int, alphabet: int = 256, seed: int = 0) -> List[int]:
    rng = random.Random(seed)
    return [rng.randrange(alphabet) for _ in range(size)]

def gen_repetitive(size: int, dominant: int = ord('A'), dom_frac: float = 0.90, seed: int = 0) -> List[int]:
    rng = random.Random(seed)
    others = [s for s in range(256) if s != dominant]
    return [dominant if rng.random() < dom_frac else rng.choice(others) for _ in range(size)]

def gen_zipf_like(size: int, alphabet: int = 128, s: float = 1.2, seed: int = 0) -> List[int]:
    rng = random.Random(seed)
    weights = [1.0 / ((rank + 1) ** s) for rank in range(alphabet)]
    return rng.choices(range(alphabet), weights=weights, k=size)

ENGLISH_WEIGHTS = {
    " ": 13.0, "\n": 1.5,
    **dict.fromkeys("etaoinshrdlu", 6.0),
    **dict.fromkeys("cmfwgypbvk", 2.5),
    **dict.fromkeys("jxqz", 1.2),
}

def gen_english_like(size: int, seed: int = 0) -> str:
    rng = random.Random(seed)
    chars = list(ENGLISH_WEIGHTS)
    return ''.join(rng.choices(chars, weights=[ENGLISH_WEIGHTS[c] for c in chars], k=size))

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], Sequence[Hashable]]] = {
    "uniform256": lambda size, seed: gen_uniform(size, alphabet=256, seed=seed),
    "uniform16": lambda size, seed: gen_uniform(size, alphabet=16, seed=seed),
    "zipf128": lambda size, seed: gen_zipf_like(size, alphabet=128, s=1.2, seed=seed),
    "zipf64": lambda size, seed: gen_zipf_like(size, alphabet=64, s=1.2, seed=seed),
    "repetitive90": lambda size, seed: gen_repetitive(size, dom_frac=0.90, seed=seed),
    "repetitive99": lambda size, seed: gen_repetitive(size, dom_frac=0.99, seed=seed),
    "english_like": lambda size, seed: gen_english_like(size, seed=seed),
}

def generate_dataset(name: str, size: int, seed: int) -> Sequence[Hashable]:
    try:
        fn = GENERATOR_REGISTRY[name]
    except KeyError:
        raise ValueError(f"unknown generator {name!r}, choose from {', '.join(sorted(GENERATOR_REGISTRY))}") from None
    return fn(size, seed)


# Experiment runner

@dataclass
class MetricRow:
    exp_name: str
    dataset_name: str
    input_symbols: int
    run_id: int
    builder: str  # key of BUILDERS
    unique_symbols: int

    build_tree_ms: float
    code_table_ms: float
    encode_ms: float
    decode_ms: float
    total_ms: float

    encoded_bits: int
    packed_bytes: int  # encoded_bits rounded up to whole bytes
    bits_per_symbol: float
    entropy_bits_per_symbol: float
    redundancy: float  # bits_per_symbol - entropy_bits_per_symbol
    max_code_length: int
    correctness_ok: int  # 1 or 0


def run_one(data: Sequence[Hashable], builder: str, exp_name: str = "", dataset_name: str = "", run_id: int = 0) -> MetricRow:
    if builder not in BUILDERS:
        raise ValueError(f"builder must be one of {', '.join(BUILDERS)}")

    ft = huff.frequency_table(data)
    root, build_ms = timed_ms(BUILDERS[builder], ft)
    code_map, codes_ms = timed_ms(huff.generate_huffman_codes, root)
    bits, encode_ms = timed_ms(huff.huffman_encode, data, code_map)
    decoded, decode_ms = timed_ms(huff.huffman_decode, bits, root)

    correct = decoded == list(data) and is_prefix_free(code_map)
    if not correct:
        logger.warning(f"Round trip failed for {dataset_name or 'dataset'} with the {builder} builder")

    n = max(1, len(data))
    bps = len(bits) / n
    hps = entropy_bits(ft) / n
    return MetricRow(
        exp_name=exp_name,
        dataset_name=dataset_name,
        input_symbols=len(data),
        run_id=run_id,
        builder=builder,
        unique_symbols=len(ft),
        build_tree_ms=build_ms,
        code_table_ms=codes_ms,
        encode_ms=encode_ms,
        decode_ms=decode_ms,
        total_ms=build_ms + codes_ms + encode_ms + decode_ms,
        encoded_bits=len(bits),
        packed_bytes=(len(bits) + 7) // 8,
        bits_per_symbol=bps,
        entropy_bits_per_symbol=hps,
        redundancy=bps - hps,
        max_code_length=max(len(c) for c in code_map.values()),
        correctness_ok=int(correct),
    )


@dataclass
class OptimalityRow:
    trial: int
    alphabet_size: int
    weights: str
    huffman_cost: int
    optimal_cost: int
    matches: int  # 1 or 0


def run_optimality_trials(trials: int, max_alphabet: int, seed: int) -> List[OptimalityRow]:
    """Compare Huffman cost to the exhaustive optimum on random small alphabets."""
    rng = random.Random(seed)
    rows = []
    for trial in range(1, trials + 1):
        size = rng.randint(1, max_alphabet)
        weights = [rng.randint(1, 50) for _ in range(size)]
        ft = {symbol: w for symbol, w in enumerate(weights)}
        code_map = huff.generate_huffman_codes(huff.build_huffman_tree(ft))
        cost = huff.encoded_bit_length(ft, code_map)
        best = optimal_cost(weights)
        rows.append(OptimalityRow(trial, size, " ".join(map(str, weights)), cost, best, int(cost == best)))
        if cost != best:
            logger.error(f"Trial {trial}: Huffman cost {cost} exceeds optimum {best} for weights {weights}")
    return rows


def write_csv(path: Path, rows: list) -> None:
    if not rows:
        return
    names = [f.name for f in fields(rows[0])]
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=names)
        w.writeheader()
        for r in rows:
            w.writerow({k: getattr(r, k) for k in names})


SUMMARY_METRICS = (
    "bits_per_symbol", "entropy_bits_per_symbol", "redundancy",
    "build_tree_ms", "code_table_ms", "encode_ms", "decode_ms", "total_ms",
)

def mean_stdev(vals: List[float]) -> Tuple[float, float]:
    if len(vals) == 1:
        return vals[0], 0.0
    return statistics.mean(vals), statistics.stdev(vals)

def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    """
    Group by exp_name, dataset_name, input_symbols, builder and compute mean/stdev
    """
    groups: Dict[Tuple[str, str, int, str], List[MetricRow]] = {}
    for r in rows:
        groups.setdefault((r.exp_name, r.dataset_name, r.input_symbols, r.builder), []).append(r)

    header = ["exp_name", "dataset_name", "input_symbols", "builder", "n_runs"]
    for m in SUMMARY_METRICS:
        header += [f"{m}_mean", f"{m}_stdev"]
    header.append("correctness_ok_rate")

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=header)
        w.writeheader()
        for key, items in sorted(groups.items()):
            row = dict(zip(header[:4], key))
            row["n_runs"] = len(items)
            for m in SUMMARY_METRICS:
                row[f"{m}_mean"], row[f"{m}_stdev"] = mean_stdev([getattr(x, m) for x in items])
            row["correctness_ok_rate"] = sum(x.correctness_ok for x in items) / len(items)
            w.writerow(row)


# Plotting

def plot_experiment_1(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp1_distribution" and r.builder == "heap"]
    if not exp_rows:
        return

    datasets = sorted(set(r.dataset_name for r in exp_rows))
    x = list(range(len(datasets)))

    def mean_for(dataset: str, field: str) -> float:
        vals = [getattr(r, field) for r in exp_rows if r.dataset_name == dataset]
        return statistics.mean(vals) if vals else float("nan")

    plt.figure()
    plt.plot(x, [mean_for(d, "bits_per_symbol") for d in datasets], marker="o", label="huffman")
    plt.plot(x, [mean_for(d, "entropy_bits_per_symbol") for d in datasets], marker="x", linestyle="--", label="entropy")
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Bits per Symbol")
    plt.title("Experiment 1: Code Length vs Entropy by Distribution")
    plt.legend()
    plt.tight_layout()
    plt.savefig(outdir / "exp1_bits_per_symbol.png", dpi=200)
    plt.close()


def plot_experiment_2(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp2_alphabet_scaling"]
    if not exp_rows:
        return

    plt.figure()
    for builder in BUILDERS:
        sizes = sorted(set(r.unique_symbols for r in exp_rows if r.builder == builder))
        y = [statistics.mean(r.build_tree_ms for r in exp_rows if r.builder == builder and r.unique_symbols == s) for s in sizes]
        plt.plot(sizes, y, marker="o", label=builder)
    plt.xscale("log", base=2)
    plt.xlabel("Distinct Symbols")
    plt.ylabel("Tree Build Time (ms)")
    plt.title("Experiment 2: Build Time vs Alphabet Size")
    plt.legend()
    plt.tight_layout()
    plt.savefig(outdir / "exp2_build_time.png", dpi=200)
    plt.close()


def plot_experiment_3(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp3_end_to_end"]
    if not exp_rows:
        return

    datasets = sorted(set(r.dataset_name for r in exp_rows))
    x = list(range(len(datasets)))
    stages = ("build_tree_ms", "code_table_ms", "encode_ms", "decode_ms")

    plt.figure()
    bottom = [0.0] * len(datasets)
    for stage in stages:
        heights = [statistics.mean(getattr(r, stage) for r in exp_rows if r.dataset_name == d) for d in datasets]
        plt.bar(x, heights, bottom=bottom, label=stage.replace("_ms", ""))
        bottom = [b + h for b, h in zip(bottom, heights)]
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Time (ms)")
    plt.title("Experiment 3: End-to-End Time by Stage (heap builder)")
    plt.legend()
    plt.tight_layout()
    plt.savefig(outdir / "exp3_stage_time.png", dpi=200)
    plt.close()


# Main

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Huffman coding experiments")
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration (>=3 recommended for timing)")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")
    ap.add_argument("--log-level", type=str, default="INFO", help="loguru level for progress messages")
    ap.add_argument("--no-plots", action="store_true", help="Write CSV files only")

    ap.add_argument("--no_exp1", action="store_true", help="Disable experiment 1 (distribution)")
    ap.add_argument("--no_exp2", action="store_true", help="Disable experiment 2 (alphabet scaling)")
    ap.add_argument("--no_exp3", action="store_true", help="Disable experiment 3 (end-to-end stages)")
    ap.add_argument("--no_optimality", action="store_true", help="Disable the exhaustive optimality check")

    ap.add_argument("--exp1_size_kb", type=int, default=256, help="Experiment 1 input size in KiB (1024 symbols)")
    ap.add_argument("--exp1_generators", type=str, default="uniform256,zipf128,repetitive90,english_like",
                    help="Comma-separated dataset generator names for experiment 1")

    ap.add_argument("--exp2_min_alphabet", type=int, default=4, help="Experiment 2 smallest alphabet (power-of-two growth)")
    ap.add_argument("--exp2_max_alphabet", type=int, default=4096, help="Experiment 2 largest alphabet")

    ap.add_argument("--optimality_trials", type=int, default=200, help="Random alphabets to check against the optimum")
    ap.add_argument("--optimality_max_alphabet", type=int, default=7, help="Largest alphabet for the exhaustive search")

    args = ap.parse_args(argv)
    huff.configure_logging(args.log_level)

    outdir = Path(args.outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    rows: List[MetricRow] = []

    # Experiment 1: distributions (fixed size), both builders
    if not args.no_exp1:
        size = max(1, args.exp1_size_kb) * 1024
        for gen_name in parse_csv_list(args.exp1_generators):
            logger.info(f"Experiment 1: {gen_name}, {size} symbols")
            for run_id in range(1, args.runs + 1):
                data = generate_dataset(gen_name, size, args.seed + run_id)
                for builder in BUILDERS:
                    rows.append(run_one(data, builder, "exp1_distribution", gen_name, run_id))

    # Experiment 2: alphabet scaling, every symbol present a few times
    if not args.no_exp2:
        alphabet = max(2, args.exp2_min_alphabet)
        while alphabet <= args.exp2_max_alphabet:
            logger.info(f"Experiment 2: alphabet of {alphabet} symbols")
            for run_id in range(1, args.runs + 1):
                rng = random.Random(args.seed + 10_000 + alphabet + run_id)
                data = list(range(alphabet)) + gen_zipf_like(alphabet * 4, alphabet=alphabet, seed=rng.randrange(1 << 30))
                for builder in BUILDERS:
                    rows.append(run_one(data, builder, "exp2_alphabet_scaling", f"zipf_{alphabet}", run_id))
            alphabet *= 2

    # Experiment 3: stage breakdown on mixed datasets, heap builder only
    if not args.no_exp3:
        mixed_specs = [
            ("english_like", 1024 * 1024),
            ("uniform256", 1024 * 1024),
            ("uniform16", 1024 * 1024),
            ("zipf64", 1024 * 1024),
            ("repetitive99", 1024 * 1024),
        ]
        for gen_name, size in mixed_specs:
            logger.info(f"Experiment 3: {gen_name}, {size} symbols")
            for run_id in range(1, args.runs + 1):
                data = generate_dataset(gen_name, size, args.seed + 200_000 + run_id)
                rows.append(run_one(data, "heap", "exp3_end_to_end", f"{gen_name}_{size // 1024}k", run_id))

    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(metrics_csv, rows)
    group_summary(rows, summary_csv)
    logger.info(f"Wrote {len(rows)} rows to {metrics_csv}")
    logger.info(f"Wrote grouped summary to {summary_csv}")

    optimality_ok = True
    if not args.no_optimality:
        opt_rows = run_optimality_trials(args.optimality_trials, args.optimality_max_alphabet, args.seed)
        write_csv(outdir / "optimality.csv", opt_rows)
        matched = sum(r.matches for r in opt_rows)
        optimality_ok = matched == len(opt_rows)
        logger.info(f"Huffman matched the exhaustive optimum in {matched}/{len(opt_rows)} trials")

    if not args.no_plots:
        plot_experiment_1(rows, outdir)
        plot_experiment_2(rows, outdir)
        plot_experiment_3(rows, outdir)
        logger.info(f"Charts saved in: {outdir.resolve()}")

    ok_rate = sum(r.correctness_ok for r in rows) / max(1, len(rows))
    logger.info(f"Correctness rate across all runs: {ok_rate:.3f}")
    return 0 if all(r.correctness_ok for r in rows) and optimality_ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
