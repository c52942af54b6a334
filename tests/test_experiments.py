import csv

import pytest

import experiments as exp


def test_generators_are_seeded():
    assert exp.gen_uniform(100, alphabet=16, seed=4) == exp.gen_uniform(100, alphabet=16, seed=4)
    assert exp.gen_english_like(100, seed=4) == exp.gen_english_like(100, seed=4)
    assert len(exp.gen_zipf_like(64, alphabet=8, seed=1)) == 64
    assert all(0 <= s < 8 for s in exp.gen_zipf_like(64, alphabet=8, seed=1))


def test_generate_dataset_unknown_name():
    with pytest.raises(ValueError):
        exp.generate_dataset("no_such_generator", 10, 0)


@pytest.mark.parametrize("builder", list(exp.BUILDERS))
@pytest.mark.parametrize("name", ["english_like", "zipf64", "repetitive99"])
def test_run_one_round_trips(name, builder):
    data = exp.generate_dataset(name, 2000, seed=5)
    row = exp.run_one(data, builder, "exp", name, 1)
    assert row.correctness_ok == 1
    assert row.input_symbols == 2000
    assert row.builder == builder
    assert row.packed_bytes == (row.encoded_bits + 7) // 8
    assert -1e-9 <= row.redundancy < 1.0


def test_run_one_unknown_builder():
    with pytest.raises(ValueError):
        exp.run_one("abc", "quantum")


def test_optimality_trials_all_match():
    rows = exp.run_optimality_trials(40, 6, seed=9)
    assert len(rows) == 40
    assert all(r.matches == 1 for r in rows)


def test_main_writes_reports(tmp_path):
    argv = [
        "--outdir", str(tmp_path),
        "--runs", "2",
        "--exp1_size_kb", "1",
        "--exp1_generators", "zipf64,english_like",
        "--exp2_max_alphabet", "16",
        "--no_exp3",
        "--optimality_trials", "10",
        "--optimality_max_alphabet", "5",
        "--log-level", "WARNING",
    ]
    assert exp.main(argv) == 0

    with (tmp_path / "metrics.csv").open(newline="") as f:
        metrics = list(csv.DictReader(f))
    # exp1: 2 generators x 2 runs x 2 builders; exp2: alphabets 4, 8, 16 x 2 runs x 2 builders
    assert len(metrics) == 8 + 12
    assert all(r["correctness_ok"] == "1" for r in metrics)

    with (tmp_path / "summary.csv").open(newline="") as f:
        summary = list(csv.DictReader(f))
    assert all(r["n_runs"] == "2" for r in summary)

    assert (tmp_path / "optimality.csv").exists()
    assert (tmp_path / "exp1_bits_per_symbol.png").exists()
    assert (tmp_path / "exp2_build_time.png").exists()
