import csv
import json

import pytest

from boidsim.app.headless import run_headless


def _read_csv(path):
    with path.open(newline="") as handle:
        return list(csv.reader(handle))


def test_headless_basic_log_header(tmp_path):
    log_path = tmp_path / "basic.csv"
    run_headless(steps=2, seed=1, log_path=log_path, deterministic_log=True, log_format="basic")
    rows = _read_csv(log_path)
    assert len(rows) == 3
    assert rows[0] == ["tick", "population", "neighbor_checks", "avg_speed", "max_speed", "tick_ms"]
    assert [row[0] for row in rows[1:]] == ["1", "2"]
    assert rows[1][-1] == "0.000"


def test_headless_detailed_log_header_and_ratios(tmp_path):
    log_path = tmp_path / "detailed.csv"
    run_headless(steps=3, seed=2, log_path=log_path, deterministic_log=True, log_format="detailed")
    rows = _read_csv(log_path)
    assert len(rows) == 4
    header = rows[0]
    assert header == [
        "tick",
        "population",
        "neighbor_checks",
        "avg_speed",
        "max_speed",
        "tick_ms",
        "neighbor_checks_per_agent",
        "tick_ms_per_agent",
        "centroid_x",
        "centroid_y",
        "spread",
        "polarization",
    ]
    idx = {name: i for i, name in enumerate(header)}
    first_row = rows[1]
    population = int(first_row[idx["population"]])
    neighbor_checks = int(first_row[idx["neighbor_checks"]])
    assert float(first_row[idx["neighbor_checks_per_agent"]]) == pytest.approx(neighbor_checks / population, abs=1e-4)
    assert 0.0 <= float(first_row[idx["polarization"]]) <= 1.0 + 1e-4


def test_headless_runs_are_reproducible(tmp_path):
    first = tmp_path / "a.csv"
    second = tmp_path / "b.csv"
    run_headless(steps=5, seed=9, log_path=first, deterministic_log=True)
    run_headless(steps=5, seed=9, log_path=second, deterministic_log=True)
    assert first.read_text() == second.read_text()


def test_headless_summary_output(tmp_path):
    summary_path = tmp_path / "summary.json"
    world = run_headless(
        steps=4,
        seed=3,
        log_path=None,
        deterministic_log=True,
        log_format="basic",
        summary_path=summary_path,
        summary_window=2,
        population_size=7,
    )
    payload = json.loads(summary_path.read_text())
    assert payload["steps"] == 4
    assert payload["final_step"] == 4
    assert payload["seed"] == 3
    assert payload["population"] == 7
    assert payload["log_format"] == "basic"
    assert "tick_ms" in payload
    assert "neighbor_checks" in payload
    assert payload["tail_window"]["window"] == 2
    assert world.step_count == 4


def test_headless_reads_yaml_config(tmp_path):
    config_path = tmp_path / "flock.yaml"
    config_path.write_text("simulation:\n  model: identity\ndriver:\n  population_size: 4\n  seed: 5\n")
    world = run_headless(steps=2, seed=None, log_path=None, config_path=config_path)

    assert len(world.agents) == 4
    assert world.config.model == "identity"
    assert world.driver.seed == 5


def test_headless_rejects_unknown_log_format(tmp_path):
    with pytest.raises(ValueError):
        run_headless(steps=1, seed=1, log_path=tmp_path / "x.csv", log_format="verbose")
