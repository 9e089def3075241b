"""
Tests for the CSV metrics exporter.

Files are read back with ``csv.reader`` so the assertions check fields
rather than raw line layout.
"""

import csv

import pytest

from bandit_gi.adapters.repositories.csv_exporter import (
    OPERATORS_HEADER,
    STEPS_HEADER,
    CsvExporter,
    escape_text,
)
from bandit_gi.adapters.strategies import UniformSelector
from bandit_gi.domain.ports.collaborators import MetricsExporter
from bandit_gi.domain.services.metrics_log import MetricsLog


@pytest.fixture
def metrics(three_operators):
    log = MetricsLog("exp1", clock=lambda: 0.0)
    log.update_config({"seed": 42, "rl_algorithm": "uniform"})
    log.set_original_fitness(1000)
    a, _, c = three_operators
    log.log_step(1, a, True, 1000, 800, 1.25, 3, '| A "quoted"\nline |')
    log.log_step(2, c, False, 800, None, 0.0, 4, "| C |")
    return log


@pytest.fixture
def selector(three_operators):
    return UniformSelector(three_operators, random_seed=1)


def read_rows(path):
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


class TestEscaping:
    """Test free-text flattening."""

    def test_newlines_escaped(self):
        """Test newlines become a literal backslash-n."""
        assert escape_text("a\nb\r\nc") == "a\\nb\\nc"

    def test_quotes_left_for_the_writer(self):
        """Test quotes are not doubled before the csv writer sees them."""
        assert escape_text('a "b"') == 'a "b"'

    def test_none_becomes_empty(self):
        """Test a missing value becomes the empty string."""
        assert escape_text(None) == ""


class TestCsvExporter:
    """Test the four exported tables."""

    def test_is_a_metrics_exporter(self, tmp_path):
        """Test the exporter implements the metrics exporter port."""
        assert isinstance(CsvExporter(tmp_path), MetricsExporter)

    def test_creates_output_directory(self, tmp_path):
        """Test the output directory is created when missing."""
        target = tmp_path / "nested" / "out"
        CsvExporter(target)
        assert target.is_dir()

    def test_steps_file(self, tmp_path, metrics):
        """Test one row per step with booleans, blanks and escaped patch text."""
        path = CsvExporter(tmp_path).export_steps(metrics, "steps.csv")
        rows = read_rows(path)

        assert rows[0] == list(STEPS_HEADER)
        assert len(rows) == 3
        assert rows[1] == [
            "1", "A", "statement", "false", "true", "true",
            "1000", "800", "1.25", "3", "0", '| A "quoted"\\nline |',
        ]
        assert rows[2] == [
            "2", "C", "llm", "true", "false", "false",
            "800", "", "0.0", "4", "0", "| C |",
        ]

    def test_steps_file_one_record_per_line(self, tmp_path, metrics):
        """Test an embedded newline does not split a record."""
        path = CsvExporter(tmp_path).export_steps(metrics, "steps.csv")
        assert len(path.read_text(encoding="utf-8").splitlines()) == 3

    def test_text_fields_quoted_and_quotes_doubled(self, tmp_path, metrics):
        """Test free text is wrapped in quotes with inner quotes doubled."""
        path = CsvExporter(tmp_path).export_steps(metrics, "steps.csv")
        second_line = path.read_text(encoding="utf-8").splitlines()[1]
        assert second_line.endswith('"| A ""quoted""\\nline |"')

    def test_operator_file(self, tmp_path, metrics, selector):
        """Test per-operator aggregates, one row per operator."""
        path = CsvExporter(tmp_path).export_operator_stats(metrics, selector, "ops.csv")
        rows = read_rows(path)

        assert rows[0] == list(OPERATORS_HEADER)
        assert len(rows) == 4
        assert rows[1][:10] == [
            "A", "statement", "false", "1", "1", "1.0", "1", "1.0", "1.25", "1.25",
        ]
        assert rows[2][:8] == ["B", "matched", "false", "0", "0", "0.0", "0", "0.0"]

    def test_config_file(self, tmp_path, metrics):
        """Test configuration entries are written as key/value rows."""
        rows = read_rows(CsvExporter(tmp_path).export_config(metrics, "cfg.csv"))

        assert rows[0] == ["key", "value"]
        assert ["seed", "42"] in rows
        assert ["original_fitness", "1000"] in rows

    def test_summary_file(self, tmp_path, metrics):
        """Test the summary table lists every metric in order."""
        rows = read_rows(CsvExporter(tmp_path).export_summary(metrics, "summary.csv"))
        values = dict(rows[1:])

        assert rows[0] == ["metric", "value"]
        assert [row[0] for row in rows[1:4]] == [
            "experiment_id",
            "total_steps",
            "successful_steps",
        ]
        assert values["total_steps"] == "2"
        assert float(values["success_rate"]) == pytest.approx(0.5)
        assert float(values["improvement_pct"]) == pytest.approx(20.0)
        assert values["llm_selections"] == "1"
        assert values["traditional_successes"] == "1"
        assert values["best_patch"] == '| A "quoted"\\nline |'
        assert len(values) == 21

    def test_comma_in_experiment_id_keeps_columns(self, tmp_path, three_operators):
        """Test an experiment id containing a comma stays a single field."""
        log = MetricsLog("run,1", clock=lambda: 0.0)
        log.update_config({"note": "a,b", "odd,key": "x"})
        log.log_step(1, three_operators[0], True, 10, 9, 0.1, 1, "| A |")
        exporter = CsvExporter(tmp_path)

        summary = read_rows(exporter.export_summary(log, "summary.csv"))
        config = read_rows(exporter.export_config(log, "cfg.csv"))

        assert all(len(row) == 2 for row in summary)
        assert summary[1] == ["experiment_id", "run,1"]
        assert all(len(row) == 2 for row in config)
        assert ["note", "a,b"] in config
        assert ["odd,key", "x"] in config

    def test_export_all(self, tmp_path, metrics, selector):
        """Test every table is written under the experiment prefix."""
        paths = CsvExporter(tmp_path).export_all(metrics, selector)

        assert {p.name for p in paths.values()} == {
            "exp1_steps.csv",
            "exp1_operators.csv",
            "exp1_config.csv",
            "exp1_summary.csv",
        }
        assert all(p.exists() for p in paths.values())
