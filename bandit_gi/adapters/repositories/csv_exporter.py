"""CSV export of experiment metrics.

Writes four files per experiment into the output directory:
    {experiment_id}_steps.csv      one row per search step
    {experiment_id}_operators.csv  per-operator statistics
    {experiment_id}_config.csv     resolved configuration
    {experiment_id}_summary.csv    run summary (metric,value)

Every text field is quoted and numbers are written bare. Embedded newlines
in free text become the two characters ``\\n`` so every record stays on one
line.
"""

import csv
from collections.abc import Iterable, Sequence
from pathlib import Path

import structlog

from bandit_gi.domain.ports.collaborators import MetricsExporter
from bandit_gi.domain.ports.selector import OperatorSelector
from bandit_gi.domain.services.metrics_log import MetricsLog

logger = structlog.get_logger(__name__)

STEPS_HEADER = (
    "step", "operator", "category", "is_llm", "success", "is_improvement",
    "parent_fitness", "child_fitness", "reward", "step_duration_ms",
    "cumulative_time_ms", "patch",
)
OPERATORS_HEADER = (
    "operator", "category", "is_llm", "selection_count", "success_count",
    "success_rate", "improvement_count", "improvement_rate", "total_reward",
    "avg_reward", "learned_q",
)
CONFIG_HEADER = ("key", "value")
SUMMARY_HEADER = ("metric", "value")

PRECISION = 6


def escape_text(value: str | None) -> str:
    """Flatten free text onto one line; quote doubling is left to the writer."""
    if value is None:
        return ""
    return value.replace("\r\n", "\\n").replace("\n", "\\n")


def _bool(value: bool) -> str:
    return "true" if value else "false"


def _real(value: float) -> float:
    return round(float(value), PRECISION)


class CsvExporter(MetricsExporter):
    """Exports a ``MetricsLog`` to CSV files."""

    def __init__(self, output_dir: str | Path):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _write(self, filename: str, header: Sequence[str], rows: Iterable[Sequence]) -> Path:
        path = self.output_dir / filename
        count = 0
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
            writer.writerow(header)
            for row in rows:
                writer.writerow(row)
                count += 1
        logger.info("exported_csv", path=str(path), rows=count)
        return path

    def export_steps(self, metrics: MetricsLog, filename: str) -> Path:
        rows = [
            (
                r.step,
                r.operator_name,
                r.operator_category,
                _bool(r.is_learned),
                _bool(r.success),
                _bool(r.is_improvement),
                r.parent_fitness,
                r.child_fitness,
                _real(r.reward),
                r.step_duration_ms,
                r.cumulative_time_ms,
                escape_text(r.patch_description),
            )
            for r in metrics.records
        ]
        return self._write(filename, STEPS_HEADER, rows)

    def export_operator_stats(
        self, metrics: MetricsLog, selector: OperatorSelector, filename: str
    ) -> Path:
        rows = [
            (
                a.operator.name,
                a.operator.category.value,
                _bool(a.operator.is_learned),
                a.selection_count,
                a.success_count,
                _real(a.success_rate),
                a.improvement_count,
                _real(a.improvement_rate),
                _real(a.total_reward),
                _real(a.average_reward),
                _real(a.learned_q),
            )
            for a in metrics.operator_aggregates(selector)
        ]
        return self._write(filename, OPERATORS_HEADER, rows)

    def export_config(self, metrics: MetricsLog, filename: str) -> Path:
        rows = [(key, escape_text(value)) for key, value in metrics.configuration.items()]
        return self._write(filename, CONFIG_HEADER, rows)

    def export_summary(self, metrics: MetricsLog, filename: str) -> Path:
        s = metrics.summary()
        rows = [
            ("experiment_id", escape_text(s.experiment_id)),
            ("total_steps", s.total_steps),
            ("successful_steps", s.successful_steps),
            ("success_rate", _real(s.success_rate)),
            ("improvements", s.improvements),
            ("improvement_rate", _real(s.improvement_rate)),
            ("total_reward", _real(s.total_reward)),
            ("avg_reward", _real(s.average_reward)),
            ("original_fitness", s.original_fitness),
            ("best_fitness", s.best_fitness),
            ("improvement_pct", round(s.improvement_pct, 2)),
            ("llm_selections", s.learned.selections),
            ("llm_successes", s.learned.successes),
            ("llm_improvements", s.learned.improvements),
            ("llm_success_rate", _real(s.learned.success_rate)),
            ("traditional_selections", s.traditional.selections),
            ("traditional_successes", s.traditional.successes),
            ("traditional_improvements", s.traditional.improvements),
            ("traditional_success_rate", _real(s.traditional.success_rate)),
            ("runtime_ms", s.runtime_ms),
            ("best_patch", escape_text(s.best_patch)),
        ]
        return self._write(filename, SUMMARY_HEADER, rows)

    def export_all(self, metrics: MetricsLog, selector: OperatorSelector) -> dict[str, Path]:
        """Write all four tables and return their paths keyed by table name."""
        prefix = metrics.experiment_id
        paths = {
            "steps": self.export_steps(metrics, f"{prefix}_steps.csv"),
            "operators": self.export_operator_stats(metrics, selector, f"{prefix}_operators.csv"),
            "config": self.export_config(metrics, f"{prefix}_config.csv"),
            "summary": self.export_summary(metrics, f"{prefix}_summary.csv"),
        }
        logger.info("exported_all", output_dir=str(self.output_dir))
        return paths
