"""
Run record store

Persists one JSON record per run (plus a per-iteration CSV and a Markdown
performance report) and keeps at most ``keep`` runs, pruning oldest first.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

import pandas as pd

from rule_tuner.domain.entities import RunReport
from rule_tuner.infrastructure.artifact_store.filesystem import atomic_write_bytes
from rule_tuner.report import ITERATION_COLUMNS, iterations_frame

logger = logging.getLogger(__name__)

DEFAULT_KEEP = 10

RECORD_PREFIX = "run_"
CSV_PREFIX = "iterations_"
REPORT_PREFIX = "performance_"


class RunRecordStore:
    """Directory of run records with a retention cap"""

    def __init__(self, results_dir: str | Path, keep: int = DEFAULT_KEEP):
        """
        Args:
            results_dir: Directory for run records
            keep: Maximum number of run records retained
        """
        if keep < 1:
            raise ValueError("keep must be at least 1")
        self.results_dir = Path(results_dir)
        self.keep = keep

    def record_path(self, run_id: str) -> Path:
        return self.results_dir / f"{RECORD_PREFIX}{run_id}.json"

    def _companions(self, run_id: str) -> list[Path]:
        return [
            self.results_dir / f"{CSV_PREFIX}{run_id}.csv",
            self.results_dir / f"{REPORT_PREFIX}{run_id}.md",
        ]

    def save(self, report: RunReport, performance_report: str | None = None) -> Path:
        """
        Persist a finished run and prune old records

        Args:
            report: Finished run report
            performance_report: Markdown report written alongside the record

        Returns:
            Path: Path of the JSON record
        """
        path = self.record_path(report.run_id)
        payload = json.dumps(report.to_dict(), indent=2, ensure_ascii=False)
        atomic_write_bytes(path, payload.encode("utf-8"))

        csv_path, md_path = self._companions(report.run_id)
        iterations_frame(report).to_csv(csv_path, index=False)
        if performance_report is not None:
            atomic_write_bytes(md_path, performance_report.encode("utf-8"))

        logger.info("Saved run record %s", path)
        self.prune()
        return path

    def list_records(self) -> list[Path]:
        """Run record files, oldest first"""
        if not self.results_dir.exists():
            return []
        records = list(self.results_dir.glob(f"{RECORD_PREFIX}*.json"))
        return sorted(records, key=lambda p: (os.stat(p).st_mtime_ns, p.name))

    def load(self, run_id: str) -> RunReport:
        """
        Load a saved run

        Raises:
            FileNotFoundError: If no record exists for the run ID
        """
        with open(self.record_path(run_id), "r", encoding="utf-8") as f:
            return RunReport.from_dict(json.load(f))

    def load_all(self) -> list[RunReport]:
        reports = []
        for path in self.list_records():
            with open(path, "r", encoding="utf-8") as f:
                reports.append(RunReport.from_dict(json.load(f)))
        return reports

    def history_frame(self) -> pd.DataFrame:
        """Iterations of every retained run in one table"""
        frames = [iterations_frame(r) for r in self.load_all()]
        frames = [f for f in frames if not f.empty]
        if not frames:
            return pd.DataFrame(columns=["run_id"] + ITERATION_COLUMNS)
        return pd.concat(frames, ignore_index=True)

    def prune(self, dry_run: bool = False) -> list[Path]:
        """
        Delete the oldest run records beyond the cap

        Args:
            dry_run: Only report what would be deleted

        Returns:
            list[Path]: Deleted (or deletable) record files
        """
        records = self.list_records()
        doomed = records[: max(0, len(records) - self.keep)]
        for path in doomed:
            if dry_run:
                continue
            run_id = path.stem[len(RECORD_PREFIX):]
            path.unlink(missing_ok=True)
            for companion in self._companions(run_id):
                companion.unlink(missing_ok=True)
            logger.info("Pruned run record %s", path.name)
        return doomed
