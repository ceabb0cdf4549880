"""
Run Report Formatting

Builds tabular views, the console summary, and the Markdown performance
report of a finished run.
"""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime

import pandas as pd

from rule_tuner.domain.entities import RunReport

ITERATION_COLUMNS = [
    "iteration",
    "score_before",
    "score_after",
    "improvement",
    "accepted_mutation_count",
    "rolled_back",
    "failed",
    "regression_detected",
    "elapsed_ms",
]


def _pct(value: float) -> str:
    return f"{round(value * 100)}%"


def _signed_pct(value: float) -> str:
    return f"{'+' if value >= 0 else ''}{round(value * 100)}%"


def iterations_frame(report: RunReport) -> pd.DataFrame:
    """
    One row per iteration

    Args:
        report: Finished run report

    Returns:
        pd.DataFrame: Iteration table (empty with the expected columns when the run has no iterations)
    """
    rows = []
    for r in report.iterations:
        statuses = [m.status for m in r.mutations]
        rows.append({
            "run_id": report.run_id,
            "iteration": r.iteration,
            "score_before": r.score_before,
            "score_after": r.score_after,
            "improvement": r.improvement,
            "accepted_mutation_count": r.accepted_mutation_count,
            "rolled_back": statuses.count("rolled_back"),
            "failed": statuses.count("failed"),
            "regression_detected": r.regression_detected,
            "elapsed_ms": r.elapsed_ms,
        })
    return pd.DataFrame(rows, columns=["run_id"] + ITERATION_COLUMNS)


def mutations_frame(report: RunReport) -> pd.DataFrame:
    """One row per attempted mutation, for audit"""
    rows = [
        {"run_id": report.run_id, "iteration": r.iteration, **asdict(m)}
        for r in report.iterations
        for m in r.mutations
    ]
    return pd.DataFrame(rows)


def top_iterations(report: RunReport, n: int = 3) -> pd.DataFrame:
    """Iterations with the largest measured improvement"""
    df = iterations_frame(report)
    if df.empty:
        return df
    return df.sort_values("improvement", ascending=False, kind="stable").head(n)


def format_summary(report: RunReport, target_score: float) -> list[str]:
    """
    Console summary lines of a run

    Args:
        report: Finished run report
        target_score: Target score of the run

    Returns:
        list[str]: Lines to print
    """
    lines = [f"State: {report.state.value} ({report.stop_reason})"]
    if report.error:
        lines.append(f"Error: {report.error}")
    if not report.iterations:
        lines.append("No iterations completed.")
        return lines

    initial = report.initial_score
    final = report.final_score
    lines += [
        f"Iterations: {len(report.iterations)}",
        f"Initial Score: {_pct(initial)}",
        f"Final Score: {_pct(final)}",
        f"Total Improvement: {_signed_pct(final - initial)}",
        f"Total Improvements Applied: {report.total_accepted}",
        f"Total Time: {round(report.total_elapsed_ms / 1000)}s",
    ]
    if report.target_reached(target_score):
        lines.append("TARGET REACHED")
    else:
        lines.append(f"Target: {_pct(target_score)} ({_pct(target_score - final)} remaining)")

    lines.append("")
    lines.append("Top Improvements:")
    for i, (_, row) in enumerate(top_iterations(report).iterrows(), start=1):
        lines.append(
            f"  {i}. Iteration {row['iteration']}: {_signed_pct(row['improvement'])} "
            f"({row['accepted_mutation_count']} changes)"
        )
    return lines


def render_performance_report(report: RunReport, target_score: float, sample_size: int) -> str:
    """
    Markdown performance report of a run

    Args:
        report: Finished run report
        target_score: Target score of the run
        sample_size: Samples scored per iteration

    Returns:
        str: Markdown document
    """
    lines = [
        "# Rule Tuning Performance Report",
        f"Generated: {datetime.now().isoformat()}",
        "",
        "## Summary",
        f"- Run ID: {report.run_id}",
        f"- State: {report.state.value} ({report.stop_reason})",
        f"- Total Iterations: {len(report.iterations)}",
        f"- Target Score: {_pct(target_score)}",
        f"- Samples per Iteration: {sample_size}",
        "",
    ]

    if report.iterations:
        initial = report.initial_score
        final = report.final_score
        lines += [
            "## Results",
            f"- Initial Score: {_pct(initial)}",
            f"- Final Score: {_pct(final)}",
            f"- Total Improvement: {_signed_pct(final - initial)}",
            f"- Target {'REACHED' if report.target_reached(target_score) else 'NOT REACHED'}",
            "",
            "## Iteration Details",
            "| Iteration | Before | After | Delta | Accepted | Rolled back | Failed | Time |",
            "|-----------|--------|-------|-------|----------|-------------|--------|------|",
        ]
        for _, row in iterations_frame(report).iterrows():
            lines.append(
                f"| {row['iteration']} | {_pct(row['score_before'])} | {_pct(row['score_after'])} "
                f"| {_signed_pct(row['improvement'])} | {row['accepted_mutation_count']} "
                f"| {row['rolled_back']} | {row['failed']} | {round(row['elapsed_ms'] / 1000)}s |"
            )

        audit = mutations_frame(report)
        if not audit.empty:
            lines += ["", "## Mutations", "| Iteration | Artifact | Kind | Status | Rationale |",
                      "|-----------|----------|------|--------|-----------|"]
            for _, m in audit.iterrows():
                rationale = str(m["rationale"]).replace("|", "\\|")
                lines.append(
                    f"| {m['iteration']} | {m['target_artifact']} | {m['kind']} | {m['status']} | {rationale} |"
                )

    if report.error:
        lines += ["", "## Error", report.error]

    return "\n".join(lines) + "\n"
