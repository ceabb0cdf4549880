"""Plot the score trajectory of saved tuning runs."""

from __future__ import annotations

import argparse
from pathlib import Path

import pandas as pd
import plotly.graph_objects as go

from rule_tuner.infrastructure.run_records import RunRecordStore

RUN_COLORS = ["#1a73e8", "#e8710a", "#34a853", "#ea4335", "#9334e6"]
ROLLBACK_COLOR = "#ea4335"

OUTPUT_PATH = Path("docs/run_history.html")


def build_figure(history: pd.DataFrame, target_score: float) -> go.Figure:
    """Score after each iteration, one line per run, rolled-back rounds marked."""
    fig = go.Figure()

    for i, (run_id, run) in enumerate(history.groupby("run_id", sort=False)):
        color = RUN_COLORS[i % len(RUN_COLORS)]
        run = run.sort_values("iteration")
        iterations = [0] + run["iteration"].tolist()
        scores = [run["score_before"].iloc[0]] + run["score_after"].tolist()

        fig.add_trace(go.Scatter(
            x=iterations,
            y=scores,
            mode="lines+markers",
            name=str(run_id),
            line=dict(color=color, width=2.5),
            marker=dict(color=color, size=9),
        ))

        regressed = run[run["regression_detected"].astype(bool)]
        if not regressed.empty:
            fig.add_trace(go.Scatter(
                x=regressed["iteration"],
                y=regressed["score_after"],
                mode="markers",
                marker=dict(color=ROLLBACK_COLOR, size=13, symbol="x"),
                name=f"{run_id} rolled back",
                hoverinfo="skip",
            ))

    fig.add_hline(
        y=target_score,
        line_dash="dash",
        line_color="#5f6368",
        line_width=1,
        annotation_text=f"{round(target_score * 100)}% target",
        annotation_position="top left",
        annotation_font=dict(size=12, color="#5f6368"),
    )

    fig.update_layout(
        title="Rule tuning score by iteration",
        xaxis=dict(title="Iteration", dtick=1),
        yaxis=dict(title="Overall score", range=[0, 1.05], tickformat=".0%"),
        template="plotly_white",
        legend=dict(orientation="h", y=-0.2),
    )
    return fig


def main() -> None:
    parser = argparse.ArgumentParser(description="Plot saved rule-tuning runs")
    parser.add_argument("--results-dir", default="results", help="Directory of run records")
    parser.add_argument("--target-score", type=float, default=0.85)
    parser.add_argument("--output", default=str(OUTPUT_PATH))
    args = parser.parse_args()

    history = RunRecordStore(args.results_dir).history_frame()
    if history.empty:
        print(f"No saved runs in {args.results_dir}")
        return

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    build_figure(history, args.target_score).write_html(str(output))
    print(f"Wrote {output} ({history['run_id'].nunique()} runs)")


if __name__ == "__main__":
    main()
