"""
rule-tuner CLI Runner

Runs the self-tuning loop against the rule set on disk.

Usage:
    python -m rule_tuner.runner
    python -m rule_tuner.runner --max-iterations 10 --target-score 0.9 --save --verbose

Exit codes:
    0  target score reached
    1  target score not reached
    2  run aborted (evaluator unavailable or unreadable inputs)
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from functools import partial

from dotenv import load_dotenv

from rule_tuner.corpus_loader import load_corpus
from rule_tuner.domain.entities import RunReport, RunState
from rule_tuner.infrastructure.artifact_store import FileArtifactStore
from rule_tuner.infrastructure.run_records import RunRecordStore
from rule_tuner.infrastructure.snapshot_store import FileSnapshotStore
from rule_tuner.report import format_summary, render_performance_report
from rule_tuner.tuner_config import PipelineConfig, TunerConfig, load_config
from rule_tuner.use_cases.analysis import Analyzer
from rule_tuner.use_cases.evaluation import RuleBasedEvaluator, load_rule_set
from rule_tuner.use_cases.mutation import MutationApplier
from rule_tuner.use_cases.orchestration import TuningOrchestrator

EXIT_TARGET_REACHED = 0
EXIT_TARGET_MISSED = 1
EXIT_ABORTED = 2


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="rule-tuner: Self-tuning improvement loop for the job-posting classifier",
    )
    parser.add_argument(
        "--max-iterations",
        type=int,
        default=None,
        help="Maximum number of iterations (default: TUNER_MAX_ITERATIONS or 5)",
    )
    parser.add_argument(
        "--target-score",
        type=float,
        default=None,
        help="Overall score (0-1) that ends the run (default: TUNER_TARGET_SCORE or 0.85)",
    )
    parser.add_argument(
        "--sample-size",
        type=int,
        default=None,
        help="Samples scored per iteration (default: TUNER_SAMPLE_SIZE or 30)",
    )
    parser.add_argument(
        "--max-mutations",
        type=int,
        default=None,
        help="Mutations applied per iteration (default: TUNER_MAX_MUTATIONS or 3)",
    )
    parser.add_argument(
        "--save",
        action="store_true",
        help="Save the run record and performance report",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument("--rules-dir", default=None, help="Directory of rule-set artifacts")
    parser.add_argument("--corpus", default=None, help="Path to the labelled corpus JSON file")
    parser.add_argument("--results-dir", default=None, help="Directory for run records")
    parser.add_argument("--snapshot-dir", default=None, help="Directory for artifact snapshots")
    parser.add_argument("--seed", type=int, default=None, help="Sampling seed")
    return parser.parse_args(argv)


def apply_overrides(config: TunerConfig, args: argparse.Namespace) -> TunerConfig:
    """Overlay command-line flags on the environment configuration"""
    pipeline = config.pipeline
    pipeline = PipelineConfig(
        max_iterations=args.max_iterations if args.max_iterations is not None else pipeline.max_iterations,
        target_score=args.target_score if args.target_score is not None else pipeline.target_score,
        sample_size=args.sample_size if args.sample_size is not None else pipeline.sample_size,
        max_mutations_per_iteration=(
            args.max_mutations if args.max_mutations is not None else pipeline.max_mutations_per_iteration
        ),
        max_duration_seconds=pipeline.max_duration_seconds,
    )

    paths = config.paths
    paths = replace(
        paths,
        rules_dir=args.rules_dir or paths.rules_dir,
        corpus_path=args.corpus or paths.corpus_path,
        results_dir=args.results_dir or paths.results_dir,
        snapshot_dir=args.snapshot_dir or paths.snapshot_dir,
    )

    scoring = config.scoring
    if args.seed is not None:
        scoring = replace(scoring, seed=args.seed)

    reporting = replace(
        config.reporting,
        save_results=args.save or config.reporting.save_results,
        verbose=args.verbose or config.reporting.verbose,
    )
    return replace(config, pipeline=pipeline, paths=paths, scoring=scoring, reporting=reporting)


def build_orchestrator(config: TunerConfig) -> TuningOrchestrator:
    """
    Wire the file-backed stores, the reference evaluator, and the loop

    Raises:
        FileNotFoundError: If the corpus file does not exist
    """
    corpus = load_corpus(config.paths.corpus_path)
    artifact_store = FileArtifactStore(config.paths.rules_dir)
    snapshot_store = FileSnapshotStore(
        artifact_store,
        config.paths.snapshot_dir,
        max_per_artifact=config.retention.snapshots_per_artifact,
    )
    return TuningOrchestrator(
        evaluator=RuleBasedEvaluator(artifact_store, corpus, config.scoring),
        analyzer=Analyzer(config.analyzer),
        applier=MutationApplier(artifact_store, snapshot_store),
        rule_set_loader=partial(load_rule_set, artifact_store),
    )


def exit_code(report: RunReport, target_score: float) -> int:
    if report.state == RunState.ABORTED:
        return EXIT_ABORTED
    return EXIT_TARGET_REACHED if report.target_reached(target_score) else EXIT_TARGET_MISSED


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = parse_args(argv)

    try:
        config = apply_overrides(load_config(), args)
    except ValueError as e:
        print(f"ERROR: Invalid configuration: {e}")
        return EXIT_ABORTED

    logging.basicConfig(
        level=logging.DEBUG if config.reporting.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    pipeline = config.pipeline
    print("\n=== Rule Tuning Pipeline ===\n")
    print(f"  Rules:           {config.paths.rules_dir}")
    print(f"  Corpus:          {config.paths.corpus_path}")
    print(f"  Max iterations:  {pipeline.max_iterations}")
    print(f"  Target score:    {pipeline.target_score:.2f}")
    print(f"  Sample size:     {pipeline.sample_size}")
    print(f"  Max mutations:   {pipeline.max_mutations_per_iteration}")
    print()

    try:
        orchestrator = build_orchestrator(config)
    except (OSError, KeyError, ValueError) as e:
        print(f"ERROR: Cannot load corpus: {e}")
        return EXIT_ABORTED

    report = orchestrator.run(pipeline)

    print("\n=== Summary ===\n")
    for line in format_summary(report, pipeline.target_score):
        print(f"  {line}")
    print()

    if config.reporting.save_results:
        store = RunRecordStore(config.paths.results_dir, keep=config.retention.run_records)
        performance = render_performance_report(report, pipeline.target_score, pipeline.sample_size)
        path = store.save(report, performance)
        print("=== Output ===\n")
        print(f"  Run record: {path}")
        print()

    return exit_code(report, pipeline.target_score)


if __name__ == "__main__":
    sys.exit(main())
