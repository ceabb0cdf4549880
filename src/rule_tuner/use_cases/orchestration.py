"""
Improvement Loop

Runs score -> analyze -> mutate -> re-score rounds against the live rule set,
keeping mutations that do not lower the measured score and rolling back the
ones that do.
"""

import logging
import time
from dataclasses import asdict
from datetime import datetime
from typing import Callable

from rule_tuner.domain.entities import (
    AppliedMutation,
    IterationResult,
    MutationOutcome,
    RunReport,
    RunState,
)
from rule_tuner.domain.ruleset import ArtifactValidationError
from rule_tuner.exceptions import EvaluatorUnavailable, SnapshotUnavailable, TunerError
from rule_tuner.scoring.classifier import RuleSet
from rule_tuner.tuner_config import PipelineConfig
from rule_tuner.use_cases.analysis import Analyzer
from rule_tuner.use_cases.evaluation import Evaluator
from rule_tuner.use_cases.mutation import MutationApplier

logger = logging.getLogger(__name__)

# stop_reason values
STOP_TARGET_REACHED = "target_reached"
STOP_NO_PROPOSALS = "no_proposals"
STOP_MAX_ITERATIONS = "max_iterations"
STOP_MAX_DURATION = "max_duration"
STOP_REQUESTED = "stop_requested"
STOP_EVALUATOR_UNAVAILABLE = "evaluator_unavailable"
STOP_RULE_SET_UNREADABLE = "rule_set_unreadable"
STOP_ROLLBACK_FAILED = "rollback_failed"


def _outcome(applied: AppliedMutation, status: str) -> MutationOutcome:
    proposal = applied.proposal
    return MutationOutcome(
        target_artifact=proposal.target_artifact,
        kind=proposal.kind.value,
        priority=proposal.priority.value,
        rationale=proposal.rationale,
        status=status,
        error=applied.error,
    )


class TuningOrchestrator:
    """
    Drives the improvement loop

    Iterations are strictly sequential: iteration i+1 starts only after the
    accept/rollback decision of iteration i is final. Stop requests and the
    wall-clock bound are honoured between iterations only.
    """

    def __init__(
        self,
        evaluator: Evaluator,
        analyzer: Analyzer,
        applier: MutationApplier,
        rule_set_loader: Callable[[], RuleSet],
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            evaluator: Scores the live rule set
            analyzer: Proposes mutations from a score report
            applier: Applies and rolls back mutations
            rule_set_loader: Returns the current rule set for the analyzer
            clock: Monotonic clock in seconds
        """
        self.evaluator = evaluator
        self.analyzer = analyzer
        self.applier = applier
        self.rule_set_loader = rule_set_loader
        self.clock = clock
        self._stop_requested = False

    def request_stop(self) -> None:
        """Stop before the next iteration starts"""
        self._stop_requested = True

    def _should_stop(self, config: PipelineConfig, started: float) -> str | None:
        if self._stop_requested:
            return STOP_REQUESTED
        if config.max_duration_seconds is not None and self.clock() - started >= config.max_duration_seconds:
            return STOP_MAX_DURATION
        return None

    def _rollback_all(self, applied: list[AppliedMutation]) -> None:
        """
        Roll back every mutation, newest first

        A failed rollback does not stop the others.

        Raises:
            SnapshotUnavailable: Summarising every rollback that failed
        """
        # Reverse order so artifacts touched twice end at their oldest snapshot
        failures = []
        for mutation in reversed(applied):
            try:
                self.applier.rollback(mutation)
            except SnapshotUnavailable as e:
                logger.error("Rollback of %s failed: %s", mutation.proposal.target_artifact, e)
                failures.append(str(e))
        if failures:
            raise SnapshotUnavailable(
                f"{len(failures)} of {len(applied)} rollbacks failed: " + "; ".join(failures)
            )

    def _release_all(self, applied: list[AppliedMutation]) -> None:
        for mutation in applied:
            self.applier.release(mutation)

    def run(self, config: PipelineConfig) -> RunReport:
        """
        Run the improvement loop

        Args:
            config: Loop bounds and targets

        Returns:
            RunReport: Terminal state, stop reason, and one IterationResult per
                completed round. Evaluator failures end the run as ABORTED with
                the iterations completed so far.
        """
        self._stop_requested = False
        run_id = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        started_at = datetime.now().isoformat()
        started = self.clock()
        iterations: list[IterationResult] = []

        state = RunState.EXHAUSTED
        stop_reason = STOP_MAX_ITERATIONS
        error = None

        logger.info("Run %s started: %s", run_id, asdict(config))

        for i in range(1, config.max_iterations + 1):
            if i > 1:
                reason = self._should_stop(config, started)
                if reason is not None:
                    stop_reason = reason
                    break

            iteration_started = self.clock()
            print(f"[{i}/{config.max_iterations}] Scoring {config.sample_size} samples...")

            try:
                before = self.evaluator.score(config.sample_size)
            except EvaluatorUnavailable as e:
                state, stop_reason, error = RunState.ABORTED, STOP_EVALUATOR_UNAVAILABLE, str(e)
                break
            score_before = before.overall_score
            print(f"  Score: {score_before:.3f}")

            if score_before >= config.target_score:
                iterations.append(self._no_change(i, score_before, iteration_started))
                state, stop_reason = RunState.GOAL_REACHED, STOP_TARGET_REACHED
                print(f"  Target {config.target_score:.2f} reached")
                break

            try:
                rules = self.rule_set_loader()
            except (TunerError, ArtifactValidationError, OSError) as e:
                state, stop_reason, error = RunState.ABORTED, STOP_RULE_SET_UNREADABLE, str(e)
                break

            proposals = self.analyzer.propose(before, rules)
            if not proposals:
                iterations.append(self._no_change(i, score_before, iteration_started))
                state, stop_reason = RunState.EXHAUSTED, STOP_NO_PROPOSALS
                print("  No improvement proposals; stopping")
                break

            selected = proposals[: config.max_mutations_per_iteration]
            logger.info(
                "Iteration %d: applying %d of %d proposals", i, len(selected), len(proposals)
            )
            applied = [self.applier.apply(p) for p in selected]
            succeeded = [a for a in applied if a.succeeded]

            score_after = score_before
            regression = False
            try:
                if succeeded:
                    after = self.evaluator.score(config.validation_sample_size)
                    if after.overall_score < score_before:
                        regression = True
                        logger.info(
                            "Iteration %d regressed (%.3f -> %.3f); rolling back %d mutations",
                            i, score_before, after.overall_score, len(succeeded),
                        )
                        self._rollback_all(succeeded)
                    else:
                        score_after = after.overall_score
            except EvaluatorUnavailable as e:
                state, stop_reason, error = RunState.ABORTED, STOP_EVALUATOR_UNAVAILABLE, str(e)
                # Undecided mutations never stay live
                try:
                    self._rollback_all(succeeded)
                except SnapshotUnavailable as rollback_error:
                    error = f"{error}; rollback failed: {rollback_error}"
                self._release_all(applied)
                break
            except SnapshotUnavailable as e:
                state, stop_reason, error = RunState.ABORTED, STOP_ROLLBACK_FAILED, str(e)
                self._release_all(applied)
                break

            self._release_all(applied)

            outcomes = [
                _outcome(a, "failed" if not a.succeeded else "rolled_back" if regression else "accepted")
                for a in applied
            ]
            result = IterationResult(
                iteration=i,
                score_before=score_before,
                score_after=score_after,
                accepted_mutation_count=0 if regression else len(succeeded),
                elapsed_ms=int((self.clock() - iteration_started) * 1000),
                regression_detected=regression,
                mutations=outcomes,
            )
            iterations.append(result)

            for outcome in outcomes:
                print(f"  [{outcome.status}] {outcome.target_artifact}: {outcome.rationale}")
            print(f"  Score: {score_before:.3f} -> {score_after:.3f}")

        report = RunReport(
            run_id=run_id,
            config=asdict(config),
            state=state,
            stop_reason=stop_reason,
            iterations=tuple(iterations),
            error=error,
            started_at=started_at,
            finished_at=datetime.now().isoformat(),
        )
        if state == RunState.ABORTED:
            logger.error("Run %s aborted: %s", run_id, error)
        else:
            logger.info("Run %s finished: %s (%s)", run_id, state.value, stop_reason)
        return report

    def _no_change(self, iteration: int, score: float, iteration_started: float) -> IterationResult:
        return IterationResult(
            iteration=iteration,
            score_before=score,
            score_after=score,
            accepted_mutation_count=0,
            elapsed_ms=int((self.clock() - iteration_started) * 1000),
        )
