"""Reduction of recorded attempts into final outcomes and run statistics."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from ci_reporter.errors import InvariantViolation
from ci_reporter.models.attempt import FinalOutcome, Outcome, TestRecord
from ci_reporter.models.summary import Failure, RunSummary
from ci_reporter.store import AttemptStore

log = logging.getLogger(__name__)

TIMEOUT_MARKER = "timeout"


def final_outcome(record: TestRecord) -> FinalOutcome:
    """Reduce a test's attempts to its final outcome.

    The last attempt decides: earlier attempts only count as retry history,
    so a failing last attempt is a failure even if an earlier one passed.
    """
    last = record.last_attempt

    if last.outcome is Outcome.SKIPPED:
        return FinalOutcome.SKIPPED
    if last.outcome is Outcome.PASSED:
        if len(record.attempts) == 1:
            return FinalOutcome.EXPECTED_PASS
        return FinalOutcome.FLAKY_PASS
    return FinalOutcome.FAILURE


def build_failure(record: TestRecord) -> Failure:
    """Describe a failed test from its last attempt only."""
    last = record.last_attempt
    return Failure(
        title=record.identity,
        message="\n".join(error.message for error in last.errors),
        stack="\n".join(error.stack or "" for error in last.errors),
        time_taken=last.duration_seconds,
        is_timeout=any(TIMEOUT_MARKER in error.message for error in last.errors),
    )


@dataclass(frozen=True, kw_only=True)
class OutcomeReducer:
    """Reduces all test records of a run into a RunSummary."""

    environment_url: str = ""

    def reduce(
        self,
        records: AttemptStore | Iterable[TestRecord],
        start_time_ms: int,
        end_time_ms: int,
    ) -> RunSummary:
        """Compute the run summary.

        Args:
            records: The run's store, or its records in first-observed order
            start_time_ms: Run start in epoch milliseconds
            end_time_ms: Run end in epoch milliseconds

        Returns:
            Summary of the whole run

        Raises:
            InvariantViolation: If any record has no attempts

        """
        if isinstance(records, AttemptStore):
            records = records.all_records()

        passed = failed = skipped = total_tests = total_retries = 0
        failures: list[Failure] = []
        passed_durations: list[float] = []

        for record in records:
            if not record.attempts:
                raise InvariantViolation(
                    f"Cannot reduce test {record.identity!r}: no attempts recorded"
                )

            total_tests += 1
            total_retries += record.retries
            passed_durations.extend(
                attempt.duration_seconds
                for attempt in record.attempts
                if attempt.outcome is Outcome.PASSED
            )

            outcome = final_outcome(record)
            if outcome.is_passing:
                passed += 1
            elif outcome is FinalOutcome.FAILURE:
                failed += 1
                failures.append(build_failure(record))
            else:
                skipped += 1

        log.debug(
            "Reduced %d test(s): passed=%d failed=%d skipped=%d retries=%d",
            total_tests,
            passed,
            failed,
            skipped,
            total_retries,
        )

        return RunSummary(
            start_time=start_time_ms,
            end_time=end_time_ms,
            total_time_seconds=(end_time_ms - start_time_ms) / 1000,
            total_tests=total_tests,
            passed=passed,
            failed=failed,
            skipped=skipped,
            failures=tuple(failures),
            average_test_duration_seconds=(
                sum(passed_durations) / len(passed_durations)
                if passed_durations
                else 0.0
            ),
            slowest_test_duration_seconds=max(passed_durations, default=0.0),
            total_retries=total_retries,
            environment_url=self.environment_url,
        )
