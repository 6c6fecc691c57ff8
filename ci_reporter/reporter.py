"""Lifecycle reporter observing a test run."""

import logging
import random
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from ci_reporter.artifact import write_summary
from ci_reporter.config import ReporterConfig
from ci_reporter.console import (
    log_attempt,
    log_run_error,
    log_run_started,
    log_run_summary,
    pick_quote,
)
from ci_reporter.models.attempt import (
    Attempt,
    AttemptError,
    Outcome,
    TestIdentity,
)
from ci_reporter.models.summary import RunSummary
from ci_reporter.reducer import OutcomeReducer
from ci_reporter.store import AttemptStore

NO_ERROR_MESSAGE = "No error message"


def epoch_millis() -> int:
    return int(time.time() * 1000)


@dataclass(kw_only=True)
class Reporter:
    """Receives runner callbacks, then reduces and reports the run.

    The runner calls ``on_begin`` once, ``on_test_end`` once per attempt and
    ``on_end`` once when the run is complete. ``on_end`` returns the summary;
    the host maps ``summary.exit_code`` to its exit status.
    """

    config: ReporterConfig = field(default_factory=ReporterConfig)
    log: logging.Logger = field(
        default_factory=lambda: logging.getLogger("ci_reporter")
    )
    clock: Callable[[], int] = epoch_millis
    rng: random.Random = field(default_factory=random.Random)
    store: AttemptStore = field(init=False)
    start_time_ms: int | None = field(default=None, init=False)
    run_errors: list[AttemptError] = field(default_factory=list, init=False)
    summary: RunSummary | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        self.store = AttemptStore(strict_ordering=self.config.strict_ordering)

    def on_begin(self) -> None:
        """Mark the start of the run."""
        self.start_time_ms = self.clock()
        log_run_started(self.log, self.config.environment_url)

    def on_error(self, message: str, stack: str | None = None) -> None:
        """Record an error raised outside of any test."""
        self.run_errors.append(AttemptError(message=message, stack=stack))
        log_run_error(self.log, message, stack)

    def on_test_end(
        self,
        identity: TestIdentity,
        outcome: Outcome | str,
        duration_seconds: float,
        attempt_index: int,
        errors: Iterable[AttemptError] = (),
    ) -> Attempt:
        """Record one finished attempt of a test.

        Raises:
            OrderingError: If the attempt index is out of order
            StoreClosedError: If the run already ended

        """
        attempt = Attempt(
            attempt_index=attempt_index,
            outcome=Outcome(outcome),
            duration_seconds=duration_seconds,
            errors=tuple(
                AttemptError(
                    message=error.message or NO_ERROR_MESSAGE, stack=error.stack
                )
                for error in errors
            ),
        )
        attempt = self.store.record_attempt(identity, attempt)
        log_attempt(self.log, identity, attempt)
        return attempt

    def on_end(self) -> RunSummary:
        """Finalize the run, render and persist its summary."""
        end_time_ms = self.clock()
        if self.start_time_ms is None:
            self.log.warning("Run ended without a start event; total time is 0")
            self.start_time_ms = end_time_ms

        self.store.close()
        reducer = OutcomeReducer(environment_url=self.config.environment_url)
        summary = reducer.reduce(self.store, self.start_time_ms, end_time_ms)

        quote = None
        if self.config.show_quotes:
            quote = pick_quote(self.rng, success=summary.exit_code == 0)
        log_run_summary(self.log, summary, quote)

        if self.config.output_path is not None:
            write_summary(self.config.output_path, summary)

        self.summary = summary
        return summary
