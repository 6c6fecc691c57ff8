"""Human-readable rendering of attempts and run summaries."""

import logging
import random
from collections.abc import Sequence

from ci_reporter.models.attempt import Attempt, Outcome, TestIdentity
from ci_reporter.models.summary import RunSummary

FAILURE_QUOTES: Sequence[str] = (
    "“Houston, we have a problem.” - Apollo 13",
    "“Failure is not an option.” - Apollo 13",
    "“Why so serious?” - The Dark Knight",
    "“I find your lack of passing disturbing.” - Darth Vader",
    "“It's not a bug, it's a feature!” - Every developer ever",
    "Oh, crap, it failed! But it worked on my machine!",
    "Tests won't fail if you have no tests!",
    "PLEASE LET ME MERGE BEFORE I START CRYING!",
    "“You can’t handle the truth!” - A Few Good Men",
)

SUCCESS_QUOTES: Sequence[str] = (
    "“Hasta la vista, baby.” - The Terminator",
    "“All systems go!” - NASA",
    "“That’s one small step for man, one giant leap for… tests!” - Apollo 11",
    "“Victory is ours!” - Braveheart",
    "“I'm king of the world!” - Titanic",
    "“You’re a wizard, Harry!” - Harry Potter",
    "“Live long and prosper.” - Star Trek",
)

STATUS_SYMBOLS = {
    "started": "🚀",
    "passed": "✅",
    "failed": "❌",
    "retry": "🔄",
    "skipped": "⚠️",
}


def pick_quote(rng: random.Random, *, success: bool) -> str:
    """Pick a random closing quote for the run."""
    return rng.choice(SUCCESS_QUOTES if success else FAILURE_QUOTES)


def format_total_time(seconds: float) -> str:
    """Format a run duration, switching to minutes from one minute on."""
    if seconds < 60:
        return f"{seconds:.2f}s"
    return f"{seconds / 60:.2f}min"


def log_run_started(log: logging.Logger, environment_url: str = "") -> None:
    log.info("%s Test run started!", STATUS_SYMBOLS["started"])
    if environment_url:
        log.info("Running tests against: %s", environment_url)


def log_run_error(log: logging.Logger, message: str, stack: str | None) -> None:
    log.error("%s Setup or runtime error: %s", STATUS_SYMBOLS["failed"], message)
    if stack:
        log.error("%s", stack)


def log_attempt(log: logging.Logger, identity: TestIdentity, attempt: Attempt) -> None:
    """Log progress for a single attempt as it completes."""
    retried = attempt.attempt_index > 0

    match attempt.outcome:
        case Outcome.PASSED if retried:
            log.info(
                "%s Retried and passed: %s in %.2fs",
                STATUS_SYMBOLS["passed"],
                identity,
                attempt.duration_seconds,
            )
        case Outcome.PASSED:
            log.info(
                "%s %s in %.2fs",
                STATUS_SYMBOLS["passed"],
                identity,
                attempt.duration_seconds,
            )
        case Outcome.FAILED | Outcome.TIMED_OUT if retried:
            log.warning(
                '%s Retry attempt for "%s" (%s) in %.2fs',
                STATUS_SYMBOLS["retry"],
                identity,
                attempt.outcome,
                attempt.duration_seconds,
            )
        case Outcome.FAILED | Outcome.TIMED_OUT:
            log.error(
                "%s %s failed in %.2fs",
                STATUS_SYMBOLS["failed"],
                identity,
                attempt.duration_seconds,
            )
        case Outcome.SKIPPED:
            log.warning("%s %s was skipped.", STATUS_SYMBOLS["skipped"], identity)


def log_run_summary(
    log: logging.Logger, summary: RunSummary, quote: str | None = None
) -> None:
    """Log the final summary of a run, listing failures."""
    total = format_total_time(summary.total_time_seconds)

    log.info("=" * 80)
    if summary.failures:
        log.error(
            "%s %d of %d tests failed | %d passed | ⏱ Total: %s",
            STATUS_SYMBOLS["failed"],
            len(summary.failures),
            summary.total_tests,
            summary.passed,
            total,
        )
    else:
        log.info(
            "%s All %d tests passed | ⏱ Total: %s",
            STATUS_SYMBOLS["passed"],
            summary.total_tests,
            total,
        )

    log.info("Additional Metrics:")
    log.info(
        "- Average passed test time: %.2fs", summary.average_test_duration_seconds
    )
    if summary.slowest_test_duration_seconds > 0:
        log.info(
            "- Slowest test took: %.2fs", summary.slowest_test_duration_seconds
        )
    log.info("- Total retries: %d", summary.total_retries)
    if summary.skipped:
        log.info("- Skipped tests: %d", summary.skipped)

    if summary.failures:
        log.error("Failures:")
        for index, failure in enumerate(summary.failures, start=1):
            log.error("--- Failure #%d ---", index)
            log.error("  Test: %s (%.2fs)", failure.title, failure.time_taken)
            if failure.message:
                log.error("  Error: %s", failure.message)
            if failure.stack:
                log.error("  Stack Trace:\n%s", failure.stack)
            if failure.is_timeout:
                log.warning("  (This failure involved a timeout.)")
        log.error(
            "%s Tests failed with exit code %d",
            STATUS_SYMBOLS["failed"],
            summary.exit_code,
        )

    if quote:
        log.info('"%s"', quote)
