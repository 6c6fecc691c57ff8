"""Models for recorded test execution attempts."""

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum

from ci_reporter.errors import InvariantViolation

type TestIdentity = str


class Outcome(StrEnum):
    """Outcome of a single attempt, as reported by the test runner."""

    PASSED = "passed"
    FAILED = "failed"
    TIMED_OUT = "timedOut"
    SKIPPED = "skipped"


class FinalOutcome(StrEnum):
    """Reduced verdict for a test once all its attempts are known."""

    EXPECTED_PASS = "expected-pass"
    FLAKY_PASS = "flaky-pass"
    FAILURE = "failure"
    SKIPPED = "skipped"

    @property
    def is_passing(self) -> bool:
        return self in {FinalOutcome.EXPECTED_PASS, FinalOutcome.FLAKY_PASS}


@dataclass(frozen=True, kw_only=True)
class AttemptError:
    """Error raised during an attempt."""

    message: str
    stack: str | None = None


@dataclass(frozen=True, kw_only=True)
class Attempt:
    """One execution of a test.

    Passed and skipped attempts normally carry no errors.
    """

    attempt_index: int
    outcome: Outcome
    duration_seconds: float
    errors: tuple[AttemptError, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "outcome", Outcome(self.outcome))
        if self.attempt_index < 0:
            raise ValueError(f"attempt_index must be >= 0, got {self.attempt_index}")
        if math.isnan(self.duration_seconds) or self.duration_seconds < 0:
            raise ValueError(
                f"duration_seconds must be >= 0, got {self.duration_seconds}"
            )


@dataclass(frozen=True, kw_only=True)
class TestRecord:
    """All attempts of one test, in execution order."""

    __test__ = False

    identity: TestIdentity
    attempts: Sequence[Attempt] = field(default_factory=tuple)

    @property
    def last_attempt(self) -> Attempt:
        """Return the authoritative attempt for the final status."""
        if not self.attempts:
            raise InvariantViolation(f"Test record {self.identity!r} has no attempts")
        return self.attempts[-1]

    @property
    def retries(self) -> int:
        return max(len(self.attempts) - 1, 0)
