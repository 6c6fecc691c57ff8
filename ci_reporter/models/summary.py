"""Models for the run summary artifact."""

from pydantic import Field

from ci_reporter.models.base import Model


class Failure(Model):
    """A test whose final attempt did not pass."""

    title: str = Field(..., description="Test identity")
    message: str = Field(
        default="", description="Error messages of the final attempt, one per line"
    )
    stack: str = Field(
        default="", description="Stack traces of the final attempt, one per error"
    )
    time_taken: float = Field(..., ge=0, description="Final attempt duration (s)")
    is_timeout: bool = Field(
        default=False, description="Whether any final attempt error was a timeout"
    )


class RunSummary(Model):
    """Aggregate statistics for one complete test run."""

    start_time: int = Field(..., description="Run start, epoch milliseconds")
    end_time: int = Field(..., description="Run end, epoch milliseconds")
    total_time_seconds: float = Field(..., description="Wall-clock run duration")
    total_tests: int = Field(default=0, ge=0)
    passed: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)
    failures: tuple[Failure, ...] = Field(default_factory=tuple)
    average_test_duration_seconds: float = Field(
        default=0.0, description="Mean duration of passing attempts"
    )
    slowest_test_duration_seconds: float = Field(
        default=0.0, description="Longest duration of a passing attempt"
    )
    total_retries: int = Field(default=0, ge=0)
    environment_url: str = Field(default="", description="Environment under test")

    @property
    def exit_code(self) -> int:
        """Process exit status for the host: 0 when nothing failed."""
        return 1 if self.failed else 0
