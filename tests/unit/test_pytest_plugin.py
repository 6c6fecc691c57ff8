"""Tests for folding pytest reports into attempts."""

import json
import logging
from pathlib import Path
from unittest.mock import Mock

import pytest

from ci_reporter.config import ReporterConfig
from ci_reporter.models.attempt import Outcome
from ci_reporter.pytest_plugin import (
    CiReporterPlugin,
    PendingAttempt,
    error_from_report,
)

NODEID = "tests/test_login.py::test_login"


def make_report(
    when: str,
    outcome: str = "passed",
    duration: float = 0.1,
    longrepr: str | None = None,
) -> pytest.TestReport:
    return pytest.TestReport(
        nodeid=NODEID,
        location=("tests/test_login.py", 0, "test_login"),
        keywords={},
        outcome=outcome,
        longrepr=longrepr,
        when=when,
        duration=duration,
    )


def execution(
    call_outcome: str = "passed", longrepr: str | None = None
) -> list[pytest.TestReport]:
    """Reports of one execution, stopping at a rerun like pytest-rerunfailures."""
    reports = [make_report("setup"), make_report("call", call_outcome, 1.0, longrepr)]
    if call_outcome != "rerun":
        reports.append(make_report("teardown"))
    return reports


@pytest.fixture
def plugin(tmp_path: Path) -> CiReporterPlugin:
    """Create a plugin writing to a temporary artifact."""
    return CiReporterPlugin(
        config=ReporterConfig(
            output_path=tmp_path / "test-results.json",
            strict_ordering=False,
            show_quotes=False,
        )
    )


class TestPendingAttempt:
    """Tests for PendingAttempt."""

    def test_passing_phases_sum_durations(self) -> None:
        """A passing execution adds up its phase durations."""
        pending = PendingAttempt()
        for report in execution():
            pending.add_report(report)

        assert pending.outcome is Outcome.PASSED
        assert pending.duration_seconds == pytest.approx(1.2)
        assert pending.errors == []

    def test_failed_call_fails_attempt(self) -> None:
        """A failed phase makes the attempt failed and keeps its error."""
        pending = PendingAttempt()
        for report in execution("failed", "AssertionError: boom"):
            pending.add_report(report)

        assert pending.outcome is Outcome.FAILED
        assert [e.message for e in pending.errors] == ["AssertionError: boom"]

    def test_rerun_counts_as_failure(self) -> None:
        """An intermediate rerun report is a failed attempt."""
        pending = PendingAttempt()
        for report in execution("rerun", "boom"):
            pending.add_report(report)

        assert pending.outcome is Outcome.FAILED

    def test_pytest_timeout_is_timed_out(self) -> None:
        """pytest-timeout failures become timed out attempts."""
        pending = PendingAttempt()
        pending.add_report(
            make_report(
                "call", "failed", longrepr="Failed: Timeout (>1.0s) from pytest-timeout."
            )
        )
        pending.add_report(make_report("teardown", "failed", longrepr="cleanup"))

        assert pending.outcome is Outcome.TIMED_OUT
        assert len(pending.errors) == 2

    def test_skipped_setup_skips_attempt(self) -> None:
        """A skipped phase skips an otherwise passing attempt."""
        pending = PendingAttempt()
        pending.add_report(make_report("setup", "skipped"))
        pending.add_report(make_report("teardown"))

        assert pending.outcome is Outcome.SKIPPED

    def test_error_without_crash_uses_longrepr_text(self) -> None:
        """String reports use their text as message and stack."""
        error = error_from_report(make_report("call", "failed", longrepr="boom"))

        assert error.message == "boom"
        assert error.stack == "boom"


class TestCiReporterPlugin:
    """Tests for CiReporterPlugin report handling."""

    def test_reruns_become_flaky_pass(
        self, plugin: CiReporterPlugin, tmp_path: Path
    ) -> None:
        """Two reruns followed by a pass reduce to one flaky pass."""
        reports = [
            *execution("rerun", "boom"),
            *execution("rerun", "boom again"),
            *execution(),
        ]
        for report in reports:
            plugin.pytest_runtest_logreport(report)

        (record,) = plugin.reporter.store.all_records()
        assert [a.outcome for a in record.attempts] == [
            Outcome.FAILED,
            Outcome.FAILED,
            Outcome.PASSED,
        ]
        assert plugin.pending == {}

        summary = plugin.reporter.on_end()

        assert summary.passed == 1
        assert summary.total_retries == 2
        assert summary.slowest_test_duration_seconds == pytest.approx(1.2)
        data = json.loads((tmp_path / "test-results.json").read_text())
        assert data["totalRetries"] == 2

    def test_exhausted_reruns_report_last_failure(
        self, plugin: CiReporterPlugin
    ) -> None:
        """A test failing every execution reports its last error."""
        for report in [*execution("rerun", "first"), *execution("failed", "last")]:
            plugin.pytest_runtest_logreport(report)

        summary = plugin.reporter.on_end()

        assert summary.failed == 1
        assert summary.failures[0].title == NODEID
        assert summary.failures[0].message == "last"

    def test_collection_errors_are_run_errors(self, plugin: CiReporterPlugin) -> None:
        """Failed collection is reported as a run error."""
        report = pytest.CollectReport(
            nodeid="tests/test_broken.py",
            outcome="failed",
            longrepr="ImportError: no module named nope",
            result=[],
        )

        plugin.pytest_collectreport(report)

        assert len(plugin.reporter.run_errors) == 1
        assert "tests/test_broken.py" in plugin.reporter.run_errors[0].message

    def test_session_finish_records_unfinished_attempts(
        self, plugin: CiReporterPlugin, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Executions interrupted before teardown are still reported."""
        plugin.pytest_runtest_logreport(make_report("setup"))
        plugin.pytest_runtest_logreport(
            make_report("call", "failed", longrepr="KeyboardInterrupt")
        )
        session = Mock(spec=pytest.Session)

        with caplog.at_level(logging.WARNING):
            plugin.pytest_sessionfinish(session, pytest.ExitCode.INTERRUPTED)

        assert plugin.pending == {}
        assert "Recording unfinished attempt for" in caplog.text
        summary = plugin.reporter.summary
        assert summary is not None
        assert summary.total_tests == 1
        assert summary.failures[0].message == "KeyboardInterrupt"
