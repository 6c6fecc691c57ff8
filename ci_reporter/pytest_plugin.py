"""pytest plugin feeding test reports into the reporter."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from ci_reporter.config import ReporterConfig
from ci_reporter.models.attempt import AttemptError, Outcome, TestIdentity
from ci_reporter.reporter import Reporter

PLUGIN_NAME = "ci_reporter_plugin"
FAILING_REPORT_OUTCOMES = {"failed", "rerun"}
PYTEST_TIMEOUT_MARKER = "Timeout"


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("ci-reporter", "CI test run summary")
    group.addoption(
        "--ci-report",
        action="store_true",
        default=None,
        help="Enable the CI summary reporter",
    )
    group.addoption(
        "--ci-report-json",
        type=Path,
        default=None,
        help="Path of the JSON summary (default: test-results.json)",
    )
    group.addoption(
        "--ci-report-env-url",
        default=None,
        help="Environment URL recorded in the summary (default: $TEST_URL)",
    )
    group.addoption(
        "--ci-report-no-quotes",
        action="store_true",
        default=False,
        help="Do not print a closing quote",
    )
    parser.addini(
        "ci_report", type="bool", default=False, help="Enable the CI summary reporter"
    )


def pytest_configure(config: pytest.Config) -> None:
    enabled = config.getoption("ci_report")
    if enabled is None:
        enabled = config.getini("ci_report")
    # xdist workers forward their reports to the controller
    if not enabled or hasattr(config, "workerinput"):
        return

    overrides: dict[str, object] = {
        # Rerun reports carry no index shared by all retry plugins
        "strict_ordering": False,
        "show_quotes": not config.getoption("ci_report_no_quotes"),
    }
    if (output_path := config.getoption("ci_report_json")) is not None:
        overrides["output_path"] = output_path
    if (environment_url := config.getoption("ci_report_env_url")) is not None:
        overrides["environment_url"] = environment_url

    reporter_config = ReporterConfig.from_env(os.environ, **overrides)
    config.pluginmanager.register(CiReporterPlugin(config=reporter_config), PLUGIN_NAME)


def pytest_unconfigure(config: pytest.Config) -> None:
    plugin = config.pluginmanager.get_plugin(PLUGIN_NAME)
    if plugin is not None:
        plugin.detach_log_handler()
        config.pluginmanager.unregister(plugin, PLUGIN_NAME)


class TerminalLogHandler(logging.Handler):
    """Logging handler writing records to pytest's terminal."""

    def __init__(self, terminal_reporter: pytest.TerminalReporter) -> None:
        super().__init__()
        self.terminal_reporter = terminal_reporter

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.terminal_reporter.write_line(self.format(record))
        except Exception:  # pragma: no cover
            self.handleError(record)


def error_from_report(report: pytest.TestReport) -> AttemptError:
    """Extract the crash message and traceback of a failing report."""
    crash = getattr(report.longrepr, "reprcrash", None)
    message = crash.message if crash is not None else str(report.longrepr or "")
    return AttemptError(message=message, stack=report.longreprtext or None)


@dataclass(kw_only=True)
class PendingAttempt:
    """Phase reports of one execution, folded into a single attempt."""

    outcome: Outcome = Outcome.PASSED
    duration_seconds: float = 0.0
    errors: list[AttemptError] = field(default_factory=list)

    def add_report(self, report: pytest.TestReport) -> None:
        self.duration_seconds += report.duration

        if report.outcome in FAILING_REPORT_OUTCOMES:
            error = error_from_report(report)
            self.errors.append(error)
            if self.outcome is not Outcome.TIMED_OUT:
                self.outcome = (
                    Outcome.TIMED_OUT
                    if PYTEST_TIMEOUT_MARKER in error.message
                    else Outcome.FAILED
                )
        elif report.outcome == "skipped" and self.outcome is Outcome.PASSED:
            self.outcome = Outcome.SKIPPED


@dataclass(kw_only=True)
class CiReporterPlugin:
    """Observes a pytest session and reports it on finish."""

    config: ReporterConfig
    log: logging.Logger = field(
        default_factory=lambda: logging.getLogger("ci_reporter.pytest")
    )
    reporter: Reporter = field(init=False)
    pending: dict[TestIdentity, PendingAttempt] = field(
        default_factory=dict, init=False
    )
    _handler: logging.Handler | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        self.reporter = Reporter(config=self.config, log=self.log)

    def attach_log_handler(self, terminal_reporter: pytest.TerminalReporter) -> None:
        self._handler = TerminalLogHandler(terminal_reporter)
        self.log.addHandler(self._handler)
        self.log.setLevel(logging.INFO)
        self.log.propagate = False

    def detach_log_handler(self) -> None:
        if self._handler is not None:
            self.log.removeHandler(self._handler)
            self.log.propagate = True
            self._handler = None

    @pytest.hookimpl(trylast=True)
    def pytest_sessionstart(self, session: pytest.Session) -> None:
        terminal_reporter = session.config.pluginmanager.get_plugin("terminalreporter")
        if terminal_reporter is not None:
            self.attach_log_handler(terminal_reporter)
        self.reporter.on_begin()

    def pytest_collectreport(self, report: pytest.CollectReport) -> None:
        if report.failed:
            self.reporter.on_error(
                f"Collection failed: {report.nodeid}", report.longreprtext or None
            )

    def pytest_internalerror(self, excrepr: object) -> None:
        self.reporter.on_error(f"Internal error: {excrepr}")

    def pytest_runtest_logreport(self, report: pytest.TestReport) -> None:
        pending = self.pending.setdefault(report.nodeid, PendingAttempt())
        pending.add_report(report)

        if report.when == "teardown" or report.outcome == "rerun":
            self.record_pending(report.nodeid)

    def record_pending(self, identity: TestIdentity) -> None:
        pending = self.pending.pop(identity)
        self.reporter.on_test_end(
            identity,
            pending.outcome,
            pending.duration_seconds,
            self.reporter.store.attempt_count(identity),
            pending.errors,
        )

    def flush_pending(self) -> None:
        """Record executions that never reached teardown, e.g. on interrupt."""
        for identity in list(self.pending):
            self.log.warning("Recording unfinished attempt for %s", identity)
            self.record_pending(identity)

    @pytest.hookimpl(trylast=True)
    def pytest_sessionfinish(
        self, session: pytest.Session, exitstatus: int | pytest.ExitCode
    ) -> None:
        self.flush_pending()
        summary = self.reporter.on_end()
        if summary.exit_code and exitstatus == pytest.ExitCode.OK:
            session.exitstatus = pytest.ExitCode.TESTS_FAILED
