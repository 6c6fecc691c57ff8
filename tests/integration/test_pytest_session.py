"""End-to-end tests running pytest sessions with the plugin."""

import json
from pathlib import Path

import pytest

TEST_MODULE = """
import pytest


def test_passes():
    pass


def test_fails():
    assert 1 == 2, "boom"


@pytest.mark.skip(reason="not today")
def test_skipped():
    pass


@pytest.mark.xfail(reason="known bug")
def test_expected_failure():
    assert False
"""


@pytest.fixture
def summary_path(tmp_path: Path) -> Path:
    """Return the artifact path outside the pytester directory."""
    return tmp_path / "out" / "summary.json"


def test_writes_summary_for_session(
    pytester: pytest.Pytester, summary_path: Path
) -> None:
    """A session with mixed outcomes produces the expected summary."""
    pytester.makepyfile(test_mixed=TEST_MODULE)

    result = pytester.runpytest(
        "--ci-report",
        f"--ci-report-json={summary_path}",
        "--ci-report-env-url=https://qa.example.com",
        "--ci-report-no-quotes",
    )

    result.assert_outcomes(passed=1, failed=1, skipped=1, xfailed=1)
    assert result.ret == pytest.ExitCode.TESTS_FAILED

    data = json.loads(summary_path.read_text())
    assert data["totalTests"] == 4
    assert data["passed"] == 1
    assert data["failed"] == 1
    assert data["skipped"] == 2
    assert data["totalRetries"] == 0
    assert data["environmentUrl"] == "https://qa.example.com"
    assert data["endTime"] >= data["startTime"]
    (failure,) = data["failures"]
    assert failure["title"] == "test_mixed.py::test_fails"
    assert "boom" in failure["message"]
    assert "assert 1 == 2" in failure["stack"]
    assert failure["isTimeout"] is False

    result.stdout.fnmatch_lines(
        [
            "*Test run started!*",
            "*1 of 4 tests failed | 1 passed*",
            "*--- Failure #1 ---*",
        ]
    )


def test_passing_session_exits_ok(
    pytester: pytest.Pytester, summary_path: Path
) -> None:
    """A passing session keeps exit code 0."""
    pytester.makepyfile(test_ok="def test_ok():\n    pass\n")

    result = pytester.runpytest("--ci-report", f"--ci-report-json={summary_path}")

    assert result.ret == pytest.ExitCode.OK
    data = json.loads(summary_path.read_text())
    assert data["passed"] == 1
    assert data["failures"] == []
    result.stdout.fnmatch_lines(["*All 1 tests passed*"])


def test_setup_error_fails_test(pytester: pytest.Pytester, summary_path: Path) -> None:
    """An error in a fixture fails the test it belongs to."""
    pytester.makepyfile(
        test_fixture="""
import pytest


@pytest.fixture
def broken():
    raise RuntimeError("fixture exploded")


def test_uses_broken(broken):
    pass
"""
    )

    pytester.runpytest("--ci-report", f"--ci-report-json={summary_path}")

    data = json.loads(summary_path.read_text())
    assert data["failed"] == 1
    assert "fixture exploded" in data["failures"][0]["message"]


def test_enabled_from_ini(pytester: pytest.Pytester) -> None:
    """The ini option enables the reporter with the default artifact path."""
    pytester.makeini("[pytest]\nci_report = true\n")
    pytester.makepyfile(test_ok="def test_ok():\n    pass\n")

    pytester.runpytest()

    assert (pytester.path / "test-results.json").is_file()


def test_disabled_by_default(pytester: pytest.Pytester) -> None:
    """Without the option no summary is written."""
    pytester.makepyfile(test_ok="def test_ok():\n    pass\n")

    result = pytester.runpytest()

    assert result.ret == pytest.ExitCode.OK
    assert not (pytester.path / "test-results.json").exists()
