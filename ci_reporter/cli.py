"""CLI entry point for rendering a persisted run summary."""

import argparse
import logging
import random
import sys
from pathlib import Path

from ci_reporter.artifact import load_summary
from ci_reporter.console import log_run_summary, pick_quote

INVALID_ARTIFACT_EXIT_CODE = 2


def run(summary_path: Path, show_quotes: bool = True) -> int:
    """Render a summary artifact and return the run's exit code."""
    log = logging.getLogger("ci_reporter")

    log.info("Loading summary: %s", summary_path)
    try:
        summary = load_summary(summary_path)
    except (FileNotFoundError, ValueError) as e:
        log.error("Cannot read summary: %s", e)
        return INVALID_ARTIFACT_EXIT_CODE

    if summary.environment_url:
        log.info("Tests ran against: %s", summary.environment_url)

    quote = None
    if show_quotes:
        quote = pick_quote(random.Random(), success=summary.exit_code == 0)
    log_run_summary(log, summary, quote)

    return summary.exit_code


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Render a test run summary and exit with its status"
    )
    parser.add_argument(
        "summary_path",
        type=Path,
        nargs="?",
        default=Path("test-results.json"),
        help="Path to the JSON summary (default: test-results.json)",
    )
    parser.add_argument(
        "--no-quotes",
        action="store_true",
        help="Do not print a closing quote",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    sys.exit(run(args.summary_path, show_quotes=not args.no_quotes))


if __name__ == "__main__":  # pragma: no cover
    main()
