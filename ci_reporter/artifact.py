"""Persistence of the run summary artifact."""

import logging
from pathlib import Path

from pydantic import ValidationError

from ci_reporter.models.summary import RunSummary

log = logging.getLogger(__name__)


def dump_summary(summary: RunSummary) -> str:
    """Serialize a summary with its camelCase field names."""
    return summary.model_dump_json(by_alias=True, indent=2)


def write_summary(path: Path, summary: RunSummary) -> Path:
    """Write the summary artifact, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_summary(summary), encoding="utf-8")
    log.info("Test summary written to %s", path)
    return path


def load_summary(path: Path) -> RunSummary:
    """Load a summary artifact.

    Raises:
        FileNotFoundError: If the artifact does not exist
        ValueError: If the artifact is not valid JSON or misses fields

    """
    if not path.is_file():
        raise FileNotFoundError(f"Summary file not found: {path}")

    content = path.read_text(encoding="utf-8")
    if not content.strip():
        raise ValueError(f"Empty summary file: {path}")

    try:
        return RunSummary.model_validate_json(content)
    except ValidationError as e:
        raise ValueError(f"Invalid summary schema in {path}: {e}") from e
