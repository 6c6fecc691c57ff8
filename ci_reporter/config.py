"""Configuration for the reporter."""

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict

DEFAULT_OUTPUT_PATH = Path("test-results.json")


class ReporterConfig(BaseModel):
    """Configuration for a reporter run."""

    model_config = ConfigDict(frozen=True)

    # None disables writing the summary artifact
    output_path: Path | None = DEFAULT_OUTPUT_PATH
    environment_url: str = ""
    strict_ordering: bool = True
    show_quotes: bool = True

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None, **overrides: object
    ) -> "ReporterConfig":
        """Build configuration, taking the environment URL from ``TEST_URL``."""
        environ = os.environ if environ is None else environ
        values: dict[str, object] = {"environment_url": environ.get("TEST_URL", "")}
        values.update(overrides)
        return cls.model_validate(values)
