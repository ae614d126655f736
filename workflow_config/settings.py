"""Engine settings: database URL, log level, definition directory."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

DEFAULT_DATABASE_URL = "sqlite:///workflow.db"
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class EngineSettings:
    database_url: str = DEFAULT_DATABASE_URL
    log_level: str = DEFAULT_LOG_LEVEL
    config_dir: Path | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> EngineSettings:
        """Read ``WORKFLOW_DATABASE_URL``, ``WORKFLOW_LOG_LEVEL`` and
        ``WORKFLOW_CONFIG_DIR``; unset variables keep their defaults."""
        env = os.environ if environ is None else environ
        config_dir = env.get("WORKFLOW_CONFIG_DIR")
        return cls(
            database_url=env.get("WORKFLOW_DATABASE_URL", DEFAULT_DATABASE_URL),
            log_level=env.get("WORKFLOW_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
            config_dir=Path(config_dir) if config_dir else None,
        )
