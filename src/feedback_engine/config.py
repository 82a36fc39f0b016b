"""Engine configuration — reads settings from environment variables.

All settings have sensible defaults for local development.  Deployments
override them via ``FEEDBACK_*`` env vars.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from feedback_engine.constants import DEFAULT_COMPLETION_BADGE

# Bundled question catalog, used when FEEDBACK_CATALOG_PATH is not set.
DEFAULT_CATALOG_PATH = Path(__file__).parent / "data" / "default_questions.yaml"

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@dataclass(frozen=True)
class EngineSettings:
    """Immutable engine configuration read from environment at startup."""

    # Retry policy for question-repository calls
    fetch_max_attempts: int = 3
    fetch_retry_delay: float = 1.0
    fetch_retry_multiplier: float = 2.0

    # Logging
    log_level: str = "INFO"

    # YAML question catalog used by QuestionCatalog
    catalog_path: str = str(DEFAULT_CATALOG_PATH)

    # Human-readable badge attached to every submission payload
    completion_badge: str = DEFAULT_COMPLETION_BADGE


def load_settings() -> EngineSettings:
    """Build settings from ``FEEDBACK_*`` environment variables."""
    return EngineSettings(
        fetch_max_attempts=int(os.getenv("FEEDBACK_FETCH_MAX_ATTEMPTS", "3")),
        fetch_retry_delay=float(os.getenv("FEEDBACK_FETCH_RETRY_DELAY", "1.0")),
        fetch_retry_multiplier=float(
            os.getenv("FEEDBACK_FETCH_RETRY_MULTIPLIER", "2.0")
        ),
        log_level=os.getenv("FEEDBACK_LOG_LEVEL", "INFO").upper(),
        catalog_path=os.getenv("FEEDBACK_CATALOG_PATH") or str(DEFAULT_CATALOG_PATH),
        completion_badge=os.getenv("FEEDBACK_COMPLETION_BADGE")
        or DEFAULT_COMPLETION_BADGE,
    )


def configure_logging(settings: EngineSettings) -> None:
    """Install the root logging handler at the configured level."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=LOG_FORMAT,
    )
