"""
Engine configuration.

Settings are read from ``RULEKEEPER_*`` environment variables, optionally
loaded from a ``.env`` file, and can also be constructed directly.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Literal

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field

logger = logging.getLogger("rulekeeper")

ENV_PREFIX = "RULEKEEPER_"
DEFAULT_EXPORT_VERSION = "1.1.0"
DEFAULT_MAX_EXPORT_AGE_MS = 365 * 24 * 60 * 60 * 1000

ExperiencePolicy = Literal["recompute", "accumulate"]
HitPointMethod = Literal["average", "roll"]


class EngineSettings(BaseModel):
    """Configuration for the character lifecycle and its collaborators."""

    storage_dir: Path = Field(
        default=Path("rulekeeper_data"),
        description="Directory used by the JSON character store",
    )
    log_level: str = Field(
        default="INFO",
        description="Level passed to logging.basicConfig",
    )
    validate_level_up: bool = Field(
        default=True,
        description="Run the validation pipeline before persisting a level-up",
    )
    experience_policy: ExperiencePolicy = Field(
        default="recompute",
        description="'recompute' sets experience to level x 300, 'accumulate' adds 300",
    )
    hp_method: HitPointMethod = Field(
        default="average",
        description="Hit points gained per level: fixed average or a die roll",
    )
    export_version: str = Field(
        default=DEFAULT_EXPORT_VERSION,
        description="Envelope version written on export and required on import",
    )
    max_export_age_ms: int = Field(
        default=DEFAULT_MAX_EXPORT_AGE_MS,
        ge=0,
        description="Oldest export accepted on import, in milliseconds",
    )

    @classmethod
    def from_env(cls, dotenv_path: str | Path | None = None) -> EngineSettings:
        """Build settings from the environment, loading a .env file first.

        Args:
            dotenv_path: Explicit .env file. When None, python-dotenv searches
                from the current directory upwards.

        Returns:
            EngineSettings with every ``RULEKEEPER_*`` variable applied over
            the defaults.
        """
        if not load_dotenv(dotenv_path or find_dotenv(usecwd=True)):
            logger.debug("📄 No .env file loaded, using process environment only")

        values: dict[str, str] = {}
        for name in cls.model_fields:
            raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None and raw != "":
                values[name] = raw

        settings = cls.model_validate(values)
        logger.debug(f"⚙️ Engine settings: {settings.model_dump(mode='json')}")
        return settings


def configure_logging(settings: EngineSettings | None = None) -> None:
    """Configure root logging from the settings' log level."""
    settings = settings or EngineSettings()
    logging.basicConfig(level=settings.log_level.upper())
