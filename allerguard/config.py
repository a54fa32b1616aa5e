"""
Runtime configuration.

Settings come from environment variables prefixed with ``ALLERGUARD_`` (an
optional ``.env`` file in the working directory is loaded first) and are
validated by a Pydantic model. Reference data paths are optional; without them
the built-in lexicon and substitution map are used.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import List, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from .lexicon import AllergenLexicon
from .substitutions import SubstitutionMap

ENV_PREFIX = "ALLERGUARD_"
VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

logger = logging.getLogger(__name__)


class Settings(BaseModel):
    """
    Attributes:
        LEXICON_PATH: JSON allergen lexicon replacing the built-in one
        SUBSTITUTIONS_PATH: JSON or CSV substitution map replacing the built-in one
        MAX_SUBSTITUTIONS: Maximum substitution candidates per item
        MAX_WORKERS: Worker threads for menu scans
        HISTORY_PATH: CSV audit log written by the CLI
        CORS_ORIGINS: Origins allowed by the HTTP API
        LOG_LEVEL: Logging level (DEBUG/INFO/WARNING/ERROR/CRITICAL)
    """

    LEXICON_PATH: Optional[Path] = Field(
        default=None, description="JSON allergen lexicon file"
    )

    SUBSTITUTIONS_PATH: Optional[Path] = Field(
        default=None, description="JSON or CSV substitution map file"
    )

    MAX_SUBSTITUTIONS: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Maximum number of substitution candidates per item",
    )

    MAX_WORKERS: int = Field(
        default=4,
        ge=1,
        le=32,
        description="Worker threads used for menu scans",
    )

    HISTORY_PATH: Path = Field(
        default=Path("db/history/history.csv"),
        description="CSV audit log of CLI verdicts",
    )

    CORS_ORIGINS: str = Field(
        default="*",
        description="Comma-separated origins allowed to call the HTTP API",
    )

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v_upper = v.upper()
        if v_upper not in VALID_LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of: {', '.join(VALID_LOG_LEVELS)}")
        return v_upper

    @field_validator("LEXICON_PATH", "SUBSTITUTIONS_PATH", mode="before")
    @classmethod
    def blank_path_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``ALLERGUARD_*`` variables (defaults to os.environ)."""
        environ = os.environ if environ is None else environ
        values = {
            name: environ[ENV_PREFIX + name]
            for name in cls.model_fields
            if ENV_PREFIX + name in environ
        }
        return cls(**values)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load ``.env`` once and return the shared settings instance."""
    load_dotenv()
    return Settings.from_env()


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure application logging based on settings."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.debug("Logging configured at %s level", settings.LOG_LEVEL)


def load_lexicon(settings: Optional[Settings] = None) -> AllergenLexicon:
    settings = settings or get_settings()
    if settings.LEXICON_PATH:
        return AllergenLexicon.from_json(settings.LEXICON_PATH)
    return AllergenLexicon.default()


def load_substitution_map(settings: Optional[Settings] = None) -> SubstitutionMap:
    """Configured map (CSV by extension, JSON otherwise) or the built-in one."""
    settings = settings or get_settings()
    path = settings.SUBSTITUTIONS_PATH
    if not path:
        return SubstitutionMap.default()
    if Path(path).suffix.lower() == ".csv":
        return SubstitutionMap.from_csv(path)
    return SubstitutionMap.from_json(path)
