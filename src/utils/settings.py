"""
Runtime settings for the reconciliation core.

Values come from the environment (or a local .env file) so matching
thresholds can be tuned against real receipt data without code changes.
"""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from src.utils.logging_config import LOG_LEVELS, setup_logging


class ReconcilerSettings(BaseModel):
    """Tunable parameters shared by the matcher, pipeline and finalizer."""
    fuzzy_match_threshold: float = Field(default=0.75)
    fuzzy_token_weight: float = Field(default=0.6)
    ocr_candidate_limit: int = Field(default=500, gt=0)
    default_item_unit: str = "count"
    log_level: str = "INFO"

    @field_validator('fuzzy_match_threshold')
    @classmethod
    def validate_threshold(cls, v):
        """Threshold must be a usable similarity in (0, 1]."""
        if not 0.0 < v <= 1.0:
            raise ValueError('fuzzy_match_threshold must be in (0, 1]')
        return v

    @field_validator('fuzzy_token_weight')
    @classmethod
    def validate_weight(cls, v):
        if not 0.0 <= v <= 1.0:
            raise ValueError('fuzzy_token_weight must be in [0, 1]')
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        level = v.strip().upper() or "INFO"
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(LOG_LEVELS)}")
        return level


def load_settings(dotenv_path: Optional[str] = None) -> ReconcilerSettings:
    """
    Builds settings from environment variables, loading .env first.

    Unset variables keep the model defaults. The project logger is set to
    the loaded log_level.
    """
    load_dotenv(dotenv_path)

    env_map = {
        'fuzzy_match_threshold': 'FUZZY_MATCH_THRESHOLD',
        'fuzzy_token_weight': 'FUZZY_TOKEN_WEIGHT',
        'ocr_candidate_limit': 'OCR_CANDIDATE_LIMIT',
        'default_item_unit': 'DEFAULT_ITEM_UNIT',
        'log_level': 'LOG_LEVEL',
    }
    values = {}
    for field_name, env_name in env_map.items():
        raw = os.getenv(env_name)
        if raw is not None and raw.strip():
            values[field_name] = raw.strip()

    settings = ReconcilerSettings(**values)
    setup_logging(level=settings.log_level)
    return settings
