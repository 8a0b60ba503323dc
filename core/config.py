# -*- coding: utf-8 -*-
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from core.errors import ConfigurationError

ENV_PREFIX = "STUDIO_"


class StudioSettings(BaseModel):
    text_model: str = "gemini-2.5-flash"
    image_model: str = "gemini-2.5-flash-image"
    # batch path: up to max_retries + 1 attempts per episode
    max_retries: int = Field(default=2, ge=0)
    retry_base_delay: float = Field(default=3.0, ge=0)
    pacing_delay: float = Field(default=1.0, ge=0)
    # prompt windows (characters)
    outline_window: int = Field(default=1000, ge=1)
    previous_window: int = Field(default=800, ge=1)
    analyze_window: int = Field(default=5000, ge=1)
    log_level: str = "INFO"


def load_settings(**overrides) -> StudioSettings:
    """
    Build settings from defaults, STUDIO_* variables (process env or .env) and
    explicit keyword overrides, in increasing priority.
    """
    load_dotenv(override=False)
    values = {}
    for name in StudioSettings.model_fields:
        raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
        if raw not in (None, ""):
            values[name] = raw
    values.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return StudioSettings(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid studio settings: {e}") from e
