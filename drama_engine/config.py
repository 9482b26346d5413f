"""Runtime settings, read from the environment (prefix ``DRAMA_ENGINE_``) and ``.env``."""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from drama_engine.adaptation.timing import SCENE_CEILING_SEC, SCENE_FLOOR_SEC, DurationParams


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DRAMA_ENGINE_",
        env_file=".env",
        extra="ignore",
    )

    # Model invocation.  A missing key falls through to OPENAI_API_KEY.
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    llm_model: str = "gpt-4o"
    temperature: float = 0.7
    request_timeout_sec: float = 120.0

    log_level: str = "INFO"

    # Duration model
    speech_chars_per_sec: float = 4.0
    transition_buffer_sec: float = 0.5
    min_scene_sec: int = Field(default=2, ge=SCENE_FLOOR_SEC, le=SCENE_CEILING_SEC)
    max_scene_sec: int = Field(default=15, ge=SCENE_FLOOR_SEC, le=SCENE_CEILING_SEC)

    @model_validator(mode="after")
    def _scene_bounds_ordered(self) -> "Settings":
        if self.min_scene_sec > self.max_scene_sec:
            raise ValueError("min_scene_sec must not exceed max_scene_sec")
        return self

    def duration_params(self) -> DurationParams:
        return DurationParams(
            speech_chars_per_sec=self.speech_chars_per_sec,
            transition_buffer_sec=self.transition_buffer_sec,
            min_scene_sec=self.min_scene_sec,
            max_scene_sec=self.max_scene_sec,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    load_dotenv()
    return Settings()
