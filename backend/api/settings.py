"""
API Settings

Service configuration read from the environment (and a .env file,
if present).

Variables:
    SHOTCOACH_MODEL_PATH        Pose landmarker .task model bundle
    SHOTCOACH_LOG_LEVEL         Logging level name (INFO, DEBUG, ...)
    SHOTCOACH_ENHANCER_URL      Feedback rewriting endpoint; unset disables it
    SHOTCOACH_ENHANCER_TIMEOUT  Seconds to wait for the rewriting endpoint
    SHOTCOACH_ENGINE_VERSION    Version tag stored with each analysis
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    model_path: str = "models/pose_landmarker_lite.task"
    log_level: str = "INFO"
    enhancer_url: Optional[str] = None
    enhancer_timeout: float = 5.0
    engine_version: str = "1.0.0"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            model_path=os.getenv("SHOTCOACH_MODEL_PATH", cls.model_path),
            log_level=os.getenv("SHOTCOACH_LOG_LEVEL", cls.log_level).upper(),
            enhancer_url=os.getenv("SHOTCOACH_ENHANCER_URL") or None,
            enhancer_timeout=float(os.getenv("SHOTCOACH_ENHANCER_TIMEOUT", str(cls.enhancer_timeout))),
            engine_version=os.getenv("SHOTCOACH_ENGINE_VERSION", cls.engine_version),
        )


@lru_cache
def get_settings() -> Settings:
    """Settings for this process, read once."""
    return Settings.from_env()
