"""
Configuration - Environment-driven settings.

Values come from the process environment, with a local .env file loaded
first. Read them through get_settings() rather than os.getenv directly.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv()


@dataclass
class Settings:
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: Optional[str] = None
    openai_api_key: Optional[str] = None
    narrator_model: str = "gpt-4o-mini"
    narrator_temperature: float = 0.4
    practice_max_attempts: int = 3
    log_level: str = "INFO"

    @property
    def narration_enabled(self) -> bool:
        return bool(self.openai_api_key)


def get_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings(
        redis_host=os.getenv("REDIS_HOST", "localhost"),
        redis_port=int(os.getenv("REDIS_PORT", 6379)),
        redis_password=os.getenv("REDIS_PASSWORD", None),
        openai_api_key=os.getenv("OPENAI_API_KEY", None),
        narrator_model=os.getenv("NARRATOR_MODEL", "gpt-4o-mini"),
        narrator_temperature=float(os.getenv("NARRATOR_TEMPERATURE", 0.4)),
        practice_max_attempts=int(os.getenv("PRACTICE_MAX_ATTEMPTS", 3)),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
