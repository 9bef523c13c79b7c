import logging
import os
from dataclasses import dataclass
from typing import List

from dotenv import load_dotenv


load_dotenv()


@dataclass(frozen=True)
class Config:
    """Service configuration loaded from environment variables."""

    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "production")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "WARNING")
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: str = os.getenv("PORT", "8080")

    @staticmethod
    def allowed_origins(extra_origins: List[str] | None = None) -> List[str]:
        env_origins = [o.strip() for o in os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:3000").split(",") if o.strip()]
        merged = list(env_origins)
        if extra_origins:
            merged.extend(extra_origins)
        # Deduplicate while preserving order
        seen = set()
        result: List[str] = []
        for origin in merged:
            if origin not in seen:
                seen.add(origin)
                result.append(origin)
        return result

    @classmethod
    def log_level(cls) -> int:
        return logging.getLevelName(cls.LOG_LEVEL.upper())

    @classmethod
    def validate(cls) -> None:
        if not isinstance(cls.log_level(), int):
            raise ValueError(f"LOG_LEVEL must be a logging level name, got {cls.LOG_LEVEL!r}")
        if not cls.PORT.isdigit():
            raise ValueError(f"PORT must be numeric, got {cls.PORT!r}")
