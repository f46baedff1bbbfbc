"""
Runtime configuration read from the environment.

    SPRINTPOKER_ENV             development | production
    SPRINTPOKER_BOT_HANDLE      handle the bot answers to in rooms (default: bot)
    SPRINTPOKER_LOG_LEVEL       DEBUG, INFO, WARNING, ERROR
    SPRINTPOKER_LOG_FORMAT      console | json (default: json in production)
    SPRINTPOKER_TASKS_FILE      JSON file seeding the in-memory task provider
    SPRINTPOKER_INSTALLATION    base URL used for task links
    SPRINTPOKER_HOST / _PORT    HTTP bind address
    ALLOWED_ORIGINS             comma separated CORS origins
"""

from __future__ import annotations
from dataclasses import dataclass, field
import os


@dataclass
class Settings:
    """Process-wide settings."""
    env: str = "development"
    bot_handle: str = "bot"
    log_level: str = "INFO"
    log_format: str = "console"
    tasks_file: str | None = None
    installation: str = "https://example.teamwork.com"
    host: str = "127.0.0.1"
    port: int = 8000
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> Settings:
        env = os.getenv("SPRINTPOKER_ENV", "development")
        default_format = "json" if env == "production" else "console"
        return cls(
            env=env,
            bot_handle=os.getenv("SPRINTPOKER_BOT_HANDLE", "bot"),
            log_level=os.getenv("SPRINTPOKER_LOG_LEVEL", "INFO"),
            log_format=os.getenv("SPRINTPOKER_LOG_FORMAT", default_format),
            tasks_file=os.getenv("SPRINTPOKER_TASKS_FILE", None),
            installation=os.getenv("SPRINTPOKER_INSTALLATION", "https://example.teamwork.com"),
            host=os.getenv("SPRINTPOKER_HOST", "127.0.0.1"),
            port=int(os.getenv("SPRINTPOKER_PORT", "8000")),
            allowed_origins=os.getenv("ALLOWED_ORIGINS", "*").split(","),
        )
