"""
POSECOACH+ Configuration

Environment variables and engine settings.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    # Application
    APP_NAME: str = "POSECOACH+"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Mode activated when a session starts
    DEFAULT_MODE: str = "squat"

    # Tick loop pacing (milliseconds between evaluations)
    TICK_INTERVAL_MS: int = 0
    HAND_TICK_INTERVAL_MS: int = 60

    # Targets
    STABILITY_TARGET_SECONDS: float = 8.0
    REP_TARGET: int = 10

    # Scoring
    SCORE_POINTS_PER_SECOND: float = 5.0
    SCORE_POINTS_PER_REP: float = 10.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
