"""Application configuration."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Timing (seconds)
    ANIMATION_DURATION: float = 2.0  # Shared per-frame animation length
    DEFAULT_FRAME_DELAY: float = 2.5  # Delay for newly created sequence frames
    SETTLE_DELAY: float = 0.1  # Wait before rewinding a finished single animation
    TICK_INTERVAL: float = 1 / 60  # Asyncio scheduler tick spacing

    # Identity
    DEFAULT_COMPOSITION_ID: str = "frame-1"

    # Persistence
    STATE_KEY: str = "adforge-state"

    model_config = {"env_prefix": "ADFORGE_"}


settings = Settings()
