import warnings
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    MONGODB_URI: str = "mongodb://localhost:27017/?replicaSet=rs0"
    DATABASE_NAME: str = "freight_trip_matching"
    MONGO_TIMEOUT_MS: int = 5000
    API_KEY: str = "changeme"
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:8000"
    DOCS_ENABLED: bool = True
    LOG_LEVEL: str = "INFO"

    # Collaborators. Unset -> template drafter / log-only sender.
    EXTERNAL_CALL_TIMEOUT_SECONDS: float = 10.0
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    EMAIL_WEBHOOK_URL: Optional[str] = None
    EMAIL_WEBHOOK_SECRET: Optional[str] = None

    NEGOTIATION_MAX_ROUNDS: int = 5
    LOAD_SCAN_LIMIT: int = 500

    # Trip search tunables (miles unless noted)
    DIRECT_RADIUS_MILES: float = 75
    CORRIDOR_RADIUS_MILES: float = 75
    TOWARD_FACTOR: float = 0.8  # leg must cut remaining distance by 20%
    DIRECT_SCORE_THRESHOLD: float = 7.0
    SAVINGS_THRESHOLD: float = 50  # USD
    OPEN_ENDED_MAX_DEADHEAD: float = 100
    BACKHAUL_HOME_RADIUS_MILES: float = 100
    BACKHAUL_TRIANGLE_FACTOR: float = 0.7  # intermediate leg must cut distance home by 30%
    MAX_CHAIN_LEGS: int = 3
    MAX_CHAINS: int = 10

    model_config = {"env_file": ".env"}


settings = Settings()

if settings.API_KEY == "changeme":
    warnings.warn(
        "API_KEY is set to the default value 'changeme'. "
        "Set a strong API_KEY in your .env file for production.",
        stacklevel=1,
    )
