# route_engine/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables (.env file).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    APP_NAME: str = "Heritage Route Engine API"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # OpenRouteService credentials and endpoint (optimization + directions)
    ORS_API_KEY: str = ""
    ORS_BASE_URL: str = "https://api.openrouteservice.org"
    PROVIDER_TIMEOUT_S: float = 15.0
    # When True, create_route refuses to plan without an API key.
    # When False, planning degrades straight to the straight-line tier.
    REQUIRE_PROVIDER_CREDENTIALS: bool = True

    # Planning constants
    MAX_ROUTE_NODES: int = 20
    OPTIMIZER_MIN_NODES: int = 4
    VISIT_MINUTES_PER_STOP: int = 10
    WALKING_SPEED_MPS: float = 1.4
    BUDGET_TOLERANCE_RATIO: float = 0.20
    NEGOTIATION_MINUTES_PER_STOP: int = 12


settings = Settings()
