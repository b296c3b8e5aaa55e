from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # App Config
    PROJECT_NAME: str = "NeuroDDx"
    PROJECT_VERSION: str = "0.1.0"
    ENVIRONMENT: Literal["development", "production", "testing"] = "development"
    DEBUG: bool = False
    API_V1_STR: str = "/v1"

    # Pupil measurements (mm)
    ANISO_THRESHOLD_MM: float = 0.5

    # Score tiers shown next to each candidate
    STRONG_MATCH_THRESHOLD: int = 8
    MODERATE_MATCH_THRESHOLD: int = 5

    # Which rule catalog the differential is scored against ("full" | "starter")
    DIFFERENTIAL_CATALOG: str = "full"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

settings = Settings()
