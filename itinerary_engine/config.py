"""
Itinerary Engine Configuration
Loads settings from environment variables
"""

import os
from typing import List
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Settings:
    """Application settings loaded from environment"""

    # API Configuration
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))
    API_ENV: str = os.getenv("API_ENV", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # CORS Configuration
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:3001")

    # Cache Configuration
    CACHE_BACKEND: str = os.getenv("CACHE_BACKEND", "memory")  # memory | redis
    CACHE_MAX_SIZE: int = int(os.getenv("CACHE_MAX_SIZE", "500"))
    CACHE_TTL: int = int(os.getenv("CACHE_TTL", "1800"))
    CACHE_SWEEP_INTERVAL: int = int(os.getenv("CACHE_SWEEP_INTERVAL", "300"))

    # Redis Configuration
    REDIS_HOST: str = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT: int = int(os.getenv("REDIS_PORT", "6379"))
    REDIS_DB: int = int(os.getenv("REDIS_DB", "0"))
    REDIS_PASSWORD: str = os.getenv("REDIS_PASSWORD", "")
    REDIS_KEY_PREFIX: str = os.getenv("REDIS_KEY_PREFIX", "itinerary:")

    # Engine presets
    MATCHING_PROFILE: str = os.getenv("MATCHING_PROFILE", "default")  # default | high_performance | precise
    DAY_PLANNING_PROFILE: str = os.getenv("DAY_PLANNING_PROFILE", "default")  # default | relaxed | packed
    SEQUENCING_PROFILE: str = os.getenv("SEQUENCING_PROFILE", "default")  # default | fast | precise

    # Pricing
    BASE_CURRENCY: str = os.getenv("BASE_CURRENCY", "USD")
    CONTINGENCY_PERCENT: float = float(os.getenv("CONTINGENCY_PERCENT", "15"))

    # Trip limits
    MAX_TRIP_DAYS: int = int(os.getenv("MAX_TRIP_DAYS", "30"))
    LARGE_GROUP_SIZE: int = int(os.getenv("LARGE_GROUP_SIZE", "20"))

    @property
    def cors_origins_list(self) -> List[str]:
        """Get CORS origins as a list"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def redis_url(self) -> str:
        """Get Redis connection URL"""
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"


# Global settings instance
settings = Settings()
