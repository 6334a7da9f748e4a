"""
Configuration management for the LSEG Data Relay.
"""

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

BASE_DIR: Path = Path(__file__).parent.parent

load_dotenv(BASE_DIR / ".env")


class Settings:
    """API server configuration."""

    # Paths
    BASE_DIR: Path = BASE_DIR
    REGISTRY_PATH: Path = Path(__file__).parent / "data" / "api_registry.json"

    # Server
    API_TITLE: str = "LSEG Data Relay"
    API_DESCRIPTION: str = "Relay between the frontend and the LSEG Data Platform REST API"
    API_VERSION: str = "1.0.0"
    HOST: str = "0.0.0.0"
    PORT: int = int(os.getenv("PORT", "3001"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # CORS
    CORS_ORIGINS: List[str] = ["*"]  # Allow all origins (restrict in production)

    # Data Platform
    RDP_AUTH_URL: str = os.getenv("RDP_AUTH_URL", "https://api.refinitiv.com/auth/oauth2/v1/token")
    RDP_BASE_URL: str = os.getenv("RDP_BASE_URL", "https://api.refinitiv.com")
    RDP_SCOPE: str = "trapi"
    HTTP_TIMEOUT: Optional[float] = None  # None keeps the httpx default

    # Lipper fund analysis stream
    LIPPER_PROFILE: str = "LIPPER"
    LIPPER_ENDPOINT: str = "/data/funds/v1/assets/{id}"
    LIPPER_PROPERTY_PARAM: str = "properties"
    LIPPER_CALL_DELAY_SECONDS: float = 5


settings = Settings()
