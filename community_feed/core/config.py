# Defines application-wide settings using pydantic-settings' BaseSettings
# Manages environment variables for both halves of the application:
# API configuration (version, project name, CORS)
# Database connection details for the reference backend
# Client settings (API base URL, identity header, timeouts, page sizes)


import json
import os
from typing import Annotated, List, Union

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

load_dotenv()

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # API configuration
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Community Feed API"
    VERSION: str = "0.1.0"

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./community_feed.db")

    # CORS
    BACKEND_CORS_ORIGINS: Annotated[List[str], NoDecode] = [
        "http://localhost:3000",     # Local development
        "http://localhost:5173",     # Vite dev server
    ]

    # Identity is passed as a plain header, authentication lives elsewhere
    USER_ID_HEADER: str = "X-User-Id"

    # Client
    API_BASE_URL: str = os.getenv("API_BASE_URL", "http://localhost:8000/api/v1")
    HTTP_TIMEOUT_SECONDS: float = 10.0

    # Pagination
    ITEMS_PAGE_SIZE: int = 20
    COMMENTS_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    # Development settings - set these differently in production
    DEBUG: bool = os.getenv("DEBUG", "False").lower() in ["true", "1", "t"]
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "production")

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, str):
            # Handle JSON string format
            try:
                return json.loads(v)
            except ValueError:
                return []
        return v

# Create settings instance
settings = Settings()
