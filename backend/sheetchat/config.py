"""Application configuration"""
from pydantic_settings import BaseSettings
from typing import Optional, Literal


class Settings(BaseSettings):
    """Settings from environment. Every key has a development default."""

    DATABASE_URL: str = "sqlite:///./sheetchat.db"

    # "authenticated" verifies Firebase ID tokens; "demo" uses a fixed user
    AUTH_MODE: Literal["authenticated", "demo"] = "demo"
    DEMO_USER_ID: str = "mock-user-001"
    DEMO_GOOGLE_ACCESS_TOKEN: Optional[str] = None
    FIREBASE_PROJECT_ID: Optional[str] = None

    AI_PROVIDER: Literal["openai", "azure"] = "openai"
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o-mini"

    AZURE_OPENAI_ENDPOINT: str = ""
    AZURE_OPENAI_KEY: str = ""
    AZURE_OPENAI_DEPLOYMENT: str = ""
    AZURE_OPENAI_API_VERSION: str = "2024-12-01-preview"

    SHEET_CACHE_TTL_SECONDS: int = 300
    SHEET_FETCH_RANGE: str = "A:Z"

    LOG_LEVEL: str = "INFO"
    FRONTEND_URL: str = "http://localhost:3000"
    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "SheetChat"
    VERSION: str = "1.0.0"

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    @property
    def demo_mode(self) -> bool:
        return self.AUTH_MODE == "demo"

    @property
    def ai_configured(self) -> bool:
        """True if the selected AI provider has credentials."""
        if self.AI_PROVIDER == "azure":
            return bool(self.AZURE_OPENAI_KEY and self.AZURE_OPENAI_ENDPOINT)
        return bool(self.OPENAI_API_KEY)

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
