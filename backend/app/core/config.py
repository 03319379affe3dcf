from pydantic_settings import BaseSettings
from typing import List, Literal, Optional


class Settings(BaseSettings):
    ENV: str = "development"
    DATABASE_URL: str = "sqlite:////data/sqlite.db"
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:8080"

    # Category hierarchy
    CATEGORY_MAX_TREE_DEPTH: int = 64
    CATEGORY_DELETE_MODE: Literal["soft", "hard"] = "soft"
    CATEGORY_ATOMIC_CASCADE: bool = True
    CATEGORY_IS_DELETED_DEFAULT: bool = False
    CATEGORY_PRODUCT_COUNT_STATUS: str = "published"
    CATEGORY_OPERATION_TIMEOUT: Optional[float] = None

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    class Config:
        env_file = ".env"


settings = Settings()
