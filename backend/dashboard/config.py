import json
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480  # 8 hours
    CORS_ORIGINS: str = ""  # comma-separated origins
    SEED_ADMINS: str = "[]"  # JSON array of {username, password}
    LOG_LEVEL: str = "INFO"

    # Export
    EXPORT_SHEET_NAME: str = "Segments"

    class Config:
        env_file = ".env"
        extra = "allow"
        # Allow reading from system environment variables
        case_sensitive = False

    @property
    def cors_origins_list(self) -> list[str]:
        if not self.CORS_ORIGINS:
            return []
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def seed_admins_list(self) -> list[dict]:
        try:
            return json.loads(self.SEED_ADMINS)
        except json.JSONDecodeError:
            return []

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


settings = Settings()
