"""Application configuration management."""
from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL

DEFAULT_JWT_SECRET = "your_super_secret_jwt_key_change_in_production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "SkyEarth Backend API"
    app_version: str = "1.0.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 5000
    cors_origin: str = "http://localhost:3000"

    # Database
    db_name: str = "skyearth_db"
    db_user: str = "root"
    db_password: str = ""
    db_host: str = "localhost"
    db_port: int = 3306
    database_url: Optional[str] = None  # full URL override, e.g. sqlite+aiosqlite:///./dev.db
    db_pool_size: int = 5
    db_max_overflow: int = 0
    db_pool_timeout: int = 30
    db_pool_recycle: int = 3600
    db_echo: bool = False

    # JWT
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_expire_hours: int = 24  # 0 disables expiry

    # Password hashing
    bcrypt_rounds: int = 12

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def sqlalchemy_url(self):
        """SQLAlchemy URL for the application database."""
        if self.database_url:
            return self.database_url
        return URL.create(
            "mysql+aiomysql",
            username=self.db_user,
            password=self.db_password or None,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
