from pydantic_settings import BaseSettings
from pydantic import field_validator
from sqlalchemy.engine import make_url


class Settings(BaseSettings):
    DATABASE_URL: str = "postgresql+asyncpg://user:password@db:5432/student_rentals"
    DATABASE_SSL: bool = False
    DB_STATEMENT_TIMEOUT_MS: int = 15000
    REDIS_URL: str = "redis://localhost:6379/0"
    CACHE_BACKEND: str = "memory"
    USER_MANAGEMENT_URL: str = "http://user-management:8000"
    GOOGLE_MAPS_API_KEY: str = "your_google_maps_key"

    SEARCH_RADIUS_METERS: int = 20000
    SEARCH_DEFAULT_LIMIT: int = 50
    SEARCH_MAX_LIMIT: int = 100
    SEARCH_TIMEOUT_RETRY_LIMIT: int = 10
    SEARCH_TTL_FILTERED: int = 60
    SEARCH_TTL_BROWSE: int = 180
    PROPERTY_DETAIL_TTL: int = 3600
    LOCATION_COUNTRY_SUFFIX: str = "south africa"

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    @field_validator("DATABASE_URL")
    def ensure_async_driver(cls, v):
        """
        Rewrites plain postgres:// and postgresql:// URLs to the asyncpg driver
        so the same DATABASE_URL works for hosting providers that hand out
        driverless URLs.
        """
        if v:
            try:
                url = make_url(v)
                if url.drivername in ("postgres", "postgresql", "postgresql+psycopg2"):
                    url = url.set(drivername="postgresql+asyncpg")
                return url.render_as_string(hide_password=False)
            except Exception:
                # If parsing fails, return the original value.
                return v
        return v

    @field_validator("CACHE_BACKEND")
    def normalize_cache_backend(cls, v):
        v = (v or "memory").strip().lower()
        if v not in ("memory", "redis"):
            raise ValueError("CACHE_BACKEND must be 'memory' or 'redis'")
        return v

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
