from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./app.db"
    REDIS_URL: str = "redis://localhost:6379/0"
    SESSION_SECRET: str = "change_me"
    # Public geocoding / routing services
    NOMINATIM_URL: str = "https://nominatim.openstreetmap.org"
    OSRM_URL: str = "https://router.project-osrm.org"
    OSRM_PROFILE: str = "driving"
    # Nominatim rejects requests without an identifying agent
    USER_AGENT: str = "route-optimizer/1.0 (contact@example.com)"
    HTTP_TIMEOUT: float = 8.0
    # Extra attempts after the first on connect/protocol errors
    HTTP_RETRIES: int = 2
    # Seconds; 0 disables the geocode cache
    GEOCODE_CACHE_TTL: int = 3600
    # Upper bound for one geocode or routing stage, retries included
    STAGE_TIMEOUT: float = 20.0
    # Route lookups per minute per client
    ROUTE_RATE_LIMIT: int = 30
    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
