from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DEBUG: bool = False
    ENVIRONMENT: str = "DEV"
    API_VERSION: str = "0.1.0"
    CORS_ORIGINS: list[str] = [
        "http://localhost:5000",
        "http://localhost:5173",
    ]

    # Security settings
    MAX_REQUEST_SIZE: int = 10 * 1024 * 1024  # 10MB

    # Map engine limits
    MAX_POINTS_PER_REQUEST: int = 20_000

    def validate_prod(self) -> None:
        """Sanity checks for production environment."""
        if self.ENVIRONMENT.upper() == "PROD":
            if not self.CORS_ORIGINS:
                raise ValueError("CORS_ORIGINS must be set in production")
            if self.DEBUG:
                raise ValueError("DEBUG must be disabled in production")
