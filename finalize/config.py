from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Airtable: REQUIRED in production, checked per submission
    AIRTABLE_API_KEY: str = ""
    AIRTABLE_BASE_ID: str = ""
    AIRTABLE_TABLE_NAME: str = "Estimate Requests"
    AIRTABLE_API_URL: str = "https://api.airtable.com"
    AIRTABLE_TIMEOUT: float = 30.0

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

    @property
    def store_configured(self) -> bool:
        return bool(self.AIRTABLE_API_KEY and self.AIRTABLE_BASE_ID)


settings = Settings()


def get_settings() -> Settings:
    """FastAPI dependency. Tests override this to inject credentials."""
    return settings
