"""Investigation settings loaded from the environment."""

from functools import lru_cache

from pydantic_settings import BaseSettings

OAK_QUERY_LOGGER = "org.apache.jackrabbit.oak.query.QueryImpl"


class Settings(BaseSettings):
    """Settings for query investigation, read from ``QT_JCR_*`` variables."""

    # Number of nodes read as the "first page" when timing result consumption
    page_size: int = 20

    # Cap on log lines kept per interception key
    message_count_limit: int = 500

    # Logger whose records carry per-index cost estimates
    intercepted_logger: str = OAK_QUERY_LOGGER

    # JSON content file for the in-memory engine used by the CLI
    content_file: str = ""

    class Config:
        env_prefix = "QT_JCR_"
        env_file = ".env"

    @property
    def has_content_file(self) -> bool:
        """Check if a default content file is configured."""
        return bool(self.content_file)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
