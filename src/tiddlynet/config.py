"""Application configuration."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client and reference server settings loaded from environment variables."""

    host: str | None = None
    bag: str | None = None
    recipe: str | None = None
    timeout: float | None = None

    debug: bool = False
    app_title: str = "TiddlyNet"
    modifier: str = "GUEST"
    server_host: str = "127.0.0.1"
    server_port: int = 8080

    model_config = SettingsConfigDict(
        env_prefix="TIDDLYNET_",
        env_file=".env",
        env_file_encoding="utf-8",
    )


settings = Settings()
