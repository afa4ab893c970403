from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="GROWTHLENS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    DATA_DIR: Path = Field(Path("data"), description="Directory holding the local database")
    DB_NAME: str = Field("growthlens.db", description="SQLite file name inside DATA_DIR")
    LOG_LEVEL: str = Field("INFO", description="Root logger level")
    STORAGE_KEY_PREFIX: str = Field(
        "@growthlens",
        description="Prefix shared by every key written to the key-value backend"
    )

    @property
    def db_url(self) -> str:
        return f"sqlite:///{self.DATA_DIR / self.DB_NAME}"

# Singleton instance
settings = Settings()
