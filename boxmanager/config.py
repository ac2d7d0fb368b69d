"""Application configuration."""
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Environment variables take precedence over .env file.
    This makes it compatible with Docker (uses env vars) and
    local development (uses .env file).
    """

    APP_NAME: str = "Box Management"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Storage
    DATA_DIR: Path = Path("./data")
    DATABASE_FILE: str = "boxes.db"
    UPLOAD_DIR: Path = Path("./uploads")
    SEED_SAMPLE_DATA: bool = True

    # Upload limits (bytes)
    MAX_RECEIPT_SIZE: int = 10 * 1024 * 1024
    MAX_RESTORE_SIZE: int = 100 * 1024 * 1024
    MAX_RESTORE_EXTRACTED_SIZE: int = 1024 * 1024 * 1024

    # Backup archive format
    BACKUP_FORMAT_VERSION: str = "1.0"
    BACKUP_STRICT_VERSION: bool = False

    model_config = SettingsConfigDict(
        # Only load .env file if it exists (for local dev)
        # Docker will use environment variables directly
        env_file=".env" if Path(".env").exists() else None,
        env_file_encoding="utf-8",
        # Environment variables take precedence over .env file
        extra="ignore",
    )

    @property
    def database_path(self) -> Path:
        return self.DATA_DIR / self.DATABASE_FILE

    @property
    def receipts_dir(self) -> Path:
        return self.UPLOAD_DIR / "receipts"

    @property
    def temp_dir(self) -> Path:
        """Private staging area for backup and restore operations."""
        return self.DATA_DIR / "temp"

    def ensure_directories(self) -> None:
        """Create the data, upload and staging directories if missing."""
        for path in (self.DATA_DIR, self.receipts_dir, self.temp_dir):
            path.mkdir(parents=True, exist_ok=True)


settings = Settings()


def get_settings() -> Settings:
    """Dependency returning the process-wide settings."""
    return settings
