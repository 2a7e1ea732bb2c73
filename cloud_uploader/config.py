from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

DEFAULT_DB_URL = "sqlite:///./uploads.db"
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024


def _split_origins(raw: str) -> tuple[str, ...]:
    return tuple(origin.strip() for origin in raw.split(",") if origin.strip())


@dataclass(frozen=True)
class Settings:
    """Process configuration, built once at entry and handed to each component."""

    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""
    cloudinary_folder: str = "mern-uploads"
    db_url: str = DEFAULT_DB_URL
    host: str = "0.0.0.0"
    port: int = 5000
    cors_origins: tuple[str, ...] = field(default=("http://localhost:3000",))
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            cloudinary_cloud_name=os.getenv("CLOUDINARY_CLOUD_NAME", ""),
            cloudinary_api_key=os.getenv("CLOUDINARY_API_KEY", ""),
            cloudinary_api_secret=os.getenv("CLOUDINARY_API_SECRET", ""),
            cloudinary_folder=os.getenv("CLOUDINARY_FOLDER", "mern-uploads"),
            db_url=os.getenv("DB_URL", DEFAULT_DB_URL),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "5000")),
            cors_origins=_split_origins(os.getenv("CORS_ORIGINS", "http://localhost:3000")),
            max_file_size=int(os.getenv("MAX_FILE_SIZE_BYTES", str(DEFAULT_MAX_FILE_SIZE))),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    @property
    def db_connect_args(self) -> dict:
        return {"check_same_thread": False} if self.db_url.startswith("sqlite") else {}

    @property
    def missing_storage_credentials(self) -> list[str]:
        values = {
            "CLOUDINARY_CLOUD_NAME": self.cloudinary_cloud_name,
            "CLOUDINARY_API_KEY": self.cloudinary_api_key,
            "CLOUDINARY_API_SECRET": self.cloudinary_api_secret,
        }
        return [name for name, value in values.items() if not value]

    @property
    def storage_configured(self) -> bool:
        return not self.missing_storage_credentials

    @property
    def max_file_size_mb(self) -> float:
        return self.max_file_size / (1024 * 1024)
