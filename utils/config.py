"""
Configuration management.
"""

import os
from dataclasses import dataclass, field


@dataclass
class Config:
    """
    Application configuration.

    Loads from environment variables with sensible defaults.
    """

    # Server
    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    # Property service
    api_base_url: str = field(
        default_factory=lambda: os.getenv("API_BASE_URL", "http://localhost:3000/api")
    )
    api_token: str = field(default_factory=lambda: os.getenv("API_TOKEN", ""))
    request_timeout: int = field(default_factory=lambda: int(os.getenv("REQUEST_TIMEOUT", "30")))
    upload_timeout: int = field(default_factory=lambda: int(os.getenv("UPLOAD_TIMEOUT", "180")))
    video_upload_timeout: int = field(
        default_factory=lambda: int(os.getenv("VIDEO_UPLOAD_TIMEOUT", "900"))
    )
    upload_workers: int = field(default_factory=lambda: int(os.getenv("UPLOAD_WORKERS", "4")))

    # Data
    data_dir: str = field(default_factory=lambda: os.getenv("DATA_DIR", "./data"))

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls()

    def to_dict(self) -> dict:
        """Convert config to dictionary. The API token is masked."""
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "log_level": self.log_level,
            "api_base_url": self.api_base_url,
            "api_token": "***" if self.api_token else "",
            "request_timeout": self.request_timeout,
            "upload_timeout": self.upload_timeout,
            "video_upload_timeout": self.video_upload_timeout,
            "upload_workers": self.upload_workers,
            "data_dir": self.data_dir,
        }
