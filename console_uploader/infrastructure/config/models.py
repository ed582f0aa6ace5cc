"""
Configuration models and data structures.

This module defines the configuration models used by the uploader,
providing type safety and validation for configuration values.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional

from ...core.interfaces.upload import (
    ChunkSizeConfig, UploadSettings,
    DEFAULT_EXTRACT_POLL_INTERVAL, DEFAULT_EXTRACT_NOTIFY_THRESHOLD
)


@dataclass
class ServerConfig:
    """Console server connection configuration."""
    url: str = ""
    api_key: str = ""
    username: Optional[str] = None
    timeout: float = 90.0
    verify_ssl: bool = True

    def check(self) -> None:
        """
        Check that the server can be contacted with this configuration.

        Raises:
            ValueError: If the URL or the API key is missing
        """
        if not self.url or not self.url.strip():
            raise ValueError("Server URL cannot be empty")
        if not self.url.startswith(("http://", "https://")):
            raise ValueError(f"Server URL must start with http:// or https://, got {self.url}")
        if not self.api_key or not self.api_key.strip():
            raise ValueError("API key cannot be empty")


@dataclass
class UploadConfig:
    """Chunked upload configuration."""
    chunk_size: Optional[int] = None
    extract: bool = True
    extract_poll_interval: float = DEFAULT_EXTRACT_POLL_INTERVAL
    extract_notify_threshold: float = DEFAULT_EXTRACT_NOTIFY_THRESHOLD

    def to_settings(self) -> UploadSettings:
        """Build the immutable settings handed to the upload service."""
        return UploadSettings(
            chunk_size=ChunkSizeConfig.resolve(self.chunk_size),
            extract_poll_interval=self.extract_poll_interval,
            extract_notify_threshold=self.extract_notify_threshold
        )


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    log_directory: str = "logs"
    max_file_size: str = "10 MB"
    backup_count: int = 5
    console_enabled: bool = True
    file_enabled: bool = False


@dataclass
class ApplicationConfig:
    """Main application configuration."""

    name: str = "Console Uploader"
    version: str = "0.1.0"
    debug: bool = False

    server: ServerConfig = field(default_factory=ServerConfig)
    upload: UploadConfig = field(default_factory=UploadConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    config_file_path: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self._validate_timeouts()
        self._validate_upload()
        self._validate_logging()

    def _validate_timeouts(self) -> None:
        if self.server.timeout <= 0:
            raise ValueError(f"Server timeout must be positive, got {self.server.timeout}")

    def _validate_upload(self) -> None:
        chunk_size = self.upload.chunk_size
        if chunk_size is not None and chunk_size < 1:
            raise ValueError(f"Chunk size must be positive, got {chunk_size}")

        intervals = [
            ("Extraction poll interval", self.upload.extract_poll_interval),
            ("Extraction notify threshold", self.upload.extract_notify_threshold),
        ]
        for name, value in intervals:
            if value < 0:
                raise ValueError(f"{name} must not be negative, got {value}")

    def _validate_logging(self) -> None:
        levels = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}
        if self.logging.level.upper() not in levels:
            raise ValueError(f"Unknown log level: {self.logging.level}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ApplicationConfig':
        """Create configuration from dictionary."""
        return cls(
            name=data.get('name', 'Console Uploader'),
            version=data.get('version', '0.1.0'),
            debug=data.get('debug', False),
            server=ServerConfig(**data.get('server', {})),
            upload=UploadConfig(**data.get('upload', {})),
            logging=LoggingConfig(**data.get('logging', {})),
            config_file_path=data.get('config_file_path')
        )
