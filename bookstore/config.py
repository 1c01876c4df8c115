import os
from dataclasses import dataclass, field
from dotenv import load_dotenv

load_dotenv()


def _env_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


@dataclass
class Settings:
    # API Settings
    api_base_url: str = field(default_factory=lambda: os.getenv("BOOKSTORE_API_BASE_URL", "http://127.0.0.1:8000"))
    http_timeout: float = field(default_factory=lambda: _env_float("BOOKSTORE_HTTP_TIMEOUT", "10"))

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("BOOKSTORE_LOG_LEVEL", "WARNING").upper())

    # Output: plain | json | rich
    output_mode: str = field(default_factory=lambda: os.getenv("BOOKSTORE_OUTPUT", "plain").lower())

    # Application Settings
    app_name: str = field(default_factory=lambda: os.getenv("APP_NAME", "Bookstore Manager"))

    def __post_init__(self) -> None:
        self.api_base_url = self.api_base_url.rstrip("/")


def get_settings(**overrides) -> Settings:
    """Build settings from the environment; explicit overrides win over env values."""
    overrides = {k: v for k, v in overrides.items() if v is not None}
    return Settings(**overrides)
