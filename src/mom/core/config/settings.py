"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Minutes-of-Meeting engine configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Loopback by default: there is no auth layer in front of the tools.
    mom_host: str = "127.0.0.1"
    mom_port: int = 8001
    mom_log_level: str = "info"
    mom_allow_insecure_bind: bool = False
    # "streamable-http" or "stdio"
    mom_transport: str = "streamable-http"

    # REST backend
    mom_api_base_url: str = "http://127.0.0.1:5000/api"
    mom_api_token: str = ""
    mom_api_timeout_s: float = 15.0
    # Serve the bundled sample collections instead of calling the backend.
    use_mock_data: bool = False

    # Views and aggregation
    default_page_size: int = 10
    # 1 keeps membership fetches serial.
    aggregation_max_concurrency: int = 1

    # Storage (alert dismissals)
    db_path: str = "~/.mom/dismissals.db"


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
