"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """svcmap configuration loaded from environment variables."""

    # Application
    app_name: str = "svcmap"
    app_version: str = "0.1.0"
    environment: str = "development"  # development, staging, production

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Topology labels
    unknown_label: str = "UNKNOWN"
    user_code: str = "User"

    # Reserved application ids
    none_application_id: int = 1
    invalid_application_id: int = 0

    # Alarm queries
    alarm_probe_page_size: int = 1
    alarm_count_page_size: int = 1000

    # Nodes discovered only through call metrics
    synthetic_node_sla: int = 100
    synthetic_node_apdex: int = 100

    model_config = {
        "env_prefix": "SVCMAP_",
        "env_file": ".env",
        "extra": "ignore",
    }


settings = Settings()
