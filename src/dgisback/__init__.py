"""DGIS facility-inspection backend services."""

from .app import Services, build_services, create_config, open_services
from .config import AppConfig, load_config_from_env

__all__ = [
    "AppConfig",
    "Services",
    "build_services",
    "create_config",
    "load_config_from_env",
    "open_services",
]
