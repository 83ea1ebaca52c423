"""Configuration package for the practice session services."""
from .routes import AppConfig, LlmRoute, default_route, load_config, load_route
from .settings import Settings, settings

__all__ = [
    "AppConfig",
    "LlmRoute",
    "default_route",
    "load_config",
    "load_route",
    "Settings",
    "settings",
]
