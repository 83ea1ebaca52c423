"""Completion route configuration."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, Field

from .settings import Settings, settings as default_settings


class LlmRoute(BaseModel):
    """Chat-completion endpoint configuration."""

    name: str
    base_url: str
    endpoint: str
    model: str
    timeout_s: float = Field(default=30.0, ge=0.1)
    max_retries: int = Field(default=0, ge=0)
    retry_backoff_s: float = Field(default=1.0, ge=0.0)
    credential_prefix: str = "gsk_"
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1000, ge=1)
    validation_max_tokens: int = Field(default=10, ge=1)
    extra_headers: Dict[str, str] = Field(default_factory=dict)

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.endpoint}"


class AppConfig(BaseModel):
    """Route file root."""

    llm_routes: Dict[str, LlmRoute]
    default_route: str


def load_config(path: Path) -> AppConfig:
    """Load a route file from disk."""

    data = path.read_text(encoding="utf-8")
    return AppConfig.model_validate_json(data)


def default_route(cfg: Optional[Settings] = None) -> LlmRoute:
    """Build the completion route from environment settings."""

    cfg = cfg or default_settings
    return LlmRoute(
        name="default",
        base_url=cfg.LLM_BASE_URL,
        endpoint=cfg.LLM_ENDPOINT,
        model=cfg.LLM_MODEL,
        timeout_s=cfg.LLM_TIMEOUT_S,
        max_retries=cfg.LLM_MAX_RETRIES,
        retry_backoff_s=cfg.LLM_RETRY_BACKOFF_S,
        credential_prefix=cfg.CREDENTIAL_PREFIX,
    )


def load_route(path: Optional[Path] = None, name: Optional[str] = None) -> LlmRoute:
    """Resolve a named route from ``path``, falling back to the settings route."""

    if path is None:
        return default_route()
    cfg = load_config(path)
    route_id = name or cfg.default_route
    if route_id not in cfg.llm_routes:
        raise KeyError(f"Route '{route_id}' missing from {path}")
    return cfg.llm_routes[route_id]
