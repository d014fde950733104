"""
Configuration management for the Tiendanube feed service.
"""

from types import MappingProxyType
from typing import List, Mapping, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Tiendanube app credentials
    tn_client_id: str = Field(default="")
    tn_client_secret: str = Field(default="")
    tn_user_agent: str = Field(default="nube-feed (contact@example.com)")
    tn_api_base: str = Field(default="https://api.tiendanube.com/v1")
    tn_auth_base: str = Field(default="https://www.tiendanube.com")

    # Public URL of this service (used for webhook and feed links)
    app_url: str = Field(default="http://localhost:8000")

    # Storage: unset REDIS_URL keeps tokens and feeds in process memory
    redis_url: Optional[str] = Field(default=None)

    log_level: str = Field(default="INFO")
    debug: bool = Field(default=False)

    # Flat override tables, e.g. "6467092:vertexretail.com.ar,2307236:los-locos.com"
    domains_map: str = Field(default="")
    brands_map: str = Field(default="")
    default_brand: str = Field(default="")

    # Feed shape
    variant_mode: str = Field(default="first")
    primary_language: str = Field(default="es")
    feed_currency: str = Field(default="ARS")
    feed_cache_ttl: int = Field(default=300)
    products_page_size: int = Field(default=200)

    platform_domain: str = Field(default="tiendanube.com")
    platform_owned_domains: str = Field(default="tiendanube.com,mitiendanube.com")

    http_timeout: float = Field(default=30.0)

    def owned_domains(self) -> List[str]:
        """Platform-owned domains as a list."""
        return [d.strip().lower() for d in self.platform_owned_domains.split(",") if d.strip()]


_settings = Settings()


def parse_store_map(raw: str) -> Mapping[str, str]:
    """
    Parse a flat "store_id:value,store_id:value" string into a read-only mapping.

    Only the first ':' separates the id from the value, so values may contain
    colons. Blank pairs and pairs without a value are ignored; the first entry
    for a store wins.

    Args:
        raw: Flat override string from the environment.

    Returns:
        Immutable mapping of store id to override value.
    """
    result = {}
    for pair in (raw or "").split(","):
        pair = pair.strip()
        if not pair or ":" not in pair:
            continue
        store_id, value = pair.split(":", 1)
        store_id = store_id.strip()
        value = value.strip()
        if store_id and value and store_id not in result:
            result[store_id] = value
    return MappingProxyType(result)


def get_install_url(settings: Settings, state: str = "") -> str:
    """Build the Tiendanube app authorization URL."""
    base_url = f"{settings.tn_auth_base.rstrip('/')}/apps/{settings.tn_client_id}/authorize"
    return f"{base_url}?state={state}" if state else base_url


def get_feed_url(settings: Settings, store_id: str) -> str:
    """Public feed URL for a store."""
    return f"{settings.app_url.rstrip('/')}/feed.xml?store_id={store_id}"


def get_settings() -> Settings:
    """Get application settings."""
    return _settings
