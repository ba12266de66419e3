"""
Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from __future__ import annotations

from functools import lru_cache
from urllib.parse import urlparse

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""
    
    # ==========================================================================
    # Environment
    # ==========================================================================
    
    environment: str = "development"
    debug: bool = True
    
    # ==========================================================================
    # Hosts
    # ==========================================================================
    
    dev_url: str = "http://localhost:3000"
    prod_url: str = ""
    
    # ==========================================================================
    # Sessions
    # ==========================================================================
    
    # Comma-separated. The first secret signs new cookies, all of them
    # are accepted when reading so old secrets can be rotated out.
    session_secrets: str = "dev-session-secret-change-in-production"
    session_cookie_name: str = "_session"
    session_max_age_seconds: int = 60 * 60 * 24 * 30
    
    # ==========================================================================
    # Farcaster / Neynar
    # ==========================================================================
    
    neynar_api_key: str = ""
    neynar_client_id: str = ""
    infura_project_id: str = ""
    
    # ==========================================================================
    # Optional Services
    # ==========================================================================
    
    sentry_dsn: str = ""
    
    # ==========================================================================
    # Helpers
    # ==========================================================================
    
    @property
    def is_production(self) -> bool:
        return self.environment == "production"
    
    @property
    def is_development(self) -> bool:
        return self.environment == "development"
    
    @property
    def host_url(self) -> str:
        return self.prod_url if self.is_production else self.dev_url
    
    @property
    def sign_in_domain(self) -> str:
        """Domain sign-in messages are bound to (host without port)."""
        return urlparse(self.host_url).netloc.split(":")[0]
    
    @property
    def session_secrets_list(self) -> list[str]:
        return [s.strip() for s in self.session_secrets.split(",") if s.strip()]
    
    @property
    def session_cookie_secure(self) -> bool:
        return self.is_production
    
    def shared_env(self) -> dict[str, str]:
        """Public subset of settings that is safe to hand to the browser."""
        return {
            "infura_project_id": self.infura_project_id,
            "neynar_client_id": self.neynar_client_id,
            "node_env": self.environment,
            "host_url": self.host_url,
        }
    
    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
