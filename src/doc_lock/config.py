# -*- coding: utf-8 -*-
"""
Configuration du service Doc Lock via pydantic-settings.

Toutes les variables sont chargées depuis :
1. Variables d'environnement (priorité haute)
2. Fichier .env (priorité basse)

Usage :
    from .config import get_settings
    settings = get_settings()
    print(settings.lock_ttl_seconds)
"""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Configuration chargée depuis les variables d'env / .env."""

    # ─── Serveur MCP ───────────────────────────────────────────
    mcp_server_name: str = "Doc Lock"
    mcp_server_host: str = "0.0.0.0"
    mcp_server_port: int = 8003

    # ─── Auth ──────────────────────────────────────────────────
    # Clé opérateur : seule à pouvoir appeler les outils admin_*.
    # ⚠️ Changer impérativement en production !
    admin_bootstrap_key: str = "change_me_in_production"

    # ─── Stockage ──────────────────────────────────────────────
    # "s3" en production, "memory" pour le dev local (état perdu au redémarrage)
    storage_backend: str = "s3"

    s3_endpoint_url: str = ""
    s3_access_key_id: str = ""
    s3_secret_access_key: str = ""
    s3_bucket_name: str = "doc-locks"
    s3_region_name: str = "us-east-2"

    # ─── Bail (lease) ─────────────────────────────────────────
    lock_ttl_seconds: int = 300             # 5 min sans heartbeat = verrou abandonné
    heartbeat_interval_seconds: int = 60    # ~5x de marge sur le TTL
    beacon_timeout_seconds: float = 2.0     # Attente max du release de fermeture

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


@lru_cache()
def get_settings() -> Settings:
    """Singleton Settings (cached)."""
    return Settings()
