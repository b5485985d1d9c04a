# -*- coding: utf-8 -*-
"""
Helpers d'authentification basés sur contextvars.

Le middleware ASGI injecte les infos du token dans les contextvars.
Les outils MCP appellent check_admin_permission() sans dépendre du
framework HTTP.

Les outils lock_* restent ouverts : l'identité de session protège contre
les éditions concurrentes accidentelles, pas contre un client malveillant.
Seuls les outils admin_* (nettoyage en masse, dump du stockage) exigent
la clé opérateur.
"""

from contextvars import ContextVar
from typing import Optional

# Dict {client_name, permissions} ou None si pas de token / token invalide.
current_token_info: ContextVar[Optional[dict]] = ContextVar(
    "current_token_info", default=None
)


def check_admin_permission() -> Optional[dict]:
    """
    Vérifie que le token courant a la permission admin.

    Returns:
        None si OK, dict {"status": "error", ...} si refusé
    """
    token_info = current_token_info.get()

    if token_info is None:
        return {"status": "error", "message": "Authentification requise"}

    if "admin" in token_info.get("permissions", []):
        return None

    return {
        "status": "error",
        "message": "Permission 'admin' requise pour cette opération",
    }


def get_current_client_name() -> str:
    """Nom du client authentifié, ou "anonymous"."""
    token_info = current_token_info.get()
    if token_info is None:
        return "anonymous"
    return token_info.get("client_name", "anonymous")
