# -*- coding: utf-8 -*-
"""
Configuration globale du CLI.

Variables d'environnement :
    MCP_URL   : URL du serveur MCP (défaut: http://localhost:8003)
    MCP_TOKEN : Token opérateur (ou ADMIN_BOOTSTRAP_KEY)

Priorité pour le token :
    1. Paramètre --token
    2. Variable MCP_TOKEN
    3. Variable ADMIN_BOOTSTRAP_KEY
    4. Lecture depuis ./.env (ADMIN_BOOTSTRAP_KEY=...)
"""

import os
from pathlib import Path

BASE_URL = os.environ.get("MCP_URL", "http://localhost:8003")


def _resolve_token() -> str:
    """Résout le token par ordre de priorité."""
    token = os.environ.get("MCP_TOKEN", "")
    if token:
        return token

    token = os.environ.get("ADMIN_BOOTSTRAP_KEY", "")
    if token:
        return token

    env_path = Path.cwd() / ".env"
    if env_path.exists():
        for line in env_path.read_text().splitlines():
            line = line.strip()
            if line.startswith("ADMIN_BOOTSTRAP_KEY="):
                return line.split("=", 1)[1].strip()

    return ""


TOKEN = _resolve_token()
