# -*- coding: utf-8 -*-
"""
Serveur MCP Doc Lock : Point d'entrée principal.

Ce fichier :
1. Crée l'instance FastMCP
2. Enregistre les outils MCP via tools/ (system, locks, admin)
3. Assemble la chaîne de middlewares ASGI
4. Démarre le serveur Uvicorn

Usage :
    python -m doc_lock.server
    doc-lock-server
"""

import sys
import logging
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from .config import get_settings

# ─────────────────────────────────────────────────────────────
# Configuration du logging (stderr uniquement, jamais stdout)
# Format : timestamp level [module] message
# ─────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stderr,
)
# Réduire le bruit des librairies tierces
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("boto3").setLevel(logging.WARNING)
logging.getLogger("botocore").setLevel(logging.WARNING)
logging.getLogger("urllib3").setLevel(logging.WARNING)

logger = logging.getLogger("doc_lock")

# =============================================================================
# Instance FastMCP
# =============================================================================

settings = get_settings()

mcp = FastMCP(
    name=settings.mcp_server_name,
    host=settings.mcp_server_host,
    port=settings.mcp_server_port,
)

from .tools import register_all_tools

tools_count = register_all_tools(mcp)


# =============================================================================
# Assemblage ASGI : Chaîne de middlewares
# =============================================================================

def create_app():
    """
    Crée l'application ASGI complète avec les middlewares.

    Pile d'exécution (premier exécuté → dernier) :
        AuthMiddleware → LoggingMiddleware → mcp.sse_app()
    """
    from .auth.middleware import AuthMiddleware, LoggingMiddleware

    app = mcp.sse_app()

    # Dernier ajouté = premier exécuté
    app = LoggingMiddleware(app)
    app = AuthMiddleware(app)

    return app


def _read_version() -> str:
    """Lit la version depuis le fichier VERSION à la racine du projet."""
    version_file = Path(__file__).parent.parent.parent / "VERSION"
    if version_file.exists():
        return version_file.read_text().strip()
    return "dev"


# =============================================================================
# Point d'entrée
# =============================================================================

def main():
    """Démarre le serveur MCP Doc Lock."""
    import uvicorn

    version = _read_version()
    tool_names = [t.name for t in mcp._tool_manager.list_tools()]

    host = settings.mcp_server_host
    port = settings.mcp_server_port
    lines = [
        f"  Doc Lock MCP Server v{version}",
        f"  🔧 {len(tool_names)} outils MCP : {', '.join(tool_names)}",
        f"  🔒 TTL bail {settings.lock_ttl_seconds}s, heartbeat {settings.heartbeat_interval_seconds}s",
        f"  💾 Stockage : {settings.storage_backend}",
        f"  📡 http://{host}:{port}/sse",
    ]
    width = max(len(line) for line in lines) + 4
    banner = "\n" + "═" * width + "\n" + "\n".join(lines) + "\n" + "═" * width + "\n"
    print(banner, file=sys.stderr)

    if settings.admin_bootstrap_key == "change_me_in_production":
        logger.warning("ADMIN_BOOTSTRAP_KEY par défaut : les outils admin_* sont exposés")

    app = create_app()

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="warning",  # Uvicorn silencieux (on log via middleware)
    )


if __name__ == "__main__":
    main()
