# -*- coding: utf-8 -*-
"""
Outils MCP : Catégorie System (2 outils).

Ces outils ne nécessitent aucune authentification (publics).

Outils :
    - system_health : vérifie le stockage, compte les verrous
    - system_about  : version, outils disponibles, paramètres du bail
"""

import time
import platform
from pathlib import Path

from mcp.server.fastmcp import FastMCP


def register(mcp: FastMCP) -> int:
    """
    Enregistre les outils system sur l'instance MCP.

    Returns:
        Nombre d'outils enregistrés (2)
    """

    @mcp.tool()
    async def system_health() -> dict:
        """
        Vérifie l'état de santé du service Doc Lock.

        Teste la connectivité du stockage et compte les verrous présents.

        Returns:
            État global du système et détails par service
        """
        from ..config import get_settings
        from ..core.storage import get_storage
        from ..core.lock_store import LOCK_KEY_PREFIX

        settings = get_settings()
        results = {}

        try:
            results["storage"] = await get_storage().test_connection()
        except Exception as e:
            results["storage"] = {"status": "error", "message": str(e)}

        locks_count = -1
        if results["storage"].get("status") == "ok":
            try:
                locks_count = len(await get_storage().list_keys(LOCK_KEY_PREFIX))
            except Exception as e:
                results["storage"]["scan_error"] = str(e)

        all_ok = all(r.get("status") == "ok" for r in results.values())

        return {
            "status": "ok" if all_ok else "degraded",
            "service_name": settings.mcp_server_name,
            "version": _read_version(),
            "uptime_seconds": round(time.monotonic() - _start_time, 1),
            "services": results,
            "locks_count": locks_count,
        }

    @mcp.tool()
    async def system_about() -> dict:
        """
        Informations sur le service Doc Lock.

        Returns:
            Métadonnées du service et paramètres du bail
        """
        from ..config import get_settings
        settings = get_settings()

        tools = []
        for tool in mcp._tool_manager.list_tools():
            tools.append({
                "name": tool.name,
                "description": (tool.description or "")[:100],
            })

        return {
            "status": "ok",
            "name": settings.mcp_server_name,
            "version": _read_version(),
            "description": "Verrouillage par bail des documents en édition collaborative",
            "lock_ttl_seconds": settings.lock_ttl_seconds,
            "heartbeat_interval_seconds": settings.heartbeat_interval_seconds,
            "storage_backend": settings.storage_backend,
            "python_version": platform.python_version(),
            "platform": platform.platform(),
            "tools_count": len(tools),
            "tools": tools,
        }

    return 2  # Nombre d'outils enregistrés


# Temps de démarrage pour le calcul d'uptime
_start_time = time.monotonic()


def _read_version() -> str:
    """Lit la version depuis le fichier VERSION à la racine du projet."""
    version_file = Path(__file__).parent.parent.parent.parent / "VERSION"
    if version_file.exists():
        return version_file.read_text().strip()
    return "dev"
