# -*- coding: utf-8 -*-
"""
Package tools : Enregistrement des outils MCP par catégorie.

Chaque module (system, locks, admin) expose une fonction `register(mcp)`
qui déclare ses outils via @mcp.tool().

Usage dans server.py :
    from .tools import register_all_tools
    register_all_tools(mcp)
"""

from mcp.server.fastmcp import FastMCP


def register_all_tools(mcp: FastMCP) -> int:
    """
    Enregistre tous les outils MCP depuis les modules de catégorie.

    Returns:
        Nombre total d'outils enregistrés
    """
    from .system import register as register_system
    from .locks import register as register_locks
    from .admin import register as register_admin

    count = 0
    count += register_system(mcp)
    count += register_locks(mcp)
    count += register_admin(mcp)

    return count
