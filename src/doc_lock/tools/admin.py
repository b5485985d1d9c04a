# -*- coding: utf-8 -*-
"""
Outils MCP : Catégorie Admin (2 outils).

Récupération opérateur quand des baux restent bloqués :
    - admin_clear_locks 👑 : Supprime TOUS les verrous (dry-run par défaut)
    - admin_debug_store 👑 : Dump brut du stockage des verrous

Opérations dangereuses, à invoquer manuellement : aucune vérification de
propriété ni de vivacité. Requièrent la clé opérateur (ADMIN_BOOTSTRAP_KEY).
"""

import logging

from mcp.server.fastmcp import FastMCP

logger = logging.getLogger("doc_lock.admin")


def register(mcp: FastMCP) -> int:
    """
    Enregistre les 2 outils admin sur l'instance MCP.

    Returns:
        Nombre d'outils enregistrés (2)
    """

    @mcp.tool()
    async def admin_clear_locks(confirm: bool = False) -> dict:
        """
        Supprime tous les verrous de documents, quel que soit leur détenteur.

        - confirm=False (défaut) : DRY-RUN, liste les clés concernées
        - confirm=True : suppression effective, une clé à la fois

        Args:
            confirm: False = dry-run, True = exécution

        Returns:
            {ok: true, locksRemoved: N, removedKeys: [...]}
        """
        from ..auth.context import check_admin_permission, get_current_client_name
        from ..core.directory import get_lock_directory

        try:
            admin_err = check_admin_permission()
            if admin_err:
                return admin_err

            directory = get_lock_directory()
            if not confirm:
                keys = await directory.pending_keys()
                return {
                    "status": "ok",
                    "mode": "dry-run",
                    "locksFound": len(keys),
                    "keys": keys,
                    "message": (
                        f"Dry-run : {len(keys)} verrou(s) trouvé(s). "
                        f"confirm=True pour les supprimer."
                    ),
                }

            logger.warning("[ADMIN] Nettoyage des verrous demandé par %s", get_current_client_name())
            return await directory.clear_all()
        except Exception as e:
            return {"status": "error", "message": str(e)}

    @mcp.tool()
    async def admin_debug_store() -> dict:
        """
        Diagnostic : toutes les clés et les enregistrements de verrou bruts.

        Returns:
            {locks: [{key, data}], allKeys, summary: {totalKeys, lockKeysFound}}
        """
        from ..auth.context import check_admin_permission
        from ..core.directory import get_lock_directory

        try:
            admin_err = check_admin_permission()
            if admin_err:
                return admin_err

            return await get_lock_directory().debug_dump()
        except Exception as e:
            return {"status": "error", "message": str(e)}

    return 2  # Nombre d'outils enregistrés
