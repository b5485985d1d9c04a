# -*- coding: utf-8 -*-
"""
Outils MCP : Catégorie Lock (5 outils).

Verrouillage des documents en édition par bail (lease) :
    - lock_check   : État du verrou (récolte un bail expiré)
    - lock_acquire : Prend le bail (refus « locked » si détenu)
    - lock_renew   : Heartbeat du détenteur (toutes les 60 s)
    - lock_release : Libère le bail (idempotent)
    - lock_list    : Liste brute de tous les verrous

Aucune authentification : le sessionId prouve la continuité d'une
session d'édition, il ne protège pas contre un client malveillant.
"""

from mcp.server.fastmcp import FastMCP


def register(mcp: FastMCP) -> int:
    """
    Enregistre les 5 outils lock sur l'instance MCP.

    Returns:
        Nombre d'outils enregistrés (5)
    """

    @mcp.tool()
    async def lock_check(document_id: str) -> dict:
        """
        Vérifie si un document est verrouillé.

        Un verrou dont le dernier heartbeat date de plus de 5 minutes est
        supprimé au passage et signalé par wasExpired=true.

        Args:
            document_id: Identifiant du document (nom de fichier)

        Returns:
            {locked: false} | {locked: false, wasExpired: true} |
            {locked: true, userName, timestamp, lastHeartbeat}
        """
        from ..core.locks import get_lock_service

        try:
            return await get_lock_service().inspect(document_id)
        except Exception as e:
            return {"status": "error", "message": str(e)}

    @mcp.tool()
    async def lock_acquire(document_id: str, user_name: str, session_id: str) -> dict:
        """
        Prend le verrou d'édition d'un document.

        Si un autre utilisateur détient un bail vivant, la réponse a le
        statut "locked" avec son userName : il faut attendre ou le contacter.

        Args:
            document_id: Identifiant du document
            user_name: Nom affiché du demandeur
            session_id: Identifiant de session (onglet) du demandeur

        Returns:
            {ok: true, lock} ou {status: "locked", locked: true, userName, timestamp}
        """
        from ..core.locks import get_lock_service

        try:
            return await get_lock_service().acquire(document_id, user_name, session_id)
        except Exception as e:
            return {"status": "error", "message": str(e)}

    @mcp.tool()
    async def lock_renew(document_id: str, session_id: str) -> dict:
        """
        Renouvelle le bail (heartbeat). Réservé à la session détentrice.

        Args:
            document_id: Identifiant du document
            session_id: Identifiant de session du détenteur

        Returns:
            {ok: true, lock} | {status: "not_found"} | {status: "forbidden"}
        """
        from ..core.locks import get_lock_service

        try:
            return await get_lock_service().renew(document_id, session_id)
        except Exception as e:
            return {"status": "error", "message": str(e)}

    @mcp.tool()
    async def lock_release(document_id: str, session_id: str) -> dict:
        """
        Libère le verrou. Succès aussi si aucun verrou n'existe.

        Args:
            document_id: Identifiant du document
            session_id: Identifiant de session du détenteur

        Returns:
            {ok: true} | {status: "forbidden"}
        """
        from ..core.locks import get_lock_service

        try:
            return await get_lock_service().release(document_id, session_id)
        except Exception as e:
            return {"status": "error", "message": str(e)}

    @mcp.tool()
    async def lock_list() -> dict:
        """
        Liste tous les verrous stockés, sans filtrer les baux expirés.

        Returns:
            {count, locks: [{documentId, userName, timestamp, lastHeartbeat}]}
        """
        from ..core.directory import get_lock_directory

        try:
            return await get_lock_directory().list_locks()
        except Exception as e:
            return {"status": "error", "message": str(e)}

    return 5  # Nombre d'outils enregistrés
