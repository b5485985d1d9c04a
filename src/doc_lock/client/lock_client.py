# -*- coding: utf-8 -*-
"""
Client des verrous : les quatre appels du protocole de bail.

    check_lock    → lock_check
    acquire_lock  → lock_acquire
    renew_lock    → lock_renew
    release_lock  → lock_release
    release_beacon: release « fire-and-forget » à la fermeture

Le transport est tout objet exposant `async call_tool(name, arguments) -> dict`
(MCPClient en production).
"""

import asyncio
import logging
from typing import Optional

from .session import SessionIdentity

logger = logging.getLogger("doc_lock.client")


class LockClient:
    """Appels du protocole de bail au-dessus d'un transport MCP."""

    def __init__(self, transport, beacon_timeout: float = 2.0):
        self.transport = transport
        self.beacon_timeout = beacon_timeout
        self._beacons: set[asyncio.Task] = set()

    async def check_lock(self, document_id: str) -> dict:
        return await self.transport.call_tool("lock_check", {"document_id": document_id})

    async def acquire_lock(self, document_id: str, identity: SessionIdentity) -> dict:
        return await self.transport.call_tool("lock_acquire", {
            "document_id": document_id,
            "user_name": identity.user_name,
            "session_id": identity.session_id,
        })

    async def renew_lock(self, document_id: str, identity: SessionIdentity) -> dict:
        return await self.transport.call_tool("lock_renew", {
            "document_id": document_id,
            "session_id": identity.session_id,
        })

    async def release_lock(self, document_id: str, identity: SessionIdentity) -> dict:
        return await self.transport.call_tool("lock_release", {
            "document_id": document_id,
            "session_id": identity.session_id,
        })

    async def list_locks(self) -> dict:
        return await self.transport.call_tool("lock_list", {})

    # ─────────────────────────────────────────────────────────
    # Release de fermeture (beacon)
    # ─────────────────────────────────────────────────────────

    def release_beacon(self, document_id: str, identity: SessionIdentity) -> asyncio.Task:
        """
        Envoie un release sans attendre ni lire la réponse.

        Best effort : si la requête se perd, le bail expirera par TTL.
        Doit être appelé depuis une boucle asyncio en cours.
        """
        task = asyncio.get_running_loop().create_task(self._send_beacon(document_id, identity))
        self._beacons.add(task)
        task.add_done_callback(self._beacons.discard)
        return task

    async def _send_beacon(self, document_id: str, identity: SessionIdentity) -> None:
        try:
            await asyncio.wait_for(
                self.release_lock(document_id, identity),
                timeout=self.beacon_timeout,
            )
        except Exception as e:
            logger.debug("Beacon release perdu pour %s : %s", document_id, e)

    async def drain_beacons(self, timeout: Optional[float] = None) -> None:
        """Laisse aux beacons en vol une chance de partir avant l'arrêt du processus."""
        if self._beacons:
            if timeout is None:
                timeout = self.beacon_timeout
            await asyncio.wait(set(self._beacons), timeout=timeout)
