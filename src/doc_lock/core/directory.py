# -*- coding: utf-8 -*-
"""
Annuaire des verrous et récupération admin.

- list_locks : liste brute de tous les verrous stockés (pas de filtre de
  vivacité, les baux expirés non récoltés apparaissent)
- clear_all  : supprime TOUS les verrous, sans contrôle de propriété ni de
  vivacité. Échappatoire opérateur pour les baux bloqués.
- debug_dump : état brut du stockage (clés + enregistrements) pour le
  diagnostic

Architecture :
    tools/locks.py, tools/admin.py → LockDirectory (ce fichier) → LockStore
"""

import logging
from typing import Optional

from .lock_store import LockStore, LOCK_KEY_PREFIX, document_id_from_key

logger = logging.getLogger("doc_lock.directory")


class LockDirectory:
    """Vue agrégée (lecture) et nettoyage en masse des verrous."""

    def __init__(self, store: Optional[LockStore] = None):
        self.store = store or LockStore()

    async def list_locks(self) -> dict:
        """
        Liste tous les verrous présents dans le stockage.

        Les enregistrements sans userName sont considérés corrompus et
        écartés. Le sessionId n'est jamais exposé.

        Returns:
            {"status": "ok", "count": N, "locks": [{documentId, userName, timestamp, lastHeartbeat}]}
        """
        keys = await self.store.scan_keys(LOCK_KEY_PREFIX)
        locks = []
        for key in keys:
            data = await self.store.get_raw(key)
            if not isinstance(data, dict) or not data.get("userName"):
                continue
            locks.append({
                "documentId": document_id_from_key(key),
                "userName": data.get("userName"),
                "timestamp": data.get("timestamp"),
                "lastHeartbeat": data.get("lastHeartbeat"),
            })

        message = f"{len(locks)} lock(s) active(s)" if locks else "No active locks"
        return {"status": "ok", "count": len(locks), "locks": locks, "message": message}

    async def pending_keys(self) -> list[str]:
        """Clés que clear_all supprimerait (dry-run)."""
        return await self.store.scan_keys(LOCK_KEY_PREFIX)

    async def clear_all(self) -> dict:
        """
        Supprime tous les verrous, un par un.

        Un échec de suppression est journalisé et n'interrompt pas le lot.

        Returns:
            {"status": "ok", "ok": True, "locksRemoved": N, "removedKeys": [...]}
        """
        keys = await self.store.scan_keys(LOCK_KEY_PREFIX)
        logger.warning("[ADMIN] %d verrou(s) à supprimer : %s", len(keys), keys)

        removed = []
        for key in keys:
            try:
                await self.store.delete_key(key)
            except Exception as e:
                logger.error("[ADMIN] Échec suppression %s : %s", key, e)
                continue
            removed.append(key)
            logger.info("[ADMIN] Verrou supprimé : %s", key)

        logger.warning("[ADMIN] %d/%d verrou(s) supprimé(s)", len(removed), len(keys))
        return {
            "status": "ok",
            "ok": True,
            "message": f"{len(removed)} lock(s) removed",
            "locksRemoved": len(removed),
            "removedKeys": removed,
        }

    async def debug_dump(self) -> dict:
        """
        État brut du stockage des verrous, enregistrements compris.

        Returns:
            {"status": "ok", "locks": [{key, data}], "summary": {...}}
            Un enregistrement illisible porte data=None et un champ error.
        """
        lock_keys = await self.store.scan_keys(LOCK_KEY_PREFIX)
        all_keys = await self.store.scan_keys("")

        locks = []
        for key in lock_keys:
            try:
                data = await self.store.storage.get_json(key)
            except ValueError as e:
                locks.append({"key": key, "data": None, "error": f"JSON invalide : {e}"})
                continue
            entry = {"key": key, "data": data}
            if not isinstance(data, dict):
                entry["error"] = "Enregistrement non conforme (objet JSON attendu)"
            locks.append(entry)

        return {
            "status": "ok",
            "locks": locks,
            "allKeys": all_keys,
            "summary": {
                "totalKeys": len(all_keys),
                "lockKeysFound": len(lock_keys),
            },
        }


# ─────────────────────────────────────────────────────────────
# Singleton
# ─────────────────────────────────────────────────────────────

_directory: LockDirectory | None = None


def get_lock_directory() -> LockDirectory:
    """Retourne le singleton LockDirectory."""
    global _directory
    if _directory is None:
        _directory = LockDirectory()
    return _directory
