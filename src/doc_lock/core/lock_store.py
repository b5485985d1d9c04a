# -*- coding: utf-8 -*-
"""
Adaptateur de stockage des verrous.

Chaque verrou est un objet JSON sous la clé lock:<documentId>.
Pas de compare-and-swap : les appelants tolèrent les courses
lecture-puis-écriture (voir LockService.acquire).

Architecture :
    LockService / LockDirectory → LockStore (ce fichier) → StorageService (S3) | MemoryStorage
"""

import logging
from typing import Optional

from pydantic import ValidationError

from .models import Lock
from .storage import get_storage

logger = logging.getLogger("doc_lock.store")

# Préfixe des clés de verrou
LOCK_KEY_PREFIX = "lock:"


def key_for(document_id: str) -> str:
    """lock:<documentId>"""
    return f"{LOCK_KEY_PREFIX}{document_id}"


def document_id_from_key(key: str) -> str:
    """Inverse de key_for()."""
    if key.startswith(LOCK_KEY_PREFIX):
        return key[len(LOCK_KEY_PREFIX):]
    return key


class LockStore:
    """Accès get/set/delete/scan aux verrous, indexés par documentId."""

    def __init__(self, storage=None):
        self._storage = storage

    @property
    def storage(self):
        return self._storage if self._storage is not None else get_storage()

    async def get(self, document_id: str) -> Optional[Lock]:
        """
        Charge le verrou d'un document.

        Un enregistrement illisible (JSON invalide, champs manquants) est
        considéré comme absent : un acquire pourra l'écraser.
        """
        key = key_for(document_id)
        try:
            data = await self.storage.get_json(key)
        except ValueError as e:
            logger.warning("Verrou illisible %s : %s", key, e)
            return None
        if data is None:
            return None
        try:
            return Lock.model_validate(data)
        except ValidationError as e:
            logger.warning("Verrou corrompu %s : %s", key, e.errors()[0].get("msg", e))
            return None

    async def get_raw(self, key: str) -> Optional[dict]:
        """Enregistrement brut, sans validation (annuaire). None si illisible."""
        try:
            return await self.storage.get_json(key)
        except ValueError as e:
            logger.warning("Verrou illisible %s : %s", key, e)
            return None

    async def set(self, document_id: str, lock: Lock) -> None:
        """Écrit (écrase) le verrou d'un document."""
        await self.storage.put_json(key_for(document_id), lock.to_wire())

    async def delete(self, document_id: str) -> int:
        """Supprime le verrou d'un document. Retourne le nombre supprimé (0 ou 1)."""
        return await self.delete_key(key_for(document_id))

    async def delete_key(self, key: str) -> int:
        return await self.storage.delete(key)

    async def scan_keys(self, prefix: str = LOCK_KEY_PREFIX) -> list[str]:
        """Toutes les clés de verrou (pagination par curseur jusqu'au bout)."""
        return await self.storage.list_keys(prefix)
