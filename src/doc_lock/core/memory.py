# -*- coding: utf-8 -*-
"""
Stockage en mémoire : même contrat que StorageService (S3).

Utilisé pour le développement local (STORAGE_BACKEND=memory) et les tests.
Le curseur de scan est un offset opaque : les appelants doivent boucler
comme avec S3.
"""

import copy
from typing import Optional


class MemoryStorage:
    """Magasin clé-valeur en mémoire (dict), API async."""

    def __init__(self, page_size: int = 100):
        self.data: dict[str, dict] = {}
        self.page_size = page_size

    async def get_json(self, key: str) -> Optional[dict]:
        value = self.data.get(key)
        return copy.deepcopy(value) if value is not None else None

    async def put_json(self, key: str, data: dict) -> None:
        self.data[key] = copy.deepcopy(data)

    async def delete(self, key: str) -> int:
        return 1 if self.data.pop(key, None) is not None else 0

    async def exists(self, key: str) -> bool:
        return key in self.data

    async def scan(self, prefix: str, cursor: Optional[str] = None) -> tuple[list[str], Optional[str]]:
        """Une page de clés triées sous le préfixe ; curseur None = terminé."""
        keys = sorted(k for k in self.data if k.startswith(prefix))
        start = int(cursor) if cursor else 0
        end = start + self.page_size
        next_cursor = str(end) if end < len(keys) else None
        return keys[start:end], next_cursor

    async def list_keys(self, prefix: str) -> list[str]:
        from .storage import collect_keys
        return await collect_keys(self, prefix)

    async def test_connection(self) -> dict:
        return {"status": "ok", "backend": "memory", "keys": len(self.data)}
