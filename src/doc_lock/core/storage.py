# -*- coding: utf-8 -*-
"""
Service S3 : Couche d'abstraction stockage clé-valeur pour Doc Lock.

Le bucket S3 est traité comme un magasin clé-valeur éventuellement
cohérent : un listage peut ne pas refléter une écriture toute récente,
et deux séquences get-puis-put indépendantes ne sont pas atomiques.
Aucun compare-and-swap n'est utilisé.

Toutes les opérations sont wrappées dans run_in_executor car boto3
est synchrone : on ne veut pas bloquer l'event loop asyncio.

Usage :
    from .storage import get_storage
    storage = get_storage()

    await storage.put_json("lock:contrat-42", {...})
    data = await storage.get_json("lock:contrat-42")
    keys, cursor = await storage.scan("lock:")
    await storage.delete("lock:contrat-42")
"""

import json
import time
import asyncio
import logging
from typing import Optional
from functools import partial

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from ..config import get_settings

logger = logging.getLogger("doc_lock.storage")


class StorageService:
    """
    Magasin clé-valeur adossé à un bucket S3.

    Attributes:
        bucket: Nom du bucket S3
        page_size: Nombre max de clés par page de listage
        _client: Client boto3
    """

    def __init__(self, client=None, bucket: str = "", page_size: int = 1000):
        settings = get_settings()

        self.bucket = bucket or settings.s3_bucket_name
        self.page_size = page_size

        if client is None:
            config = Config(
                region_name=settings.s3_region_name,
                s3={'addressing_style': 'path'},
                retries={'max_attempts': 3, 'mode': 'adaptive'},
            )
            client = boto3.client(
                's3',
                endpoint_url=settings.s3_endpoint_url or None,
                aws_access_key_id=settings.s3_access_key_id or None,
                aws_secret_access_key=settings.s3_secret_access_key or None,
                config=config,
            )
        self._client = client

        logger.info("StorageService initialisé : bucket=%s endpoint=%s",
                    self.bucket, settings.s3_endpoint_url or "aws")

    async def _run(self, func, *args, **kwargs):
        """Exécute une fonction synchrone dans un thread executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args, **kwargs))

    # ─────────────────────────────────────────────────────────────
    # Lecture / écriture
    # ─────────────────────────────────────────────────────────────

    async def get_json(self, key: str) -> Optional[dict]:
        """
        Lit un objet JSON.

        Returns:
            Dictionnaire désérialisé, ou None si l'objet n'existe pas

        Raises:
            ValueError: si le contenu n'est pas du JSON valide
        """
        try:
            response = await self._run(
                self._client.get_object,
                Bucket=self.bucket,
                Key=key,
            )
            body = await self._run(response['Body'].read)
        except ClientError as e:
            if e.response['Error']['Code'] in ('NoSuchKey', '404'):
                return None
            raise
        return json.loads(body.decode('utf-8'))

    async def put_json(self, key: str, data: dict) -> None:
        """Écrit (écrase) un objet JSON."""
        content = json.dumps(data, indent=2, ensure_ascii=False)
        await self._run(
            self._client.put_object,
            Bucket=self.bucket,
            Key=key,
            Body=content.encode('utf-8'),
            ContentType="application/json",
        )

    async def delete(self, key: str) -> int:
        """
        Supprime un objet.

        S3 ne distingue pas une clé absente d'une clé supprimée :
        toute suppression sans erreur compte pour 1.
        """
        await self._run(
            self._client.delete_object,
            Bucket=self.bucket,
            Key=key,
        )
        return 1

    async def exists(self, key: str) -> bool:
        """Vérifie si un objet existe (HEAD)."""
        try:
            await self._run(
                self._client.head_object,
                Bucket=self.bucket,
                Key=key,
            )
            return True
        except ClientError as e:
            if e.response['Error']['Code'] in ('404', 'NoSuchKey'):
                return False
            raise

    # ─────────────────────────────────────────────────────────────
    # Listage paginé
    # ─────────────────────────────────────────────────────────────

    async def scan(self, prefix: str, cursor: Optional[str] = None) -> tuple[list[str], Optional[str]]:
        """
        Lit une page de clés sous un préfixe.

        Args:
            prefix: Préfixe des clés (ex: "lock:")
            cursor: Curseur opaque de la page précédente (None = début)

        Returns:
            (clés de la page, curseur suivant ou None si terminé)
        """
        params = {
            'Bucket': self.bucket,
            'Prefix': prefix,
            'MaxKeys': self.page_size,
        }
        if cursor:
            params['ContinuationToken'] = cursor

        response = await self._run(self._client.list_objects_v2, **params)

        keys = [obj['Key'] for obj in response.get('Contents', [])]
        if not response.get('IsTruncated', False):
            return keys, None
        return keys, response.get('NextContinuationToken')

    async def list_keys(self, prefix: str) -> list[str]:
        """Toutes les clés sous un préfixe (boucle sur scan jusqu'au bout)."""
        return await collect_keys(self, prefix)

    # ─────────────────────────────────────────────────────────────
    # Test de connexion
    # ─────────────────────────────────────────────────────────────

    async def test_connection(self) -> dict:
        """
        Teste l'accès au bucket (HEAD bucket).

        Returns:
            {"status": "ok", "bucket": "...", "latency_ms": ...} ou erreur
        """
        t0 = time.monotonic()
        try:
            await self._run(self._client.head_bucket, Bucket=self.bucket)
            latency = round((time.monotonic() - t0) * 1000, 1)
            return {"status": "ok", "backend": "s3", "bucket": self.bucket, "latency_ms": latency}
        except ClientError as e:
            latency = round((time.monotonic() - t0) * 1000, 1)
            return {
                "status": "error",
                "backend": "s3",
                "bucket": self.bucket,
                "message": str(e),
                "latency_ms": latency,
            }


async def collect_keys(storage, prefix: str) -> list[str]:
    """Parcourt toutes les pages de storage.scan() et concatène les clés."""
    keys: list[str] = []
    cursor = None
    while True:
        page, cursor = await storage.scan(prefix, cursor)
        keys.extend(page)
        if cursor is None:
            return keys


# =============================================================================
# Singleton
# =============================================================================

_storage = None


def get_storage():
    """
    Retourne le singleton de stockage selon settings.storage_backend.

    "memory" → MemoryStorage (dev/tests), sinon StorageService (S3).
    """
    global _storage
    if _storage is None:
        backend = get_settings().storage_backend.lower()
        if backend == "memory":
            from .memory import MemoryStorage
            _storage = MemoryStorage()
            logger.warning("Stockage en mémoire : les verrous seront perdus au redémarrage")
        else:
            _storage = StorageService()
    return _storage
