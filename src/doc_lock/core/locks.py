# -*- coding: utf-8 -*-
"""
Service Locks : Protocole de bail (lease) par document.

Un seul collaborateur peut éditer un document à la fois. Le verrou est un
bail : il reste valide tant que son détenteur envoie un heartbeat dans la
fenêtre TTL (5 min par défaut). Un verrou dont le dernier heartbeat est
trop ancien est logiquement absent, même s'il existe encore dans le
stockage ; il est supprimé (« récolté ») par le premier inspect ou
acquire qui le voit.

Le service est sans état : chaque opération est un read-modify-write
autonome sur le stockage partagé (au plus une lecture + une écriture).

Course connue (acceptée) :
    Deux acquire qui lisent tous deux « absent » avant que l'un n'écrive
    réussissent tous les deux. Le perdant le découvre à son prochain
    renew (forbidden). Le stockage n'offre pas de compare-and-swap.

Architecture :
    tools/locks.py → LockService (ce fichier) → LockStore → Storage

Statuts retournés :
    ok         : opération réussie
    locked     : acquire refusé, bail vivant détenu par une autre session
    not_found  : renew sans verrou (bail perdu / récolté)
    forbidden  : renew/release par une session non propriétaire
    invalid    : paramètre requis manquant
"""

import logging
from datetime import datetime, timezone, timedelta
from typing import Callable, Optional

from .lock_store import LockStore
from .models import Lock, format_timestamp
from ..config import get_settings

logger = logging.getLogger("doc_lock.locks")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _invalid(message: str) -> dict:
    return {"status": "invalid", "ok": False, "error": message}


class LockService:
    """
    Gestion des baux d'édition : inspect, acquire, renew, release.

    Args:
        store: Adaptateur de stockage des verrous
        ttl: Durée de vie d'un bail sans heartbeat
        clock: Horloge UTC injectable (tests)
    """

    def __init__(
        self,
        store: Optional[LockStore] = None,
        ttl: Optional[timedelta] = None,
        clock: Callable[[], datetime] = _now,
    ):
        self.store = store or LockStore()
        self.ttl = ttl or timedelta(seconds=get_settings().lock_ttl_seconds)
        self.clock = clock

    # ─────────────────────────────────────────────────────────
    # Inspect (lecture seule, mais récolte les baux expirés)
    # ─────────────────────────────────────────────────────────

    async def inspect(self, document_id: str) -> dict:
        """
        État du verrou d'un document.

        Returns:
            {"locked": False}
            {"locked": False, "wasExpired": True}  (verrou expiré supprimé)
            {"locked": True, "userName", "timestamp", "lastHeartbeat"}
        """
        if not document_id:
            return _invalid("documentId is required")

        lock = await self.store.get(document_id)
        if lock is None:
            return {"status": "ok", "locked": False}

        if not lock.is_live(self.clock(), self.ttl):
            await self.store.delete(document_id)
            logger.info("Verrou expiré récolté : %s (détenteur %s)", document_id, lock.user_name)
            return {"status": "ok", "locked": False, "wasExpired": True}

        return {
            "status": "ok",
            "locked": True,
            "userName": lock.user_name,
            "timestamp": lock.timestamp,
            "lastHeartbeat": lock.last_heartbeat,
        }

    # ─────────────────────────────────────────────────────────
    # Acquire
    # ─────────────────────────────────────────────────────────

    async def acquire(self, document_id: str, user_name: str, session_id: str) -> dict:
        """
        Tente de prendre le bail d'un document.

        Absent ou expiré → nouveau bail (acquiredAt = lastHeartbeat = now).
        Vivant → refus « locked » avec l'identité du détenteur. Le refus
        vaut aussi pour la session détentrice elle-même : acquire ne
        rafraîchit jamais un bail, c'est le rôle de renew.

        Returns:
            {"status": "ok", "ok": True, "lock": {...}} ou
            {"status": "locked", "locked": True, "userName", "timestamp"}
        """
        if not document_id:
            return _invalid("documentId is required")
        if not user_name or not session_id:
            return _invalid("userName and sessionId are required")

        now = self.clock()
        existing = await self.store.get(document_id)

        if existing is not None:
            if existing.is_live(now, self.ttl):
                return {
                    "status": "locked",
                    "ok": False,
                    "locked": True,
                    "userName": existing.user_name,
                    "timestamp": existing.timestamp,
                    "message": "Document is currently locked by another user",
                }
            logger.info("Verrou expiré pour %s (détenteur %s), réacquisition par %s",
                        document_id, existing.user_name, user_name)

        stamp = format_timestamp(now)
        lock = Lock(
            user_name=user_name,
            session_id=session_id,
            timestamp=stamp,
            last_heartbeat=stamp,
        )
        await self.store.set(document_id, lock)
        logger.info("Verrou acquis : %s par %s", document_id, user_name)

        return {
            "status": "ok",
            "ok": True,
            "message": "Lock acquired successfully",
            "lock": lock.to_wire(),
        }

    # ─────────────────────────────────────────────────────────
    # Renew (heartbeat)
    # ─────────────────────────────────────────────────────────

    async def renew(self, document_id: str, session_id: str) -> dict:
        """
        Prolonge le bail : lastHeartbeat = now. Propriétaire uniquement.

        Un bail expiré mais pas encore récolté est prolongé s'il appartient
        toujours à la session : personne d'autre ne l'a repris.

        Returns:
            {"status": "ok", "ok": True, "lock": {...}},
            {"status": "not_found"} si aucun verrou,
            {"status": "forbidden"} si une autre session le détient
        """
        if not document_id:
            return _invalid("documentId is required")
        if not session_id:
            return _invalid("sessionId is required")

        existing = await self.store.get(document_id)
        if existing is None:
            return {"status": "not_found", "ok": False, "error": "No lock found to renew"}

        if existing.session_id != session_id:
            return {
                "status": "forbidden",
                "ok": False,
                "error": "Cannot renew lock owned by another session",
            }

        # lastHeartbeat strictement croissant, même à la milliseconde près
        beat = max(self.clock(), existing.heartbeat_at() + timedelta(milliseconds=1))
        updated = existing.model_copy(update={"last_heartbeat": format_timestamp(beat)})
        await self.store.set(document_id, updated)
        logger.debug("Heartbeat : %s (%s)", document_id, updated.user_name)

        return {
            "status": "ok",
            "ok": True,
            "message": "Lock renewed",
            "lock": updated.to_wire(),
        }

    # ─────────────────────────────────────────────────────────
    # Release
    # ─────────────────────────────────────────────────────────

    async def release(self, document_id: str, session_id: str) -> dict:
        """
        Libère le bail. Idempotent : succès si aucun verrou n'existe.

        Returns:
            {"status": "ok", "ok": True} ou {"status": "forbidden"}
        """
        if not document_id:
            return _invalid("documentId is required")
        if not session_id:
            return _invalid("sessionId is required")

        existing = await self.store.get(document_id)
        if existing is None:
            return {"status": "ok", "ok": True, "message": "No lock to release"}

        if existing.session_id != session_id:
            return {
                "status": "forbidden",
                "ok": False,
                "error": "Cannot release lock owned by another session",
            }

        await self.store.delete(document_id)
        logger.info("Verrou libéré : %s par %s", document_id, existing.user_name)

        return {"status": "ok", "ok": True, "message": "Lock released successfully"}


# ─────────────────────────────────────────────────────────────
# Singleton
# ─────────────────────────────────────────────────────────────

_lock_service: LockService | None = None


def get_lock_service() -> LockService:
    """Retourne le singleton LockService."""
    global _lock_service
    if _lock_service is None:
        _lock_service = LockService()
    return _lock_service
