# -*- coding: utf-8 -*-
"""
Heartbeat et session d'édition côté client.

HeartbeatScheduler :
    Tâche asyncio active uniquement pendant qu'un bail est détenu.
    Toutes les `interval` secondes, appelle renew(). Au premier échec
    (refus, bail perdu, erreur réseau : tous traités pareil), la tâche
    s'arrête et signale la perte du bail. Aucun re-acquire automatique.

EditingSession :
    État vu par l'interface d'édition (verrou courant, détention, erreur).
    Les échecs d'appel ne lèvent jamais d'exception vers l'appelant :
    le verrouillage protège l'accès concurrent, pas l'intégrité du document.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from .lock_client import LockClient
from .session import SessionIdentity

logger = logging.getLogger("doc_lock.heartbeat")

DEFAULT_HEARTBEAT_INTERVAL = 60.0


class HeartbeatScheduler:
    """
    Minuterie de renouvellement d'un bail.

    Args:
        renew: Coroutine de renouvellement, retourne le dict de réponse
        interval: Période en secondes
        on_lost: Appelé une seule fois avec la réponse (ou l'erreur) fautive
    """

    def __init__(
        self,
        renew: Callable[[], Awaitable[dict]],
        interval: float = DEFAULT_HEARTBEAT_INTERVAL,
        on_lost: Optional[Callable[[dict], None]] = None,
    ):
        self._renew = renew
        self.interval = interval
        self._on_lost = on_lost
        self._task: Optional[asyncio.Task] = None
        self.beats = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Démarre la minuterie (sans effet si déjà active)."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self) -> None:
        """Arrête la minuterie. Idempotent."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                result = await self._renew()
            except Exception as e:
                logger.warning("Heartbeat en échec : %s", e)
                result = {"status": "error", "ok": False, "message": str(e)}

            if not result.get("ok"):
                logger.warning("⚠️ Heartbeat refusé (%s) : bail perdu", result.get("status"))
                if self._on_lost:
                    self._on_lost(result)
                return

            self.beats += 1
            logger.debug("💓 Heartbeat #%d envoyé", self.beats)


class EditingSession:
    """
    Session d'édition d'un document : acquire → heartbeat → release.

    Attributes:
        lock_info: Dernier état connu du verrou ({"locked": bool, ...})
        has_lock: Cette session détient le bail
        lease_lost: Le bail a été perdu en cours d'édition (recharger)
        error: Message à afficher à l'utilisateur, ou None
    """

    def __init__(
        self,
        client: LockClient,
        document_id: str,
        identity: SessionIdentity,
        heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL,
        on_lease_lost: Optional[Callable[[dict], None]] = None,
    ):
        self.client = client
        self.document_id = document_id
        self.identity = identity
        self.lock_info: dict = {"locked": False}
        self.has_lock = False
        self.lease_lost = False
        self.error: Optional[str] = None
        self._on_lease_lost = on_lease_lost
        self._lost_event = asyncio.Event()
        self._heartbeat = HeartbeatScheduler(
            self._renew, interval=heartbeat_interval, on_lost=self._handle_lost,
        )

    @property
    def can_write(self) -> bool:
        """Écriture autorisée : bail détenu et non perdu."""
        return self.has_lock and not self.lease_lost

    @property
    def heartbeat(self) -> HeartbeatScheduler:
        return self._heartbeat

    async def check(self) -> dict:
        """Rafraîchit lock_info depuis le serveur."""
        try:
            data = await self.client.check_lock(self.document_id)
        except Exception as e:
            logger.error("Erreur vérification verrou %s : %s", self.document_id, e)
            self.error = "Erreur lors de la vérification de l'état du document"
            return self.lock_info

        if data.get("status") in ("error", "invalid"):
            self.error = data.get("message") or data.get("error") or "Erreur inconnue"
            return self.lock_info

        self.lock_info = data
        if data.get("locked") and data.get("userName"):
            self.error = f"📌 Document verrouillé par : {data['userName']}"
        else:
            self.error = None
        return self.lock_info

    async def acquire(self) -> bool:
        """
        Tente de prendre le bail ; démarre le heartbeat en cas de succès.

        Returns:
            True si la session détient maintenant le bail
        """
        if self.can_write:
            return True

        try:
            data = await self.client.acquire_lock(self.document_id, self.identity)
        except Exception as e:
            logger.error("Erreur acquisition verrou %s : %s", self.document_id, e)
            self.error = "Erreur lors de la tentative de verrouillage du document"
            return False

        if data.get("status") == "locked":
            self.lock_info = {
                "locked": True,
                "userName": data.get("userName"),
                "timestamp": data.get("timestamp"),
            }
            self._heartbeat.stop()
            self.has_lock = False
            self.error = f"📌 Édition impossible : {data.get('userName')} travaille sur ce document"
            return False

        if data.get("ok"):
            self.has_lock = True
            self.lease_lost = False
            self._lost_event.clear()
            self.lock_info = {"locked": True, **data.get("lock", {})}
            self.error = None
            self._heartbeat.start()
            logger.info("✅ Verrou acquis : %s", self.document_id)
            return True

        self.error = data.get("message") or data.get("error") or "Erreur lors du verrouillage"
        return False

    async def release(self) -> bool:
        """Libère le bail (attend la réponse). Sans effet si non détenu."""
        self._heartbeat.stop()
        if not self.has_lock:
            return True

        try:
            data = await self.client.release_lock(self.document_id, self.identity)
        except Exception as e:
            logger.error("Erreur libération verrou %s : %s", self.document_id, e)
            return False

        if data.get("ok"):
            self.has_lock = False
            self.lock_info = {"locked": False}
            self.error = None
            logger.info("✅ Verrou libéré : %s", self.document_id)
            return True
        if data.get("status") == "forbidden":
            self._handle_lost(data)
        return False

    def close(self) -> None:
        """
        Fermeture (onglet / processus) : arrête le heartbeat et envoie un
        release beacon sans attendre la réponse.
        """
        self._heartbeat.stop()
        if self.has_lock:
            self.client.release_beacon(self.document_id, self.identity)
            self.has_lock = False

    async def wait_lost(self) -> None:
        """Attend la perte du bail."""
        await self._lost_event.wait()

    # ─────────────────────────────────────────────────────────
    # Helpers internes
    # ─────────────────────────────────────────────────────────

    async def _renew(self) -> dict:
        data = await self.client.renew_lock(self.document_id, self.identity)
        if data.get("ok"):
            self.lock_info = {"locked": True, **data.get("lock", {})}
        return data

    def _handle_lost(self, result: dict) -> None:
        self.has_lock = False
        self.lease_lost = True
        self.error = (
            "Le verrou du document a été perdu. Un autre utilisateur a pu le "
            "prendre : rechargez avant de continuer."
        )
        self._lost_event.set()
        if self._on_lease_lost:
            self._on_lease_lost(result)
