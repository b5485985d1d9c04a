# -*- coding: utf-8 -*-
"""
Modèles Pydantic : Structures de données de Doc Lock.

Le seul objet persisté est le verrou (Lock), stocké en JSON sous la clé
lock:<documentId>. Les noms de champs sur le fil (userName, sessionId,
timestamp, lastHeartbeat) sont ceux attendus par l'éditeur côté navigateur.
"""

from datetime import datetime, timedelta, timezone
from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# Lock : Bail d'édition d'un document
# =============================================================================

class Lock(BaseModel):
    """
    Un bail d'édition exclusif sur un document.

    Créé par un acquire réussi, mis à jour (lastHeartbeat seulement) par
    chaque renew, supprimé par release, par un acquire sur bail expiré,
    ou par le nettoyage admin.
    """
    model_config = ConfigDict(populate_by_name=True)

    user_name: str = Field(alias="userName")            # Affichage uniquement, jamais pour l'autorisation
    session_id: str = Field(alias="sessionId")          # Jeton opaque du propriétaire
    timestamp: str                                      # ISO 8601, fixé à l'acquisition
    last_heartbeat: str = Field(alias="lastHeartbeat")  # ISO 8601, seul critère d'expiration

    @field_validator("timestamp", "last_heartbeat")
    @classmethod
    def _check_iso(cls, value: str) -> str:
        parse_timestamp(value)
        return value

    def to_wire(self) -> dict:
        """Sérialise avec les noms de champs du fil (camelCase)."""
        return self.model_dump(by_alias=True)

    def heartbeat_at(self) -> datetime:
        """lastHeartbeat en datetime UTC."""
        return parse_timestamp(self.last_heartbeat)

    def is_live(self, now: datetime, ttl: timedelta) -> bool:
        """Vrai si le bail est encore valide à l'instant now."""
        return is_live(self.heartbeat_at(), now, ttl)


# ─────────────────────────────────────────────────────────────
# Helpers temporels
# ─────────────────────────────────────────────────────────────

def is_live(last_heartbeat: datetime, now: datetime, ttl: timedelta) -> bool:
    """
    Vivacité d'un bail, calculée à la lecture (jamais stockée).

    Un bail est vivant ssi now - last_heartbeat < ttl.
    """
    return now - last_heartbeat < ttl


def format_timestamp(dt: datetime) -> str:
    """ISO 8601 en UTC, précision milliseconde, suffixe Z."""
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def parse_timestamp(value: str) -> datetime:
    """Parse un ISO 8601 (avec Z ou offset). Les dates naïves sont prises en UTC."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
