# -*- coding: utf-8 -*-
"""
Identité de session : jeton opaque généré une fois par session d'édition.

Le sessionId prouve la propriété d'un bail lors du renew et du release.
Il est passé explicitement à chaque appel (jamais lu depuis un état global).
Ce n'est pas une frontière de sécurité.
"""

import time
import string
import secrets

from pydantic import BaseModel, ConfigDict

_ALPHABET = string.digits + string.ascii_lowercase


def generate_session_id() -> str:
    """session_<epoch ms>_<7 caractères base36 aléatoires>"""
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(7))
    return f"session_{int(time.time() * 1000)}_{suffix}"


class SessionIdentity(BaseModel):
    """Identité immuable d'une session d'édition (un onglet / un processus)."""
    model_config = ConfigDict(frozen=True)

    session_id: str
    user_name: str

    @classmethod
    def new(cls, user_name: str) -> "SessionIdentity":
        return cls(session_id=generate_session_id(), user_name=user_name)
