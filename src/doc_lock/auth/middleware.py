# -*- coding: utf-8 -*-
"""
Middlewares ASGI : authentification opérateur et logging.

Pile d'exécution (ordre) :
    AuthMiddleware → LoggingMiddleware → mcp.sse_app()

L'AuthMiddleware :
    1. Extrait le Bearer token du header Authorization (ou query string)
    2. Le compare à la clé opérateur (ADMIN_BOOTSTRAP_KEY)
    3. Injecte le résultat dans le contextvar (None si absent / invalide)
"""

import time
import hmac
import logging
from typing import Optional
from .context import current_token_info
from ..config import get_settings

logger = logging.getLogger("doc_lock.auth")


class AuthMiddleware:
    """Middleware ASGI d'authentification par Bearer token."""

    # Routes qui ne nécessitent pas d'authentification
    PUBLIC_PATHS = {"/health", "/favicon.ico"}

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] not in ("http", "websocket"):
            return await self.app(scope, receive, send)

        if scope.get("path", "") in self.PUBLIC_PATHS:
            return await self.app(scope, receive, send)

        token = self._extract_token(scope)
        token_info = self._validate_token(token) if token else None

        # Injecter dans le contextvar (même si None → les outils vérifieront)
        tok = current_token_info.set(token_info)
        try:
            await self.app(scope, receive, send)
        finally:
            current_token_info.reset(tok)

    def _extract_token(self, scope) -> Optional[str]:
        """Extrait le token depuis le header Authorization ou query string."""
        headers = dict(scope.get("headers", []))
        auth = headers.get(b"authorization", b"").decode()
        if auth.startswith("Bearer "):
            return auth[7:]

        # Fallback: ?token=xxx (SSE depuis un navigateur)
        qs = scope.get("query_string", b"").decode()
        for param in qs.split("&"):
            if param.startswith("token="):
                return param[6:]
        return None

    def _validate_token(self, token: str) -> Optional[dict]:
        """Clé opérateur → admin. Tout autre token est ignoré."""
        key = get_settings().admin_bootstrap_key
        if key and hmac.compare_digest(token.encode(), key.encode()):
            return {"client_name": "admin", "permissions": ["admin"]}

        logger.warning("Token inconnu présenté (%s...)", token[:4])
        return None


class LoggingMiddleware:
    """Trace sur stderr : méthode, path, status, durée."""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            return await self.app(scope, receive, send)

        path = scope.get("path", "")
        method = scope.get("method", "?")
        t0 = time.monotonic()
        status_code = 0

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            elapsed = round((time.monotonic() - t0) * 1000, 1)
            if path not in ("/health",):
                logger.info("%s %s → %s (%.0fms)", method, path, status_code, elapsed)
