# -*- coding: utf-8 -*-
"""
Client HTTP/SSE pour communiquer avec le serveur MCP.

Ce client gère :
- La connexion SSE (Server-Sent Events) et la découverte de l'URL de session
- Le handshake MCP (initialize + notifications/initialized)
- L'envoi de tools/call en JSON-RPC via HTTP POST
"""

import json
import asyncio
from typing import Optional

import httpx
from httpx_sse import aconnect_sse


class MCPClient:
    """Client MCP générique via HTTP/SSE (un appel d'outil = une session SSE)."""

    def __init__(self, base_url: str, token: str = "", timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._request_id = 0

    @property
    def headers(self) -> dict:
        """Headers HTTP avec auth."""
        h = {"Content-Type": "application/json"}
        if self.token:
            h["Authorization"] = f"Bearer {self.token}"
        return h

    def _next_id(self) -> int:
        self._request_id += 1
        return self._request_id

    async def call_tool(self, tool_name: str, arguments: dict) -> dict:
        """
        Appelle un outil MCP avec handshake initialize complet.

        Le protocole MCP exige :
        1. Client → initialize (capabilities + clientInfo)
        2. Serveur → réponse initialize
        3. Client → notifications/initialized
        4. Client → tools/call

        Args:
            tool_name: Nom de l'outil (ex: "lock_acquire")
            arguments: Paramètres de l'outil

        Returns:
            Le résultat de l'outil (dict)

        Raises:
            ConnectionError: pas d'endpoint SSE ou handshake en échec
            TimeoutError: pas de réponse à tools/call dans le délai
        """
        async with httpx.AsyncClient(timeout=self.timeout, headers=self.headers) as client:
            session_url = None
            responses: asyncio.Queue = asyncio.Queue()

            async def _listen_sse():
                nonlocal session_url
                try:
                    async with aconnect_sse(
                        client, "GET", f"{self.base_url}/sse",
                        headers=self.headers,
                    ) as event_source:
                        async for sse in event_source.aiter_sse():
                            if sse.event == "endpoint":
                                endpoint = sse.data
                                if endpoint.startswith("http"):
                                    session_url = endpoint
                                else:
                                    session_url = f"{self.base_url}{endpoint}"
                                continue

                            if sse.event == "message":
                                try:
                                    data = json.loads(sse.data)
                                except json.JSONDecodeError:
                                    continue
                                if "result" in data or "error" in data:
                                    await responses.put(data)

                except Exception as e:
                    await responses.put({"error": {"message": str(e)}})

            sse_task = asyncio.create_task(_listen_sse())
            try:
                # Attendre l'endpoint (5 s max)
                for _ in range(50):
                    if session_url:
                        break
                    await asyncio.sleep(0.1)

                if not session_url:
                    raise ConnectionError(
                        f"Timeout: pas d'endpoint SSE depuis {self.base_url}/sse"
                    )

                # ── 1. Handshake : initialize ──
                await client.post(session_url, json={
                    "jsonrpc": "2.0",
                    "id": self._next_id(),
                    "method": "initialize",
                    "params": {
                        "protocolVersion": "2024-11-05",
                        "capabilities": {},
                        "clientInfo": {"name": "doc-lock-client", "version": "1.0.0"},
                    },
                }, headers=self.headers)

                try:
                    init_resp = await asyncio.wait_for(responses.get(), timeout=10)
                except asyncio.TimeoutError:
                    raise ConnectionError("Timeout handshake initialize")
                if "error" in init_resp:
                    raise ConnectionError(init_resp["error"].get("message", "initialize refusé"))

                # ── 2. Notification initialized ──
                await client.post(session_url, json={
                    "jsonrpc": "2.0",
                    "method": "notifications/initialized",
                }, headers=self.headers)

                # ── 3. Appel de l'outil ──
                await client.post(session_url, json={
                    "jsonrpc": "2.0",
                    "id": self._next_id(),
                    "method": "tools/call",
                    "params": {"name": tool_name, "arguments": arguments},
                }, headers=self.headers)

                try:
                    response = await asyncio.wait_for(responses.get(), timeout=self.timeout)
                except asyncio.TimeoutError:
                    raise TimeoutError(f"Timeout après {self.timeout}s pour '{tool_name}'")
            finally:
                sse_task.cancel()

        return _unwrap(response)


def _unwrap(response: dict) -> dict:
    """Extrait le dict résultat d'une réponse JSON-RPC tools/call."""
    if "error" in response:
        return {
            "status": "error",
            "message": response["error"].get("message", str(response["error"])),
        }

    result = response.get("result", {})

    # Le SDK MCP encapsule le résultat dans content[0].text
    if isinstance(result, dict) and "content" in result:
        content = result["content"]
        if isinstance(content, list) and len(content) > 0:
            text = content[0].get("text", "")
            try:
                return json.loads(text)
            except (json.JSONDecodeError, TypeError):
                return {"status": "error" if result.get("isError") else "ok", "raw": text}

    return result
