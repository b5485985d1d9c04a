# -*- coding: utf-8 -*-
"""
Client Doc Lock : transport MCP, identité de session, heartbeat.

Usage :
    from doc_lock.client import MCPClient, LockClient, SessionIdentity, EditingSession

    client = LockClient(MCPClient("http://localhost:8003"))
    session = EditingSession(client, "contrat-42.json", SessionIdentity.new("Ana"))
    if await session.acquire():
        ...  # édition, le heartbeat tourne en tâche de fond
    session.close()
"""

from .mcp_client import MCPClient
from .lock_client import LockClient
from .session import SessionIdentity, generate_session_id
from .heartbeat import HeartbeatScheduler, EditingSession

__all__ = [
    "MCPClient",
    "LockClient",
    "SessionIdentity",
    "generate_session_id",
    "HeartbeatScheduler",
    "EditingSession",
]
