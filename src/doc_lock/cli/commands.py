# -*- coding: utf-8 -*-
"""
CLI Click : Commandes scriptables pour Doc Lock.

Chaque commande appelle un outil MCP via MCPClient puis affiche via display.py.

Usage :
    doc-lock health
    doc-lock lock check contrat-42.json
    doc-lock lock acquire contrat-42.json --user Ana --session session_1_abc
    doc-lock lock list
    doc-lock edit contrat-42.json --user Ana
    doc-lock admin clear --confirm
"""

import asyncio
import click
from . import BASE_URL, TOKEN
from ..client import MCPClient, LockClient, SessionIdentity, EditingSession
from ..config import get_settings
from .display import (
    console, show_error, show_success, show_warning, show_json,
    show_health_result, show_about_result,
    show_lock_state, show_lock_result, show_lock_conflict, show_lock_list,
    show_clear_result, show_debug_dump,
)


# ─────────────────────────────────────────────────────────────
# Helper pour exécuter les commandes async
# ─────────────────────────────────────────────────────────────

def _run_tool(ctx, tool_name, args, on_success, json_flag=False):
    """Helper commun : appelle un outil MCP et affiche le résultat."""
    async def _run():
        try:
            client = MCPClient(ctx.obj["url"], ctx.obj["token"])
            result = await client.call_tool(tool_name, args)
            if json_flag:
                show_json(result)
            elif result.get("status") == "ok":
                on_success(result)
            elif result.get("status") == "locked":
                show_lock_conflict(result)
            else:
                show_error(
                    result.get("message") or result.get("error")
                    or f"Erreur: {result.get('status', '?')}"
                )
        except Exception as e:
            show_error(f"Connexion impossible: {e}")
    asyncio.run(_run())


# ─────────────────────────────────────────────────────────────
# Groupe racine
# ─────────────────────────────────────────────────────────────

@click.group()
@click.option("--url", "-u", envvar=["MCP_URL"], default=BASE_URL, help="URL du serveur MCP")
@click.option("--token", "-t", envvar=["MCP_TOKEN"], default=TOKEN, help="Token opérateur")
@click.pass_context
def cli(ctx, url, token):
    """🔒 Doc Lock : CLI pour le serveur de verrous de documents."""
    ctx.ensure_object(dict)
    ctx.obj["url"] = url
    ctx.obj["token"] = token


# ─────────────────────────────────────────────────────────────
# System
# ─────────────────────────────────────────────────────────────

@cli.command("health")
@click.option("--json", "-j", "jflag", is_flag=True, help="JSON brut")
@click.pass_context
def health_cmd(ctx, jflag):
    """❤️  État de santé du service."""
    _run_tool(ctx, "system_health", {}, show_health_result, jflag)


@cli.command("about")
@click.option("--json", "-j", "jflag", is_flag=True, help="JSON brut")
@click.pass_context
def about_cmd(ctx, jflag):
    """ℹ️  Informations sur le service."""
    _run_tool(ctx, "system_about", {}, show_about_result, jflag)


# ─────────────────────────────────────────────────────────────
# Lock (sous-groupe)
# ─────────────────────────────────────────────────────────────

@cli.group("lock")
def lock_grp():
    """🔒 Verrous de documents."""
    pass


@lock_grp.command("check")
@click.argument("document_id")
@click.option("--json", "-j", "jflag", is_flag=True)
@click.pass_context
def lock_check_cmd(ctx, document_id, jflag):
    """État du verrou d'un document."""
    _run_tool(ctx, "lock_check", {"document_id": document_id}, show_lock_state, jflag)


@lock_grp.command("acquire")
@click.argument("document_id")
@click.option("--user", "-U", "user_name", required=True, help="Nom affiché")
@click.option("--session", "-s", "session_id", default="", help="Session (générée si vide)")
@click.option("--json", "-j", "jflag", is_flag=True)
@click.pass_context
def lock_acquire_cmd(ctx, document_id, user_name, session_id, jflag):
    """Prendre le verrou (affiche le sessionId à réutiliser)."""
    identity = (
        SessionIdentity(session_id=session_id, user_name=user_name)
        if session_id else SessionIdentity.new(user_name)
    )
    _run_tool(ctx, "lock_acquire", {
        "document_id": document_id,
        "user_name": identity.user_name,
        "session_id": identity.session_id,
    }, show_lock_result, jflag)


@lock_grp.command("renew")
@click.argument("document_id")
@click.option("--session", "-s", "session_id", required=True, help="Session détentrice")
@click.option("--json", "-j", "jflag", is_flag=True)
@click.pass_context
def lock_renew_cmd(ctx, document_id, session_id, jflag):
    """Envoyer un heartbeat."""
    _run_tool(ctx, "lock_renew", {
        "document_id": document_id, "session_id": session_id,
    }, show_lock_result, jflag)


@lock_grp.command("release")
@click.argument("document_id")
@click.option("--session", "-s", "session_id", required=True, help="Session détentrice")
@click.option("--json", "-j", "jflag", is_flag=True)
@click.pass_context
def lock_release_cmd(ctx, document_id, session_id, jflag):
    """Libérer le verrou."""
    _run_tool(ctx, "lock_release", {
        "document_id": document_id, "session_id": session_id,
    }, lambda r: show_success(r.get("message", "Verrou libéré")), jflag)


@lock_grp.command("list")
@click.option("--json", "-j", "jflag", is_flag=True)
@click.pass_context
def lock_list_cmd(ctx, jflag):
    """Lister tous les verrous stockés."""
    _run_tool(ctx, "lock_list", {}, show_lock_list, jflag)


# ─────────────────────────────────────────────────────────────
# Edit : session d'édition avec heartbeat
# ─────────────────────────────────────────────────────────────

@cli.command("edit")
@click.argument("document_id")
@click.option("--user", "-U", "user_name", required=True, help="Nom affiché")
@click.option("--interval", type=float, default=None, help="Période du heartbeat (s)")
@click.pass_context
def edit_cmd(ctx, document_id, user_name, interval):
    """✏️  Tenir le verrou d'un document jusqu'à Ctrl-C (ou perte du bail)."""
    settings = get_settings()

    async def _run():
        client = LockClient(
            MCPClient(ctx.obj["url"], ctx.obj["token"]),
            beacon_timeout=settings.beacon_timeout_seconds,
        )
        session = EditingSession(
            client, document_id, SessionIdentity.new(user_name),
            heartbeat_interval=interval or settings.heartbeat_interval_seconds,
        )
        if not await session.acquire():
            show_error(session.error or "Verrouillage impossible")
            return

        show_success(f"Verrou acquis sur {document_id} (session {session.identity.session_id})")
        console.print("[dim]Ctrl-C pour libérer et quitter[/dim]")
        try:
            await session.wait_lost()
            show_error(session.error or "Bail perdu")
        finally:
            session.close()
            await client.drain_beacons()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        show_warning("Interrompu : release envoyé")


# ─────────────────────────────────────────────────────────────
# Admin (sous-groupe)
# ─────────────────────────────────────────────────────────────

@cli.group("admin")
def admin_grp():
    """👑 Récupération opérateur (clé admin requise)."""
    pass


@admin_grp.command("clear")
@click.option("--confirm", is_flag=True, help="Supprimer réellement (sinon dry-run)")
@click.option("--json", "-j", "jflag", is_flag=True)
@click.pass_context
def admin_clear_cmd(ctx, confirm, jflag):
    """Supprimer TOUS les verrous."""
    _run_tool(ctx, "admin_clear_locks", {"confirm": confirm}, show_clear_result, jflag)


@admin_grp.command("debug")
@click.option("--json", "-j", "jflag", is_flag=True)
@click.pass_context
def admin_debug_cmd(ctx, jflag):
    """Dump brut du stockage des verrous."""
    _run_tool(ctx, "admin_debug_store", {}, show_debug_dump, jflag)


def main():
    cli()
