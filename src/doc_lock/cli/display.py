# -*- coding: utf-8 -*-
"""
Fonctions d'affichage Rich pour le CLI.

Chaque outil MCP a sa fonction show_xxx() pour un rendu coloré.
"""

import json
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.syntax import Syntax

console = Console()


# =============================================================================
# Utilitaires communs
# =============================================================================

def show_error(msg: str):
    """Affiche un message d'erreur."""
    console.print(f"[red]❌ {msg}[/red]")


def show_success(msg: str):
    """Affiche un message de succès."""
    console.print(f"[green]✅ {msg}[/green]")


def show_warning(msg: str):
    """Affiche un avertissement."""
    console.print(f"[yellow]⚠️  {msg}[/yellow]")


def show_json(data: dict):
    """Affiche un dict en JSON coloré."""
    console.print(Syntax(
        json.dumps(data, indent=2, ensure_ascii=False), "json"
    ))


# =============================================================================
# System
# =============================================================================

def show_health_result(result: dict):
    """Affiche le résultat de system_health."""
    status = result.get("status", "?")
    icon = "✅" if status == "ok" else "⚠️"

    table = Table(title=f"{icon} Health : {result.get('service_name', '?')}", show_header=True)
    table.add_column("Service", style="cyan bold")
    table.add_column("Statut")
    table.add_column("Détails", style="dim")

    for name, info in result.get("services", {}).items():
        if isinstance(info, dict):
            s = info.get("status", "?")
            s_icon = "✅" if s == "ok" else "❌"
            details = info.get("message", info.get("latency_ms", info.get("backend", "")))
            table.add_row(name, f"{s_icon} {s}", str(details))

    table.add_row("locks", "🔒", str(result.get("locks_count", "?")))
    console.print(table)


def show_about_result(result: dict):
    """Affiche le résultat de system_about."""
    console.print(Panel.fit(
        f"[bold]Service :[/bold] [cyan]{result.get('name', '?')}[/cyan]\n"
        f"[bold]Version :[/bold] [green]{result.get('version', '?')}[/green]\n"
        f"[bold]Bail    :[/bold] TTL {result.get('lock_ttl_seconds', '?')}s, "
        f"heartbeat {result.get('heartbeat_interval_seconds', '?')}s\n"
        f"[bold]Stockage:[/bold] {result.get('storage_backend', '?')}\n"
        f"[bold]Outils  :[/bold] {result.get('tools_count', 0)}",
        title="ℹ️  À propos", border_style="blue",
    ))


# =============================================================================
# Locks
# =============================================================================

def show_lock_state(result: dict):
    """Affiche le résultat de lock_check."""
    if result.get("locked"):
        console.print(Panel.fit(
            f"[bold]Détenteur :[/bold] [cyan]{result.get('userName', '?')}[/cyan]\n"
            f"[bold]Depuis    :[/bold] {result.get('timestamp', '?')}\n"
            f"[bold]Heartbeat :[/bold] {result.get('lastHeartbeat', '?')}",
            title="🔒 Verrouillé", border_style="red",
        ))
    elif result.get("wasExpired"):
        show_success("Libre (un bail expiré vient d'être supprimé)")
    else:
        show_success("Libre")


def show_lock_result(result: dict):
    """Affiche le résultat de lock_acquire / lock_renew."""
    lock = result.get("lock", {})
    console.print(Panel.fit(
        f"[bold]Détenteur :[/bold] [cyan]{lock.get('userName', '?')}[/cyan]\n"
        f"[bold]Session   :[/bold] [dim]{lock.get('sessionId', '?')}[/dim]\n"
        f"[bold]Depuis    :[/bold] {lock.get('timestamp', '?')}\n"
        f"[bold]Heartbeat :[/bold] {lock.get('lastHeartbeat', '?')}",
        title=f"✅ {result.get('message', 'OK')}", border_style="green",
    ))


def show_lock_conflict(result: dict):
    """Affiche un refus « locked »."""
    show_warning(
        f"Document verrouillé par {result.get('userName', '?')} "
        f"depuis {result.get('timestamp', '?')}"
    )


def show_lock_list(result: dict):
    """Affiche le résultat de lock_list."""
    table = Table(title=f"🔒 {result.get('count', 0)} verrou(s)", show_header=True)
    table.add_column("Document", style="cyan bold")
    table.add_column("Détenteur")
    table.add_column("Depuis", style="dim")
    table.add_column("Heartbeat", style="dim")
    for lock in result.get("locks", []):
        table.add_row(
            lock.get("documentId", "?"),
            lock.get("userName", "?"),
            str(lock.get("timestamp", "?")),
            str(lock.get("lastHeartbeat", "?")),
        )
    console.print(table)


# =============================================================================
# Admin
# =============================================================================

def show_clear_result(result: dict):
    """Affiche le résultat de admin_clear_locks (dry-run ou exécution)."""
    if result.get("mode") == "dry-run":
        show_warning(result.get("message", "Dry-run"))
        for key in result.get("keys", []):
            console.print(f"  [dim]• {key}[/dim]")
        return

    show_success(f"{result.get('locksRemoved', 0)} verrou(s) supprimé(s)")
    for key in result.get("removedKeys", []):
        console.print(f"  [dim]✗ {key}[/dim]")


def show_debug_dump(result: dict):
    """Affiche le résultat de admin_debug_store."""
    summary = result.get("summary", {})
    console.print(Panel.fit(
        f"[bold]Clés totales :[/bold] {summary.get('totalKeys', 0)}\n"
        f"[bold]Clés verrou  :[/bold] {summary.get('lockKeysFound', 0)}",
        title="🔍 Stockage", border_style="blue",
    ))
    for entry in result.get("locks", []):
        console.print(f"[cyan]{entry.get('key')}[/cyan]")
        show_json(entry.get("data") or {})
