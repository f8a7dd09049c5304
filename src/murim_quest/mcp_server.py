"""MCP server for murim-quest.

Exposes progress and the main study actions as MCP tools.
Run via: python3 -m murim_quest.mcp_server
"""
from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from murim_quest.errors import MurimQuestError

mcp = FastMCP(name="murim-quest")


def _get_session():
    from murim_quest.config import load_settings
    from murim_quest.session import Session

    session = Session.open(load_settings())
    session.start()
    return session


def _notifications(session) -> list[dict[str, str]]:
    return [{"title": n.title, "message": n.message} for n in session.drain_notifications()]


@mcp.tool()
def get_progress() -> dict[str, Any]:
    """Get level, XP, currencies, streak, task counters and materials."""
    session = _get_session()
    try:
        return session.snapshot()
    finally:
        session.close()


@mcp.tool()
def list_due_revisions() -> dict[str, Any]:
    """List completed quests whose spaced revision is due today."""
    session = _get_session()
    try:
        due = [
            {"id": task.id, "title": task.title, "revisions": status.count, "due_date": status.due_date.isoformat()}
            for task, status in session.revision_overview()
            if status.is_due
        ]
        return {"due": due, "count": len(due)}
    finally:
        session.close()


@mcp.tool()
def complete_task(task_id: str) -> dict[str, Any]:
    """Mark a quest completed and collect its rewards."""
    session = _get_session()
    try:
        task = session.state.find_task(task_id)
        if task.completed:
            return {"error": f"Quest '{task.title}' is already completed."}
        session.toggle_task(task_id)
        return {
            "task": task.title,
            "level": session.state.progress.level,
            "notifications": _notifications(session),
        }
    except KeyError:
        return {"error": f"Unknown quest: {task_id}"}
    finally:
        session.close()


@mcp.tool()
def check_in_revision(task_id: str) -> dict[str, Any]:
    """Check in a due revision and draw its reward."""
    session = _get_session()
    try:
        reward = session.check_in(task_id)
        return {
            "reward": {"kind": reward.kind.value, "amount": reward.amount, "label": reward.label},
            "notifications": _notifications(session),
        }
    except KeyError:
        return {"error": f"Unknown quest: {task_id}"}
    except MurimQuestError as exc:
        return {"error": str(exc)}
    finally:
        session.close()


@mcp.tool()
def log_mains(count: int) -> dict[str, Any]:
    """Log mains answers written today."""
    session = _get_session()
    try:
        earned = session.log_mains(count)
        return {"xp_earned": earned, "notifications": _notifications(session)}
    except ValueError as exc:
        return {"error": str(exc)}
    finally:
        session.close()


@mcp.tool()
def forge_item() -> dict[str, Any]:
    """Forge a Human Class weapon from 5 iron and 5 fire."""
    session = _get_session()
    try:
        item = session.forge()
        return {"item": item.name, "rarity": item.rarity.value, "notifications": _notifications(session)}
    except MurimQuestError as exc:
        return {"error": str(exc)}
    finally:
        session.close()


if __name__ == "__main__":
    mcp.run()
