"""Rich terminal display for murim-quest."""

from __future__ import annotations

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from murim_quest.notifications import Notification

console = Console()

# Border colors by notification kind
_KIND_COLORS: dict[str, str] = {
    "level_up": "gold1",
    "streak": "dark_orange3",
    "milestone": "deep_sky_blue1",
    "boss": "red1",
    "forge": "grey70",
    "hidden": "orange_red1",
    "potion": "purple",
    "shop": "cyan",
}

_RARITY_COLORS: dict[str, str] = {
    "Human": "grey70",
    "Epic": "purple",
    "Legend": "gold1",
    "Divine": "cyan",
    "Transcendental": "orange_red1",
}


def format_number(n: int) -> str:
    """Format large numbers: 421543 -> '421.5K', 1200 -> '1,200', 1234567 -> '1.2M'."""
    if n >= 1_000_000:
        value = n / 1_000_000
        if value >= 100:
            return f"{value:.0f}M"
        return f"{value:.1f}M"
    if n >= 10_000:
        return f"{n / 1_000:.1f}K"
    return f"{n:,}"


def _xp_bar(current: int, total: int, width: int = 20) -> str:
    """Render an XP progress bar as text: [████████░░░░░░░░░░░░]."""
    if total <= 0:
        return "[" + "█" * width + "]"
    ratio = min(current / total, 1.0)
    filled = int(ratio * width)
    return "[" + "█" * filled + "░" * (width - filled) + "]"


def print_dashboard(data: dict) -> None:
    """Print the main dashboard: level, XP, currencies, streak and counters."""
    lines: list[str] = [""]
    lines.append(f"  [bold gold1]Level {data['level']} - {data['role']}[/]")

    bar = _xp_bar(data["xp_in_level"], data["xp_for_next"])
    if data["xp_for_next"] > 0:
        lines.append(
            f"  {bar} {format_number(data['xp_in_level'])}/{format_number(data['xp_for_next'])} XP"
        )
    else:
        lines.append(f"  {bar} MAX LEVEL")
    lines.append(
        f"  Spendable: [bold]{format_number(data['spendable'])}[/] XP  |  Gold: [bold]{data['gold']}[/]"
    )

    lines.append("")
    lines.append(f"  \U0001f525 Streak: {data['streak_days']} days")
    lines.append(
        f"  Tasks: {data['daily_completed']} today  |  {data['weekly_completed']} this week  |  "
        f"{format_number(data['total_completed'])} total"
    )
    materials = data.get("materials", {})
    lines.append(
        f"  Iron {materials.get('iron', 0)}  |  Fire {materials.get('fire', 0)}  |  "
        f"Wood {materials.get('wood', 0)}  |  Items {data.get('items', 0)}"
    )

    if data.get("due_revisions"):
        lines.append("")
        lines.append(f"  \U0001f4da [bold]{data['due_revisions']} revision(s) due[/]")
    if data.get("active_potion"):
        lines.append(f"  ⚗️  {data['active_potion']} active ({data['multiplier']}x)")
    if data.get("active_pet"):
        lines.append(f"  \U0001f43e Companion: {data['active_pet']}")
    if data.get("boss_window_open") and data.get("boss_pending"):
        lines.append("  [bold red1]The Heavenly Tribulation is open. Submit an essay![/]")

    if data.get("quote"):
        lines.append("")
        lines.append(f'  [italic]"{data["quote"]}"[/]')
    lines.append("")

    panel = Panel(
        "\n".join(lines),
        title="[bold]MURIM QUEST[/]",
        box=box.ROUNDED,
        border_style="gold1",
        width=60,
    )
    console.print(panel)


def print_notifications(notifications: list[Notification]) -> None:
    for note in notifications:
        color = _KIND_COLORS.get(note.kind, "white")
        console.print(Panel(note.message, title=f"[bold]{note.title}[/]", border_style=color, width=60))


def print_tasks(tasks: list, mastered: set[str] | list[str]) -> None:
    table = Table(title="Quests", box=box.ROUNDED, show_header=True, header_style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Title")
    table.add_column("Group")
    table.add_column("Done", justify="center")
    for task in tasks:
        group = f"{task.category.value} / {task.sub_category}"
        if task.sub_category in mastered:
            group += " \U0001f512"
        table.add_row(task.id, task.title, group, "✅" if task.completed else "")
    console.print(table)


def print_revisions(overview: list) -> None:
    """Print the revision schedule as (task, status) rows."""
    if not overview:
        console.print("[dim]No completed quests to revise yet.[/]")
        return
    table = Table(title="Memory Palace", box=box.ROUNDED, show_header=True, header_style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Title")
    table.add_column("Rev", justify="right")
    table.add_column("Next", justify="right")
    for task, status in overview:
        if status.is_due:
            when = "[bold green]Due today![/]"
        else:
            when = f"in {status.days_until} day(s)"
        table.add_row(task.id, task.title, str(status.count), when)
    console.print(table)


def print_reward(reward) -> None:
    console.print(f"[bold]\U0001f381 {reward.label}[/]: +{reward.amount} {reward.kind.value}")


def print_forge(materials: list, items: list) -> None:
    table = Table(title="Spirit Forge", box=box.ROUNDED, show_header=True, header_style="bold")
    table.add_column("Material")
    table.add_column("Count", justify="right")
    for material in materials:
        table.add_row(material.name, str(material.count))
    console.print(table)

    counts: dict[str, int] = {}
    for item in items:
        counts[item.rarity.value] = counts.get(item.rarity.value, 0) + 1
    if counts:
        summary = "  ".join(
            f"[{_RARITY_COLORS.get(rarity, 'white')}]{rarity}: {count}[/]" for rarity, count in counts.items()
        )
        console.print(f"  Armory: {summary}")


def print_pets(pets: list, active_pet_id: str | None) -> None:
    if not pets:
        console.print("[dim]No companions yet. Adopt one with 'murim-quest pet adopt'.[/]")
        return
    table = Table(title="Pet Sanctuary", box=box.ROUNDED, show_header=True, header_style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Species")
    table.add_column("Stage")
    table.add_column("Level", justify="right")
    table.add_column("XP")
    for pet in pets:
        name = f"[bold]{pet.name}[/] ⭐" if pet.id == active_pet_id else pet.name
        table.add_row(
            pet.id, name, pet.species.value, pet.stage.value, str(pet.level), _xp_bar(pet.xp, pet.max_xp, 10)
        )
    console.print(table)


def print_map(milestones: list[dict], level: int) -> None:
    for milestone in milestones:
        reached = level >= milestone["level_req"]
        mark = "✅" if reached else "\U0001f512"
        style = "bold" if reached else "dim"
        console.print(
            f"  {mark} [{style}]{milestone['title']}[/] (Lv {milestone['level_req']}) - {milestone['description']}"
        )


def print_story(chapter) -> None:
    console.print(Panel(chapter.content, title=f"[bold]{chapter.title}[/]", border_style="dark_orange3", width=70))


def print_error(message: str) -> None:
    console.print(f"[bold red]❌ {message}[/]")
