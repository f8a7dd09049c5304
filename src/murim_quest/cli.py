"""CLI commands for murim-quest."""

from __future__ import annotations

import argparse
from pathlib import Path

from rich.prompt import IntPrompt, Prompt

from murim_quest.config import CONFIG_KEYS, load_config, load_settings, set_config_value
from murim_quest.display import (
    console,
    print_dashboard,
    print_error,
    print_forge,
    print_map,
    print_notifications,
    print_pets,
    print_reward,
    print_revisions,
    print_story,
    print_tasks,
)
from murim_quest.errors import MurimQuestError
from murim_quest.levels import MILESTONES
from murim_quest.logging_config import init_logging
from murim_quest.models import Category, CultivationPath, HobbyType, MoodType, Persona, Species
from murim_quest.session import Session
from murim_quest.shop import PET_ITEMS, POTIONS


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="murim-quest",
        description="Turn exam preparation into a cultivation journey",
    )
    parser.add_argument("--config", default=None, help="Path to config.json")
    parser.add_argument("--log-level", default=None, help="Logging level (default from config)")
    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("dashboard", help="Show main dashboard")

    task_parser = subparsers.add_parser("task", help="Manage study quests")
    task_sub = task_parser.add_subparsers(dest="task_command")
    add_p = task_sub.add_parser("add", help="Add a quest")
    add_p.add_argument("title")
    add_p.add_argument("--category", "-c", choices=[c.value for c in Category], default=Category.GS.value)
    add_p.add_argument("--group", "-g", required=True, help="Sub-category, e.g. Polity")
    for name, help_text in (("done", "Mark a quest completed"), ("undo", "Mark a quest not completed"),
                            ("delete", "Delete a quest and its history")):
        p = task_sub.add_parser(name, help=help_text)
        p.add_argument("task_id")
    task_sub.add_parser("list", help="List quests")

    master_p = subparsers.add_parser("master", help="Toggle mastery of a sub-category")
    master_p.add_argument("group")

    revise_parser = subparsers.add_parser("revise", help="Spaced revision")
    revise_sub = revise_parser.add_subparsers(dest="revise_command")
    revise_sub.add_parser("list", help="Show the revision schedule")
    checkin_p = revise_sub.add_parser("checkin", help="Check in a due revision")
    checkin_p.add_argument("task_id")

    essay_p = subparsers.add_parser("essay", help="Log essays (Wednesdays only)")
    essay_p.add_argument("--topic", "-t", action="append", nargs=2, metavar=("TITLE", "MARKS"), default=[])
    essay_p.add_argument("--count", "-n", type=int, default=None, help="Essays written (default: topics given)")

    mains_p = subparsers.add_parser("mains", help="Log mains answers written")
    mains_p.add_argument("count", type=int)

    hobby_p = subparsers.add_parser("hobby", help="Log a hobby session")
    hobby_p.add_argument("type", choices=[h.value for h in HobbyType])
    hobby_p.add_argument("title")
    hobby_p.add_argument("--content", default=None)

    subparsers.add_parser("forge", help="Forge a Human Class weapon")
    subparsers.add_parser("ascend", help="Merge 50 Human weapons into an Epic artifact")

    pet_parser = subparsers.add_parser("pet", help="Pet sanctuary")
    pet_sub = pet_parser.add_subparsers(dest="pet_command")
    adopt_p = pet_sub.add_parser("adopt", help="Adopt a new egg")
    adopt_p.add_argument("name")
    adopt_p.add_argument("--species", "-s", choices=[s.value for s in Species], default=Species.PHOENIX.value)
    active_p = pet_sub.add_parser("active", help="Set the active companion")
    active_p.add_argument("pet_id")
    pet_sub.add_parser("list", help="List companions")

    shop_parser = subparsers.add_parser("shop", help="Buy potions and pet goods")
    shop_sub = shop_parser.add_subparsers(dest="shop_command")
    potion_p = shop_sub.add_parser("potion", help="Buy an XP potion with gold")
    potion_p.add_argument("name", choices=[p.name for p in POTIONS])
    buy_p = shop_sub.add_parser("buy", help="Buy pet food or gear with XP")
    buy_p.add_argument("name", choices=[i.name for i in PET_ITEMS])

    boss_p = subparsers.add_parser("boss", help="Fight a Game Master boss")
    boss_p.add_argument("--type", choices=["DAILY", "WEEKLY"], default="DAILY")
    boss_p.add_argument("--persona", choices=[p.value for p in Persona], default=Persona.ORTHODOX.value)

    mood_p = subparsers.add_parser("mood", help="Clock in or out with a mood")
    mood_p.add_argument("mood", choices=[m.value for m in MoodType])
    mood_p.add_argument("--out", action="store_true", help="Clock out instead of in")
    mood_p.add_argument("--persona", choices=[p.value for p in Persona], default=Persona.ORTHODOX.value)

    chat_p = subparsers.add_parser("chat", help="Speak with your mentor")
    chat_p.add_argument("message")
    chat_p.add_argument("--persona", choices=[p.value for p in Persona], default=Persona.ORTHODOX.value)

    link_p = subparsers.add_parser("link", help="Link your account and choose a path")
    link_p.add_argument("path", choices=[p.value for p in CultivationPath])

    subparsers.add_parser("map", help="Show the world map milestones")
    subparsers.add_parser("story", help="Read the chapter for your level")

    config_p = subparsers.add_parser("config", help="Show or change settings")
    config_sub = config_p.add_subparsers(dest="config_command")
    config_sub.add_parser("show", help="Print the stored settings")
    set_p = config_sub.add_parser("set", help="Store one setting")
    set_p.add_argument("key", choices=CONFIG_KEYS)
    set_p.add_argument("value")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    command = args.command or "dashboard"

    config_path = Path(args.config) if args.config else None
    if command == "config":
        do_config(args, config_path)
        return

    settings = load_settings(config_path)
    init_logging(args.log_level or settings.log_level, settings.log_format)
    session = Session.open(settings)

    try:
        session.start(fetch_quote=command == "dashboard")
        dispatch(session, command, args)
    except (MurimQuestError, KeyError, ValueError) as exc:
        print_error(str(exc).strip("'\""))
    finally:
        print_notifications(session.drain_notifications())
        session.close()


def do_config(args: argparse.Namespace, config_path: Path | None) -> None:
    if getattr(args, "config_command", None) == "set":
        set_config_value(args.key, args.value, config_path)
        console.print(f"Set {args.key} = {args.value}")
        return
    for key, value in sorted(load_config(config_path).items()):
        console.print(f"  {key}: {value}")


def dispatch(session: Session, command: str, args: argparse.Namespace) -> None:
    if command == "dashboard":
        do_dashboard(session)
    elif command == "task":
        do_task(session, args)
    elif command == "master":
        do_master(session, args.group)
    elif command == "revise":
        if getattr(args, "revise_command", None) == "checkin":
            do_checkin(session, args.task_id)
        else:
            print_revisions(session.revision_overview())
    elif command == "essay":
        do_essay(session, args.topic, args.count)
    elif command == "mains":
        earned = session.log_mains(args.count)
        console.print(f"Logged {args.count} answer(s): +{earned} XP")
    elif command == "hobby":
        session.log_hobby(args.type, args.title, args.content)
        console.print(f"Logged {args.type}: {args.title}")
    elif command == "forge":
        item = session.forge()
        console.print(f"Forged [bold]{item.name}[/]")
        print_forge(session.state.materials, session.state.items)
    elif command == "ascend":
        item = session.ascend()
        console.print(f"Ascended into [bold purple]{item.name}[/]")
    elif command == "pet":
        do_pet(session, args)
    elif command == "shop":
        do_shop(session, args)
    elif command == "boss":
        do_boss(session, args.type, args.persona)
    elif command == "mood":
        entry = session.log_mood("CLOCK_OUT" if args.out else "CLOCK_IN", args.mood, args.persona)
        console.print(f"[italic]{entry.advice}[/]")
    elif command == "chat":
        reply = session.chat(args.message, args.persona)
        console.print(f"[bold]{reply.sender}[/]: {reply.text}")
    elif command == "link":
        session.link_account(args.path)
        console.print(f"Account linked. You walk the {args.path} path.")
    elif command == "map":
        print_map(MILESTONES, session.state.progress.level)
    elif command == "story":
        print_story(session.story_for_level())


def do_dashboard(session: Session) -> dict:
    """Show main dashboard. Returns the snapshot (useful for testing)."""
    data = session.snapshot()
    print_dashboard(data)
    return data


def do_task(session: Session, args: argparse.Namespace) -> None:
    sub = getattr(args, "task_command", None)
    if sub == "add":
        task = session.add_task(args.title, args.category, args.group)
        console.print(f"Added quest [bold]{task.title}[/] ({task.id})")
    elif sub in ("done", "undo"):
        task = session.state.find_task(args.task_id)
        if task.completed == (sub == "done"):
            console.print(f"Quest '{task.title}' is already {'completed' if task.completed else 'open'}")
            return
        session.toggle_task(args.task_id)
        console.print(f"Quest '{task.title}' {'completed' if task.completed else 'reopened'}")
    elif sub == "delete":
        task = session.delete_task(args.task_id)
        console.print(f"Deleted quest '{task.title}'")
    else:
        print_tasks(session.state.tasks, session.state.progress.mastered_categories)


def do_master(session: Session, group: str) -> None:
    mastered = session.toggle_mastery(group)
    console.print(f"{group}: {'Realm Conquered' if mastered else 'reopened'}")


def do_checkin(session: Session, task_id: str) -> None:
    reward = session.check_in(task_id)
    print_reward(reward)


def do_essay(session: Session, topics: list[list[str]], count: int | None) -> None:
    parsed = [(title, int(marks)) for title, marks in topics]
    log = session.submit_essay(count if count is not None else len(parsed), parsed)
    console.print(f"Essays logged: {log.count}  |  +{log.total_xp_earned} XP")


def do_pet(session: Session, args: argparse.Namespace) -> None:
    sub = getattr(args, "pet_command", None)
    if sub == "adopt":
        pet = session.adopt_pet(args.name, args.species)
        console.print(f"Adopted {pet.name} the {pet.species.value} egg ({pet.id})")
    elif sub == "active":
        pet = session.set_active_pet(args.pet_id)
        console.print(f"{pet.name} is now your companion")
    else:
        print_pets(session.state.pets, session.state.active_pet_id)


def do_shop(session: Session, args: argparse.Namespace) -> None:
    sub = getattr(args, "shop_command", None)
    if sub == "potion":
        session.buy_potion(args.name)
    elif sub == "buy":
        session.buy_pet_item(args.name)
    else:
        for potion in POTIONS:
            console.print(f"  ⚗️  {potion.name}: {potion.cost_gold} gold ({potion.multiplier}x, {potion.duration_minutes} min)")
        for item in PET_ITEMS:
            console.print(f"  \U0001f6cd  {item.name} ({item.type}): {item.cost} XP")


def do_boss(session: Session, kind: str, persona: str) -> None:
    quest = session.start_boss_fight(kind, persona)
    console.print(f"[bold red1]{quest.intro_text}[/]")
    answers: dict[str, int] = {}
    for number, mcq in enumerate(quest.mcqs, start=1):
        console.print(f"\n[bold]{number}. {mcq.question}[/]")
        for index, option in enumerate(mcq.options):
            console.print(f"   {index}) {option}")
        answers[mcq.id] = IntPrompt.ask("Answer", choices=[str(i) for i in range(len(mcq.options))])
    drafts: dict[str, str] = {}
    for question in quest.mains:
        console.print(f"\n[bold]{question['question']}[/]")
        drafts[question["id"]] = Prompt.ask("Your answer", default="")
    score, verdict = session.submit_boss_fight(answers, drafts)
    console.print(f"\nScore: {score}/{len(quest.mcqs)}")
    console.print(f"[italic]{verdict.feedback}[/]")
    console.print(f"+{verdict.xp_reward} XP  |  +{verdict.gold_reward} gold")


if __name__ == "__main__":
    main()
