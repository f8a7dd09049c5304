"""The session object: owns one installation's state and serializes mutations.

All ledger-mutating calls go through a Session. Each runs under a single
re-entrant lock and persists the collections it touched afterwards. A save
failure is logged and recorded; in-memory state stays authoritative.
"""

from __future__ import annotations

import functools
import logging
import random
import threading
from datetime import date
from typing import Any, Callable

from murim_quest import forge as forge_engine
from murim_quest import pets as pet_engine
from murim_quest import revision, rewards, shop, tasks, windows
from murim_quest.clock import Clock
from murim_quest.config import Settings
from murim_quest.db import STORE_KEYS, Database
from murim_quest.errors import InsufficientResource, StorageFailure
from murim_quest.levels import role_for_level, unlocked_milestones, xp_progress_in_level
from murim_quest.models import (
    Category,
    ChatMessage,
    CraftedItem,
    CultivationPath,
    EssayLog,
    GameState,
    HobbyLog,
    HobbyType,
    MainsLog,
    Material,
    MoodEntry,
    MoodType,
    Persona,
    Pet,
    Potion,
    Species,
    StoryChapter,
    StudyTask,
    UserProgress,
    default_materials,
)
from murim_quest.narrator import BossQuest, BossVerdict, Narrator
from murim_quest.notifications import Notification, NotificationSink
from murim_quest.streaks import StreakUpdate, evaluate_session_start

logger = logging.getLogger(__name__)

_ENCODERS: dict[str, Callable[[GameState], Any]] = {
    "user": lambda s: s.progress.to_dict(),
    "tasks": lambda s: [t.to_dict() for t in s.tasks],
    "materials": lambda s: [m.to_dict() for m in s.materials],
    "items": lambda s: [i.to_dict() for i in s.items],
    "pets": lambda s: [p.to_dict() for p in s.pets],
    "active_pet": lambda s: s.active_pet_id,
    "active_potion": lambda s: s.active_potion.to_dict() if s.active_potion else None,
    "hobbies": lambda s: [h.to_dict() for h in s.hobbies],
    "mains": lambda s: [m.to_dict() for m in s.mains],
    "essays": lambda s: [e.to_dict() for e in s.essays],
    "moods": lambda s: [m.to_dict() for m in s.moods],
    "chat_history": lambda s: [c.to_dict() for c in s.chat_history],
    "stories": lambda s: [c.to_dict() for c in s.stories],
}


def mutation(*keys: str):
    """Run a Session method under the lock and persist ``keys`` on success."""

    def decorator(method):
        @functools.wraps(method)
        def wrapper(self: Session, *args, **kwargs):
            with self._lock:
                result = method(self, *args, **kwargs)
                self.save(*keys)
                return result

        return wrapper

    return decorator


class Session:
    """One user's game state plus the collaborators that act on it."""

    def __init__(
        self,
        db: Database,
        clock: Clock | None = None,
        rng: random.Random | None = None,
        narrator: Narrator | None = None,
        settings: Settings | None = None,
        sink: NotificationSink | None = None,
    ) -> None:
        self.db = db
        self.clock = clock or Clock()
        self.rng = rng or random.Random()
        self.narrator = narrator or Narrator()
        self.settings = settings or Settings()
        self.sink = sink or NotificationSink()
        self.last_storage_error: StorageFailure | None = None
        self.quote: str | None = None
        self.boss_quest: BossQuest | None = None
        self.boss_persona: Persona | None = None
        self._lock = threading.RLock()
        self.state = self.load()

    @classmethod
    def open(cls, settings: Settings, **kwargs) -> Session:
        narrator = kwargs.pop("narrator", None) or Narrator(settings.api_key, settings.gemini_model)
        return cls(Database(settings.db_path), settings=settings, narrator=narrator, **kwargs)

    def close(self) -> None:
        self.db.close()

    # ── Persistence ──────────────────────────────────────────────────────────

    def _load_key(self, key: str) -> Any | None:
        try:
            return self.db.load(key)
        except StorageFailure as exc:
            logger.error("Failed to load %s, starting from defaults", key, exc_info=exc)
            self.last_storage_error = exc
            return None

    def _decode(self, key: str, value: Any, decoder: Callable[[Any], Any], default: Callable[[], Any]) -> Any:
        """Decode one stored collection; a missing or malformed document yields ``default()``."""
        if not value:
            return default()
        try:
            return decoder(value)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.error("Malformed %s document, starting from defaults", key, exc_info=exc)
            self.last_storage_error = StorageFailure(f"Malformed {key} document: {exc!r}")
            return default()

    def load(self) -> GameState:
        """Read every collection once and fill defaults for missing or malformed ones."""
        raw = {key: self._load_key(key) for key in STORE_KEYS}

        def many(cls):
            return lambda docs: [cls.from_dict(d) for d in docs]

        progress = self._decode(
            "user", raw["user"], UserProgress.from_dict,
            lambda: UserProgress(last_session_date=self.clock.today_str()),
        )
        state = GameState(progress=progress)
        state.tasks = self._decode("tasks", raw["tasks"], many(StudyTask), list)
        state.materials = self._decode("materials", raw["materials"], many(Material), default_materials)
        state.items = self._decode("items", raw["items"], many(CraftedItem), list)
        state.pets = self._decode("pets", raw["pets"], many(Pet), list)
        state.active_pet_id = raw["active_pet"] if isinstance(raw["active_pet"], str) else None
        state.active_potion = self._decode("active_potion", raw["active_potion"], Potion.from_dict, lambda: None)
        state.hobbies = self._decode("hobbies", raw["hobbies"], many(HobbyLog), list)
        state.mains = self._decode("mains", raw["mains"], many(MainsLog), list)
        state.essays = self._decode("essays", raw["essays"], many(EssayLog), list)
        state.moods = self._decode("moods", raw["moods"], many(MoodEntry), list)
        state.chat_history = self._decode("chat_history", raw["chat_history"], many(ChatMessage), list)
        state.stories = self._decode("stories", raw["stories"], many(StoryChapter), list)
        return state

    def save(self, *keys: str) -> bool:
        """Persist the named collections. Returns False if any write failed."""
        ok = True
        for key in keys:
            try:
                self.db.save(key, _ENCODERS[key](self.state))
            except StorageFailure as exc:
                logger.error("Failed to save %s; keeping in-memory state", key, exc_info=exc)
                self.last_storage_error = exc
                ok = False
        return ok

    def _reject(self, message: str) -> InsufficientResource:
        logger.warning(message)
        return InsufficientResource(message)

    # ── Session lifecycle ────────────────────────────────────────────────────

    @mutation("user", "active_potion")
    def start(self, fetch_quote: bool = False) -> StreakUpdate:
        """Run the once-per-launch checks: potion expiry, streak and resets."""
        shop.expire_potion(self.state, self.clock.now(), self.sink)
        update = evaluate_session_start(self.state, self.clock.today(), self.sink)
        if fetch_quote:
            self.quote = self.narrator.motivational_quote(self.state.progress.streak_days)
        return update

    def expire_potion(self) -> bool:
        """Clear the active potion once it has run out. Persists only on expiry."""
        with self._lock:
            expired = shop.expire_potion(self.state, self.clock.now(), self.sink)
            if expired:
                self.save("active_potion")
            return expired

    def run_potion_timer(self, stop: threading.Event) -> None:
        """Poll for potion expiry until ``stop`` is set."""
        while not stop.wait(self.settings.potion_poll_seconds):
            self.expire_potion()

    def start_potion_timer(self) -> tuple[threading.Thread, threading.Event]:
        """Start the expiry poller for hosts that keep one Session open.

        The CLI and the MCP tools open a Session per call and rely on ``start``
        to clear a spent potion. A host that holds a Session across calls
        starts this timer instead and sets the returned event to stop it.
        """
        stop = threading.Event()
        thread = threading.Thread(target=self.run_potion_timer, args=(stop,), daemon=True)
        thread.start()
        return thread, stop

    def drain_notifications(self) -> list[Notification]:
        with self._lock:
            return self.sink.drain()

    # ── Tasks ────────────────────────────────────────────────────────────────

    @mutation("tasks")
    def add_task(self, title: str, category: Category | str, sub_category: str) -> StudyTask:
        return tasks.add_task(self.state, title, Category(category), sub_category, self.clock.now())

    @mutation("tasks", "user", "materials")
    def toggle_task(self, task_id: str) -> StudyTask:
        return tasks.toggle_task(self.state, task_id, self.clock.now(), self.sink)

    @mutation("tasks")
    def delete_task(self, task_id: str) -> StudyTask:
        return tasks.delete_task(self.state, task_id)

    @mutation("user")
    def toggle_mastery(self, sub_category: str) -> bool:
        return tasks.toggle_mastery(self.state, sub_category)

    # ── Study logs ───────────────────────────────────────────────────────────

    @mutation("user", "materials", "essays")
    def submit_essay(self, count: int, topics: list[tuple[str, int]]) -> EssayLog:
        return rewards.on_essay_submitted(self.state, count, topics, self.clock.now(), self.sink)

    @mutation("user", "mains", "pets")
    def log_mains(self, count: int) -> int:
        grant = rewards.on_mains_logged(
            self.state, count, self.clock.today_str(), self.sink, self.settings.pet_stage_rule
        )
        return grant.effective

    @mutation("user", "hobbies")
    def log_hobby(self, hobby_type: HobbyType | str, title: str, content: str | None = None) -> HobbyLog:
        log = HobbyLog(type=HobbyType(hobby_type), title=title, content=content, date=self.clock.now())
        self.state.hobbies.append(log)
        rewards.on_hobby_logged(self.state, self.sink)
        return log

    # ── Revision ─────────────────────────────────────────────────────────────

    def revision_overview(self, today: date | None = None) -> list[tuple[StudyTask, revision.RevisionStatus]]:
        today = today or self.clock.today()
        overview = []
        with self._lock:
            for task in self.state.tasks:
                status = revision.revision_status(task, today)
                if status is not None:
                    overview.append((task, status))
        overview.sort(key=lambda pair: pair[1].due_date)
        return overview

    @mutation("tasks", "user", "materials")
    def check_in(self, task_id: str) -> revision.RevisionReward:
        task = self.state.find_task(task_id)
        reward = revision.check_in(self.state, task, self.clock.now(), self.rng, self.sink)
        if reward is None:
            raise self._reject(f"Revision for '{task.title}' is not due yet")
        return reward

    # ── Forge ────────────────────────────────────────────────────────────────

    @mutation("materials", "items")
    def forge(self) -> CraftedItem:
        item = forge_engine.forge(self.state, self.clock.now(), self.sink)
        if item is None:
            raise self._reject("Forging needs 5 Iron Ingots and 5 Fire Essence")
        return item

    @mutation("items")
    def ascend(self) -> CraftedItem:
        item = forge_engine.ascend(self.state, self.clock.now(), self.sink)
        if item is None:
            raise self._reject(f"Ascension needs {forge_engine.ASCENSION_COST} Human items")
        return item

    # ── Pets and shop ────────────────────────────────────────────────────────

    @mutation("pets", "active_pet")
    def adopt_pet(self, name: str, species: Species | str) -> Pet:
        return pet_engine.adopt_pet(self.state, name, Species(species))

    @mutation("active_pet")
    def set_active_pet(self, pet_id: str) -> Pet:
        return pet_engine.set_active_pet(self.state, pet_id)

    @mutation("user", "active_potion")
    def buy_potion(self, name: str) -> Potion:
        potion = shop.buy_potion(self.state, name, self.clock.now(), self.sink)
        if potion is None:
            raise self._reject(f"Not enough gold for {name}")
        return potion

    @mutation("user", "pets")
    def buy_pet_item(self, name: str) -> shop.PetItemDef:
        item = shop.buy_pet_item(self.state, name, self.sink, self.settings.pet_stage_rule)
        if item is None:
            raise self._reject(f"Not enough XP for {name}")
        return item

    # ── Boss fight ───────────────────────────────────────────────────────────

    def start_boss_fight(self, kind: str = "DAILY", persona: Persona | str = Persona.ORTHODOX) -> BossQuest:
        kind = kind.upper()
        if kind not in ("DAILY", "WEEKLY"):
            raise ValueError(f"Unknown boss fight type: {kind}")
        persona = Persona(persona)
        topics = [t.title for t in self.state.tasks if t.completed][-10:]
        self.boss_quest = self.narrator.boss_quest(topics, kind, persona)
        self.boss_persona = persona
        return self.boss_quest

    @mutation("user")
    def submit_boss_fight(self, answers: dict[str, int], drafts: dict[str, str]) -> tuple[int, BossVerdict]:
        """Score the active boss fight, ask for a verdict and apply its reward."""
        quest = self.boss_quest
        if quest is None or self.boss_persona is None:
            raise ValueError("No boss fight in progress")
        score = sum(1 for q in quest.mcqs if answers.get(q.id) == q.correct_index)
        mains = [{"question": q["question"], "answer": drafts.get(q["id"], "")} for q in quest.mains]
        verdict = self.narrator.evaluate_boss_fight(
            self.boss_persona, score, len(quest.mcqs), mains, self.state.progress.cultivation_path
        )
        rewards.on_boss_fight_rewarded(self.state, verdict.xp_reward, verdict.gold_reward, self.sink)
        self.boss_quest = None
        self.boss_persona = None
        return score, verdict

    # ── Narrative ────────────────────────────────────────────────────────────

    @mutation("stories")
    def story_for_level(self) -> StoryChapter:
        """Return the chapter for the current level, generating it once."""
        level = self.state.progress.level
        existing = next((c for c in self.state.stories if c.level == level), None)
        if existing is not None:
            return existing
        data = self.narrator.story_chapter(level, role_for_level(level))
        chapter = StoryChapter(level=level, title=data["title"], content=data["content"])
        self.state.stories.append(chapter)
        return chapter

    def has_clocked_in(self) -> bool:
        today = self.clock.today_str()
        return any(m.date == today and m.type == "CLOCK_IN" for m in self.state.moods)

    @mutation("moods")
    def log_mood(self, kind: str, mood: MoodType | str, persona: Persona | str) -> MoodEntry:
        kind = kind.upper()
        if kind not in ("CLOCK_IN", "CLOCK_OUT"):
            raise ValueError(f"Unknown mood entry type: {kind}")
        mood, persona = MoodType(mood), Persona(persona)
        advice = self.narrator.mood_advice(mood, persona, self.state.progress.cultivation_path)
        entry = MoodEntry(date=self.clock.today_str(), type=kind, mood=mood, advice=advice, persona=persona)
        self.state.moods.append(entry)
        return entry

    @mutation("chat_history")
    def chat(self, message: str, persona: Persona | str) -> ChatMessage:
        persona = Persona(persona)
        history = list(self.state.chat_history)
        self.state.chat_history.append(ChatMessage(sender="user", text=message, timestamp=self.clock.now()))
        text = self.narrator.mentor_reply(history, message, persona, self.state.progress.cultivation_path)
        reply = ChatMessage(sender=persona.value, text=text, timestamp=self.clock.now())
        self.state.chat_history.append(reply)
        return reply

    @mutation("user")
    def link_account(self, path: CultivationPath | str) -> UserProgress:
        self.state.progress.account_linked = True
        self.state.progress.cultivation_path = CultivationPath(path)
        return self.state.progress

    # ── Read models ──────────────────────────────────────────────────────────

    def snapshot(self) -> dict:
        """Plain-dict view of the headline numbers for display and tools."""
        with self._lock:
            progress = self.state.progress
            now = self.clock.now()
            xp_in_level, xp_for_next = xp_progress_in_level(progress)
            pet = self.state.active_pet()
            potion = self.state.active_potion
            return {
                "name": progress.name,
                "level": progress.level,
                "role": role_for_level(progress.level),
                "xp_in_level": xp_in_level,
                "xp_for_next": xp_for_next,
                "spendable": progress.spendable,
                "gold": progress.gold,
                "streak_days": progress.streak_days,
                "total_completed": progress.total_completed,
                "daily_completed": progress.daily_completed,
                "weekly_completed": progress.weekly_completed,
                "materials": {m.id: m.count for m in self.state.materials},
                "items": len(self.state.items),
                "due_revisions": len(revision.due_tasks(self.state.tasks, now.date())),
                "active_pet": pet.name if pet else None,
                "active_potion": potion.name if potion else None,
                "multiplier": self.state.current_multiplier(),
                "boss_window_open": windows.is_boss_window(now),
                "boss_pending": windows.is_boss_pending(progress, now.date()),
                "milestones": [m["title"] for m in unlocked_milestones(progress.level)],
                "mastered_categories": sorted(progress.mastered_categories),
                "quote": self.quote,
            }
