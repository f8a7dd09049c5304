"""State entities for murim-quest and their JSON-friendly encodings."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Category(str, Enum):
    GS = "GS"
    OPTIONAL = "Optional"


class Rarity(str, Enum):
    HUMAN = "Human"
    EPIC = "Epic"
    LEGEND = "Legend"
    DIVINE = "Divine"
    TRANSCENDENTAL = "Transcendental"


class PetStage(str, Enum):
    EGG = "Egg"
    HATCHLING = "Hatchling"
    ADULT = "Adult"
    MYTHIC = "Mythic"


PET_STAGE_ORDER: list[PetStage] = [PetStage.EGG, PetStage.HATCHLING, PetStage.ADULT, PetStage.MYTHIC]


class Species(str, Enum):
    PHOENIX = "Phoenix"
    DRAGON = "Dragon"
    TURTLE = "Turtle"
    TIGER = "Tiger"
    FOX = "Fox"
    QILIN = "Qilin"


class HobbyType(str, Enum):
    LANGUAGE = "Language"
    PAINTING = "Painting"
    POETRY = "Poetry"
    MANHWA = "Manhwa"


class MoodType(str, Enum):
    MOTIVATED = "Motivated"
    TIRED = "Tired"
    ANXIOUS = "Anxious"
    CONFIDENT = "Confident"
    LOST = "Lost"


class CultivationPath(str, Enum):
    ORTHODOX = "ORTHODOX"
    UNORTHODOX = "UNORTHODOX"
    DEMONIC = "DEMONIC"
    SECULAR = "SECULAR"


class Persona(str, Enum):
    ORTHODOX = "ORTHODOX"
    UNORTHODOX = "UNORTHODOX"
    HEAVENLY_DEMON = "HEAVENLY_DEMON"
    COMMANDER = "COMMANDER"


class RevisionState(int, Enum):
    """Position of a completed task in its spaced-review schedule."""

    UNREVIEWED = 0
    REVIEWED_1 = 1
    REVIEWED_2 = 2
    REVIEWED_3 = 3
    REVIEWED_4_PLUS = 4

    @classmethod
    def from_count(cls, count: int) -> RevisionState:
        return cls(min(max(count, 0), cls.REVIEWED_4_PLUS.value))


def new_id() -> str:
    return uuid.uuid4().hex[:12]


def _ts(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_ts(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


@dataclass
class UserProgress:
    last_session_date: str  # YYYY-MM-DD
    name: str = "Aspirant"
    level: int = 1
    xp: int = 0
    spendable: int = 0
    gold: int = 0
    streak_days: int = 0
    total_completed: int = 0
    daily_completed: int = 0
    weekly_completed: int = 0
    last_boss_window_date: str = ""
    mastered_categories: set[str] = field(default_factory=set)
    account_linked: bool = False
    cultivation_path: CultivationPath | None = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "level": self.level,
            "xp": self.xp,
            "spendable": self.spendable,
            "gold": self.gold,
            "streak_days": self.streak_days,
            "last_session_date": self.last_session_date,
            "total_completed": self.total_completed,
            "daily_completed": self.daily_completed,
            "weekly_completed": self.weekly_completed,
            "last_boss_window_date": self.last_boss_window_date,
            "mastered_categories": sorted(self.mastered_categories),
            "account_linked": self.account_linked,
            "cultivation_path": self.cultivation_path.value if self.cultivation_path else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> UserProgress:
        path = data.get("cultivation_path")
        return cls(
            name=data.get("name", "Aspirant"),
            level=int(data.get("level", 1)),
            xp=int(data.get("xp", 0)),
            spendable=int(data.get("spendable", 0)),
            gold=int(data.get("gold", 0)),
            streak_days=int(data.get("streak_days", 0)),
            last_session_date=data["last_session_date"],
            total_completed=int(data.get("total_completed", 0)),
            daily_completed=int(data.get("daily_completed", 0)),
            weekly_completed=int(data.get("weekly_completed", 0)),
            last_boss_window_date=data.get("last_boss_window_date", ""),
            mastered_categories=set(data.get("mastered_categories", [])),
            account_linked=bool(data.get("account_linked", False)),
            cultivation_path=CultivationPath(path) if path else None,
        )


@dataclass
class StudyTask:
    title: str
    category: Category
    sub_category: str
    created_at: datetime
    id: str = field(default_factory=new_id)
    completed: bool = False
    completed_at: datetime | None = None
    revision_history: list[datetime] = field(default_factory=list)
    revision_state: RevisionState = RevisionState.UNREVIEWED

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category.value,
            "sub_category": self.sub_category,
            "completed": self.completed,
            "created_at": _ts(self.created_at),
            "completed_at": _ts(self.completed_at),
            "revision_history": [_ts(t) for t in self.revision_history],
            "revision_state": self.revision_state.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> StudyTask:
        history = [datetime.fromisoformat(t) for t in data.get("revision_history", [])]
        state = data.get("revision_state")
        return cls(
            id=data["id"],
            title=data["title"],
            category=Category(data["category"]),
            sub_category=data.get("sub_category", ""),
            completed=bool(data.get("completed", False)),
            created_at=datetime.fromisoformat(data["created_at"]),
            completed_at=_parse_ts(data.get("completed_at")),
            revision_history=history,
            revision_state=(
                RevisionState(state) if state is not None else RevisionState.from_count(len(history))
            ),
        )


@dataclass
class Material:
    id: str
    name: str
    count: int = 0
    source: str = ""

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "count": self.count, "source": self.source}

    @classmethod
    def from_dict(cls, data: dict) -> Material:
        return cls(
            id=data["id"],
            name=data["name"],
            count=int(data.get("count", 0)),
            source=data.get("source", ""),
        )


DEFAULT_MATERIALS: list[tuple[str, str, str]] = [
    ("iron", "Iron Ingot", "GS"),
    ("fire", "Fire Essence", "Essay"),
    ("wood", "Spirit Wood", "Optional"),
]


def default_materials() -> list[Material]:
    return [Material(id=mid, name=name, count=0, source=source) for mid, name, source in DEFAULT_MATERIALS]


@dataclass
class CraftedItem:
    name: str
    rarity: Rarity
    acquired_at: datetime
    id: str = field(default_factory=new_id)
    equipped: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "rarity": self.rarity.value,
            "acquired_at": _ts(self.acquired_at),
            "equipped": self.equipped,
        }

    @classmethod
    def from_dict(cls, data: dict) -> CraftedItem:
        return cls(
            id=data["id"],
            name=data["name"],
            rarity=Rarity(data["rarity"]),
            acquired_at=datetime.fromisoformat(data["acquired_at"]),
            equipped=bool(data.get("equipped", False)),
        )


@dataclass
class Pet:
    name: str
    species: Species
    id: str = field(default_factory=new_id)
    stage: PetStage = PetStage.EGG
    level: int = 1
    xp: int = 0
    max_xp: int = 100
    accessories: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "species": self.species.value,
            "stage": self.stage.value,
            "level": self.level,
            "xp": self.xp,
            "max_xp": self.max_xp,
            "accessories": list(self.accessories),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Pet:
        return cls(
            id=data["id"],
            name=data["name"],
            species=Species(data["species"]),
            stage=PetStage(data.get("stage", PetStage.EGG.value)),
            level=int(data.get("level", 1)),
            xp=int(data.get("xp", 0)),
            max_xp=int(data.get("max_xp", 100)),
            accessories=list(data.get("accessories", [])),
        )


@dataclass
class Potion:
    name: str
    multiplier: float
    duration_minutes: int
    cost_gold: int
    active_until: datetime
    id: str = field(default_factory=new_id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "multiplier": self.multiplier,
            "duration_minutes": self.duration_minutes,
            "cost_gold": self.cost_gold,
            "active_until": _ts(self.active_until),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Potion:
        return cls(
            id=data["id"],
            name=data["name"],
            multiplier=float(data["multiplier"]),
            duration_minutes=int(data["duration_minutes"]),
            cost_gold=int(data.get("cost_gold", 0)),
            active_until=datetime.fromisoformat(data["active_until"]),
        )


@dataclass
class EssayLog:
    date: datetime
    count: int
    topics: list[tuple[str, int]]
    total_xp_earned: int
    id: str = field(default_factory=new_id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": _ts(self.date),
            "count": self.count,
            "topics": [{"title": title, "marks": marks} for title, marks in self.topics],
            "total_xp_earned": self.total_xp_earned,
        }

    @classmethod
    def from_dict(cls, data: dict) -> EssayLog:
        return cls(
            id=data["id"],
            date=datetime.fromisoformat(data["date"]),
            count=int(data["count"]),
            topics=[(t["title"], int(t.get("marks", 0))) for t in data.get("topics", [])],
            total_xp_earned=int(data.get("total_xp_earned", 0)),
        )


@dataclass
class MainsLog:
    date: str  # YYYY-MM-DD
    count: int

    def to_dict(self) -> dict:
        return {"date": self.date, "count": self.count}

    @classmethod
    def from_dict(cls, data: dict) -> MainsLog:
        return cls(date=data["date"], count=int(data["count"]))


@dataclass
class HobbyLog:
    type: HobbyType
    title: str
    date: datetime
    content: str | None = None
    id: str = field(default_factory=new_id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "content": self.content,
            "date": _ts(self.date),
        }

    @classmethod
    def from_dict(cls, data: dict) -> HobbyLog:
        return cls(
            id=data["id"],
            type=HobbyType(data["type"]),
            title=data["title"],
            content=data.get("content"),
            date=datetime.fromisoformat(data["date"]),
        )


@dataclass
class MoodEntry:
    date: str  # YYYY-MM-DD
    type: str  # CLOCK_IN or CLOCK_OUT
    mood: MoodType
    advice: str
    persona: Persona

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "type": self.type,
            "mood": self.mood.value,
            "advice": self.advice,
            "persona": self.persona.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> MoodEntry:
        return cls(
            date=data["date"],
            type=data["type"],
            mood=MoodType(data["mood"]),
            advice=data.get("advice", ""),
            persona=Persona(data["persona"]),
        )


@dataclass
class ChatMessage:
    sender: str  # "user" or a Persona value
    text: str
    timestamp: datetime
    id: str = field(default_factory=new_id)

    def to_dict(self) -> dict:
        return {"id": self.id, "sender": self.sender, "text": self.text, "timestamp": _ts(self.timestamp)}

    @classmethod
    def from_dict(cls, data: dict) -> ChatMessage:
        return cls(
            id=data["id"],
            sender=data["sender"],
            text=data["text"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )


@dataclass
class StoryChapter:
    level: int
    title: str
    content: str

    def to_dict(self) -> dict:
        return {"level": self.level, "title": self.title, "content": self.content}

    @classmethod
    def from_dict(cls, data: dict) -> StoryChapter:
        return cls(level=int(data["level"]), title=data["title"], content=data["content"])


@dataclass
class GameState:
    """Everything one installation owns. Engine functions mutate it in place."""

    progress: UserProgress
    tasks: list[StudyTask] = field(default_factory=list)
    materials: list[Material] = field(default_factory=default_materials)
    items: list[CraftedItem] = field(default_factory=list)
    pets: list[Pet] = field(default_factory=list)
    active_pet_id: str | None = None
    active_potion: Potion | None = None
    essays: list[EssayLog] = field(default_factory=list)
    mains: list[MainsLog] = field(default_factory=list)
    hobbies: list[HobbyLog] = field(default_factory=list)
    moods: list[MoodEntry] = field(default_factory=list)
    chat_history: list[ChatMessage] = field(default_factory=list)
    stories: list[StoryChapter] = field(default_factory=list)

    def current_multiplier(self) -> float:
        """Active potion multiplier, or 1.0 when no potion is active."""
        return self.active_potion.multiplier if self.active_potion else 1.0

    def find_task(self, task_id: str) -> StudyTask:
        for task in self.tasks:
            if task.id == task_id:
                return task
        raise KeyError(f"Unknown task: {task_id}")

    def find_pet(self, pet_id: str) -> Pet:
        for pet in self.pets:
            if pet.id == pet_id:
                return pet
        raise KeyError(f"Unknown pet: {pet_id}")

    def active_pet(self) -> Pet | None:
        if self.active_pet_id is None:
            return None
        return next((p for p in self.pets if p.id == self.active_pet_id), None)
