"""Flavor text and quiz generation backed by Gemini.

Every public method returns usable content: on any generator failure the
fixed fallback text (and default reward) is returned instead, so ledger
operations never depend on the network.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

import google.generativeai as genai
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from murim_quest.config import DEFAULT_MODEL
from murim_quest.errors import ExternalServiceFailure
from murim_quest.models import ChatMessage, CultivationPath, MoodType, Persona

logger = logging.getLogger(__name__)

FALLBACK_QUOTE = "Your cultivation is deepening!"
FALLBACK_MOOD_ADVICE = "The path is long, stay focused."
FALLBACK_MENTOR_REPLY = "My spiritual connection is weak. I cannot answer now."
FALLBACK_BOSS_INTRO = "The Heavens are silent..."
FALLBACK_VERDICT_FEEDBACK = "The evaluation scroll was lost in transit."
FALLBACK_VERDICT_XP = 100
FALLBACK_VERDICT_GOLD = 10
MAX_VERDICT_XP = 2000
MAX_VERDICT_GOLD = 100

PERSONA_PROMPTS: dict[Persona, str] = {
    Persona.ORTHODOX: (
        "You are the Saintly Hermit, Leader of the Murim Alliance. You speak calmly, using metaphors "
        "of nature, balance, and the Dao. You refer to the syllabus as the 'Orthodox Scripture'."
    ),
    Persona.UNORTHODOX: (
        "You are the Leader of the Unorthodox Faction. You are crass, brazen, loud, and mocking. "
        "You call the user 'brat'. You treat exams as bloody brawls."
    ),
    Persona.HEAVENLY_DEMON: (
        "You are the Great Heavenly Demon. You are arrogant and demand absolute perfection. "
        "You refer to yourself as 'This Seat' and to the user as 'Ant'."
    ),
    Persona.COMMANDER: (
        "You are the Grand Commander of Dragon Chains. You are military-minded, strict, and "
        "motivational. You treat study sessions as drills."
    ),
}

BOSS_QUESTION_COUNTS: dict[str, tuple[int, int]] = {
    "DAILY": (10, 1),
    "WEEKLY": (25, 5),
}


@dataclass
class MCQ:
    id: str
    question: str
    options: list[str]
    correct_index: int


@dataclass
class BossQuest:
    kind: str
    intro_text: str
    mcqs: list[MCQ] = field(default_factory=list)
    mains: list[dict] = field(default_factory=list)  # {"id", "question"}


@dataclass
class BossVerdict:
    feedback: str
    xp_reward: int
    gold_reward: int


def fallback_chapter(level: int) -> dict:
    return {
        "title": f"The Path of Level {level}",
        "content": (
            "Puneet meditated on his books, feeling the Qi of knowledge circulate through his "
            "meridians. The path to the Ministry is long, but his will is iron."
        ),
    }


def _path_note(path: CultivationPath | None) -> str:
    if path is None:
        return ""
    return f"The aspirant walks the {path.value} path; acknowledge it."


class Narrator:
    """Thin wrapper around a Gemini GenerativeModel with fallbacks."""

    def __init__(self, api_key: str | None = None, model_name: str = DEFAULT_MODEL, model: Any = None) -> None:
        self._model = model
        if self._model is None and api_key:
            genai.configure(api_key=api_key)
            self._model = genai.GenerativeModel(model_name)

    @property
    def available(self) -> bool:
        return self._model is not None

    @retry(
        retry=retry_if_exception_type(ExternalServiceFailure),
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=0.1, max=1),
        reraise=True,
    )
    def _generate(self, prompt: str, json_mode: bool = False) -> str:
        config = {"response_mime_type": "application/json"} if json_mode else None
        try:
            response = self._model.generate_content(prompt, generation_config=config)
            text = response.text
        except Exception as exc:
            raise ExternalServiceFailure(str(exc)) from exc
        if not text:
            raise ExternalServiceFailure("Empty response from generator")
        return text

    def _generate_text(self, prompt: str, fallback: str) -> str:
        if not self.available:
            return fallback
        try:
            return self._generate(prompt).strip()
        except ExternalServiceFailure as exc:
            logger.warning("Generator failed, using fallback text: %s", exc)
            return fallback

    def _generate_json(self, prompt: str) -> dict | None:
        if not self.available:
            return None
        try:
            data = json.loads(self._generate(prompt, json_mode=True))
        except ExternalServiceFailure as exc:
            logger.warning("Generator failed, using fallback content: %s", exc)
            return None
        except json.JSONDecodeError as exc:
            logger.warning("Generator returned malformed JSON: %s", exc)
            return None
        return data if isinstance(data, dict) else None

    def story_chapter(self, level: int, role: str) -> dict:
        prompt = (
            "Write a short, engaging story chapter (100-150 words) for a gamified study app. "
            "Protagonist: Puneet, a village boy in a Murim fantasy world inspired by Ancient India. "
            f"He is level {level} of 500 and currently a '{role}'. "
            'Return JSON: {"title": "...", "content": "..."}'
        )
        data = self._generate_json(prompt)
        if not data or not isinstance(data.get("title"), str) or not isinstance(data.get("content"), str):
            return fallback_chapter(level)
        return {"title": data["title"], "content": data["content"]}

    def motivational_quote(self, streak: int) -> str:
        prompt = (
            f"Give a short, motivational quote for a student who has studied {streak} days in a row. "
            "Theme: Martial Arts/Murim. Max 20 words."
        )
        return self._generate_text(prompt, FALLBACK_QUOTE)

    def mood_advice(self, mood: MoodType, persona: Persona, path: CultivationPath | None = None) -> str:
        prompt = (
            f"{PERSONA_PROMPTS[persona]}\n{_path_note(path)}\n"
            f'The aspirant reported their mood as "{mood.value}". '
            "Give short, in-character advice (max 30 words) for their exam preparation."
        )
        return self._generate_text(prompt, FALLBACK_MOOD_ADVICE)

    def mentor_reply(
        self,
        history: list[ChatMessage],
        message: str,
        persona: Persona,
        path: CultivationPath | None = None,
    ) -> str:
        context = "\n".join(f"{m.sender}: {m.text}" for m in history)
        prompt = (
            f"{PERSONA_PROMPTS[persona]}\n{_path_note(path)}\n"
            f"CONTEXT OF CONVERSATION:\n{context}\n\n"
            f'USER\'S NEW MESSAGE:\n"{message}"\n\n'
            "Respond in persona. Focus on exam preparation, stress and discipline. Under 80 words."
        )
        return self._generate_text(prompt, FALLBACK_MENTOR_REPLY)

    def boss_quest(self, topics: list[str], kind: str, persona: Persona) -> BossQuest:
        mcq_count, mains_count = BOSS_QUESTION_COUNTS[kind]
        prompt = (
            f"{PERSONA_PROMPTS[persona]}\n"
            f"Generate a {kind} boss fight exam on these topics: {', '.join(topics) or 'General Studies'}. "
            f"Generate {mcq_count} MCQs, {mains_count} mains question(s) and an intro message in persona. "
            'Return ONLY JSON: {"introText": "...", '
            '"mcqs": [{"id": "1", "question": "...", "options": ["A", "B", "C", "D"], "correctIndex": 0}], '
            '"mains": [{"id": "m1", "question": "..."}]}'
        )
        data = self._generate_json(prompt)
        fallback = BossQuest(kind=kind, intro_text=FALLBACK_BOSS_INTRO)
        if not data:
            return fallback
        try:
            mcqs = [
                MCQ(
                    id=str(q["id"]),
                    question=str(q["question"]),
                    options=[str(o) for o in q["options"]],
                    correct_index=int(q["correctIndex"]),
                )
                for q in data.get("mcqs", [])
            ]
            mains = [{"id": str(q["id"]), "question": str(q["question"])} for q in data.get("mains", [])]
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Malformed boss quest, using fallback: %s", exc)
            return fallback
        return BossQuest(kind=kind, intro_text=str(data.get("introText", "")), mcqs=mcqs, mains=mains)

    def evaluate_boss_fight(
        self,
        persona: Persona,
        mcq_score: int,
        total_mcqs: int,
        mains_drafts: list[dict],
        path: CultivationPath | None = None,
    ) -> BossVerdict:
        fallback = BossVerdict(FALLBACK_VERDICT_FEEDBACK, FALLBACK_VERDICT_XP, FALLBACK_VERDICT_GOLD)
        prompt = (
            f"{PERSONA_PROMPTS[persona]}\n{_path_note(path)}\n"
            f"MCQ Score: {mcq_score}/{total_mcqs}. Mains Answers: {json.dumps(mains_drafts)}.\n"
            f"Strictly evaluate the mains answers. Decide a gold reward (0 to {MAX_VERDICT_GOLD}) and "
            f"an XP reward (0 to {MAX_VERDICT_XP}). Give feedback in persona. "
            'Return ONLY JSON: {"feedback": "...", "xpReward": 0, "goldReward": 0}'
        )
        data = self._generate_json(prompt)
        if not data:
            return fallback
        try:
            xp = min(max(int(data["xpReward"]), 0), MAX_VERDICT_XP)
            gold = min(max(int(data["goldReward"]), 0), MAX_VERDICT_GOLD)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Malformed boss verdict, using fallback: %s", exc)
            return fallback
        return BossVerdict(feedback=str(data.get("feedback", "")), xp_reward=xp, gold_reward=gold)
