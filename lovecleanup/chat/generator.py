"""
Rule-based response generator.

Used when every remote backend fails. Picks a templated reply for the
message's mood/intent, biased by a secondary "emotional context" scan, and
attaches the quick replies for the message's response type.
"""

from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from loguru import logger

from lovecleanup.chat.classifier import contains_any
from lovecleanup.chat.models import (
    ConversationStage,
    HistoryEntry,
    Intent,
    Mood,
    ResponseType,
)
from lovecleanup.chat.templates import (
    APOLOGY_REPLY,
    CONNECTION_REPLY,
    CONTEXTUAL_REPLIES,
    ENCOURAGEMENT_BY_CONTEXT,
    FUTURE_REPLY,
    GRATITUDE_REPLIES,
    GREETINGS,
    HELPER_PHRASES,
    MOOD_POOLS,
    MOTIVATIONAL_REPLIES,
    NOSTALGIA_REPLY,
    QUICK_REPLIES,
    SESSION_LIMIT_QUICK_REPLIES,
    SESSION_LIMIT_REPLY,
    TECHNICAL_REPLIES,
    ResponseTemplate,
)

# =============================================================================
# KEYWORD TABLES
# =============================================================================


class EmotionalSignal(str, Enum):
    """Secondary signals that bias template choice."""

    HIGH_INTENSITY = "high_intensity"
    TIME_FOCUSED = "time_focused"
    RELATIONSHIP_FOCUSED = "relationship_focused"


INTENSITY_WORDS = ("muito", "extremamente", "completamente", "totalmente")
TIME_WORDS = ("sempre", "nunca", "hoje", "ontem", "amanhã")
RELATIONSHIP_WORDS = ("ex", "relacionamento", "amor", "parceiro", "namorado", "namorada")

FUTURE_KEYWORDS = ("futuro", "recomeço", "nova vida", "amanhã", "próximo", "depois")
LONELINESS_KEYWORDS = ("sozinho", "sozinha", "ninguém", "isolado", "abandonado")
NOSTALGIA_KEYWORDS = ("saudade", "falta", "lembrar", "memória", "passado")

# Response-type tables are kept apart from the classifier tables on purpose.
RESPONSE_TYPE_KEYWORDS: tuple[tuple[ResponseType, tuple[str, ...]], ...] = (
    (ResponseType.GREETING, ("oi", "olá", "como você está", "bom dia", "boa tarde")),
    (
        ResponseType.EMOTIONAL,
        (
            "triste", "deprimido", "sozinho", "perdido", "mal", "ansioso",
            "nervoso", "preocupado", "medo", "raiva", "bravo",
        ),
    ),
    (
        ResponseType.TECHNICAL,
        ("como", "funciona", "scanner", "deletar", "app", "configurar", "usar"),
    ),
    (
        ResponseType.MOTIVATIONAL,
        ("progresso", "conquista", "dias", "futuro", "motivação", "força"),
    ),
)


# =============================================================================
# PURE HELPERS
# =============================================================================


def analyze_emotional_context(text: str) -> frozenset[EmotionalSignal]:
    """Detect intensity, time and relationship references in the text."""
    lower_text = text.lower()
    signals = set()
    if contains_any(lower_text, INTENSITY_WORDS):
        signals.add(EmotionalSignal.HIGH_INTENSITY)
    if contains_any(lower_text, TIME_WORDS):
        signals.add(EmotionalSignal.TIME_FOCUSED)
    if contains_any(lower_text, RELATIONSHIP_WORDS):
        signals.add(EmotionalSignal.RELATIONSHIP_FOCUSED)
    return frozenset(signals)


def conversation_stage(history_length: int) -> ConversationStage:
    """Map the number of prior history entries to a conversation stage."""
    if history_length <= 0:
        return ConversationStage.INITIAL
    if history_length < 5:
        return ConversationStage.EARLY
    if history_length < 15:
        return ConversationStage.DEVELOPING
    return ConversationStage.ESTABLISHED


def detect_response_type(user_text: str) -> ResponseType:
    """Derive the response type from the user's message."""
    lower_text = user_text.lower()
    for response_type, keywords in RESPONSE_TYPE_KEYWORDS:
        if contains_any(lower_text, keywords):
            return response_type
    return ResponseType.GENERAL


def quick_replies_for(response_type: ResponseType | str) -> list[str]:
    """
    Look up the quick replies for a response type.

    Deterministic: the same type always yields the same ordered list. A new
    list is returned each call so callers may mutate it freely.
    """
    try:
        key = ResponseType(response_type)
    except ValueError:
        key = ResponseType.GENERAL
    return list(QUICK_REPLIES.get(key, QUICK_REPLIES[ResponseType.GENERAL]))


# =============================================================================
# GENERATOR
# =============================================================================


@dataclass(frozen=True)
class GeneratedResponse:
    """Output of the rule-based generator."""

    text: str
    response_type: ResponseType
    quick_replies: tuple[str, ...]


class ResponseGenerator:
    """
    Templated reply generator.

    Randomness comes from an injectable ``random.Random`` so tests can seed it.

    Example:
        >>> generator = ResponseGenerator(rng=random.Random(7))
        >>> reply = generator.generate("estou muito triste", Mood.SAD, Intent.EMOTIONAL)
        >>> reply.response_type
        <ResponseType.EMOTIONAL: 'emotional'>
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng or random.Random()

    def generate(
        self,
        text: str,
        mood: Mood,
        intent: Intent,
        stage: ConversationStage | None = None,
        history: Sequence[HistoryEntry] = (),
    ) -> GeneratedResponse:
        """
        Produce a reply for a user message.

        Args:
            text: The user's message.
            mood: Mood from the classifier.
            intent: Intent from the classifier.
            stage: Conversation stage; derived from ``history`` when omitted.
            history: Prior conversation entries.

        Returns:
            Reply text, response type and quick replies.
        """
        if stage is None:
            stage = conversation_stage(len(history))

        reply = self.compose(text, mood, intent, stage)
        response_type = detect_response_type(text)
        logger.debug(
            f"Generated fallback reply (mood={mood.value}, intent={intent.value}, "
            f"stage={stage.value}, type={response_type.value})"
        )
        return GeneratedResponse(
            text=reply,
            response_type=response_type,
            quick_replies=tuple(quick_replies_for(response_type)),
        )

    def compose(
        self,
        text: str,
        mood: Mood,
        intent: Intent,
        stage: ConversationStage,
    ) -> str:
        """Select the reply text only."""
        lower_text = text.lower()
        signals = analyze_emotional_context(text)

        pool = MOOD_POOLS.get(mood)
        if pool:
            return self._fill(self.select_best(pool, signals), signals)

        if intent == Intent.TECHNICAL:
            return self._technical_reply(lower_text)

        if intent == Intent.MOTIVATIONAL:
            return self.rng.choice(MOTIVATIONAL_REPLIES)

        if contains_any(lower_text, FUTURE_KEYWORDS):
            return FUTURE_REPLY

        if contains_any(lower_text, LONELINESS_KEYWORDS):
            return CONNECTION_REPLY

        if contains_any(lower_text, NOSTALGIA_KEYWORDS):
            return NOSTALGIA_REPLY

        if intent == Intent.GREETING:
            return GREETINGS.get(stage, GREETINGS[ConversationStage.INITIAL])

        if intent == Intent.GRATITUDE:
            return self.rng.choice(GRATITUDE_REPLIES)

        return self.rng.choice(CONTEXTUAL_REPLIES)

    def select_best(
        self,
        pool: Sequence[ResponseTemplate],
        signals: frozenset[EmotionalSignal],
    ) -> ResponseTemplate:
        """Pick a variant: intensity wins, then time focus, else uniform random."""
        if EmotionalSignal.HIGH_INTENSITY in signals:
            return pool[0]
        if EmotionalSignal.TIME_FOCUSED in signals:
            return pool[1]
        return self.rng.choice(list(pool))

    def apology(self) -> GeneratedResponse:
        """Gentle apology shown when something unexpected broke."""
        return GeneratedResponse(
            text=APOLOGY_REPLY,
            response_type=ResponseType.FALLBACK,
            quick_replies=tuple(quick_replies_for(ResponseType.FALLBACK)),
        )

    def session_limit(self, text: str) -> GeneratedResponse:
        """Fixed reply for an exhausted request budget."""
        return GeneratedResponse(
            text=SESSION_LIMIT_REPLY,
            response_type=detect_response_type(text),
            quick_replies=SESSION_LIMIT_QUICK_REPLIES,
        )

    def _fill(self, template: ResponseTemplate, signals: frozenset[EmotionalSignal]) -> str:
        if template.helper is None:
            return template.template
        if template.helper == "encouragement":
            helper = self._encouragement(signals)
        else:
            helper = self.rng.choice(HELPER_PHRASES[template.helper])
        return template.format(helper=helper)

    @staticmethod
    def _encouragement(signals: frozenset[EmotionalSignal]) -> str:
        if EmotionalSignal.HIGH_INTENSITY in signals:
            return ENCOURAGEMENT_BY_CONTEXT["high_intensity"]
        if EmotionalSignal.RELATIONSHIP_FOCUSED in signals:
            return ENCOURAGEMENT_BY_CONTEXT["relationship_focused"]
        return ENCOURAGEMENT_BY_CONTEXT["default"]

    @staticmethod
    def _technical_reply(lower_text: str) -> str:
        if "como funciona" in lower_text or "app" in lower_text:
            return TECHNICAL_REPLIES["overview"]
        if "scanner" in lower_text or "fotos" in lower_text:
            return TECHNICAL_REPLIES["scanner"]
        return TECHNICAL_REPLIES["generic"]
