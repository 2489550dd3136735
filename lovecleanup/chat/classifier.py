"""
Mood and intent classification.

Both passes are plain substring scans over the lower-cased text, so a
keyword embedded in a longer word still matches ("oi" in "depois", "mal" in
"normal"). Replies were tuned against this behaviour; switching to word
boundaries would change which templates users see.
"""

from __future__ import annotations

from dataclasses import dataclass

from lovecleanup.chat.models import Intent, Mood

# Checked in this order, first match wins.
MOOD_KEYWORDS: tuple[tuple[Mood, tuple[str, ...]], ...] = (
    (
        Mood.SAD,
        (
            "triste", "deprimido", "sozinho", "perdido", "mal", "choro",
            "dor", "sofrendo", "machucado", "devastado",
        ),
    ),
    (
        Mood.ANXIOUS,
        (
            "ansioso", "nervoso", "preocupado", "medo", "assustado",
            "pânico", "estresse", "tenso", "inquieto",
        ),
    ),
    (
        Mood.ANGRY,
        (
            "raiva", "bravo", "irritado", "ódio", "furioso", "revoltado",
            "injusto", "indignado",
        ),
    ),
    (
        Mood.HOPEFUL,
        (
            "esperança", "melhor", "futuro", "recomeço", "otimista",
            "confiante", "positivo", "bem", "animado",
        ),
    ),
    (
        Mood.CONFUSED,
        (
            "confuso", "não sei", "dúvida", "perdido", "como", "por que",
            "entender", "incerto",
        ),
    ),
)

INTENT_KEYWORDS: tuple[tuple[Intent, tuple[str, ...]], ...] = (
    (
        Intent.GREETING,
        ("oi", "olá", "bom dia", "boa tarde", "boa noite", "como você está"),
    ),
    (
        Intent.GRATITUDE,
        ("obrigado", "obrigada", "valeu", "agradeço"),
    ),
    (
        Intent.TECHNICAL,
        (
            "como funciona", "app", "scanner", "deletar", "configurar",
            "usar", "funcionalidade",
        ),
    ),
    (
        Intent.MOTIVATIONAL,
        ("motivação", "força", "conseguir", "desistir", "difícil", "impossível"),
    ),
    (
        Intent.EMOTIONAL,
        (
            "triste", "deprimido", "sozinho", "sozinha", "perdido", "mal",
            "choro", "ansioso", "nervoso", "preocupado", "medo", "raiva",
            "bravo", "saudade",
        ),
    ),
)


@dataclass(frozen=True)
class Classification:
    """Mood and intent of a single message."""

    mood: Mood
    intent: Intent


def contains_any(text: str, keywords: tuple[str, ...] | list[str]) -> bool:
    """Substring test of every keyword against already lower-cased text."""
    return any(keyword in text for keyword in keywords)


def mood_of(text: str) -> Mood:
    """Return the first mood whose keywords occur in the text."""
    lower_text = text.lower()
    for mood, keywords in MOOD_KEYWORDS:
        if contains_any(lower_text, keywords):
            return mood
    return Mood.NEUTRAL


def intent_of(text: str) -> Intent:
    """Return the first intent whose keywords occur in the text."""
    lower_text = text.lower()
    for intent, keywords in INTENT_KEYWORDS:
        if contains_any(lower_text, keywords):
            return intent
    return Intent.GENERAL


def classify(text: str) -> Classification:
    """
    Classify free text into a mood and an intent.

    The two scans use separate tables and run independently.

    Args:
        text: Raw user message.

    Returns:
        Classification with mood and intent.

    Example:
        >>> classify("estou muito triste")
        Classification(mood=<Mood.SAD: 'sad'>, intent=<Intent.EMOTIONAL: 'emotional'>)
    """
    return Classification(mood=mood_of(text), intent=intent_of(text))
