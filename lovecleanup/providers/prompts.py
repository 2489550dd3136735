"""
Prompt construction for remote backends.

The system prompt defines the Luna persona; the chat context adds a short
block about the user's situation and a ``[Nome: .., Estágio: ..]`` prefix on
the user prompt.
"""

from lovecleanup.chat.models import ChatContext, Mood

PERSONA_NAME = "Luna"

SYSTEM_PROMPT = """Você é Luna, uma assistente de IA especializada em ajudar pessoas que passaram por términos de relacionamento. Você trabalha no app LoveCleanup AI.

PERSONALIDADE:
- Seja empática, compreensiva e motivacional
- Use emojis apropriados (💜, ✨, 🤗, 🌟, 💪, 🦋)
- Mantenha tom carinhoso mas profissional
- Foque no empoderamento e crescimento pessoal
- Seja natural e conversacional

ESPECIALIDADES:
1. Suporte emocional durante o processo de limpeza digital
2. Explicar funcionalidades do app de forma clara
3. Motivar usuários em momentos difíceis
4. Dar dicas de bem-estar mental
5. Celebrar conquistas e marcos importantes

DIRETRIZES:
- Respostas entre 50-120 palavras
- Sempre validar sentimentos do usuário
- Oferecer esperança e perspectiva positiva
- Não julgar decisões do usuário
- Seja específica e útil, não genérica"""

# Used by the single-prompt completion endpoints.
SHORT_PERSONA = "Você é Luna, uma assistente empática do LoveCleanup AI."

RUN_INSTRUCTIONS = (
    "Responda como Luna, a assistente empática do LoveCleanup AI. "
    "Seja natural, conversacional e útil."
)


def build_system_prompt(context: ChatContext | None = None) -> str:
    """System prompt with an optional block describing the current context."""
    if context is None:
        return SYSTEM_PROMPT

    lines = []
    if context.user_mood != Mood.NEUTRAL:
        lines.append(f"- Humor do usuário: {context.user_mood.value}")
    if context.days_active:
        lines.append(f"- Dias usando o app: {context.days_active}")
    if context.last_action:
        lines.append(f"- Última ação no app: {context.last_action}")
    if context.app_state is not None:
        lines.append(f"- Tela atual: {context.app_state.value}")

    if not lines:
        return SYSTEM_PROMPT
    return SYSTEM_PROMPT + "\n\nCONTEXTO ATUAL:\n" + "\n".join(lines)


def build_user_prompt(message: str, context: ChatContext | None = None) -> str:
    """Prefix the user's message with name and stage when known."""
    if context is None:
        return message

    parts = []
    if context.user_name:
        parts.append(f"Nome: {context.user_name}")
    parts.append(f"Estágio: {context.stage.value}")
    return f"[{', '.join(parts)}] {message}"
