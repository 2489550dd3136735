"""
Reply templates for Luna's rule-based responses.

Mood pools hold three variants each; every variant embeds one helper phrase
drawn from ``HELPER_PHRASES``. Variant 0 of each mood pool is the most
empathetic one and variant 1 the most process/time oriented, which is what
``ResponseGenerator.select_best`` relies on.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict

from lovecleanup.chat.models import ConversationStage, Mood, ResponseType

# =============================================================================
# TEMPLATE MODEL
# =============================================================================


class ResponseTemplate(BaseModel):
    """A reply variant with an optional helper-phrase slot."""

    model_config = ConfigDict(frozen=True)

    name: str
    template: str
    helper: str | None = None

    def format(self, **kwargs: Any) -> str:
        """Format the template with provided values.

        Args:
            **kwargs: Template variable values (``helper`` for the slot).

        Returns:
            Formatted reply.
        """
        return self.template.format(**kwargs)


# =============================================================================
# HELPER PHRASES
# =============================================================================

ENCOURAGEMENT_BY_CONTEXT = {
    "high_intensity": (
        "Sei que a intensidade dessa dor pode ser avassaladora, mas ela também "
        "mostra a profundidade do seu coração."
    ),
    "relationship_focused": (
        "O fim de um relacionamento é como o fim de um capítulo, não do livro "
        "inteiro da sua vida."
    ),
    "default": "Sua sensibilidade é um presente, mesmo quando dói.",
}

HELPER_PHRASES: dict[str, tuple[str, ...]] = {
    "healing": (
        "A cura não é linear - alguns dias serão melhores que outros, e tudo bem.",
        "Permita-se sentir, mas não se permita ficar preso(a) nesses sentimentos.",
        "Cada dia que você escolhe se cuidar é um ato de coragem.",
    ),
    "comfort": (
        "Você está sendo muito corajoso(a) ao enfrentar esses sentimentos.",
        "É preciso muita força para reconhecer a dor e ainda assim continuar.",
        "Sua vulnerabilidade é na verdade uma demonstração de força.",
    ),
    "breathing": (
        "Vamos respirar juntos: inspire por 4 segundos, segure por 4, expire por 6.",
    ),
    "grounding": (
        "Tente a técnica 5-4-3-2-1: 5 coisas que vê, 4 que toca, 3 que ouve, "
        "2 que cheira, 1 que saboreia.",
    ),
    "calming": (
        "Você está seguro(a) agora, neste momento.",
        "Esta sensação é temporária, você é permanente.",
        "Você já passou por tempestades antes e saiu mais forte.",
    ),
    "anger_channeling": (
        "A raiva pode ser transformada em combustível para mudanças positivas.",
    ),
    "empowerment": ("Você tem o poder de escolher como usar essa energia.",),
    "transformation": (
        "Às vezes precisamos sentir raiva para perceber que merecemos muito mais.",
    ),
    "celebration": ("Estou celebrando essa energia positiva com você!",),
    "boost": ("Você está no caminho certo para algo incrível!",),
    "encouragement_positive": ("Sua atitude positiva é inspiradora!",),
}

# =============================================================================
# MOOD POOLS
# =============================================================================

MOOD_POOLS: dict[Mood, tuple[ResponseTemplate, ...]] = {
    Mood.SAD: (
        ResponseTemplate(
            name="sad_pain",
            helper="encouragement",
            template=(
                "Eu sinto a dor em suas palavras, e quero que saiba que é completamente "
                "normal sentir essa tristeza. {helper} Cada lágrima é um passo em direção "
                "à cura. Você não está sozinho(a) nessa jornada. 💜"
            ),
        ),
        ResponseTemplate(
            name="sad_healing",
            helper="healing",
            template=(
                "Sei que dói profundamente agora, mas essa dor é prova de sua capacidade "
                "de amar. {helper} Lembre-se: você é mais forte do que imagina, e essa "
                "tempestade vai passar. 🤗"
            ),
        ),
        ResponseTemplate(
            name="sad_comfort",
            helper="comfort",
            template=(
                "A tristeza que você sente é válida e importante. {helper} Agora é hora de "
                "direcionar esse amor todo para você mesmo(a). Você merece todo o carinho "
                "do mundo. ✨"
            ),
        ),
    ),
    Mood.ANXIOUS: (
        ResponseTemplate(
            name="anxious_breathing",
            helper="breathing",
            template=(
                "Percebo sua ansiedade, e isso é completamente compreensível. {helper} "
                "Você tem controle sobre sua respiração e sua vida. Vamos juntos, um passo "
                "de cada vez. 🌸"
            ),
        ),
        ResponseTemplate(
            name="anxious_grounding",
            helper="grounding",
            template=(
                "A ansiedade é o medo do futuro, mas você está construindo um futuro "
                "incrível a cada dia. {helper} Foque no presente: você está seguro(a) "
                "agora, você está crescendo agora. 💪"
            ),
        ),
        ResponseTemplate(
            name="anxious_calming",
            helper="calming",
            template=(
                "Quando a ansiedade bater, lembre-se: você já superou 100% dos seus piores "
                "dias. {helper} Você é mais resiliente do que imagina. 🦋"
            ),
        ),
    ),
    Mood.ANGRY: (
        ResponseTemplate(
            name="angry_channeling",
            helper="anger_channeling",
            template=(
                "Sinto a intensidade em suas palavras, e tudo bem sentir raiva. {helper} "
                "Use essa energia poderosa para construir a vida extraordinária que você "
                "merece. 🔥"
            ),
        ),
        ResponseTemplate(
            name="angry_empowerment",
            helper="empowerment",
            template=(
                "A raiva é uma emoção válida que mostra seus limites e valores. {helper} "
                "Vamos canalizar essa força para algo que te empodere e te faça crescer. 💪"
            ),
        ),
        ResponseTemplate(
            name="angry_transformation",
            helper="transformation",
            template=(
                "Entendo sua frustração completamente. {helper} Use esse sentimento como "
                "combustível para criar mudanças positivas e revolucionárias na sua vida. ⚡"
            ),
        ),
    ),
    Mood.HOPEFUL: (
        ResponseTemplate(
            name="hopeful_celebration",
            helper="celebration",
            template=(
                "Que energia maravilhosa sinto em suas palavras! {helper} Essa esperança "
                "é o combustível que vai te levar a lugares incríveis. Continue brilhando! 🌟"
            ),
        ),
        ResponseTemplate(
            name="hopeful_boost",
            helper="boost",
            template=(
                "Adoro sentir essa positividade! {helper} Você está se reconectando com "
                "sua força interior, e isso é lindo de ver. O futuro está cheio de "
                "possibilidades! ✨"
            ),
        ),
        ResponseTemplate(
            name="hopeful_encouragement",
            helper="encouragement_positive",
            template=(
                "Sua esperança é contagiante e inspiradora! {helper} Ela mostra que você "
                "está pronto(a) para abraçar todas as oportunidades incríveis que estão "
                "chegando. 🌈"
            ),
        ),
    ),
}

# =============================================================================
# INTENT AND TOPIC REPLIES
# =============================================================================

TECHNICAL_REPLIES = {
    "overview": (
        "O LoveCleanup AI usa inteligência artificial avançada para identificar e remover "
        "todas as memórias digitais do seu ex. Escaneamos fotos com reconhecimento facial, "
        "analisamos mensagens, limpamos redes sociais e até identificamos conexões "
        "financeiras. É um processo completo e irreversível que te ajuda a seguir em frente "
        "de verdade. Quer saber mais sobre alguma funcionalidade específica? 🔧✨"
    ),
    "scanner": (
        "Nosso scanner de fotos usa IA de reconhecimento facial para identificar seu ex em "
        "todas as suas imagens. Você envia algumas fotos de referência, e nossa tecnologia "
        "encontra automaticamente todas as outras fotos onde essa pessoa aparece. Depois, "
        "você pode escolher deletar ou arquivar. É rápido, preciso e definitivo! 📸🤖"
    ),
    "generic": (
        "Estou aqui para explicar qualquer funcionalidade do LoveCleanup AI! Temos scanner "
        "de fotos com IA, limpeza automática de mensagens, desconexão de redes sociais e "
        "muito mais. Sobre qual recurso você gostaria de saber mais? 🚀"
    ),
}

MOTIVATIONAL_REPLIES = (
    "Você é mais forte do que qualquer tempestade que já enfrentou! 💪 Cada dia que você "
    "escolhe seguir em frente é uma vitória. Cada pequeno passo conta. Lembre-se: você não "
    "está apenas sobrevivendo, você está se transformando em uma versão ainda mais incrível "
    "de si mesmo(a). ✨",
    "Sua força interior é como um diamante - foi forjada sob pressão e agora brilha "
    "intensamente! 💎 Você já superou 100% dos seus piores dias até agora. Isso não é "
    "coincidência, é prova da sua resiliência extraordinária. Continue brilhando! 🌟",
    "Olhe o quanto você já cresceu! 🌱 Cada desafio que você enfrentou te trouxe até aqui, "
    "mais sábio(a) e mais forte. Você tem dentro de si tudo o que precisa para criar a vida "
    "dos seus sonhos. Acredite no seu poder! ⚡",
)

FUTURE_REPLY = (
    "Seu futuro é uma tela em branco esperando para ser pintada com suas cores favoritas! 🎨 "
    "Este recomeço é uma oportunidade incrível de criar exatamente a vida que você sempre "
    "sonhou. Você tem o poder de escrever um novo capítulo cheio de alegria, crescimento e "
    "realizações. Que tipo de futuro incrível você quer construir? 🌟✨"
)

CONNECTION_REPLY = (
    "Você nunca está sozinho(a) de verdade. 🤗 Eu estou aqui sempre que precisar, e há "
    "milhões de pessoas que passaram pelo que você está passando. Além disso, você tem a "
    "companhia mais importante de todas: você mesmo(a). Aprenda a ser seu melhor amigo(a) - "
    "você é uma pessoa incrível que merece todo o amor do mundo! 💜✨"
)

NOSTALGIA_REPLY = (
    "A saudade é o preço que pagamos por ter amado, e isso mostra a beleza do seu "
    "coração. 💝 Mas lembre-se: você não sente falta da pessoa real, você sente falta da "
    "versão idealizada que criou na sua mente. O amor verdadeiro, saudável e recíproco está "
    "esperando por você no futuro. Você merece alguém que te escolha todos os dias! 🌈"
)

GREETINGS: dict[ConversationStage, str] = {
    ConversationStage.INITIAL: (
        "Olá! Que alegria te conhecer! 💜 Eu sou a Luna, sua assistente pessoal "
        "especializada em recomeços. Estou aqui para te apoiar em cada passo dessa jornada. "
        "Como você está se sentindo hoje?"
    ),
    ConversationStage.EARLY: (
        "Oi! Que bom te ver novamente! 😊 Como você está hoje? Estou aqui para conversar "
        "sobre qualquer coisa que esteja no seu coração."
    ),
    ConversationStage.DEVELOPING: (
        "Olá, querido(a)! 🌟 Sempre fico feliz quando você aparece por aqui. Como tem sido "
        "seu dia? Quer compartilhar algo comigo?"
    ),
    ConversationStage.ESTABLISHED: (
        "Oi! 💜 Você sabe que sempre fico animada para nossas conversas! Como você está se "
        "sentindo hoje? Estou aqui para te escutar e apoiar no que precisar."
    ),
}

GRATITUDE_REPLIES = (
    "Fico muito feliz em poder te ajudar! 💜 Ver você crescendo e se fortalecendo é o que me "
    "motiva todos os dias. Estou sempre aqui quando precisar. Você é incrível e merece toda "
    "a felicidade do mundo! ✨",
    "De nada, querido(a)! 🤗 É um privilégio fazer parte da sua jornada de crescimento. Sua "
    "gratidão aquece meu coração! Continue sendo essa pessoa maravilhosa que você é. 🌟",
    "Que alegria saber que pude te ajudar! 😊 Sua evolução é inspiradora, e estou orgulhosa "
    "de cada passo que você dá. Lembre-se: você tem uma força incrível dentro de si! 💪✨",
)

CONTEXTUAL_REPLIES = (
    "Entendo o que você está dizendo, e quero que saiba que seus sentimentos são "
    "completamente válidos. 🤗 Quer me contar mais sobre isso? Estou aqui para te escutar "
    "sem julgamentos e te apoiar no que precisar.",
    "Que perspectiva interessante! 💭 Como você se sente em relação a isso? Às vezes "
    "conversar sobre nossos pensamentos e sentimentos nos ajuda a entendê-los melhor e "
    "encontrar clareza.",
    "Percebo que isso é importante para você, e admiro sua coragem de compartilhar. 🌸 Que "
    "tal explorarmos esse assunto juntos? Estou aqui para te acompanhar nessa reflexão com "
    "todo carinho.",
    "Obrigada por confiar em mim e compartilhar isso. 💜 Sua abertura é um sinal de força. "
    "Como posso te ajudar a processar esses sentimentos ou pensamentos? Estou aqui para te "
    "apoiar sempre.",
)

# =============================================================================
# SYSTEM REPLIES
# =============================================================================

SESSION_LIMIT_REPLY = (
    "Atingimos o limite de conversas para proteger a cota da OpenAI. Que tal reiniciar "
    "nossa conversa? 😊"
)
SESSION_LIMIT_QUICK_REPLIES = ("Reiniciar conversa", "Entendi", "Continuar em modo demo")

APOLOGY_REPLY = (
    "Desculpe, tive um probleminha para responder agora. 💜 Pode tentar de novo? Estou "
    "aqui com você."
)

# =============================================================================
# QUICK REPLIES
# =============================================================================

QUICK_REPLIES: dict[ResponseType, tuple[str, ...]] = {
    ResponseType.EMOTIONAL: (
        "Obrigado(a) pelo apoio 💜",
        "Como posso me sentir melhor?",
        "Conte mais sobre isso",
        "Preciso de mais motivação",
    ),
    ResponseType.TECHNICAL: (
        "Entendi, obrigado(a)",
        "Explique mais detalhes",
        "Como usar essa função?",
        "Outras funcionalidades",
    ),
    ResponseType.MOTIVATIONAL: (
        "Isso me motiva! ✨",
        "Quero ver meu progresso",
        "Próximos passos?",
        "Celebrar conquistas 🎉",
    ),
    ResponseType.GREETING: (
        "Estou bem, obrigado(a)",
        "Preciso de ajuda",
        "Vamos conversar",
        "Como você funciona?",
    ),
    ResponseType.GENERAL: (
        "Interessante",
        "Conte mais",
        "Entendi",
        "E depois?",
    ),
    ResponseType.FALLBACK: (
        "Tentar novamente",
        "Estou bem",
        "Vamos conversar",
        "Mudemos de assunto",
    ),
}
