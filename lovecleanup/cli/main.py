"""Main CLI entry point using Typer."""

import anyio
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from lovecleanup import __version__
from lovecleanup.chat.classifier import classify as classify_text
from lovecleanup.chat.engine import LunaChat
from lovecleanup.chat.generator import (
    ResponseGenerator,
    analyze_emotional_context,
    detect_response_type,
)
from lovecleanup.chat.models import ChatContext
from lovecleanup.chat.session import ConversationSession
from lovecleanup.cleanup.confirmation import CONFIRMATION_PHRASE, ConfirmationSession
from lovecleanup.cleanup.executor import (
    CleanupCategory,
    SimulatedCleanupExecutor,
    scan_counts,
)
from lovecleanup.core.config import get_settings
from lovecleanup.core.logs import configure_logging
from lovecleanup.providers.chain import ProviderChain, build_default_chain

app = typer.Typer(
    name="lovecleanup",
    help="LoveCleanup AI - digital breakup cleanup assistant",
    add_completion=True,
    rich_markup_mode="rich",
)

console = Console()

CATEGORY_LABELS = {
    CleanupCategory.MESSAGES: "Mensagens",
    CleanupCategory.PHOTOS: "Fotos",
    CleanupCategory.SOCIAL: "Redes sociais",
    CleanupCategory.FINANCIAL: "Financeiro",
}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold magenta]LoveCleanup AI[/bold magenta] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        "-d",
        help="Show debug logs.",
    ),
) -> None:
    """
    LoveCleanup AI - recomeçar depois de um término.

    Chat with Luna, the supportive assistant, and run the guarded
    cleanup of ex-related content.
    """
    configure_logging(level="DEBUG" if debug else "WARNING")


def _build_chat(offline: bool) -> LunaChat:
    settings = get_settings()
    if offline:
        session = ConversationSession(
            window_size=settings.lovecleanup_history_window,
            request_limit=settings.lovecleanup_session_request_limit,
        )
        return LunaChat(chain=ProviderChain([], ResponseGenerator(), session), settings=settings)
    return LunaChat(settings=settings)


@app.command()
def chat(
    offline: bool = typer.Option(
        False,
        "--offline",
        help="Use only the built-in replies, no remote backends.",
    ),
) -> None:
    """
    Start interactive chat with Luna.

    Example:
        lovecleanup chat
    """

    async def start() -> None:
        from lovecleanup.chat.engine import start_chat_cli

        await start_chat_cli(_build_chat(offline))

    anyio.run(start)


@app.command()
def ask(
    text: str = typer.Argument(..., help="Message to send to Luna"),
    name: str | None = typer.Option(None, "--name", "-n", help="Your name"),
    offline: bool = typer.Option(
        False,
        "--offline",
        help="Use only the built-in replies, no remote backends.",
    ),
) -> None:
    """
    Send a single message and print the reply.

    Example:
        lovecleanup ask "estou muito triste"
    """

    async def do_ask() -> None:
        luna = _build_chat(offline)
        try:
            context = ChatContext(user_name=name) if name else None
            response = await luna.ask(text, context)
        finally:
            await luna.aclose()

        if response is None:
            raise typer.Exit(1)

        console.print(
            Panel(
                response.text,
                title="[bold magenta]Luna[/bold magenta]",
                border_style="magenta",
            )
        )
        if response.quick_replies:
            console.print(f"[dim]Sugestões: {' | '.join(response.quick_replies)}[/dim]")
        details = f"type={response.type.value} source={response.source}"
        if response.error:
            details += f" error={response.error.value}"
        console.print(f"[dim]{details}[/dim]")

    anyio.run(do_ask)


@app.command()
def classify(
    text: str = typer.Argument(..., help="Text to classify"),
) -> None:
    """
    Show how a message is classified.

    Example:
        lovecleanup classify "estou muito triste"
    """
    result = classify_text(text)
    signals = sorted(signal.value for signal in analyze_emotional_context(text))

    table = Table(title="Classification")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="bold")
    table.add_row("Mood", result.mood.value)
    table.add_row("Intent", result.intent.value)
    table.add_row("Response type", detect_response_type(text).value)
    table.add_row("Signals", ", ".join(signals) or "-")

    console.print(table)


@app.command()
def providers() -> None:
    """
    Show the configured backends and whether they are ready.
    """

    async def do_check() -> None:
        chain = build_default_chain(get_settings())
        try:
            states = await chain.initialize()
        finally:
            await chain.aclose()

        if not states:
            console.print("[yellow]No remote backends configured; using built-in replies.[/yellow]")
            return

        state_colors = {"ready": "green", "failed": "red", "uninitialized": "dim"}
        table = Table(title="Backends")
        table.add_column("Priority", style="cyan")
        table.add_column("Name", style="bold")
        table.add_column("State")
        for provider in chain.providers:
            state = states[provider.name].value
            color = state_colors.get(state, "white")
            table.add_row(str(provider.priority), provider.name, f"[{color}]{state}[/{color}]")
        console.print(table)

    anyio.run(do_check)


@app.command()
def confirm(
    fast: bool = typer.Option(
        False,
        "--fast",
        help="Skip the simulated cleanup delays.",
    ),
) -> None:
    """
    Walk through the three-step cleanup confirmation.

    Nothing real is deleted: the cleanup is simulated.
    """
    session = ConfirmationSession(scan_counts())

    # Stage 0: risk disclosure
    table = Table(title=session.step_title)
    table.add_column("Categoria", style="cyan")
    table.add_column("Itens", justify="right")
    for category, count in session.target_counts.items():
        table.add_row(CATEGORY_LABELS[category], str(count))
    console.print(table)
    console.print(
        Panel(
            f"Você está prestes a deletar [bold red]{session.total_items} itens[/bold red] "
            "permanentemente.\nEsta ação NÃO pode ser desfeita.",
            title="[bold red]⚠️ Atenção: Ação Irreversível[/bold red]",
            border_style="red",
        )
    )
    if not typer.confirm("Continuar?", default=False):
        session.cancel()
        console.print("[dim]Limpeza cancelada.[/dim]")
        raise typer.Exit()
    session.advance()

    # Stage 1: typed confirmation
    console.print(f"\n[bold]{session.step_title}[/bold]")
    while not session.can_proceed():
        session.set_understood(typer.confirm("Entendo que esta ação é irreversível", default=False))
        session.set_typed_confirmation(
            typer.prompt(f'Digite "{CONFIRMATION_PHRASE}" para confirmar', default="", show_default=False)
        )
        if session.advance():
            break
        console.print("[yellow]Confirmação incompleta.[/yellow]")
        if not typer.confirm("Tentar novamente?", default=True):
            session.cancel()
            console.print("[dim]Limpeza cancelada.[/dim]")
            raise typer.Exit()

    # Stage 2: last chance
    console.print(f"\n[bold red]{session.step_title}[/bold red]")
    console.print(f"[red]{session.total_items} itens serão deletados permanentemente[/red]")
    if not typer.confirm(CONFIRMATION_PHRASE + "?", default=False):
        session.cancel()
        console.print("[dim]Limpeza cancelada.[/dim]")
        raise typer.Exit()

    async def no_wait(_seconds: float) -> None:
        return None

    def show_progress(category: CleanupCategory, progress: int) -> None:
        console.print(f"  {CATEGORY_LABELS[category]}: {progress}%")

    executor = SimulatedCleanupExecutor(
        sleep=no_wait if fast else None,
        on_progress=show_progress,
    )

    async def do_commit() -> None:
        results = await session.commit(executor) or []
        summary = Table(title="Limpeza concluída")
        summary.add_column("Categoria", style="cyan")
        summary.add_column("Itens removidos", justify="right")
        summary.add_column("Status")
        for result in results:
            status = "[green]ok[/green]" if result.success else "[red]falhou[/red]"
            summary.add_row(CATEGORY_LABELS[result.category], str(result.items_processed), status)
        console.print(summary)

    anyio.run(do_commit)


@app.command()
def serve(
    port: int = typer.Option(8000, "--port", "-p", help="Port for the API server"),
    host: str = typer.Option("0.0.0.0", "--host", "-h", help="Host to bind to"),
) -> None:
    """
    Start the LoveCleanup API server.

    Provides a REST API and a WebSocket that streams chat replies.

    Example:
        lovecleanup serve --port 3000
    """
    import uvicorn

    from lovecleanup.api.main import app as api_app

    configure_logging()
    console.print(
        Panel(
            f"[bold]API:[/bold]      http://localhost:{port}\n"
            f"[bold]API Docs:[/bold] http://localhost:{port}/docs\n"
            f"[bold]Health:[/bold]   http://localhost:{port}/health",
            title="[bold magenta]LoveCleanup API[/bold magenta]",
            border_style="magenta",
        )
    )

    uvicorn.run(api_app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    app()
