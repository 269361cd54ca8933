"""Main CLI application using Typer."""
import asyncio
from pathlib import Path

import typer
import uvicorn
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from ..client import ChatSession
from ..config import credential_from_env, get_settings
from ..gateway import create_app
from ..llm.registry import ProviderKind, get_all_models, resolve
from ..logging_config import setup_logging
from ..store import ConversationBusyError
from .providers import get_gateway_client, get_store

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="polychat",
    help="Unified streaming chat across OpenAI, Anthropic, DeepSeek and Google models",
    no_args_is_help=True,
    add_completion=True,
)

# Console for rich output
console = Console()


@app.command()
def serve(
    host: str = typer.Option(None, "--host", help="Bind address (default: POLYCHAT_HOST)"),
    port: int = typer.Option(None, "--port", "-p", help="Port (default: POLYCHAT_PORT)"),
    log_level: str = typer.Option(None, "--log-level", "-l", help="Logging level"),
):
    """Run the streaming chat gateway."""
    settings = get_settings()
    setup_logging(log_level or settings.log_level)

    host = host or settings.host
    port = port or settings.port
    console.print(f"[bold cyan]polychat gateway[/bold cyan] on http://{host}:{port}")

    uvicorn.run(create_app(settings=settings), host=host, port=port, log_config=None)


@app.command()
def models():
    """List registered models and whether a credential is configured."""
    table = Table(title="Registered Models")
    table.add_column("", justify="center")
    table.add_column("Model", style="cyan")
    table.add_column("Name")
    table.add_column("Provider", style="magenta")
    table.add_column("Key", justify="center")

    for config in get_all_models():
        has_key = credential_from_env(config.provider) is not None
        table.add_row(
            config.icon,
            config.name,
            config.display_name,
            config.provider.display_name,
            "[green]SET[/green]" if has_key else "[yellow]NOT SET[/yellow]",
        )

    console.print(table)
    console.print("[dim]Unregistered models are answered with a canned demo reply.[/dim]")


@app.command()
def chat(
    model: str = typer.Option(None, "--model", "-m", help="Model for a new conversation"),
    url: str = typer.Option(None, "--url", "-u", help="Gateway base URL"),
    new: bool = typer.Option(False, "--new", "-n", help="Start a new conversation"),
    storage: Path = typer.Option(None, "--storage", "-s", help="Storage directory"),
):
    """Interactive chat against a running gateway."""
    async def _chat():
        settings = get_settings()
        setup_logging("WARNING", console)
        store = get_store(settings, storage)

        try:
            await store.backend.connect()
            await store.load()

            if model and resolve(model) is None:
                console.print(f"[yellow]Warning: {model} is not registered, replies will be canned[/yellow]")

            conversation = store.get_current_conversation()
            if new or conversation is None or (model and conversation.model != model):
                store.create_conversation(model)
                conversation = store.get_current_conversation()

            console.print(f"[bold cyan]{conversation.title}[/bold cyan] [dim]({conversation.model})[/dim]")
            console.print("[dim]Type 'exit', 'quit', or 'q' to leave; '/clear' to clear history[/dim]\n")

            for message in conversation.messages:
                style = "bold yellow" if message.role == "user" else "bold green"
                console.print(f"[{style}]{message.role}:[/{style}] {message.content}")

            async with get_gateway_client(url, settings) as client:
                session = ChatSession(store, client)
                while True:
                    try:
                        user_input = console.input("[bold yellow]You:[/bold yellow] ")

                        if not user_input.strip():
                            continue

                        if user_input.strip().lower() in ('exit', 'quit', 'q'):
                            console.print("[dim]Goodbye![/dim]")
                            break

                        if user_input.strip() == "/clear":
                            store.clear_conversation(conversation.id)
                            await store.save()
                            console.print("[dim]Conversation cleared.[/dim]")
                            continue

                        console.print("[bold green]Assistant:[/bold green] ", end="")
                        await session.send_message(
                            user_input,
                            on_delta=lambda delta: console.print(delta, end="", markup=False, highlight=False),
                        )
                        console.print("\n")

                    except ConversationBusyError as e:
                        console.print(f"[yellow]{e}[/yellow]")
                    except (KeyboardInterrupt, EOFError):
                        console.print("\n[dim]Goodbye![/dim]")
                        break

        except Exception as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(code=1)
        finally:
            await store.backend.disconnect()

    asyncio.run(_chat())


@app.command()
def history(
    storage: Path = typer.Option(None, "--storage", "-s", help="Storage directory"),
    delete: str = typer.Option(None, "--delete", "-d", help="Delete a conversation by id"),
    clear: bool = typer.Option(False, "--clear", help="Delete every conversation"),
):
    """List, delete or clear persisted conversations."""
    async def _history():
        settings = get_settings()
        store = get_store(settings, storage)

        try:
            await store.backend.connect()
            await store.load()

            if clear:
                if not typer.confirm("Delete every conversation?"):
                    console.print("[dim]Aborted.[/dim]")
                    return
                store.clear_all_conversations()
                await store.save()
                console.print("[green]All conversations deleted.[/green]")
                return

            if delete:
                if not store.delete_conversation(delete):
                    console.print(f"[red]Error: no conversation {delete}[/red]")
                    raise typer.Exit(code=1)
                await store.save()
                console.print(f"[green]Deleted conversation {delete}.[/green]")
                return

            if not store.conversations:
                console.print("[dim]No conversations yet.[/dim]")
                return

            table = Table(title="Conversations")
            table.add_column("", justify="center")
            table.add_column("ID", style="dim")
            table.add_column("Title", style="cyan")
            table.add_column("Model")
            table.add_column("Messages", justify="right")
            table.add_column("Updated")

            for conversation in store.conversations:
                config = resolve(conversation.model)
                marker = "*" if conversation.id == store.current_conversation_id else ""
                table.add_row(
                    marker,
                    conversation.id,
                    conversation.title,
                    f"{config.icon} {config.display_name}" if config else conversation.model,
                    str(len(conversation.messages)),
                    conversation.updated_at.astimezone().strftime("%Y-%m-%d %H:%M"),
                )

            console.print(table)

        finally:
            await store.backend.disconnect()

    asyncio.run(_history())


@app.command()
def health():
    """Check which provider credentials are configured."""
    for kind in ProviderKind:
        if credential_from_env(kind):
            console.print(f"[green]+[/green] {kind.display_name} API key: SET")
        else:
            console.print(f"[yellow]![/yellow] {kind.display_name} API key: NOT SET ({' or '.join(kind.env_vars)})")


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
