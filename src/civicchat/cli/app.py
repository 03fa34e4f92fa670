"""Main CLI application using Typer."""
import asyncio

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel

from ..assistant import ChatState, ConversationStateMachine, create_conversation
from ..conversation import MessageRole
from .providers import get_config, get_transport, require_enabled

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="civicchat",
    help="Citizen-services virtual assistant client",
    no_args_is_help=True,
    add_completion=True,
)

# Console for rich output
console = Console()


def _print_debug(level: str, component: str, message: str) -> None:
    colors = {"debug": "dim", "info": "cyan", "warning": "yellow", "error": "red"}
    color = colors.get(level, "white")
    console.print(f"[{color}]{level.upper():<7}[/] [dim][[{component}]][/] {message}", highlight=False)


async def _settle_turn(machine: ConversationStateMachine) -> None:
    """Wait for the current turn and any automatic retries to finish.

    Reconnect probes keep running in the background and are not awaited.
    """
    while machine.is_loading or (machine.retry_pending and machine.state == ChatState.ERROR):
        await asyncio.sleep(0.05)


def _print_outcome(machine: ConversationStateMachine) -> bool:
    """Print the reply or the error of the last turn. Returns success."""
    if machine.state == ChatState.IDLE:
        for message in reversed(machine.messages):
            if message.role == MessageRole.ASSISTANT:
                console.print(f"[bold green]Assistant:[/bold green] {message.content}\n")
                if message.escalated_to_human:
                    console.print("[dim]Your request was forwarded to a human agent.[/dim]\n")
                break
        return True

    error = machine.last_error
    if machine.state == ChatState.DISCONNECTED:
        console.print("[yellow]Connection lost. Use /reconnect or try again later.[/yellow]")
    elif error is not None:
        console.print(f"[red]{error.user_message}[/red]")
    if error is not None:
        console.print(f"[dim]{error.describe()}[/dim]")
    return False


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question for the assistant"),
    base_url: str | None = typer.Option(
        None,
        "--base-url",
        "-u",
        help="Portal API base URL (default: CIVICCHAT_BASE_URL)"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Print transition and transport diagnostics"
    ),
):
    """Send one question and print the reply."""
    async def _ask():
        config = get_config(console, base_url=base_url, typing_delay=0.0)
        require_enabled(config, console)
        machine = create_conversation(config)
        if verbose:
            machine.set_debug_callback(_print_debug)

        try:
            await machine.send_message(question)
            await _settle_turn(machine)
            succeeded = _print_outcome(machine)
        finally:
            await machine.close()

        if not succeeded:
            raise typer.Exit(code=1)

    asyncio.run(_ask())


@app.command()
def chat(
    base_url: str | None = typer.Option(
        None,
        "--base-url",
        "-u",
        help="Portal API base URL (default: CIVICCHAT_BASE_URL)"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Print transition and transport diagnostics"
    ),
):
    """Interactive line-based chat with the assistant."""
    async def _chat():
        config = get_config(console, base_url=base_url, typing_delay=0.0)
        require_enabled(config, console)
        machine = create_conversation(config)
        if verbose:
            machine.set_debug_callback(_print_debug)

        console.print("[bold cyan]Civic Chat[/bold cyan]")
        console.print("[dim]Commands: /retry, /reconnect, /clear. Type 'exit', 'quit', or 'q' to leave[/dim]\n")

        try:
            while True:
                try:
                    user_input = console.input("[bold yellow]You:[/bold yellow] ")
                except (KeyboardInterrupt, EOFError):
                    console.print("\n[dim]Goodbye![/dim]")
                    break

                command = user_input.strip().lower()
                if not command:
                    continue
                if command in ("exit", "quit", "q"):
                    console.print("[dim]Goodbye![/dim]")
                    break

                if command == "/clear":
                    machine.clear_messages()
                    console.print("[dim]Conversation cleared.[/dim]\n")
                    continue
                if command == "/reconnect":
                    if not await machine.reconnect():
                        console.print("[yellow]Still offline.[/yellow]\n")
                        continue
                elif command == "/retry":
                    await machine.retry_last_message()
                elif machine.state not in (ChatState.IDLE, ChatState.ERROR):
                    console.print(f"[yellow]Cannot send while {machine.state.value}.[/yellow]\n")
                    continue
                else:
                    await machine.send_message(user_input)

                await _settle_turn(machine)
                _print_outcome(machine)
        finally:
            await machine.close()

    asyncio.run(_chat())


@app.command()
def health(
    base_url: str | None = typer.Option(
        None,
        "--base-url",
        "-u",
        help="Portal API base URL (default: CIVICCHAT_BASE_URL)"
    ),
):
    """Check that the assistant backend is reachable."""
    async def _health():
        config = get_config(console, base_url=base_url)
        if not config.enabled:
            console.print("[yellow]![/yellow] Assistant: DISABLED")
            return

        console.print("[green]+[/green] Assistant: ENABLED")
        console.print(f"[dim]Backend: {config.base_url}[/dim]")
        async with get_transport(config) as transport:
            reachable = await transport.probe()

        if reachable:
            console.print("[green]+[/green] Backend health check: OK")
        else:
            console.print("[red]x[/red] Backend health check: FAILED")
            raise typer.Exit(code=1)

    asyncio.run(_health())


@app.command(name="config")
def config_command():
    """Show the effective assistant configuration."""
    config = get_config(console)
    lines = [f"{name}: {value}" for name, value in config.model_dump().items()]
    console.print(Panel("\n".join(lines), title="Assistant configuration", border_style="cyan"))


@app.command(name="tui")
def tui_command(
    base_url: str | None = typer.Option(
        None,
        "--base-url",
        "-u",
        help="Portal API base URL (default: CIVICCHAT_BASE_URL)"
    ),
    reduced_motion: bool | None = typer.Option(
        None,
        "--reduced-motion/--full-motion",
        help="Force the motion preference (default: follow the terminal)"
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Show log panel with level: debug (all), info, warning, or error"
    ),
):
    """Launch the interactive TUI assistant."""
    async def _tui():
        from ..ui import run_textual_tui

        config = get_config(console, base_url=base_url)
        await run_textual_tui(
            config=config,
            log_level=log_level,
            reduced_motion=reduced_motion,
        )

    asyncio.run(_tui())


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
