"""Provider factory functions for CLI.

Centralizes creation of configuration and transports from environment variables.
Hides configuration details from command implementations.
"""

from rich.console import Console

from ..config import AssistantConfig
from ..transport import ChatTransport, create_chat_transport

# Default console for output
_console = Console()


def get_config(console: Console | None = None, **overrides) -> AssistantConfig:
    """Create assistant configuration from environment variables.

    Args:
        console: Optional Rich console for output
        **overrides: Values given on the command line, taking precedence

    Raises:
        SystemExit: If a CIVICCHAT_* variable is invalid
    """
    import typer

    con = console or _console
    overrides = {key: value for key, value in overrides.items() if value is not None}
    try:
        return AssistantConfig.from_env(**overrides)
    except ValueError as e:
        # pydantic's ValidationError is a ValueError
        con.print(f"[red]Error: invalid assistant configuration: {e}[/red]")
        raise typer.Exit(code=1)


def require_enabled(config: AssistantConfig, console: Console | None = None) -> None:
    """Exit when the assistant feature flag is off.

    Raises:
        SystemExit: If the assistant is disabled
    """
    import typer

    con = console or _console
    if not config.enabled:
        con.print("[yellow]The assistant is disabled (CIVICCHAT_ENABLED=false)[/yellow]")
        raise typer.Exit(code=1)


def get_transport(config: AssistantConfig) -> ChatTransport:
    """Create the HTTP chat transport described by the configuration."""
    return create_chat_transport("http", **config.transport_config())
