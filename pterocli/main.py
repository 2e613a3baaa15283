"""Main entry point for the pterocli application.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Any, Awaitable, Callable, Dict, List, Optional

import typer

from pterocli.core.command_handler import CommandHandler
from pterocli.core.services.transport_service import TransportService
from pterocli.domain.models.common import ApiType
from pterocli.infrastructure.cli.display import ConsoleDisplay
from pterocli.infrastructure.config.credentials import SettingsCredentialResolver
from pterocli.infrastructure.config.settings import (
    DEFAULT_CONFIG_FILE,
    get_http_timeout,
    get_logging_settings,
    get_rate_limit_settings,
    get_retry_settings,
    load_configuration,
)
from pterocli.infrastructure.http.request_executor import RequestExecutor
from pterocli.infrastructure.monitoring.logger_setup import setup_logging
from pterocli.infrastructure.resilience.api_retry import ApiRetryService
from pterocli.infrastructure.resilience.rate_limiter import RateLimiter
from pterocli.infrastructure.resilience.window_store import RateWindowStore

logger = logging.getLogger(__name__)

# --- Dependency Injection Container (Manual) ---

_dependencies: Optional[Dict[str, Any]] = None


def create_dependencies(config_file: Path = DEFAULT_CONFIG_FILE) -> Dict[str, Any]:
    """Creates and wires up the process-wide dependencies.

    This acts as the Composition Root. Per-command objects that hold an
    event-loop-bound HTTP client are built in `run_with_handler` instead.
    """
    # 1. Load Configuration First
    load_configuration(config_file=config_file, force=True)
    setup_logging(**get_logging_settings())
    logger.debug("Configuration and logging initialized.")

    # 2. Instantiate Infrastructure Adapters & Services
    rate_settings = get_rate_limit_settings()
    dependencies: Dict[str, Any] = {
        'ui': ConsoleDisplay(),
        'credential_resolver': SettingsCredentialResolver(),
        'rate_limiter': RateLimiter(
            client_budget=rate_settings['client_budget'],
            application_budget=rate_settings['application_budget'],
            window_seconds=rate_settings['window_seconds'],
            store=RateWindowStore(
                max_entries=rate_settings['max_tracked_credentials'],
                idle_ttl=rate_settings['window_seconds'] * 2,
            ),
        ),
    }
    logger.debug("All dependencies initialized successfully.")
    return dependencies


def get_dependencies() -> Dict[str, Any]:
    global _dependencies
    if _dependencies is None:
        _dependencies = create_dependencies()
    return _dependencies


def build_executor() -> RequestExecutor:
    return RequestExecutor(timeout=get_http_timeout())


async def run_with_handler(action: Callable[[CommandHandler], Awaitable[bool]]) -> bool:
    """Builds the per-command transport stack, runs `action` and closes the HTTP client."""
    dependencies = get_dependencies()
    executor = build_executor()
    retry_service = ApiRetryService(
        rate_limiter=dependencies['rate_limiter'],
        executor=executor,
        **get_retry_settings(),
    )
    transport = TransportService(dependencies['credential_resolver'], retry_service)
    handler = CommandHandler(transport=transport, ui=dependencies['ui'])
    try:
        return await action(handler)
    finally:
        await executor.aclose()


def run_command(action: Callable[[CommandHandler], Awaitable[bool]]) -> None:
    """Runs an async command from a sync Typer command and maps failure to exit code 1."""
    succeeded = asyncio.run(run_with_handler(action))
    if not succeeded:
        raise typer.Exit(code=1)


# --- Typer App Definition ---
app = typer.Typer(
    name="pterocli",
    help="pterocli: rate limited, retrying access to the Pterodactyl Panel Client and Application APIs.",
    add_completion=False,
)

# --- Shared Options ---
ApiOption = Annotated[
    ApiType,
    typer.Option("--api", "-a", case_sensitive=False, help="Which sub-API to call."),
]
QueryOption = Annotated[
    Optional[List[str]],
    typer.Option("--query", "-q", help="Query parameter as name=value. Repeatable."),
]
CredentialIndexOption = Annotated[
    int,
    typer.Option("--credential-index", "-c", min=0, help="Index of the configured credential set."),
]


@app.command()
def request(
    method: Annotated[str, typer.Argument(help="HTTP method: GET, POST, PUT, PATCH or DELETE.")],
    endpoint: Annotated[str, typer.Argument(help="Endpoint below the API base, e.g. /servers.")] = "",
    api: ApiOption = ApiType.CLIENT,
    body: Annotated[Optional[str], typer.Option("--body", "-b", help="JSON request body.")] = None,
    query: QueryOption = None,
    header: Annotated[
        Optional[List[str]],
        typer.Option("--header", "-H", help="Header override as Name:Value. Repeatable."),
    ] = None,
    credential_index: CredentialIndexOption = 0,
):
    """Send one request and print the JSON response."""
    run_command(lambda handler: handler.handle_request(
        method, endpoint, api_type=api, body=body, query=query, headers=header,
        credential_index=credential_index,
    ))


@app.command(name="list-all")
def list_all_command(
    endpoint: Annotated[str, typer.Argument(help="Paginated list endpoint, e.g. /servers.")],
    api: ApiOption = ApiType.CLIENT,
    query: QueryOption = None,
    credential_index: CredentialIndexOption = 0,
    as_json: Annotated[bool, typer.Option("--json", help="Print items as JSON instead of a table.")] = False,
):
    """Fetch every page of a list endpoint and print all items."""
    run_command(lambda handler: handler.handle_list_all(
        endpoint, api_type=api, query=query, credential_index=credential_index, as_json=as_json,
    ))


@app.command()
def check(
    api: ApiOption = ApiType.CLIENT,
    credential_index: CredentialIndexOption = 0,
):
    """Verify that the configured credentials are accepted by the panel."""
    run_command(lambda handler: handler.handle_check(api_type=api, credential_index=credential_index))


@app.callback()
def main_callback(
    config: Annotated[
        Optional[Path],
        typer.Option("--config", help="YAML configuration file.", dir_okay=False),
    ] = None,
):
    """Load configuration before any command runs."""
    global _dependencies
    _dependencies = create_dependencies(config_file=config or DEFAULT_CONFIG_FILE)


# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()
