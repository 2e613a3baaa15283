import logging
from typing import Any, Dict, List, Optional

from rich.box import HEAVY, ROUNDED, SIMPLE
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from pterocli.domain.interfaces.user_interface import UserInterface
from pterocli.domain.models.common import JsonValue

logger = logging.getLogger(__name__)

MAX_TABLE_COLUMNS = 6


def _attributes(item: Any) -> Optional[Dict[str, Any]]:
    """Returns the attribute mapping of a panel object ({object, attributes})."""
    if isinstance(item, dict):
        attributes = item.get("attributes", item)
        if isinstance(attributes, dict):
            return attributes
    return None


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def display_json(self, payload: JsonValue, **kwargs: Any) -> None:
        """Prints a response body as highlighted JSON. Empty bodies print a note."""
        if payload is None or payload == "":
            self.display_info(kwargs.get("empty_message", "Request succeeded (no content)."))
            return
        if isinstance(payload, str):
            self.console.print(payload)
            return
        self.console.print_json(data=payload)

    def display_items(self, items: List[Any], **kwargs: Any) -> None:
        """Prints aggregated list items as a table, or as JSON when `as_json=True`.

        Table columns are the scalar attributes of the first item.
        """
        title = kwargs.get("title", "Items")
        if kwargs.get("as_json") or not items:
            self.console.print_json(data=items)
            self.display_info(f"{len(items)} item(s) fetched.")
            return

        first = _attributes(items[0])
        if first is None:
            self.console.print_json(data=items)
            self.display_info(f"{len(items)} item(s) fetched.")
            return

        columns = [k for k, v in first.items() if not isinstance(v, (dict, list))][:MAX_TABLE_COLUMNS]
        table = Table(title=title, box=ROUNDED, header_style="bold cyan")
        for column in columns:
            table.add_column(column)
        for item in items:
            attributes = _attributes(item) or {}
            table.add_row(*("" if attributes.get(c) is None else str(attributes.get(c)) for c in columns))
        self.console.print(table)
        self.display_info(f"{len(items)} item(s) fetched.")

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style.

        Args:
            error_message: The error message to display.
        """
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        logger.warning(f"Display warning: {warning_message}")
        panel = Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)
