# exchange_index/interface/cli.py

from typing import List
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich import box
from rich.text import Text

from exchange_index.domain.models import ScoredEntry


console = Console()


def display_welcome_banner() -> None:
    console.print(Panel.fit(
        "[bold cyan]📚 Research Exchange Search[/bold cyan]\n"
        "[dim]Keyword relevance over annotated bibliography entries[/dim]",
        box=box.DOUBLE,
        border_style="cyan",
    ))


def display_indexing_status(num_entries: int) -> None:
    console.print(f"\n[green]✓[/green] Index built — [bold]{num_entries}[/bold] research entries ready for search.\n")


def prompt_for_query() -> str:
    return Prompt.ask("\n[bold yellow]❓ Search the exchange[/bold yellow]")


def display_results(query: str, results: List[ScoredEntry]) -> None:
    console.print(f"\n[bold]Results for:[/bold] [italic]\"{query}\"[/italic]\n")

    if not results:
        console.print("[dim]No matching entries.[/dim]")
        return

    for rank, result in enumerate(results, start=1):
        entry = result.entry
        score_color = _score_to_color(result.score)

        panel_content = Text()
        panel_content.append(entry.title, style="bold white")
        if entry.author:
            panel_content.append("\n👤 ", style="dim")
            panel_content.append(entry.author)
        if entry.tags:
            panel_content.append("\n🏷  ", style="dim")
            panel_content.append(", ".join(entry.tags), style="cyan")
        panel_content.append("\n🔗 ", style="dim")
        panel_content.append(entry.url, style="underline")
        panel_content.append("\n🎯 Score: ")
        panel_content.append(str(result.score), style=score_color)
        if entry.snippet:
            panel_content.append(f"\n\n{entry.snippet}")

        console.print(Panel(
            panel_content,
            title=f"[bold]#{rank}[/bold]",
            subtitle=entry.context or None,
            border_style=score_color,
            box=box.ROUNDED,
            padding=(1, 2),
        ))


def display_error(message: str) -> None:
    console.print(f"\n[bold red]✗ Error:[/bold red] {message}\n")


def ask_continue() -> bool:
    answer = Prompt.ask(
        "\n[dim]Search again?[/dim]",
        choices=["y", "n"],
        default="y",
    )
    return answer.lower() == "y"


def _score_to_color(score: int) -> str:
    # an exact title phrase alone is worth 100, a tag hit 30
    if score >= 100:
        return "green"
    elif score >= 30:
        return "yellow"
    else:
        return "red"
