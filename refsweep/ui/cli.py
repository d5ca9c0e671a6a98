"""Rich-based CLI output formatting."""

from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from refsweep.cleanup.candidate_finder import group_by_date
from refsweep.models import AggregateResult, FailedItem, RefItem, RefKind
from refsweep.refs.stats import compare_stats
from refsweep.taxonomy import get_failure_summary
from refsweep.taxonomy.rules import GENERAL_HINTS


console = Console()

# Previews with more items than this are folded unless --verbose is given
FOLD_THRESHOLD = 10
# Lists longer than this are grouped by date
DATE_GROUP_THRESHOLD = 50


def print_header(title: str) -> None:
    """Print a styled header."""
    console.print()
    console.print(Panel(title, style="bold blue"))
    console.print()


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]✗[/red] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]![/yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]ℹ[/blue] {message}")


def print_repository_info(info: dict[str, Any]) -> None:
    """Print repository root, branch and remote."""
    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value")

    table.add_row("Repository", str(info.get("root", "")))
    table.add_row("Current branch", info.get("current_branch") or "(detached HEAD)")
    table.add_row(
        f"Remote ({info.get('remote_name', 'origin')})",
        info.get("remote_url") or "[dim]not configured[/dim]",
    )

    console.print(table)


def print_config_summary(config) -> None:
    """Print the settings that decide what gets deleted."""
    table = Table(title="Configuration", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Older than", f"{config.days} days")
    table.add_row("Remote", config.remote_name)
    table.add_row("Targets", ", ".join(k.value for k in config.selected_kinds()) or "none")
    table.add_row("Protected branches", ", ".join(config.protected_branches) or "-")
    if config.force_delete_branches:
        table.add_row("Force-delete branches", ", ".join(config.force_delete_branches))
    if config.protected_tags:
        table.add_row("Protected tags", ", ".join(config.protected_tags))
    if config.force_delete_tags:
        table.add_row("Force-delete tags", ", ".join(config.force_delete_tags))
    if config.source:
        table.add_row("Config file", str(config.source))

    console.print(table)


def print_stats_summary(stats: dict[str, Any], title: str = "Repository Statistics") -> None:
    """Print repository statistics."""
    table = Table(title=title, show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")

    table.add_row("Commits", str(stats.get("commits", 0)))
    table.add_row("Local branches", str(stats.get("local_branches", 0)))
    table.add_row("Remote branches", str(stats.get("remote_branches", 0)))
    table.add_row("Tags", str(stats.get("tags", 0)))
    table.add_row("Size of .git", stats.get("size", "0 B"))

    console.print(table)


def print_stats_comparison(before: dict[str, Any], after: dict[str, Any]) -> None:
    """Print a before/after table of repository statistics."""
    diff = compare_stats(before, after)

    table = Table(title="Cleanup Effect")
    table.add_column("Metric", style="cyan")
    table.add_column("Before", justify="right")
    table.add_column("After", justify="right")
    table.add_column("Change", justify="right", style="green")

    table.add_row(
        "Branches",
        str(before.get("branches", 0)),
        str(after.get("branches", 0)),
        f"-{diff['branches_removed']}",
    )
    table.add_row(
        "Tags",
        str(before.get("tags", 0)),
        str(after.get("tags", 0)),
        f"-{diff['tags_removed']}",
    )
    table.add_row(
        "Size of .git",
        before.get("size", "0 B"),
        after.get("size", "0 B"),
        f"-{diff['size_reclaimed']}",
    )

    console.print(table)


def _format_ref_line(item: RefItem) -> str:
    subject = f"{escape(item.subject)} | " if item.subject else ""
    return f"[red]✗[/red] {escape(item.name)} [dim]- {item.timestamp_display} | {subject}({escape(item.author)})[/dim]"


def print_ref_list(items: list[RefItem], indent: str = "   ") -> None:
    """Print refs, grouped by date when the list is long."""
    if len(items) <= DATE_GROUP_THRESHOLD:
        for item in items:
            console.print(f"{indent}{_format_ref_line(item)}", highlight=False)
        return

    for day, day_items in group_by_date(items).items():
        console.print(f"{indent}[dim]{day} ({len(day_items)}):[/dim]")
        for item in day_items:
            console.print(f"{indent}   {_format_ref_line(item)}", highlight=False)


def print_candidate_preview(
    candidates: dict[RefKind, list[RefItem]],
    verbose: bool = False,
) -> None:
    """
    Print refs that would be deleted.

    Large previews are folded into per-kind counts unless verbose is set.
    """
    total = sum(len(items) for items in candidates.values())

    if not verbose and total > FOLD_THRESHOLD:
        table = Table(title=f"Deletion Candidates ({total})")
        table.add_column("Kind", style="cyan")
        table.add_column("Count", justify="right", style="red")
        table.add_column("Oldest", style="dim")

        for kind, items in candidates.items():
            if items:
                table.add_row(kind.label, str(len(items)), items[0].timestamp_display)

        console.print(table)
        console.print("[dim]Use --verbose to list every ref.[/dim]")
        return

    for kind, items in candidates.items():
        if not items:
            continue
        console.print(f"\n[bold red]{kind.label} ({len(items)}):[/bold red]")
        print_ref_list(items)


def print_cleanup_results(results: dict[RefKind, AggregateResult]) -> None:
    """Print per-kind and total deletion counts."""
    table = Table(title="Cleanup Results")
    table.add_column("Kind", style="cyan")
    table.add_column("Deleted", justify="right", style="green")
    table.add_column("Failed", justify="right", style="red")

    total = AggregateResult()
    for kind, result in results.items():
        table.add_row(kind.label, str(result.success_count), str(result.failed_count))
        total = total.merge(result)

    table.add_row("[bold]Total[/bold]", str(total.success_count), str(total.failed_count))
    console.print(table)


def print_failure_groups(failed_items: list[FailedItem], name_limit: int = 5) -> None:
    """Print failures grouped by cause, with hints for known causes."""
    if not failed_items:
        return

    console.print("\n[bold red]Failed deletions by cause[/bold red]")

    for group in get_failure_summary(failed_items):
        names = group["names"]
        shown = ", ".join(names[:name_limit])
        if len(names) > name_limit:
            shown += f" [dim]... and {len(names) - name_limit} more[/dim]"

        console.print(
            f"\n  [red]{escape(group['key'])}[/red] [dim]({group['count']}, {'/'.join(group['scopes'])})[/dim]",
            highlight=False,
        )
        console.print(f"    {shown}", highlight=False)
        if group["hint"]:
            console.print(f"    [yellow]Hint:[/yellow] {group['hint']}")

    console.print("\n[yellow]Suggestions:[/yellow]")
    for idx, hint in enumerate(GENERAL_HINTS, 1):
        console.print(f"  {idx}. {hint}")


def create_progress() -> Progress:
    """Create a progress bar for long operations."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        console=console,
    )


def confirm_action(message: str) -> bool:
    """Ask for user confirmation."""
    response = console.input(f"{message} \\[y/N]: ")
    return response.lower() in ("y", "yes")
