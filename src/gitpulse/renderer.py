"""Rich-based terminal report renderer with JSON/CSV support."""

from __future__ import annotations

import csv
import io
import json
from dataclasses import asdict

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import SummaryStats


def _format_number(n: int) -> str:
    return f"{n:,}"


def _make_inline_bar(count: int, max_count: int, width: int = 15) -> str:
    if max_count == 0:
        return ""
    filled = round(count / max_count * width)
    return "█" * filled


def _write_to_file(content: str, output_file: str) -> None:
    """Write content to a file and print confirmation."""
    with open(output_file, "w", encoding="utf-8") as f:
        f.write(content)
    Console().print(f"Saved to {output_file}")


def render_summary(
    stats: SummaryStats,
    period: tuple[str, str] | None = None,
    top_n: int = 10,
    failed_groups: list[str] | None = None,
    failed_repositories: list[str] | None = None,
    output_file: str | None = None,
) -> None:
    """Render SummaryStats to the terminal using rich."""
    if output_file:
        string_io = io.StringIO()
        console = Console(file=string_io, force_terminal=False, width=120)
    else:
        console = Console()

    header = "gitpulse"
    if period:
        header += f"\nPeriod: {period[0]} ~ {period[1]}"
    console.print(Panel(Text(header, justify="center"), style="bold cyan"))
    console.print()

    if failed_groups:
        console.print(
            f"[bold yellow]Warning:[/bold yellow] Failed to fetch commits for "
            f"{len(failed_groups)} credential group(s): {', '.join(failed_groups)}. "
            "Totals may be incomplete."
        )
        console.print()

    if failed_repositories:
        console.print(
            f"[bold yellow]Warning:[/bold yellow] Failed to fetch commits for "
            f"{len(failed_repositories)} repo(s): {', '.join(failed_repositories)}"
        )
        console.print()

    console.print("[bold]Summary[/bold]")
    summary = Table(show_header=False, box=None, padding=(0, 2))
    summary.add_column("label", style="dim")
    summary.add_column("value", style="bold")
    summary.add_row("Total Commits", _format_number(stats.total_commits))
    summary.add_row("Authors", _format_number(stats.unique_authors))
    summary.add_row("Repositories", _format_number(len(stats.repositories)))
    summary.add_row("Most Active Day", stats.most_active_day or "-")
    summary.add_row("Commits / Day", f"{stats.average_commits_per_day:.1f}")
    if stats.total_additions or stats.total_deletions:
        summary.add_row("Additions", _format_number(stats.total_additions))
        summary.add_row("Deletions", _format_number(stats.total_deletions))
    console.print(summary)
    console.print()

    if stats.top_repositories:
        console.print("[bold]Top Repositories[/bold]")
        repo_table = Table(show_header=True, header_style="bold")
        repo_table.add_column("#", justify="right")
        repo_table.add_column("Repo", no_wrap=True)
        repo_table.add_column("Commits", justify="right")
        for i, repo in enumerate(stats.top_repositories, 1):
            repo_table.add_row(str(i), repo.name, _format_number(repo.commits))
        console.print(repo_table)
        console.print()

    if stats.commits_by_author:
        console.print(f"[bold]Top Authors (top {top_n})[/bold]")
        author_table = Table(show_header=True, header_style="bold")
        author_table.add_column("#", justify="right")
        author_table.add_column("Author")
        author_table.add_column("Commits", justify="right")
        ranked = sorted(stats.commits_by_author.items(), key=lambda x: x[1], reverse=True)
        for i, (author, count) in enumerate(ranked[:top_n], 1):
            author_table.add_row(str(i), author, _format_number(count))
        console.print(author_table)
        console.print()

    if stats.commits_by_day:
        console.print("[bold]Commits by Day[/bold]")
        day_table = Table(show_header=True, header_style="bold")
        day_table.add_column("Date", no_wrap=True)
        day_table.add_column("Commits", justify="right")
        day_table.add_column("Bar")
        max_day = max(stats.commits_by_day.values())
        for day in sorted(stats.commits_by_day):
            count = stats.commits_by_day[day]
            day_table.add_row(day, _format_number(count), _make_inline_bar(count, max_day))
        console.print(day_table)
        console.print()

    if output_file:
        _write_to_file(string_io.getvalue(), output_file)


def render_json(stats: SummaryStats, output_file: str | None = None) -> None:
    """Render SummaryStats as JSON."""
    content = json.dumps(asdict(stats), indent=2, ensure_ascii=False)
    if output_file:
        _write_to_file(content, output_file)
    else:
        print(content)


def render_csv(stats: SummaryStats, output_file: str | None = None) -> None:
    """Render commits per author as CSV."""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(["author", "commits"])
    for author, count in sorted(stats.commits_by_author.items(), key=lambda x: x[1], reverse=True):
        writer.writerow([author, count])
    content = output.getvalue()
    if output_file:
        _write_to_file(content, output_file)
    else:
        print(content, end="")
