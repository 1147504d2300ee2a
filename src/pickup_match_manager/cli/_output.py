from rich.console import Console
from rich.table import Table

from pickup_match_manager.domain.match_record import MatchRecord
from pickup_match_manager.domain.rating_record import RatingRecord

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)


def print_error(message: str) -> None:
    err_console.print(f"[red bold]Error:[/red bold] {message}")


def _streak(streak: int) -> str:
    if streak > 0:
        return f"W{streak}"
    if streak < 0:
        return f"L{-streak}"
    return "—"


def print_leaderboard(records: list[RatingRecord]) -> None:
    if not records:
        console.print("No rating records.")
        return
    table = Table(show_edge=False, pad_edge=False)
    table.add_column("#", justify="right")
    table.add_column("Participant")
    table.add_column("Rating", justify="right")
    table.add_column("W-L", justify="right")
    table.add_column("Streak", justify="right")
    table.add_column("Last 10")
    for rank, record in enumerate(records, start=1):
        table.add_row(
            str(rank),
            record.participant_id,
            str(record.rating),
            record.record,
            _streak(record.streak),
            " ".join(record.last_results),
        )
    console.print(table)


def print_rating_record(record: RatingRecord) -> None:
    console.print(f"[bold]{record.participant_id}[/bold]")
    console.print(f"  Rating: {record.rating}")
    console.print(f"  Record: {record.record} (streak {_streak(record.streak)})")
    console.print(f"  Last 10: {' '.join(record.last_results) or '—'}")


def print_match_list(records: list[MatchRecord]) -> None:
    if not records:
        console.print("No matches recorded.")
        return
    table = Table(show_edge=False, pad_edge=False)
    table.add_column("Match")
    table.add_column("Status")
    table.add_column("Format")
    table.add_column("Created")
    table.add_column("Settled")
    for record in records:
        table.add_row(
            record.name,
            record.status + (" (forced)" if record.forced else ""),
            str(record.draft_format) if record.draft_format else "—",
            record.created_at.strftime("%Y-%m-%d %H:%M"),
            record.settled_at.strftime("%Y-%m-%d %H:%M") if record.settled_at else "—",
        )
    console.print(table)


def print_match_record(record: MatchRecord) -> None:
    console.print(f"[bold]{record.name}[/bold]  status: {record.status}" + (" (forced)" if record.forced else ""))
    console.print(f"  Draft format: {record.draft_format or '—'}")
    console.print(f"  Team 1: {', '.join(record.team_a) or '—'}")
    console.print(f"  Team 2: {', '.join(record.team_b) or '—'}")
    if record.pick_log:
        console.print("  Picks:")
        for entry in record.pick_log:
            suffix = " (auto)" if entry.auto else ""
            console.print(f"    {entry.turn}. {entry.picker} → {entry.pickee}{suffix}")
    if record.rating_deltas:
        table = Table(show_edge=False, pad_edge=False)
        table.add_column("Participant")
        table.add_column("Δ", justify="right")
        for pid, delta in record.rating_deltas.items():
            color = "green" if delta > 0 else "red" if delta < 0 else "white"
            table.add_row(pid, f"[{color}]{delta:+d}[/{color}]")
        console.print(table)
    if record.rating_error:
        console.print(f"  [red]Rating error:[/red] {record.rating_error}")
