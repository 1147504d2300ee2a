import asyncio
from typing import Annotated

import typer

from pickup_match_manager.cli._logging import configure_logging
from pickup_match_manager.cli._output import (
    console,
    print_error,
    print_leaderboard,
    print_match_list,
    print_match_record,
    print_rating_record,
)
from pickup_match_manager.cli.factory import build_storage_context
from pickup_match_manager.discord import load_discord_config, run_bot
from pickup_match_manager.domain.participant import raw_id
from pickup_match_manager.domain.result import Err, Ok
from pickup_match_manager.exceptions import ConfigurationError, PersistenceError

app = typer.Typer(name="pickup", help="Pickup match manager — Discord bot and rating admin CLI")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable DEBUG logging")] = False,
) -> None:
    """Pickup match manager — Discord bot and rating admin CLI."""
    configure_logging(verbose=verbose)
    if ctx.invoked_subcommand is None:
        raise typer.Exit()


_ConfigOpt = Annotated[str, typer.Option("--config", help="Path to the YAML config file")]


@app.command()
def bot(config: _ConfigOpt = "config.yaml") -> None:
    """Run the Discord bot until interrupted."""
    try:
        discord_config = load_discord_config()
        with build_storage_context(config) as ctx:
            asyncio.run(
                run_bot(
                    discord_config,
                    rating_repo=ctx.rating_repo,
                    match_repo=ctx.match_repo,
                    settings=ctx.settings,
                )
            )
    except ConfigurationError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    except KeyboardInterrupt:
        console.print("Shutting down.")


@app.command()
def leaderboard(
    limit: Annotated[int, typer.Option("--limit", "-n", help="Number of players to show")] = 10,
    config: _ConfigOpt = "config.yaml",
) -> None:
    """Show the top participants by rating."""
    with build_storage_context(config) as ctx:
        print_leaderboard(ctx.admin.leaderboard(limit))


@app.command()
def adjust(
    participant: Annotated[str, typer.Argument(help="Participant id or mention")],
    rating: Annotated[int, typer.Option("--rating", help="Rating change (negative to remove)")] = 0,
    wins: Annotated[int, typer.Option("--wins", help="Wins change (negative to remove)")] = 0,
    losses: Annotated[int, typer.Option("--losses", help="Losses change (negative to remove)")] = 0,
    config: _ConfigOpt = "config.yaml",
) -> None:
    """Manually adjust one participant's rating, wins or losses."""
    with build_storage_context(config) as ctx:
        match ctx.admin.adjust(raw_id(participant), rating=rating, wins=wins, losses=losses):
            case Ok(record):
                console.print("[bold green]Adjusted[/bold green]")
                print_rating_record(record)
            case Err(e):
                print_error(e.message)
                raise typer.Exit(code=1)


@app.command("reset-leaderboard")
def reset_leaderboard(config: _ConfigOpt = "config.yaml") -> None:
    """Zero every rating record after confirming a one-time code."""
    with build_storage_context(config) as ctx:
        code = ctx.admin.start_reset("cli")
        console.print(f"[yellow bold]This wipes every rating record.[/yellow bold] Confirmation code: {code}")
        typed = typer.prompt("Type the code to confirm")
        match ctx.admin.confirm_reset("cli", typed.strip()):
            case Ok(count):
                console.print(f"[bold green]Leaderboard reset[/bold green] ({count} records)")
            case Err(e):
                print_error(e.message)
                raise typer.Exit(code=1)


@app.command("match")
def match_cmd(
    match_id: Annotated[int | None, typer.Argument(help="Match number; omit to list recent matches")] = None,
    limit: Annotated[int, typer.Option("--limit", "-n", help="Number of recent matches to list")] = 20,
    config: _ConfigOpt = "config.yaml",
) -> None:
    """Show a stored match record, or list recent matches."""
    with build_storage_context(config) as ctx:
        try:
            if match_id is None:
                print_match_list(ctx.match_repo.list_recent(limit))
                return
            record = ctx.match_repo.get(match_id)
        except PersistenceError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e
        if record is None:
            print_error(f"no match-{match_id} recorded")
            raise typer.Exit(code=1)
        print_match_record(record)
