import asyncio
import typer
from rich import print
from rich.markup import escape
from pathlib import Path
from typing import Optional
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, MofNCompleteColumn

from tagprune.classify import TagPlan, classify_tags
from tagprune.cmd.cli import config_app
from tagprune.cmd.cli.misc import git_client, tag_rules, resolve_concurrency, print_numbered
from tagprune.git import GitClient, GitCommandError
from tagprune.prune import TagResult, prune_tags
from tagprune.utils.config import get_config, load_config
from tagprune.utils.logging import setup_logging, get_logger

log = get_logger("cli")

app = typer.Typer(no_args_is_help=True, help="Prune obsolete version tags from a git remote.")

@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Write logs to file"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
):
    config = load_config(config_file)

    # Override with CLI args
    level = "DEBUG" if verbose else config.logging.level
    log_path = log_file or (Path(config.logging.file) if config.logging.file else None)
    setup_logging(level=level, log_file=log_path, verbose=verbose or config.logging.verbose)

app.add_typer(config_app, name="config", help="Configuration management")


def _sync_and_classify(git: GitClient, fetch: bool) -> TagPlan:
    """Fetch remote tags, list local ones and classify them. Exits on git errors."""
    if fetch:
        print("[cyan]Syncing remote tags...[/cyan]")
        try:
            asyncio.run(git.fetch_tags())
        except GitCommandError as e:
            print(f"[red]Error:[/red] Failed to sync remote tags: {escape(e.stderr)}")
            raise typer.Exit(1)
        print("Remote tags synced\n")

    try:
        tags = asyncio.run(git.list_tags())
    except GitCommandError as e:
        print(f"[red]Error:[/red] Failed to list tags: {escape(e.stderr)}")
        raise typer.Exit(1)

    plan = classify_tags(tags, tag_rules(get_config()))
    log.debug(f"Classified {plan.total} tags: keep={len(plan.keep)} delete={len(plan.delete)}")
    return plan


def _print_plan(plan: TagPlan) -> None:
    print(f"\nFound {plan.total} tags")
    if plan.keep:
        print(f"\n[green]Keeping {len(plan.keep)} tags:[/green]")
        print_numbered(plan.keep)
    if plan.delete:
        print(f"\n[yellow]{len(plan.delete)} tags will be deleted[/yellow]")


def _progress_hook(progress: Progress, task):
    """Advance the progress bar and show the tag that just finished."""
    def on_result(result: TagResult, done: int, total: int) -> None:
        progress.update(
            task,
            completed=done,
            description=f"{escape(result.tag)}: {result.status.value}",
        )
    return on_result


@app.command("plan")
def plan_cmd(
    no_fetch: bool = typer.Option(False, "--no-fetch", help="Skip syncing tags from the remote"),
    show_deleted: bool = typer.Option(False, "--show-deleted", help="List the tags that would be deleted"),
):
    """
    Show which tags would be kept and which deleted, without deleting anything.
    """
    config = get_config()
    plan = _sync_and_classify(git_client(config), fetch=not no_fetch)

    if plan.total == 0:
        print("No tags found.")
        return

    _print_plan(plan)
    if show_deleted and plan.delete:
        print()
        print_numbered(plan.delete)


@app.command("prune")
def prune_cmd(
    remote: Optional[str] = typer.Option(None, "--remote", "-r", help="Remote to delete tags from"),
    concurrency: Optional[int] = typer.Option(None, "--concurrency", "-j", help="Maximum concurrent deletions"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Classify and report, but delete nothing"),
    no_fetch: bool = typer.Option(False, "--no-fetch", help="Skip syncing tags from the remote"),
    show_deleted: bool = typer.Option(False, "--show-deleted", help="List the tags that will be deleted"),
):
    """
    Delete obsolete version tags from the remote.

    Examples:
        # Interactive run against origin
        tagprune prune

        # Non-interactive, 10 pushes at a time
        tagprune prune --yes -j 10
    """
    config = get_config()
    concurrency = resolve_concurrency(concurrency, config)
    git = git_client(config, remote)

    plan = _sync_and_classify(git, fetch=not no_fetch)
    if plan.total == 0:
        print("No tags found.")
        return

    _print_plan(plan)
    if not plan.delete:
        print("\nNo tags to delete.")
        return
    if show_deleted:
        print()
        print_numbered(plan.delete)

    if dry_run:
        print("\n[cyan]Dry run: nothing deleted.[/cyan]")
        return

    if config.prune.confirm and not yes:
        confirmed = typer.confirm(
            f"\nDelete these {len(plan.delete)} tags from '{git.remote}'?", default=False
        )
        if not confirmed:
            print("Operation cancelled.")
            return

    print(f"\n[cyan]Deleting {len(plan.delete)} remote tags ({concurrency} at a time)...[/cyan]\n")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
    ) as progress:
        task = progress.add_task("Deleting tags...", total=len(plan.delete))
        report = asyncio.run(prune_tags(
            git,
            plan.delete,
            concurrency=concurrency,
            on_result=_progress_hook(progress, task),
        ))

    print(f"\n{report.summary()}")

    if report.local_only:
        print(f"\n[yellow]Removed {len(report.local_only)} local tags missing on the remote:[/yellow]")
        print_numbered(r.tag for r in report.local_only)

    if report.failed:
        print(f"\n[red]{len(report.failed)} tags could not be deleted:[/red]")
        print_numbered(f"{r.tag} - {r.error}" for r in report.failed)

    print("\nVerify with: git tag -l")

    if report.failed:
        raise typer.Exit(1)


def main():
    app()

if __name__ == "__main__":
    main()
