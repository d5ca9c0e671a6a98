"""CLI entrypoint for refsweep."""

import functools
import signal
import subprocess
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import click
from dotenv import load_dotenv

from refsweep import __version__
from refsweep.cleanup import (
    GitDeletionExecutor,
    collect_candidates,
    delete_refs,
    perform_maintenance,
)
from refsweep.config import load_config, parse_list, write_default_config
from refsweep.config.settings import CONFIG_FILENAMES, SweepConfig
from refsweep.errors import ConfigError, GitUnavailableError, MaintenanceError
from refsweep.logging_config import setup_logging
from refsweep.models import AggregateResult, RefItem, RefKind
from refsweep.refs import find_repo_root, get_repository_info, get_repository_stats
from refsweep.ui.cli import (
    confirm_action,
    console,
    create_progress,
    print_candidate_preview,
    print_cleanup_results,
    print_config_summary,
    print_error,
    print_failure_groups,
    print_header,
    print_info,
    print_repository_info,
    print_stats_comparison,
    print_stats_summary,
    print_success,
    print_warning,
)

# Load environment variables
load_dotenv()


def config_options(func):
    """Options shared by commands that select refs."""
    options = [
        click.option("--config", "-c", "config_path", type=click.Path(dir_okay=False),
                     help="Path to a JSON config file"),
        click.option("--days", "-d", type=click.IntRange(min=0),
                     help="Only refs older than this many days"),
        click.option("--protected", "-p", help="Protected branches, comma-separated (supports *)"),
        click.option("--force-delete", "-f", help="Branches to delete even if protected"),
        click.option("--protected-tags", help="Protected tags, comma-separated (supports *)"),
        click.option("--force-delete-tags", help="Tags to delete even if protected"),
        click.option("--remote", help="Remote name (default: origin)"),
        click.option("--targets", "-t",
                     help="Comma-separated: local-branches, remote-branches, local-tags, "
                          "remote-tags, branches, tags, all"),
        click.option("--no-tags", is_flag=True, help="Skip tags entirely"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _overrides(options: dict) -> dict:
    overrides = {
        "days": options.get("days"),
        "remote_name": options.get("remote"),
    }
    list_options = {
        "protected": "protected_branches",
        "force_delete": "force_delete_branches",
        "protected_tags": "protected_tags",
        "force_delete_tags": "force_delete_tags",
        "targets": "clean_targets",
    }
    for option, key in list_options.items():
        if options.get(option) is not None:
            overrides[key] = parse_list(options[option])
    if options.get("no_tags"):
        overrides["include_tags"] = False
    return overrides


def handle_errors(func):
    """Turn refsweep errors into a message and exit status 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ConfigError as e:
            print_error(f"Invalid configuration: {e}")
        except GitUnavailableError as e:
            print_error(str(e))
            print_info("Run refsweep inside a git repository, or pass --repo")
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or "").strip() or str(e)
            print_error(f"git failed: {detail}")
        raise SystemExit(1)

    return wrapper


def _load(ctx: click.Context, options: dict) -> tuple[Path, SweepConfig]:
    repo_root = find_repo_root(ctx.obj["repo"])
    config = load_config(
        config_path=options.get("config_path"),
        overrides=_overrides(options),
        base_dir=repo_root,
    )
    return repo_root, config


def _preview(repo_root: Path, config: SweepConfig, verbose: bool) -> dict[RefKind, list[RefItem]]:
    print_config_summary(config)
    console.print()

    with console.status("Scanning refs..."):
        candidates = collect_candidates(config, repo_root)

    if sum(len(items) for items in candidates.values()) == 0:
        return {}

    print_candidate_preview(candidates, verbose=verbose)
    return candidates


@contextmanager
def cancel_on_interrupt() -> Iterator[threading.Event]:
    """
    Turn the first Ctrl-C into a cooperative cancel.

    No new chunk is started once the event is set, and refs that were never
    attempted are reported as failures. A second Ctrl-C aborts immediately.
    """
    event = threading.Event()
    if threading.current_thread() is not threading.main_thread():
        yield event
        return

    def handle_interrupt(signum, frame):
        if event.is_set():
            raise KeyboardInterrupt
        event.set()
        print_warning("Stopping after the current batch, press Ctrl-C again to abort")

    previous = signal.signal(signal.SIGINT, handle_interrupt)
    try:
        yield event
    finally:
        signal.signal(signal.SIGINT, previous)


def _delete_all(
    repo_root: Path,
    config: SweepConfig,
    candidates: dict[RefKind, list[RefItem]],
) -> dict[RefKind, AggregateResult]:
    results: dict[RefKind, AggregateResult] = {}

    with cancel_on_interrupt() as cancel_event, create_progress() as progress:
        for kind, items in candidates.items():
            if not items:
                continue

            policy = config.policy_for(kind)
            executor = GitDeletionExecutor(
                kind,
                remote_name=config.remote_name,
                repo_path=repo_root,
                timeout=policy.timeout,
            )
            task = progress.add_task(f"Deleting {kind.label.lower()}...", total=len(items))

            def update_progress(current: int, total: int, task=task):
                progress.update(task, completed=current)

            results[kind] = delete_refs(
                items,
                kind,
                executor,
                policy=policy,
                progress_callback=update_progress,
                cancel_event=cancel_event,
            )

    return results


@click.group()
@click.version_option(version=__version__)
@click.option("--repo", "-r", default=".", type=click.Path(exists=True, file_okay=False),
              help="Repository to operate on")
@click.option("--debug", is_flag=True, help="Show git commands and internal logging")
@click.pass_context
def cli(ctx: click.Context, repo: str, debug: bool):
    """refsweep - clean up stale git branches and tags."""
    ctx.ensure_object(dict)
    ctx.obj["repo"] = repo
    setup_logging(debug=debug, console=console)


@cli.command()
@click.option("--remote", default="origin", help="Remote to show")
@click.pass_context
@handle_errors
def info(ctx: click.Context, remote: str):
    """Show repository, current branch and remote."""
    print_header("refsweep - Repository")
    print_repository_info(get_repository_info(ctx.obj["repo"], remote_name=remote))


@cli.command()
@click.pass_context
@handle_errors
def stats(ctx: click.Context):
    """Show repository statistics."""
    print_header("refsweep - Repository Statistics")
    repo_root = find_repo_root(ctx.obj["repo"])
    print_stats_summary(get_repository_stats(repo_root))


@cli.command()
@config_options
@click.option("--verbose", "-v", is_flag=True, help="List every ref instead of a summary")
@click.pass_context
@handle_errors
def preview(ctx: click.Context, verbose: bool, **options):
    """Show which refs would be deleted."""
    print_header("refsweep - Preview")
    repo_root, config = _load(ctx, options)

    candidates = _preview(repo_root, config, verbose)
    if not candidates:
        print_success("No stale branches or tags to clean")
        return

    print_info("Run 'refsweep clean' to delete them")


@cli.command()
@config_options
@click.option("--verbose", "-v", is_flag=True, help="List every ref instead of a summary")
@click.option("--preview-only", is_flag=True, help="Show candidates without deleting")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.option("--no-gc", is_flag=True, help="Skip pruning and garbage collection afterwards")
@click.pass_context
@handle_errors
def clean(ctx: click.Context, verbose: bool, preview_only: bool, yes: bool, no_gc: bool, **options):
    """Delete stale branches and tags."""
    print_header("refsweep - Clean Stale Refs")
    repo_root, config = _load(ctx, options)

    before = get_repository_stats(repo_root)
    print_stats_summary(before, title="Before Cleanup")
    console.print()

    candidates = _preview(repo_root, config, verbose)
    if not candidates:
        print_success("No stale branches or tags to clean")
        return

    if preview_only:
        print_warning("PREVIEW ONLY - nothing was deleted")
        return

    total = sum(len(items) for items in candidates.values())
    if not yes:
        if not confirm_action(f"Delete {total} refs?"):
            print_info("Cancelled")
            return

    results = _delete_all(repo_root, config, candidates)
    console.print()
    print_cleanup_results(results)

    failed = [item for result in results.values() for item in result.failed_items]
    print_failure_groups(failed)

    if config.cleanup_after_delete and not no_gc:
        cleaned_remote = any(kind.scope == "remote" for kind in results)
        with console.status("Pruning and collecting garbage..."):
            try:
                perform_maintenance(
                    remote_name=config.remote_name,
                    repo_path=repo_root,
                    prune_remote=cleaned_remote,
                    prune_tags=RefKind.REMOTE_TAG in results,
                    aggressive=config.aggressive_gc,
                )
            except MaintenanceError as e:
                print_error(f"Maintenance failed: {e}")
                raise SystemExit(1)

    after = get_repository_stats(repo_root)
    console.print()
    print_stats_comparison(before, after)

    if failed:
        print_warning(f"{len(failed)} refs could not be deleted")
        raise SystemExit(1)

    print_success(f"Deleted {total} refs")


@cli.command("init-config")
@click.option("--output", "-o", default=CONFIG_FILENAMES[0], help="Config file to create")
def init_config(output: str):
    """Write a config file with the default settings."""
    try:
        path = write_default_config(output)
    except FileExistsError as e:
        print_error(str(e))
        raise SystemExit(1)
    print_success(f"Wrote {path}")


if __name__ == "__main__":
    cli()
