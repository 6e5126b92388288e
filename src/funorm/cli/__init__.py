"""CLI module for declared-schema reconciliation.

Reads profiles and declared entities from db.toml, then checks or
reconciles the live database against them.

Usage:
    DB_PROFILE=local funorm check
    funorm profiles
    funorm --config app/db.toml plan
    funorm reconcile --mode auto_create
    funorm -v reconcile --mode interactive_confirm
    funorm reconcile --mode interactive_confirm --yes

Commands:
    profiles   - List available profiles
    check      - Compare the database with the declared entities (no changes)
    plan       - Show the SQL that reconciliation would run (no changes)
    reconcile  - Apply corrective migrations according to the mode
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from funorm.config.loader import load_db_config
from funorm.config.models import DatabaseConfig
from funorm.exceptions import (
    FunormError,
    MigrationApplyFailedError,
    MigrationRejectedError,
    ValidationFailedError,
)
from funorm.factory import ProfileNotFoundError, get_active_profile_name, get_adapter
from funorm.prompt import ConsolePrompt, StaticPrompt
from funorm.schema.comparator import diff_model
from funorm.schema.fix import MigrationAction, plan_migrations
from funorm.schema.introspector import SchemaIntrospector
from funorm.schema.reconciler import (
    Reconciler,
    ReconciliationMode,
    ReconciliationResult,
    ReconciliationState,
)

console = Console()


# ============================================================================
# Helpers
# ============================================================================


def _config_path(args: argparse.Namespace) -> Path | None:
    config = getattr(args, "config", None)
    return Path(config) if config else None


def _load_config(args: argparse.Namespace) -> DatabaseConfig | None:
    """Load db.toml, printing the error and returning None on failure."""
    try:
        return load_db_config(_config_path(args))
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return None


def _actions_table(title: str, actions: list[MigrationAction]) -> Table:
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Action")
    table.add_column("SQL", style="cyan")
    for step, action in enumerate(actions, start=1):
        table.add_row(str(step), escape(action.describe()), escape(action.to_sql()))
    return table


def _print_result(result: ReconciliationResult) -> None:
    if result.state == ReconciliationState.CLEAN:
        console.print("[bold green]v[/bold green] Schema is in sync")
        return

    console.print(
        f"[bold green]v[/bold green] Reconciled: "
        f"{len(result.applied)} migration(s) applied "
        f"[dim]({result.execution_time_ms:.1f}ms)[/dim]"
    )
    if result.applied:
        console.print(_actions_table("Applied Migrations", result.applied))
    for discrepancy in result.plan.skipped:
        console.print(f"  [yellow]! Left unresolved:[/yellow] {escape(discrepancy.message)}")


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_reconcile(
    args: argparse.Namespace, mode: ReconciliationMode
) -> int:
    """Reconcile the configured profile in *mode*.

    Returns:
        0 on a clean or reconciled store, 1 otherwise.
    """
    config = _load_config(args)
    if config is None:
        return 1

    try:
        model = config.entity_model()
    except FunormError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    if not model:
        console.print("[yellow]No entities declared in db.toml.[/yellow]")
        return 1

    try:
        adapter = await get_adapter(
            profile_name=getattr(args, "profile", None),
            env_prefix=getattr(args, "env_prefix", ""),
            config_path=_config_path(args),
        )
    except ProfileNotFoundError as e:
        console.print(f"[yellow]{escape(str(e))}[/yellow]")
        return 1

    prompt = None
    if mode == ReconciliationMode.INTERACTIVE_CONFIRM:
        if getattr(args, "yes", False):
            prompt = StaticPrompt("yes")
        else:
            prompt = ConsolePrompt(console)

    console.print(
        f"Reconciling {len(model)} entities "
        f"[dim](mode: {mode.value})[/dim]"
    )

    try:
        reconciler = Reconciler(adapter, model, mode=mode, prompt=prompt)
        result = await reconciler.reconcile()
    except ValidationFailedError as e:
        console.print()
        console.print("[bold red]x[/bold red] Schema has drifted")
        console.print(escape(e.report.format_report()))
        return 1
    except MigrationRejectedError:
        console.print()
        console.print("[yellow]Migration rejected. No changes made.[/yellow]")
        return 1
    except MigrationApplyFailedError as e:
        console.print()
        console.print(f"[bold red]x[/bold red] {escape(str(e))}")
        if e.applied:
            console.print(_actions_table("Applied Before Failure", e.applied))
        if e.remaining:
            console.print(f"[dim]{len(e.remaining)} migration(s) not attempted[/dim]")
        return 1
    except FunormError as e:
        console.print(f"\n[red]Error: {escape(str(e))}[/red]")
        return 1
    finally:
        await adapter.close()

    console.print()
    _print_result(result)
    return 0


async def _async_plan(args: argparse.Namespace) -> int:
    """Introspect, diff and print the migration plan without applying it.

    Returns:
        0 on success (including an empty plan), 1 on failure.
    """
    config = _load_config(args)
    if config is None:
        return 1

    try:
        model = config.entity_model()
        adapter = await get_adapter(
            profile_name=getattr(args, "profile", None),
            env_prefix=getattr(args, "env_prefix", ""),
            config_path=_config_path(args),
        )
    except (FunormError, ProfileNotFoundError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        return 1

    try:
        actual = await SchemaIntrospector(adapter).introspect_all(model)
    except FunormError as e:
        console.print(f"\n[red]Error: {escape(str(e))}[/red]")
        return 1
    finally:
        await adapter.close()

    report = diff_model(model, actual)
    if report.valid:
        console.print("[bold green]v[/bold green] Schema is in sync - nothing to do")
        return 0

    console.print(escape(report.format_report()))
    console.print()
    plan = plan_migrations(
        report, model, include_alters=config.mode != ReconciliationMode.AUTO_CREATE
    )
    console.print(_actions_table("Planned Migrations", plan.actions))
    for discrepancy in plan.skipped:
        console.print(f"  [yellow]! Would leave unresolved:[/yellow] {escape(discrepancy.message)}")
    return 0


# ============================================================================
# Sync command wrappers (cmd_profiles reads local files only)
# ============================================================================


def cmd_profiles(args: argparse.Namespace) -> int:
    """List available profiles from db.toml.

    Reads only local TOML config -- no database calls.

    Returns:
        0 on success, 1 if db.toml not found or invalid.
    """
    config = _load_config(args)
    if config is None:
        return 1

    current = getattr(args, "profile", None)
    if current is None:
        try:
            current = get_active_profile_name(env_prefix=getattr(args, "env_prefix", ""))
        except ProfileNotFoundError:
            current = None

    table = Table(
        title="Database Profiles", show_header=True, header_style="bold"
    )
    table.add_column("", width=2)
    table.add_column("Profile")
    table.add_column("Schema")
    table.add_column("Description")

    for name, profile in config.profiles.items():
        marker = "[bold green]*[/bold green]" if name == current else " "
        name_style = "bold cyan" if name == current else ""
        table.add_row(
            marker,
            f"[{name_style}]{name}[/{name_style}]" if name_style else name,
            profile.schema_name,
            profile.description or "",
        )

    console.print(table)

    if current:
        console.print(f"\n[bold green]*[/bold green] = active profile")

    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """Compare the database with the declared entities, changing nothing.

    Wraps the async implementation with ``asyncio.run()``.

    Returns:
        0 if the schema matches, 1 on drift or failure.
    """
    return asyncio.run(_async_reconcile(args, ReconciliationMode.STRICT))


def cmd_plan(args: argparse.Namespace) -> int:
    """Show the migrations reconciliation would run.

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_plan(args))


def cmd_reconcile(args: argparse.Namespace) -> int:
    """Reconcile the database in the given or configured mode.

    Wraps the async implementation with ``asyncio.run()``.

    Returns:
        0 on success, 1 on drift in strict mode, rejection or failure.
    """
    mode = getattr(args, "mode", None)
    if mode is None:
        config = _load_config(args)
        if config is None:
            return 1
        mode = config.mode
    return asyncio.run(_async_reconcile(args, ReconciliationMode(mode)))


# ============================================================================
# Main entry point
# ============================================================================


def main() -> int:
    """Main CLI entry point.

    Parses command line arguments and dispatches to appropriate handler.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = argparse.ArgumentParser(
        prog="funorm",
        description="Reconcile a database schema with declared entities",
    )

    parser.add_argument(
        "--config",
        default=None,
        help="Path to db.toml (default: ./db.toml)",
    )
    parser.add_argument(
        "--env-prefix",
        default="",
        help=(
            "Prefix for environment variable lookup "
            "(e.g., --env-prefix APP_ reads APP_DB_PROFILE)"
        ),
    )
    parser.add_argument(
        "--profile",
        "-p",
        default=None,
        help="Profile to use instead of the DB_PROFILE environment variable",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log reconciliation steps",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    p_profiles = subparsers.add_parser(
        "profiles",
        help="List available profiles",
    )
    p_profiles.set_defaults(func=cmd_profiles)

    p_check = subparsers.add_parser(
        "check",
        help="Compare the database with the declared entities",
    )
    p_check.set_defaults(func=cmd_check)

    p_plan = subparsers.add_parser(
        "plan",
        help="Show the migrations reconciliation would run",
    )
    p_plan.set_defaults(func=cmd_plan)

    p_reconcile = subparsers.add_parser(
        "reconcile",
        help="Apply corrective migrations",
    )
    p_reconcile.add_argument(
        "--mode",
        choices=[m.value for m in ReconciliationMode],
        default=None,
        help="Reconciliation mode (default: [reconcile] mode in db.toml)",
    )
    p_reconcile.add_argument(
        "--yes",
        "-y",
        action="store_true",
        help="Answer yes to the interactive_confirm prompt",
    )
    p_reconcile.set_defaults(func=cmd_reconcile)

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
