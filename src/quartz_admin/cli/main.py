"""quartz-admin CLI — main entry point."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

import click
from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt

from quartz_admin.cli import views
from quartz_admin.cli.render import render_json, render_table
from quartz_admin.config import DEFAULT_DRIVER, DEFAULT_TABLE_PREFIX, Settings
from quartz_admin.core.service import DeleteResult, QuartzService, ViewOutcome, key_records
from quartz_admin.core.store import Key, QuartzStore
from quartz_admin.errors import QuartzAdminError, UserCancelled

console = Console()
err_console = Console(stderr=True)

FILTERS = "None (optional: --group, --name)"
GROUP_OR_NAME = "At least one of: --group, --name"

# (command, description, required parameters)
COMMANDS: list[tuple[str, str, str]] = [
    ("help", "Show this help message", "None"),
    ("list-jobs", "List all jobs with optional group/name filters", FILTERS),
    ("list-triggers", "List all triggers with optional group/name filters", FILTERS),
    ("list-running", "List fired (currently executing) triggers", FILTERS),
    ("list-paused", "List paused trigger groups", "None (optional: --group)"),
    ("list-schedulers", "List scheduler instances and their check-ins", "None"),
    ("view-job", "View detailed information about a job", GROUP_OR_NAME),
    ("view-trigger", "View detailed information about a trigger", GROUP_OR_NAME),
    ("delete-job", "Delete a job and its triggers", GROUP_OR_NAME),
    ("delete-trigger", "Delete a trigger", GROUP_OR_NAME),
    ("clear", "Clear all Quartz tables", "--force or confirmation"),
    ("serve", "Start the REST API", "None (optional: --host, --port)"),
]

COMMON_OPTIONS = """\
Common Options:
  --group, -g     : Filter by group name (partial match)
  --name, -n      : Filter by name (partial match)
  --trigger, -t   : Trigger name filter for trigger commands
  --scheduler, -S : Restrict every command to one scheduler name
  --force, -f     : Skip confirmation prompts
  --json          : Output in JSON format
  --verbose, -v   : Enable verbose output"""


@dataclass
class Invocation:
    service: QuartzService
    group: str | None
    name: str | None
    trigger: str | None
    force: bool
    as_json: bool

    @property
    def trigger_name(self) -> str | None:
        return self.name or self.trigger

    @property
    def out(self) -> Console:
        """Console for status messages; stderr when stdout carries JSON."""
        return err_console if self.as_json else console


def _configure_logging(verbose: bool, settings: Settings) -> None:
    level = getattr(logging, settings.log_level.upper(), logging.WARNING)
    if verbose:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _show_help() -> None:
    console.print("Quartz CLI - Available Commands:\n")
    click.echo(render_table(["Command", "Description", "Required Parameters"], COMMANDS))
    click.echo()
    click.echo(COMMON_OPTIONS)


def _ask_yes(out: Console, warning: str) -> bool:
    out.print(f"\n[bold yellow]WARNING:[/bold yellow] {warning}")
    out.print("This operation cannot be undone.")
    try:
        answer = Prompt.ask(
            "Are you sure you want to continue? (y/N)", default="", show_default=False, console=out
        )
    except EOFError:
        return False
    return answer.strip().lower() == "y"


def _show_matches(
    inv: Invocation, title: str, columns: list[tuple[str, views.Getter]], records: list[dict]
) -> None:
    inv.out.print(f"\n{title}")
    inv.out.print(views.list_table(columns, records), markup=False, highlight=False, soft_wrap=True)


def _emit_list(
    inv: Invocation, records: list[dict], columns: list[tuple[str, views.Getter]], empty: str
) -> None:
    if inv.as_json:
        click.echo(render_json(records))
    elif not records:
        inv.out.print(empty)
    else:
        click.echo(views.list_table(columns, records))


def _emit_deleted(inv: Invocation, kind: str, result: DeleteResult) -> None:
    if inv.as_json:
        click.echo(
            render_json(
                {
                    "deleted": len(result.matches),
                    "matches": key_records(result.matches),
                    "rows": result.counts,
                }
            )
        )
        return
    for table, rows in result.counts.items():
        console.print(f"Deleted {rows} rows from {table}")
    console.print(f"[green]Successfully deleted {len(result.matches)} {kind}(s)[/green]")


# ── commands ───────────────────────────────────────────────────────────────────


def list_jobs(inv: Invocation) -> None:
    records = inv.service.list_jobs(inv.group, inv.name)
    _emit_list(inv, records, views.JOB_COLUMNS, "No jobs found.")


def list_triggers(inv: Invocation) -> None:
    records = inv.service.list_triggers(inv.group, inv.trigger_name)
    _emit_list(inv, records, views.TRIGGER_COLUMNS, "No triggers found.")


def list_running(inv: Invocation) -> None:
    records = inv.service.list_running(inv.group, inv.name)
    _emit_list(inv, records, views.RUNNING_COLUMNS, "No running jobs found.")


def list_paused(inv: Invocation) -> None:
    records = inv.service.list_paused(inv.group)
    _emit_list(inv, records, views.PAUSED_COLUMNS, "No paused trigger groups found.")


def list_schedulers(inv: Invocation) -> None:
    records = inv.service.list_schedulers()
    _emit_list(inv, records, views.SCHEDULER_COLUMNS, "No schedulers found.")


def view_job(inv: Invocation) -> None:
    result = inv.service.view_job(inv.group, inv.name)
    if result.outcome is ViewOutcome.NOT_FOUND:
        inv.out.print("No jobs found matching the criteria")
    elif result.outcome is ViewOutcome.LIST:
        _emit_list(inv, result.rows, views.JOB_COLUMNS, "No jobs found.")
    elif inv.as_json:
        click.echo(render_json(result.detail))
    else:
        detail = result.detail
        click.echo(views.detail_table(views.JOB_PROPERTIES, detail))
        if detail["triggers"]:
            click.echo()
            click.echo(views.list_table(views.TRIGGER_COLUMNS, detail["triggers"]))


def view_trigger(inv: Invocation) -> None:
    result = inv.service.view_trigger(inv.group, inv.trigger_name)
    if result.outcome is ViewOutcome.NOT_FOUND:
        inv.out.print("No triggers found matching the criteria")
    elif result.outcome is ViewOutcome.LIST:
        _emit_list(inv, result.rows, views.TRIGGER_COLUMNS, "No triggers found.")
    elif inv.as_json:
        click.echo(render_json(result.detail))
    else:
        click.echo(views.detail_table(views.TRIGGER_PROPERTIES, result.detail))


def delete_job(inv: Invocation) -> None:
    def confirm(keys: list[Key]) -> bool:
        records = inv.service.list_jobs(inv.group, inv.name)
        _show_matches(inv, "Multiple jobs found matching the criteria:", views.JOB_COLUMNS, records)
        warning = f"This will delete ALL {len(keys)} matching jobs and their triggers!"
        return _ask_yes(inv.out, warning)

    result = inv.service.delete_jobs(inv.group, inv.name, force=inv.force, confirm=confirm)
    if not result.found:
        inv.out.print("No jobs found matching the criteria")
        return
    _emit_deleted(inv, "job", result)


def delete_trigger(inv: Invocation) -> None:
    name = inv.trigger_name

    def confirm(keys: list[Key]) -> bool:
        records = inv.service.list_triggers(inv.group, name)
        title = "Multiple triggers found matching the criteria:"
        _show_matches(inv, title, views.TRIGGER_COLUMNS, records)
        return _ask_yes(inv.out, f"This will delete ALL {len(keys)} matching triggers!")

    result = inv.service.delete_triggers(inv.group, name, force=inv.force, confirm=confirm)
    if not result.found:
        inv.out.print("No triggers found matching the criteria")
        return
    _emit_deleted(inv, "trigger", result)


def clear(inv: Invocation) -> None:
    scope = inv.service.store.scheduler_name
    target = f"scheduler '{scope}'" if scope else "ALL schedulers"
    warning = f"This will delete all Quartz data for {escape(target)}!"
    counts = inv.service.clear(force=inv.force, confirm=lambda: _ask_yes(inv.out, warning))
    if inv.as_json:
        click.echo(render_json({"cleared": counts}))
        return
    for table, rows in counts.items():
        console.print(f"Cleared {rows} rows from {table}")
    console.print("\n[green]All tables cleared successfully.[/green]")


HANDLERS: dict[str, Callable[[Invocation], None]] = {
    "list-jobs": list_jobs,
    "list-triggers": list_triggers,
    "list-running": list_running,
    "list-paused": list_paused,
    "list-schedulers": list_schedulers,
    "view-job": view_job,
    "view-trigger": view_trigger,
    "delete-job": delete_job,
    "delete-trigger": delete_trigger,
    "clear": clear,
}


def _serve(settings: Settings, host: str | None, port: int | None) -> None:
    import uvicorn

    from quartz_admin.api.app import create_app

    host = host or settings.api_host
    port = port or settings.api_port
    console.print(f"Starting Quartz API on {host}:{port}...")
    uvicorn.run(
        create_app(settings),
        host=host,
        port=port,
        log_level=settings.log_level.lower(),
    )


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="quartz-admin")
@click.option("-u", "--url", help="Database URL (SQLAlchemy or jdbc: form)")
@click.option("-U", "--user", help="Database username")
@click.option("-P", "--password", help="Database password")
@click.option("-d", "--driver", help=f"SQLAlchemy driver [default: {DEFAULT_DRIVER}]")
@click.option("-s", "--schema", help="Database schema containing Quartz tables")
@click.option("-p", "--prefix", help=f"Quartz table prefix [default: {DEFAULT_TABLE_PREFIX}]")
@click.option("-c", "--command", default="help", show_default=True, help="Command to execute")
@click.option("-g", "--group", help="Group filter for jobs or triggers")
@click.option("-n", "--name", help="Name filter for jobs or triggers")
@click.option("-t", "--trigger", help="Trigger name filter")
@click.option("-S", "--scheduler", help="Scheduler name filter")
@click.option("-f", "--force", is_flag=True, help="Skip confirmation prompts")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option("--json", "as_json", is_flag=True, help="Output in JSON format")
@click.option("--host", help="Bind address for 'serve'")
@click.option("--port", type=int, help="Port for 'serve'")
def cli(
    url: str | None,
    user: str | None,
    password: str | None,
    driver: str | None,
    schema: str | None,
    prefix: str | None,
    command: str,
    group: str | None,
    name: str | None,
    trigger: str | None,
    scheduler: str | None,
    force: bool,
    verbose: bool,
    as_json: bool,
    host: str | None,
    port: int | None,
):
    """Quartz database CLI — inspect and clean up scheduler tables."""
    overrides = {
        "url": url,
        "user": user,
        "password": password,
        "driver": driver,
        "db_schema": schema,
        "table_prefix": prefix,
        "scheduler_name": scheduler,
    }
    settings = Settings(**{k: v for k, v in overrides.items() if v is not None})
    _configure_logging(verbose, settings)

    command = command.strip().lower()
    if command == "help":
        _show_help()
        return
    if command != "serve" and command not in HANDLERS:
        console.print(f"[bold red]Unknown command:[/bold red] {escape(command)}")
        _show_help()
        raise SystemExit(1)

    if not settings.is_configured:
        console.print("[bold red]Error:[/bold red] --url is required (or set QUARTZ_URL)")
        raise SystemExit(1)

    out = err_console if as_json else console
    try:
        if command == "serve":
            _serve(settings, host, port)
            return
        inv = Invocation(
            service=QuartzService(QuartzStore.from_settings(settings)),
            group=group,
            name=name,
            trigger=trigger,
            force=force,
            as_json=as_json,
        )
        HANDLERS[command](inv)
    except UserCancelled as exc:
        out.print(str(exc))
    except (QuartzAdminError, ValueError) as exc:
        out.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        if verbose:
            out.print_exception()
        raise SystemExit(1) from exc
