import sys
from typing import Optional

import typer

from growthlens.config import settings
from growthlens.domain.log import TAGS
from growthlens.domain.quick_log import (
    DiaperLog,
    DiaperType,
    FeedingLog,
    FeedingType,
    QuickLogType,
    SleepLog,
    calculate_interval,
    format_duration,
)
from growthlens.errors import GrowthLensError
from growthlens.logging import configure_logging, get_trace_id, logger, start_trace
from growthlens.storage.backend import KeyValueBackend, SQLiteBackend
from growthlens.storage.log_storage import GrowthLogStore
from growthlens.storage.quick_log_storage import QuickLogStore

app = typer.Typer(no_args_is_help=True)


def _backend() -> KeyValueBackend:
    from growthlens.db import engine, init_db
    init_db(engine)
    return SQLiteBackend(engine)


def _fail(e: Exception):
    logger.error(f"Command failed: {e}")
    print(f"❌ {e}")
    raise typer.Exit(code=1)


@app.callback()
def main(
    ctx: typer.Context,
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override GROWTHLENS_LOG_LEVEL"),
):
    """
    GrowthLens journal CLI.
    """
    if log_level:
        configure_logging(log_level)
    start_trace(ctx.invoked_subcommand)


@app.command(name="doctor")
def doctor():
    """
    Check configuration and the local data directory.
    """
    logger.info("Running doctor check...")

    print("\n🩺 GrowthLens Doctor\n")

    print(f"Python:   {sys.version.split()[0]}")
    print(f"Trace ID: {get_trace_id()}")

    print("\n[Configuration]")
    print(f"DATA_DIR:           {settings.DATA_DIR}")
    print(f"DB_NAME:            {settings.DB_NAME}")
    print(f"LOG_LEVEL:          {settings.LOG_LEVEL}")
    print(f"STORAGE_KEY_PREFIX: {settings.STORAGE_KEY_PREFIX}")

    data_dir = settings.DATA_DIR
    if data_dir.exists() and data_dir.is_dir():
        print(f"\n[Data Directory]    ✅ Found: {data_dir.absolute()}")
    else:
        print(f"\n[Data Directory]    ❌ Missing: {data_dir.absolute()} (run `growthlens db init`)")

    print("\nDoctor check complete.")


db_app = typer.Typer(help="Database management commands.")
app.add_typer(db_app, name="db")


@db_app.command("init")
def init():
    """Create the key-value table."""
    from growthlens.db import init_db
    try:
        init_db()
        logger.info("Database initialized successfully.")
        print("✅ Database initialized.")
    except Exception as e:
        _fail(e)


@db_app.command("backups")
def backups():
    """List backup keys written when a stored payload could not be read."""
    keys = [k for k in _backend().keys(settings.STORAGE_KEY_PREFIX) if "_backup_" in k]
    if not keys:
        print("No backups found.")
        return
    for key in keys:
        print(key)


# ---------------------------------------------------------------------------
# Growth logs
# ---------------------------------------------------------------------------
logs_app = typer.Typer(help="Growth log entries.")
app.add_typer(logs_app, name="logs")


@logs_app.command("add")
def logs_add(
    tag: str = typer.Argument(..., help=f"One of: {', '.join(t.value for t in TAGS)}"),
    note: str = typer.Argument(...),
    photo_label: Optional[str] = typer.Option(None, "--photo-label"),
):
    """Record a new observation."""
    store = GrowthLogStore(_backend())
    try:
        log = store.create(tag=tag, note=note, photo_label=photo_label)
    except GrowthLensError as e:
        _fail(e)
    print(f"✅ Saved {log.id}")


@logs_app.command("list")
def logs_list(limit: int = typer.Option(20, help="Maximum entries to show")):
    """Show entries, newest first."""
    logs = GrowthLogStore(_backend()).load_all()
    if not logs:
        print("No entries yet.")
        return

    print(f"{len(logs)} entries:")
    for log in logs[:limit]:
        label = f" [{log.photo_label}]" if log.photo_label else ""
        print(f"{log.created_at:%Y-%m-%d %H:%M} | {log.tag.value:<14} | {log.note}{label} ({log.id})")


@logs_app.command("show")
def logs_show(log_id: str):
    """Show a single entry."""
    log = GrowthLogStore(_backend()).get(log_id)
    if log is None:
        print("❌ record not found")
        raise typer.Exit(code=1)

    print(f"ID:          {log.id}")
    print(f"Created:     {log.created_at.isoformat()}")
    print(f"Tag:         {log.tag.value}")
    print(f"Photo label: {log.photo_label or '-'}")
    print(f"Note:\n{log.note}")


@logs_app.command("edit")
def logs_edit(
    log_id: str,
    tag: Optional[str] = typer.Option(None, "--tag"),
    note: Optional[str] = typer.Option(None, "--note"),
    photo_label: Optional[str] = typer.Option(None, "--photo-label"),
):
    """Change the tag, note or photo label of an entry."""
    fields = {
        name: value
        for name, value in (("tag", tag), ("note", note), ("photo_label", photo_label))
        if value is not None
    }
    if not fields:
        print("Nothing to change.")
        return

    try:
        GrowthLogStore(_backend()).update(log_id, **fields)
    except GrowthLensError as e:
        _fail(e)
    print("✅ Entry updated.")


@logs_app.command("delete")
def logs_delete(log_id: str):
    """Delete an entry. Unknown ids are ignored."""
    try:
        GrowthLogStore(_backend()).remove(log_id)
    except GrowthLensError as e:
        _fail(e)
    print("✅ Deleted.")


@logs_app.command("clear")
def logs_clear(yes: bool = typer.Option(False, "--yes", help="Skip the confirmation prompt")):
    """Delete every entry."""
    if not yes:
        typer.confirm("Delete all entries?", abort=True)
    try:
        GrowthLogStore(_backend()).remove_all()
    except GrowthLensError as e:
        _fail(e)
    print("✅ All entries deleted.")


# ---------------------------------------------------------------------------
# Quick logs
# ---------------------------------------------------------------------------
quick_app = typer.Typer(help="Quick-tap sleep, diaper and feeding events.")
app.add_typer(quick_app, name="quick")


def _describe(log) -> str:
    if isinstance(log, SleepLog):
        if log.duration is not None:
            return f"sleep    {log.action.value} after {format_duration(log.duration)}"
        return f"sleep    {log.action.value}"
    if isinstance(log, DiaperLog):
        return f"diaper   {log.diaper_type.value}"
    if isinstance(log, FeedingLog):
        extra = []
        if log.duration is not None:
            extra.append(f"{log.duration} min")
        if log.amount is not None:
            extra.append(f"{log.amount} ml")
        suffix = f" ({', '.join(extra)})" if extra else ""
        return f"feeding  {log.feeding_type.value}{suffix}"
    raise TypeError(f"Unknown quick log: {log!r}")


def _print_quick_logs(logs):
    for log in logs:
        print(f"{log.timestamp.astimezone():%Y-%m-%d %H:%M} | {_describe(log)} ({log.id})")


@quick_app.command("sleep")
def quick_sleep():
    """Start a sleep session."""
    try:
        session = QuickLogStore(_backend()).start_sleep()
    except GrowthLensError as e:
        _fail(e)
    print(f"😴 Sleep started at {session.start_time.astimezone():%H:%M}")


@quick_app.command("wake")
def quick_wake():
    """End the current sleep session."""
    try:
        log = QuickLogStore(_backend()).end_sleep()
    except GrowthLensError as e:
        _fail(e)
    print(f"🌅 Woke after {format_duration(log.duration)}")


@quick_app.command("diaper")
def quick_diaper(diaper_type: DiaperType):
    """Record a diaper change."""
    try:
        QuickLogStore(_backend()).add(DiaperLog(diaper_type=diaper_type))
    except GrowthLensError as e:
        _fail(e)
    print(f"✅ Diaper ({diaper_type.value}) recorded.")


@quick_app.command("feed")
def quick_feed(
    feeding_type: FeedingType,
    duration: Optional[int] = typer.Option(None, "--duration", min=0, help="Minutes"),
    amount: Optional[int] = typer.Option(None, "--amount", min=0, help="Millilitres"),
):
    """Record a feeding."""
    try:
        QuickLogStore(_backend()).add(
            FeedingLog(feeding_type=feeding_type, duration=duration, amount=amount)
        )
    except GrowthLensError as e:
        _fail(e)
    print(f"✅ Feeding ({feeding_type.value}) recorded.")


@quick_app.command("list")
def quick_list(log_type: Optional[QuickLogType] = typer.Option(None, "--type")):
    """Show events, newest first."""
    store = QuickLogStore(_backend())
    logs = store.get_by_type(log_type) if log_type else store.load_all()
    if not logs:
        print("No events yet.")
        return
    _print_quick_logs(logs)


@quick_app.command("today")
def quick_today():
    """Show today's events and the time since the last of each kind."""
    store = QuickLogStore(_backend())
    logs = store.load_all()
    today = store.get_today_logs()

    print(f"Today: {len(today)} events")
    _print_quick_logs(today)

    print()
    for log_type in QuickLogType:
        interval = calculate_interval(logs, log_type)
        print(f"Since last {log_type.value:<8} {interval or '-'}")

    session = store.load_active_sleep()
    if session is not None:
        print(f"\n😴 Sleeping since {session.start_time.astimezone():%H:%M}")


@quick_app.command("delete")
def quick_delete(log_id: str):
    """Delete an event. Unknown ids are ignored."""
    try:
        QuickLogStore(_backend()).remove(log_id)
    except GrowthLensError as e:
        _fail(e)
    print("✅ Deleted.")


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------
insights_app = typer.Typer(help="Summaries computed from growth log entries.")
app.add_typer(insights_app, name="insights")


@insights_app.command("bias")
def insights_bias():
    """What, how often and how closely you have been observing."""
    from growthlens.insights import build_bias
    summary = build_bias(GrowthLogStore(_backend()).load_all())
    print(f"Frequency:   {summary.frequency}")
    print(f"Bias:        {summary.bias}")
    print(f"Granularity: {summary.granularity}")
    print(f"\n{summary.summary}")


@insights_app.command("modules")
def insights_modules():
    """Week-over-week trend per developmental module."""
    from growthlens.insights import build_child_os
    for module in build_child_os(GrowthLogStore(_backend()).load_all()):
        print(f"{module.name:<40} {module.status.value:<12} {module.hint}")


if __name__ == "__main__":
    app()
