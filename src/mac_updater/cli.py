"""Command-line interface for mac-updater."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import AppConfig, ConfigurationError, load_config
from .interaction import CLIInteractionHandler, UserInteractionHandler
from .local import CommandExecutor, LocalProbe
from .notification import MacNotificationSink, NotificationSink, Notifier
from .orchestrator import (
    CompactProgressSink,
    ExecutionContext,
    MaintenanceOrchestrator,
    ProgressSink,
    RichProgressSink,
    RunMode,
    StepStatus,
    build_pipeline,
    format_summary,
    list_run_reports,
    load_run_report,
)
from .orchestrator.progress import STATUS_ICONS
from .paths import get_runs_dir
from .utils.logging import get_logger, setup_logging

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_CONFIG_ERROR = 2


@dataclass
class CLIContext:
    """Context captured from CLI arguments."""

    config: AppConfig
    mode: RunMode
    console: Console


def _add_common_arguments(parser: argparse.ArgumentParser, default=None) -> None:
    """Attach ``--config`` and the run-mode flags to ``parser``.

    Subcommand copies use ``argparse.SUPPRESS`` so they only override the
    top-level values when given after the subcommand.
    """
    flag_default = False if default is None else default
    parser.add_argument(
        "--config",
        type=str,
        default=default,
        help="Path to a TOML config file (default: ~/.config/mac-updater/config.toml).",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "-i", "--interactive", action="store_true", default=flag_default,
        help="Ask before running each step",
    )
    mode.add_argument(
        "-q", "--quiet", action="store_true", default=flag_default,
        help="Run every step without asking, one line of output per step",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mac-updater",
        description="Run macOS update and cleanup steps in a fixed order.",
    )
    _add_common_arguments(parser)

    common = argparse.ArgumentParser(add_help=False)
    _add_common_arguments(common, default=argparse.SUPPRESS)

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("run", parents=[common], help="Run the maintenance pipeline (default)")
    subparsers.add_parser("steps", parents=[common], help="List the steps a run would execute")

    logs_parser = subparsers.add_parser("logs", help="View saved run logs")
    logs_parser.add_argument(
        "--list", "-l", action="store_true", dest="list_logs",
        help="List all available run logs"
    )
    logs_parser.add_argument(
        "--latest", action="store_true",
        help="Show the latest run log"
    )
    logs_parser.add_argument(
        "--file", "-f", type=str,
        help="Show a specific run log file"
    )
    logs_parser.add_argument(
        "--summary", "-s", action="store_true",
        help="Show summary only (no per-command details)"
    )

    return parser


def _build_context(args: argparse.Namespace, console: Console) -> CLIContext:
    config = load_config(args.config)
    mode = RunMode.INTERACTIVE if args.interactive else RunMode.QUIET
    return CLIContext(config=config, mode=mode, console=console)


def handle_steps_command(context: CLIContext) -> int:
    """List the post-filter pipeline."""
    pipeline = build_pipeline(context.config)
    table = Table(title=f"{len(pipeline)} step(s)")
    table.add_column("#", justify="right")
    table.add_column("Step")
    table.add_column("Kind")
    for i, step in enumerate(pipeline, 1):
        table.add_row(str(i), escape(step.description), "custom" if step.is_custom else "built-in")
    context.console.print(table)
    return EXIT_OK


def handle_logs_command(args: argparse.Namespace, console: Console) -> int:
    """Handle the logs subcommand."""
    runs_dir = get_runs_dir()
    log_files = list_run_reports(runs_dir)

    if not log_files:
        console.print("📁 No run logs found. Run mac-updater first.")
        return EXIT_OK

    if args.list_logs:
        table = Table(title=f"Run logs in {runs_dir}")
        table.add_column("#", justify="right")
        table.add_column("Started")
        table.add_column("Result")
        table.add_column("File")
        for i, log_file in enumerate(log_files, 1):
            try:
                data = load_run_report(log_file)
            except (OSError, ValueError):
                table.add_row(str(i), "?", "❓ unreadable", log_file.name)
                continue
            summary = data.get("summary", {})
            result = (
                f"{summary.get('succeeded', 0)} ✅  {summary.get('failed', 0)} ❌  "
                f"{summary.get('skipped', 0)} ⏭️"
            )
            if data.get("cancelled"):
                result += "  (cancelled)"
            started = (data.get("start_time") or "")[:19].replace("T", " ")
            table.add_row(str(i), started, result, log_file.name)
        console.print(table)
        return EXIT_OK

    if args.file:
        target_file = Path(args.file)
        if not target_file.exists():
            target_file = runs_dir / args.file
        if not target_file.exists():
            console.print(f"❌ Log file not found: {escape(args.file)}")
            return EXIT_UNEXPECTED
    else:
        target_file = log_files[0]

    show_log_file(target_file, console, summary_only=args.summary)
    return EXIT_OK


def show_log_file(log_file: Path, console: Console, summary_only: bool = False) -> None:
    """Display a saved run log."""
    data = load_run_report(log_file)
    summary = data.get("summary", {})
    icons = {status.value: icon for status, icon in STATUS_ICONS.items()}

    console.rule(f"📄 Run Log: {log_file.name}")
    console.print(f"⏰ Started:  {data.get('start_time', 'N/A')}")
    console.print(f"⏱️  Ended:    {data.get('end_time', 'N/A')}")
    console.print(f"🔧 Mode:     {data.get('mode', 'N/A')}")
    console.print(
        f"📊 Steps:    {summary.get('succeeded', 0)} succeeded, "
        f"{summary.get('failed', 0)} failed, {summary.get('skipped', 0)} skipped"
    )
    if summary.get("disk_reclaimed"):
        console.print(f"💾 Reclaimed: {summary['disk_reclaimed']}")
    if data.get("cancelled"):
        console.print("[yellow]🛑 Run was cancelled[/yellow]")
    console.rule()

    for step in data.get("steps", []):
        icon = icons.get(step.get("status"), "•")
        note = step.get("reason") or step.get("detail") or ""
        line = f"{icon} {escape(step.get('description', '?'))}"
        if note:
            line += f" [dim]({escape(note)})[/dim]"
        console.print(line)

        if summary_only:
            continue
        for cmd in step.get("commands", []):
            console.print(f"    $ {escape(cmd.get('command', ''))}  [dim]exit {cmd.get('exit_code')}[/dim]")
            if not cmd.get("success") and cmd.get("stderr"):
                for err_line in cmd["stderr"].splitlines()[:5]:
                    console.print(f"    │ {escape(err_line[:100])}")

    console.rule()
    console.print(f"📄 Full log: {log_file}")


def handle_run_command(
    context: CLIContext,
    *,
    executor: Optional[CommandExecutor] = None,
    interaction_handler: Optional[UserInteractionHandler] = None,
    progress_sink: Optional[ProgressSink] = None,
    notification_sink: Optional[NotificationSink] = None,
    quiet: bool = False,
) -> int:
    console = context.console
    if progress_sink is None:
        progress_sink = CompactProgressSink(console) if quiet else RichProgressSink(console)
    if executor is None:
        executor = CommandExecutor(on_output=progress_sink.write_output)

    exec_ctx = ExecutionContext(mode=context.mode, config=context.config, executor=executor)
    notifier = Notifier(
        context.config.notification_settings,
        notification_sink or MacNotificationSink(),
    )
    orchestrator = MaintenanceOrchestrator(
        exec_ctx,
        interaction_handler or CLIInteractionHandler(console),
        progress_sink,
        notifier=notifier,
        probe=LocalProbe(home_dir=str(exec_ctx.home)),
        runs_dir=get_runs_dir(),
    )
    report = orchestrator.run(build_pipeline(context.config))

    failed = [o for o in report.outcomes if o.status is StepStatus.FAILED]
    console.print()
    console.print(f"[bold]Summary:[/bold] {escape(format_summary(report))}")
    for outcome in failed:
        console.print(f"  ❌ {escape(outcome.description)}: {escape(outcome.reason or '')}")
    if orchestrator.current_log_file:
        console.print(f"[dim]📄 Run log: {orchestrator.current_log_file}[/dim]")
    # step failures are part of a normal run
    return EXIT_OK


def dispatch_command(
    args: argparse.Namespace,
    *,
    console: Optional[Console] = None,
    executor: Optional[CommandExecutor] = None,
    interaction_handler: Optional[UserInteractionHandler] = None,
    progress_sink: Optional[ProgressSink] = None,
    notification_sink: Optional[NotificationSink] = None,
) -> int:
    console = console or Console()

    if args.command == "logs":
        return handle_logs_command(args, console)

    context = _build_context(args, console)

    if args.command == "steps":
        return handle_steps_command(context)

    if args.command in (None, "run"):
        return handle_run_command(
            context,
            executor=executor,
            interaction_handler=interaction_handler,
            progress_sink=progress_sink,
            notification_sink=notification_sink,
            quiet=args.quiet,
        )

    raise ValueError(f"Unsupported command: {args.command}")


def run_cli(argv: Optional[list[str]] = None, **collaborators) -> int:
    """Parse ``argv`` and run. Collaborators are passed to dispatch_command."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.interactive and args.quiet:
        parser.error("argument -q/--quiet: not allowed with argument -i/--interactive")
    try:
        setup_logging()
        return dispatch_command(args, **collaborators)
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        print(f"mac-updater: configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except Exception:
        logger.exception("Unexpected error")
        print("mac-updater: unexpected error, see update.log for details", file=sys.stderr)
        return EXIT_UNEXPECTED
