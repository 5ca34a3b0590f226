"""CLI entry point using typer."""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from balancebar import __version__
from balancebar.config import (
    CONFIG_FILE,
    PID_FILE,
    REFRESH_INTERVALS,
    SCRIPTS_DIR,
    SOURCE_TYPES,
    AppConfig,
    ConfigStore,
    LoggingConfig,
    RefreshSettings,
    SourceConfig,
    ensure_config_dir,
    load_config,
    save_config,
)
from balancebar.daemon import daemonize, read_pid, signal_daemon, stop_daemon, write_pid
from balancebar.display.console import ConsoleDisplay
from balancebar.display.status_file import StatusFileDisplay, read_status_file
from balancebar.services.runner import CommandRunner
from balancebar.storage.models import Failed
from balancebar.utils.formatting import ERROR_PREFIX, describe_failure
from balancebar.utils.system import check_source, install_sample_script

app = typer.Typer(
    name="balancebar",
    help="Periodically run a balance command and show the latest result.",
    add_completion=False,
)
console = Console()


def _setup_logging(config: AppConfig, to_stderr: bool) -> None:
    ensure_config_dir()
    log_path = Path(config.logging.file).expanduser().resolve()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.FileHandler(str(log_path)),
            *([logging.StreamHandler()] if to_stderr else []),
        ],
    )


@app.command()
def init() -> None:
    """Interactive setup wizard."""
    console.print(f"\n[bold]balancebar v{__version__}[/bold]")
    console.print("Interactive Setup\n")

    # 1. Source type
    console.print("[bold]Step 1:[/bold] Balance source")
    console.print("  'command' runs a command line, 'script' runs an executable file.")
    source_type = typer.prompt(f"  Source type ({', '.join(SOURCE_TYPES)})", default="command")
    if source_type not in SOURCE_TYPES:
        console.print(f"[red]Unknown source type: {source_type}[/red]")
        raise typer.Exit(1)

    # 2. Command or script
    source = SourceConfig(type=source_type)
    if source_type == "command":
        console.print("\n[bold]Step 2:[/bold] Command")
        console.print("  Commands starting with /usr/bin/, /bin/, /usr/local/bin/ or /opt/homebrew/bin/")
        console.print("  are run directly; anything else runs through /bin/bash -c.")
        source.command = typer.prompt("  Command", default="", show_default=False)
    else:
        console.print("\n[bold]Step 2:[/bold] Script")
        console.print("  Leave empty to install a sample script.")
        script_path = typer.prompt("  Script path", default="", show_default=False)
        if not script_path:
            script_path = str(install_sample_script(SCRIPTS_DIR))
            console.print(f"  [green]Sample script installed: {script_path}[/green]")
        source.script_path = script_path

    config = AppConfig(source=source, refresh=RefreshSettings(), logging=LoggingConfig())
    valid, message = check_source(config.command_source())
    if not valid:
        console.print(f"  [yellow]Warning: {message}[/yellow]")

    # 3. Interval
    console.print("\n[bold]Step 3:[/bold] Refresh interval")
    available = ", ".join(REFRESH_INTERVALS.keys())
    interval = typer.prompt(f"  Interval ({available})", default=config.refresh.interval)
    if interval not in REFRESH_INTERVALS:
        console.print(f"[yellow]Unknown interval '{interval}', using '{config.refresh.interval}'.[/yellow]")
    else:
        config.refresh.interval = interval

    save_config(config)

    console.print(f"\n[green]Configuration saved to {CONFIG_FILE}[/green]")
    console.print("\nNext steps:")
    console.print("  [bold]balancebar fetch[/bold]          Run the source once")
    console.print("  [bold]balancebar start[/bold]          Start refreshing")
    console.print("  [bold]balancebar start --daemon[/bold] Start in background\n")


@app.command()
def start(
    daemon: bool = typer.Option(False, "--daemon", "-d", help="Run in background"),
) -> None:
    """Start refreshing the balance on schedule."""
    existing_pid = read_pid(PID_FILE)
    if existing_pid is not None:
        console.print(f"[yellow]balancebar is already running (PID: {existing_pid}).[/yellow]")
        console.print("Use [bold]balancebar stop[/bold] to stop it first.")
        raise typer.Exit(1)

    store = ConfigStore()
    config = store.current
    if config.command_source() is None:
        console.print("[yellow]No source configured, showing the test balance.[/yellow]")
        console.print("Run [bold]balancebar init[/bold] to set one up.\n")

    _setup_logging(config, to_stderr=not daemon)

    if daemon:
        console.print("Starting balancebar in background...")
        daemonize(Path(config.logging.file).expanduser().resolve())

    write_pid(PID_FILE)

    displays = [StatusFileDisplay(config.display.status_file)]
    if config.display.console and not daemon:
        displays.append(ConsoleDisplay(console))
        console.print("[green]balancebar started![/green] Press Ctrl+C to stop.\n")

    try:
        from balancebar.app import run_app

        asyncio.run(run_app(store, displays))
    except KeyboardInterrupt:
        pass
    finally:
        PID_FILE.unlink(missing_ok=True)
        if not daemon:
            console.print("\n[dim]balancebar stopped.[/dim]")


@app.command()
def stop() -> None:
    """Stop the running instance."""
    if stop_daemon(PID_FILE):
        console.print("[green]balancebar stopped.[/green]")
    else:
        console.print("[yellow]balancebar is not running.[/yellow]")


@app.command()
def fetch(
    timeout: int = typer.Option(None, "--timeout", "-t", help="Override the configured timeout"),
) -> None:
    """Run the configured source once and print the result."""
    config = load_config()
    _setup_logging(config, to_stderr=False)
    refresh = config.refresh_config()
    runner = CommandRunner(default_timeout=refresh.timeout, max_output=config.refresh.max_output)

    outcome = asyncio.run(runner.run(refresh.source, timeout=timeout))
    if isinstance(outcome, Failed):
        console.print(f"[red]{escape(ERROR_PREFIX + describe_failure(outcome))}[/red]")
        raise typer.Exit(1)
    console.print(outcome.text, markup=False, highlight=False)


def _send(sig: signal.Signals, done: str) -> None:
    if signal_daemon(PID_FILE, sig):
        console.print(f"[green]{done}[/green]")
    else:
        console.print("[yellow]balancebar is not running.[/yellow]")
        raise typer.Exit(1)


@app.command()
def refresh() -> None:
    """Ask the running instance to refresh now."""
    _send(signal.SIGUSR1, "Refresh requested.")


@app.command()
def pause() -> None:
    """Pause or resume the running instance's schedule."""
    _send(signal.SIGUSR2, "Pause toggled.")


@app.command()
def reload() -> None:
    """Make the running instance re-read its configuration."""
    _send(signal.SIGHUP, "Configuration reload requested.")


@app.command()
def status() -> None:
    """Show running state and the last published balance."""
    pid = read_pid(PID_FILE)
    if pid is not None:
        console.print(f"[green]balancebar is running[/green] (PID: {pid})")
    else:
        console.print("[dim]balancebar is not running.[/dim]")

    config = load_config()
    last = read_status_file(config.display.status_file)
    if last is not None:
        style = "red" if last.startswith(ERROR_PREFIX) else "bold"
        console.print(f"\nBalance: [{style}]{escape(last)}[/{style}]")

    if CONFIG_FILE.exists():
        valid, message = check_source(config.command_source())
        console.print(f"\nConfig: {CONFIG_FILE}")
        console.print(f"Source: {config.source.type}")
        console.print(f"Check: {message}" if valid else f"Check: [yellow]{message}[/yellow]")
        console.print(f"Interval: {config.refresh.interval}")
    else:
        console.print("\n[yellow]Not configured. Run 'balancebar init'.[/yellow]")


@app.command()
def config(
    key: str = typer.Argument(None, help="Config key (e.g., refresh.interval)"),
    value: str = typer.Argument(None, help="New value"),
) -> None:
    """View or modify configuration."""
    if not CONFIG_FILE.exists():
        console.print("[red]Not configured. Run 'balancebar init'.[/red]")
        raise typer.Exit(1)

    cfg = load_config()

    if key is None:
        table = Table(title="Configuration")
        table.add_column("Key", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("source.type", cfg.source.type)
        table.add_row("source.command", escape(cfg.source.command) or "(not set)")
        table.add_row("source.script_path", escape(cfg.source.script_path) or "(not set)")
        table.add_row("refresh.interval", cfg.refresh.interval)
        table.add_row("refresh.timeout", str(cfg.refresh.timeout))
        table.add_row("refresh.max_output", str(cfg.refresh.max_output))
        table.add_row("display.status_file", cfg.display.status_file)
        table.add_row("display.console", str(cfg.display.console))
        table.add_row("logging.level", cfg.logging.level)

        console.print(table)
        return

    if value is None:
        console.print("[red]Usage: balancebar config <key> <value>[/red]")
        raise typer.Exit(1)

    parts = key.split(".")
    if len(parts) != 2:
        console.print("[red]Key format: section.key (e.g., refresh.interval)[/red]")
        raise typer.Exit(1)

    section, attr = parts
    section_map = {"source": cfg.source, "refresh": cfg.refresh, "display": cfg.display, "logging": cfg.logging}

    if section not in section_map:
        console.print(f"[red]Unknown section: {section}[/red]")
        raise typer.Exit(1)

    obj = section_map[section]
    if not hasattr(obj, attr):
        console.print(f"[red]Unknown key: {key}[/red]")
        raise typer.Exit(1)

    # Type coercion
    current = getattr(obj, attr)
    try:
        if isinstance(current, bool):
            typed_value = value.lower() in ("true", "1", "yes")
        elif isinstance(current, int):
            typed_value = int(value)
        else:
            typed_value = value
    except ValueError:
        console.print(f"[red]Invalid value type for {key}[/red]")
        raise typer.Exit(1)

    if key == "source.type" and typed_value not in SOURCE_TYPES:
        console.print(f"[red]source.type must be one of: {', '.join(SOURCE_TYPES)}[/red]")
        raise typer.Exit(1)
    if key == "refresh.interval" and typed_value not in REFRESH_INTERVALS:
        console.print(f"[red]refresh.interval must be one of: {', '.join(REFRESH_INTERVALS)}[/red]")
        raise typer.Exit(1)

    setattr(obj, attr, typed_value)
    save_config(cfg)
    console.print(f"[green]{key} = {escape(str(typed_value))}[/green]")

    if read_pid(PID_FILE) is not None:
        console.print("Run [bold]balancebar reload[/bold] to apply it to the running instance.")


@app.command()
def logs(
    lines: int = typer.Option(50, "--lines", "-n", help="Number of lines"),
    follow: bool = typer.Option(False, "--follow", "-f", help="Follow log output"),
) -> None:
    """View balancebar logs."""
    log_path = Path(load_config().logging.file).expanduser().resolve()
    if not log_path.exists():
        console.print("[dim]No log file found.[/dim]")
        return

    if follow:
        import subprocess

        try:
            subprocess.run(["tail", "-f", "-n", str(lines), str(log_path)])
        except KeyboardInterrupt:
            pass
    else:
        content = log_path.read_text()
        log_lines = content.strip().split("\n")
        for line in log_lines[-lines:]:
            console.print(line, markup=False, highlight=False)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"balancebar v{__version__}")
    console.print(f"Python: {sys.version.split()[0]}")
    console.print(f"Config: {CONFIG_FILE}")


if __name__ == "__main__":
    app()
