"""CLI module for cdpdriver."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from cdpdriver import __version__
from cdpdriver.browser.launcher import BrowserLauncher, browser_candidates
from cdpdriver.browser.profile import LaunchProfile
from cdpdriver.browser.targets import DEFAULT_HOST, list_targets
from cdpdriver.config import CONFIG
from cdpdriver.exceptions import CDPDriverError
from cdpdriver.logging_config import setup_logging

console = Console()


@click.group()
@click.version_option(version=__version__, prog_name="cdpdriver")
def cli():
    """cdpdriver - browser automation over the Chrome DevTools Protocol."""
    pass


@cli.command()
@click.option("--headless/--no-headless", default=None, help="Run the browser headless (default from CDPDRIVER_HEADLESS)")
@click.option("--port", "-p", default=0, show_default=True, help="Remote debugging port; 0 picks a free one")
@click.option("--executable", "-e", default=None, help="Browser executable (default: CHROME_PATH, then well-known locations)")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def launch(headless: Optional[bool], port: int, executable: Optional[str], verbose: bool):
    """Launch a browser with remote debugging and keep it running.

    Prints the browser's DevTools WebSocket URL and the first page's URL,
    then waits until interrupted with Ctrl-C. The browser and its temporary
    profile are removed on exit.

    Example:
        >>> cdpdriver launch --no-headless --port 9222
    """
    setup_logging(log_level="debug" if verbose else None, force_setup=True)

    profile = LaunchProfile(executable_path=executable, port=port)
    if headless is not None:
        profile.headless = headless

    async def execute():
        async with await BrowserLauncher(profile).launch() as browser:
            page_url = await browser.get_first_page_ws_url()
            console.print(Panel.fit(
                f"[bold blue]Browser running[/bold blue] (PID {browser.pid})\n"
                f"Browser: {browser.ws_url}\n"
                f"Page:    {page_url}\n"
                f"Profile: {browser.user_data_dir}",
                title="cdpdriver",
            ))
            console.print("[dim]Press Ctrl-C to close the browser[/dim]")
            await asyncio.Event().wait()

    try:
        asyncio.run(execute())
    except KeyboardInterrupt:
        console.print("[yellow]Browser closed[/yellow]")
    except CDPDriverError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise SystemExit(1)


@cli.command()
@click.option("--port", "-p", default=9222, show_default=True, help="Remote debugging port of a running browser")
@click.option("--host", default=DEFAULT_HOST, show_default=True, help="Host of the debug endpoint")
def targets(port: int, host: str):
    """List the targets of a running browser."""

    async def execute():
        return await list_targets(port, host)

    try:
        listed = asyncio.run(execute())
    except CDPDriverError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise SystemExit(1)

    table = Table(title=f"Targets on {host}:{port}")
    table.add_column("Id", style="cyan")
    table.add_column("Type")
    table.add_column("Title")
    table.add_column("URL", overflow="fold")
    for target in listed:
        table.add_row(target.id, target.type, target.title, target.url)
    console.print(table)


@cli.command()
def config():
    """Show the effective configuration and browser candidates."""
    table = Table(title="Configuration")
    table.add_column("Variable", style="cyan")
    table.add_column("Value")
    for name, value in CONFIG.model_dump().items():
        table.add_row(name, str(value))
    console.print(table)

    console.print(Panel.fit(
        "\n".join(browser_candidates()),
        title="Browser candidates (search order)",
    ))


@cli.command()
@click.option("--headless/--no-headless", default=None, help="Run the browser headless (default from CDPDRIVER_HEADLESS)")
def mcp(headless: Optional[bool]):
    """Run the MCP server on stdio.

    The browser starts on the first tool call. Logs go to stderr.
    """
    from cdpdriver.mcp.server import main as mcp_main

    profile = LaunchProfile()
    if headless is not None:
        profile.headless = headless
    asyncio.run(mcp_main(profile))


def main():
    """Main entry point for the CLI."""
    logging.getLogger("cdpdriver").debug("cdpdriver CLI starting")
    cli()


if __name__ == "__main__":
    main()
