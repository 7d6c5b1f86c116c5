"""CLI for repo-mirror."""

import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from .config import MirrorConfig, load_config
from .core import DirectoryNode, FileNode, MutationAction, MutationResult, Snapshot
from .diffing import compute_changes
from .errors import (
    AuthError,
    ConfigError,
    MirrorError,
    NetworkError,
    NotFoundError,
    RemoteWriteConflict,
)
from .service import MirrorService
from .utils import format_timestamp, humanize_size

app = typer.Typer(help="""\
Mirror a remote GitHub repository into memory, serve it over HTTP,
and stream every change to connected clients.""")

console = Console()

T = TypeVar("T")

_state = {"config_path": None}


@app.callback()
def main(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file (default: ./repo-mirror.yaml)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Configure logging and remember the config file for subcommands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    _state["config_path"] = config


def require_config() -> MirrorConfig:
    """Load configuration or exit with a readable error.

    Raises:
        typer.Exit: If configuration is missing or invalid
    """
    try:
        return load_config(_state["config_path"])
    except ConfigError as e:
        console.print(f"[red]✗[/red] {escape(str(e))}")
        console.print()
        console.print("[dim]Hint: set REPO_MIRROR_OWNER and REPO_MIRROR_REPO, or create repo-mirror.yaml[/dim]")
        raise typer.Exit(1)


def run_with_service(action: Callable[[MirrorService], Awaitable[T]]) -> T:
    """Run an async action against a fresh service, mapping errors to exit codes."""
    config = require_config()

    async def runner() -> T:
        service = MirrorService(config)
        try:
            return await action(service)
        finally:
            await service.aclose()

    try:
        return asyncio.run(runner())
    except NotFoundError as e:
        console.print(f"[red]✗[/red] {escape(str(e))}")
    except RemoteWriteConflict as e:
        console.print(f"[red]✗[/red] {escape(str(e))}")
    except AuthError as e:
        console.print(f"[red]✗[/red] Authentication failed: {escape(str(e))}")
        console.print("[dim]Hint: export GITHUB_TOKEN with repo access[/dim]")
    except NetworkError as e:
        console.print(f"[red]✗[/red] Network error: {escape(str(e))}")
    except MirrorError as e:
        console.print(f"[red]✗[/red] {escape(str(e))}")
    raise typer.Exit(1)


def build_rich_tree(node: Union[FileNode, DirectoryNode], label: Optional[str] = None) -> Tree:
    """Render a mirrored tree for the console."""
    tree = Tree(label or f"[bold]{node.name or '/'}[/bold]")
    for child in node.children if isinstance(node, DirectoryNode) else []:
        if isinstance(child, DirectoryNode):
            tree.add(build_rich_tree(child, f"[bold blue]{child.name}/[/bold blue]"))
        elif child.error:
            tree.add(f"[red]{child.name}[/red] [dim]({escape(child.error)})[/dim]")
        else:
            size = f" [dim]({humanize_size(child.size)})[/dim]" if child.size is not None else ""
            tree.add(f"{child.name}{size}")
    return tree


def print_result(result: MutationResult) -> None:
    if result.action == MutationAction.MOVE:
        console.print(f"[green]✓[/green] Moved {result.path} → {result.new_path}")
    elif result.action == MutationAction.REMOVE:
        console.print(f"[green]✓[/green] Deleted {result.path}")
    else:
        verb = "Created" if result.created else "Updated"
        console.print(f"[green]✓[/green] {verb} {result.path}")
    if result.commit:
        console.print(f"  [dim]commit {result.commit[:12]}[/dim]")
    if not result.synced:
        console.print("  [yellow]![/yellow] Snapshot refresh failed; subscribers will see the change on the next poll")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Interface to bind"),
    port: int = typer.Option(8000, help="Port to listen on"),
):
    """Serve the mirror over HTTP.

    Examples:
        repo-mirror serve                       # http://127.0.0.1:8000/api
        repo-mirror serve --host 0.0.0.0 --port 9000
    """
    import uvicorn

    from .api import create_app

    config = require_config()
    console.print(f"[bold]Mirroring[/bold] {config.repository if config.provider == 'github' else config.provider}")
    uvicorn.run(create_app(config=config), host=host, port=port)


@app.command()
def tree():
    """Show the current remote tree."""
    snapshot: Snapshot = run_with_service(lambda service: service.read_snapshot())
    console.print(build_rich_tree(snapshot.tree))


@app.command()
def fingerprints():
    """Show the fingerprint of every path."""
    snapshot: Snapshot = run_with_service(lambda service: service.read_snapshot())
    table = Table(title="Fingerprints")
    table.add_column("Path")
    table.add_column("Fingerprint", style="dim")
    for path in sorted(snapshot.fingerprints):
        table.add_row(path or "/", snapshot.fingerprints[path][:12])
    console.print(table)


@app.command()
def put(
    path: str = typer.Argument(..., help="Repository path to write"),
    content: Optional[str] = typer.Option(None, "--content", help="Text to write"),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Local file to upload"),
    message: Optional[str] = typer.Option(None, "--message", "-m", help="Commit message"),
):
    """Create or update a file."""
    if (content is None) == (file is None):
        console.print("[red]✗[/red] Pass exactly one of --content or --file")
        raise typer.Exit(1)
    data: Any = file.read_bytes() if file else content
    result = run_with_service(lambda service: service.save(path, data, message))
    print_result(result)


@app.command()
def rm(
    path: str = typer.Argument(..., help="Repository path to delete"),
    message: Optional[str] = typer.Option(None, "--message", "-m", help="Commit message"),
):
    """Delete a file."""
    result = run_with_service(lambda service: service.remove(path, message))
    print_result(result)


@app.command()
def mv(
    old_path: str = typer.Argument(..., help="Existing path"),
    new_path: str = typer.Argument(..., help="Destination path"),
    message: Optional[str] = typer.Option(None, "--message", "-m", help="Commit message"),
):
    """Move a file (write new path, then delete old path)."""
    result = run_with_service(lambda service: service.move(old_path, new_path, message))
    print_result(result)


@app.command()
def watch():
    """Poll the remote store and print each change as it happens."""

    async def follow(service: MirrorService) -> None:
        subscriber = await service.subscribe()
        previous = None
        try:
            while True:
                payload = await subscriber.receive()
                if payload is None:
                    return
                snapshot = Snapshot.model_validate_json(payload)
                changes = compute_changes(previous, snapshot.fingerprints)
                console.print(f"[dim]{format_timestamp()}[/dim] {changes.summary}")
                for path in changes.added:
                    console.print(f"  [green]+[/green] {path or '/'}")
                for path in changes.modified:
                    console.print(f"  [yellow]~[/yellow] {path or '/'}")
                for path in changes.removed:
                    console.print(f"  [red]-[/red] {path or '/'}")
                previous = snapshot.fingerprints
        finally:
            service.unsubscribe(subscriber)

    console.print("[bold]Watching for changes[/bold] [dim](Ctrl+C to stop)[/dim]")
    try:
        run_with_service(follow)
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped[/dim]")


if __name__ == "__main__":
    app()
