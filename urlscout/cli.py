"""URLScout CLI - Typer-based command line interface."""

import asyncio
import json
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from urlscout import __version__
from urlscout.config import get_discovery_config, load_config
from urlscout.discovery import CrawlResult, DiscoveryError, DiscoveryPipeline, UrlSource
from urlscout.log import configure_logging

app = typer.Typer(
    name="urlscout",
    help="URLScout - discover the content URLs of a website",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()


def show_banner() -> None:
    """Display the URLScout banner."""
    console.print(
        Panel(
            "Sitemaps first, polite breadth-first crawl second.",
            title=f"[bold cyan]URLScout v{__version__}[/]",
            border_style="cyan",
        )
    )


@app.command()
def discover(
    domain: Annotated[str, typer.Argument(help="Domain or URL to discover")],
    max_urls: Annotated[int | None, typer.Option("--max-urls", "-n", help="Maximum URLs to emit")] = None,
    max_depth: Annotated[
        int | None, typer.Option("--max-depth", "-d", help="Maximum path depth for crawled URLs")
    ] = None,
    timeout: Annotated[float | None, typer.Option("--timeout", "-t", help="Run timeout in seconds")] = None,
    renderer: Annotated[
        str | None, typer.Option("--renderer", "-r", help="Page renderer: browser or static")
    ] = None,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Write results as JSON")] = None,
    config_file: Annotated[Path | None, typer.Option("--config", help="Custom config file")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging")] = False,
) -> None:
    """Discover the content URLs of a site and print them as they are found."""
    configure_logging(verbose)
    show_banner()

    try:
        config = load_config(config_file)
        discovery_config = get_discovery_config(
            config,
            max_urls=max_urls,
            max_depth=max_depth,
            timeout=timeout,
            renderer=renderer,
        )
    except (OSError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Error loading config:[/] {e}")
        raise typer.Exit(1)

    console.print(f"\n[bold]Domain:[/] {domain}")
    console.print(
        f"[bold]Budget:[/] {discovery_config.max_urls} URLs, depth {discovery_config.max_depth}, "
        f"{discovery_config.timeout:g}s"
    )
    console.print(f"[bold]Renderer:[/] {discovery_config.renderer}\n")

    pipeline = DiscoveryPipeline(discovery_config)

    try:
        result = asyncio.run(_run_discovery(pipeline, domain))
    except KeyboardInterrupt:
        console.print("\n[yellow]Discovery interrupted.[/]")
        raise typer.Exit(130)
    except DiscoveryError as e:
        console.print(f"\n[red]Discovery failed:[/] {e}")
        raise typer.Exit(1)

    _print_summary(result)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps(result.to_dict(), indent=2), encoding="utf-8")
        console.print(f"\n[green]Results written to {output}[/]")


async def _run_discovery(pipeline: DiscoveryPipeline, domain: str) -> CrawlResult:
    """Stream a run to the console and return its summary."""
    run = pipeline.run(domain)
    async for discovered in run:
        style = "cyan" if discovered.source == UrlSource.SITEMAP else "magenta"
        console.print(f"[{style}]{discovered.source.value:>8}[/] [dim]d{discovered.depth}[/] {discovered.url}")
    return run.result


def _print_summary(result: CrawlResult) -> None:
    table = Table(title="Discovery Summary")
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    sitemap_count = sum(1 for u in result.urls if u.source == UrlSource.SITEMAP)

    table.add_row("Origin", result.origin or result.domain)
    table.add_row("Status", result.status.value)
    table.add_row("Stopped because", result.stop_reason.value if result.stop_reason else "-")
    table.add_row("Total URLs", str(result.total_found))
    table.add_row("From sitemaps", str(sitemap_count))
    table.add_row("From crawling", str(result.total_found - sitemap_count))

    console.print()
    console.print(table)

    if result.partial:
        console.print("[yellow]Result is partial: the run stopped before the site was exhausted.[/]")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"URLScout v{__version__}")


@app.command()
def web(
    host: Annotated[str | None, typer.Option("--host", "-h", help="Host to bind")] = None,
    port: Annotated[int | None, typer.Option("--port", "-p", help="Port to bind")] = None,
    config_file: Annotated[Path | None, typer.Option("--config", help="Custom config file")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging")] = False,
) -> None:
    """Start the discovery API server."""
    configure_logging(verbose)
    show_banner()

    config = load_config(config_file)
    web_config = config.get("web", {})
    host = host or web_config.get("host", "127.0.0.1")
    port = port or web_config.get("port", 8888)

    console.print("\n[bold green]Starting API server...[/]")
    console.print(f"[bold]URL:[/] http://{host}:{port}")
    console.print("[dim]Press Ctrl+C to stop[/]\n")

    from urlscout.web.app import run_server

    run_server(host=host, port=port, config=config)


if __name__ == "__main__":
    app()
