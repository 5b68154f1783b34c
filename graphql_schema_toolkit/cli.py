"""CLI for gql-toolkit."""

import asyncio
import logging
import sys
from typing import List, NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from . import compiler, config, extractor, schema_loader, search, utils, validation
from .errors import ToolkitError
from .report import emit_checks, print_kv

app = typer.Typer(help="Offline GraphQL schema search and operation validation")
schema_app = typer.Typer(help="Schema operations")
config_app = typer.Typer(help="Configuration")
app.add_typer(schema_app, name="schema")
app.add_typer(config_app, name="config")

console = Console()
err_console = Console(stderr=True)


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Config file path"),
):
    """Load configuration and set up logging."""
    cfg = config.load(config_path)
    setup_logging("DEBUG" if verbose else cfg.log_level)
    ctx.obj = cfg


def setup_logging(level: str) -> None:
    """Send library logs to stderr through Rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _fail(e: Exception) -> NoReturn:
    err_console.print(f"[red]Error: {e}[/red]")
    if "--debug" in sys.argv:
        raise e
    raise typer.Exit(1)


@schema_app.command("list")
def schema_list(ctx: typer.Context):
    """List configured schemas and whether their artifacts exist locally."""
    cfg: config.Config = ctx.obj
    for entry in cfg.schemas:
        locator = schema_loader.locator_for(entry, cfg)
        if utils.exists(locator.path):
            status = "cached"
        elif utils.exists(locator.gz_path):
            status = "compressed"
        elif locator.url:
            status = "remote"
        else:
            status = "missing"
        print_kv(entry.display_name, {"api": entry.api, "version": entry.version, "path": locator.path, "status": status})


@schema_app.command("pull")
def schema_pull(
    ctx: typer.Context,
    api: Optional[str] = typer.Option(None, help="API name"),
    version: Optional[str] = typer.Option(None, help="API version"),
    endpoint: Optional[str] = typer.Option(None, help="Live GraphQL endpoint to introspect"),
    token: Optional[str] = typer.Option(None, help="API token for the endpoint"),
    out: Optional[str] = typer.Option(None, help="Output file path"),
):
    """Fetch a schema and store it in the schema cache."""
    cfg: config.Config = ctx.obj
    try:
        entry = cfg.find_schema(api or cfg.default_api, version)
        console.print(f"[cyan]Pulling schema {entry.display_name}...[/cyan]")
        profile = schema_loader.pull_schema(entry, cfg, endpoint=endpoint, token=token, out=out)
        print_kv("Schema pulled", {"url": profile.url, "hash": profile.hash, "path": profile.path})
    except ToolkitError as e:
        _fail(e)


@schema_app.command("search")
def schema_search(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Search term, e.g. 'product'"),
    section: List[search.Section] = typer.Option([search.Section.ALL], help="Sections to show"),
    api: Optional[str] = typer.Option(None, help="API name"),
    version: Optional[str] = typer.Option(None, help="API version"),
):
    """Search schema types, queries and mutations by name."""
    cfg: config.Config = ctx.obj
    response = asyncio.run(
        search.introspect_schema(query, [s.value for s in section], api=api, version=version, cfg=cfg)
    )
    if not response.success:
        _fail(ToolkitError(response.error))
    print(response.text)


@schema_app.command("sdl")
def schema_sdl(
    ctx: typer.Context,
    api: Optional[str] = typer.Option(None, help="API name"),
    version: Optional[str] = typer.Option(None, help="API version"),
    out: Optional[str] = typer.Option(None, help="Write SDL to this file"),
):
    """Print the SDL reconstructed from a schema's introspection data."""
    cfg: config.Config = ctx.obj
    try:
        entry = cfg.find_schema(api or cfg.default_api, version)
        doc = schema_loader.load_introspection(schema_loader.locator_for(entry, cfg), timeout=cfg.request_timeout)
        sdl = compiler.introspection_to_sdl(doc)
        if out:
            utils.write_text(out, sdl)
            print_kv("SDL written", {"schema": entry.display_name, "path": out, "chars": len(sdl)})
        else:
            print(sdl)
    except ToolkitError as e:
        _fail(e)


@app.command("validate")
def validate_cmd(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="File with the operation (markdown or raw), or - for stdin"),
    api: Optional[str] = typer.Option(None, help="API name"),
    batch: bool = typer.Option(False, help="Validate every GraphQL code block in the input"),
    client_schema: bool = typer.Option(
        False, help="Build the schema directly from introspection and ignore unknown-type noise"
    ),
    output: str = typer.Option("console", help="Output format (console|json)"),
):
    """Validate GraphQL operations against a configured schema."""
    cfg: config.Config = ctx.obj
    try:
        text = sys.stdin.read() if source == "-" else utils.read_text(source)
        result = asyncio.run(run_validate(text, api or cfg.default_api, cfg, batch, client_schema))
    except (ToolkitError, OSError) as e:
        _fail(e)

    emit_checks(result.checks, output, result.valid if batch else None)

    if any(c.result == validation.ValidationOutcome.FAILED for c in result.checks):
        raise typer.Exit(2)


async def run_validate(
    text: str, schema_name: str, cfg: config.Config, batch: bool = False, client_schema: bool = False
) -> validation.BatchValidationResult:
    """
    Run single or batch validation with one shared schema cache.

    Args:
        text: Input text
        schema_name: API name
        cfg: Configuration
        batch: Validate every operation found in the text
        client_schema: Use the client-schema variant with significance filtering

    Returns:
        BatchValidationResult (a single check when batch is False)
    """
    cache = compiler.SchemaCache()

    if batch:
        return await validation.validate_operations(text, schema_name, cfg, cache, client_schema)

    validate = validation.validate_with_client_schema if client_schema else validation.validate_operation
    check = await validate(text, schema_name, cfg, cache)
    return validation.BatchValidationResult(
        valid=check.result == validation.ValidationOutcome.SUCCESS, checks=[check]
    )


@app.command("extract")
def extract_cmd(
    source: str = typer.Argument(..., help="File to scan, or - for stdin"),
):
    """Print the GraphQL operations found in a markdown file."""
    try:
        text = sys.stdin.read() if source == "-" else utils.read_text(source)
    except OSError as e:
        _fail(e)

    operations = extractor.extract_operations(text)
    if not operations:
        err_console.print("[yellow]No GraphQL operations found[/yellow]")
        raise typer.Exit(1)
    print("\n\n".join(operations))


@config_app.command("init")
def config_init(
    path: Optional[str] = typer.Option(None, help="Where to write the config file"),
):
    """Write an example config file."""
    written = config.create_example_config(path)
    print_kv("Config written", {"path": written})


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
