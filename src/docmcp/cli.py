"""
docmcp CLI — Command-line interface for the document MCP server

Commands:
    docmcp init        Create ~/.docmcp/ and generate config
    docmcp serve       Start the MCP server (HTTP)
    docmcp load        Import JSON documents into a container
    docmcp status      Show databases, containers and document counts
    docmcp mcp-config  Print MCP client JSON config
"""

import asyncio
import json
from pathlib import Path

import click

from docmcp import __version__
from docmcp.config import Config


@click.group()
@click.version_option(version=__version__, prog_name="docmcp")
def main():
    """docmcp — MCP tool server over JSON document collections."""
    pass


@main.command()
def init():
    """Initialize docmcp: create ~/.docmcp/ and generate config."""
    Config.ensure_dirs()

    config_env = Config.DATA_DIR / "config.env"
    if not config_env.exists():
        config_env.write_text(
            "# docmcp Configuration\n"
            "# Uncomment and edit as needed.\n"
            "\n"
            "# DOCMCP_DATA_DIR=~/.docmcp\n"
            "# DOCMCP_DB_PATH=~/.docmcp/documents.db\n"
            "# DOCMCP_LOG_LEVEL=INFO\n"
            "# DOCMCP_HOST=127.0.0.1\n"
            "# DOCMCP_PORT=8080\n"
        )

    click.echo(f"docmcp initialized at {Config.DATA_DIR}")
    click.echo(f"  Config: {config_env}")
    click.echo(f"  Logs:   {Config.LOG_DIR}")
    click.echo(f"  DB:     {Config.DB_PATH}")
    click.echo()
    click.echo("Next: load documents with `docmcp load`, then `docmcp serve`.")


@main.command()
@click.option("--host", default=None, help="Bind host (default: DOCMCP_HOST)")
@click.option("--port", default=None, type=int, help="Bind port (default: DOCMCP_PORT)")
@click.option(
    "--log-level",
    default="info",
    type=click.Choice(["critical", "error", "warning", "info", "debug", "trace"]),
    help="Uvicorn log level.",
)
def serve(host, port, log_level):
    """Start the docmcp MCP server (HTTP)."""
    import uvicorn

    uvicorn.run(
        "docmcp.server.server:create_app",
        factory=True,
        host=host or Config.HOST,
        port=port or Config.PORT,
        log_level=log_level,
    )


@main.command()
@click.argument("database")
@click.argument("container")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def load(database, container, file):
    """Import a JSON document (or array of documents) into DATABASE/CONTAINER."""
    from docmcp.db.sqlite import DocumentStore, StoreError

    try:
        data = json.loads(file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"{file} is not valid JSON: {exc}")

    documents = data if isinstance(data, list) else [data]
    if not all(isinstance(d, dict) for d in documents):
        raise click.ClickException("Expected a JSON object or an array of objects")

    async def _load():
        store = DocumentStore()
        await store.initialize()
        try:
            await store.create_container(database, container)
            for doc in documents:
                await store.upsert(database, container, doc)
        finally:
            await store.close()

    try:
        asyncio.run(_load())
    except StoreError as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Loaded {len(documents)} documents into {database}/{container}")


@main.command()
def status():
    """Show document store statistics."""
    from docmcp.db.sqlite import DocumentStore

    if not Config.DB_PATH.exists():
        click.echo("No database found. Run `docmcp load` to import documents first.")
        return

    async def _stats():
        store = DocumentStore()
        await store.initialize()
        try:
            return await store.stats()
        finally:
            await store.close()

    rows = asyncio.run(_stats())

    click.echo("docmcp Status")
    click.echo("=" * 40)
    click.echo(f"Store:      {Config.DB_PATH}")
    click.echo(f"Databases:  {len({db for db, _, _ in rows})}")
    click.echo(f"Containers: {len(rows)}")
    click.echo(f"Documents:  {sum(count for _, _, count in rows):,}")

    if rows:
        click.echo()
        for database, container, count in rows:
            click.echo(f"  {database}/{container}: {count}")


@main.command("mcp-config")
@click.option("--host", default=None, help="Server host (default: DOCMCP_HOST)")
@click.option("--port", default=None, type=int, help="Server port (default: DOCMCP_PORT)")
def mcp_config(host, port):
    """Print MCP client config JSON for the HTTP endpoint."""
    url = f"http://{host or Config.HOST}:{port or Config.PORT}{Config.MCP_PATH}"

    config = {
        "mcpServers": {
            "docmcp": {
                "type": "http",
                "url": url,
            }
        }
    }

    click.echo("Add this to your MCP client settings:\n")
    click.echo(json.dumps(config, indent=2))


if __name__ == "__main__":
    main()
