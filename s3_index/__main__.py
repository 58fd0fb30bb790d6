"""Command line entry point for the bucket index server."""
import logging
import sys
from pathlib import Path
from typing import Optional

import typer
import uvicorn
from keyring.errors import KeyringError

from .app import create_app
from .credentials import KeychainStore, resolve_secret_key
from .settings import SettingsStorage, build_server_settings, build_signing_config

app = typer.Typer(help="Serve an S3 bucket as a browsable index of presigned links.", add_completion=False)

LOGGER = logging.getLogger("s3_index")


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(levelname)s %(message)s",
        stream=sys.stdout,
    )


@app.command()
def serve(
    bucket: Optional[str] = typer.Option(None, help="Bucket to expose."),
    region: Optional[str] = typer.Option(None, help="Region name, 'custom' when only an endpoint is given."),
    endpoint: Optional[str] = typer.Option(None, help="S3-compatible endpoint URL."),
    access_key: Optional[str] = typer.Option(None, help="Access key id; the secret comes from env or keychain."),
    config: Optional[Path] = typer.Option(None, "--config", help="JSON configuration file."),
    ttl: Optional[int] = typer.Option(None, help="Presigned link lifetime in seconds."),
    max_pages: Optional[int] = typer.Option(None, help="Maximum store pages fetched per listing."),
    page_size: Optional[int] = typer.Option(None, help="Keys requested per store page."),
    delimiter: Optional[str] = typer.Option(None, help="Key delimiter used for directories."),
    strict_prefixes: Optional[bool] = typer.Option(
        None, "--strict-prefixes/--lenient-prefixes", help="Answer 404 for empty non-root prefixes."
    ),
    deadline: Optional[float] = typer.Option(None, help="Per-request listing deadline in seconds."),
    host: Optional[str] = typer.Option(None, help="Interface to bind."),
    port: Optional[int] = typer.Option(None, help="Port to bind."),
    log_level: Optional[str] = typer.Option(None, help="Logging level."),
) -> None:
    """Start the HTTP server."""

    file_values = SettingsStorage(config).load() if config else {}
    server = build_server_settings(file_values, host=host, port=port, log_level=log_level)
    setup_logging(server.log_level)

    if endpoint and not region and not file_values.get("region"):
        region = "custom"
    key_id = access_key or file_values.get("access_key")
    try:
        signing = build_signing_config(
            file_values,
            bucket=bucket,
            region=region,
            endpoint_url=endpoint,
            access_key=key_id,
            secret_key=resolve_secret_key(key_id),
            link_ttl=ttl,
            max_pages=max_pages,
            page_size=page_size,
            delimiter=delimiter,
            strict_prefixes=strict_prefixes,
            request_deadline=deadline,
        )
    except ValueError as exc:
        typer.echo(f"Invalid configuration: {exc}", err=True)
        raise typer.Exit(code=2)

    LOGGER.info("serving bucket %s on %s:%s", signing.bucket, server.host, server.port)
    uvicorn.run(
        create_app(signing),
        host=server.host,
        port=server.port,
        log_level=server.log_level.lower(),
        access_log=False,
    )


@app.command("store-secret")
def store_secret(
    access_key: str = typer.Argument(..., help="Access key id the secret belongs to."),
    secret_key: str = typer.Option(..., prompt=True, hide_input=True, help="Secret access key."),
) -> None:
    """Save a secret key in the OS keychain for later `serve` runs."""

    try:
        KeychainStore().set_secret(access_key, secret_key)
    except KeyringError as exc:
        typer.echo(f"Could not store secret in the keychain: {exc}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Stored secret for {access_key}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
