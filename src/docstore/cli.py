from __future__ import annotations

import logging

import click

from docstore.http import create_app_from_config
from docstore.utils.config import AppConfig, ConfigError

logger = logging.getLogger(__name__)


@click.group()
def cli() -> None:
    """docstore command line."""


@cli.command()
@click.option("--host", default=None, help="Interface to bind (default: DOCSTORE_HOST or 127.0.0.1)")
@click.option("--port", default=None, type=int, help="Port to listen on for HTTP")
@click.option(
    "--log-level",
    default="INFO",
    help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
)
@click.option(
    "--storage",
    type=click.Choice(["memory", "redis"], case_sensitive=False),
    default=None,
    help="Durable store backend",
)
@click.option("--redis-url", default=None, help="Redis URL for RedisStorage")
@click.option("--redis-prefix", default=None, help="Redis key prefix for RedisStorage")
@click.option("--cache-ttl", default=None, type=float, help="Default TTL in seconds for sessions and cached documents")
@click.option("--sweep-interval", default=None, type=float, help="Seconds between expired-entry sweeps")
@click.option("--debug", is_flag=True, default=False, help="Enable Starlette debug mode")
def serve(
    host: str | None,
    port: int | None,
    log_level: str,
    storage: str | None,
    redis_url: str | None,
    redis_prefix: str | None,
    cache_ttl: float | None,
    sweep_interval: float | None,
    debug: bool,
) -> None:
    """Run the document store HTTP server."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = AppConfig.from_env()
    except ConfigError as exc:
        raise click.UsageError(str(exc)) from exc
    if host is not None:
        config.server.host = host
    if port is not None:
        config.server.port = port
    if redis_url is not None:
        config.storage.connection_string = redis_url
        config.storage.type = "redis"
    if storage is not None:
        config.storage.type = storage.lower()
    if redis_prefix is not None:
        config.storage.prefix = redis_prefix
    if cache_ttl is not None:
        config.cache.default_ttl_seconds = cache_ttl
    if sweep_interval is not None:
        config.cache.sweep_interval_seconds = sweep_interval

    try:
        app = create_app_from_config(config, debug=debug)
    except ConfigError as exc:
        raise click.UsageError(str(exc)) from exc

    logger.info(
        "Starting docstore on %s:%s storage=%s ttl=%ss",
        config.server.host,
        config.server.port,
        config.storage.type,
        config.cache.default_ttl_seconds,
    )

    import uvicorn

    uvicorn.run(app, host=config.server.host, port=config.server.port, log_level=log_level.lower())


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
