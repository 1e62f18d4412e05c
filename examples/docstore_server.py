#!/usr/bin/env python3
"""Run a docstore server with in-memory storage and a short cache TTL for local experiments."""

import logging

import click
import uvicorn

from docstore.http import create_app_from_config
from docstore.utils.config import AppConfig

logger = logging.getLogger(__name__)


@click.command()
@click.option("--port", default=8080, help="Port to listen on for HTTP")
@click.option("--admin-token", default="demo-admin", help="Admin token accepted by /api/register")
@click.option("--cache-ttl", default=30.0, help="Cache TTL in seconds")
@click.option(
    "--log-level",
    default="DEBUG",
    help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
)
def main(port: int, admin_token: str, cache_ttl: float, log_level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    config = AppConfig.from_dict(
        {
            "server": {"port": port, "admin_token": admin_token},
            "cache": {"default_ttl_seconds": cache_ttl, "sweep_interval_seconds": cache_ttl * 2},
        }
    )
    app = create_app_from_config(config, debug=True)
    logger.info("docstore demo on 127.0.0.1:%s (admin token %s)", port, admin_token)
    uvicorn.run(app, host="127.0.0.1", port=port, log_level=log_level.lower())


if __name__ == "__main__":
    main()
