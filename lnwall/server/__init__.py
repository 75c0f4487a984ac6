"""
Entry point for the lnwall server.
"""

import logging

import uvicorn

from lnwall.common.config import Config

from .core import LnwallServer


def start_server(config: Config | None = None) -> None:
    """Start the lnwall server."""
    if config is None:
        config = Config()
    logging.basicConfig(level=config.LOG_LEVEL)
    server = LnwallServer(config=config)
    uvicorn.run(server.app, host=server.server_host, port=server.server_port)
