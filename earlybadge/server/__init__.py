"""
Entry point for the development replica.
"""

import logging

import uvicorn

from earlybadge.common.config import Config

from .core import RegistryServer


def start_server(server: RegistryServer | None = None) -> None:
    """Serve the replica with uvicorn."""
    if server is None:
        server = RegistryServer(Config())
    logging.basicConfig(level=server.config.LOG_LEVEL)
    uvicorn.run(server.app, host=server.server_host, port=server.server_port)
