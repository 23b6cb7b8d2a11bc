"""HTTP API for DRIP."""

from .server import ApiServer, client_ip, create_app

__all__ = ["ApiServer", "client_ip", "create_app"]
