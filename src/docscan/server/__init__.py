"""HTTP server for Docscan."""

from docscan.server.app import create_app

__all__ = ["create_app"]
