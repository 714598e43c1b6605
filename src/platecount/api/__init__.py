"""HTTP API for platecount."""

from platecount.api.app import create_app

__all__ = ["create_app"]
