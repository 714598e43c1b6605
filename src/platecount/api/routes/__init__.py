"""HTTP routes."""

from platecount.api.routes import batches, donations

__all__ = ["batches", "donations"]
