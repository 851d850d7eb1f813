"""API route handlers."""

from api.routes import health, tree, roots

__all__ = ["health", "tree", "roots"]
