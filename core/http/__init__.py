"""
HTTP Client Module

JSON POST transport used by the chain RPC layer.
"""

from .client import HttpClient, HttpError, HttpResponse

__all__ = [
    "HttpClient",
    "HttpError",
    "HttpResponse",
]
