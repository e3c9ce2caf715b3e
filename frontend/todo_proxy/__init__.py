"""
Todo Proxy Module

Forwards todo list/create/update calls to the backend store unchanged.
"""

from .client import BackendClient
from .routes import router

__all__ = ["BackendClient", "router"]
