"""
Middleware modules for the FounderOS-AI server.
"""

from .logfire_middleware import LogfireMiddleware

__all__ = ["LogfireMiddleware"]
