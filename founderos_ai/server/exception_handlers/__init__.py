"""
Exception handlers for the FounderOS-AI server.

This package contains the handlers for domain errors and unhandled exceptions
and a setup function to register them with the FastAPI application.
"""

from .global_handler import setup_exception_handlers

__all__ = ["setup_exception_handlers"]
