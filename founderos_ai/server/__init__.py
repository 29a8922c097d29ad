"""
FounderOS-AI Server Package.

This package contains the FastAPI application serving the agent execution
and proactive endpoints.

Subpackages:
    api: Versioned API routers.
    core: Settings, database wiring and authentication.
    exception_handlers: Mapping of domain errors to HTTP responses.
    middleware: Request tracing.
    services: Service layer wiring the agent core to the routes.
"""
