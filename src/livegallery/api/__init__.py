"""Live Gallery — FastAPI HTTP and WebSocket layer.

Modules
-------
main
    Application factory, route handlers, and the ``main()`` CLI entry point.
models
    Pydantic models for request and response validation.
errors
    Exception handlers producing ``{"error": message}`` bodies.
rate_limit
    Per-address request throttling middleware.
"""
