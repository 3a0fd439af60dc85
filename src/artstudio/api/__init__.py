"""Digital Art Studio: FastAPI request proxy.

Modules
-------
main
    FastAPI application with the route handlers and the ``main()`` CLI
    entry point.
models
    Pydantic models for API request and response validation.
"""
