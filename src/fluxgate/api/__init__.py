"""Fluxgate - FastAPI HTTP layer.

Modules
-------
main
    FastAPI application factory, the ``POST /generate`` handler and the
    ``main()`` CLI entry point.
models
    Pydantic response models and the parsed form request.
"""
