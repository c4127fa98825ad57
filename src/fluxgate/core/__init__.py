"""Core request-shaping logic for Fluxgate.

Modules
-------
config
    Pydantic Settings configuration (``FLUXGATE_*`` environment variables).
capabilities
    ``TextEnhancer`` / ``ImageGenerator`` protocols and their result models.
enhancer
    Optional LLM prompt rewrite.
sanitizer
    Moderation false-positive rewrites.
payload
    Upload draining and multipart encoding for the image model.
errors
    Exception types and failure classification.
"""
