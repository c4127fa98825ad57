"""Fluxgate - FastAPI Application.

This module defines the gateway's single endpoint, the application factory
used to inject model capabilities, and the ``main()`` CLI function that
launches the uvicorn server.

Request Flow
------------
``POST /generate`` (``multipart/form-data``):

1. Read the form once: ``prompt``, ``enhance`` and ``image_0``..``image_3``.
2. Reject a missing or blank prompt with 400 before any upstream call.
3. Drain each supplied reference image into memory, in slot order.
4. If ``enhance`` is ``"true"`` and no images were supplied, rewrite the
   prompt with the text model.  Failures here are logged and ignored.
5. Sanitise the active prompt (see :mod:`fluxgate.core.sanitizer`).
6. Encode the multipart payload and call the image model.
7. Return the base64 image, or a classified error.

Endpoints
---------
========  ===============  ==========================================
Method    Path             Purpose
========  ===============  ==========================================
OPTIONS   any              CORS preflight - 200, empty body
POST      ``/generate``    Generate an image
========  ===============  ==========================================

Everything else answers 404 ``Not Found`` in plain text.  Every response
carries the same permissive CORS headers.

Usage
-----
CLI (installed entry point)::

    fluxgate

Direct invocation::

    python -m fluxgate.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import ValidationError
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException

from fluxgate import __version__
from fluxgate.api.models import (
    GenerateFailure,
    GenerateSuccess,
    GenerationRequest,
    PromptRequired,
)
from fluxgate.clients.workers_ai import WorkersAIClient
from fluxgate.core.capabilities import GeneratedImage, ImageGenerator, TextEnhancer
from fluxgate.core.config import FluxgateConfig, config
from fluxgate.core.enhancer import enhance_prompt
from fluxgate.core.errors import (
    ErrorCode,
    InvalidResponseError,
    classify_generation_error,
)
from fluxgate.core.payload import (
    ReferenceImage,
    buffer_reference_image,
    build_generation_payload,
)
from fluxgate.core.sanitizer import sanitize_prompt

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


# ---------------------------------------------------------------------------
# Application factory.
# ---------------------------------------------------------------------------


def create_app(
    settings: FluxgateConfig | None = None,
    *,
    text_enhancer: TextEnhancer | None = None,
    image_generator: ImageGenerator | None = None,
) -> FastAPI:
    """Build the gateway application.

    Capabilities that are not injected are served by a shared
    :class:`WorkersAIClient`, created on startup and closed on shutdown.

    Args:
        settings: Configuration to use.  Defaults to the global ``config``.
        text_enhancer: Capability used for prompt enhancement.
        image_generator: Capability used for image generation.

    Returns:
        The configured FastAPI application.
    """
    settings = settings or config

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        client: WorkersAIClient | None = None
        if app.state.text_enhancer is None or app.state.image_generator is None:
            client = WorkersAIClient(settings)
            if app.state.text_enhancer is None:
                app.state.text_enhancer = client
            if app.state.image_generator is None:
                app.state.image_generator = client
            logger.info(
                f"Workers AI client ready (text={settings.text_model}, "
                f"image={settings.image_model}, configured={settings.is_configured})"
            )

        yield

        if client is not None:
            await client.aclose()
            logger.info("Workers AI client closed on shutdown.")

    app = FastAPI(
        title="Fluxgate",
        description="Prompt-enhancing gateway for hosted image generation.",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.text_enhancer = text_enhancer
    app.state.image_generator = image_generator

    @app.middleware("http")
    async def cors_middleware(request: Request, call_next) -> Response:
        # Preflight is answered for every path, before routing.
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=CORS_HEADERS)
        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    @app.exception_handler(StarletteHTTPException)
    async def not_found_handler(request: Request, exc: StarletteHTTPException) -> Response:
        # Unknown paths and wrong methods on /generate look the same to clients.
        return PlainTextResponse("Not Found", status_code=404)

    app.add_api_route("/generate", generate_image, methods=["POST"])
    return app


# ---------------------------------------------------------------------------
# Helpers.
# ---------------------------------------------------------------------------


def _json(body: dict, status_code: int = 200) -> JSONResponse:
    return JSONResponse(content=body, status_code=status_code)


def _validate_generated(raw: object) -> GeneratedImage:
    """Check the image model's answer carries a base64 ``image``."""
    try:
        return GeneratedImage.model_validate(raw)
    except ValidationError as e:
        logger.error(f"Unexpected image model response: {raw!r:.200}")
        raise InvalidResponseError("Invalid response from FLUX model") from e


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


async def generate_image(request: Request) -> JSONResponse:
    """Generate an image from a multipart prompt request.

    Form fields:
        prompt: Required text prompt.
        enhance: ``"true"`` to request an LLM rewrite (ignored with images).
        image_0..image_3: Optional reference images.

    Returns:
        200 with :class:`GenerateSuccess`, 400 with :class:`PromptRequired`,
        or 500 with :class:`GenerateFailure`.
    """
    settings: FluxgateConfig = request.app.state.settings

    try:
        logger.info("Generate request received")

        async with request.form() as form:
            raw_prompt = form.get("prompt")
            prompt = raw_prompt if isinstance(raw_prompt, str) else None
            enhance = form.get("enhance") == "true"

            uploads: list[tuple[int, UploadFile]] = []
            for slot in range(settings.max_reference_images):
                value = form.get(f"image_{slot}")
                if isinstance(value, UploadFile):
                    uploads.append((slot, value))
                elif value is not None:
                    logger.warning(f"Ignoring non-file value in image_{slot}")

            logger.info(
                f"Input: prompt length={len(prompt or '')}, enhance={enhance}, "
                f"images={len(uploads)}"
            )

            if not prompt or not prompt.strip():
                logger.warning("Rejected request without a prompt")
                return _json(PromptRequired().to_body(), status_code=400)

            images: list[ReferenceImage] = []
            for slot, upload in uploads:
                images.append(
                    await buffer_reference_image(
                        slot,
                        upload,
                        filename=upload.filename,
                        content_type=upload.content_type,
                    )
                )

        gen_request = GenerationRequest(prompt=prompt.strip(), enhance=enhance, images=images)
        final_prompt = gen_request.prompt
        enhanced_prompt: str | None = None

        # --- Enhancement ---------------------------------------------------
        if gen_request.should_enhance:
            result = await enhance_prompt(
                request.app.state.text_enhancer,
                final_prompt,
                gateway_id=settings.gateway_id or None,
            )
            final_prompt = result.prompt
            enhanced_prompt = result.enhanced_prompt
        elif gen_request.images:
            logger.info("Prompt enhancement skipped (images provided)")
        else:
            logger.info("Prompt enhancement disabled by request")

        # --- Sanitisation --------------------------------------------------
        sanitized = sanitize_prompt(final_prompt)
        if sanitized != final_prompt:
            logger.info(f"Sanitized prompt: {sanitized}")
        final_prompt = sanitized

        payload = build_generation_payload(
            final_prompt,
            gen_request.images,
            width=settings.image_width,
            height=settings.image_height,
            steps=settings.image_steps,
        )

        # --- Generation ----------------------------------------------------
        try:
            generated = _validate_generated(
                await request.app.state.image_generator.generate(payload)
            )
        except Exception as e:
            logger.error(f"Image generation failed: {e}", exc_info=True)
            code, message = classify_generation_error(str(e))
            return _json(GenerateFailure(error=message, code=code).to_body(), status_code=500)

        logger.info(f"Image generated ({len(generated.image)} base64 chars)")
        return _json(
            GenerateSuccess(image=generated.image, enhanced_prompt=enhanced_prompt).to_body()
        )

    except Exception as e:
        logger.error(f"Request processing failed: {e}", exc_info=True)
        failure = GenerateFailure(
            error=str(e) or "Internal server error",
            code=ErrorCode.SERVER_ERROR,
        )
        return _json(failure.to_body(), status_code=500)


# ---------------------------------------------------------------------------
# Module-level application and CLI entry point.
# ---------------------------------------------------------------------------

app = create_app()


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :data:`~fluxgate.core.config.config`
    (``FLUXGATE_SERVER_HOST``, ``FLUXGATE_SERVER_PORT``,
    ``FLUXGATE_LOG_LEVEL``).  Defaults to ``0.0.0.0:8787``.

    Registered as the ``fluxgate`` console script in ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    if not config.is_configured:
        logger.warning("FLUXGATE_ACCOUNT_ID / FLUXGATE_API_TOKEN not set; upstream calls will fail.")

    uvicorn.run(
        "fluxgate.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
