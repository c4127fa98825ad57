"""Cloudflare Workers AI client.

Implements both gateway capabilities over the Workers AI REST API:

- :meth:`WorkersAIClient.complete` - chat completion for prompt enhancement,
  optionally routed through an AI Gateway for logging and analytics.
- :meth:`WorkersAIClient.generate` - image generation from a multipart body.

Endpoints
---------
Direct::

    POST {api_base_url}/accounts/{account_id}/ai/run/{model}

Through AI Gateway::

    POST {gateway_base_url}/{account_id}/{gateway_id}/workers-ai/{model}

Both return the standard Cloudflare envelope::

    {"success": true, "result": {...}, "errors": [], "messages": []}

Failures are raised as :class:`WorkersAIError`.  Each envelope error is
rendered as ``"<code>: <message>"`` so numeric provider codes (3030, 3040,
...) survive into the exception text, where
:func:`~fluxgate.core.errors.classify_generation_error` looks for them.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel, Field, ValidationError

from fluxgate.core.capabilities import (
    ChatMessage,
    GeneratedImage,
    MultipartPayload,
    TextCompletion,
)
from fluxgate.core.config import FluxgateConfig
from fluxgate.core.errors import FluxgateError, InvalidResponseError

logger = logging.getLogger(__name__)

_ERROR_SNIPPET_LIMIT = 500


class WorkersAIError(FluxgateError):
    """A Workers AI call failed.

    Attributes:
        status_code: HTTP status of the upstream response, if one arrived.
        codes: Numeric error codes reported in the response envelope.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        codes: list[int] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.codes = codes or []


class EnvelopeError(BaseModel):
    """One entry of the envelope's ``errors`` list."""

    code: int | None = None
    message: str = ""

    def render(self) -> str:
        if self.code is None:
            return self.message
        return f"{self.code}: {self.message}" if self.message else str(self.code)


class Envelope(BaseModel):
    """Cloudflare API response envelope."""

    success: bool = True
    result: Any = None
    errors: list[EnvelopeError] = Field(default_factory=list)


class WorkersAIClient:
    """Async Workers AI client implementing ``TextEnhancer`` and ``ImageGenerator``.

    Args:
        config: Gateway configuration supplying credentials, URLs, models
            and timeout.
        transport: Optional custom transport (``httpx.MockTransport`` in tests).

    Example:
        >>> async with WorkersAIClient(config) as client:
        ...     completion = await client.complete(messages, gateway_id="my-gateway")
    """

    def __init__(
        self,
        config: FluxgateConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(config.request_timeout, connect=10.0),
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> WorkersAIClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # URL construction
    # ------------------------------------------------------------------

    def model_url(self, model: str, *, gateway_id: str | None = None) -> str:
        """Return the run URL for *model*, via AI Gateway when *gateway_id* is set."""
        account = self.config.account_id
        if gateway_id:
            base = self.config.gateway_base_url.rstrip("/")
            return f"{base}/{account}/{gateway_id}/workers-ai/{model}"
        base = self.config.api_base_url.rstrip("/")
        return f"{base}/accounts/{account}/ai/run/{model}"

    # ------------------------------------------------------------------
    # Capabilities
    # ------------------------------------------------------------------

    async def complete(
        self,
        messages: list[ChatMessage],
        *,
        gateway_id: str | None = None,
    ) -> TextCompletion:
        """Run the configured text model over *messages*.

        Raises:
            WorkersAIError: On transport failure or an unsuccessful envelope.
            InvalidResponseError: If ``result`` has no usable text field.
        """
        model = self.config.text_model
        result = await self._run(
            self.model_url(model, gateway_id=gateway_id),
            model=model,
            json={"messages": [m.model_dump() for m in messages]},
        )
        try:
            return TextCompletion.model_validate(result)
        except ValidationError as e:
            raise InvalidResponseError(f"Invalid response from {model}") from e

    async def generate(self, payload: MultipartPayload) -> GeneratedImage:
        """Run the configured image model over a multipart *payload*.

        Raises:
            WorkersAIError: On transport failure or an unsuccessful envelope.
            InvalidResponseError: If ``result`` carries no base64 ``image``.
        """
        model = self.config.image_model
        result = await self._run(
            self.model_url(model),
            model=model,
            content=payload.body,
            headers={"Content-Type": payload.content_type},
        )
        try:
            return GeneratedImage.model_validate(result)
        except ValidationError as e:
            raise InvalidResponseError("Invalid response from FLUX model") from e

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _run(
        self,
        url: str,
        *,
        model: str,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> Any:
        """POST to *url* and return the envelope's ``result``."""
        if not self.config.is_configured:
            raise WorkersAIError(
                "Workers AI credentials are not configured "
                "(set FLUXGATE_ACCOUNT_ID and FLUXGATE_API_TOKEN)"
            )

        request_headers = {"Authorization": f"Bearer {self.config.api_token}"}
        if headers:
            request_headers.update(headers)

        logger.info(f"Calling {model}")
        try:
            response = await self._client.post(url, headers=request_headers, **kwargs)
        except httpx.TimeoutException as e:
            raise WorkersAIError(f"Request to {model} timed out") from e
        except httpx.HTTPError as e:
            raise WorkersAIError(f"Request to {model} failed: {e}") from e

        envelope = self._parse_envelope(response, model)
        if response.is_success and envelope.success:
            logger.info(f"{model} responded with HTTP {response.status_code}")
            return envelope.result

        codes = [err.code for err in envelope.errors if err.code is not None]
        detail = "; ".join(err.render() for err in envelope.errors if err.render())
        message = detail or f"{model} returned HTTP {response.status_code}"
        if response.status_code == 429 and "rate limit" not in message:
            message = f"{message} (rate limit)"
        logger.error(f"{model} failed with HTTP {response.status_code}: {message}")
        raise WorkersAIError(message, status_code=response.status_code, codes=codes)

    @staticmethod
    def _parse_envelope(response: httpx.Response, model: str) -> Envelope:
        try:
            return Envelope.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            snippet = response.text[:_ERROR_SNIPPET_LIMIT]
            raise WorkersAIError(
                f"{model} returned a non-JSON response (HTTP {response.status_code}): {snippet}",
                status_code=response.status_code,
            ) from e
