"""Shared pytest fixtures for Fluxgate tests."""

from __future__ import annotations

import re
from collections.abc import Callable

import pytest
from fastapi.testclient import TestClient

from fluxgate.api.main import create_app
from fluxgate.core.capabilities import ChatMessage, MultipartPayload
from fluxgate.core.config import FluxgateConfig


class FakeTextEnhancer:
    """Records enhancement calls and answers with a canned response.

    Args:
        response: Value returned from ``complete`` (a dict or model).
        error: If set, raised from ``complete`` instead.
    """

    def __init__(self, response: object = None, error: Exception | None = None) -> None:
        self.response = response if response is not None else {"response": "enhanced prompt"}
        self.error = error
        self.calls: list[tuple[list[ChatMessage], str | None]] = []

    async def complete(
        self,
        messages: list[ChatMessage],
        *,
        gateway_id: str | None = None,
    ) -> object:
        self.calls.append((messages, gateway_id))
        if self.error is not None:
            raise self.error
        return self.response


class FakeImageGenerator:
    """Records generation payloads and answers with a canned response."""

    def __init__(self, response: object = None, error: Exception | None = None) -> None:
        self.response = response if response is not None else {"image": "abc123"}
        self.error = error
        self.payloads: list[MultipartPayload] = []

    async def generate(self, payload: MultipartPayload) -> object:
        self.payloads.append(payload)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def test_config() -> FluxgateConfig:
    """Create a configuration with dummy credentials and no .env lookup.

    Returns:
        FluxgateConfig instance for testing
    """
    return FluxgateConfig(
        _env_file=None,
        account_id="test-account",
        api_token="test-token",
        gateway_id="test-gateway",
    )


@pytest.fixture
def text_enhancer() -> FakeTextEnhancer:
    return FakeTextEnhancer()


@pytest.fixture
def image_generator() -> FakeImageGenerator:
    return FakeImageGenerator()


@pytest.fixture
def test_client(
    test_config: FluxgateConfig,
    text_enhancer: FakeTextEnhancer,
    image_generator: FakeImageGenerator,
) -> TestClient:
    """FastAPI TestClient wired to fake capabilities.

    Args:
        test_config: Configuration fixture
        text_enhancer: Fake text capability (inspect ``.calls``)
        image_generator: Fake image capability (inspect ``.payloads``)

    Returns:
        TestClient for the gateway application
    """
    app = create_app(
        test_config,
        text_enhancer=text_enhancer,
        image_generator=image_generator,
    )
    return TestClient(app)


def _parse_multipart(payload: MultipartPayload) -> list[dict]:
    boundary = payload.content_type.split("boundary=", 1)[1].encode("ascii")
    parts = []
    # Layout: preamble, one chunk per part, then the closing "--\r\n".
    for chunk in payload.body.split(b"--" + boundary)[1:-1]:
        head, _, data = chunk[2:].partition(b"\r\n\r\n")
        headers = head.decode("utf-8")
        name = re.search(r'; name="([^"]*)"', headers)
        filename = re.search(r'; filename="([^"]*)"', headers)
        content_type = re.search(r"Content-Type: (\S+)", headers)
        parts.append(
            {
                "name": name.group(1) if name else None,
                "filename": filename.group(1) if filename else None,
                "content_type": content_type.group(1) if content_type else None,
                "data": data[:-2],
            }
        )
    return parts


@pytest.fixture
def parse_multipart() -> Callable[[MultipartPayload], list[dict]]:
    """Split an encoded payload into ``{name, filename, content_type, data}`` dicts."""
    return _parse_multipart
