"""Multipart payload construction for the image model.

The image model is always called with a multipart body, whether or not
reference images are supplied.  Field order is fixed::

    prompt, width, height, steps, input_image_0, input_image_1, ...

Reference images are drained completely into memory (chunks appended in
arrival order) before they are attached, so the encoded body never holds a
half-read upload.

Encoding is delegated to ``httpx``: a throwaway :class:`httpx.Request` is
built from the fields and its serialised body and ``Content-Type`` header
(with boundary) are lifted out.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from fluxgate.core.capabilities import MultipartPayload

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_CONTENT_TYPE = "image/png"
DEFAULT_IMAGE_FILENAME = "blob"
DRAIN_CHUNK_SIZE = 64 * 1024

# Only used to let httpx encode the body; nothing is sent to this URL.
_ENCODING_URL = "http://multipart.invalid/"


class AsyncReadable(Protocol):
    """Anything with an async ``read(size)`` - e.g. Starlette's ``UploadFile``."""

    async def read(self, size: int = -1) -> bytes: ...


@dataclass(frozen=True)
class ReferenceImage:
    """A fully buffered reference image taken from one ``image_N`` slot.

    Attributes:
        slot: Index of the form slot the image came from (0-3).
        filename: Client-supplied filename, if any.
        content_type: Declared content type, defaulting to ``image/png``.
        data: The image bytes.
    """

    slot: int
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        """Size of the buffered image in bytes."""
        return len(self.data)


async def drain_upload(stream: AsyncReadable, chunk_size: int = DRAIN_CHUNK_SIZE) -> bytes:
    """Read *stream* to exhaustion and return its bytes.

    Chunks are concatenated in the order they arrive.

    Args:
        stream: Object exposing ``async read(size)``.
        chunk_size: Maximum bytes requested per read.

    Returns:
        The complete stream contents.
    """
    chunks: list[bytes] = []
    while True:
        chunk = await stream.read(chunk_size)
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


async def buffer_reference_image(
    slot: int,
    upload: AsyncReadable,
    *,
    filename: str | None = None,
    content_type: str | None = None,
) -> ReferenceImage:
    """Drain *upload* and wrap it as a :class:`ReferenceImage`."""
    data = await drain_upload(upload)
    image = ReferenceImage(
        slot=slot,
        filename=filename or DEFAULT_IMAGE_FILENAME,
        content_type=content_type or DEFAULT_IMAGE_CONTENT_TYPE,
        data=data,
    )
    logger.info(
        f"Buffered image_{slot}: {image.filename}, {image.size} bytes, {image.content_type}"
    )
    return image


def build_generation_payload(
    prompt: str,
    images: list[ReferenceImage],
    *,
    width: int = 1024,
    height: int = 1024,
    steps: int = 25,
) -> MultipartPayload:
    """Encode the image-model request body.

    Args:
        prompt: Sanitised prompt.
        images: Buffered reference images in slot order.  Each is attached
            as ``input_image_{index}`` where *index* is its position in
            *images*, not its original slot.
        width: Output width in pixels.
        height: Output height in pixels.
        steps: Diffusion steps.

    Returns:
        The encoded :class:`MultipartPayload`.
    """
    fields = {
        "prompt": prompt,
        "width": str(width),
        "height": str(height),
        "steps": str(steps),
    }
    # Text fields go in as filename-less parts so httpx always emits multipart,
    # even with no images, and keeps the list order.
    parts: list[tuple[str, tuple]] = [
        (name, (None, value.encode("utf-8"))) for name, value in fields.items()
    ]
    parts.extend(
        (f"input_image_{index}", (image.filename, image.data, image.content_type))
        for index, image in enumerate(images)
    )

    logger.debug(f"Multipart fields: {describe_fields(fields, images)}")

    request = httpx.Request("POST", _ENCODING_URL, files=parts)
    body = request.read()
    content_type = request.headers["Content-Type"]
    logger.info(f"Built multipart payload: {len(body)} bytes, {content_type}")
    return MultipartPayload(body=body, content_type=content_type)


def describe_fields(fields: dict[str, str], images: list[ReferenceImage]) -> dict[str, str]:
    """Summarise payload fields for logging, replacing binary parts with sizes."""
    summary = dict(fields)
    for index, image in enumerate(images):
        summary[f"input_image_{index}"] = f"Blob({image.size} bytes, {image.content_type})"
    return summary
