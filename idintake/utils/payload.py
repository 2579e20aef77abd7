"""Helpers for image payloads arriving as base64 text."""

import base64
import binascii
import re

from idintake.core.exceptions import InvalidImageError, PayloadTooLargeError

_DATA_URI_PREFIX = re.compile(r"^data:image/[\w.+-]+;base64,", re.IGNORECASE)


def decode_image_payload(payload: str, max_size_mb: int | None = None) -> bytes:
    """Strip an optional ``data:image/...;base64,`` prefix and decode.

    Args:
        payload: Base64 text, optionally a full data URI from a camera capture
        max_size_mb: Reject decoded images larger than this

    Raises:
        InvalidImageError: Empty or undecodable payload
        PayloadTooLargeError: Decoded image exceeds ``max_size_mb``
    """
    if not payload or not payload.strip():
        raise InvalidImageError("No image provided")

    body = _DATA_URI_PREFIX.sub("", payload.strip(), count=1)
    body = "".join(body.split())
    try:
        image_bytes = base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidImageError("Image is not valid base64") from e

    if not image_bytes:
        raise InvalidImageError("Image is empty")

    if max_size_mb is not None:
        size_mb = len(image_bytes) / (1024 * 1024)
        if size_mb > max_size_mb:
            raise PayloadTooLargeError(max_size_mb=max_size_mb, actual_size_mb=size_mb)

    return image_bytes
