"""Request signature checks, source URL allow-lists and image size limits."""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import re
from collections.abc import Iterable, Sequence

INVALID_SIGNATURE = "Invalid signature"
INVALID_SIGNATURE_ENCODING = "Invalid signature encoding"

_RAW_URL_B64 = re.compile(r"[A-Za-z0-9_-]*")


class StatusError(Exception):
    """An error that carries an HTTP status code and a message safe to show clients."""

    def __init__(self, status_code: int, message: str, public_message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.public_message = public_message


class SignatureError(ValueError):
    """Raised when a request signature is malformed or does not match."""


def _decode_raw_url_base64(value: str) -> bytes:
    if not _RAW_URL_B64.fullmatch(value) or len(value) % 4 == 1:
        raise SignatureError(INVALID_SIGNATURE_ENCODING)
    try:
        return base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))
    except (binascii.Error, ValueError) as exc:
        raise SignatureError(INVALID_SIGNATURE_ENCODING) from exc


def signature_for(
    message: str | bytes, key: bytes, salt: bytes, signature_size: int = 32
) -> bytes:
    """Return the HMAC-SHA256 of salt + message, truncated to signature_size bytes."""
    if isinstance(message, str):
        message = message.encode()
    digest = hmac.new(key, salt + message, hashlib.sha256).digest()
    if signature_size < 32:
        return digest[:signature_size]
    return digest


def verify_signature(
    signature: str,
    path: str,
    keys: Sequence[bytes],
    salts: Sequence[bytes],
    signature_size: int = 32,
) -> None:
    """Check the signature of a path against every key/salt pair.

    Nothing is checked when no keys or no salts are configured.
    Raises SignatureError when the signature is not valid.
    """
    if not keys or not salts:
        return

    message_mac = _decode_raw_url_base64(signature)

    for key, salt in zip(keys, salts):
        if hmac.compare_digest(message_mac, signature_for(path, key, salt, signature_size)):
            return

    raise SignatureError(INVALID_SIGNATURE)


def verify_source_url(image_url: str, allowed_sources: Iterable[re.Pattern[str] | str]) -> bool:
    """Return True when the URL matches one of the allowed source patterns.

    An empty allow-list permits every source.
    """
    sources = list(allowed_sources)
    if not sources:
        return True
    return any(re.search(pattern, image_url) for pattern in sources)


def check_dimensions(width: int, height: int, max_resolution: int) -> None:
    """Raise StatusError (422) when the image has more pixels than allowed."""
    if width * height > max_resolution:
        raise StatusError(422, "Source image resolution is too big", "Invalid source image")