from __future__ import annotations

import base64
import logging
import re

logger = logging.getLogger(__name__)

MAX_KEY_LENGTH = 50
_NON_ALPHANUMERIC = re.compile(r"[^A-Za-z0-9]+")


def derive_cache_key(locator: str) -> str | None:
    """Map a remote URL to a file-name-safe cache key.

    The URL is UTF-8 encoded, base64 encoded and stripped of ``+``, ``/`` and
    ``=``. Only the trailing ``MAX_KEY_LENGTH`` characters are kept. The
    mapping is one-way. Returns ``None`` when no key can be derived.
    """
    try:
        raw = locator.encode("utf-8")
    except UnicodeEncodeError:
        logger.warning("cache_key derive failed reason=unencodable locator=%r", locator)
        return None

    encoded = _NON_ALPHANUMERIC.sub("", base64.b64encode(raw).decode("ascii"))
    if not encoded:
        return None
    if len(encoded) > MAX_KEY_LENGTH:
        return encoded[-MAX_KEY_LENGTH:]
    return encoded
