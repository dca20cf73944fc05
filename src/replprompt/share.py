"""Share links: encode a record's text into a URL and copy it."""

from __future__ import annotations

import base64
import logging
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import pyperclip

from replprompt.errors import ShareError

logger = logging.getLogger(__name__)

DEFAULT_PARAM = "expr"


def encode_share_text(text: str) -> str:
    """Base64 of the UTF-8 text with the ``=`` padding stripped."""
    return base64.b64encode(text.encode("utf-8")).decode("ascii").rstrip("=")


def encode_share_url(text: str, base_url: str, param: str = DEFAULT_PARAM) -> str:
    """Return *base_url* with *param* set to the encoded *text*.

    Other query parameters of *base_url* are kept in order; an existing
    *param* is replaced in place.
    """
    parts = urlsplit(base_url)
    query = parse_qsl(parts.query, keep_blank_values=True)
    encoded = encode_share_text(text)

    replaced = False
    params: list[tuple[str, str]] = []
    for key, value in query:
        if key == param:
            if replaced:
                continue
            value = encoded
            replaced = True
        params.append((key, value))
    if not replaced:
        params.append((param, encoded))

    return urlunsplit(parts._replace(query=urlencode(params)))


def copy_to_clipboard(text: str) -> None:
    """Put *text* on the system clipboard.

    Raises :class:`ShareError` when no clipboard mechanism is available.
    """
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as exc:
        raise ShareError(f"System clipboard unavailable: {exc}") from exc
    logger.info("Copied %d chars to the system clipboard", len(text))
