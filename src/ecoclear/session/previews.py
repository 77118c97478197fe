"""Revocable in-memory image previews.

A preview is the server-side counterpart of a browser object URL: the
uploaded bytes are held under an unguessable token until the owner revokes
them. Revoking is idempotent and frees the bytes immediately.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Preview:
    token: str
    content_type: str
    size: int


class PreviewStore:
    """Holds preview bytes for one owner, keyed by token."""

    def __init__(self) -> None:
        self._items: dict[str, tuple[str, bytes]] = {}

    def create(self, data: bytes, content_type: str) -> Preview:
        token = secrets.token_urlsafe(16)
        self._items[token] = (content_type, data)
        logger.debug("Created preview %s (%d bytes)", token, len(data))
        return Preview(token=token, content_type=content_type, size=len(data))

    def get(self, token: str) -> tuple[str, bytes] | None:
        """Return (content_type, data), or None once revoked."""
        return self._items.get(token)

    def revoke(self, token: str) -> None:
        if self._items.pop(token, None) is not None:
            logger.debug("Revoked preview %s", token)

    def revoke_all(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, token: object) -> bool:
        return token in self._items
