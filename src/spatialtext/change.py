from __future__ import annotations

import hashlib
from typing import Optional


def fingerprint(text: str) -> int:
    """64-bit, order-sensitive fingerprint of *text*."""
    digest = hashlib.blake2b(text.encode("utf-8", "surrogatepass"), digest_size=8)
    return int.from_bytes(digest.digest(), "big")


class ChangeDetector:
    """Remembers the fingerprint of the last accepted text.

    Dependent work (grid re-ingestion, repaint) should run only when
    :meth:`update` reports a change.
    """

    def __init__(self) -> None:
        self.last: Optional[int] = None

    def changed(self, text: str) -> bool:
        """True if *text* differs from the last stored text (no update)."""
        return fingerprint(text) != self.last

    def update(self, text: str) -> bool:
        """Store the fingerprint of *text*; return True if it changed."""
        fp = fingerprint(text)
        if fp == self.last:
            return False
        self.last = fp
        return True

    def reset(self) -> None:
        self.last = None
