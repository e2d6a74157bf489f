"""Human-readable document numbers (JOB-..., QU-..., INV-...).

Numbers are a millisecond timestamp that never repeats within the process
followed by three random digits. The unique column constraint catches the
rare cross-process clash.
"""

from __future__ import annotations

import secrets
import threading
import time


class DocumentNumberGenerator:
    """Issues ``<PREFIX>-<digits>`` numbers, strictly increasing per process."""

    def __init__(self, prefix: str, suffix_digits: int = 3) -> None:
        self.prefix = prefix
        self.suffix_digits = suffix_digits
        self._lock = threading.Lock()
        self._last_ms = 0

    def _next_ms(self) -> int:
        with self._lock:
            now_ms = time.time_ns() // 1_000_000
            if now_ms <= self._last_ms:
                now_ms = self._last_ms + 1
            self._last_ms = now_ms
            return now_ms

    def next(self) -> str:
        suffix = secrets.randbelow(10**self.suffix_digits)
        return f"{self.prefix}-{self._next_ms()}{suffix:0{self.suffix_digits}d}"


job_numbers = DocumentNumberGenerator("JOB")
quote_numbers = DocumentNumberGenerator("QU")
invoice_numbers = DocumentNumberGenerator("INV")
