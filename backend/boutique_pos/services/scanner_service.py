# Overview: Keystroke classifier that separates barcode-scanner bursts from human typing.
"""
Scanners type a whole code in a few milliseconds and finish with Enter.
The classifier keeps a buffer of characters that arrived in one fast burst
and emits it as a scan token when Enter arrives and the buffer is long enough.

This is a timing heuristic. A person typing faster than the threshold for
every key and reaching min_length before Enter is classified as a scan.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable

TERMINATOR_KEY = "Enter"


@dataclass(frozen=True)
class KeyEvent:
    key: str
    timestamp_ms: float


@dataclass(frozen=True)
class KeyOutcome:
    # Completed scan token, if this key finished one
    scanned: str | None = None
    # True when the host should suppress the key's default effect
    prevent_default: bool = False


class ScannerClassifier:
    def __init__(
        self,
        *,
        min_length: int = 3,
        time_threshold_ms: float = 100,
        on_scan: Callable[[str], None] | None = None,
    ):
        if min_length < 1:
            raise ValueError("min_length must be >= 1")
        if time_threshold_ms < 0:
            raise ValueError("time_threshold_ms must be >= 0")
        self.min_length = min_length
        self.time_threshold_ms = time_threshold_ms
        self.on_scan = on_scan
        self.buffer = ""
        self.last_key_time: float | None = None

    @staticmethod
    def is_accepted(key: str) -> bool:
        """Single characters and the terminator; arrows, modifiers, F-keys are not."""
        return len(key) == 1 or key == TERMINATOR_KEY

    def handle_key(self, key: str, timestamp_ms: float) -> KeyOutcome:
        if not self.is_accepted(key):
            return KeyOutcome()

        if self.last_key_time is None:
            is_rapid = False
        else:
            is_rapid = (timestamp_ms - self.last_key_time) <= self.time_threshold_ms
        self.last_key_time = timestamp_ms

        if key == TERMINATOR_KEY:
            code = self.buffer
            self.buffer = ""
            if len(code) >= self.min_length:
                if self.on_scan is not None:
                    self.on_scan(code)
                return KeyOutcome(scanned=code, prevent_default=True)
            return KeyOutcome()

        if is_rapid:
            self.buffer += key
        else:
            self.buffer = key
        return KeyOutcome()

    def feed(self, events: Iterable[KeyEvent]) -> list[str]:
        """Run a batch of events through the classifier; returns emitted tokens in order."""
        tokens = []
        for event in events:
            outcome = self.handle_key(event.key, event.timestamp_ms)
            if outcome.scanned is not None:
                tokens.append(outcome.scanned)
        return tokens

    def reset(self) -> None:
        self.buffer = ""
        self.last_key_time = None


def classifier_from_config(config, on_scan: Callable[[str], None] | None = None) -> ScannerClassifier:
    return ScannerClassifier(
        min_length=int(config.get("SCANNER_MIN_LENGTH", 3)),
        time_threshold_ms=float(config.get("SCANNER_TIME_THRESHOLD_MS", 100)),
        on_scan=on_scan,
    )
