from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional

from authgate.core.sessions.registry import SessionRegistry


@dataclass
class SweeperConfig:
    enabled: bool = False
    interval_seconds: float = 300.0


class SessionSweeper:
    """
    Optional periodic pruning of expired sessions.

    Lazy expiry already keeps every operation correct; this only bounds memory
    held by accounts that never come back after their session expired.
    """

    def __init__(self, *, registry: SessionRegistry, cfg: SweeperConfig, logger=None):
        self.registry = registry
        self.cfg = cfg
        self.logger = logger
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if not self.cfg.enabled:
            return
        if self.is_running():
            return
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._loop, args=(self._stop,), name="session-sweeper", daemon=True)
        self._thread.start()
        if self.logger:
            self.logger.info(f"Session sweeper started (every {self.cfg.interval_seconds:g}s)")

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=2.0)

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> int:
        removed = self.registry.sweep_expired()
        if removed and self.logger:
            self.logger.info(f"Session sweeper pruned {removed} expired session(s)")
        return removed

    def _loop(self, stop: threading.Event) -> None:
        interval = max(0.05, float(self.cfg.interval_seconds))
        while not stop.wait(interval):
            try:
                self.run_once()
            except Exception as e:  # noqa: BLE001
                if self.logger:
                    self.logger.warning(f"Session sweeper error: {e}")
