"""
Time-bounded unlock sessions.

After a successful unlock the decrypted private key is cached for a fixed
window (30 minutes by default).  User activity pushes the expiry forward.
Expiry is lazy: ``is_unlocked()`` checks the clock and drops an expired
session as a side effect, so a periodic poll driven by a ``Ticker`` is
enough to auto-lock.

Time and scheduling are injected (``Clock`` / ``Ticker``) so expiry can be
tested deterministically.
"""

from __future__ import annotations

import asyncio
import json
import logging
import math
import time
from dataclasses import dataclass
from typing import Callable

from nocostcoin_wallet.kv_store import KeyValueStore, MemoryStore

logger = logging.getLogger("nocostcoin_session")

SESSION_KEY = "nocostcoin_wallet_session"
DEFAULT_SESSION_SECONDS = 30 * 60
DEFAULT_CHECK_INTERVAL = 60.0


# ===================================================================
#  Clocks
# ===================================================================

class Clock:
    """Source of the current time in seconds."""

    def now(self) -> float:
        raise NotImplementedError


class SystemClock(Clock):
    def now(self) -> float:
        return time.time()


class ManualClock(Clock):
    """A clock that only moves when told to."""

    def __init__(self, start: float = 0.0):
        self._now = float(start)

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now += seconds

    def set(self, when: float) -> None:
        self._now = float(when)


# ===================================================================
#  Tickers
# ===================================================================

class Ticker:
    """Invokes a callback periodically until stopped."""

    def start(self, callback: Callable[[], None]) -> None:
        raise NotImplementedError

    def stop(self) -> None:
        raise NotImplementedError

    @property
    def running(self) -> bool:
        raise NotImplementedError


class AsyncioTicker(Ticker):
    """Schedules the callback on the running asyncio event loop."""

    def __init__(self, interval: float = DEFAULT_CHECK_INTERVAL,
                 loop: asyncio.AbstractEventLoop | None = None):
        if interval <= 0:
            raise ValueError("Ticker interval must be positive")
        self.interval = interval
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None
        self._callback: Callable[[], None] | None = None

    @property
    def running(self) -> bool:
        return self._callback is not None

    def start(self, callback: Callable[[], None]) -> None:
        self.stop()
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        self._callback = callback
        self._schedule()

    def _schedule(self) -> None:
        self._handle = self._loop.call_later(self.interval, self._fire)

    def _fire(self) -> None:
        if self._callback is None:
            return
        try:
            self._callback()
        except Exception:
            logger.exception("Ticker callback failed")
        if self._callback is not None:
            self._schedule()

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._callback = None


class ManualTicker(Ticker):
    """Fires only when ``tick()`` is called."""

    def __init__(self):
        self._callback: Callable[[], None] | None = None

    @property
    def running(self) -> bool:
        return self._callback is not None

    def start(self, callback: Callable[[], None]) -> None:
        self._callback = callback

    def stop(self) -> None:
        self._callback = None

    def tick(self) -> None:
        if self._callback is not None:
            self._callback()


# ===================================================================
#  Sessions
# ===================================================================

@dataclass
class Session:
    private_key: str
    expires_at: float

    def to_json(self) -> str:
        return json.dumps({"privateKey": self.private_key, "expiresAt": self.expires_at})

    @classmethod
    def from_json(cls, text: str) -> Session:
        data = json.loads(text)
        expires_at = float(data["expiresAt"])
        if not math.isfinite(expires_at):
            raise ValueError("Session expiry is not a finite time")
        return cls(private_key=data["privateKey"], expires_at=expires_at)

    def __repr__(self) -> str:
        return f"Session(expires_at={self.expires_at})"


class SessionManager:
    """Locked / Unlocked state machine with lazy expiry."""

    def __init__(
        self,
        store: KeyValueStore | None = None,
        clock: Clock | None = None,
        duration: float = DEFAULT_SESSION_SECONDS,
    ):
        if duration <= 0:
            raise ValueError("Session duration must be positive")
        self.store = store if store is not None else MemoryStore()
        self.clock = clock or SystemClock()
        self.duration = duration

    def _read(self) -> Session | None:
        raw = self.store.get(SESSION_KEY)
        if raw is None:
            return None
        try:
            return Session.from_json(raw)
        except (ValueError, KeyError, TypeError):
            logger.warning("Discarding unreadable session")
            self.store.delete(SESSION_KEY)
            return None

    def start(self, private_key: str) -> Session:
        """Enter Unlocked with a fresh expiry window."""
        session = Session(private_key, self.clock.now() + self.duration)
        self.store.set(SESSION_KEY, session.to_json())
        logger.info("Session started")
        return session

    def end(self) -> None:
        """Enter Locked."""
        if self.store.get(SESSION_KEY) is not None:
            self.store.delete(SESSION_KEY)
            logger.info("Session ended")

    def is_unlocked(self) -> bool:
        session = self._read()
        if session is None:
            return False
        if self.clock.now() >= session.expires_at:
            self.store.delete(SESSION_KEY)
            logger.info("Session expired; wallet locked")
            return False
        return True

    def refresh(self) -> bool:
        """Extend a live session; returns False when already locked."""
        if not self.is_unlocked():
            return False
        session = self._read()
        session.expires_at = self.clock.now() + self.duration
        self.store.set(SESSION_KEY, session.to_json())
        return True

    def get_unlocked_secret(self) -> str | None:
        if not self.is_unlocked():
            return None
        session = self._read()
        return session.private_key if session else None

    def expires_at(self) -> float | None:
        if not self.is_unlocked():
            return None
        session = self._read()
        return session.expires_at if session else None
