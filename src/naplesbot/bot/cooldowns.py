"""
Per-user, per-command cooldowns.

Entries are kept in a dict keyed by ``(command_name, user_id)`` plus a heap
ordered by expiry. ``check`` pops expired heap heads as it goes, and a single
background sweep also drops anything older than the staleness threshold.
A heap record only removes its entry if the entry still carries the same
timestamp, so refreshing a cooldown is never undone by an older record.
"""

from __future__ import annotations

import asyncio
import heapq
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

from naplesbot.util.logger import get_logger

logger = get_logger("cooldowns")

CooldownKey = Tuple[str, int]


@dataclass(frozen=True, slots=True)
class CooldownResult:
    allowed: bool
    time_left: float = 0.0


class CooldownTracker:
    """
    Args:
        sweep_interval: Seconds between background sweeps.
        stale_after: Age in seconds after which any entry is dropped by the sweep.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        sweep_interval: float = 600.0,
        stale_after: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.sweep_interval = sweep_interval
        self.stale_after = stale_after
        self._clock = clock
        self._entries: Dict[CooldownKey, float] = {}
        self._expiries: List[Tuple[float, CooldownKey, float]] = []
        self._task: asyncio.Task | None = None

    def _purge_expired(self, now: float) -> int:
        removed = 0
        while self._expiries and self._expiries[0][0] <= now:
            _, key, stamp = heapq.heappop(self._expiries)
            if self._entries.get(key) == stamp:
                del self._entries[key]
                removed += 1
        return removed

    def check(self, user_id: int, command_name: str, cooldown_seconds: float) -> CooldownResult:
        """Record a use if the user is off cooldown, otherwise report the wait."""
        now = self._clock()
        self._purge_expired(now)

        key = (command_name, user_id)
        last_used = self._entries.get(key)
        if last_used is not None:
            expiry = last_used + cooldown_seconds
            if now < expiry:
                return CooldownResult(allowed=False, time_left=expiry - now)

        self._entries[key] = now
        heapq.heappush(self._expiries, (now + cooldown_seconds, key, now))
        return CooldownResult(allowed=True)

    def remaining(self, user_id: int, command_name: str, cooldown_seconds: float) -> float:
        last_used = self._entries.get((command_name, user_id))
        if last_used is None:
            return 0.0
        return max(0.0, last_used + cooldown_seconds - self._clock())

    def reset(self, user_id: int, command_name: str) -> bool:
        """Forget a user's cooldown for a command; returns whether one existed."""
        return self._entries.pop((command_name, user_id), None) is not None

    def sweep(self) -> int:
        """Drop expired and stale entries; returns how many were removed."""
        now = self._clock()
        removed = self._purge_expired(now)

        stale = [key for key, stamp in self._entries.items() if now - stamp > self.stale_after]
        for key in stale:
            del self._entries[key]
        removed += len(stale)

        if removed:
            logger.debug("[COOLDOWN] Swept %d entries, %d remaining", removed, len(self._entries))
        return removed

    def __len__(self) -> int:
        return len(self._entries)

    # --------------------------
    # Background sweep
    # --------------------------
    async def _run_loop(self) -> None:
        logger.info("[COOLDOWN] Starting sweep loop (interval=%.1fs)", self.sweep_interval)
        try:
            while True:
                await asyncio.sleep(self.sweep_interval)
                self.sweep()
        except asyncio.CancelledError:
            logger.info("[COOLDOWN] Sweep loop cancelled")
            raise

    def start(self) -> None:
        """Start the sweep task if it is not already running."""
        if self._task and not self._task.done():
            logger.warning("[COOLDOWN] Sweep task already running")
            return
        self._task = asyncio.create_task(self._run_loop())

    async def shutdown(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
