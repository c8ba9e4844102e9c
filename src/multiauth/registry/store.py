"""In-memory passcode registry with timer-based eviction."""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from typing import Any

from multiauth.registry.clock import Clock, Scheduler

logger = logging.getLogger(__name__)

# Longest accepted lifetime; longer durations are clamped to it (one year)
MAX_DURATION_MS = 365 * 24 * 60 * 60 * 1000


@dataclass(eq=False)
class PasscodeEntry:
    """One live passcode and the eviction scheduled for it.

    Entries compare by identity: the eviction callback only removes the
    exact entry that scheduled it.
    """

    identifier: str
    expires_at: float
    eviction_handle: Any = None


@dataclass(frozen=True)
class ActivePasscode:
    """Snapshot row returned by :meth:`PasscodeRegistry.list_active`."""

    identifier: str
    remaining_ms: int


def clamp_duration(duration_ms: float) -> int:
    """Bring *duration_ms* into ``[0, MAX_DURATION_MS]`` as a whole number.

    NaN and anything non-positive become ``0``; huge ints and ``inf`` become
    ``MAX_DURATION_MS``.  Comparisons are done before any float conversion so
    arbitrarily large ints never overflow.
    """
    if isinstance(duration_ms, float) and math.isnan(duration_ms):
        return 0
    return int(min(max(duration_ms, 0), MAX_DURATION_MS))


def canonical_identifier(code: object) -> str:
    """Normalize a caller-supplied code so ``1234``, ``1234.0`` and ``"1234"`` collide."""
    if isinstance(code, float) and code.is_integer():
        code = int(code)
    return str(code)


class PasscodeRegistry:
    """Time-bounded registry of passcodes.

    Each identifier maps to a single :class:`PasscodeEntry` owning exactly
    one pending eviction.  Validity is always recomputed from the clock, so
    a late eviction never makes an expired passcode look valid.

    A lock guards every read-modify-write; it is uncontended under an
    asyncio scheduler and required under thread timers.
    """

    def __init__(self, clock: Clock, scheduler: Scheduler) -> None:
        self._clock = clock
        self._scheduler = scheduler
        self._entries: dict[str, PasscodeEntry] = {}
        self._lock = threading.Lock()

    def create_or_renew(self, code: object, duration_ms: int) -> bool:
        """Create *code* or reset its expiry to ``now + duration_ms``.

        Returns ``True`` when an unexpired entry was renewed and ``False``
        when a fresh entry was created.  Non-positive durations produce an
        entry that is already expired; durations above ``MAX_DURATION_MS``
        are clamped to it.
        """
        identifier = canonical_identifier(code)
        duration_ms = clamp_duration(duration_ms)

        with self._lock:
            now = self._clock.now()
            previous = self._entries.get(identifier)
            renewed = previous is not None and now < previous.expires_at

            # Previous entry stays untouched until its replacement is scheduled
            entry = PasscodeEntry(identifier=identifier, expires_at=now + duration_ms)
            entry.eviction_handle = self._scheduler.schedule_once(
                duration_ms, lambda: self._evict(entry)
            )
            if previous is not None:
                self._scheduler.cancel(previous.eviction_handle)
            self._entries[identifier] = entry

        if renewed:
            logger.info("Passcode %s renewed for %d ms", identifier, duration_ms)
        else:
            logger.info("Passcode %s created for %d ms", identifier, duration_ms)
        return renewed

    def is_valid(self, code: object) -> bool:
        """Return ``True`` if *code* is registered and not yet expired."""
        with self._lock:
            entry = self._entries.get(canonical_identifier(code))
            return entry is not None and self._clock.now() < entry.expires_at

    def list_active(self) -> list[ActivePasscode]:
        """Snapshot every registered entry with its remaining time.

        Entries past their expiry but not yet evicted are reported with
        ``remaining_ms == 0``.
        """
        with self._lock:
            now = self._clock.now()
            return [
                ActivePasscode(
                    identifier=entry.identifier,
                    remaining_ms=int(max(0, entry.expires_at - now)),
                )
                for entry in self._entries.values()
            ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, code: object) -> bool:
        with self._lock:
            return canonical_identifier(code) in self._entries

    # ── Private helpers ──────────────────────────────────

    def _evict(self, entry: PasscodeEntry) -> None:
        with self._lock:
            if self._entries.get(entry.identifier) is not entry:
                logger.debug("Stale eviction for %s ignored", entry.identifier)
                return
            del self._entries[entry.identifier]
        logger.debug("Passcode %s expired and was evicted", entry.identifier)
