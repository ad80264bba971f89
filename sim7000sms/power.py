"""Timed sequence that drives the modem power key."""

from __future__ import annotations

from collections.abc import Iterable

DEFAULT_DURATIONS: tuple[int, ...] = (1500, 2000, 1500, 10000)
"""Duration of each power key step in milliseconds.

The key is held active for 1.5 s (the modem switches off), released for 2 s,
held active again for 1.5 s (the modem switches on) and released for 10 s so
that the modem has time to start.
"""

TOGGLE_START_STEP = 2
"""Step a toggle-only sequence starts from: a single press and release."""


class PowerSequence:
    """Steps of the power key, advanced from the main loop.

    Even steps drive the key active and odd steps release it. Times are
    millisecond readings of a monotonic clock.
    """

    def __init__(self, durations: Iterable[int] = DEFAULT_DURATIONS) -> None:
        self.durations = tuple(durations)
        if not self.durations:
            raise ValueError("a power sequence needs at least one step")
        if any(duration <= 0 for duration in self.durations):
            raise ValueError("power step durations must be positive")
        self.step = 0
        self._started_at: int | None = None

    @property
    def running(self) -> bool:
        """True while a step is in progress."""
        return self._started_at is not None

    @property
    def current_duration(self) -> int:
        """Duration of the current step, 0 once the sequence is over."""
        if self.step < len(self.durations):
            return self.durations[self.step]
        return 0

    def start(self, now: int, toggle_only: bool = False) -> bool:
        """Begin the sequence at time ``now`` and return the key level to set.

        With ``toggle_only`` the switch-off half is skipped and the key is
        only pressed once, which is enough when the modem was already powered
        but did not answer.
        """
        self.step = TOGGLE_START_STEP if toggle_only else 0
        if self.step >= len(self.durations):
            raise ValueError("sequence is too short to toggle the power key")
        self._started_at = now
        return self.level()

    def advance(self, now: int) -> bool:
        """Move to the next step when the current one has elapsed.

        Returns True exactly once, when the last step ends: the key may then
        be released and the serial link opened.
        """
        if self._started_at is None:
            return False
        if now - self._started_at < self.durations[self.step]:
            return False
        self.step += 1
        if self.step >= len(self.durations):
            self._started_at = None
            return True
        self._started_at = now
        return False

    def level(self) -> bool:
        """Return True when the key is driven active in the current step."""
        return self.step % 2 == 0