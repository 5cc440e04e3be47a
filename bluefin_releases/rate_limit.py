"""Courtesy delays for upstream APIs."""

import time
from typing import Callable

# Pause after each successful release-host fetch (GitHub/GitLab)
RELEASE_FETCH_DELAY = 0.5  # seconds
# Pause after each successful catalog detail fetch (Flathub appstream, formulae.brew.sh)
DETAIL_FETCH_DELAY = 0.1  # seconds


class RateLimiter:
    """
    Fixed delay applied inside a worker after a successful request.

    The delay runs in the calling worker thread only, so it never serializes
    sibling workers. Tests inject a fake ``sleep`` to avoid wall-clock waits.
    """

    def __init__(self, delay: float, sleep: Callable[[float], None] = time.sleep):
        self.delay = delay
        self._sleep = sleep

    def pause(self) -> None:
        """Wait out the courtesy delay."""
        if self.delay > 0:
            self._sleep(self.delay)

    def __repr__(self) -> str:
        return f"RateLimiter(delay={self.delay})"
