import time


class FrameCoalescer:
    """
    One-slot, last-write-wins mailbox for per-frame work. Updates arriving
    between two frame ticks overwrite each other; take() hands out the
    freshest one (or None) and empties the slot.
    """

    _EMPTY = object()

    def __init__(self):
        self._item = self._EMPTY
        self.dropped = 0

    def submit(self, item):
        """Drop the older pending item if there is one (keep freshest)."""
        if self._item is not self._EMPTY:
            self.dropped += 1
        self._item = item

    @property
    def pending(self):
        return self._item is not self._EMPTY

    def take(self):
        item, self._item = self._item, self._EMPTY
        return None if item is self._EMPTY else item


class Debouncer:
    """
    Cancellable one-shot timer driven by polling. schedule() always clears the
    pending payload first, so only the latest change ever fires.
    """

    def __init__(self, delay: float, clock=time.monotonic):
        self.delay = float(delay)
        self.clock = clock
        self._deadline = None
        self._payload = None

    def schedule(self, payload, delay=None):
        self.cancel()
        self._payload = payload
        self._deadline = self.clock() + (self.delay if delay is None else float(delay))

    def cancel(self):
        self._deadline = None
        self._payload = None

    @property
    def pending(self):
        return self._deadline is not None

    def time_left(self):
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self.clock())

    def pop_due(self):
        """Payload if its deadline has passed (consumed), else None."""
        if self._deadline is None or self.clock() < self._deadline:
            return None
        payload = self._payload
        self.cancel()
        return payload
