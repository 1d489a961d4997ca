from collections import deque
from datetime import datetime, timedelta

from loguru import logger

from framekeep.scheme import Capture


class WindowBuffer:
    """
    A time-bounded buffer of captures that did not trigger.

    Entries are kept for ``window`` after their capture time. Capture times
    come from the frame source, so entries may arrive out of order; the
    buffer is re-sorted by ``captured_at`` before every prune.

    The buffer holds no lock. It is owned by a single
    :class:`~framekeep.controller.TriggerController`, which serializes all
    access to it.

    Attributes:
        window (timedelta): How long an entry is retained. Zero disables buffering.
        session_id (str): Identifier used in log records.
    """

    def __init__(self, window: timedelta, session_id: str = "default_session"):
        """
        Initializes the WindowBuffer.

        Args:
            window: Retention period for buffered captures. Must not be negative.
            session_id: Identifier for the owning filter, used in logging.
        """
        if window < timedelta(0):
            raise ValueError("window must not be negative.")
        self.window: timedelta = window
        self.session_id = session_id
        self._entries: list[Capture] = []
        self.logger = logger.bind(
            component_name=self.__class__.__name__, session_id=session_id
        )

    @property
    def enabled(self) -> bool:
        return self.window > timedelta(0)

    def prune(self, now: datetime) -> int:
        """
        Sorts the entries by capture time and drops every entry captured at or
        before ``now - window``.

        Args:
            now: Reference time for the window.

        Returns:
            int: Number of entries dropped.
        """
        self._entries.sort(key=lambda entry: entry.captured_at)

        cutoff = now - self.window
        dropped = 0
        while dropped < len(self._entries) and self._entries[dropped].captured_at <= cutoff:
            dropped += 1

        if dropped:
            del self._entries[:dropped]
            self.logger.bind(
                operation="prune",
                outcome="entries_dropped",
                relevant_metadata={
                    "dropped": dropped,
                    "remaining": len(self._entries),
                    "cutoff": cutoff.isoformat(),
                },
            ).debug(f"Pruned {dropped} captures older than {cutoff.isoformat()}")
        return dropped

    def add(self, capture: Capture, now: datetime) -> int:
        """
        Prunes the buffer and appends a capture.

        Does nothing when buffering is disabled.

        Returns:
            int: Number of entries dropped by the prune.
        """
        if not self.enabled:
            return 0

        dropped = self.prune(now)
        self._entries.append(capture)
        self.logger.bind(
            operation="add",
            relevant_metadata={
                "captured_at": capture.captured_at.isoformat(),
                "frames": len(capture),
                "buffer_size": len(self._entries),
            },
        ).debug(f"Buffered capture. Buffer size: {len(self._entries)}")
        return dropped

    def drain(self, now: datetime) -> list[Capture]:
        """
        Prunes the buffer, then removes and returns the remaining entries
        oldest first.
        """
        self.prune(now)
        drained = self._entries
        self._entries = []
        return drained

    def entries(self) -> list[Capture]:
        """Returns a copy of the buffered entries in their current order."""
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)


class DispatchQueue:
    """FIFO of captures released by a trigger and waiting to be pulled."""

    def __init__(self):
        self._queue: deque[Capture] = deque()

    def extend(self, captures: list[Capture]) -> None:
        self._queue.extend(captures)

    def append(self, capture: Capture) -> None:
        self._queue.append(capture)

    def pop(self) -> Capture | None:
        """Removes and returns the oldest capture, or None if the queue is empty."""
        if not self._queue:
            return None
        return self._queue.popleft()

    def clear(self) -> None:
        self._queue.clear()

    def __len__(self) -> int:
        return len(self._queue)

    def __bool__(self) -> bool:
        return bool(self._queue)
