"""
Trigger controller: the decision and buffering state machine of a filter.

For every frame the controller asks the inference provider for scores and
checks them against the threshold policy. A frame that triggers opens (or
extends) a capture window and releases every buffered capture still inside
the window to the dispatch queue. A frame that does not trigger is still
forwarded while an earlier window is open; otherwise the caller deposits it
in the window buffer, where a later trigger may release it.

All state lives on one controller instance and is guarded by one lock. The
lock is never held while awaiting the inference provider, so lock hold time
is bounded by in-memory list operations.
"""

import threading
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from loguru import logger

from framekeep.buffers.window_buffer import DispatchQueue, WindowBuffer
from framekeep.filters.threshold import ThresholdPolicy
from framekeep.metrics import FilterMetrics
from framekeep.scheme import Capture, FramePacket
from framekeep.sources import InferenceProvider

# capture_until before the first trigger
NEVER = datetime.min.replace(tzinfo=timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TriggerController:
    """
    Decides whether frames are forwarded and manages the trailing window.

    Attributes:
        policy: Threshold maps for classifications and detections
        provider: Inference provider queried for each evaluated frame
        window: Trailing window length; zero disables buffering
        capture_until: Frames evaluated before this instant are forwarded
            even if they do not trigger themselves
        buffer: Captures that did not trigger, pending a possible promotion
        dispatch_queue: Captures released by a trigger, waiting to be pulled

    Example:
        >>> controller = TriggerController(
        ...     ThresholdPolicy(classifications={"person": 0.8}),
        ...     provider,
        ...     window=timedelta(seconds=10),
        ... )
        >>> if await controller.evaluate(frame):
        ...     forward(frame)
        ... else:
        ...     controller.deposit(Capture.of([frame]))
    """

    def __init__(
        self,
        policy: ThresholdPolicy,
        provider: InferenceProvider,
        window: timedelta = timedelta(0),
        clock: Callable[[], datetime] | None = None,
        session_id: str = "default_session",
    ):
        if window < timedelta(0):
            raise ValueError(f"window must not be negative, got {window}")

        self.policy = policy
        self.provider = provider
        self.window = window
        self.clock = clock or utc_now
        self.session_id = session_id

        self._lock = threading.Lock()
        self.capture_until = NEVER
        self.buffer = WindowBuffer(window, session_id=session_id)
        self.dispatch_queue = DispatchQueue()
        self._metrics = FilterMetrics()

        self.logger = logger.bind(
            component_name=self.__class__.__name__, session_id=session_id
        )

    async def evaluate(self, frame: FramePacket) -> bool:
        """
        Decide whether a frame should be forwarded.

        Classification results are checked first, then detection results; a
        modality whose threshold map is empty is never queried. A trigger
        promotes the buffered captures. A frame that does not trigger is
        forwarded only while the window of an earlier trigger is open, and it
        does not extend that window.

        Errors from the inference provider propagate unchanged and leave the
        trigger state untouched.

        Returns:
            True if the frame should be forwarded. On False the caller should
            :meth:`deposit` the frame's capture.
        """
        with self._lock:
            self._metrics.frames_evaluated += 1

        if self.policy.classification_enabled:
            results = await self._infer(self.provider.classify, frame, "classify")
            if self.policy.keep_classifications(results):
                self.logger.bind(
                    operation="evaluate",
                    outcome="triggered_classification",
                    relevant_metadata={
                        "frame_id": frame.frame_id,
                        "classifications": [r.to_dict() for r in results],
                    },
                ).info(f"Keeping frame {frame.frame_id} with classifications {results}")
                self.promote()
                return True

        if self.policy.detection_enabled:
            results = await self._infer(self.provider.detect, frame, "detect")
            if self.policy.keep_detections(results):
                self.logger.bind(
                    operation="evaluate",
                    outcome="triggered_detection",
                    relevant_metadata={
                        "frame_id": frame.frame_id,
                        "detections": [r.to_dict() for r in results],
                    },
                ).info(f"Keeping frame {frame.frame_id} with objects {results}")
                self.promote()
                return True

        with self._lock:
            if self.clock() < self.capture_until:
                # forward, but leave capture_until where the trigger put it
                self._metrics.coasted += 1
                return True

        return False

    async def _infer(self, call, frame: FramePacket, operation: str):
        try:
            return await call(frame)
        except Exception as e:
            with self._lock:
                self._metrics.errors += 1
            self.logger.bind(
                operation=operation,
                outcome="provider_error",
                relevant_metadata={"frame_id": frame.frame_id},
            ).warning(f"Inference call '{operation}' failed for frame {frame.frame_id}: {e}")
            raise

    def promote(self) -> None:
        """
        Open the capture window and release the buffered captures.

        Sets ``capture_until`` to ``now + window``, prunes the buffer, and
        moves every remaining entry to the dispatch queue oldest first.
        """
        with self._lock:
            now = self.clock()
            self.capture_until = until = now + self.window

            pruned = self.buffer.prune(now)
            released = self.buffer.drain(now)
            self.dispatch_queue.extend(released)

            self._metrics.triggers += 1
            self._metrics.entries_pruned += pruned
            self._metrics.entries_promoted += len(released)

        if released:
            self.logger.bind(
                operation="promote",
                outcome="released_buffer",
                relevant_metadata={
                    "released": len(released),
                    "capture_until": until.isoformat(),
                },
            ).info(f"Trigger released {len(released)} buffered captures for dispatch")

    def deposit(self, capture: Capture) -> None:
        """
        Buffer a capture that was not forwarded.

        Does nothing but count the suppression when the window is zero.
        """
        with self._lock:
            self._deposit_locked(capture)

    def drain_one(self) -> Capture | None:
        """Remove and return the oldest capture waiting for dispatch, if any."""
        with self._lock:
            return self._drain_one_locked()

    def deposit_and_drain(self, capture: Capture) -> Capture | None:
        """Deposit a capture and drain one dispatch entry under one lock acquisition."""
        with self._lock:
            self._deposit_locked(capture)
            return self._drain_one_locked()

    def clear(self) -> int:
        """
        Discard every buffered and released capture.

        ``capture_until`` and the counters are left as they are.

        Returns:
            Number of captures discarded
        """
        with self._lock:
            discarded = len(self.buffer) + len(self.dispatch_queue)
            self.buffer.clear()
            self.dispatch_queue.clear()
        return discarded

    def mark_forwarded(self) -> None:
        with self._lock:
            self._metrics.frames_forwarded += 1

    def _deposit_locked(self, capture: Capture) -> None:
        self._metrics.frames_suppressed += 1
        if not self.buffer.enabled:
            return
        self._metrics.entries_pruned += self.buffer.add(capture, self.clock())
        self._metrics.entries_buffered += 1

    def _drain_one_locked(self) -> Capture | None:
        capture = self.dispatch_queue.pop()
        if capture is not None:
            self._metrics.entries_dispatched += 1
        return capture

    def buffered_count(self) -> int:
        with self._lock:
            return len(self.buffer)

    def pending_count(self) -> int:
        with self._lock:
            return len(self.dispatch_queue)

    def metrics(self) -> FilterMetrics:
        """Return a consistent snapshot of the decision counters."""
        with self._lock:
            return self._metrics.snapshot()

    def stats(self) -> dict:
        with self._lock:
            return {
                "window_seconds": self.window.total_seconds(),
                "capture_until": self.capture_until.isoformat(),
                "buffered": len(self.buffer),
                "pending_dispatch": len(self.dispatch_queue),
                **self._metrics.to_dict(),
            }
