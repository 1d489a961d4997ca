import datetime

import numpy as np
import pytest
from framekeep.scheme import Capture, Classification, Detection, FramePacket
from framekeep.sources import FrameSource, FrameStream, InferenceProvider

T0 = datetime.datetime(2024, 5, 1, 12, 0, 0, tzinfo=datetime.timezone.utc)


class FakeClock:
    """Manually advanced clock returning timezone-aware datetimes."""

    def __init__(self, start: datetime.datetime = T0):
        self.now = start

    def __call__(self) -> datetime.datetime:
        return self.now

    def advance(self, seconds: float) -> datetime.datetime:
        self.now = self.now + datetime.timedelta(seconds=seconds)
        return self.now


class FakeProvider(InferenceProvider):
    """Returns canned results keyed by frame label."""

    def __init__(self, classifications=None, detections=None, error=None):
        self.classifications = classifications or {}
        self.detections = detections or {}
        self.error = error
        self.classify_calls = []
        self.detect_calls = []
        self.lock_held_during_call = []
        self.controller = None

    def _record_lock(self):
        if self.controller is not None:
            self.lock_held_during_call.append(self.controller._lock.locked())

    async def classify(self, frame, n=100):
        self.classify_calls.append(frame)
        self._record_lock()
        if self.error is not None:
            raise self.error
        return [Classification(label, score) for label, score in self.classifications.get(frame.label, [])]

    async def detect(self, frame):
        self.detect_calls.append(frame)
        self._record_lock()
        if self.error is not None:
            raise self.error
        return [
            Detection(label, score, (1, 1, 2, 2))
            for label, score in self.detections.get(frame.label, [])
        ]


class FakeStream(FrameStream):
    def __init__(self, frames):
        self.frames = list(frames)
        self.closed = False

    async def next(self):
        return self.frames.pop(0)

    async def close(self):
        self.closed = True


class FakeSource(FrameSource):
    """Hands out queued captures in order."""

    def __init__(self, captures=None, stream_frames=None, error=None):
        self.captures = list(captures or [])
        self.stream_frames = list(stream_frames or [])
        self.error = error
        self.streams = []

    async def get_images(self):
        if self.error is not None:
            raise self.error
        return self.captures.pop(0)

    async def stream(self):
        if self.error is not None:
            raise self.error
        stream = FakeStream(self.stream_frames)
        self.streams.append(stream)
        return stream


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def create_frame():
    """Factory for small frames labelled so FakeProvider can look up results."""

    def _create(label="", captured_at=T0, frame_number=0):
        return FramePacket(
            frame_data=np.zeros((4, 4, 3), dtype=np.uint8),
            captured_at=captured_at,
            label=label,
            frame_number=frame_number,
            source_id="test_cam",
        )

    return _create


@pytest.fixture
def create_capture(create_frame):
    """Factory for single-frame captures stamped at ``captured_at``."""

    def _create(label="", captured_at=T0, frame_number=0):
        frame = create_frame(label=label, captured_at=captured_at, frame_number=frame_number)
        return Capture(frames=[frame], captured_at=captured_at)

    return _create


@pytest.fixture
def fakes():
    """Access to the fake collaborator classes."""

    class _Fakes:
        Provider = FakeProvider
        Source = FakeSource
        Stream = FakeStream
        Clock = FakeClock

    return _Fakes
