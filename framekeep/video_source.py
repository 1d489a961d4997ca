"""
Frame source reading a video file with decord.

Frames are stamped with ``start_time`` plus their media timestamp, so a
replayed file can drive the filter's clock through :meth:`playback_clock`
instead of the wall clock.
"""

import datetime
import os

import decord
from loguru import logger

from framekeep.exceptions import SourceExhaustedError
from framekeep.scheme import CameraProperties, Capture, FramePacket
from framekeep.sources import FrameSource, FrameStream


class VideoFileSource(FrameSource):
    """
    Serves the frames of a video file one at a time.

    Each call to :meth:`get_images` returns the next frame as a single-frame
    capture. Once the last frame has been returned, further calls raise
    :class:`~framekeep.exceptions.SourceExhaustedError`.

    Attributes:
        path: Path of the video file
        source_id: Identifier stamped on every frame (defaults to the path)
        start_time: Capture time of the first frame
        fps: Average frame rate reported by the container
    """

    def __init__(
        self,
        path: str,
        source_id: str | None = None,
        start_time: datetime.datetime | None = None,
    ):
        if not os.path.exists(path):
            raise FileNotFoundError(f"Video file not found: {path}")

        try:
            self._reader = decord.VideoReader(path)
        except Exception as e:
            raise RuntimeError(f"Failed to open video {path}: {e}") from e

        self.path = path
        self.source_id = source_id or path
        self.start_time = start_time or datetime.datetime.now(datetime.timezone.utc)
        self.fps = float(self._reader.get_avg_fps()) or 30.0
        self._num_frames = len(self._reader)
        self._position = 0
        self._last_captured_at = self.start_time

        logger.bind(
            component_name=self.__class__.__name__,
            operation="open",
            relevant_metadata={"frames": self._num_frames, "fps": self.fps},
        ).info(f"Opened video {path} ({self._num_frames} frames at {self.fps:.2f} fps)")

    def __len__(self) -> int:
        return self._num_frames

    @property
    def exhausted(self) -> bool:
        return self._position >= self._num_frames

    def playback_clock(self) -> datetime.datetime:
        """Capture time of the most recently read frame."""
        return self._last_captured_at

    def read_frame(self) -> FramePacket:
        """Decode the next frame. Raises SourceExhaustedError past the end."""
        if self.exhausted:
            raise SourceExhaustedError(f"No more frames in {self.path}")

        index = self._position
        frame_data = self._reader[index].asnumpy()
        captured_at = self.start_time + datetime.timedelta(seconds=index / self.fps)

        self._position += 1
        self._last_captured_at = captured_at
        return FramePacket(
            frame_data=frame_data,
            captured_at=captured_at,
            frame_number=index,
            source_id=self.source_id,
        )

    async def get_images(self) -> Capture:
        frame = self.read_frame()
        return Capture(frames=[frame], captured_at=frame.captured_at)

    async def stream(self) -> FrameStream:
        return _VideoFileStream(self)

    async def properties(self) -> CameraProperties:
        if self._num_frames:
            height, width = self._reader[0].shape[:2]
        else:
            height = width = None
        return CameraProperties(
            supports_pcd=False,
            width=width,
            height=height,
            frame_rate=self.fps,
            extra={"path": self.path, "frames": self._num_frames},
        )


class _VideoFileStream(FrameStream):
    def __init__(self, source: VideoFileSource):
        self.source = source

    async def next(self) -> FramePacket:
        return self.source.read_frame()
