"""
Interfaces of the collaborators a filtered camera wraps.

The filter needs two things from the outside world: frames, from a
:class:`FrameSource`, and scores for those frames, from an
:class:`InferenceProvider`. Both are asynchronous so that a caller's
cancellation or timeout reaches the collaborator call it is waiting on.
Errors raised by either collaborator are passed through unchanged.
"""

from abc import ABC, abstractmethod

from framekeep.exceptions import UnsupportedOperationError
from framekeep.scheme import (
    CameraProperties,
    Capture,
    Classification,
    Detection,
    FramePacket,
)


class FrameStream(ABC):
    """A continuous stream of frames opened on a source."""

    @abstractmethod
    async def next(self) -> FramePacket:
        """Wait for and return the next frame."""

    async def close(self) -> None:
        """Release the stream. The default implementation does nothing."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()


class FrameSource(ABC):
    """
    Abstract base class for anything that produces frames.

    Only :meth:`get_images` and :meth:`stream` are used by the filter. The
    other capabilities are part of the surface so that a wrapper can answer
    for them explicitly.
    """

    @abstractmethod
    async def get_images(self) -> Capture:
        """Return the current batch of frames."""

    @abstractmethod
    async def stream(self) -> FrameStream:
        """Open a continuous stream of frames."""

    async def properties(self) -> CameraProperties:
        return CameraProperties()

    async def next_point_cloud(self):
        raise UnsupportedOperationError(
            f"{self.__class__.__name__} does not support point clouds"
        )


class InferenceProvider(ABC):
    """Abstract base class for services that score frames."""

    @abstractmethod
    async def classify(self, frame: FramePacket, n: int = 100) -> list[Classification]:
        """
        Classify a frame.

        Args:
            frame: Frame to classify
            n: Maximum number of ranked labels to return

        Returns:
            Labels with their scores, best first
        """

    @abstractmethod
    async def detect(self, frame: FramePacket) -> list[Detection]:
        """Detect objects in a frame."""
