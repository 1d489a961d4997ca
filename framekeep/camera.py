"""
Filtered camera: a frame source that only forwards interesting frames.

:class:`FilteredCamera` wraps a :class:`~framekeep.sources.FrameSource` and an
:class:`~framekeep.sources.InferenceProvider`. Callers that collect data for
storage pass ``data_capture=True`` and receive only the frames the trigger
controller decides to forward; any other caller sees the wrapped source
unchanged.

Suppression is reported by returning ``None``. It means "nothing to store
this cycle" and is not an error; collaborator failures raise.
"""

from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from loguru import logger

from framekeep.config import FilterConfig
from framekeep.controller import TriggerController
from framekeep.exceptions import ConfigurationError, UnsupportedOperationError
from framekeep.filters.threshold import ThresholdPolicy
from framekeep.metrics import FilterMetrics
from framekeep.scheme import CameraProperties, Capture, FramePacket
from framekeep.sources import FrameSource, FrameStream, InferenceProvider


class FilteredCamera:
    """
    Pull interface that forwards frames crossing the configured thresholds.

    Attributes:
        config: Validated filter configuration
        source: Wrapped frame source
        provider: Inference provider scoring the frames
        controller: Trigger controller owning the window buffer and dispatch queue

    Example:
        >>> camera = FilteredCamera(
        ...     FilterConfig(camera="cam", vision="vis", window_seconds=10,
        ...                  objects={"person": 0.8}),
        ...     source,
        ...     provider,
        ... )
        >>> capture = await camera.get_images(data_capture=True)
        >>> if capture is not None:
        ...     store(capture)
    """

    def __init__(
        self,
        config: FilterConfig,
        source: FrameSource,
        provider: InferenceProvider,
        clock: Callable[[], datetime] | None = None,
        name: str | None = None,
    ):
        """
        Args:
            config: Filter configuration; validated here
            source: Frame source to wrap
            provider: Inference provider used to score frames
            clock: Returns the current time; defaults to the UTC wall clock
            name: Name used in log records; defaults to the source name

        Raises:
            ConfigurationError: If the configuration is invalid or a collaborator is missing
        """
        config.validate()
        if source is None:
            raise ConfigurationError(f"frame source '{config.camera}' is missing")
        if provider is None:
            raise ConfigurationError(f"inference provider '{config.vision}' is missing")

        self.config = config
        self.source = source
        self.provider = provider
        self.name = name or f"filtered-{config.camera}"
        self.controller = TriggerController(
            ThresholdPolicy(config.classifications, config.objects),
            provider,
            window=config.window,
            clock=clock,
            session_id=self.name,
        )
        self.logger = logger.bind(component_name=self.__class__.__name__, session_id=self.name)
        self.logger.bind(
            operation="init",
            relevant_metadata=config.to_dict(),
        ).info(f"FilteredCamera '{self.name}' created over source '{config.camera}'")

    @classmethod
    def from_config(
        cls,
        config: FilterConfig,
        dependencies: Mapping[str, Any],
        clock: Callable[[], datetime] | None = None,
        name: str | None = None,
    ) -> "FilteredCamera":
        """
        Build a filtered camera, resolving its collaborators by name.

        Args:
            config: Filter configuration naming the source and provider
            dependencies: Available components keyed by name

        Raises:
            ConfigurationError: If the config is invalid, a named dependency is
                missing, or a dependency has the wrong type
        """
        camera_name, vision_name = config.validate()

        source = dependencies.get(camera_name)
        if source is None:
            raise ConfigurationError(f"frame source '{camera_name}' not found in dependencies")
        if not isinstance(source, FrameSource):
            raise ConfigurationError(
                f"dependency '{camera_name}' must be a FrameSource, got {type(source).__name__}"
            )

        provider = dependencies.get(vision_name)
        if provider is None:
            raise ConfigurationError(
                f"inference provider '{vision_name}' not found in dependencies"
            )
        if not isinstance(provider, InferenceProvider):
            raise ConfigurationError(
                f"dependency '{vision_name}' must be an InferenceProvider, "
                f"got {type(provider).__name__}"
            )

        return cls(config, source, provider, clock=clock, name=name)

    async def get_images(self, data_capture: bool = False) -> Capture | None:
        """
        Pull the current batch of frames.

        In data capture mode every frame of the batch is evaluated in order;
        the first frame that should be forwarded forwards the whole batch.
        If none does, the batch is buffered and the oldest capture released
        by an earlier trigger is returned instead, if there is one.

        Args:
            data_capture: Apply filtering. When False the source's batch is
                returned unchanged.

        Returns:
            The capture to store, or None if nothing should be stored this cycle
        """
        capture = await self.source.get_images()
        if not data_capture:
            return capture

        for frame in capture.frames:
            if await self.controller.evaluate(frame):
                self.controller.mark_forwarded()
                return capture

        released = self.controller.deposit_and_drain(capture)
        if released is not None:
            self.logger.bind(
                operation="get_images",
                outcome="dispatched_buffered",
                relevant_metadata={
                    "captured_at": released.captured_at.isoformat(),
                    "frames": len(released),
                },
            ).debug("Returning buffered capture released by an earlier trigger")
            return released

        return None

    async def stream(self, data_capture: bool = False) -> "FilteredStream":
        """Open a stream on the source, filtered when ``data_capture`` is set."""
        source_stream = await self.source.stream()
        return FilteredStream(source_stream, self, data_capture)

    async def properties(self) -> CameraProperties:
        """Properties of the wrapped source, minus point cloud support."""
        props = await self.source.properties()
        return props.without_point_clouds()

    async def next_point_cloud(self):
        raise UnsupportedOperationError("FilteredCamera doesn't support point clouds")

    async def do_command(self, command: Mapping[str, Any]) -> dict:
        raise UnsupportedOperationError("FilteredCamera doesn't support commands")

    async def close(self) -> None:
        """
        Close the filtered camera.

        The source and provider belong to whoever passed them in and are left
        open; buffered captures that were never pulled are discarded.
        """
        discarded = self.controller.clear()
        self.logger.bind(
            operation="close",
            relevant_metadata={"discarded": discarded, **self.controller.metrics().to_dict()},
        ).info(f"FilteredCamera '{self.name}' closed")

    @property
    def metrics(self) -> FilterMetrics:
        return self.controller.metrics()

    def stats(self) -> dict:
        return self.controller.stats()


class FilteredStream(FrameStream):
    """
    Stream wrapper applying the filter frame by frame.

    Frames that are not forwarded are buffered with the current time as their
    capture time. The stream never drains the dispatch queue; captures a
    trigger releases are only handed out by :meth:`FilteredCamera.get_images`.
    """

    def __init__(self, source_stream: FrameStream, camera: FilteredCamera, data_capture: bool):
        self.source_stream = source_stream
        self.camera = camera
        self.data_capture = data_capture
        self._warned_pending = False

    async def next(self) -> FramePacket | None:
        """
        Return the next frame, or None if it should not be stored.

        Without data capture this is the wrapped stream's next frame.
        """
        if not self.data_capture:
            return await self.source_stream.next()

        frame = await self.source_stream.next()
        controller = self.camera.controller
        if await controller.evaluate(frame):
            controller.mark_forwarded()
            return frame

        controller.deposit(Capture(frames=[frame], captured_at=controller.clock()))
        if not self._warned_pending and controller.pending_count() > 0:
            self.camera.logger.bind(
                operation="stream_next",
                outcome="dispatch_pending",
                relevant_metadata={"pending_dispatch": controller.pending_count()},
            ).debug(
                "Released captures are waiting for dispatch; "
                "they are only handed out by get_images, not by the stream"
            )
            self._warned_pending = True
        return None

    async def close(self) -> None:
        await self.source_stream.close()
