import datetime
from unittest.mock import MagicMock, patch

import numpy as np
import pytest
from framekeep.exceptions import SourceExhaustedError
from framekeep.video_source import VideoFileSource

START = datetime.datetime(2024, 5, 1, 12, 0, 0, tzinfo=datetime.timezone.utc)


def make_reader(num_frames=2, fps=30.0):
    vr_instance = MagicMock()
    vr_instance.__len__.return_value = num_frames
    vr_instance.get_avg_fps.return_value = fps

    frame = MagicMock()
    frame.asnumpy.return_value = np.zeros((100, 120, 3), dtype=np.uint8)
    frame.shape = (100, 120, 3)
    vr_instance.__getitem__.return_value = frame
    return vr_instance


class TestVideoFileSource:
    @pytest.mark.asyncio
    @patch("framekeep.video_source.os.path.exists")
    @patch("framekeep.video_source.decord.VideoReader")
    async def test_get_images_reads_frames_in_order(self, mock_video_reader, mock_exists):
        mock_exists.return_value = True
        mock_video_reader.return_value = make_reader()

        source = VideoFileSource("test.mp4", start_time=START)
        first = await source.get_images()
        second = await source.get_images()

        assert len(source) == 2
        assert first.frames[0].frame_number == 0
        assert second.frames[0].frame_number == 1
        assert first.frames[0].source_id == "test.mp4"
        assert first.captured_at == START
        assert abs((second.captured_at - START).total_seconds() - 1 / 30.0) < 1e-6
        assert source.playback_clock() == second.captured_at
        assert source.exhausted

        with pytest.raises(SourceExhaustedError):
            await source.get_images()

    @patch("framekeep.video_source.os.path.exists")
    def test_file_not_found(self, mock_exists):
        mock_exists.return_value = False
        with pytest.raises(FileNotFoundError):
            VideoFileSource("nonexistent.mp4")

    @patch("framekeep.video_source.os.path.exists")
    @patch("framekeep.video_source.decord.VideoReader")
    def test_decord_runtime_error(self, mock_video_reader, mock_exists):
        mock_exists.return_value = True
        mock_video_reader.side_effect = RuntimeError("Decord error")

        with pytest.raises(RuntimeError) as excinfo:
            VideoFileSource("corrupt.mp4")
        assert "Failed to open video" in str(excinfo.value)

    @patch("framekeep.video_source.os.path.exists")
    @patch("framekeep.video_source.decord.VideoReader")
    def test_missing_fps_falls_back(self, mock_video_reader, mock_exists):
        mock_exists.return_value = True
        mock_video_reader.return_value = make_reader(fps=0.0)

        source = VideoFileSource("test.mp4", source_id="custom_id")
        assert source.fps == 30.0
        assert source.source_id == "custom_id"

    @pytest.mark.asyncio
    @patch("framekeep.video_source.os.path.exists")
    @patch("framekeep.video_source.decord.VideoReader")
    async def test_stream_and_properties(self, mock_video_reader, mock_exists):
        mock_exists.return_value = True
        mock_video_reader.return_value = make_reader(num_frames=1, fps=25.0)

        source = VideoFileSource("test.mp4", start_time=START)
        props = await source.properties()
        assert props.supports_pcd is False
        assert (props.width, props.height) == (120, 100)
        assert props.frame_rate == 25.0

        async with await source.stream() as stream:
            frame = await stream.next()
            assert frame.captured_at == START
            with pytest.raises(SourceExhaustedError):
                await stream.next()
