import argparse
import asyncio
import json

from framekeep.camera import FilteredCamera
from framekeep.config import load_config
from framekeep.exceptions import SourceExhaustedError
from framekeep.logging_config import setup_logging
from framekeep.recorded import RecordedInferenceProvider
from framekeep.video_source import VideoFileSource


async def replay(camera: FilteredCamera) -> list[int]:
    """
    Pull captures until the source runs out, then flush the dispatch queue.

    Returns:
        Frame numbers of every forwarded capture, in the order they were handed out
    """
    forwarded = []
    while True:
        try:
            capture = await camera.get_images(data_capture=True)
        except SourceExhaustedError:
            break
        if capture is not None:
            forwarded.extend(frame.frame_number for frame in capture.frames)

    # captures released by a trigger near the end are still waiting for dispatch
    while True:
        capture = camera.controller.drain_one()
        if capture is None:
            break
        forwarded.extend(frame.frame_number for frame in capture.frames)
    return forwarded


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Replay a video through a filtered camera and report which frames it keeps."
    )
    parser.add_argument("--video", type=str, required=True, help="Path to the video file.")
    parser.add_argument(
        "--results",
        type=str,
        required=True,
        help="JSON-lines file with precomputed classification/detection results per frame.",
    )
    parser.add_argument("--config", type=str, required=True, help="Filter config JSON file.")
    parser.add_argument("--log-level", type=str, default="INFO", help="Minimum log level.")
    parser.add_argument("--log-file", type=str, default=None, help="Optional JSON log file.")

    args = parser.parse_args(argv)

    log = setup_logging("framekeep.main", level=args.log_level, log_file=args.log_file)

    config = load_config(args.config)
    source = VideoFileSource(args.video, source_id=config.camera)
    provider = RecordedInferenceProvider.from_jsonl(args.results)

    # resolve collaborators by the names the config gives them
    camera = FilteredCamera.from_config(
        config,
        {config.camera: source, config.vision: provider},
        clock=source.playback_clock,
    )

    log.info(f"Replaying {args.video} through filter '{camera.name}'")
    forwarded = asyncio.run(replay(camera))

    summary = {
        "video": args.video,
        "config": config.to_dict(),
        "total_frames": len(source),
        "forwarded_frames": forwarded,
        "stats": camera.stats(),
    }
    print(json.dumps(summary, indent=4))
    return summary


if __name__ == "__main__":
    main()
