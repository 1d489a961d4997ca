"""
Inference provider serving results that were computed ahead of time.

Results are read from a JSON-lines file with one object per frame::

    {"frame_number": 12,
     "classifications": [{"label": "person", "score": 0.91}],
     "detections": [{"label": "car", "score": 0.77, "bbox": [10, 20, 110, 90]}]}

Both lists are optional. Frames without a line get no results.
"""

import json
from pathlib import Path

from framekeep.scheme import Classification, Detection, FramePacket
from framekeep.sources import InferenceProvider


class RecordedInferenceProvider(InferenceProvider):
    """
    Looks up precomputed classification and detection results by frame number.

    Attributes:
        classifications: Classification results keyed by frame number
        detections: Detection results keyed by frame number
    """

    def __init__(
        self,
        classifications: dict[int, list[Classification]] | None = None,
        detections: dict[int, list[Detection]] | None = None,
    ):
        self.classifications = classifications or {}
        self.detections = detections or {}

    @classmethod
    def from_jsonl(cls, path: str | Path) -> "RecordedInferenceProvider":
        """
        Load results from a JSON-lines file.

        Raises:
            ValueError: If a line is not valid JSON or lacks a frame number
        """
        classifications: dict[int, list[Classification]] = {}
        detections: dict[int, list[Detection]] = {}

        with open(path, "r", encoding="utf-8") as f:
            for line_number, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    record = json.loads(line)
                    frame_number = int(record["frame_number"])
                    classifications[frame_number] = [
                        Classification(label=str(c["label"]), score=float(c["score"]))
                        for c in record.get("classifications", [])
                    ]
                    detections[frame_number] = [
                        Detection(
                            label=str(d["label"]),
                            score=float(d["score"]),
                            bbox=tuple(int(v) for v in d.get("bbox", (0, 0, 0, 0))),
                        )
                        for d in record.get("detections", [])
                    ]
                except (ValueError, KeyError, TypeError) as e:
                    raise ValueError(f"{path}:{line_number}: malformed result record: {e}") from e

        return cls(classifications, detections)

    async def classify(self, frame: FramePacket, n: int = 100) -> list[Classification]:
        results = self.classifications.get(frame.frame_number, [])
        return sorted(results, key=lambda c: c.score, reverse=True)[:n]

    async def detect(self, frame: FramePacket) -> list[Detection]:
        return list(self.detections.get(frame.frame_number, []))
