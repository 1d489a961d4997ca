"""
Counters describing what a filtered camera forwarded, suppressed and buffered.
"""

import time
from dataclasses import asdict, dataclass, field, replace


@dataclass
class FilterMetrics:
    """
    Decision counters for one trigger controller.

    The controller mutates these only while holding its lock; read them
    through :meth:`TriggerController.metrics`, which returns a snapshot.

    Attributes:
        frames_evaluated: Frames run through the threshold policy
        frames_forwarded: Frames (or batches) returned to the caller
        frames_suppressed: Frames the filter decided not to forward
        triggers: Frames that crossed a threshold
        coasted: Frames forwarded only because a trigger window was still open
        entries_buffered: Captures added to the window buffer
        entries_promoted: Buffered captures moved to the dispatch queue
        entries_pruned: Buffered captures dropped for being older than the window
        entries_dispatched: Queued captures handed out to callers
        errors: Evaluations aborted by a collaborator error
    """

    frames_evaluated: int = 0
    frames_forwarded: int = 0
    frames_suppressed: int = 0
    triggers: int = 0
    coasted: int = 0
    entries_buffered: int = 0
    entries_promoted: int = 0
    entries_pruned: int = 0
    entries_dispatched: int = 0
    errors: int = 0
    start_time: float = field(default_factory=time.time)

    def get_pass_rate(self) -> float:
        """Percentage of decided frames that were forwarded."""
        decided = self.frames_forwarded + self.frames_suppressed
        if decided == 0:
            return 0.0
        return (self.frames_forwarded / decided) * 100

    def get_trigger_rate(self) -> float:
        """Percentage of evaluated frames that crossed a threshold."""
        if self.frames_evaluated == 0:
            return 0.0
        return (self.triggers / self.frames_evaluated) * 100

    def snapshot(self) -> "FilterMetrics":
        return replace(self)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["pass_rate"] = self.get_pass_rate()
        data["trigger_rate"] = self.get_trigger_rate()
        return data
