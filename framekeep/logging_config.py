"""
loguru setup for framekeep.

Every record is rendered twice: a readable line on stderr and, when a log file
is configured, one JSON object per line. Components attach structured context
with ``logger.bind(component_name=..., operation=..., outcome=...,
relevant_metadata=..., session_id=...)``; those keys drive the console layout
and are copied into the JSON object as-is.
"""

import datetime
import json
import sys
from dataclasses import is_dataclass
from typing import Any, Dict, Optional, Tuple

import numpy as np
from loguru import logger

from framekeep.scheme import Capture, FramePacket

# arrays up to this many elements are logged in full; larger ones (frames) are summarised
MAX_INLINE_ARRAY = 16
MAX_CONSOLE_METADATA = 120

_RESERVED = ("timestamp", "level", "message", "logger", "file", "line", "function")


class LogRecordEncoder(json.JSONEncoder):
    """JSON encoder for the values framekeep puts into log extras."""

    def default(self, obj):
        if isinstance(obj, np.generic):
            return obj.item()
        if isinstance(obj, np.ndarray):
            if obj.size <= MAX_INLINE_ARRAY:
                return obj.tolist()
            return {"shape": list(obj.shape), "dtype": str(obj.dtype)}
        if isinstance(obj, FramePacket):
            return obj.frame_id
        if isinstance(obj, Capture):
            return {"captured_at": obj.captured_at.isoformat(), "frames": len(obj)}
        if isinstance(obj, (datetime.datetime, datetime.date)):
            return obj.isoformat()
        if isinstance(obj, datetime.timedelta):
            return obj.total_seconds()
        if hasattr(obj, "to_dict"):
            return obj.to_dict()
        if is_dataclass(obj) and not isinstance(obj, type):
            return {k: v for k, v in vars(obj).items() if not k.startswith("_")}
        if isinstance(obj, (set, frozenset, tuple)):
            return list(obj)
        return str(obj)


def merge_extra(extra: Dict[str, Any]) -> Dict[str, Any]:
    """
    Lift keys passed as ``extra={...}`` to the top level.

    ``logger.bind(extra={...})`` and stdlib-style ``extra=`` keywords both end
    up nested under an ``extra`` key; nested values win over outer ones.
    """
    merged = {}
    nested = {}
    for key, value in extra.items():
        if key == "extra" and isinstance(value, dict):
            nested.update(merge_extra(value))
        else:
            merged[key] = value
    merged.update(nested)
    return merged


def _console_line(time_text: str, level: str, message: str, extra: Dict[str, Any]) -> str:
    parts = [time_text, f"{level:<7}"]

    if extra.get("session_id"):
        parts.append(f"[{extra['session_id']}]")

    component = extra.get("component_name")
    if component:
        where = component
        if extra.get("operation"):
            where += f".{extra['operation']}"
        if extra.get("outcome"):
            where += f" ({extra['outcome']})"
        parts.append(where)

    line = " | ".join(parts) + " | " + message

    if "relevant_metadata" in extra:
        metadata = json.dumps(extra["relevant_metadata"], cls=LogRecordEncoder, sort_keys=True)
        if len(metadata) > MAX_CONSOLE_METADATA:
            metadata = metadata[: MAX_CONSOLE_METADATA - 3] + "..."
        line += f" {metadata}"
    return line


def render_record(record) -> Tuple[str, str]:
    """
    Render a loguru record.

    Returns:
        The console line and the JSON line for the record
    """
    extra = merge_extra(record.get("extra") or {})
    level = record["level"].name
    message = record["message"]

    entry = {
        "timestamp": record["time"].isoformat(timespec="milliseconds"),
        "level": level,
        "message": message,
        "logger": extra.get("name") or record["name"],
        "file": record["file"].name,
        "line": record["line"],
        "function": record["function"],
    }
    entry.update((k, v) for k, v in extra.items() if k not in _RESERVED)
    if record["exception"]:
        entry["exception"] = str(record["exception"])

    console = _console_line(
        record["time"].strftime("%H:%M:%S.%f")[:-3], level, message, extra
    )
    return console, json.dumps(entry, cls=LogRecordEncoder)


def setup_logging(
    logger_name: Optional[str] = None,
    level: str = "INFO",
    log_file: Optional[str] = None,
    console: bool = True,
):
    """
    Replace loguru's handlers with the framekeep sink.

    Args:
        logger_name: If given, return a logger bound to this name
        level: Minimum level emitted
        log_file: File receiving one JSON object per record
        console: Print readable lines to stderr
    """
    logger.remove()

    def sink(message):
        console_line, json_line = render_record(message.record)
        if console:
            print(console_line, file=sys.stderr)
        if log_file:
            with open(log_file, "a", encoding="utf-8") as f:
                f.write(json_line + "\n")

    logger.add(sink, level=level.upper(), format="{message}")

    if logger_name:
        return logger.bind(name=logger_name)
    return logger
