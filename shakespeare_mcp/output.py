"""Size governor for ``evaluate`` results.

A single script can return megabytes of HTML. Anything longer than the
caller's size limit is written to disk instead of being sent back inline.
"""

from __future__ import annotations

import datetime
import json
import math
import os
import tempfile
import time
from dataclasses import dataclass, field

from shakespeare_mcp import config


class _Undefined:
    """Marker for a JavaScript ``undefined`` result."""

    def __repr__(self):
        return "undefined"


UNDEFINED = _Undefined()


def default_output_path() -> str:
    name = f"{config.OUTPUT_PREFIX}-{int(time.time() * 1000)}{config.OUTPUT_SUFFIX}"
    return os.path.join(tempfile.gettempdir(), name)


@dataclass
class SizePolicy:
    size_limit: int = config.DEFAULT_SIZE_LIMIT
    output_mode: str = "direct"
    output_path: str = field(default_factory=default_output_path)


def _json_safe(value):
    # JSON.stringify renders NaN and +/-Infinity as null
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    return value


def _json_default(value):
    if isinstance(value, datetime.datetime):
        if value.tzinfo is not None:
            value = value.astimezone(datetime.timezone.utc)
        # Date.prototype.toISOString: millisecond precision, UTC
        return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"
    return str(value)


def stringify(value) -> str:
    """Render an evaluation result the way it is shown to the caller."""
    if value is UNDEFINED:
        return "undefined"
    if isinstance(value, str):
        return value
    return json.dumps(
        _json_safe(value), indent=2, ensure_ascii=False, default=_json_default
    )


def write_output(path: str, text: str) -> None:
    parent = os.path.dirname(os.path.abspath(path))
    os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)


def govern_output(value, policy: SizePolicy) -> str:
    """Return ``value`` inline, or write it to ``policy.output_path``.

    ``direct`` mode falls back to a file once the text is longer than
    ``policy.size_limit``; ``file`` mode always writes. The returned text is
    either the result itself or a note naming the file.
    """
    text = stringify(value)
    exceeds = len(text) > policy.size_limit

    if policy.output_mode == "file" or exceeds:
        write_output(policy.output_path, text)
        message = f"Output written to file: {policy.output_path}"
        if exceeds and policy.output_mode == "direct":
            message += (
                f"\n\nOutput size ({len(text):,} chars) exceeds the "
                f"{policy.size_limit:,} char limit. Written to file instead."
            )
        return message + "\n\nRead the file to view its contents."

    return text
