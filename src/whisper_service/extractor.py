from __future__ import annotations

import logging
from typing import List

from .engine.base import Session
from .errors import SegmentAccessError
from .types import Segment

logger = logging.getLogger(__name__)


def extract_segments(session: Session, count: int) -> List[Segment]:
    """Collect segments ``0..count-1`` from a finished run, in engine order.

    A failed text fetch keeps the segment with a placeholder text. A failed
    start or end fetch drops the segment.
    """

    segments: List[Segment] = []
    for index in range(count):
        try:
            text = session.segment_text(index)
        except SegmentAccessError as exc:
            text = f"[{index}] failed to get segment: {exc}"

        try:
            start = session.segment_start(index)
        except SegmentAccessError as exc:
            logger.warning(
                "transcribe.segment.start_failed",
                extra={"segment_index": index, "error": str(exc)},
            )
            continue

        try:
            end = session.segment_end(index)
        except SegmentAccessError as exc:
            logger.warning(
                "transcribe.segment.end_failed",
                extra={"segment_index": index, "error": str(exc)},
            )
            continue

        segments.append(Segment(start=start, end=end, text=text))
    return segments


__all__ = ["extract_segments"]
