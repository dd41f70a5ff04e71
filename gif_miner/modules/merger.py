"""
Similarity Merger

Greedy single pass over (fingerprint, delay) pairs. Each frame is compared
with the anchor (first frame) of the open group, never with the previous
frame, so a slow drift stops merging once it moves past the threshold from
the anchor.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from ..config import HASH_BITS
from ..errors import InvalidParameterError
from .hasher import hamming_distance


@dataclass
class MergeGroup:
    """A maximal run of consecutive frames collapsed into one output frame."""
    representative_index: int
    total_delay: float
    member_count: int = 1

    @property
    def last_index(self) -> int:
        return self.representative_index + self.member_count - 1


def similarity_to_threshold(similarity: int) -> int:
    """
    Map a required similarity percentage to a Hamming distance threshold.

    ``max(1, round((100 - s) * 64 / 100))``: 100 -> 1, 50 -> 32, 0 -> 64.
    ``(100 - s) * 64`` is never an odd multiple of 50, so integer rounding
    matches the real-valued formula exactly.
    """
    if not 0 <= similarity <= 100:
        raise InvalidParameterError(f"Similarity must be between 0 and 100, got {similarity}")
    distance = ((100 - similarity) * HASH_BITS + 50) // 100
    return max(1, distance)


def merge_frames(
    entries: Sequence[tuple[int, float]],
    threshold: int,
    on_compare: Optional[Callable[[int, int], None]] = None,
) -> list[MergeGroup]:
    """
    Collapse consecutive similar frames.

    Args:
        entries: Ordered (fingerprint, delay) pairs
        threshold: Maximum Hamming distance to the group anchor that still merges
        on_compare: Called with (index, total) after each comparison

    Returns:
        Groups partitioning ``[0, len(entries))`` in order
    """
    groups: list[MergeGroup] = []
    if not entries:
        return groups

    anchor_hash, first_delay = entries[0]
    current = MergeGroup(representative_index=0, total_delay=first_delay)

    for i in range(1, len(entries)):
        fingerprint, delay = entries[i]
        if hamming_distance(fingerprint, anchor_hash) <= threshold:
            current.total_delay += delay
            current.member_count += 1
        else:
            groups.append(current)
            anchor_hash = fingerprint
            current = MergeGroup(representative_index=i, total_delay=delay)

        if on_compare is not None:
            on_compare(i, len(entries))

    groups.append(current)
    return groups
