"""Exact integer apportionment of a total across weighted members."""

import hashlib
import logging
import math
from collections.abc import Sequence
from fractions import Fraction
from typing import Any, TypeVar

from .exceptions import ApportionmentError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MASK_64 = (1 << 64) - 1


class SplitMix64:
    """Small seeded 64-bit generator with a fully specified output sequence."""

    def __init__(self, seed: int):
        self.state = seed & _MASK_64

    def next_u64(self) -> int:
        """Return the next 64-bit output."""
        self.state = (self.state + 0x9E3779B97F4A7C15) & _MASK_64
        z = self.state
        z = ((z ^ (z >> 30)) * 0xBF58476D1CE4E5B9) & _MASK_64
        z = ((z ^ (z >> 27)) * 0x94D049BB133111EB) & _MASK_64
        return z ^ (z >> 31)

    def below(self, bound: int) -> int:
        """Return an integer in [0, bound) using multiply-shift reduction."""
        return (self.next_u64() * bound) >> 64


def seed_to_int(seed: Any) -> int:
    """
    Derive a 64-bit generator seed from any stable value.

    The value is rendered with str(), hashed with SHA-256, and the first
    8 bytes are read big-endian.
    """
    digest = hashlib.sha256(str(seed).encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big")


def shuffle(items: list[T], rng: SplitMix64) -> list[T]:
    """Fisher-Yates shuffle in place, walking from the last index down."""
    for i in range(len(items) - 1, 0, -1):
        j = rng.below(i + 1)
        items[i], items[j] = items[j], items[i]
    return items


def split_by_weights(
    total: int, weights: Sequence[float], seed: Any = None
) -> list[int]:
    """
    Split an integer total into integer shares proportional to weights.

    Steps:
    1. Floor each exact share (weight / sum(weights)) * total
    2. remainder = total - sum(floors)
    3. Shuffle the indices with a generator seeded from `seed`
    4. Walk the shuffled indices cyclically, moving one unit per step
       toward the total, skipping shares that are zero unless every
       floored share is zero

    The same inputs always produce the same shares.

    Args:
        total: Amount to split, in integer cents (may be negative)
        weights: Non-negative weights, one per member
        seed: Stable value identifying the split (defaults to the total)

    Returns:
        Integer shares, same length as weights, summing exactly to total

    Raises:
        ValueError: If any weight is negative
        ApportionmentError: If a nonzero total has nowhere to go
    """
    if any(weight < 0 for weight in weights):
        raise ValueError(f"Weights must be non-negative, got {list(weights)}")

    if total == 0:
        return [0] * len(weights)

    total_weight = sum(Fraction(weight) for weight in weights)
    if total_weight == 0:
        raise ApportionmentError(
            f"Cannot split {total} across weights {list(weights)}: "
            f"all weights are zero"
        )

    floored = [
        math.floor(Fraction(weight) / total_weight * total) for weight in weights
    ]
    remainder = total - sum(floored)

    if remainder == 0:
        return floored

    if seed is None:
        seed = total
    indices = shuffle(list(range(len(weights))), SplitMix64(seed_to_int(seed)))

    all_floors_zero = all(share == 0 for share in floored)
    step = 1 if remainder > 0 else -1

    result = list(floored)
    skipped = 0
    position = 0
    while remainder != 0:
        index = indices[position]
        position = (position + 1) % len(indices)

        if all_floors_zero or result[index] != 0:
            result[index] += step
            remainder -= step
            skipped = 0
            continue

        skipped += 1
        if skipped >= len(indices):
            raise ApportionmentError(
                f"Cannot distribute remainder {remainder} of {total}: "
                f"all shares are zero"
            )

    logger.debug(f"Split {total} by {list(weights)} (seed {seed!r}) -> {result}")

    return result
