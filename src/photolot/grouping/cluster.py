"""Clustering logic for grouping photos of the same item."""

import math
from dataclasses import dataclass
from enum import Enum
from itertools import combinations
from numbers import Real
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from ..config import Settings
from ..logging import get_logger
from .distance import similarity, similarity_matrix
from .hash import PhotoFingerprint

logger = get_logger(__name__)

SINGLETON_CONFIDENCE = 0.5
GREEDY_GROUP_CONFIDENCE = 0.85


class ClusterStrategy(Enum):
    """Available clustering strategies."""
    GREEDY = "greedy"
    AVERAGE_LINKAGE = "average"


DEFAULT_THRESHOLDS: Dict[ClusterStrategy, float] = {
    ClusterStrategy.GREEDY: Settings.greedy_threshold,
    ClusterStrategy.AVERAGE_LINKAGE: Settings.average_threshold,
}


class InvalidThresholdError(ValueError):
    """Raised when a similarity threshold falls outside [0, 1]."""


class InvalidGroupError(ValueError):
    """Raised when a photo group would break its own invariants."""


@dataclass(frozen=True)
class PhotoGroup:
    """Photos believed to show the same item; the first one is the primary photo."""
    id: str
    photos: Tuple[str, ...]
    confidence: float

    def __post_init__(self) -> None:
        # Accept any sequence but always store a tuple
        object.__setattr__(self, "photos", tuple(self.photos))
        if not self.photos:
            raise InvalidGroupError(f"Group {self.id} has no photos")
        if len(set(self.photos)) != len(self.photos):
            raise InvalidGroupError(f"Group {self.id} lists a photo more than once")
        if not 0.0 <= self.confidence <= 1.0:
            raise InvalidGroupError(f"Group {self.id} confidence {self.confidence} is outside [0, 1]")

    @property
    def primary_photo(self) -> str:
        return self.photos[0]

    def __len__(self) -> int:
        return len(self.photos)

    def __contains__(self, photo_path: object) -> bool:
        return photo_path in self.photos

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "photos": list(self.photos),
            "primary_photo": self.primary_photo,
            "confidence": self.confidence,
        }


def resolve_strategy(strategy: Union[ClusterStrategy, str]) -> ClusterStrategy:
    try:
        return ClusterStrategy(strategy)
    except ValueError:
        choices = ", ".join(s.value for s in ClusterStrategy)
        raise ValueError(f"Unknown clustering strategy {strategy!r} (choose from: {choices})") from None


def validate_threshold(threshold: float) -> float:
    """Reject thresholds that are not a real number in [0, 1]."""
    if isinstance(threshold, bool) or not isinstance(threshold, Real):
        raise InvalidThresholdError(f"Threshold must be a number, got {threshold!r}")
    if math.isnan(threshold) or not 0.0 <= threshold <= 1.0:
        raise InvalidThresholdError(f"Threshold must be within [0, 1], got {threshold}")
    return float(threshold)


def cluster_fingerprints(
    fingerprints: Sequence[PhotoFingerprint],
    threshold: Optional[float] = None,
    strategy: Union[ClusterStrategy, str] = ClusterStrategy.GREEDY,
    id_prefix: str = "item",
) -> List[PhotoGroup]:
    """
    Partition fingerprinted photos into one group per item.

    Photos are scanned in input order. The first unassigned photo seeds a
    group, then every later unassigned photo is tested against the group
    and joins it when accepted. Greedy compares a candidate with the seed
    only, average-linkage with the mean similarity to every current member.

    Args:
        fingerprints: Photos in upload order
        threshold: Minimum similarity to join a group (strategy default if None)
        strategy: GREEDY or AVERAGE_LINKAGE
        id_prefix: Prefix for group ids ("item" gives item-1, item-2, ...)

    Returns:
        Groups ordered by their first photo

    Raises:
        InvalidThresholdError: If threshold is outside [0, 1]
    """
    strategy = resolve_strategy(strategy)
    if threshold is None:
        threshold = DEFAULT_THRESHOLDS[strategy]
    threshold = validate_threshold(threshold)

    if not fingerprints:
        return []

    if strategy is ClusterStrategy.GREEDY:
        members = _seed_and_grow(len(fingerprints), _seed_acceptance(fingerprints, threshold))
        confidences = [_greedy_confidence(group) for group in members]
    else:
        matrix = similarity_matrix([fp.hash for fp in fingerprints])
        members = _seed_and_grow(len(fingerprints), _average_acceptance(matrix, threshold))
        confidences = [_cohesion_confidence(group, matrix) for group in members]

    groups = []
    for number, (indices, confidence) in enumerate(zip(members, confidences), start=1):
        groups.append(PhotoGroup(
            id=f"{id_prefix}-{number}",
            photos=tuple(fingerprints[i].path for i in indices),
            confidence=confidence,
        ))

    logger.info(
        f"Clustered {len(fingerprints)} photos into {len(groups)} groups "
        f"({strategy.value}, threshold {threshold:.2f})"
    )
    return groups


Acceptance = Callable[[List[int], int], bool]


def _seed_and_grow(count: int, accepts: Acceptance) -> List[List[int]]:
    assigned = [False] * count
    groups: List[List[int]] = []

    for seed in range(count):
        if assigned[seed]:
            continue
        group = [seed]
        assigned[seed] = True

        for candidate in range(seed + 1, count):
            if assigned[candidate]:
                continue
            if accepts(group, candidate):
                group.append(candidate)
                assigned[candidate] = True

        groups.append(group)

    return groups


def _seed_acceptance(fingerprints: Sequence[PhotoFingerprint], threshold: float) -> Acceptance:
    def accepts(group: List[int], candidate: int) -> bool:
        seed = fingerprints[group[0]]
        score = similarity(seed.hash, fingerprints[candidate].hash)
        if score >= threshold:
            logger.debug(f"Grouped {fingerprints[candidate].path} with seed {seed.path} (similarity: {score:.3f})")
            return True
        return False

    return accepts


def _average_acceptance(matrix: np.ndarray, threshold: float) -> Acceptance:
    def accepts(group: List[int], candidate: int) -> bool:
        # Members are re-read on every call, so the average follows the group as it grows
        average = float(np.mean(matrix[group, candidate]))
        return average >= threshold

    return accepts


def _greedy_confidence(indices: List[int]) -> float:
    return GREEDY_GROUP_CONFIDENCE if len(indices) > 1 else SINGLETON_CONFIDENCE


def _cohesion_confidence(indices: List[int], matrix: np.ndarray) -> float:
    """Mean pairwise similarity of the group's members, excluding self-pairs."""
    if len(indices) == 1:
        return SINGLETON_CONFIDENCE
    pairs = [matrix[i, j] for i, j in combinations(indices, 2)]
    return float(sum(pairs) / len(pairs))
