"""Public API for grouping a batch of photos by item."""

import threading
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from ..logging import get_logger
from .cluster import (
    ClusterStrategy,
    DEFAULT_THRESHOLDS,
    PhotoGroup,
    cluster_fingerprints,
    resolve_strategy,
    validate_threshold,
)
from .hash import ImageReadError, PathLike, fingerprint_batch

logger = get_logger(__name__)


@dataclass
class GroupingResult:
    """Groups for a batch plus the photos that could not take part."""
    groups: List[PhotoGroup] = field(default_factory=list)
    failures: List[ImageReadError] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


def group_photos(
    paths: Sequence[PathLike],
    threshold: Optional[float] = None,
    strategy: Union[ClusterStrategy, str] = ClusterStrategy.GREEDY,
    max_workers: Optional[int] = None,
    cancel_event: Optional[threading.Event] = None,
    id_prefix: str = "item",
) -> GroupingResult:
    """
    Fingerprint and cluster a batch of photos.

    Args:
        paths: Photo paths in upload order
        threshold: Minimum similarity to join a group (strategy default if None)
        strategy: Clustering strategy or its name ("greedy", "average")
        max_workers: Size of the fingerprinting thread pool
        cancel_event: Set to abandon photos not fingerprinted yet
        id_prefix: Prefix for group ids

    Returns:
        GroupingResult with the groups and the excluded photos

    Raises:
        InvalidThresholdError: If threshold is outside [0, 1]
    """
    strategy = resolve_strategy(strategy)
    if threshold is None:
        threshold = DEFAULT_THRESHOLDS[strategy]
    # Reject bad thresholds before any image is decoded
    threshold = validate_threshold(threshold)

    if not paths:
        return GroupingResult()

    unique_paths = list(dict.fromkeys(str(path) for path in paths))
    if len(unique_paths) != len(paths):
        logger.warning(f"Ignoring {len(paths) - len(unique_paths)} repeated photo path(s)")

    batch = fingerprint_batch(unique_paths, max_workers=max_workers, cancel_event=cancel_event)
    for failure in batch.failures:
        logger.warning(f"Excluding photo from grouping: {failure}")

    groups = cluster_fingerprints(
        batch.fingerprints,
        threshold=threshold,
        strategy=strategy,
        id_prefix=id_prefix,
    )
    return GroupingResult(groups=groups, failures=batch.failures, skipped=batch.skipped)


def group_photos_by_item(
    paths: Sequence[PathLike],
    threshold: Optional[float] = None,
    strategy: Union[ClusterStrategy, str] = ClusterStrategy.GREEDY,
    max_workers: Optional[int] = None,
    cancel_event: Optional[threading.Event] = None,
) -> List[PhotoGroup]:
    """Group photos by item; unreadable photos are logged and left out."""
    return group_photos(
        paths,
        threshold=threshold,
        strategy=strategy,
        max_workers=max_workers,
        cancel_event=cancel_event,
    ).groups
