"""Photo grouping engine: fingerprints, clustering and manual corrections."""

from .model import group_photos, group_photos_by_item, GroupingResult
from .hash import (
    FingerprintBatch,
    ImageReadError,
    PhotoFingerprint,
    fingerprint_batch,
    from_bits,
    generate_fingerprint,
    to_bits,
)
from .distance import LengthMismatchError, hamming_distance, similarity, similarity_matrix
from .cluster import (
    ClusterStrategy,
    InvalidGroupError,
    InvalidThresholdError,
    PhotoGroup,
    cluster_fingerprints,
)
from .store import (
    GroupNotFoundError,
    GroupStore,
    PartitionError,
    PhotoNotFoundError,
    SplitRejectedError,
    merge_groups,
    split_photo_from_group,
    validate_partition,
)

__all__ = [
    "group_photos",
    "group_photos_by_item",
    "GroupingResult",
    "FingerprintBatch",
    "ImageReadError",
    "PhotoFingerprint",
    "fingerprint_batch",
    "from_bits",
    "generate_fingerprint",
    "to_bits",
    "LengthMismatchError",
    "hamming_distance",
    "similarity",
    "similarity_matrix",
    "ClusterStrategy",
    "InvalidGroupError",
    "InvalidThresholdError",
    "PhotoGroup",
    "cluster_fingerprints",
    "GroupNotFoundError",
    "GroupStore",
    "PartitionError",
    "PhotoNotFoundError",
    "SplitRejectedError",
    "merge_groups",
    "split_photo_from_group",
    "validate_partition",
]
