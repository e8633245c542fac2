"""Distance metrics for photo fingerprint comparison."""

from typing import Sequence

import imagehash
import numpy as np


class LengthMismatchError(ValueError):
    """Raised when two fingerprints do not have the same number of bits."""


def hamming_distance(a: imagehash.ImageHash, b: imagehash.ImageHash) -> int:
    """
    Calculate Hamming distance between two fingerprints.

    Args:
        a: First fingerprint
        b: Second fingerprint

    Returns:
        Number of differing bits

    Raises:
        LengthMismatchError: If the fingerprints differ in length
    """
    if a.hash.size != b.hash.size:
        raise LengthMismatchError(
            f"Fingerprints must be the same length ({a.hash.size} != {b.hash.size})"
        )
    return int(a - b)


def similarity(a: imagehash.ImageHash, b: imagehash.ImageHash) -> float:
    """
    Similarity of two fingerprints on a 0-1 scale.

    1.0 means identical fingerprints, 0.0 means every bit differs.
    """
    return 1 - hamming_distance(a, b) / a.hash.size


def similarity_matrix(hashes: Sequence[imagehash.ImageHash]) -> np.ndarray:
    """
    Pairwise similarity of a batch of fingerprints.

    Returns:
        Symmetric (n, n) float array with 1.0 on the diagonal

    Raises:
        LengthMismatchError: If the batch mixes fingerprint lengths
    """
    if not hashes:
        return np.zeros((0, 0), dtype=float)

    sizes = {h.hash.size for h in hashes}
    if len(sizes) > 1:
        raise LengthMismatchError(f"Fingerprints in a batch must share one length, got {sorted(sizes)}")

    bits = np.stack([h.hash.flatten() for h in hashes])
    distances = np.count_nonzero(bits[:, None, :] != bits[None, :, :], axis=2)
    return 1 - distances / bits.shape[1]
