"""Difference-hash fingerprints for grouping photos by item."""

import math
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Union

import imagehash
import numpy as np
from PIL import Image

from ..config import Settings
from ..logging import get_logger

logger = get_logger(__name__)

HASH_SIZE = 8
FINGERPRINT_BITS = HASH_SIZE * HASH_SIZE

PathLike = Union[str, Path]


@dataclass(frozen=True)
class PhotoFingerprint:
    """Fingerprint of one photo, tied to its path for the batch."""
    path: str
    hash: imagehash.ImageHash


@dataclass
class FingerprintBatch:
    """Fingerprints of a batch, in input order, with the photos left out."""
    fingerprints: List[PhotoFingerprint] = field(default_factory=list)
    failures: List["ImageReadError"] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


class ImageReadError(Exception):
    """Raised when a photo cannot be opened or decoded."""

    def __init__(self, path: PathLike, reason: str):
        super().__init__(f"Failed to read image {path}: {reason}")
        self.path = str(path)
        self.reason = reason


def generate_fingerprint(image_path: PathLike) -> imagehash.ImageHash:
    """
    Compute the 64-bit difference hash of an image.

    The image is converted to grayscale and downsampled to 9x8 pixels. Each
    row yields 8 bits, one per pair of horizontal neighbours: 1 when the left
    pixel is brighter than the right one, 0 otherwise.

    Args:
        image_path: Path to image file

    Returns:
        ImageHash holding an 8x8 boolean array (row-major bit order)

    Raises:
        ImageReadError: If the file is missing or cannot be decoded
    """
    path = Path(image_path)
    if not path.is_file():
        raise ImageReadError(path, "file does not exist")

    try:
        with Image.open(path) as img:
            gray = img.convert("L").resize((HASH_SIZE + 1, HASH_SIZE), Image.Resampling.LANCZOS)
            pixels = np.asarray(gray, dtype=np.int16)
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise ImageReadError(path, str(exc)) from exc

    bits = pixels[:, :-1] > pixels[:, 1:]
    fingerprint = imagehash.ImageHash(bits)
    logger.debug(f"Computed fingerprint for {path}: {fingerprint}")
    return fingerprint


def to_bits(fingerprint: imagehash.ImageHash) -> str:
    """Render a fingerprint as a string of '0' and '1' in row-major order."""
    return "".join("1" if bit else "0" for bit in fingerprint.hash.flatten())


def from_bits(bits: str) -> imagehash.ImageHash:
    """Build a square fingerprint from a string of '0' and '1'."""
    side = math.isqrt(len(bits))
    if side == 0 or side * side != len(bits):
        raise ValueError(f"Bit string length {len(bits)} is not a non-zero perfect square")
    if set(bits) - {"0", "1"}:
        raise ValueError("Bit string may only contain '0' and '1'")
    array = np.array([ch == "1" for ch in bits], dtype=bool).reshape(side, side)
    return imagehash.ImageHash(array)


def fingerprint_batch(
    paths: Sequence[PathLike],
    max_workers: Optional[int] = None,
    cancel_event: Optional[threading.Event] = None,
) -> FingerprintBatch:
    """
    Fingerprint a batch of photos on a bounded thread pool.

    Results come back in the order of ``paths`` whichever worker finishes
    first. Unreadable photos are collected in ``failures``. Once
    ``cancel_event`` is set, photos that have not finished yet are dropped
    into ``skipped``.
    """
    batch = FingerprintBatch()
    if not paths:
        return batch

    if max_workers is None:
        max_workers = Settings().max_workers

    def work(path: str) -> Optional[imagehash.ImageHash]:
        if cancel_event is not None and cancel_event.is_set():
            return None
        fingerprint = generate_fingerprint(path)
        if cancel_event is not None and cancel_event.is_set():
            return None
        return fingerprint

    normalized = [str(path) for path in paths]
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(work, path) for path in normalized]

        for path, future in zip(normalized, futures):
            if cancel_event is not None and cancel_event.is_set():
                future.cancel()
            if future.cancelled():
                batch.skipped.append(path)
                continue
            try:
                fingerprint = future.result()
            except ImageReadError as exc:
                batch.failures.append(exc)
                continue
            if fingerprint is None:
                batch.skipped.append(path)
                continue
            batch.fingerprints.append(PhotoFingerprint(path=path, hash=fingerprint))

    if batch.skipped:
        logger.info(f"Fingerprinting cancelled: {len(batch.skipped)} of {len(normalized)} photos skipped")
    logger.debug(
        f"Fingerprinted {len(batch.fingerprints)} photos ({len(batch.failures)} failures)"
    )
    return batch
