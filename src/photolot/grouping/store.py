"""Manual corrections to a set of photo groups."""

import threading
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from ..logging import get_logger
from .cluster import InvalidGroupError, PhotoGroup, SINGLETON_CONFIDENCE

logger = get_logger(__name__)

CORRECTION_PENALTY = 0.9
SPLIT_MARKER = "split"


class PhotoNotFoundError(KeyError):
    """Raised when a photo is not a member of the group it is split from."""


class GroupNotFoundError(KeyError):
    """Raised when a group id is unknown to the store."""


class SplitRejectedError(ValueError):
    """Raised when a split would leave a group with no photos."""


class PartitionError(ValueError):
    """Raised when groups no longer hold every photo exactly once."""


def merge_groups(first: PhotoGroup, second: PhotoGroup) -> PhotoGroup:
    """
    Merge two groups into one.

    Photos of ``second`` follow those of ``first``; the id and primary photo
    come from ``first``. Manual merges are never more confident than either
    source group.

    Raises:
        InvalidGroupError: If the groups share a photo
    """
    return PhotoGroup(
        id=first.id,
        photos=first.photos + second.photos,
        confidence=min(first.confidence, second.confidence) * CORRECTION_PENALTY,
    )


def split_photo_from_group(
    group: PhotoGroup,
    photo_path: str,
    new_id: Optional[str] = None,
) -> Tuple[PhotoGroup, PhotoGroup]:
    """
    Move one photo out of a group into a group of its own.

    Args:
        group: Group holding the photo
        photo_path: Photo to split out
        new_id: Id for the new single-photo group (defaults to "<id>-split")

    Returns:
        (updated group, new single-photo group)

    Raises:
        PhotoNotFoundError: If the photo is not in the group
        SplitRejectedError: If the photo is the group's only photo
    """
    if photo_path not in group.photos:
        raise PhotoNotFoundError(f"Photo {photo_path} is not in group {group.id}")
    if len(group.photos) == 1:
        raise SplitRejectedError(
            f"Cannot split {photo_path} out of {group.id}: it is the group's only photo"
        )

    updated = PhotoGroup(
        id=group.id,
        photos=tuple(p for p in group.photos if p != photo_path),
        confidence=group.confidence * CORRECTION_PENALTY,
    )
    new = PhotoGroup(
        id=new_id or f"{group.id}-{SPLIT_MARKER}",
        photos=(photo_path,),
        confidence=SINGLETON_CONFIDENCE,
    )
    return updated, new


def validate_partition(
    groups: Sequence[PhotoGroup],
    expected_photos: Optional[Iterable[str]] = None,
) -> None:
    """
    Check that no photo or group id appears twice.

    When ``expected_photos`` is given, the groups must also cover exactly
    that set of photos.

    Raises:
        PartitionError: On the first violation found
    """
    seen_ids: Set[str] = set()
    owner: Dict[str, str] = {}
    for group in groups:
        if group.id in seen_ids:
            raise PartitionError(f"Group id {group.id} is used more than once")
        seen_ids.add(group.id)
        for photo in group.photos:
            if photo in owner:
                raise PartitionError(f"Photo {photo} is in both {owner[photo]} and {group.id}")
            owner[photo] = group.id

    if expected_photos is not None:
        expected = set(expected_photos)
        missing = expected - owner.keys()
        extra = owner.keys() - expected
        if missing:
            raise PartitionError(f"{len(missing)} photo(s) belong to no group: {sorted(missing)}")
        if extra:
            raise PartitionError(f"{len(extra)} photo(s) are not part of the batch: {sorted(extra)}")


class GroupStore:
    """
    Holds the groups of one upload batch and applies user corrections.

    Corrections are serialized; each one builds a candidate group list,
    checks it still partitions the batch, and only then replaces the
    current groups. A rejected correction leaves the store untouched.
    """

    def __init__(self, groups: Iterable[PhotoGroup]):
        self._groups: List[PhotoGroup] = list(groups)
        validate_partition(self._groups)
        self._photos = frozenset(photo for group in self._groups for photo in group.photos)
        self._lock = threading.Lock()

    @property
    def groups(self) -> Tuple[PhotoGroup, ...]:
        return tuple(self._groups)

    @property
    def photos(self) -> frozenset:
        return self._photos

    def __len__(self) -> int:
        return len(self._groups)

    def __iter__(self) -> Iterator[PhotoGroup]:
        return iter(self.groups)

    def get(self, group_id: str) -> PhotoGroup:
        return self._groups[self._index(group_id)]

    def group_of(self, photo_path: str) -> PhotoGroup:
        for group in self._groups:
            if photo_path in group.photos:
                return group
        raise PhotoNotFoundError(f"Photo {photo_path} is not in any group")

    def merge(self, first_id: str, second_id: str) -> PhotoGroup:
        """Merge ``second_id`` into ``first_id``; the result keeps the first group's position."""
        if first_id == second_id:
            raise InvalidGroupError(f"Cannot merge group {first_id} with itself")

        with self._lock:
            first_index = self._index(first_id)
            second_index = self._index(second_id)
            merged = merge_groups(self._groups[first_index], self._groups[second_index])

            candidate = list(self._groups)
            candidate[first_index] = merged
            del candidate[second_index]
            self._commit(candidate)

        logger.info(f"Merged {second_id} into {first_id} ({len(merged.photos)} photos)")
        return merged

    def split(self, group_id: str, photo_path: str) -> Tuple[PhotoGroup, PhotoGroup]:
        """Split a photo out of a group; the new group is placed right after it."""
        with self._lock:
            index = self._index(group_id)
            updated, new = split_photo_from_group(
                self._groups[index], photo_path, new_id=self._split_id(group_id)
            )

            candidate = list(self._groups)
            candidate[index] = updated
            candidate.insert(index + 1, new)
            self._commit(candidate)

        logger.info(f"Split {photo_path} out of {group_id} into {new.id}")
        return updated, new

    def _index(self, group_id: str) -> int:
        for index, group in enumerate(self._groups):
            if group.id == group_id:
                return index
        raise GroupNotFoundError(f"No group with id {group_id}")

    def _split_id(self, group_id: str) -> str:
        taken = {group.id for group in self._groups}
        base = f"{group_id}-{SPLIT_MARKER}"
        new_id = base
        counter = 2
        while new_id in taken:
            new_id = f"{base}-{counter}"
            counter += 1
        return new_id

    def _commit(self, candidate: List[PhotoGroup]) -> None:
        validate_partition(candidate, self._photos)
        self._groups = candidate
