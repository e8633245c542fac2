from dataclasses import dataclass, field
from typing import FrozenSet, Optional


@dataclass
class Settings:
    greedy_threshold: float = 0.75
    average_threshold: float = 0.70
    max_workers: Optional[int] = 8
    id_prefix: str = "item"
    image_extensions: FrozenSet[str] = field(
        default_factory=lambda: frozenset({".jpg", ".jpeg", ".png", ".webp", ".bmp", ".gif", ".tif", ".tiff"})
    )

    def threshold_for(self, strategy) -> float:
        """Default similarity threshold for a clustering strategy."""
        from .grouping.cluster import ClusterStrategy

        if ClusterStrategy(strategy) is ClusterStrategy.AVERAGE_LINKAGE:
            return self.average_threshold
        return self.greedy_threshold
