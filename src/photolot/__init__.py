"""Group a batch of marketplace photos into one group per physical item."""

__version__ = "0.1.0"
