"""
Datasets and batching for deep_thought.
"""

from .dataset import Dataset, BatchSize, Batch, BatchCursor

__all__ = ["Dataset", "BatchSize", "Batch", "BatchCursor"]
