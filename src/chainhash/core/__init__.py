from .stats import TableStats, collect_bucket_heatmap, collect_chain_histogram, sample_stats
from .table import (
    DEFAULT_CAPACITY,
    DEFAULT_LOAD_FACTOR,
    MAXIMUM_CAPACITY,
    HashTable,
    bucket_index,
    hash_key,
    spread,
)

__all__ = [
    "HashTable",
    "TableStats",
    "bucket_index",
    "collect_bucket_heatmap",
    "collect_chain_histogram",
    "hash_key",
    "sample_stats",
    "spread",
    "DEFAULT_CAPACITY",
    "DEFAULT_LOAD_FACTOR",
    "MAXIMUM_CAPACITY",
]
