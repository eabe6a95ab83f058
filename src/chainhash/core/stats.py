from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import asdict, dataclass
from typing import Any, Dict, List

from .table import HashTable


@dataclass
class TableStats:
    size: int = 0
    capacity: int = 0
    load_factor: float = 0.0
    current_load: float = 0.0
    max_chain_len: int = 0
    empty_buckets: int = 0
    resize_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def sample_stats(table: HashTable[Any, Any]) -> TableStats:
    """Snapshot the sizing and chain-shape figures of ``table``."""

    lengths = table.chain_lengths()
    return TableStats(
        size=len(table),
        capacity=table.capacity,
        load_factor=table.load_factor,
        current_load=table.current_load(),
        max_chain_len=max(lengths, default=0),
        empty_buckets=sum(1 for n in lengths if n == 0),
        resize_count=table.resize_count,
    )


def collect_chain_histogram(table: HashTable[Any, Any]) -> List[List[int]]:
    histogram: Dict[int, int] = defaultdict(int)
    for length in table.chain_lengths():
        histogram[length] += 1
    return [[length, count] for length, count in sorted(histogram.items())]


def collect_bucket_heatmap(
    table: HashTable[Any, Any], target_cols: int = 32, max_cells: int = 512
) -> Dict[str, Any]:
    base_counts = table.chain_lengths()
    original_slots = len(base_counts)
    total = sum(base_counts)
    target_cells = max(1, max_cells)
    group_width = max(1, math.ceil(original_slots / target_cells))
    aggregated: List[int] = []
    for idx in range(0, original_slots, group_width):
        aggregated.append(sum(base_counts[idx : idx + group_width]))

    cols = max(1, min(target_cols, len(aggregated)))
    rows = math.ceil(len(aggregated) / cols)
    padded_length = rows * cols
    if len(aggregated) < padded_length:
        aggregated.extend([0] * (padded_length - len(aggregated)))
    matrix = [aggregated[r * cols : (r + 1) * cols] for r in range(rows)]

    return {
        "rows": rows,
        "cols": cols,
        "matrix": matrix,
        "max": max(aggregated) if aggregated else 0,
        "total": total,
        "slot_span": group_width,
        "original_slots": original_slots,
    }


__all__ = [
    "TableStats",
    "collect_bucket_heatmap",
    "collect_chain_histogram",
    "sample_stats",
]
