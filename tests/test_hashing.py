from __future__ import annotations

import pytest

from chainhash.core.table import bucket_index, hash_key, spread


def test_spread_folds_high_bits() -> None:
    assert spread(0) == 0
    assert spread(1) == 1
    assert spread(1 << 16) == (1 << 16) | 1
    assert spread(0x12340000) == 0x12340000 ^ 0x1234


def test_spread_treats_negative_hashes_as_unsigned() -> None:
    assert spread(-1) == 0xFFFF_0000_0000_0000
    assert spread(-1) >= 0


def test_hash_key_of_none_is_zero() -> None:
    assert hash_key(None) == 0
    assert hash_key("abc") == spread(hash("abc"))


@pytest.mark.parametrize(
    ("h", "capacity", "expected"),
    [(0x12345, 16, 5), (0, 16, 0), (31, 32, 31), (32, 32, 0), (7, 1, 0)],
)
def test_bucket_index_masks_low_bits(h: int, capacity: int, expected: int) -> None:
    assert bucket_index(h, capacity) == expected


def test_high_bit_only_differences_land_in_different_buckets() -> None:
    a, b = 0x10000, 0x20000
    assert a & 15 == b & 15
    assert bucket_index(hash_key(a), 16) != bucket_index(hash_key(b), 16)
