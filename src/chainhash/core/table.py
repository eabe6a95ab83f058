from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from numbers import Real
from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    Generic,
    Iterator,
    List,
    Optional,
    Tuple,
    TypeVar,
)

from chainhash.contracts.error import (
    AllocationFailureError,
    InvalidConfigurationError,
    InvariantError,
    NullKeyUnsupportedError,
)

if TYPE_CHECKING:  # pragma: no cover
    from chainhash.config import TablePolicy


logger = logging.getLogger("chainhash.table")

K = TypeVar("K")
V = TypeVar("V")

DEFAULT_CAPACITY: int = 16
DEFAULT_LOAD_FACTOR: float = 0.75
MAXIMUM_CAPACITY: int = 1 << 30

_HASH_MASK_64: int = (1 << 64) - 1


def _next_power_of_two(value: int) -> int:
    if value <= 1:
        return 1
    return 1 << (value - 1).bit_length()


def _is_power_of_two(value: int) -> bool:
    return value > 0 and (value & (value - 1)) == 0


def spread(h: int) -> int:
    """Fold the high bits of ``h`` into the low bits used by the index mask."""

    u = h & _HASH_MASK_64
    return u ^ (u >> 16)


def hash_key(key: Any) -> int:
    """Spread hash of ``key``; ``None`` always hashes to 0."""

    if key is None:
        return 0
    return spread(hash(key))


def bucket_index(h: int, capacity: int) -> int:
    return h & (capacity - 1)


def _allocate_buckets(capacity: int) -> List[Optional["_Entry"]]:
    return [None] * capacity


@dataclass(slots=True, eq=False)
class _Entry:
    key: Any
    value: Any
    hash: int
    next: Optional["_Entry"] = None

    def matches(self, key: Any, h: int) -> bool:
        if self.hash != h:
            return False
        stored = self.key
        if stored is None or key is None:
            return stored is key
        return stored is key or stored == key


class HashTable(Generic[K, V]):
    """Hash table with separately chained buckets and power-of-two growth.

    Keys are compared by equality. ``None`` is accepted as a key unless the
    table is built with ``allow_null_keys=False``; it always lives in bucket 0.
    New entries go to the head of their chain. The table doubles once ``size``
    exceeds ``capacity * load_factor``, relinking the existing entries into the
    new bucket list without recomputing their hashes.
    """

    __slots__ = (
        "_buckets",
        "_capacity",
        "_load_factor",
        "_size",
        "_allow_null_keys",
        "_chain_length_warn",
        "_resize_count",
        "_mod_count",
        "_saturated",
    )

    def __init__(
        self,
        initial_capacity: int = DEFAULT_CAPACITY,
        load_factor: float = DEFAULT_LOAD_FACTOR,
        *,
        allow_null_keys: bool = True,
        chain_length_warn: Optional[int] = None,
    ) -> None:
        if isinstance(initial_capacity, bool) or not isinstance(initial_capacity, int):
            raise InvalidConfigurationError(
                f"initial_capacity must be an integer, got {initial_capacity!r}"
            )
        if initial_capacity <= 0:
            raise InvalidConfigurationError(
                f"initial_capacity must be > 0, got {initial_capacity}",
                hint="use a power of two such as 16",
            )
        if initial_capacity > MAXIMUM_CAPACITY:
            raise InvalidConfigurationError(
                f"initial_capacity must be <= {MAXIMUM_CAPACITY}, got {initial_capacity}"
            )
        if isinstance(load_factor, bool) or not isinstance(load_factor, Real):
            raise InvalidConfigurationError(f"load_factor must be a number, got {load_factor!r}")
        if not math.isfinite(load_factor) or not 0.0 < load_factor <= 1.0:
            raise InvalidConfigurationError(
                f"load_factor must be in (0, 1], got {load_factor}",
                hint="the conventional value is 0.75",
            )
        if chain_length_warn is not None and (
            isinstance(chain_length_warn, bool)
            or not isinstance(chain_length_warn, int)
            or chain_length_warn <= 0
        ):
            raise InvalidConfigurationError(
                f"chain_length_warn must be a positive integer or None, got {chain_length_warn!r}"
            )

        capacity = initial_capacity
        if not _is_power_of_two(capacity):
            capacity = _next_power_of_two(capacity)
            logger.warning(
                "Rounded initial capacity from %d to %d (power-of-two requirement)",
                initial_capacity,
                capacity,
            )

        self._capacity = capacity
        self._load_factor = float(load_factor)
        self._buckets: List[Optional[_Entry]] = _allocate_buckets(capacity)
        self._size = 0
        self._allow_null_keys = allow_null_keys
        self._chain_length_warn = chain_length_warn
        self._resize_count = 0
        self._mod_count = 0
        self._saturated = False

    @classmethod
    def from_policy(
        cls, policy: "TablePolicy", chain_length_warn: Optional[int] = None
    ) -> "HashTable[Any, Any]":
        policy.validate()
        return cls(
            policy.initial_capacity,
            policy.load_factor,
            allow_null_keys=policy.allow_null_keys,
            chain_length_warn=chain_length_warn,
        )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def load_factor(self) -> float:
        return self._load_factor

    @property
    def threshold(self) -> float:
        return self._capacity * self._load_factor

    @property
    def resize_count(self) -> int:
        return self._resize_count

    @property
    def allow_null_keys(self) -> bool:
        return self._allow_null_keys

    def current_load(self) -> float:
        return self._size / self._capacity

    def describe(self) -> Dict[str, Any]:
        """Sizing snapshot attached to log records and error envelopes."""

        return {
            "capacity": self._capacity,
            "size": self._size,
            "load_factor": self._load_factor,
            "resize_count": self._resize_count,
        }

    def size(self) -> int:
        return self._size

    def is_empty(self) -> bool:
        return self._size == 0

    def __len__(self) -> int:
        return self._size

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(size={self._size}, capacity={self._capacity}, "
            f"load_factor={self._load_factor})"
        )

    # ------------------------------------------------------------------
    # Core operations
    # ------------------------------------------------------------------
    def _hash(self, key: Any) -> int:
        if key is None and not self._allow_null_keys:
            raise NullKeyUnsupportedError(
                "None keys are not supported by this table",
                hint="construct the table with allow_null_keys=True",
            )
        return hash_key(key)

    def _find(self, key: Any) -> Optional[_Entry]:
        h = self._hash(key)
        node = self._buckets[bucket_index(h, self._capacity)]
        while node is not None:
            if node.matches(key, h):
                return node
            node = node.next
        return None

    def put(self, key: K, value: V) -> Optional[V]:
        """Associate ``value`` with ``key`` and return the previous value, if any."""

        h = self._hash(key)
        idx = bucket_index(h, self._capacity)
        head = self._buckets[idx]
        depth = 0
        node = head
        while node is not None:
            if node.matches(key, h):
                old = node.value
                node.value = value
                return old
            depth += 1
            node = node.next

        self._buckets[idx] = _Entry(key, value, h, head)
        self._size += 1
        self._mod_count += 1
        if self._chain_length_warn is not None and depth == self._chain_length_warn:
            logger.warning(
                "Bucket %d chain length %d exceeds %d (capacity=%d, size=%d)",
                idx,
                depth + 1,
                self._chain_length_warn,
                self._capacity,
                self._size,
                extra={"table": dict(self.describe(), bucket=idx, chain_length=depth + 1)},
            )
        if self._size > self.threshold:
            self._resize()
        return None

    def get(self, key: K, default: Optional[V] = None) -> Optional[V]:
        """Return the value stored for ``key`` or ``default`` when absent."""

        node = self._find(key)
        if node is None:
            return default
        return node.value

    def remove(self, key: K, default: Optional[V] = None) -> Optional[V]:
        """Unlink ``key`` and return its value, or ``default`` if it is absent."""

        h = self._hash(key)
        idx = bucket_index(h, self._capacity)
        head = self._buckets[idx]
        if head is None:
            return default
        if head.matches(key, h):
            self._buckets[idx] = head.next
            head.next = None
            self._size -= 1
            self._mod_count += 1
            return head.value
        prev = head
        node = head.next
        while node is not None:
            if node.matches(key, h):
                prev.next = node.next
                node.next = None
                self._size -= 1
                self._mod_count += 1
                return node.value
            prev = node
            node = node.next
        return default

    def clear(self) -> None:
        """Drop every entry. Capacity is kept."""

        for idx in range(self._capacity):
            self._buckets[idx] = None
        self._size = 0
        self._mod_count += 1

    def __contains__(self, key: object) -> bool:
        return self._find(key) is not None

    # ------------------------------------------------------------------
    # Growth
    # ------------------------------------------------------------------
    def _resize(self) -> None:
        old_cap = self._capacity
        if old_cap >= MAXIMUM_CAPACITY:
            if not self._saturated:
                self._saturated = True
                logger.warning(
                    "Capacity limit %d reached; chains will grow past the load factor (size=%d)",
                    MAXIMUM_CAPACITY,
                    self._size,
                    extra={"table": self.describe()},
                )
            return

        new_cap = old_cap << 1
        try:
            new_buckets = _allocate_buckets(new_cap)
        except MemoryError as exc:
            table = dict(self.describe(), requested_capacity=new_cap)
            logger.error(
                "Resize to %d buckets failed; keeping capacity %d",
                new_cap,
                old_cap,
                extra={"table": table},
            )
            raise AllocationFailureError(
                f"could not allocate {new_cap} buckets",
                hint=f"table left at capacity {old_cap} with {self._size} entries",
                table=table,
            ) from exc

        # Each chain splits on the bit that the doubled mask adds.
        for j, head in enumerate(self._buckets):
            if head is None:
                continue
            lo_head: Optional[_Entry] = None
            lo_tail: Optional[_Entry] = None
            hi_head: Optional[_Entry] = None
            hi_tail: Optional[_Entry] = None
            node: Optional[_Entry] = head
            while node is not None:
                nxt = node.next
                node.next = None
                if node.hash & old_cap == 0:
                    if lo_tail is None:
                        lo_head = node
                    else:
                        lo_tail.next = node
                    lo_tail = node
                else:
                    if hi_tail is None:
                        hi_head = node
                    else:
                        hi_tail.next = node
                    hi_tail = node
                node = nxt
            new_buckets[j] = lo_head
            new_buckets[j + old_cap] = hi_head

        self._buckets = new_buckets
        self._capacity = new_cap
        self._resize_count += 1
        self._mod_count += 1
        logger.debug(
            "Resized table %d -> %d buckets (size=%d)",
            old_cap,
            new_cap,
            self._size,
            extra={"table": self.describe()},
        )

    # ------------------------------------------------------------------
    # Iteration and diagnostics
    # ------------------------------------------------------------------
    def _entries(self) -> Iterator[_Entry]:
        expected = self._mod_count
        for head in self._buckets:
            node = head
            while node is not None:
                yield node
                if self._mod_count != expected:
                    raise RuntimeError("HashTable changed size during iteration")
                node = node.next
        if self._mod_count != expected:
            raise RuntimeError("HashTable changed size during iteration")

    def items(self) -> Iterator[Tuple[K, V]]:
        for entry in self._entries():
            yield entry.key, entry.value

    def keys(self) -> Iterator[K]:
        for entry in self._entries():
            yield entry.key

    def values(self) -> Iterator[V]:
        for entry in self._entries():
            yield entry.value

    def __iter__(self) -> Iterator[K]:
        return self.keys()

    def chain_lengths(self) -> List[int]:
        lengths: List[int] = []
        for head in self._buckets:
            count = 0
            node = head
            while node is not None:
                count += 1
                node = node.next
            lengths.append(count)
        return lengths

    def max_chain_len(self) -> int:
        return max(self.chain_lengths(), default=0)

    def check_invariants(self) -> None:
        """Raise ``InvariantError`` if the bucket structure is inconsistent."""

        if not _is_power_of_two(self._capacity):
            raise InvariantError(f"capacity {self._capacity} is not a power of two")
        if len(self._buckets) != self._capacity:
            raise InvariantError(
                f"bucket list length {len(self._buckets)} != capacity {self._capacity}"
            )
        counted = 0
        for idx, head in enumerate(self._buckets):
            node = head
            while node is not None:
                if node.hash != hash_key(node.key):
                    raise InvariantError(f"stale cached hash for key {node.key!r}")
                if bucket_index(node.hash, self._capacity) != idx:
                    raise InvariantError(f"key {node.key!r} stored in bucket {idx}")
                counted += 1
                if counted > self._size:
                    raise InvariantError(f"more entries than size={self._size}")
                node = node.next
        if counted != self._size:
            raise InvariantError(f"size={self._size} but {counted} entries are linked")


__all__ = [
    "DEFAULT_CAPACITY",
    "DEFAULT_LOAD_FACTOR",
    "MAXIMUM_CAPACITY",
    "HashTable",
    "bucket_index",
    "hash_key",
    "spread",
]
