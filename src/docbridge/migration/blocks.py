"""Block construction for pending items."""

from collections.abc import Iterable, Iterator
from itertools import islice
from typing import TypeVar

T = TypeVar("T")


def create_blocks(items: Iterable[T], block_size: int) -> Iterator[list[T]]:
    """Split items into consecutive blocks of at most ``block_size``.

    Blocks are produced lazily and preserve input order; the last block may
    be shorter than ``block_size``.

    Args:
        items: Ordered items to partition
        block_size: Maximum items per block

    Yields:
        Lists of items, each committed as one store operation

    Raises:
        ValueError: If block_size is not positive
    """
    if block_size <= 0:
        raise ValueError(f"block_size must be positive, got {block_size}")

    return _iter_blocks(iter(items), block_size)


def _iter_blocks(iterator: Iterator[T], block_size: int) -> Iterator[list[T]]:
    while True:
        block = list(islice(iterator, block_size))
        if not block:
            return
        yield block
