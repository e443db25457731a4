"""Helpers for splitting work into bounded batches."""
from typing import Iterator, List, Sequence, Tuple, TypeVar

T = TypeVar("T")


def chunked(items: Sequence[T], size: int) -> Iterator[Tuple[int, List[T]]]:
    """Yield (start_index, batch) pairs of at most ``size`` items."""
    if size < 1:
        raise ValueError(f"batch size must be positive, got {size}")
    for start in range(0, len(items), size):
        yield start, list(items[start:start + size])


def partition(items: Sequence[T], parts: int) -> List[List[T]]:
    """Split items into at most ``parts`` contiguous, non-empty chunks.

    Chunk sizes differ by at most one. An empty input gives an empty list.
    """
    if not items:
        return []
    parts = max(1, min(parts, len(items)))
    base, extra = divmod(len(items), parts)
    chunks = []
    start = 0
    for index in range(parts):
        end = start + base + (1 if index < extra else 0)
        chunks.append(list(items[start:end]))
        start = end
    return chunks
