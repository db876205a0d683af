"""
Batch accumulation with an optional global record cap.

`BatchAccumulator` buffers records and hands back full batches;
`iter_batches` drives it from any iterable in pull mode: the source is only
advanced when the consumer asks for the next batch, which is what keeps one
batch in flight at a time and stops reading the file once the cap is hit.
"""

from __future__ import annotations

from typing import Generic, Iterable, Iterator, List, Optional, TypeVar

T = TypeVar("T")


class BatchAccumulator(Generic[T]):
    """
    Buffer records up to `batch_size`.

    With `cap` set, at most `cap` records are ever accepted. The record that
    reaches the cap closes the current batch early (it is returned by `add`)
    and `exhausted` turns true; later `add` calls are ignored.
    """

    def __init__(self, batch_size: int, cap: Optional[int] = None) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        if cap is not None and cap < 0:
            raise ValueError("cap must be non-negative")
        self.batch_size = batch_size
        self.cap = cap
        self.accepted = 0
        self._buffer: List[T] = []

    @property
    def exhausted(self) -> bool:
        return self.cap is not None and self.accepted >= self.cap

    def add(self, record: T) -> Optional[List[T]]:
        """Accept one record; return a batch when one is ready."""
        if self.exhausted:
            return None
        self._buffer.append(record)
        self.accepted += 1
        if len(self._buffer) >= self.batch_size or self.exhausted:
            return self._take()
        return None

    def flush(self) -> Optional[List[T]]:
        """Return the trailing partial batch, if any."""
        return self._take() if self._buffer else None

    def _take(self) -> List[T]:
        batch, self._buffer = self._buffer, []
        return batch


def iter_batches(records: Iterable[T], accumulator: BatchAccumulator[T]) -> Iterator[List[T]]:
    """
    Yield batches from `records` in arrival order.

    Stops pulling from `records` as soon as the accumulator is exhausted.
    """
    if accumulator.exhausted:
        return
    for record in records:
        batch = accumulator.add(record)
        if batch is not None:
            yield batch
        if accumulator.exhausted:
            return
    tail = accumulator.flush()
    if tail is not None:
        yield tail


__all__ = ["BatchAccumulator", "iter_batches"]
