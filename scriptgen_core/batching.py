"""
Sequential batch runner shared by the story and prompt steps.

Batches run strictly one after another: each producer call receives everything
produced so far, because later batches depend on earlier ones for continuity.
"""

from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar, Union

T = TypeVar("T")

ProgressCallback = Callable[[int, str], None]
Producer = Callable[[int, int, List[T]], Awaitable[Sequence[T]]]


def iter_batches(total_units: int, batch_size: int):
    """Yield (batch_start, batch_count) windows covering total_units."""
    for start in range(0, total_units, batch_size):
        yield start, min(batch_size, total_units - start)


def _progress_message(message: Union[str, Callable[[int, int], str], None], completed: int, total: int) -> str:
    if message is None:
        return f"Processed {completed}/{total}"
    if callable(message):
        return message(completed, total)
    return message


async def run_batches(
    total_units: int,
    batch_size: int,
    producer: Producer,
    *,
    on_progress: Optional[ProgressCallback] = None,
    message: Union[str, Callable[[int, int], str], None] = None,
    cancel_token=None,
) -> List[T]:
    """Run producer over successive windows and concatenate the results.

    Args:
        total_units: Number of units to cover
        batch_size: Maximum units per producer call
        producer: async (batch_start, batch_count, accumulated_so_far) -> items
        on_progress: Called after each batch with (percent, message)
        message: Status text, or callable (completed, total) -> text
        cancel_token: Checked before every batch

    Returns:
        All items in order

    Raises:
        Cancelled: If the token fired before a batch started
    """
    if total_units < 0:
        raise ValueError(f"total_units must be >= 0, got {total_units}")
    if batch_size <= 0:
        raise ValueError(f"batch_size must be > 0, got {batch_size}")

    accumulated: List[T] = []

    if total_units == 0:
        if on_progress:
            on_progress(100, _progress_message(message, 0, 0))
        return accumulated

    for batch_start, batch_count in iter_batches(total_units, batch_size):
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        batch_results = await producer(batch_start, batch_count, list(accumulated))
        accumulated.extend(batch_results)

        completed = batch_start + batch_count
        if on_progress:
            on_progress(round(completed / total_units * 100), _progress_message(message, completed, total_units))

    return accumulated
