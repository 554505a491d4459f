"""Split large operations into fixed-size batches."""

from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from vectordatastore.exceptions import ValidationError

T = TypeVar("T")
R = TypeVar("R")


def chunked(items: Sequence[T], size: int) -> list[list[T]]:
    """Split ``items`` into consecutive chunks of at most ``size`` elements.

    Raises:
        ValidationError: If ``size`` is not positive.
    """
    if size <= 0:
        raise ValidationError(
            f"Batch size must be positive, got {size}",
            details={"batch_size": size},
        )
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


class BatchProcessor:
    """Runs an async operation once per batch, in order.

    Attributes:
        batch_size: Maximum items handed to the operation per call.
    """

    def __init__(self, batch_size: int = 100) -> None:
        if batch_size <= 0:
            raise ValidationError(
                f"Batch size must be positive, got {batch_size}",
                details={"batch_size": batch_size},
            )
        self.batch_size = batch_size

    async def process(
        self,
        items: Sequence[T],
        operation: Callable[[list[T]], Awaitable[R]],
    ) -> list[R]:
        """Apply ``operation`` to each batch sequentially.

        The first failing batch aborts the run; earlier batches stay applied.

        Args:
            items: Items to process.
            operation: Coroutine function called with each batch.

        Returns:
            One result per batch.
        """
        results: list[R] = []
        for batch in chunked(items, self.batch_size):
            results.append(await operation(batch))
        return results
