from typing import Any, Callable, Iterable, List, Sequence, Tuple, TypeVar

T = TypeVar("T")


def merge_and_paginate(
    sources: Sequence[Iterable[T]],
    key: Callable[[T], Any],
    page: int = 1,
    limit: int = 20,
    descending: bool = True,
) -> Tuple[List[T], int]:
    """Concatenate several record sources, sort the whole set, then slice a page.

    No source is assumed to be pre-sorted; sorting the merged list is what
    keeps page boundaries stable.

    Args:
        sources: record iterables, each may come from a different store
        key: sort key shared by every record
        page: 1-based page number
        limit: page size

    Returns:
        (items on the requested page, total number of merged records)
    """
    merged: List[T] = []
    for source in sources:
        merged.extend(source)

    merged.sort(key=key, reverse=descending)

    page = max(page, 1)
    start = (page - 1) * limit
    return merged[start : start + limit], len(merged)
