from typing import List, Sequence, Tuple, TypeVar

T = TypeVar("T")

def page_offset(page_index: int, page_size: int) -> int:
    """Offset of the first row of a zero-based page"""
    return page_index * page_size

def split_page(rows: Sequence[T], page_size: int) -> Tuple[List[T], bool]:
    """Trim rows fetched with a ``page_size + 1`` limit.

    Returns the rows belonging to the page and whether a next page exists,
    so no separate count query is needed.
    """
    return list(rows[:page_size]), len(rows) > page_size
