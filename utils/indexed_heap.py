#!/usr/bin/env python3
"""
Indexed binary min-heap
Array-backed heap with a position map so a queued entry can be re-sifted in place in O(log n)
"""
from typing import Any, Callable, Dict, Generic, Iterator, List, TypeVar

T = TypeVar('T')


class IndexedMinHeap(Generic[T]):
    """Min-heap ordered by ``key(item)``, addressable by ``ident(item)``

    Positions live in the heap, not in the items, so any object can be stored.
    Keys must not change while an item sits in the heap unless it is pushed
    again right after the change.
    """

    def __init__(self, key: Callable[[T], Any], ident: Callable[[T], Any] = id):
        self._key = key
        self._ident = ident
        self._items: List[T] = []
        self._positions: Dict[Any, int] = {}

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))

    def push(self, item: T) -> None:
        """Insert an item; an item already present is re-sifted in place"""
        identity = self._ident(item)
        if identity in self._positions:
            index = self._positions[identity]
            self._items[index] = item
            self._restore(index)
            return

        self._items.append(item)
        index = len(self._items) - 1
        self._positions[identity] = index
        self._sift_up(index)

    def peek(self) -> T:
        if not self._items:
            raise IndexError("peek from empty heap")
        return self._items[0]

    def pop(self) -> T:
        """Remove and return the smallest item"""
        if not self._items:
            raise IndexError("pop from empty heap")
        return self._remove_at(0)

    def clear(self) -> None:
        self._items.clear()
        self._positions.clear()

    def _remove_at(self, index: int) -> T:
        last = len(self._items) - 1
        if index != last:
            self._swap(index, last)
        item = self._items.pop()
        del self._positions[self._ident(item)]
        if index < len(self._items):
            self._restore(index)
        return item

    def _restore(self, index: int) -> None:
        if index > 0 and self._less(index, (index - 1) // 2):
            self._sift_up(index)
        else:
            self._sift_down(index)

    def _less(self, i: int, j: int) -> bool:
        return self._key(self._items[i]) < self._key(self._items[j])

    def _swap(self, i: int, j: int) -> None:
        items = self._items
        items[i], items[j] = items[j], items[i]
        self._positions[self._ident(items[i])] = i
        self._positions[self._ident(items[j])] = j

    def _sift_up(self, index: int) -> None:
        while index > 0:
            parent = (index - 1) // 2
            if not self._less(index, parent):
                break
            self._swap(index, parent)
            index = parent

    def _sift_down(self, index: int) -> None:
        size = len(self._items)
        while True:
            smallest = index
            left = 2 * index + 1
            right = left + 1
            if left < size and self._less(left, smallest):
                smallest = left
            if right < size and self._less(right, smallest):
                smallest = right
            if smallest == index:
                break
            self._swap(index, smallest)
            index = smallest
