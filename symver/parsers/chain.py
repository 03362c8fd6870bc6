"""
Chain Walker
=============

Walks a singly-linked sequence of variable-size records embedded in a byte
region.  Each record stores the byte distance to its successor, measured
from its own start; a distance of zero terminates the chain.

The walker owns an offset-to-record cache, so a record is decoded at most
once per walker even when several traversals visit it.  Each individual
walk additionally tracks the offsets it has visited and refuses to land on
one twice.
"""

from __future__ import annotations

import logging
from typing import Callable, Generic, Iterator, TypeVar

from symver.core.errors import MalformedChain
from symver.parsers.stream import SectionStream

R = TypeVar("R")

_log = logging.getLogger(__name__)


class ChainWalker(Generic[R]):
    """Decode offset-chained records with per-offset memoisation.

    Args:
        stream:      Stream the records live in.
        decode:      ``(stream, offset) -> record`` for one record.
        next_of:     ``record -> distance`` to the next record (0 = end).
        record_size: Fixed on-disk size of one record header.

    Usage::

        walker = ChainWalker(stream, decode_verdaux, lambda a: a.header.vda_next, 8)
        for aux in walker.walk(start, size):
            ...
    """

    def __init__(
        self,
        stream: SectionStream,
        decode: Callable[[SectionStream, int], R],
        next_of: Callable[[R], int],
        record_size: int,
    ) -> None:
        self._stream = stream
        self._decode = decode
        self._next_of = next_of
        self._record_size = record_size
        self._cache: dict[int, R] = {}

    @property
    def cached_offsets(self) -> list[int]:
        """Offsets decoded so far, in ascending order."""
        return sorted(self._cache)

    def walk(self, start: int, size: int) -> Iterator[R]:
        """Lazily yield the records of the chain starting at *start*.

        The region ``[start, start + size)`` bounds the walk.

        Raises:
            MalformedChain: If the chain revisits an offset, steps below
                *start*, or a record would cross the region end.
        """
        end = start + size
        cursor = start
        visited: set[int] = set()

        while start <= cursor < end:
            if cursor in visited:
                raise MalformedChain(
                    f"Chain revisits offset 0x{cursor:x}"
                )
            visited.add(cursor)

            record = self._cache.get(cursor)
            if record is None:
                if cursor + self._record_size > end:
                    raise MalformedChain(
                        f"Record at 0x{cursor:x} overruns region end 0x{end:x}"
                    )
                record = self._decode(self._stream, cursor)
                self._cache[cursor] = record
                _log.debug("Decoded record at 0x%x", cursor)

            yield record

            distance = self._next_of(record)
            if distance == 0:
                return
            cursor += distance

        # Record distances are unsigned; only a custom next_of can step back
        if cursor < start:
            raise MalformedChain(
                f"Chain steps before region start to 0x{cursor:x}"
            )

    def walk_all(self, start: int, size: int) -> list[R]:
        """Materialise :meth:`walk` into a list."""
        return list(self.walk(start, size))
