"""
Section Stream
===============

Thread-safe random-access reader over a seekable binary stream.

Every decode in the symver parsers is a *seek-then-read* pair.  Doing the
pair under a lock means no traversal depends on where another traversal
left the shared file cursor.  Callers needing several reads as one
critical section can hold :meth:`SectionStream.exclusive`.
"""

from __future__ import annotations

import io
import threading
from contextlib import contextmanager
from typing import BinaryIO, Generator

from symver.core.errors import TruncatedRecord


class SectionStream:
    """Positioned reads over a seekable binary stream.

    Usage::

        with open("/usr/lib/libc.so.6", "rb") as fh:
            stream = SectionStream(fh)
            raw = stream.read_at(0x3a8, 20)
    """

    def __init__(self, fileobj: BinaryIO) -> None:
        """Wrap *fileobj*.

        Args:
            fileobj: Any object with ``seek`` and ``read`` (file, BytesIO).
        """
        self._fileobj = fileobj
        self._lock = threading.RLock()

    @classmethod
    def from_bytes(cls, data: bytes) -> SectionStream:
        """Build a stream over an in-memory buffer."""
        return cls(io.BytesIO(data))

    @contextmanager
    def exclusive(self) -> Generator[SectionStream, None, None]:
        """Hold the stream lock across several reads."""
        with self._lock:
            yield self

    def read_at(self, offset: int, size: int) -> bytes:
        """Read exactly *size* bytes starting at absolute *offset*.

        Raises:
            TruncatedRecord: If the stream ends before *size* bytes.
        """
        if offset < 0:
            raise TruncatedRecord(f"Negative stream offset {offset}")
        with self._lock:
            self._fileobj.seek(offset)
            data = self._fileobj.read(size)
        if len(data) != size:
            raise TruncatedRecord(
                f"Expected {size} bytes at 0x{offset:x}, got {len(data)}"
            )
        return data

    def read_cstring(self, offset: int, limit: int) -> bytes:
        """Read a NUL-terminated byte string of at most *limit* bytes.

        The terminator is not included in the result.

        Raises:
            TruncatedRecord: If no terminator occurs within *limit* bytes.
        """
        chunks: list[bytes] = []
        remaining = limit
        with self._lock:
            self._fileobj.seek(offset)
            while remaining > 0:
                chunk = self._fileobj.read(min(256, remaining))
                if not chunk:
                    break
                null_pos = chunk.find(b"\x00")
                if null_pos != -1:
                    chunks.append(chunk[:null_pos])
                    return b"".join(chunks)
                chunks.append(chunk)
                remaining -= len(chunk)
        raise TruncatedRecord(
            f"Unterminated string at 0x{offset:x} (limit {limit} bytes)"
        )
