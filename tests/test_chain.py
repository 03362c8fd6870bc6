"""Tests for the offset-chained record walker and the section stream."""

from __future__ import annotations

import struct

import pytest

from symver.core.errors import MalformedChain, TruncatedRecord
from symver.parsers.chain import ChainWalker
from symver.parsers.stream import SectionStream


def _record(payload: int, next_distance: int) -> bytes:
    return struct.pack("<II", payload, next_distance)


class _Counter:
    def __init__(self) -> None:
        self.calls = 0

    def __call__(self, stream: SectionStream, offset: int) -> tuple[int, int]:
        self.calls += 1
        return struct.unpack("<II", stream.read_at(offset, 8))


def _walker(data: bytes, decode=None) -> ChainWalker:
    return ChainWalker(
        SectionStream.from_bytes(data),
        decode or _Counter(),
        lambda rec: rec[1],
        8,
    )


class TestChainWalker:
    def test_walks_until_zero_link(self) -> None:
        data = _record(10, 8) + _record(11, 16) + b"\xff" * 8 + _record(12, 0)
        records = _walker(data).walk_all(0, len(data))
        assert [r[0] for r in records] == [10, 11, 12]

    def test_walk_starting_mid_buffer(self) -> None:
        data = b"\x00" * 4 + _record(1, 0)
        assert _walker(data).walk_all(4, 8) == [(1, 0)]

    def test_rewalk_uses_cache(self) -> None:
        data = _record(1, 8) + _record(2, 0)
        counter = _Counter()
        walker = _walker(data, counter)
        first = walker.walk_all(0, len(data))
        second = walker.walk_all(0, len(data))
        assert first == second
        assert counter.calls == 2
        assert walker.cached_offsets == [0, 8]

    def test_walk_is_lazy(self) -> None:
        data = _record(1, 8) + _record(2, 0)
        counter = _Counter()
        walker = _walker(data, counter)
        it = walker.walk(0, len(data))
        next(it)
        assert counter.calls == 1

    def test_stops_silently_past_region_end(self) -> None:
        data = _record(1, 64) + b"\x00" * 8
        assert len(_walker(data).walk_all(0, 16)) == 1

    def test_back_edge_raises(self) -> None:
        looping = ChainWalker(
            SectionStream.from_bytes(_record(1, 8) + _record(2, 0)),
            _Counter(),
            lambda rec: 8 if rec[0] == 1 else -8,
            8,
        )
        with pytest.raises(MalformedChain, match="revisits"):
            looping.walk_all(0, 16)

    def test_step_before_start_raises(self) -> None:
        walker = ChainWalker(
            SectionStream.from_bytes(b"\x00" * 8 + _record(1, 0)),
            _Counter(),
            lambda rec: -8,
            8,
        )
        with pytest.raises(MalformedChain, match="before region start"):
            walker.walk_all(8, 8)

    def test_record_overrunning_region_raises(self) -> None:
        data = _record(1, 8) + _record(2, 0)
        with pytest.raises(MalformedChain, match="overruns"):
            _walker(data).walk_all(0, 12)

    def test_empty_region_yields_nothing(self) -> None:
        assert _walker(b"").walk_all(0, 0) == []


class TestSectionStream:
    def test_read_at(self) -> None:
        stream = SectionStream.from_bytes(b"abcdef")
        assert stream.read_at(2, 3) == b"cde"

    def test_short_read_raises(self) -> None:
        stream = SectionStream.from_bytes(b"abc")
        with pytest.raises(TruncatedRecord):
            stream.read_at(1, 8)

    def test_negative_offset_raises(self) -> None:
        with pytest.raises(TruncatedRecord):
            SectionStream.from_bytes(b"abc").read_at(-1, 1)

    def test_read_cstring(self) -> None:
        stream = SectionStream.from_bytes(b"\x00GLIBC_2.2.5\x00tail")
        assert stream.read_cstring(1, 20) == b"GLIBC_2.2.5"

    def test_read_cstring_across_chunks(self) -> None:
        long_name = b"x" * 600
        stream = SectionStream.from_bytes(long_name + b"\x00")
        assert stream.read_cstring(0, 601) == long_name

    def test_unterminated_string_raises(self) -> None:
        stream = SectionStream.from_bytes(b"abcdef")
        with pytest.raises(TruncatedRecord, match="Unterminated"):
            stream.read_cstring(0, 4)

    def test_exclusive_yields_stream(self) -> None:
        stream = SectionStream.from_bytes(b"abc")
        with stream.exclusive() as held:
            assert held.read_at(0, 1) == b"a"
