"""Tests for chunking and path selection strategies."""
import math

import pytest

from pinupload.core.config import ChunkConfig, BASE_CHUNK_SIZE
from pinupload.core.upload.strategies import (
    FixedSizeChunkingStrategy,
    UploadPath,
    UploadStrategySelector,
    normalize_chunk_size,
)


def chunk_ranges(strategy, size):
    ranges = []
    offset = 0
    while offset < size:
        length = strategy.next_length(offset, size)
        ranges.append((offset, offset + length))
        offset += length
    return ranges


class TestFixedSizeChunkingStrategy:
    """Test suite for FixedSizeChunkingStrategy."""

    @pytest.fixture
    def strategy(self):
        return FixedSizeChunkingStrategy(chunk_size=100)

    def test_empty_file(self, strategy):
        assert chunk_ranges(strategy, 0) == []

    def test_exact_multiple(self, strategy):
        assert chunk_ranges(strategy, 300) == [(0, 100), (100, 200), (200, 300)]

    def test_partial_last_chunk(self, strategy):
        chunks = chunk_ranges(strategy, 250)

        assert chunks == [(0, 100), (100, 200), (200, 250)]

    @pytest.mark.parametrize("size", [1, 99, 100, 101, 999, 1000, 12345])
    def test_chunk_count_and_coverage(self, strategy, size):
        chunks = chunk_ranges(strategy, size)

        assert len(chunks) == math.ceil(size / 100)
        assert [start for start, _ in chunks] == list(range(0, size, 100))
        assert chunks[-1][1] == size
        for (_, end), (next_start, _) in zip(chunks, chunks[1:]):
            assert end == next_start

    def test_next_length(self, strategy):
        assert strategy.next_length(0, 250) == 100
        assert strategy.next_length(200, 250) == 50
        assert strategy.next_length(250, 250) == 0

    def test_invalid_chunk_size(self):
        with pytest.raises(ValueError):
            FixedSizeChunkingStrategy(chunk_size=0)


class TestNormalizeChunkSize:
    """Test suite for normalize_chunk_size."""

    def test_default(self):
        assert normalize_chunk_size() == 200 * BASE_CHUNK_SIZE

    def test_custom_config(self):
        config = ChunkConfig(base_chunk_size=100, default_chunks=1)

        assert normalize_chunk_size(None, config) == 100
        assert normalize_chunk_size(250, config) == 200
        assert normalize_chunk_size(50, config) == 100


class TestUploadStrategySelector:
    """Test suite for UploadStrategySelector."""

    def test_below_threshold_is_direct(self):
        selector = UploadStrategySelector(direct_threshold=1000)

        assert selector.select(0) is UploadPath.DIRECT
        assert selector.select(999) is UploadPath.DIRECT

    def test_at_threshold_is_chunked(self):
        selector = UploadStrategySelector(direct_threshold=1000)

        assert selector.select(1000) is UploadPath.CHUNKED
        assert selector.select(5000) is UploadPath.CHUNKED

    def test_default_threshold(self):
        selector = UploadStrategySelector()

        assert selector.select(94371839) is UploadPath.DIRECT
        assert selector.select(94371840) is UploadPath.CHUNKED

    def test_no_threshold_always_chunked(self):
        selector = UploadStrategySelector(direct_threshold=None)

        assert selector.select(1) is UploadPath.CHUNKED

    def test_negative_threshold(self):
        with pytest.raises(ValueError):
            UploadStrategySelector(direct_threshold=-1)
