"""
Unit tests for the input splitter
"""

import os
from collections import Counter

import pytest

from ssh_wordcount.coordinator.splitter import block_size, split_input_file
from ssh_wordcount.worker.tokenizer import tokenize


def read_shards(paths):
    shards = []
    for path in paths:
        with open(path, 'rb') as f:
            shards.append(f.read())
    return shards


class TestBlockSize:
    """Tests for block size computation"""

    def test_rounds_up_and_adds_one(self):
        assert block_size(10, 3) == 5
        assert block_size(9, 3) == 4

    def test_empty_file(self):
        assert block_size(0, 4) == 1


class TestSplitInputFile:
    """Tests for whitespace-aligned sharding"""

    @pytest.mark.parametrize("num_shards", [1, 2, 3, 4, 6, 50])
    def test_shards_join_back_to_input(self, sample_input_file, temp_dir, num_shards):
        paths = split_input_file(sample_input_file, num_shards, temp_dir)
        shards = read_shards(paths)

        with open(sample_input_file, 'rb') as f:
            original = f.read()

        assert len(paths) == num_shards
        assert b" ".join(shards).rstrip(b" ") == original.rstrip(b" ")
        assert Counter(w for s in shards for w in tokenize(s)) == Counter(tokenize(original))

    def test_shard_files_are_named_by_index(self, sample_input_file, temp_dir):
        paths = split_input_file(sample_input_file, 3, temp_dir)
        assert [os.path.basename(p) for p in paths] == ["S_0.txt", "S_1.txt", "S_2.txt"]

    def test_extends_block_to_next_space(self, temp_dir):
        path = os.path.join(temp_dir, 'in.txt')
        with open(path, 'w') as f:
            f.write("aa bb aa cc aa bb")

        shards = read_shards(split_input_file(path, 3, temp_dir))

        assert shards == [b"aa bb aa", b"cc aa bb", b""]

    def test_trailing_shards_may_be_empty(self, temp_dir):
        path = os.path.join(temp_dir, 'in.txt')
        with open(path, 'w') as f:
            f.write("word")

        shards = read_shards(split_input_file(path, 3, temp_dir))

        assert shards == [b"word", b"", b""]

    def test_empty_input(self, temp_dir):
        path = os.path.join(temp_dir, 'in.txt')
        open(path, 'w').close()

        shards = read_shards(split_input_file(path, 2, temp_dir))

        assert shards == [b"", b""]

    def test_rejects_zero_shards(self, sample_input_file, temp_dir):
        with pytest.raises(ValueError):
            split_input_file(sample_input_file, 0, temp_dir)
