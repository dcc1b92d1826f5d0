"""
Unit tests for ReduceExecutor
"""

import io
import os
from collections import Counter

from ssh_wordcount.worker.reduce_executor import ReduceExecutor, count_shard, read_keys


def write_shard(path, words):
    with open(path, 'w') as f:
        for word in words:
            f.write(f"{word} 1\n")
    return path


class TestReduceHelpers:
    """Tests for key loading and per-shard counting"""

    def test_read_keys_skips_blank_lines(self, temp_dir):
        path = os.path.join(temp_dir, 'keys.txt')
        with open(path, 'w') as f:
            f.write("aa\n\nbb\n  \ncc\n")
        assert read_keys(path) == ["aa", "bb", "cc"]

    def test_count_shard_only_counts_requested_keys(self, temp_dir):
        path = write_shard(os.path.join(temp_dir, 'um.txt'), ["aa", "bb", "aa", "zz"])
        assert count_shard(path, frozenset(["aa", "bb"])) == Counter({"aa": 2, "bb": 1})

    def test_count_shard_uses_first_field(self, temp_dir):
        path = os.path.join(temp_dir, 'um.txt')
        with open(path, 'w') as f:
            f.write("aa 1\n  aa   1\n\naa\nbb aa 1\n")
        assert count_shard(path, frozenset(["aa"])) == Counter({"aa": 3})


class TestReduceExecution:
    """Tests for the reduce job"""

    def test_sums_counts_across_shards_in_key_order(self, temp_dir):
        first = write_shard(os.path.join(temp_dir, 'UM_a.txt'), ["aa", "bb", "aa", "cc"])
        second = write_shard(os.path.join(temp_dir, 'UM_b.txt'), ["aa", "bb", "dd"])
        output = os.path.join(temp_dir, 'RM_a.txt')
        out = io.StringIO()

        result = ReduceExecutor(output, [first, second], ["bb", "aa", "zz"], stdout=out).execute()

        assert result['success']
        assert out.getvalue().splitlines() == ["bb 2", "aa 3", "zz 0", "END OF PROCESS UMXRMX"]
        with open(output) as f:
            assert f.read().splitlines() == ["bb 2", "aa 3", "zz 0"]

    def test_no_keys(self, temp_dir):
        output = os.path.join(temp_dir, 'RM_a.txt')
        out = io.StringIO()

        result = ReduceExecutor(output, [], [], stdout=out).execute()

        assert result['success']
        assert out.getvalue() == "END OF PROCESS UMXRMX\n"

    def test_missing_shard_is_reported_but_sentinel_is_emitted(self, temp_dir):
        present = write_shard(os.path.join(temp_dir, 'UM_a.txt'), ["aa", "aa"])
        missing = os.path.join(temp_dir, 'UM_missing.txt')
        output = os.path.join(temp_dir, 'RM_a.txt')
        out = io.StringIO()

        result = ReduceExecutor(output, [present, missing], ["aa"], stdout=out).execute()

        assert not result['success']
        assert result['failed_inputs'] == 1
        assert out.getvalue().splitlines() == ["aa 2", "END OF PROCESS UMXRMX"]
