"""
Unit tests for the key index and key partitioning
"""

import pytest

from ssh_wordcount.coordinator.shuffle import KeyIndex, ReducePartition, partition_keys


@pytest.fixture
def index():
    index = KeyIndex()
    for word, shard in [("aa", "UM_1"), ("bb", "UM_1"), ("aa", "UM_2"), ("cc", "UM_3"),
                        ("dd", "UM_2"), ("aa", "UM_1"), ("ee", "UM_3"), ("ff", "UM_1"),
                        ("gg", "UM_2"), ("bb", "UM_3")]:
        index.add(word, shard)
    return index


class TestKeyIndex:
    """Tests for the inverted index"""

    def test_keeps_each_shard_once_in_first_seen_order(self, index):
        assert index.shards_for("aa") == ["UM_1", "UM_2"]
        assert index.shards_for("bb") == ["UM_1", "UM_3"]

    def test_keys_in_insertion_order(self, index):
        assert index.keys() == ["aa", "bb", "cc", "dd", "ee", "ff", "gg"]
        assert len(index) == 7
        assert "cc" in index
        assert "zz" not in index

    def test_every_key_has_a_shard(self, index):
        assert all(shards for _, shards in index.items())


class TestPartitionKeys:
    """Tests for the fair split of keys across reducers"""

    def test_first_workers_take_the_remainder(self, index):
        partitions = partition_keys(index, ["w1", "w2", "w3"])

        assert [p.worker for p in partitions] == ["w1", "w2", "w3"]
        assert [len(p.keys) for p in partitions] == [3, 2, 2]

    def test_partitions_are_disjoint_and_complete(self, index):
        partitions = partition_keys(index, ["w1", "w2", "w3"])
        assigned = [key for p in partitions for key in p.keys]

        assert sorted(assigned) == sorted(index.keys())
        assert len(assigned) == len(set(assigned))

    def test_inputs_are_the_union_of_key_shards(self, index):
        partitions = partition_keys(index, ["w1", "w2", "w3"])

        assert partitions[0] == ReducePartition("w1", ["aa", "bb", "cc"], ["UM_1", "UM_2", "UM_3"])
        assert partitions[1] == ReducePartition("w2", ["dd", "ee"], ["UM_2", "UM_3"])
        assert partitions[2] == ReducePartition("w3", ["ff", "gg"], ["UM_1", "UM_2"])

    def test_every_key_reaches_all_of_its_shards(self, index):
        for partition in partition_keys(index, ["w1", "w2"]):
            for key in partition.keys:
                assert set(index.shards_for(key)) <= set(partition.input_shards)

    def test_more_workers_than_keys(self):
        index = KeyIndex()
        index.add("aa", "UM_1")

        partitions = partition_keys(index, ["w1", "w2", "w3"])

        assert partitions[0].keys == ["aa"]
        assert partitions[1] == ReducePartition("w2")
        assert partitions[2] == ReducePartition("w3")

    def test_empty_index(self):
        assert all(not p.keys for p in partition_keys(KeyIndex(), ["w1", "w2"]))

    def test_requires_a_worker(self, index):
        with pytest.raises(ValueError):
            partition_keys(index, [])
