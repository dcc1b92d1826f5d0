"""
Shuffler
Inverted index from discovered words to the intermediate shards holding them,
and the fair split of that key space across reducers
"""

import logging
from itertools import islice
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Tuple

logger = logging.getLogger(__name__)


class KeyIndex:
    """Maps each word to the intermediate shards it appeared in, in first-seen order"""

    def __init__(self):
        self._shards: Dict[str, List[str]] = {}

    def add(self, word: str, shard: str):
        shards = self._shards.setdefault(word, [])
        if shard not in shards:
            shards.append(shard)

    def shards_for(self, word: str) -> List[str]:
        return self._shards[word]

    def keys(self) -> List[str]:
        return list(self._shards)

    def items(self) -> Iterator[Tuple[str, List[str]]]:
        return iter(self._shards.items())

    def __len__(self) -> int:
        return len(self._shards)

    def __contains__(self, word) -> bool:
        return word in self._shards


@dataclass
class ReducePartition:
    """Keys owned by one reducer and the shards it must read to count them"""
    worker: str
    keys: List[str] = field(default_factory=list)
    input_shards: List[str] = field(default_factory=list)


def partition_keys(index: KeyIndex, workers: List[str]) -> List[ReducePartition]:
    """
    Split the keys of the index across workers

    With K keys and N workers, the first K mod N workers get K div N + 1 keys
    and the others K div N, drawn in index order. Each partition reads the
    union of the shards of its keys.

    Args:
        index: Index built during the map phase
        workers: Reduce workers, one partition each

    Returns:
        One partition per worker, in worker order
    """
    if not workers:
        raise ValueError("At least one reduce worker is required")

    per_worker, remainder = divmod(len(index), len(workers))
    keys = iter(index.keys())
    partitions = []
    for i, worker in enumerate(workers):
        size = per_worker + 1 if i < remainder else per_worker
        assigned = list(islice(keys, size))
        shards = dict.fromkeys(
            shard for key in assigned for shard in index.shards_for(key))
        partitions.append(ReducePartition(worker, assigned, list(shards)))
        logger.debug(f"Reducer {worker}: {len(assigned)} keys, {len(shards)} shards")
    return partitions
